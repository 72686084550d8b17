"""Shared fixtures: in-memory SQLite database and an app wired to it."""

import unittest
from typing import Any

from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.config import Settings
from app.core.database import get_db
from app.core.security import hash_password
from app.main import create_app
from app.models import Base, Role, RoleName, User
from app.models.role import DEFAULT_ROLE_DESCRIPTIONS

TEST_SECRET = "test-secret-not-for-production"
PASSWORD = "password123"


def make_settings(**overrides: Any) -> Settings:
    """Settings isolated from the developer's .env; rate limiting off unless asked for."""
    values: dict[str, Any] = {"JWT_SECRET": TEST_SECRET, "RATE_LIMIT_ENABLED": False}
    values.update(overrides)
    return Settings(_env_file=None, **values)


def make_engine() -> Engine:
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, _record) -> None:
        dbapi_connection.execute("PRAGMA foreign_keys=ON")

    Base.metadata.create_all(engine)
    return engine


class DatabaseTestCase(unittest.TestCase):
    """Fresh schema per test with the three predefined roles seeded."""

    def setUp(self) -> None:
        self.engine = make_engine()
        self.SessionTesting = sessionmaker(bind=self.engine, autocommit=False, autoflush=False)
        self.db: Session = self.SessionTesting()
        self.roles: dict[RoleName, Role] = {}
        for role_name, description in DEFAULT_ROLE_DESCRIPTIONS.items():
            role = Role(name=role_name.value, description=description)
            self.db.add(role)
            self.roles[role_name] = role
        self.db.commit()

    def tearDown(self) -> None:
        self.db.close()
        self.engine.dispose()

    def create_user(
        self,
        email: str = "user@example.com",
        password: str = PASSWORD,
        name: str = "Test User",
        role: RoleName | None = RoleName.USER,
        verified: bool = True,
    ) -> User:
        """Insert a user directly (low bcrypt cost to keep tests fast)."""
        user = User(
            name=name,
            email=email,
            password_hash=hash_password(password, rounds=4),
            verified=verified,
            role=self.roles[role] if role is not None else None,
        )
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return user


class ApiTestCase(DatabaseTestCase):
    """DatabaseTestCase plus a TestClient whose get_db yields sessions on the test database."""

    settings_overrides: dict[str, Any] = {}

    def setUp(self) -> None:
        super().setUp()
        self.app = create_app(make_settings(**self.settings_overrides))

        def override_get_db():
            db = self.SessionTesting()
            try:
                yield db
            finally:
                db.close()

        self.app.dependency_overrides[get_db] = override_get_db
        self.client = TestClient(self.app)
        self.tokens = self.app.state.token_service

    def tearDown(self) -> None:
        self.app.dependency_overrides.clear()
        self.client.close()
        super().tearDown()

    def auth_headers(self, user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.tokens.issue_access_token(user)}"}

    def admin_headers(self) -> dict[str, str]:
        admin = self.create_user(email="admin@example.com", name="Admin User", role=RoleName.ADMIN)
        return self.auth_headers(admin)

    def refetch(self, model: type, pk: int) -> Any:
        """Load a row as the API left it (bypassing this session's identity map)."""
        self.db.expire_all()
        return self.db.get(model, pk)
