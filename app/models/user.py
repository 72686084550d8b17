"""ORM model for application users (credentials and RBAC)."""

from sqlalchemy import Boolean, Column, ForeignKey, Integer, String, false
from sqlalchemy.orm import relationship

from app.models.base import Base, TimestampMixin
from app.models.role import RoleName


class User(TimestampMixin, Base):
    """
    User account for JWT authentication and role-based access control.

    email is stored normalized (trimmed, lowercase). role is optional.
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    verified = Column(Boolean, nullable=False, default=False, server_default=false())
    role_id = Column(
        Integer,
        ForeignKey("roles.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    role = relationship("Role", back_populates="users")
    sessions = relationship(
        "UserSession",
        back_populates="user",
        cascade="all, delete-orphan",
    )

    @property
    def role_label(self) -> str | None:
        """Stored role name (may be a custom role), or None without a role."""
        return self.role.name if self.role is not None else None

    @property
    def role_name(self) -> RoleName | None:
        return RoleName.parse(self.role_label)

    @property
    def is_admin(self) -> bool:
        return self.role_name is RoleName.ADMIN
