"""
Seed the predefined roles and a default admin. Idempotent; run from project root:
  python -m app.scripts.seed
"""
import logging
import sys

from sqlalchemy.orm import Session

from app.core.config import Settings, get_settings
from app.core.database import session_scope
from app.models import RoleName, User
from app.services import accounts
from app.services.roles import ensure_default_roles

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


def seed(db: Session, settings: Settings) -> User | None:
    """Create missing roles, then an admin user if no user holds the admin role."""
    ensure_default_roles(db)
    admin_role = accounts.get_role_by_name(db, RoleName.ADMIN)
    if db.query(User.id).filter(User.role_id == admin_role.id).first() is not None:
        return None
    admin = accounts.register_user(
        db,
        name="Admin User",
        email=settings.DEFAULT_ADMIN_EMAIL,
        password=settings.DEFAULT_ADMIN_PASSWORD.get_secret_value(),
        verified=True,
        role=admin_role,
    )
    logger.info("Created default admin user: %s", admin.email)
    return admin


def main() -> int:
    try:
        with session_scope() as db:
            seed(db, get_settings())
    except Exception as e:
        logger.exception("Seeding failed: %s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
