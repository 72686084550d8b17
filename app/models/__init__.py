"""SQLAlchemy ORM models."""

from app.models.base import Base
from app.models.role import Role, RoleName
from app.models.session import UserSession
from app.models.user import User

__all__ = ["Base", "Role", "RoleName", "User", "UserSession"]
