"""ORM model for roles and the enum of predefined role names."""

from enum import Enum

from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import relationship

from app.models.base import Base, TimestampMixin

ROLE_NAME_MIN_LEN = 2
ROLE_NAME_MAX_LEN = 50
ROLE_DESCRIPTION_MAX_LEN = 500


class RoleName(str, Enum):
    """Predefined roles. Authorization checks compare against these, never raw strings."""

    ADMIN = "admin"
    MODERATOR = "moderator"
    USER = "user"

    @classmethod
    def parse(cls, name: str | None) -> "RoleName | None":
        """Map a stored role name onto the enum; custom or missing names map to None."""
        if name is None:
            return None
        try:
            return cls(name)
        except ValueError:
            return None


# Seed descriptions for the predefined roles.
DEFAULT_ROLE_DESCRIPTIONS: dict[RoleName, str] = {
    RoleName.ADMIN: "Full system access with all permissions",
    RoleName.MODERATOR: "Limited administrative access for content moderation",
    RoleName.USER: "Standard user with basic permissions",
}


class Role(TimestampMixin, Base):
    """
    Named permission group attached to users.

    Deleting a role nullifies role_id on its users (ON DELETE SET NULL); users are kept.
    """

    __tablename__ = "roles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(ROLE_NAME_MAX_LEN), nullable=False, unique=True, index=True)
    description = Column(String(ROLE_DESCRIPTION_MAX_LEN), nullable=True)
    users = relationship("User", back_populates="role", passive_deletes=True)
