"""Role store: validation, CRUD, and seeding of the predefined roles."""

import logging
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import FieldErrors, ValidationFailed
from app.models import Role, User
from app.models.role import (
    DEFAULT_ROLE_DESCRIPTIONS,
    ROLE_DESCRIPTION_MAX_LEN,
    ROLE_NAME_MAX_LEN,
    ROLE_NAME_MIN_LEN,
)

logger = logging.getLogger(__name__)


def _clean_name(name: str | None) -> str | None:
    return name.strip() if isinstance(name, str) else name


def validate_role_fields(
    db: Session, *, name: str | None, description: str | None, role_id: int | None = None
) -> FieldErrors:
    errors: FieldErrors = {}
    if name is None or not name.strip():
        errors["name"] = ["can't be blank"]
    elif len(name) < ROLE_NAME_MIN_LEN:
        errors["name"] = [f"is too short (minimum is {ROLE_NAME_MIN_LEN} characters)"]
    elif len(name) > ROLE_NAME_MAX_LEN:
        errors["name"] = [f"is too long (maximum is {ROLE_NAME_MAX_LEN} characters)"]
    else:
        query = db.query(Role.id).filter(Role.name == name)
        if role_id is not None:
            query = query.filter(Role.id != role_id)
        if query.first() is not None:
            errors["name"] = ["has already been taken"]

    if description is not None and len(description) > ROLE_DESCRIPTION_MAX_LEN:
        errors["description"] = [
            f"is too long (maximum is {ROLE_DESCRIPTION_MAX_LEN} characters)"
        ]
    return errors


def list_roles(db: Session) -> list[Role]:
    return db.query(Role).order_by(Role.id).all()


def get_role(db: Session, role_id: int) -> Role | None:
    return db.get(Role, role_id)


def _commit_role(db: Session, role: Role, message: str) -> Role:
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ValidationFailed({"name": ["has already been taken"]}, message)
    db.refresh(role)
    return role


def create_role(db: Session, name: str | None, description: str | None = None) -> Role:
    """Raises ValidationFailed("Creation failed") on invalid attributes."""
    name = _clean_name(name)
    errors = validate_role_fields(db, name=name, description=description)
    if errors:
        raise ValidationFailed(errors, "Creation failed")
    role = Role(name=name, description=description)
    db.add(role)
    role = _commit_role(db, role, "Creation failed")
    logger.info("Created role id=%s name=%s", role.id, role.name)
    return role


def update_role(db: Session, role: Role, changes: dict[str, Any]) -> Role:
    """Partial update; raises ValidationFailed("Update failed")."""
    name = _clean_name(changes.get("name", role.name))
    description = changes.get("description", role.description)
    errors = validate_role_fields(db, name=name, description=description, role_id=role.id)
    if errors:
        raise ValidationFailed(errors, "Update failed")
    role.name = name
    role.description = description
    return _commit_role(db, role, "Update failed")


def delete_role(db: Session, role: Role) -> int:
    """
    Delete a role after detaching it from its users (role_id set to NULL).
    Returns the number of users that lost the role.
    """
    detached = (
        db.query(User)
        .filter(User.role_id == role.id)
        .update({User.role_id: None}, synchronize_session="fetch")
    )
    role_id, role_name = role.id, role.name
    db.delete(role)
    db.commit()
    logger.info("Deleted role id=%s name=%s; detached from %s users", role_id, role_name, detached)
    return detached


def ensure_default_roles(db: Session) -> list[Role]:
    """Create any missing predefined role. Idempotent."""
    roles = []
    for role_name, description in DEFAULT_ROLE_DESCRIPTIONS.items():
        role = db.query(Role).filter(Role.name == role_name.value).first()
        if role is None:
            role = Role(name=role_name.value, description=description)
            db.add(role)
            logger.info("Seeding role %s", role_name.value)
        roles.append(role)
    db.commit()
    return roles
