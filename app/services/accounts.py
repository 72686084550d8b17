"""User store: validation, registration, credential checks, updates and login audit rows."""

import logging
from functools import lru_cache
from typing import Any

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from app.core.errors import FieldErrors, ValidationFailed
from app.core.security import (
    NAME_MAX_LEN,
    NAME_MIN_LEN,
    PASSWORD_MAX_BYTES,
    PASSWORD_MIN_LEN,
    hash_password,
    is_valid_email,
    normalize_email,
    password_too_long,
    verify_password,
)
from app.models import Role, RoleName, User, UserSession

logger = logging.getLogger(__name__)

BLANK = "can't be blank"
TAKEN = "has already been taken"
INVALID = "is invalid"

# Only admins may change these on any record, including their own.
ADMIN_ONLY_FIELDS = frozenset({"verified", "role_id"})


def _too_short(n: int) -> str:
    return f"is too short (minimum is {n} characters)"


def _too_long(n: int) -> str:
    return f"is too long (maximum is {n} characters)"


def _add(errors: FieldErrors, field: str, message: str) -> None:
    errors.setdefault(field, []).append(message)


def _clean_name(name: str | None) -> str | None:
    return name.strip() if isinstance(name, str) else name


def email_taken(db: Session, email: str, exclude_user_id: int | None = None) -> bool:
    query = db.query(User.id).filter(User.email == email)
    if exclude_user_id is not None:
        query = query.filter(User.id != exclude_user_id)
    return query.first() is not None


def validate_user_fields(
    db: Session,
    *,
    name: str | None,
    email: str | None,
    password: str | None,
    password_confirmation: str | None = None,
    password_required: bool,
    user_id: int | None = None,
) -> FieldErrors:
    """
    Validate user attributes; email must already be normalized.

    password is only checked when required (new record) or when supplied (change).
    Returns a field -> messages map, empty when valid.
    """
    errors: FieldErrors = {}

    if name is None or not name.strip():
        _add(errors, "name", BLANK)
    elif len(name) < NAME_MIN_LEN:
        _add(errors, "name", _too_short(NAME_MIN_LEN))
    elif len(name) > NAME_MAX_LEN:
        _add(errors, "name", _too_long(NAME_MAX_LEN))

    if email is None or not email.strip():
        _add(errors, "email", BLANK)
    elif not is_valid_email(email):
        _add(errors, "email", INVALID)
    elif email_taken(db, email, exclude_user_id=user_id):
        _add(errors, "email", TAKEN)

    if password is None:
        if password_required:
            _add(errors, "password", BLANK)
    elif len(password) < PASSWORD_MIN_LEN:
        _add(errors, "password", _too_short(PASSWORD_MIN_LEN))
    elif password_too_long(password):
        _add(errors, "password", f"is too long (maximum is {PASSWORD_MAX_BYTES} bytes)")

    if password is not None and password_confirmation is not None:
        if password_confirmation != password:
            _add(errors, "password_confirmation", "doesn't match Password")

    return errors


def get_user(db: Session, user_id: int) -> User | None:
    return db.get(User, user_id)


def get_user_by_email(db: Session, email: str | None) -> User | None:
    normalized = normalize_email(email)
    if not normalized:
        return None
    return db.query(User).filter(User.email == normalized).first()


def get_role_by_name(db: Session, name: RoleName) -> Role | None:
    return db.query(Role).filter(Role.name == name.value).first()


def _commit_user(db: Session, user: User, message: str) -> User:
    """Commit, turning a lost race on the unique email index into a validation error."""
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ValidationFailed({"email": [TAKEN]}, message)
    db.refresh(user)
    return user


def register_user(
    db: Session,
    *,
    name: str | None,
    email: str | None,
    password: str | None,
    password_confirmation: str | None = None,
    verified: bool = False,
    role: Role | None = None,
) -> User:
    """
    Create a user after validation. Without an explicit role the 'user' role is assigned
    (or no role if it has not been seeded). Raises ValidationFailed("Registration failed").
    """
    name = _clean_name(name)
    email = normalize_email(email)
    errors = validate_user_fields(
        db,
        name=name,
        email=email,
        password=password,
        password_confirmation=password_confirmation,
        password_required=True,
    )
    if errors:
        raise ValidationFailed(errors, "Registration failed")

    if role is None:
        role = get_role_by_name(db, RoleName.USER)

    user = User(
        name=name,
        email=email,
        password_hash=hash_password(password),
        verified=verified,
        role=role,
    )
    db.add(user)
    user = _commit_user(db, user, "Registration failed")
    logger.info("Registered user id=%s role=%s", user.id, user.role_label)
    return user


@lru_cache(maxsize=1)
def _dummy_password_hash() -> str:
    return hash_password("dummy-password-for-timing")


def authenticate(db: Session, email: str | None, password: str | None) -> User | None:
    """
    Return the user when email and password match, else None.
    Unknown email and wrong password are indistinguishable to the caller.
    """
    user = get_user_by_email(db, email)
    if user is None:
        # Spend the same bcrypt work as a real check so response time does not reveal the email.
        verify_password(password or "", _dummy_password_hash())
        return None
    if not verify_password(password or "", user.password_hash):
        return None
    return user


def list_users(db: Session, page: int, per_page: int) -> tuple[list[User], int]:
    total = db.query(func.count(User.id)).scalar() or 0
    users = (
        db.query(User)
        .options(selectinload(User.role))
        .order_by(User.id)
        .offset((page - 1) * per_page)
        .limit(per_page)
        .all()
    )
    return users, total


def update_user(db: Session, user: User, changes: dict[str, Any]) -> User:
    """
    Apply a partial update. Keys absent from `changes` are left untouched.
    Raises ValidationFailed("Update failed") with field errors.
    """
    name = _clean_name(changes.get("name", user.name))
    email = normalize_email(changes["email"]) if "email" in changes else user.email
    password = changes.get("password")
    password_confirmation = changes.get("password_confirmation")

    errors = validate_user_fields(
        db,
        name=name,
        email=email,
        password=password,
        password_confirmation=password_confirmation,
        password_required=False,
        user_id=user.id,
    )

    role: Role | None = user.role
    if "role_id" in changes:
        role_id = changes["role_id"]
        role = db.get(Role, role_id) if role_id is not None else None
        if role_id is not None and role is None:
            _add(errors, "role", "must exist")
    if "verified" in changes and changes["verified"] is None:
        _add(errors, "verified", "is not included in the list")

    if errors:
        raise ValidationFailed(errors, "Update failed")

    user.name = name
    user.email = email
    if password is not None:
        user.password_hash = hash_password(password)
    if "verified" in changes:
        user.verified = changes["verified"]
    user.role = role
    return _commit_user(db, user, "Update failed")


def delete_user(db: Session, user: User) -> None:
    """Delete a user and (via cascade) its session rows."""
    user_id = user.id
    db.delete(user)
    db.commit()
    logger.info("Deleted user id=%s", user_id)


def record_session(db: Session, user: User, user_agent: str, ip_address: str) -> UserSession:
    """Store a login audit row for this device."""
    row = UserSession(user_id=user.id, user_agent=user_agent, ip_address=ip_address)
    db.add(row)
    db.commit()
    return row


def end_sessions(db: Session, user: User, user_agent: str, ip_address: str) -> int:
    """Delete the user's audit rows for this device. Issued tokens stay valid until expiry."""
    deleted = (
        db.query(UserSession)
        .filter(
            UserSession.user_id == user.id,
            UserSession.user_agent == user_agent,
            UserSession.ip_address == ip_address,
        )
        .delete(synchronize_session=False)
    )
    db.commit()
    return deleted
