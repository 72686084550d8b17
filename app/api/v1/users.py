"""User records: admin listing and deletion, self-or-admin read and update."""

import math
from typing import Annotated

from fastapi import APIRouter, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.api.deps import AdminUser, CurrentUser, DbSession
from app.core.errors import NotFound
from app.models import User
from app.schemas.common import ApiResponse, EmptyData
from app.schemas.user import PageMeta, UserData, UserOut, UsersPage, UserUpdateRequest
from app.services import accounts

router = APIRouter()

MAX_PER_PAGE = 100


def _require_self_or_admin(current_user: User, user_id: int) -> None:
    # Checked before lookup so non-admins cannot probe which ids exist.
    if current_user.id != user_id and not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )


def _get_user_or_404(db: Session, user_id: int) -> User:
    user = accounts.get_user(db, user_id)
    if user is None:
        raise NotFound("User not found")
    return user


@router.get("", response_model=ApiResponse[UsersPage])
def list_users(
    _admin: AdminUser,
    db: DbSession,
    page: Annotated[int, Query(ge=1)] = 1,
    per_page: Annotated[int, Query(ge=1)] = 20,
) -> ApiResponse[UsersPage]:
    """List users (admin only), ordered by id."""
    per_page = min(per_page, MAX_PER_PAGE)
    users, total = accounts.list_users(db, page, per_page)
    meta = PageMeta(
        page=page,
        per_page=per_page,
        total=total,
        total_pages=math.ceil(total / per_page) if total else 0,
    )
    return ApiResponse(
        message="Users retrieved successfully",
        data=UsersPage(users=[UserOut.from_model(u) for u in users], meta=meta),
    )


@router.get("/{user_id}", response_model=ApiResponse[UserData])
def get_user(user_id: int, current_user: CurrentUser, db: DbSession) -> ApiResponse[UserData]:
    _require_self_or_admin(current_user, user_id)
    user = _get_user_or_404(db, user_id)
    return ApiResponse(
        message="User retrieved successfully",
        data=UserData(user=UserOut.from_model(user)),
    )


@router.patch("/{user_id}", response_model=ApiResponse[UserData])
def update_user(
    user_id: int,
    body: UserUpdateRequest,
    current_user: CurrentUser,
    db: DbSession,
) -> ApiResponse[UserData]:
    """
    Partially update a user. Users may edit their own name, email and password;
    verified and role_id can only be changed by an admin.
    """
    _require_self_or_admin(current_user, user_id)
    changes = body.user.model_dump(exclude_unset=True)
    if not current_user.is_admin and accounts.ADMIN_ONLY_FIELDS & changes.keys():
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    user = _get_user_or_404(db, user_id)
    user = accounts.update_user(db, user, changes)
    return ApiResponse(
        message="User updated successfully",
        data=UserData(user=UserOut.from_model(user)),
    )


@router.delete("/{user_id}", response_model=ApiResponse[EmptyData])
def delete_user(user_id: int, _admin: AdminUser, db: DbSession) -> ApiResponse[EmptyData]:
    """Delete a user and its login sessions (admin only)."""
    user = _get_user_or_404(db, user_id)
    accounts.delete_user(db, user)
    return ApiResponse(message="User deleted successfully", data=EmptyData())
