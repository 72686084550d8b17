"""Request/response schemas for user records."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from app.models import User


class UserOut(BaseModel):
    """Public view of a user (no password hash). role is the role name or null."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    role: str | None
    verified: bool
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_model(cls, user: User) -> "UserOut":
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            role=user.role_label,
            verified=user.verified,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class UserData(BaseModel):
    user: UserOut


class PageMeta(BaseModel):
    page: int
    per_page: int
    total: int
    total_pages: int


class UsersPage(BaseModel):
    users: list[UserOut]
    meta: PageMeta


class UserUpdate(BaseModel):
    """Fields that may be changed; omitted fields are left as they are."""

    name: str | None = None
    email: str | None = None
    password: str | None = Field(default=None, description="New password (8 chars to 72 bytes)")
    password_confirmation: str | None = None
    verified: bool | None = Field(default=None, description="Admin only")
    role_id: int | None = Field(default=None, description="Admin only; null removes the role")


class UserUpdateRequest(BaseModel):
    user: UserUpdate
