"""Request/response schemas for role records."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class RoleOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str | None
    created_at: datetime
    updated_at: datetime


class RoleData(BaseModel):
    role: RoleOut


class RolesData(BaseModel):
    roles: list[RoleOut]


class RoleCreate(BaseModel):
    """Name 2-50 chars and unique; description up to 500 chars."""

    name: str | None = None
    description: str | None = None


class RoleUpdate(BaseModel):
    name: str | None = None
    description: str | None = None
