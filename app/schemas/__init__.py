"""Pydantic request/response schemas."""

from app.schemas.auth import (
    AccessToken,
    AuthData,
    LoginCredentials,
    LoginRequest,
    RefreshRequest,
    RegisterRequest,
    TokenPair,
)
from app.schemas.common import ApiResponse, EmptyData, ErrorResponse
from app.schemas.health import HealthResponse
from app.schemas.role import RoleCreate, RoleData, RoleOut, RolesData, RoleUpdate
from app.schemas.user import PageMeta, UserData, UserOut, UsersPage, UserUpdate, UserUpdateRequest

__all__ = [
    "AccessToken",
    "ApiResponse",
    "AuthData",
    "EmptyData",
    "ErrorResponse",
    "HealthResponse",
    "LoginCredentials",
    "LoginRequest",
    "PageMeta",
    "RefreshRequest",
    "RegisterRequest",
    "RoleCreate",
    "RoleData",
    "RoleOut",
    "RoleUpdate",
    "RolesData",
    "TokenPair",
    "UserData",
    "UserOut",
    "UserUpdate",
    "UserUpdateRequest",
    "UsersPage",
]
