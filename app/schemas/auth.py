"""Request/response schemas for auth endpoints."""

from pydantic import BaseModel, Field

from app.schemas.user import UserOut


class LoginCredentials(BaseModel):
    """Credentials for login. Email is matched case-insensitively."""

    email: str = Field(default="", description="Email address")
    password: str = Field(default="", description="Password")


class LoginRequest(BaseModel):
    """Login body: {"auth": {"email": ..., "password": ...}}."""

    auth: LoginCredentials


class RegisterRequest(BaseModel):
    """New account. Field rules are checked server-side and reported per field (422)."""

    name: str | None = Field(default=None, description="Display name (2-50 chars)")
    email: str | None = Field(default=None, description="Unique email address")
    password: str | None = Field(default=None, description="Password (8 chars to 72 bytes)")
    password_confirmation: str | None = Field(default=None, description="Must equal password")


class RefreshRequest(BaseModel):
    refresh_token: str | None = Field(default=None, description="Refresh token from login")


class TokenPair(BaseModel):
    """Access + refresh token returned after login or registration."""

    access_token: str = Field(..., description="JWT access token (15 min)")
    refresh_token: str = Field(..., description="JWT refresh token (7 days)")
    token_type: str = Field(default="Bearer", description="Token type")
    expires_in: int = Field(..., description="Access token lifetime in seconds")


class AccessToken(BaseModel):
    """New access token minted from a refresh token."""

    access_token: str
    token_type: str = "Bearer"
    expires_in: int


class AuthData(BaseModel):
    user: UserOut
    tokens: TokenPair
