"""Login, registration, token refresh, logout and current-user profile."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, status

from app.api.deps import (
    CurrentUser,
    DbSession,
    client_ip,
    get_token_service,
    user_agent,
)
from app.schemas.auth import (
    AccessToken,
    AuthData,
    LoginRequest,
    RefreshRequest,
    RegisterRequest,
    TokenPair,
)
from app.schemas.common import ApiResponse, EmptyData
from app.schemas.user import UserData, UserOut
from app.services import accounts
from app.services.tokens import TokenError, TokenService

logger = logging.getLogger(__name__)

router = APIRouter()

Tokens = Annotated[TokenService, Depends(get_token_service)]


@router.post("/login", response_model=ApiResponse[AuthData])
def login(
    body: LoginRequest,
    request: Request,
    db: DbSession,
    tokens: Tokens,
) -> ApiResponse[AuthData]:
    """
    Authenticate with email and password; returns the user and a token pair.
    Include the access token in the Authorization header as: Bearer <access_token>
    """
    user = accounts.authenticate(db, body.auth.email, body.auth.password)
    if user is None:
        logger.info("Failed login from ip=%s", client_ip(request))
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )
    if not user.verified:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account not verified",
        )

    pair = tokens.issue_token_pair(user)
    accounts.record_session(db, user, user_agent(request), client_ip(request))
    return ApiResponse(
        message="Login successful",
        data=AuthData(user=UserOut.from_model(user), tokens=TokenPair(**pair)),
    )


@router.post(
    "/register",
    response_model=ApiResponse[AuthData],
    status_code=status.HTTP_201_CREATED,
)
def register(
    body: RegisterRequest,
    request: Request,
    db: DbSession,
    tokens: Tokens,
) -> ApiResponse[AuthData]:
    """Create an unverified account with the default 'user' role and sign it in."""
    user = accounts.register_user(
        db,
        name=body.name,
        email=body.email,
        password=body.password,
        password_confirmation=body.password_confirmation,
    )
    pair = tokens.issue_token_pair(user)
    accounts.record_session(db, user, user_agent(request), client_ip(request))
    return ApiResponse(
        message="Registration successful",
        data=AuthData(user=UserOut.from_model(user), tokens=TokenPair(**pair)),
    )


@router.post("/refresh", response_model=ApiResponse[AccessToken])
def refresh(
    body: RefreshRequest,
    db: DbSession,
    tokens: Tokens,
) -> ApiResponse[AccessToken]:
    """Exchange a refresh token for a new access token."""
    if not body.refresh_token or not body.refresh_token.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Refresh token required",
        )
    try:
        new_token = tokens.refresh_access_token(body.refresh_token.strip(), db)
    except TokenError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=e.message,
            headers={"WWW-Authenticate": "Bearer"},
        ) from e
    return ApiResponse(message="Token refreshed successfully", data=AccessToken(**new_token))


@router.delete("/logout", response_model=ApiResponse[EmptyData])
def logout(
    request: Request,
    current_user: CurrentUser,
    db: DbSession,
) -> ApiResponse[EmptyData]:
    """
    Remove this device's login audit rows. Tokens are stateless and stay valid
    until they expire; the short access token lifetime bounds that window.
    """
    accounts.end_sessions(db, current_user, user_agent(request), client_ip(request))
    return ApiResponse(message="Logout successful", data=EmptyData())


@router.get("/me", response_model=ApiResponse[UserData])
def me(current_user: CurrentUser) -> ApiResponse[UserData]:
    return ApiResponse(
        message="User profile retrieved",
        data=UserData(user=UserOut.from_model(current_user)),
    )
