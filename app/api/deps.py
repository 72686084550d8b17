"""Request authentication and authorization dependencies shared by the v1 routers."""

import logging
from collections.abc import Callable
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.errors import ApiError
from app.models import RoleName, User
from app.services.rate_limit import RateLimitPolicy
from app.services.tokens import INVALID_TOKEN_MESSAGE, TokenError, TokenService

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)

RATE_LIMIT_MESSAGE = "Rate limit exceeded. Please try again later."
UNKNOWN = "unknown"


def get_token_service(request: Request) -> TokenService:
    """The token service built by create_app from explicit settings."""
    return request.app.state.token_service


def get_rate_limit_policy(request: Request) -> RateLimitPolicy | None:
    return getattr(request.app.state, "rate_limit", None)


def client_ip(request: Request) -> str:
    return request.client.host if request.client else UNKNOWN


def user_agent(request: Request) -> str:
    return request.headers.get("user-agent") or UNKNOWN


def get_current_user(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[Session, Depends(get_db)],
    tokens: Annotated[TokenService, Depends(get_token_service)],
) -> User:
    """
    Dependency: require a valid Bearer access token and return the user it was issued to.
    Raises 401 if missing or invalid; the reason is never disclosed to the client.
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        user = tokens.resolve_user_from_access_token(credentials.credentials, db)
    except TokenError as e:
        logger.debug("Rejected bearer token on %s: %s", request.url.path, e.message)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=INVALID_TOKEN_MESSAGE,
            headers={"WWW-Authenticate": "Bearer"},
        ) from e

    # Exposed for request-layer limiters and access logs.
    request.state.user_id = user.id

    policy = get_rate_limit_policy(request)
    if policy is not None:
        exceeded = policy.check_user(user.id)
        if exceeded is not None:
            raise ApiError(
                RATE_LIMIT_MESSAGE,
                status.HTTP_429_TOO_MANY_REQUESTS,
                headers=exceeded.headers(),
            )
    return user


def require_role(required: RoleName) -> Callable[..., User]:
    """Build a dependency that authenticates and then requires the given role (403 otherwise)."""

    def dependency(current_user: Annotated[User, Depends(get_current_user)]) -> User:
        if current_user.role_name is not required:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"{required.value.capitalize()} access required",
            )
        return current_user

    dependency.__name__ = f"require_{required.value}"
    return dependency


require_admin = require_role(RoleName.ADMIN)

CurrentUser = Annotated[User, Depends(get_current_user)]
AdminUser = Annotated[User, Depends(require_admin)]
DbSession = Annotated[Session, Depends(get_db)]
