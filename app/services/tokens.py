"""Issue and verify signed, time-limited JWTs (access and refresh).

Tokens are never stored server-side: validity is purely a function of the
signature and the ``exp`` claim at verification time. The ``token_type`` claim
separates the two kinds so a refresh token can never authenticate a request
and an access token can never mint a new access token.
"""

import logging
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any

import jwt
from sqlalchemy.orm import Session

from app.models import User

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"
BEARER = "Bearer"

INVALID_TOKEN_MESSAGE = "Invalid or expired token"
INVALID_TOKEN_TYPE_MESSAGE = "Invalid token type"
USER_NOT_FOUND_MESSAGE = "User not found"


class TokenError(Exception):
    """Token failed to decode, is expired, has the wrong type, or names a missing user."""

    def __init__(self, message: str = INVALID_TOKEN_MESSAGE) -> None:
        super().__init__(message)
        self.message = message


class TokenService:
    """Signs and verifies tokens with an explicitly supplied secret and TTLs."""

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        access_ttl: timedelta = timedelta(minutes=15),
        refresh_ttl: timedelta = timedelta(days=7),
    ) -> None:
        if not secret:
            raise ValueError("Token secret must be non-empty")
        self._secret = secret
        self.algorithm = algorithm
        self.access_ttl = access_ttl
        self.refresh_ttl = refresh_ttl

    @classmethod
    def from_settings(cls, settings: "Settings") -> "TokenService":
        return cls(
            secret=settings.JWT_SECRET.get_secret_value(),
            algorithm=settings.JWT_ALGORITHM,
            access_ttl=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
            refresh_ttl=timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
        )

    @property
    def access_expires_in(self) -> int:
        """Access token lifetime in seconds, as reported to clients."""
        return int(self.access_ttl.total_seconds())

    def issue(self, claims: dict[str, Any], ttl: timedelta) -> str:
        """Return a signed token carrying `claims` plus exp = now + ttl."""
        payload = dict(claims)
        payload["exp"] = int((datetime.now(UTC) + ttl).timestamp())
        return jwt.encode(payload, self._secret, algorithm=self.algorithm)

    def verify(self, token: str) -> dict[str, Any]:
        """
        Decode and validate signature and expiry; return the claims (including exp).
        Raises TokenError on any failure.
        """
        try:
            return jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                options={"require": ["exp"]},
            )
        except jwt.PyJWTError as e:
            logger.debug("Token verification failed: %s", e)
            raise TokenError(INVALID_TOKEN_MESSAGE) from e

    def _access_claims(self, user: User) -> dict[str, Any]:
        return {
            "user_id": user.id,
            "email": user.email,
            "role": user.role_label,
            "token_type": ACCESS_TOKEN_TYPE,
        }

    def issue_access_token(self, user: User) -> str:
        return self.issue(self._access_claims(user), self.access_ttl)

    def issue_token_pair(self, user: User) -> dict[str, Any]:
        """Access token (email and role in claims) plus a refresh token with minimal claims."""
        refresh_claims = {"user_id": user.id, "token_type": REFRESH_TOKEN_TYPE}
        return {
            "access_token": self.issue_access_token(user),
            "refresh_token": self.issue(refresh_claims, self.refresh_ttl),
            "token_type": BEARER,
            "expires_in": self.access_expires_in,
        }

    def _load_user(self, claims: dict[str, Any], db: Session) -> User:
        user_id = claims.get("user_id")
        if not isinstance(user_id, int) or isinstance(user_id, bool):
            raise TokenError(INVALID_TOKEN_MESSAGE)
        user = db.get(User, user_id)
        if user is None:
            raise TokenError(USER_NOT_FOUND_MESSAGE)
        return user

    def refresh_access_token(self, refresh_token: str, db: Session) -> dict[str, Any]:
        """Mint a new access token from a refresh token, using the user's current data."""
        claims = self.verify(refresh_token)
        if claims.get("token_type") != REFRESH_TOKEN_TYPE:
            raise TokenError(INVALID_TOKEN_TYPE_MESSAGE)
        user = self._load_user(claims, db)
        return {
            "access_token": self.issue_access_token(user),
            "token_type": BEARER,
            "expires_in": self.access_expires_in,
        }

    def resolve_user_from_access_token(self, access_token: str, db: Session) -> User:
        """Return the user an access token was issued to. Refresh tokens are rejected."""
        claims = self.verify(access_token)
        if claims.get("token_type") != ACCESS_TOKEN_TYPE:
            raise TokenError(INVALID_TOKEN_TYPE_MESSAGE)
        return self._load_user(claims, db)
