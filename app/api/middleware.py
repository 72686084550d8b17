"""Request-layer middleware: per-IP throttling in front of the API routes."""

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from app.api.deps import RATE_LIMIT_MESSAGE, client_ip
from app.core.errors import error_response
from app.services.rate_limit import RateLimitPolicy


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Reject API requests over the per-IP limits with a 429 envelope.

    - All paths under /api/ share the api/ip window
    - Paths under <api prefix>/auth/ also count against the stricter auth/ip window
    - Localhost is never throttled
    """

    def __init__(self, app: ASGIApp, policy: RateLimitPolicy, api_prefix: str = "/api/v1") -> None:
        super().__init__(app)
        self.policy = policy
        self.auth_prefix = f"{api_prefix.rstrip('/')}/auth/"

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path.startswith("/api/"):
            exceeded = self.policy.check_ip(
                client_ip(request), is_auth_path=path.startswith(self.auth_prefix)
            )
            if exceeded is not None:
                return error_response(429, RATE_LIMIT_MESSAGE, headers=exceeded.headers())
        return await call_next(request)
