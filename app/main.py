"""FastAPI application entrypoint. No business logic; only wiring and middleware."""

from dotenv import load_dotenv

load_dotenv()

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.middleware import RateLimitMiddleware
from app.api.v1 import router as v1_router
from app.core.config import Settings, get_settings
from app.core.errors import setup_exception_handlers
from app.services.rate_limit import RateLimitPolicy
from app.services.tokens import TokenService

RATE_LIMIT_HEADERS = ["X-RateLimit-Limit", "X-RateLimit-Remaining", "X-RateLimit-Reset"]


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%SZ",
    )
    # SQL echo is controlled by DEBUG via the engine, not the root level.
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the app from explicit settings; token service and limiter live on app.state."""
    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(
        title="Gatekeeper API",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.settings = settings
    app.state.token_service = TokenService.from_settings(settings)
    app.state.rate_limit = RateLimitPolicy.from_settings(settings)

    setup_exception_handlers(app)

    if app.state.rate_limit is not None:
        app.add_middleware(
            RateLimitMiddleware,
            policy=app.state.rate_limit,
            api_prefix=settings.API_V1_PREFIX,
        )
    # Added last so it wraps the limiter and 429s still carry CORS headers.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=RATE_LIMIT_HEADERS,
    )

    app.include_router(v1_router, prefix=settings.API_V1_PREFIX)

    @app.get("/")
    def root() -> dict[str, str]:
        """Root route; minimal payload for discovery."""
        return {"message": "Gatekeeper API"}

    return app


app = create_app()
