"""FastAPI application entrypoint. No business logic; only wiring and middleware."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from dotenv import load_dotenv

load_dotenv()

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from bizadmin.api.v1 import router as v1_router
from bizadmin.core.config import Settings, get_settings
from bizadmin.core.database import build_engine, build_session_factory
from bizadmin.core.errors import register_exception_handlers
from bizadmin.services.mailer import SmtpMailer

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    yield
    app.state.engine.dispose()
    logger.info("Database engine disposed")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the app with its engine, session factory and mailer resolved once from settings."""
    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%SZ",
    )

    app = FastAPI(
        title="Business Admin Auth API",
        version="0.1.0",
        docs_url="/docs" if settings.APP_ENV == "dev" else None,
        redoc_url="/redoc" if settings.APP_ENV == "dev" else None,
        lifespan=lifespan,
    )

    engine = build_engine(settings)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    app.state.mailer = SmtpMailer(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
    )
    register_exception_handlers(app)
    app.include_router(v1_router, prefix=settings.API_V1_PREFIX)

    @app.get("/")
    def root() -> dict[str, str]:
        """Root route; minimal payload for discovery."""
        return {"message": "Server is running"}

    if settings.REGISTRATION_MODE == "generated" and not app.state.mailer.is_configured:
        logger.warning(
            "REGISTRATION_MODE=generated but SMTP_HOST is not set; new accounts will not receive credentials"
        )
    return app


app = create_app()
