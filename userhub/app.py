"""
userhub - FastAPI Application Entrypoint

This module initializes the FastAPI application with:
- Request context middleware (correlation ids, access log)
- Account lifecycle routes
- Database lifecycle management
- Error handlers mapping domain errors to {"error": ...} bodies

Run with:
    uvicorn --factory userhub.app:create_app
    userhub serve
"""

from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Optional

from fastapi import FastAPI, Request
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from userhub import __version__
from userhub.auth.database import get_engine, get_session_factory, init_db
from userhub.auth.routes import router as users_router
from userhub.auth.service import AccountService
from userhub.auth.store import SQLAccountStore
from userhub.auth.tokens import TokenIssuer
from userhub.config import Settings, get_settings
from userhub.errors import register_error_handlers
from userhub.gateway.middleware import RequestContextMiddleware
from userhub.logging_config import configure_logging, get_logger
from userhub.mail import create_mailer


log = get_logger(__name__)


def build_account_service(settings: Settings, session_factory) -> AccountService:
    """Wire the account service from settings and a database session factory."""
    token_issuer = TokenIssuer(
        issuer=settings.JWT_ISSUER,
        secret=settings.JWT_SECRET,
        access_token_ttl=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
        refresh_token_ttl=timedelta(hours=settings.REFRESH_TOKEN_EXPIRE_HOURS),
        algorithm=settings.JWT_ALGORITHM,
    )
    return AccountService(
        repository=SQLAccountStore(session_factory),
        token_issuer=token_issuer,
        mailer=create_mailer(settings),
        external_url=settings.EXTERNAL_URL,
        frontend_password_reset_path=settings.FRONTEND_PASSWORD_RESET_PATH,
    )


def create_app(
    settings: Optional[Settings] = None,
    account_service: Optional[AccountService] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Configuration; loaded from the environment when omitted
        account_service: Pre-built service (tests); when omitted the lifespan
            creates the engine, token issuer and mailer from settings
    """
    settings = settings or get_settings()
    configure_logging(settings.LOG_FORMAT, settings.LOG_LEVEL)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Application lifespan manager.

        Startup:
            - Create the pooled engine and tables
            - Build the token issuer (fails fast without JWT_SECRET)
        Shutdown:
            - Dispose the engine's connection pool
        """
        if account_service is not None:
            app.state.account_service = account_service
            yield
            return

        engine = get_engine(settings.DATABASE_URL, echo=settings.DATABASE_ECHO)
        try:
            init_db(engine)
            app.state.db_engine = engine
            app.state.account_service = build_account_service(
                settings, get_session_factory(engine)
            )
            log.info("startup", version=__version__, port=settings.PORT)
            yield
        finally:
            log.info("shutdown")
            engine.dispose()

    app = FastAPI(
        title="userhub",
        description="REST API providing user accounting and authentication",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.db_engine = None

    app.add_middleware(RequestContextMiddleware)
    register_error_handlers(app)
    app.include_router(users_router)

    @app.get("/health")
    def health_check(request: Request):
        """Liveness check with a database round trip when an engine is configured."""
        engine = request.app.state.db_engine
        database = None
        if engine is not None:
            try:
                with engine.connect() as conn:
                    conn.execute(text("SELECT 1"))
                database = True
            except SQLAlchemyError:
                log.warning("health_database_unreachable")
                database = False

        return {"status": "ok", "version": __version__, "database": database}

    return app
