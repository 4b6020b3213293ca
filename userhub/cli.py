"""
userhub - Command Line Interface

Usage:
    userhub serve --port 3000 --log-format json
    userhub init-db --database-url postgresql://user:pass@db/userhub

Options left unset fall back to environment variables / .env
(see userhub.config.Settings).
"""

import os

import click
import uvicorn

from userhub.auth.database import get_engine, init_db
from userhub.config import get_settings
from userhub.logging_config import configure_logging, get_logger


log = get_logger(__name__)


@click.group()
def main():
    """User accounting and authentication service."""


@main.command()
@click.option("--host", default=None, help="Bind address (HOST).")
@click.option("--port", type=int, default=None, help="Listen port (PORT).")
@click.option("--log-level", default=None, help="Log level (LOG_LEVEL).")
@click.option(
    "--log-format",
    type=click.Choice(["console", "json"]),
    default=None,
    help="Log format (LOG_FORMAT).",
)
@click.option("--reload", is_flag=True, help="Reload on code changes (development).")
def serve(host, port, log_level, log_format, reload):
    """Run the HTTP server."""
    overrides = {
        "HOST": host,
        "PORT": port,
        "LOG_LEVEL": log_level,
        "LOG_FORMAT": log_format,
    }
    # The app factory reads settings from the environment
    for name, value in overrides.items():
        if value is not None:
            os.environ[name] = str(value)
    get_settings.cache_clear()
    settings = get_settings()

    uvicorn.run(
        "userhub.app:create_app",
        factory=True,
        host=settings.HOST,
        port=settings.PORT,
        reload=reload,
        log_config=None,
        timeout_graceful_shutdown=settings.SHUTDOWN_TIMEOUT_SECONDS,
    )


@main.command("init-db")
@click.option("--database-url", default=None, help="Database URL (DATABASE_URL).")
def init_db_command(database_url):
    """Create database tables."""
    settings = get_settings()
    configure_logging(settings.LOG_FORMAT, settings.LOG_LEVEL)

    url = database_url or settings.DATABASE_URL
    engine = get_engine(url)
    try:
        init_db(engine)
    finally:
        engine.dispose()

    log.info("database_initialized", dialect=engine.dialect.name)
    click.echo("Database initialized.")


if __name__ == "__main__":
    main()
