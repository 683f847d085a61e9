"""
DynDNSd - DynDNS update protocol server
Keeps a BIND zone in sync with the addresses reported by dynamic clients
"""

import argparse
import grp
import logging
import os
import pwd
import sys
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from . import __version__
from .api.routes import create_api_router
from .core.config import CONFIG_ENV_VAR, Settings, get_settings, load_settings
from .core.context import AppContext
from .core.error_setup import setup_error_handlers
from .core.exceptions import ConfigurationException, DynDNSException
from .core.logging_config import setup_logging
from .core.metrics import TextfileReporter
from .services.bind_service import create_propagator
from .services.daemon import Daemon
from .services.database_service import SQLDatabase, open_database
from .services.responders import create_responder

logger = logging.getLogger("dyndnsd")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    reporter: Optional[TextfileReporter] = app.state.metrics_reporter
    if reporter is not None:
        reporter.start()

    logger.info("DynDNS server started successfully")

    yield

    logger.info("Shutting down DynDNS server...")
    if reporter is not None:
        reporter.stop()
        try:
            reporter.write()
        except OSError as e:
            logger.error(f"Failed to write final metrics: {e}")
    db = app.state.daemon.db
    if isinstance(db, SQLDatabase):
        db.close()
    logger.info("DynDNS server stopped")


def create_app(settings: Optional[Settings] = None, context: Optional[AppContext] = None) -> FastAPI:
    """
    Wire database, propagator, daemon and responder into a FastAPI app.

    Loading the database may already commit and propagate: a fresh database
    is initialized with serial 1 and an empty host table.
    """
    settings = settings or get_settings()
    context = context or AppContext()

    db = open_database(settings.DB, context, echo=settings.DATABASE_ECHO)
    updater = create_propagator(settings, context)
    daemon = Daemon(settings.DOMAIN, settings.USERS, db, updater, context)

    app = FastAPI(
        title=settings.APP_NAME,
        description="DynDNS update protocol server with BIND zone propagation",
        version=__version__,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
        openapi_url="/openapi.json" if settings.DEBUG else None,
        lifespan=lifespan
    )

    app.state.settings = settings
    app.state.context = context
    app.state.daemon = daemon
    app.state.responder = create_responder(settings.RESPONDER)
    app.state.metrics_reporter = None
    if settings.METRICS is not None:
        app.state.metrics_reporter = TextfileReporter(
            context.metrics,
            settings.METRICS.file,
            prefix=settings.METRICS.prefix,
            interval=settings.METRICS.interval
        )

    # Setup comprehensive error handling
    setup_error_handlers(app)

    # Rate limiting, attached to each route by the update router
    limiter = Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    app.include_router(create_api_router(settings, limiter))

    return app


def drop_privileges(user: Optional[str], group: Optional[str]) -> None:
    """Switch to the configured group, then the configured user"""
    try:
        if group:
            gid = grp.getgrnam(group).gr_gid
            os.setgid(gid)
            logger.info(f"Dropped group privileges to {group}")
        if user:
            uid = pwd.getpwnam(user).pw_uid
            os.setuid(uid)
            logger.info(f"Dropped user privileges to {user}")
    except KeyError as e:
        raise ConfigurationException(f"Unknown user or group: {e}")
    except PermissionError as e:
        raise ConfigurationException(
            f"Failed to drop privileges: {e}",
            suggestions=["Start dyndnsd as root when user or group is configured"]
        )


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="dyndnsd", description="DynDNS update protocol server")
    parser.add_argument(
        "config_file",
        nargs="?",
        default=os.environ.get(CONFIG_ENV_VAR),
        help=f"YAML configuration file (default: ${CONFIG_ENV_VAR})"
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    args = parser.parse_args(argv)
    if not args.config_file:
        parser.error(f"config_file is required unless {CONFIG_ENV_VAR} is set")
    return args


def main(argv=None) -> int:
    args = parse_args(argv)

    print(f"DynDNSd version {__version__}")
    print(f"Using config file {args.config_file}")

    try:
        settings = load_settings(args.config_file)
    except ConfigurationException as e:
        print(f"Configuration error: {e.message}", file=sys.stderr)
        for error in e.details.get("errors", []):
            print(f"  {error}", file=sys.stderr)
        return 1

    setup_logging(settings)
    logger.info("Starting...")

    try:
        drop_privileges(settings.USER, settings.GROUP)
        app = create_app(settings)
    except DynDNSException as e:
        logger.error(e.message)
        return 1

    uvicorn.run(
        app,
        host=settings.HOST,
        port=settings.PORT,
        log_level="debug" if settings.DEBUG else settings.LOG_LEVEL.lower(),
        access_log=True,
        server_header=False,
        date_header=False
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
