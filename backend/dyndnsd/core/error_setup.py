"""
Setup error handling for the FastAPI application
"""

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .exceptions import AuthenticationException, DynDNSException, PersistenceException
from .error_handlers import (
    authentication_exception_handler,
    dyndns_exception_handler,
    generic_exception_handler,
    http_exception_handler,
    persistence_exception_handler,
    validation_exception_handler
)


def setup_error_handlers(app: FastAPI) -> None:
    """
    Setup all error handlers for the FastAPI application

    Handlers look up app.state.responder, which must be set before the
    first request is served.

    Args:
        app: FastAPI application instance
    """

    # Credentials
    app.add_exception_handler(AuthenticationException, authentication_exception_handler)

    # Save failures, other server errors
    app.add_exception_handler(PersistenceException, persistence_exception_handler)
    app.add_exception_handler(DynDNSException, dyndns_exception_handler)

    # FastAPI errors
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    # Generic exception handler (catch-all)
    app.add_exception_handler(Exception, generic_exception_handler)
