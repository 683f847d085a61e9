"""
Exception handlers that render failures in the configured protocol dialect
"""

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..schemas.dns import ResponseStatus, UpdateResult
from .dependencies import authenticate
from .exceptions import AuthenticationException, DynDNSException, PersistenceException
from .logging_config import get_logger, get_security_logger
from .security import security

logger = get_logger(__name__)
security_logger = get_security_logger()


def _responder(request: Request):
    return request.app.state.responder


async def authentication_exception_handler(request: Request, exc: AuthenticationException) -> PlainTextResponse:
    """Missing, wrong or non-Basic credentials"""
    if exc.malformed:
        security_logger.info(f"Rejected non-Basic authorization for {request.method} {request.url.path}")
        return _responder(request).render_bad_request()
    return _responder(request).render_unauthorized()


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> PlainTextResponse:
    """HTTP errors raised by FastAPI itself, e.g. undecodable Basic credentials"""
    if exc.status_code == status.HTTP_401_UNAUTHORIZED:
        security_logger.warning(f"Undecodable credentials for {request.method} {request.url.path}")
        return _responder(request).render_unauthorized()

    if exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
        return await method_not_allowed_handler(request)

    logger.warning(f"HTTP Exception {exc.status_code}: {exc.detail}")
    return PlainTextResponse(str(exc.detail), status_code=exc.status_code, headers=exc.headers)


async def method_not_allowed_handler(request: Request) -> PlainTextResponse:
    """Methods no route accepts: authenticate first, then answer method_forbidden"""
    try:
        credentials = await security(request)
        authenticate(request, credentials, request.app.state.daemon)
    except AuthenticationException as e:
        return await authentication_exception_handler(request, e)
    except StarletteHTTPException:
        return _responder(request).render_unauthorized()
    return _responder(request).render(UpdateResult.rejected(ResponseStatus.METHOD_FORBIDDEN))


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> PlainTextResponse:
    logger.warning(f"Invalid request to {request.url.path}: {exc.errors()}")
    return _responder(request).render_bad_request()


async def persistence_exception_handler(request: Request, exc: PersistenceException) -> PlainTextResponse:
    """The update was not saved; the process keeps serving"""
    logger.error(f"Update not persisted: {exc.message}", extra={
        "details": exc.details,
        "path": request.url.path,
    })
    return _responder(request).render_server_error()


async def dyndns_exception_handler(request: Request, exc: DynDNSException) -> PlainTextResponse:
    logger.error(f"DynDNS Exception: {exc.message}", extra={
        "details": exc.details,
        "suggestions": exc.suggestions,
        "path": request.url.path,
        "method": request.method
    })
    return _responder(request).render_server_error()


async def generic_exception_handler(request: Request, exc: Exception) -> PlainTextResponse:
    logger.error(f"Unexpected error processing {request.method} {request.url.path}: {exc}", exc_info=True)
    return _responder(request).render_server_error()
