"""
FastAPI dependencies for authentication and the application collaborators
"""

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPBasicCredentials

from ..services.daemon import Daemon
from ..services.responders import Responder
from .exceptions import AuthenticationException
from .security import has_foreign_authorization, security


def get_daemon(request: Request) -> Daemon:
    return request.app.state.daemon


def get_responder(request: Request) -> Responder:
    return request.app.state.responder


def authenticate(request: Request, credentials: Optional[HTTPBasicCredentials], daemon: Daemon) -> str:
    """Check parsed Basic credentials; raises AuthenticationException"""
    if credentials is None:
        if has_foreign_authorization(request):
            raise AuthenticationException("Authorization scheme is not Basic", malformed=True)
        raise AuthenticationException("Credentials required")

    if not daemon.authorized(credentials.username, credentials.password):
        raise AuthenticationException("Invalid credentials", username=credentials.username)

    return credentials.username


def get_current_user(
    request: Request,
    credentials: Optional[HTTPBasicCredentials] = Depends(security),
    daemon: Daemon = Depends(get_daemon)
) -> str:
    """Authenticate the request with HTTP Basic and return the username"""
    return authenticate(request, credentials, daemon)
