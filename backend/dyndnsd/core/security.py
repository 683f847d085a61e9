"""
Security utilities for authentication and client address lookup
"""

from typing import Dict, Optional

from fastapi import Request
from fastapi.security import HTTPBasic

from .config import UserConfig

BASIC_REALM = "DynDNS"

# Missing or non-Basic credentials are reported by the dependency, not by FastAPI
security = HTTPBasic(realm=BASIC_REALM, auto_error=False)


def user_allowed(username: str, password: str, users: Dict[str, UserConfig]) -> bool:
    """Check that the user exists and the stored password matches"""
    user = users.get(username)
    if user is None:
        return False
    # Plain equality, no hashing: passwords are stored in clear in the config file
    return user.password == password


def has_foreign_authorization(request: Request) -> bool:
    """True if an Authorization header is present but does not use the Basic scheme"""
    authorization = request.headers.get("Authorization")
    if not authorization:
        return False
    scheme, _, _ = authorization.partition(" ")
    return scheme.lower() != "basic"


def get_real_ip(request: Request, header: str) -> Optional[str]:
    """Value of the trusted proxy header carrying the client IP, if any"""
    return request.headers.get(header)


def get_peer_address(request: Request) -> Optional[str]:
    """Address of the socket peer"""
    return request.client.host if request.client else None
