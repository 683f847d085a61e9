"""
DynDNS update protocol endpoints
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import PlainTextResponse
from slowapi import Limiter

from ...core.dependencies import get_current_user, get_daemon, get_responder
from ...core.security import get_peer_address, get_real_ip
from ...schemas.dns import ResponseStatus, UpdateRequest, UpdateResult
from ...services.daemon import Daemon
from ...services.responders import Responder

ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def create_router(update_path: str, real_ip_header: str, limiter: Limiter, rate_limit: str) -> APIRouter:
    """
    Router serving update_path plus a catch-all for every other request.

    Both routes share the per-client rate_limit of limiter.
    """
    router = APIRouter()

    # Plain def: runs in the threadpool, the daemon serializes updates itself
    @router.get(update_path, response_class=PlainTextResponse)
    @limiter.limit(rate_limit)
    def update(
        request: Request,
        hostname: Optional[str] = Query(None, description="Comma-separated list of FQDNs"),
        myip: Optional[str] = Query(None, description="IPv4 (or IPv6) address to bind"),
        myip6: Optional[str] = Query(None, description="IPv6 address to bind together with myip"),
        offline: Optional[str] = Query(None, description="YES withdraws all bindings"),
        username: str = Depends(get_current_user),
        daemon: Daemon = Depends(get_daemon),
        responder: Responder = Depends(get_responder)
    ):
        """Bind the requested hostnames to the client's addresses"""
        update_request = UpdateRequest(
            username=username,
            hostname=hostname,
            myip=myip,
            myip6=myip6,
            offline=offline,
            real_ip=get_real_ip(request, real_ip_header),
            peer_address=get_peer_address(request),
        )
        result = daemon.handle_update(update_request)
        return responder.render(result)

    @router.api_route("/{full_path:path}", methods=ALL_METHODS, response_class=PlainTextResponse, include_in_schema=False)
    @limiter.limit(rate_limit)
    def fallback(
        request: Request,
        full_path: str,
        username: str = Depends(get_current_user),
        responder: Responder = Depends(get_responder)
    ):
        """Authenticated requests for anything but GET update_path"""
        if request.method != "GET":
            status = ResponseStatus.METHOD_FORBIDDEN
        else:
            status = ResponseStatus.NOT_FOUND
        return responder.render(UpdateResult.rejected(status))

    return router
