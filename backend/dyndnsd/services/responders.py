"""
Rendering of commit engine results for the two protocol dialects
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Tuple

from fastapi import status
from fastapi.responses import PlainTextResponse

from ..core.security import BASIC_REALM
from ..schemas.dns import ChangeOutcome, ResponseStatus, UpdateResult

RESPONSE_HEADER = "X-DynDNS-Response"


class Responder(ABC):
    """Turns an UpdateResult or a transport failure into an HTTP response"""

    # status tag -> (http status, body)
    rejections: Dict[ResponseStatus, Tuple[int, str]] = {}
    bad_request_body = "Bad Request"
    unauthorized_body = "Unauthorized"
    server_error_body = "Internal Server Error"

    @abstractmethod
    def success_body(self, changes: List[ChangeOutcome], myips: List[str]) -> str:
        """Body for a successful update"""

    def render(self, result: UpdateResult) -> PlainTextResponse:
        headers = {RESPONSE_HEADER: result.status.value}
        if result.status == ResponseStatus.SUCCESS:
            return PlainTextResponse(
                self.success_body(result.changes, result.myips),
                status_code=status.HTTP_200_OK,
                headers=headers
            )
        status_code, body = self.rejections[result.status]
        return PlainTextResponse(body, status_code=status_code, headers=headers)

    def render_bad_request(self) -> PlainTextResponse:
        return PlainTextResponse(self.bad_request_body, status_code=status.HTTP_400_BAD_REQUEST)

    def render_unauthorized(self) -> PlainTextResponse:
        return PlainTextResponse(
            self.unauthorized_body,
            status_code=status.HTTP_401_UNAUTHORIZED,
            headers={"WWW-Authenticate": f'Basic realm="{BASIC_REALM}"'}
        )

    def render_server_error(self) -> PlainTextResponse:
        return PlainTextResponse(self.server_error_body, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)


class DynDNSStyleResponder(Responder):
    """Classic line-oriented DynDNS return codes"""

    rejections = {
        ResponseStatus.METHOD_FORBIDDEN: (405, "badrequest"),
        ResponseStatus.NOT_FOUND: (404, "badrequest"),
        ResponseStatus.HOSTNAME_MISSING: (422, "notfqdn"),
        ResponseStatus.HOSTNAME_MALFORMED: (422, "notfqdn"),
        ResponseStatus.HOST_FORBIDDEN: (403, "nohost"),
    }
    unauthorized_body = "badauth"
    server_error_body = "911"

    def success_body(self, changes: List[ChangeOutcome], myips: List[str]) -> str:
        addresses = " ".join(myips)
        return "\n".join(f"{change.value} {addresses}" for change in changes)


class RestStyleResponder(Responder):
    """Human readable replies for REST-style clients"""

    rejections = {
        ResponseStatus.METHOD_FORBIDDEN: (405, "Forbidden HTTP Method"),
        ResponseStatus.NOT_FOUND: (404, "Not Found"),
        ResponseStatus.HOSTNAME_MISSING: (422, "Hostname missing"),
        ResponseStatus.HOSTNAME_MALFORMED: (422, "Hostname malformed"),
        ResponseStatus.HOST_FORBIDDEN: (403, "Forbidden Host"),
    }

    def success_body(self, changes: List[ChangeOutcome], myips: List[str]) -> str:
        addresses = " ".join(myips)
        lines = []
        for change in changes:
            if change == ChangeOutcome.GOOD:
                lines.append(f"Changed to {addresses}")
            else:
                lines.append(f"No change needed for {addresses}")
        return "\n".join(lines)


def create_responder(name: str) -> Responder:
    """Responder for the configured dialect"""
    if name == "RestStyle":
        return RestStyleResponder()
    return DynDNSStyleResponder()
