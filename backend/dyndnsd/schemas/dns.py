"""
DynDNS update request and result schemas
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

OFFLINE_SENTINEL = "YES"


class ChangeOutcome(str, Enum):
    """Per-hostname result of an update"""
    GOOD = "good"
    NOCHG = "nochg"


class ResponseStatus(str, Enum):
    """Status tag handed to the responder"""
    METHOD_FORBIDDEN = "method_forbidden"
    NOT_FOUND = "not_found"
    HOSTNAME_MISSING = "hostname_missing"
    HOSTNAME_MALFORMED = "hostname_malformed"
    HOST_FORBIDDEN = "host_forbidden"
    SUCCESS = "success"


class UpdateRequest(BaseModel):
    """Query parameters and request metadata of one update call"""
    username: str = Field(..., description="Already authenticated user")
    hostname: Optional[str] = Field(None, description="Comma-separated list of FQDNs")
    myip: Optional[str] = None
    myip6: Optional[str] = None
    offline: Optional[str] = None
    real_ip: Optional[str] = Field(None, description="Trusted proxy header value")
    peer_address: Optional[str] = Field(None, description="Socket peer address")

    @property
    def is_offline(self) -> bool:
        return self.offline == OFFLINE_SENTINEL


class UpdateResult(BaseModel):
    """Outcome of the commit engine, rendered by a responder"""
    status_code: int
    status: ResponseStatus
    changes: List[ChangeOutcome] = Field(default_factory=list)
    myips: List[str] = Field(default_factory=list)

    @classmethod
    def rejected(cls, status: ResponseStatus) -> "UpdateResult":
        return cls(status_code=422, status=status)
