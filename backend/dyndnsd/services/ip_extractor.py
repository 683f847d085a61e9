"""
Derive the addresses a client wants bound from an update request
"""

from typing import List

from ..core.validators import ip_literal_valid, ipv4_literal_valid, ipv6_literal_valid
from ..schemas.dns import UpdateRequest


def extract_v4_and_v6_address(request: UpdateRequest) -> List[str]:
    """Both myip (IPv4) and myip6 (IPv6) must be valid, otherwise nothing"""
    if ipv4_literal_valid(request.myip) and ipv6_literal_valid(request.myip6):
        return [request.myip, request.myip6]
    return []


def extract_myips(request: UpdateRequest) -> List[str]:
    """
    Ordered list of addresses to bind, by precedence:

    1. myip and myip6 together (fail-closed if either is invalid)
    2. a valid myip
    3. a valid trusted real-IP header
    4. the socket peer address

    An empty list means no address could be determined.
    """
    if request.myip is not None and request.myip6 is not None:
        return extract_v4_and_v6_address(request)

    if request.myip is not None and ip_literal_valid(request.myip):
        return [request.myip]

    if request.real_ip is not None and ip_literal_valid(request.real_ip):
        return [request.real_ip]

    if request.peer_address:
        return [request.peer_address]
    return []
