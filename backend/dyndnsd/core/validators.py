"""
Validation of hostnames and IP address literals
"""

import ipaddress
import re

# A single label directly below the managed domain, including the separating dot
HOSTNAME_LABEL_PATTERN = re.compile(r"^[a-zA-Z0-9_-]+\.$")


def hostname_valid(hostname: str, domain: str) -> bool:
    """Check that hostname is exactly one label below domain"""
    if len(hostname) < len(domain) + 2:
        return False
    if not hostname.endswith(domain):
        return False
    name = hostname[:-len(domain)]
    return HOSTNAME_LABEL_PATTERN.fullmatch(name) is not None


def ip_literal_valid(text: str) -> bool:
    """Check that text is an IPv4 or IPv6 address literal without a zone index"""
    try:
        ip = ipaddress.ip_address(text)
    except ValueError:
        return False
    return getattr(ip, "scope_id", None) is None


def ipv4_literal_valid(text: str) -> bool:
    try:
        ipaddress.IPv4Address(text)
        return True
    except ValueError:
        return False


def ipv6_literal_valid(text: str) -> bool:
    try:
        ip = ipaddress.IPv6Address(text)
    except ValueError:
        return False
    # Scoped addresses (fe80::1%eth0) cannot appear in a zone file
    return ip.scope_id is None
