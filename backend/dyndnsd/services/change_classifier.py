"""
Classify and apply per-hostname binding changes
"""

from typing import Dict, List

from ..schemas.dns import ChangeOutcome

HostTable = Dict[str, List[str]]


def changed(hostname: str, myips: List[str], hosts: HostTable) -> bool:
    """True if binding hostname to myips would alter the table"""
    # myips order is always deterministic
    return (hostname not in hosts or hosts[hostname] != myips) and len(myips) > 0


def classify_change(hostname: str, myips: List[str], hosts: HostTable) -> ChangeOutcome:
    """Apply one hostname's requested binding to hosts in place"""
    if not myips and hostname in hosts:
        del hosts[hostname]
        return ChangeOutcome.GOOD
    if changed(hostname, myips, hosts):
        hosts[hostname] = list(myips)
        return ChangeOutcome.GOOD
    return ChangeOutcome.NOCHG


def process_changes(hostnames: List[str], myips: List[str], hosts: HostTable) -> List[ChangeOutcome]:
    """
    Classify every hostname in request order.

    Each classification mutates hosts before the next one runs, so a
    hostname repeated in the same request sees the effect of its first
    occurrence.
    """
    return [classify_change(hostname, myips, hosts) for hostname in hostnames]
