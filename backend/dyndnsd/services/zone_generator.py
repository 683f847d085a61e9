"""
BIND zone file generation for the dynamic hosts
"""

import ipaddress
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List

from jinja2 import Environment, FileSystemLoader, select_autoescape

from ..core.config import UpdaterParams
from ..core.context import AppContext

TEMPLATE_DIR = Path(__file__).parent.parent / "templates"
ZONE_TEMPLATE = "zones/dyndns.j2"


@dataclass
class ZoneRecord:
    """An A or AAAA record relative to the zone origin"""
    name: str
    rtype: str
    address: str


def native_address(address: str) -> ipaddress.IPv4Address | ipaddress.IPv6Address:
    """
    Parse address, unwrapping IPv4-mapped IPv6 addresses to IPv4.

    Raises ValueError for scoped IPv6 addresses, which have no zone file form.
    """
    ip = ipaddress.ip_address(address)
    if isinstance(ip, ipaddress.IPv6Address):
        if ip.scope_id is not None:
            raise ValueError(f"{address!r} is a scoped address")
        if ip.ipv4_mapped is not None:
            return ip.ipv4_mapped
    return ip


class BindZoneGenerator:
    """Renders the managed domain as a BIND master zone"""

    def __init__(self, domain: str, params: UpdaterParams, context: AppContext):
        self.domain = domain
        self.ttl = params.ttl
        self.dns = params.dns
        self.email_addr = params.email_addr
        self.additional_zone_content = params.additional_zone_content
        self.log = context.get_logger("propagation")

        self.jinja_env = Environment(
            loader=FileSystemLoader(str(TEMPLATE_DIR)),
            autoescape=select_autoescape(['html', 'xml']),
            trim_blocks=True,
            lstrip_blocks=True
        )
        self.jinja_env.filters['ensure_trailing_dot'] = self._ensure_trailing_dot_filter

    @staticmethod
    def _ensure_trailing_dot_filter(name: str) -> str:
        return name if name.endswith('.') else f"{name}."

    def relative_name(self, hostname: str) -> str:
        suffix = f".{self.domain}"
        if hostname.endswith(suffix):
            return hostname[:-len(suffix)]
        return hostname

    def records(self, hosts: Dict[str, List[str]]) -> List[ZoneRecord]:
        """One record per address, in host table order"""
        records = []
        for hostname, addresses in hosts.items():
            name = self.relative_name(hostname)
            for address in addresses:
                try:
                    ip = native_address(address)
                except ValueError:
                    self.log.warning(f"Skipping invalid address {address!r} of {hostname}")
                    continue
                rtype = "AAAA" if ip.version == 6 else "A"
                records.append(ZoneRecord(name=name, rtype=rtype, address=str(ip)))
        return records

    def generate(self, serial: int, hosts: Dict[str, List[str]]) -> str:
        """Zone file text for the given serial and host table"""
        template = self.jinja_env.get_template(ZONE_TEMPLATE)
        content = template.render(
            ttl=self.ttl,
            domain=self.domain,
            dns=self.dns,
            email_addr=self.email_addr,
            serial=serial,
            records=self.records(hosts),
            additional_zone_content=self.additional_zone_content,
        )
        if not content.endswith("\n"):
            content += "\n"
        return content
