"""
Netblock parsing and membership checks.
"""
import ipaddress
from typing import Iterable, Optional, Union

from endpoint_firewall.core.errors import InvalidNetworkPrefixError

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]
IPNetwork = Union[ipaddress.IPv4Network, ipaddress.IPv6Network]


def parse_network(raw: str) -> IPNetwork:
    """
    Parse a CIDR string into a network.

    The prefix length is mandatory: "10.0.0.1" is rejected, "10.0.0.1/8" is accepted
    and yields 10.0.0.0/8 (host bits are masked off).

    Raises:
        InvalidNetworkPrefixError: If the string is not valid CIDR notation
    """
    if not isinstance(raw, str):
        raise InvalidNetworkPrefixError(repr(raw), "network must be a string")
    if "/" not in raw:
        raise InvalidNetworkPrefixError(raw, "missing prefix length")
    # ip_network also takes netmask/hostmask forms; CIDR only has a decimal length
    prefix_len = raw.split("/", 1)[1]
    if not (prefix_len.isascii() and prefix_len.isdigit()):
        raise InvalidNetworkPrefixError(raw, "prefix length must be a decimal number")
    try:
        return ipaddress.ip_network(raw, strict=False)
    except ValueError as e:
        raise InvalidNetworkPrefixError(raw, str(e)) from e


def parse_source_address(raw: Optional[str]) -> Optional[IPAddress]:
    """
    Parse a peer address into an IP address, or None if it can't be read.

    Accepts a bare IPv4/IPv6 address, "host:port", "[v6]:port" and zone-scoped
    IPv6. IPv4-mapped IPv6 addresses are returned as IPv4.
    """
    if not raw:
        return None
    host = raw.strip()
    if host.startswith("["):
        end = host.find("]")
        if end == -1:
            return None
        host = host[1:end]
    elif host.count(":") == 1:
        host = host.rsplit(":", 1)[0]

    try:
        addr = ipaddress.ip_address(host)
    except ValueError:
        return None

    if isinstance(addr, ipaddress.IPv6Address) and addr.ipv4_mapped is not None:
        return addr.ipv4_mapped
    return addr


def ip_is_trusted(trusted: Iterable[IPNetwork], src: Optional[IPAddress]) -> bool:
    """Check whether an IP address is part of a list of trusted netblocks."""
    if src is None:
        return False
    for netblock in trusted:
        # A v4 address is never inside a v6 netblock and vice versa
        if src in netblock:
            return True
    return False
