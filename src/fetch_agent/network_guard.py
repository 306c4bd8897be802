"""Classification of outbound destinations as private/reserved or public.

Only literal IPv4 addresses (in any of the encodings ``inet_aton`` accepts) are
checked against the reserved table. DNS names are not resolved here; see
:func:`resolve_and_check` for the opt-in resolving variant.
"""

from __future__ import annotations

import asyncio
import ipaddress
import logging
import re
import socket

logger = logging.getLogger(__name__)

PRIVATE_HOSTNAMES = frozenset({"localhost", "broadcasthost"})

PRIVATE_IP_RANGES = (
    "0.0.0.0/8",
    "10.0.0.0/8",
    "100.64.0.0/10",
    "127.0.0.0/8",
    "169.254.0.0/16",
    "172.16.0.0/12",
    "192.0.0.0/24",
    "192.0.0.0/29",
    "192.0.0.8/32",
    "192.0.0.9/32",
    "192.0.0.10/32",
    "192.0.0.170/32",
    "192.0.0.171/32",
    "192.0.2.0/24",
    "192.31.196.0/24",
    "192.52.193.0/24",
    "192.88.99.0/24",
    "192.168.0.0/16",
    "192.175.48.0/24",
    "198.18.0.0/15",
    "198.51.100.0/24",
    "203.0.113.0/24",
    "224.0.0.0/4",
    "240.0.0.0/4",
    "255.255.255.255/32",
)

_NETWORKS = tuple(ipaddress.IPv4Network(cidr) for cidr in PRIVATE_IP_RANGES)

_IPV4_PART = re.compile(r"0[xX][0-9a-fA-F]*|0[0-7]*|[1-9][0-9]*")


def _parse_ipv4_part(part: str) -> int | None:
    # Unsigned decimal, octal (leading 0) or hex (0x) only; no signs, spaces or underscores.
    if not _IPV4_PART.fullmatch(part):
        return None
    if part[:2].lower() == "0x":
        return int(part[2:], 16) if len(part) > 2 else 0
    if len(part) > 1 and part[0] == "0":
        return int(part[1:], 8)
    return int(part)


def parse_ipv4(host: str) -> ipaddress.IPv4Address | None:
    """Parse an IPv4 literal in dotted, shorthand, hex, octal or integer form.

    Returns ``None`` when ``host`` is not an IPv4 literal.
    """
    parts = host.split(".")
    if not 1 <= len(parts) <= 4:
        return None
    values = [_parse_ipv4_part(part) for part in parts]
    if any(value is None for value in values):
        return None

    # The last part fills the remaining low-order bytes (a.b.c.d, a.b.cd, a.bcd, abcd).
    *head, tail = values
    if any(value > 0xFF for value in head):
        return None
    if tail >= 1 << (8 * (4 - len(head))):
        return None
    number = tail
    for index, value in enumerate(head):
        number |= value << (8 * (3 - index))
    return ipaddress.IPv4Address(number)


def _normalize_host(host: str) -> str:
    host = host.strip().lower()
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    return host.rstrip(".")


def _as_ipv4(host: str) -> ipaddress.IPv4Address | None:
    address = parse_ipv4(host)
    if address is not None:
        return address
    if ":" in host:
        try:
            v6 = ipaddress.IPv6Address(host)
        except ValueError:
            return None
        return v6.ipv4_mapped
    return None


def is_private_ipv4(address: ipaddress.IPv4Address) -> bool:
    return any(address in network for network in _NETWORKS)


def is_private_destination(host: str) -> bool:
    """Return True when ``host`` names a private or reserved destination."""
    normalized = _normalize_host(host)
    if normalized in PRIVATE_HOSTNAMES:
        return True
    address = _as_ipv4(normalized)
    if address is None:
        return False
    return is_private_ipv4(address)


async def _resolve(host: str) -> list[str]:
    loop = asyncio.get_running_loop()
    infos = await loop.getaddrinfo(host, None, type=socket.SOCK_STREAM)
    return [sockaddr[0] for _, _, _, _, sockaddr in infos]


async def resolve_and_check(host: str) -> bool:
    """Like :func:`is_private_destination`, but also resolves DNS names.

    A name counts as private if any address it resolves to is private. Names
    that fail to resolve are reported as public; the request itself will then
    fail to connect.
    """
    if is_private_destination(host):
        return True
    normalized = _normalize_host(host)
    if _as_ipv4(normalized) is not None:
        return False

    try:
        addresses = await _resolve(normalized)
    except socket.gaierror:
        logger.warning("DNS lookup failed for %s", normalized)
        return False

    for address in addresses:
        if is_private_destination(address):
            logger.warning("Host %s resolves to private address %s", normalized, address)
            return True
    return False


__all__ = [
    "PRIVATE_HOSTNAMES",
    "PRIVATE_IP_RANGES",
    "is_private_destination",
    "is_private_ipv4",
    "parse_ipv4",
    "resolve_and_check",
]
