"""
Host Safety Classifier

Decides whether a hostname may be contacted by the fetcher.

Two checks, applied to every hop:
1. Literal name denylist (no DNS): localhost, 0.0.0.0, *.local, *.internal,
   the cloud metadata hostname.
2. Resolved addresses: any private, loopback, link-local or unique-local
   address makes the host unsafe. Names that resolve to nothing are allowed
   through; the request itself will then fail.
"""

import asyncio
import ipaddress
import logging
import socket
from typing import Awaitable, Callable, List, Union

logger = logging.getLogger(__name__)

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]
Resolver = Callable[[str], Awaitable[List[IPAddress]]]

METADATA_HOSTNAME = "metadata.google.internal"

FORBIDDEN_HOSTNAMES = frozenset({"localhost", "0.0.0.0", METADATA_HOSTNAME})
FORBIDDEN_SUFFIXES = (".local", ".internal")

PRIVATE_NETWORKS = tuple(
    ipaddress.ip_network(cidr)
    for cidr in (
        "10.0.0.0/8",
        "172.16.0.0/12",
        "192.168.0.0/16",
        "169.254.0.0/16",
        "127.0.0.0/8",
        "0.0.0.0/8",
        "::1/128",
        "fc00::/7",
        "fe80::/10",
    )
)


def normalize_hostname(hostname: str) -> str:
    """Lowercase, drop IPv6 brackets and a trailing root dot."""
    return hostname.strip().lower().strip("[]").rstrip(".")


def is_host_forbidden(hostname: str) -> bool:
    """True if the name itself is on the denylist."""
    name = normalize_hostname(hostname)
    if not name:
        return True
    if name in FORBIDDEN_HOSTNAMES:
        return True
    return name.endswith(FORBIDDEN_SUFFIXES)


def is_address_private(address: IPAddress) -> bool:
    if isinstance(address, ipaddress.IPv6Address) and address.ipv4_mapped is not None:
        address = address.ipv4_mapped
    return any(address in network for network in PRIVATE_NETWORKS if network.version == address.version)


async def resolve_addresses(hostname: str) -> List[IPAddress]:
    """All IPv4 and IPv6 addresses for hostname; empty if resolution fails."""
    loop = asyncio.get_running_loop()
    try:
        infos = await loop.getaddrinfo(hostname, None, family=socket.AF_UNSPEC, type=socket.SOCK_STREAM)
    except (socket.gaierror, UnicodeError) as e:
        logger.debug(f"Resolution failed for {hostname}: {e}")
        return []

    addresses: List[IPAddress] = []
    for info in infos:
        sockaddr = info[4]
        if not sockaddr:
            continue
        # Scoped IPv6 literals come back as "fe80::1%eth0"
        host = str(sockaddr[0]).split("%", 1)[0]
        try:
            address = ipaddress.ip_address(host)
        except ValueError:
            continue
        if address not in addresses:
            addresses.append(address)
    return addresses


async def resolve_and_check(hostname: str, resolver: Resolver = resolve_addresses) -> bool:
    """
    Resolve hostname and check every address.

    Returns:
        True if safe to contact (including when nothing resolved),
        False if any resolved address is private.
    """
    name = normalize_hostname(hostname)
    try:
        addresses = [ipaddress.ip_address(name)]
    except ValueError:
        addresses = await resolver(name)

    if not addresses:
        return True

    for address in addresses:
        if is_address_private(address):
            logger.warning(f"Host {name} resolves to private address {address}")
            return False
    return True
