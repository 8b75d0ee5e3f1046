"""Best-effort client address resolution from proxy headers.

The result is audit data. Every header consulted here can be forged by the client,
so nothing downstream may use it to grant access.
"""

import ipaddress
import re
from collections.abc import Mapping

from keygate.core.modules.origin.models import IpVariants

UNKNOWN_IP = "unknown"

FORWARDED_FOR_RE = re.compile(r"for=([^;]+)", re.IGNORECASE)

# Single-value headers set by CDNs and load balancers, highest priority first
DIRECT_HEADERS = (
    "cf-connecting-ip",
    "true-client-ip",
    "x-real-ip",
    "x-client-ip",
    "fastly-client-ip",
    "x-cluster-client-ip",
    "fly-client-ip",
)

PRIVATE_NETWORKS = tuple(
    ipaddress.ip_network(net)
    for net in (
        "127.0.0.0/8",
        "10.0.0.0/8",
        "172.16.0.0/12",
        "192.168.0.0/16",
        "169.254.0.0/16",
        "::1/128",
        "fc00::/7",
        "fe80::/10",
    )
)

MAPPED_PREFIX = "::ffff:"


def normalize_ip(raw: str) -> str:
    """Strip whitespace, brackets, ports and the IPv4-mapped prefix."""
    ip = raw.strip()
    if ip.startswith("["):
        end = ip.find("]")
        if end != -1:
            ip = ip[1:end]
    elif ip.count(":") == 1:
        # IPv4 with port; IPv6 literals always carry more than one colon
        ip = ip.split(":", 1)[0]
    if ip.lower().startswith(MAPPED_PREFIX):
        ip = ip[len(MAPPED_PREFIX) :]
    return ip


def is_valid_ip(value: str) -> bool:
    try:
        ipaddress.ip_address(value)
    except ValueError:
        return False
    return True


def is_private_ip(value: str) -> bool:
    """Loopback, RFC 1918, link-local and IPv6 unique-local addresses. Unparseable counts as private."""
    try:
        address = ipaddress.ip_address(value)
    except ValueError:
        return True
    return any(address.version == net.version and address in net for net in PRIVATE_NETWORKS)


def fold_headers(headers: Mapping[str, str]) -> dict[str, str]:
    """Lowercase header names. Repeated headers are joined with ", " in arrival order."""
    folded: dict[str, str] = {}
    for name, value in headers.items():
        key = name.lower()
        folded[key] = f"{folded[key]}, {value}" if key in folded else value
    return folded


def collect_candidates(headers: Mapping[str, str], peer: str | None) -> list[str]:
    """Raw candidate addresses in priority order, transport peer last."""
    lowered = fold_headers(headers)
    candidates: list[str] = []

    forwarded = lowered.get("forwarded")
    if forwarded:
        for part in forwarded.split(","):
            match = FORWARDED_FOR_RE.search(part)
            if match:
                candidates.append(match.group(1).replace('"', ""))

    for name in DIRECT_HEADERS:
        value = lowered.get(name)
        if value:
            candidates.append(value)

    x_forwarded_for = lowered.get("x-forwarded-for")
    if x_forwarded_for:
        candidates.extend(entry.strip() for entry in x_forwarded_for.split(",") if entry.strip())

    if peer:
        candidates.append(peer)
    return candidates


def _valid_addresses(candidates: list[str]) -> list[str]:
    return [ip for ip in (normalize_ip(raw) for raw in candidates) if is_valid_ip(ip)]


def _first_public(addresses: list[str]) -> str | None:
    return next((ip for ip in addresses if not is_private_ip(ip)), None)


def resolve_ip_variants(headers: Mapping[str, str], peer: str | None) -> IpVariants:
    """Return the public-preferred address and the first valid address."""
    addresses = _valid_addresses(collect_candidates(headers, peer))
    first_valid = addresses[0] if addresses else None
    return IpVariants(public_ip=_first_public(addresses) or first_valid, private_ip=first_valid)


def resolve_client_ip(headers: Mapping[str, str], peer: str | None, prefer_private: bool = False) -> str:
    """Pick the client address.

    By default the first public address wins. With prefer_private the first valid
    address of any class wins. Either way the first valid address is the fallback,
    and "unknown" is returned when no candidate parses.
    """
    addresses = _valid_addresses(collect_candidates(headers, peer))
    if not addresses:
        return UNKNOWN_IP
    if prefer_private:
        return addresses[0]
    return _first_public(addresses) or addresses[0]
