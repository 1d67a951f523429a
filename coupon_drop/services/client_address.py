from __future__ import annotations

import ipaddress
from functools import lru_cache

from fastapi import Request

IPV6_LOOPBACK = ipaddress.IPv6Address("::1")
IPV4_LOOPBACK = "127.0.0.1"


def canonicalize_ip(value: str | None) -> str | None:
    """Return one canonical string per client address, or None if unparsable.

    IPv6 zone IDs are dropped, IPv4-mapped IPv6 addresses collapse to their IPv4
    form and ``::1`` collapses to ``127.0.0.1`` so a dual-stack listener cannot
    split one client across two cooldown keys.
    """
    if value is None:
        return None
    candidate = value.strip()
    if not candidate:
        return None
    try:
        parsed = ipaddress.ip_address(candidate)
    except ValueError:
        return None

    if isinstance(parsed, ipaddress.IPv6Address):
        if parsed.scope_id is not None:
            parsed = ipaddress.IPv6Address(str(parsed).split("%", 1)[0])
        if parsed.ipv4_mapped is not None:
            return str(parsed.ipv4_mapped)
        if parsed == IPV6_LOOPBACK:
            return IPV4_LOOPBACK
    return str(parsed)


@lru_cache(maxsize=32)
def _parse_allowlist(
    allowlist: str,
) -> tuple[ipaddress.IPv4Network | ipaddress.IPv6Network, ...]:
    networks: list[ipaddress.IPv4Network | ipaddress.IPv6Network] = []
    for raw_entry in allowlist.split(","):
        entry = raw_entry.strip()
        if not entry:
            continue

        try:
            if "/" in entry:
                networks.append(ipaddress.ip_network(entry, strict=False))
            else:
                host = ipaddress.ip_address(entry)
                suffix = 32 if host.version == 4 else 128
                networks.append(ipaddress.ip_network(f"{entry}/{suffix}", strict=False))
        except ValueError:
            continue

    return tuple(networks)


def is_client_ip_allowed(*, client_ip: str | None, allowlist: str) -> bool:
    if client_ip is None:
        return False

    try:
        parsed_ip = ipaddress.ip_address(client_ip)
    except ValueError:
        return False

    networks = _parse_allowlist(allowlist)
    if not networks:
        return False

    # Canonical addresses lose their IPv6 spelling, so match both forms.
    candidates = [parsed_ip]
    if parsed_ip == ipaddress.IPv4Address(IPV4_LOOPBACK):
        candidates.append(IPV6_LOOPBACK)
    return any(candidate in network for candidate in candidates for network in networks)


def _is_trusted_proxy(*, proxy_ip: str | None, trusted_proxies: str) -> bool:
    return is_client_ip_allowed(client_ip=proxy_ip, allowlist=trusted_proxies)


def extract_client_ip(
    request: Request,
    *,
    trusted_proxies: str = "",
) -> str | None:
    client_host = canonicalize_ip(request.client.host if request.client is not None else None)
    if not _is_trusted_proxy(proxy_ip=client_host, trusted_proxies=trusted_proxies):
        return client_host

    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return canonicalize_ip(forwarded_for.split(",", maxsplit=1)[0])

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return canonicalize_ip(real_ip)

    return client_host
