from __future__ import annotations

import ipaddress
import secrets
from functools import lru_cache

from fastapi import Request

GATEWAY_TOKEN_HEADER = "X-Gateway-Token"
USER_ID_HEADER = "X-User-Id"
ADMIN_TOKEN_HEADER = "X-Admin-Token"

IpNetwork = ipaddress.IPv4Network | ipaddress.IPv6Network


def is_valid_token(*, expected_token: str, received_token: str | None) -> bool:
    if not expected_token or not received_token:
        return False
    return secrets.compare_digest(expected_token, received_token)


def is_admin_request_authenticated(request: Request, *, expected_token: str) -> bool:
    return is_valid_token(
        expected_token=expected_token,
        received_token=request.headers.get(ADMIN_TOKEN_HEADER),
    )


def parse_user_id(raw: str | None) -> int | None:
    if raw is None:
        return None
    candidate = raw.strip()
    if not candidate.isdigit():
        return None
    user_id = int(candidate)
    return user_id if user_id > 0 else None


def _allowlist_entry(entry: str) -> IpNetwork:
    if "/" in entry:
        return ipaddress.ip_network(entry, strict=False)
    # A bare address admits exactly that host.
    host = ipaddress.ip_address(entry)
    return ipaddress.ip_network((host, host.max_prefixlen))


@lru_cache(maxsize=32)
def _parse_allowlist(allowlist: str) -> tuple[IpNetwork, ...]:
    networks: list[IpNetwork] = []
    for raw_entry in allowlist.split(","):
        entry = raw_entry.strip()
        if not entry:
            continue
        try:
            networks.append(_allowlist_entry(entry))
        except ValueError:
            continue
    return tuple(networks)


def _parse_ip(value: str | None) -> str | None:
    if value is None or not value.strip():
        return None
    try:
        return str(ipaddress.ip_address(value.strip()))
    except ValueError:
        return None


def extract_client_ip(request: Request, *, trusted_proxies: str = "") -> str | None:
    """Peer address, or the first X-Forwarded-For hop when the peer is a trusted proxy."""
    peer = _parse_ip(request.client.host if request.client is not None else None)
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for and is_client_ip_allowed(client_ip=peer, allowlist=trusted_proxies):
        return _parse_ip(forwarded_for.split(",", maxsplit=1)[0])
    return peer


def is_client_ip_allowed(*, client_ip: str | None, allowlist: str) -> bool:
    if client_ip is None:
        return False
    try:
        address = ipaddress.ip_address(client_ip)
    except ValueError:
        return False
    return any(address in network for network in _parse_allowlist(allowlist))
