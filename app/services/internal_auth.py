from __future__ import annotations

import ipaddress
import secrets
from dataclasses import dataclass
from functools import lru_cache
from typing import Any

import structlog
from fastapi import HTTPException, Request

logger = structlog.get_logger(__name__)

INTERNAL_TOKEN_HEADER = "X-Internal-Token"
FORWARDED_FOR_HEADER = "X-Forwarded-For"

IPNetwork = ipaddress.IPv4Network | ipaddress.IPv6Network


def _parse_ip(value: str | None) -> str | None:
    try:
        return str(ipaddress.ip_address((value or "").strip()))
    except ValueError:
        return None


def _parse_network(entry: str) -> IPNetwork | None:
    try:
        # A bare address becomes a single-host network.
        return ipaddress.ip_network(entry, strict=False)
    except ValueError:
        return None


@lru_cache(maxsize=32)
def parse_networks(entries_csv: str) -> tuple[IPNetwork, ...]:
    """Comma separated IPs or CIDRs; unparseable entries are skipped."""
    entries = (raw.strip() for raw in entries_csv.split(","))
    networks = (_parse_network(entry) for entry in entries if entry)
    return tuple(network for network in networks if network is not None)


def _in_networks(ip: str | None, networks: tuple[IPNetwork, ...]) -> bool:
    if ip is None or not networks:
        return False
    parsed = ipaddress.ip_address(ip)
    return any(parsed in network for network in networks)


def is_valid_internal_token(*, expected_token: str, received_token: str | None) -> bool:
    if not expected_token or not received_token:
        return False
    return secrets.compare_digest(expected_token, received_token)


@dataclass(frozen=True, slots=True)
class InternalAccessPolicy:
    token: str
    allowed: tuple[IPNetwork, ...]
    trusted_proxies: tuple[IPNetwork, ...] = ()

    @classmethod
    def from_settings(cls, settings: Any) -> InternalAccessPolicy:
        return cls(
            token=settings.internal_api_token,
            allowed=parse_networks(settings.internal_api_allowlist),
            trusted_proxies=parse_networks(getattr(settings, "internal_api_trusted_proxies", "")),
        )

    def client_ip(self, request: Request) -> str | None:
        peer = _parse_ip(request.client.host if request.client is not None else None)
        forwarded_for = request.headers.get(FORWARDED_FOR_HEADER)
        if forwarded_for and _in_networks(peer, self.trusted_proxies):
            # Left-most hop is the original caller.
            return _parse_ip(forwarded_for.split(",", maxsplit=1)[0])
        return peer

    def denial_reason(self, request: Request) -> str | None:
        if not _in_networks(self.client_ip(request), self.allowed):
            return "ip_not_allowed"
        if not is_valid_internal_token(
            expected_token=self.token,
            received_token=request.headers.get(INTERNAL_TOKEN_HEADER),
        ):
            return "invalid_token"
        return None


def assert_internal_access(request: Request, *, settings: Any, scope: str) -> None:
    """Rejects callers outside the allowlist or without the shared internal token."""
    policy = InternalAccessPolicy.from_settings(settings)
    reason = policy.denial_reason(request)
    if reason is None:
        return

    logger.warning(
        "internal_api_auth_failed",
        scope=scope,
        reason=reason,
        client_ip=policy.client_ip(request),
    )
    raise HTTPException(status_code=403, detail={"code": "E_FORBIDDEN"})
