from __future__ import annotations

import ipaddress
import secrets
from collections.abc import Mapping
from dataclasses import dataclass

from examprep.core.errors import ForbiddenError, UnauthenticatedError

GATEWAY_TOKEN_HEADER = "x-internal-token"
FORWARDED_FOR_HEADER = "x-forwarded-for"
USER_ID_HEADER = "x-user-id"
USER_ROLE_HEADER = "x-user-role"
ADMIN_ROLE = "ADMIN"

Network = ipaddress.IPv4Network | ipaddress.IPv6Network


class GatewayRejectedError(UnauthenticatedError):
    """The request did not come through the trusted gateway.

    ``reason`` is for logs only; the response body stays generic.
    """

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__()


class CallerIdentityError(UnauthenticatedError):
    pass


class AdminRequiredError(ForbiddenError):
    message = "Admin access required"


@dataclass(frozen=True, slots=True)
class CallerIdentity:
    user_id: int
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE


def parse_networks(raw: str) -> tuple[Network, ...]:
    """Parses a comma separated list of addresses and CIDR blocks; bad entries are skipped."""
    networks: list[Network] = []
    for entry in (part.strip() for part in raw.split(",")):
        if not entry:
            continue
        try:
            # a bare address becomes a /32 or /128 network
            networks.append(ipaddress.ip_network(entry, strict=False))
        except ValueError:
            continue
    return tuple(networks)


def _as_ip(value: str | None) -> ipaddress.IPv4Address | ipaddress.IPv6Address | None:
    if not value:
        return None
    try:
        return ipaddress.ip_address(value.strip())
    except ValueError:
        return None


def _within(address: ipaddress.IPv4Address | ipaddress.IPv6Address | None, networks: tuple[Network, ...]) -> bool:
    return address is not None and any(address in network for network in networks)


@dataclass(frozen=True, slots=True)
class GatewayGuard:
    token: str
    allowed: tuple[Network, ...]
    trusted_proxies: tuple[Network, ...] = ()

    @classmethod
    def from_config(cls, *, token: str, allowlist: str, trusted_proxies: str = "") -> GatewayGuard:
        return cls(token=token, allowed=parse_networks(allowlist), trusted_proxies=parse_networks(trusted_proxies))

    def client_ip(self, *, peer_host: str | None, headers: Mapping[str, str]) -> str | None:
        """The caller address: the first ``X-Forwarded-For`` hop, but only when the peer is a trusted proxy."""
        peer = _as_ip(peer_host)
        forwarded_for = headers.get(FORWARDED_FOR_HEADER)
        if forwarded_for and _within(peer, self.trusted_proxies):
            forwarded = _as_ip(forwarded_for.split(",", maxsplit=1)[0])
            return str(forwarded) if forwarded is not None else None
        return str(peer) if peer is not None else None

    def check(self, *, peer_host: str | None, headers: Mapping[str, str]) -> str:
        """Returns the caller address or raises ``GatewayRejectedError``."""
        client_ip = self.client_ip(peer_host=peer_host, headers=headers)
        if not _within(_as_ip(client_ip), self.allowed):
            raise GatewayRejectedError("ip_not_allowed")

        received = headers.get(GATEWAY_TOKEN_HEADER)
        if not received:
            raise GatewayRejectedError("missing_token")
        if not self.token or not secrets.compare_digest(self.token, received):
            raise GatewayRejectedError("invalid_token")
        return client_ip


def parse_caller_identity(headers: Mapping[str, str]) -> CallerIdentity:
    raw_user_id = headers.get(USER_ID_HEADER)
    if raw_user_id is None:
        raise CallerIdentityError("Missing caller identity")
    try:
        user_id = int(raw_user_id)
    except ValueError as exc:
        raise CallerIdentityError("Malformed caller identity") from exc
    if user_id <= 0:
        raise CallerIdentityError("Malformed caller identity")
    return CallerIdentity(user_id=user_id, role=(headers.get(USER_ROLE_HEADER) or "USER").strip().upper())


def require_admin(identity: CallerIdentity) -> int:
    if not identity.is_admin:
        raise AdminRequiredError
    return identity.user_id
