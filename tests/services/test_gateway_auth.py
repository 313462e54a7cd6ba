from __future__ import annotations

import pytest

from examprep.core.errors import ErrorKind
from examprep.services.gateway_auth import (
    AdminRequiredError,
    CallerIdentityError,
    GatewayGuard,
    GatewayRejectedError,
    parse_caller_identity,
    parse_networks,
    require_admin,
)

GUARD = GatewayGuard.from_config(token="secret", allowlist="127.0.0.1,10.0.0.0/8", trusted_proxies="172.16.0.1")


def test_parse_networks_accepts_addresses_and_cidr_and_skips_garbage() -> None:
    networks = parse_networks(" 127.0.0.1 , 10.0.0.0/8,not-an-ip,,::1")
    assert [str(network) for network in networks] == ["127.0.0.1/32", "10.0.0.0/8", "::1/128"]


def test_check_accepts_allowed_ip_with_token() -> None:
    assert GUARD.check(peer_host="10.12.33.1", headers={"x-internal-token": "secret"}) == "10.12.33.1"


@pytest.mark.parametrize(
    ("peer_host", "headers", "reason"),
    [
        ("192.168.1.5", {"x-internal-token": "secret"}, "ip_not_allowed"),
        (None, {"x-internal-token": "secret"}, "ip_not_allowed"),
        ("127.0.0.1", {}, "missing_token"),
        ("127.0.0.1", {"x-internal-token": "wrong"}, "invalid_token"),
    ],
)
def test_check_rejects_with_reason(peer_host, headers, reason) -> None:
    with pytest.raises(GatewayRejectedError) as exc_info:
        GUARD.check(peer_host=peer_host, headers=headers)

    assert exc_info.value.reason == reason
    assert exc_info.value.kind == ErrorKind.UNAUTHENTICATED
    assert exc_info.value.message == "Not authenticated"


def test_empty_configured_token_rejects_everything() -> None:
    guard = GatewayGuard.from_config(token="", allowlist="127.0.0.1")
    with pytest.raises(GatewayRejectedError):
        guard.check(peer_host="127.0.0.1", headers={"x-internal-token": "anything"})


def test_forwarded_for_is_used_only_behind_trusted_proxy() -> None:
    headers = {"x-forwarded-for": "10.1.1.8, 172.16.0.1"}
    assert GUARD.client_ip(peer_host="172.16.0.1", headers=headers) == "10.1.1.8"
    assert GUARD.client_ip(peer_host="198.51.100.10", headers=headers) == "198.51.100.10"
    assert GUARD.client_ip(peer_host="127.0.0.1", headers={}) == "127.0.0.1"


def test_forwarded_garbage_behind_trusted_proxy_is_not_trusted() -> None:
    with pytest.raises(GatewayRejectedError):
        GUARD.check(peer_host="172.16.0.1", headers={"x-forwarded-for": "garbage", "x-internal-token": "secret"})


def test_parse_caller_identity() -> None:
    identity = parse_caller_identity({"x-user-id": "42", "x-user-role": " admin "})
    assert identity.user_id == 42
    assert identity.is_admin is True
    assert parse_caller_identity({"x-user-id": "7"}).role == "USER"


@pytest.mark.parametrize(
    ("headers", "message"),
    [
        ({}, "Missing caller identity"),
        ({"x-user-id": "abc"}, "Malformed caller identity"),
        ({"x-user-id": "0"}, "Malformed caller identity"),
    ],
)
def test_parse_caller_identity_rejects_bad_headers(headers, message) -> None:
    with pytest.raises(CallerIdentityError) as exc_info:
        parse_caller_identity(headers)
    assert exc_info.value.message == message


def test_require_admin_is_forbidden_for_plain_users() -> None:
    with pytest.raises(AdminRequiredError) as exc_info:
        require_admin(parse_caller_identity({"x-user-id": "7"}))
    assert exc_info.value.kind == ErrorKind.FORBIDDEN
    assert require_admin(parse_caller_identity({"x-user-id": "9", "x-user-role": "ADMIN"})) == 9
