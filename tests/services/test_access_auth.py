from __future__ import annotations

from types import SimpleNamespace

import pytest

from paddock.services.access_auth import (
    extract_client_ip,
    is_admin_request_authenticated,
    is_client_ip_allowed,
    is_valid_token,
    parse_user_id,
)


def test_is_valid_token_requires_exact_match() -> None:
    assert is_valid_token(expected_token="secret", received_token="secret") is True
    assert is_valid_token(expected_token="secret", received_token="wrong") is False
    assert is_valid_token(expected_token="secret", received_token=None) is False
    assert is_valid_token(expected_token="", received_token="") is False


def test_admin_request_requires_admin_token_header() -> None:
    request_with_token = SimpleNamespace(headers={"X-Admin-Token": "secret"})
    assert is_admin_request_authenticated(request_with_token, expected_token="secret") is True

    request_with_gateway_token = SimpleNamespace(headers={"X-Gateway-Token": "secret"})
    assert is_admin_request_authenticated(request_with_gateway_token, expected_token="secret") is False

    request_without_credentials = SimpleNamespace(headers={})
    assert is_admin_request_authenticated(request_without_credentials, expected_token="secret") is False


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("42", 42),
        (" 7 ", 7),
        ("0", None),
        ("-3", None),
        ("abc", None),
        ("", None),
        (None, None),
    ],
)
def test_parse_user_id(raw: str | None, expected: int | None) -> None:
    assert parse_user_id(raw) == expected


def test_is_client_ip_allowed_supports_exact_ip_and_cidr() -> None:
    allowlist = "127.0.0.1,10.0.0.0/8, not-a-network"
    assert is_client_ip_allowed(client_ip="127.0.0.1", allowlist=allowlist) is True
    assert is_client_ip_allowed(client_ip="10.12.33.1", allowlist=allowlist) is True
    assert is_client_ip_allowed(client_ip="192.168.1.5", allowlist=allowlist) is False
    assert is_client_ip_allowed(client_ip=None, allowlist=allowlist) is False


def test_bare_address_in_allowlist_admits_only_that_host() -> None:
    allowlist = "192.0.2.10, 2001:db8::7"
    assert is_client_ip_allowed(client_ip="192.0.2.10", allowlist=allowlist) is True
    assert is_client_ip_allowed(client_ip="192.0.2.11", allowlist=allowlist) is False
    assert is_client_ip_allowed(client_ip="2001:db8::7", allowlist=allowlist) is True
    assert is_client_ip_allowed(client_ip="2001:db8::8", allowlist=allowlist) is False


def test_forwarded_header_is_used_only_behind_trusted_proxy() -> None:
    trusted = SimpleNamespace(
        headers={"X-Forwarded-For": "10.1.1.8, 127.0.0.1"},
        client=SimpleNamespace(host="127.0.0.1"),
    )
    untrusted = SimpleNamespace(
        headers={"X-Forwarded-For": "10.1.1.8, 127.0.0.1"},
        client=SimpleNamespace(host="198.51.100.10"),
    )

    assert extract_client_ip(trusted, trusted_proxies="127.0.0.1/32") == "10.1.1.8"
    assert extract_client_ip(untrusted, trusted_proxies="127.0.0.1/32") == "198.51.100.10"


def test_extract_client_ip_rejects_invalid_forwarded_value() -> None:
    request = SimpleNamespace(
        headers={"X-Forwarded-For": "not-an-ip, 127.0.0.1"},
        client=SimpleNamespace(host="127.0.0.1"),
    )
    assert extract_client_ip(request, trusted_proxies="127.0.0.1/32") is None


def test_extract_client_ip_falls_back_to_client_host() -> None:
    request = SimpleNamespace(headers={}, client=SimpleNamespace(host="127.0.0.1"))
    assert extract_client_ip(request) == "127.0.0.1"
