from __future__ import annotations

from types import SimpleNamespace

import pytest

from paddock.api.routes import access

GATEWAY_TOKEN = "gateway-secret"
ADMIN_TOKEN = "admin-secret"


@pytest.fixture
def access_settings(monkeypatch) -> SimpleNamespace:
    settings = SimpleNamespace(
        gateway_token=GATEWAY_TOKEN,
        admin_api_token=ADMIN_TOKEN,
        admin_api_allowlist="127.0.0.1/32",
        admin_api_trusted_proxies="",
    )
    monkeypatch.setattr(access, "get_settings", lambda: settings)
    return settings


@pytest.fixture
def user_headers() -> dict[str, str]:
    return {"X-Gateway-Token": GATEWAY_TOKEN, "X-User-Id": "11"}


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return {"X-Admin-Token": ADMIN_TOKEN}
