from __future__ import annotations

import structlog
from fastapi import HTTPException, Request

from paddock.core.config import get_settings
from paddock.services.access_auth import (
    GATEWAY_TOKEN_HEADER,
    USER_ID_HEADER,
    extract_client_ip,
    is_admin_request_authenticated,
    is_client_ip_allowed,
    is_valid_token,
    parse_user_id,
)

logger = structlog.get_logger(__name__)


def require_user_id(request: Request) -> int:
    settings = get_settings()
    if not is_valid_token(
        expected_token=settings.gateway_token,
        received_token=request.headers.get(GATEWAY_TOKEN_HEADER),
    ):
        logger.warning("user_auth_failed", reason="invalid_gateway_token", path=request.url.path)
        raise HTTPException(status_code=401, detail={"code": "E_UNAUTHORIZED"})

    user_id = parse_user_id(request.headers.get(USER_ID_HEADER))
    if user_id is None:
        logger.warning("user_auth_failed", reason="missing_user_id", path=request.url.path)
        raise HTTPException(status_code=401, detail={"code": "E_UNAUTHORIZED"})
    return user_id


def assert_admin_access(request: Request) -> None:
    settings = get_settings()
    client_ip = extract_client_ip(request, trusted_proxies=settings.admin_api_trusted_proxies)

    if not is_client_ip_allowed(client_ip=client_ip, allowlist=settings.admin_api_allowlist):
        logger.warning("admin_auth_failed", reason="ip_not_allowed", client_ip=client_ip)
        raise HTTPException(status_code=403, detail={"code": "E_FORBIDDEN"})

    if not is_admin_request_authenticated(request, expected_token=settings.admin_api_token):
        logger.warning("admin_auth_failed", reason="invalid_credentials", client_ip=client_ip)
        raise HTTPException(status_code=403, detail={"code": "E_FORBIDDEN"})
