from __future__ import annotations

from uuid import UUID

import structlog
from fastapi import HTTPException, Request

from settlement.core.config import get_settings
from settlement.economy.errors import (
    ConflictError,
    NotFoundError,
    SettlementError,
    UpstreamError,
    ValidationError,
)
from settlement.services.internal_auth import (
    extract_client_ip,
    is_client_ip_allowed,
    is_internal_request_authenticated,
)

logger = structlog.get_logger(__name__)

USER_ID_HEADER = "X-User-Id"
ERROR_STATUS_CODES: tuple[tuple[type[SettlementError], int], ...] = (
    (ValidationError, 422),
    (NotFoundError, 404),
    (ConflictError, 409),
    (UpstreamError, 502),
)


def require_user_id(request: Request) -> UUID:
    raw_user_id = request.headers.get(USER_ID_HEADER)
    if not raw_user_id:
        raise HTTPException(status_code=401, detail={"code": "E_UNAUTHENTICATED"})
    try:
        return UUID(raw_user_id.strip())
    except ValueError as exc:
        raise HTTPException(status_code=401, detail={"code": "E_UNAUTHENTICATED"}) from exc


def http_error_from(exc: SettlementError) -> HTTPException:
    status_code = next(
        (code for error_type, code in ERROR_STATUS_CODES if isinstance(exc, error_type)),
        500,
    )
    detail: dict[str, str] = {"code": exc.code}
    if exc.reason and status_code != 502:
        detail["reason"] = exc.reason
    return HTTPException(status_code=status_code, detail=detail)


def assert_internal_access(request: Request, *, log_event: str) -> None:
    settings = get_settings()
    client_ip = extract_client_ip(
        request,
        trusted_proxies=settings.internal_api_trusted_proxies,
    )

    if not is_internal_request_authenticated(request, expected_token=settings.internal_api_token):
        logger.warning(log_event, reason="invalid_token", client_ip=client_ip)
        raise HTTPException(status_code=403, detail={"code": "E_FORBIDDEN"})

    if not is_client_ip_allowed(client_ip=client_ip, allowlist=settings.internal_api_allowlist):
        logger.warning(log_event, reason="ip_not_allowed", client_ip=client_ip)
        raise HTTPException(status_code=403, detail={"code": "E_FORBIDDEN"})
