"""API-key dependency for routes that list or remove stored media."""

from __future__ import annotations

import hmac
import logging

from fastapi import Depends, Header, Query, status

from ..api.dependencies import get_app_config
from ..api.errors import http_error
from ..config import AppConfig

logger = logging.getLogger(__name__)


def require_api_key(
    apikey: str | None = Query(None),
    x_api_key: str | None = Header(None),
    config: AppConfig = Depends(get_app_config),
) -> None:
    """Accept the key from ``?apikey=`` or the ``X-API-Key`` header."""
    expected = config.api_key
    if not expected:
        logger.error("auth.api_key_not_configured")
        raise http_error(status.HTTP_500_INTERNAL_SERVER_ERROR, "server_misconfigured")

    provided = apikey or x_api_key
    if provided is None or not hmac.compare_digest(provided.encode(), expected.encode()):
        logger.warning("auth.invalid_api_key", extra={"key_present": provided is not None})
        raise http_error(status.HTTP_403_FORBIDDEN, "invalid_api_key")


__all__ = ["require_api_key"]
