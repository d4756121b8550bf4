"""Request authentication and caller identity.

- ``verify_api_key`` gates the ``/v1`` routes behind a static list of API keys
  (``APP_API_KEYS``), the way the grading frontend talks to this service.
- ``get_user_id`` resolves who the caller is for per-user rate limiting: the
  user id forwarded by the frontend in ``X-User-ID``, or the client address
  when no user is known.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import Header, Request

from gradekit.core.config import AppSettings, settings
from gradekit.core.errors import AuthenticationAppError
from gradekit.core.lifespan import get_settings
from gradekit.core.logging import hash_identifier

logger = logging.getLogger(__name__)


def parse_api_keys(keys_string: str | None) -> set[str]:
    """Parse comma-separated API keys into a set.

    Examples:
        >>> parse_api_keys("key1, key2 , key3 ") == {"key1", "key2", "key3"}
        True
        >>> parse_api_keys(None)
        set()
    """
    if not keys_string:
        return set()

    return {key.strip() for key in keys_string.split(",") if key.strip()}


def validate_api_key(provided_key: str | None, app_settings: AppSettings | None = None) -> None:
    """Check ``provided_key`` against the configured keys.

    Args:
        provided_key: Value of the X-API-Key header, if any.
        app_settings: Source of the keys; defaults to ``settings.app``.

    Raises:
        AuthenticationAppError: If the key is missing or unknown, or if
            authentication is required but no keys are configured.
    """
    cfg = app_settings or settings.app
    if not cfg.api_key_required:
        return

    valid_keys = parse_api_keys(cfg.api_keys)
    if not valid_keys:
        logger.error(
            "auth.failed",
            extra={"reason": "api_keys_not_configured"},
        )
        raise AuthenticationAppError(
            code="api_keys_not_configured",
            message="API key authentication is enabled but no valid keys are configured",
            details={"hint": "Set APP_API_KEYS or disable auth with APP_API_KEY_REQUIRED=false"},
        )

    if not provided_key:
        logger.warning("auth.failed", extra={"reason": "missing_api_key"})
        raise AuthenticationAppError(
            code="missing_api_key",
            message="Missing API key. Provide X-API-Key header.",
        )

    if provided_key not in valid_keys:
        logger.warning(
            "auth.failed",
            extra={
                "reason": "invalid_api_key",
                "api_key_hash": hash_identifier(provided_key),
            },
        )
        raise AuthenticationAppError(
            code="invalid_api_key",
            message="Invalid or missing API key",
        )


async def verify_api_key(
    request: Request,
    x_api_key: Annotated[str | None, Header(alias="X-API-Key")] = None,
) -> None:
    """FastAPI dependency enforcing API key authentication.

    Usage:
        @router.post("/protected", dependencies=[Depends(verify_api_key)])
        async def protected_endpoint(): ...

    Raises:
        AuthenticationAppError: Rendered as HTTP 403 by the global handlers.
    """
    app_settings = get_settings(request).app
    if not app_settings.api_key_required:
        logger.debug("auth.skipped", extra={"reason": "auth_required_false"})
        return

    validate_api_key(x_api_key, app_settings)
    logger.debug("auth.success", extra={"api_key_hash": hash_identifier(x_api_key or "")})


async def get_user_id(request: Request) -> str:
    """Resolve the caller identity used in rate limit keys.

    Returns:
        ``"user:<id>"`` from the configured user id header, otherwise
        ``"ip:<client host>"``.
    """
    user_id = (request.headers.get(get_settings(request).app.user_id_header) or "").strip()
    if user_id:
        return f"user:{user_id}"

    client_host = request.client.host if request.client else "unknown"
    return f"ip:{client_host}"
