"""
Error taxonomy and shared error-handling helpers.

Services raise the `AppError` subclasses below. They are translated into
the response envelope in exactly one place (the exception handlers
registered by `main.create_app`), so no service needs to know about
HTTP.
"""

from __future__ import annotations

import enum
import logging
import secrets


def _format_extra(extra: dict | None) -> str:
    if not extra:
        return ""
    parts: list[str] = []
    for key, value in extra.items():
        if value is None:
            continue
        parts.append(f"{key}={value}")
    return f" {' '.join(parts)}" if parts else ""


def log_exception(logger: logging.Logger, msg: str, *, extra: dict | None = None, exc: Exception | None = None) -> None:
    """
    Log an exception with context. Uses logger.exception for stack traces.
    """
    suffix = _format_extra(extra)
    if exc is not None:
        logger.error(f"{msg}{suffix}: {exc}", exc_info=exc)
        return
    logger.exception(f"{msg}{suffix}")


_CORRELATION_ALPHABET = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz-"


def correlation_id(length: int = 8) -> str:
    """Random string attached to unexpected failures for support lookups."""
    return "".join(secrets.choice(_CORRELATION_ALPHABET) for _ in range(length))


class AppError(Exception):
    code: int = 500
    default_message: str = "internal error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AppError):
    code = 400
    default_message = "invalid request"


class NotFound(AppError):
    code = 404
    default_message = "not found"


class AuthReason(str, enum.Enum):
    MISSING = "missing"
    MALFORMED = "malformed"
    EXPIRED_OR_SUPERSEDED = "expired_or_superseded"
    USER_NOT_FOUND = "user_not_found"


class AuthError(AppError):
    code = 401
    default_message = "Unauthorized"

    def __init__(self, reason: AuthReason, detail: str | None = None) -> None:
        self.reason = reason
        self.detail = detail
        super().__init__(self.default_message)


class InvalidCredentials(AppError):
    # Same reply for unknown user and wrong password.
    code = 404
    default_message = "invalid username or password"


class PermissionDenied(AppError):
    code = 403
    default_message = "Permission denied"


class DeviceUnreachable(AppError):
    code = 503
    default_message = "device backend unreachable"


class DeviceProtocolError(AppError):
    code = 502
    default_message = "device backend returned an invalid reply"


class Internal(AppError):
    code = 500
    default_message = "internal error"
