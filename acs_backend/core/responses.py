"""
Uniform response envelope.

Every endpoint answers HTTP 200 with ``{code, success, message, data}``;
the outcome is carried by ``code`` and ``success`` inside the body, which
is what the controller's web UI expects. Empty ``message`` and ``data``
are omitted.
"""

from __future__ import annotations

from typing import Any

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def envelope(data: Any = None, *, code: int = 200, success: bool = True, message: str | None = None) -> dict:
    body: dict[str, Any] = {"code": code, "success": success}
    if message:
        body["message"] = message
    if data is not None:
        body["data"] = data
    return body


def error_response(code: int, message: str, *, data: Any = None, headers: dict | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=200,
        content=jsonable_encoder(envelope(data, code=code, success=False, message=message)),
        headers=headers,
    )
