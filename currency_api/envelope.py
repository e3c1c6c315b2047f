"""Uniform ``{status, message, data}`` response envelope."""

from __future__ import annotations

from http import HTTPStatus
from typing import Any, Dict, Optional

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

STATUS_LABELS: Dict[int, str] = {
    200: "success",
    400: "bad request",
    401: "unauthorized",
    402: "payment required",
    404: "not found",
    409: "conflicting",
    422: "unprocessable",
    500: "server error",
}


def status_label(status_code: int) -> str:
    label = STATUS_LABELS.get(status_code)
    if label is not None:
        return label
    try:
        return HTTPStatus(status_code).phrase.lower()
    except ValueError:
        return "error"


def envelope(status_code: int, message: Optional[str], data: Any = None) -> Dict[str, Any]:
    return {
        "status": status_label(status_code),
        "message": message,
        "data": jsonable_encoder(data),
    }


def envelope_response(
    status_code: int,
    message: Optional[str],
    data: Any = None,
    *,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    """Return a :class:`JSONResponse` carrying the envelope for ``status_code``."""

    return JSONResponse(
        status_code=status_code,
        content=envelope(status_code, message, data),
        headers=headers,
    )


def success(message: str, data: Any = None) -> JSONResponse:
    return envelope_response(200, message, data)


__all__ = ["STATUS_LABELS", "envelope", "envelope_response", "status_label", "success"]
