"""
chirp.api.errors — Uniform error envelopes
============================================

Every failure leaves the API as ``{"success": false, "message": ...}`` or,
for field validation, ``{"success": false, "errors": [{field, message}]}``.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from chirp.services.errors import ChirpError, ValidationFailed

logger = logging.getLogger(__name__)


def _field_name(loc: tuple | list) -> str:
    # ("body", "email") → "email"; ("query", "page") → "page"
    parts = [str(p) for p in loc if p not in ("body", "query", "path", "header", "form")]
    return ".".join(parts) or "request"


async def _chirp_error(request: Request, exc: ChirpError) -> JSONResponse:
    if isinstance(exc, ValidationFailed):
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "errors": exc.to_errors()},
        )
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": exc.message},
    )


async def _request_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = [
        {"field": _field_name(err.get("loc", ())), "message": err.get("msg", "Invalid value")}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"success": False, "errors": errors},
    )


async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def _unhandled_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"success": False, "message": "Something went wrong"},
    )


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ChirpError, _chirp_error)
    app.add_exception_handler(RequestValidationError, _request_validation_error)
    app.add_exception_handler(StarletteHTTPException, _http_error)
    app.add_exception_handler(Exception, _unhandled_error)
