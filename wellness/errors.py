"""
Exception handlers mapping failures to structured JSON error bodies.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from wellness.db import DuplicateEmailError
from wellness.spotify import SpotifyAuthError

logger = logging.getLogger(__name__)


def error_body(message: str, **extra) -> dict:
    return {"error": {"message": message, **extra}}


def _http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


def _validation_exception_handler(request: Request, exc: RequestValidationError):
    details = [
        {
            "loc": [str(part) for part in err.get("loc", ())],
            "msg": err.get("msg", ""),
            "type": err.get("type", ""),
        }
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=400, content=error_body("Invalid request", details=details)
    )


def _duplicate_email_handler(request: Request, exc: DuplicateEmailError):
    return JSONResponse(
        status_code=409, content=error_body("Email is already registered")
    )


def _spotify_error_handler(request: Request, exc: SpotifyAuthError):
    return JSONResponse(
        status_code=400, content=error_body("Spotify token exchange failed")
    )


def _unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content=error_body("Unknown Server error"))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)
    app.add_exception_handler(DuplicateEmailError, _duplicate_email_handler)
    app.add_exception_handler(SpotifyAuthError, _spotify_error_handler)
    app.add_exception_handler(Exception, _unhandled_exception_handler)
