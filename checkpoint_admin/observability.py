from __future__ import annotations

import logging
import time

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.types import ASGIApp
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import get_settings


LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def configure_logging() -> None:
    settings = get_settings()
    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    logging.basicConfig(level=level, format=LOG_FORMAT)


class RequestTimingLoggingMiddleware(BaseHTTPMiddleware):
    """Measures request processing time and logs one line per request.

    Adds an 'X-Process-Time-Ms' header on responses.
    """

    def __init__(self, app: ASGIApp) -> None:
        super().__init__(app)
        self.logger = logging.getLogger("request")

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint):
        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = int((time.perf_counter() - start) * 1000)
        response.headers["X-Process-Time-Ms"] = str(duration_ms)

        client_ip = request.client.host if request.client else "?"
        self.logger.info(
            "method=%s path=%s status=%s duration_ms=%s ip=%s",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            client_ip,
        )
        return response


def _validation_message(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {err.get('msg', '')}" if loc else str(err.get("msg", "")))
    return "; ".join(parts) or "Invalid request"


def add_exception_handlers(app: FastAPI) -> None:
    """Render failures as ``{"error": true, ...}``; forbidden responses also carry ``authorized: false``."""

    # Starlette's class also covers routing 404/405 and FastAPI's subclass
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        payload = {
            "error": True,
            "status": exc.status_code,
            "message": exc.detail if isinstance(exc.detail, str) else "",
            "path": request.url.path,
        }
        if exc.status_code == 403:
            payload["authorized"] = False
        return JSONResponse(status_code=exc.status_code, content=payload, headers=getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        payload = {
            "error": True,
            "status": 422,
            "message": _validation_message(exc),
            "path": request.url.path,
        }
        return JSONResponse(status_code=422, content=payload)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logging.getLogger("error").exception("Unhandled exception: %s", exc)
        payload = {
            "error": True,
            "status": 500,
            "message": "Internal server error",
            "path": request.url.path,
        }
        return JSONResponse(status_code=500, content=payload)
