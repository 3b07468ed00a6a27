from __future__ import annotations

import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any
from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import JSONResponse, Response

from vanity_overlay.api.routes import OverlayAPIError, router
from vanity_overlay.logging_config import log_request, setup_logging
from vanity_overlay.settings import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()
setup_logging(log_format=settings.log_format, log_level=settings.log_level)

app = FastAPI(title="Vanity Overlay API", version="0.1")


def _request_id(request: Request) -> str:
    request_id = getattr(request.state, "request_id", None)
    if isinstance(request_id, str) and request_id:
        return request_id
    return request.headers.get("x-request-id") or str(uuid4())


@app.middleware("http")
async def add_request_id(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    request_id = request.headers.get("x-request-id") or str(uuid4())
    request.state.request_id = request_id

    started = time.perf_counter()
    response = await call_next(request)
    response.headers.setdefault("X-Request-ID", request_id)
    log_request(
        logger,
        request.method,
        request.url.path,
        response.status_code,
        (time.perf_counter() - started) * 1000.0,
        request_id=request_id,
    )
    return response


def _error_response(
    request: Request, status_code: int, code: str, message: str, **extra: Any
) -> JSONResponse:
    request_id = _request_id(request)
    logger.warning(
        "%s %s failed status=%s code=%s request_id=%s",
        request.method,
        request.url.path,
        status_code,
        code,
        request_id,
    )
    body: dict[str, Any] = {"error": {"code": code, "message": message, "request_id": request_id}}
    body.update(extra)
    return JSONResponse(status_code=status_code, content=body)


@app.exception_handler(OverlayAPIError)
async def handle_overlay_error(request: Request, exc: OverlayAPIError) -> JSONResponse:
    return _error_response(request, exc.status_code, exc.code, exc.message)


@app.exception_handler(StarletteHTTPException)
async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    # Routing failures only: unknown paths and unsupported methods.
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return _error_response(request, exc.status_code, "http_error", message)


@app.exception_handler(RequestValidationError)
async def handle_validation_exception(request: Request, exc: RequestValidationError) -> JSONResponse:
    return _error_response(
        request, 422, "invalid_request", "Request validation failed", detail=exc.errors()
    )


@app.exception_handler(Exception)
async def handle_unexpected_exception(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception %s %s", request.method, request.url.path)
    return _error_response(request, 500, "internal_error", "Internal server error")


@app.get("/healthz")
def healthz() -> dict[str, str]:
    return {"status": "ok"}


app.include_router(router, prefix="/v1")
