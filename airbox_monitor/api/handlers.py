from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..core.errors import InvalidArgument

logger = logging.getLogger(__name__)


def _describe(err: dict) -> str:
    ctx = err.get("ctx") or {}
    if "error" in ctx:
        return str(ctx["error"])
    loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body") or "body"
    return f"{loc}: {err.get('msg', 'invalid value')}"


async def invalid_argument_handler(request: Request, exc: InvalidArgument) -> JSONResponse:
    content: dict = {"error": exc.message}
    if exc.details:
        content["details"] = exc.details
    logger.info("Rejected %s %s: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=400, content=content)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = [_describe(err) for err in exc.errors()]
    logger.info("Rejected %s %s: %s", request.method, request.url.path, details)
    return JSONResponse(status_code=400, content={"error": "Invalid payload", "details": details})


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(InvalidArgument, invalid_argument_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
