"""Exception → JSON response mapping.

Every error body has the shape ``{"error": str, "status": int, "details"?: ...}``.
"""

from __future__ import annotations

import logging
import sqlite3

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from artifactor.db.repository import NotFoundError
from artifactor.rag.orchestrator import OrchestratorError

logger = logging.getLogger(__name__)


def error_response(status: int, error: str, details: object = None, **extra: object) -> JSONResponse:
    body: dict = {"error": error, "status": status}
    if details is not None:
        body["details"] = details
    body.update(extra)
    return JSONResponse(status_code=status, content=body)


async def _not_found(request: Request, exc: NotFoundError) -> JSONResponse:
    return error_response(404, str(exc))


async def _integrity(request: Request, exc: sqlite3.IntegrityError) -> JSONResponse:
    text = str(exc)
    if "UNIQUE" in text:
        return error_response(409, "Resource already exists", text)
    if "FOREIGN KEY" in text:
        return error_response(400, "Referenced resource does not exist", text)
    return error_response(400, "Constraint violation", text)


async def _operational(request: Request, exc: sqlite3.OperationalError) -> JSONResponse:
    logger.error("Database error on %s %s: %s", request.method, request.url.path, exc)
    return error_response(503, "Service unavailable - database connection failed")


async def _orchestrator(request: Request, exc: OrchestratorError) -> JSONResponse:
    logger.error("Upstream failure on %s %s: %s", request.method, request.url.path, exc.message)
    error = (
        "Failed to process chat message"
        if request.url.path.startswith("/api/chat")
        else "Orchestrator request failed"
    )
    return error_response(500, error, exc.message, upstream_status=exc.status)


async def _value_error(request: Request, exc: ValueError) -> JSONResponse:
    return error_response(400, str(exc))


async def _validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = [
        {"loc": list(e.get("loc", ())), "msg": e.get("msg", ""), "type": e.get("type", "")}
        for e in exc.errors()
    ]
    return error_response(400, "Validation error", details)


async def _http(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 404 and exc.detail == "Not Found":
        logger.warning("404 - Route not found: %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=404,
            content={
                "error": "Not found",
                "message": f"Route {request.method} {request.url.path} does not exist",
                "status": 404,
            },
        )
    return error_response(exc.status_code, str(exc.detail))


async def _unhandled(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return error_response(500, "Internal server error")


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(NotFoundError, _not_found)
    app.add_exception_handler(sqlite3.IntegrityError, _integrity)
    app.add_exception_handler(sqlite3.OperationalError, _operational)
    app.add_exception_handler(OrchestratorError, _orchestrator)
    app.add_exception_handler(ValueError, _value_error)
    app.add_exception_handler(RequestValidationError, _validation)
    app.add_exception_handler(StarletteHTTPException, _http)
    app.add_exception_handler(Exception, _unhandled)
