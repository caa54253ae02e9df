"""Error → response mapping, registered once on the app.

Learn: Handlers raise, this module answers. Every error body has the
same shape, {"error": "<message>"}:

- AuthError          → 403 "permission denied" (reason only logged)
- NotFoundError      → 404
- ConflictError      → 400 with its message ("email already registered")
- StoreError         → 400 "storage error" (cause only logged)
- other TasklistError→ 400 with its message
- malformed body     → 400 with the first validation message
- unmatched method   → 405 "method not allowed"
- unmatched path     → 404 "not found"
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from tasklist.errors import AuthError, ConflictError, StoreError, TasklistError

logger = structlog.get_logger()

_HTTP_MESSAGES = {
    404: "not found",
    405: "method not allowed",
}


def error_response(status_code: int, message: str, headers=None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message}, headers=headers)


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "invalid request"
    first = errors[0]
    if first.get("type") == "json_invalid":
        return "malformed JSON body"
    loc = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    return f"{loc}: {first['msg']}" if loc else first["msg"]


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(AuthError)
    async def handle_auth_error(request: Request, exc: AuthError):
        logger.info(
            "auth.denied",
            reason=exc.reason,
            method=request.method,
            path=request.url.path,
        )
        return error_response(exc.status_code, "permission denied")

    @app.exception_handler(ConflictError)
    async def handle_conflict(request: Request, exc: ConflictError):
        return error_response(exc.status_code, exc.message)

    @app.exception_handler(StoreError)
    async def handle_store_error(request: Request, exc: StoreError):
        logger.error("store.failed", path=request.url.path, error=exc.message)
        return error_response(exc.status_code, "storage error")

    @app.exception_handler(TasklistError)
    async def handle_app_error(request: Request, exc: TasklistError):
        return error_response(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        return error_response(400, _validation_message(exc))

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException):
        message = _HTTP_MESSAGES.get(exc.status_code, str(exc.detail))
        return error_response(
            exc.status_code, message, headers=getattr(exc, "headers", None)
        )
