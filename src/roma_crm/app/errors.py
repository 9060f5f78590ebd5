"""Exception handlers rendering every error as ``{"error": message}``."""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from roma_crm.infra.storage_client import StorageError
from roma_crm.infra.webflow_client import WebflowApiError
from roma_crm.services.publish_orchestrator import PublishError

logger = logging.getLogger(__name__)


def upstream_status(status_code: int | None) -> int:
    """Pass through upstream 4xx/5xx codes, otherwise 500."""
    if status_code and 400 <= status_code < 600:
        return status_code
    return 500


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid value")
    return f"{location}: {message}" if location else message


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"error": _validation_message(exc)})

    @app.exception_handler(WebflowApiError)
    async def webflow_exception_handler(request: Request, exc: WebflowApiError):
        logger.error("Webflow error on %s: %s", request.url.path, exc)
        return JSONResponse(
            status_code=upstream_status(exc.status_code),
            content={"error": str(exc)},
        )

    @app.exception_handler(StorageError)
    async def storage_exception_handler(request: Request, exc: StorageError):
        logger.error("Storage error on %s: %s", request.url.path, exc)
        return JSONResponse(
            status_code=upstream_status(exc.status_code),
            content={"error": str(exc)},
        )

    @app.exception_handler(PublishError)
    async def publish_exception_handler(request: Request, exc: PublishError):
        logger.error("Publish failed on %s: %s", request.url.path, exc.reason)
        return JSONResponse(
            status_code=upstream_status(exc.status_code),
            content={"error": exc.reason},
        )
