# backend/utils/handlers.py
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from utils.crud import format_validation_errors
from utils.errors import GENERAL_ERROR_MESSAGE, ApiError, ValidationFailed
from utils.response import error_response

logger = logging.getLogger(__name__)


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ValidationFailed)
    async def _validation_failed(req: Request, exc: ValidationFailed):
        return JSONResponse(
            status_code=exc.status_code,
            content=error_response(exc.message, code=exc.code, details=exc.details),
        )

    @app.exception_handler(RequestValidationError)
    async def _request_validation(req: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content=error_response(
                "Validation failed",
                code=ValidationFailed.code,
                details=format_validation_errors(exc.errors()),
            ),
        )

    @app.exception_handler(ApiError)
    async def _api_error(req: Request, exc: ApiError):
        if exc.status_code >= 500:
            # Database and other internal failures never reach the client verbatim
            logger.error("%s %s failed: %s", req.method, req.url.path, exc.message, exc_info=exc)
            return JSONResponse(status_code=500, content=error_response(GENERAL_ERROR_MESSAGE))
        return JSONResponse(status_code=exc.status_code, content=error_response(exc.message))

    @app.exception_handler(StarletteHTTPException)
    async def _http_exc(req: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=error_response(str(exc.detail)),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def _unhandled_exc(req: Request, exc: Exception):
        logger.exception("UNHANDLED_EXC %s %s: %s", req.method, req.url.path, exc)
        return JSONResponse(status_code=500, content=error_response(GENERAL_ERROR_MESSAGE))
