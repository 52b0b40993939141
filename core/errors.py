"""
HTTP mapping for failures: one status table, one error envelope.
Routes and dependencies raise ApiError; handlers below render it.
"""

from typing import NoReturn

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.results import AuthFailure, ConfigFailure, Err
from models.schemas import ErrorDetail
from utils.logging import get_logger

logger = get_logger(__name__)

STATUS_BY_KIND: dict[AuthFailure | ConfigFailure, int] = {
    AuthFailure.MISSING_CREDENTIAL: status.HTTP_401_UNAUTHORIZED,
    AuthFailure.INVALID_CREDENTIAL: status.HTTP_403_FORBIDDEN,
    AuthFailure.DISABLED_CREDENTIAL: status.HTTP_403_FORBIDDEN,
    AuthFailure.RESOLVER_UNAVAILABLE: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ConfigFailure.INVALID_REQUEST: status.HTTP_400_BAD_REQUEST,
    ConfigFailure.SITE_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ConfigFailure.EMPTY_UPDATE: status.HTTP_400_BAD_REQUEST,
    ConfigFailure.STORAGE_FAILURE: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


class ApiError(Exception):
    """Failure that should reach the client as an ErrorDetail body."""

    def __init__(self, status_code: int, error: str, message: str) -> None:
        self.status_code = status_code
        self.error = error
        self.message = message
        super().__init__(message)


def raise_for_failure(failure: Err[AuthFailure] | Err[ConfigFailure]) -> NoReturn:
    raise ApiError(STATUS_BY_KIND[failure.kind], failure.kind.value, failure.message)


def _error_response(status_code: int, error: str, message: str) -> JSONResponse:
    body = ErrorDetail(error=error, message=message).model_dump()
    return JSONResponse(status_code=status_code, content=body)


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError):
        return _error_response(exc.status_code, exc.error, exc.message)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        if any(err.get("type") == "json_invalid" for err in exc.errors()):
            return _error_response(status.HTTP_400_BAD_REQUEST, "InvalidBody", "Request body is not valid JSON")
        return JSONResponse(
            status_code=422,
            content={
                "success": False,
                "error": "ValidationError",
                "message": "Request validation failed",
                "detail": jsonable_encoder(exc.errors()),
            },
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == status.HTTP_404_NOT_FOUND:
            return _error_response(404, "Not Found", "The requested endpoint does not exist")
        return _error_response(exc.status_code, "HTTPError", str(exc.detail))

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("unhandled_exception", extra={"path": request.url.path})
        return _error_response(500, "Internal server error", "An unexpected error occurred.")
