"""Error handling middleware and exception handlers."""

from typing import Any

from fastapi import FastAPI, Request, Response
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.status import (
    HTTP_422_UNPROCESSABLE_CONTENT,
    HTTP_500_INTERNAL_SERVER_ERROR,
)

from locator.core.geocoding.errors import (
    GeocodingError,
    NoResultsError,
    RateLimitedError,
)
from locator.core.geocoding.models import ResolutionStatus
from locator.core.logging import get_logger

logger = get_logger(__name__)


def _correlation_id(request: Request) -> str | None:
    correlation_id = getattr(request.state, "correlation_id", None)
    return str(correlation_id) if correlation_id is not None else None


def _error_response(
    request: Request,
    status_code: int,
    content: dict[str, Any],
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    response = JSONResponse(status_code=status_code, content=content, headers=headers)
    correlation_id = _correlation_id(request)
    if correlation_id:
        response.headers["X-Request-ID"] = correlation_id
    return response


async def handle_geocoding_error(request: Request, exc: Exception) -> JSONResponse:
    """Translate resolution failures into the public error contract.

    Args:
        request: The request that failed
        exc: A GeocodingError subclass

    Returns:
        429 with Retry-After, 404 with a Failed status, or the error's own status
    """
    if not isinstance(exc, GeocodingError):
        return await handle_unexpected_error(request, exc)

    logger.warning(
        "geocode_request_failed",
        error_type=exc.__class__.__name__,
        status_code=exc.status_code,
        path=request.url.path,
    )

    content: dict[str, Any] = {"error": str(exc)}
    headers: dict[str, str] | None = None

    if isinstance(exc, RateLimitedError) and exc.retry_after:
        headers = {"Retry-After": exc.retry_after}
    if isinstance(exc, NoResultsError):
        content["status"] = ResolutionStatus.FAILED.value

    return _error_response(request, exc.status_code, content, headers)


async def handle_validation_error(request: Request, exc: Exception) -> JSONResponse:
    detail = (
        jsonable_encoder(exc.errors())
        if isinstance(exc, RequestValidationError)
        else str(exc)
    )
    return _error_response(
        request,
        HTTP_422_UNPROCESSABLE_CONTENT,
        {"error": "Invalid request", "detail": detail},
    )


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    message = str(exc.args[0]) if exc.args else exc.__class__.__name__
    logger.error(
        "request_error",
        error_type=exc.__class__.__name__,
        error_message=message,
        path=request.url.path,
        method=request.method,
        correlation_id=_correlation_id(request),
    )
    return _error_response(
        request, HTTP_500_INTERNAL_SERVER_ERROR, {"error": message or "Internal Server Error"}
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install the geocoding and validation error handlers on ``app``."""
    app.add_exception_handler(GeocodingError, handle_geocoding_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Catch anything the route handlers did not and answer with a JSON 500."""

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        """
        Process the request/response cycle and handle errors.

        Args:
        ----
            request: The incoming request
            call_next: The next handler in the middleware chain

        Returns:
        -------
            The response from downstream handlers or error response
        """
        try:
            return await call_next(request)
        except Exception as exc:
            return await handle_unexpected_error(request, exc)
