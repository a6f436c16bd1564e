"""
Global exception handlers and custom exception classes.

Every error leaves the API as {"error": <message>} so callers can branch on
the message text ("Validation failed", "Invalid JSON in request body", ...).
"""
from typing import List, Optional

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging

# Set up logging
logger = logging.getLogger(__name__)

VALIDATION_MARKER = "Validation failed"


class AppException(Exception):
    """
    Base exception class for application-specific exceptions.
    """
    def __init__(self, status_code: int, detail: str):
        super().__init__(detail)
        self.status_code = status_code
        self.detail = detail


class MalformedRequestBody(AppException):
    """Raised when the request body is not a JSON object."""
    def __init__(self, detail: str = "Invalid JSON in request body"):
        super().__init__(status.HTTP_400_BAD_REQUEST, detail)


class RequestValidationFailed(AppException):
    """
    Raised when submitted data breaks one or more validation rules.

    The individual messages are kept on `errors`; `detail` joins them behind
    the "Validation failed" marker.
    """
    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__(
            status.HTTP_400_BAD_REQUEST,
            f"{VALIDATION_MARKER}: " + "; ".join(self.errors)
        )


class ResourceNotFound(AppException):
    """Raised when a requested record does not exist."""
    def __init__(self, detail: str = "Resource not found"):
        super().__init__(status.HTTP_404_NOT_FOUND, detail)


class InternalServerError(AppException):
    """
    Raised by routers after catching an unexpected failure.

    Args:
        reason: Text of the original exception, shown only when
            expose_details is True
    """
    def __init__(self, reason: Optional[str] = None, expose_details: bool = True):
        detail = "Internal server error"
        if expose_details and reason:
            detail = f"{detail}: {reason}"
        super().__init__(status.HTTP_500_INTERNAL_SERVER_ERROR, detail)


async def app_exception_handler(request: Request, exc: AppException):
    """
    Handler for application-specific exceptions.

    Args:
        request: The request that caused the exception
        exc: The exception instance

    Returns:
        JSONResponse: Standardized error response
    """
    if exc.status_code >= 500:
        logger.error(f"Application error: {exc.detail}")
    else:
        logger.warning(f"Request rejected ({exc.status_code}): {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail}
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """
    Handler for framework-level HTTP errors (unknown route, wrong method).

    Args:
        request: The request that caused the exception
        exc: The exception instance

    Returns:
        JSONResponse: Standardized error response
    """
    if exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
        message = "Method not allowed"
    elif exc.status_code == status.HTTP_404_NOT_FOUND:
        message = "Not found"
    else:
        message = str(exc.detail)
    logger.warning(f"{request.method} {request.url.path} -> {exc.status_code}: {message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": message},
        headers=getattr(exc, "headers", None)
    )


async def request_validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Handler for malformed query and path parameters.

    Args:
        request: The request that caused the exception
        exc: The exception instance

    Returns:
        JSONResponse: Standardized error response
    """
    errors = [
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
        for error in exc.errors()
    ]
    logger.warning(f"{request.method} {request.url.path} -> invalid parameters: {errors}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": f"{VALIDATION_MARKER}: " + "; ".join(errors)}
    )


async def unexpected_exception_handler(request: Request, exc: Exception):
    """
    Handler for exceptions nothing else caught (dependencies, middleware).

    Runs outside the CORS middleware, so the cross-origin headers are added
    here.

    Args:
        request: The request that caused the exception
        exc: The exception instance

    Returns:
        JSONResponse: Standardized error response
    """
    settings = request.app.state.settings
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {str(exc)}", exc_info=exc)
    error = InternalServerError(str(exc), expose_details=settings.expose_error_details)
    return JSONResponse(
        status_code=error.status_code,
        content={"error": error.detail},
        headers=settings.cors_headers_for(request.url.path)
    )


# Register exception handlers with FastAPI app
def register_exception_handlers(app):
    """
    Register all exception handlers with the FastAPI application.

    Args:
        app: FastAPI application instance
    """
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
    app.add_exception_handler(Exception, unexpected_exception_handler)
