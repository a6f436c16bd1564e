"""
Custom middleware for the FastAPI application.
"""
import time
import logging
from typing import Any, Dict
from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp
import uuid

from ..config import Settings

# Set up logging
logger = logging.getLogger(__name__)


def annotate_request(request: Request, **fields: Any) -> None:
    """
    Attach record identifiers (patientId, responseId, ...) to the request log.

    The request logging middleware appends them to the completion line.
    """
    context = getattr(request.state, "log_context", None)
    if context is None:
        context = request.state.log_context = {}
    context.update({key: value for key, value in fields.items() if value is not None})


def describe_context(context: Dict[str, Any]) -> str:
    return "".join(f" {key}={value}" for key, value in context.items())


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs each request with its id, outcome, duration and the record
    identifiers the route attached through annotate_request.
    """
    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id
        context = request.state.log_context = {}

        route = f"{request.method} {request.url.path}"
        client_host = request.client.host if request.client else "unknown"
        logger.info(f"[{request_id}] {route} from {client_host}")

        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as e:
            elapsed = time.perf_counter() - started
            logger.error(f"[{request_id}] {route} failed after {elapsed:.4f}s:{describe_context(context)} {str(e)}")
            raise

        elapsed = time.perf_counter() - started
        response.headers["X-Process-Time"] = f"{elapsed:.6f}"
        response.headers["X-Request-ID"] = request_id

        logger.info(f"[{request_id}] {route} -> {response.status_code} in {elapsed:.4f}s{describe_context(context)}")
        return response


class CORSPolicyMiddleware(BaseHTTPMiddleware):
    """
    Middleware applying the per-endpoint CORS policy.

    Every response, errors included, carries the allow-origin, allow-headers
    and allow-methods headers. Preflight OPTIONS requests on any path are
    answered here with 200 {"message": "OK"} and never reach a route.
    """
    def __init__(self, app: ASGIApp, settings: Settings):
        super().__init__(app)
        self.settings = settings

    async def dispatch(self, request: Request, call_next):
        headers = self.settings.cors_headers_for(request.url.path)

        if request.method == "OPTIONS":
            return JSONResponse(content={"message": "OK"}, status_code=200, headers=headers)

        response = await call_next(request)
        response.headers.update(headers)
        return response


def setup_middlewares(app, settings: Settings):
    """
    Set up all custom middlewares for the application.

    Args:
        app: FastAPI application instance
        settings: Application settings (CORS policy)
    """
    app.add_middleware(CORSPolicyMiddleware, settings=settings)
    app.add_middleware(RequestLoggingMiddleware)
