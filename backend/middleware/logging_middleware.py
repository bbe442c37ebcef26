import time
import logging
import json
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp
from config.settings import settings
from config.logging_config import get_request_id

logger = logging.getLogger(__name__)

MASK = "********"


def mask_sensitive_data(data):
    """Recursively mask sensitive fields (password, token, ...) in a JSON-like structure."""
    if isinstance(data, dict):
        masked = {}
        for key, value in data.items():
            if any(sensitive in key.lower() for sensitive in settings.LOG_SENSITIVE_FIELDS):
                masked[key] = MASK
            else:
                masked[key] = mask_sensitive_data(value)
        return masked
    if isinstance(data, list):
        return [mask_sensitive_data(item) for item in data]
    return data


def _body_for_log(body: bytes):
    """Decode a body for logging: masked JSON if possible, short text otherwise."""
    try:
        return mask_sensitive_data(json.loads(body))
    except (json.JSONDecodeError, UnicodeDecodeError):
        if len(body) < 1000:  # Don't log large binary data
            return body.decode('utf-8', errors='replace')
        return f"<{len(body)} bytes>"


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Request/response logging with request ids and timing.

    - Assigns a request id (X-Request-ID) and exposes it on request.state
    - Logs method, path and client for each request
    - Logs status and duration for each response; 4xx and slow responses
      at WARNING, 5xx at ERROR
    - Optionally logs bodies with sensitive fields masked
    """

    def __init__(self, app: ASGIApp, request_id_filter=None):
        super().__init__(app)
        self.request_id_filter = request_id_filter

    async def dispatch(self, request: Request, call_next):
        request_id = get_request_id()
        if self.request_id_filter:
            self.request_id_filter.request_id = request_id

        request.state.request_id = request_id
        start_time = time.time()

        await self._log_request(request, request_id)

        try:
            response = await call_next(request)
            duration_ms = (time.time() - start_time) * 1000
            self._log_response(request, response, duration_ms, request_id)
            response.headers["X-Request-ID"] = request_id
            return response
        except Exception as exc:
            duration_ms = (time.time() - start_time) * 1000
            logger.exception(
                f"Unhandled exception processing request: {str(exc)}",
                extra={
                    "request_id": request_id,
                    "method": request.method,
                    "path": request.url.path,
                    "duration_ms": duration_ms
                }
            )
            raise
        finally:
            if self.request_id_filter:
                self.request_id_filter.request_id = None

    async def _log_request(self, request: Request, request_id: str):
        log_data = {
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "query_params": dict(request.query_params),
            "client_host": request.client.host if request.client else None,
        }

        if settings.LOG_LEVEL == "DEBUG":
            log_data["headers"] = mask_sensitive_data(dict(request.headers))

        if settings.LOG_REQUEST_BODY:
            body = await request.body()
            if body:
                log_data["body"] = _body_for_log(body)

        logger.info(f"Request: {request.method} {request.url.path}", extra=log_data)

    def _log_response(self, request: Request, response: Response, duration_ms: float, request_id: str):
        log_data = {
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "status_code": response.status_code,
            "duration_ms": round(duration_ms, 2)
        }

        # Streaming responses from call_next carry no .body
        if settings.LOG_RESPONSE_BODY and hasattr(response, "body"):
            log_data["body"] = _body_for_log(response.body)

        if response.status_code >= 500:
            logger.error(f"Response: {response.status_code} - {duration_ms:.2f}ms", extra=log_data)
        elif response.status_code >= 400:
            logger.warning(f"Response: {response.status_code} - {duration_ms:.2f}ms", extra=log_data)
        elif duration_ms > settings.LOG_PERFORMANCE_THRESHOLD_MS:
            logger.warning(
                f"Slow response: {request.method} {request.url.path} - {response.status_code} - {duration_ms:.2f}ms",
                extra=log_data
            )
        else:
            logger.info(f"Response: {response.status_code} - {duration_ms:.2f}ms", extra=log_data)
