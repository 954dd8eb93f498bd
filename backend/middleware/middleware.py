import time
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from middleware.logging_config import get_logger, log_api_request, log_api_response

logger = get_logger("api.middleware")

PROCESS_TIME_HEADER = "X-Process-Time-Ms"
AUDIT_ID_HEADER = "X-Audit-Id"

# Liveness probes are polled constantly; keep them out of the info log
QUIET_PATHS = frozenset({"/health"})


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Log ration API traffic.

    Each response is timed and tagged with X-Process-Time-Ms. When a route
    sets X-Audit-Id, the id is carried into the response log line so a
    request can be matched with its calculation log entries.
    """

    async def dispatch(self, request: Request, call_next):
        start_time = time.perf_counter()
        method = request.method
        path = request.url.path

        if path in QUIET_PATHS:
            response = await call_next(request)
            logger.debug(f"{method} {path} | Status: {response.status_code}")
            return response

        client_ip = request.client.host if request.client else "unknown"
        log_api_request(
            logger,
            method,
            path,
            client_ip=client_ip,
            content_length=request.headers.get("content-length", "0"),
        )

        try:
            response = await call_next(request)
        except Exception as e:
            elapsed_ms = (time.perf_counter() - start_time) * 1000
            logger.error(
                f"API Error: {method} {path} | Time: {elapsed_ms:.2f}ms | Error: {str(e)}",
                exc_info=True
            )
            raise

        elapsed_ms = (time.perf_counter() - start_time) * 1000
        log_api_response(
            logger,
            method,
            path,
            response.status_code,
            response_time=round(elapsed_ms, 2),
            audit_id=response.headers.get(AUDIT_ID_HEADER, "-"),
        )
        response.headers[PROCESS_TIME_HEADER] = f"{elapsed_ms:.2f}"
        return response
