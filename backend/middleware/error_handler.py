"""
Global Error Handler Middleware
Catches unhandled exceptions and returns a sanitized response
"""
from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from middleware.logging_config import get_logger, log_error
import uuid

logger = get_logger("error_handler")

GENERIC_ERROR_MESSAGE = "An error occurred processing your request. Please try again or contact support."


def sanitize_exception_response(exception: Exception, request_id: str):
    """
    Create a sanitized error response, logging the full error server-side

    Args:
        exception: The exception that occurred
        request_id: Identifier returned to the client for support

    Returns:
        Sanitized error response dictionary
    """
    log_error(logger, exception, {"request_id": request_id, "type": type(exception).__name__})
    return {
        "error": "An error occurred",
        "message": GENERIC_ERROR_MESSAGE,
        "request_id": request_id
    }


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Middleware to catch and sanitize unexpected errors"""

    async def dispatch(self, request: Request, call_next):
        request_id = str(uuid.uuid4())

        try:
            return await call_next(request)
        except Exception as e:
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content=sanitize_exception_response(e, request_id)
            )
