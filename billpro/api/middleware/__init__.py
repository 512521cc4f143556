"""API middleware."""

from billpro.api.middleware.error_handler import ErrorHandlerMiddleware
from billpro.api.middleware.logging import LoggingMiddleware

__all__ = ["LoggingMiddleware", "ErrorHandlerMiddleware"]
