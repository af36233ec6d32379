"""HTTP middleware."""

from ghmailer.middleware.logging import RequestLoggingMiddleware

__all__ = ["RequestLoggingMiddleware"]
