"""
Middleware wrapped around the request router.

    Middleware, MiddlewarePipeline   composition (base)
    LoggingMiddleware                access log + X-Request-ID (logging)
"""

from .base import Middleware, MiddlewarePipeline, NextHandler
from .logging import AccessRecord, LoggingMiddleware

__all__ = [
    "Middleware",
    "MiddlewarePipeline",
    "NextHandler",
    "LoggingMiddleware",
    "AccessRecord",
]
