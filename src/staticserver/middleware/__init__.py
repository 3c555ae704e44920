"""
Middleware applied around the request router.

    pipeline = MiddlewarePipeline()
    pipeline.add(LoggingMiddleware(log_format="json"))
    handler = pipeline.wrap(router_handler)
"""

from .base import Middleware, MiddlewarePipeline, NextHandler
from .logging import LoggingMiddleware, RequestLog

__all__ = [
    "LoggingMiddleware",
    "Middleware",
    "MiddlewarePipeline",
    "NextHandler",
    "RequestLog",
]
