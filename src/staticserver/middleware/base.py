"""
=============================================================================
BASE MIDDLEWARE INTERFACE
=============================================================================

Middleware wraps the request handler like layers of an onion. Each layer
may act before the handler runs, after it returns, or both:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   Request ──► LoggingMiddleware ──► handler (router) ──┐            │
    │                    [before]                             │            │
    │                    start timer                          │            │
    │                                                         ▼            │
    │   Response ◄── LoggingMiddleware ◄──────────── HTTPResponse          │
    │                    [after]                                           │
    │                    access log line, X-Request-ID                     │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Handlers here are coroutines, so both the middleware and `next` are
awaited:

    class Timing(Middleware):
        async def __call__(self, request, next):
            response = await next(request)
            response.set_header("X-Handled", "yes")
            return response

=============================================================================
"""

import logging
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, List

from ..http.request import HTTPRequest
from ..http.response import HTTPResponse


logger = logging.getLogger(__name__)


# The next middleware or the final handler.
NextHandler = Callable[[HTTPRequest], Awaitable[HTTPResponse]]


class Middleware(ABC):
    """Abstract base class for middleware."""

    @abstractmethod
    async def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        """
        Process the request.

        Args:
            request: The incoming request.
            next: The rest of the chain; await it to continue.
        """

    @property
    def name(self) -> str:
        return self.__class__.__name__


class MiddlewarePipeline:
    """
    Chains middleware around a final handler.

    Middleware runs in the order added (first added = outermost):

        pipeline = MiddlewarePipeline()
        pipeline.add(LoggingMiddleware())
        handler = pipeline.wrap(router_handler)
        response = await handler(request)
    """

    def __init__(self):
        self._middleware: List[Middleware] = []

    def __len__(self) -> int:
        return len(self._middleware)

    def add(self, middleware: Middleware) -> "MiddlewarePipeline":
        self._middleware.append(middleware)
        logger.debug(f"Added middleware: {middleware.name}")
        return self

    def wrap(self, handler: NextHandler) -> NextHandler:
        """
        Wrap a handler with every middleware in the pipeline.

        Wrapping goes in reverse so that [A, B] becomes A(B(handler)).
        """
        current = handler
        for middleware in reversed(self._middleware):
            current = self._bind(middleware, current)
        return current

    @staticmethod
    def _bind(middleware: Middleware, next_handler: NextHandler) -> NextHandler:
        async def wrapped(request: HTTPRequest) -> HTTPResponse:
            return await middleware(request, next_handler)

        wrapped.__name__ = f"{middleware.name}_wrapped"
        return wrapped
