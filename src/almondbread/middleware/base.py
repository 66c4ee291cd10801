"""
=============================================================================
MIDDLEWARE PIPELINE
=============================================================================

Middleware wraps the router's handler to act before and after it:

    pipeline.add(LoggingMiddleware())      first added = outermost
    handler = pipeline.wrap(router.handle)

        ┌──────────────────────────────────────────┐
        │  LoggingMiddleware                       │
        │  ┌────────────────────────────────────┐  │
        │  │  RequestRouter.handle              │  │
        │  │  (viewer page or rendered tile)    │  │
        │  └────────────────────────────────────┘  │
        └──────────────────────────────────────────┘

Requests flow inward in the order middleware was added; responses flow
back out in reverse.

=============================================================================
"""

import functools
import logging
from abc import ABC, abstractmethod
from typing import Callable, Iterator, List

from ..http.request import HTTPRequest
from ..http.response import HTTPResponse


logger = logging.getLogger(__name__)


NextHandler = Callable[[HTTPRequest], HTTPResponse]


class Middleware(ABC):
    """
    One layer around the router.

    A subclass either calls next(request) and may adjust the response
    on the way out, or answers by itself and skips the rest.
    """

    @abstractmethod
    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        ...

    @property
    def name(self) -> str:
        return type(self).__name__


class MiddlewarePipeline:
    """Middleware in the order it was added, outermost first."""

    def __init__(self):
        self._layers: List[Middleware] = []

    def add(self, middleware: Middleware) -> "MiddlewarePipeline":
        """Add an inner layer; returns self."""
        self._layers.append(middleware)
        logger.debug(f"Middleware {middleware.name} is layer {len(self._layers)}")
        return self

    def wrap(self, handler: NextHandler) -> NextHandler:
        """Return handler enclosed in every layer, [A, B] giving A(B(handler))."""
        chain = handler
        for layer in reversed(self._layers):
            chain = functools.partial(layer, next=chain)
        return chain

    def __len__(self) -> int:
        return len(self._layers)

    def __iter__(self) -> Iterator[Middleware]:
        return iter(self._layers)
