"""Middleware protocol and Next type alias.

A middleware is any callable matching::

    async def my_mw(request: Request, next: Next) -> AnyResponse: ...

No base class required. ``SassMiddleware`` is one; the ASGI adapter
wraps it so any ASGI application can sit behind it.
"""

from collections.abc import Awaitable, Callable
from typing import Any, Protocol, TypeAlias

from hotsass.http.request import Request
from hotsass.http.response import Response, StreamingResponse

# Any response type the pipeline can produce. ``Any`` covers whatever the
# host's next handler returns (the ASGI adapter returns a pass-through marker).
AnyResponse: TypeAlias = Response | StreamingResponse | Any

# The next handler in the middleware chain
Next: TypeAlias = Callable[[Request], Awaitable[AnyResponse]]


class Middleware(Protocol):
    """Protocol for hotsass-compatible middleware.

    Accepts both functions and callable objects::

        async def timing(request: Request, next: Next) -> AnyResponse:
            start = time.monotonic()
            response = await next(request)
            elapsed = time.monotonic() - start
            return response.with_header("X-Time", f"{elapsed:.3f}")
    """

    async def __call__(self, request: Request, next: Next) -> AnyResponse: ...
