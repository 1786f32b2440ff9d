"""Middleware — Protocol-based, no inheritance required.

A middleware is any callable matching:
    async def mw(request: Request, next: Next) -> Response

Built-in middleware:
    SassMiddleware -- Compile Sass/SCSS to CSS on request
"""

from hotsass.middleware.protocol import AnyResponse, Middleware, Next
from hotsass.middleware.sass import SassMiddleware, sass_middleware

__all__ = [
    "AnyResponse",
    "Middleware",
    "Next",
    "SassMiddleware",
    "sass_middleware",
]
