"""ASGI adapter.

Puts ``SassMiddleware`` in front of any ASGI 3 application::

    from hotsass.asgi import SassASGIMiddleware

    app = SassASGIMiddleware(app, src="assets/scss", css="static/css", prefix="/css")

"Falling through" forwards the original, untouched ASGI call to the
wrapped app, so stylesheets that are already up to date are served by
whatever serves static files there.
"""

import logging
from typing import Any

from hotsass._internal.asgi import ASGIApp, Message, Receive, Scope, Send
from hotsass.config import SassConfig
from hotsass.errors import ConfigurationError
from hotsass.http.request import Request
from hotsass.http.response import StreamingResponse
from hotsass.middleware.sass import SassMiddleware
from hotsass.server.sender import send_response, send_streaming_response

logger = logging.getLogger("hotsass.middleware")

# Returned by the "next" handler when the wrapped app already responded.
_FORWARDED = object()


class SassASGIMiddleware:
    """ASGI application wrapping another one with on-demand Sass compilation.

    Lifespan: ``lifespan.startup`` launches the warm-cache walk (when
    ``init`` is set) and ``lifespan.shutdown`` waits for pending writes.
    Servers without lifespan support start the walk on the first request.
    """

    __slots__ = ("app", "sass")

    def __init__(self, app: ASGIApp, config: SassConfig | None = None, **options: Any) -> None:
        if config is not None and options:
            msg = "pass either a SassConfig or keyword options, not both"
            raise ConfigurationError(msg)
        self.app = app
        self.sass = SassMiddleware(config if config is not None else SassConfig.create(**options))

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "lifespan":
            await self.app(scope, self._lifespan_receive(receive), send)
            return
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        self.sass.start()
        request = Request.from_asgi(scope)

        async def forward(_request: Request) -> object:
            await self.app(scope, receive, send)
            return _FORWARDED

        response = await self.sass(request, forward)
        if response is _FORWARDED:
            return
        if isinstance(response, StreamingResponse):
            await send_streaming_response(response, send, method=request.method)
        else:
            await send_response(response, send, method=request.method)

    def _lifespan_receive(self, receive: Receive) -> Receive:
        async def wrapped() -> Message:
            message = await receive()
            if message["type"] == "lifespan.startup":
                self.sass.start()
            elif message["type"] == "lifespan.shutdown":
                logger.debug("draining pending stylesheet writes")
                await self.sass.drain()
            return message

        return wrapped
