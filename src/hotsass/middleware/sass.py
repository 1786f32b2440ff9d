"""On-demand Sass compilation middleware.

Serves ``.css`` requests by compiling the matching ``.scss``/``.sass``
source whenever it is newer than the compiled output (or the output is
missing). Everything else, and every failure, falls through to the next
handler; this middleware never produces an error response of its own.
"""

import asyncio
import logging
from collections.abc import Iterator
from pathlib import Path
from typing import Any

from hotsass._internal.reporting import emit
from hotsass.compile.compiler import Compiler, gzip_bytes
from hotsass.compile.paths import CSS_SUFFIX, resolve_paths
from hotsass.compile.staleness import should_compile
from hotsass.compile.warm import WarmReport, warm_cache
from hotsass.compile.writes import BackgroundWrites
from hotsass.config import LogRecord, SassConfig
from hotsass.http.request import Request
from hotsass.http.response import CSS_CONTENT_TYPE, Response, StreamingResponse
from hotsass.middleware.protocol import AnyResponse, Next

logger = logging.getLogger("hotsass.middleware")

_METHODS = frozenset({"GET", "HEAD"})
_CHUNK_SIZE = 64 * 1024


class SassMiddleware:
    """Compile stylesheets on request.

    A request is handled when it is a GET or HEAD for a path ending in
    ``.css``, a source file exists for it, and that source is newer than
    the compiled output (or ``force`` is set). The compiled content is
    returned with ``Content-Type: text/css;charset=utf-8`` and
    ``Cache-Control: max-age=<max_age>``; with ``gzip`` it is returned
    compressed and a ``.gz`` copy is written beside the output.

    Usage::

        config = SassConfig.create("assets/scss", css="public/css", prefix="/css")
        sass = SassMiddleware(config)

        async def handler(request: Request) -> Response:
            return await sass(request, serve_static)

    Compiled files are written in the background. Call ``drain()`` (or
    ``aclose()``) when they have to be on disk, e.g. in tests or at
    shutdown.
    """

    __slots__ = ("_started", "_warm_task", "compiler", "config")

    def __init__(self, config: SassConfig, *, writes: BackgroundWrites | None = None) -> None:
        self.config = config
        self.compiler = Compiler(config, writes)
        self._warm_task: asyncio.Task[None] | None = None
        self._started = False

    @property
    def writes(self) -> BackgroundWrites:
        return self.compiler.writes

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> asyncio.Task[None] | None:
        """Launch the warm-cache walk if ``init`` is set. Idempotent.

        Must be called with an event loop running. The walk is detached;
        nothing waits for it except ``drain()``.
        """
        if self._started:
            return self._warm_task
        self._started = True
        if self.config.init:
            logger.debug("starting warm cache walk: %s", self.config.summary())
            self._warm_task = self.writes.spawn(self._warm())
        return self._warm_task

    async def _warm(self) -> None:
        try:
            await warm_cache(self.compiler)
        except Exception:
            logger.exception("warm cache walk failed under %s", self.config.src)

    async def warm(self) -> WarmReport:
        """Run the warm-cache walk now and wait for its compiles."""
        return await warm_cache(self.compiler)

    async def drain(self) -> None:
        """Wait for the warm walk and every pending background write."""
        await self.writes.drain()

    async def aclose(self) -> None:
        await self.drain()

    # ------------------------------------------------------------------
    # Request handling
    # ------------------------------------------------------------------

    async def __call__(self, request: Request, next: Next) -> AnyResponse:
        """Serve a compiled stylesheet or fall through."""
        if request.method not in _METHODS:
            return await next(request)
        if not request.path.endswith(CSS_SUFFIX):
            return await next(request)

        paths = resolve_paths(request.path, self.config)
        logger.debug("%s %s -> %s", request.method, request.path, paths.src_file)
        emit(self.config, request, LogRecord(self.config, paths.src_file, paths.css_file))

        result = None
        try:
            stale = await should_compile(
                paths.src_file, paths.css_file, force=self.config.force
            )
            if stale:
                result = await self.compiler.compile(paths.src_file, paths.css_file)
        except Exception as exc:
            logger.warning("%s %s falls through: %s", request.method, request.path, exc)
            emit(
                self.config,
                request,
                LogRecord(self.config, paths.src_file, paths.css_file, exc),
            )
            return await next(request)

        if result is None:
            logger.debug("up to date: %s", paths.css_file)
            return await next(request)
        return self._respond(result.css_bytes, paths.css_file)

    def _respond(self, content: bytes, css_file: Path) -> Response | StreamingResponse:
        headers = {"Cache-Control": self.config.cache_control}
        if not self.config.gzip:
            return Response(body=content, content_type=CSS_CONTENT_TYPE).with_headers(headers)

        compressed = gzip_bytes(content)
        self.writes.write(f"{css_file}.gz", compressed)
        headers["Content-Encoding"] = "gzip"
        return StreamingResponse(
            chunks=_chunks(compressed), content_type=CSS_CONTENT_TYPE
        ).with_headers(headers)


def _chunks(data: bytes) -> Iterator[bytes]:
    for start in range(0, len(data), _CHUNK_SIZE):
        yield data[start : start + _CHUNK_SIZE]


def sass_middleware(src: Any, **options: Any) -> SassMiddleware:
    """Build a ``SassMiddleware`` from loose options.

    Accepts the same keywords as ``SassConfig.create()``. Validation
    errors raise ``ConfigurationError`` here, synchronously. When
    ``init`` is set and an event loop is already running, the warm-cache
    walk starts immediately; otherwise it starts on the first ``start()``
    (the ASGI adapter calls it at lifespan startup or first request).
    """
    middleware = SassMiddleware(SassConfig.create(src, **options))
    if middleware.config.init:
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return middleware
        middleware.start()
    return middleware
