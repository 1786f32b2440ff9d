"""hotsass — Sass/SCSS compiled on request.

Serves ``.css`` requests by compiling the matching ``.scss``/``.sass``
source whenever it is newer than the compiled output, and falls through
to the next handler for everything else.

Basic usage (any ASGI app)::

    from hotsass.asgi import SassASGIMiddleware

    app = SassASGIMiddleware(app, src="assets/scss", css="static/css", gzip=True)

Middleware-chain usage::

    from hotsass import sass_middleware

    sass = sass_middleware("assets/scss", prefix="/css", max_age=3600)
    response = await sass(request, next)
"""

__version__ = "0.1.0"
__all__ = [
    "CompileError",
    "CompileResult",
    "Compiler",
    "ConfigurationError",
    "HotSassError",
    "LogRecord",
    "PersistenceFailure",
    "Request",
    "Response",
    "SassASGIMiddleware",
    "SassConfig",
    "SassMiddleware",
    "SourceNotFound",
    "StreamingResponse",
    "sass_middleware",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import hotsass`` fast; libsass and tinycss2 load on first use.
    """
    if name in ("SassConfig", "LogRecord"):
        from hotsass import config as _config

        return getattr(_config, name)

    if name in ("SassMiddleware", "sass_middleware"):
        from hotsass.middleware import sass as _sass

        return getattr(_sass, name)

    if name == "SassASGIMiddleware":
        from hotsass.asgi import SassASGIMiddleware

        return SassASGIMiddleware

    if name in ("Compiler", "CompileResult"):
        from hotsass.compile import compiler as _compiler

        return getattr(_compiler, name)

    if name == "Request":
        from hotsass.http.request import Request

        return Request

    if name in ("Response", "StreamingResponse"):
        from hotsass.http import response as _resp

        return getattr(_resp, name)

    if name in (
        "CompileError",
        "ConfigurationError",
        "HotSassError",
        "PersistenceFailure",
        "SourceNotFound",
    ):
        from hotsass import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
