"""Middleware configuration.

SassConfig is a frozen dataclass: immutable after creation, shared by
reference between the request handler, the compiler and the warm-cache
walk. There is no module-level singleton: every middleware instance owns
the config it was built with.

Build one with ``SassConfig.create()``, which accepts the loose option
shapes (``str`` paths, a comma-separated browser string, an un-slashed
prefix) and raises ``ConfigurationError`` on anything it cannot use::

    config = SassConfig.create("assets/scss", css="public/css", prefix="/css")
"""

from __future__ import annotations

import posixpath
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, TypeAlias

from hotsass.compile.engine import LibSassEngine, SassEngine
from hotsass.compile.postprocess import DEFAULT_BROWSERS, Autoprefixer, Plugin
from hotsass.errors import ConfigurationError

if TYPE_CHECKING:
    from hotsass.http.request import Request

EXTNAMES: tuple[str, ...] = (".scss", ".sass")


@dataclass(frozen=True, slots=True)
class LogRecord:
    """What the ``log`` callback receives for each handled stylesheet."""

    config: SassConfig
    src_file: Path
    css_file: Path
    error: BaseException | None = None


LogCallback: TypeAlias = "Callable[[Request | None, LogRecord | None, BaseException | None], None]"


@dataclass(frozen=True, slots=True)
class SassConfig:
    """Sass middleware configuration. Immutable after creation."""

    # Source root; required. Output root defaults to it.
    src: Path
    css: Path

    # URL routing
    prefix: str = "/"
    extname: str = ".scss"

    # Compile behavior
    force: bool = False
    source_map: bool = False
    browsers: tuple[str, ...] = DEFAULT_BROWSERS
    plugins: tuple[Plugin, ...] = ()
    engine: SassEngine = field(default_factory=LibSassEngine)

    # Response
    gzip: bool = False
    max_age: int = 0

    # Startup
    init: bool = False

    # Reporting
    log: LogCallback | None = None

    def __post_init__(self) -> None:
        if self.extname not in EXTNAMES:
            msg = f"extname must be '.scss' or '.sass', got {self.extname!r}"
            raise ConfigurationError(msg)

    @property
    def cache_control(self) -> str:
        return f"max-age={self.max_age}"

    @classmethod
    def create(
        cls,
        src: str | Path | None,
        *,
        css: str | Path | None = None,
        init: bool = False,
        gzip: bool = False,
        force: bool = False,
        max_age: int = 0,
        extname: str | None = None,
        browsers: str | Iterable[str] | None = None,
        source_map: bool = False,
        prefix: str | None = None,
        plugins: Iterable[Plugin] | None = None,
        sass: SassEngine | None = None,
        log: LogCallback | None = None,
    ) -> SassConfig:
        """Validate loose options and build a config.

        Raises:
            ConfigurationError: ``src`` missing or not a path, ``prefix``
                not a string, ``extname`` not ``.scss``/``.sass``,
                ``max_age`` negative, or ``log`` not callable.
        """
        if src is None or src == "":
            msg = "src is required"
            raise ConfigurationError(msg)
        if not isinstance(src, (str, Path)):
            msg = f"src must be a string or Path, got {type(src).__name__}"
            raise ConfigurationError(msg)
        if prefix is not None and not isinstance(prefix, str):
            msg = f"prefix must be a string, got {type(prefix).__name__}"
            raise ConfigurationError(msg)
        if extname is not None and extname not in EXTNAMES:
            msg = f"extname must be '.scss' or '.sass', got {extname!r}"
            raise ConfigurationError(msg)
        if isinstance(max_age, bool) or not isinstance(max_age, int) or max_age < 0:
            msg = f"max_age must be a non-negative integer, got {max_age!r}"
            raise ConfigurationError(msg)
        if log is not None and not callable(log):
            msg = "log must be callable"
            raise ConfigurationError(msg)

        src_path = Path(src).resolve()
        css_path = Path(css).resolve() if css else src_path
        browser_list = _browser_list(browsers)
        plugin_list = tuple(plugins) if plugins is not None else (Autoprefixer(browser_list),)

        return cls(
            src=src_path,
            css=css_path,
            prefix=normalize_prefix(prefix or ""),
            extname=extname or ".scss",
            force=force,
            source_map=source_map,
            browsers=browser_list,
            plugins=plugin_list,
            engine=sass if sass is not None else LibSassEngine(),
            gzip=gzip,
            max_age=max_age,
            init=init,
            log=log,
        )

    def summary(self) -> dict[str, Any]:
        """Plain-data view for logging (no engine or callback objects)."""
        return {
            "src": str(self.src),
            "css": str(self.css),
            "prefix": self.prefix,
            "extname": self.extname,
            "gzip": self.gzip,
            "force": self.force,
            "max_age": self.max_age,
            "source_map": self.source_map,
            "browsers": list(self.browsers),
        }


def normalize_prefix(prefix: str) -> str:
    """Leading slash, no trailing slash, ``"/"`` for the root.

    ``""`` and ``"/"`` both mean the root; ``"styles/"`` becomes ``"/styles"``.
    """
    return posixpath.normpath("/" + prefix.strip("/"))


def _browser_list(browsers: str | Iterable[str] | None) -> tuple[str, ...]:
    if browsers is None:
        return DEFAULT_BROWSERS
    if isinstance(browsers, str):
        return tuple(part.strip() for part in browsers.split(",") if part.strip())
    return tuple(browsers)
