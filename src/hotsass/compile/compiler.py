"""Compile-and-persist.

One call per stale stylesheet: make the output directory, run the
preprocessor in a worker thread, run the post-processing plugins, then
hand the css (and map) to background writes and return the content.
The caller can respond before the files land on disk.

There is no per-path de-duplication. Two requests for the same stale
stylesheet both compile and both write; the content is identical.
"""

import gzip
import logging
from dataclasses import dataclass
from pathlib import Path

import anyio

from hotsass.compile.engine import RenderResult
from hotsass.compile.postprocess import transform
from hotsass.compile.writes import BackgroundWrites
from hotsass.config import SassConfig
from hotsass.errors import CompileError

logger = logging.getLogger("hotsass.compile")

GZIP_LEVEL = 9


@dataclass(frozen=True, slots=True)
class CompileResult:
    """Final stylesheet content, plus the source map if one was produced."""

    css: str
    source_map: str | None = None

    @property
    def css_bytes(self) -> bytes:
        return self.css.encode("utf-8")


def gzip_bytes(data: bytes) -> bytes:
    """Gzip *data* at the fixed maximum level."""
    return gzip.compress(data, compresslevel=GZIP_LEVEL)


class Compiler:
    """Runs the preprocessor and plugins, and schedules the writes.

    Usage::

        compiler = Compiler(config)
        result = await compiler.compile(src_file, css_file)
        await compiler.writes.drain()  # only if you need the files now
    """

    __slots__ = ("config", "writes")

    def __init__(self, config: SassConfig, writes: BackgroundWrites | None = None) -> None:
        self.config = config
        self.writes = writes if writes is not None else BackgroundWrites()

    async def compile(self, src_file: Path, css_file: Path) -> CompileResult:
        """Compile *src_file*, schedule the css/map writes, return the content.

        Raises:
            CompileError: the preprocessor or a plugin failed.
        """
        await anyio.Path(css_file.parent).mkdir(parents=True, exist_ok=True)

        rendered = await anyio.to_thread.run_sync(self._render, src_file, css_file)
        if rendered.source_map:
            self.writes.write(f"{css_file}.map", rendered.source_map)

        content = await anyio.to_thread.run_sync(self._postprocess, src_file, rendered.css)
        self.writes.write(css_file, content)

        logger.info("compiled %s -> %s", src_file, css_file)
        return CompileResult(css=content, source_map=rendered.source_map)

    async def compile_to_disk(self, src_file: Path, css_file: Path) -> CompileResult:
        """``compile()`` plus a ``.gz`` copy when gzip is configured."""
        result = await self.compile(src_file, css_file)
        if self.config.gzip:
            self.writes.write(f"{css_file}.gz", gzip_bytes(result.css_bytes))
        return result

    # ------------------------------------------------------------------
    # Blocking steps (worker thread)
    # ------------------------------------------------------------------

    def _render(self, src_file: Path, css_file: Path) -> RenderResult:
        try:
            return self.config.engine.render(
                src_file, output=css_file, source_map=self.config.source_map
            )
        except CompileError:
            raise
        except Exception as exc:
            raise CompileError(src_file, str(exc)) from exc

    def _postprocess(self, src_file: Path, css: str) -> str:
        try:
            return transform(css, self.config.plugins)
        except Exception as exc:
            raise CompileError(src_file, f"post-processing failed: {exc}") from exc
