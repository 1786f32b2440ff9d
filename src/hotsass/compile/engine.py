"""Preprocessor engines.

An engine turns one Sass/SCSS file into CSS text. The default is
libsass; anything with a matching ``render()`` works, which is how tests
and callers swap in their own compiler (the ``sass=`` option).

Engines are blocking. The compiler calls them from a worker thread.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

import sass

from hotsass.errors import CompileError


@dataclass(frozen=True, slots=True)
class RenderResult:
    """Raw preprocessor output, before post-processing."""

    css: str
    source_map: str | None = None


class SassEngine(Protocol):
    """Anything that can compile a single source file."""

    def render(self, source: Path, *, output: Path, source_map: bool) -> RenderResult: ...


class LibSassEngine:
    """Compile with libsass (the ``sass`` module from the ``libsass`` package).

    Output style is always ``compressed``. The indented ``.sass`` dialect
    is picked by libsass from the file extension. When *source_map* is
    requested the map is embedded into the CSS as a data URI and also
    returned so it can be written next to the output.
    """

    __slots__ = ("include_paths", "precision")

    def __init__(self, include_paths: Sequence[str | Path] = (), precision: int = 5) -> None:
        self.include_paths = tuple(str(p) for p in include_paths)
        self.precision = precision

    def render(self, source: Path, *, output: Path, source_map: bool) -> RenderResult:
        kwargs: dict[str, object] = {
            "filename": str(source),
            "output_style": "compressed",
            "include_paths": self.include_paths,
            "precision": self.precision,
        }
        if source_map:
            kwargs["source_map_filename"] = f"{output}.map"
            kwargs["output_filename_hint"] = str(output)
            kwargs["source_map_embed"] = True
            kwargs["source_map_contents"] = True
        try:
            result = sass.compile(**kwargs)
        except sass.CompileError as exc:
            raise CompileError(source, str(exc).strip()) from exc

        # With source_map_filename set, libsass returns (css, map).
        if isinstance(result, tuple):
            css, map_payload = result
            return RenderResult(css=css, source_map=map_payload)
        return RenderResult(css=result)

    def __repr__(self) -> str:
        return f"LibSassEngine(include_paths={self.include_paths!r})"
