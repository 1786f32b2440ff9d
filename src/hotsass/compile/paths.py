"""Request path -> source/output file mapping.

``/styles/a/b.css`` with prefix ``/styles`` maps to ``<src>/a/b.scss``
and ``<css>/a/b.css``. The prefix is removed with a relative-path
computation, so a request outside the prefix resolves to a ``../``
path instead of a half-stripped string.

Resolved paths are not clamped to the configured roots.
"""

import os
import posixpath
from dataclasses import dataclass
from pathlib import Path

from hotsass.config import SassConfig

CSS_SUFFIX = ".css"


@dataclass(frozen=True, slots=True)
class ResolvedPaths:
    """Where a stylesheet's source lives and where its compiled output goes."""

    src_file: Path
    css_file: Path


def resolve_paths(url_path: str, config: SassConfig) -> ResolvedPaths:
    """Map a ``.css`` request path to its source and output files."""
    relative = posixpath.relpath(posixpath.normpath("/" + url_path.lstrip("/")), config.prefix)
    source_relative = relative[: -len(CSS_SUFFIX)] + config.extname
    return ResolvedPaths(
        src_file=Path(os.path.normpath(config.src / source_relative)),
        css_file=Path(os.path.normpath(config.css / relative)),
    )


def output_path_for(src_file: Path, config: SassConfig) -> Path:
    """Inverse mapping used by the warm-cache walk.

    Mirrors *src_file* from the source root onto the output root and
    swaps its extension for ``.css``.
    """
    relative = src_file.relative_to(config.src)
    return config.css / relative.with_suffix(CSS_SUFFIX)
