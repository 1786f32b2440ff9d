"""Shared fixtures for hotsass tests.

``FakeEngine`` stands in for libsass in most tests: it echoes the source
file back as "compiled" CSS, so middleware and compiler tests control the
output exactly. ``test_engine.py`` exercises the real libsass engine.
"""

import os
import time
from pathlib import Path

import pytest

from hotsass.compile.engine import RenderResult
from hotsass.config import SassConfig
from hotsass.errors import CompileError


class FakeEngine:
    """Echo engine. Sources containing ``@error`` fail to compile."""

    def __init__(self, source_map: str = '{"version":3}') -> None:
        self.calls: list[Path] = []
        self.map_payload = source_map

    def render(self, source: Path, *, output: Path, source_map: bool) -> RenderResult:
        self.calls.append(source)
        text = source.read_text("utf-8")
        if "@error" in text:
            raise CompileError(source, "forced failure")
        return RenderResult(
            css=text.strip(),
            source_map=self.map_payload if source_map else None,
        )


def set_mtime(path: Path, seconds_ago: float) -> None:
    """Backdate *path* so staleness tests don't depend on clock resolution."""
    stamp = time.time() - seconds_ago
    os.utime(path, (stamp, stamp))


@pytest.fixture
def engine() -> FakeEngine:
    return FakeEngine()


@pytest.fixture
def src_dir(tmp_path: Path) -> Path:
    """Source tree with a top-level and a nested stylesheet."""
    src = tmp_path / "scss"
    (src / "pages").mkdir(parents=True)
    (src / "site.scss").write_text("body{color:red}")
    (src / "pages" / "home.scss").write_text("h1{user-select:none}")
    for path in (src / "site.scss", src / "pages" / "home.scss"):
        set_mtime(path, 100)
    return src


@pytest.fixture
def css_dir(tmp_path: Path) -> Path:
    return tmp_path / "public" / "css"


@pytest.fixture
def make_config(src_dir: Path, css_dir: Path, engine: FakeEngine):
    """Factory for configs over the fixture tree using the fake engine."""

    def _make(**options: object) -> SassConfig:
        options.setdefault("css", css_dir)
        options.setdefault("sass", engine)
        return SassConfig.create(src_dir, **options)

    return _make
