"""Warm-cache walk.

Compiles every source file under the source root once, at startup, so
the first requests find fresh output on disk. Each file compiles in its
own task; one broken file is logged and recorded, and the rest carry on.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

import anyio

from hotsass._internal.reporting import emit
from hotsass.compile.compiler import Compiler
from hotsass.compile.paths import output_path_for
from hotsass.config import LogRecord

logger = logging.getLogger("hotsass.compile")


@dataclass(frozen=True, slots=True)
class WarmReport:
    """Outcome of one walk."""

    compiled: tuple[Path, ...] = ()
    failed: tuple[tuple[Path, BaseException], ...] = ()

    @property
    def ok(self) -> bool:
        return not self.failed


async def discover(root: Path, extname: str) -> list[Path]:
    """Every file below *root* whose suffix is *extname*, in no particular order.

    Unreadable directories are logged and skipped.
    """
    found: list[Path] = []
    pending = [anyio.Path(root)]
    while pending:
        directory = pending.pop()
        try:
            entries = [entry async for entry in directory.iterdir()]
        except OSError as exc:
            logger.warning("cannot list %s: %s", directory, exc)
            continue
        for entry in entries:
            if await entry.is_dir():
                pending.append(entry)
            elif entry.suffix == extname and await entry.is_file():
                found.append(Path(entry))
    return found


async def warm_cache(compiler: Compiler) -> WarmReport:
    """Compile every source under ``compiler.config.src``.

    Writes are scheduled, not awaited; drain ``compiler.writes`` to wait
    for the files.
    """
    config = compiler.config
    if not await anyio.Path(config.src).is_dir():
        logger.warning("warm cache skipped: %s is not a directory", config.src)
        return WarmReport()

    sources = await discover(config.src, config.extname)
    compiled: list[Path] = []
    failed: list[tuple[Path, BaseException]] = []

    async def _one(src_file: Path) -> None:
        css_file = output_path_for(src_file, config)
        try:
            await compiler.compile_to_disk(src_file, css_file)
        except Exception as exc:
            logger.warning("warm cache: %s", exc)
            failed.append((src_file, exc))
            emit(config, None, LogRecord(config, src_file, css_file, exc))
        else:
            compiled.append(src_file)

    async with anyio.create_task_group() as tg:
        for src_file in sources:
            tg.start_soon(_one, src_file)

    logger.info(
        "warm cache: %d compiled, %d failed under %s", len(compiled), len(failed), config.src
    )
    return WarmReport(compiled=tuple(compiled), failed=tuple(failed))
