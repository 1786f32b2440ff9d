"""Cache invalidation: does a stylesheet need compiling?

Both files are stat'ed concurrently. A missing file is a "no timestamp"
outcome, not an error, except that a missing *source* means there is
nothing to compile at all.
"""

from pathlib import Path

import anyio

from hotsass.errors import SourceNotFound


async def modified_time(path: Path) -> float | None:
    """Modification time of *path*, or ``None`` if it does not exist."""
    try:
        stat = await anyio.Path(path).stat()
    except (FileNotFoundError, NotADirectoryError):
        return None
    return stat.st_mtime


async def should_compile(src_file: Path, css_file: Path, *, force: bool = False) -> bool:
    """Decide whether *src_file* must be compiled into *css_file*.

    Returns ``True`` when forced, when the output is missing, or when the
    source is strictly newer than the output.

    Raises:
        SourceNotFound: *src_file* does not exist.
    """
    mtimes: dict[str, float | None] = {}

    async def _stat(key: str, path: Path) -> None:
        mtimes[key] = await modified_time(path)

    async with anyio.create_task_group() as tg:
        tg.start_soon(_stat, "src", src_file)
        tg.start_soon(_stat, "css", css_file)

    src_mtime = mtimes["src"]
    css_mtime = mtimes["css"]

    if src_mtime is None:
        raise SourceNotFound(src_file)
    if force:
        return True
    if css_mtime is None:
        return True
    return src_mtime > css_mtime
