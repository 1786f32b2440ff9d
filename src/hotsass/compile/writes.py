"""Fire-and-forget persistence.

Compiled css, source maps and gzip copies are written by detached
asyncio tasks. The request path never awaits them; a failed write is
logged as a ``PersistenceFailure`` and otherwise dropped. The on-disk
cache heals itself on the next request because the staleness check
sees the output as missing or old.

Tasks are held in a set until they finish so the event loop does not
garbage-collect them mid-write. ``drain()`` waits for everything
pending, which is what tests, the CLI and ASGI shutdown use.
"""

import asyncio
import logging
from collections.abc import Awaitable
from pathlib import Path

import anyio

from hotsass.errors import PersistenceFailure

logger = logging.getLogger("hotsass.writes")


class BackgroundWrites:
    """Registry of detached write tasks."""

    __slots__ = ("_tasks",)

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task[None]] = set()

    def __len__(self) -> int:
        return len(self._tasks)

    def write(self, path: str | Path, data: str | bytes) -> asyncio.Task[None]:
        """Schedule writing *data* to *path*. Returns the detached task."""
        payload = data.encode("utf-8") if isinstance(data, str) else data
        logger.debug("scheduling write of %d bytes to %s", len(payload), path)
        return self.spawn(_write(Path(path), payload))

    def spawn(self, coro: Awaitable[None]) -> asyncio.Task[None]:
        """Detach *coro* as a tracked background task."""
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def drain(self) -> None:
        """Wait until every pending write (and any it spawns) has finished."""
        while self._tasks:
            await asyncio.gather(*tuple(self._tasks), return_exceptions=True)


async def _write(path: Path, payload: bytes) -> None:
    try:
        await anyio.Path(path).write_bytes(payload)
    except OSError as exc:
        failure = PersistenceFailure(path, str(exc))
        logger.warning("%s", failure)
