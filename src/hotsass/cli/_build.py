"""``hotsass build`` — one-shot warm-cache walk.

Compiles the whole tree, waits for every write, prints a line per file
and exits 1 if anything failed.
"""

import argparse
import logging
import sys

import anyio

from hotsass.compile.warm import WarmReport
from hotsass.config import SassConfig
from hotsass.errors import ConfigurationError
from hotsass.middleware.sass import SassMiddleware


def run_build(args: argparse.Namespace) -> None:
    """Compile every source under ``args.src`` and report the result."""
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        config = SassConfig.create(
            args.src,
            css=args.css,
            extname=args.extname,
            gzip=args.gzip,
            source_map=args.source_map,
            browsers=args.browsers,
        )
    except ConfigurationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(2) from exc

    report = anyio.run(_build, SassMiddleware(config))

    for path in sorted(report.compiled):
        print(f"compiled {path}")
    for path, error in report.failed:
        print(f"failed   {path}: {error}", file=sys.stderr)
    if not report.ok:
        raise SystemExit(1)


async def _build(middleware: SassMiddleware) -> WarmReport:
    report = await middleware.warm()
    await middleware.drain()
    return report
