"""hotsass CLI — offline builds of a stylesheet tree.

Entry point registered as ``hotsass`` in ``pyproject.toml``::

    [project.scripts]
    hotsass = "hotsass.cli:main"
"""

import argparse
import sys


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the ``hotsass`` command."""
    parser = argparse.ArgumentParser(
        prog="hotsass",
        description="hotsass — Sass/SCSS compiled on request.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # -- hotsass build ----------------------------------------------------
    build_parser = subparsers.add_parser(
        "build", help="Compile every source file under --src once"
    )
    build_parser.add_argument("--src", required=True, help="Source root directory")
    build_parser.add_argument("--css", default=None, help="Output root (default: --src)")
    build_parser.add_argument(
        "--extname",
        choices=(".scss", ".sass"),
        default=".scss",
        help="Source file extension",
    )
    build_parser.add_argument("--gzip", action="store_true", help="Also write .css.gz files")
    build_parser.add_argument(
        "--source-map", action="store_true", help="Also write .css.map files"
    )
    build_parser.add_argument(
        "--browsers",
        nargs="+",
        default=None,
        help="Target browser queries for vendor prefixing",
    )
    build_parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "build":
        from hotsass.cli._build import run_build

        run_build(args)
