"""hotsass exception hierarchy.

Shared by the config layer, the compile pipeline, and the middleware so
every module raises and catches the same types.
"""

from pathlib import Path


class HotSassError(Exception):
    """Base for all hotsass-specific errors."""


class ConfigurationError(HotSassError):
    """Raised when middleware options are invalid.

    Raised synchronously from ``SassConfig.create()``, before any
    request is handled.
    """


class SourceNotFound(HotSassError):  # noqa: N818
    """No source file exists for a requested stylesheet.

    The middleware treats this as "not my resource" and falls through.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        super().__init__(f"sass source file not found: {self.path}")


class CompileError(HotSassError):
    """The preprocessor or a post-processing plugin failed."""

    def __init__(self, path: str | Path, detail: str = "") -> None:
        self.path = Path(path)
        self.detail = detail
        message = f"failed to compile {self.path}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class PersistenceFailure(HotSassError):  # noqa: N818
    """A background write of a css, map, or gz file failed.

    Never surfaced to a request; only logged.
    """

    def __init__(self, path: str | Path, detail: str = "") -> None:
        self.path = Path(path)
        self.detail = detail
        message = f"failed to write {self.path}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
