"""Immutable HTTP request.

Frozen metadata only. The sass middleware never reads the body; when it
falls through, the ASGI adapter hands the untouched ``receive`` to the
wrapped app.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from hotsass._internal.asgi import Scope


@dataclass(frozen=True, slots=True)
class Request:
    """An immutable HTTP request.

    Header names are lowercased; when a header repeats, the first value wins.
    """

    method: str
    path: str
    query_string: str = ""
    headers: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))

    @property
    def url(self) -> str:
        """Full request URL (path + query string)."""
        if self.query_string:
            return f"{self.path}?{self.query_string}"
        return self.path

    @classmethod
    def from_asgi(cls, scope: Scope) -> Request:
        """Create a Request from an ASGI HTTP scope."""
        headers: dict[str, str] = {}
        for name, value in scope.get("headers", ()):
            headers.setdefault(name.decode("latin-1").lower(), value.decode("latin-1"))
        return cls(
            method=scope["method"].upper(),
            path=scope["path"],
            query_string=scope.get("query_string", b"").decode("latin-1"),
            headers=MappingProxyType(headers),
        )

    @classmethod
    def build(cls, method: str, url: str, headers: Mapping[str, Any] | None = None) -> Request:
        """Build a request from a method and a URL (path plus optional query).

        Handy for calling middleware directly, outside any server.
        """
        path, _, query = url.partition("?")
        lowered = {str(k).lower(): str(v) for k, v in (headers or {}).items()}
        return cls(
            method=method.upper(),
            path=path,
            query_string=query,
            headers=MappingProxyType(lowered),
        )
