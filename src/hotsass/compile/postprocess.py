"""Post-processing pipeline.

A plugin is any callable ``(css: str) -> str``. ``transform()`` runs the
configured plugins in order over the preprocessor output. The default
pipeline holds a single ``Autoprefixer`` built from the target-browser
list.

``Autoprefixer`` is deliberately small: a fixed table of properties that
still need vendor prefixes in current engines, narrowed to the vendors
the browser list names. It parses with tinycss2 and re-serializes in
compressed form, so it is safe to run over libsass ``compressed`` output.
"""

import logging
from collections.abc import Callable, Iterable, Sequence
from typing import TypeAlias

import tinycss2
from tinycss2.ast import AtRule, Comment, Declaration, ParseError, QualifiedRule

logger = logging.getLogger("hotsass.compile")

Plugin: TypeAlias = Callable[[str], str]

DEFAULT_BROWSERS: tuple[str, ...] = ("last 2 versions", "> 2%")

WEBKIT = "-webkit-"
MOZ = "-moz-"
MS = "-ms-"
ALL_VENDORS: frozenset[str] = frozenset({WEBKIT, MOZ, MS})

# First word of a browser query -> vendor prefix that browser understands.
_BROWSER_VENDORS: dict[str, str] = {
    "chrome": WEBKIT,
    "and_chr": WEBKIT,
    "safari": WEBKIT,
    "ios": WEBKIT,
    "ios_saf": WEBKIT,
    "android": WEBKIT,
    "samsung": WEBKIT,
    "opera": WEBKIT,
    "op_mob": WEBKIT,
    "edge": WEBKIT,
    "firefox": MOZ,
    "ff": MOZ,
    "and_ff": MOZ,
    "ie": MS,
    "ie_mob": MS,
}

_PREFIXED_PROPERTIES: dict[str, tuple[str, ...]] = {
    "appearance": (WEBKIT, MOZ),
    "backdrop-filter": (WEBKIT,),
    "box-decoration-break": (WEBKIT,),
    "clip-path": (WEBKIT,),
    "hyphens": (WEBKIT, MS),
    "mask": (WEBKIT,),
    "mask-image": (WEBKIT,),
    "mask-position": (WEBKIT,),
    "mask-repeat": (WEBKIT,),
    "mask-size": (WEBKIT,),
    "print-color-adjust": (WEBKIT,),
    "tab-size": (MOZ,),
    "text-emphasis": (WEBKIT,),
    "text-size-adjust": (WEBKIT, MOZ, MS),
    "user-select": (WEBKIT, MOZ, MS),
}

# (property, value) pairs whose *value* takes the prefix.
_PREFIXED_VALUES: dict[tuple[str, str], tuple[str, ...]] = {
    ("position", "sticky"): (WEBKIT,),
}

# At-rules whose block holds more rules rather than declarations.
_RULE_LIST_AT_RULES = frozenset({"media", "supports", "document", "layer", "container"})


def transform(css: str, plugins: Sequence[Plugin]) -> str:
    """Run *plugins* over *css* in order and return the final text."""
    for plugin in plugins:
        css = plugin(css)
    return css


def vendors_for(browsers: Iterable[str]) -> frozenset[str]:
    """Vendor prefixes needed for a browser query list.

    Queries naming a browser (``"safari >= 14"``, ``"firefox esr"``) add
    that browser's vendor. Generic queries (``"last 2 versions"``,
    ``"> 2%"``, ``"defaults"``) cover every vendor. An empty list needs
    no prefixes at all.
    """
    vendors: set[str] = set()
    for query in browsers:
        words = query.strip().lower().split()
        if not words:
            continue
        if words[0] == "not":
            continue
        vendor = _BROWSER_VENDORS.get(words[0])
        if vendor is None:
            return ALL_VENDORS
        vendors.add(vendor)
    return frozenset(vendors)


class Autoprefixer:
    """Insert vendor-prefixed declarations ahead of the standard ones.

    Usage::

        prefixer = Autoprefixer(["safari >= 14"])
        prefixer("a{user-select:none}")
        # 'a{-webkit-user-select:none;user-select:none}'

    Declarations already present in a rule are never duplicated.
    """

    __slots__ = ("browsers", "vendors")

    def __init__(self, browsers: Iterable[str] = DEFAULT_BROWSERS) -> None:
        self.browsers = tuple(browsers)
        self.vendors = vendors_for(self.browsers)

    def __call__(self, css: str) -> str:
        if not self.vendors:
            return css
        nodes = tinycss2.parse_stylesheet(css, skip_comments=False, skip_whitespace=True)
        try:
            return "".join(self._rule(node) for node in nodes)
        except _Unparsed as exc:
            logger.debug("autoprefixer left stylesheet unchanged: %s", exc)
            return css

    def __repr__(self) -> str:
        return f"Autoprefixer(browsers={self.browsers!r})"

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def _rule(self, node: object) -> str:
        if isinstance(node, ParseError):
            raise _Unparsed(f"{node.source_line}:{node.source_column}: {node.message}")
        if isinstance(node, Comment):
            return node.serialize()
        if isinstance(node, QualifiedRule):
            prelude = tinycss2.serialize(node.prelude).strip()
            return f"{prelude}{{{self._declarations(node.content)}}}"
        if isinstance(node, AtRule):
            return self._at_rule(node)
        return tinycss2.serialize([node]).strip()  # type: ignore[list-item]

    def _at_rule(self, node: AtRule) -> str:
        if node.content is None:
            return node.serialize()
        prelude = tinycss2.serialize(node.prelude).strip()
        head = f"@{node.at_keyword} {prelude}" if prelude else f"@{node.at_keyword}"
        if _holds_rules(node):
            inner = tinycss2.parse_rule_list(node.content, skip_comments=True, skip_whitespace=True)
            body = "".join(self._rule(child) for child in inner)
        else:
            # @font-face, @page and friends hold declarations
            body = self._declarations(node.content)
        return f"{head}{{{body}}}"

    def _declarations(self, content: list) -> str:
        # Split on top-level ";" so anything tinycss2 cannot read as a
        # declaration (``*zoom:1``, nested rules) is kept as written.
        parsed: list[Declaration | str] = []
        for chunk in _split_on_semicolons(content):
            decl = tinycss2.parse_one_declaration(chunk, skip_comments=True)
            if isinstance(decl, Declaration):
                parsed.append(decl)
            else:
                parsed.append(tinycss2.serialize(chunk).strip())

        existing = {
            (item.lower_name, _value(item).lower())
            for item in parsed
            if isinstance(item, Declaration)
        }
        out: list[str] = []
        for item in parsed:
            if isinstance(item, str):
                out.append(item)
                continue
            out.extend(self._prefixed(item, existing))
            out.append(_declaration(item.name, _value(item), item.important))
        return ";".join(out)

    def _prefixed(self, decl: Declaration, existing: set[tuple[str, str]]) -> list[str]:
        value = _value(decl)
        result: list[str] = []
        for vendor in _PREFIXED_PROPERTIES.get(decl.lower_name, ()):
            if vendor not in self.vendors:
                continue
            name = f"{vendor}{decl.lower_name}"
            if any(seen == name for seen, _ in existing):
                continue
            result.append(_declaration(name, value, decl.important))
        for vendor in _PREFIXED_VALUES.get((decl.lower_name, value.lower()), ()):
            if vendor not in self.vendors:
                continue
            prefixed_value = f"{vendor}{value}"
            if (decl.lower_name, prefixed_value.lower()) in existing:
                continue
            result.append(_declaration(decl.name, prefixed_value, decl.important))
        return result


def _value(decl: Declaration) -> str:
    return tinycss2.serialize(decl.value).strip()


def _declaration(name: str, value: str, important: bool) -> str:
    return f"{name}:{value}!important" if important else f"{name}:{value}"


class _Unparsed(Exception):
    """Raised inside the serializer when a rule cannot be rebuilt."""


def _holds_rules(node: AtRule) -> bool:
    keyword = node.lower_at_keyword
    if keyword in _RULE_LIST_AT_RULES or keyword.endswith("keyframes"):
        return True
    # @scope, @starting-style, @-moz-document, ...: nested blocks mean rules
    return any(token.type == "{} block" for token in node.content)


def _split_on_semicolons(content: list) -> list[list]:
    chunks: list[list] = [[]]
    for token in content:
        if token.type == "literal" and token.value == ";":
            chunks.append([])
        else:
            chunks[-1].append(token)
    return [
        chunk
        for chunk in chunks
        if any(token.type not in ("whitespace", "comment") for token in chunk)
    ]
