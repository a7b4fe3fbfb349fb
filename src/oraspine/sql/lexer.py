"""
Literal-aware masking of SQL text.

Every rewriting stage works on plain text, but none of them may touch the
inside of a string literal or a comment: ``'SELECT x'`` is data, and an
``/*+ INDEX(t) */`` hint must reach Oracle byte for byte. ``MaskedQuery``
finds those spans once, up front, and swaps each for an opaque marker made
of private-use code points. The stages then run ordinary regexes over the
masked text, and ``render()`` puts the spans back at the end.

Architecture:
    ::

        "SELECT 'a''b', '' FROM {t} -- note"
                │  lex()
                ▼
        text  : "SELECT \\ue0000\\ue001, \\ue0001\\ue001 FROM {t} \\ue0002\\ue001"
        spans : ["'a''b'", "''", "-- note"]
        empty : {1}
                │  stages ... render()
                ▼
        "SELECT 'a''b', '^' FROM ..."

Features:
    - Single-quoted literals with doubled-quote escapes
    - ``--`` line comments and ``/* */`` block comments (hints included)
    - Double-quoted identifiers are recognised so that a ``'`` inside
      them never opens a literal; they stay visible in the text
    - Empty literals (``''``) are remembered so later stages can find them

Examples:
    >>> masked = MaskedQuery.lex("SELECT '' FROM DUAL")
    >>> masked.empty_literals
    {0}
    >>> masked.render()
    "SELECT '' FROM DUAL"

Tags:
    sql, lexer, literals, masking
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

MARK_OPEN = "\ue000"
MARK_CLOSE = "\ue001"

MARKER_RE = re.compile(f"{MARK_OPEN}(\\d+){MARK_CLOSE}")

_SPAN_RE = re.compile(
    r"""(?P<ident>"[^"]*")"""
    r"""|(?P<literal>'(?:[^']|'')*')"""
    r"""|(?P<comment>--[^\n]*|/\*.*?\*/)""",
    re.DOTALL,
)


def marker(index: int) -> str:
    """The placeholder text standing in for span ``index``."""
    return f"{MARK_OPEN}{index}{MARK_CLOSE}"


@dataclass
class MaskedQuery:
    """SQL text with its literals and comments replaced by markers."""

    text: str
    spans: list[str] = field(default_factory=list)
    empty_literals: set[int] = field(default_factory=set)

    @classmethod
    def lex(cls, query: str) -> MaskedQuery:
        spans: list[str] = []
        empty: set[int] = set()
        out: list[str] = []
        pos = 0
        for match in _SPAN_RE.finditer(query):
            if match.lastgroup == "ident":
                continue
            out.append(query[pos:match.start()])
            span = match.group(0)
            if span == "''":
                empty.add(len(spans))
            out.append(marker(len(spans)))
            spans.append(span)
            pos = match.end()
        out.append(query[pos:])
        return cls("".join(out), spans, empty)

    def is_empty_literal(self, token: str) -> bool:
        """True when ``token`` is the marker of an empty ``''`` literal."""
        match = MARKER_RE.fullmatch(token)
        return bool(match) and int(match.group(1)) in self.empty_literals

    def literal(self, token: str) -> str | None:
        """Original text behind a marker, or None if ``token`` is not one."""
        match = MARKER_RE.fullmatch(token)
        if not match:
            return None
        return self.spans[int(match.group(1))]

    def replace_span(self, index: int, text: str) -> None:
        self.spans[index] = text

    def render(self) -> str:
        return MARKER_RE.sub(lambda m: self.spans[int(m.group(1))], self.text)

    def copy(self) -> MaskedQuery:
        return MaskedQuery(self.text, list(self.spans), set(self.empty_literals))


__all__ = ["MARKER_RE", "MaskedQuery", "marker"]
