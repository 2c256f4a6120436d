"""Inline markup tokenizer for Org text."""

import re

from ..core.model import Bold, Code, FootnoteRef, Inline, Italic, Link, Strike, Text, TimestampSpan
from ..core.ports import InlineParser
from ..enhance.timestamps import TIMESTAMP_RE, parse_timestamp
from ..render.html import HtmlRenderer

# Checked in this order at every position
EMPHASIS = {
    "*": Bold,
    "/": Italic,
    "=": Code,
    "~": Code,
    "+": Strike,
}

# Characters allowed right before an opening / right after a closing delimiter
_PRE = set(" \t-({'\"")
_POST = set(" \t-.,;:!?')}[\"\\")

_LINK_RE = re.compile(r"\[\[([^\[\]]+)\](?:\[([^\[\]]+)\])?\]")
_FOOTNOTE_RE = re.compile(r"\[fn:([^\]\s]+)\]")
_EXTERNAL_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.\-]*://")
_UNSAFE_SCHEMES = ("javascript:", "vbscript:", "data:")


def is_external(target: str) -> bool:
    return bool(_EXTERNAL_RE.match(target)) or target.lower().startswith("mailto:")


def is_unsafe(target: str) -> bool:
    # browsers ignore embedded whitespace and control chars inside a scheme
    squashed = "".join(c for c in target if c.isprintable() and not c.isspace()).lower()
    return squashed.startswith(_UNSAFE_SCHEMES)


def _can_open(text: str, i: int) -> bool:
    if i + 1 >= len(text) or text[i + 1].isspace():
        return False
    return i == 0 or text[i - 1] in _PRE


def _find_close(text: str, i: int, delim: str) -> int:
    """Index of the delimiter closing the one at `i`, or -1."""
    for j in range(i + 2, len(text)):
        if text[j] != delim or text[j - 1].isspace():
            continue
        if j + 1 == len(text) or text[j + 1] in _POST:
            return j
    return -1


class OrgInlineParser(InlineParser):
    """
    Left-to-right tokenizer producing Inline nodes.

    Args:
        footnotes: When False, `[fn:label]` stays literal text (used inside
            footnote definitions)
    """

    def __init__(self, footnotes: bool = True):
        self.footnotes = footnotes

    def parse(self, text: str, base: int = 0) -> list[Inline]:
        """Tokenize `text`.

        Args:
            text: One line (or cell, or item) of Org text
            base: Offset of `text` within the scanned body, used to give
                footnote references unique positions

        Returns:
            Inline nodes with adjacent text merged
        """
        out: list[Inline] = []
        buf: list[str] = []

        def flush() -> None:
            if buf:
                out.append(Text("".join(buf)))
                buf.clear()

        i = 0
        while i < len(text):
            ch = text[i]

            node_cls = EMPHASIS.get(ch)
            if node_cls is not None and _can_open(text, i):
                close = _find_close(text, i, ch)
                if close != -1:
                    flush()
                    inner = text[i + 1 : close]
                    if node_cls is Code:
                        out.append(Code(inner))
                    else:
                        out.append(node_cls(tuple(self.parse(inner, base + i + 1))))
                    i = close + 1
                    continue

            if ch == "[":
                m = _LINK_RE.match(text, i)
                if m:
                    flush()
                    out.append(self._link(m.group(1).strip(), m.group(2)))
                    i = m.end()
                    continue
                if self.footnotes:
                    m = _FOOTNOTE_RE.match(text, i)
                    if m:
                        flush()
                        out.append(FootnoteRef(m.group(1), base + i))
                        i = m.end()
                        continue

            if ch in "<[":
                m = TIMESTAMP_RE.match(text, i)
                stamp = parse_timestamp(m.group(0)) if m else None
                if stamp is not None:
                    flush()
                    out.append(TimestampSpan(stamp))
                    i = m.end()
                    continue

            buf.append(ch)
            i += 1

        flush()
        return out

    def _link(self, target: str, display: str | None) -> Inline:
        display = display.strip() if display else None
        if is_unsafe(target):
            return Text(display or target)
        return Link(target=target, display=display, external=is_external(target))


def parse_inline(text: str, base: int = 0, footnotes: bool = True) -> list[Inline]:
    return OrgInlineParser(footnotes=footnotes).parse(text, base)


def format_inline(text: str, classes=None) -> str:
    """Render one line of Org inline markup straight to HTML.

    Args:
        text: Org text
        classes: Optional ClassMap

    Returns:
        Escaped HTML fragment
    """
    return HtmlRenderer(classes=classes).render_inline(parse_inline(text))
