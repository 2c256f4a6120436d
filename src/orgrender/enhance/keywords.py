"""TODO keyword and priority cookie annotation."""

import re
from dataclasses import replace
from typing import Iterable

from ..core.model import (
    Block,
    Bold,
    Heading,
    Inline,
    Italic,
    Paragraph,
    PriorityBadge,
    Strike,
    Text,
    TodoBadge,
)
from ..core.ports import BlockAnnotator

DEFAULT_TODO_KEYWORDS = ("TODO", "DONE", "DOING", "NEXT", "WAITING", "CANCELLED", "CANCELED")
DEFAULT_PRIORITY_LEVELS = ("A", "B", "C")


class KeywordAnnotator(BlockAnnotator):
    """
    Turn a leading TODO keyword of a heading into a TodoBadge and every
    `[#X]` priority cookie in heading/paragraph text into a PriorityBadge.

    Cookies are found in text at any depth of bold, italic or strikethrough
    nesting; code spans and links keep their cookies as written.
    """

    def __init__(
        self,
        todo_keywords: Iterable[str] = DEFAULT_TODO_KEYWORDS,
        priority_levels: Iterable[str] = DEFAULT_PRIORITY_LEVELS,
    ):
        keywords = sorted(set(todo_keywords), key=len, reverse=True)
        levels = list(priority_levels)
        self._todo_re = (
            re.compile(r"^(%s)(?=\s|$)\s*" % "|".join(re.escape(k) for k in keywords))
            if keywords
            else None
        )
        self._priority_re = (
            re.compile(r"\[#(%s)\]" % "|".join(re.escape(p) for p in levels)) if levels else None
        )

    def annotate(self, block: Block) -> Block:
        if isinstance(block, Heading):
            children, todo = self._todo(block.children)
            children, priority = self._priorities(children)
            return replace(block, children=tuple(children), todo=todo, priority=priority)
        if isinstance(block, Paragraph):
            children, _ = self._priorities(block.children)
            return replace(block, children=tuple(children))
        return block

    def _todo(self, children: tuple[Inline, ...]) -> tuple[list[Inline], str | None]:
        if self._todo_re is None or not children or not isinstance(children[0], Text):
            return list(children), None
        m = self._todo_re.match(children[0].value)
        if not m:
            return list(children), None
        rest = children[0].value[m.end() :]
        out: list[Inline] = [TodoBadge(m.group(1))]
        if rest:
            out.append(Text(rest))
        out.extend(children[1:])
        return out, m.group(1)

    def _priorities(self, children) -> tuple[list[Inline], str | None]:
        if self._priority_re is None:
            return list(children), None
        out: list[Inline] = []
        first = None
        for node in children:
            if isinstance(node, (Bold, Italic, Strike)):
                inner, level = self._priorities(node.children)
                out.append(replace(node, children=tuple(inner)))
                first = first or level
                continue
            if not isinstance(node, Text):
                out.append(node)
                continue
            pos = 0
            for m in self._priority_re.finditer(node.value):
                if m.start() > pos:
                    out.append(Text(node.value[pos : m.start()]))
                out.append(PriorityBadge(m.group(1)))
                first = first or m.group(1)
                pos = m.end()
            if pos < len(node.value):
                out.append(Text(node.value[pos:]))
        return out, first


def annotate(blocks: Iterable[Block], options=None) -> list[Block]:
    """Annotate every block with the keywords and tiers from `options`.

    Args:
        blocks: Scanned blocks, in order
        options: RenderOptions; defaults apply when None

    Returns:
        New list of blocks; blocks without headings or paragraphs are returned unchanged.
    """
    if options is None:
        annotator = KeywordAnnotator()
    else:
        annotator = KeywordAnnotator(options.todo_keywords, options.priority_levels)
    return [annotator.annotate(block) for block in blocks]
