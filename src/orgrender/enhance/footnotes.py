"""Footnote reference/definition discovery and id assignment."""

import re
from dataclasses import dataclass, field
from typing import Iterable

from ..core.model import (
    Block,
    Document,
    FootnoteDefinition,
    FootnoteRef,
    FootnoteReference,
    block_inlines,
)

_REFERENCE_RE = re.compile(r"\[fn:([^\]\s]+)\]")
DEFINITION_RE = re.compile(r"^\[fn:([^\]\s]+)\]\s+(.+)$")


def ref_id(label: str, ordinal: int) -> str:
    return f"fn-ref-{label}-{ordinal}"


def def_id(label: str) -> str:
    return f"fn-def-{label}"


def find_references(text: str) -> list[FootnoteReference]:
    """Every `[fn:label]` in `text` with its char offset, skipping definition lines."""
    refs = []
    offset = 0
    for line in text.split("\n"):
        if not DEFINITION_RE.match(line.strip()):
            for m in _REFERENCE_RE.finditer(line):
                refs.append(FootnoteReference(label=m.group(1), position=offset + m.start()))
        offset += len(line) + 1
    return refs


def find_definitions(text: str) -> list[FootnoteDefinition]:
    """Every `[fn:label] content` line in `text`, in source order."""
    defs = []
    for line in text.split("\n"):
        m = DEFINITION_RE.match(line.strip())
        if m:
            defs.append(FootnoteDefinition(label=m.group(1), content=m.group(2).strip()))
    return defs


@dataclass
class FootnoteIndex:
    """
    Ids for one document's footnotes.

    `reference_ids` maps a reference's source position to its element id,
    `reference_map` groups those ids by label in source order, and
    `definitions` holds the first definition seen for each label.
    """

    reference_ids: dict[int, str] = field(default_factory=dict)
    reference_map: dict[str, list[str]] = field(default_factory=dict)
    definitions: dict[str, FootnoteDefinition] = field(default_factory=dict)

    def id_for(self, ref: FootnoteRef) -> str | None:
        return self.reference_ids.get(ref.position)

    def backlinks(self, label: str) -> list[str]:
        """Hrefs pointing back at the references to `label`."""
        ids = self.reference_map.get(label)
        if not ids:
            return [f"#fn-ref-{label}"]
        return [f"#{i}" for i in ids]

    @property
    def unresolved(self) -> list[str]:
        """Labels referenced but never defined."""
        return [label for label in self.reference_map if label not in self.definitions]


def _collect(blocks: Iterable[Block]) -> tuple[list[FootnoteRef], list[FootnoteDefinition]]:
    refs: list[FootnoteRef] = []
    defs: list[FootnoteDefinition] = []
    for block in blocks:
        if isinstance(block, FootnoteDefinition):
            defs.append(block)
            continue
        refs.extend(node for node in block_inlines(block) if isinstance(node, FootnoteRef))
    return refs, defs


def resolve_footnotes(document: Document | Iterable[Block]) -> FootnoteIndex:
    """Assign deterministic ids to every footnote reference.

    The n-th reference in source order (counting all labels) gets
    `fn-ref-<label>-<n>` and points at `fn-def-<label>`.

    Args:
        document: A Document or its blocks

    Returns:
        FootnoteIndex
    """
    blocks = document.blocks if isinstance(document, Document) else document
    refs, defs = _collect(blocks)

    index = FootnoteIndex()
    for ordinal, ref in enumerate(sorted(refs, key=lambda r: r.position), start=1):
        rid = ref_id(ref.label, ordinal)
        index.reference_ids[ref.position] = rid
        index.reference_map.setdefault(ref.label, []).append(rid)
    for definition in defs:
        index.definitions.setdefault(definition.label, definition)
    return index
