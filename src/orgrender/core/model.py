from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Iterator, Literal, Union

TimestampKind = Literal["deadline", "scheduled", "closed"]
Checkbox = Literal["unchecked", "checked", "partial"]


@dataclass(frozen=True)
class Timestamp:
    start: datetime
    end: datetime | None = None
    active: bool = True  # "<...>" is active, "[...]" is inactive
    has_time: bool = False
    raw: str = ""
    start_text: str = ""  # display label, brackets stripped
    end_text: str | None = None

    @property
    def is_range(self) -> bool:
        return self.end is not None


@dataclass(frozen=True)
class TimestampEntry:
    kind: TimestampKind
    timestamp: Timestamp
    source_line: int  # zero-based line index in the scanned text
    raw_text: str

    @property
    def start(self) -> datetime:
        return self.timestamp.start

    @property
    def end(self) -> datetime | None:
        return self.timestamp.end

    @property
    def has_time(self) -> bool:
        return self.timestamp.has_time

    @property
    def active(self) -> bool:
        return self.timestamp.active


@dataclass(frozen=True)
class FootnoteReference:
    label: str
    position: int


# Inline nodes


@dataclass(frozen=True)
class Text:
    value: str


@dataclass(frozen=True)
class Bold:
    children: tuple[Inline, ...]


@dataclass(frozen=True)
class Italic:
    children: tuple[Inline, ...]


@dataclass(frozen=True)
class Code:
    value: str  # verbatim, never inline-formatted


@dataclass(frozen=True)
class Strike:
    children: tuple[Inline, ...]


@dataclass(frozen=True)
class Link:
    target: str
    display: str | None = None
    external: bool = False


@dataclass(frozen=True)
class TimestampSpan:
    timestamp: Timestamp


@dataclass(frozen=True)
class FootnoteRef:
    label: str
    position: int  # char offset in the scanned text, unique per occurrence


@dataclass(frozen=True)
class TodoBadge:
    keyword: str


@dataclass(frozen=True)
class PriorityBadge:
    level: str


Inline = Union[
    Text, Bold, Italic, Code, Strike, Link, TimestampSpan, FootnoteRef, TodoBadge, PriorityBadge
]


# Logbook entries


@dataclass(frozen=True)
class StateChange:
    to_state: str
    from_state: str | None
    timestamp: datetime
    note: str | None = None
    raw: str = ""


@dataclass(frozen=True)
class Clock:
    start: datetime
    end: datetime | None = None
    note: str | None = None
    raw: str = ""

    @property
    def ongoing(self) -> bool:
        return self.end is None

    @property
    def duration(self) -> timedelta | None:
        if self.end is None:
            return None
        return self.end - self.start


LogbookEntry = Union[StateChange, Clock]


# Blocks


@dataclass(frozen=True)
class Paragraph:
    text: str
    children: tuple[Inline, ...] = ()


@dataclass(frozen=True)
class Heading:
    level: int
    text: str
    children: tuple[Inline, ...] = ()
    tags: tuple[str, ...] = ()
    todo: str | None = None
    priority: str | None = None

    def __post_init__(self) -> None:
        # Org allows arbitrarily deep outlines; HTML stops at h6
        object.__setattr__(self, "level", max(1, min(6, self.level)))


@dataclass(frozen=True)
class ListItem:
    text: str
    children: tuple[Inline, ...] = ()
    checkbox: Checkbox | None = None


@dataclass(frozen=True)
class ListBlock:
    ordered: bool
    items: tuple[ListItem, ...] = ()


@dataclass(frozen=True)
class TableCell:
    text: str
    children: tuple[Inline, ...] = ()


@dataclass(frozen=True)
class Table:
    rows: tuple[tuple[TableCell, ...], ...]
    header_row_index: int | None = None  # rows before this index are header rows

    @property
    def header_rows(self) -> tuple[tuple[TableCell, ...], ...]:
        if self.header_row_index is None:
            return ()
        return self.rows[: self.header_row_index]

    @property
    def body_rows(self) -> tuple[tuple[TableCell, ...], ...]:
        if self.header_row_index is None:
            return self.rows
        return self.rows[self.header_row_index :]


@dataclass(frozen=True)
class CodeBlock:
    language: str | None
    code: str


@dataclass(frozen=True)
class Rule:
    pass


@dataclass(frozen=True)
class Empty:
    pass


@dataclass(frozen=True)
class Planning:
    entries: tuple[TimestampEntry, ...]


@dataclass(frozen=True)
class Logbook:
    entries: tuple[LogbookEntry, ...]


@dataclass(frozen=True)
class FootnoteDefinition:
    label: str
    content: str
    children: tuple[Inline, ...] = ()


Block = Union[
    Paragraph,
    Heading,
    ListBlock,
    Table,
    CodeBlock,
    Rule,
    Empty,
    Planning,
    Logbook,
    FootnoteDefinition,
]


@dataclass(frozen=True)
class Document:
    metadata: "Metadata"
    blocks: tuple[Block, ...] = field(default_factory=tuple)


def iter_inline(nodes: tuple[Inline, ...] | list[Inline]) -> Iterator[Inline]:
    """Yield every inline node depth-first, in source order."""
    for node in nodes:
        yield node
        if isinstance(node, (Bold, Italic, Strike)):
            yield from iter_inline(node.children)


def block_inlines(block: Block) -> Iterator[Inline]:
    """Yield the inline nodes that render in the flow of `block`."""
    if isinstance(block, (Paragraph, Heading, FootnoteDefinition)):
        yield from iter_inline(block.children)
    elif isinstance(block, ListBlock):
        for item in block.items:
            yield from iter_inline(item.children)
    elif isinstance(block, Table):
        for row in block.rows:
            for cell in row:
                yield from iter_inline(cell.children)
