import logging
import re
from enum import Enum

from ..core.model import (
    Block,
    CodeBlock,
    Empty,
    FootnoteDefinition,
    Heading,
    ListBlock,
    ListItem,
    Logbook,
    Paragraph,
    Planning,
    Rule,
    Table,
    TableCell,
)
from ..core.ports import BlockParser
from ..enhance.footnotes import DEFINITION_RE
from ..enhance.logbook import parse_logbook_lines
from ..enhance.timestamps import find_planning, is_planning_line
from ..errors import ErrorPolicy
from ..format.inline import OrgInlineParser

logger = logging.getLogger(__name__)

FENCE_START_RE = re.compile(r"^#\+begin_(src|example)(?:\s+(\S+))?", re.IGNORECASE)
FENCE_END_RE = re.compile(r"^#\+end_(src|example)\s*$", re.IGNORECASE)
HEADING_RE = re.compile(r"^(\*+)(?:\s+(.*?))?\s*$")
TAGS_RE = re.compile(r"^(.*?)\s+(:(?:[\w@#%]+:)+)$")
LIST_RE = re.compile(r"^(\s*)(?:(?P<bullet>[-+])|(?P<number>\d+)[.)])\s+(?P<text>.*)$")
CHECKBOX_RE = re.compile(r"^\[([ xX-])\]\s+")
RULE_RE = re.compile(r"^-{3,}$")
TABLE_SEPARATOR_RE = re.compile(r"^\|[-+:| ]*-[-+:| ]*\|$")

_CHECKBOX_STATES = {" ": "unchecked", "x": "checked", "X": "checked", "-": "partial"}


class ScanState(Enum):
    DEFAULT = "default"
    IN_LIST = "in_list"
    IN_CODE_BLOCK = "in_code_block"
    IN_TABLE = "in_table"
    IN_LOGBOOK = "in_logbook"


class _Scan:
    """Mutable state for a single parse() call."""

    def __init__(self, inline: OrgInlineParser, policy: ErrorPolicy):
        self.inline = inline
        self.policy = policy
        self.state = ScanState.DEFAULT
        self.blocks: list[Block] = []

        self.list_ordered = False
        self.list_items: list[tuple[str, int]] = []  # (raw text, body offset)
        self.table_rows: list[tuple[str, int]] = []  # (trimmed row, body offset)
        self.code_language: str | None = None
        self.code_kind = ""
        self.code_lines: list[str] = []
        self.logbook_lines: list[str] = []

    def emit(self, unit: str, build) -> None:
        self.blocks.append(self.policy.guard("blocks", unit, build, Empty()))

    def flush_list(self) -> None:
        if not self.list_items:
            return
        items, ordered = list(self.list_items), self.list_ordered
        self.list_items.clear()
        self.emit("list", lambda: self._build_list(items, ordered))
        if self.state is ScanState.IN_LIST:
            self.state = ScanState.DEFAULT

    def _build_list(self, items: list[tuple[str, int]], ordered: bool) -> ListBlock:
        built = []
        for text, offset in items:
            checkbox = None
            box = CHECKBOX_RE.match(text)
            if box:
                checkbox = _CHECKBOX_STATES[box.group(1)]
                offset += box.end()
                text = text[box.end() :]
            built.append(
                ListItem(text=text, children=tuple(self.inline.parse(text, offset)), checkbox=checkbox)
            )
        return ListBlock(ordered=ordered, items=tuple(built))

    def flush_table(self) -> None:
        if not self.table_rows:
            return
        rows = list(self.table_rows)
        self.table_rows.clear()
        self.emit("table", lambda: self._build_table(rows))
        if self.state is ScanState.IN_TABLE:
            self.state = ScanState.DEFAULT

    def _build_table(self, source_rows: list[tuple[str, int]]) -> Table:
        rows = []
        header_row_index = None
        for row, offset in source_rows:
            if TABLE_SEPARATOR_RE.match(row):
                if header_row_index is None:
                    header_row_index = len(rows)
                continue
            cells = []
            pos = 1
            for raw in row[1:-1].split("|"):
                text = raw.strip()
                start = offset + pos + (len(raw) - len(raw.lstrip()))
                cells.append(TableCell(text=text, children=tuple(self.inline.parse(text, start))))
                pos += len(raw) + 1
            rows.append(tuple(cells))
        return Table(rows=tuple(rows), header_row_index=header_row_index)

    def flush(self) -> None:
        self.flush_list()
        self.flush_table()

    def close_code(self) -> None:
        language, code = self.code_language, "\n".join(self.code_lines)
        self.emit("code block", lambda: CodeBlock(language=language, code=code))
        self.code_lines = []
        self.code_language = None
        self.state = ScanState.DEFAULT

    def close_logbook(self) -> None:
        lines = list(self.logbook_lines)
        self.emit("logbook", lambda: Logbook(entries=tuple(parse_logbook_lines(lines))))
        self.logbook_lines = []
        self.state = ScanState.DEFAULT

    def line(self, index: int, line: str, offset: int) -> None:
        trimmed = line.strip()
        lead = len(line) - len(line.lstrip())

        # logbook drawer; every line up to :END: belongs to it
        if self.state is ScanState.IN_LOGBOOK:
            if trimmed.upper() == ":END:":
                self.close_logbook()
            else:
                self.logbook_lines.append(line)
            return

        # 1-3: fenced blocks
        if self.state is ScanState.IN_CODE_BLOCK:
            end = FENCE_END_RE.match(trimmed)
            if end and end.group(1).lower() == self.code_kind:
                self.close_code()
            else:
                self.code_lines.append(line)
            return
        fence = FENCE_START_RE.match(trimmed)
        if fence:
            self.flush()
            self.state = ScanState.IN_CODE_BLOCK
            self.code_kind = fence.group(1).lower()
            self.code_language = fence.group(2) if self.code_kind == "src" else None
            return

        # 4: logbook drawer opens
        if trimmed.upper() == ":LOGBOOK:":
            self.flush()
            self.state = ScanState.IN_LOGBOOK
            return

        # 5-6: tables
        if trimmed.startswith("|") and trimmed.endswith("|") and len(trimmed) > 1:
            self.flush_list()
            self.state = ScanState.IN_TABLE
            self.table_rows.append((trimmed, offset + lead))
            return
        if self.state is ScanState.IN_TABLE:
            self.flush_table()

        # 7: heading
        heading = HEADING_RE.match(line)
        if heading:
            self.flush()
            level = len(heading.group(1))
            title = heading.group(2) or ""
            start = offset + (heading.start(2) if heading.group(2) else len(line))
            self.emit("heading", lambda: self._heading(level, title, start))
            return

        # 8: list item
        item = LIST_RE.match(line)
        if item:
            self.flush_table()
            ordered = item.group("number") is not None
            if self.list_items and ordered != self.list_ordered:
                self.flush_list()
            self.list_ordered = ordered
            self.list_items.append((item.group("text").rstrip(), offset + item.start("text")))
            self.state = ScanState.IN_LIST
            return

        # 9: rule
        if RULE_RE.match(trimmed):
            self.flush()
            self.emit("rule", Rule)
            return

        # 10: blank
        if not trimmed:
            self.flush()
            return

        # 11: planning
        if is_planning_line(line):
            entries = find_planning(line, index)
            if entries:
                self.flush()
                self.emit("planning", lambda: Planning(entries=tuple(entries)))
                return

        # 12: footnote definition
        definition = DEFINITION_RE.match(trimmed)
        if definition:
            self.flush()
            label, content = definition.group(1), definition.group(2).strip()
            self.emit("footnote definition", lambda: self._definition(label, content))
            return

        # 13: paragraph
        self.flush()
        self.emit(
            "paragraph",
            lambda: Paragraph(text=trimmed, children=tuple(self.inline.parse(trimmed, offset + lead))),
        )

    def _heading(self, level: int, title: str, start: int) -> Heading:
        tags: tuple[str, ...] = ()
        m = TAGS_RE.match(title)
        if m:
            title = m.group(1)
            tags = tuple(t for t in m.group(2).split(":") if t)
        return Heading(
            level=level,
            text=title,
            children=tuple(self.inline.parse(title, start)),
            tags=tags,
        )

    def _definition(self, label: str, content: str) -> FootnoteDefinition:
        # references inside a definition are not linked
        children = OrgInlineParser(footnotes=False).parse(content)
        return FootnoteDefinition(label=label, content=content, children=tuple(children))

    def finish(self) -> list[Block]:
        if self.state is ScanState.IN_CODE_BLOCK:
            logger.debug("unterminated code block closed at end of input")
            self.close_code()
        elif self.state is ScanState.IN_LOGBOOK:
            logger.debug("unterminated logbook drawer closed at end of input")
            self.close_logbook()
        self.flush()
        return self.blocks


class OrgParser(BlockParser):
    """Line-oriented block scanner for a metadata-free Org body."""

    def __init__(self, inline: OrgInlineParser | None = None):
        self.inline = inline or OrgInlineParser()

    def parse(self, text: str, policy: ErrorPolicy | None = None) -> list[Block]:
        scan = _Scan(self.inline, policy or ErrorPolicy())
        offset = 0
        for index, line in enumerate(text.split("\n")):
            scan.line(index, line, offset)
            offset += len(line) + 1
        return scan.finish()
