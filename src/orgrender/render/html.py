"""HTML serialization of the Org document tree."""

from datetime import datetime
from typing import Iterable

from ..core.model import (
    Block,
    Bold,
    Clock,
    Code,
    CodeBlock,
    Empty,
    FootnoteDefinition,
    FootnoteRef,
    Heading,
    Inline,
    Italic,
    Link,
    ListBlock,
    Logbook,
    Paragraph,
    Planning,
    PriorityBadge,
    Rule,
    StateChange,
    Strike,
    Table,
    TableCell,
    Text,
    Timestamp,
    TimestampEntry,
    TimestampSpan,
    TodoBadge,
)
from ..core.ports import Highlighter
from ..core.utils import escape_html
from ..enhance.footnotes import FootnoteIndex, def_id
from ..enhance.logbook import format_duration, format_total, summarize
from ..enhance.timestamps import Urgency, classify
from ..errors import ErrorPolicy
from .classes import ClassMap

# heroicons outline paths
CLOCK_PATH = "M12 8v4l3 3m6-3a9 9 0 11-18 0 9 9 0 0118 0z"
ARROW_PATH = "M13 7l5 5-5 5M6 12h12"
CALENDAR_PATH = (
    "M8 7V3m8 4V3m-9 8h10M5 21h14a2 2 0 002-2V7a2 2 0 00-2-2H5a2 2 0 00-2 2v12a2 2 0 002 2z"
)
ALERT_PATH = (
    "M12 9v2m0 4h.01m-6.938 4h13.856c1.54 0 2.502-1.667 1.732-3L13.732 4"
    "c-.77-1.333-2.694-1.333-3.464 0L3.34 16c-.77 1.333.192 3 1.732 3z"
)
CHECK_PATH = "M9 12l2 2 4-4m6 2a9 9 0 11-18 0 9 9 0 0118 0z"

_PLANNING_ICONS = {"deadline": ALERT_PATH, "scheduled": CALENDAR_PATH, "closed": CHECK_PATH}
_PLANNING_LABELS = {"deadline": "DEADLINE:", "scheduled": "SCHEDULED:", "closed": "CLOSED:"}


def _attrs(attrs: dict[str, str | None]) -> str:
    """Render attributes, skipping None and empty class values."""
    parts = []
    for name, value in attrs.items():
        if value is None or (name == "class" and not value):
            continue
        parts.append(f' {name}="{escape_html(value)}"')
    return "".join(parts)


def tag(name: str, body: str, **attrs: str | None) -> str:
    """Wrap already-safe `body` in an element. Attribute names use `_` for `-`."""
    rendered = _attrs({k.rstrip("_").replace("_", "-"): v for k, v in attrs.items()})
    return f"<{name}{rendered}>{body}</{name}>"


def icon(path: str, classes: str) -> str:
    return (
        f'<svg{_attrs({"class": classes})} fill="none" stroke="currentColor" '
        f'viewBox="0 0 24 24" aria-hidden="true"><path stroke-linecap="round" '
        f'stroke-linejoin="round" stroke-width="2" d="{path}"/></svg>'
    )


def _iso(value: datetime, has_time: bool = True) -> str:
    return value.strftime("%Y-%m-%dT%H:%M" if has_time else "%Y-%m-%d")


class HtmlRenderer:
    """
    Serialize blocks and inline nodes to HTML.

    Every text run and attribute value goes through escape_html exactly once;
    markup only ever comes from nodes, never from text.

    Args:
        classes: ClassMap for class attributes; defaults when None
        highlighter: Highlighter for source blocks; plain escaping when None
        now: Reference instant for planning urgency; defaults to datetime.now()
    """

    def __init__(
        self,
        classes: ClassMap | None = None,
        highlighter: Highlighter | None = None,
        now: datetime | None = None,
    ):
        self.classes = classes or ClassMap()
        self.highlighter = highlighter
        self.now = now
        self._footnotes: FootnoteIndex | None = None

    def render(
        self,
        blocks: Iterable[Block],
        footnotes: FootnoteIndex | None = None,
        policy: ErrorPolicy | None = None,
    ) -> str:
        """Render a document body followed by its footnotes section.

        Args:
            blocks: Blocks in document order
            footnotes: Ids from resolve_footnotes(); references render
                without ids when None
            policy: Decides what happens when one block fails to render

        Returns:
            HTML with one line per top-level block
        """
        policy = policy or ErrorPolicy()
        self._footnotes = footnotes
        blocks = list(blocks)
        parts = []
        for block in blocks:
            if isinstance(block, FootnoteDefinition):
                continue
            html = policy.guard("html", type(block).__name__, lambda: self.render_block(block), "")
            if html:
                parts.append(html)
        section = policy.guard(
            "html", "footnotes", lambda: self.render_footnotes(blocks, footnotes), ""
        )
        if section:
            parts.append(section)
        return "\n".join(parts)

    # Blocks

    def render_block(self, block: Block) -> str:
        c = self.classes
        if isinstance(block, Paragraph):
            return tag("p", self.render_inline(block.children), class_=c.get("elements", "p"))
        if isinstance(block, Heading):
            body = self.render_inline(block.children)
            body += "".join(
                tag("span", escape_html(t), class_=c.get("headers", "tag")) for t in block.tags
            )
            return tag(f"h{block.level}", body, class_=c.get("headers", block.level))
        if isinstance(block, ListBlock):
            return self._list(block)
        if isinstance(block, Table):
            return self._table(block)
        if isinstance(block, CodeBlock):
            return self._code(block)
        if isinstance(block, Rule):
            return f'<hr{_attrs({"class": c.get("elements", "hr")})} />'
        if isinstance(block, Planning):
            return self._planning(block)
        if isinstance(block, Logbook):
            return self._logbook(block)
        if isinstance(block, (Empty, FootnoteDefinition)):
            return ""
        raise TypeError(f"unknown block type: {type(block).__name__}")

    def _list(self, block: ListBlock) -> str:
        c = self.classes
        items = []
        for item in block.items:
            box = ""
            if item.checkbox is not None:
                box = "<input" + _attrs(
                    {
                        "type": "checkbox",
                        "class": c.get("elements", "checkbox"),
                        "data-state": item.checkbox,
                    }
                )
                box += " checked disabled />" if item.checkbox == "checked" else " disabled />"
            items.append(tag("li", box + self.render_inline(item.children), class_=c.get("elements", "li")))
        name = "ol" if block.ordered else "ul"
        return tag(name, "".join(items), class_=c.get("elements", name))

    def _cells(self, name: str, row: tuple[TableCell, ...]) -> str:
        cls = self.classes.get("elements", name)
        return tag("tr", "".join(tag(name, self.render_inline(cell.children), class_=cls) for cell in row))

    def _table(self, block: Table) -> str:
        c = self.classes
        body = ""
        if block.header_rows:
            body += tag(
                "thead",
                "".join(self._cells("th", row) for row in block.header_rows),
                class_=c.get("elements", "thead"),
            )
        body += tag(
            "tbody",
            "".join(self._cells("td", row) for row in block.body_rows),
            class_=c.get("elements", "tbody"),
        )
        return tag("table", body, class_=c.get("elements", "table"))

    def _code(self, block: CodeBlock) -> str:
        c = self.classes
        highlighted = None
        if self.highlighter is not None and block.language:
            highlighted = self.highlighter.highlight(block.code, block.language)
        if highlighted is not None:
            code = tag("code", highlighted, class_=f"language-{block.language}")
            return tag(
                "pre",
                code,
                class_=f'highlight {c.get("elements", "pre_highlight")}'.strip(),
                data_language=block.language,
            )
        return tag(
            "pre",
            tag("code", escape_html(block.code)),
            class_=c.get("elements", "pre"),
            data_language=block.language,
        )

    # Timestamps

    def _stamp_parts(self, stamp: Timestamp) -> str:
        """The start fragment, plus connector and end fragment for a range."""
        start = tag("time", escape_html(stamp.start_text), datetime=_iso(stamp.start, stamp.has_time))
        if stamp.end is None:
            return start
        end_has_time = stamp.has_time or stamp.end.time() != datetime.min.time()
        end = tag("time", escape_html(stamp.end_text or ""), datetime=_iso(stamp.end, end_has_time))
        return start + icon(ARROW_PATH, self.classes.get("timestamps", "arrow_icon")) + end

    def render_timestamp(self, stamp: Timestamp) -> str:
        c = self.classes
        if stamp.is_range:
            key, path, icon_key = "range", CLOCK_PATH, "range_icon"
        else:
            key = "active" if stamp.active else "inactive"
            path, icon_key = CALENDAR_PATH, "icon"
        return tag(
            "span",
            icon(path, c.get("timestamps", icon_key)) + self._stamp_parts(stamp),
            class_=c.get("timestamps", key),
        )

    def _urgency_class(self, entry: TimestampEntry, urgency: Urgency) -> str:
        if entry.kind == "deadline":
            key = {
                Urgency.OVERDUE: "overdue",
                Urgency.TODAY: "due_today",
                Urgency.SOON: "due_soon",
            }.get(urgency)
        elif entry.kind == "scheduled":
            key = {Urgency.TODAY: "scheduled_today", Urgency.SOON: "scheduled_soon"}.get(urgency)
        else:
            key = None
        return self.classes.get("timestamps", key) if key else ""

    def _planning(self, block: Planning) -> str:
        c = self.classes
        now = self.now or datetime.now()
        entries = []
        for entry in block.entries:
            urgency = classify(entry, now)
            cls = " ".join(
                x
                for x in (
                    c.get("timestamps", "planning_entry"),
                    c.get("timestamps", entry.kind),
                    self._urgency_class(entry, urgency),
                )
                if x
            )
            body = (
                icon(_PLANNING_ICONS[entry.kind], c.get("timestamps", "icon"))
                + tag("span", _PLANNING_LABELS[entry.kind], class_=c.get("timestamps", "planning_label"))
                + self._stamp_parts(entry.timestamp)
            )
            entries.append(
                tag("span", body, class_=cls, data_kind=entry.kind, data_urgency=urgency.value)
            )
        return tag("div", "".join(entries), class_=c.get("timestamps", "planning"))

    # Logbook

    def _logbook(self, block: Logbook) -> str:
        c = self.classes
        summary = summarize(block.entries)
        stats = [f"{len(block.entries)} entries"]
        if summary.clocks:
            stats.append(f"Total {format_total(summary.total)}")
        if summary.ongoing:
            stats.append(f"{summary.ongoing} running")
        header = tag("span", "Logbook", class_=c.get("logbook", "title")) + tag(
            "span", escape_html(" · ".join(stats)), class_=c.get("logbook", "stats")
        )
        items = "".join(self._logbook_entry(entry) for entry in block.entries)
        return tag(
            "div",
            tag("div", header, class_=c.get("logbook", "header"))
            + tag("ul", items, class_=c.get("logbook", "list")),
            class_=c.get("logbook", "container"),
        )

    def _state_badge(self, state: str) -> str:
        c = self.classes
        cls = f'{c.get("logbook", "state")} {c.get("logbook", "state_" + state)}'.strip()
        return tag("span", escape_html(state), class_=cls)

    def _logbook_entry(self, entry: StateChange | Clock) -> str:
        c = self.classes
        arrow = icon(ARROW_PATH, c.get("timestamps", "arrow_icon"))
        if isinstance(entry, StateChange):
            body = ""
            if entry.from_state:
                body += self._state_badge(entry.from_state) + arrow
            body += self._state_badge(entry.to_state)
            body += tag(
                "time",
                escape_html(entry.timestamp.strftime("%Y-%m-%d %H:%M")),
                datetime=_iso(entry.timestamp),
                class_=c.get("logbook", "time"),
            )
            kind = "state_entry"
        else:
            body = tag(
                "time",
                escape_html(entry.start.strftime("%Y-%m-%d %H:%M")),
                datetime=_iso(entry.start),
                class_=c.get("logbook", "time"),
            )
            if entry.end is None:
                body += tag("span", "Running", class_=c.get("logbook", "ongoing"))
            else:
                body += arrow + tag(
                    "time",
                    escape_html(entry.end.strftime("%Y-%m-%d %H:%M")),
                    datetime=_iso(entry.end),
                    class_=c.get("logbook", "time"),
                )
                body += tag(
                    "span", escape_html(format_duration(entry.duration)), class_=c.get("logbook", "duration")
                )
            kind = "clock_entry"
        if entry.note:
            body += tag("p", escape_html(entry.note), class_=c.get("logbook", "note"))
        return tag("li", body, class_=c.get("logbook", kind))

    # Footnotes

    def render_footnotes(
        self, blocks: Iterable[Block], footnotes: FootnoteIndex | None = None
    ) -> str:
        """Trailing section with one entry per defined label and its back-links."""
        c = self.classes
        definitions: dict[str, FootnoteDefinition] = {}
        for block in blocks:
            if isinstance(block, FootnoteDefinition):
                definitions.setdefault(block.label, block)
        if not definitions:
            return ""
        index = footnotes or FootnoteIndex()

        entries = []
        for label, definition in definitions.items():
            hrefs = index.backlinks(label)
            links = "".join(
                tag(
                    "a",
                    "↩" if len(hrefs) == 1 else f"↩{n}",
                    href=href,
                    class_=c.get("footnotes", "backlink"),
                    aria_label="Back to reference" if len(hrefs) == 1 else f"Back to reference {n}",
                )
                for n, href in enumerate(hrefs, start=1)
            )
            row = (
                tag("span", escape_html(label), class_=c.get("footnotes", "label"))
                + tag("span", self.render_inline(definition.children), class_=c.get("footnotes", "content"))
                + tag("span", links, class_=c.get("footnotes", "backlinks"))
            )
            entries.append(
                tag(
                    "div",
                    tag("div", row, class_=c.get("footnotes", "row")),
                    id=def_id(label),
                    class_=c.get("footnotes", "definition"),
                )
            )
        return tag(
            "section",
            tag("h2", "Footnotes", class_=c.get("footnotes", "title"))
            + tag("div", "".join(entries), class_=c.get("footnotes", "list")),
            class_=c.get("footnotes", "section"),
            role="doc-endnotes",
        )

    # Inline

    def render_inline(self, nodes: Iterable[Inline]) -> str:
        return "".join(self._inline(node) for node in nodes)

    def _inline(self, node: Inline) -> str:
        c = self.classes
        if isinstance(node, Text):
            return escape_html(node.value)
        if isinstance(node, Bold):
            return tag("strong", self.render_inline(node.children), class_=c.get("elements", "strong"))
        if isinstance(node, Italic):
            return tag("em", self.render_inline(node.children), class_=c.get("elements", "em"))
        if isinstance(node, Strike):
            return tag("del", self.render_inline(node.children), class_=c.get("elements", "del"))
        if isinstance(node, Code):
            return tag("code", escape_html(node.value), class_=c.get("elements", "code"))
        if isinstance(node, Link):
            extra = {"target": "_blank", "rel": "noopener noreferrer"} if node.external else {}
            return tag(
                "a",
                escape_html(node.display or node.target),
                href=node.target,
                class_=c.get("elements", "a"),
                **extra,
            )
        if isinstance(node, TimestampSpan):
            return self.render_timestamp(node.timestamp)
        if isinstance(node, FootnoteRef):
            index = self._footnotes
            return tag(
                "a",
                f"[{escape_html(node.label)}]",
                href=f"#{def_id(node.label)}",
                id=index.id_for(node) if index else None,
                class_=c.get("footnotes", "ref"),
                role="doc-noteref",
            )
        if isinstance(node, TodoBadge):
            return tag("span", escape_html(node.keyword), class_=c.get("todo_keywords", node.keyword))
        if isinstance(node, PriorityBadge):
            return tag(
                "span",
                f"#{escape_html(node.level)}",
                class_=c.get("priorities", node.level),
                aria_label=f"Priority {node.level}",
            )
        raise TypeError(f"unknown inline type: {type(node).__name__}")
