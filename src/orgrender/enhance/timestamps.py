"""Org timestamp parsing, planning lines and urgency classification."""

import re
from datetime import datetime, time, timedelta
from enum import Enum

from ..core.model import Timestamp, TimestampEntry, TimestampKind
from ..core.utils import strip_brackets

SOON_DAYS = 3


class Urgency(str, Enum):
    OVERDUE = "overdue"
    TODAY = "today"
    SOON = "soon"
    NORMAL = "normal"


PLANNING_KINDS: dict[str, TimestampKind] = {
    "DEADLINE": "deadline",
    "SCHEDULED": "scheduled",
    "CLOSED": "closed",
}

# "2024-01-15", "2024-01-15 Mon", "2024-01-15 Mon 10:00", "2024-01-15 Mon 10:00-12:00",
# optionally followed by repeaters/warnings ("+1w", ".+1d", "++2m", "-3d") which are ignored
_DATE_RE = re.compile(
    r"^(?P<date>\d{4}-\d{2}-\d{2})"
    r"(?:\s+(?P<dow>[^\s\d+\-.][^\s]*))?"
    r"(?:\s+(?P<time>\d{1,2}:\d{2})(?:-(?P<end_time>\d{1,2}:\d{2}))?)?"
    r"(?:\s+(?:\.\+|\+\+|\+|--|-)\d+[hdwmy](?:/\d+[hdwmy])?)*"
    r"\s*$"
)

_STAMP = r"(?:<[^<>\n]+>|\[[^\[\]\n]+\])"
TIMESTAMP_RE = re.compile(rf"(?P<first>{_STAMP})(?:--(?P<second>{_STAMP}))?")
_PLANNING_RE = re.compile(
    rf"\b(?P<kind>DEADLINE|SCHEDULED|CLOSED):\s*(?P<stamp>{_STAMP}(?:--{_STAMP})?)"
)
_PLANNING_LINE_RE = re.compile(r"^\s*(?:DEADLINE|SCHEDULED|CLOSED):")


def _parse_time(value: str) -> time | None:
    hours, minutes = (int(p) for p in value.split(":"))
    if hours > 23 or minutes > 59:
        return None
    return time(hours, minutes)


def _parse_parts(body: str) -> tuple[datetime, datetime | None, bool, str | None] | None:
    m = _DATE_RE.match(body.strip())
    if not m:
        return None
    try:
        day = datetime.strptime(m.group("date"), "%Y-%m-%d")
    except ValueError:
        return None

    start = day
    end = None
    end_label = None
    if m.group("time"):
        start_time = _parse_time(m.group("time"))
        if start_time is None:
            return None
        start = datetime.combine(day.date(), start_time)
        if m.group("end_time"):
            end_time = _parse_time(m.group("end_time"))
            if end_time is None:
                return None
            end = datetime.combine(day.date(), end_time)
            end_label = m.group("end_time")
    return start, end, bool(m.group("time")), end_label


def parse_org_date(text: str) -> datetime | None:
    """Parse the inside of an Org timestamp to its start datetime.

    Accepts the text with or without its surrounding brackets.

    Args:
        text: e.g. "2024-01-15 Mon 10:00" or "<2024-01-15 Mon>"

    Returns:
        The start as a naive datetime (midnight when no time is given),
        or None when the text is not a valid Org date.
    """
    parts = _parse_parts(strip_brackets(text))
    return parts[0] if parts else None


def parse_timestamp(text: str) -> Timestamp | None:
    """Parse one timestamp token or a `<a>--<b>` range.

    Args:
        text: A full token including its brackets

    Returns:
        Timestamp, or None when the token is not a well-formed timestamp.
    """
    raw = text.strip()
    m = TIMESTAMP_RE.fullmatch(raw)
    if not m:
        return None

    first = m.group("first")
    first_label = strip_brackets(first)
    parts = _parse_parts(first_label)
    if parts is None:
        return None
    start, end, has_time, end_label = parts
    start_label = first_label

    if m.group("second"):
        second = _parse_parts(strip_brackets(m.group("second")))
        if second is None:
            return None
        end = second[0]
        end_label = strip_brackets(m.group("second"))
    elif end_label is not None:
        # same-day range "10:00-12:00": show the start without its end time
        start_label = first_label.replace(f"-{end_label}", "", 1)

    return Timestamp(
        start=start,
        end=end,
        active=first.startswith("<"),
        has_time=has_time,
        raw=raw,
        start_text=start_label,
        end_text=end_label,
    )


def is_planning_line(line: str) -> bool:
    return bool(_PLANNING_LINE_RE.match(line))


def find_planning(line: str, line_index: int) -> list[TimestampEntry]:
    """Find every DEADLINE/SCHEDULED/CLOSED timestamp on one line.

    Args:
        line: Source line
        line_index: Zero-based index of the line, recorded on each entry

    Returns:
        Entries in the order they appear; malformed timestamps are skipped.
    """
    entries = []
    for m in _PLANNING_RE.finditer(line):
        stamp = parse_timestamp(m.group("stamp"))
        if stamp is None:
            continue
        entries.append(
            TimestampEntry(
                kind=PLANNING_KINDS[m.group("kind")],
                timestamp=stamp,
                source_line=line_index,
                raw_text=m.group("stamp"),
            )
        )
    return entries


def parse_timestamps(text: str) -> list[TimestampEntry]:
    """Collect planning entries from every planning line of `text`."""
    entries: list[TimestampEntry] = []
    for index, line in enumerate(text.split("\n")):
        if is_planning_line(line):
            entries.extend(find_planning(line, index))
    return entries


def effective_time(entry: TimestampEntry) -> datetime:
    """The instant an entry is due.

    A deadline without a time of day stays due for that whole day, so it
    only passes at the following midnight.
    """
    if entry.kind == "deadline" and not entry.has_time:
        return datetime.combine(entry.start.date() + timedelta(days=1), time())
    return entry.start


def classify(entry: TimestampEntry, now: datetime) -> Urgency:
    """Bucket an entry as overdue, today, soon or normal relative to `now`.

    Only deadlines become overdue. "soon" means within SOON_DAYS calendar days.
    """
    if entry.kind == "deadline" and effective_time(entry) < now:
        return Urgency.OVERDUE
    days = (entry.start.date() - now.date()).days
    if days == 0:
        return Urgency.TODAY
    if 0 < days <= SOON_DAYS:
        return Urgency.SOON
    return Urgency.NORMAL
