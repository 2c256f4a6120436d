"""Logbook drawer parsing: state changes, clock entries and totals."""

import re
from dataclasses import dataclass, replace
from datetime import timedelta
from typing import Iterable

from ..core.model import Clock, LogbookEntry, StateChange
from .timestamps import parse_org_date

_BRACKETED = r"(?:\[[^\]\n]+\]|<[^>\n]+>)"

_STATE_RE = re.compile(
    r'^(?:-\s*)?State\s+"(?P<to>[^"]+)"\s+from(?:\s+"(?P<from>[^"]*)")?\s+'
    rf"(?P<stamp>{_BRACKETED}|\d{{4}}-\d{{2}}-\d{{2}}(?:\s+[^\s\d\\][^\s\\]*)?(?:\s+\d{{1,2}}:\d{{2}})?)"
    r"\s*(?P<rest>.*)$"
)
_CLOCK_RE = re.compile(
    rf"^(?:-\s*)?CLOCK:\s*(?P<start>{_BRACKETED})"
    rf"(?:--(?P<end>{_BRACKETED}))?"
    r"(?:\s*=>\s*(?P<duration>\S+))?\s*$"
)
_DRAWER_OPEN = ":LOGBOOK:"
_DRAWER_CLOSE = ":END:"


@dataclass(frozen=True)
class LogbookSummary:
    total: timedelta
    ongoing: int
    state_changes: int
    clocks: int


def _split_note(rest: str) -> tuple[str | None, bool]:
    """Return (inline note, expects continuation) for the tail of an entry line."""
    rest = rest.strip()
    if rest.startswith("\\\\"):
        note = rest[2:].strip()
        return (note or None), not note
    if rest.endswith("\\\\"):
        note = rest[:-2].strip()
        return (note or None), True
    return (rest or None), False


def parse_logbook_lines(lines: Iterable[str]) -> list[LogbookEntry]:
    """Parse the body lines of one logbook drawer.

    Args:
        lines: Lines between `:LOGBOOK:` and `:END:`

    Returns:
        Entries in source order. Lines matching neither a state change
        nor a clock are ignored, unless they continue a note.
    """
    entries: list[LogbookEntry] = []
    awaiting_note = False

    for line in lines:
        trimmed = line.strip()
        if not trimmed:
            awaiting_note = False
            continue

        state = _STATE_RE.match(trimmed)
        if state:
            stamp = parse_org_date(state.group("stamp"))
            if stamp is not None:
                note, awaiting_note = _split_note(state.group("rest"))
                entries.append(
                    StateChange(
                        to_state=state.group("to"),
                        from_state=state.group("from") or None,
                        timestamp=stamp,
                        note=note,
                        raw=trimmed,
                    )
                )
                continue

        clock = _CLOCK_RE.match(trimmed)
        if clock:
            start = parse_org_date(clock.group("start"))
            if start is not None:
                end = parse_org_date(clock.group("end")) if clock.group("end") else None
                entries.append(Clock(start=start, end=end, raw=trimmed))
                awaiting_note = False
                continue

        if awaiting_note and entries:
            last = entries[-1]
            note = f"{last.note}\n{trimmed}" if last.note else trimmed
            entries[-1] = replace(last, note=note)
            continue

        awaiting_note = False

    return entries


def parse_logbook(text: str) -> list[LogbookEntry]:
    """Parse every `:LOGBOOK:` drawer in `text`.

    A drawer missing its `:END:` runs to the end of the text.
    """
    entries: list[LogbookEntry] = []
    region: list[str] | None = None
    for line in text.split("\n"):
        marker = line.strip().upper()
        if region is None:
            if marker == _DRAWER_OPEN:
                region = []
        elif marker == _DRAWER_CLOSE:
            entries.extend(parse_logbook_lines(region))
            region = None
        else:
            region.append(line)
    if region is not None:
        entries.extend(parse_logbook_lines(region))
    return entries


def summarize(entries: Iterable[LogbookEntry]) -> LogbookSummary:
    """Total closed clock time and count entries; open clocks are counted as ongoing."""
    total = timedelta()
    ongoing = state_changes = clocks = 0
    for entry in entries:
        if isinstance(entry, StateChange):
            state_changes += 1
            continue
        clocks += 1
        if entry.duration is None:
            ongoing += 1
        else:
            total += entry.duration
    return LogbookSummary(total=total, ongoing=ongoing, state_changes=state_changes, clocks=clocks)


def _minutes(delta: timedelta) -> tuple[str, int]:
    minutes = int(delta.total_seconds() // 60)
    return ("-" if minutes < 0 else ""), abs(minutes)


def format_duration(delta: timedelta) -> str:
    """
    Format a clock duration.

    Examples:
        >>> format_duration(timedelta(hours=2, minutes=5))
        '2:05'
        >>> format_duration(timedelta(minutes=45))
        '45m'
    """
    sign, minutes = _minutes(delta)
    hours, minutes = divmod(minutes, 60)
    if hours:
        return f"{sign}{hours}:{minutes:02d}"
    return f"{sign}{minutes}m"


def format_total(delta: timedelta) -> str:
    """
    Format a summed duration.

    Examples:
        >>> format_total(timedelta(hours=3, minutes=30))
        '3h 30m'
        >>> format_total(timedelta(minutes=20))
        '20m'
    """
    sign, minutes = _minutes(delta)
    hours, minutes = divmod(minutes, 60)
    if hours:
        return f"{sign}{hours}h {minutes}m"
    return f"{sign}{minutes}m"
