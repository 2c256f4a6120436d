"""Tests for logbook drawer parsing."""

from datetime import datetime, timedelta

from orgrender.core.model import Clock, StateChange
from orgrender.enhance.logbook import (
    format_duration,
    format_total,
    parse_logbook,
    parse_logbook_lines,
    summarize,
)

LOGBOOK = """* DONE Write report
:LOGBOOK:
- State "DONE"       from "TODO"       [2025-08-30 Fri 20:00]
CLOCK: [2025-08-30 Fri 18:00]--[2025-08-30 Fri 20:00] =>  2:00
CLOCK: [2025-08-29 Thu 09:00]--[2025-08-29 Thu 09:30] =>  0:30
:END:
Body text
"""


def test_parse_logbook_entries_in_order():
    """Test entries keep source order and types."""
    entries = parse_logbook(LOGBOOK)
    assert len(entries) == 3
    assert isinstance(entries[0], StateChange)
    assert entries[0].to_state == "DONE"
    assert entries[0].from_state == "TODO"
    assert entries[0].timestamp == datetime(2025, 8, 30, 20, 0)
    assert isinstance(entries[1], Clock)
    assert entries[1].duration == timedelta(hours=2)


def test_summarize_totals():
    """Test summary counts and total."""
    summary = summarize(parse_logbook(LOGBOOK))
    assert summary.total == timedelta(hours=2, minutes=30)
    assert summary.state_changes == 1
    assert summary.clocks == 2
    assert summary.ongoing == 0


def test_open_clock_counts_as_ongoing():
    """Test an open clock is excluded from the total."""
    entries = parse_logbook_lines(["CLOCK: [2025-08-30 Fri 18:00]"])
    assert entries[0].ongoing is True
    assert entries[0].duration is None
    summary = summarize(entries)
    assert summary.ongoing == 1
    assert summary.total == timedelta()


def test_state_change_note_continuation():
    """Test lines after a trailing double backslash become the note."""
    entries = parse_logbook_lines(
        [
            '- State "WAITING"    from "TODO"       [2025-08-30 Fri 20:00] \\\\',
            "  Waiting on review",
            "  from the team",
            "CLOCK: [2025-08-30 Fri 18:00]--[2025-08-30 Fri 19:00] =>  1:00",
        ]
    )
    assert entries[0].note == "Waiting on review\nfrom the team"
    assert isinstance(entries[1], Clock)


def test_bare_timestamp_and_missing_from_state():
    """Test unbracketed timestamps and a state without a previous state."""
    entries = parse_logbook_lines(['State "TODO" from 2025-08-30 Fri 20:00'])
    assert entries[0].to_state == "TODO"
    assert entries[0].from_state is None
    assert entries[0].timestamp == datetime(2025, 8, 30, 20, 0)


def test_angle_bracket_clock():
    """Test clocks written with angle brackets."""
    entries = parse_logbook_lines(["CLOCK: <2025-08-30 Fri 18:00>--<2025-08-30 Fri 18:45> =>  0:45"])
    assert entries[0].duration == timedelta(minutes=45)


def test_unmatched_lines_ignored():
    """Test unrelated lines produce no entries."""
    assert parse_logbook_lines(["random text", "- Note taken on nothing"]) == []


def test_unterminated_drawer_runs_to_end():
    """Test a drawer without :END: extends to the end of the text."""
    entries = parse_logbook(":LOGBOOK:\nCLOCK: [2025-08-30 Fri 18:00]--[2025-08-30 Fri 19:00] =>  1:00")
    assert len(entries) == 1


def test_format_duration():
    """Test H:MM and minute-only forms."""
    assert format_duration(timedelta(hours=2, minutes=5)) == "2:05"
    assert format_duration(timedelta(minutes=45)) == "45m"
    assert format_duration(timedelta()) == "0m"


def test_format_total():
    """Test hour/minute totals."""
    assert format_total(timedelta(hours=3, minutes=30)) == "3h 30m"
    assert format_total(timedelta(minutes=20)) == "20m"
    assert format_total(timedelta(hours=26)) == "26h 0m"


def test_entries_not_resorted_by_time():
    """Test an older entry written first stays first."""
    entries = parse_logbook_lines(
        [
            "CLOCK: [2025-08-01 Fri 09:00]--[2025-08-01 Fri 10:00] =>  1:00",
            "CLOCK: [2025-08-30 Sat 09:00]--[2025-08-30 Sat 09:30] =>  0:30",
        ]
    )
    assert [e.start.day for e in entries] == [1, 30]
