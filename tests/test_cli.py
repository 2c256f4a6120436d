"""Tests for the orgrender CLI."""

import json
import subprocess
import tempfile
from pathlib import Path

SAMPLE = """#+TITLE: Sample
#+FILETAGS: :work:notes:
* TODO [#A] Ship it
DEADLINE: <2000-01-01 Sat> SCHEDULED: [2000-01-01 Sat 09:00]
:LOGBOOK:
- State "TODO"       from              [1999-12-30 Thu 08:00]
CLOCK: [1999-12-31 Fri 10:00]--[1999-12-31 Fri 11:30] =>  1:30
CLOCK: [2000-01-01 Sat 09:00]
:END:
Some *bold* text.
"""


def _run(*args):
    return subprocess.run(["orgrender", *args], capture_output=True, text=True)


def test_render_stdout():
    """Test render prints HTML to stdout."""
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "doc.org"
        path.write_text(SAMPLE)

        result = _run("render", "--no-highlight", str(path))

        assert result.returncode == 0
        assert result.stdout.startswith("<h1 ")
        assert "<strong" in result.stdout
        assert "#+TITLE" not in result.stdout


def test_render_to_file():
    """Test render -o writes the HTML file."""
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "doc.org"
        out = Path(tmpdir) / "doc.html"
        path.write_text("* Hello")

        result = _run("render", str(path), "-o", str(out))

        assert result.returncode == 0
        assert "Wrote" in result.stdout
        assert out.read_text().strip().endswith(">Hello</h1>")


def test_meta_yaml():
    """Test meta prints YAML front matter."""
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "doc.org"
        path.write_text(SAMPLE)

        result = _run("meta", str(path))

        assert result.returncode == 0
        assert result.stdout.startswith("---\ntitle: Sample\n")
        assert "- work\n- notes\n" in result.stdout
        assert result.stdout.endswith("---\n")


def test_meta_json():
    """Test meta --json output."""
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "doc.org"
        path.write_text(SAMPLE)

        result = _run("meta", "--json", str(path))

        assert result.returncode == 0
        data = json.loads(result.stdout)
        assert data["title"] == "Sample"
        assert data["tags"] == ["work", "notes"]
        assert data["deadline"] == "<2000-01-01 Sat>"


def test_timestamps_json():
    """Test timestamps --json lists planning entries with urgency."""
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "doc.org"
        path.write_text(SAMPLE)

        result = _run("timestamps", "--json", str(path))

        assert result.returncode == 0
        data = json.loads(result.stdout)
        assert [e["kind"] for e in data] == ["deadline", "scheduled"]
        assert data[0]["urgency"] == "overdue"
        assert data[0]["start"] == "2000-01-01T00:00:00"
        assert data[0]["line"] == 2
        assert data[1]["active"] is False
        assert data[1]["has_time"] is True


def test_logbook_json():
    """Test logbook --json lists entries and totals."""
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "doc.org"
        path.write_text(SAMPLE)

        result = _run("logbook", "--json", str(path))

        assert result.returncode == 0
        data = json.loads(result.stdout)
        assert [e["type"] for e in data["entries"]] == ["state", "clock", "clock"]
        assert data["entries"][0]["from"] is None
        assert data["entries"][1]["minutes"] == 90
        assert data["entries"][2]["end"] is None
        assert data["summary"] == {
            "total_minutes": 90,
            "ongoing": 1,
            "state_changes": 1,
            "clocks": 2,
        }


def test_logbook_text():
    """Test logbook prints a total line."""
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "doc.org"
        path.write_text(SAMPLE)

        result = _run("logbook", str(path))

        assert result.returncode == 0
        assert "CLOCK\t1999-12-31 10:00\t1:30" in result.stdout
        assert "Total: 1h 30m (2 clocks, 1 running)" in result.stdout


def test_missing_file():
    """Test a missing input file exits with an error."""
    with tempfile.TemporaryDirectory() as tmpdir:
        result = _run("render", str(Path(tmpdir) / "nope.org"))

        assert result.returncode == 1
        assert "Error:" in result.stderr
        assert "not found" in result.stderr


def test_invalid_config():
    """Test an invalid strict config is reported."""
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "doc.org"
        path.write_text("* A")
        config = Path(tmpdir) / "custom.toml"
        config.write_text('[render]\nstrict_validation = true\ntodo_keywords = "TODO"\n')

        result = _run("--config", str(config), "render", str(path))

        assert result.returncode == 1
        assert "todo_keywords must be a list" in result.stderr
