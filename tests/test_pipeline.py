"""Tests for the end-to-end render pipeline."""

from datetime import datetime

import pytest

from orgrender import (
    ConfigError,
    DocumentError,
    Metadata,
    StageError,
    render_document,
    render_html,
)
from orgrender.adapters import org_parser
from orgrender.adapters.org_parser import OrgParser
from orgrender.core.model import (
    Clock,
    FootnoteDefinition,
    Heading,
    ListBlock,
    Logbook,
    Paragraph,
    PriorityBadge,
    StateChange,
    Table,
    Text,
)
from orgrender.enhance.keywords import KeywordAnnotator
from orgrender.enhance.timestamps import Urgency, classify, effective_time
from orgrender.render.html import HtmlRenderer

PLAIN = {"enable_syntax_highlight": False}


def test_scenario_heading():
    """Test a single heading becomes one level-1 heading block."""
    result = render_document("* Main Header", PLAIN)
    (block,) = result.document.blocks
    assert isinstance(block, Heading)
    assert block.level == 1
    assert block.text == "Main Header"
    assert result.html.startswith('<h1 class="text-3xl font-bold')


def test_scenario_paragraph_priority():
    """Test a priority cookie splits a paragraph into three spans."""
    result = render_document("Task [#A] is important", PLAIN)
    (block,) = result.document.blocks
    assert isinstance(block, Paragraph)
    assert block.children == (Text("Task "), PriorityBadge("A"), Text(" is important"))


def test_scenario_deadline():
    """Test a date-only deadline uses end-of-day semantics."""
    result = render_document("DEADLINE: <2024-12-25 Wed>", PLAIN)
    (entry,) = result.timestamps
    assert entry.kind == "deadline"
    assert entry.end is None
    assert entry.has_time is False
    assert entry.start == datetime(2024, 12, 25)
    assert entry.raw_text == "<2024-12-25 Wed>"
    assert effective_time(entry) == datetime(2024, 12, 26)
    assert classify(entry, datetime(2024, 12, 25, 23, 59)) is Urgency.TODAY
    assert classify(entry, datetime(2024, 12, 26, 0, 1)) is Urgency.OVERDUE
    assert classify(entry, datetime(2024, 12, 23, 12, 0)) is Urgency.SOON
    assert result.metadata.deadline == "<2024-12-25 Wed>"


def test_scenario_footnote():
    """Test one reference resolves to one definition with one back-link."""
    result = render_document("Body text[fn:1] here.\n\n[fn:1] Explanation.", PLAIN)
    assert result.footnotes.reference_map == {"1": ["fn-ref-1-1"]}
    assert result.footnotes.backlinks("1") == ["#fn-ref-1-1"]
    assert result.html.count('href="#fn-def-1"') == 1
    assert result.html.count('id="fn-def-1"') == 1
    assert result.html.count("↩") == 1
    assert any(isinstance(b, FootnoteDefinition) for b in result.document.blocks)


def test_scenario_table():
    """Test a separator row gives one header row and one body row."""
    result = render_document("| A | B |\n|---|---|\n| 1 | 2 |", PLAIN)
    (table,) = result.document.blocks
    assert isinstance(table, Table)
    assert table.header_row_index == 1
    assert [[c.text for c in row] for row in table.header_rows] == [["A", "B"]]
    assert [[c.text for c in row] for row in table.body_rows] == [["1", "2"]]


def test_scenario_empty_logbook():
    """Test an empty logbook drawer yields no entries and no warnings."""
    result = render_document("- [ ] task\n:LOGBOOK:\n:END:", PLAIN)
    assert result.logbook == []
    assert result.warnings == []
    assert isinstance(result.document.blocks[0], ListBlock)
    assert result.document.blocks[0].items[0].checkbox == "unchecked"
    assert isinstance(result.document.blocks[1], Logbook)


def test_logbook_entries_collected():
    """Test logbook entries are returned in source order."""
    source = (
        "* DONE Task\n"
        ":LOGBOOK:\n"
        '- State "DONE"       from "TODO"       [2024-01-15 Mon 11:45]\n'
        "CLOCK: [2024-01-15 Mon 10:00]--[2024-01-15 Mon 11:30] =>  1:30\n"
        ":END:"
    )
    result = render_document(source, PLAIN)
    assert [type(e) for e in result.logbook] == [StateChange, Clock]
    assert result.logbook[0].from_state == "TODO"
    assert result.logbook[1].duration.total_seconds() == 90 * 60


def test_metadata_first_wins():
    """Test repeated keywords keep their first value and leave the body."""
    source = "#+TITLE: First\n#+AUTHOR: Me\n#+TITLE: Second\n* Body"
    result = render_document(source, PLAIN)
    assert result.metadata.title == "First"
    assert result.metadata.author == "Me"
    assert "#+" not in result.html
    assert len(result.document.blocks) == 1


def test_second_properties_drawer_skipped():
    """Test only the first properties drawer supplies the id."""
    source = ":PROPERTIES:\n:ID: abc\n:END:\n:PROPERTIES:\n:ID: def\n:END:\nText"
    result = render_document(source, PLAIN)
    assert result.metadata.id == "abc"
    assert result.document.blocks == (Paragraph(text="Text", children=(Text("Text"),)),)


def test_unterminated_properties_runs_to_end():
    """Test an open properties drawer swallows the rest of the document."""
    result = render_document(":PROPERTIES:\n:ID: x\n* Heading", PLAIN)
    assert result.metadata.id == "x"
    assert result.html == ""


def test_unterminated_code_block_closes_at_end():
    """Test an open code block is emitted at end of input."""
    result = render_document("#+begin_src\n*line*", PLAIN)
    assert result.warnings == []
    assert result.html.endswith("<code>*line*</code></pre>")


def test_crlf_input():
    """Test Windows line endings are normalized."""
    result = render_document("* A\r\nText\r\n", PLAIN)
    assert result.document.blocks[0].text == "A"
    assert result.document.blocks[1].text == "Text"


def test_bytes_input():
    """Test UTF-8 bytes are accepted."""
    assert render_html("* Café".encode("utf-8"), PLAIN).endswith(">Café</h1>")


def test_invalid_utf8_best_effort():
    """Test undecodable input yields an inline error fragment."""
    result = render_document(b"\xff\xfe bad", PLAIN)
    assert 'role="alert"' in result.html
    assert result.metadata == Metadata()
    assert len(result.warnings) == 1


def test_invalid_utf8_strict():
    """Test undecodable input raises in strict mode."""
    with pytest.raises(DocumentError):
        render_document(b"\xff\xfe bad", {"strict_validation": True})


def test_config_error_before_parsing():
    """Test invalid options in strict mode raise ConfigError."""
    with pytest.raises(ConfigError):
        render_document("* A", {"strict_validation": True, "todo_keywords": "TODO"})


def test_lenient_options_fall_back():
    """Test invalid options fall back to defaults when not strict."""
    result = render_document("* TODO A", {"todo_keywords": "TODO", "enable_syntax_highlight": False})
    assert result.document.blocks[0].todo == "TODO"


def test_injection_is_escaped():
    """Test no markup from the document survives unescaped."""
    source = (
        "#+TITLE: <b>t</b>\n"
        "* <img src=x onerror=alert(1)> :tag:\n"
        "| <td> | \"q\" |\n"
        "- <li>item\n"
        "[[javascript:alert(1)][x]] [[https://e.com/?a=\"b\"][<i>]]"
    )
    html = render_html(source, PLAIN)
    assert "<img" not in html
    assert "<td>" not in html
    assert "<li>item" not in html
    assert "<i>" not in html
    assert "javascript:" not in html
    assert 'href="https://e.com/?a=&quot;b&quot;"' in html


def test_block_failure_best_effort(monkeypatch):
    """Test a failing block is skipped while the rest renders."""

    def boom(self, *args):
        raise RuntimeError("broken heading")

    monkeypatch.setattr(org_parser._Scan, "_heading", boom)
    result = render_document("* Head\nStill here", PLAIN)
    assert "Still here" in result.html
    assert result.warnings == ["blocks (heading) skipped: broken heading"]


def test_block_failure_strict(monkeypatch):
    """Test a failing block raises StageError in strict mode."""

    def boom(self, *args):
        raise RuntimeError("broken heading")

    monkeypatch.setattr(org_parser._Scan, "_heading", boom)
    with pytest.raises(StageError) as exc:
        render_document("* Head\nStill here", {"strict_validation": True})
    assert exc.value.stage == "blocks"
    assert exc.value.unit == "heading"
    assert isinstance(exc.value.cause, RuntimeError)


def test_html_failure_best_effort(monkeypatch):
    """Test one block failing to render does not blank the document."""
    original = HtmlRenderer.render_block

    def flaky(self, block):
        if isinstance(block, Table):
            raise RuntimeError("bad table")
        return original(self, block)

    monkeypatch.setattr(HtmlRenderer, "render_block", flaky)
    result = render_document("* Head\n| a |\nAfter", PLAIN)
    assert "<table" not in result.html
    assert "Head" in result.html
    assert "After" in result.html
    assert result.warnings == ["html (Table) skipped: bad table"]


def test_html_failure_strict(monkeypatch):
    """Test a render failure names the stage in strict mode."""

    def broken(self, block):
        raise RuntimeError("bad")

    monkeypatch.setattr(HtmlRenderer, "render_block", broken)
    with pytest.raises(StageError) as exc:
        render_document("Text", {"strict_validation": True, "enable_syntax_highlight": False})
    assert exc.value.stage == "html"
    assert "html (Paragraph) failed" in str(exc.value)


def test_keyword_failure_keeps_block(monkeypatch):
    """Test a failing annotation keeps the block unannotated."""

    def boom(self, block):
        raise RuntimeError("no keywords")

    monkeypatch.setattr(KeywordAnnotator, "annotate", boom)
    result = render_document("* TODO Thing", PLAIN)
    assert result.document.blocks[0].todo is None
    assert "TODO Thing" in result.html
    assert result.warnings == ["keywords (Heading) skipped: no keywords"]


def test_whole_stage_failure_fragment(monkeypatch):
    """Test a failed scan yields only the error fragment."""

    def boom(self, text, policy=None):
        raise RuntimeError("<boom>")

    monkeypatch.setattr(OrgParser, "parse", boom)
    result = render_document("* A", PLAIN)
    assert result.html.startswith('<div class="render-error')
    assert 'role="alert"' in result.html
    assert "&lt;boom&gt;" in result.html
    assert result.document is None


def test_render_is_deterministic():
    """Test repeated renders of the same input are identical."""
    source = "* TODO [#B] A[fn:x]\nDEADLINE: <2024-01-02 Tue>\n[fn:x] Note\n#+begin_src python\nx = 1\n#+end_src"
    now = datetime(2024, 1, 1, 12, 0)
    assert render_html(source, now=now) == render_html(source, now=now)


def test_render_file(tmp_path):
    """Test rendering straight from a file path."""
    from orgrender.render.pipeline import render_file

    path = tmp_path / "doc.org"
    path.write_text("#+TITLE: File\n* From disk\n", encoding="utf-8")
    result = render_file(path, PLAIN)
    assert result.metadata.title == "File"
    assert ">From disk</h1>" in result.html
