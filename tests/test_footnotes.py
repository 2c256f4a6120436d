"""Tests for footnote discovery and id assignment."""

from orgrender.adapters.org_parser import OrgParser
from orgrender.enhance.footnotes import (
    find_definitions,
    find_references,
    resolve_footnotes,
)


def test_find_references_skips_definition_lines():
    """Test references are found outside definition lines only."""
    text = "A[fn:1] b[fn:2]\n[fn:1] Def with [fn:2]"
    refs = find_references(text)
    assert [(r.label, r.position) for r in refs] == [("1", 1), ("2", 9)]


def test_find_definitions():
    """Test definition lines are found in order."""
    defs = find_definitions("x\n[fn:a] First\n[fn:b]   Second  ")
    assert [(d.label, d.content) for d in defs] == [("a", "First"), ("b", "Second")]


def test_resolve_ids_are_global_ordinals():
    """Test ordinals count across all labels in source order."""
    blocks = OrgParser().parse("One[fn:a] two[fn:b]\nthree[fn:a]\n[fn:a] Note A")
    index = resolve_footnotes(blocks)
    assert index.reference_map == {
        "a": ["fn-ref-a-1", "fn-ref-a-3"],
        "b": ["fn-ref-b-2"],
    }
    assert index.backlinks("a") == ["#fn-ref-a-1", "#fn-ref-a-3"]
    assert index.unresolved == ["b"]


def test_unreferenced_definition_backlink():
    """Test a definition without references links to the bare label."""
    index = resolve_footnotes(OrgParser().parse("[fn:x] Lonely"))
    assert index.backlinks("x") == ["#fn-ref-x"]
    assert "x" in index.definitions


def test_references_in_code_not_counted():
    """Test references inside code blocks are not resolved."""
    blocks = OrgParser().parse("#+BEGIN_SRC\n[fn:1]\n#+END_SRC\nText[fn:1]")
    index = resolve_footnotes(blocks)
    assert index.reference_map == {"1": ["fn-ref-1-1"]}


def test_resolution_is_deterministic():
    """Test two runs over the same input give identical ids."""
    text = "a[fn:1] b[fn:2] c[fn:1]"
    first = resolve_footnotes(OrgParser().parse(text))
    second = resolve_footnotes(OrgParser().parse(text))
    assert first.reference_ids == second.reference_ids
