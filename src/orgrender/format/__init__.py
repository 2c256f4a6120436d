"""Inline formatting for Org text."""

from .inline import OrgInlineParser, format_inline, parse_inline

__all__ = [
    "OrgInlineParser",
    "format_inline",
    "parse_inline",
]
