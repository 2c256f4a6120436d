"""Utility functions for orgrender."""

_HTML_ESCAPES = {
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    '"': "&quot;",
    "'": "&#x27;",
}


def escape_html(text: str) -> str:
    """
    Make text safe to embed in HTML body text or a quoted attribute value.

    `&` is replaced first so existing entities are escaped again instead of
    being passed through.

    Examples:
        >>> escape_html('<b class="x">Tom & Jerry\\'s</b>')
        '&lt;b class=&quot;x&quot;&gt;Tom &amp; Jerry&#x27;s&lt;/b&gt;'
        >>> escape_html("&amp;")
        '&amp;amp;'
    """
    return "".join(_HTML_ESCAPES.get(ch, ch) for ch in text)


def normalize_newlines(text: str) -> str:
    """Convert CRLF and lone CR line endings to LF."""
    return text.replace("\r\n", "\n").replace("\r", "\n")


def strip_brackets(stamp: str) -> str:
    """Drop the outer `<...>` or `[...]` of an Org timestamp token."""
    stamp = stamp.strip()
    if len(stamp) >= 2 and stamp[0] in "<[" and stamp[-1] in ">]":
        return stamp[1:-1].strip()
    return stamp
