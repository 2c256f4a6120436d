"""Syntax highlighting for source blocks via Pygments."""

import logging

from pygments import highlight
from pygments.formatters.html import HtmlFormatter
from pygments.lexers import get_lexer_by_name
from pygments.util import ClassNotFound

from ..core.ports import Highlighter

logger = logging.getLogger(__name__)

# Org language names that Pygments knows under another alias
_ALIASES = {
    "emacs-lisp": "elisp",
    "sh": "bash",
    "shell": "bash",
    "conf": "ini",
}


class PygmentsHighlighter(Highlighter):
    """
    Highlight code with Pygments' HtmlFormatter in `nowrap` mode, so the
    caller supplies the surrounding <pre><code>. Token spans use Pygments'
    short CSS classes; see stylesheet() for matching rules.
    """

    def __init__(self, style: str = "default"):
        self.style = style
        self._formatter = HtmlFormatter(style=style, nowrap=True)
        self._lexers: dict[str, object | None] = {}

    def _lexer(self, language: str):
        key = language.strip().lower()
        key = _ALIASES.get(key, key)
        if key not in self._lexers:
            try:
                self._lexers[key] = get_lexer_by_name(key)
            except ClassNotFound:
                logger.debug("no Pygments lexer for %r; rendering as plain text", language)
                self._lexers[key] = None
        return self._lexers[key]

    def highlight(self, code: str, language: str) -> str | None:
        if not language:
            return None
        lexer = self._lexer(language)
        if lexer is None:
            return None
        # Pygments escapes token text itself; drop the trailing newline it appends
        return highlight(code, lexer, self._formatter).rstrip("\n")

    def stylesheet(self, selector: str = ".highlight") -> str:
        return self._formatter.get_style_defs(selector)
