import io
import logging
import re
from typing import Any

import yaml

from ..core.meta import Metadata
from ..core.ports import MetadataExtractor
from ..core.utils import normalize_newlines
from ..enhance.timestamps import find_planning

logger = logging.getLogger(__name__)

_KEYWORD_RE = re.compile(r"^#\+(\w+):\s*(.*)$")
_FENCE_OPEN_RE = re.compile(r"^#\+begin_(src|example)\b", re.IGNORECASE)
_FENCE_CLOSE_RE = re.compile(r"^#\+end_(src|example)\s*$", re.IGNORECASE)
_PROPERTY_RE = re.compile(r"^:([^:\s]+):\s*(.*)$")

# keyword -> Metadata field
_KEYWORDS = {
    "title": "title",
    "category": "category",
    "tags": "tags",
    "filetags": "tags",
    "author": "author",
    "date": "date",
}


def _split_tags(value: str) -> tuple[str, ...]:
    seen: dict[str, None] = {}
    for tag in re.split(r"[\s:]+", value):
        if tag:
            seen.setdefault(tag)
    return tuple(seen)


class OrgMetadataExtractor(MetadataExtractor):
    def extract(self, text: str) -> tuple[Metadata, str]:
        # first declaration of each field wins, so only ever setdefault()
        found: dict[str, Any] = {}
        body: list[str] = []

        in_drawer = False
        seen_drawer = False
        fence: str | None = None

        for index, line in enumerate(normalize_newlines(text).split("\n")):
            trimmed = line.strip()

            if fence is not None:
                close = _FENCE_CLOSE_RE.match(trimmed)
                if close and close.group(1).lower() == fence:
                    fence = None
                body.append(line)
                continue

            if in_drawer:
                if trimmed.upper() == ":END:":
                    in_drawer = False
                    seen_drawer = True
                elif not seen_drawer:
                    prop = _PROPERTY_RE.match(trimmed)
                    if prop and prop.group(1).upper() == "ID" and prop.group(2).strip():
                        found.setdefault("id", prop.group(2).strip())
                continue

            if trimmed.upper() == ":PROPERTIES:":
                in_drawer = True
                continue

            opened = _FENCE_OPEN_RE.match(trimmed)
            if opened:
                fence = opened.group(1).lower()
                body.append(line)
                continue

            if trimmed.startswith("#+"):
                if _FENCE_CLOSE_RE.match(trimmed):
                    # stray close without an open; let the scanner see it
                    body.append(line)
                    continue
                m = _KEYWORD_RE.match(trimmed)
                if m and m.group(1).lower() in _KEYWORDS and m.group(2).strip():
                    name = _KEYWORDS[m.group(1).lower()]
                    value = m.group(2).strip()
                    found.setdefault(name, _split_tags(value) if name == "tags" else value)
                else:
                    logger.debug("dropping keyword line %d: %s", index, trimmed)
                continue

            for entry in find_planning(line, index):
                if entry.kind in ("scheduled", "deadline"):
                    found.setdefault(entry.kind, entry.raw_text)
                    found.setdefault(f"{entry.kind}_timestamp", entry)
            body.append(line)

        return Metadata(**found), "\n".join(body)


def extract_metadata(text: str) -> tuple[Metadata, str]:
    """Split `text` into document metadata and the body left to scan.

    Args:
        text: Full document source

    Returns:
        (Metadata, cleaned body). Keyword lines and property drawers are
        removed from the body; fenced blocks and planning lines are kept.
    """
    return OrgMetadataExtractor().extract(text)


class YamlFrontmatter:
    def encode(self, meta: dict[str, Any]) -> str:
        if not meta:
            return ""
        buf = io.StringIO()
        yaml.safe_dump(meta, buf, sort_keys=False, allow_unicode=True)
        return f"---\n{buf.getvalue()}---\n"
