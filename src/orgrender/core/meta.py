from __future__ import annotations
from dataclasses import dataclass, fields
from typing import Any

from .model import TimestampEntry


@dataclass(frozen=True)
class Metadata:
    """
    Document-level facts lifted out of the source, e.g.,
    - title from "#+TITLE: Covariant derivative"
    - tags from "#+FILETAGS: :math:geometry:"
    - id from the first ":PROPERTIES:" drawer
    - scheduled/deadline from the first planning line of each kind
    Every field is optional; the first declaration of a field wins.
    """

    title: str | None = None
    category: str | None = None
    tags: tuple[str, ...] = ()
    author: str | None = None
    date: str | None = None
    id: str | None = None
    scheduled: str | None = None  # timestamp text as written, e.g. "<2024-12-25 Wed>"
    deadline: str | None = None
    scheduled_timestamp: TimestampEntry | None = None
    deadline_timestamp: TimestampEntry | None = None

    def to_dict(self) -> dict[str, Any]:
        """Populated plain fields, in declaration order, for YAML/JSON output."""
        out: dict[str, Any] = {}
        for f in fields(self):
            if f.name.endswith("_timestamp"):
                continue
            value = getattr(self, f.name)
            if value is None or value == ():
                continue
            out[f.name] = list(value) if isinstance(value, tuple) else value
        return out

    def is_empty(self) -> bool:
        return not self.to_dict()
