from typing import Protocol

from ..errors import ErrorPolicy
from .meta import Metadata
from .model import Block, Inline


class MetadataExtractor(Protocol):
    """
    Lift document-level keywords and the first property drawer out of the
    source; return the metadata and the body left for the block scanner.
    """

    def extract(self, text: str) -> tuple[Metadata, str]:
        pass


class BlockParser(Protocol):
    """
    Turn a metadata-free body into a flat, ordered list of blocks.
    """

    def parse(self, text: str, policy: ErrorPolicy | None = None) -> list[Block]:
        pass


class InlineParser(Protocol):
    def parse(self, text: str, base: int = 0) -> list[Inline]:
        pass


class Highlighter(Protocol):
    """
    Produce trusted, already-escaped markup for a code block, or None when
    the language is unknown and the caller should fall back to escaping.
    """

    def highlight(self, code: str, language: str) -> str | None:
        pass


class BlockAnnotator(Protocol):
    def annotate(self, block: Block) -> Block:
        pass
