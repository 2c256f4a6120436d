"""Main render driver for Org documents."""

import logging
import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

from ..adapters.org_frontmatter import OrgMetadataExtractor
from ..adapters.org_parser import OrgParser
from ..config import RenderOptions
from ..core.meta import Metadata
from ..core.model import (
    Block,
    Document,
    Logbook,
    LogbookEntry,
    Planning,
    TimestampEntry,
)
from ..core.utils import escape_html
from ..enhance.footnotes import FootnoteIndex, resolve_footnotes
from ..enhance.keywords import KeywordAnnotator
from ..errors import DocumentError, ErrorPolicy, StageOutcome, run_stage
from .classes import ClassMap
from .highlight import PygmentsHighlighter
from .html import HtmlRenderer

logger = logging.getLogger(__name__)


@dataclass
class RenderResult:
    """Result of rendering one document."""

    metadata: Metadata
    html: str
    document: Document | None = None
    timestamps: list[TimestampEntry] = field(default_factory=list)
    logbook: list[LogbookEntry] = field(default_factory=list)
    footnotes: FootnoteIndex | None = None
    warnings: list[str] = field(default_factory=list)


def _resolve_options(options: RenderOptions | Mapping[str, Any] | None) -> RenderOptions:
    if options is None:
        return RenderOptions()
    if isinstance(options, RenderOptions):
        return options
    return RenderOptions.from_mapping(options)


def _decode(text: str | bytes) -> str:
    if isinstance(text, bytes):
        try:
            return text.decode("utf-8")
        except UnicodeDecodeError as e:
            raise DocumentError(f"document is not valid UTF-8: {e}") from e
    if not isinstance(text, str):
        raise DocumentError(f"document must be text, not {type(text).__name__}")
    return text


def _local_now(now: datetime | None) -> datetime:
    if now is None:
        return datetime.now()
    if now.tzinfo is not None:
        # timestamps in Org files are local wall-clock times
        return now.astimezone().replace(tzinfo=None)
    return now


def error_fragment(error: Exception, classes: ClassMap | None = None) -> str:
    """HTML shown in place of a document that could not be rendered at all."""
    classes = classes or ClassMap()
    return (
        f'<div class="{escape_html(classes.get("elements", "error"))}" role="alert">'
        f"<strong>Failed to render document</strong>"
        f"<pre>{escape_html(str(error))}</pre></div>"
    )


class _Timer:
    def __init__(self, stage: str):
        self.stage = stage

    def __enter__(self) -> "_Timer":
        self.started = time.perf_counter()
        return self

    def __exit__(self, *exc: Any) -> None:
        elapsed = (time.perf_counter() - self.started) * 1000
        logger.debug("%s stage took %.2fms", self.stage, elapsed)


def render_document(
    text: str | bytes,
    options: RenderOptions | Mapping[str, Any] | None = None,
    now: datetime | None = None,
) -> RenderResult:
    """Render an Org document.

    Args:
        text: Document source
        options: RenderOptions, or a plain mapping validated with
            RenderOptions.from_mapping
        now: Reference instant for deadline/scheduled urgency

    Returns:
        RenderResult with metadata, HTML, the document tree and collected
        planning/logbook entries

    Raises:
        ConfigError: Invalid options (before any parsing happens)
        StageError: In strict mode, when any stage fails
        DocumentError: In strict mode, when `text` is not a text document
    """
    options = _resolve_options(options)
    classes = ClassMap(options.custom_css_classes)
    policy = ErrorPolicy(strict=options.strict_validation)

    try:
        source = _decode(text)
    except DocumentError as e:
        if policy.strict:
            raise
        policy.warn(str(e))
        return RenderResult(metadata=Metadata(), html=error_fragment(e, classes), warnings=policy.warnings)

    # Step 1: metadata
    with _Timer("metadata"):
        outcome: StageOutcome = run_stage("metadata", OrgMetadataExtractor().extract, source)
    if outcome.ok:
        metadata, body = outcome.value
    else:
        policy.fail(outcome)
        metadata, body = Metadata(), source

    # Step 2: blocks
    with _Timer("blocks"):
        outcome = run_stage("blocks", OrgParser().parse, body, policy)
    if not outcome.ok:
        policy.fail(outcome)
        return RenderResult(
            metadata=metadata,
            html=error_fragment(outcome.error, classes),
            warnings=policy.warnings,
        )
    blocks: list[Block] = outcome.value

    # Step 3: footnotes
    with _Timer("footnotes"):
        outcome = run_stage("footnotes", resolve_footnotes, blocks)
    if outcome.ok:
        footnotes = outcome.value
    else:
        policy.fail(outcome)
        footnotes = FootnoteIndex()

    # Step 4: TODO keywords and priorities, block by block
    with _Timer("keywords"):
        annotator = KeywordAnnotator(options.todo_keywords, options.priority_levels)
        blocks = [
            policy.guard("keywords", type(block).__name__, lambda: annotator.annotate(block), block)
            for block in blocks
        ]

    document = Document(metadata=metadata, blocks=tuple(blocks))

    # Step 5: HTML
    highlighter = PygmentsHighlighter() if options.enable_syntax_highlight else None
    renderer = HtmlRenderer(classes=classes, highlighter=highlighter, now=_local_now(now))
    with _Timer("html"):
        outcome = run_stage("html", renderer.render, document.blocks, footnotes, policy)
    if outcome.ok:
        html = outcome.value
    else:
        policy.fail(outcome)
        html = error_fragment(outcome.error, classes)

    timestamps = [e for b in document.blocks if isinstance(b, Planning) for e in b.entries]
    logbook = [e for b in document.blocks if isinstance(b, Logbook) for e in b.entries]

    return RenderResult(
        metadata=metadata,
        html=html,
        document=document,
        timestamps=timestamps,
        logbook=logbook,
        footnotes=footnotes,
        warnings=policy.warnings,
    )


def render_html(
    text: str | bytes,
    options: RenderOptions | Mapping[str, Any] | None = None,
    now: datetime | None = None,
) -> str:
    """Render an Org document and return only its HTML."""
    return render_document(text, options, now).html


def render_file(
    file_path: Path,
    options: RenderOptions | Mapping[str, Any] | None = None,
    now: datetime | None = None,
) -> RenderResult:
    """Render an Org file read as UTF-8.

    Args:
        file_path: Path to the .org file
        options: Render options
        now: Reference instant for urgency

    Returns:
        RenderResult
    """
    return render_document(file_path.read_bytes(), options, now)
