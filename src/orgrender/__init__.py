"""orgrender: Org markup to safe, class-annotated HTML."""

__version__ = "0.1.0"

from .config import RenderOptions, load_config
from .core.meta import Metadata
from .errors import ConfigError, DocumentError, OrgRenderError, StageError
from .render.pipeline import RenderResult, render_document, render_html

__all__ = [
    "__version__",
    "ConfigError",
    "DocumentError",
    "Metadata",
    "OrgRenderError",
    "RenderOptions",
    "RenderResult",
    "StageError",
    "load_config",
    "render_document",
    "render_html",
]
