"""Configuration loader for orgrender.toml and render options."""

import logging
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .enhance.keywords import DEFAULT_PRIORITY_LEVELS, DEFAULT_TODO_KEYWORDS
from .errors import ConfigError
from .render.classes import CATEGORIES, CLOSED_CATEGORIES, DEFAULT_CLASSES

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "orgrender.toml"

_BOOL_OPTIONS = ("enable_syntax_highlight", "strict_validation")


def _check_keywords(value: Any) -> tuple[str, ...]:
    if not isinstance(value, (list, tuple)):
        raise ConfigError("todo_keywords must be a list", "todo_keywords")
    for keyword in value:
        if not isinstance(keyword, str) or not keyword or any(c.isspace() for c in keyword):
            raise ConfigError(
                "All todo_keywords must be non-empty strings without whitespace", "todo_keywords"
            )
    return tuple(value)


def _check_levels(value: Any) -> tuple[str, ...]:
    if not isinstance(value, (list, tuple)):
        raise ConfigError("priority_levels must be a list", "priority_levels")
    for level in value:
        if not isinstance(level, str) or len(level) != 1 or level.isspace():
            raise ConfigError(
                "All priority_levels must be single-character strings", "priority_levels"
            )
    return tuple(value)


def _known_key(category: str, key: str) -> bool:
    if key in DEFAULT_CLASSES[category]:
        return True
    if category == "logbook":
        # per-state badges, e.g. state_HOLD for a custom keyword
        return key.startswith("state_")
    return category not in CLOSED_CATEGORIES


def _check_classes(
    value: Any, strict: bool
) -> dict[str, dict[str, tuple[str, ...]]]:
    """Validate custom_css_classes; in lenient mode drop only the bad entries."""
    if not isinstance(value, Mapping):
        raise ConfigError("custom_css_classes must be a mapping", "custom_css_classes")

    def reject(message: str) -> None:
        if strict:
            raise ConfigError(message, "custom_css_classes")
        logger.warning("%s; ignoring it", message)

    out: dict[str, dict[str, tuple[str, ...]]] = {}
    for category, entries in value.items():
        if category not in CATEGORIES:
            reject(f"Unknown CSS class category: {category}")
            continue
        if not isinstance(entries, Mapping):
            reject(f"custom_css_classes.{category} must be a mapping")
            continue
        for key, classes in entries.items():
            if not _known_key(category, str(key)):
                reject(f"Unknown CSS class key: {category}.{key}")
                continue
            if not isinstance(classes, (list, tuple)) or not all(
                isinstance(c, str) for c in classes
            ):
                reject(f"custom_css_classes.{category}.{key} must be a list of strings")
                continue
            out.setdefault(category, {})[str(key)] = tuple(classes)
    return out


@dataclass(frozen=True)
class RenderOptions:
    """Options for one render call."""

    enable_syntax_highlight: bool = True
    strict_validation: bool = False
    custom_css_classes: Mapping[str, Mapping[str, tuple[str, ...]]] = field(default_factory=dict)
    todo_keywords: tuple[str, ...] = DEFAULT_TODO_KEYWORDS
    priority_levels: tuple[str, ...] = DEFAULT_PRIORITY_LEVELS

    def __post_init__(self) -> None:
        for name in _BOOL_OPTIONS:
            if not isinstance(getattr(self, name), bool):
                raise ConfigError(f"{name} must be a boolean", name)
        object.__setattr__(self, "todo_keywords", _check_keywords(self.todo_keywords))
        object.__setattr__(self, "priority_levels", _check_levels(self.priority_levels))
        object.__setattr__(
            self, "custom_css_classes", _check_classes(self.custom_css_classes, strict=True)
        )

    @classmethod
    def from_mapping(
        cls, data: Mapping[str, Any] | None, strict: bool | None = None
    ) -> "RenderOptions":
        """Build options from plain data, such as a parsed TOML table.

        Args:
            data: Option names mapped to values; None means all defaults
            strict: Override for strict_validation; when None the value in
                `data` (or the default) decides

        Returns:
            RenderOptions

        Raises:
            ConfigError: In strict mode, for the first invalid option.
                Otherwise invalid options are logged and replaced by defaults.
        """
        data = dict(data or {})
        if strict is None:
            flag = data.get("strict_validation", False)
            strict = flag if isinstance(flag, bool) else False

        def reject(error: ConfigError) -> None:
            if strict:
                raise error
            logger.warning("%s; using default", error)

        known = {f for f in cls.__dataclass_fields__}
        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            if key not in known:
                reject(ConfigError(f"Unknown option: {key}", key))
                continue
            try:
                if key in _BOOL_OPTIONS:
                    if not isinstance(value, bool):
                        raise ConfigError(f"{key} must be a boolean", key)
                    kwargs[key] = value
                elif key == "todo_keywords":
                    kwargs[key] = _check_keywords(value)
                elif key == "priority_levels":
                    kwargs[key] = _check_levels(value)
                elif key == "custom_css_classes":
                    kwargs[key] = _check_classes(value, strict)
            except ConfigError as e:
                reject(e)

        kwargs["strict_validation"] = strict
        return cls(**kwargs)


def load_config(config_path: Path | None = None) -> RenderOptions:
    """
    Load render options from orgrender.toml.

    Search order:
    1. config_path (if provided)
    2. cwd/orgrender.toml

    Options live in the [render] table; a missing file means defaults.

    Args:
        config_path: Explicit path to config file

    Returns:
        RenderOptions with resolved settings
    """
    toml_data: dict[str, Any] = {}

    search_paths = []
    if config_path:
        search_paths.append(config_path)
    search_paths.append(Path.cwd() / CONFIG_FILENAME)

    for path in search_paths:
        if path.exists():
            try:
                with open(path, "rb") as f:
                    toml_data = tomllib.load(f)
            except tomllib.TOMLDecodeError as e:
                raise ConfigError(f"{path}: {e}") from e
            logger.debug("loaded config from %s", path)
            break

    render_data = toml_data.get("render", {})
    if not isinstance(render_data, Mapping):
        raise ConfigError("[render] must be a table", "render")
    return RenderOptions.from_mapping(render_data)
