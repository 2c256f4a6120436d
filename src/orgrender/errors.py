"""Error types and stage error policy for orgrender."""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class OrgRenderError(Exception):
    """Base class for every error orgrender raises on purpose."""


class ConfigError(OrgRenderError, ValueError):
    """A render option failed validation."""

    def __init__(self, message: str, option: str | None = None):
        super().__init__(message)
        self.option = option


class DocumentError(OrgRenderError):
    """The input document could not be read as text."""


class StageError(OrgRenderError):
    """A processing stage failed in strict mode."""

    def __init__(self, stage: str, cause: BaseException, unit: str | None = None):
        where = f"{stage} ({unit})" if unit else stage
        super().__init__(f"{where} failed: {cause}")
        self.stage = stage
        self.cause = cause
        self.unit = unit


@dataclass
class StageOutcome(Generic[T]):
    """Result of running one stage: either a value or the exception it raised."""

    stage: str
    value: T | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def run_stage(stage: str, fn: Callable[..., T], *args: Any, **kwargs: Any) -> StageOutcome[T]:
    """Call `fn` and capture its result or failure as a StageOutcome."""
    try:
        return StageOutcome(stage, value=fn(*args, **kwargs))
    except (StageError, ConfigError):
        raise
    except Exception as e:
        return StageOutcome(stage, error=e)


@dataclass
class ErrorPolicy:
    """
    Decide what happens when one unit of work (a line, a block, a stage) fails.

    Strict mode raises StageError. Otherwise the failure is logged, recorded in
    `warnings`, and the caller's fallback value is used instead.
    """

    strict: bool = False
    warnings: list[str] = field(default_factory=list)

    def warn(self, message: str) -> None:
        logger.warning(message)
        self.warnings.append(message)

    def fail(self, outcome: StageOutcome, unit: str | None = None) -> None:
        """Raise or record the failure held by `outcome`."""
        assert outcome.error is not None
        if self.strict:
            raise StageError(outcome.stage, outcome.error, unit=unit) from outcome.error
        where = f"{outcome.stage} ({unit})" if unit else outcome.stage
        self.warn(f"{where} skipped: {outcome.error}")

    def guard(self, stage: str, unit: str | None, fn: Callable[[], T], fallback: T) -> T:
        outcome = run_stage(stage, fn)
        if outcome.ok:
            return outcome.value  # type: ignore[return-value]
        self.fail(outcome, unit)
        return fallback
