"""
Degraded-step outcomes.

Side steps such as score persistence, company/contact upserts and activity
logging must never fail the primary operation. Instead of swallowing their
exceptions silently, they run through `attempt`, which logs the failure and
returns a StepOutcome the caller keeps alongside its result.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class StepOutcome(Generic[T]):
    """Result of one non-authoritative step."""

    step: str
    ok: bool
    value: T | None = None
    error: str | None = None

    @property
    def degraded(self) -> bool:
        return not self.ok

    def to_dict(self) -> dict:
        return {"step": self.step, "ok": self.ok, "error": self.error}


def attempt(step: str, fn: Callable[[], T]) -> StepOutcome[T]:
    """
    Run `fn` as a degraded step.

    Returns:
        StepOutcome with the return value on success, or the error message
        on failure. Never raises for exceptions raised by `fn`.
    """
    try:
        value = fn()
    except Exception as e:
        logger.exception("Degraded step '%s' failed", step)
        return StepOutcome(step=step, ok=False, error=str(e) or e.__class__.__name__)
    return StepOutcome(step=step, ok=True, value=value)


def skipped(step: str) -> StepOutcome:
    """Outcome for a step that had nothing to do."""
    return StepOutcome(step=step, ok=True, value=None)
