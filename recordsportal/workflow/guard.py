"""Navigation guard deciding whether a step may be entered."""

from __future__ import annotations

from enum import Enum
from typing import Any, Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field

from .catalog import DEFAULT_CATALOG, Step, StepCatalog
from .errors import UnknownStepError
from .state import WorkflowState


class GuardReason(str, Enum):
    OK = "ok"
    MISSING_PREREQUISITE = "missing_prerequisite"
    UNKNOWN_STEP = "unknown_step"
    ALREADY_TERMINAL = "already_terminal"


class GuardResult(BaseModel):
    """Outcome of a guard check.

    ``blocking_steps`` is only populated for ``MISSING_PREREQUISITE`` and
    ``unknown_steps`` (the values as given) for ``UNKNOWN_STEP``.
    """

    model_config = ConfigDict(frozen=True)

    allowed: bool
    reason: GuardReason
    blocking_steps: frozenset[Step] = Field(default_factory=frozenset)
    unknown_steps: frozenset[str] = Field(default_factory=frozenset)

    @classmethod
    def ok(cls) -> "GuardResult":
        return cls(allowed=True, reason=GuardReason.OK)

    @classmethod
    def unknown_step(cls, values: Iterable[Any]) -> "GuardResult":
        return cls(
            allowed=False,
            reason=GuardReason.UNKNOWN_STEP,
            unknown_steps=frozenset(str(v) for v in values),
        )

    @classmethod
    def already_terminal(cls) -> "GuardResult":
        return cls(allowed=False, reason=GuardReason.ALREADY_TERMINAL)

    @classmethod
    def missing(cls, steps: Iterable[Step]) -> "GuardResult":
        return cls(
            allowed=False,
            reason=GuardReason.MISSING_PREREQUISITE,
            blocking_steps=frozenset(steps),
        )


def can_enter(
    state: WorkflowState,
    target: Any,
    catalog: StepCatalog = DEFAULT_CATALOG,
    completed: Optional[frozenset[Step]] = None,
) -> GuardResult:
    """Check whether ``target`` may be entered from ``state``.

    ``completed`` overrides ``state.completed_steps``; the transition applier
    uses it to evaluate entry against the steps a transition is about to
    complete.
    """
    try:
        step = catalog.coerce(target)
    except UnknownStepError:
        return GuardResult.unknown_step([target])

    if state.closed:
        return GuardResult.already_terminal()

    done = state.completed_steps if completed is None else completed
    missing = catalog.prerequisites_of(step) - done
    if missing:
        return GuardResult.missing(missing)
    return GuardResult.ok()
