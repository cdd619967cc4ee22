"""Transition applier: the only producer of successor workflow states."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, model_validator

from .catalog import DEFAULT_CATALOG, Step, StepCatalog
from .errors import RequestIdMismatchError, UnknownStepError
from .guard import GuardResult, can_enter
from .state import TransitionRequest, WorkflowState


class TransitionOutcome(BaseModel):
    """Either the new state or the guard result that rejected the transition."""

    model_config = ConfigDict(frozen=True)

    state: Optional[WorkflowState] = None
    rejection: Optional[GuardResult] = None

    @model_validator(mode="after")
    def _exactly_one(self) -> "TransitionOutcome":
        if (self.state is None) == (self.rejection is None):
            raise ValueError("TransitionOutcome needs exactly one of state or rejection")
        return self

    @property
    def ok(self) -> bool:
        return self.state is not None

    def unwrap(self) -> WorkflowState:
        """Return the new state; raise if the transition was rejected."""
        if self.state is None:
            raise RuntimeError(f"Transition rejected: {self.rejection.reason.value}")
        return self.state


def _now(now: Optional[datetime]) -> datetime:
    return now or datetime.now(timezone.utc)


def apply(
    state: WorkflowState,
    request: TransitionRequest,
    catalog: StepCatalog = DEFAULT_CATALOG,
    now: Optional[datetime] = None,
) -> TransitionOutcome:
    """Apply ``request`` to ``state`` and return the outcome.

    The target step is checked against the completed set *after* this
    transition, so a step can be completed and its successor entered in one
    call. Re-marking completed steps is a no-op.

    Raises:
        RequestIdMismatchError: ``request`` targets a different request.
    """
    if request.request_id != state.request_id:
        raise RequestIdMismatchError(state.request_id, request.request_id)

    marked: set[Step] = set()
    unknown = []
    for value in request.mark_complete:
        try:
            marked.add(catalog.coerce(value))
        except UnknownStepError:
            unknown.append(value)
    if unknown:
        return TransitionOutcome(rejection=GuardResult.unknown_step(unknown))
    prospective = state.completed_steps | marked

    verdict = can_enter(state, request.target_step, catalog, completed=prospective)
    if not verdict.allowed:
        return TransitionOutcome(rejection=verdict)

    missing: set[Step] = set()
    for step in marked - state.completed_steps:
        missing |= catalog.prerequisites_of(step) - prospective
    if missing:
        return TransitionOutcome(rejection=GuardResult.missing(missing))

    new_state = WorkflowState.build(
        request_id=state.request_id,
        current_step=catalog.coerce(request.target_step),
        completed_steps=prospective,
        updated_at=_now(now),
        version=state.version + 1,
        catalog=catalog,
    )
    return TransitionOutcome(state=new_state)


def close(
    state: WorkflowState,
    catalog: StepCatalog = DEFAULT_CATALOG,
    now: Optional[datetime] = None,
) -> TransitionOutcome:
    """Mark a fully processed request as terminal.

    Every catalog step must be completed. A closed state rejects all further
    transitions with ``ALREADY_TERMINAL``.
    """
    if state.closed:
        return TransitionOutcome(rejection=GuardResult.already_terminal())

    remaining = set(catalog.steps) - state.completed_steps
    if remaining:
        return TransitionOutcome(rejection=GuardResult.missing(remaining))

    new_state = WorkflowState.build(
        request_id=state.request_id,
        current_step=state.current_step,
        completed_steps=state.completed_steps,
        updated_at=_now(now),
        version=state.version + 1,
        closed=True,
        catalog=catalog,
    )
    return TransitionOutcome(state=new_state)
