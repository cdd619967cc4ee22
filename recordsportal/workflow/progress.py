"""Display-ready progress derived from a workflow state."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict

from .catalog import DEFAULT_CATALOG, Step, StepCatalog
from .guard import can_enter
from .state import WorkflowState


class StepStatus(str, Enum):
    COMPLETED = "completed"
    CURRENT = "current"
    AVAILABLE = "available"
    LOCKED = "locked"


class StepProgress(BaseModel):
    model_config = ConfigDict(frozen=True)

    step: Step
    order: int
    label: str
    description: str
    status: StepStatus


class ProgressView(BaseModel):
    """Everything a stepper, progress bar or breadcrumb needs to render."""

    model_config = ConfigDict(frozen=True)

    request_id: str
    percent_complete: int
    next_actionable_step: Optional[Step] = None
    ordered_step_statuses: tuple[StepProgress, ...] = ()
    breadcrumbs: tuple[Step, ...] = ()

    def status_of(self, step: Step) -> StepStatus:
        for item in self.ordered_step_statuses:
            if item.step == step:
                return item.status
        raise KeyError(step)


def _percent(done: int, total: int) -> int:
    # integer round-half-up of 100 * done / total
    return (200 * done + total) // (2 * total)


def _status(state: WorkflowState, step: Step, catalog: StepCatalog) -> StepStatus:
    if step in state.completed_steps:
        return StepStatus.COMPLETED
    if step == state.current_step:
        return StepStatus.CURRENT
    if can_enter(state, step, catalog).allowed:
        return StepStatus.AVAILABLE
    return StepStatus.LOCKED


def project(state: WorkflowState, catalog: StepCatalog = DEFAULT_CATALOG) -> ProgressView:
    """Project ``state`` onto per-step statuses and overall progress."""
    statuses = tuple(
        StepProgress(
            step=d.step,
            order=d.order,
            label=d.display_label,
            description=d.description,
            status=_status(state, d.step, catalog),
        )
        for d in catalog
    )

    next_step = next(
        (
            s.step
            for s in statuses
            if s.status in (StepStatus.AVAILABLE, StepStatus.CURRENT)
        ),
        None,
    )

    trail = [s.step for s in statuses if s.status == StepStatus.COMPLETED]
    if state.current_step not in state.completed_steps:
        trail.append(state.current_step)

    done = sum(1 for s in statuses if s.status == StepStatus.COMPLETED)
    return ProgressView(
        request_id=state.request_id,
        percent_complete=_percent(done, len(catalog)),
        next_actionable_step=next_step,
        ordered_step_statuses=statuses,
        breadcrumbs=tuple(trail),
    )
