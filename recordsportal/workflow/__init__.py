"""Workflow step state machine and navigation guard.

Everything in this package is pure: no I/O and no logging. Loading and
saving states is the job of :mod:`recordsportal.persistence`.
"""

from .catalog import DEFAULT_CATALOG, Step, StepCatalog, StepDefinition
from .errors import (
    CatalogError,
    ConcurrencyConflictError,
    DuplicateRequestError,
    InvalidStateError,
    NotFoundError,
    PersistenceError,
    RequestIdMismatchError,
    UnknownStepError,
    WorkflowConfigurationError,
    WorkflowError,
)
from .guard import GuardReason, GuardResult, can_enter
from .progress import ProgressView, StepProgress, StepStatus, project
from .state import TransitionRequest, WorkflowState
from .transitions import TransitionOutcome, apply, close

__all__ = [
    "DEFAULT_CATALOG",
    "Step",
    "StepCatalog",
    "StepDefinition",
    "WorkflowState",
    "TransitionRequest",
    "GuardReason",
    "GuardResult",
    "can_enter",
    "ProgressView",
    "StepProgress",
    "StepStatus",
    "project",
    "TransitionOutcome",
    "apply",
    "close",
    "WorkflowError",
    "WorkflowConfigurationError",
    "UnknownStepError",
    "InvalidStateError",
    "CatalogError",
    "RequestIdMismatchError",
    "PersistenceError",
    "NotFoundError",
    "DuplicateRequestError",
    "ConcurrencyConflictError",
]
