"""recordsportal: workflow state machine for public records requests."""

from .navigation import UiFlow, build_breadcrumbs, describe_rejection, step_path
from .persistence import get_repository
from .service import WorkflowService
from .workflow import (
    DEFAULT_CATALOG,
    GuardReason,
    GuardResult,
    ProgressView,
    Step,
    StepCatalog,
    StepDefinition,
    StepStatus,
    TransitionOutcome,
    TransitionRequest,
    WorkflowState,
    apply,
    can_enter,
    close,
    project,
)

__version__ = "0.1.0"
__all__ = [
    "DEFAULT_CATALOG",
    "Step",
    "StepCatalog",
    "StepDefinition",
    "StepStatus",
    "WorkflowState",
    "TransitionRequest",
    "TransitionOutcome",
    "GuardReason",
    "GuardResult",
    "ProgressView",
    "can_enter",
    "project",
    "apply",
    "close",
    "WorkflowService",
    "get_repository",
    "UiFlow",
    "step_path",
    "build_breadcrumbs",
    "describe_rejection",
]
