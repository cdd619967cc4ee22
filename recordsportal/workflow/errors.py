"""Exception hierarchy for the request workflow core.

Guard rejections are not exceptions; they are returned as ``GuardResult``
values. Everything raised here is either a configuration problem, a bug in
the calling code, or a persistence failure.

None of these classes derive from ``ValueError`` so that pydantic validators
propagate them unchanged instead of wrapping them in ``ValidationError``.
"""

from __future__ import annotations

from typing import Any, Iterable


class WorkflowError(Exception):
    """Base class for all workflow errors."""


class WorkflowConfigurationError(WorkflowError):
    """Programmer or data error; not recoverable by the user."""


class UnknownStepError(WorkflowConfigurationError, LookupError):
    """Raised when a value outside the step catalog is used as a step."""

    def __init__(self, value: Any) -> None:
        self.value = value
        super().__init__(f"Unknown workflow step: {value!r}")


class InvalidStateError(WorkflowConfigurationError):
    """Raised when a workflow state would violate its invariants."""


class CatalogError(WorkflowConfigurationError):
    """Raised when step definitions do not form a valid catalog."""


class RequestIdMismatchError(WorkflowError):
    """Transition request addressed to a different request than the state."""

    def __init__(self, expected: str, actual: str) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Transition for request {actual!r} applied to state of {expected!r}"
        )


class PersistenceError(WorkflowError):
    """Base class for repository failures."""


class NotFoundError(PersistenceError, LookupError):
    """No workflow state stored for the given request."""

    def __init__(self, request_id: str) -> None:
        self.request_id = request_id
        super().__init__(f"No workflow state for request {request_id!r}")


class DuplicateRequestError(PersistenceError):
    """A workflow state already exists for the given request."""

    def __init__(self, request_id: str) -> None:
        self.request_id = request_id
        super().__init__(f"Workflow state for request {request_id!r} already exists")


class ConcurrencyConflictError(PersistenceError):
    """The stored state changed since the caller loaded it."""

    def __init__(self, request_id: str, expected_version: int, stored_version: int):
        self.request_id = request_id
        self.expected_version = expected_version
        self.stored_version = stored_version
        super().__init__(
            f"Workflow state for request {request_id!r} changed "
            f"(expected version {expected_version}, found {stored_version}); "
            "reload and retry"
        )


def format_steps(steps: Iterable[Any]) -> str:
    """Render a collection of steps as a stable, comma separated list."""
    return ", ".join(sorted(str(getattr(s, "value", s)) for s in steps))
