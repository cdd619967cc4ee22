"""Repository abstraction for workflow state persistence."""

from __future__ import annotations

from typing import Protocol

from ..workflow import WorkflowState


class WorkflowStateRepository(Protocol):
    """Protocol for workflow state persistence backends.

    ``save`` is a compare-and-set: the state being saved must carry exactly
    the stored version plus one, otherwise ``ConcurrencyConflictError`` is
    raised and nothing is written.
    """

    async def create(self, state: WorkflowState) -> None:
        """Persist the initial state of a request."""

    async def get(self, request_id: str) -> WorkflowState | None:
        """Return the stored state or ``None``."""

    async def load(self, request_id: str) -> WorkflowState:
        """Return the stored state or raise ``NotFoundError``."""

    async def save(self, state: WorkflowState) -> None:
        """Replace the stored state with its successor."""

    async def delete(self, request_id: str) -> None:
        """Drop the state of an archived request."""

    async def list_states(self) -> list[WorkflowState]:
        """Return all persisted states."""
