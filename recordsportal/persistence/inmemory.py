"""In-memory implementation of the workflow state repository."""

from __future__ import annotations

import logging
from typing import Dict

from ..workflow import (
    ConcurrencyConflictError,
    DuplicateRequestError,
    NotFoundError,
    WorkflowState,
)
from .repository import WorkflowStateRepository

logger = logging.getLogger(__name__)


class InMemoryWorkflowStateRepository(WorkflowStateRepository):
    """Store workflow states in local memory.

    Useful for tests or when no database is configured. Data is not
    persisted across process restarts.
    """

    def __init__(self) -> None:
        self._states: Dict[str, WorkflowState] = {}

    # ------------------------------------------------------------------
    async def create(self, state: WorkflowState) -> None:
        if state.request_id in self._states:
            raise DuplicateRequestError(state.request_id)
        self._states[state.request_id] = state
        logger.debug(f"Created workflow state for request_id={state.request_id}")

    async def get(self, request_id: str) -> WorkflowState | None:
        return self._states.get(request_id)

    async def load(self, request_id: str) -> WorkflowState:
        state = self._states.get(request_id)
        if state is None:
            raise NotFoundError(request_id)
        return state

    async def save(self, state: WorkflowState) -> None:
        stored = self._states.get(state.request_id)
        if stored is None:
            raise NotFoundError(state.request_id)
        if state.version != stored.version + 1:
            raise ConcurrencyConflictError(
                state.request_id, state.version - 1, stored.version
            )
        self._states[state.request_id] = state
        logger.debug(
            f"Saved workflow state for request_id={state.request_id} version={state.version}"
        )

    async def delete(self, request_id: str) -> None:
        if self._states.pop(request_id, None) is None:
            raise NotFoundError(request_id)

    async def list_states(self) -> list[WorkflowState]:
        return list(self._states.values())
