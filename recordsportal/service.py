"""Request workflow service wiring the core to a repository."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Optional

from .persistence import WorkflowStateRepository, get_repository
from .workflow import (
    DEFAULT_CATALOG,
    GuardResult,
    ProgressView,
    StepCatalog,
    TransitionOutcome,
    TransitionRequest,
    WorkflowState,
    apply,
    can_enter,
    close as close_request,
    project,
)

logger = logging.getLogger(__name__)


class WorkflowService:
    """Load, transition and save request workflow states.

    Every write goes through :func:`recordsportal.workflow.apply` or
    :func:`recordsportal.workflow.close`, and is persisted with the
    repository's compare-and-set. A ``ConcurrencyConflictError`` means another
    user advanced the request first; callers should reload and re-offer the
    action instead of retrying blindly.
    """

    def __init__(
        self,
        repository: WorkflowStateRepository | None = None,
        catalog: StepCatalog = DEFAULT_CATALOG,
    ) -> None:
        self._repository = repository or get_repository()
        self._catalog = catalog

    @property
    def catalog(self) -> StepCatalog:
        return self._catalog

    async def start(self, request_id: str) -> WorkflowState:
        """Create the initial state for a request entering processing."""
        state = WorkflowState.initial(request_id, self._catalog)
        await self._repository.create(state)
        logger.info(
            f"Started workflow for request_id={request_id} at step {state.current_step}"
        )
        return state

    async def load(self, request_id: str) -> WorkflowState:
        return await self._repository.load(request_id)

    async def list_states(self) -> list[WorkflowState]:
        return await self._repository.list_states()

    async def check(self, request_id: str, target: Any) -> GuardResult:
        state = await self.load(request_id)
        return can_enter(state, target, self._catalog)

    async def progress(self, request_id: str) -> ProgressView:
        state = await self.load(request_id)
        return project(state, self._catalog)

    async def advance(
        self,
        request_id: str,
        target: Any,
        mark_complete: Iterable[Any] = (),
        state: Optional[WorkflowState] = None,
    ) -> TransitionOutcome:
        """Move ``request_id`` to ``target``, completing ``mark_complete``.

        ``state`` may be passed when the caller already holds the state it
        rendered from; the save then fails if that state went stale.
        """
        current = state or await self.load(request_id)
        request = TransitionRequest(
            request_id=request_id,
            target_step=target,
            mark_complete=frozenset(mark_complete),
        )
        outcome = apply(current, request, self._catalog)
        if not outcome.ok:
            logger.info(
                f"Rejected transition to {target} for request_id={request_id}: "
                f"{outcome.rejection.reason.value}"
            )
            return outcome

        await self._repository.save(outcome.state)
        logger.info(
            f"Request request_id={request_id} moved to {outcome.state.current_step} "
            f"(version {outcome.state.version})"
        )
        return outcome

    async def close(self, request_id: str) -> TransitionOutcome:
        current = await self.load(request_id)
        outcome = close_request(current, self._catalog)
        if not outcome.ok:
            logger.info(
                f"Rejected close for request_id={request_id}: "
                f"{outcome.rejection.reason.value}"
            )
            return outcome

        await self._repository.save(outcome.state)
        logger.info(f"Closed workflow for request_id={request_id}")
        return outcome

    async def archive(self, request_id: str) -> None:
        """Drop the state of a request that left processing."""
        await self._repository.delete(request_id)
        logger.info(f"Archived workflow state for request_id={request_id}")
