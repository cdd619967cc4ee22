"""End-to-end request processing through the workflow service."""

import pytest

from recordsportal import UiFlow, WorkflowService, build_breadcrumbs
from recordsportal.persistence import SQLiteWorkflowStateRepository
from recordsportal.workflow import (
    ConcurrencyConflictError,
    GuardReason,
    NotFoundError,
    Step,
    StepStatus,
)


@pytest.mark.asyncio
async def test_full_request_lifecycle(tmp_path):
    service = WorkflowService(SQLiteWorkflowStateRepository(tmp_path / "portal.db"))

    await service.start("R1")
    steps = [
        (Step.REDACT, [Step.LOCATE]),
        (Step.RESPOND, [Step.REDACT]),
        (Step.REVIEW, [Step.RESPOND]),
        (Step.REVIEW, [Step.REVIEW]),
    ]
    for target, mark in steps:
        outcome = await service.advance("R1", target, mark)
        assert outcome.ok, outcome.rejection

    view = await service.progress("R1")
    assert view.percent_complete == 100
    assert view.next_actionable_step is None

    closed = await service.close("R1")
    assert closed.ok
    assert (await service.load("R1")).closed
    assert (await service.check("R1", Step.LOCATE)).reason == GuardReason.ALREADY_TERMINAL

    await service.archive("R1")
    with pytest.raises(NotFoundError):
        await service.load("R1")


@pytest.mark.asyncio
async def test_staff_and_v2_flows_share_one_state(tmp_path):
    db_path = tmp_path / "portal.db"
    staff = WorkflowService(SQLiteWorkflowStateRepository(db_path))
    v2 = WorkflowService(SQLiteWorkflowStateRepository(db_path))

    await staff.start("R7")
    await v2.advance("R7", Step.REDACT, [Step.LOCATE])

    staff_view = await staff.progress("R7")
    v2_view = await v2.progress("R7")
    assert staff_view == v2_view
    assert staff_view.status_of(Step.REDACT) == StepStatus.CURRENT
    assert build_breadcrumbs(staff_view, UiFlow.STAFF)[-1].path == (
        "/admin/request/R7/workflow/redact"
    )


@pytest.mark.asyncio
async def test_concurrent_advance_reports_conflict(tmp_path):
    db_path = tmp_path / "portal.db"
    first = WorkflowService(SQLiteWorkflowStateRepository(db_path))
    second = WorkflowService(SQLiteWorkflowStateRepository(db_path))

    await first.start("R3")
    rendered = await second.load("R3")

    await first.advance("R3", Step.REDACT, [Step.LOCATE])
    with pytest.raises(ConcurrencyConflictError):
        await second.advance("R3", Step.REDACT, [Step.LOCATE], state=rendered)

    # after reloading the same action is idempotent
    outcome = await second.advance("R3", Step.REDACT, [Step.LOCATE])
    assert outcome.ok
    assert outcome.state.completed_steps == {Step.LOCATE}
    assert outcome.state.version == 2


@pytest.mark.asyncio
async def test_rejected_advance_is_not_persisted(tmp_path):
    service = WorkflowService(SQLiteWorkflowStateRepository(tmp_path / "portal.db"))
    await service.start("R4")

    outcome = await service.advance("R4", Step.RESPOND)
    assert not outcome.ok
    assert outcome.rejection.blocking_steps == {Step.REDACT}

    state = await service.load("R4")
    assert state.version == 0
    assert state.current_step == Step.LOCATE
