"""Workflow state construction and invariant tests."""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from recordsportal.workflow import (
    InvalidStateError,
    Step,
    StepCatalog,
    StepDefinition,
    UnknownStepError,
    WorkflowState,
)


def test_initial_state_starts_at_first_step():
    state = WorkflowState.initial("R1")
    assert state.request_id == "R1"
    assert state.current_step == Step.LOCATE
    assert state.completed_steps == frozenset()
    assert state.version == 0
    assert not state.closed
    assert state.updated_at.tzinfo is not None


def test_state_accepts_step_names():
    state = WorkflowState(
        request_id="R1", current_step="redact", completed_steps=["locate"]
    )
    assert state.current_step == Step.REDACT
    assert state.completed_steps == {Step.LOCATE}
    assert state.is_completed(Step.LOCATE)


@pytest.mark.parametrize(
    "current, completed",
    [
        ("locate", ["redact"]),
        ("respond", ["locate"]),
        ("review", ["locate", "redact"]),
        ("locate", ["locate", "respond"]),
    ],
)
def test_prerequisite_violations_raise_invalid_state(current, completed):
    with pytest.raises(InvalidStateError):
        WorkflowState.build(request_id="R1", current_step=current, completed_steps=completed)


def test_empty_request_id_is_invalid():
    with pytest.raises(InvalidStateError):
        WorkflowState.initial("")
    with pytest.raises(InvalidStateError):
        WorkflowState.initial("   ")


def test_unknown_steps_are_rejected_at_construction():
    with pytest.raises(UnknownStepError):
        WorkflowState.build(request_id="R1", current_step="archive")
    with pytest.raises(UnknownStepError):
        WorkflowState.build(
            request_id="R1", current_step="locate", completed_steps=["locate", "shred"]
        )


def test_closed_state_requires_every_step_completed():
    with pytest.raises(InvalidStateError):
        WorkflowState.build(
            request_id="R1",
            current_step="redact",
            completed_steps=["locate"],
            closed=True,
        )


def test_state_is_immutable():
    state = WorkflowState.initial("R1")
    with pytest.raises(ValidationError):
        state.current_step = Step.REDACT


def test_validation_uses_supplied_catalog():
    catalog = StepCatalog(
        [
            StepDefinition(step=Step.LOCATE, order=1),
            StepDefinition(step=Step.RESPOND, order=2),
        ]
    )
    state = WorkflowState.build(request_id="R1", current_step="respond", catalog=catalog)
    assert state.current_step == Step.RESPOND

    with pytest.raises(UnknownStepError):
        WorkflowState.build(request_id="R1", current_step="redact", catalog=catalog)


def test_to_record_is_json_friendly():
    stamp = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
    state = WorkflowState.build(
        request_id="R1",
        current_step="respond",
        completed_steps=["redact", "locate"],
        updated_at=stamp,
        version=3,
    )
    assert state.to_record() == {
        "request_id": "R1",
        "current_step": "respond",
        "completed_steps": ["locate", "redact"],
        "updated_at": "2024-01-01T12:00:00+00:00",
        "version": 3,
        "closed": False,
    }


def test_non_iterable_completed_steps_is_invalid():
    with pytest.raises(InvalidStateError):
        WorkflowState(request_id="R1", current_step="locate", completed_steps=5)
    with pytest.raises(InvalidStateError):
        WorkflowState(request_id="R1", current_step="locate", completed_steps="locate")


def test_copy_with_update_is_validated():
    state = WorkflowState.initial("R1")
    with pytest.raises(InvalidStateError):
        state.model_copy(update={"completed_steps": frozenset({Step.REVIEW})})
    with pytest.raises(InvalidStateError):
        state.model_copy(update={"current_step": Step.RESPOND})
    with pytest.raises(UnknownStepError):
        state.model_copy(update={"current_step": "archive"})

    moved = state.model_copy(
        update={"current_step": Step.REDACT, "completed_steps": {Step.LOCATE}}
    )
    assert moved.current_step == Step.REDACT
    assert moved.completed_steps == {Step.LOCATE}
    assert moved.request_id == state.request_id
    assert state.current_step == Step.LOCATE

    assert state.model_copy() == state


def test_copy_with_update_uses_supplied_catalog():
    catalog = StepCatalog(
        [
            StepDefinition(step=Step.LOCATE, order=1),
            StepDefinition(step=Step.RESPOND, order=2),
        ]
    )
    state = WorkflowState.initial("R1", catalog)
    moved = state.model_copy(update={"current_step": Step.RESPOND}, catalog=catalog)
    assert moved.current_step == Step.RESPOND
