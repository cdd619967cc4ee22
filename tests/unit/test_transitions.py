"""Transition applier tests."""

import random
from datetime import datetime, timezone

import pytest

from recordsportal.workflow import (
    DEFAULT_CATALOG,
    GuardReason,
    RequestIdMismatchError,
    Step,
    TransitionOutcome,
    TransitionRequest,
    WorkflowState,
    apply,
    close,
)


def _request(target, mark=(), request_id="R1"):
    return TransitionRequest(
        request_id=request_id, target_step=target, mark_complete=frozenset(mark)
    )


def _walk_to_review_completed():
    state = WorkflowState.initial("R1")
    for target, mark in [
        (Step.REDACT, {Step.LOCATE}),
        (Step.RESPOND, {Step.REDACT}),
        (Step.REVIEW, {Step.RESPOND}),
        (Step.REVIEW, {Step.REVIEW}),
    ]:
        state = apply(state, _request(target, mark)).unwrap()
    return state


def test_completing_and_entering_in_one_call():
    """Locate is completed and Redact entered by the same transition."""
    initial = WorkflowState.initial("R1")
    outcome = apply(initial, _request(Step.REDACT, {Step.LOCATE}))

    assert outcome.ok
    assert outcome.rejection is None
    assert outcome.state.current_step == Step.REDACT
    assert outcome.state.completed_steps == {Step.LOCATE}
    assert outcome.state.version == initial.version + 1


def test_skipping_respond_is_rejected():
    state = apply(WorkflowState.initial("R1"), _request(Step.REDACT, {Step.LOCATE})).unwrap()
    outcome = apply(state, _request(Step.REVIEW))

    assert not outcome.ok
    assert outcome.state is None
    assert outcome.rejection.reason == GuardReason.MISSING_PREREQUISITE
    assert outcome.rejection.blocking_steps == {Step.RESPOND}


def test_unknown_target_and_unknown_marked_step_are_rejected():
    state = WorkflowState.initial("R1")
    assert apply(state, _request("UnknownStep")).rejection.reason == GuardReason.UNKNOWN_STEP
    outcome = apply(state, _request(Step.LOCATE, {"shred"}))
    assert outcome.rejection.reason == GuardReason.UNKNOWN_STEP
    assert outcome.rejection.unknown_steps == {"shred"}

    outcome = apply(state, _request(Step.REDACT, {Step.LOCATE, "shred", "burn"}))
    assert outcome.rejection.unknown_steps == {"shred", "burn"}


def test_marking_step_without_its_prerequisites_is_rejected():
    outcome = apply(WorkflowState.initial("R1"), _request(Step.LOCATE, {Step.RESPOND}))
    assert outcome.rejection.reason == GuardReason.MISSING_PREREQUISITE
    assert outcome.rejection.blocking_steps == {Step.REDACT}


def test_request_id_mismatch_is_fatal():
    with pytest.raises(RequestIdMismatchError):
        apply(WorkflowState.initial("R1"), _request(Step.LOCATE, request_id="R2"))


def test_apply_is_idempotent():
    request = _request(Step.REDACT, {Step.LOCATE})
    first = apply(WorkflowState.initial("R1"), request).unwrap()
    second = apply(first, request).unwrap()

    assert second.current_step == first.current_step
    assert second.completed_steps == first.completed_steps


def test_apply_does_not_touch_input_state():
    initial = WorkflowState.initial("R1")
    snapshot = initial.to_record()
    stamp = datetime(2024, 5, 1, tzinfo=timezone.utc)

    new_state = apply(initial, _request(Step.REDACT, {Step.LOCATE}), now=stamp).unwrap()

    assert initial.to_record() == snapshot
    assert new_state.updated_at == stamp


def test_revisiting_earlier_step_keeps_completed_steps():
    state = apply(WorkflowState.initial("R1"), _request(Step.REDACT, {Step.LOCATE})).unwrap()
    back = apply(state, _request(Step.LOCATE)).unwrap()
    assert back.current_step == Step.LOCATE
    assert back.completed_steps == {Step.LOCATE}


def test_random_walk_preserves_invariants_and_monotonicity():
    rng = random.Random(7)
    candidates = list(DEFAULT_CATALOG.steps) + ["bogus"]
    state = WorkflowState.initial("R1")

    for _ in range(300):
        target = rng.choice(candidates)
        mark = set(rng.sample(candidates, rng.randint(0, 2)))
        outcome = apply(state, _request(target, mark))
        if not outcome.ok:
            continue
        new_state = outcome.state
        assert state.completed_steps <= new_state.completed_steps
        for step in new_state.completed_steps:
            assert DEFAULT_CATALOG.prerequisites_of(step) <= new_state.completed_steps
        state = new_state

    assert state.version > 0


def test_close_requires_every_step():
    state = apply(WorkflowState.initial("R1"), _request(Step.REDACT, {Step.LOCATE})).unwrap()
    outcome = close(state)
    assert outcome.rejection.reason == GuardReason.MISSING_PREREQUISITE
    assert outcome.rejection.blocking_steps == {Step.REDACT, Step.RESPOND, Step.REVIEW}


def test_closed_request_rejects_everything():
    finished = _walk_to_review_completed()
    closed = close(finished).unwrap()

    assert closed.closed
    assert closed.version == finished.version + 1
    assert close(closed).rejection.reason == GuardReason.ALREADY_TERMINAL
    outcome = apply(closed, _request(Step.LOCATE))
    assert outcome.rejection.reason == GuardReason.ALREADY_TERMINAL


def test_outcome_holds_exactly_one_side():
    with pytest.raises(ValueError):
        TransitionOutcome()
    rejected = apply(WorkflowState.initial("R1"), _request(Step.REVIEW))
    with pytest.raises(RuntimeError):
        rejected.unwrap()
