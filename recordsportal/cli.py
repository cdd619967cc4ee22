"""Command line interface for inspecting and advancing request workflows."""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional

import typer

from recordsportal.config import load_config
from recordsportal.navigation import UiFlow, build_breadcrumbs, describe_rejection, step_path
from recordsportal.service import WorkflowService
from recordsportal.workflow import (
    DEFAULT_CATALOG,
    ConcurrencyConflictError,
    DuplicateRequestError,
    NotFoundError,
    TransitionOutcome,
    WorkflowConfigurationError,
    WorkflowState,
)

app = typer.Typer(help="CLI for public records request workflows")

request_app = typer.Typer(help="Commands for managing request workflows")

app.add_typer(request_app, name="request")

STATUS_MARKERS = {
    "completed": "[DONE]",
    "current": "[ >> ]",
    "available": "[    ]",
    "locked": "[LOCK]",
}


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output")) -> None:
    """Records portal CLI entry point."""
    config = load_config()
    level = logging.DEBUG if verbose else getattr(logging, config.log_level.upper(), logging.INFO)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def _fail(message: str, code: int = 1) -> None:
    typer.secho(message, fg=typer.colors.RED)
    raise typer.Exit(code=code)


def _run(coro):
    """Run a service call, turning workflow errors into CLI failures."""
    try:
        return asyncio.run(coro)
    except NotFoundError as exc:
        _fail(f"Request not found: {exc.request_id}")
    except DuplicateRequestError as exc:
        _fail(f"Request already in processing: {exc.request_id}")
    except ConcurrencyConflictError as exc:
        _fail(f"State changed, please refresh: {exc}")
    except WorkflowConfigurationError as exc:
        _fail(str(exc))


def _flow(flow: Optional[UiFlow]) -> UiFlow:
    return flow or UiFlow(load_config().default_flow)


def _echo_state(state: WorkflowState) -> None:
    completed = ", ".join(s.value for s in DEFAULT_CATALOG.sort(state.completed_steps))
    typer.echo(f"Request {state.request_id}: {state.current_step.value}")
    typer.echo(f"Completed: {completed or '(none)'}")
    if state.closed:
        typer.echo("Closed")


def _report(outcome: TransitionOutcome, target: str) -> None:
    if outcome.ok:
        _echo_state(outcome.state)
        return
    _fail(describe_rejection(outcome.rejection, target), code=2)


@app.command("steps")
def steps() -> None:
    """List the workflow steps in order with their prerequisites."""
    for definition in DEFAULT_CATALOG:
        requires = ", ".join(s.value for s in DEFAULT_CATALOG.sort(definition.prerequisites))
        typer.echo(
            f"{definition.order}. {definition.step.value} - {definition.display_label}"
            + (f" (requires {requires})" if requires else "")
        )


@request_app.command("start")
def request_start(request_id: str) -> None:
    """
    Put a request into processing at the first workflow step.

    Example:
        recordsportal request start R1
    """
    state = _run(WorkflowService().start(request_id))
    _echo_state(state)


@request_app.command("list")
def request_list() -> None:
    """List requests in processing with their current step."""
    states = _run(WorkflowService().list_states())
    if not states:
        typer.echo("No requests found")
        return
    for state in states:
        typer.echo(
            f"{state.request_id}\t{state.current_step.value}"
            + ("\tclosed" if state.closed else "")
        )


@request_app.command("show")
def request_show(
    request_id: str,
    flow: Optional[UiFlow] = typer.Option(None, help="Page flow used for links"),
) -> None:
    """
    Show progress, step statuses and page links for a request.

    Example:
        recordsportal request show R1 --flow staff
        # Output: Request R1: 25% complete, next: redact
        #         [DONE] Locate -> /admin/request/R1/workflow/locate
        #         [ >> ] Redact -> /admin/request/R1/workflow/redact
    """
    service = WorkflowService()
    view = _run(service.progress(request_id))
    selected = _flow(flow)

    next_step = view.next_actionable_step.value if view.next_actionable_step else "(none)"
    typer.echo(f"Request {request_id}: {view.percent_complete}% complete, next: {next_step}")
    for item in view.ordered_step_statuses:
        line = f"{STATUS_MARKERS[item.status.value]} {item.label}"
        if item.status.value != "locked":
            line += f" -> {step_path(request_id, item.step, selected)}"
        typer.echo(line)
    typer.echo(" > ".join(crumb.label for crumb in build_breadcrumbs(view, selected)))


@request_app.command("check")
def request_check(request_id: str, step: str) -> None:
    """Tell whether STEP may be entered; exits 2 when it may not."""
    result = _run(WorkflowService().check(request_id, step))
    message = describe_rejection(result, step)
    if not result.allowed:
        _fail(message, code=2)
    typer.echo(message)


@request_app.command("advance")
def request_advance(
    request_id: str,
    step: str,
    complete: Optional[List[str]] = typer.Option(
        None, "--complete", "-c", help="Step completed by this action (repeatable)"
    ),
) -> None:
    """
    Move a request to STEP, optionally completing steps on the way.

    Example:
        recordsportal request advance R1 redact --complete locate
    """
    outcome = _run(WorkflowService().advance(request_id, step, complete or []))
    _report(outcome, step)


@request_app.command("close")
def request_close(request_id: str) -> None:
    """Close a request whose every step is completed."""
    outcome = _run(WorkflowService().close(request_id))
    if outcome.ok:
        _echo_state(outcome.state)
        return
    rejection = outcome.rejection
    if rejection.blocking_steps:
        remaining = ", ".join(s.value for s in DEFAULT_CATALOG.sort(rejection.blocking_steps))
        _fail(f"Cannot close, incomplete steps: {remaining}", code=2)
    _fail("Request is already closed", code=2)


@request_app.command("archive")
def request_archive(request_id: str) -> None:
    """Remove the workflow state of a request that left processing."""
    _run(WorkflowService().archive(request_id))
    typer.echo(f"Archived {request_id}")


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    app()
