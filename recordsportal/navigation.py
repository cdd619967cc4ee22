"""Routes, breadcrumbs and messages for the staff and v2 page flows.

Both UI generations render the same ``ProgressView``; only the URLs differ.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional
from urllib.parse import quote

from pydantic import BaseModel, ConfigDict

from .workflow import (
    DEFAULT_CATALOG,
    GuardReason,
    GuardResult,
    ProgressView,
    StepCatalog,
    StepStatus,
    UnknownStepError,
)


class UiFlow(str, Enum):
    STAFF = "staff"
    V2 = "v2"


class Breadcrumb(BaseModel):
    model_config = ConfigDict(frozen=True)

    label: str
    path: Optional[str] = None


def step_path(
    request_id: str,
    step: Any,
    flow: UiFlow = UiFlow.V2,
    catalog: StepCatalog = DEFAULT_CATALOG,
) -> str:
    """URL of the page for ``step`` of ``request_id``."""
    step = catalog.coerce(step)
    segment = quote(request_id, safe="")
    if UiFlow(flow) == UiFlow.STAFF:
        return f"/admin/request/{segment}/workflow/{step.value}"
    return f"/v2/request/{segment}/{step.value}"


def dashboard_path(flow: UiFlow = UiFlow.V2) -> str:
    if UiFlow(flow) == UiFlow.STAFF:
        return "/admin/staff"
    return "/v2/dashboard"


def build_breadcrumbs(
    view: ProgressView,
    flow: UiFlow = UiFlow.V2,
    catalog: StepCatalog = DEFAULT_CATALOG,
) -> list[Breadcrumb]:
    """Dashboard, the request, then the trail of visited steps.

    Steps are only linked when their status lets the user open them.
    """
    crumbs = [
        Breadcrumb(label="Dashboard", path=dashboard_path(flow)),
        Breadcrumb(label=f"Request {view.request_id}"),
    ]
    for step in view.breadcrumbs:
        status = view.status_of(step)
        path = None
        if status != StepStatus.LOCKED:
            path = step_path(view.request_id, step, flow, catalog)
        crumbs.append(Breadcrumb(label=catalog.label_of(step), path=path))
    return crumbs


def describe_rejection(
    result: GuardResult, target: Any, catalog: StepCatalog = DEFAULT_CATALOG
) -> str:
    """User facing explanation of why ``target`` cannot be entered."""
    try:
        target_label = catalog.label_of(target)
    except UnknownStepError:
        target_label = str(target)

    if result.allowed:
        return f"{target_label} is available"
    if result.reason == GuardReason.UNKNOWN_STEP:
        unknown = sorted(result.unknown_steps) or [target_label]
        if len(unknown) == 1:
            return f"'{unknown[0]}' is not a workflow step"
        names = ", ".join(f"'{value}'" for value in unknown)
        return f"{names} are not workflow steps"
    if result.reason == GuardReason.ALREADY_TERMINAL:
        return "This request is closed and can no longer change"

    blocking = " and ".join(catalog.label_of(s) for s in catalog.sort(result.blocking_steps))
    return f"Complete {blocking} before entering {target_label}"
