"""Per-request workflow state and transition requests."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Iterable, Mapping, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_validator,
    model_validator,
)

from .catalog import DEFAULT_CATALOG, Step, StepCatalog
from .errors import InvalidStateError, format_steps


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _catalog_from(info: ValidationInfo) -> StepCatalog:
    context = info.context or {}
    return context.get("catalog") or DEFAULT_CATALOG


class WorkflowState(BaseModel):
    """Immutable snapshot of where a single request is in the workflow.

    Instances are validated against a ``StepCatalog`` (``DEFAULT_CATALOG``
    unless another one is passed through the validation context, which is
    what :meth:`initial` and :meth:`build` do). Successor states are only
    produced by the transition functions.
    """

    model_config = ConfigDict(frozen=True)

    request_id: str
    current_step: Step
    completed_steps: frozenset[Step] = Field(default_factory=frozenset)
    updated_at: datetime = Field(default_factory=_utcnow)
    version: int = 0
    closed: bool = False

    @field_validator("request_id")
    @classmethod
    def _non_empty_request_id(cls, value: str) -> str:
        if not value or not value.strip():
            raise InvalidStateError("request_id must be a non-empty string")
        return value

    @field_validator("current_step", mode="before")
    @classmethod
    def _known_current_step(cls, value: Any, info: ValidationInfo) -> Step:
        return _catalog_from(info).coerce(value)

    @field_validator("completed_steps", mode="before")
    @classmethod
    def _known_completed_steps(cls, value: Any, info: ValidationInfo) -> frozenset:
        if value is None:
            return frozenset()
        if isinstance(value, (str, Step)):
            raise InvalidStateError("completed_steps must be a collection of steps")
        catalog = _catalog_from(info)
        try:
            return frozenset(catalog.coerce(v) for v in value)
        except TypeError as exc:
            raise InvalidStateError(
                f"completed_steps must be a collection of steps, got {value!r}"
            ) from exc

    @field_validator("version")
    @classmethod
    def _non_negative_version(cls, value: int) -> int:
        if value < 0:
            raise InvalidStateError("version must not be negative")
        return value

    @model_validator(mode="after")
    def _check_prerequisites(self, info: ValidationInfo) -> "WorkflowState":
        catalog = _catalog_from(info)

        for step in self.completed_steps:
            missing = catalog.prerequisites_of(step) - self.completed_steps
            if missing:
                raise InvalidStateError(
                    f"Request {self.request_id}: step {step} completed without "
                    f"{format_steps(missing)}"
                )

        if self.current_step != catalog.first_step:
            missing = catalog.prerequisites_of(self.current_step) - self.completed_steps
            if missing:
                raise InvalidStateError(
                    f"Request {self.request_id}: current step {self.current_step} "
                    f"entered without {format_steps(missing)}"
                )

        if self.closed and set(catalog.steps) - self.completed_steps:
            raise InvalidStateError(
                f"Request {self.request_id}: closed before every step was completed"
            )
        return self

    # ------------------------------------------------------------------
    @classmethod
    def initial(
        cls, request_id: str, catalog: StepCatalog = DEFAULT_CATALOG
    ) -> "WorkflowState":
        """State of a request that just entered processing."""
        return cls.build(
            request_id=request_id,
            current_step=catalog.first_step,
            completed_steps=frozenset(),
            catalog=catalog,
        )

    @classmethod
    def build(
        cls,
        *,
        request_id: str,
        current_step: Union[Step, str],
        completed_steps: Iterable[Union[Step, str]] = (),
        updated_at: Optional[datetime] = None,
        version: int = 0,
        closed: bool = False,
        catalog: StepCatalog = DEFAULT_CATALOG,
    ) -> "WorkflowState":
        """Validated constructor checking invariants against ``catalog``."""
        data = {
            "request_id": request_id,
            "current_step": current_step,
            "completed_steps": list(completed_steps),
            "version": version,
            "closed": closed,
        }
        if updated_at is not None:
            data["updated_at"] = updated_at
        return cls.model_validate(data, context={"catalog": catalog})

    def model_copy(
        self,
        *,
        update: Optional[Mapping[str, Any]] = None,
        deep: bool = False,
        catalog: StepCatalog = DEFAULT_CATALOG,
    ) -> "WorkflowState":
        """Copy the state; an ``update`` is validated against ``catalog``."""
        if not update:
            return super().model_copy(deep=deep)
        data = {**self.model_dump(), **update}
        return type(self).model_validate(data, context={"catalog": catalog})

    def is_completed(self, step: Union[Step, str]) -> bool:
        return step in self.completed_steps

    def to_record(self) -> dict[str, Any]:
        """JSON friendly representation used by persistence backends."""
        return {
            "request_id": self.request_id,
            "current_step": self.current_step.value,
            "completed_steps": sorted(s.value for s in self.completed_steps),
            "updated_at": self.updated_at.isoformat(),
            "version": self.version,
            "closed": self.closed,
        }


class TransitionRequest(BaseModel):
    """Input to :func:`recordsportal.workflow.transitions.apply`.

    Step values are kept as given so that unknown steps are reported by the
    navigation guard instead of failing model validation.
    """

    model_config = ConfigDict(frozen=True)

    request_id: str
    target_step: Union[Step, str]
    mark_complete: frozenset[Union[Step, str]] = Field(default_factory=frozenset)
