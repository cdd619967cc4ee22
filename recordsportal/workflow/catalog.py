"""Static catalog of request processing steps."""

from __future__ import annotations

from enum import Enum
from typing import Any, Iterable, Iterator

from pydantic import BaseModel, ConfigDict, Field

from .errors import CatalogError, UnknownStepError, format_steps


class Step(str, Enum):
    """One stage of the request processing pipeline."""

    LOCATE = "locate"
    REDACT = "redact"
    RESPOND = "respond"
    REVIEW = "review"

    def __str__(self) -> str:
        return self.value


class StepDefinition(BaseModel):
    """Position and entry requirements of a single step."""

    model_config = ConfigDict(frozen=True)

    step: Step
    order: int
    prerequisites: frozenset[Step] = Field(default_factory=frozenset)
    label: str = ""
    description: str = ""

    @property
    def display_label(self) -> str:
        return self.label or self.step.value.capitalize()


class StepCatalog:
    """Ordered, validated set of step definitions.

    Definitions are sorted by ``order``. Every prerequisite must itself be
    part of the catalog and have a strictly smaller order, which makes the
    prerequisite relation acyclic by construction.
    """

    def __init__(self, definitions: Iterable[StepDefinition]) -> None:
        ordered = sorted(definitions, key=lambda d: d.order)
        if not ordered:
            raise CatalogError("A step catalog needs at least one step")

        self._by_step: dict[Step, StepDefinition] = {}
        seen_orders: set[int] = set()
        for definition in ordered:
            if definition.step in self._by_step:
                raise CatalogError(f"Step {definition.step} defined twice")
            if definition.order in seen_orders:
                raise CatalogError(f"Order {definition.order} used by more than one step")
            seen_orders.add(definition.order)
            self._by_step[definition.step] = definition

        for definition in ordered:
            unknown = definition.prerequisites - self._by_step.keys()
            if unknown:
                raise CatalogError(
                    f"Step {definition.step} requires steps outside the catalog: "
                    f"{format_steps(unknown)}"
                )
            late = {
                p
                for p in definition.prerequisites
                if self._by_step[p].order >= definition.order
            }
            if late:
                raise CatalogError(
                    f"Step {definition.step} requires later steps: {format_steps(late)}"
                )

        self._definitions = tuple(ordered)

    # ------------------------------------------------------------------
    def __iter__(self) -> Iterator[StepDefinition]:
        return iter(self._definitions)

    def __len__(self) -> int:
        return len(self._definitions)

    def __contains__(self, value: object) -> bool:
        try:
            self.coerce(value)
        except UnknownStepError:
            return False
        return True

    def __repr__(self) -> str:
        return f"StepCatalog({[d.step.value for d in self._definitions]})"

    @property
    def definitions(self) -> tuple[StepDefinition, ...]:
        return self._definitions

    @property
    def steps(self) -> tuple[Step, ...]:
        """Steps in catalog order."""
        return tuple(d.step for d in self._definitions)

    @property
    def first_step(self) -> Step:
        return self._definitions[0].step

    # ------------------------------------------------------------------
    def coerce(self, value: Any) -> Step:
        """Return the catalog step for ``value`` (a ``Step`` or its name)."""
        try:
            step = value if isinstance(value, Step) else Step(str(value).lower())
        except ValueError:
            raise UnknownStepError(value) from None
        if step not in self._by_step:
            raise UnknownStepError(value)
        return step

    def definition_of(self, step: Any) -> StepDefinition:
        return self._by_step[self.coerce(step)]

    def prerequisites_of(self, step: Any) -> frozenset[Step]:
        """Steps that must be completed before ``step`` may be entered."""
        return self.definition_of(step).prerequisites

    def order_of(self, step: Any) -> int:
        return self.definition_of(step).order

    def label_of(self, step: Any) -> str:
        return self.definition_of(step).display_label

    def sort(self, steps: Iterable[Any]) -> tuple[Step, ...]:
        """Return ``steps`` as catalog steps in catalog order."""
        return tuple(sorted({self.coerce(s) for s in steps}, key=self.order_of))


DEFAULT_CATALOG = StepCatalog(
    [
        StepDefinition(
            step=Step.LOCATE,
            order=1,
            label="Locate",
            description="Find and select relevant records",
        ),
        StepDefinition(
            step=Step.REDACT,
            order=2,
            prerequisites=frozenset({Step.LOCATE}),
            label="Redact",
            description="Review and redact sensitive information",
        ),
        StepDefinition(
            step=Step.RESPOND,
            order=3,
            prerequisites=frozenset({Step.REDACT}),
            label="Respond",
            description="Draft response and prepare package",
        ),
        StepDefinition(
            step=Step.REVIEW,
            order=4,
            prerequisites=frozenset({Step.RESPOND}),
            label="Review & Send",
            description="Final review and delivery",
        ),
    ]
)
