"""Step progress for multi-step forms.

The progress view is a pure function of ``(steps, current_step)``. It owns no
state and never raises for an out-of-range step: below 1 nothing is active,
past the last step everything is active and every connector is filled.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

_FROZEN_WIRE = {"frozen": True, "alias_generator": to_camel, "populate_by_name": True}


class Step(BaseModel):
    """A labelled wizard step. Its identity is its position."""

    model_config = _FROZEN_WIRE

    title: str = Field(min_length=1)
    description: str | None = None


class StepMarker(BaseModel):
    """The numbered circle drawn for one step."""

    model_config = _FROZEN_WIRE

    number: int
    title: str
    description: str | None = None
    active: bool
    current: bool

    @property
    def style(self) -> str:
        return "active" if self.active else "inactive"


class StepConnector(BaseModel):
    """The segment drawn between step ``after`` and the next one."""

    model_config = _FROZEN_WIRE

    after: int
    filled: bool

    @property
    def style(self) -> str:
        return "filled" if self.filled else "unfilled"


class StepLabel(BaseModel):
    """The title shown under the marker row."""

    model_config = _FROZEN_WIRE

    number: int
    title: str
    active: bool

    @property
    def style(self) -> str:
        return "active" if self.active else "muted"


class WizardProgress(BaseModel):
    """Derived progress for one render pass."""

    model_config = _FROZEN_WIRE

    current_step: int
    total_steps: int
    markers: tuple[StepMarker, ...] = ()
    connectors: tuple[StepConnector, ...] = ()
    labels: tuple[StepLabel, ...] = ()

    @property
    def active_count(self) -> int:
        return sum(1 for m in self.markers if m.active)

    @property
    def filled_count(self) -> int:
        return sum(1 for c in self.connectors if c.filled)


def is_active(position: int, current_step: int) -> bool:
    return position <= current_step


def is_current(position: int, current_step: int) -> bool:
    return position == current_step


def is_filled(position: int, current_step: int) -> bool:
    return position < current_step


def _coerce_step(current_step: Any) -> int:
    """Best-effort integer conversion; anything unusable counts as step 0."""
    try:
        return int(current_step)
    except (TypeError, ValueError, OverflowError):
        return 0


def compute_progress(steps: Sequence[Step] | None, current_step: Any) -> WizardProgress:
    """Compute markers, connectors and labels for ``steps`` at ``current_step``.

    ``steps`` positions are 1-based. An empty (or missing) sequence yields an
    empty progress view rather than an error.
    """
    current = _coerce_step(current_step)
    steps = tuple(steps or ())
    total = len(steps)

    markers = []
    connectors = []
    labels = []
    for position, step in enumerate(steps, start=1):
        active = is_active(position, current)
        markers.append(
            StepMarker(
                number=position,
                title=step.title,
                description=step.description,
                active=active,
                current=is_current(position, current),
            )
        )
        if position < total:
            connectors.append(StepConnector(after=position, filled=is_filled(position, current)))
        labels.append(StepLabel(number=position, title=step.title, active=active))

    return WizardProgress(
        current_step=current,
        total_steps=total,
        markers=tuple(markers),
        connectors=tuple(connectors),
        labels=tuple(labels),
    )


def steps_from(definitions: Sequence[Any]) -> list[Step]:
    """Build ``Step`` descriptors from anything with ``title``/``description``."""
    return [
        Step(title=d.title, description=getattr(d, "description", None) or None)
        for d in definitions
    ]
