"""In-memory store for wizard states."""

from __future__ import annotations

from cohort.wizard.models import WizardState


class WizardStore:
    """In-memory dict store for wizard states.

    Wizard progress is short-lived form state, so it is not persisted;
    suitable for single-instance deployment.
    """

    def __init__(self) -> None:
        self._states: dict[str, WizardState] = {}

    def save(self, state: WizardState) -> None:
        self._states[state.id] = state

    def get(self, state_id: str) -> WizardState | None:
        return self._states.get(state_id)

    def delete(self, state_id: str) -> bool:
        return self._states.pop(state_id, None) is not None

    def list_active(self) -> list[WizardState]:
        return [s for s in self._states.values() if not s.completed]

    @property
    def count(self) -> int:
        return len(self._states)
