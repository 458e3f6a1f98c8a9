"""Config-driven registration wizard state machine."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import yaml

from cohort.core.types import AuditEvent
from cohort.governance.audit import AuditLogger
from cohort.wizard.models import (
    FieldDefinition,
    FieldOption,
    FieldType,
    StepDefinition,
    StepState,
    StepStatus,
    WizardDefinition,
    WizardState,
)
from cohort.wizard.progress import WizardProgress, compute_progress, steps_from
from cohort.wizard.store import WizardStore
from cohort.wizard.validation import ValidationEngine

logger = logging.getLogger(__name__)

_DEFAULT_WIZARDS_DIR = Path(__file__).resolve().parents[3] / "config" / "wizards"


def _parse_option(data: Any) -> FieldOption:
    if isinstance(data, dict):
        return FieldOption(value=str(data["value"]), label=str(data.get("label", data["value"])))
    return FieldOption(value=str(data), label=str(data))


def _parse_field(data: dict[str, Any]) -> FieldDefinition:
    return FieldDefinition(
        id=data["id"],
        label=data.get("label", data["id"]),
        field_type=FieldType(data.get("type", "text")),
        required=data.get("required", False),
        validators=data.get("validators", []),
        options=[_parse_option(o) for o in data.get("options", [])],
        options_from=data.get("options_from"),
        placeholder=str(data.get("placeholder", "")),
        help_text=data.get("help_text", ""),
    )


def _parse_step(data: dict[str, Any]) -> StepDefinition:
    return StepDefinition(
        id=data["id"],
        title=data.get("title", data["id"]),
        description=data.get("description", ""),
        fields=[_parse_field(f) for f in data.get("fields", [])],
    )


def _load_wizard(path: Path) -> WizardDefinition:
    with open(path) as fh:
        data = yaml.safe_load(fh)
    steps = [_parse_step(s) for s in data.get("steps") or []]
    if not steps:
        raise ValueError(f"Wizard {data['id']!r} in {path} defines no steps")
    return WizardDefinition(
        id=data["id"],
        title=data.get("title", data["id"]),
        description=data.get("description", ""),
        steps=steps,
    )


class WizardEngine:
    """Config-driven wizard state machine.

    Loads wizard definitions from YAML files in the wizards directory and
    owns the active step of every running wizard. Each step is validated
    server-side before the wizard advances.
    """

    def __init__(
        self,
        store: WizardStore,
        validation_engine: ValidationEngine,
        audit_logger: AuditLogger | None = None,
        wizards_dir: str | Path | None = None,
    ) -> None:
        self._store = store
        self._validation = validation_engine
        self._audit = audit_logger
        self._wizards: dict[str, WizardDefinition] = {}
        self._load_wizards(Path(wizards_dir) if wizards_dir else _DEFAULT_WIZARDS_DIR)

    def _load_wizards(self, wizards_dir: Path) -> None:
        if not wizards_dir.exists():
            logger.warning("Wizards directory %s does not exist", wizards_dir)
            return
        for path in sorted(wizards_dir.glob("*.yml")):
            defn = _load_wizard(path)
            self._wizards[defn.id] = defn
            logger.debug("Loaded wizard %s (%d steps)", defn.id, len(defn.steps))

    @property
    def wizard_definitions(self) -> dict[str, WizardDefinition]:
        return dict(self._wizards)

    def definition_for(self, state: WizardState) -> WizardDefinition:
        return self._wizards[state.wizard_id]

    def get_state(self, state_id: str) -> WizardState:
        """Raises:
            KeyError: If state_id not found.
        """
        state = self._store.get(state_id)
        if state is None:
            raise KeyError(f"Wizard state {state_id!r} not found")
        return state

    def start_wizard(self, wizard_id: str) -> WizardState:
        """Start a new wizard instance on its first step.

        Raises:
            ValueError: If wizard_id is not found.
        """
        defn = self._wizards.get(wizard_id)
        if defn is None:
            raise ValueError(f"Unknown wizard: {wizard_id!r}")

        steps = [
            StepState(
                step_id=step_def.id,
                status=StepStatus.IN_PROGRESS if i == 0 else StepStatus.PENDING,
            )
            for i, step_def in enumerate(defn.steps)
        ]
        state = WizardState(wizard_id=wizard_id, current_step_index=0, steps=steps)
        self._store.save(state)

        self._log_audit(state, "wizard_started", {"wizard_id": wizard_id})
        return state

    def submit_step(self, state_id: str, step_id: str, data: dict[str, Any]) -> WizardState:
        """Submit data for the current step.

        Validates data, saves it either way, and advances only when valid.

        Raises:
            KeyError: If state_id not found.
            ValueError: If step_id is not the current step or the wizard is done.
        """
        state = self.get_state(state_id)
        if state.completed:
            raise ValueError("Wizard has already been submitted.")

        defn = self._wizards[state.wizard_id]
        current = state.steps[state.current_step_index]
        if current.step_id != step_id:
            raise ValueError(f"Expected step {current.step_id!r}, got {step_id!r}")

        step_def = defn.steps[state.current_step_index]
        cleaned = {f.id: _clean(data.get(f.id)) for f in step_def.fields}
        context = {
            k: v for s in state.steps if s is not current for k, v in s.data.items()
        }
        result = self._validation.validate_step(step_def, cleaned, context)

        current.data = cleaned
        state.updated_at = datetime.now(timezone.utc)
        if not result.valid:
            current.errors = result.errors
            current.status = StepStatus.IN_PROGRESS
            self._store.save(state)
            return state

        current.errors = {}
        current.status = StepStatus.COMPLETED
        self._log_audit(state, "step_completed", {"step_id": step_id})

        next_index = state.current_step_index + 1
        if next_index < len(state.steps):
            state.current_step_index = next_index
            state.steps[next_index].status = StepStatus.IN_PROGRESS

        self._store.save(state)
        return state

    def go_back(self, state_id: str) -> WizardState:
        """Go back to the previous step, preserving entered data.

        Raises:
            KeyError: If state_id not found.
            ValueError: If already at the first step.
        """
        state = self.get_state(state_id)
        if state.current_step_index <= 0:
            raise ValueError("Already at the first step.")

        leaving = state.steps[state.current_step_index]
        if leaving.status != StepStatus.COMPLETED:
            leaving.status = StepStatus.PENDING
        state.current_step_index -= 1
        state.steps[state.current_step_index].status = StepStatus.IN_PROGRESS
        state.completed = False
        state.updated_at = datetime.now(timezone.utc)
        self._store.save(state)
        return state

    def merged_data(self, state_id: str) -> dict[str, Any]:
        """Merge data from all steps of a fully validated wizard.

        Raises:
            KeyError: If state_id not found.
            ValueError: If any step is not completed.
        """
        state = self.get_state(state_id)
        for step_state in state.steps:
            if step_state.status != StepStatus.COMPLETED:
                raise ValueError(
                    f"Step {step_state.step_id!r} is not completed "
                    f"(status: {step_state.status.value})."
                )
        return state.collected_data()

    def complete(self, state_id: str) -> WizardState:
        state = self.get_state(state_id)
        state.completed = True
        state.updated_at = datetime.now(timezone.utc)
        self._store.save(state)
        self._log_audit(state, "wizard_completed", {"wizard_id": state.wizard_id})
        return state

    def reopen_step(self, state_id: str, step_id: str, errors: dict[str, list[str]]) -> WizardState:
        """Put a completed step back in progress with errors found later on."""
        state = self.get_state(state_id)
        for index, step_state in enumerate(state.steps):
            if step_state.step_id == step_id:
                step_state.status = StepStatus.IN_PROGRESS
                step_state.errors = errors
                state.current_step_index = index
                break
        else:
            raise ValueError(f"Unknown step {step_id!r}")
        state.updated_at = datetime.now(timezone.utc)
        self._store.save(state)
        return state

    def progress(self, state: WizardState) -> WizardProgress:
        defn = self._wizards[state.wizard_id]
        return compute_progress(steps_from(defn.steps), state.current_step)

    def _log_audit(self, state: WizardState, action: str, details: dict[str, Any]) -> None:
        if self._audit is None:
            return
        self._audit.log(
            AuditEvent(
                actor=f"wizard:{state.id}",
                action=action,
                resource=f"wizard:{state.wizard_id}",
                details=details,
            )
        )


def _clean(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip()
    return value
