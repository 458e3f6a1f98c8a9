"""Validation engine for registration wizard steps."""

from __future__ import annotations

from typing import Any, Callable

from cohort.wizard.locations import LocationDirectory
from cohort.wizard.models import FieldDefinition, StepDefinition, ValidationResult
from cohort.wizard.validators import VALIDATORS


class ValidationEngine:
    """Registry-based validation engine.

    Runs all validators for a step's fields against submitted data, then the
    cross-field rules that involve fields of that step.
    """

    def __init__(self, locations: LocationDirectory | None = None) -> None:
        self._validators: dict[str, Callable[..., str | None]] = dict(VALIDATORS)
        self._locations = locations or LocationDirectory()

    @property
    def locations(self) -> LocationDirectory:
        return self._locations

    def register(self, name: str, fn: Callable[..., str | None]) -> None:
        self._validators[name] = fn

    def validate_field(
        self, field: FieldDefinition, value: Any, params: dict[str, Any] | None = None
    ) -> list[str]:
        """Validate a single field value. Returns list of error messages."""
        errors: list[str] = []
        params = params or {}

        if field.required:
            fn = self._validators.get("required")
            if fn:
                err = fn(value)
                if err:
                    errors.append(err)
                    return errors

        for validator_name in field.validators:
            # Validator name may include params like "length:exact=6"
            name, _, raw_params = validator_name.partition(":")
            extra_params: dict[str, Any] = {}
            if raw_params:
                for pair in raw_params.split(","):
                    k, _, v = pair.partition("=")
                    extra_params[k.strip()] = v.strip()

            fn = self._validators.get(name)
            if fn is None or name == "required":
                continue

            err = fn(value, **{**params, **extra_params})
            if err:
                errors.append(err)

        return errors

    def validate_step(
        self,
        step: StepDefinition,
        data: dict[str, Any],
        context: dict[str, Any] | None = None,
    ) -> ValidationResult:
        """Validate all fields in a step against submitted data.

        ``context`` holds data from earlier steps so cross-field rules can
        see it.
        """
        all_errors: dict[str, list[str]] = {}

        for field in step.fields:
            field_errors = self.validate_field(field, data.get(field.id))
            if field_errors:
                all_errors[field.id] = field_errors

        step_fields = {f.id for f in step.fields}
        merged = {**(context or {}), **data}
        for field_id, messages in self.validate_cross_field(merged).items():
            if field_id in step_fields and field_id not in all_errors:
                all_errors[field_id] = messages

        return ValidationResult(valid=not all_errors, errors=all_errors)

    def validate_cross_field(self, data: dict[str, Any]) -> dict[str, list[str]]:
        """Rules spanning several fields. Returns field id -> messages."""
        errors: dict[str, list[str]] = {}

        state = data.get("state")
        lga = data.get("lga")
        if state and lga and self._locations.is_known_state(state):
            if not self._locations.lga_belongs(state, lga):
                label = self._locations.state_label(state)
                errors.setdefault("lga", []).append(
                    f"{lga!s} is not a Local Government Area of {label}."
                )

        return errors
