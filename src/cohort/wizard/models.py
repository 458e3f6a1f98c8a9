"""Shared models for the registration wizard system."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class FieldType(str, Enum):
    """Supported field types in wizard steps."""

    TEXT = "text"
    EMAIL = "email"
    PHONE = "phone"
    DATE = "date"
    SELECT = "select"
    RADIO = "radio"
    CODE = "code"


class StepStatus(str, Enum):
    """Status of a wizard step."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class FieldOption(BaseModel):
    value: str
    label: str


class FieldDefinition(BaseModel):
    """Definition of a single form field within a wizard step."""

    id: str
    label: str
    field_type: FieldType
    required: bool = False
    validators: list[str] = Field(default_factory=list)
    options: list[FieldOption] = Field(default_factory=list)
    options_from: str | None = None
    placeholder: str = ""
    help_text: str = ""


class StepDefinition(BaseModel):
    """Definition of a single wizard step."""

    id: str
    title: str
    description: str = ""
    fields: list[FieldDefinition] = Field(default_factory=list)


class WizardDefinition(BaseModel):
    """Full definition of a wizard loaded from YAML."""

    id: str
    title: str
    description: str = ""
    steps: list[StepDefinition] = Field(default_factory=list)

    def step(self, step_id: str) -> StepDefinition | None:
        for step in self.steps:
            if step.id == step_id:
                return step
        return None


class ValidationResult(BaseModel):
    """Result of validating a field or step."""

    valid: bool
    errors: dict[str, list[str]] = Field(default_factory=dict)


class StepState(BaseModel):
    """Runtime state of a single wizard step."""

    step_id: str
    status: StepStatus = StepStatus.PENDING
    data: dict[str, Any] = Field(default_factory=dict)
    errors: dict[str, list[str]] = Field(default_factory=dict)


class WizardState(BaseModel):
    """Runtime state of a wizard instance."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    wizard_id: str
    current_step_index: int = 0
    steps: list[StepState] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    completed: bool = False

    @property
    def current_step(self) -> int:
        """1-based step number handed to the progress indicator.

        A completed wizard reports one past the last step so every marker
        and connector renders as done.
        """
        if self.completed:
            return len(self.steps) + 1
        return self.current_step_index + 1

    @property
    def current_step_state(self) -> StepState | None:
        if not self.steps:
            return None
        return self.steps[self.current_step_index]

    def collected_data(self) -> dict[str, Any]:
        """Everything entered so far, later steps overriding earlier ones."""
        merged: dict[str, Any] = {}
        for step in self.steps:
            merged.update(step.data)
        return merged
