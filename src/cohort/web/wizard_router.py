"""FastAPI router for the registration wizard."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field, ValidationError
from pydantic.alias_generators import to_camel

from cohort.core.envelopes import ApiResponse
from cohort.registration.models import TraineeRegistrationData, TraineeWithUser
from cohort.registration.service import RegistrationError, RegistrationService
from cohort.web.registration_router import registration_failure
from cohort.wizard.engine import WizardEngine
from cohort.wizard.models import WizardState
from cohort.wizard.progress import WizardProgress

router = APIRouter()

_WIRE = {"alias_generator": to_camel, "populate_by_name": True}


# --- Request/Response models ---


class WizardSummary(BaseModel):
    model_config = _WIRE

    id: str
    title: str
    description: str
    steps: int


class StepSubmitRequest(BaseModel):
    data: dict[str, Any] = Field(default_factory=dict)


class StepView(BaseModel):
    model_config = _WIRE

    step_id: str
    title: str
    status: str
    data: dict[str, Any]
    errors: dict[str, list[str]]


class WizardStateResponse(BaseModel):
    model_config = _WIRE

    id: str
    wizard_id: str
    current_step: int
    current_step_id: str
    completed: bool
    steps: list[StepView]
    progress: WizardProgress


def state_response(engine: WizardEngine, state: WizardState) -> WizardStateResponse:
    defn = engine.definition_for(state)
    titles = {s.id: s.title for s in defn.steps}
    return WizardStateResponse(
        id=state.id,
        wizard_id=state.wizard_id,
        current_step=state.current_step,
        current_step_id=state.steps[state.current_step_index].step_id,
        completed=state.completed,
        steps=[
            StepView(
                step_id=s.step_id,
                title=titles.get(s.step_id, s.step_id),
                status=s.status.value,
                data=s.data,
                errors=s.errors,
            )
            for s in state.steps
        ],
        progress=engine.progress(state),
    )


async def register_from_wizard(
    engine: WizardEngine, registration: RegistrationService, state_id: str
) -> TraineeWithUser:
    """Turn a fully validated wizard into a registration.

    A refused verification code sends the wizard back to the step that
    holds the code, with the refusal attached to that field.

    Raises:
        KeyError: If state_id not found.
        ValueError: If a step is not completed yet.
        RegistrationError: If the registration is refused.
    """
    if engine.get_state(state_id).completed:
        raise ValueError("Wizard has already been submitted.")
    data = engine.merged_data(state_id)
    try:
        payload = TraineeRegistrationData.model_validate(data)
    except ValidationError as exc:
        first = exc.errors()[0]
        raise RegistrationError(f"{'.'.join(map(str, first['loc']))}: {first['msg']}") from exc

    try:
        trainee = await registration.register(payload)
    except RegistrationError as exc:
        if exc.verification is not None:
            state = engine.get_state(state_id)
            step_id = _step_holding(engine, state, "verificationCode")
            if step_id is not None:
                engine.reopen_step(state_id, step_id, {"verificationCode": [exc.message]})
        raise

    engine.complete(state_id)
    return trainee


def _step_holding(engine: WizardEngine, state: WizardState, field_id: str) -> str | None:
    for step in engine.definition_for(state).steps:
        if any(f.id == field_id for f in step.fields):
            return step.id
    return None


# --- Wizard endpoints ---


@router.get("/api/wizards")
async def list_wizards(request: Request) -> list[WizardSummary]:
    engine = request.app.state.wizard_engine
    return [
        WizardSummary(
            id=defn.id,
            title=defn.title,
            description=defn.description,
            steps=len(defn.steps),
        )
        for defn in engine.wizard_definitions.values()
    ]


@router.post("/api/wizards/{wizard_id}/start")
async def start_wizard(wizard_id: str, request: Request) -> WizardStateResponse:
    engine = request.app.state.wizard_engine
    try:
        state = engine.start_wizard(wizard_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return state_response(engine, state)


@router.get("/api/wizards/state/{state_id}")
async def get_wizard_state(state_id: str, request: Request) -> WizardStateResponse:
    engine = request.app.state.wizard_engine
    try:
        state = engine.get_state(state_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Wizard state {state_id!r} not found")
    return state_response(engine, state)


@router.post("/api/wizards/state/{state_id}/steps/{step_id}")
async def submit_step(
    state_id: str, step_id: str, body: StepSubmitRequest, request: Request
) -> WizardStateResponse:
    engine = request.app.state.wizard_engine
    try:
        state = engine.submit_step(state_id, step_id, body.data)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Wizard state {state_id!r} not found")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return state_response(engine, state)


@router.post("/api/wizards/state/{state_id}/back")
async def go_back(state_id: str, request: Request) -> WizardStateResponse:
    engine = request.app.state.wizard_engine
    try:
        state = engine.go_back(state_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Wizard state {state_id!r} not found")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return state_response(engine, state)


@router.post(
    "/api/wizards/state/{state_id}/submit",
    response_model=ApiResponse[TraineeWithUser],
)
async def submit_wizard(state_id: str, request: Request):
    engine = request.app.state.wizard_engine
    try:
        trainee = await register_from_wizard(
            engine, request.app.state.registration_service, state_id
        )
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Wizard state {state_id!r} not found")
    except RegistrationError as exc:
        return registration_failure(exc)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return ApiResponse[TraineeWithUser](
        message="Registration successful", data=trainee, success=True
    )
