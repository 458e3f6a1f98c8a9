"""FastAPI router for trainee registration and the people registry."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import JSONResponse

from cohort.core.envelopes import ApiResponse, VerificationResponse
from cohort.registration.models import (
    ResourcePersonWithUser,
    StaffWithUser,
    TraineeRegistrationData,
    TraineeUpdate,
    TraineeWithUser,
)
from cohort.registration.service import RegistrationError

router = APIRouter()


def registration_failure(exc: RegistrationError) -> JSONResponse:
    """400 envelope for a refused registration."""
    body = VerificationResponse(success=False, message=exc.message, is_expired=exc.is_expired)
    return JSONResponse(status_code=400, content=body.model_dump(mode="json", by_alias=True))


@router.post("/api/trainees/register", response_model=ApiResponse[TraineeWithUser])
async def register_trainee(body: TraineeRegistrationData, request: Request):
    service = request.app.state.registration_service
    try:
        trainee = await service.register(body)
    except RegistrationError as exc:
        return registration_failure(exc)
    return ApiResponse[TraineeWithUser](
        message="Registration successful", data=trainee, success=True
    )


@router.get("/api/trainees")
async def list_trainees(request: Request) -> list[TraineeWithUser]:
    return await request.app.state.registration_service.list_trainees()


@router.get("/api/trainees/{trainee_id}")
async def get_trainee(trainee_id: str, request: Request) -> TraineeWithUser:
    service = request.app.state.registration_service
    try:
        return await service.get_trainee(trainee_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="Trainee not found")


@router.patch("/api/trainees/{trainee_id}")
async def update_trainee(
    trainee_id: str, body: TraineeUpdate, request: Request
) -> TraineeWithUser:
    service = request.app.state.registration_service
    try:
        return await service.update_trainee(trainee_id, body)
    except KeyError:
        raise HTTPException(status_code=404, detail="Trainee not found")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/api/trainees/{trainee_id}")
async def delete_trainee(trainee_id: str, request: Request) -> ApiResponse[None]:
    service = request.app.state.registration_service
    try:
        await service.delete_trainee(trainee_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="Trainee not found")
    return ApiResponse[None](message="Trainee deleted successfully", success=True)


@router.get("/api/staff")
async def list_staff(request: Request) -> list[StaffWithUser]:
    return await request.app.state.registration_service.list_staff()


@router.get("/api/resource-persons")
async def list_resource_persons(request: Request) -> list[ResourcePersonWithUser]:
    return await request.app.state.registration_service.list_resource_persons()
