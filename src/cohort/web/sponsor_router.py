"""FastAPI router for sponsor management."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request

from cohort.core.envelopes import ApiResponse
from cohort.registration.models import Sponsor, SponsorCreate, SponsorUpdate

router = APIRouter()


@router.get("/api/sponsors")
async def list_sponsors(request: Request) -> list[Sponsor]:
    return await request.app.state.registration_service.list_sponsors()


@router.post("/api/sponsors", status_code=201)
async def create_sponsor(body: SponsorCreate, request: Request) -> Sponsor:
    service = request.app.state.registration_service
    try:
        return await service.create_sponsor(body)
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.patch("/api/sponsors/{sponsor_id}")
async def update_sponsor(sponsor_id: str, body: SponsorUpdate, request: Request) -> Sponsor:
    service = request.app.state.registration_service
    try:
        return await service.update_sponsor(sponsor_id, body)
    except KeyError:
        raise HTTPException(status_code=404, detail="Sponsor not found")
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.delete("/api/sponsors/{sponsor_id}")
async def delete_sponsor(sponsor_id: str, request: Request) -> ApiResponse[Sponsor]:
    service = request.app.state.registration_service
    try:
        sponsor = await service.deactivate_sponsor(sponsor_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="Sponsor not found")
    return ApiResponse[Sponsor](message="Sponsor deactivated", data=sponsor, success=True)
