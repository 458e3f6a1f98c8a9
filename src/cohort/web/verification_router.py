"""FastAPI router for sending and checking verification codes."""

from __future__ import annotations

from fastapi import APIRouter, Request
from pydantic import BaseModel, Field

from cohort.core.envelopes import VerificationResponse
from cohort.core.types import VerificationMethod

router = APIRouter()


class SendCodeRequest(BaseModel):
    identifier: str = Field(min_length=1)
    method: VerificationMethod


class VerifyCodeRequest(BaseModel):
    identifier: str = Field(min_length=1)
    code: str = Field(min_length=6, max_length=6)


@router.post("/api/verification/send")
async def send_code(body: SendCodeRequest, request: Request) -> VerificationResponse:
    service = request.app.state.verification_service
    return await service.send_code(body.identifier.strip(), body.method)


@router.post("/api/verification/verify")
async def verify_code(body: VerifyCodeRequest, request: Request) -> VerificationResponse:
    service = request.app.state.verification_service
    return await service.verify_code(body.identifier.strip(), body.code)
