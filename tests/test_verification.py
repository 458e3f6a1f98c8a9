"""Tests for one-time verification codes."""

from __future__ import annotations

import logging
import re
from datetime import timedelta

from cohort.core.config import Settings
from cohort.core.envelopes import VerificationOutcome, VerificationResponse
from cohort.core.types import VerificationMethod, utcnow
from cohort.registration.models import TraineeRegistrationData, VerificationCode
from cohort.verification.delivery import DeliveryError, LoggingCodeDelivery
from cohort.verification.service import (
    CODE_LENGTH,
    VerificationService,
    generate_code,
    verification_feedback,
)
from tests.conftest import registration_payload


class FailingDelivery:
    def deliver(self, identifier, method, code):
        raise DeliveryError("gateway unavailable")


def test_generate_code_alphabet():
    for _ in range(50):
        assert re.fullmatch(r"[A-Z0-9]{6}", generate_code())
    assert len(generate_code(8)) == 8


def test_issued_codes_fit_the_registration_payload():
    data = TraineeRegistrationData.model_validate(registration_payload(generate_code()))
    assert len(data.verification_code) == CODE_LENGTH


async def test_send_code_stores_and_delivers(verification, store, delivery):
    resp = await verification.send_code("ada@example.com", VerificationMethod.EMAIL)
    assert resp.success
    assert resp.message == "Verification code sent to your email"
    assert re.fullmatch(r"[A-Z0-9]{6}", resp.code)
    assert delivery.sent == [("ada@example.com", VerificationMethod.EMAIL)]
    stored = await store.find_unused_code("ada@example.com", resp.code)
    assert stored is not None
    assert stored.expires_at - stored.created_at == timedelta(minutes=10)


async def test_send_code_hides_code_when_not_exposed(store, tmp_path):
    settings = Settings(environment="production")
    service = VerificationService(store, settings=settings)
    resp = await service.send_code("08031234567", VerificationMethod.PHONE)
    assert resp.success
    assert resp.code is None
    assert resp.message == "Verification code sent to your phone"


async def test_code_never_logged(verification, caplog):
    with caplog.at_level(logging.DEBUG, logger="cohort"):
        resp = await verification.send_code("ada@example.com", VerificationMethod.EMAIL)
    assert resp.code not in caplog.text
    assert "a***@example.com" in caplog.text


async def test_delivery_failure_is_reported_not_raised(store, settings):
    service = VerificationService(store, settings=settings, delivery=FailingDelivery())
    resp = await service.send_code("ada@example.com", VerificationMethod.EMAIL)
    assert not resp.success
    assert resp.code is None


async def test_verify_success_consumes_code(verification):
    sent = await verification.send_code("ada@example.com", VerificationMethod.EMAIL)
    resp = await verification.verify_code("ada@example.com", sent.code)
    assert resp.success
    assert resp.message == "Verification successful"
    again = await verification.verify_code("ada@example.com", sent.code)
    assert not again.success
    assert again.message == "Invalid verification code"


async def test_verify_is_case_insensitive(verification):
    sent = await verification.send_code("ada@example.com", VerificationMethod.EMAIL)
    resp = await verification.verify_code("ada@example.com", sent.code.lower())
    assert resp.success


async def test_wrong_code(verification):
    await verification.send_code("ada@example.com", VerificationMethod.EMAIL)
    resp = await verification.verify_code("ada@example.com", "ZZZZZZ")
    assert resp.outcome == VerificationOutcome.INVALID
    assert resp.is_expired is None


async def test_code_for_other_identifier(verification):
    sent = await verification.send_code("ada@example.com", VerificationMethod.EMAIL)
    resp = await verification.verify_code("other@example.com", sent.code)
    assert resp.message == "Invalid verification code"


async def test_expired_code(verification, store):
    now = utcnow()
    await store.create_verification_code(
        VerificationCode(
            identifier="ada@example.com",
            code="OLD123",
            expires_at=now - timedelta(minutes=1),
            created_at=now - timedelta(minutes=11),
        )
    )
    resp = await verification.verify_code("ada@example.com", "OLD123")
    assert not resp.success
    assert resp.message == "Verification code has expired"
    assert resp.is_expired is True
    assert resp.outcome == VerificationOutcome.EXPIRED


async def test_cleanup_expired(verification, store):
    now = utcnow()
    await store.create_verification_code(
        VerificationCode(identifier="a", code="AAAAAA", expires_at=now - timedelta(seconds=1))
    )
    sent = await verification.send_code("b@example.com", VerificationMethod.EMAIL)
    assert await verification.cleanup_expired() == 1
    assert await store.find_unused_code("a", "AAAAAA") is None
    assert await store.find_unused_code("b@example.com", sent.code) is not None


async def test_audit_events(verification, audit_logger):
    await verification.send_code("ada@example.com", VerificationMethod.EMAIL)
    await verification.verify_code("ada@example.com", "ZZZZZZ")
    actions = [e.action for e in audit_logger.query(resource="contact:ada@example.com")]
    assert actions == ["verification_sent", "verification_failed"]


def test_feedback_distinguishes_expired_from_invalid():
    expired = VerificationResponse(success=False, message="m", is_expired=True)
    invalid = VerificationResponse(success=False, message="m")
    assert verification_feedback(expired) != verification_feedback(invalid)
    assert "new code" in verification_feedback(expired)
    assert "check" in verification_feedback(invalid)


def test_logging_delivery_records_sends():
    delivery = LoggingCodeDelivery()
    delivery.deliver("08031234567", VerificationMethod.PHONE, "ABC123")
    assert delivery.sent == [("08031234567", VerificationMethod.PHONE)]
