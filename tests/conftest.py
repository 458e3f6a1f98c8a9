"""Shared test fixtures and helpers."""

from __future__ import annotations

from typing import Any

import pytest
from fastapi.testclient import TestClient

from cohort.core.config import AuditConfig, Settings, VerificationConfig
from cohort.governance.audit import AuditLogger
from cohort.registration.service import RegistrationService
from cohort.registration.store import RegistryStore
from cohort.verification.delivery import LoggingCodeDelivery
from cohort.verification.service import VerificationService
from cohort.web.app import create_app


def registration_payload(code: str, **overrides: Any) -> dict[str, Any]:
    """A valid camelCase registration body for ``POST /api/trainees/register``."""
    payload = {
        "firstName": "Ada",
        "surname": "Obi",
        "dateOfBirth": "2000-01-31",
        "gender": "female",
        "state": "lagos",
        "lga": "Ikeja",
        "email": "ada@example.com",
        "phone": "08031234567",
        "verificationMethod": "email",
        "verificationCode": code,
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def settings(tmp_path):
    return Settings(
        environment="development",
        audit=AuditConfig(log_dir=str(tmp_path / "audit")),
        verification=VerificationConfig(expose_codes=True),
    )


@pytest.fixture
def audit_logger(settings):
    return AuditLogger(config=settings.audit)


@pytest.fixture
def store():
    return RegistryStore()


@pytest.fixture
def delivery():
    return LoggingCodeDelivery()


@pytest.fixture
def verification(store, settings, delivery, audit_logger):
    return VerificationService(store, settings=settings, delivery=delivery, audit_logger=audit_logger)


@pytest.fixture
def registration(store, verification, settings, audit_logger):
    return RegistrationService(store, verification, settings=settings, audit_logger=audit_logger)


@pytest.fixture
def app(settings, store, audit_logger, delivery):
    return create_app(settings=settings, repository=store, audit_logger=audit_logger, delivery=delivery)


@pytest.fixture
def client(app):
    return TestClient(app)
