"""One-time verification codes for email and phone ownership."""

from __future__ import annotations

import logging
import secrets
import string
from datetime import timedelta
from typing import Any

from cohort.core.config import Settings
from cohort.core.envelopes import VerificationOutcome, VerificationResponse
from cohort.core.types import AuditEvent, VerificationMethod, utcnow
from cohort.governance.audit import AuditLogger
from cohort.registration.models import VerificationCode
from cohort.repositories.protocols import RegistryRepository
from cohort.verification.delivery import CodeDelivery, DeliveryError, LoggingCodeDelivery

logger = logging.getLogger(__name__)

CODE_ALPHABET = string.ascii_uppercase + string.digits
CODE_LENGTH = 6

_FEEDBACK = {
    VerificationOutcome.VERIFIED: "Your contact details have been verified.",
    VerificationOutcome.EXPIRED: (
        "This verification code has expired. Please request a new code and try again."
    ),
    VerificationOutcome.INVALID: (
        "The verification code you entered is not correct. "
        "Please check the code and try again."
    ),
}


def generate_code(length: int = CODE_LENGTH) -> str:
    """Return a random code drawn from A-Z and 0-9."""
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))


def verification_feedback(response: VerificationResponse) -> str:
    """User-facing text for a verification response.

    Expired and wrong codes get different guidance.
    """
    return _FEEDBACK[response.outcome]


class VerificationService:
    """Issues and checks one-time codes.

    Codes are stored through the registry repository, handed to a
    ``CodeDelivery`` and expire after ``code_ttl_minutes``.
    """

    def __init__(
        self,
        repository: RegistryRepository,
        settings: Settings | None = None,
        delivery: CodeDelivery | None = None,
        audit_logger: AuditLogger | None = None,
    ) -> None:
        self._repo = repository
        self._settings = settings or Settings()
        self._delivery = delivery or LoggingCodeDelivery()
        self._audit = audit_logger

    async def send_code(
        self, identifier: str, method: VerificationMethod
    ) -> VerificationResponse:
        """Generate, store and deliver a fresh code for ``identifier``."""
        config = self._settings.verification
        now = utcnow()
        code = VerificationCode(
            identifier=identifier,
            code=generate_code(),
            expires_at=now + timedelta(minutes=config.code_ttl_minutes),
            created_at=now,
        )
        await self._repo.create_verification_code(code)

        try:
            self._delivery.deliver(identifier, method, code.code)
        except DeliveryError as exc:
            logger.warning("Could not deliver verification code by %s: %s", method.value, exc)
            return VerificationResponse(
                success=False,
                message=f"Could not send verification code to your {method.value}",
            )

        self._log_audit("verification_sent", identifier, {"method": method.value})
        return VerificationResponse(
            success=True,
            message=f"Verification code sent to your {method.value}",
            code=code.code if self._settings.expose_verification_codes else None,
        )

    async def verify_code(self, identifier: str, code: str) -> VerificationResponse:
        """Check ``code`` for ``identifier`` and consume it on success."""
        stored = await self._repo.find_unused_code(identifier, code.strip().upper())
        if stored is None:
            self._log_audit("verification_failed", identifier, {"reason": "invalid"})
            return VerificationResponse(success=False, message="Invalid verification code")

        if stored.expired():
            self._log_audit("verification_failed", identifier, {"reason": "expired"})
            return VerificationResponse(
                success=False,
                message="Verification code has expired",
                is_expired=True,
            )

        await self._repo.mark_code_used(stored.id)
        return VerificationResponse(success=True, message="Verification successful")

    async def cleanup_expired(self) -> int:
        """Delete codes whose expiry has passed; returns how many were removed."""
        removed = await self._repo.delete_codes_expired_before(utcnow())
        if removed:
            logger.info("Removed %d expired verification codes", removed)
        return removed

    def _log_audit(self, action: str, identifier: str, details: dict[str, Any]) -> None:
        if self._audit is None:
            return
        self._audit.log(
            AuditEvent(
                actor="verification-service",
                action=action,
                resource=f"contact:{identifier}",
                details=details,
            )
        )
