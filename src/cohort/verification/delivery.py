"""Code delivery Protocol and the logging implementation."""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

from cohort.core.types import VerificationMethod

logger = logging.getLogger(__name__)


class DeliveryError(RuntimeError):
    """Raised when a verification code could not be handed to its channel."""


@runtime_checkable
class CodeDelivery(Protocol):
    """Protocol for channels that carry one-time codes to a person."""

    def deliver(self, identifier: str, method: VerificationMethod, code: str) -> None: ...


class LoggingCodeDelivery:
    """Delivery that records each send in the log instead of contacting anyone.

    The code itself is never written to the log.
    """

    def __init__(self) -> None:
        self._sent: list[tuple[str, VerificationMethod]] = []

    @property
    def sent(self) -> list[tuple[str, VerificationMethod]]:
        return list(self._sent)

    def deliver(self, identifier: str, method: VerificationMethod, code: str) -> None:
        self._sent.append((identifier, method))
        logger.info("Verification code delivered by %s to %s", method.value, _mask(identifier))


def _mask(identifier: str) -> str:
    if "@" in identifier:
        local, _, domain = identifier.partition("@")
        return f"{local[:1]}***@{domain}"
    return f"***{identifier[-4:]}"
