"""Response envelopes spoken by every JSON endpoint.

Envelope failures (``success: false``, ``isExpired: true``) are data that
callers branch on, never exceptions crossing the API boundary.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, SerializerFunctionWrapHandler, model_serializer
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class _Envelope(BaseModel):
    """Base for envelopes: absent top-level fields are omitted on the wire.

    Only the top level is trimmed; payloads keep their explicit nulls.
    """

    model_config = {"alias_generator": to_camel, "populate_by_name": True}

    @model_serializer(mode="wrap")
    def _omit_absent(self, handler: SerializerFunctionWrapHandler) -> dict[str, Any]:
        data = handler(self)
        return {key: value for key, value in data.items() if value is not None}


class ApiResponse(_Envelope, Generic[T]):
    """Generic envelope: a message, an optional payload and an optional flag."""

    message: str
    data: T | None = None
    success: bool | None = None

    @property
    def has_payload(self) -> bool:
        return self.data is not None

    def succeeded(self, status_code: int) -> bool:
        """Resolve success, falling back to the HTTP status when the flag is absent."""
        if self.success is not None:
            return self.success
        return 200 <= status_code < 300


class VerificationOutcome(StrEnum):
    """How a code verification attempt ended."""

    VERIFIED = "verified"
    EXPIRED = "expired"
    INVALID = "invalid"


class VerificationResponse(_Envelope):
    """Envelope for sending and checking one-time verification codes.

    ``code`` is populated only when code exposure is enabled in settings,
    which is refused for production environments.
    """

    success: bool
    message: str
    is_expired: bool | None = None
    code: str | None = None

    @property
    def outcome(self) -> VerificationOutcome:
        if self.success:
            return VerificationOutcome.VERIFIED
        if self.is_expired:
            return VerificationOutcome.EXPIRED
        return VerificationOutcome.INVALID

    def without_code(self) -> VerificationResponse:
        return self.model_copy(update={"code": None})
