"""Append-only audit trail for registration activity.

Every registration, verification attempt and record change is written as
one JSONL line whose hash covers the previous line's hash, so editing or
removing any line breaks verification of everything after it.
"""

from __future__ import annotations

import hashlib
import json
import logging
from pathlib import Path
from typing import Any

from cohort.core.config import AuditConfig
from cohort.core.types import AuditEvent

logger = logging.getLogger(__name__)

_GENESIS_SEED = b"cohort-audit-genesis"


class AuditEntry:
    """An AuditEvent together with its position in the hash chain."""

    def __init__(self, event: AuditEvent, previous_hash: str, entry_hash: str) -> None:
        self.event = event
        self.previous_hash = previous_hash
        self.entry_hash = entry_hash

    def to_dict(self) -> dict[str, Any]:
        return {
            "previous_hash": self.previous_hash,
            "entry_hash": self.entry_hash,
            "event": json.loads(self.event.model_dump_json()),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AuditEntry:
        return cls(
            event=AuditEvent(**data["event"]),
            previous_hash=data["previous_hash"],
            entry_hash=data["entry_hash"],
        )


class AuditLogger:
    """Hash-chained JSONL audit log.

    Args:
        config: Audit settings; ``log_dir`` is created if missing.
        log_file: File name inside ``log_dir``.
    """

    def __init__(self, config: AuditConfig | None = None, log_file: str = "audit.jsonl") -> None:
        self._config = config or AuditConfig()
        self._algorithm = self._config.hash_algorithm
        if self._algorithm not in hashlib.algorithms_available:
            raise ValueError(f"Unsupported audit hash algorithm: {self._algorithm!r}")
        log_dir = Path(self._config.log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        self._log_path = log_dir / log_file
        self._last_hash = self._genesis_hash()
        if self._log_path.exists():
            self._last_hash = self._read_last_hash()

    def _genesis_hash(self) -> str:
        return hashlib.new(self._algorithm, _GENESIS_SEED).hexdigest()

    def _hash(self, previous_hash: str, event_json: str) -> str:
        return hashlib.new(self._algorithm, (previous_hash + event_json).encode("utf-8")).hexdigest()

    def _entries(self):
        with open(self._log_path) as fh:
            for line in fh:
                stripped = line.strip()
                if stripped:
                    yield json.loads(stripped)

    def _read_last_hash(self) -> str:
        last = self._genesis_hash()
        for data in self._entries():
            last = data["entry_hash"]
        return last

    def log(self, event: AuditEvent) -> AuditEntry:
        """Append ``event`` to the chain and return its entry."""
        event_json = event.model_dump_json()
        entry = AuditEntry(
            event=event,
            previous_hash=self._last_hash,
            entry_hash=self._hash(self._last_hash, event_json),
        )
        with open(self._log_path, "a") as fh:
            fh.write(json.dumps(entry.to_dict()) + "\n")
        self._last_hash = entry.entry_hash
        logger.debug("Audit %s on %s by %s", event.action, event.resource, event.actor)
        return entry

    def verify_chain(self) -> bool:
        """Recompute every hash; False as soon as one link does not match."""
        if not self._log_path.exists():
            return True

        previous_hash = self._genesis_hash()
        for data in self._entries():
            if data["previous_hash"] != previous_hash:
                return False
            event_json = AuditEvent(**data["event"]).model_dump_json()
            if data["entry_hash"] != self._hash(previous_hash, event_json):
                return False
            previous_hash = data["entry_hash"]
        return True

    def query(
        self,
        action: str | None = None,
        resource: str | None = None,
        actor: str | None = None,
    ) -> list[AuditEvent]:
        """Events matching every filter given, oldest first."""
        if not self._log_path.exists():
            return []

        events = []
        for data in self._entries():
            event = AuditEvent(**data["event"])
            if action is not None and event.action != action:
                continue
            if resource is not None and event.resource != resource:
                continue
            if actor is not None and event.actor != actor:
                continue
            events.append(event)
        return events

    @property
    def log_path(self) -> Path:
        return self._log_path

    @property
    def last_hash(self) -> str:
        return self._last_hash
