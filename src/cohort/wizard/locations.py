"""Nigerian states and Local Government Areas."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from cohort.wizard.models import FieldOption

_DEFAULT_LOCATIONS_PATH = Path(__file__).resolve().parents[3] / "config" / "locations.yml"


class LocationDirectory:
    """Lookup of states and their LGAs loaded from YAML."""

    def __init__(self, path: str | Path | None = None) -> None:
        self._path = Path(path) if path else _DEFAULT_LOCATIONS_PATH
        self._states: dict[str, str] = {}
        self._lgas: dict[str, list[str]] = {}
        self._load()

    def _load(self) -> None:
        if not self._path.exists():
            return
        with open(self._path) as fh:
            data: dict[str, Any] = yaml.safe_load(fh) or {}
        for entry in data.get("states", []):
            self._states[str(entry["value"])] = str(entry.get("label", entry["value"]))
        for state, lgas in (data.get("lgas") or {}).items():
            self._lgas[str(state)] = [str(lga) for lga in lgas]

    def state_options(self) -> list[FieldOption]:
        return [FieldOption(value=v, label=label) for v, label in self._states.items()]

    def lga_options(self, state: str | None) -> list[FieldOption]:
        return [FieldOption(value=lga, label=lga) for lga in self.lgas_for(state)]

    def lgas_for(self, state: str | None) -> list[str]:
        if not state:
            return []
        return list(self._lgas.get(state, []))

    def is_known_state(self, state: str | None) -> bool:
        return bool(state) and state in self._states

    def state_label(self, state: str) -> str:
        return self._states.get(state, state)

    def lga_belongs(self, state: str, lga: str) -> bool:
        return lga in self._lgas.get(state, [])

    def __len__(self) -> int:
        return len(self._states)
