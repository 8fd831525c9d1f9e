"""JSON-based repository for conquest engine snapshots."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from pydantic import TypeAdapter

from conquest.domain import models as dm


@dataclass(slots=True)
class EngineSnapshot:
    """Everything needed to restore a session."""

    empire: dm.EmpireState
    statistics: dm.AutomationStatistics = field(default_factory=dm.AutomationStatistics)
    cities: list[dm.City] = field(default_factory=list)
    history: list[dm.BattleRecord] = field(default_factory=list)
    in_flight: list[dm.BattleRecord] = field(default_factory=list)
    saved_at: float | None = None


class JsonSnapshotRepository:
    """Persist engine snapshots as JSON files on disk, one per save slot."""

    def __init__(self, base_path: Path) -> None:
        self.base_path = base_path
        self.base_path.mkdir(parents=True, exist_ok=True)
        self._adapter: TypeAdapter[EngineSnapshot] = TypeAdapter(EngineSnapshot)

    def _path_for(self, slot: str) -> Path:
        return self.base_path / f"snapshot_{slot}.json"

    def save(self, snapshot: EngineSnapshot, slot: str = "default") -> Path:
        """Serialize a snapshot to disk and return its path."""

        path = self._path_for(slot)
        payload = self._adapter.dump_json(snapshot, indent=2)
        path.write_bytes(payload)
        return path

    def load(self, slot: str = "default") -> EngineSnapshot:
        """Load a previously saved snapshot or raise ``FileNotFoundError``."""

        data = self._path_for(slot).read_bytes()
        return self._adapter.validate_json(data)

    def exists(self, slot: str = "default") -> bool:
        return self._path_for(slot).exists()

    def list_slots(self) -> list[str]:
        """Return every slot currently persisted, sorted by name."""

        prefix = "snapshot_"
        suffix = ".json"
        return sorted(
            path.name[len(prefix) : -len(suffix)] for path in self.base_path.glob("snapshot_*.json")
        )

    def delete(self, slot: str = "default") -> None:
        """Remove a snapshot if it exists."""

        path = self._path_for(slot)
        if path.exists():
            path.unlink()
