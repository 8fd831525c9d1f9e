from .json_store import EngineSnapshot, JsonSnapshotRepository

__all__ = [
    "EngineSnapshot",
    "JsonSnapshotRepository",
]
