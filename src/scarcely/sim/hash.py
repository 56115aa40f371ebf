from __future__ import annotations

import hashlib
import json
from typing import Any

from scarcely.sim.core import Simulation
from scarcely.sim.world import ChunkRecord, WorldState

SAVE_HASH_KEY = "saveHash"


def _digest(payload: Any) -> str:
    encoded = json.dumps(payload, sort_keys=True, separators=(",", ":")).encode("utf-8")
    return hashlib.sha256(encoded).hexdigest()


def chunk_hash(chunk: ChunkRecord) -> str:
    return _digest(chunk.to_dict())


def world_hash(world: WorldState) -> str:
    return _digest(world.to_dict())


def simulation_hash(simulation: Simulation) -> str:
    payload = simulation.to_payload()
    payload.pop("createdAt", None)
    payload["event_trace"] = simulation.get_event_trace()
    return _digest(payload)


def save_hash(payload: dict[str, Any]) -> str:
    """Digest of a save payload, ignoring its own ``saveHash`` field."""
    return _digest({key: value for key, value in payload.items() if key != SAVE_HASH_KEY})
