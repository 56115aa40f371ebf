from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Union

CHUNK_SIZE = 96
INTERACT_RADIUS = 14.0
BIOMES = ("icy", "forest", "steppe")
DROPPED_ID_MARKER = "-dropped-"
DEFAULT_MESSAGE_SECONDS = 4.0


@dataclass(frozen=True, order=True)
class ChunkCoord:
    """Integer chunk coordinate (cx, cy)."""

    cx: int
    cy: int

    def key(self) -> str:
        return f"{self.cx},{self.cy}"

    @classmethod
    def from_key(cls, key: str) -> "ChunkCoord":
        raw_x, raw_y = key.split(",", 1)
        return cls(cx=int(raw_x), cy=int(raw_y))

    @classmethod
    def containing(cls, x: float, y: float) -> "ChunkCoord":
        return cls(cx=math.floor(x / CHUNK_SIZE), cy=math.floor(y / CHUNK_SIZE))


@dataclass(frozen=True)
class ItemRecord:
    """An item lying in the world. Never mutated; pickup removes it, drop creates a new one."""

    item_id: str
    item_type: str
    x: float
    y: float
    weight: float

    def __post_init__(self) -> None:
        if not isinstance(self.item_id, str) or not self.item_id:
            raise ValueError("item id must be a non-empty string")
        if not isinstance(self.item_type, str) or not self.item_type:
            raise ValueError("item type must be a non-empty string")

    @property
    def is_dropped(self) -> bool:
        return DROPPED_ID_MARKER in self.item_id

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.item_id, "type": self.item_type, "x": self.x, "y": self.y, "weight": self.weight}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ItemRecord":
        return cls(
            item_id=str(data["id"]),
            item_type=str(data["type"]),
            x=float(data["x"]),
            y=float(data["y"]),
            weight=float(data.get("weight") or 0.0),
        )


@dataclass(frozen=True)
class InventoryItem:
    item_id: str
    item_type: str
    weight: float

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.item_id, "type": self.item_type, "weight": self.weight}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "InventoryItem":
        return cls(item_id=str(data["id"]), item_type=str(data["type"]), weight=float(data.get("weight") or 0.0))


@dataclass(frozen=True)
class NpcRecord:
    npc_id: str
    x: float
    y: float
    template: int

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.npc_id, "x": self.x, "y": self.y, "template": self.template}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "NpcRecord":
        return cls(
            npc_id=str(data["id"]),
            x=float(data["x"]),
            y=float(data["y"]),
            template=int(data.get("template", 0)),
        )


@dataclass
class NpcState:
    """Per-NPC progress. Outlives the NPC entity: culling never touches it."""

    encounters: int = 0
    gifted: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {"encounters": self.encounters, "gifted": self.gifted}

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "NpcState":
        if not isinstance(data, dict):
            return cls()
        return cls(encounters=max(0, int(data.get("encounters", 0))), gifted=bool(data.get("gifted", False)))


@dataclass
class ChunkRecord:
    coord: ChunkCoord
    palette: dict[str, str]
    biome: str
    items: tuple[ItemRecord, ...] = ()
    npcs: tuple[NpcRecord, ...] = ()

    def __post_init__(self) -> None:
        if self.biome not in BIOMES:
            raise ValueError(f"invalid biome: {self.biome}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.coord.key(),
            "palette": dict(self.palette),
            "biome": self.biome,
            "items": [item.to_dict() for item in self.items],
            "npcs": [npc.to_dict() for npc in self.npcs],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any], *, coord: ChunkCoord | None = None) -> "ChunkRecord":
        resolved = coord if coord is not None else ChunkCoord.from_key(str(data["key"]))
        return cls(
            coord=resolved,
            palette={str(key): str(value) for key, value in dict(data.get("palette", {})).items()},
            biome=str(data["biome"]),
            items=tuple(ItemRecord.from_dict(row) for row in data.get("items", [])),
            npcs=tuple(NpcRecord.from_dict(row) for row in data.get("npcs", [])),
        )


@dataclass
class SystemMessage:
    """Timer-driven message with no speaker; expires on its own."""

    text: str
    ttl: float = DEFAULT_MESSAGE_SECONDS

    @property
    def npc_id(self) -> None:
        return None

    @property
    def current_line(self) -> str:
        return self.text

    def to_dict(self) -> dict[str, Any]:
        return {"kind": "system_message", "npcId": None, "lines": [self.text], "index": 0, "timer": self.ttl}


@dataclass
class NpcExchange:
    """Interaction-driven conversation; each interact press advances one line."""

    npc_id: str
    lines: tuple[str, ...]
    index: int = 0

    def __post_init__(self) -> None:
        if not self.lines:
            raise ValueError("npc exchange requires at least one line")
        self.index = min(max(0, int(self.index)), len(self.lines) - 1)

    @property
    def current_line(self) -> str:
        return self.lines[self.index]

    @property
    def is_last_line(self) -> bool:
        return self.index >= len(self.lines) - 1

    def to_dict(self) -> dict[str, Any]:
        return {"kind": "npc_exchange", "npcId": self.npc_id, "lines": list(self.lines), "index": self.index}


ActiveDialogue = Union[SystemMessage, NpcExchange]


def dialogue_from_dict(data: Any) -> ActiveDialogue | None:
    """Rebuild a dialogue variant; the legacy shape is told apart by ``timer``/``npcId``."""
    if not isinstance(data, dict):
        return None
    lines = [str(line) for line in data.get("lines", []) if isinstance(line, str)]
    if not lines:
        return None
    kind = data.get("kind")
    npc_id = data.get("npcId")
    if kind == "system_message" or (kind is None and npc_id is None):
        index = min(max(0, int(data.get("index", 0))), len(lines) - 1)
        ttl = data.get("timer", DEFAULT_MESSAGE_SECONDS)
        if isinstance(ttl, bool) or not isinstance(ttl, (int, float)):
            ttl = DEFAULT_MESSAGE_SECONDS
        return SystemMessage(text=lines[index], ttl=float(ttl))
    if not isinstance(npc_id, str) or not npc_id:
        return None
    return NpcExchange(npc_id=npc_id, lines=tuple(lines), index=int(data.get("index", 0)))


@dataclass
class WorldState:
    seed: str
    chunks: dict[ChunkCoord, ChunkRecord] = field(default_factory=dict)
    items: list[ItemRecord] = field(default_factory=list)
    npcs: list[NpcRecord] = field(default_factory=list)
    npc_states: dict[str, NpcState] = field(default_factory=dict)
    active_dialogue: ActiveDialogue | None = None
    collected_item_ids: set[str] = field(default_factory=set)
    drop_serial: int = 0

    def __post_init__(self) -> None:
        if isinstance(self.seed, bool) or not isinstance(self.seed, (str, int)):
            raise ValueError("world seed must be a string or integer")
        self.seed = str(self.seed)
        if not self.seed:
            raise ValueError("world seed must be non-empty")

    def get_chunk(self, coord: ChunkCoord) -> ChunkRecord | None:
        return self.chunks.get(coord)

    def chunk_at(self, x: float, y: float) -> ChunkRecord | None:
        return self.chunks.get(ChunkCoord.containing(x, y))

    def npc_state(self, npc_id: str) -> NpcState:
        state = self.npc_states.get(npc_id)
        if state is None:
            state = NpcState()
            self.npc_states[npc_id] = state
        return state

    def find_item(self, item_id: str) -> ItemRecord | None:
        for item in self.items:
            if item.item_id == item_id:
                return item
        return None

    def find_npc(self, npc_id: str) -> NpcRecord | None:
        for npc in self.npcs:
            if npc.npc_id == npc_id:
                return npc
        return None

    def queue_message(self, text: str, ttl: float = DEFAULT_MESSAGE_SECONDS) -> SystemMessage:
        """Replace whatever dialogue is showing with a timed system message."""
        message = SystemMessage(text=text, ttl=ttl)
        self.active_dialogue = message
        return message

    def next_drop_id(self, item_id: str) -> str:
        self.drop_serial += 1
        return f"{item_id}{DROPPED_ID_MARKER}{self.drop_serial}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "seed": self.seed,
            "discoveredChunks": {coord.key(): self.chunks[coord].to_dict() for coord in sorted(self.chunks)},
            "items": [item.to_dict() for item in self.items],
            "npcs": [npc.to_dict() for npc in self.npcs],
            "npcStates": {npc_id: self.npc_states[npc_id].to_dict() for npc_id in sorted(self.npc_states)},
            "activeDialogue": self.active_dialogue.to_dict() if self.active_dialogue is not None else None,
            "collectedItemIds": sorted(self.collected_item_ids),
            "dropSerial": self.drop_serial,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "WorldState":
        chunks: dict[ChunkCoord, ChunkRecord] = {}
        for key, row in dict(data.get("discoveredChunks", {})).items():
            coord = ChunkCoord.from_key(str(key))
            chunks[coord] = ChunkRecord.from_dict(dict(row), coord=coord)
        return cls(
            seed=data["seed"],
            chunks=chunks,
            items=[ItemRecord.from_dict(row) for row in data.get("items", [])],
            npcs=[NpcRecord.from_dict(row) for row in data.get("npcs", [])],
            npc_states={str(npc_id): NpcState.from_dict(row) for npc_id, row in dict(data.get("npcStates", {})).items()},
            active_dialogue=dialogue_from_dict(data.get("activeDialogue")),
            collected_item_ids={str(item_id) for item_id in data.get("collectedItemIds", [])},
            drop_serial=int(data.get("dropSerial", 0)),
        )
