from __future__ import annotations

import math
from typing import Any

from scarcely.sim.player import (
    DEFAULT_BASE_SPEED,
    DEFAULT_MAX_INVENTORY,
    DEFAULT_MIN_SPEED,
    DEFAULT_PLAYER_NAME,
    clamp_need,
)
from scarcely.sim.world import BIOMES, ChunkCoord

SUPPORTED_SAVE_VERSIONS = {1}


def _number(value: Any, default: float) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    if not math.isfinite(value):
        return default
    return float(value)


def _string(value: Any, default: str | None = None) -> str | None:
    if isinstance(value, str) and value:
        return value
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return default


def _inventory_rows(value: Any) -> list[dict[str, Any]]:
    rows: list[dict[str, Any]] = []
    if not isinstance(value, list):
        return rows
    for row in value:
        if not isinstance(row, dict):
            continue
        item_id = _string(row.get("id"))
        item_type = _string(row.get("type"))
        if item_id is None or item_type is None:
            continue
        rows.append({"id": item_id, "type": item_type, "weight": max(0.0, _number(row.get("weight"), 0.0))})
    return rows


def _world_item_rows(value: Any) -> list[dict[str, Any]]:
    rows: list[dict[str, Any]] = []
    if not isinstance(value, list):
        return rows
    for row in value:
        if not isinstance(row, dict):
            continue
        item_id = _string(row.get("id"))
        item_type = _string(row.get("type"))
        if item_id is None or item_type is None:
            continue
        rows.append(
            {
                "id": item_id,
                "type": item_type,
                "x": _number(row.get("x"), 0.0),
                "y": _number(row.get("y"), 0.0),
                "weight": max(0.0, _number(row.get("weight"), 0.0)),
            }
        )
    return rows


def _npc_rows(value: Any) -> list[dict[str, Any]]:
    rows: list[dict[str, Any]] = []
    if not isinstance(value, list):
        return rows
    for row in value:
        if not isinstance(row, dict):
            continue
        npc_id = _string(row.get("id"))
        if npc_id is None:
            continue
        template = row.get("template", 0)
        rows.append(
            {
                "id": npc_id,
                "x": _number(row.get("x"), 0.0),
                "y": _number(row.get("y"), 0.0),
                "template": template if isinstance(template, int) and not isinstance(template, bool) else 0,
            }
        )
    return rows


def _chunk_rows(value: Any) -> dict[str, dict[str, Any]]:
    chunks: dict[str, dict[str, Any]] = {}
    if not isinstance(value, dict):
        return chunks
    for key, row in value.items():
        try:
            coord = ChunkCoord.from_key(str(key))
        except ValueError:
            continue
        if not isinstance(row, dict) or row.get("biome") not in BIOMES:
            continue
        palette = row.get("palette")
        chunks[coord.key()] = {
            "key": coord.key(),
            "palette": {str(k): str(v) for k, v in palette.items()} if isinstance(palette, dict) else {},
            "biome": row["biome"],
            "items": _world_item_rows(row.get("items")),
            "npcs": _npc_rows(row.get("npcs")),
        }
    return chunks


def _npc_state_rows(value: Any) -> dict[str, dict[str, Any]]:
    states: dict[str, dict[str, Any]] = {}
    if not isinstance(value, dict):
        return states
    for npc_id, row in value.items():
        if not isinstance(row, dict):
            row = {}
        encounters = row.get("encounters", 0)
        if isinstance(encounters, bool) or not isinstance(encounters, int) or encounters < 0:
            encounters = 0
        states[str(npc_id)] = {"encounters": encounters, "gifted": row.get("gifted") is True}
    return states


def _active_dialogue(value: Any) -> dict[str, Any] | None:
    if not isinstance(value, dict):
        return None
    dialogue = dict(value)
    index = dialogue.get("index", 0)
    if isinstance(index, bool) or not isinstance(index, int) or index < 0:
        dialogue["index"] = 0
    return dialogue


def _collected_item_ids(
    value: Any,
    *,
    chunks: dict[str, dict[str, Any]],
    world_items: list[dict[str, Any]],
    inventory: list[dict[str, Any]],
) -> list[str]:
    """Saves without the field list picked-up items only in their chunk; infer them."""
    if isinstance(value, list):
        return sorted({str(item_id) for item_id in value})
    present = {row["id"] for row in world_items} | {row["id"] for row in inventory}
    return sorted(
        {row["id"] for chunk in chunks.values() for row in chunk["items"] if row["id"] not in present}
    )


def normalize_save_payload(payload: Any, *, default_seed: str) -> dict[str, Any]:
    """Single load-time migration step for untrusted save data.

    Raises ``ValueError`` when the blob is not a save or has an unsupported
    version. Every optional field that is missing or malformed is filled with
    its default, so the result can be handed straight to
    ``Simulation.from_payload``.
    """
    if not isinstance(payload, dict):
        raise ValueError("save payload must be an object")
    version = payload.get("version")
    if version not in SUPPORTED_SAVE_VERSIONS:
        raise ValueError(f"unsupported save version: {version}")

    player = payload.get("player") if isinstance(payload.get("player"), dict) else {}
    world = payload.get("world") if isinstance(payload.get("world"), dict) else {}
    simulation = payload.get("simulation") if isinstance(payload.get("simulation"), dict) else {}

    inventory = _inventory_rows(player.get("inventory"))
    max_inventory = player.get("maxInventory", DEFAULT_MAX_INVENTORY)
    if isinstance(max_inventory, bool) or not isinstance(max_inventory, int) or max_inventory < 0:
        max_inventory = DEFAULT_MAX_INVENTORY
    max_inventory = max(max_inventory, len(inventory))
    carry_weight = max(0.0, round(sum(row["weight"] for row in inventory), 2))

    tick = simulation.get("tick", 0)
    if isinstance(tick, bool) or not isinstance(tick, int) or tick < 0:
        tick = 0
    chunks = _chunk_rows(world.get("discoveredChunks"))
    world_items = _world_item_rows(world.get("items"))
    drop_serial = world.get("dropSerial", 0)
    if isinstance(drop_serial, bool) or not isinstance(drop_serial, int) or drop_serial < 0:
        drop_serial = 0

    return {
        "version": version,
        "createdAt": _string(payload.get("createdAt")),
        "player": {
            "name": _string(player.get("name"), DEFAULT_PLAYER_NAME),
            "x": _number(player.get("x"), 0.0),
            "y": _number(player.get("y"), 0.0),
            "hunger": clamp_need(_number(player.get("hunger"), 0.0)),
            "thirst": clamp_need(_number(player.get("thirst"), 0.0)),
            "warmth": clamp_need(_number(player.get("warmth"), 0.0)),
            "inventory": inventory,
            "maxInventory": max_inventory,
            "carryWeight": carry_weight,
            "baseSpeed": _number(player.get("baseSpeed"), DEFAULT_BASE_SPEED),
            "minSpeed": _number(player.get("minSpeed"), DEFAULT_MIN_SPEED),
            "isCollapsed": player.get("isCollapsed") is True,
            "collapseTimer": max(0.0, _number(player.get("collapseTimer"), 0.0)),
            "criticalTimer": max(0.0, _number(player.get("criticalTimer"), 0.0)),
        },
        "world": {
            "seed": _string(world.get("seed"), default_seed),
            "discoveredChunks": chunks,
            "items": world_items,
            "npcs": _npc_rows(world.get("npcs")),
            "npcStates": _npc_state_rows(world.get("npcStates")),
            "activeDialogue": _active_dialogue(world.get("activeDialogue")),
            "collectedItemIds": _collected_item_ids(
                world.get("collectedItemIds"),
                chunks=chunks,
                world_items=world_items,
                inventory=inventory,
            ),
            "dropSerial": drop_serial,
        },
        "simulation": {
            "tick": tick,
            "elapsed": max(0.0, _number(simulation.get("elapsed"), 0.0)),
        },
    }
