from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING

from scarcely.sim.chunks import generate_chunk
from scarcely.sim.world import CHUNK_SIZE, INTERACT_RADIUS, ChunkCoord, ChunkRecord, WorldState

if TYPE_CHECKING:
    from scarcely.sim.core import Simulation

logger = logging.getLogger(__name__)

VIEW_RADIUS = 2
CULL_MARGIN = CHUNK_SIZE * (VIEW_RADIUS + 1)
CHUNK_GENERATED_EVENT_TYPE = "chunk_generated"


def ensure_chunk(sim: Simulation, coord: ChunkCoord) -> ChunkRecord:
    """Return the cached chunk, generating it on first reference only."""
    world = sim.state.world
    existing = world.get_chunk(coord)
    if existing is not None:
        return existing

    chunk = generate_chunk(
        world.seed,
        coord,
        items=sim.content.items,
        palettes=sim.content.palettes,
        template_count=len(sim.content.dialogue.templates),
    )
    for npc in chunk.npcs:
        world.npc_state(npc.npc_id)
    world.chunks[coord] = chunk
    world.items.extend(chunk.items)
    world.npcs.extend(chunk.npcs)
    sim.record_outcome(
        CHUNK_GENERATED_EVENT_TYPE,
        {"chunk": coord.key(), "biome": chunk.biome, "items": len(chunk.items), "npcs": len(chunk.npcs)},
    )
    return chunk


def view_coords(x: float, y: float, radius: int = VIEW_RADIUS) -> list[ChunkCoord]:
    center = ChunkCoord.containing(x, y)
    return [
        ChunkCoord(cx, cy)
        for cx in range(center.cx - radius, center.cx + radius + 1)
        for cy in range(center.cy - radius, center.cy + radius + 1)
    ]


def activate_chunk_entities(world: WorldState, chunk: ChunkRecord) -> int:
    """Put a cached chunk's entities back in the active lists.

    Items the player already collected stay gone. Returns how many entities
    were re-activated.
    """
    active_item_ids = {item.item_id for item in world.items}
    active_npc_ids = {npc.npc_id for npc in world.npcs}
    restored = 0
    for item in chunk.items:
        if item.item_id in active_item_ids or item.item_id in world.collected_item_ids:
            continue
        world.items.append(item)
        restored += 1
    for npc in chunk.npcs:
        if npc.npc_id in active_npc_ids:
            continue
        world.npc_state(npc.npc_id)
        world.npcs.append(npc)
        restored += 1
    return restored


def stream_around(sim: Simulation, x: float, y: float) -> list[ChunkCoord]:
    """Make sure every chunk within the view radius exists and is active.

    Returns the coordinates generated during this call.
    """
    world = sim.state.world
    generated: list[ChunkCoord] = []
    for coord in view_coords(x, y):
        if coord not in world.chunks:
            ensure_chunk(sim, coord)
            generated.append(coord)
            continue
        restored = activate_chunk_entities(world, world.chunks[coord])
        if restored:
            logger.debug("re-activated %d entities in chunk %s", restored, coord.key())
    return generated


def _within_margin(x: float, y: float, px: float, py: float) -> bool:
    if math.hypot(x - px, y - py) <= INTERACT_RADIUS:
        return True
    return abs(x - px) < CULL_MARGIN and abs(y - py) < CULL_MARGIN


def cull_far_entities(world: WorldState, x: float, y: float) -> tuple[int, int]:
    """Drop active items/NPCs outside the axis-aligned cull box around (x, y).

    Chunk cache entries and NPC states are untouched. Returns (items, npcs) removed.
    """
    kept_items = [item for item in world.items if _within_margin(item.x, item.y, x, y)]
    kept_npcs = [npc for npc in world.npcs if _within_margin(npc.x, npc.y, x, y)]
    removed = (len(world.items) - len(kept_items), len(world.npcs) - len(kept_npcs))
    world.items = kept_items
    world.npcs = kept_npcs
    if removed != (0, 0):
        logger.debug("culled items=%d npcs=%d around (%.1f, %.1f)", removed[0], removed[1], x, y)
    return removed
