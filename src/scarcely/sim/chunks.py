from __future__ import annotations

import logging
import math

from scarcely.content.items import ItemRegistry
from scarcely.content.palettes import PaletteRegistry
from scarcely.sim.rng import chunk_stream
from scarcely.sim.world import CHUNK_SIZE, ChunkCoord, ChunkRecord, ItemRecord, NpcRecord

logger = logging.getLogger(__name__)

ICY_CHILL_THRESHOLD = 0.65
FOREST_CHILL_THRESHOLD = 0.35
MAX_ITEMS_PER_CHUNK = 3
NPC_SPAWN_THRESHOLD = 0.94
NPC_JITTER = 24


def biome_for_chill(chill: float) -> str:
    if chill > ICY_CHILL_THRESHOLD:
        return "icy"
    if chill > FOREST_CHILL_THRESHOLD:
        return "forest"
    return "steppe"


def _pick_index(roll: float, count: int) -> int:
    return math.floor(roll * count)


def generate_chunk(
    seed: str | int,
    coord: ChunkCoord,
    *,
    items: ItemRegistry,
    palettes: PaletteRegistry,
    template_count: int,
) -> ChunkRecord:
    """Derive a chunk's palette, biome and spawns from (seed, cx, cy).

    Pure: the same inputs always give the same record. The order of draws from
    the chunk stream is fixed (palette, chill, item count, per-item type/x/y,
    NPC roll, NPC jitter x/y, template) and must not change, or existing saves
    would regenerate different content.
    """
    rand = chunk_stream(seed, coord.cx, coord.cy)
    key = coord.key()

    palette = palettes.get(_pick_index(next(rand), len(palettes)))
    biome = biome_for_chill(next(rand))

    type_names = items.type_names()
    weights = items.by_type()
    origin_x = coord.cx * CHUNK_SIZE
    origin_y = coord.cy * CHUNK_SIZE

    spawned: list[ItemRecord] = []
    item_count = 1 + _pick_index(next(rand), MAX_ITEMS_PER_CHUNK)
    for index in range(item_count):
        item_type = type_names[_pick_index(next(rand), len(type_names))]
        x = origin_x + next(rand) * CHUNK_SIZE
        y = origin_y + next(rand) * CHUNK_SIZE
        spawned.append(
            ItemRecord(
                item_id=f"{key}-item-{index}",
                item_type=item_type,
                x=x,
                y=y,
                weight=weights[item_type].weight,
            )
        )

    npcs: tuple[NpcRecord, ...] = ()
    if next(rand) > NPC_SPAWN_THRESHOLD:
        npc_x = (coord.cx + 0.5) * CHUNK_SIZE + (next(rand) - 0.5) * NPC_JITTER
        npc_y = (coord.cy + 0.5) * CHUNK_SIZE + (next(rand) - 0.5) * NPC_JITTER
        template = _pick_index(next(rand), template_count)
        npcs = (NpcRecord(npc_id=f"{key}-npc", x=npc_x, y=npc_y, template=template),)

    logger.debug("generated chunk %s biome=%s items=%d npcs=%d", key, biome, len(spawned), len(npcs))
    return ChunkRecord(coord=coord, palette=palette, biome=biome, items=tuple(spawned), npcs=npcs)
