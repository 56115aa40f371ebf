from __future__ import annotations

import math
from typing import TYPE_CHECKING, Any

from scarcely.sim.world import INTERACT_RADIUS, InventoryItem, ItemRecord

if TYPE_CHECKING:
    from scarcely.sim.core import Simulation

INVENTORY_OUTCOME_EVENT_TYPE = "inventory_outcome"
DROP_DISTANCE_MIN = 10.0
DROP_DISTANCE_SPREAD = 6.0

MESSAGE_PACKED = "Packed away. Heavier already."
MESSAGE_BACKPACK_FULL = "Backpack is stuffed. Drop something first."
MESSAGE_USED = "You feel lighter for a moment."
MESSAGE_DROPPED = "It thuds softly onto the ground."


def _append_inventory_outcome(sim: Simulation, *, action: str, item_id: str, outcome: str, **extra: Any) -> None:
    sim.record_outcome(
        INVENTORY_OUTCOME_EVENT_TYPE,
        {
            "action": action,
            "item_id": item_id,
            "outcome": outcome,
            "carry_weight": sim.state.player.carry_weight,
            **extra,
        },
    )


def add_item_to_inventory(sim: Simulation, *, item_id: str, item_type: str, weight: float) -> bool:
    """Shared add path for pickups and gifts; refuses when the backpack is full."""
    player = sim.state.player
    world = sim.state.world
    if player.inventory_full:
        world.queue_message(MESSAGE_BACKPACK_FULL)
        _append_inventory_outcome(sim, action="add", item_id=item_id, outcome="backpack_full")
        return False

    player.inventory.append(InventoryItem(item_id=item_id, item_type=item_type, weight=float(weight or 0.0)))
    player.recalc_carry_weight()
    world.queue_message(MESSAGE_PACKED)
    _append_inventory_outcome(sim, action="add", item_id=item_id, outcome="applied")
    return True


def items_in_reach(sim: Simulation) -> list[ItemRecord]:
    player = sim.state.player
    return [
        item
        for item in sim.state.world.items
        if math.hypot(item.x - player.x, item.y - player.y) <= INTERACT_RADIUS
    ]


def pick_up_nearby(sim: Simulation) -> list[str]:
    """Try to pick up every world item in reach; items that do not fit stay put."""
    world = sim.state.world
    picked: list[str] = []
    for item in items_in_reach(sim):
        if not add_item_to_inventory(sim, item_id=item.item_id, item_type=item.item_type, weight=item.weight):
            continue
        world.items = [current for current in world.items if current.item_id != item.item_id]
        if not item.is_dropped:
            world.collected_item_ids.add(item.item_id)
        picked.append(item.item_id)
    return picked


def use_inventory_item(sim: Simulation, item_id: str) -> bool:
    player = sim.state.player
    index = player.inventory_index(item_id)
    if index is None:
        return False

    item = player.inventory.pop(index)
    definition = sim.content.items.by_type().get(item.item_type)
    if definition is not None:
        player.apply_need_deltas(
            hunger=definition.effect("hunger"),
            thirst=definition.effect("thirst"),
            warmth=definition.effect("warmth"),
        )
    player.recalc_carry_weight()
    sim.state.world.queue_message(MESSAGE_USED)
    _append_inventory_outcome(sim, action="use", item_id=item_id, outcome="applied", item_type=item.item_type)
    return True


def drop_inventory_item(sim: Simulation, item_id: str) -> ItemRecord | None:
    """Move an inventory item into the world a short random hop from the player."""
    player = sim.state.player
    world = sim.state.world
    index = player.inventory_index(item_id)
    if index is None:
        return None

    item = player.inventory[index]
    angle = sim.rng_sim.random() * math.pi * 2
    distance = DROP_DISTANCE_MIN + sim.rng_sim.random() * DROP_DISTANCE_SPREAD
    dropped = ItemRecord(
        item_id=world.next_drop_id(item.item_id),
        item_type=item.item_type,
        x=player.x + math.cos(angle) * distance,
        y=player.y + math.sin(angle) * distance,
        weight=item.weight,
    )
    world.items.append(dropped)
    del player.inventory[index]
    player.recalc_carry_weight()
    world.queue_message(MESSAGE_DROPPED)
    _append_inventory_outcome(sim, action="drop", item_id=item_id, outcome="applied", dropped_id=dropped.item_id)
    return dropped


def heaviest_item(sim: Simulation) -> InventoryItem | None:
    """Heaviest held item; the earliest one wins a tie."""
    heaviest: InventoryItem | None = None
    for item in sim.state.player.inventory:
        if heaviest is None or item.weight > heaviest.weight:
            heaviest = item
    return heaviest
