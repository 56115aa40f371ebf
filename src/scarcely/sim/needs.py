from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from scarcely.sim.inventory import drop_inventory_item, heaviest_item
from scarcely.sim.player import NEED_MAX

if TYPE_CHECKING:
    from scarcely.sim.core import Simulation

logger = logging.getLogger(__name__)

HUNGER_PER_SECOND = 6.0
THIRST_PER_SECOND = 8.0
WARMTH_PER_SECOND = 4.0
COLD_MULTIPLIERS = {"icy": 1.25, "forest": 0.75, "steppe": 0.6}
DEFAULT_COLD_MULTIPLIER = 0.6
CRITICAL_SECONDS_TO_COLLAPSE = 5.0
CRITICAL_DECAY_RATE = 0.5
COLLAPSE_SECONDS = 5.0
COLLAPSED_NEED_RATE = 0.3
RECOVERY_HUNGER = 40.0
RECOVERY_THIRST = 40.0
RECOVERY_WARMTH = 45.0
COLLAPSE_MESSAGE_SECONDS = 6.0

COLLAPSE_OUTCOME_EVENT_TYPE = "collapse_outcome"
MESSAGE_COLLAPSE = "Your body quits. The world narrows to breath and cold."
MESSAGE_RECOVERED = "You come to, aching but alive."


def cold_multiplier(biome: str | None) -> float:
    return COLD_MULTIPLIERS.get(biome or "", DEFAULT_COLD_MULTIPLIER)


def apply_needs(sim: Simulation, dt: float) -> None:
    """Drift needs upward by ``dt`` seconds and track time spent at a critical need."""
    player = sim.state.player
    chunk = sim.current_chunk()
    player.apply_need_deltas(
        hunger=HUNGER_PER_SECOND * dt,
        thirst=THIRST_PER_SECOND * dt,
        warmth=WARMTH_PER_SECOND * dt * cold_multiplier(chunk.biome),
    )

    if player.worst_need >= NEED_MAX:
        player.critical_timer += dt
    else:
        player.critical_timer = max(0.0, player.critical_timer - dt * CRITICAL_DECAY_RATE)

    if player.critical_timer >= CRITICAL_SECONDS_TO_COLLAPSE:
        trigger_collapse(sim)


def trigger_collapse(sim: Simulation) -> bool:
    player = sim.state.player
    if player.is_collapsed:
        return False

    player.is_collapsed = True
    player.collapse_timer = COLLAPSE_SECONDS
    player.critical_timer = 0.0

    dropped_id = None
    heaviest = heaviest_item(sim)
    if heaviest is not None:
        dropped = drop_inventory_item(sim, heaviest.item_id)
        dropped_id = dropped.item_id if dropped is not None else None

    sim.state.world.queue_message(MESSAGE_COLLAPSE, COLLAPSE_MESSAGE_SECONDS)
    sim.record_outcome(COLLAPSE_OUTCOME_EVENT_TYPE, {"outcome": "collapsed", "dropped_id": dropped_id})
    logger.info("player collapsed at (%.1f, %.1f); dropped=%s", player.x, player.y, dropped_id)
    return True


def update_collapsed(sim: Simulation, dt: float) -> bool:
    """Advance a collapsed player; returns True on the tick they come to."""
    player = sim.state.player
    player.collapse_timer -= dt
    apply_needs(sim, dt * COLLAPSED_NEED_RATE)
    if player.collapse_timer > 0:
        return False

    player.is_collapsed = False
    player.collapse_timer = 0.0
    player.hunger = RECOVERY_HUNGER
    player.thirst = RECOVERY_THIRST
    player.warmth = RECOVERY_WARMTH
    sim.state.world.queue_message(MESSAGE_RECOVERED, COLLAPSE_MESSAGE_SECONDS)
    sim.record_outcome(COLLAPSE_OUTCOME_EVENT_TYPE, {"outcome": "recovered", "dropped_id": None})
    logger.info("player recovered from collapse")
    return True
