from __future__ import annotations

import math
from typing import TYPE_CHECKING

from scarcely.sim.inventory import add_item_to_inventory
from scarcely.sim.world import INTERACT_RADIUS, NpcExchange, NpcRecord, NpcState, SystemMessage

if TYPE_CHECKING:
    from scarcely.sim.core import Simulation

DIALOGUE_OUTCOME_EVENT_TYPE = "dialogue_outcome"
NEEDY_WARNING_THRESHOLD = 70.0
CONVERSATION_LIGHTENING = 0.15
GIFT_ITEM_TYPE = "keepsake"
MESSAGE_GIFT = "They press a keepsake into your palm."


def build_npc_lines(sim: Simulation, npc: NpcRecord, npc_state: NpcState) -> tuple[str, ...]:
    """Intro lines on a first meeting, followup lines after; warn a fraying player."""
    registry = sim.content.dialogue
    template = registry.template(npc.template)
    lines = list(template.followup if npc_state.encounters > 0 else template.intro)
    if sim.state.player.worst_need > NEEDY_WARNING_THRESHOLD:
        lines.append(registry.warning_line)
    return tuple(lines)


def start_exchange(sim: Simulation, npc: NpcRecord) -> NpcExchange:
    world = sim.state.world
    npc_state = world.npc_state(npc.npc_id)
    exchange = NpcExchange(npc_id=npc.npc_id, lines=build_npc_lines(sim, npc, npc_state))
    world.active_dialogue = exchange
    sim.record_outcome(
        DIALOGUE_OUTCOME_EVENT_TYPE,
        {"outcome": "started", "npc_id": npc.npc_id, "encounters": npc_state.encounters},
    )
    return exchange


def talk_to_nearby(sim: Simulation) -> NpcExchange | None:
    player = sim.state.player
    for npc in sim.state.world.npcs:
        if math.hypot(npc.x - player.x, npc.y - player.y) <= INTERACT_RADIUS:
            return start_exchange(sim, npc)
    return None


def complete_exchange(sim: Simulation, npc_id: str) -> None:
    """Apply the once-per-conversation effects for ``npc_id``.

    The carry-weight decrement deliberately bypasses the inventory sum; the
    next inventory change recomputes it.
    """
    world = sim.state.world
    player = sim.state.player
    npc_state = world.npc_state(npc_id)
    npc_state.encounters += 1
    player.carry_weight = max(0.0, player.carry_weight - CONVERSATION_LIGHTENING)

    gifted_now = False
    if not npc_state.gifted:
        npc_state.gifted = True
        definition = sim.content.items.by_type()[GIFT_ITEM_TYPE]
        gifted_now = add_item_to_inventory(
            sim,
            item_id=f"{npc_id}-keepsake",
            item_type=GIFT_ITEM_TYPE,
            weight=definition.weight,
        )
        if gifted_now:
            world.queue_message(MESSAGE_GIFT)

    sim.record_outcome(
        DIALOGUE_OUTCOME_EVENT_TYPE,
        {"outcome": "completed", "npc_id": npc_id, "encounters": npc_state.encounters, "gifted": gifted_now},
    )


def advance_dialogue(sim: Simulation) -> None:
    """Interact pressed while something is showing: next line, or finish it."""
    world = sim.state.world
    dialogue = world.active_dialogue
    if dialogue is None:
        return
    if isinstance(dialogue, SystemMessage):
        world.active_dialogue = None
        return
    if not dialogue.is_last_line:
        dialogue.index += 1
        return
    world.active_dialogue = None
    complete_exchange(sim, dialogue.npc_id)


def tick_dialogue(sim: Simulation, dt: float) -> None:
    """Count down a system message; NPC exchanges only move on interaction."""
    world = sim.state.world
    dialogue = world.active_dialogue
    if not isinstance(dialogue, SystemMessage):
        return
    dialogue.ttl -= dt
    if dialogue.ttl <= 0:
        world.active_dialogue = None
