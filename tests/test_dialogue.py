import pytest

from scarcely.sim.core import Simulation, TickInput
from scarcely.sim.dialogue import (
    DIALOGUE_OUTCOME_EVENT_TYPE,
    MESSAGE_GIFT,
    advance_dialogue,
    start_exchange,
    talk_to_nearby,
    tick_dialogue,
)
from scarcely.sim.world import InventoryItem, NpcExchange, NpcRecord, SystemMessage

NPC = NpcRecord(npc_id="test-npc", x=4.0, y=0.0, template=1)


def _make_sim() -> Simulation:
    sim = Simulation.new_game("abc")
    world = sim.state.world
    world.items = []
    world.npcs = [NPC]
    world.active_dialogue = None
    return sim


def _finish(sim: Simulation) -> None:
    dialogue = sim.state.world.active_dialogue
    assert isinstance(dialogue, NpcExchange)
    for _ in dialogue.lines:
        advance_dialogue(sim)


def test_first_meeting_uses_intro_lines() -> None:
    sim = _make_sim()

    exchange = talk_to_nearby(sim)

    template = sim.content.dialogue.template(1)
    assert exchange is not None
    assert exchange.lines == template.intro
    assert sim.state.world.active_dialogue is exchange


def test_completion_gifts_a_keepsake_once() -> None:
    sim = _make_sim()
    talk_to_nearby(sim)

    _finish(sim)

    world = sim.state.world
    assert world.npc_states[NPC.npc_id].encounters == 1
    assert world.npc_states[NPC.npc_id].gifted
    assert [item.item_id for item in sim.state.player.inventory] == [f"{NPC.npc_id}-keepsake"]
    assert sim.state.player.carry_weight == pytest.approx(0.5)
    assert isinstance(world.active_dialogue, SystemMessage)
    assert world.active_dialogue.text == MESSAGE_GIFT

    advance_dialogue(sim)
    second = talk_to_nearby(sim)
    assert second is not None
    assert second.lines == sim.content.dialogue.template(1).followup
    _finish(sim)

    assert world.npc_states[NPC.npc_id].encounters == 2
    assert len(sim.state.player.inventory) == 1
    completed = [
        entry["params"]
        for entry in sim.get_event_trace()
        if entry["event_type"] == DIALOGUE_OUTCOME_EVENT_TYPE and entry["params"]["outcome"] == "completed"
    ]
    assert [row["gifted"] for row in completed] == [True, False]


def test_completion_lightens_carry_weight_directly() -> None:
    sim = _make_sim()
    sim.state.world.npc_state(NPC.npc_id).gifted = True
    sim.state.player.inventory = [InventoryItem(item_id="k", item_type="keepsake", weight=0.5)]
    sim.state.player.recalc_carry_weight()
    talk_to_nearby(sim)

    _finish(sim)

    assert sim.state.player.carry_weight == pytest.approx(0.35)


def test_carry_weight_lightening_never_goes_negative() -> None:
    sim = _make_sim()
    sim.state.world.npc_state(NPC.npc_id).gifted = True
    talk_to_nearby(sim)

    _finish(sim)

    assert sim.state.player.carry_weight == 0.0


def test_needy_player_hears_the_warning_line() -> None:
    sim = _make_sim()
    sim.state.player.thirst = 71.0

    exchange = start_exchange(sim, NPC)

    assert exchange.lines[-1] == sim.content.dialogue.warning_line
    assert len(exchange.lines) == len(sim.content.dialogue.template(1).intro) + 1


def test_full_backpack_still_marks_the_npc_gifted() -> None:
    sim = _make_sim()
    sim.state.player.max_inventory = 0
    talk_to_nearby(sim)

    _finish(sim)

    state = sim.state.world.npc_states[NPC.npc_id]
    assert state.gifted
    assert sim.state.player.inventory == []


def test_interact_advances_an_open_exchange_instead_of_picking_up() -> None:
    sim = _make_sim()
    talk_to_nearby(sim)

    sim.step(TickInput(interact=True), 0.0)

    dialogue = sim.state.world.active_dialogue
    assert isinstance(dialogue, NpcExchange)
    assert dialogue.index == 1


def test_npc_exchange_does_not_time_out() -> None:
    sim = _make_sim()
    talk_to_nearby(sim)

    tick_dialogue(sim, 60.0)

    assert isinstance(sim.state.world.active_dialogue, NpcExchange)


def test_system_message_expires_on_its_own() -> None:
    sim = _make_sim()
    sim.state.world.queue_message("hello", 1.0)

    tick_dialogue(sim, 0.5)
    assert sim.state.world.active_dialogue is not None
    tick_dialogue(sim, 0.5)

    assert sim.state.world.active_dialogue is None


def test_interact_dismisses_a_system_message() -> None:
    sim = _make_sim()
    sim.state.world.queue_message("hello")

    advance_dialogue(sim)

    assert sim.state.world.active_dialogue is None
