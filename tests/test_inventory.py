import math

import pytest

from scarcely.sim.core import Simulation, TickInput
from scarcely.sim.inventory import (
    INVENTORY_OUTCOME_EVENT_TYPE,
    MESSAGE_BACKPACK_FULL,
    drop_inventory_item,
    heaviest_item,
    pick_up_nearby,
    use_inventory_item,
)
from scarcely.sim.world import DROPPED_ID_MARKER, ItemRecord


def _make_sim() -> Simulation:
    sim = Simulation.new_game("abc")
    sim.state.world.items = []
    sim.state.world.npcs = []
    sim.state.world.active_dialogue = None
    return sim


def _place(sim: Simulation, item_id: str, item_type: str, weight: float, x: float = 3.0, y: float = 0.0) -> None:
    sim.state.world.items.append(ItemRecord(item_id=item_id, item_type=item_type, x=x, y=y, weight=weight))


def _assert_carry_matches(sim: Simulation) -> None:
    expected = round(sum(item.weight for item in sim.state.player.inventory), 2)
    assert sim.state.player.carry_weight == pytest.approx(expected)


def test_pickup_moves_items_in_reach_into_the_pack() -> None:
    sim = _make_sim()
    _place(sim, "0,0-item-0", "water", 1.5)
    _place(sim, "0,0-item-1", "forage", 1.0, x=40.0)

    picked = pick_up_nearby(sim)

    assert picked == ["0,0-item-0"]
    assert [item.item_id for item in sim.state.player.inventory] == ["0,0-item-0"]
    assert [item.item_id for item in sim.state.world.items] == ["0,0-item-1"]
    assert "0,0-item-0" in sim.state.world.collected_item_ids
    _assert_carry_matches(sim)


def test_full_backpack_keeps_the_extra_item_in_the_world() -> None:
    sim = _make_sim()
    sim.state.player.max_inventory = 1
    _place(sim, "a", "water", 1.5)
    _place(sim, "b", "ember", 2.0, x=-3.0)

    picked = pick_up_nearby(sim)

    assert picked == ["a"]
    assert len(sim.state.player.inventory) == 1
    assert [item.item_id for item in sim.state.world.items] == ["b"]
    assert sim.state.world.active_dialogue.current_line == MESSAGE_BACKPACK_FULL
    outcome = sim.get_event_trace()[-1]
    assert outcome["event_type"] == INVENTORY_OUTCOME_EVENT_TYPE
    assert outcome["params"]["outcome"] == "backpack_full"


def test_use_applies_effects_and_removes_the_item() -> None:
    sim = _make_sim()
    sim.state.player.thirst = 50.0
    _place(sim, "w", "water", 1.5)
    pick_up_nearby(sim)

    assert use_inventory_item(sim, "w")

    assert sim.state.player.thirst == pytest.approx(28.0)
    assert sim.state.player.inventory == []
    _assert_carry_matches(sim)


def test_use_clamps_needs_at_zero() -> None:
    sim = _make_sim()
    _place(sim, "f", "forage", 1.0)
    pick_up_nearby(sim)

    use_inventory_item(sim, "f")

    assert sim.state.player.hunger == 0.0


def test_stale_ids_are_no_ops() -> None:
    sim = _make_sim()
    _place(sim, "w", "water", 1.5)
    pick_up_nearby(sim)
    trace_length = len(sim.get_event_trace())

    assert not use_inventory_item(sim, "missing")
    assert drop_inventory_item(sim, "missing") is None

    assert len(sim.state.player.inventory) == 1
    assert len(sim.get_event_trace()) == trace_length


def test_drop_places_a_marked_copy_near_the_player() -> None:
    sim = _make_sim()
    _place(sim, "0,0-item-2", "ember", 2.0)
    pick_up_nearby(sim)

    dropped = drop_inventory_item(sim, "0,0-item-2")

    assert dropped is not None
    assert dropped.item_id == f"0,0-item-2{DROPPED_ID_MARKER}1"
    assert dropped.is_dropped
    distance = math.hypot(dropped.x - sim.state.player.x, dropped.y - sim.state.player.y)
    assert 10.0 <= distance <= 16.0
    assert sim.state.player.inventory == []
    assert sim.state.world.find_item(dropped.item_id) == dropped
    _assert_carry_matches(sim)


def test_dropped_item_can_be_picked_up_again_without_being_marked_collected() -> None:
    sim = _make_sim()
    _place(sim, "e", "ember", 2.0)
    pick_up_nearby(sim)
    dropped = drop_inventory_item(sim, "e")
    assert dropped is not None
    sim.state.player.x = dropped.x
    sim.state.player.y = dropped.y

    picked = pick_up_nearby(sim)

    assert picked == [dropped.item_id]
    assert dropped.item_id not in sim.state.world.collected_item_ids


def test_each_drop_gets_a_fresh_id() -> None:
    sim = _make_sim()
    _place(sim, "e", "ember", 2.0)
    pick_up_nearby(sim)
    first = drop_inventory_item(sim, "e")
    assert first is not None
    sim.state.player.x, sim.state.player.y = first.x, first.y
    pick_up_nearby(sim)

    second = drop_inventory_item(sim, first.item_id)

    assert second is not None
    assert second.item_id != first.item_id
    assert sim.state.world.drop_serial == 2


def test_heaviest_item_prefers_the_first_of_equal_weights() -> None:
    sim = _make_sim()
    _place(sim, "x", "ember", 2.0)
    _place(sim, "y", "water", 1.5, x=-2.0)
    _place(sim, "z", "ember", 2.0, y=2.0)
    pick_up_nearby(sim)

    heaviest = heaviest_item(sim)

    assert heaviest is not None
    assert heaviest.item_id == "x"


def test_interact_picks_up_through_the_tick() -> None:
    sim = _make_sim()
    _place(sim, "near", "forage", 1.0, x=5.0, y=5.0)

    sim.step(TickInput(interact=True), 0.0)

    assert sim.state.player.inventory_index("near") == 0
    _assert_carry_matches(sim)
