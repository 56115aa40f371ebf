import math

import pytest

from scarcely.sim.core import Simulation, TickInput
from scarcely.sim.player import PlayerState, move_player, movement_speed, normalized_vector
from scarcely.sim.world import InventoryItem


def _make_sim() -> Simulation:
    return Simulation.new_game("abc")


def test_fresh_player_walks_base_speed() -> None:
    sim = _make_sim()

    speed = sim.step(TickInput(held=frozenset({"d"})), 0.25)

    assert speed == pytest.approx(52.0)
    assert sim.state.player.x == pytest.approx(13.0)
    assert sim.state.player.y == pytest.approx(0.0)


def test_arrow_keys_and_letters_map_to_the_same_direction() -> None:
    assert TickInput(held=frozenset({"w"})).direction() == (0.0, -1.0)
    assert TickInput(held=frozenset({"arrowup"})).direction() == (0.0, -1.0)
    assert TickInput(held=frozenset({"a", "arrowleft"})).direction() == (-1.0, 0.0)
    assert TickInput(held=frozenset({"w", "s"})).direction() == (0.0, 0.0)


def test_diagonal_movement_is_normalized() -> None:
    player = PlayerState()

    move_player(player, (1.0, 1.0), 0.25)

    assert math.hypot(player.x, player.y) == pytest.approx(13.0)
    assert player.x == pytest.approx(player.y)


def test_normalized_vector_handles_zero() -> None:
    assert normalized_vector(0.0, 0.0) == (0.0, 0.0)
    assert normalized_vector(3.0, 4.0) == pytest.approx((0.6, 0.8))


def test_speed_formula_with_weight_and_strain() -> None:
    player = PlayerState(hunger=80.0, carry_weight=4.0)

    assert movement_speed(player) == pytest.approx(19.84)


def test_speed_never_drops_below_min_before_penalties() -> None:
    player = PlayerState(carry_weight=10.0)

    assert movement_speed(player) == pytest.approx(9.6)


def test_burden_penalty_is_capped() -> None:
    light = PlayerState(carry_weight=17.5)
    heavy = PlayerState(carry_weight=40.0)

    assert movement_speed(light) == pytest.approx(12.0 * 0.65)
    assert movement_speed(heavy) == pytest.approx(12.0 * 0.65)


def test_collapsed_player_does_not_move() -> None:
    sim = _make_sim()
    sim.state.player.is_collapsed = True
    sim.state.player.collapse_timer = 5.0

    speed = sim.step(TickInput(held=frozenset({"d", "s"})), 0.25)

    assert speed == 0.0
    assert (sim.state.player.x, sim.state.player.y) == (0.0, 0.0)


def test_carry_weight_is_recomputed_from_inventory_on_load() -> None:
    sim = _make_sim()
    sim.state.player.inventory = [
        InventoryItem(item_id="a", item_type="water", weight=1.5),
        InventoryItem(item_id="b", item_type="ember", weight=2.0),
    ]
    sim.state.player.carry_weight = 99.0

    reloaded = Simulation.from_payload(sim.to_payload(), content=sim.content)

    assert reloaded.state.player.carry_weight == pytest.approx(3.5)


def test_large_frame_times_are_clamped() -> None:
    sim = _make_sim()

    sim.step(TickInput(held=frozenset({"d"})), 3.0)

    assert sim.state.player.x == pytest.approx(13.0)
    assert sim.state.elapsed == pytest.approx(0.25)
