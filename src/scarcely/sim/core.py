from __future__ import annotations

import copy
import logging
import random
import string
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from scarcely.content.dialogue import DEFAULT_DIALOGUE_PATH, DialogueRegistry, load_dialogue_json
from scarcely.content.items import DEFAULT_ITEMS_PATH, ItemRegistry, load_items_json
from scarcely.content.palettes import DEFAULT_PALETTES_PATH, PaletteRegistry, load_palettes_json
from scarcely.sim.dialogue import advance_dialogue, talk_to_nearby, tick_dialogue
from scarcely.sim.inventory import pick_up_nearby
from scarcely.sim.needs import apply_needs, update_collapsed
from scarcely.sim.player import PlayerState, move_player
from scarcely.sim.rng import derive_stream_seed
from scarcely.sim.session import UiSession
from scarcely.sim.streaming import cull_far_entities, ensure_chunk, stream_around
from scarcely.sim.world import ChunkCoord, ChunkRecord, WorldState

logger = logging.getLogger(__name__)

SAVE_VERSION = 1
MAX_DT_SECONDS = 0.25
MAX_EVENT_TRACE = 256
RNG_SIM_STREAM_NAME = "rng_sim"
SEED_ALPHABET = string.digits + string.ascii_lowercase

DIRECTION_KEYS: dict[str, tuple[int, int]] = {
    "w": (0, -1),
    "arrowup": (0, -1),
    "s": (0, 1),
    "arrowdown": (0, 1),
    "a": (-1, 0),
    "arrowleft": (-1, 0),
    "d": (1, 0),
    "arrowright": (1, 0),
}


def generate_seed(rng: random.Random | None = None) -> str:
    """Fresh base-36 world seed for a new game."""
    source = rng if rng is not None else random.Random()
    value = source.getrandbits(52) or 1
    digits: list[str] = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(SEED_ALPHABET[remainder])
    return "".join(reversed(digits))


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class GameContent:
    items: ItemRegistry
    palettes: PaletteRegistry
    dialogue: DialogueRegistry


def load_game_content(
    *,
    items_path: str = DEFAULT_ITEMS_PATH,
    palettes_path: str = DEFAULT_PALETTES_PATH,
    dialogue_path: str = DEFAULT_DIALOGUE_PATH,
) -> GameContent:
    return GameContent(
        items=load_items_json(items_path),
        palettes=load_palettes_json(palettes_path),
        dialogue=load_dialogue_json(dialogue_path),
    )


@dataclass(frozen=True)
class TickInput:
    """Input for one tick: held key identifiers plus one-shot pressed flags.

    Edge detection (pressed vs. held) belongs to the host; ``interact`` and the
    backpack flags are true only on the tick the key went down.
    """

    held: frozenset[str] = frozenset()
    interact: bool = False
    toggle_backpack: bool = False
    close_backpack: bool = False

    def direction(self) -> tuple[float, float]:
        dx = 0
        dy = 0
        if any(DIRECTION_KEYS.get(key) == (0, -1) for key in self.held):
            dy -= 1
        if any(DIRECTION_KEYS.get(key) == (0, 1) for key in self.held):
            dy += 1
        if any(DIRECTION_KEYS.get(key) == (-1, 0) for key in self.held):
            dx -= 1
        if any(DIRECTION_KEYS.get(key) == (1, 0) for key in self.held):
            dx += 1
        return (float(dx), float(dy))


@dataclass(frozen=True)
class RenderSnapshot:
    """Read-only view of one finished tick for renderers."""

    tick: int
    player: dict[str, Any]
    items: tuple[dict[str, Any], ...]
    npcs: tuple[dict[str, Any], ...]
    dialogue: dict[str, Any] | None
    palette: dict[str, str]
    biome: str
    speed: float
    backpack_open: bool
    selected_item_id: str | None


@dataclass
class SimulationState:
    player: PlayerState
    world: WorldState
    tick: int = 0
    elapsed: float = 0.0
    created_at: str = field(default_factory=_utc_now_iso)
    event_trace: list[dict[str, Any]] = field(default_factory=list)


class Simulation:
    def __init__(
        self,
        state: SimulationState,
        *,
        content: GameContent | None = None,
        session: UiSession | None = None,
    ) -> None:
        self.state = state
        self.content = content if content is not None else load_game_content()
        self.session = session if session is not None else UiSession()
        self.rng_sim = random.Random(
            derive_stream_seed(master_seed=state.world.seed, stream_name=f"{RNG_SIM_STREAM_NAME}:{state.tick}")
        )
        self.last_speed = 0.0
        self.state.player.recalc_carry_weight()

    @classmethod
    def new_game(cls, seed: str | int | None = None, *, content: GameContent | None = None) -> "Simulation":
        world = WorldState(seed=str(seed) if seed is not None else generate_seed())
        sim = cls(SimulationState(player=PlayerState(), world=world), content=content)
        stream_around(sim, sim.state.player.x, sim.state.player.y)
        logger.info("new game seed=%s", world.seed)
        return sim

    def step(self, tick_input: TickInput, dt: float) -> float:
        """Run one whole tick; returns the movement speed used (0 while collapsed)."""
        dt = min(max(0.0, dt), MAX_DT_SECONDS)
        player = self.state.player

        if tick_input.toggle_backpack:
            self.session.toggle_backpack()
        if tick_input.close_backpack:
            self.session.close_backpack()

        if player.is_collapsed:
            update_collapsed(self, dt)
            tick_dialogue(self, dt)
            speed = 0.0
        else:
            speed = move_player(player, tick_input.direction(), dt)
            stream_around(self, player.x, player.y)
            if tick_input.interact:
                self.interact()
            apply_needs(self, dt)
            tick_dialogue(self, dt)
            cull_far_entities(self.state.world, player.x, player.y)

        self.state.tick += 1
        self.state.elapsed += dt
        self.last_speed = speed
        return speed

    def advance(self, seconds: float, tick_input: TickInput | None = None, *, dt: float = MAX_DT_SECONDS) -> None:
        """Step repeatedly with the same held input until ``seconds`` have passed."""
        held = tick_input if tick_input is not None else TickInput()
        remaining = seconds
        while remaining > 1e-9:
            step_dt = min(dt, remaining)
            self.step(held, step_dt)
            remaining -= step_dt

    def interact(self) -> None:
        """An active dialogue swallows the press; otherwise pick up, then talk."""
        if self.state.world.active_dialogue is not None:
            advance_dialogue(self)
            return
        pick_up_nearby(self)
        talk_to_nearby(self)

    def current_chunk(self) -> ChunkRecord:
        player = self.state.player
        chunk = self.state.world.chunk_at(player.x, player.y)
        if chunk is not None:
            return chunk
        return ensure_chunk(self, ChunkCoord.containing(player.x, player.y))

    def record_outcome(self, event_type: str, params: dict[str, Any]) -> None:
        self.state.event_trace.append({"tick": self.state.tick, "event_type": event_type, "params": dict(params)})
        if len(self.state.event_trace) > MAX_EVENT_TRACE:
            overflow = len(self.state.event_trace) - MAX_EVENT_TRACE
            del self.state.event_trace[:overflow]

    def get_event_trace(self) -> list[dict[str, Any]]:
        return copy.deepcopy(self.state.event_trace)

    def snapshot(self) -> RenderSnapshot:
        chunk = self.current_chunk()
        dialogue = self.state.world.active_dialogue
        dialogue_view = None
        if dialogue is not None:
            dialogue_view = {
                "npc_id": dialogue.npc_id,
                "line": dialogue.current_line,
                "hint": "Tap E or Enter to listen on" if dialogue.npc_id else "Tap E or Enter to continue",
            }
        return RenderSnapshot(
            tick=self.state.tick,
            player=self.state.player.to_dict(),
            items=tuple(item.to_dict() for item in self.state.world.items),
            npcs=tuple(npc.to_dict() for npc in self.state.world.npcs),
            dialogue=dialogue_view,
            palette=dict(chunk.palette),
            biome=chunk.biome,
            speed=self.last_speed,
            backpack_open=self.session.backpack_open,
            selected_item_id=self.session.selected_item_id,
        )

    def to_payload(self) -> dict[str, Any]:
        return {
            "version": SAVE_VERSION,
            "createdAt": self.state.created_at,
            "player": self.state.player.to_dict(),
            "world": self.state.world.to_dict(),
            "simulation": {"tick": self.state.tick, "elapsed": self.state.elapsed},
        }

    @classmethod
    def from_payload(cls, payload: dict[str, Any], *, content: GameContent | None = None) -> "Simulation":
        """Build from an already-normalized payload (see ``normalize_save_payload``)."""
        version = payload.get("version")
        if version != SAVE_VERSION:
            raise ValueError(f"unsupported save version: {version}")
        simulation_payload = payload.get("simulation", {})
        state = SimulationState(
            player=PlayerState.from_dict(payload["player"]),
            world=WorldState.from_dict(payload["world"]),
            tick=int(simulation_payload.get("tick", 0)),
            elapsed=float(simulation_payload.get("elapsed", 0.0)),
            created_at=str(payload.get("createdAt") or _utc_now_iso()),
        )
        return cls(state, content=content)
