from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any

from scarcely.sim.world import InventoryItem

NEED_MIN = 0.0
NEED_MAX = 100.0
DEFAULT_PLAYER_NAME = "wanderer"
DEFAULT_MAX_INVENTORY = 20
DEFAULT_BASE_SPEED = 52.0
DEFAULT_MIN_SPEED = 12.0
WEIGHT_FACTOR = 5.0
BURDEN_PER_WEIGHT = 0.02
MAX_BURDEN_PENALTY = 0.35
NEED_STRAIN_FACTOR = 0.35
SEVERE_NEED_THRESHOLD = 0.7
SEVERE_NEED_FACTOR = 0.2


def clamp(value: float, low: float, high: float) -> float:
    return min(high, max(low, value))


def clamp_need(value: float) -> float:
    return clamp(value, NEED_MIN, NEED_MAX)


@dataclass
class PlayerState:
    x: float = 0.0
    y: float = 0.0
    hunger: float = 0.0
    thirst: float = 0.0
    warmth: float = 0.0
    inventory: list[InventoryItem] = field(default_factory=list)
    max_inventory: int = DEFAULT_MAX_INVENTORY
    carry_weight: float = 0.0
    base_speed: float = DEFAULT_BASE_SPEED
    min_speed: float = DEFAULT_MIN_SPEED
    is_collapsed: bool = False
    collapse_timer: float = 0.0
    critical_timer: float = 0.0
    name: str = DEFAULT_PLAYER_NAME

    def __post_init__(self) -> None:
        if not isinstance(self.max_inventory, int) or self.max_inventory < 0:
            raise ValueError("player.maxInventory must be a non-negative integer")
        self.hunger = clamp_need(self.hunger)
        self.thirst = clamp_need(self.thirst)
        self.warmth = clamp_need(self.warmth)

    @property
    def worst_need(self) -> float:
        return max(self.hunger, self.thirst, self.warmth)

    @property
    def inventory_full(self) -> bool:
        return len(self.inventory) >= self.max_inventory

    def recalc_carry_weight(self) -> float:
        """Recompute from the inventory; never adjust incrementally."""
        total = sum(item.weight for item in self.inventory)
        self.carry_weight = max(0.0, round(total, 2))
        return self.carry_weight

    def apply_need_deltas(self, *, hunger: float = 0.0, thirst: float = 0.0, warmth: float = 0.0) -> None:
        self.hunger = clamp_need(self.hunger + hunger)
        self.thirst = clamp_need(self.thirst + thirst)
        self.warmth = clamp_need(self.warmth + warmth)

    def inventory_index(self, item_id: str) -> int | None:
        for index, item in enumerate(self.inventory):
            if item.item_id == item_id:
                return index
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "x": self.x,
            "y": self.y,
            "hunger": self.hunger,
            "thirst": self.thirst,
            "warmth": self.warmth,
            "inventory": [item.to_dict() for item in self.inventory],
            "maxInventory": self.max_inventory,
            "carryWeight": self.carry_weight,
            "baseSpeed": self.base_speed,
            "minSpeed": self.min_speed,
            "isCollapsed": self.is_collapsed,
            "collapseTimer": self.collapse_timer,
            "criticalTimer": self.critical_timer,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PlayerState":
        return cls(
            name=str(data.get("name", DEFAULT_PLAYER_NAME)),
            x=float(data.get("x", 0.0)),
            y=float(data.get("y", 0.0)),
            hunger=float(data.get("hunger", 0.0)),
            thirst=float(data.get("thirst", 0.0)),
            warmth=float(data.get("warmth", 0.0)),
            inventory=[InventoryItem.from_dict(row) for row in data.get("inventory", [])],
            max_inventory=int(data.get("maxInventory", DEFAULT_MAX_INVENTORY)),
            carry_weight=float(data.get("carryWeight", 0.0)),
            base_speed=float(data.get("baseSpeed", DEFAULT_BASE_SPEED)),
            min_speed=float(data.get("minSpeed", DEFAULT_MIN_SPEED)),
            is_collapsed=bool(data.get("isCollapsed", False)),
            collapse_timer=float(data.get("collapseTimer", 0.0)),
            critical_timer=float(data.get("criticalTimer", 0.0)),
        )


def movement_speed(player: PlayerState) -> float:
    """Speed after weight, burden and need strain; 0 while collapsed."""
    if player.is_collapsed:
        return 0.0
    carry = player.carry_weight
    speed = max(player.min_speed, player.base_speed - WEIGHT_FACTOR * carry)
    burden_penalty = min(MAX_BURDEN_PENALTY, carry * BURDEN_PER_WEIGHT)
    need_strain = player.worst_need / NEED_MAX
    severe_need_penalty = max(0.0, need_strain - SEVERE_NEED_THRESHOLD) * SEVERE_NEED_FACTOR
    return speed * (1.0 - burden_penalty - need_strain * NEED_STRAIN_FACTOR - severe_need_penalty)


def normalized_vector(x: float, y: float) -> tuple[float, float]:
    length = math.hypot(x, y)
    if length == 0:
        return (0.0, 0.0)
    return (x / length, y / length)


def move_player(player: PlayerState, direction: tuple[float, float], dt: float) -> float:
    """Move along the unit-length input direction; return the speed used."""
    speed = movement_speed(player)
    dx, dy = normalized_vector(*direction)
    if dx or dy:
        player.x += dx * speed * dt
        player.y += dy * speed * dt
    return speed
