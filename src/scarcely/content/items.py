from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

ITEMS_SCHEMA_VERSION = 1
DEFAULT_ITEMS_PATH = "content/items/items.json"
NEED_KEYS = ("hunger", "thirst", "warmth")


@dataclass(frozen=True)
class ItemTypeDef:
    item_type: str
    name: str
    weight: float
    color: str
    effects: dict[str, float] = field(default_factory=dict)

    def effect(self, need: str) -> float:
        return self.effects.get(need, 0.0)


@dataclass(frozen=True)
class ItemRegistry:
    schema_version: int
    items: tuple[ItemTypeDef, ...]

    def by_type(self) -> dict[str, ItemTypeDef]:
        return {item.item_type: item for item in self.items}

    def type_names(self) -> tuple[str, ...]:
        """Item types in declaration order; chunk generation indexes into this."""
        return tuple(item.item_type for item in self.items)


def load_items_json(path: str | Path = DEFAULT_ITEMS_PATH) -> ItemRegistry:
    payload = json.loads(Path(path).read_text(encoding="utf-8"))
    return _registry_from_payload(payload)


def _registry_from_payload(payload: dict[str, Any]) -> ItemRegistry:
    if not isinstance(payload, dict):
        raise ValueError("item registry payload must be an object")

    schema_version = payload.get("schema_version")
    if not isinstance(schema_version, int):
        raise ValueError("item registry must contain integer field: schema_version")
    if schema_version != ITEMS_SCHEMA_VERSION:
        raise ValueError(f"unsupported item registry schema_version: {schema_version}")

    items = payload.get("items")
    if not isinstance(items, list) or not items:
        raise ValueError("item registry must contain non-empty list field: items")

    normalized: list[ItemTypeDef] = []
    seen_types: set[str] = set()
    for index, row in enumerate(items):
        if not isinstance(row, dict):
            raise ValueError(f"items[{index}] must be an object")

        item_type = row.get("item_type")
        if not isinstance(item_type, str) or not item_type:
            raise ValueError(f"items[{index}].item_type must be a non-empty string")
        if item_type in seen_types:
            raise ValueError(f"duplicate item_type: {item_type}")
        seen_types.add(item_type)

        name = row.get("name", item_type)
        if not isinstance(name, str) or not name:
            raise ValueError(f"items[{index}].name must be a non-empty string")

        weight = row.get("weight")
        if isinstance(weight, bool) or not isinstance(weight, (int, float)):
            raise ValueError(f"items[{index}].weight must be numeric")
        if weight < 0:
            raise ValueError(f"items[{index}].weight must be >= 0")

        color = row.get("color", "#ffffff")
        if not isinstance(color, str) or not color.startswith("#"):
            raise ValueError(f"items[{index}].color must be a hex color string")

        effects_payload = row.get("effects", {})
        if not isinstance(effects_payload, dict):
            raise ValueError(f"items[{index}].effects must be an object when present")
        effects: dict[str, float] = {}
        for need, delta in effects_payload.items():
            if need not in NEED_KEYS:
                raise ValueError(f"items[{index}].effects has unknown need: {need}")
            if isinstance(delta, bool) or not isinstance(delta, (int, float)):
                raise ValueError(f"items[{index}].effects[{need}] must be numeric")
            effects[need] = float(delta)

        normalized.append(
            ItemTypeDef(
                item_type=item_type,
                name=name,
                weight=float(weight),
                color=color,
                effects=effects,
            )
        )

    # Declaration order is part of the generation contract; do not sort.
    return ItemRegistry(schema_version=schema_version, items=tuple(normalized))
