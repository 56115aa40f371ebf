from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

PALETTES_SCHEMA_VERSION = 1
DEFAULT_PALETTES_PATH = "content/palettes/palettes.json"
PALETTE_KEYS = ("ground", "accent", "light", "mood", "haze")


@dataclass(frozen=True)
class PaletteRegistry:
    schema_version: int
    palettes: tuple[dict[str, str], ...]

    def __len__(self) -> int:
        return len(self.palettes)

    def get(self, index: int) -> dict[str, str]:
        return dict(self.palettes[index])


def load_palettes_json(path: str | Path = DEFAULT_PALETTES_PATH) -> PaletteRegistry:
    payload = json.loads(Path(path).read_text(encoding="utf-8"))
    return _registry_from_payload(payload)


def _registry_from_payload(payload: dict[str, Any]) -> PaletteRegistry:
    if not isinstance(payload, dict):
        raise ValueError("palette payload must be an object")
    schema_version = payload.get("schema_version")
    if schema_version != PALETTES_SCHEMA_VERSION:
        raise ValueError(f"unsupported palette schema_version: {schema_version}")

    rows = payload.get("palettes")
    if not isinstance(rows, list) or not rows:
        raise ValueError("palette payload must contain non-empty list field: palettes")

    palettes: list[dict[str, str]] = []
    for index, row in enumerate(rows):
        if not isinstance(row, dict):
            raise ValueError(f"palettes[{index}] must be an object")
        missing = [key for key in PALETTE_KEYS if key not in row]
        if missing:
            raise ValueError(f"palettes[{index}] missing colors: {', '.join(missing)}")
        palette: dict[str, str] = {}
        for key in PALETTE_KEYS:
            color = row[key]
            if not isinstance(color, str) or not color.startswith("#"):
                raise ValueError(f"palettes[{index}].{key} must be a hex color string")
            palette[key] = color
        palettes.append(palette)
    return PaletteRegistry(schema_version=schema_version, palettes=tuple(palettes))
