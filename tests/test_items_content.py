from __future__ import annotations

import json
from pathlib import Path

import pytest

from scarcely.content.dialogue import DEFAULT_DIALOGUE_PATH, load_dialogue_json
from scarcely.content.items import DEFAULT_ITEMS_PATH, load_items_json
from scarcely.content.palettes import DEFAULT_PALETTES_PATH, PALETTE_KEYS, load_palettes_json


def _write(tmp_path: Path, payload: dict) -> Path:
    path = tmp_path / "content.json"
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def test_default_item_table() -> None:
    registry = load_items_json(DEFAULT_ITEMS_PATH)
    by_type = registry.by_type()

    assert registry.type_names() == ("forage", "water", "ember", "keepsake")
    assert by_type["forage"].weight == 1.0
    assert by_type["water"].effect("thirst") == -22.0
    assert by_type["ember"].effect("warmth") == -28.0
    assert by_type["ember"].effect("hunger") == 0.0
    assert by_type["keepsake"].effects == {"hunger": -5.0, "thirst": -5.0, "warmth": -5.0}


def test_items_reject_unknown_need(tmp_path: Path) -> None:
    path = _write(
        tmp_path,
        {"schema_version": 1, "items": [{"item_type": "odd", "weight": 1, "effects": {"sanity": -3}}]},
    )

    with pytest.raises(ValueError, match="unknown need"):
        load_items_json(path)


def test_items_reject_duplicates_and_negative_weight(tmp_path: Path) -> None:
    duplicate = _write(
        tmp_path,
        {"schema_version": 1, "items": [{"item_type": "a", "weight": 1}, {"item_type": "a", "weight": 2}]},
    )
    with pytest.raises(ValueError, match="duplicate item_type"):
        load_items_json(duplicate)

    negative = _write(tmp_path, {"schema_version": 1, "items": [{"item_type": "a", "weight": -1}]})
    with pytest.raises(ValueError, match="weight must be >= 0"):
        load_items_json(negative)


def test_default_palettes_have_every_color() -> None:
    registry = load_palettes_json(DEFAULT_PALETTES_PATH)

    assert len(registry) == 5
    for index in range(len(registry)):
        assert tuple(registry.get(index)) == PALETTE_KEYS


def test_palettes_reject_missing_colors(tmp_path: Path) -> None:
    path = _write(tmp_path, {"schema_version": 1, "palettes": [{"ground": "#000000"}]})

    with pytest.raises(ValueError, match="missing colors"):
        load_palettes_json(path)


def test_default_dialogue_templates() -> None:
    registry = load_dialogue_json(DEFAULT_DIALOGUE_PATH)

    assert len(registry.templates) == 3
    assert all(template.intro and template.followup for template in registry.templates)
    assert registry.warning_line
    assert registry.template(99) == registry.templates[0]


def test_dialogue_rejects_empty_lines(tmp_path: Path) -> None:
    path = _write(
        tmp_path,
        {"schema_version": 1, "warning_line": "careful", "templates": [{"intro": [], "followup": ["hi"]}]},
    )

    with pytest.raises(ValueError, match="intro must be a non-empty list"):
        load_dialogue_json(path)
