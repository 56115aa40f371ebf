from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

DIALOGUE_SCHEMA_VERSION = 1
DEFAULT_DIALOGUE_PATH = "content/dialogue/templates.json"


@dataclass(frozen=True)
class DialogueTemplateDef:
    intro: tuple[str, ...]
    followup: tuple[str, ...]


@dataclass(frozen=True)
class DialogueRegistry:
    schema_version: int
    templates: tuple[DialogueTemplateDef, ...]
    warning_line: str

    def template(self, index: int) -> DialogueTemplateDef:
        # Out-of-range indexes (e.g. from an older save) fall back to the first template.
        if 0 <= index < len(self.templates):
            return self.templates[index]
        return self.templates[0]


def load_dialogue_json(path: str | Path = DEFAULT_DIALOGUE_PATH) -> DialogueRegistry:
    payload = json.loads(Path(path).read_text(encoding="utf-8"))
    return _registry_from_payload(payload)


def _lines(value: Any, *, field_name: str) -> tuple[str, ...]:
    if not isinstance(value, list) or not value:
        raise ValueError(f"{field_name} must be a non-empty list")
    for index, line in enumerate(value):
        if not isinstance(line, str) or not line:
            raise ValueError(f"{field_name}[{index}] must be a non-empty string")
    return tuple(value)


def _registry_from_payload(payload: dict[str, Any]) -> DialogueRegistry:
    if not isinstance(payload, dict):
        raise ValueError("dialogue payload must be an object")
    schema_version = payload.get("schema_version")
    if schema_version != DIALOGUE_SCHEMA_VERSION:
        raise ValueError(f"unsupported dialogue schema_version: {schema_version}")

    warning_line = payload.get("warning_line")
    if not isinstance(warning_line, str) or not warning_line:
        raise ValueError("dialogue payload must contain string field: warning_line")

    rows = payload.get("templates")
    if not isinstance(rows, list) or not rows:
        raise ValueError("dialogue payload must contain non-empty list field: templates")

    templates = []
    for index, row in enumerate(rows):
        if not isinstance(row, dict):
            raise ValueError(f"templates[{index}] must be an object")
        templates.append(
            DialogueTemplateDef(
                intro=_lines(row.get("intro"), field_name=f"templates[{index}].intro"),
                followup=_lines(row.get("followup"), field_name=f"templates[{index}].followup"),
            )
        )
    return DialogueRegistry(schema_version=schema_version, templates=tuple(templates), warning_line=warning_line)
