from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Any

from scarcely.content.schema import normalize_save_payload
from scarcely.sim.core import GameContent, Simulation, generate_seed
from scarcely.sim.hash import SAVE_HASH_KEY, save_hash

logger = logging.getLogger(__name__)

DEFAULT_SAVE_PATH = "saves/scarcely.save.v1.json"
DEFAULT_EXPORT_NAME = "scarcely-save.json"
CANONICAL_JSON_INDENT = 2
CANONICAL_JSON_SEPARATORS = (",", ": ")


def _canonical_json(payload: dict[str, Any]) -> str:
    return json.dumps(
        payload,
        indent=CANONICAL_JSON_INDENT,
        separators=CANONICAL_JSON_SEPARATORS,
        sort_keys=True,
    )


def _write_atomic_json(path: str | Path, payload: dict[str, Any]) -> None:
    destination = Path(path)
    destination.parent.mkdir(parents=True, exist_ok=True)
    serialized = _canonical_json(payload)

    temp_path: Path | None = None
    try:
        with NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            dir=destination.parent,
            delete=False,
            suffix=".tmp",
        ) as temp_file:
            temp_file.write(serialized)
            temp_file.flush()
            os.fsync(temp_file.fileno())
            temp_path = Path(temp_file.name)
        os.replace(temp_path, destination)
    except Exception:
        if temp_path is not None:
            temp_path.unlink(missing_ok=True)
        raise


def simulation_from_save_payload(payload: Any, *, content: GameContent | None = None) -> Simulation:
    """Normalize an untrusted payload and build a simulation; ValueError if unusable."""
    normalized = normalize_save_payload(payload, default_seed=generate_seed())
    return Simulation.from_payload(normalized, content=content)


def save_game_json(path: str | Path, simulation: Simulation) -> None:
    payload = simulation.to_payload()
    payload[SAVE_HASH_KEY] = save_hash(payload)
    _write_atomic_json(path, payload)


def _verify_save_hash(payload: Any) -> None:
    # Saves from before the digest existed carry none; accept them unchecked.
    if not isinstance(payload, dict) or SAVE_HASH_KEY not in payload:
        return
    expected_hash = payload[SAVE_HASH_KEY]
    actual_hash = save_hash(payload)
    if expected_hash != actual_hash:
        raise ValueError(f"save_hash mismatch while loading save (stored={expected_hash}, recomputed={actual_hash})")


def load_game_json(path: str | Path, *, content: GameContent | None = None) -> Simulation:
    """Strict load used for imports: raises on unreadable, tampered or incompatible files."""
    payload = json.loads(Path(path).read_text(encoding="utf-8"))
    _verify_save_hash(payload)
    return simulation_from_save_payload(payload, content=content)


def load_state(path: str | Path = DEFAULT_SAVE_PATH, *, content: GameContent | None = None) -> Simulation:
    """Load the session save, falling back to a fresh game on any problem."""
    save_file = Path(path)
    if not save_file.exists():
        return Simulation.new_game(content=content)
    try:
        return load_game_json(save_file, content=content)
    except (OSError, ValueError, TypeError, KeyError) as exc:
        # json.JSONDecodeError is a ValueError.
        logger.warning("discarding save %s; starting new game: %s", save_file, exc)
        return Simulation.new_game(content=content)


def save_state(simulation: Simulation, path: str | Path = DEFAULT_SAVE_PATH) -> bool:
    """Persist the session save; failures are logged and never raised."""
    try:
        save_game_json(path, simulation)
    except (OSError, TypeError, ValueError):
        logger.exception("failed to save game state to %s", path)
        return False
    return True


def export_save(simulation: Simulation, path: str | Path = DEFAULT_EXPORT_NAME) -> Path:
    destination = Path(path)
    save_game_json(destination, simulation)
    logger.info("exported save to %s", destination)
    return destination


def import_save(
    source: str | Path,
    *,
    save_path: str | Path = DEFAULT_SAVE_PATH,
    content: GameContent | None = None,
) -> Simulation:
    """Validate an exported file and make it the session save.

    Raises ``ValueError`` (or ``OSError``) without touching the current save
    when the file is not a usable save.
    """
    simulation = load_game_json(source, content=content)
    save_game_json(save_path, simulation)
    logger.info("imported save from %s", source)
    return simulation
