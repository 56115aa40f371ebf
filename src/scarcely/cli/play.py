from __future__ import annotations

import argparse
import logging
from typing import Sequence

from scarcely.cli.pygame_viewer import run_pygame_viewer
from scarcely.cli.viewer import AsciiViewer
from scarcely.content.io import DEFAULT_SAVE_PATH, load_state, save_state
from scarcely.sim.core import MAX_DT_SECONDS, Simulation, TickInput

DEFAULT_HEADLESS_TICKS = 40
HEADLESS_DIRECTIONS = {"north": "w", "south": "s", "west": "a", "east": "d"}


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="python -m scarcely.cli.play", description="Scarcely launcher.")
    parser.add_argument("--save-path", default=DEFAULT_SAVE_PATH, help="Session save JSON to load and update.")
    parser.add_argument("--seed", default=None, help="Start a new game with this world seed instead of loading.")
    parser.add_argument("--headless", action="store_true", help="Run a text-only walk instead of opening a window.")
    parser.add_argument("--ticks", type=int, default=DEFAULT_HEADLESS_TICKS, help="Ticks to run in headless mode.")
    parser.add_argument(
        "--walk",
        choices=sorted(HEADLESS_DIRECTIONS),
        default=None,
        help="Direction held during a headless run.",
    )
    parser.add_argument("--log-level", default="WARNING", help="Logging level (DEBUG, INFO, WARNING, ...).")
    return parser


def run_headless(sim: Simulation, *, ticks: int, walk: str | None = None) -> str:
    held = frozenset({HEADLESS_DIRECTIONS[walk]}) if walk else frozenset()
    for _ in range(ticks):
        sim.step(TickInput(held=held), MAX_DT_SECONDS)
    return AsciiViewer().render(sim.snapshot())


def main(argv: Sequence[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")

    sim = Simulation.new_game(args.seed) if args.seed is not None else load_state(args.save_path)
    if args.headless:
        print(run_headless(sim, ticks=args.ticks, walk=args.walk))
        save_state(sim, args.save_path)
        return 0

    if args.seed is not None:
        save_state(sim, args.save_path)

    return run_pygame_viewer(save_path=args.save_path)


if __name__ == "__main__":
    raise SystemExit(main())
