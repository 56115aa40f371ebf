from __future__ import annotations

import argparse
import importlib.metadata
import logging
import math
import os
import platform
import sys
from pathlib import Path
from typing import Any

from scarcely.content.io import DEFAULT_EXPORT_NAME, DEFAULT_SAVE_PATH, export_save, import_save, load_state, save_state
from scarcely.sim.core import RenderSnapshot, Simulation, TickInput

logger = logging.getLogger(__name__)

WINDOW_SIZE = (960, 600)
FRAME_RATE = 60
AUTOSAVE_SECONDS = 1.0
FALLBACK_PALETTE = {"ground": "#0b0d11", "accent": "#1f2430", "light": "#f5e5c8", "mood": "#ca9a6a", "haze": "#303742"}
ACTION_KEYS = {"e", "enter", "b", "escape", "u", "x", "f5", "f9"}
SLOT_KEYS = {str(number) for number in range(1, 10)}

pygame: Any | None = None


class InputEdges:
    """Turns key down/up events into held keys plus one-shot pressed flags."""

    def __init__(self) -> None:
        self.held: set[str] = set()
        self._pressed: set[str] = set()

    def key_down(self, name: str) -> None:
        if name not in self.held:
            self._pressed.add(name)
        self.held.add(name)

    def key_up(self, name: str) -> None:
        self.held.discard(name)

    def consume(self, name: str) -> bool:
        if name in self._pressed:
            self._pressed.discard(name)
            return True
        return False

    def tick_input(self) -> TickInput:
        interact = self.consume("e")
        interact = self.consume("enter") or interact
        return TickInput(
            held=frozenset(self.held - ACTION_KEYS),
            interact=interact,
            toggle_backpack=self.consume("b"),
            close_backpack=self.consume("escape"),
        )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="python -m scarcely.cli.pygame_viewer", description="Scarcely pygame window.")
    parser.add_argument("--save-path", default=DEFAULT_SAVE_PATH, help="Session save JSON (autosaved every second).")
    parser.add_argument("--export-path", default=DEFAULT_EXPORT_NAME, help="Target file for F5 export.")
    parser.add_argument("--import-path", default=DEFAULT_EXPORT_NAME, help="Source file for F9 import.")
    parser.add_argument("--headless", action="store_true", help="Initialize with a dummy video driver and exit.")
    return parser


def _env_flag_enabled(var_name: str) -> bool:
    return os.environ.get(var_name, "").strip().lower() in {"1", "true", "yes", "on"}


def _print_startup_banner() -> None:
    try:
        pygame_version = importlib.metadata.version("pygame")
    except importlib.metadata.PackageNotFoundError:
        pygame_version = "not-installed"
    print(
        "[scarcely.viewer] startup "
        f"python={platform.python_version()} "
        f"pygame={pygame_version} "
        f"platform={platform.platform()}"
    )


def _ensure_pygame_imported() -> Any:
    global pygame
    if pygame is None:
        import pygame as pygame_module

        pygame = pygame_module
    return pygame


def _key_names(pygame_module: Any) -> dict[int, str]:
    names = {
        pygame_module.K_w: "w",
        pygame_module.K_a: "a",
        pygame_module.K_s: "s",
        pygame_module.K_d: "d",
        pygame_module.K_UP: "arrowup",
        pygame_module.K_DOWN: "arrowdown",
        pygame_module.K_LEFT: "arrowleft",
        pygame_module.K_RIGHT: "arrowright",
        pygame_module.K_e: "e",
        pygame_module.K_RETURN: "enter",
        pygame_module.K_b: "b",
        pygame_module.K_ESCAPE: "escape",
        pygame_module.K_u: "u",
        pygame_module.K_x: "x",
        pygame_module.K_F5: "f5",
        pygame_module.K_F9: "f9",
    }
    for number in range(1, 10):
        names[getattr(pygame_module, f"K_{number}")] = str(number)
    return names


def _color(palette: dict[str, str], key: str) -> Any:
    return pygame.Color(palette.get(key, FALLBACK_PALETTE[key]))


def _draw_world(screen: Any, snapshot: RenderSnapshot, now: float, item_colors: dict[str, str]) -> None:
    palette = snapshot.palette
    width, height = screen.get_size()
    camera_x = snapshot.player["x"] - width / 2
    camera_y = snapshot.player["y"] - height / 2
    screen.fill(_color(palette, "ground"))

    for item in snapshot.items:
        bob = math.sin(now * 3 + (item["x"] + item["y"]) * 0.05) * 1.5
        screen_x = item["x"] - camera_x
        screen_y = item["y"] - camera_y + bob
        color = pygame.Color(item_colors.get(item["type"], palette.get("light", FALLBACK_PALETTE["light"])))
        pygame.draw.rect(screen, color, pygame.Rect(int(screen_x) - 3, int(screen_y) - 3, 6, 6))

    for npc in snapshot.npcs:
        pulse = 1 + math.sin(now * 2.5 + npc["x"] * 0.01) * 0.4
        screen_x = npc["x"] - camera_x
        screen_y = npc["y"] - camera_y
        points = [
            (screen_x, screen_y - 6 * pulse),
            (screen_x - 4 * pulse, screen_y + 4 * pulse),
            (screen_x + 4 * pulse, screen_y + 4 * pulse),
        ]
        pygame.draw.polygon(screen, _color(palette, "mood"), points)

    burden = min(1.0, snapshot.player["carryWeight"] / 12)
    pack_height = int(6 + burden * 10)
    pack_width = int(8 + burden * 4)
    center_x, center_y = width // 2, height // 2
    pygame.draw.rect(
        screen,
        _color(palette, "haze"),
        pygame.Rect(center_x - pack_width // 2, center_y - pack_height - 2, pack_width, pack_height),
    )
    pygame.draw.rect(screen, _color(palette, "light"), pygame.Rect(center_x - 4, center_y - 4, 8, 8))


def _draw_hud(screen: Any, snapshot: RenderSnapshot, font: Any, status_message: str | None) -> None:
    palette = snapshot.palette
    player = snapshot.player
    width, height = screen.get_size()
    hud = (
        f"hunger {player['hunger']:.0f}  thirst {player['thirst']:.0f}  warmth {player['warmth']:.0f}  "
        f"{len(player['inventory'])}/{player['maxInventory']} slots  {player['carryWeight']:.1f}kg  {snapshot.biome}"
    )
    screen.blit(font.render(hud, True, _color(palette, "light")), (14, 10))

    if snapshot.backpack_open:
        for slot, item in enumerate(player["inventory"], start=1):
            marker = ">" if item["id"] == snapshot.selected_item_id else " "
            row = font.render(f"{marker}{slot} {item['type']} ({item['weight']}kg)", True, _color(palette, "light"))
            screen.blit(row, (width - 220, 10 + slot * 18))

    if snapshot.dialogue is not None:
        pygame.draw.rect(screen, pygame.Color(0, 0, 0), pygame.Rect(14, height - 56, width - 28, 42))
        screen.blit(font.render(snapshot.dialogue["line"], True, _color(palette, "light")), (22, height - 46))
        screen.blit(font.render(snapshot.dialogue["hint"], True, _color(palette, "haze")), (width - 240, height - 26))

    if status_message:
        screen.blit(font.render(status_message, True, _color(palette, "mood")), (14, 30))


def _export_status(sim: Simulation, export_path: str) -> str:
    try:
        return f"exported {export_save(sim, export_path)}"
    except (OSError, TypeError, ValueError) as exc:
        print(f"[scarcely.viewer] export failed path={export_path}: {exc}", file=sys.stderr)
        return f"export failed: {exc}"


def run_pygame_viewer(
    *,
    save_path: str = DEFAULT_SAVE_PATH,
    export_path: str = DEFAULT_EXPORT_NAME,
    import_path: str = DEFAULT_EXPORT_NAME,
    headless: bool = False,
) -> int:
    if headless:
        os.environ["SDL_VIDEODRIVER"] = "dummy"
        print("[scarcely.viewer] warning: headless mode active; no window will open.")

    _print_startup_banner()
    pygame_module = _ensure_pygame_imported()

    try:
        pygame_module.init()
    except Exception as exc:
        print(f"[scarcely.viewer] failed during pygame.init(): {exc}", file=sys.stderr)
        return 1

    sim: Simulation = load_state(save_path)
    print(f"[scarcely.viewer] loaded path={save_path} seed={sim.state.world.seed} tick={sim.state.tick}")

    try:
        pygame_module.display.set_caption("Scarcely")
        screen = pygame_module.display.set_mode(WINDOW_SIZE)
    except Exception as exc:
        print(
            f"[scarcely.viewer] failed during pygame.display.set_mode(...): {exc}. "
            "Hint: use --headless or SCARCELY_HEADLESS=1 without a display.",
            file=sys.stderr,
        )
        pygame_module.quit()
        return 1

    if headless:
        sim.step(TickInput(), 0.0)
        save_state(sim, save_path)
        pygame_module.quit()
        return 0

    clock = pygame_module.time.Clock()
    font = pygame_module.font.SysFont("consolas", 14)
    key_names = _key_names(pygame_module)
    item_colors = {item.item_type: item.color for item in sim.content.items.items}
    edges = InputEdges()
    since_save = 0.0
    status_message: str | None = None
    running = True

    while running:
        dt = clock.tick(FRAME_RATE) / 1000.0
        for event in pygame_module.event.get():
            if event.type == pygame_module.QUIT:
                running = False
            elif event.type == pygame_module.KEYDOWN and event.key in key_names:
                edges.key_down(key_names[event.key])
            elif event.type == pygame_module.KEYUP and event.key in key_names:
                edges.key_up(key_names[event.key])

        if edges.consume("f5"):
            save_state(sim, save_path)
            status_message = _export_status(sim, export_path)
        if edges.consume("f9"):
            if Path(import_path).exists():
                try:
                    sim = import_save(import_path, save_path=save_path)
                    status_message = f"imported {import_path}"
                except (OSError, ValueError) as exc:
                    status_message = f"import failed: {exc}"
                    print(f"[scarcely.viewer] import failed path={import_path}: {exc}", file=sys.stderr)
            else:
                status_message = f"import skipped; file not found ({import_path})"
        for slot_key in sorted(SLOT_KEYS):
            if edges.consume(slot_key) and sim.session.backpack_open:
                sim.session.select_slot(sim, int(slot_key) - 1)
        if edges.consume("u"):
            sim.session.use_selected(sim)
        if edges.consume("x"):
            sim.session.drop_selected(sim)

        sim.step(edges.tick_input(), dt)
        snapshot = sim.snapshot()

        since_save += dt
        if since_save >= AUTOSAVE_SECONDS:
            save_state(sim, save_path)
            since_save = 0.0

        now = pygame_module.time.get_ticks() / 1000.0
        _draw_world(screen, snapshot, now, item_colors)
        _draw_hud(screen, snapshot, font, status_message)
        pygame_module.display.flip()

    save_state(sim, save_path)
    pygame_module.quit()
    return 0


def main(argv: list[str] | None = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)
    headless = args.headless or _env_flag_enabled("SCARCELY_HEADLESS")
    raise SystemExit(
        run_pygame_viewer(
            save_path=args.save_path,
            export_path=args.export_path,
            import_path=args.import_path,
            headless=headless,
        )
    )


if __name__ == "__main__":
    main()
