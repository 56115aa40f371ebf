from __future__ import annotations

from scarcely.sim.core import RenderSnapshot

ITEM_GLYPHS = {"forage": "f", "water": "w", "ember": "e", "keepsake": "k"}


class AsciiViewer:
    """Read-only text projection of a render snapshot."""

    def render(self, snapshot: RenderSnapshot) -> str:
        player = snapshot.player
        lines = [
            f"tick={snapshot.tick} biome={snapshot.biome} speed={snapshot.speed:.1f}",
            (
                f"player pos=({player['x']:.1f},{player['y']:.1f}) "
                f"hunger={player['hunger']:.0f} thirst={player['thirst']:.0f} warmth={player['warmth']:.0f} "
                f"carry={player['carryWeight']:.2f} collapsed={player['isCollapsed']}"
            ),
            f"backpack {len(player['inventory'])}/{player['maxInventory']} open={snapshot.backpack_open}",
        ]
        for slot, item in enumerate(player["inventory"], start=1):
            marker = "*" if item["id"] == snapshot.selected_item_id else " "
            lines.append(f" {marker}{slot}. {item['type']} ({item['weight']}kg)")

        nearby = sorted(
            snapshot.items,
            key=lambda row: (row["x"] - player["x"]) ** 2 + (row["y"] - player["y"]) ** 2,
        )[:5]
        for item in nearby:
            glyph = ITEM_GLYPHS.get(item["type"], "?")
            lines.append(f"item[{glyph}] {item['id']} at ({item['x']:.1f},{item['y']:.1f})")
        for npc in snapshot.npcs:
            lines.append(f"npc {npc['id']} at ({npc['x']:.1f},{npc['y']:.1f})")

        if snapshot.dialogue is not None:
            lines.append(f"> {snapshot.dialogue['line']}")
            lines.append(f"  [{snapshot.dialogue['hint']}]")
        return "\n".join(lines)
