from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from scarcely.sim.inventory import drop_inventory_item, use_inventory_item

if TYPE_CHECKING:
    from scarcely.sim.core import Simulation


@dataclass
class UiSession:
    """Backpack panel state for one play session. Never persisted."""

    backpack_open: bool = False
    selected_item_id: str | None = None

    def toggle_backpack(self) -> None:
        self.backpack_open = not self.backpack_open

    def close_backpack(self) -> None:
        self.backpack_open = False

    def select(self, sim: Simulation, item_id: str | None) -> bool:
        if item_id is not None and sim.state.player.inventory_index(item_id) is None:
            return False
        self.selected_item_id = item_id
        return True

    def select_slot(self, sim: Simulation, slot: int) -> bool:
        inventory = sim.state.player.inventory
        if not 0 <= slot < len(inventory):
            return False
        self.selected_item_id = inventory[slot].item_id
        return True

    def use_selected(self, sim: Simulation) -> bool:
        if self.selected_item_id is None:
            return False
        used = use_inventory_item(sim, self.selected_item_id)
        self.selected_item_id = None
        return used

    def drop_selected(self, sim: Simulation) -> bool:
        if self.selected_item_id is None:
            return False
        dropped = drop_inventory_item(sim, self.selected_item_id)
        self.selected_item_id = None
        return dropped is not None
