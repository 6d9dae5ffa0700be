"""
Derelict Watch — Fabrication Unit
Crafting recipes and the overnight build queue.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional
import logging

logger = logging.getLogger(__name__)


@dataclass
class Recipe:
    """A craftable item."""
    name: str
    ap_cost: int
    resource_costs: Dict[str, int]
    energy_cost: float  # Reactor energy drawn the night it is built
    output: Dict[str, int] = field(default_factory=dict)


RECIPES: Dict[str, Recipe] = {
    "wiring": Recipe(
        name="Conduit Wiring",
        ap_cost=2,
        resource_costs={"polymers": 5},
        energy_cost=5.0,
        output={"wiring": 1},
    ),
    "energy_cell": Recipe(
        name="Energy Cell",
        ap_cost=3,
        resource_costs={"wiring": 3, "alloys": 2},
        energy_cost=10.0,
        output={"energy_cells": 1},
    ),
}


class FabricationUnit:
    """
    Queues crafted items during the day and completes them overnight.

    Costs are paid when an item is queued; each queued item adds its energy
    cost to the reactor's nightly demand.
    """

    def __init__(self):
        self.queue: List[Recipe] = []
        self.total_completed: Dict[str, int] = {}

    @staticmethod
    def get_recipe(key: str) -> Optional[Recipe]:
        """Look up a recipe by key or display name."""
        if key in RECIPES:
            return RECIPES[key]
        return next((r for r in RECIPES.values() if r.name == key), None)

    @property
    def queued_energy(self) -> float:
        return sum(r.energy_cost for r in self.queue)

    def enqueue(self, recipe: Recipe):
        self.queue.append(recipe)
        logger.info(f"Queued {recipe.name} for overnight fabrication ({recipe.energy_cost:.0f} energy)")

    def complete_queue(self) -> Dict[str, int]:
        """
        Finish every queued item.

        Returns:
            Combined output to credit to the ledger.
        """
        produced: Dict[str, int] = {}
        for recipe in self.queue:
            for kind, amount in recipe.output.items():
                produced[kind] = produced.get(kind, 0) + amount
            self.total_completed[recipe.name] = self.total_completed.get(recipe.name, 0) + 1

        if self.queue:
            logger.info(f"Fabrication complete: {len(self.queue)} item(s)")
        self.queue = []
        return produced

    def get_status(self) -> Dict:
        return {
            "queue": [r.name for r in self.queue],
            "queued_energy": self.queued_energy,
            "total_completed": dict(self.total_completed),
        }
