"""
Derelict Watch — Station Modules
Explorable station sections and the registry that tracks their discovery.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple
import random
import logging

from ..config import RiskTier

logger = logging.getLogger(__name__)


@dataclass
class StationModule:
    """A section of the derelict station."""
    module_id: str
    name: str
    risk: RiskTier
    discovered: bool = False
    description: str = ""

    def get_status(self) -> Dict:
        return {
            "module_id": self.module_id,
            "name": self.name,
            "risk": self.risk.value,
            "discovered": self.discovered,
            "description": self.description,
        }


# Starting roster. The first two entries are the commander's foothold.
DEFAULT_ROSTER = [
    ("Command Center", RiskTier.SAFE, True, "The central hub of the station."),
    ("Reactor Core", RiskTier.SAFE, True, "The heart of the station, power generator."),
    ("Cargo Bay", RiskTier.MEDIUM, False, "A large storage area, potential salvage."),
    ("Life Support", RiskTier.MEDIUM, False, "Manages air and water recycling."),
    ("Hydroponics Lab", RiskTier.SAFE, False, "Former agricultural research, might find water."),
    ("Derelict Corridor", RiskTier.HIGH, False, "Unstable and dangerous, but rare finds possible."),
]

# Name pool for procedurally generated rosters
GENERATED_SECTIONS = [
    ("Crew Quarters", "Abandoned bunks and personal lockers."),
    ("Medical Bay", "Scattered supplies and a flickering scanner."),
    ("Observation Deck", "Cracked viewports overlooking the void."),
    ("Maintenance Shaft", "Narrow crawlways full of exposed conduits."),
    ("Docking Ring", "Airlocks sealed from the outside."),
    ("Armory", "Emptied racks, but the lockers may hold spares."),
    ("Water Reclamation", "Filtration tanks, some still pressurized."),
    ("Research Wing", "Sealed labs with failing containment."),
    ("Engineering Deck", "Heavy machinery and spare parts."),
    ("Mess Hall", "Overturned tables and stale rations."),
    ("Comms Array", "Dead antennas and tangled wiring."),
    ("Shuttle Hangar", "A gutted shuttle rests on its skids."),
    ("Storage Depot", "Crates stacked to the ceiling."),
    ("Security Hub", "Monitors showing static."),
    ("Xeno Containment", "Something broke out of here."),
    ("Greenhouse Dome", "Overgrown and humid."),
    ("Fabrication Bay", "Assembly arms frozen mid-motion."),
    ("Cryo Storage", "Frost-covered pods, all empty."),
    ("Ventilation Hub", "Massive fans, barely turning."),
    ("Auxiliary Reactor", "A cold backup reactor, leaking residue."),
]

GENERATED_RISK_WEIGHTS = {
    RiskTier.SAFE: 0.4,
    RiskTier.MEDIUM: 0.4,
    RiskTier.HIGH: 0.2,
}

MAX_MODULES = 20

# Scavenge yield ranges per risk tier: kind -> (min, max), inclusive
SCAVENGE_YIELDS: Dict[RiskTier, Dict[str, Tuple[int, int]]] = {
    RiskTier.SAFE: {
        "alloys": (2, 4),
        "polymers": (2, 4),
        "water": (1, 2),
    },
    RiskTier.MEDIUM: {
        "alloys": (3, 6),
        "polymers": (3, 6),
        "wiring": (1, 2),
        "water": (2, 4),
    },
    RiskTier.HIGH: {
        "alloys": (5, 10),
        "polymers": (5, 10),
        "wiring": (2, 4),
        "energy_cells": (1, 2),
        "circuitry": (0, 1),
        "water": (3, 6),
    },
}


def roll_salvage(risk: RiskTier, rng: random.Random) -> Dict[str, int]:
    """
    Draw a scavenge haul for a module of the given risk.

    Each kind is drawn independently and uniformly from its inclusive range;
    zero draws are left out.
    """
    haul = {}
    for kind, (low, high) in SCAVENGE_YIELDS[risk].items():
        amount = rng.randint(low, high)
        if amount > 0:
            haul[kind] = amount
    return haul


class ModuleRegistry:
    """
    Ordered set of station modules.

    Iteration order is registration order; it decides the default target
    when an action is given no explicit module.
    """

    def __init__(self, modules: Optional[List[StationModule]] = None):
        self.modules: Dict[str, StationModule] = {}
        for module in modules or []:
            self.add_module(module)

    @classmethod
    def default(cls) -> "ModuleRegistry":
        """Registry with the fixed starting roster."""
        modules = [
            StationModule(f"Module-{i:03d}", name, risk, discovered, description)
            for i, (name, risk, discovered, description) in enumerate(DEFAULT_ROSTER, 1)
        ]
        return cls(modules)

    @classmethod
    def generate(cls, rng: random.Random, count: int = MAX_MODULES) -> "ModuleRegistry":
        """
        Procedurally generated roster.

        Command Center and Reactor Core are always present and discovered;
        the remaining sections are drawn from the name pool with weighted risk.
        """
        count = max(2, min(count, MAX_MODULES))
        registry = cls()
        registry.add_module(StationModule("Module-001", "Command Center", RiskTier.SAFE, True,
                                          DEFAULT_ROSTER[0][3]))
        registry.add_module(StationModule("Module-002", "Reactor Core", RiskTier.SAFE, True,
                                          DEFAULT_ROSTER[1][3]))

        tiers = list(GENERATED_RISK_WEIGHTS)
        weights = [GENERATED_RISK_WEIGHTS[t] for t in tiers]
        for i, (name, description) in enumerate(rng.sample(GENERATED_SECTIONS, count - 2), 3):
            risk = rng.choices(tiers, weights=weights)[0]
            registry.add_module(StationModule(f"Module-{i:03d}", name, risk, False, description))

        logger.info(f"Generated station roster with {len(registry)} modules")
        return registry

    def __len__(self) -> int:
        return len(self.modules)

    def __iter__(self):
        return iter(self.modules.values())

    def add_module(self, module: StationModule):
        """Register a module."""
        if module.module_id in self.modules:
            raise ValueError(f"Duplicate module id: {module.module_id}")
        self.modules[module.module_id] = module

    def get(self, key: str) -> Optional[StationModule]:
        """Look up a module by id or display name."""
        if key in self.modules:
            return self.modules[key]
        for module in self.modules.values():
            if module.name == key:
                return module
        return None

    def get_discovered(self) -> List[StationModule]:
        return [m for m in self.modules.values() if m.discovered]

    def get_undiscovered(self) -> List[StationModule]:
        return [m for m in self.modules.values() if not m.discovered]

    def next_undiscovered(self) -> Optional[StationModule]:
        """First undiscovered module in registry order."""
        return next((m for m in self.modules.values() if not m.discovered), None)

    def explore_target(self, key: Optional[str] = None) -> Optional[StationModule]:
        """
        Resolve the module an explore action would discover.

        Returns None for an unknown key, an already-discovered module,
        or a fully discovered station.
        """
        if key is None:
            return self.next_undiscovered()
        module = self.get(key)
        if module is None or module.discovered:
            return None
        return module

    def scavenge_target(self, key: Optional[str] = None) -> Optional[StationModule]:
        """Resolve a discovered module to scavenge (first discovered by default)."""
        if key is None:
            return next((m for m in self.modules.values() if m.discovered), None)
        module = self.get(key)
        if module is None or not module.discovered:
            return None
        return module

    def discover(self, module: StationModule):
        """Mark a module discovered."""
        if module.discovered:
            raise ValueError(f"{module.name} is already discovered")
        module.discovered = True
        logger.info(f"Discovered {module.name} ({module.risk.value} Risk)")

    def explore_next(self, key: Optional[str] = None) -> Optional[StationModule]:
        """Discover the target module; None (a no-op) when nothing is available."""
        module = self.explore_target(key)
        if module is None:
            logger.info("No module available to explore")
            return None
        self.discover(module)
        return module

    @property
    def fully_discovered(self) -> bool:
        return all(m.discovered for m in self.modules.values())

    def get_all_status(self) -> List[Dict]:
        return [m.get_status() for m in self.modules.values()]
