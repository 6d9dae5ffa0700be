"""
Derelict Watch — Station Survival Simulation
Turn-based survival management aboard a derelict space station.

A commander spends a daily action-point budget on exploration, salvage,
crafting, defenses and reactor management; each night the station pays
for it in reactor heat, water, and an escalating alien assault.
"""

__version__ = "1.0.0"

from .config import (
    GAME,
    SURVIVAL,
    REACTOR,
    THREAT,
    COSTS,
    GameConfig,
    RiskTier,
    PowerTier,
    PowerSetting,
)

from .core import (
    ResourceLedger,
    ResourceKind,
    StationModule,
    ModuleRegistry,
    ActionError,
    ActionResult,
    GameEngine,
    GameState,
    DayPhase,
    MorningReport,
)

__all__ = [
    # Version info
    "__version__",

    # Config
    "GAME",
    "SURVIVAL",
    "REACTOR",
    "THREAT",
    "COSTS",
    "GameConfig",
    "RiskTier",
    "PowerTier",
    "PowerSetting",

    # Core classes
    "ResourceLedger",
    "ResourceKind",
    "StationModule",
    "ModuleRegistry",
    "ActionError",
    "ActionResult",
    "GameEngine",
    "GameState",
    "DayPhase",
    "MorningReport",
]
