"""
Derelict Watch — Core Module
Contains the resource ledger, module registry, action resolver, and game engine.
"""

from .ledger import ResourceLedger, ResourceKind
from .module import StationModule, ModuleRegistry
from .actions import ActionError, ActionResult, ActionResolver, ActionHandler
from .engine import GameEngine, GameState, DayPhase, MorningReport

__all__ = [
    # Ledger
    "ResourceLedger",
    "ResourceKind",

    # Modules
    "StationModule",
    "ModuleRegistry",

    # Actions
    "ActionError",
    "ActionResult",
    "ActionResolver",
    "ActionHandler",

    # Engine
    "GameEngine",
    "GameState",
    "DayPhase",
    "MorningReport",
]
