"""
Derelict Watch — Configuration
Station parameters, survival constants, and system tunables.
"""

from dataclasses import dataclass, field
from typing import Dict
from enum import Enum


class RiskTier(Enum):
    """Danger rating of a station module."""
    SAFE = "Safe"
    MEDIUM = "Medium"
    HIGH = "High"


class PowerTier(Enum):
    """Reactor output tier selected by the commander."""
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class PowerSetting(Enum):
    """Power setting of a deployed defense."""
    UNDERCLOCKED = "Underclocked"
    NORMAL = "Normal"
    OVERCLOCKED = "Overclocked"

    @property
    def multiplier(self) -> float:
        """Scale applied to a defense's power draw and mitigation."""
        return POWER_SETTING_MULTIPLIERS[self]


POWER_SETTING_MULTIPLIERS = {
    PowerSetting.UNDERCLOCKED: 0.5,
    PowerSetting.NORMAL: 1.0,
    PowerSetting.OVERCLOCKED: 1.5,
}


@dataclass
class SurvivalConfig:
    """Commander survival and daily budget parameters."""

    # Action points
    base_max_action_points: int = 20
    min_action_points: int = 5  # Floor after hydration penalty

    # Hydration
    daily_hydration_water_cost: int = 5
    dehydration_penalty: int = 20  # Hydration lost when water runs short
    hydration_penalty_threshold: int = 80  # AP penalty below this level
    hydration_impairment_threshold: int = 50  # Morning report corrupted below this

    # Station
    starting_station_integrity: int = 100

    def hydration_ap_penalty(self, hydration: int) -> int:
        """AP lost for the day at the given hydration level."""
        if hydration >= self.hydration_penalty_threshold:
            return 0
        return (self.hydration_penalty_threshold - hydration) // 10


@dataclass
class ReactorConfig:
    """Reactor and station power specifications."""

    max_power_capacity: float = 100.0  # Energy units per night
    heat_per_energy: float = 0.5
    optimal_temperature: float = 40.0  # No wear below this heat
    coolant_per_water_unit: float = 5.0  # Heat removed by one unit of water
    starting_health: int = 100
    repair_amount: int = 15

    # System loads (energy per night)
    life_support_draw: float = 10.0
    fabrication_draw: Dict[PowerTier, float] = field(default_factory=lambda: {
        PowerTier.LOW: 0.0,       # Fabrication unit idle
        PowerTier.MEDIUM: 5.0,
        PowerTier.HIGH: 10.0,
    })

    # Largest single fabrication job each tier can drive
    fabrication_energy_limit: Dict[PowerTier, float] = field(default_factory=lambda: {
        PowerTier.LOW: 5.0,
        PowerTier.MEDIUM: 15.0,
        PowerTier.HIGH: 30.0,
    })


@dataclass
class ThreatConfig:
    """Alien threat escalation parameters."""

    daily_threat_increase: int = 20
    threat_level_threshold: int = 100  # Threat points per effective level
    scavenge_threat_increase: int = 5

    exploration_threat: Dict[RiskTier, int] = field(default_factory=lambda: {
        RiskTier.SAFE: 5,
        RiskTier.MEDIUM: 10,
        RiskTier.HIGH: 20,
    })

    # Night attack scaling
    damage_per_level: int = 5
    aliens_per_level: int = 10
    overclock_damage_chance_bonus: float = 0.2


@dataclass
class ActionCostConfig:
    """AP costs of the commander's actions."""

    explore: Dict[RiskTier, int] = field(default_factory=lambda: {
        RiskTier.SAFE: 2,
        RiskTier.MEDIUM: 4,
        RiskTier.HIGH: 6,
    })
    scavenge: int = 3
    adjust_reactor: int = 1
    repair_reactor: int = 4
    set_defense_power: int = 1
    research: int = 1


@dataclass
class GameConfig:
    """Aggregate of every tunable used by the engine."""
    survival: SurvivalConfig = field(default_factory=SurvivalConfig)
    reactor: ReactorConfig = field(default_factory=ReactorConfig)
    threat: ThreatConfig = field(default_factory=ThreatConfig)
    costs: ActionCostConfig = field(default_factory=ActionCostConfig)

    starting_resources: Dict[str, int] = field(default_factory=lambda: {
        "alloys": 50,
        "polymers": 50,
        "wiring": 20,
        "energy_cells": 10,
        "circuitry": 5,
        "water": 30,
    })


# Default configurations
SURVIVAL = SurvivalConfig()
REACTOR = ReactorConfig()
THREAT = ThreatConfig()
COSTS = ActionCostConfig()
GAME = GameConfig()
