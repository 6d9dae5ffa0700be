"""
Derelict Watch — Reactor Model
Power output tiers, nightly heat generation, water cooling, and heat damage.
"""

from dataclasses import dataclass
from typing import Dict, Iterable
import logging
import math

from ..config import PowerTier, ReactorConfig, REACTOR
from .defense import Defense

logger = logging.getLogger(__name__)


@dataclass
class CoolingResult:
    """Water spent on reactor cooling and the heat left over."""
    water_required: int
    water_used: int
    uncooled_heat: float


@dataclass
class ReactorNightReport:
    """Energy → heat → coolant → damage figures for one night."""
    energy_demand: float = 0.0
    heat_generated: float = 0.0
    health_penalty_multiplier: float = 1.0
    water_required: int = 0
    water_used: int = 0
    uncooled_heat: float = 0.0
    heat_above_optimal: float = 0.0
    damage: int = 0
    health_after: int = 100
    meltdown: bool = False


class Reactor:
    """
    The station's reactor.

    Output varies with:
    - Nightly energy demand from life support, fabrication, and defenses
    - Reactor health (a degraded reactor runs hotter)

    Heat is recomputed from scratch each night; whatever the coolant cannot
    absorb damages the reactor that same night.
    """

    def __init__(self, config: ReactorConfig = REACTOR):
        self.config = config

        self.health = config.starting_health
        self.heat = 0.0  # Heat generated last night
        self.uncooled_heat = 0.0
        self.output_tier = PowerTier.LOW
        self.power_output = 0.0  # Energy actually delivered last night

        # Statistics
        self.total_heat_damage = 0
        self.total_water_used = 0
        self.nights_overheated = 0

    @property
    def optimal_temperature(self) -> float:
        return self.config.optimal_temperature

    @property
    def heat_per_energy(self) -> float:
        return self.config.heat_per_energy

    @property
    def max_power_capacity(self) -> float:
        return self.config.max_power_capacity

    @property
    def coolant_per_water_unit(self) -> float:
        return self.config.coolant_per_water_unit

    @property
    def is_melted_down(self) -> bool:
        return self.health <= 0

    @property
    def health_penalty_multiplier(self) -> float:
        """Every 5 points of lost health adds 1% heat."""
        return 1 + ((100 - self.health) // 5) * 0.01

    @property
    def fabrication_energy_limit(self) -> float:
        """Largest single fabrication job the current tier can drive."""
        return self.config.fabrication_energy_limit[self.output_tier]

    def set_output_tier(self, tier: PowerTier) -> bool:
        """
        Select the output tier.

        Returns:
            False (and changes nothing) if already at that tier.
        """
        if tier == self.output_tier:
            logger.info(f"Reactor already at {tier.value} output")
            return False
        self.output_tier = tier
        logger.info(f"Reactor output set to {tier.value}")
        return True

    def nightly_energy_demand(self, defenses: Iterable[Defense] = (),
                              queued_fabrication_energy: float = 0.0) -> float:
        """
        Total energy the station draws tonight, capped at max capacity.

        Life support always runs; the fabrication unit idles at Low output.
        Destroyed defenses draw nothing.
        """
        demand = self.config.life_support_draw
        demand += self.config.fabrication_draw[self.output_tier]
        demand += sum(d.power_draw for d in defenses)
        demand += queued_fabrication_energy
        return min(demand, self.max_power_capacity)

    def heat_generated(self, demand: float) -> float:
        """Heat produced by delivering `demand` energy at current health."""
        return demand * self.heat_per_energy * self.health_penalty_multiplier

    def apply_cooling(self, heat: float, available_water: int) -> CoolingResult:
        """
        Work out how much water cooling `heat` takes.

        Does not touch the ledger; the caller spends `water_used`.
        """
        required = math.ceil(heat / self.coolant_per_water_unit) if heat > 0 else 0

        if available_water >= required:
            return CoolingResult(water_required=required, water_used=required, uncooled_heat=0.0)

        used = max(0, available_water)
        uncooled = heat - used * self.coolant_per_water_unit
        return CoolingResult(water_required=required, water_used=used, uncooled_heat=uncooled)

    def apply_heat_damage(self, uncooled_heat: float, heat_above_optimal: float) -> int:
        """
        Damage the reactor from uncooled heat and running above optimal.

        Returns:
            Damage applied (health is floored at 0).
        """
        total = max(0.0, heat_above_optimal) + max(0.0, uncooled_heat)
        damage = math.ceil(total / 10) if total > 0 else 0
        if damage <= 0:
            return 0

        before = self.health
        self.health = max(0, self.health - damage)
        self.total_heat_damage += before - self.health
        self.nights_overheated += 1

        if self.is_melted_down:
            logger.error("Reactor health depleted: meltdown")
        else:
            logger.warning(f"Reactor took {damage} heat damage (health {self.health})")
        return damage

    def repair(self, amount: int) -> int:
        """
        Restore health, capped at 100.

        AP and resource costs are charged by the action resolver.

        Returns:
            Health actually restored.
        """
        if amount < 0:
            raise ValueError(f"Cannot repair negative amount: {amount}")
        before = self.health
        self.health = min(100, self.health + amount)
        restored = self.health - before
        logger.info(f"Reactor repaired by {restored} (health {self.health})")
        return restored

    def run_night(self, available_water: int, defenses: Iterable[Defense] = (),
                  queued_fabrication_energy: float = 0.0) -> ReactorNightReport:
        """
        Execute the nightly reactor pipeline.

        1. Compute energy demand
        2. Convert demand to heat (scaled by health)
        3. Cool with available water
        4. Damage from uncooled heat and heat above optimal

        Args:
            available_water: Water left in the ledger for coolant

        Returns:
            ReactorNightReport; the caller deducts `water_used` from the ledger.
        """
        report = ReactorNightReport()
        report.health_penalty_multiplier = self.health_penalty_multiplier

        report.energy_demand = self.nightly_energy_demand(defenses, queued_fabrication_energy)
        self.power_output = report.energy_demand

        report.heat_generated = self.heat_generated(report.energy_demand)
        self.heat = report.heat_generated

        cooling = self.apply_cooling(report.heat_generated, available_water)
        report.water_required = cooling.water_required
        report.water_used = cooling.water_used
        report.uncooled_heat = cooling.uncooled_heat
        self.uncooled_heat = cooling.uncooled_heat
        self.total_water_used += cooling.water_used

        if cooling.uncooled_heat > 0:
            logger.warning(
                f"Insufficient coolant: needed {cooling.water_required} water, "
                f"had {cooling.water_used}; uncooled heat {cooling.uncooled_heat:.1f}"
            )

        report.heat_above_optimal = max(0.0, report.heat_generated - self.optimal_temperature)
        report.damage = self.apply_heat_damage(report.uncooled_heat, report.heat_above_optimal)
        report.health_after = self.health
        report.meltdown = self.is_melted_down

        logger.info(
            f"Reactor night: demand {report.energy_demand:.1f}, heat {report.heat_generated:.1f}, "
            f"coolant {report.water_used}/{report.water_required}, damage {report.damage}"
        )
        return report

    def get_status(self) -> Dict:
        """Get current reactor status."""
        return {
            "health": self.health,
            "heat": self.heat,
            "uncooled_heat": self.uncooled_heat,
            "optimal_temperature": self.optimal_temperature,
            "heat_per_energy": self.heat_per_energy,
            "max_power_capacity": self.max_power_capacity,
            "output_tier": self.output_tier.value,
            "power_output": self.power_output,
            "coolant_per_water_unit": self.coolant_per_water_unit,
            "health_penalty_multiplier": self.health_penalty_multiplier,
            "total_heat_damage": self.total_heat_damage,
        }
