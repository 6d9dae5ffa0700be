"""
Derelict Watch — Defense Grid
Barricades and turrets, and the nightly alien assault they absorb.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional
import random
import logging

from ..config import PowerSetting, ThreatConfig, THREAT

logger = logging.getLogger(__name__)


@dataclass
class DefenseSpec:
    """Static definition of a buildable defense."""
    defense_type: str
    ap_cost: int
    resource_costs: Dict[str, int]
    power_draw: float = 0.0  # Energy per night at Normal setting
    description: str = ""


DEFENSE_SPECS: Dict[str, DefenseSpec] = {
    "barricade": DefenseSpec(
        defense_type="Reinforced Barricade",
        ap_cost=3,
        resource_costs={"alloys": 10, "polymers": 5},
        power_draw=0.0,
        description="Passive plating across an access point",
    ),
    "turret": DefenseSpec(
        defense_type="Automated Turret",
        ap_cost=5,
        resource_costs={"alloys": 15, "wiring": 5},
        power_draw=5.0,
        description="Powered sentry gun",
    ),
}


@dataclass
class Defense:
    """A deployed defense. Destroyed defenses stay on record."""
    defense_id: str
    defense_type: str
    location: str
    health: int = 100
    power_setting: PowerSetting = PowerSetting.NORMAL
    base_power_draw: float = 0.0

    @property
    def is_destroyed(self) -> bool:
        return self.health <= 0

    @property
    def power_draw(self) -> float:
        """Nightly energy draw at the current setting (0 once destroyed)."""
        if self.is_destroyed:
            return 0.0
        return self.base_power_draw * self.power_setting.multiplier

    @property
    def mitigation(self) -> int:
        """Station damage this defense absorbs per night."""
        if self.is_destroyed:
            return 0
        return int(self.health / 5 * self.power_setting.multiplier)

    def take_damage(self, amount: int) -> int:
        """Apply damage, floored at 0. Returns damage actually dealt."""
        dealt = min(amount, self.health)
        self.health -= dealt
        return dealt

    def get_status(self) -> Dict:
        return {
            "defense_id": self.defense_id,
            "type": self.defense_type,
            "location": self.location,
            "health": self.health,
            "power_setting": self.power_setting.value,
            "power_draw": self.power_draw,
            "destroyed": self.is_destroyed,
        }


@dataclass
class AttackReport:
    """Outcome of one night's assault."""
    threat_level: int
    base_damage: int = 0
    mitigated: int = 0
    issue_damage: int = 0
    station_damage: int = 0
    aliens_neutralized: int = 0
    defenses_damaged: Dict[str, int] = field(default_factory=dict)
    defenses_destroyed: List[str] = field(default_factory=list)


class DefenseGrid:
    """
    Owns every defense built on the station.

    Resolves the nightly assault:
    - Base damage scales with the effective threat level
    - Each active defense absorbs damage in proportion to its health
    - Each active defense may itself be hit (overclocking raises the odds)
    - Unresolved issues add their own damage
    """

    def __init__(self, config: ThreatConfig = THREAT):
        self.config = config
        self.defenses: List[Defense] = []
        self._next_id = 1

    def __len__(self) -> int:
        return len(self.defenses)

    def build(self, spec_key: str, location: str) -> Defense:
        """Deploy a new defense from a spec key."""
        spec = DEFENSE_SPECS.get(spec_key)
        if spec is None:
            raise ValueError(f"Unknown defense type: {spec_key}")

        defense = Defense(
            defense_id=f"defense_{self._next_id:03d}",
            defense_type=spec.defense_type,
            location=location,
            base_power_draw=spec.power_draw,
        )
        self._next_id += 1
        self.defenses.append(defense)
        logger.info(f"Built {defense.defense_type} at {location} ({defense.defense_id})")
        return defense

    def get(self, defense_id: str) -> Optional[Defense]:
        return next((d for d in self.defenses if d.defense_id == defense_id), None)

    def get_active(self) -> List[Defense]:
        return [d for d in self.defenses if not d.is_destroyed]

    def get_destroyed(self) -> List[Defense]:
        return [d for d in self.defenses if d.is_destroyed]

    def total_power_draw(self) -> float:
        return sum(d.power_draw for d in self.defenses)

    def resolve_attack(self, threat_level: int, rng: random.Random,
                       issue_damage: int = 0) -> AttackReport:
        """
        Run the nightly assault against the station.

        Args:
            threat_level: Effective threat level for the night
            rng: Random source for damage rolls
            issue_damage: Extra station damage from unresolved issues

        Returns:
            AttackReport; the caller applies station_damage to integrity.
        """
        level = max(0, threat_level)
        report = AttackReport(threat_level=level)

        if level > 0:
            report.base_damage = level * self.config.damage_per_level + rng.randrange(level * 2)
            report.aliens_neutralized = level * self.config.aliens_per_level + rng.randrange(level * 5)

        damage = report.base_damage
        for defense in self.get_active():
            absorbed = min(damage, defense.mitigation)
            damage -= absorbed
            report.mitigated += absorbed
            report.aliens_neutralized += defense.health // 10

            hit_chance = level / 10
            if defense.power_setting == PowerSetting.OVERCLOCKED:
                hit_chance += self.config.overclock_damage_chance_bonus
            if rng.random() < hit_chance:
                dealt = defense.take_damage(rng.randint(10, 39))
                report.defenses_damaged[defense.defense_id] = dealt
                if defense.is_destroyed:
                    report.defenses_destroyed.append(defense.defense_id)
                    logger.warning(f"{defense.defense_type} at {defense.location} was destroyed")
                else:
                    logger.info(f"{defense.defense_type} at {defense.location} took {dealt} damage")

        report.issue_damage = issue_damage
        report.station_damage = damage + issue_damage

        logger.info(
            f"Night assault (level {level}): base {report.base_damage}, "
            f"mitigated {report.mitigated}, issues +{issue_damage}, "
            f"station damage {report.station_damage}"
        )
        return report

    def get_all_status(self) -> List[Dict]:
        return [d.get_status() for d in self.defenses]
