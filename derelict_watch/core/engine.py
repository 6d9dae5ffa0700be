"""
Derelict Watch — Day/Night Engine
Game state aggregate, day progression, night resolution, and game-over checks.
"""

from dataclasses import dataclass, field, asdict
from typing import Dict, List, Optional, Callable, Any
from enum import Enum, auto
import logging
import random
import json

from .ledger import ResourceLedger, ResourceKind, coerce_kind
from .module import ModuleRegistry
from .actions import ActionError, ActionResolver, ActionResult, build_catalog
from ..config import GameConfig, GAME
from ..systems.reactor import Reactor
from ..systems.threat import ThreatTracker
from ..systems.defense import DefenseGrid
from ..systems.fabrication import FabricationUnit

logger = logging.getLogger(__name__)


class DayPhase(Enum):
    """Where the engine is in the day/night cycle."""
    NOT_STARTED = auto()
    DAY = auto()
    NIGHT = auto()
    REPORT = auto()  # Night resolved, morning report pending
    GAME_OVER = auto()


# Game-over reasons, in the order they are checked
REACTOR_MELTDOWN = "Nuclear Reactor meltdown! Catastrophic failure."
CRITICAL_DEHYDRATION = "Critical dehydration! Station operations ceased."
HULL_BREACH = "Station integrity compromised! Hull breached."

# Observational hints for a lucid commander
NIGHT_HINTS = [
    "Heavy impact marks observed on reinforced plating.",
    "Automated defense systems experienced intermittent power fluctuations.",
    "Corrosive residue detected on several vital conduits.",
    "Numerous small biological signatures neutralized.",
    "Massive structural deformation detected near primary access.",
]

DATA_CORRUPTED = (
    "[DATA CORRUPTED: Subject reported severe disorientation during night phase. "
    "Unable to process detailed analysis.]"
)


@dataclass
class GameState:
    """
    Aggregate root for one session.

    Only the engine touches the top-level counters and flags; sub-entities
    are changed through their owning component.
    """
    ledger: ResourceLedger
    reactor: Reactor
    modules: ModuleRegistry
    defenses: DefenseGrid
    threat: ThreatTracker
    fabrication: FabricationUnit

    day: int = 0
    action_points: int = 0
    max_action_points: int = 0
    base_max_action_points: int = 20
    hydration: int = 100
    station_integrity: int = 100

    phase: DayPhase = DayPhase.NOT_STARTED
    is_game_over: bool = False
    game_over_reason: str = ""


@dataclass
class MorningReport:
    """Summary of one night, shown before the next day begins."""
    day: int
    station_damage: int = 0
    station_integrity: int = 100
    reactor_damage: int = 0
    reactor_health: int = 100
    reactor_tier: str = "Low"
    energy_demand: float = 0.0
    heat_generated: float = 0.0
    coolant_required: int = 0
    coolant_used: int = 0
    uncooled_heat: float = 0.0
    hydration: int = 100
    threat_level: int = 0
    total_threat: int = 0
    aliens_neutralized: int = 0
    defenses_destroyed: List[str] = field(default_factory=list)
    items_delivered: Dict[str, int] = field(default_factory=dict)
    unresolved_issues: List[str] = field(default_factory=list)
    observation: str = ""
    data_corrupted: bool = False

    def to_dict(self) -> Dict:
        return asdict(self)


class GameEngine:
    """
    Day/night orchestrator.

    Manages:
    - Day start (hydration upkeep, daily AP budget, threat escalation)
    - The action loop, ending the day automatically when AP runs out
    - Night resolution (reactor heat and coolant, alien assault, fabrication)
    - Game-over determination
    - Debug setters and the observation log
    """

    def __init__(self, config: GameConfig = GAME, rng: Optional[random.Random] = None,
                 seed: Optional[int] = None, modules: Optional[ModuleRegistry] = None):
        self.config = config
        self.rng = rng if rng is not None else random.Random(seed)

        self.state = GameState(
            ledger=ResourceLedger(config.starting_resources),
            reactor=Reactor(config.reactor),
            modules=modules if modules is not None else ModuleRegistry.default(),
            defenses=DefenseGrid(config.threat),
            threat=ThreatTracker(config.threat),
            fabrication=FabricationUnit(),
            base_max_action_points=config.survival.base_max_action_points,
            station_integrity=config.survival.starting_station_integrity,
        )
        if not self.state.modules.get_discovered():
            raise ValueError("At least one module must be discovered at game start")

        self.catalog = build_catalog(config)
        self.cost_overrides: Dict[str, int] = {}
        self.resolver = ActionResolver(self)

        # History
        self.observation_log: List[Dict] = []
        self.morning_reports: List[MorningReport] = []
        self.last_report: Optional[MorningReport] = None

        # Callbacks
        self.on_day_start: Optional[Callable] = None
        self.on_night_complete: Optional[Callable] = None
        self.on_game_over: Optional[Callable] = None

        logger.info("Game engine initialized")

    @property
    def day(self) -> int:
        return self.state.day

    @property
    def phase(self) -> DayPhase:
        return self.state.phase

    @property
    def is_game_over(self) -> bool:
        return self.state.is_game_over

    # =========================================================================
    # OBSERVATION LOG
    # =========================================================================

    def observe(self, message: str, level: int = logging.INFO):
        """Record a player-facing message and mirror it to the logger."""
        self.observation_log.append({
            "day": self.state.day,
            "phase": self.state.phase.name,
            "level": logging.getLevelName(level),
            "message": message,
        })
        logger.log(level, f"Day {self.state.day}: {message}")

    def _reject(self, action_id: str, error: ActionError, message: str) -> ActionResult:
        self.observe(message, logging.WARNING)
        return ActionResult.rejected(action_id, error, message)

    def _game_over_rejection(self, action_id: str) -> ActionResult:
        return self._reject(action_id, ActionError.GAME_OVER,
                            f"Game already over: {self.state.game_over_reason}")

    # =========================================================================
    # DAY CYCLE
    # =========================================================================

    def start_day(self) -> ActionResult:
        """
        Begin the next day.

        1. Advance the day counter
        2. Drink: spend the daily water ration, or lose hydration if short
        3. Set the day's AP budget (hydration penalty from day 2 onward)
        4. Escalate threat and recompute the issue boost
        """
        state = self.state
        if self.check_game_over():
            return self._game_over_rejection("start_day")
        if state.phase not in (DayPhase.NOT_STARTED, DayPhase.REPORT):
            return self._reject("start_day", ActionError.WRONG_PHASE,
                                f"Cannot start a new day during {state.phase.name}")

        survival = self.config.survival
        state.day += 1
        state.phase = DayPhase.DAY

        ration = survival.daily_hydration_water_cost
        if state.ledger.get(ResourceKind.WATER) >= ration:
            state.ledger.deduct({ResourceKind.WATER: ration})
            state.hydration = 100
            self.observe(f"Consumed {ration} Recycled Water for hydration. Hydration {state.hydration}%.")
        else:
            state.ledger.take_up_to(ResourceKind.WATER, ration)
            state.hydration = max(0, state.hydration - survival.dehydration_penalty)
            self.observe(
                f"Insufficient Recycled Water for hydration! Hydration {state.hydration}%.",
                logging.WARNING,
            )

        effective_max = state.base_max_action_points
        if state.day > 1:
            penalty = survival.hydration_ap_penalty(state.hydration)
            if penalty:
                effective_max = max(survival.min_action_points, state.base_max_action_points - penalty)
                self.observe(
                    f"Hydration low ({state.hydration}% < {survival.hydration_penalty_threshold}%). "
                    f"Max AP reduced to {effective_max}.",
                    logging.WARNING,
                )
        state.max_action_points = effective_max
        state.action_points = effective_max

        state.threat.daily_accrual()

        self.observe(f"Day {state.day} begins. AP: {state.action_points}. "
                     f"Threat: {state.threat.total_threat} TP.")

        if self.on_day_start:
            self.on_day_start(self.snapshot())

        # Dehydration can end the game before the first action
        self.check_game_over()
        return ActionResult.ok("start_day", f"Day {state.day} started.",
                               day=state.day, action_points=state.action_points)

    def perform_action(self, action_id: str, target: Any = None, **options) -> ActionResult:
        """
        Attempt one commander action.

        Args:
            action_id: Catalog id, e.g. "explore" or "craft"
            target: Module, tier, recipe, issue or defense, depending on the action

        Returns:
            ActionResult; rejected attempts leave the state untouched.
        """
        state = self.state
        # Debug setters can leave a terminal condition unlatched
        if self.check_game_over():
            return self._game_over_rejection(action_id)
        if state.phase != DayPhase.DAY:
            return self._reject(action_id, ActionError.WRONG_PHASE,
                                f"Cannot act during {state.phase.name}")

        result = self.resolver.resolve(action_id, target, **options)
        if not result.success:
            self.observe(result.message, logging.WARNING)
            return result

        self.observe(result.message)

        self.check_game_over()
        if state.action_points == 0 and not state.is_game_over:
            self.observe("Out of action points. The day ends.")
            self.end_day()
            result.details["day_ended"] = True
        return result

    def end_day(self) -> ActionResult:
        """Lock the action loop and resolve the night."""
        state = self.state
        if self.check_game_over():
            return self._game_over_rejection("end_day")
        if state.phase != DayPhase.DAY:
            return self._reject("end_day", ActionError.WRONG_PHASE,
                                f"Cannot end the day during {state.phase.name}")

        state.phase = DayPhase.NIGHT
        self.observe("Day ends. Night falls over the station.")

        report = self._resolve_night()
        self.last_report = report
        self.morning_reports.append(report)

        if not self.check_game_over():
            state.phase = DayPhase.REPORT

        if self.on_night_complete:
            self.on_night_complete(report)

        return ActionResult.ok("end_day", f"Night {state.day} resolved.", report=report.to_dict())

    def dismiss_report(self) -> ActionResult:
        """Acknowledge the morning report and start the next day."""
        state = self.state
        if self.check_game_over():
            return self._game_over_rejection("dismiss_report")
        if state.phase != DayPhase.REPORT:
            return self._reject("dismiss_report", ActionError.WRONG_PHASE,
                                "No morning report is pending")
        return self.start_day()

    def _resolve_night(self) -> MorningReport:
        """
        Night pipeline.

        1. Reactor: energy demand → heat → coolant → heat damage
        2. Fabrication queue completes
        3. Alien assault scaled by the effective threat level
        4. Station integrity takes assault and issue damage
        """
        state = self.state
        report = MorningReport(day=state.day)

        active_defenses = state.defenses.get_active()
        reactor_night = state.reactor.run_night(
            available_water=state.ledger.get(ResourceKind.WATER),
            defenses=active_defenses,
            queued_fabrication_energy=state.fabrication.queued_energy,
        )
        state.ledger.take_up_to(ResourceKind.WATER, reactor_night.water_used)

        report.reactor_damage = reactor_night.damage
        report.energy_demand = reactor_night.energy_demand
        report.heat_generated = reactor_night.heat_generated
        report.coolant_required = reactor_night.water_required
        report.coolant_used = reactor_night.water_used
        report.uncooled_heat = reactor_night.uncooled_heat

        if reactor_night.uncooled_heat > 0:
            self.observe(
                f"Insufficient coolant! Reactor health reduced by {reactor_night.damage}.",
                logging.WARNING,
            )
        elif reactor_night.damage:
            self.observe(f"Reactor ran hot. Health reduced by {reactor_night.damage}.", logging.WARNING)

        delivered = state.fabrication.complete_queue()
        if delivered:
            state.ledger.credit(delivered)
            report.items_delivered = delivered

        level = state.threat.effective_level()
        attack = state.defenses.resolve_attack(
            level, self.rng, issue_damage=state.threat.issue_night_damage()
        )
        state.station_integrity = max(0, state.station_integrity - attack.station_damage)

        report.station_damage = attack.station_damage
        report.station_integrity = state.station_integrity
        report.reactor_health = state.reactor.health
        report.reactor_tier = state.reactor.output_tier.value
        report.hydration = state.hydration
        report.threat_level = level
        report.total_threat = state.threat.total_threat
        report.aliens_neutralized = attack.aliens_neutralized
        report.defenses_destroyed = [
            f"{d.defense_type} at {d.location}"
            for d in state.defenses.defenses if d.defense_id in attack.defenses_destroyed
        ]
        report.unresolved_issues = [
            f"{i.issue_type} in {i.location}" for i in state.threat.active_issues
        ]

        if state.hydration < self.config.survival.hydration_impairment_threshold:
            report.data_corrupted = True
            report.observation = DATA_CORRUPTED
        else:
            report.observation = self.rng.choice(NIGHT_HINTS)

        self.observe(
            f"Night summary: station integrity -{attack.station_damage}, "
            f"reactor health -{reactor_night.damage}, "
            f"{attack.aliens_neutralized} aliens neutralized."
        )
        return report

    def check_game_over(self) -> bool:
        """
        Check terminal conditions and latch the first one found.

        Returns:
            True if the game is over.
        """
        state = self.state
        if state.is_game_over:
            return True

        reason = None
        if state.reactor.health <= 0:
            reason = REACTOR_MELTDOWN
        elif state.hydration <= 0:
            reason = CRITICAL_DEHYDRATION
        elif state.station_integrity <= 0:
            reason = HULL_BREACH

        if reason is None:
            return False

        state.is_game_over = True
        state.game_over_reason = reason
        state.phase = DayPhase.GAME_OVER
        self.observe(f"GAME OVER: {reason}", logging.ERROR)

        if self.on_game_over:
            self.on_game_over(self.get_final_report())
        return True

    # =========================================================================
    # DEBUG SETTERS
    # =========================================================================

    def _debug_guard(self, name: str, value: Any, low: int, high: Optional[int]) -> Optional[ActionResult]:
        if self.state.is_game_over:
            return self._game_over_rejection(name)
        if isinstance(value, bool) or not isinstance(value, int):
            return self._reject(name, ActionError.INVALID_DEBUG_INPUT,
                                f"DEBUG: {value!r} is not an integer")
        if value < low or (high is not None and value > high):
            bounds = f"between {low} and {high}" if high is not None else f"at least {low}"
            return self._reject(name, ActionError.INVALID_DEBUG_INPUT,
                                f"DEBUG: {value} out of range; must be {bounds}")
        return None

    def set_hydration(self, level: int) -> ActionResult:
        rejected = self._debug_guard("set_hydration", level, 0, 100)
        if rejected:
            return rejected
        self.state.hydration = level
        self.observe(f"DEBUG: Hydration level set to {level}%.")
        return ActionResult.ok("set_hydration", f"Hydration set to {level}%.")

    def set_resource_quantity(self, kind: str, amount: int) -> ActionResult:
        resolved = coerce_kind(kind)
        if resolved is None and not self.state.is_game_over:
            return self._reject("set_resource_quantity", ActionError.INVALID_DEBUG_INPUT,
                                f"DEBUG: Unknown resource kind '{kind}'")
        rejected = self._debug_guard("set_resource_quantity", amount, 0, None)
        if rejected:
            return rejected
        self.state.ledger.set_quantity(resolved, amount)
        self.observe(f"DEBUG: {resolved.display_name} set to {amount}.")
        return ActionResult.ok("set_resource_quantity", f"{resolved.display_name} set to {amount}.")

    def set_reactor_health(self, value: int) -> ActionResult:
        rejected = self._debug_guard("set_reactor_health", value, 0, 100)
        if rejected:
            return rejected
        self.state.reactor.health = value
        self.observe(f"DEBUG: Reactor health set to {value}%.")
        return ActionResult.ok("set_reactor_health", f"Reactor health set to {value}%.")

    def set_action_cost(self, action_id: str, cost: int) -> ActionResult:
        if action_id not in self.catalog and not self.state.is_game_over:
            return self._reject("set_action_cost", ActionError.INVALID_DEBUG_INPUT,
                                f"DEBUG: Action ID '{action_id}' not found")
        rejected = self._debug_guard("set_action_cost", cost, 0, None)
        if rejected:
            return rejected
        self.cost_overrides[action_id] = cost
        self.observe(f"DEBUG: AP cost for '{action_id}' set to {cost}.")
        return ActionResult.ok("set_action_cost", f"AP cost for '{action_id}' set to {cost}.")

    # =========================================================================
    # SNAPSHOTS AND REPORTS
    # =========================================================================

    def available_actions(self) -> Dict[str, Dict]:
        """Catalog entries with their current AP cost."""
        return {
            action_id: {
                "name": spec.name,
                "ap_cost": self.cost_overrides.get(action_id, spec.ap_cost),
                "resource_costs": dict(spec.resource_costs),
                "description": spec.description,
            }
            for action_id, spec in self.catalog.items()
        }

    def snapshot(self) -> Dict:
        """Read-only view of every entity, for rendering."""
        state = self.state
        return {
            "day": state.day,
            "phase": state.phase.name,
            "action_points": state.action_points,
            "max_action_points": state.max_action_points,
            "base_max_action_points": state.base_max_action_points,
            "hydration": state.hydration,
            "station_integrity": state.station_integrity,
            "is_game_over": state.is_game_over,
            "game_over_reason": state.game_over_reason,
            "resources": state.ledger.get_status(),
            "reactor": state.reactor.get_status(),
            "modules": state.modules.get_all_status(),
            "defenses": state.defenses.get_all_status(),
            "threat": state.threat.get_status(),
            "fabrication": state.fabrication.get_status(),
        }

    get_status = snapshot

    def get_final_report(self) -> Dict:
        """Session summary."""
        state = self.state
        return {
            "session_summary": {
                "days_survived": state.day,
                "is_game_over": state.is_game_over,
                "game_over_reason": state.game_over_reason,
                "station_integrity": state.station_integrity,
                "reactor_health": state.reactor.health,
                "hydration": state.hydration,
                "modules_discovered": len(state.modules.get_discovered()),
                "modules_total": len(state.modules),
            },
            "resource_totals": {
                kind.value: {
                    "final_level": state.ledger.quantities[kind],
                    "total_credited": state.ledger.total_credited[kind],
                    "total_deducted": state.ledger.total_deducted[kind],
                }
                for kind in ResourceKind
            },
            "threat": state.threat.get_status(),
            "defenses": state.defenses.get_all_status(),
            "actions": self.resolver.get_statistics(),
            "issues_resolved": len(state.threat.resolved_issues),
        }

    def export_log(self, filepath: str):
        """Export the session log to a JSON file."""
        report = self.get_final_report()
        report["morning_reports"] = [r.to_dict() for r in self.morning_reports]
        report["observation_log"] = self.observation_log

        with open(filepath, 'w') as f:
            json.dump(report, f, indent=2, default=str)

        logger.info(f"Session log exported to {filepath}")
