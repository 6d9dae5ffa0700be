"""
Derelict Watch — Action Resolver
Catalog of commander actions and the handlers that validate and apply them.

Every action attempt goes Proposed → Rejected(reason) | Applied:

1. Resolve the target (unknown / invalid targets are rejected)
2. Reject if action points are short
3. Reject if the reactor tier cannot power the job (fabrication only)
4. Reject if the resource cost set is unaffordable
5. Deduct AP, deduct resources, apply the effect

Rejections leave the game state untouched.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union, TYPE_CHECKING
from enum import Enum, auto
import logging

from .ledger import format_costs
from .module import roll_salvage
from ..config import GameConfig, PowerSetting, PowerTier, RiskTier
from ..systems.defense import DEFENSE_SPECS
from ..systems.fabrication import FabricationUnit

if TYPE_CHECKING:
    from .engine import GameEngine

logger = logging.getLogger(__name__)


# =============================================================================
# RESULTS
# =============================================================================

class ActionError(Enum):
    """Why an operation was refused."""
    INSUFFICIENT_ACTION_POINTS = auto()
    INSUFFICIENT_RESOURCES = auto()
    INSUFFICIENT_POWER = auto()
    UNKNOWN_ACTION = auto()
    INVALID_TARGET = auto()
    INVALID_DEBUG_INPUT = auto()
    WRONG_PHASE = auto()  # e.g. acting while the night is being resolved
    GAME_OVER = auto()


@dataclass
class ActionResult:
    """Outcome of an action or engine operation."""
    success: bool
    action_id: str
    error: Optional[ActionError] = None
    message: str = ""
    details: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls, action_id: str, message: str, **details) -> "ActionResult":
        return cls(success=True, action_id=action_id, message=message, details=details)

    @classmethod
    def rejected(cls, action_id: str, error: ActionError, message: str, **details) -> "ActionResult":
        return cls(success=False, action_id=action_id, error=error, message=message, details=details)

    def __bool__(self) -> bool:
        return self.success


# =============================================================================
# CATALOG
# =============================================================================

@dataclass
class ActionSpec:
    """Static definition of an action."""
    action_id: str
    name: str
    ap_cost: Optional[int]  # None: depends on the target
    resource_costs: Dict[str, int] = field(default_factory=dict)
    description: str = ""


def build_catalog(config: GameConfig) -> Dict[str, ActionSpec]:
    """Action definitions for a game configuration."""
    costs = config.costs
    return {
        "explore": ActionSpec("explore", "Explore", None,
                              description="Discover a module; AP and threat scale with its risk"),
        "scavenge": ActionSpec("scavenge", "Scavenge", costs.scavenge,
                               description="Search a discovered module for resources"),
        "adjust_reactor": ActionSpec("adjust_reactor", "Adjust Reactor", costs.adjust_reactor,
                                     description="Set reactor output to Low, Medium or High"),
        "build_defense": ActionSpec("build_defense", "Build Defense", None,
                                    description="Deploy a barricade or turret"),
        "craft": ActionSpec("craft", "Craft Item", None,
                            description="Queue an item at the fabrication unit"),
        "resolve_issue": ActionSpec("resolve_issue", "Resolve Issue", None,
                                    description="Fix an active station issue"),
        "repair_reactor": ActionSpec("repair_reactor", "Repair Reactor", costs.repair_reactor,
                                     resource_costs={"alloys": 5, "wiring": 2},
                                     description="Patch reactor shielding"),
        "set_defense_power": ActionSpec("set_defense_power", "Set Defense Power", costs.set_defense_power,
                                        description="Underclock, normalize or overclock a defense"),
        "research": ActionSpec("research", "Research", costs.research,
                               description="Analyze the alien threat profile"),
    }


@dataclass
class ActionPlan:
    """A validated proposal, ready to be paid for and applied."""
    ap_cost: int
    resource_costs: Dict[str, int] = field(default_factory=dict)
    subject: Any = None
    options: Dict[str, Any] = field(default_factory=dict)


# =============================================================================
# HANDLER BASE CLASS
# =============================================================================

class ActionHandler(ABC):
    """
    Base class for action handlers.

    Each handler specializes in one action kind: it resolves the target into
    an ActionPlan and applies the effect once costs are paid.
    """

    action_id: str = ""

    def __init__(self, engine: "GameEngine"):
        self.engine = engine

    @property
    def state(self):
        return self.engine.state

    @property
    def spec(self) -> ActionSpec:
        return self.engine.catalog[self.action_id]

    def ap_cost(self, default: Optional[int] = None) -> int:
        """AP cost, honoring any debug override for this action."""
        override = self.engine.cost_overrides.get(self.action_id)
        if override is not None:
            return override
        if default is None:
            return self.spec.ap_cost
        return default

    def reject_target(self, message: str) -> ActionResult:
        return ActionResult.rejected(self.action_id, ActionError.INVALID_TARGET, message)

    @abstractmethod
    def plan(self, target: Any, options: Dict[str, Any]) -> Union[ActionPlan, ActionResult]:
        """
        Resolve the target.

        Returns:
            ActionPlan, or an INVALID_TARGET rejection.
        """
        pass

    def check_power(self, plan: ActionPlan) -> Optional[str]:
        """Message if the reactor cannot power this plan, else None."""
        return None

    @abstractmethod
    def apply(self, plan: ActionPlan) -> ActionResult:
        """Apply the effect. Costs have already been deducted."""
        pass


# =============================================================================
# HANDLERS
# =============================================================================

class ExploreHandler(ActionHandler):
    """Discover a module. Medium and High risk modules always trigger an issue."""

    action_id = "explore"

    def plan(self, target, options):
        module = self.state.modules.explore_target(target)
        if module is None:
            if target is None:
                return self.reject_target("No more modules to explore")
            known = self.state.modules.get(target)
            if known is None:
                return self.reject_target(f"Unknown module: {target}")
            return self.reject_target(f"{known.name} is already discovered")

        cost = self.ap_cost(self.engine.config.costs.explore[module.risk])
        return ActionPlan(ap_cost=cost, subject=module)

    def apply(self, plan):
        module = plan.subject
        threat = self.state.threat

        self.state.modules.discover(module)
        increase = self.engine.config.threat.exploration_threat[module.risk]
        threat.add_threat(increase, f"explored {module.name}")

        issue = None
        if module.risk != RiskTier.SAFE:
            issue = threat.trigger_issue(module.name, module.risk, self.engine.rng)

        message = f"Explored {module.name} ({module.risk.value} Risk). Threat +{increase}."
        if issue:
            message += f" Issue detected: {issue.issue_type}."
        return ActionResult.ok(
            self.action_id, message,
            module=module.name,
            risk=module.risk.value,
            threat_increase=increase,
            issue_id=issue.issue_id if issue else None,
        )


class ScavengeHandler(ActionHandler):
    """Search a discovered module. Yields scale with the module's risk."""

    action_id = "scavenge"

    def plan(self, target, options):
        module = self.state.modules.scavenge_target(target)
        if module is None:
            if target is None:
                return self.reject_target("No discovered modules to scavenge")
            return self.reject_target(f"Cannot scavenge {target}: unknown or undiscovered")
        return ActionPlan(ap_cost=self.ap_cost(), subject=module)

    def apply(self, plan):
        module = plan.subject
        increase = self.engine.config.threat.scavenge_threat_increase
        self.state.threat.add_threat(increase, f"scavenged {module.name}")

        haul = roll_salvage(module.risk, self.engine.rng)
        self.state.ledger.credit(haul)

        if haul:
            message = f"Scavenged {module.name}: {format_costs(haul)}."
        else:
            message = f"Scavenged {module.name}, but found nothing useful."
        return ActionResult.ok(self.action_id, message, module=module.name, found=haul,
                               threat_increase=increase)


class AdjustReactorHandler(ActionHandler):
    """Change reactor output tier. Selecting the current tier is refused for free."""

    action_id = "adjust_reactor"

    def plan(self, target, options):
        tier = _parse_enum(PowerTier, target)
        if tier is None:
            return self.reject_target(f"Unknown reactor output tier: {target}")
        if tier == self.state.reactor.output_tier:
            return self.reject_target(f"Reactor already at {tier.value} output")
        return ActionPlan(ap_cost=self.ap_cost(), subject=tier)

    def apply(self, plan):
        self.state.reactor.set_output_tier(plan.subject)
        return ActionResult.ok(self.action_id, f"Reactor output set to {plan.subject.value}.",
                               tier=plan.subject.value)


class BuildDefenseHandler(ActionHandler):
    """Deploy a defense in a discovered module (Command Center by default)."""

    action_id = "build_defense"

    def plan(self, target, options):
        spec = DEFENSE_SPECS.get(target) if target is not None else None
        if spec is None:
            spec = next((s for s in DEFENSE_SPECS.values() if s.defense_type == target), None)
        if spec is None:
            return self.reject_target(f"Unknown defense type: {target}")

        location = self.state.modules.scavenge_target(options.get("location"))
        if location is None:
            return self.reject_target(f"Cannot build at {options.get('location')}: not a discovered module")

        key = next(k for k, s in DEFENSE_SPECS.items() if s is spec)
        return ActionPlan(ap_cost=self.ap_cost(spec.ap_cost), resource_costs=dict(spec.resource_costs),
                          subject=key, options={"location": location.name})

    def apply(self, plan):
        defense = self.state.defenses.build(plan.subject, plan.options["location"])
        return ActionResult.ok(
            self.action_id, f"Built {defense.defense_type} at {defense.location}.",
            defense_id=defense.defense_id, defense_type=defense.defense_type,
            location=defense.location,
        )


class CraftHandler(ActionHandler):
    """Queue an item at the fabrication unit; it completes overnight."""

    action_id = "craft"

    def plan(self, target, options):
        recipe = FabricationUnit.get_recipe(target) if target is not None else None
        if recipe is None:
            return self.reject_target(f"Unknown item to craft: {target}")
        return ActionPlan(ap_cost=self.ap_cost(recipe.ap_cost),
                          resource_costs=dict(recipe.resource_costs), subject=recipe)

    def check_power(self, plan):
        reactor = self.state.reactor
        if plan.subject.energy_cost > reactor.fabrication_energy_limit:
            return (f"Reactor power too low to craft {plan.subject.name} at "
                    f"{reactor.output_tier.value} output. Increase reactor output.")
        return None

    def apply(self, plan):
        self.state.fabrication.enqueue(plan.subject)
        return ActionResult.ok(
            self.action_id, f"Queued {plan.subject.name} for overnight fabrication.",
            item=plan.subject.name, energy_cost=plan.subject.energy_cost,
        )


class ResolveIssueHandler(ActionHandler):
    """Fix an active issue using that issue's own AP and resource cost."""

    action_id = "resolve_issue"

    def plan(self, target, options):
        if target is None:
            return self.reject_target("No issue specified")
        issue = self.state.threat.get_issue(target)
        if issue is None:
            return self.reject_target(f"Issue {target} not found or already resolved")
        return ActionPlan(ap_cost=self.ap_cost(issue.ap_cost),
                          resource_costs=dict(issue.resource_costs), subject=issue)

    def apply(self, plan):
        issue = self.state.threat.resolve_issue(plan.subject.issue_id)
        return ActionResult.ok(
            self.action_id,
            f"Resolved {issue.issue_type}. Permanent threat -{issue.permanent_reduction}.",
            issue_id=issue.issue_id, threat_reduction=issue.permanent_reduction,
            temporary_released=issue.penalty,
        )


class RepairReactorHandler(ActionHandler):
    """Restore reactor health."""

    action_id = "repair_reactor"

    def plan(self, target, options):
        if self.state.reactor.health >= 100:
            return self.reject_target("Reactor is already at full health")
        return ActionPlan(ap_cost=self.ap_cost(), resource_costs=dict(self.spec.resource_costs))

    def apply(self, plan):
        restored = self.state.reactor.repair(self.engine.config.reactor.repair_amount)
        return ActionResult.ok(
            self.action_id,
            f"Reactor repaired (+{restored}). Health {self.state.reactor.health}%.",
            restored=restored, health=self.state.reactor.health,
        )


class SetDefensePowerHandler(ActionHandler):
    """Change the power setting of a standing defense."""

    action_id = "set_defense_power"

    def plan(self, target, options):
        defense = self.state.defenses.get(target) if target is not None else None
        if defense is None:
            return self.reject_target(f"Unknown defense: {target}")
        if defense.is_destroyed:
            return self.reject_target(f"{defense.defense_type} at {defense.location} is destroyed")
        setting = _parse_enum(PowerSetting, options.get("setting"))
        if setting is None:
            return self.reject_target(f"Unknown power setting: {options.get('setting')}")
        if setting == defense.power_setting:
            return self.reject_target(f"{defense.defense_type} already {setting.value}")
        return ActionPlan(ap_cost=self.ap_cost(), subject=defense, options={"setting": setting})

    def apply(self, plan):
        defense = plan.subject
        defense.power_setting = plan.options["setting"]
        return ActionResult.ok(
            self.action_id,
            f"{defense.defense_type} at {defense.location} set to {defense.power_setting.value}.",
            defense_id=defense.defense_id, setting=defense.power_setting.value,
        )


class ResearchHandler(ActionHandler):
    """Forecast tonight's assault from the current threat profile."""

    action_id = "research"

    def plan(self, target, options):
        return ActionPlan(ap_cost=self.ap_cost())

    def apply(self, plan):
        threat = self.state.threat
        level = threat.effective_level()
        per_level = self.engine.config.threat.damage_per_level
        low = level * per_level
        high = low + max(0, level * 2 - 1)
        return ActionResult.ok(
            self.action_id,
            f"Threat analysis: level {level} expected tonight "
            f"({threat.total_threat} TP), base damage {low}-{high}.",
            threat_level=level, total_threat=threat.total_threat,
            damage_range=(low, high), issue_damage=threat.issue_night_damage(),
        )


DEFAULT_HANDLERS = [
    ExploreHandler,
    ScavengeHandler,
    AdjustReactorHandler,
    BuildDefenseHandler,
    CraftHandler,
    ResolveIssueHandler,
    RepairReactorHandler,
    SetDefensePowerHandler,
    ResearchHandler,
]


def _parse_enum(enum_cls, value):
    """Accept an enum member or its value, case-insensitively."""
    if isinstance(value, enum_cls):
        return value
    if not isinstance(value, str):
        return None
    for member in enum_cls:
        if member.value.lower() == value.lower() or member.name.lower() == value.lower():
            return member
    return None


# =============================================================================
# RESOLVER
# =============================================================================

class ActionResolver:
    """Dispatches action attempts to their handlers and enforces the cost contract."""

    def __init__(self, engine: "GameEngine"):
        self.engine = engine
        self.handlers: Dict[str, ActionHandler] = {}
        self.history: list = []

        for handler_cls in DEFAULT_HANDLERS:
            self.register(handler_cls(engine))

    def register(self, handler: ActionHandler):
        """Register (or replace) the handler for an action id."""
        self.handlers[handler.action_id] = handler

    def resolve(self, action_id: str, target: Any = None, **options) -> ActionResult:
        """
        Validate and apply one action against the game state.

        Returns:
            ActionResult; on rejection nothing has been mutated.
        """
        handler = self.handlers.get(action_id)
        if handler is None or action_id not in self.engine.catalog:
            return ActionResult.rejected(action_id, ActionError.UNKNOWN_ACTION,
                                         f"Unknown action: {action_id}")

        planned = handler.plan(target, options)
        if isinstance(planned, ActionResult):
            return planned

        state = self.engine.state
        name = handler.spec.name

        if state.action_points < planned.ap_cost:
            return ActionResult.rejected(
                action_id, ActionError.INSUFFICIENT_ACTION_POINTS,
                f"Insufficient AP to {name}! Requires {planned.ap_cost}, have {state.action_points}.",
                required=planned.ap_cost, available=state.action_points,
            )

        power_problem = handler.check_power(planned)
        if power_problem:
            return ActionResult.rejected(action_id, ActionError.INSUFFICIENT_POWER, power_problem)

        if not state.ledger.can_afford(planned.resource_costs):
            missing = state.ledger.shortfall(planned.resource_costs)
            return ActionResult.rejected(
                action_id, ActionError.INSUFFICIENT_RESOURCES,
                f"Insufficient resources to {name}! Need: {format_costs(planned.resource_costs)}.",
                missing=missing,
            )

        state.action_points -= planned.ap_cost
        state.ledger.deduct(planned.resource_costs)

        result = handler.apply(planned)
        result.details["ap_spent"] = planned.ap_cost
        result.details["resources_spent"] = dict(planned.resource_costs)

        self.history.append({
            "day": state.day,
            "action_id": action_id,
            "ap_spent": planned.ap_cost,
            "message": result.message,
        })
        logger.debug(f"Performed {name}; AP remaining: {state.action_points}")
        return result

    def get_statistics(self) -> Dict:
        """Count of applied actions per action id."""
        counts: Dict[str, int] = {}
        for entry in self.history:
            counts[entry["action_id"]] = counts.get(entry["action_id"], 0) + 1
        return {"total_actions": len(self.history), "by_action": counts}
