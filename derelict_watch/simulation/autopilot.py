"""
Derelict Watch — Autopilot Commander
Scripted priority policy for unattended campaign runs.

Priority order (first tactic whose action succeeds wins, repeat until
nothing more can be done that day):
| Situation | Tactic |
|-----------|--------|
| Active issue the station can pay for | Resolve the cheapest one |
| Reactor health below the repair line | Repair the reactor |
| Water below the coolant reserve | Scavenge the riskiest discovered module |
| Fewer defenses than threat warrants | Build a barricade (turret if wiring allows) |
| Undiscovered module within AP budget | Explore it |
| Spare AP | Scavenge |
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
import logging

from ..core.engine import GameEngine, DayPhase
from ..core.actions import ActionResult
from ..config import RiskTier

logger = logging.getLogger(__name__)


@dataclass
class Proposal:
    """An action the autopilot wants to try."""
    action_id: str
    target: Any = None
    options: Dict[str, Any] = field(default_factory=dict)
    reason: str = ""


# =============================================================================
# TACTIC BASE CLASS
# =============================================================================

class Tactic(ABC):
    """
    Base class for autopilot tactics.

    Each tactic looks at the engine and either proposes one action or passes.
    """

    name: str = ""

    @abstractmethod
    def propose(self, engine: GameEngine) -> Optional[Proposal]:
        """Return an action to try, or None to pass."""
        pass


class ResolveIssueTactic(Tactic):
    name = "resolve_issue"

    def propose(self, engine):
        state = engine.state
        affordable = [
            i for i in state.threat.active_issues
            if i.ap_cost <= state.action_points and state.ledger.can_afford(i.resource_costs)
        ]
        if not affordable:
            return None
        issue = min(affordable, key=lambda i: i.ap_cost)
        return Proposal("resolve_issue", issue.issue_id, reason=f"clear {issue.issue_type}")


class RepairReactorTactic(Tactic):
    name = "repair_reactor"

    def __init__(self, repair_below: int = 70):
        self.repair_below = repair_below

    def propose(self, engine):
        if engine.state.reactor.health >= self.repair_below:
            return None
        return Proposal("repair_reactor", reason=f"reactor at {engine.state.reactor.health}%")


class CoolantReserveTactic(Tactic):
    name = "coolant_reserve"

    def __init__(self, reserve: int = 15):
        self.reserve = reserve

    def propose(self, engine):
        state = engine.state
        if state.ledger.get("water") >= self.reserve:
            return None
        discovered = state.modules.get_discovered()
        if not discovered:
            return None
        # Riskier modules yield more water
        order = [RiskTier.HIGH, RiskTier.MEDIUM, RiskTier.SAFE]
        target = min(discovered, key=lambda m: order.index(m.risk))
        return Proposal("scavenge", target.name, reason="water below coolant reserve")


class FortifyTactic(Tactic):
    name = "fortify"

    def propose(self, engine):
        state = engine.state
        wanted = state.threat.effective_level() + 1
        if len(state.defenses.get_active()) >= wanted:
            return None
        spec = "turret" if state.ledger.get("wiring") >= 10 else "barricade"
        return Proposal("build_defense", spec, reason=f"{wanted} defenses wanted")


class ExploreTactic(Tactic):
    name = "explore"

    def __init__(self, avoid_high_risk: bool = True):
        self.avoid_high_risk = avoid_high_risk

    def propose(self, engine):
        for module in engine.state.modules.get_undiscovered():
            if self.avoid_high_risk and module.risk == RiskTier.HIGH:
                continue
            return Proposal("explore", module.name, reason=f"{module.risk.value} risk section")
        return None


class ScavengeTactic(Tactic):
    name = "scavenge"

    def propose(self, engine):
        return Proposal("scavenge", reason="spare AP")


DEFAULT_TACTICS = [
    ResolveIssueTactic,
    RepairReactorTactic,
    CoolantReserveTactic,
    FortifyTactic,
    ExploreTactic,
    ScavengeTactic,
]


# =============================================================================
# AUTOPILOT
# =============================================================================

class Autopilot:
    """
    Plays a session against a GameEngine.

    The day ends when every tactic passes or is rejected, or when the engine
    ends it on AP exhaustion.
    """

    def __init__(self, engine: GameEngine, tactics: Optional[List[Tactic]] = None,
                 max_actions_per_day: int = 40):
        self.engine = engine
        self.tactics = tactics if tactics is not None else [t() for t in DEFAULT_TACTICS]
        self.max_actions_per_day = max_actions_per_day
        self.decision_log: List[Dict] = []

    def _try(self, proposal: Proposal) -> ActionResult:
        result = self.engine.perform_action(proposal.action_id, proposal.target, **proposal.options)
        self.decision_log.append({
            "day": self.engine.day,
            "action_id": proposal.action_id,
            "target": proposal.target,
            "reason": proposal.reason,
            "success": result.success,
            "error": result.error.name if result.error else None,
        })
        return result

    def play_day(self) -> int:
        """
        Spend the current day's AP.

        Returns:
            Number of actions applied.
        """
        engine = self.engine
        applied = 0

        while engine.phase == DayPhase.DAY and applied < self.max_actions_per_day:
            acted = False
            for tactic in self.tactics:
                proposal = tactic.propose(engine)
                if proposal is None:
                    continue
                if self._try(proposal).success:
                    applied += 1
                    acted = True
                    break
            if not acted:
                break

        if engine.phase == DayPhase.DAY:
            engine.end_day()
        return applied

    def run(self, days: int) -> Dict:
        """
        Play up to `days` days or until the game ends.

        Returns:
            The engine's final report.
        """
        engine = self.engine
        if engine.phase == DayPhase.NOT_STARTED:
            engine.start_day()

        while not engine.is_game_over:
            if engine.phase == DayPhase.DAY:
                self.play_day()
            if engine.is_game_over or engine.day >= days:
                break
            if engine.phase == DayPhase.REPORT:
                engine.dismiss_report()

        logger.info(
            f"Autopilot finished on day {engine.day}"
            f"{': ' + engine.state.game_over_reason if engine.is_game_over else ''}"
        )
        return engine.get_final_report()

    def get_statistics(self) -> Dict:
        """Decision counts and rejection rate."""
        if not self.decision_log:
            return {"total_decisions": 0, "success_rate": 0.0, "by_action": {}}

        by_action: Dict[str, int] = {}
        for entry in self.decision_log:
            if entry["success"]:
                by_action[entry["action_id"]] = by_action.get(entry["action_id"], 0) + 1
        successes = sum(1 for e in self.decision_log if e["success"])
        return {
            "total_decisions": len(self.decision_log),
            "success_rate": successes / len(self.decision_log),
            "by_action": by_action,
        }
