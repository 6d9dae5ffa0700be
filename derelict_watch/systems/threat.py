"""
Derelict Watch — Threat & Issue System
Escalating alien threat and the station issues that temporarily amplify it.

Threat has two parts:
- Permanent threat points, raised by the daily tick, exploration and
  scavenging, and lowered only when an issue is resolved
- A temporary boost equal to the penalties of all unresolved issues

The effective threat level for a night is
floor((permanent + temporary) / threshold).
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional
import random
import logging

from ..config import RiskTier, ThreatConfig, THREAT

logger = logging.getLogger(__name__)


# =============================================================================
# ISSUE TEMPLATES
# =============================================================================

@dataclass
class IssueTemplate:
    """
    Template for a station issue.

    Used by the tracker to create consistent Issue instances.
    """
    issue_type: str
    penalty: int  # Temporary threat boost while unresolved
    ap_cost: int
    resource_costs: Dict[str, int]
    night_damage: int = 0  # Extra station damage each night while unresolved

    def create_issue(self, issue_id: str, location: str, risk: RiskTier) -> "Issue":
        """Create an Issue instance from this template."""
        return Issue(
            issue_id=issue_id,
            issue_type=self.issue_type,
            location=location,
            risk=risk,
            penalty=self.penalty,
            ap_cost=self.ap_cost,
            resource_costs=dict(self.resource_costs),
            night_damage=self.night_damage,
        )


ISSUE_POOLS: Dict[RiskTier, List[IssueTemplate]] = {
    RiskTier.MEDIUM: [
        IssueTemplate("Plasma Conduit Fluctuation", penalty=15, ap_cost=3,
                      resource_costs={"wiring": 5}, night_damage=5),
        IssueTemplate("Minor Structural Stress", penalty=10, ap_cost=4,
                      resource_costs={"alloys": 8}),
        IssueTemplate("Ventilation Malfunction", penalty=5, ap_cost=3,
                      resource_costs={"polymers": 6}),
    ],
    RiskTier.HIGH: [
        IssueTemplate("Critical Plasma Conduit Breach", penalty=30, ap_cost=8,
                      resource_costs={"wiring": 15, "alloys": 10, "circuitry": 2}),
        IssueTemplate("Catastrophic Structural Failure", penalty=40, ap_cost=10,
                      resource_costs={"alloys": 25, "polymers": 10, "circuitry": 3},
                      night_damage=15),
        IssueTemplate("Severe Bio-Contamination", penalty=25, ap_cost=9,
                      resource_costs={"polymers": 20, "circuitry": 5}),
        IssueTemplate("Reactor Coolant Leak", penalty=50, ap_cost=12,
                      resource_costs={"alloys": 25, "water": 15}),
    ],
}


@dataclass
class Issue:
    """An active station issue."""
    issue_id: str
    issue_type: str
    location: str
    risk: RiskTier
    penalty: int
    ap_cost: int
    resource_costs: Dict[str, int] = field(default_factory=dict)
    night_damage: int = 0
    resolved: bool = False

    @property
    def permanent_reduction(self) -> int:
        """Permanent threat removed when this issue is resolved."""
        return self.penalty // 2

    def get_status(self) -> Dict:
        return {
            "issue_id": self.issue_id,
            "type": self.issue_type,
            "location": self.location,
            "risk": self.risk.value,
            "penalty": self.penalty,
            "ap_cost": self.ap_cost,
            "resource_costs": dict(self.resource_costs),
            "night_damage": self.night_damage,
            "resolved": self.resolved,
        }


# =============================================================================
# THREAT TRACKER
# =============================================================================

class ThreatTracker:
    """Permanent threat points, the temporary boost, and the active issue list."""

    def __init__(self, config: ThreatConfig = THREAT):
        self.config = config
        self.threat_points = 0
        self.temporary_boost = 0
        self.active_issues: List[Issue] = []
        self.resolved_issues: List[Issue] = []
        self._next_issue = 1

    @property
    def threshold(self) -> int:
        return self.config.threat_level_threshold

    @property
    def total_threat(self) -> int:
        return self.threat_points + self.temporary_boost

    def effective_level(self) -> int:
        """Threat level driving tonight's assault."""
        return self.total_threat // self.threshold

    def permanent_level(self) -> int:
        """Threat level ignoring issue penalties."""
        return self.threat_points // self.threshold

    def add_threat(self, amount: int, reason: str = ""):
        """Raise permanent threat."""
        if amount < 0:
            raise ValueError(f"Threat increase cannot be negative: {amount}")
        self.threat_points += amount
        logger.info(f"Threat +{amount}{f' ({reason})' if reason else ''}: {self.threat_points} TP")

    def recompute_temporary_boost(self) -> int:
        """Temporary boost is the sum of unresolved issue penalties."""
        self.temporary_boost = sum(i.penalty for i in self.active_issues if not i.resolved)
        return self.temporary_boost

    def daily_accrual(self) -> int:
        """
        Start-of-day escalation.

        Returns:
            Total threat after accrual.
        """
        self.add_threat(self.config.daily_threat_increase, "daily escalation")
        self.recompute_temporary_boost()
        return self.total_threat

    def trigger_issue(self, location: str, risk: RiskTier, rng: random.Random) -> Issue:
        """
        Draw a random issue from the tier's pool and activate it.

        Raises:
            ValueError: for a tier with no issue pool (Safe).
        """
        pool = ISSUE_POOLS.get(risk)
        if not pool:
            raise ValueError(f"No issue pool for {risk.value} risk")

        template = rng.choice(pool)
        issue = template.create_issue(f"issue_{self._next_issue:03d}", location, risk)
        self._next_issue += 1

        self.active_issues.append(issue)
        self.temporary_boost += issue.penalty

        logger.warning(
            f"New {risk.value} issue: {issue.issue_type} in {location} "
            f"(temporary threat +{issue.penalty})"
        )
        return issue

    def get_issue(self, issue_id: str) -> Optional[Issue]:
        """Find an unresolved issue by id."""
        return next(
            (i for i in self.active_issues if i.issue_id == issue_id and not i.resolved),
            None,
        )

    def resolve_issue(self, issue_id: str) -> Optional[Issue]:
        """
        Close an issue: drop its temporary boost and apply the permanent reduction.

        AP and resource costs are charged by the action resolver beforehand.

        Returns:
            The resolved issue, or None if not found / already resolved.
        """
        issue = self.get_issue(issue_id)
        if issue is None:
            logger.warning(f"Issue {issue_id} not found or already resolved")
            return None

        issue.resolved = True
        self.active_issues.remove(issue)
        self.resolved_issues.append(issue)

        self.temporary_boost -= issue.penalty
        reduction = issue.permanent_reduction
        self.threat_points = max(0, self.threat_points - reduction)

        logger.info(f"Resolved {issue.issue_type}: permanent threat -{reduction}")
        return issue

    def issue_night_damage(self) -> int:
        """Station damage contributed by unresolved issues tonight."""
        return sum(i.night_damage for i in self.active_issues if not i.resolved)

    def get_status(self) -> Dict:
        return {
            "threat_points": self.threat_points,
            "temporary_boost": self.temporary_boost,
            "total_threat": self.total_threat,
            "threshold": self.threshold,
            "effective_level": self.effective_level(),
            "active_issues": [i.get_status() for i in self.active_issues],
            "resolved_count": len(self.resolved_issues),
        }
