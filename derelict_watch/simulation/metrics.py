"""
Derelict Watch — Metrics Collection and Analysis
Per-day tracking and end-of-campaign evaluation.

Key metrics tracked:
- Station integrity and reactor health over time
- Water balance (hydration ration and reactor coolant)
- Threat escalation and issue load
- Defense attrition and aliens neutralized
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional
import json
import logging
import statistics

from ..core.engine import GameEngine, MorningReport

logger = logging.getLogger(__name__)


# =============================================================================
# METRIC DATA CLASSES
# =============================================================================

@dataclass
class DayMetrics:
    """One day of a campaign, captured after the night resolves."""
    day: int
    action_points_budget: int = 0
    action_points_unspent: int = 0
    actions_taken: int = 0

    station_integrity: int = 100
    station_damage: int = 0
    reactor_health: int = 100
    reactor_damage: int = 0
    reactor_tier: str = "Low"
    heat_generated: float = 0.0
    coolant_used: int = 0
    uncooled_heat: float = 0.0

    hydration: int = 100
    water: int = 0

    threat_level: int = 0
    total_threat: int = 0
    active_issues: int = 0
    aliens_neutralized: int = 0
    defenses_active: int = 0
    defenses_destroyed: int = 0
    modules_discovered: int = 0

    resources: Dict[str, int] = field(default_factory=dict)


class MetricsCollector:
    """
    Collects per-day metrics from a running engine.

    Provides:
    - Per-day snapshots after every night
    - Campaign-wide summary statistics
    - Export to JSON and CSV
    """

    def __init__(self):
        self.day_history: List[DayMetrics] = []
        self._ap_budget: int = 0
        self._actions_at_day_start: int = 0
        self.engine: Optional[GameEngine] = None

    def attach(self, engine: GameEngine):
        """Hook into an engine's day and night callbacks."""
        self.engine = engine
        engine.on_day_start = self._on_day_start
        engine.on_night_complete = self.record_night

    def _on_day_start(self, snapshot: Dict):
        self._ap_budget = snapshot["action_points"]
        self._actions_at_day_start = len(self.engine.resolver.history) if self.engine else 0

    def record_night(self, report: MorningReport):
        """
        Record the day that just ended.

        Args:
            report: Morning report produced by night resolution
        """
        engine = self.engine
        snapshot = engine.snapshot() if engine else {}

        metrics = DayMetrics(
            day=report.day,
            action_points_budget=self._ap_budget,
            station_integrity=report.station_integrity,
            station_damage=report.station_damage,
            reactor_health=report.reactor_health,
            reactor_damage=report.reactor_damage,
            reactor_tier=report.reactor_tier,
            heat_generated=report.heat_generated,
            coolant_used=report.coolant_used,
            uncooled_heat=report.uncooled_heat,
            hydration=report.hydration,
            threat_level=report.threat_level,
            total_threat=report.total_threat,
            active_issues=len(report.unresolved_issues),
            aliens_neutralized=report.aliens_neutralized,
        )

        if engine:
            state = engine.state
            metrics.action_points_unspent = state.action_points
            metrics.actions_taken = len(engine.resolver.history) - self._actions_at_day_start
            metrics.water = snapshot["resources"]["water"]
            metrics.resources = dict(snapshot["resources"])
            metrics.defenses_active = len(state.defenses.get_active())
            metrics.defenses_destroyed = len(state.defenses.get_destroyed())
            metrics.modules_discovered = len(state.modules.get_discovered())

        self.day_history.append(metrics)
        logger.debug(f"Recorded metrics for day {report.day}")

    @property
    def days_recorded(self) -> int:
        return len(self.day_history)

    def get_summary(self) -> Dict:
        """Get campaign metrics summary."""
        if not self.day_history:
            return {"days_recorded": 0}

        last = self.day_history[-1]
        station_damage = [d.station_damage for d in self.day_history]
        return {
            "days_recorded": self.days_recorded,
            "final_station_integrity": last.station_integrity,
            "final_reactor_health": last.reactor_health,
            "final_hydration": last.hydration,
            "peak_threat_level": max(d.threat_level for d in self.day_history),
            "total_station_damage": sum(station_damage),
            "mean_station_damage": statistics.mean(station_damage),
            "total_reactor_damage": sum(d.reactor_damage for d in self.day_history),
            "total_coolant_used": sum(d.coolant_used for d in self.day_history),
            "nights_without_coolant": sum(1 for d in self.day_history if d.uncooled_heat > 0),
            "total_aliens_neutralized": sum(d.aliens_neutralized for d in self.day_history),
            "total_actions": sum(d.actions_taken for d in self.day_history),
            "ap_utilization": self.ap_utilization(),
        }

    def ap_utilization(self) -> float:
        """Share of the AP budget actually spent across the campaign."""
        budget = sum(d.action_points_budget for d in self.day_history)
        if budget == 0:
            return 0.0
        unspent = sum(d.action_points_unspent for d in self.day_history)
        return (budget - unspent) / budget

    def export_json(self, filepath: str):
        """Export metrics to JSON file."""
        report = {
            "summary": self.get_summary(),
            "day_history": [d.__dict__ for d in self.day_history],
        }

        with open(filepath, 'w') as f:
            json.dump(report, f, indent=2, default=str)

        logger.info(f"Metrics exported to {filepath}")

    def export_csv_summary(self, filepath: str):
        """Export day history to CSV for analysis."""
        if not self.day_history:
            logger.warning("No day history to export")
            return

        import csv

        fieldnames = [
            "day",
            "station_integrity",
            "station_damage",
            "reactor_health",
            "reactor_damage",
            "reactor_tier",
            "coolant_used",
            "hydration",
            "water",
            "threat_level",
            "total_threat",
            "active_issues",
            "aliens_neutralized",
            "defenses_active",
        ]

        with open(filepath, 'w', newline='') as f:
            writer = csv.DictWriter(f, fieldnames=fieldnames)
            writer.writeheader()
            for day in self.day_history:
                writer.writerow({name: getattr(day, name) for name in fieldnames})

        logger.info(f"CSV summary exported to {filepath}")


# =============================================================================
# CAMPAIGN EVALUATOR
# =============================================================================

class CampaignEvaluator:
    """
    Grades a finished (or ongoing) campaign.

    Criteria:
    - Survived the target number of days
    - Station integrity held above half
    - Reactor never dropped into the critical band
    - Commander stayed hydrated
    """

    def __init__(self, metrics: MetricsCollector, target_days: int = 10):
        self.metrics = metrics
        self.target_days = target_days

    def evaluate(self) -> Dict:
        """
        Evaluate the campaign against all criteria.

        Returns:
            Dictionary with pass/fail status for each criterion
        """
        history = self.metrics.day_history
        results = {"overall_success": False, "criteria": {}}
        if not history:
            return results

        days = history[-1].day
        results["criteria"]["survival"] = {
            "requirement": f"{self.target_days} days",
            "achieved": f"{days} days",
            "passed": days >= self.target_days and history[-1].station_integrity > 0
                      and history[-1].reactor_health > 0,
        }

        integrity = history[-1].station_integrity
        results["criteria"]["station_integrity"] = {
            "requirement": "≥50%",
            "achieved": f"{integrity}%",
            "passed": integrity >= 50,
        }

        lowest_reactor = min(d.reactor_health for d in history)
        results["criteria"]["reactor_health"] = {
            "requirement": "Never below 25%",
            "achieved": f"{lowest_reactor}% minimum",
            "passed": lowest_reactor >= 25,
        }

        lowest_hydration = min(d.hydration for d in history)
        results["criteria"]["hydration"] = {
            "requirement": "Never below 50%",
            "achieved": f"{lowest_hydration}% minimum",
            "passed": lowest_hydration >= 50,
        }

        results["overall_success"] = all(c["passed"] for c in results["criteria"].values())
        return results

    def generate_report(self) -> str:
        """Generate human-readable evaluation report."""
        results = self.evaluate()

        lines = [
            "=" * 60,
            "DERELICT WATCH — CAMPAIGN EVALUATION REPORT",
            "=" * 60,
            "",
            f"Days Recorded: {self.metrics.days_recorded}",
            f"Overall Status: {'PASS ✓' if results['overall_success'] else 'FAIL ✗'}",
            "",
            "-" * 40,
            "CRITERIA",
            "-" * 40,
        ]

        for name, criteria in results["criteria"].items():
            status = "✓ PASS" if criteria["passed"] else "✗ FAIL"
            lines.append(f"  {name.replace('_', ' ').title()}:")
            lines.append(f"    Requirement: {criteria['requirement']}")
            lines.append(f"    Achieved: {criteria['achieved']}")
            lines.append(f"    Status: {status}")
            lines.append("")

        lines.append("=" * 60)
        return "\n".join(lines)
