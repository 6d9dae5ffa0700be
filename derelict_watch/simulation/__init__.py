"""
Derelict Watch — Simulation Package
Campaign metrics and the autopilot commander.
"""

from .metrics import (
    DayMetrics,
    MetricsCollector,
    CampaignEvaluator,
)

from .autopilot import (
    Autopilot,
    Proposal,
    Tactic,
    ResolveIssueTactic,
    RepairReactorTactic,
    CoolantReserveTactic,
    FortifyTactic,
    ExploreTactic,
    ScavengeTactic,
)

__all__ = [
    # Metrics
    "DayMetrics",
    "MetricsCollector",
    "CampaignEvaluator",
    # Autopilot
    "Autopilot",
    "Proposal",
    "Tactic",
    "ResolveIssueTactic",
    "RepairReactorTactic",
    "CoolantReserveTactic",
    "FortifyTactic",
    "ExploreTactic",
    "ScavengeTactic",
]
