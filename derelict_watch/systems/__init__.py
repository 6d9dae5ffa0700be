"""
Derelict Watch — Systems Package
Reactor, threat and issues, defenses, and fabrication.
"""

from .reactor import Reactor, ReactorNightReport, CoolingResult
from .threat import ThreatTracker, Issue, IssueTemplate, ISSUE_POOLS
from .defense import DefenseGrid, Defense, DefenseSpec, DEFENSE_SPECS, AttackReport
from .fabrication import FabricationUnit, Recipe, RECIPES

__all__ = [
    # Reactor
    'Reactor', 'ReactorNightReport', 'CoolingResult',
    # Threat
    'ThreatTracker', 'Issue', 'IssueTemplate', 'ISSUE_POOLS',
    # Defense
    'DefenseGrid', 'Defense', 'DefenseSpec', 'DEFENSE_SPECS', 'AttackReport',
    # Fabrication
    'FabricationUnit', 'Recipe', 'RECIPES',
]
