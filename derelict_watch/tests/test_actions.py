"""
Tests for the action resolver:
- Rejection taxonomy and state preservation
- AP conservation
- Per-action effects
"""

import pytest

from derelict_watch.core.actions import ActionError, ActionResult, ActionHandler, ActionPlan
from derelict_watch.config import PowerSetting, PowerTier, RiskTier


def _state_fingerprint(engine):
    """Everything a rejected action must leave untouched."""
    state = engine.state
    return (
        state.action_points,
        dict(state.ledger.get_status()),
        state.threat.threat_points,
        state.threat.temporary_boost,
        len(state.threat.active_issues),
        tuple(m.discovered for m in state.modules),
        len(state.defenses),
        state.reactor.output_tier,
        state.reactor.health,
        len(state.fabrication.queue),
    )


# =============================================================================
# REJECTIONS
# =============================================================================

class TestRejections:
    """Rejected actions never mutate the game."""

    def test_unknown_action(self, engine):
        before = _state_fingerprint(engine)
        result = engine.perform_action("teleport")

        assert not result
        assert result.error == ActionError.UNKNOWN_ACTION
        assert _state_fingerprint(engine) == before

    def test_insufficient_action_points(self, engine):
        engine.set_action_cost("scavenge", 25)
        before = _state_fingerprint(engine)

        result = engine.perform_action("scavenge")

        assert result.error == ActionError.INSUFFICIENT_ACTION_POINTS
        assert result.details["required"] == 25
        assert _state_fingerprint(engine) == before

    def test_insufficient_resources(self, engine):
        engine.set_resource_quantity("alloys", 0)
        before = _state_fingerprint(engine)

        result = engine.perform_action("build_defense", "barricade")

        assert result.error == ActionError.INSUFFICIENT_RESOURCES
        assert result.details["missing"] == {"alloys": 10}
        assert _state_fingerprint(engine) == before

    def test_ap_checked_before_resources(self, engine):
        engine.set_resource_quantity("alloys", 0)
        engine.set_action_cost("build_defense", 50)

        result = engine.perform_action("build_defense", "barricade")
        assert result.error == ActionError.INSUFFICIENT_ACTION_POINTS

    def test_invalid_targets(self, engine):
        before = _state_fingerprint(engine)

        cases = [
            ("explore", "Command Center"),
            ("explore", "Bridge"),
            ("scavenge", "Cargo Bay"),
            ("adjust_reactor", "Ultra"),
            ("build_defense", "moat"),
            ("craft", "plasma rifle"),
            ("resolve_issue", "issue_999"),
            ("resolve_issue", None),
            ("set_defense_power", "defense_001"),
        ]
        for action_id, target in cases:
            result = engine.perform_action(action_id, target)
            assert result.error == ActionError.INVALID_TARGET, f"{action_id} {target}"

        assert _state_fingerprint(engine) == before

    def test_exploring_fully_discovered_station(self, engine):
        for module in engine.state.modules:
            module.discovered = True
        before = _state_fingerprint(engine)

        result = engine.perform_action("explore")

        assert result.error == ActionError.INVALID_TARGET
        assert "No more modules" in result.message
        assert _state_fingerprint(engine) == before

    def test_rejections_are_logged(self, engine):
        engine.perform_action("teleport")
        last = engine.observation_log[-1]
        assert last["level"] == "WARNING"
        assert "teleport" in last["message"]


# =============================================================================
# EFFECTS
# =============================================================================

class TestExplore:

    def test_explore_default_target(self, engine):
        result = engine.perform_action("explore")

        assert result.success
        assert result.details["module"] == "Cargo Bay"
        assert result.details["ap_spent"] == 4
        assert engine.state.action_points == 16
        assert engine.state.threat.threat_points == 30
        assert engine.state.modules.get("Cargo Bay").discovered

    def test_medium_risk_always_triggers_issue(self, engine):
        result = engine.perform_action("explore", "Cargo Bay")
        threat = engine.state.threat

        assert len(threat.active_issues) == 1
        issue = threat.active_issues[0]
        assert result.details["issue_id"] == issue.issue_id
        assert issue.location == "Cargo Bay"
        assert issue.risk == RiskTier.MEDIUM
        assert threat.temporary_boost == issue.penalty

    def test_high_risk_explore(self, engine):
        engine.perform_action("explore", "Derelict Corridor")

        assert engine.state.action_points == 14
        assert engine.state.threat.threat_points == 40
        assert engine.state.threat.active_issues[0].risk == RiskTier.HIGH

    def test_safe_explore_has_no_issue(self, engine):
        result = engine.perform_action("explore", "Hydroponics Lab")

        assert result.details["ap_spent"] == 2
        assert engine.state.threat.threat_points == 25
        assert engine.state.threat.active_issues == []
        assert result.details["issue_id"] is None


class TestScavenge:

    def test_scavenge_safe_module(self, engine):
        alloys = engine.state.ledger["alloys"]
        result = engine.perform_action("scavenge")

        assert result.success
        assert result.details["module"] == "Command Center"
        assert engine.state.action_points == 17
        assert engine.state.threat.threat_points == 25
        assert 2 <= engine.state.ledger["alloys"] - alloys <= 4
        assert all(amount > 0 for amount in result.details["found"].values())

    def test_scavenge_explicit_target(self, engine):
        engine.perform_action("explore", "Hydroponics Lab")
        result = engine.perform_action("scavenge", "Hydroponics Lab")
        assert result.details["module"] == "Hydroponics Lab"


class TestReactorActions:

    def test_adjust_reactor(self, engine):
        result = engine.perform_action("adjust_reactor", "Medium")

        assert result.success
        assert engine.state.reactor.output_tier == PowerTier.MEDIUM
        assert engine.state.action_points == 19

    def test_adjust_to_current_tier_is_free_rejection(self, engine):
        result = engine.perform_action("adjust_reactor", PowerTier.LOW)

        assert result.error == ActionError.INVALID_TARGET
        assert engine.state.action_points == 20

    def test_repair_reactor(self, engine):
        rejected = engine.perform_action("repair_reactor")
        assert rejected.error == ActionError.INVALID_TARGET

        engine.set_reactor_health(50)
        result = engine.perform_action("repair_reactor")

        assert result.success
        assert engine.state.reactor.health == 65
        assert engine.state.ledger["alloys"] == 45
        assert engine.state.ledger["wiring"] == 18
        assert engine.state.action_points == 16

    def test_repair_capped_at_full_health(self, engine):
        engine.set_reactor_health(95)
        result = engine.perform_action("repair_reactor")
        assert result.details["restored"] == 5
        assert engine.state.reactor.health == 100


class TestDefenseActions:

    def test_build_turret_default_location(self, engine):
        result = engine.perform_action("build_defense", "turret")

        assert result.success
        assert result.details["location"] == "Command Center"
        assert engine.state.ledger["alloys"] == 35
        assert engine.state.ledger["wiring"] == 15
        assert engine.state.action_points == 15

    def test_build_requires_discovered_location(self, engine):
        result = engine.perform_action("build_defense", "barricade", location="Cargo Bay")
        assert result.error == ActionError.INVALID_TARGET

        result = engine.perform_action("build_defense", "barricade", location="Reactor Core")
        assert result.success
        assert engine.state.defenses.defenses[0].location == "Reactor Core"

    def test_set_defense_power(self, engine):
        defense_id = engine.perform_action("build_defense", "barricade").details["defense_id"]

        result = engine.perform_action("set_defense_power", defense_id, setting="Overclocked")
        assert result.success
        assert engine.state.defenses.get(defense_id).power_setting == PowerSetting.OVERCLOCKED
        assert engine.state.action_points == 16

        same = engine.perform_action("set_defense_power", defense_id, setting=PowerSetting.OVERCLOCKED)
        assert same.error == ActionError.INVALID_TARGET

        bad = engine.perform_action("set_defense_power", defense_id, setting="Warp")
        assert bad.error == ActionError.INVALID_TARGET
        assert engine.state.action_points == 16


class TestCraft:

    def test_craft_within_power_limit(self, engine):
        result = engine.perform_action("craft", "wiring")

        assert result.success
        assert engine.state.ledger["polymers"] == 45
        assert len(engine.state.fabrication.queue) == 1
        # Delivered overnight, not now
        assert engine.state.ledger["wiring"] == 20

    def test_craft_needs_reactor_power(self, engine):
        before = _state_fingerprint(engine)
        result = engine.perform_action("craft", "energy_cell")

        assert result.error == ActionError.INSUFFICIENT_POWER
        assert _state_fingerprint(engine) == before

        engine.perform_action("adjust_reactor", "Medium")
        assert engine.perform_action("craft", "Energy Cell").success


class TestResolveIssue:

    def test_resolve_issue(self, engine):
        engine.perform_action("explore", "Cargo Bay")
        threat = engine.state.threat
        issue = threat.active_issues[0]
        ap_before = engine.state.action_points
        tp_before = threat.threat_points

        result = engine.perform_action("resolve_issue", issue.issue_id)

        assert result.success
        assert engine.state.action_points == ap_before - issue.ap_cost
        assert threat.threat_points == tp_before - issue.penalty // 2
        assert threat.temporary_boost == 0
        assert threat.active_issues == []

        again = engine.perform_action("resolve_issue", issue.issue_id)
        assert again.error == ActionError.INVALID_TARGET

    def test_resolve_issue_unaffordable(self, engine):
        engine.perform_action("explore", "Cargo Bay")
        issue = engine.state.threat.active_issues[0]
        for kind in issue.resource_costs:
            engine.set_resource_quantity(kind, 0)

        result = engine.perform_action("resolve_issue", issue.issue_id)
        assert result.error == ActionError.INSUFFICIENT_RESOURCES
        assert engine.state.threat.active_issues == [issue]


class TestResearch:

    def test_research_forecast(self, engine):
        result = engine.perform_action("research")

        assert result.success
        assert result.details["threat_level"] == 0
        assert result.details["total_threat"] == 20
        assert engine.state.action_points == 19

    def test_forecast_range(self, engine):
        engine.state.threat.threat_points = 250
        result = engine.perform_action("research")
        assert result.details["damage_range"] == (10, 13)


# =============================================================================
# CONTRACT
# =============================================================================

class TestCostContract:

    def test_ap_conservation(self, engine):
        plan = [
            ("scavenge", None, {}),
            ("explore", "Hydroponics Lab", {}),
            ("adjust_reactor", "High", {}),
            ("craft", "energy_cell", {}),
            ("build_defense", "barricade", {}),
            ("research", None, {}),
        ]
        for action_id, target, options in plan:
            before = engine.state.action_points
            result = engine.perform_action(action_id, target, **options)
            assert result.success, result.message
            assert engine.state.action_points == before - result.details["ap_spent"]
            assert engine.state.action_points >= 0

    def test_cost_override(self, engine):
        engine.set_action_cost("explore", 1)
        engine.perform_action("explore", "Derelict Corridor")
        assert engine.state.action_points == 19
        assert engine.available_actions()["explore"]["ap_cost"] == 1

    def test_custom_handler(self, engine):
        class NapHandler(ActionHandler):
            action_id = "research"

            def plan(self, target, options):
                return ActionPlan(ap_cost=self.ap_cost())

            def apply(self, plan):
                return ActionResult.ok(self.action_id, "Slept on it.")

        engine.resolver.register(NapHandler(engine))
        result = engine.perform_action("research")
        assert result.message == "Slept on it."
        assert engine.state.action_points == 19


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
