"""
Test: Day/Night Engine
Verifies day start upkeep, night resolution, phases, game over, and debug setters.
"""

import json

import pytest

from derelict_watch import GameEngine, GameConfig, ModuleRegistry, DayPhase
from derelict_watch.config import SurvivalConfig
from derelict_watch.core.actions import ActionError
from derelict_watch.core.engine import (
    CRITICAL_DEHYDRATION, DATA_CORRUPTED, HULL_BREACH, NIGHT_HINTS, REACTOR_MELTDOWN,
)


# =============================================================================
# DAY START
# =============================================================================

def test_day_start_hydration_ration():
    """Day start drinks 5 water and refills hydration."""
    engine = GameEngine(seed=1)
    assert engine.state.ledger["water"] == 30

    result = engine.start_day()

    assert result.success
    assert engine.day == 1
    assert engine.phase == DayPhase.DAY
    assert engine.state.ledger["water"] == 25
    assert engine.state.hydration == 100
    assert engine.state.action_points == 20
    assert engine.state.threat.threat_points == 20


def test_day_start_short_on_water():
    """Short on water: drink what is left and lose 20 hydration."""
    engine = GameEngine(seed=1)
    engine.set_resource_quantity("water", 3)

    engine.start_day()

    assert engine.state.ledger["water"] == 0
    assert engine.state.hydration == 80
    # No AP penalty on day 1
    assert engine.state.action_points == 20


def test_hydration_ap_penalty_from_day_two():
    engine = GameEngine(seed=1)
    engine.set_resource_quantity("water", 3)
    engine.start_day()
    engine.set_hydration(50)

    engine.end_day()
    engine.dismiss_report()

    assert engine.day == 2
    assert engine.state.hydration == 30
    assert engine.state.max_action_points == 15
    assert engine.state.action_points == 15


def test_ap_penalty_floor():
    config = GameConfig(survival=SurvivalConfig(base_max_action_points=8))
    engine = GameEngine(config, seed=1)
    engine.set_resource_quantity("water", 0)
    engine.start_day()
    engine.set_hydration(50)

    engine.end_day()
    engine.dismiss_report()

    assert engine.state.hydration == 30
    assert engine.state.action_points == 5


def test_dehydration_game_over():
    engine = GameEngine(seed=1)
    engine.set_resource_quantity("water", 0)
    engine.set_hydration(20)

    engine.start_day()

    assert engine.state.hydration == 0
    assert engine.is_game_over
    assert engine.state.game_over_reason == CRITICAL_DEHYDRATION
    assert engine.perform_action("research").error == ActionError.GAME_OVER


# =============================================================================
# NIGHT RESOLUTION
# =============================================================================

def test_night_coolant_and_report(engine):
    """Low output: 10 energy, 5 heat, 1 water of coolant."""
    water = engine.state.ledger["water"]

    result = engine.end_day()

    assert result.success
    assert engine.phase == DayPhase.REPORT
    report = engine.last_report
    assert report.day == 1
    assert report.energy_demand == 10.0
    assert report.heat_generated == 5.0
    assert report.coolant_used == 1
    assert report.reactor_damage == 0
    assert report.station_damage == 0
    assert report.observation in NIGHT_HINTS
    assert not report.data_corrupted
    assert engine.state.ledger["water"] == water - 1


def test_night_without_coolant_damages_reactor(engine):
    engine.set_resource_quantity("water", 0)
    engine.end_day()

    report = engine.last_report
    assert report.coolant_required == 1
    assert report.coolant_used == 0
    assert report.uncooled_heat == 5.0
    assert report.reactor_damage == 1
    assert engine.state.reactor.health == 99


def test_reactor_meltdown_ends_game(engine):
    """Reactor hits 0 during the night: game over, everything refused after."""
    engine.set_reactor_health(1)
    engine.set_resource_quantity("water", 0)

    engine.end_day()

    assert engine.state.reactor.health == 0
    assert engine.is_game_over
    assert engine.phase == DayPhase.GAME_OVER
    assert "meltdown" in engine.state.game_over_reason
    assert engine.state.game_over_reason == REACTOR_MELTDOWN

    snapshot = engine.snapshot()
    for outcome in (
        engine.perform_action("research"),
        engine.perform_action("explore"),
        engine.start_day(),
        engine.end_day(),
        engine.dismiss_report(),
        engine.set_hydration(100),
    ):
        assert not outcome.success
        assert outcome.error == ActionError.GAME_OVER
    assert engine.snapshot() == snapshot


def test_threat_drives_station_damage(engine):
    engine.state.threat.threat_points = 200

    engine.end_day()

    report = engine.last_report
    assert report.threat_level == 2
    assert 10 <= report.station_damage <= 13
    assert engine.state.station_integrity == 100 - report.station_damage
    assert report.aliens_neutralized >= 20


def test_unresolved_issue_adds_night_damage(engine, stub_rng):
    engine.rng = stub_rng(pick=1)
    engine.perform_action("explore", "Derelict Corridor")
    issue = engine.state.threat.active_issues[0]
    assert issue.issue_type == "Catastrophic Structural Failure"

    engine.end_day()

    # 20 + 20 permanent and 40 temporary threat: still level 0
    assert engine.last_report.threat_level == 0
    assert engine.last_report.station_damage == 15
    assert engine.last_report.unresolved_issues == ["Catastrophic Structural Failure in Derelict Corridor"]


def test_hull_breach(engine):
    engine.state.station_integrity = 5
    engine.state.threat.threat_points = 150

    engine.end_day()

    assert engine.state.station_integrity == 0
    assert engine.state.game_over_reason == HULL_BREACH


def test_game_over_reason_latched(engine):
    engine.state.station_integrity = 0
    engine.set_reactor_health(0)
    assert engine.check_game_over()
    assert engine.state.game_over_reason == REACTOR_MELTDOWN

    engine.state.reactor.health = 100
    assert engine.check_game_over()
    assert engine.state.game_over_reason == REACTOR_MELTDOWN


def test_zero_reactor_health_blocks_next_action(engine):
    engine.set_reactor_health(0)
    snapshot = engine.snapshot()

    result = engine.perform_action("scavenge")

    assert result.error == ActionError.GAME_OVER
    assert engine.state.game_over_reason == REACTOR_MELTDOWN
    assert engine.state.action_points == 20
    assert engine.state.ledger["alloys"] == snapshot["resources"]["alloys"]
    assert engine.state.ledger["water"] == snapshot["resources"]["water"]


def test_zero_hydration_blocks_night(engine):
    engine.set_hydration(0)

    result = engine.end_day()

    assert result.error == ActionError.GAME_OVER
    assert engine.state.game_over_reason == CRITICAL_DEHYDRATION
    assert engine.morning_reports == []
    assert engine.last_report is None


def test_zero_integrity_blocks_next_day(engine):
    engine.end_day()
    engine.state.station_integrity = 0

    assert engine.dismiss_report().error == ActionError.GAME_OVER
    assert engine.day == 1
    assert engine.state.game_over_reason == HULL_BREACH


def test_report_dict_is_a_copy(engine):
    engine.perform_action("explore", "Cargo Bay")
    result = engine.end_day()

    report = result.details["report"]
    report["unresolved_issues"].append("tampered")
    report["items_delivered"]["wiring"] = 99

    assert "tampered" not in engine.last_report.unresolved_issues
    assert "wiring" not in engine.last_report.items_delivered


def test_fabrication_delivered_overnight(engine):
    engine.perform_action("craft", "wiring")
    engine.end_day()

    assert engine.state.ledger["wiring"] == 21
    assert engine.last_report.items_delivered == {"wiring": 1}
    # 10 life support + 5 fabrication job
    assert engine.last_report.energy_demand == 15.0


def test_low_hydration_corrupts_report(engine):
    engine.set_hydration(40)
    engine.end_day()

    assert engine.last_report.data_corrupted
    assert engine.last_report.observation == DATA_CORRUPTED


def test_hydration_stays_in_bounds():
    engine = GameEngine(seed=5)
    engine.set_resource_quantity("water", 0)
    engine.start_day()
    while not engine.is_game_over:
        assert 0 <= engine.state.hydration <= 100
        if engine.phase == DayPhase.DAY:
            engine.end_day()
        if engine.phase == DayPhase.REPORT:
            engine.dismiss_report()
    assert 0 <= engine.state.hydration <= 100
    assert engine.state.game_over_reason == CRITICAL_DEHYDRATION


def test_threat_never_decreases_without_resolution(engine):
    previous = engine.state.threat.threat_points
    for _ in range(4):
        engine.perform_action("scavenge")
        engine.end_day()
        engine.dismiss_report()
        current = engine.state.threat.threat_points
        assert current >= previous
        previous = current


# =============================================================================
# PHASES
# =============================================================================

def test_actions_before_first_day():
    engine = GameEngine(seed=1)
    result = engine.perform_action("research")
    assert result.error == ActionError.WRONG_PHASE
    assert engine.end_day().error == ActionError.WRONG_PHASE


def test_phase_locks(engine):
    assert engine.start_day().error == ActionError.WRONG_PHASE
    assert engine.dismiss_report().error == ActionError.WRONG_PHASE

    engine.end_day()
    assert engine.phase == DayPhase.REPORT

    ap = engine.state.action_points
    assert engine.perform_action("research").error == ActionError.WRONG_PHASE
    assert engine.end_day().error == ActionError.WRONG_PHASE
    assert engine.state.action_points == ap

    assert engine.dismiss_report().success
    assert engine.phase == DayPhase.DAY
    assert engine.day == 2


def test_ap_exhaustion_ends_day(engine):
    engine.set_action_cost("research", 20)

    result = engine.perform_action("research")

    assert result.success
    assert result.details["day_ended"]
    assert engine.state.action_points == 0
    assert engine.phase == DayPhase.REPORT
    assert engine.last_report.day == 1


def test_callbacks(engine):
    seen = {"day": [], "night": [], "over": []}
    engine.on_day_start = lambda snap: seen["day"].append(snap["day"])
    engine.on_night_complete = lambda report: seen["night"].append(report.day)
    engine.on_game_over = lambda final: seen["over"].append(final["session_summary"]["game_over_reason"])

    engine.end_day()
    engine.dismiss_report()
    engine.set_reactor_health(1)
    engine.set_resource_quantity("water", 0)
    engine.end_day()

    assert seen["day"] == [2]
    assert seen["night"] == [1, 2]
    assert seen["over"] == [REACTOR_MELTDOWN]


def test_requires_discovered_start():
    registry = ModuleRegistry.default()
    for module in registry:
        module.discovered = False
    with pytest.raises(ValueError):
        GameEngine(modules=registry)


# =============================================================================
# DEBUG SETTERS
# =============================================================================

def test_debug_setters(engine):
    assert engine.set_hydration(60).success
    assert engine.state.hydration == 60

    assert engine.set_resource_quantity("circuitry", 12).success
    assert engine.state.ledger["circuitry"] == 12

    assert engine.set_reactor_health(42).success
    assert engine.state.reactor.health == 42

    assert engine.set_action_cost("research", 0).success
    assert engine.available_actions()["research"]["ap_cost"] == 0


@pytest.mark.parametrize("call", [
    lambda e: e.set_hydration(150),
    lambda e: e.set_hydration(-1),
    lambda e: e.set_hydration("full"),
    lambda e: e.set_hydration(True),
    lambda e: e.set_resource_quantity("unobtainium", 5),
    lambda e: e.set_resource_quantity("water", -1),
    lambda e: e.set_resource_quantity("water", 2.5),
    lambda e: e.set_reactor_health(101),
    lambda e: e.set_action_cost("teleport", 1),
    lambda e: e.set_action_cost("explore", -2),
])
def test_debug_setters_validate(engine, call):
    before = engine.snapshot()
    result = call(engine)
    assert result.error == ActionError.INVALID_DEBUG_INPUT
    assert engine.snapshot() == before
    assert engine.observation_log[-1]["message"].startswith("DEBUG")


# =============================================================================
# REPORTS
# =============================================================================

def test_snapshot_shape(engine):
    snapshot = engine.snapshot()
    for key in ("day", "phase", "action_points", "hydration", "station_integrity",
                "resources", "reactor", "modules", "defenses", "threat", "fabrication"):
        assert key in snapshot
    assert snapshot["phase"] == "DAY"
    assert snapshot["resources"]["water"] == 25


def test_export_log(engine, tmp_path):
    engine.perform_action("scavenge")
    engine.end_day()

    path = tmp_path / "session.json"
    engine.export_log(str(path))

    data = json.loads(path.read_text())
    assert data["session_summary"]["days_survived"] == 1
    assert len(data["morning_reports"]) == 1
    assert data["actions"]["by_action"] == {"scavenge": 1}
    assert all({"day", "phase", "level", "message"} <= set(e) for e in data["observation_log"])


def test_seeded_sessions_reproducible():
    def play(seed):
        engine = GameEngine(seed=seed)
        engine.start_day()
        engine.state.threat.threat_points = 300
        engine.perform_action("build_defense", "barricade")
        engine.perform_action("scavenge")
        engine.end_day()
        return engine.snapshot()

    assert play(13) == play(13)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
