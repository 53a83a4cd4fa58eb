import logging
import random

import pytest

from tests.helpers.factories import make_params, make_rules
from tests.helpers.invariants import assert_battle_bounded
from village_combat.domain.battle_models import Division, FieldPhase, Winner
from village_combat.rules.ruleset import RulesError
from village_combat.systems.field_battle import (
    MELEE_TICK_CAP,
    initial_morale,
    phase_stats,
    simulate,
    start_field_battle,
)


def _fixture_battle():
    rules = make_rules(rng_variance=0.0)
    return simulate(
        Division(warrior=50, archer=50),
        Division(warrior=40, archer=20),
        rules.unit_stats,
        rules.battle,
        random.Random(0),
    )


def test_initial_morale_and_phase_stats() -> None:
    stats = make_rules().unit_stats

    assert initial_morale(Division(warrior=50, archer=50), stats) == pytest.approx(95.0)
    assert initial_morale(Division(warrior=40, archer=20), stats) == pytest.approx(60.0)

    skirmish = phase_stats(50, 50, stats, FieldPhase.SKIRMISH)
    assert skirmish.attack == pytest.approx(15.0)
    assert skirmish.defence == pytest.approx(10.5)
    assert skirmish.pursuit == pytest.approx(3.5)

    empty = phase_stats(0, 0, stats, FieldPhase.MELEE)
    assert empty.attack == pytest.approx(0.1)
    assert empty.defence == pytest.approx(0.1)
    assert empty.pursuit == 0.0


def test_regression_skirmish_break_then_pursuit() -> None:
    result = _fixture_battle()

    assert result.winner == Winner.PLAYER
    assert result.ticks == 29
    phases = [tick.phase for tick in result.timeline]
    assert phases == ["skirmish"] * 9 + ["pursuit"] * 20

    first = result.timeline[0]
    assert first.player_to_enemy == pytest.approx(1.25, abs=1e-4)
    assert first.enemy_to_player == pytest.approx(0.205714, abs=1e-4)
    assert result.timeline[8].player_to_enemy == pytest.approx(1.478516, abs=1e-3)

    assert result.player_initial.total == pytest.approx(100.0)
    assert result.enemy_initial.total == pytest.approx(60.0)
    assert result.player_final.total == pytest.approx(98.440056, abs=1e-2)
    assert result.player_final.warrior == pytest.approx(result.player_final.archer)
    assert result.enemy_final.total == pytest.approx(30.591514, abs=1e-2)
    assert result.enemy_final.warrior == pytest.approx(2 * result.enemy_final.archer)
    assert result.player_final.morale == pytest.approx(93.752045, abs=2e-2)
    assert result.enemy_final.morale == pytest.approx(2.090633, abs=2e-2)
    assert_battle_bounded(result)


def test_pursuit_only_hurts_the_loser() -> None:
    result = _fixture_battle()

    pursuit = [tick for tick in result.timeline if tick.phase == "pursuit"]
    assert pursuit
    assert all(tick.enemy_to_player == 0.0 for tick in pursuit)
    assert all(tick.player_to_enemy == pytest.approx(0.86135, abs=1e-3) for tick in pursuit)
    assert all(tick.player_troops == pytest.approx(result.player_final.total) for tick in pursuit)


def test_empty_enemy_is_immediate_player_win() -> None:
    rules = make_rules()
    result = simulate(Division(warrior=10), Division(), rules.unit_stats, rules.battle, random.Random(1))

    assert result.winner == Winner.PLAYER
    assert result.ticks == 0
    assert result.timeline == ()
    assert result.player_final.total == pytest.approx(10.0)


def test_empty_player_is_immediate_enemy_win() -> None:
    rules = make_rules()
    result = simulate(Division(), Division(archer=25), rules.unit_stats, rules.battle, random.Random(1))

    assert result.winner == Winner.ENEMY
    assert result.ticks == 0


def test_both_empty_is_draw() -> None:
    rules = make_rules()
    result = simulate(Division(), Division(), rules.unit_stats, rules.battle, random.Random(1))

    assert result.winner == Winner.DRAW
    assert result.ticks == 0


def test_zero_morale_sides_draw_before_fighting() -> None:
    rules = make_rules()
    stats = {
        unit: {
            "skirmish_attack": s.skirmish_attack,
            "skirmish_defence": s.skirmish_defence,
            "melee_attack": s.melee_attack,
            "melee_defence": s.melee_defence,
            "pursuit": s.pursuit,
            "morale_per_100": 0,
        }
        for unit, s in rules.unit_stats.items()
    }
    result = simulate(Division(warrior=100), Division(warrior=80), stats, rules.battle, random.Random(2))

    assert result.winner == Winner.DRAW
    assert result.ticks == 0
    assert result.player_final.total == pytest.approx(100.0)


def test_melee_cap_decides_on_morale(caplog: pytest.LogCaptureFixture) -> None:
    rules = make_rules()
    params = make_params(
        skirmish_ticks=0,
        pursuit_ticks=0,
        base_casualty_rate=0.0,
        advantage_morale_tick=0.0,
    )
    session = start_field_battle(Division(warrior=100), Division(warrior=50), rules.unit_stats, params, random.Random(3))

    with caplog.at_level(logging.WARNING, logger="village_combat.systems.field_battle"):
        result = session.run()

    assert session.hit_melee_cap
    assert result.winner == Winner.PLAYER
    assert result.ticks == MELEE_TICK_CAP
    assert result.player_final.total == pytest.approx(100.0)
    assert any("without a break" in record.message for record in caplog.records)


def test_session_steps_until_resolved() -> None:
    rules = make_rules(rng_variance=0.0)
    session = start_field_battle(
        Division(warrior=50, archer=50),
        Division(warrior=40, archer=20),
        rules.unit_stats,
        rules.battle,
        random.Random(0),
    )

    first = session.step()
    assert first is not None
    assert first.tick == 1
    assert first.phase == "skirmish"

    steps = 1
    while session.step() is not None:
        steps += 1
    assert steps == 29
    assert session.phase == FieldPhase.RESOLVED
    assert session.step() is None


def test_unresolved_session_has_no_result() -> None:
    rules = make_rules()
    session = start_field_battle(Division(warrior=5), Division(warrior=5), rules.unit_stats, rules.battle, random.Random(4))

    with pytest.raises(RuntimeError):
        session.to_result()


def test_mapping_inputs_are_accepted() -> None:
    rules = make_rules(rng_variance=0.0)
    from_mappings = simulate(
        {"warrior": 50, "archer": 50},
        {"warrior": 40, "archer": 20},
        rules.unit_stats,
        {
            "skirmish_ticks": 30,
            "pursuit_ticks": 20,
            "base_casualty_rate": 0.6,
            "morale_per_casualty": 0.8,
            "advantage_morale_tick": 3,
            "break_pct": 35,
            "rng_variance": 0,
        },
        random.Random(0),
    )

    assert from_mappings == _fixture_battle()


def test_invalid_inputs_are_rejected() -> None:
    rules = make_rules()

    with pytest.raises(ValueError):
        Division(warrior=-1)
    with pytest.raises(ValueError):
        Division(archer=float("nan"))
    with pytest.raises(RulesError):
        simulate(Division(warrior=1), Division(warrior=1), {"warrior": rules.unit_stats["warrior"]}, rules.battle)
    with pytest.raises(RulesError):
        simulate(Division(warrior=1), Division(warrior=1), rules.unit_stats, {"skirmish_ticks": 1})
