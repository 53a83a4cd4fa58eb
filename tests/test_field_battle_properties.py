import random

from hypothesis import given, settings
from hypothesis import strategies as st

from tests.helpers.factories import make_rules
from tests.helpers.invariants import assert_battle_bounded
from tests.helpers.strategies import division_strategy
from village_combat.domain.battle_models import Division, Winner
from village_combat.systems.field_battle import simulate


@settings(max_examples=40, deadline=None)
@given(division_strategy(), division_strategy(), st.integers(min_value=0, max_value=2**32))
def test_field_battle_never_creates_troops(player: Division, enemy: Division, seed: int) -> None:
    rules = make_rules()
    result = simulate(player, enemy, rules.unit_stats, rules.battle, random.Random(seed))

    assert_battle_bounded(result)
    assert result.player_initial.total == player.total
    assert result.enemy_initial.total == enemy.total


@settings(max_examples=25, deadline=None)
@given(division_strategy(max_val=300.0), st.integers(min_value=0, max_value=2**32))
def test_mirror_battle_without_variance_is_a_draw(division: Division, seed: int) -> None:
    rules = make_rules(rng_variance=0.0)
    result = simulate(division, division, rules.unit_stats, rules.battle, random.Random(seed))

    assert result.winner == Winner.DRAW
    assert result.player_final == result.enemy_final


@settings(max_examples=25, deadline=None)
@given(division_strategy(), division_strategy(), st.integers(min_value=0, max_value=2**32))
def test_same_seed_replays_the_same_battle(player: Division, enemy: Division, seed: int) -> None:
    rules = make_rules()
    first = simulate(player, enemy, rules.unit_stats, rules.battle, random.Random(seed))
    second = simulate(player, enemy, rules.unit_stats, rules.battle, random.Random(seed))

    assert first == second
