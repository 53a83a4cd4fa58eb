import random

from hypothesis import given, settings
from hypothesis import strategies as st

from tests.helpers.invariants import assert_deductions_within_squads
from tests.helpers.strategies import loss_entries_strategy, squads_strategy
from village_combat.systems.losses import allocate_across_banners, allocate_to_squads, round_half_up, trim_by_type


@settings(max_examples=150)
@given(squads_strategy(), st.integers(min_value=0, max_value=300), st.integers(min_value=0, max_value=2**32))
def test_squad_allocation_conserves_losses(squads, losses: int, seed: int) -> None:
    deductions = allocate_to_squads(squads, losses, random.Random(seed))
    strength = sum(s.current_size for s in squads)

    assert set(deductions) == {s.id for s in squads}
    assert_deductions_within_squads(squads, deductions)
    assert sum(deductions.values()) == min(losses, strength)


@settings(max_examples=150)
@given(
    loss_entries_strategy(),
    st.floats(min_value=0.0, max_value=500.0, allow_nan=False, allow_infinity=False),
)
def test_banner_allocation_is_bounded_and_complete(entries, losses: float) -> None:
    allocation = allocate_across_banners(entries, losses)
    capacity = sum(entry.count for entry in entries)

    assert set(allocation) == {entry.banner_id for entry in entries}
    for entry in entries:
        assert 0 <= allocation[entry.banner_id] <= entry.count
    assert sum(allocation.values()) == min(round_half_up(losses), capacity)


@settings(max_examples=150)
@given(
    squads_strategy(),
    st.sampled_from(["warrior", "archer"]),
    st.integers(min_value=0, max_value=200),
)
def test_trim_only_touches_one_type(squads, unit_type: str, losses: int) -> None:
    deductions = trim_by_type(squads, unit_type, losses)
    available = sum(s.current_size for s in squads if s.type == unit_type)

    assert_deductions_within_squads(squads, deductions)
    assert sum(deductions.values()) == min(losses, available)
    for squad in squads:
        if squad.type != unit_type:
            assert deductions[squad.id] == 0
