from __future__ import annotations

from hypothesis import strategies as st

from village_combat.domain.battle_models import Division, Squad
from village_combat.systems.losses import LossEntry


def division_strategy(max_val: float = 500.0) -> st.SearchStrategy[Division]:
    counts = st.floats(min_value=0.0, max_value=max_val, allow_nan=False, allow_infinity=False)
    return st.builds(Division, warrior=counts, archer=counts)


@st.composite
def squad_strategy(draw, squad_id: int) -> Squad:
    max_size = draw(st.integers(min_value=1, max_value=20))
    current_size = draw(st.integers(min_value=0, max_value=max_size))
    unit_type = draw(st.sampled_from(["warrior", "archer"]))
    return Squad(id=squad_id, type=unit_type, max_size=max_size, current_size=current_size)


@st.composite
def squads_strategy(draw, max_squads: int = 12) -> list[Squad]:
    count = draw(st.integers(min_value=0, max_value=max_squads))
    return [draw(squad_strategy(squad_id)) for squad_id in range(1, count + 1)]


@st.composite
def loss_entries_strategy(draw, max_entries: int = 8) -> list[LossEntry]:
    count = draw(st.integers(min_value=0, max_value=max_entries))
    return [
        LossEntry(banner_id=banner_id, count=draw(st.integers(min_value=0, max_value=60)))
        for banner_id in range(1, count + 1)
    ]
