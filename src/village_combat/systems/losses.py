"""Map aggregate casualties onto squads and banners.

Every function here is pure: it reads caller-owned squads/entries and returns
deductions keyed by id. ``Banner.apply_losses`` turns them into updated copies.
"""

from __future__ import annotations

import math
import random
from dataclasses import dataclass
from typing import Iterable, Sequence

from village_combat.domain.battle_models import Squad

# Share of a battle's total losses one squad may absorb in the random pass.
SOFT_CAP_SHARE = 0.33


@dataclass(frozen=True)
class LossEntry:
    banner_id: int
    count: int


def allocate_to_squads(squads: Sequence[Squad], total_losses: int, rng: random.Random) -> dict[int, int]:
    """Spread ``total_losses`` over squads: one each first, then random under a soft cap."""
    remaining_size = {squad.id: squad.current_size for squad in squads}
    deductions = {squad.id: 0 for squad in squads}
    losses = max(0, int(total_losses))
    if losses <= 0:
        return deductions

    if losses >= sum(remaining_size.values()):
        return {squad.id: squad.current_size for squad in squads}

    soft_cap = max(1, math.floor(losses * SOFT_CAP_SHARE))

    alive = [squad for squad in squads if squad.current_size > 0]
    for squad in alive[: min(len(alive), losses)]:
        remaining_size[squad.id] -= 1
        deductions[squad.id] += 1
        losses -= 1

    while losses > 0:
        # Wounds count pre-existing damage as well as this battle's losses.
        eligible = [
            squad
            for squad in squads
            if remaining_size[squad.id] > 0 and squad.max_size - remaining_size[squad.id] < soft_cap
        ]
        if not eligible:
            eligible = [squad for squad in squads if remaining_size[squad.id] > 0]
            if not eligible:
                break
        target = rng.choice(eligible)
        remaining_size[target.id] -= 1
        deductions[target.id] += 1
        losses -= 1

    return deductions


def allocate_across_banners(entries: Iterable[LossEntry], total_losses: float) -> dict[int, int]:
    """Largest-remainder split of one unit type's losses across banners."""
    entries = list(entries)
    allocation = {entry.banner_id: 0 for entry in entries}
    rounded = round_half_up(total_losses)
    if rounded <= 0 or not entries:
        return allocation

    total = sum(max(0, entry.count) for entry in entries)
    if total <= 0:
        return allocation

    safe_losses = min(rounded, total)
    allocated = 0
    shares: list[tuple[float, int, LossEntry]] = []
    for index, entry in enumerate(entries):
        capacity = max(0, entry.count)
        exact = (capacity / total) * safe_losses
        base = min(capacity, math.floor(exact))
        allocation[entry.banner_id] += base
        allocated += base
        shares.append((exact - math.floor(exact), index, entry))

    remaining = safe_losses - allocated
    for _fraction, _index, entry in sorted(shares, key=lambda item: (-item[0], item[1])):
        if remaining <= 0:
            break
        if allocation[entry.banner_id] < max(0, entry.count):
            allocation[entry.banner_id] += 1
            remaining -= 1

    return allocation


def trim_by_type(squads: Sequence[Squad], unit_type: str, losses: float) -> dict[int, int]:
    """Remove losses one at a time, round-robin over living squads of one type."""
    deductions = {squad.id: 0 for squad in squads}
    remaining = round_half_up(losses)
    targets = [squad for squad in squads if squad.type == unit_type]
    if remaining <= 0 or not targets:
        return deductions

    sizes = {squad.id: squad.current_size for squad in targets}
    while remaining > 0:
        applied = False
        for squad in targets:
            if remaining <= 0:
                break
            if sizes[squad.id] > 0:
                sizes[squad.id] -= 1
                deductions[squad.id] += 1
                remaining -= 1
                applied = True
        if not applied:
            break
    return deductions


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))
