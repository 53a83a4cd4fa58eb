from __future__ import annotations

import itertools
from dataclasses import replace
from typing import Sequence

from village_combat.domain.battle_models import Banner, Squad
from village_combat.rules.ruleset import BattleParams, CombatRules, default_rules

_squad_ids = itertools.count(1)


def make_rules(**battle_overrides) -> CombatRules:
    """Bundled default rules, with optional BattleParams overrides."""
    rules = default_rules()
    if battle_overrides:
        rules = replace(rules, battle=replace(rules.battle, **battle_overrides))
    return rules


def make_params(**overrides) -> BattleParams:
    return make_rules(**overrides).battle


def make_squads(unit_type: str, sizes: Sequence[int], *, max_size: int = 10) -> list[Squad]:
    return [
        Squad(id=next(_squad_ids), type=unit_type, max_size=max_size, current_size=size)
        for size in sizes
    ]


def make_banner(
    banner_id: int,
    *,
    name: str | None = None,
    warriors: Sequence[int] = (),
    archers: Sequence[int] = (),
    kind: str = "regular",
) -> Banner:
    squads = make_squads("warrior", warriors) + make_squads("archer", archers)
    return Banner(id=banner_id, name=name or f"Banner {banner_id}", squads=tuple(squads), kind=kind)
