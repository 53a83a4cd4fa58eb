from __future__ import annotations

from dataclasses import asdict
from typing import Iterable

from village_combat.domain.battle_models import BattleResult, GarrisonCount, SiegeBattleResult, Squad
from village_combat.rules.ruleset import CombatRules
from village_combat.web.api import schemas


def build_rules_response(rules: CombatRules) -> schemas.RulesResponse:
    return schemas.RulesResponse(
        unit_stats={
            unit_type: schemas.UnitStatsModel(**asdict(stats)) for unit_type, stats in rules.unit_stats.items()
        },
        battle_params=schemas.BattleParamsModel(**asdict(rules.battle)),
    )


def build_field_response(result: BattleResult) -> schemas.FieldBattleResponse:
    return schemas.FieldBattleResponse(
        winner=result.winner.value,
        ticks=result.ticks,
        player_initial=schemas.DivisionSnapshotModel(**asdict(result.player_initial)),
        player_final=schemas.DivisionSnapshotModel(**asdict(result.player_final)),
        enemy_initial=schemas.DivisionSnapshotModel(**asdict(result.enemy_initial)),
        enemy_final=schemas.DivisionSnapshotModel(**asdict(result.enemy_final)),
        timeline=[schemas.BattleTickModel(**asdict(tick)) for tick in result.timeline],
    )


def build_siege_response(result: SiegeBattleResult) -> schemas.SiegeResponse:
    return schemas.SiegeResponse(
        outcome=result.outcome.value,
        siege_rounds=result.siege_rounds,
        inner_steps=result.inner_steps,
        initial_fort_hp=result.initial_fort_hp,
        final_fort_hp=result.final_fort_hp,
        initial_attackers=result.initial_attackers,
        final_attackers=result.final_attackers,
        initial_garrison=_garrison(result.initial_garrison),
        final_garrison=_garrison(result.final_garrison),
        final_defenders=result.final_defenders,
        siege_timeline=[schemas.SiegeRoundModel(**asdict(entry)) for entry in result.siege_timeline],
        inner_timeline=[schemas.InnerBattleStepModel(**asdict(entry)) for entry in result.inner_timeline],
    )


def to_squads(models: Iterable[schemas.SquadModel]) -> list[Squad]:
    return [
        Squad(id=model.id, type=model.type, max_size=model.max_size, current_size=model.current_size)
        for model in models
    ]


def from_squads(squads: Iterable[Squad]) -> list[schemas.SquadModel]:
    return [schemas.SquadModel(**asdict(squad)) for squad in squads]


def _garrison(garrison: GarrisonCount) -> schemas.GarrisonModel:
    return schemas.GarrisonModel(warriors=garrison.warriors, archers=garrison.archers, total=garrison.total)
