from __future__ import annotations

import random

from fastapi import APIRouter, HTTPException

from village_combat.domain.battle_models import Division
from village_combat.rules.ruleset import CombatRules, RulesError, default_rules
from village_combat.sim.rng import make_rng
from village_combat.systems.field_battle import simulate
from village_combat.systems.losses import LossEntry, allocate_across_banners, allocate_to_squads
from village_combat.systems.siege import SiegeContextError, simulate_siege
from village_combat.web.api import mappers, schemas

router = APIRouter(prefix="/api")


def _rules_for(payload: schemas.RulesOverride) -> CombatRules:
    unit_stats = None
    if payload.unit_stats is not None:
        unit_stats = {unit_type: stats.model_dump() for unit_type, stats in payload.unit_stats.items()}
    battle = payload.battle_params.model_dump() if payload.battle_params is not None else None
    return default_rules().with_overrides(unit_stats=unit_stats, battle=battle)


def _rng_for(seed: int | None, stream: str) -> random.Random:
    if seed is None:
        return random.Random()
    return make_rng(seed, stream=stream, purpose="api")


@router.get("/health")
async def health():
    return {"status": "ok"}


@router.get("/rules", response_model=schemas.RulesResponse)
async def get_rules():
    return mappers.build_rules_response(default_rules())


@router.post("/battles/field", response_model=schemas.FieldBattleResponse)
async def run_field_battle(payload: schemas.FieldBattleRequest):
    try:
        rules = _rules_for(payload)
        result = simulate(
            Division(warrior=payload.player.warrior, archer=payload.player.archer),
            Division(warrior=payload.enemy.warrior, archer=payload.enemy.archer),
            rules.unit_stats,
            rules.battle,
            _rng_for(payload.seed, "field"),
        )
    except (RulesError, ValueError) as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return mappers.build_field_response(result)


@router.post("/battles/siege", response_model=schemas.SiegeResponse)
async def run_siege(payload: schemas.SiegeRequest):
    try:
        rules = _rules_for(payload)
        result = simulate_siege(
            payload.fort_hp_max,
            payload.wall_archer_capacity,
            payload.garrison_warriors,
            payload.garrison_archers,
            payload.attackers,
            rules.unit_stats,
            rules.battle,
        )
    except (RulesError, SiegeContextError, ValueError) as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return mappers.build_siege_response(result)


@router.post("/losses/squads", response_model=schemas.SquadLossResponse)
async def split_squad_losses(payload: schemas.SquadLossRequest):
    try:
        squads = mappers.to_squads(payload.squads)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    deductions = allocate_to_squads(squads, payload.total_losses, _rng_for(payload.seed, "squads"))
    updated = [squad.with_losses(deductions.get(squad.id, 0)) for squad in squads]
    return schemas.SquadLossResponse(deductions=deductions, squads=mappers.from_squads(updated))


@router.post("/losses/banners", response_model=schemas.BannerLossResponse)
async def split_banner_losses(payload: schemas.BannerLossRequest):
    allocation = allocate_across_banners(
        [LossEntry(banner_id=entry.banner_id, count=entry.count) for entry in payload.entries],
        payload.total_losses,
    )
    return schemas.BannerLossResponse(allocation=allocation)
