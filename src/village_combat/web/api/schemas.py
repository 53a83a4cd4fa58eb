from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, validate_by_name=True)


class DivisionModel(CamelModel):
    warrior: float = Field(0.0, ge=0)
    archer: float = Field(0.0, ge=0)


class UnitStatsModel(CamelModel):
    skirmish_attack: float
    skirmish_defence: float
    melee_attack: float
    melee_defence: float
    pursuit: float
    morale_per_100: float


class BattleParamsModel(CamelModel):
    skirmish_ticks: int
    pursuit_ticks: int
    base_casualty_rate: float
    morale_per_casualty: float
    advantage_morale_tick: float
    break_pct: float
    rng_variance: float


class RulesResponse(CamelModel):
    unit_stats: Dict[str, UnitStatsModel]
    battle_params: BattleParamsModel


class RulesOverride(CamelModel):
    seed: Optional[int] = None
    unit_stats: Optional[Dict[str, UnitStatsModel]] = None
    battle_params: Optional[BattleParamsModel] = None


class FieldBattleRequest(RulesOverride):
    player: DivisionModel
    enemy: DivisionModel


class DivisionSnapshotModel(CamelModel):
    warrior: float
    archer: float
    total: float
    morale: Optional[float] = None


class BattleTickModel(CamelModel):
    tick: int
    phase: str
    player_troops: float
    enemy_troops: float
    player_morale: float
    enemy_morale: float
    player_to_enemy: float
    enemy_to_player: float


class FieldBattleResponse(CamelModel):
    winner: str
    ticks: int
    player_initial: DivisionSnapshotModel
    player_final: DivisionSnapshotModel
    enemy_initial: DivisionSnapshotModel
    enemy_final: DivisionSnapshotModel
    timeline: List[BattleTickModel]


class SiegeRequest(RulesOverride):
    fort_hp_max: Optional[float] = None
    wall_archer_capacity: Optional[float] = None
    garrison_warriors: Optional[float] = None
    garrison_archers: Optional[float] = None
    attackers: float = Field(..., ge=0)


class GarrisonModel(CamelModel):
    warriors: float
    archers: float
    total: float


class SiegeRoundModel(CamelModel):
    round: int
    fort_hp: float
    attackers: float
    archers: float
    killed: float
    damage_to_fort: float


class InnerBattleStepModel(CamelModel):
    step: int
    phase: str
    def_warriors: float
    def_archers: float
    defenders: float
    attackers: float
    killed_attackers: float
    killed_defenders: float


class SiegeResponse(CamelModel):
    outcome: str
    siege_rounds: int
    inner_steps: int
    initial_fort_hp: float
    final_fort_hp: float
    initial_attackers: float
    final_attackers: float
    initial_garrison: GarrisonModel
    final_garrison: GarrisonModel
    final_defenders: float
    siege_timeline: List[SiegeRoundModel]
    inner_timeline: List[InnerBattleStepModel]


class SquadModel(CamelModel):
    id: int
    type: str
    max_size: int = Field(..., ge=0)
    current_size: int = Field(..., ge=0)


class SquadLossRequest(CamelModel):
    seed: Optional[int] = None
    squads: List[SquadModel]
    total_losses: int = Field(..., ge=0)


class SquadLossResponse(CamelModel):
    deductions: Dict[int, int]
    squads: List[SquadModel]


class BannerLossEntryModel(CamelModel):
    banner_id: int
    count: int = Field(..., ge=0)


class BannerLossRequest(CamelModel):
    entries: List[BannerLossEntryModel]
    total_losses: float = Field(..., ge=0)


class BannerLossResponse(CamelModel):
    allocation: Dict[int, int]
