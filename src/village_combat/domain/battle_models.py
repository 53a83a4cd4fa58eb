"""Battle engine value objects."""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Mapping


class Winner(Enum):
    PLAYER = "player"
    ENEMY = "enemy"
    DRAW = "draw"


class FieldPhase(Enum):
    SKIRMISH = "skirmish"
    MELEE = "melee"
    PURSUIT = "pursuit"
    RESOLVED = "resolved"


class SiegePhase(Enum):
    WALL = "wall"
    INNER = "inner"
    RESOLVED = "resolved"


class InnerPhase(Enum):
    SKIRMISH = "skirmish"  # steps 1-3
    MELEE = "melee"  # steps 4-13
    PURSUIT = "pursuit"  # steps 14+


class SiegeOutcome(Enum):
    FORTRESS_HOLDS_WALLS = "fortress_holds_walls"
    FORTRESS_HOLDS_INNER = "fortress_holds_inner"
    FORTRESS_FALLS = "fortress_falls"
    STALEMATE = "stalemate"


@dataclass(frozen=True)
class Division:
    warrior: float = 0.0
    archer: float = 0.0

    def __post_init__(self) -> None:
        if not (math.isfinite(self.warrior) and math.isfinite(self.archer)):
            raise ValueError("Division counts must be finite")
        if self.warrior < 0 or self.archer < 0:
            raise ValueError("Division counts must be non-negative")

    @property
    def total(self) -> float:
        return self.warrior + self.archer

    @staticmethod
    def from_mapping(data: Mapping[str, float]) -> "Division":
        return Division(warrior=float(data.get("warrior", 0.0)), archer=float(data.get("archer", 0.0)))


@dataclass(frozen=True)
class DivisionSnapshot:
    warrior: float
    archer: float
    total: float
    morale: float | None = None


@dataclass(frozen=True)
class BattleTick:
    tick: int
    phase: str
    player_troops: float
    enemy_troops: float
    player_morale: float
    enemy_morale: float
    player_to_enemy: float
    enemy_to_player: float


@dataclass(frozen=True)
class BattleResult:
    winner: Winner
    ticks: int
    player_initial: DivisionSnapshot
    player_final: DivisionSnapshot
    enemy_initial: DivisionSnapshot
    enemy_final: DivisionSnapshot
    timeline: tuple[BattleTick, ...]


@dataclass(frozen=True)
class SiegeRound:
    round: int
    fort_hp: float
    attackers: float
    archers: float
    killed: float
    damage_to_fort: float


@dataclass(frozen=True)
class InnerBattleStep:
    step: int
    phase: str
    def_warriors: float
    def_archers: float
    defenders: float
    attackers: float
    killed_attackers: float
    killed_defenders: float


@dataclass(frozen=True)
class GarrisonCount:
    warriors: float = 0.0
    archers: float = 0.0

    @property
    def total(self) -> float:
        return self.warriors + self.archers


@dataclass(frozen=True)
class SiegeBattleResult:
    outcome: SiegeOutcome
    siege_rounds: int
    inner_steps: int
    initial_fort_hp: float
    final_fort_hp: float
    initial_attackers: float
    final_attackers: float
    initial_garrison: GarrisonCount
    final_garrison: GarrisonCount
    final_defenders: float
    siege_timeline: tuple[SiegeRound, ...]
    inner_timeline: tuple[InnerBattleStep, ...]


@dataclass(frozen=True)
class Squad:
    id: int
    type: str
    max_size: int
    current_size: int

    def __post_init__(self) -> None:
        if not 0 <= self.current_size <= self.max_size:
            raise ValueError(f"Squad {self.id}: current_size must be within [0, max_size]")

    def with_losses(self, losses: int) -> "Squad":
        return replace(self, current_size=max(0, self.current_size - max(0, losses)))


@dataclass(frozen=True)
class Banner:
    id: int
    name: str
    squads: tuple[Squad, ...] = ()
    kind: str = "regular"

    def total_size(self) -> int:
        return sum(squad.current_size for squad in self.squads)

    def type_size(self, unit_type: str) -> int:
        return sum(squad.current_size for squad in self.squads if squad.type == unit_type)

    def apply_losses(self, deductions: Mapping[int, int]) -> "Banner":
        """Return a copy with per-squad deductions applied."""
        return replace(
            self,
            squads=tuple(squad.with_losses(deductions.get(squad.id, 0)) for squad in self.squads),
        )


@dataclass(frozen=True)
class Fortress:
    fort_hp: float
    archer_slots: int
    garrison: tuple[int, ...] = field(default_factory=tuple)
