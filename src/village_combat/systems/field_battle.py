from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import Any, Mapping

from village_combat.domain.battle_models import (
    BattleResult,
    BattleTick,
    Division,
    DivisionSnapshot,
    FieldPhase,
    Winner,
)
from village_combat.rules.ruleset import (
    BattleParams,
    UnitTypeStats,
    coerce_battle_params,
    coerce_unit_stats,
)

logger = logging.getLogger(__name__)

UNIT_TYPES = ("warrior", "archer")

# Floor for effective attack/defence so a side with no relevant stats never divides by zero.
STAT_EPSILON = 0.1

# Melee has no natural length; the cap ends battles where neither side can hurt the other.
MELEE_TICK_CAP = 5000

PURSUIT_BLEED = 0.25


@dataclass(frozen=True)
class PhaseStats:
    attack: float
    defence: float
    pursuit: float


@dataclass()
class _SideState:
    warrior: float
    archer: float
    morale: float = 0.0
    break_threshold: float = 0.0

    def total(self) -> float:
        return max(0.0, self.warrior + self.archer)

    def wiped(self) -> bool:
        return self.total() <= 0

    def broken(self) -> bool:
        return self.morale <= self.break_threshold

    def out_of_action(self) -> bool:
        return self.wiped() or self.broken()

    def apply_casualties(self, losses: float) -> None:
        size = self.total()
        if size <= 0 or losses <= 0:
            return
        warrior_share = self.warrior / size
        archer_share = self.archer / size
        self.warrior = max(0.0, self.warrior - losses * warrior_share)
        self.archer = max(0.0, self.archer - losses * archer_share)

    def snapshot(self, *, with_morale: bool = False) -> DivisionSnapshot:
        return DivisionSnapshot(
            warrior=self.warrior,
            archer=self.archer,
            total=self.total(),
            morale=self.morale if with_morale else None,
        )


def initial_morale(division: Division, stats: Mapping[str, UnitTypeStats]) -> float:
    return sum((getattr(division, unit) / 100) * stats[unit].morale_per_100 for unit in UNIT_TYPES)


def phase_stats(warrior: float, archer: float, stats: Mapping[str, UnitTypeStats], phase: FieldPhase) -> PhaseStats:
    attack = 0.0
    defence = 0.0
    pursuit = 0.0
    for unit, count in (("warrior", warrior), ("archer", archer)):
        per_100 = count / 100
        unit_stats = stats[unit]
        if phase == FieldPhase.SKIRMISH:
            attack += per_100 * unit_stats.skirmish_attack
            defence += per_100 * unit_stats.skirmish_defence
        elif phase == FieldPhase.MELEE:
            attack += per_100 * unit_stats.melee_attack
            defence += per_100 * unit_stats.melee_defence
        pursuit += per_100 * unit_stats.pursuit
    return PhaseStats(
        attack=max(STAT_EPSILON, attack),
        defence=max(STAT_EPSILON, defence),
        pursuit=max(0.0, pursuit),
    )


@dataclass()
class FieldBattleSession:
    """Phase state machine for one field battle: skirmish, melee, pursuit, resolved."""

    rng: random.Random
    stats: Mapping[str, UnitTypeStats]
    params: BattleParams
    player: _SideState
    enemy: _SideState

    phase: FieldPhase = FieldPhase.SKIRMISH
    tick: int = 0
    phase_ticks: int = 0
    winner: Winner | None = None
    hit_melee_cap: bool = False
    timeline: list[BattleTick] = field(default_factory=list)

    def __post_init__(self) -> None:
        self._initial_player = self.player.snapshot()
        self._initial_enemy = self.enemy.snapshot()

    def step(self) -> BattleTick | None:
        """Advance one tick. Returns None once the battle is resolved."""
        while self.phase != FieldPhase.RESOLVED:
            if self.phase == FieldPhase.SKIRMISH:
                if self.phase_ticks >= self.params.skirmish_ticks or self._either_out():
                    self._enter(FieldPhase.MELEE)
                    continue
                return self._exchange(FieldPhase.SKIRMISH)
            if self.phase == FieldPhase.MELEE:
                if self._either_out():
                    self._decide_winner()
                    continue
                if self.phase_ticks >= MELEE_TICK_CAP:
                    self.hit_melee_cap = True
                    logger.warning("Melee reached %d ticks without a break; deciding on morale", MELEE_TICK_CAP)
                    self._decide_winner()
                    continue
                return self._exchange(FieldPhase.MELEE)
            if self.phase == FieldPhase.PURSUIT:
                if (
                    self.phase_ticks >= self.params.pursuit_ticks
                    or self.player.wiped()
                    or self.enemy.wiped()
                ):
                    self._enter(FieldPhase.RESOLVED)
                    continue
                return self._pursue()
        return None

    def run(self) -> BattleResult:
        while self.step() is not None:
            pass
        return self.to_result()

    def _either_out(self) -> bool:
        return self.player.out_of_action() or self.enemy.out_of_action()

    def _enter(self, phase: FieldPhase) -> None:
        logger.debug("Field battle tick %d: %s -> %s", self.tick, self.phase.value, phase.value)
        self.phase = phase
        self.phase_ticks = 0

    def _noise(self) -> float:
        return 1.0 + (self.rng.random() * 2.0 - 1.0) * self.params.rng_variance

    def _exchange(self, phase: FieldPhase) -> BattleTick:
        player_stats = phase_stats(self.player.warrior, self.player.archer, self.stats, phase)
        enemy_stats = phase_stats(self.enemy.warrior, self.enemy.archer, self.stats, phase)
        player_scale = self.player.total() / 100
        enemy_scale = self.enemy.total() / 100
        player_ratio = player_stats.attack / enemy_stats.defence
        enemy_ratio = enemy_stats.attack / player_stats.defence
        player_noise = self._noise()
        enemy_noise = self._noise()

        to_enemy = self.params.base_casualty_rate * player_scale * player_ratio * player_noise
        to_player = self.params.base_casualty_rate * enemy_scale * enemy_ratio * enemy_noise

        self.player.apply_casualties(to_player)
        self.enemy.apply_casualties(to_enemy)
        self.enemy.morale -= self.params.morale_per_casualty * to_enemy + self.params.advantage_morale_tick * max(
            0.0, player_ratio - 1.0
        )
        self.player.morale -= self.params.morale_per_casualty * to_player + self.params.advantage_morale_tick * max(
            0.0, enemy_ratio - 1.0
        )
        return self._record(phase, to_enemy=to_enemy, to_player=to_player)

    def _pursue(self) -> BattleTick:
        to_enemy = 0.0
        to_player = 0.0
        if self.winner == Winner.PLAYER:
            chaser = phase_stats(self.player.warrior, self.player.archer, self.stats, FieldPhase.MELEE)
            to_enemy = PURSUIT_BLEED * chaser.pursuit / max(1.0, self.enemy.total() / 100)
            self.enemy.apply_casualties(to_enemy)
            self.enemy.morale -= self.params.morale_per_casualty * to_enemy
        else:
            chaser = phase_stats(self.enemy.warrior, self.enemy.archer, self.stats, FieldPhase.MELEE)
            to_player = PURSUIT_BLEED * chaser.pursuit / max(1.0, self.player.total() / 100)
            self.player.apply_casualties(to_player)
            self.player.morale -= self.params.morale_per_casualty * to_player
        return self._record(FieldPhase.PURSUIT, to_enemy=to_enemy, to_player=to_player)

    def _record(self, phase: FieldPhase, *, to_enemy: float, to_player: float) -> BattleTick:
        self.tick += 1
        self.phase_ticks += 1
        tick = BattleTick(
            tick=self.tick,
            phase=phase.value,
            player_troops=self.player.total(),
            enemy_troops=self.enemy.total(),
            player_morale=self.player.morale,
            enemy_morale=self.enemy.morale,
            player_to_enemy=to_enemy,
            enemy_to_player=to_player,
        )
        self.timeline.append(tick)
        return tick

    def _decide_winner(self) -> None:
        player_out = self.player.out_of_action()
        enemy_out = self.enemy.out_of_action()
        if player_out and enemy_out:
            winner = Winner.DRAW
        elif player_out:
            winner = Winner.ENEMY
        elif enemy_out:
            winner = Winner.PLAYER
        elif self.player.morale != self.enemy.morale:
            winner = Winner.PLAYER if self.player.morale > self.enemy.morale else Winner.ENEMY
        elif self.player.total() != self.enemy.total():
            winner = Winner.PLAYER if self.player.total() > self.enemy.total() else Winner.ENEMY
        else:
            winner = Winner.DRAW
        self.winner = winner
        if winner != Winner.DRAW and self.params.pursuit_ticks > 0:
            self._enter(FieldPhase.PURSUIT)
        else:
            self._enter(FieldPhase.RESOLVED)

    def to_result(self) -> BattleResult:
        if self.winner is None:
            raise RuntimeError("Field battle has not been resolved")
        return BattleResult(
            winner=self.winner,
            ticks=self.tick,
            player_initial=self._initial_player,
            player_final=self.player.snapshot(with_morale=True),
            enemy_initial=self._initial_enemy,
            enemy_final=self.enemy.snapshot(with_morale=True),
            timeline=tuple(self.timeline),
        )


def start_field_battle(
    player: Division | Mapping[str, float],
    enemy: Division | Mapping[str, float],
    stats: Mapping[str, Any],
    params: BattleParams | Mapping[str, Any],
    rng: random.Random,
) -> FieldBattleSession:
    unit_stats = coerce_unit_stats(stats)
    battle_params = coerce_battle_params(params)
    return FieldBattleSession(
        rng=rng,
        stats=unit_stats,
        params=battle_params,
        player=_side(_as_division(player), unit_stats, battle_params),
        enemy=_side(_as_division(enemy), unit_stats, battle_params),
    )


def simulate(
    player: Division | Mapping[str, float],
    enemy: Division | Mapping[str, float],
    stats: Mapping[str, Any],
    params: BattleParams | Mapping[str, Any],
    rng: random.Random | None = None,
) -> BattleResult:
    """Resolve one field battle between two divisions."""
    session = start_field_battle(player, enemy, stats, params, rng if rng is not None else random.Random())
    result = session.run()
    logger.debug(
        "Field battle resolved: winner=%s ticks=%d player=%.2f enemy=%.2f",
        result.winner.value,
        result.ticks,
        result.player_final.total,
        result.enemy_final.total,
    )
    return result


def _as_division(value: Division | Mapping[str, float]) -> Division:
    if isinstance(value, Division):
        return value
    if isinstance(value, Mapping):
        return Division.from_mapping(value)
    raise TypeError(f"Expected Division or mapping, got {type(value).__name__}")


def _side(division: Division, stats: Mapping[str, UnitTypeStats], params: BattleParams) -> _SideState:
    morale = initial_morale(division, stats)
    return _SideState(
        warrior=float(division.warrior),
        archer=float(division.archer),
        morale=morale,
        break_threshold=max(0.0, params.break_pct / 100 * morale),
    )
