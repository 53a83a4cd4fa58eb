from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence

from village_combat.domain.battle_models import (
    Banner,
    Fortress,
    GarrisonCount,
    InnerBattleStep,
    SiegeBattleResult,
    SiegeOutcome,
    SiegePhase,
    SiegeRound,
)
from village_combat.rules.ruleset import (
    BattleParams,
    UnitTypeStats,
    coerce_battle_params,
    coerce_unit_stats,
)
from village_combat.systems.casualties import garrison_from_banners
from village_combat.systems.inner_battle import InnerBattleStats, run_inner_battle

logger = logging.getLogger(__name__)

# Wall assault rounds before the attackers give up; keeps zero-damage sieges finite.
WALL_ROUND_CAP = 30

FORT_DAMAGE_PER_WARRIOR = 0.2


class SiegeContextError(RuntimeError):
    """A siege was requested without the fortress or garrison it needs."""


@dataclass()
class SiegeSession:
    """Wall phase followed, once the walls fall, by the inner battle."""

    stats: Mapping[str, UnitTypeStats]
    params: BattleParams
    fort_hp_max: float
    wall_archer_capacity: float
    garrison: GarrisonCount
    attacker_count: float

    phase: SiegePhase = SiegePhase.WALL
    fort_hp: float = 0.0
    attackers: float = 0.0
    rounds: int = 0
    siege_timeline: list[SiegeRound] = field(default_factory=list)
    inner_timeline: list[InnerBattleStep] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.fort_hp = self.fort_hp_max
        self.attackers = self.attacker_count

    def active_archers(self) -> float:
        return min(self.garrison.archers, self.wall_archer_capacity)

    def wall_round(self) -> SiegeRound | None:
        if self.phase != SiegePhase.WALL:
            return None
        if not self._wall_continues():
            self._leave_walls()
            return None

        self.rounds += 1
        rate = self.params.base_casualty_rate
        archers = self.active_archers()
        archer_damage = (archers / 100) * self.stats["archer"].skirmish_attack * rate
        killed = min(self.attackers, archer_damage)
        self.attackers = max(0.0, self.attackers - killed)

        damage = self.attackers * (self.stats["warrior"].melee_attack * FORT_DAMAGE_PER_WARRIOR) * rate
        self.fort_hp = max(0.0, self.fort_hp - damage)

        record = SiegeRound(
            round=self.rounds,
            fort_hp=self.fort_hp,
            attackers=self.attackers,
            archers=archers,
            killed=killed,
            damage_to_fort=damage,
        )
        self.siege_timeline.append(record)
        return record

    def run(self) -> SiegeBattleResult:
        while self.phase == SiegePhase.WALL:
            self.wall_round()
        if self.phase == SiegePhase.INNER:
            self.inner_timeline = run_inner_battle(
                self.garrison.warriors,
                self.garrison.archers,
                self.attackers,
                InnerBattleStats.from_unit_stats(self.stats),
                self.params.base_casualty_rate,
            )
            self.phase = SiegePhase.RESOLVED
        return self.to_result()

    def _wall_continues(self) -> bool:
        if self.attackers <= 0 or self.rounds >= WALL_ROUND_CAP:
            return False
        # The first assault always lands, so a gateless fort reports its breach in round one.
        return self.fort_hp > 0 or self.rounds == 0

    def _leave_walls(self) -> None:
        breached = self.fort_hp <= 0 and self.attackers > 0
        if breached and self.garrison.total > 0:
            logger.debug("Walls breached after %d rounds; %.2f attackers enter", self.rounds, self.attackers)
            self.phase = SiegePhase.INNER
        else:
            if self.rounds >= WALL_ROUND_CAP and self.fort_hp > 0 and self.attackers > 0:
                logger.warning("Siege reached %d wall rounds without a breach", WALL_ROUND_CAP)
            self.phase = SiegePhase.RESOLVED

    def to_result(self) -> SiegeBattleResult:
        if self.phase != SiegePhase.RESOLVED:
            raise RuntimeError("Siege has not been resolved")

        final_attackers = self.attackers
        final_garrison = self.garrison
        breached = self.fort_hp <= 0 and self.attackers > 0

        if not breached:
            outcome = SiegeOutcome.FORTRESS_HOLDS_WALLS if self.attackers <= 0 else SiegeOutcome.STALEMATE
        elif self.inner_timeline:
            last = self.inner_timeline[-1]
            final_attackers = last.attackers
            final_garrison = GarrisonCount(warriors=last.def_warriors, archers=last.def_archers)
            if last.defenders > 0 and last.attackers <= 0:
                outcome = SiegeOutcome.FORTRESS_HOLDS_INNER
            elif last.attackers > 0 and last.defenders <= 0:
                outcome = SiegeOutcome.FORTRESS_FALLS
            else:
                outcome = SiegeOutcome.STALEMATE
        else:
            outcome = SiegeOutcome.FORTRESS_FALLS
            final_garrison = GarrisonCount()

        result = SiegeBattleResult(
            outcome=outcome,
            siege_rounds=self.rounds,
            inner_steps=len(self.inner_timeline),
            initial_fort_hp=self.fort_hp_max,
            final_fort_hp=self.fort_hp,
            initial_attackers=self.attacker_count,
            final_attackers=final_attackers,
            initial_garrison=self.garrison,
            final_garrison=final_garrison,
            final_defenders=final_garrison.total,
            siege_timeline=tuple(self.siege_timeline),
            inner_timeline=tuple(self.inner_timeline),
        )
        logger.debug(
            "Siege resolved: outcome=%s rounds=%d inner_steps=%d",
            outcome.value,
            result.siege_rounds,
            result.inner_steps,
        )
        return result


def simulate_siege(
    fort_hp_max: float | None,
    wall_archer_capacity: float | None,
    garrison_warriors: float | None,
    garrison_archers: float | None,
    attacker_count: float,
    stats: Mapping[str, Any],
    params: BattleParams | Mapping[str, Any],
) -> SiegeBattleResult:
    """Resolve an assault on a fortress: wall attrition, then the inner battle."""
    fort_hp = _require_context(fort_hp_max, "fort_hp_max")
    capacity = _require_context(wall_archer_capacity, "wall_archer_capacity")
    warriors = _require_context(garrison_warriors, "garrison_warriors")
    archers = _require_context(garrison_archers, "garrison_archers")
    attackers = float(attacker_count)
    if not math.isfinite(attackers) or attackers < 0:
        raise ValueError("attacker_count must be a finite, non-negative number")

    session = SiegeSession(
        stats=coerce_unit_stats(stats),
        params=coerce_battle_params(params),
        fort_hp_max=fort_hp,
        wall_archer_capacity=capacity,
        garrison=GarrisonCount(warriors=warriors, archers=archers),
        attacker_count=attackers,
    )
    return session.run()


def siege_fortress(
    fortress: Fortress | None,
    banners: Sequence[Banner],
    attacker_count: float,
    stats: Mapping[str, Any],
    params: BattleParams | Mapping[str, Any],
) -> SiegeBattleResult:
    """Siege a fortress whose garrison is the banners stationed in it."""
    if fortress is None:
        raise SiegeContextError("Fortress not found")
    stationed = [banner for banner in banners if banner.id in fortress.garrison]
    garrison = garrison_from_banners(stationed)
    return simulate_siege(
        fortress.fort_hp,
        fortress.archer_slots,
        garrison.warriors,
        garrison.archers,
        attacker_count,
        stats,
        params,
    )


def _require_context(value: float | None, name: str) -> float:
    if value is None:
        raise SiegeContextError(f"Siege requires {name}")
    number = float(value)
    if not math.isfinite(number) or number < 0:
        raise SiegeContextError(f"{name} must be a finite, non-negative number")
    return number
