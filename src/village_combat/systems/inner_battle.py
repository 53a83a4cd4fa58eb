from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping

from village_combat.domain.battle_models import InnerBattleStep, InnerPhase
from village_combat.rules.ruleset import UnitTypeStats

# Once the walls fall the melee is short; 50 steps covers any realistic garrison.
INNER_STEP_CAP = 50

SKIRMISH_LAST_STEP = 3
MELEE_LAST_STEP = 13

ARCHER_MELEE_FACTOR = 0.3
WARRIOR_SKIRMISH_SUPPORT = 0.3
ATTACKER_SKIRMISH_FACTOR = 0.4
ROUT_AMPLIFIER = 1.2


@dataclass(frozen=True)
class TypeStrength:
    skirmish: float
    melee: float


@dataclass(frozen=True)
class InnerBattleStats:
    warrior: TypeStrength
    archer: TypeStrength

    @staticmethod
    def from_unit_stats(stats: Mapping[str, UnitTypeStats]) -> "InnerBattleStats":
        # Archers fight hand to hand at a fraction of their bow strength inside the walls.
        warrior = stats["warrior"]
        archer = stats["archer"]
        return InnerBattleStats(
            warrior=TypeStrength(skirmish=warrior.skirmish_attack, melee=warrior.melee_attack),
            archer=TypeStrength(
                skirmish=archer.skirmish_attack,
                melee=archer.skirmish_attack * ARCHER_MELEE_FACTOR,
            ),
        )


def get_inner_phase(step: int) -> InnerPhase:
    if step <= SKIRMISH_LAST_STEP:
        return InnerPhase.SKIRMISH
    elif step <= MELEE_LAST_STEP:
        return InnerPhase.MELEE
    else:
        return InnerPhase.PURSUIT


@dataclass()
class InnerBattleSession:
    stats: InnerBattleStats
    base_casualty_rate: float
    def_warriors: float
    def_archers: float
    attackers: float

    step_index: int = 0
    timeline: list[InnerBattleStep] = field(default_factory=list)

    def defenders(self) -> float:
        return self.def_warriors + self.def_archers

    def finished(self) -> bool:
        return self.attackers <= 0 or self.defenders() <= 0 or self.step_index >= INNER_STEP_CAP

    def step(self) -> InnerBattleStep | None:
        if self.finished():
            return None

        self.step_index += 1
        phase = get_inner_phase(self.step_index)
        defenders = self.defenders()
        rate = self.base_casualty_rate

        killed_attackers = 0.0
        killed_defenders = 0.0
        if phase == InnerPhase.SKIRMISH:
            defender_damage = (
                (self.def_archers / 100) * self.stats.archer.skirmish
                + (self.def_warriors / 100) * self.stats.warrior.skirmish * WARRIOR_SKIRMISH_SUPPORT
            ) * rate
            attacker_damage = (self.attackers / 100) * self.stats.warrior.skirmish * rate * ATTACKER_SKIRMISH_FACTOR
            killed_attackers = min(self.attackers, defender_damage)
            killed_defenders = min(defenders, attacker_damage)
        elif phase == InnerPhase.MELEE:
            defender_damage = (defenders / 100) * self._defender_melee() * rate
            attacker_damage = (self.attackers / 100) * self.stats.warrior.melee * rate
            killed_attackers = min(self.attackers, defender_damage)
            killed_defenders = min(defenders, attacker_damage)
        else:
            if self.attackers > defenders:
                attacker_damage = (self.attackers / 100) * self.stats.warrior.melee * rate * ROUT_AMPLIFIER
                killed_defenders = min(defenders, attacker_damage)
            else:
                defender_damage = (defenders / 100) * self._defender_melee() * rate * ROUT_AMPLIFIER
                killed_attackers = min(self.attackers, defender_damage)

        if killed_defenders >= defenders:
            self.def_warriors = 0.0
            self.def_archers = 0.0
        elif killed_defenders > 0:
            warrior_share = self.def_warriors / defenders
            archer_share = self.def_archers / defenders
            self.def_warriors -= min(self.def_warriors, killed_defenders * warrior_share)
            self.def_archers -= min(self.def_archers, killed_defenders * archer_share)

        self.attackers = max(0.0, self.attackers - killed_attackers)

        record = InnerBattleStep(
            step=self.step_index,
            phase=phase.value,
            def_warriors=self.def_warriors,
            def_archers=self.def_archers,
            defenders=self.defenders(),
            attackers=self.attackers,
            killed_attackers=killed_attackers,
            killed_defenders=killed_defenders,
        )
        self.timeline.append(record)
        return record

    def _defender_melee(self) -> float:
        defenders = self.defenders()
        if defenders <= 0:
            return 0.0
        warrior_share = self.def_warriors / defenders
        archer_share = self.def_archers / defenders
        return warrior_share * self.stats.warrior.melee + archer_share * self.stats.archer.melee


def run_inner_battle(
    def_warriors: float,
    def_archers: float,
    attackers: float,
    stats: InnerBattleStats,
    base_casualty_rate: float,
) -> list[InnerBattleStep]:
    """Melee between the full garrison and the attackers that got through the walls."""
    session = InnerBattleSession(
        stats=stats,
        base_casualty_rate=base_casualty_rate,
        def_warriors=max(0.0, def_warriors),
        def_archers=max(0.0, def_archers),
        attackers=max(0.0, attackers),
    )
    while session.step() is not None:
        pass
    return list(session.timeline)
