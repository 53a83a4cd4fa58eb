"""Turn battle results into per-banner losses for the caller to commit."""

from __future__ import annotations

import logging
import math
import random
from typing import Sequence

from village_combat.domain.battle_models import Banner, BattleResult, Division, GarrisonCount, SiegeBattleResult
from village_combat.domain.reports import BannerLossNotice, GarrisonCasualtyReport, TypeLosses
from village_combat.systems.losses import LossEntry, allocate_across_banners, allocate_to_squads, round_half_up, trim_by_type

logger = logging.getLogger(__name__)


def garrison_from_banners(banners: Sequence[Banner]) -> GarrisonCount:
    """Sum the living troops of every stationed banner, per unit type."""
    return GarrisonCount(
        warriors=sum(banner.type_size("warrior") for banner in banners),
        archers=sum(banner.type_size("archer") for banner in banners),
    )


def banner_division(banner: Banner) -> Division:
    return Division(warrior=banner.type_size("warrior"), archer=banner.type_size("archer"))


def field_battle_losses(result: BattleResult) -> int:
    return max(0, math.floor(result.player_initial.total - result.player_final.total))


def apply_field_battle_losses(banner: Banner, result: BattleResult, rng: random.Random) -> Banner:
    losses = field_battle_losses(result)
    deductions = allocate_to_squads(banner.squads, losses, rng)
    logger.debug("Banner %s takes %d losses across %d squads", banner.id, losses, len(banner.squads))
    return banner.apply_losses(deductions)


def apply_garrison_casualties(banners: Sequence[Banner], result: SiegeBattleResult) -> GarrisonCasualtyReport:
    """Realise a siege's garrison losses as squad deductions on the stationed banners."""
    counts = {banner.id: (banner.type_size("warrior"), banner.type_size("archer")) for banner in banners}
    total_warriors = sum(warriors for warriors, _ in counts.values())
    total_archers = sum(archers for _, archers in counts.values())
    if total_warriors == 0 and total_archers == 0:
        return GarrisonCasualtyReport(banners=tuple(banners))

    final_warriors = max(0, round_half_up(result.final_garrison.warriors))
    final_archers = max(0, round_half_up(result.final_garrison.archers))
    warrior_losses = max(0, total_warriors - final_warriors)
    archer_losses = max(0, total_archers - final_archers)
    if warrior_losses == 0 and archer_losses == 0:
        return GarrisonCasualtyReport(banners=tuple(banners))

    warrior_allocation = allocate_across_banners(
        [LossEntry(banner_id=banner_id, count=warriors) for banner_id, (warriors, _) in counts.items()],
        warrior_losses,
    )
    archer_allocation = allocate_across_banners(
        [LossEntry(banner_id=banner_id, count=archers) for banner_id, (_, archers) in counts.items()],
        archer_losses,
    )

    updated: list[Banner] = []
    losses: dict[int, TypeLosses] = {}
    squad_deductions: dict[int, dict[int, int]] = {}
    destroyed: list[int] = []
    notices: list[BannerLossNotice] = []
    for banner in banners:
        banner_losses = TypeLosses(
            warriors=warrior_allocation.get(banner.id, 0),
            archers=archer_allocation.get(banner.id, 0),
        )
        if banner_losses.total <= 0 or not banner.squads:
            updated.append(banner)
            continue

        deductions = trim_by_type(banner.squads, "warrior", banner_losses.warriors)
        for squad_id, amount in trim_by_type(banner.squads, "archer", banner_losses.archers).items():
            deductions[squad_id] = deductions.get(squad_id, 0) + amount
        after = banner.apply_losses(deductions)

        losses[banner.id] = banner_losses
        squad_deductions[banner.id] = deductions
        updated.append(after)
        if after.total_size() <= 0:
            destroyed.append(banner.id)
            message = f"{banner.name} was decimated in the battle."
        else:
            message = f"{banner.name} suffered {banner_losses.total} losses defending the fortress."
        notices.append(
            BannerLossNotice(
                banner_id=banner.id,
                banner_name=banner.name,
                banner_kind=banner.kind,
                message=message,
            )
        )

    logger.debug(
        "Garrison casualties: warriors=%d archers=%d destroyed=%s",
        warrior_losses,
        archer_losses,
        destroyed,
    )
    return GarrisonCasualtyReport(
        banners=tuple(updated),
        losses=losses,
        squad_deductions=squad_deductions,
        destroyed_banner_ids=tuple(destroyed),
        notices=tuple(notices),
    )
