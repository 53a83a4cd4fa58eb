"""Casualty reports handed back to the caller."""

from __future__ import annotations

from dataclasses import dataclass, field

from village_combat.domain.battle_models import Banner


@dataclass(frozen=True)
class BannerLossNotice:
    banner_id: int
    banner_name: str
    banner_kind: str
    message: str


@dataclass(frozen=True)
class TypeLosses:
    warriors: int = 0
    archers: int = 0

    @property
    def total(self) -> int:
        return self.warriors + self.archers


@dataclass(frozen=True)
class GarrisonCasualtyReport:
    banners: tuple[Banner, ...]
    losses: dict[int, TypeLosses] = field(default_factory=dict)
    squad_deductions: dict[int, dict[int, int]] = field(default_factory=dict)
    destroyed_banner_ids: tuple[int, ...] = ()
    notices: tuple[BannerLossNotice, ...] = ()

    @property
    def surviving_banners(self) -> tuple[Banner, ...]:
        return tuple(banner for banner in self.banners if banner.id not in self.destroyed_banner_ids)
