"""Data-driven combat coefficients."""

from __future__ import annotations

import json
import math
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Mapping

REQUIRED_UNIT_TYPES = ("warrior", "archer")

DEFAULT_RULES_PATH = Path(__file__).resolve().parents[1] / "data" / "combat_rules.json"


class RulesError(ValueError):
    """Error loading or validating combat rules."""


@dataclass(frozen=True)
class UnitTypeStats:
    """Per-100-troops combat stats for one unit type."""

    skirmish_attack: float
    skirmish_defence: float
    melee_attack: float
    melee_defence: float
    pursuit: float
    morale_per_100: float

    @staticmethod
    def from_mapping(data: Mapping[str, Any], where: str = "unit_stats") -> "UnitTypeStats":
        if not isinstance(data, Mapping):
            raise RulesError(f"{where}: must be object")
        values = {f.name: _require_number(data, f.name, where) for f in fields(UnitTypeStats)}
        return UnitTypeStats(**values)


@dataclass(frozen=True)
class BattleParams:
    """Tunable field battle coefficients."""

    skirmish_ticks: int
    pursuit_ticks: int
    base_casualty_rate: float
    morale_per_casualty: float
    advantage_morale_tick: float
    break_pct: float
    rng_variance: float

    @staticmethod
    def from_mapping(data: Mapping[str, Any], where: str = "battle_params") -> "BattleParams":
        if not isinstance(data, Mapping):
            raise RulesError(f"{where}: must be object")
        skirmish_ticks = _require_int(data, "skirmish_ticks", where)
        pursuit_ticks = _require_int(data, "pursuit_ticks", where)
        break_pct = _require_number(data, "break_pct", where)
        if break_pct > 100.0:
            raise RulesError(f"{where}.break_pct must be a percentage between 0 and 100")
        return BattleParams(
            skirmish_ticks=skirmish_ticks,
            pursuit_ticks=pursuit_ticks,
            base_casualty_rate=_require_number(data, "base_casualty_rate", where),
            morale_per_casualty=_require_number(data, "morale_per_casualty", where),
            advantage_morale_tick=_require_number(data, "advantage_morale_tick", where),
            break_pct=break_pct,
            rng_variance=_require_number(data, "rng_variance", where),
        )


@dataclass(frozen=True)
class CombatRules:
    """Loaded and validated combat coefficients."""

    unit_stats: dict[str, UnitTypeStats]
    battle: BattleParams

    @staticmethod
    def load(path: Path) -> "CombatRules":
        """Load rules from a JSON file."""
        data = _load_json(path)
        return CombatRules.from_mapping(data, where=str(path))

    @staticmethod
    def from_mapping(data: Mapping[str, Any], where: str = "rules") -> "CombatRules":
        if "unit_stats" not in data:
            raise RulesError(f"{where}: missing 'unit_stats' key")
        if "battle_params" not in data:
            raise RulesError(f"{where}: missing 'battle_params' key")
        return CombatRules(
            unit_stats=coerce_unit_stats(data["unit_stats"], where=f"{where}: unit_stats"),
            battle=coerce_battle_params(data["battle_params"], where=f"{where}: battle_params"),
        )

    def with_overrides(
        self,
        *,
        unit_stats: Mapping[str, Any] | None = None,
        battle: Mapping[str, Any] | BattleParams | None = None,
    ) -> "CombatRules":
        """Return a copy with the given tables replaced (and re-validated)."""
        return CombatRules(
            unit_stats=coerce_unit_stats(unit_stats) if unit_stats is not None else dict(self.unit_stats),
            battle=coerce_battle_params(battle) if battle is not None else self.battle,
        )


def default_rules() -> CombatRules:
    return CombatRules.load(DEFAULT_RULES_PATH)


def coerce_unit_stats(value: Any, where: str = "unit_stats") -> dict[str, UnitTypeStats]:
    """Validate a unit stats table, accepting dataclasses or plain mappings."""
    if not isinstance(value, Mapping):
        raise RulesError(f"{where}: must be object keyed by unit type")
    table: dict[str, UnitTypeStats] = {}
    for unit_type, entry in value.items():
        if isinstance(entry, UnitTypeStats):
            entry = {f.name: getattr(entry, f.name) for f in fields(UnitTypeStats)}
        table[str(unit_type)] = UnitTypeStats.from_mapping(entry, where=f"{where}.{unit_type}")
    for unit_type in REQUIRED_UNIT_TYPES:
        if unit_type not in table:
            raise RulesError(f"{where}: missing stats for unit type '{unit_type}'")
    return table


def coerce_battle_params(value: Any, where: str = "battle_params") -> BattleParams:
    """Validate battle params, accepting the dataclass or a plain mapping."""
    if isinstance(value, BattleParams):
        value = {f.name: getattr(value, f.name) for f in fields(BattleParams)}
    return BattleParams.from_mapping(value, where=where)


def _load_json(path: Path) -> dict[str, Any]:
    """Load JSON file."""
    try:
        with path.open("r", encoding="utf-8") as handle:
            data = json.load(handle)
    except FileNotFoundError as exc:
        raise RulesError(f"Rules file not found: {path}") from exc
    except json.JSONDecodeError as exc:
        raise RulesError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise RulesError(f"{path}: top level must be object")
    return data


def _require_number(data: Mapping[str, Any], key: str, where: str) -> float:
    if key not in data or data[key] is None:
        raise RulesError(f"{where}: missing required field '{key}'")
    raw = data[key]
    if isinstance(raw, bool):
        raise RulesError(f"{where}.{key} must be a number")
    try:
        value = float(raw)
    except (TypeError, ValueError) as exc:
        raise RulesError(f"{where}.{key} must be a number") from exc
    if not math.isfinite(value):
        raise RulesError(f"{where}.{key} must be finite")
    if value < 0:
        raise RulesError(f"{where}.{key} must be non-negative")
    return value


def _require_int(data: Mapping[str, Any], key: str, where: str) -> int:
    value = _require_number(data, key, where)
    if not value.is_integer():
        raise RulesError(f"{where}.{key} must be an integer")
    return int(value)
