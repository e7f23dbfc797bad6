from __future__ import annotations

"""Run configuration.

Everything the engine consumes is an in-memory value; this module only gives
those values a shape, defaults and validation. Loading them from the level
data files lives in core/storage.py.

Environment overrides (read at call time so tests can monkeypatch them):
- WAVEBALANCE_LOG          0 silent, 1 summary + warnings (default), 2 per-wave lines
- WAVEBALANCE_MAX_WAVE     horizon override
- WAVEBALANCE_START_MONEY  starting money override
- WAVEBALANCE_SEED         seed for the composer RNG (unset = unseeded)
"""

import math
import os
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional

from .. import settings
from .errors import ConfigError


def log_level() -> int:
    try:
        return int(os.environ.get("WAVEBALANCE_LOG", "1"))
    except ValueError:
        return 1


def env_flag(name: str, default: str = "0") -> bool:
    return str(os.environ.get(name, default)).strip().lower() in ("1", "true", "yes", "on")


def _num(d: Dict[str, Any], key: str, what: str) -> float:
    v = d.get(key)
    if v is None:
        raise ConfigError(f"missing {what} ({key})")
    try:
        return float(v)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{what} ({key}) must be numeric, got {v!r}") from exc


@dataclass(frozen=True)
class WaveGenConfig:
    max_selection_attempts: int = settings.MAX_SELECTION_ATTEMPTS
    difficulty_tolerance: float = settings.DIFFICULTY_TOLERANCE
    max_prepopulation_per_type: float = settings.MAX_PREPOPULATION_PER_TYPE
    min_enemy_types: int = settings.MIN_ENEMY_TYPES

    @classmethod
    def from_dict(cls, d: Optional[Dict[str, Any]]) -> "WaveGenConfig":
        """Parse a waves.json "waveGeneration" block.

        Zero / missing attempts and tolerance fall back to the defaults; a missing
        or null cap means "no cap".
        """
        d = d or {}
        cap = d.get("maxPrepopulationPerType")
        min_types = d.get("minEnemyTypes")
        try:
            return cls(
                max_selection_attempts=int(d.get("maxSelectionAttempts") or settings.MAX_SELECTION_ATTEMPTS),
                difficulty_tolerance=float(d.get("difficultyTolerance") or settings.DIFFICULTY_TOLERANCE),
                max_prepopulation_per_type=float("inf") if cap is None else float(cap),
                min_enemy_types=settings.MIN_ENEMY_TYPES if min_types is None else int(min_types),
            )
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"invalid waveGeneration block: {exc}") from exc

    def to_dict(self) -> Dict[str, Any]:
        cap = self.max_prepopulation_per_type
        return {
            "maxSelectionAttempts": self.max_selection_attempts,
            "difficultyTolerance": self.difficulty_tolerance,
            # JSON has no Infinity; null reads back as "no cap"
            "maxPrepopulationPerType": None if math.isinf(cap) else cap,
            "minEnemyTypes": self.min_enemy_types,
        }

    def validate(self):
        if self.max_selection_attempts < 1:
            raise ConfigError(f"maxSelectionAttempts must be >= 1 (got {self.max_selection_attempts})")
        if not (self.difficulty_tolerance >= 0):
            raise ConfigError(f"difficultyTolerance must be >= 0 (got {self.difficulty_tolerance})")
        if not (self.max_prepopulation_per_type >= 0):
            raise ConfigError(f"maxPrepopulationPerType must be >= 0 (got {self.max_prepopulation_per_type})")


@dataclass(frozen=True)
class WaveParams:
    starting_difficulty: float
    difficulty_increase_factor: float
    delay_between_enemies_ms: float = settings.DELAY_BETWEEN_ENEMIES_MS
    generation: WaveGenConfig = field(default_factory=WaveGenConfig)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "WaveParams":
        return cls(
            starting_difficulty=_num(d, "startingDifficulty", "starting difficulty"),
            difficulty_increase_factor=_num(d, "difficultyIncreaseFactor", "difficulty increase factor"),
            delay_between_enemies_ms=_num(d, "delayBetweenEnemiesMs", "delay between enemies"),
            generation=WaveGenConfig.from_dict(d.get("waveGeneration")),
        )

    def target_difficulty(self, wave: int) -> float:
        """W_n = W_1 * f^(n-1). Raises OverflowError once W_n leaves the float range."""
        w = self.starting_difficulty * (self.difficulty_increase_factor ** (int(wave) - 1))
        if not math.isfinite(w):
            raise OverflowError(f"target difficulty for wave {wave} is not finite")
        return w

    def validate(self):
        if not math.isfinite(self.starting_difficulty):
            raise ConfigError(f"startingDifficulty must be finite (got {self.starting_difficulty})")
        if not math.isfinite(self.difficulty_increase_factor):
            raise ConfigError(f"difficultyIncreaseFactor must be finite (got {self.difficulty_increase_factor})")
        if not (self.delay_between_enemies_ms > 0):
            raise ConfigError(f"delayBetweenEnemiesMs must be > 0 (got {self.delay_between_enemies_ms})")
        self.generation.validate()


@dataclass(frozen=True)
class EconomyParams:
    starting_money: float
    alpha: float
    max_wave: int = settings.MAX_WAVE
    # carried through to the parameter snapshot only
    currency_scale: Optional[float] = None
    # depreciation projection only
    wear: Optional[float] = None

    def validate(self):
        if not math.isfinite(self.starting_money):
            raise ConfigError(f"startingMoney must be finite (got {self.starting_money})")
        if math.isnan(self.alpha):
            raise ConfigError("alpha (level difficulty) is NaN")
        if self.max_wave < 1:
            raise ConfigError(f"max wave must be >= 1 (got {self.max_wave})")
        if self.wear is not None and not (self.wear >= 0):
            raise ConfigError(f"wear must be >= 0 (got {self.wear})")


@dataclass(frozen=True)
class RunConfig:
    waves: WaveParams
    path_length: float
    economy: EconomyParams

    def validate(self) -> "RunConfig":
        if not (self.path_length > 0) or not math.isfinite(self.path_length):
            raise ConfigError(f"path length must be a positive number (got {self.path_length})")
        self.waves.validate()
        self.economy.validate()
        return self

    def with_starting_money(self, money: float) -> "RunConfig":
        return replace(self, economy=replace(self.economy, starting_money=float(money)))

    def with_env_overrides(self) -> "RunConfig":
        cfg = self
        mw = os.environ.get("WAVEBALANCE_MAX_WAVE")
        if mw:
            try:
                cfg = replace(cfg, economy=replace(cfg.economy, max_wave=int(mw)))
            except ValueError as exc:
                raise ConfigError(f"WAVEBALANCE_MAX_WAVE must be an integer (got {mw!r})") from exc
        sm = os.environ.get("WAVEBALANCE_START_MONEY")
        if sm:
            try:
                cfg = cfg.with_starting_money(float(sm))
            except ValueError as exc:
                raise ConfigError(f"WAVEBALANCE_START_MONEY must be numeric (got {sm!r})") from exc
        return cfg


def env_seed() -> Optional[int]:
    s = os.environ.get("WAVEBALANCE_SEED")
    if s is None or str(s).strip() == "":
        return None
    try:
        return int(s)
    except ValueError as exc:
        raise ConfigError(f"WAVEBALANCE_SEED must be an integer (got {s!r})") from exc
