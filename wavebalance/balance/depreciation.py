from __future__ import annotations

"""Earning-rate projection with depreciation ("wear").

Instead of R_n = C_n / alpha, the earning rate evolves inside each wave as

    R'(t) = A - B*R(t),   A = b_n / alpha_0,   B = w + d_n

which has the closed form R(T) = A/B + (R(0) - A/B) * exp(-B*T). alpha_0 is
derived from the growth factor and the reference time T0 so a steady game
keeps a flat ratio; d_n corrects for the wave-to-wave duration growth.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
import math
import random

from .. import settings
from ..core.catalog import EnemyCatalog
from ..core.config import RunConfig, log_level
from ..core.errors import ConfigError
from ..systems.wave_composer import WaveComposer
from ..systems.wave_timing import WaveTimingModel
from .economy import WAVE_FAILURES, ProjectionRun, display_value


def base_alpha(f: float, T0: float, wear: float) -> float:
    """alpha_0 = 1 / ((f - 1)/T0 + w)."""
    if not (T0 > 0) or not (f > 1):
        raise ConfigError(f"depreciation needs T0 > 0 and f > 1 (got T0={T0}, f={f})")
    return 1.0 / (((f - 1.0) / T0) + wear)


def duration_correction(f: float, T0: float, T_sec: float, T_next_sec: Optional[float]) -> float:
    """d_n = (f-1)/T0 + (1/T_n)(1 - f/gamma_n), gamma_n = T_{n+1}/T_n; 0 when undefined, never negative."""
    if not (T_sec > 0) or T_next_sec is None:
        return 0.0
    gamma = T_next_sec / T_sec
    if not (gamma > 0):
        return 0.0
    return max(0.0, ((f - 1.0) / T0) + (1.0 / T_sec) * (1.0 - (f / gamma)))


def start_ratio(R_start: float, B: float, bounty_rate: float) -> float:
    """g''_n = R_start / b_n with the same degenerate cases as the plain ratio."""
    if bounty_rate > 0:
        return R_start / bounty_rate
    if R_start == 0 and B == 0:
        return 1.0
    if bounty_rate <= 0 and R_start > 0:
        return math.inf
    return 0.0


def evolve_rate(R_start: float, bounty_rate: float, alpha0: float, loss: float, T_sec: float) -> float:
    if not (T_sec > 0):
        return R_start
    A = bounty_rate / alpha0 if alpha0 > 0 else 0.0
    if abs(loss) > settings.WEAR_EPS:
        a_over_b = A / loss
        R = a_over_b + (R_start - a_over_b) * math.exp(-loss * T_sec)
    else:
        R = R_start + A * T_sec
    return max(0.0, R)


@dataclass(frozen=True)
class WearResult:
    wave: int
    total_bounty: float
    duration_ms: float
    cumulative_assets: float
    earning_rate: float
    earning_rate_end: float
    calculated_dn: float
    bounty_rate: float
    ratio: float

    @property
    def display_ratio(self) -> float:
        return display_value(self.ratio)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "wave": self.wave,
            "totalBounty": self.total_bounty,
            "durationMs": self.duration_ms,
            "cumulativeAssets": display_value(self.cumulative_assets),
            "earningRate": display_value(self.earning_rate),
            "calculated_dn": self.calculated_dn,
            "bountyRate": self.bounty_rate,
            "ratio": self.display_ratio,
        }


@dataclass
class WearRun(ProjectionRun):
    alpha0: float = 0.0
    T0: float = 0.0
    wear_results: List[WearResult] = field(default_factory=list)

    def records(self) -> List[Dict[str, Any]]:
        return [r.to_dict() for r in self.wear_results]


class DepreciationProjector:
    """Wave horizon under wear. Bounty rate here is per second (b_n = B_n / T_n_sec)."""

    def __init__(self, config: RunConfig, catalog: EnemyCatalog, rng: Optional[random.Random] = None):
        self.config = config.validate()
        if config.economy.wear is None:
            raise ConfigError("depreciation projection needs a wear rate (level 'wear')")
        self.catalog = catalog
        self.composer = WaveComposer(catalog, config.waves.generation, rng=rng)
        self.timing = WaveTimingModel(config.path_length, config.waves.delay_between_enemies_ms)
        self.T0 = catalog.reference_time(config.path_length)
        self.alpha0 = base_alpha(config.waves.difficulty_increase_factor, self.T0, float(config.economy.wear))

    def run(self) -> WearRun:
        cfg = self.config
        f = cfg.waves.difficulty_increase_factor
        wear = float(cfg.economy.wear or 0.0)
        max_wave = int(cfg.economy.max_wave)
        lvl = log_level()
        out = WearRun(alpha0=self.alpha0, T0=self.T0)

        # durations need one wave of look-ahead, so compose everything first
        comps = []
        failure = None
        for n in range(1, max_wave + 2):
            try:
                comp = self.composer.compose(n, cfg.waves.target_difficulty(n))
                comps.append((comp, self.timing.duration_ms(comp) / 1000.0))
            except WAVE_FAILURES as exc:
                failure = f"wave {n}: {type(exc).__name__}: {exc}; stopping"
                break

        if lvl:
            print(f"[ECO] wear projection waves 1-{max_wave} w={wear:g} T0={self.T0:.4f}s alpha0={self.alpha0:.4f}", flush=True)

        start_money = float(cfg.economy.starting_money)
        R = start_money / self.alpha0 if self.alpha0 > 0 else math.inf
        for n in range(1, max_wave + 1):
            if n > len(comps):
                out.warnings.append(failure)
                out.stopped_at = n
                if lvl:
                    print(f"[ECO] WARN {failure}", flush=True)
                break
            comp, T_sec = comps[n - 1]
            out.warnings.extend(comp.warnings)
            if comp.is_empty and n > 1 and comp.target > 0:
                msg = f"wave {n}: generated 0 enemies for target {comp.target:.2f}; stopping"
                out.warnings.append(msg)
                out.stopped_at = n
                if lvl:
                    print(f"[ECO] WARN {msg}", flush=True)
                break
            if not comp.converged:
                out.non_converged.append(n)

            T_next = comps[n][1] if n < len(comps) else None
            d_n = duration_correction(f, self.T0, T_sec, T_next)
            B = comp.total_bounty
            b_n = B / T_sec if T_sec > 0 else 0.0
            ratio = start_ratio(R, B, b_n)
            R_end = evolve_rate(R, b_n, self.alpha0, wear + d_n, T_sec)

            res = WearResult(
                wave=n,
                total_bounty=B,
                duration_ms=T_sec * 1000.0,
                cumulative_assets=R * self.alpha0,
                earning_rate=R,
                earning_rate_end=R_end,
                calculated_dn=d_n,
                bounty_rate=b_n,
                ratio=ratio,
            )
            out.wear_results.append(res)
            if lvl >= 2:
                print(f"[ECO] wave {n}: B={B:.0f} T={T_sec:.2f}s R_start={R:.4f} b={b_n:.4f} "
                      f"d={d_n:.4f} R_end={R_end:.4f} g={res.display_ratio:.3f}", flush=True)
            R = R_end

        if lvl:
            print(f"[ECO] wear projection done: {len(out.wear_results)} waves", flush=True)
        return out
