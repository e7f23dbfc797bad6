from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple
import math
import random

from .. import settings
from ..core.catalog import EnemyCatalog
from ..core.config import RunConfig, log_level
from ..systems.wave_composer import WaveComposer, WaveComposition
from ..systems.wave_timing import WaveTimingModel

# a wave that cannot be composed or timed ends the horizon; earlier results are kept
WAVE_FAILURES = (ArithmeticError, MemoryError, ValueError)


@dataclass
class EconomyState:
    """Money side of a run. One writer (the projector); bounty is added after a wave is recorded."""
    starting_money: float
    alpha: float
    cumulative_bounty: float = 0.0

    @property
    def assets(self) -> float:
        return self.starting_money + self.cumulative_bounty

    def earning_rate(self) -> float:
        return self.assets / self.alpha if self.alpha > 0 else math.inf

    def add_bounty(self, amount: float):
        self.cumulative_bounty += amount


class RatioCase(Enum):
    NORMAL = "normal"
    NOTHING_TO_BALANCE = "nothing_to_balance"
    NO_BOUNTY = "no_bounty"
    NO_DURATION = "no_duration"
    FREE_MONEY = "free_money"
    DEFAULT = "default"


# (case, applies(B, T, alpha, C, R)) in priority order; first match wins
_RATIO_RULES: Tuple[Tuple[RatioCase, Callable[[float, float, float, float, float], bool]], ...] = (
    (RatioCase.NORMAL,             lambda B, T, a, C, R: B > 0 and T > 0 and a > 0),
    (RatioCase.NOTHING_TO_BALANCE, lambda B, T, a, C, R: C == 0 and B == 0),
    (RatioCase.NO_BOUNTY,          lambda B, T, a, C, R: B <= 0 and R > 0),
    (RatioCase.NO_DURATION,        lambda B, T, a, C, R: T <= 0 and B > 0),
    (RatioCase.FREE_MONEY,         lambda B, T, a, C, R: a <= 0 and C > 0),
)


def classify_ratio(B: float, T_ms: float, alpha: float, C: float, R: float) -> RatioCase:
    for case, applies in _RATIO_RULES:
        if applies(B, T_ms, alpha, C, R):
            return case
    return RatioCase.DEFAULT


def balance_ratio(B: float, T_ms: float, alpha: float, C: float, R: float) -> Tuple[float, RatioCase]:
    """g_n: how many multiples of the required income rate this wave pays out.

    (R * T_sec) / B in the regular case; the degenerate cases map to 1, +inf or 0.
    """
    case = classify_ratio(B, T_ms, alpha, C, R)
    if case is RatioCase.NORMAL:
        return (R * (T_ms / 1000.0)) / B, case
    if case is RatioCase.NOTHING_TO_BALANCE:
        return 1.0, case
    if case in (RatioCase.NO_BOUNTY, RatioCase.FREE_MONEY):
        return math.inf, case
    return 0.0, case


def display_value(x: float, cap: float = settings.DISPLAY_RATIO_CAP) -> float:
    """Clamp non-finite values for plotting; finite values pass through."""
    if math.isnan(x):
        return 0.0
    if math.isinf(x):
        return cap if x > 0 else -cap
    return x


@dataclass(frozen=True)
class WaveResult:
    wave: int
    total_bounty: float
    duration_ms: float
    cumulative_assets: float
    earning_rate: float
    bounty_rate: float
    ratio: float
    ratio_case: RatioCase = RatioCase.NORMAL
    target: float = 0.0
    total_cost: float = 0.0
    enemies: int = 0
    converged: bool = True

    @property
    def display_ratio(self) -> float:
        return display_value(self.ratio)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "wave": self.wave,
            "totalBounty": self.total_bounty,
            "durationMs": self.duration_ms,
            "cumulativeAssets": self.cumulative_assets,
            "earningRate": display_value(self.earning_rate),
            "bountyRate": self.bounty_rate,
            "ratio": self.display_ratio,
        }


@dataclass
class ProjectionRun:
    results: List[WaveResult] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    stopped_at: Optional[int] = None
    non_converged: List[int] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return self.stopped_at is None

    def records(self) -> List[Dict[str, Any]]:
        return [r.to_dict() for r in self.results]


class EconomyProjector:
    """Runs waves 1..max_wave and produces the WaveResult sequence."""

    def __init__(self, config: RunConfig, catalog: EnemyCatalog, rng: Optional[random.Random] = None):
        self.config = config.validate()
        self.catalog = catalog
        self.composer = WaveComposer(catalog, config.waves.generation, rng=rng)
        self.timing = WaveTimingModel(config.path_length, config.waves.delay_between_enemies_ms)

    def new_state(self) -> EconomyState:
        eco = self.config.economy
        return EconomyState(starting_money=float(eco.starting_money), alpha=float(eco.alpha))

    def step(self, n: int, state: EconomyState) -> Tuple[Optional[WaveResult], WaveComposition]:
        """Simulate wave n against `state`. Returns (None, composition) when the wave is unspawnable.

        Does not touch `state`; the caller adds the bounty once the result is kept.
        """
        target = self.config.waves.target_difficulty(n)
        comp = self.composer.compose(n, target)
        T = self.timing.duration_ms(comp)

        if comp.is_empty and n > 1 and target > 0:
            return None, comp

        B = comp.total_bounty
        C = state.assets
        R = state.earning_rate()
        bounty_rate = B / T if (B > 0 and T > 0) else 0.0
        ratio, case = balance_ratio(B, T, state.alpha, C, R)

        return WaveResult(
            wave=n,
            total_bounty=B,
            duration_ms=T,
            cumulative_assets=C,
            earning_rate=R,
            bounty_rate=bounty_rate,
            ratio=ratio,
            ratio_case=case,
            target=target,
            total_cost=comp.total_cost,
            enemies=comp.size,
            converged=comp.converged,
        ), comp

    def run(self, state: Optional[EconomyState] = None) -> ProjectionRun:
        state = state or self.new_state()
        max_wave = int(self.config.economy.max_wave)
        out = ProjectionRun()
        lvl = log_level()
        if lvl:
            print(f"[ECO] projecting waves 1-{max_wave} start_money={state.starting_money:g} alpha={state.alpha:g}", flush=True)

        for n in range(1, max_wave + 1):
            try:
                res, comp = self.step(n, state)
            except WAVE_FAILURES as exc:
                msg = f"wave {n}: {type(exc).__name__}: {exc}; stopping"
                out.warnings.append(msg)
                out.stopped_at = n
                if lvl:
                    print(f"[ECO] WARN {msg}", flush=True)
                break
            out.warnings.extend(comp.warnings)
            if res is None:
                msg = f"wave {n}: generated 0 enemies for target {comp.target:.2f}; stopping"
                out.warnings.append(msg)
                out.stopped_at = n
                if lvl:
                    print(f"[ECO] WARN {msg}", flush=True)
                break
            if not res.converged:
                out.non_converged.append(n)

            if lvl >= 2:
                print(f"[ECO] wave {n}: B={res.total_bounty:.0f} T={res.duration_ms / 1000:.2f}s "
                      f"C={res.cumulative_assets:.0f} R={res.earning_rate:.4f} ratio={res.display_ratio:.3f}", flush=True)

            out.results.append(res)
            state.add_bounty(res.total_bounty)

        if lvl:
            print(f"[ECO] done: {len(out.results)} waves, non-converged={out.non_converged}", flush=True)
        return out
