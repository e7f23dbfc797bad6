from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional, Sequence
import math

from .. import settings
from ..core.config import log_level
from .economy import WaveResult


@dataclass(frozen=True)
class FlatStart:
    """Starting money that makes g_1 == g_2, or why it could not be solved."""
    money: Optional[int]
    raw: Optional[float] = None
    denominator: float = 0.0
    reason: str = ""

    @property
    def solved(self) -> bool:
        return self.money is not None


def solve_flat_start_values(B1: float, T1: float, B2: float, T2: float) -> FlatStart:
    """S = B1^2 * T2 / (T1*B2 - T2*B1), rounded to whole money units."""
    den = T1 * B2 - T2 * B1
    if abs(den) < settings.SOLVER_EPS:
        return FlatStart(money=None, denominator=den,
                         reason=f"denominator T1*B2 - T2*B1 = {den:g} is too close to zero")
    S = (B1 * B1 * T2) / den
    # halves round up (money units), not banker's rounding
    money = int(math.floor(S + 0.5))
    return FlatStart(money=money, raw=S, denominator=den)


def solve_flat_start(results: Sequence[WaveResult]) -> FlatStart:
    """Flat balance ratio over waves 1 and 2 of a projection."""
    res: List[WaveResult] = list(results or [])
    if len(res) < 2:
        out = FlatStart(money=None, reason=f"need results for two waves, got {len(res)}")
    else:
        w1, w2 = res[0], res[1]
        out = solve_flat_start_values(w1.total_bounty, w1.duration_ms, w2.total_bounty, w2.duration_ms)
        if log_level() and out.solved:
            print(f"[BAL] flat start: B1={w1.total_bounty:.0f} T1={w1.duration_ms:.0f}ms "
                  f"B2={w2.total_bounty:.0f} T2={w2.duration_ms:.0f}ms -> S={out.raw:.2f}", flush=True)

    if not out.solved and log_level():
        print(f"[BAL] WARN cannot solve flat start: {out.reason}", flush=True)
    return out
