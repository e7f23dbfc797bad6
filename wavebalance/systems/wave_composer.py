from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple
import math
import random

from ..core.catalog import EnemyArchetype, EnemyCatalog
from ..core.config import WaveGenConfig, log_level


@dataclass(frozen=True)
class WaveComposition:
    """A wave as (archetype, count) stacks in whitelist order; counts are always > 0."""
    wave: int
    target: float
    stacks: Tuple[Tuple[EnemyArchetype, int], ...] = ()
    total_cost: float = 0.0
    total_bounty: float = 0.0
    whitelist: Tuple[str, ...] = ()
    attempts: int = 0
    converged: bool = True
    warnings: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def size(self) -> int:
        return sum(c for _, c in self.stacks)

    @property
    def is_empty(self) -> bool:
        return not self.stacks

    @property
    def relative_diff(self) -> float:
        if self.target <= 0:
            return 0.0
        return abs(self.target - self.total_cost) / self.target

    def counts(self) -> Dict[str, int]:
        return {a.id: c for a, c in self.stacks}


def _nth_instance(counts: Dict[str, int], i: int) -> str:
    """Id of the i-th instance with the stacks laid end to end."""
    for enemy_id, c in counts.items():
        if i < c:
            return enemy_id
        i -= c
    raise IndexError(i)


def potential_counts(target: float, types: Sequence[EnemyArchetype]) -> Dict[str, float]:
    """Per-type count if the target were split evenly across `types`.

    A non-positive cost gives inf (anything positive to split) or 0.
    """
    out: Dict[str, float] = {}
    n = len(types)
    if n == 0:
        return out
    share = target / n if target > 0 else 0.0
    for t in types:
        if t.cost > 0:
            out[t.id] = float(math.floor(share / t.cost))
        else:
            out[t.id] = math.inf if share > 0 else 0.0
    return out


class WaveComposer:
    """Builds a wave whose total cost lands within tolerance of a target difficulty.

    Whitelist by cap, pre-populate an even split, then random add/remove steps
    until the relative error is within tolerance or the attempt budget runs out.
    """

    def __init__(self, catalog: EnemyCatalog, gen: Optional[WaveGenConfig] = None,
                 rng: Optional[random.Random] = None):
        self.catalog = catalog
        self.gen = gen or WaveGenConfig()
        self.rng = rng or random.Random()

    def min_types(self) -> int:
        return max(1, min(int(self.gen.min_enemy_types), len(self.catalog)))

    def whitelist(self, target: float) -> List[EnemyArchetype]:
        types = list(self.catalog.archetypes)  # ascending cost
        keep_top = self.min_types()
        counts = potential_counts(target, types)
        cap = self.gen.max_prepopulation_per_type

        excluded: set[str] = set()
        if math.isfinite(cap):
            # only the cheapest N - minEnemyTypes are candidates for exclusion
            for t in types[:max(0, len(types) - keep_top)]:
                if counts.get(t.id, 0.0) > cap:
                    excluded.add(t.id)

        wl = [t for t in types if t.id not in excluded]
        if not wl:
            wl = types[-keep_top:]
        return wl

    def compose(self, wave: int, target: float) -> WaveComposition:
        warnings: List[str] = []

        def warn(msg: str):
            warnings.append(msg)
            if log_level():
                print(f"[WAVE] wave={wave} WARN {msg}", flush=True)

        if target <= 0:
            # nothing to spend: trivially satisfied
            return WaveComposition(wave=wave, target=target)

        wl = self.whitelist(target)
        if not wl:
            warn("whitelist empty even after fallback; no spawnable wave")
            return WaveComposition(wave=wave, target=target, converged=False, warnings=tuple(warnings))

        by_id = {t.id: t for t in wl}
        counts: Dict[str, int] = {t.id: 0 for t in wl}
        size = 0
        cost = 0.0
        bounty = 0.0

        share = target / len(wl)
        for t in wl:
            if t.cost <= 0:
                continue
            k = int(math.floor(share / t.cost))
            if k > 0:
                counts[t.id] = k
                size += k
                cost += t.cost * k
                bounty += t.bounty * k

        tol = self.gen.difficulty_tolerance
        max_attempts = self.gen.max_selection_attempts
        attempts = 0
        converged = False
        while True:
            rel = abs(target - cost) / target
            if rel <= tol and cost > 0:
                converged = True
                break
            if attempts >= max_attempts:
                break
            attempts += 1
            if cost < target or size == 0:
                pick = wl[self.rng.randrange(0, len(wl))]
                counts[pick.id] += 1
                size += 1
                cost += pick.cost
                bounty += pick.bounty
            else:
                # uniform over instances, so weighted by stack size
                gone = by_id[_nth_instance(counts, self.rng.randrange(0, size))]
                counts[gone.id] -= 1
                size -= 1
                cost -= gone.cost
                bounty -= gone.bounty

        if not converged:
            warn(f"no convergence after {max_attempts} attempts: cost={cost:.2f} target={target:.2f} "
                 f"(rel={abs(target - cost) / target:.3f} > tol={tol:.3f})")

        if log_level() >= 2:
            print(f"[WAVE] wave={wave} target={target:.1f} cost={cost:.1f} n={size} "
                  f"whitelist={[t.id for t in wl]} attempts={attempts}", flush=True)

        return WaveComposition(
            wave=wave,
            target=target,
            stacks=tuple((by_id[i], c) for i, c in counts.items() if c > 0),
            total_cost=cost,
            total_bounty=bounty,
            whitelist=tuple(t.id for t in wl),
            attempts=attempts,
            converged=converged,
            warnings=tuple(warnings),
        )
