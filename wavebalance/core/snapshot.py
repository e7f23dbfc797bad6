from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .catalog import EnemyCatalog
from .config import RunConfig


@dataclass(frozen=True)
class ParameterSnapshot:
    """Exact numeric inputs of a run, for external analysis / plotting.

    Field names of to_dict() are what the plotting notebooks read; dt is in
    seconds there, T0 is L / min(speed) in seconds.
    """
    B0: float
    W1: float
    f: float
    alpha: float
    L: float
    dt_seconds: float
    T0: float
    wave_gen: Dict[str, Any] = field(default_factory=dict)
    enemy_stats: List[Dict[str, Any]] = field(default_factory=list)
    beta_factor: Optional[float] = None
    wear: Optional[float] = None

    @classmethod
    def capture(cls, config: RunConfig, catalog: EnemyCatalog) -> "ParameterSnapshot":
        w = config.waves
        eco = config.economy
        return cls(
            B0=float(eco.starting_money),
            W1=float(w.starting_difficulty),
            f=float(w.difficulty_increase_factor),
            alpha=float(eco.alpha),
            L=float(config.path_length),
            dt_seconds=float(w.delay_between_enemies_ms) / 1000.0,
            T0=catalog.reference_time(config.path_length),
            wave_gen=w.generation.to_dict(),
            enemy_stats=[
                {"id": a.id, "speed": a.speed, "hp": a.hp, "bounty": a.bounty, "w": a.cost}
                for a in catalog
            ],
            beta_factor=eco.currency_scale,
            wear=eco.wear,
        )

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "B0": self.B0,
            "betaFactor": self.beta_factor,
            "W1": self.W1,
            "f": self.f,
            "alpha": self.alpha,
            "L": self.L,
            "dt_seconds": self.dt_seconds,
            "waveGenConfig": dict(self.wave_gen),
            "enemyStats": [dict(e) for e in self.enemy_stats],
            "T0": self.T0,
        }
        if self.wear is not None:
            d["wear"] = self.wear
        return d
