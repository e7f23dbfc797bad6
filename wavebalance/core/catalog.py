from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List

from .config import log_level
from .errors import ConfigError


@dataclass(frozen=True)
class EnemyArchetype:
    id: str
    hp: float
    speed: float
    bounty: float = 0.0

    @property
    def cost(self) -> float:
        # difficulty proxy: how hard this enemy is to counter
        return self.hp * self.speed

    @classmethod
    def from_def(cls, d: Dict[str, Any]) -> "EnemyArchetype":
        """Build from either a flat record or a game definition with a nested "stats" block.

        {"id": "a", "hp": 10, "speed": 1, "bounty": 2}
        {"id": "a", "stats": {"hp": 10, "speed": 1, "bounty": 2}}
        """
        stats = d.get("stats") if isinstance(d.get("stats"), dict) else d
        if d.get("id") in (None, ""):
            raise ConfigError(f"enemy definition without id: {d!r}")
        try:
            return cls(
                id=str(d["id"]),
                hp=float(stats.get("hp") or 0.0),
                speed=float(stats.get("speed") or 0.0),
                bounty=float(stats.get("bounty") or 0.0),
            )
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"enemy {d.get('id')!r}: non-numeric stats ({exc})") from exc


class EnemyCatalog:
    """Usable enemy archetypes, sorted by ascending cost.

    Archetypes with speed <= 0 or hp <= 0 cannot contribute a finite positive
    cost; they are dropped with a warning. An empty result is a configuration error.
    """

    def __init__(self, defs: Iterable[Any]):
        self.warnings: List[str] = []
        self.discarded: List[EnemyArchetype] = []
        usable: List[EnemyArchetype] = []
        seen: set[str] = set()
        for raw in defs:
            a = raw if isinstance(raw, EnemyArchetype) else EnemyArchetype.from_def(raw)
            if a.id in seen:
                raise ConfigError(f"duplicate enemy id {a.id!r}")
            seen.add(a.id)
            if a.speed <= 0 or a.hp <= 0:
                self.discarded.append(a)
                self._warn(f"discarding enemy {a.id!r}: speed={a.speed} hp={a.hp} (both must be > 0)")
                continue
            if a.bounty < 0:
                raise ConfigError(f"enemy {a.id!r}: bounty must be >= 0 (got {a.bounty})")
            usable.append(a)

        if not usable:
            raise ConfigError("no usable enemy archetypes (need at least one with speed > 0 and hp > 0)")

        # stable: ties keep declaration order
        self.archetypes: List[EnemyArchetype] = sorted(usable, key=lambda a: a.cost)

    def _warn(self, msg: str):
        self.warnings.append(msg)
        if log_level():
            print(f"[CAT] WARN {msg}", flush=True)

    def __len__(self) -> int:
        return len(self.archetypes)

    def __iter__(self):
        return iter(self.archetypes)

    @property
    def min_speed(self) -> float:
        return min(a.speed for a in self.archetypes)

    def reference_time(self, path_length: float) -> float:
        """T_0: seconds for the slowest usable archetype to walk the full path."""
        return float(path_length) / self.min_speed
