from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Iterable, List, Sequence, Tuple, Union

from ..core.catalog import EnemyArchetype
from .wave_composer import WaveComposition

Stack = Tuple[EnemyArchetype, int]


@dataclass(frozen=True)
class SpeedGroup:
    speed: float
    count: int
    stacks: tuple[tuple[str, int], ...] = ()


@dataclass(frozen=True)
class GroupTiming:
    speed: float
    count: int
    t_com_ms: float
    t_start_ms: float
    t_last_reach_ms: float


@dataclass(frozen=True)
class SpawnEvent:
    timestamp_ms: float
    enemy_id: str


def stack_members(members: Iterable[EnemyArchetype]) -> List[Stack]:
    """Collapse individual enemies into (archetype, count), first-seen order."""
    seen: Dict[str, List] = {}
    for m in members:
        if m.id in seen:
            seen[m.id][1] += 1
        else:
            seen[m.id] = [m, 1]
    return [(a, c) for a, c in seen.values()]


def group_by_speed(stacks: Iterable[Stack]) -> List[SpeedGroup]:
    """Groups of identical speed, slowest first."""
    by_speed: Dict[float, List[Tuple[str, int]]] = {}
    for a, c in stacks:
        if c > 0:
            by_speed.setdefault(a.speed, []).append((a.id, c))
    return [SpeedGroup(speed=s, count=sum(c for _, c in st), stacks=tuple(st))
            for s, st in sorted(by_speed.items())]


class WaveTimingModel:
    """Duration of a wave when every speed group's centre of mass meets at the path midpoint.

    Speeds are path units per second; all times are milliseconds.
    - t_COM_i   = (d / s_i)*1000 + (k_i - 1)*dt/2      with d = L/2
    - t_start_i = max_j t_COM_j - t_COM_i
    - t_last_i  = t_start_i + (k_i - 1)*dt + (L / s_i)*1000
    - T         = max_i t_last_i   (0 for an empty wave)
    """

    def __init__(self, path_length: float, delay_ms: float):
        self.path_length = float(path_length)
        self.delay_ms = float(delay_ms)

    @staticmethod
    def _stacks(wave: Union[WaveComposition, Sequence[EnemyArchetype]]) -> Sequence[Stack]:
        return wave.stacks if isinstance(wave, WaveComposition) else stack_members(wave)

    def group_timings(self, wave: Union[WaveComposition, Sequence[EnemyArchetype]]) -> List[GroupTiming]:
        groups = group_by_speed(self._stacks(wave))
        if not groups:
            return []
        L = self.path_length
        d = L / 2.0
        dt = self.delay_ms

        t_com: List[float] = []
        for g in groups:
            offset = (g.count - 1) * dt / 2.0 if g.count > 1 else 0.0
            t_com.append((d / g.speed) * 1000.0 + offset)
        t_com_max = max(t_com)

        out: List[GroupTiming] = []
        for g, tc in zip(groups, t_com):
            t_start = t_com_max - tc
            spawn_span = (g.count - 1) * dt if g.count > 1 else 0.0
            out.append(GroupTiming(
                speed=g.speed,
                count=g.count,
                t_com_ms=tc,
                t_start_ms=t_start,
                t_last_reach_ms=t_start + spawn_span + (L / g.speed) * 1000.0,
            ))
        return out

    def duration_ms(self, wave: Union[WaveComposition, Sequence[EnemyArchetype]]) -> float:
        timings = self.group_timings(wave)
        if not timings:
            return 0.0
        return max(0.0, max(t.t_last_reach_ms for t in timings))

    def schedule(self, wave: Union[WaveComposition, Sequence[EnemyArchetype]]) -> List[SpawnEvent]:
        """Spawn events (time, enemy id) for the coordinated schedule, in time order.

        One event per enemy, so only call this for waves you intend to spawn.
        """
        groups = group_by_speed(self._stacks(wave))
        timings = self.group_timings(wave)
        events: List[SpawnEvent] = []
        for g, t in zip(groups, timings):
            i = 0
            for enemy_id, count in g.stacks:
                for _ in range(count):
                    events.append(SpawnEvent(timestamp_ms=t.t_start_ms + i * self.delay_ms, enemy_id=enemy_id))
                    i += 1
        events.sort(key=lambda e: e.timestamp_ms)
        return events
