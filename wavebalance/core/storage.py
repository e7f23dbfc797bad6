from __future__ import annotations
import json, os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .. import settings
from .catalog import EnemyCatalog
from .config import EconomyParams, RunConfig, WaveParams
from .errors import ConfigError

DATA_DIR = Path(__file__).resolve().parent.parent / "data"

ENEMIES_FILE = "enemies.json"
WAVES_FILE = "waves.json"
BASE_FILE = "base.json"
LEVEL_FILE = "level1.json"


def read_json(path: Path) -> Any:
    try:
        return json.loads(Path(path).read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise ConfigError(f"missing data file {path}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigError(f"{path}: invalid JSON ({exc})") from exc


@dataclass(frozen=True)
class LevelData:
    """Raw contents of one level's data set."""
    enemies: List[Dict[str, Any]]
    waves: Dict[str, Any]
    base: Dict[str, Any]
    level: Dict[str, Any]
    path_stats: Dict[str, Any]

    def starting_money(self) -> float:
        override = self.level.get("overrideStartingMoney")
        if override is not None:
            return float(override)
        stats = self.base.get("stats") or {}
        return float(stats.get("money") or 0)

    def to_config(self, max_wave: int = settings.MAX_WAVE) -> RunConfig:
        L = self.path_stats.get("totalPathLength")
        if not L:
            raise ConfigError("missing totalPathLength in path stats")
        if self.level.get("difficulty") is None:
            raise ConfigError("missing difficulty (alpha) in level config")
        if not self.waves.get("delayBetweenEnemiesMs"):
            raise ConfigError("missing delayBetweenEnemiesMs in wave config")
        if (self.base.get("stats") or {}).get("money") is None and self.level.get("overrideStartingMoney") is None:
            raise ConfigError("missing money in base stats and no overrideStartingMoney")

        scale = self.level.get("currencyScale")
        wear = self.level.get("wear")
        try:
            eco = EconomyParams(
                starting_money=self.starting_money(),
                alpha=float(self.level["difficulty"]),
                max_wave=int(max_wave),
                currency_scale=None if scale is None else float(scale),
                wear=None if wear is None else float(wear),
            )
            path_length = float(L)
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"invalid level / base values: {exc}") from exc
        return RunConfig(waves=WaveParams.from_dict(self.waves), path_length=path_length, economy=eco).validate()

    def catalog(self) -> EnemyCatalog:
        return EnemyCatalog(self.enemies)


def load_level(data_dir: Optional[os.PathLike] = None, level_file: str = LEVEL_FILE) -> LevelData:
    """Load enemies/waves/base/level JSON from `data_dir`.

    The level's "pathStatsPath" is resolved relative to `data_dir`.
    """
    base = Path(data_dir) if data_dir else DATA_DIR
    enemies = read_json(base / ENEMIES_FILE)
    if not isinstance(enemies, list):
        raise ConfigError(f"{base / ENEMIES_FILE}: expected a list of enemy definitions")
    level = read_json(base / level_file)
    stats_rel = level.get("pathStatsPath")
    if not stats_rel:
        raise ConfigError(f"{base / level_file}: missing pathStatsPath")
    return LevelData(
        enemies=enemies,
        waves=read_json(base / WAVES_FILE),
        base=read_json(base / BASE_FILE),
        level=level,
        path_stats=read_json(base / stats_rel),
    )


def load_run(data_dir: Optional[os.PathLike] = None, max_wave: int = settings.MAX_WAVE) -> Tuple[RunConfig, EnemyCatalog]:
    data = load_level(data_dir)
    return data.to_config(max_wave=max_wave), data.catalog()
