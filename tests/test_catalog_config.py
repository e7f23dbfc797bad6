from __future__ import annotations
import math

import pytest

from wavebalance.core.catalog import EnemyArchetype, EnemyCatalog
from wavebalance.core.config import WaveGenConfig, WaveParams, env_seed
from wavebalance.core.errors import ConfigError


def test_cost_is_hp_times_speed():
    assert EnemyArchetype("x", hp=12, speed=3).cost == 36


def test_nested_stats_definition():
    a = EnemyArchetype.from_def({"id": "orc", "stats": {"hp": 20, "speed": 1.5, "bounty": 3}})
    assert (a.id, a.hp, a.speed, a.bounty) == ("orc", 20.0, 1.5, 3.0)


def test_catalog_sorted_by_cost(mixed_catalog):
    assert [a.id for a in mixed_catalog] == ["swarm", "grunt", "brute"]


def test_unusable_archetypes_are_discarded_with_warning():
    cat = EnemyCatalog([
        {"id": "ok", "hp": 1, "speed": 1},
        {"id": "frozen", "hp": 10, "speed": 0},
        {"id": "ghost", "hp": -1, "speed": 3},
    ])
    assert [a.id for a in cat] == ["ok"]
    assert {a.id for a in cat.discarded} == {"frozen", "ghost"}
    assert len(cat.warnings) == 2


def test_empty_usable_catalog_is_config_error():
    with pytest.raises(ConfigError):
        EnemyCatalog([{"id": "frozen", "hp": 10, "speed": 0}])
    with pytest.raises(ConfigError):
        EnemyCatalog([])


def test_duplicate_ids_rejected():
    with pytest.raises(ConfigError):
        EnemyCatalog([{"id": "a", "hp": 1, "speed": 1}, {"id": "a", "hp": 2, "speed": 1}])


def test_reference_time_uses_slowest(mixed_catalog):
    assert mixed_catalog.min_speed == 1
    assert mixed_catalog.reference_time(300) == pytest.approx(300.0)


def test_wave_gen_defaults():
    g = WaveGenConfig.from_dict(None)
    assert g.max_selection_attempts == 200
    assert g.difficulty_tolerance == pytest.approx(0.10)
    assert math.isinf(g.max_prepopulation_per_type)
    assert g.min_enemy_types == 1


def test_wave_gen_zero_values_fall_back_but_cap_zero_is_kept():
    g = WaveGenConfig.from_dict({"maxSelectionAttempts": 0, "difficultyTolerance": 0,
                                 "maxPrepopulationPerType": 0, "minEnemyTypes": 3})
    assert g.max_selection_attempts == 200
    assert g.difficulty_tolerance == pytest.approx(0.10)
    assert g.max_prepopulation_per_type == 0
    assert g.min_enemy_types == 3
    assert g.to_dict()["maxPrepopulationPerType"] == 0


def test_infinite_cap_serialises_as_null():
    assert WaveGenConfig().to_dict()["maxPrepopulationPerType"] is None


def test_target_difficulty_is_geometric():
    w = WaveParams(starting_difficulty=20, difficulty_increase_factor=1.5)
    assert w.target_difficulty(1) == pytest.approx(20)
    assert w.target_difficulty(3) == pytest.approx(45)


def test_wave_params_missing_field():
    with pytest.raises(ConfigError):
        WaveParams.from_dict({"startingDifficulty": 10, "difficultyIncreaseFactor": 1.2})


@pytest.mark.parametrize("kw", [
    {"L": 0},
    {"L": -5},
    {"delay_ms": 0},
    {"max_wave": 0},
    {"gen": WaveGenConfig(max_selection_attempts=0)},
    {"gen": WaveGenConfig(difficulty_tolerance=-0.1)},
    {"wear": -1.0},
])
def test_invalid_run_config(make_config, kw):
    with pytest.raises(ConfigError):
        make_config(**kw).validate()


def test_env_overrides(make_config, monkeypatch):
    monkeypatch.setenv("WAVEBALANCE_MAX_WAVE", "12")
    monkeypatch.setenv("WAVEBALANCE_START_MONEY", "250")
    cfg = make_config().with_env_overrides()
    assert cfg.economy.max_wave == 12
    assert cfg.economy.starting_money == 250


def test_bad_env_override(make_config, monkeypatch):
    monkeypatch.setenv("WAVEBALANCE_MAX_WAVE", "lots")
    with pytest.raises(ConfigError):
        make_config().with_env_overrides()


def test_env_seed(monkeypatch):
    assert env_seed() is None
    monkeypatch.setenv("WAVEBALANCE_SEED", "42")
    assert env_seed() == 42
