from __future__ import annotations
import random

import pytest

from wavebalance.core.catalog import EnemyArchetype, EnemyCatalog
from wavebalance.core.config import EconomyParams, RunConfig, WaveGenConfig, WaveParams


@pytest.fixture(autouse=True)
def quiet(monkeypatch):
    monkeypatch.setenv("WAVEBALANCE_LOG", "0")
    for k in ("WAVEBALANCE_MAX_WAVE", "WAVEBALANCE_START_MONEY", "WAVEBALANCE_SEED",
              "WAVEBALANCE_OUT", "WAVEBALANCE_CHART"):
        monkeypatch.delenv(k, raising=False)


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def pair_catalog():
    # costs 10 and 10
    return EnemyCatalog([
        EnemyArchetype("a", hp=10, speed=1, bounty=2),
        EnemyArchetype("b", hp=5, speed=2, bounty=1),
    ])


@pytest.fixture
def mixed_catalog():
    return EnemyCatalog([
        {"id": "swarm", "hp": 1, "speed": 1, "bounty": 0.1},     # cost 1
        {"id": "grunt", "hp": 5, "speed": 2, "bounty": 1},       # cost 10
        {"id": "brute", "hp": 50, "speed": 2, "bounty": 8},      # cost 100
    ])


@pytest.fixture
def make_config():
    def _make(W1=1000.0, f=2.0, delay_ms=500.0, L=1000.0, start=100.0, alpha=10.0,
              max_wave=5, gen=None, wear=None, scale=None) -> RunConfig:
        return RunConfig(
            waves=WaveParams(starting_difficulty=W1, difficulty_increase_factor=f,
                             delay_between_enemies_ms=delay_ms, generation=gen or WaveGenConfig()),
            path_length=L,
            economy=EconomyParams(starting_money=start, alpha=alpha, max_wave=max_wave,
                                  currency_scale=scale, wear=wear),
        )
    return _make


@pytest.fixture
def single_catalog():
    # cost 1000 per enemy, so a target of 1000 * 2^(n-1) is hit exactly by pre-population
    return EnemyCatalog([EnemyArchetype("knight", hp=10, speed=100, bounty=5)])
