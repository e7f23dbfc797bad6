from __future__ import annotations
import csv
import json

import pytest

from wavebalance.balance import run as cli
from wavebalance.core.catalog import EnemyCatalog
from wavebalance.core.errors import ConfigError
from wavebalance.core.snapshot import ParameterSnapshot
from wavebalance.core.storage import DATA_DIR, LevelData, load_level, load_run


def test_snapshot_fields(make_config):
    cat = EnemyCatalog([
        {"id": "slow", "hp": 10, "speed": 2, "bounty": 1},
        {"id": "fast", "hp": 4, "speed": 8, "bounty": 1},
        {"id": "broken", "hp": 0, "speed": 3},
    ])
    snap = ParameterSnapshot.capture(make_config(L=600, delay_ms=250, scale=0.5), cat).to_dict()
    assert snap["T0"] == pytest.approx(300.0)
    assert snap["dt_seconds"] == pytest.approx(0.25)
    assert snap["betaFactor"] == 0.5
    assert [e["id"] for e in snap["enemyStats"]] == ["slow", "fast"]
    assert snap["enemyStats"][0]["w"] == pytest.approx(20)
    assert snap["waveGenConfig"]["maxPrepopulationPerType"] is None
    assert "wear" not in snap
    json.dumps(snap)


def test_bundled_level_loads():
    cfg, cat = load_run(DATA_DIR, max_wave=8)
    assert cfg.economy.max_wave == 8
    assert cfg.path_length > 0
    assert len(cat) >= 1
    assert cfg.economy.wear is not None


def _level(**over):
    d = dict(
        enemies=[{"id": "a", "stats": {"hp": 5, "speed": 1, "bounty": 1}}],
        waves={"startingDifficulty": 50, "difficultyIncreaseFactor": 1.1, "delayBetweenEnemiesMs": 400},
        base={"stats": {"money": 120}},
        level={"pathStatsPath": "p.json", "difficulty": 30},
        path_stats={"totalPathLength": 900},
    )
    d.update(over)
    return LevelData(**d)


def test_override_starting_money():
    assert _level().starting_money() == 120
    assert _level(level={"pathStatsPath": "p.json", "difficulty": 30, "overrideStartingMoney": 0}).starting_money() == 0


@pytest.mark.parametrize("over", [
    {"path_stats": {}},
    {"level": {"pathStatsPath": "p.json"}},
    {"waves": {"startingDifficulty": 50, "difficultyIncreaseFactor": 1.1}},
    {"base": {"stats": {}}},
])
def test_missing_required_values(over):
    with pytest.raises(ConfigError):
        _level(**over).to_config()


def test_missing_file(tmp_path):
    with pytest.raises(ConfigError):
        load_level(tmp_path)


def _write_level(d):
    (d / "paths").mkdir()
    (d / "enemies.json").write_text(json.dumps([
        {"id": "grunt", "stats": {"hp": 10, "speed": 100, "bounty": 5}},
    ]))
    (d / "waves.json").write_text(json.dumps({
        "startingDifficulty": 1000, "difficultyIncreaseFactor": 2, "delayBetweenEnemiesMs": 500,
    }))
    (d / "base.json").write_text(json.dumps({"stats": {"money": 0}}))
    (d / "level1.json").write_text(json.dumps({
        "pathStatsPath": "paths/p.json", "difficulty": 10, "currencyScale": 0.1, "wear": 0.001,
    }))
    (d / "paths" / "p.json").write_text(json.dumps({"totalPathLength": 1000}))


def test_cli_writes_outputs(tmp_path):
    data = tmp_path / "level"
    data.mkdir()
    _write_level(data)
    out = tmp_path / "out"
    assert cli.main([str(data), "--max-wave", "3", "--seed", "7", "--out", str(out)]) == 0

    results = json.loads((out / "analysis-results.json").read_text())
    assert [r["wave"] for r in results] == [1, 2, 3]
    assert results[1]["totalBounty"] == 10
    params = json.loads((out / "analysis-params.json").read_text())
    assert params["T0"] == pytest.approx(10.0)
    with open(out / "analysis-results.csv", newline="") as f:
        assert len(list(csv.DictReader(f))) == 3
    summary = (out / "analysis-summary.md").read_text()
    assert "Flat-start money" in summary


def test_cli_depreciation_mode(tmp_path):
    data = tmp_path / "level"
    data.mkdir()
    _write_level(data)
    out = tmp_path / "out"
    assert cli.main([str(data), "--mode", "depreciation", "--max-wave", "3", "--out", str(out)]) == 0
    results = json.loads((out / "analysis-depreciation-results.json").read_text())
    assert len(results) == 3
    assert "calculated_dn" in results[0]


def test_cli_config_error(tmp_path):
    assert cli.main([str(tmp_path), "--out", str(tmp_path / "out")]) == 2


def test_cli_rejects_zero_horizon(tmp_path):
    data = tmp_path / "level"
    data.mkdir()
    _write_level(data)
    assert cli.main([str(data), "--max-wave", "0", "--out", str(tmp_path / "out")]) == 2


def test_cli_rerun_reuses_seed(tmp_path, monkeypatch):
    data = tmp_path / "level"
    data.mkdir()
    _write_level(data)
    seeds = []
    real = cli._project

    def spy(cfg, catalog, mode, seed):
        seeds.append((cfg.economy.starting_money, seed))
        return real(cfg, catalog, mode, seed)

    monkeypatch.setattr(cli, "_project", spy)
    assert cli.main([str(data), "--max-wave", "3", "--apply-solved-start", "--out", str(tmp_path / "out")]) == 0
    assert len(seeds) == 2
    (m1, s1), (m2, s2) = seeds
    assert s1 is not None and s1 == s2
    assert m1 != m2
