from __future__ import annotations

"""Command-line balance analysis.

    python -m wavebalance.balance.run [DATA_DIR] [--mode plain|depreciation]

Loads the level data set, projects the wave horizon, writes the parameter
snapshot and results next to the data (or into --out / WAVEBALANCE_OUT) and
prints the flat-start money for waves 1-2.
"""

import argparse
import os
import random
import sys
from typing import List, Optional

from .. import settings
from ..core.config import RunConfig, env_flag, env_seed, log_level
from ..core.determinism import make_rng
from ..core.errors import ConfigError
from ..core.snapshot import ParameterSnapshot
from ..core.storage import DATA_DIR, load_level
from ..core.telemetry import AnalysisWriter
from .depreciation import DepreciationProjector
from .economy import EconomyProjector, ProjectionRun
from .solver import solve_flat_start


def _parse(argv: Optional[List[str]]) -> argparse.Namespace:
    ap = argparse.ArgumentParser(prog="wavebalance", description="Wave composition / economy balance analysis.")
    ap.add_argument("data_dir", nargs="?", default=None, help="level data directory (default: bundled sample)")
    ap.add_argument("--mode", choices=("plain", "depreciation"), default="plain")
    ap.add_argument("--max-wave", type=int, default=None)
    ap.add_argument("--seed", type=int, default=None)
    ap.add_argument("--start-money", type=float, default=None, help="override starting money")
    ap.add_argument("--out", default=None, help="output directory")
    ap.add_argument("--chart", action="store_true", help="also render the ratio chart (PNG)")
    ap.add_argument("--apply-solved-start", action="store_true",
                    help="rerun with the solved flat-start money and write that run instead")
    return ap.parse_args(argv)


def _project(cfg: RunConfig, catalog, mode: str, seed: Optional[int]) -> ProjectionRun:
    rng = make_rng(seed, tag=f"compose:{mode}")
    if mode == "depreciation":
        return DepreciationProjector(cfg, catalog, rng=rng).run()
    return EconomyProjector(cfg, catalog, rng=rng).run()


def main(argv: Optional[List[str]] = None) -> int:
    args = _parse(argv)
    data_dir = args.data_dir or str(DATA_DIR)
    try:
        data = load_level(data_dir)
        max_wave = settings.MAX_WAVE if args.max_wave is None else args.max_wave
        cfg = data.to_config(max_wave=max_wave).with_env_overrides()
        if args.start_money is not None:
            cfg = cfg.with_starting_money(args.start_money)
        catalog = data.catalog()
        seed = args.seed if args.seed is not None else env_seed()
        if seed is None and args.apply_solved_start:
            # both passes must compose the same waves
            seed = random.randrange(2 ** 32)
        run = _project(cfg, catalog, args.mode, seed)
    except ConfigError as exc:
        print(f"[BAL] config error: {exc}", file=sys.stderr, flush=True)
        return 2

    # the flat-start inverse is defined on the plain ratio only
    flat = solve_flat_start(run.results) if args.mode == "plain" else None
    if args.apply_solved_start and flat is not None and flat.solved:
        cfg = cfg.with_starting_money(flat.money)
        run = _project(cfg, catalog, args.mode, seed)

    out_dir = args.out or os.environ.get("WAVEBALANCE_OUT") or data_dir
    writer = AnalysisWriter(out_dir)
    snap = ParameterSnapshot.capture(cfg, catalog)
    records = run.records()
    writer.write_params(snap)
    results_name = settings.WEAR_RESULTS_FILE if args.mode == "depreciation" else settings.RESULTS_FILE
    writer.write_results(records, name=results_name)
    writer.write_csv(records)
    writer.write_summary(snap, records, mode=args.mode, flat_start=flat.money if flat else None,
                         stopped_at=run.stopped_at, non_converged=run.non_converged)

    if args.chart or env_flag("WAVEBALANCE_CHART"):
        from ..ui.chart import save_ratio_chart
        writer.record(save_ratio_chart(records, writer.path(settings.CHART_FILE),
                                      title=f"Balance ratio ({args.mode})"))

    if log_level() and flat is not None:
        shown = flat.money if flat.solved else "unsolvable"
        print(f"[BAL] flat-start money (waves 1-2): {shown}", flush=True)
    return 0


if __name__ == "__main__":
    sys.exit(main())
