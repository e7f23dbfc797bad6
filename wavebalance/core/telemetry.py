from __future__ import annotations
from typing import Any, Dict, List, Optional
import os, json, csv, datetime

from .. import settings
from .config import log_level
from .snapshot import ParameterSnapshot


def _now_id() -> str:
    return datetime.datetime.now().strftime("%Y%m%d_%H%M%S")


class AnalysisWriter:
    """Writes a run's artifacts into one directory.
      - analysis-params.json   (parameter snapshot)
      - analysis-results.json  (per-wave records)
      - analysis-results.csv   (same records, flat)
      - analysis-summary.md    (human-readable report)
    """
    def __init__(self, out_dir: str, run_id: Optional[str] = None):
        self.run_id = run_id or _now_id()
        self.dir = str(out_dir)
        os.makedirs(self.dir, exist_ok=True)
        self.written: List[str] = []

    def path(self, name: str) -> str:
        return os.path.join(self.dir, name)

    def record(self, p: str):
        self.written.append(p)
        if log_level():
            print(f"[BAL] wrote {p}", flush=True)

    def write_params(self, snap: ParameterSnapshot, name: str = settings.PARAMS_FILE) -> str:
        p = self.path(name)
        with open(p, "w", encoding="utf-8") as f:
            json.dump(snap.to_dict(), f, indent=2)
        self.record(p)
        return p

    def write_results(self, records: List[Dict[str, Any]], name: str = settings.RESULTS_FILE) -> str:
        p = self.path(name)
        with open(p, "w", encoding="utf-8") as f:
            json.dump(records, f, indent=2)
        self.record(p)
        return p

    def write_csv(self, records: List[Dict[str, Any]], name: str = settings.RESULTS_CSV) -> str:
        p = self.path(name)
        fieldnames = list(records[0].keys()) if records else ["wave"]
        with open(p, "w", newline="", encoding="utf-8") as f:
            w = csv.DictWriter(f, fieldnames=fieldnames)
            w.writeheader()
            for r in records:
                w.writerow(r)
        self.record(p)
        return p

    def write_summary(self, snap: ParameterSnapshot, records: List[Dict[str, Any]], *,
                      mode: str = "plain", flat_start: Optional[int] = None,
                      stopped_at: Optional[int] = None, non_converged: Optional[List[int]] = None,
                      name: str = settings.SUMMARY_FILE) -> str:
        p = self.path(name)
        lines = []
        lines.append("# Wave Balance Analysis\n\n")
        lines.append(f"- Run: `{self.run_id}`\n")
        lines.append(f"- Mode: **{mode}**\n")
        lines.append(f"- Waves simulated: **{len(records)}**\n")
        if stopped_at is not None:
            lines.append(f"- Stopped early at wave **{stopped_at}** (no spawnable wave)\n")
        if non_converged:
            lines.append(f"- Waves outside tolerance: `{non_converged}`\n")
        if flat_start is not None:
            lines.append(f"- Flat-start money (g1 == g2): **{flat_start}**\n")
        elif mode == "plain":
            lines.append("- Flat-start money: unsolvable\n")
        lines.append("\n## Parameters\n")
        lines.append(f"- B0: `{snap.B0}` | alpha: `{snap.alpha}` | betaFactor: `{snap.beta_factor}`\n")
        lines.append(f"- W1: `{snap.W1}` | f: `{snap.f}`\n")
        lines.append(f"- L: `{snap.L}` | dt: `{snap.dt_seconds}s` | T0: `{snap.T0:.4f}s`\n")
        if snap.wear is not None:
            lines.append(f"- wear: `{snap.wear}`\n")
        lines.append(f"- waveGenConfig: `{json.dumps(snap.wave_gen)}`\n")
        lines.append("\n## Enemies\n")
        for e in snap.enemy_stats:
            lines.append(f"- {e['id']}: hp `{e['hp']}` speed `{e['speed']}` bounty `{e['bounty']}` cost `{e['w']}`\n")
        lines.append("\n## Waves\n\n")
        lines.append("| wave | bounty | duration (s) | assets | ratio |\n")
        lines.append("|---:|---:|---:|---:|---:|\n")
        for r in records:
            lines.append(f"| {r['wave']} | {r['totalBounty']:.0f} | {r['durationMs'] / 1000.0:.2f} | "
                         f"{r['cumulativeAssets']:.0f} | {r['ratio']:.3f} |\n")
        with open(p, "w", encoding="utf-8") as f:
            f.write("".join(lines))
        self.record(p)
        return p
