# oneoff_benchmark.py — MWCNF batch runs: watchdog + result logging + summary
from __future__ import annotations

import csv
import itertools
import json
import multiprocessing as mp
import queue
import sys
import time
from pathlib import Path
from typing import Dict, Optional, Tuple

import pandas as pd
from logger import log

#################### parameters ####################
DATASET_GLOB = "*.mwcnf"
TIME_LIMIT = 300                 # s – expected upper bound of one SA run
TIME_PAD   = 120                 # s – watchdog cushion
SEEDS      = list(range(10))
WRITE_TRACES = False             # trace_<inst>_<cfg>_<seed>.csv per run

SA_CONFIGS = [
    {"name": "SA-auto", "params": None},
    {"name": "SA-fast", "params": {"temp_start": 50.0, "alpha": 0.95,
                                   "temp_min": 0.5, "iters_per_temp": 100}},
]
####################################################


def progress_bar(done: int, total: int, barlen: int = 30):
    pct = done / total if total else 1.0
    filled = int(barlen * pct)
    bar = "#" * filled + "-" * (barlen - filled)
    sys.stdout.write(f"\r[{bar}] {pct*100:5.1f}% ({done}/{total})\x1b[K")
    sys.stdout.flush()


def load_skiplist() -> set[Tuple[str, str, int]]:
    if not Path("runs.csv").exists():
        return set()
    with Path("runs.csv").open(newline="") as f:
        return {(r["instance"], r["config"], int(r["seed"])) for r in csv.DictReader(f)}

# ───────────────────────── worker (spawn‑safe) ─────────────────────────

def _worker_run_sa(q: mp.Queue,
                   inst_str: str,
                   cfg_name: str,
                   cfg_params: Optional[Dict],
                   seed: int):
    """Run a single (instance, config, seed) in a child process."""

    proj_root = Path(__file__).parent
    if str(proj_root) not in sys.path:
        sys.path.insert(0, str(proj_root))

    import maxsatSA
    import mwcnf

    problem = mwcnf.load_instance(Path(inst_str))
    params = maxsatSA.SAParams(**cfg_params) if cfg_params else None

    t0 = time.perf_counter()
    temps = itertools.count(1)

    # logs every 50 temperatures
    def progress_cb(step: int, best_unsat: int, best_weight: int):
        if next(temps) % 50 == 0:
            log(f"{inst_str} | {cfg_name} | seed={seed} | step={step} | "
                f"unsat={best_unsat} | weight={best_weight} | t={int(time.perf_counter()-t0)}s",
                level="DBG")

    trace_path = Path(f"trace_{problem.name}_{cfg_name}_{seed}.csv")
    start = time.perf_counter()
    if WRITE_TRACES:
        with trace_path.open("w", encoding="utf-8", newline="") as trace:
            solution, stats = maxsatSA.solve(problem, seed, params, trace, progress_cb)
    else:
        solution, stats = maxsatSA.solve(problem, seed, params, progress_cb=progress_cb)
    runtime = time.perf_counter() - start

    satisfied, unsatisfied, weight = mwcnf.evaluate(problem, solution)
    row = {
        "instance": Path(inst_str).name,
        "config": cfg_name,
        "seed": seed,
        "weight": weight,
        "satisfied": satisfied,
        "unsatisfied": unsatisfied,
        "feasible": unsatisfied == 0,
        "runtime_s": runtime,
        **{k: v for k, v in stats.items() if k not in ("best_weight", "satisfied", "unsatisfied", "runtime_s")},
    }

    log(f"RESULT | {row}", level="RESULT")

    json_path = Path(f"solution_{problem.name}_{cfg_name}_{seed}.json")
    with json_path.open("w", encoding="utf-8") as f:
        json.dump(solution, f)

    q.put(row)

# ───────────────────────── watchdog wrapper ─────────────────────────

def run_sa_safe(inst_path: Path, cfg: Dict, seed: int) -> Dict:
    q = mp.Queue()
    proc = mp.Process(target=_worker_run_sa,
                      args=(q, str(inst_path), cfg["name"], cfg.get("params"), seed))
    proc.start()
    proc.join(TIME_LIMIT + TIME_PAD)

    if proc.is_alive():
        proc.terminate(); proc.join()
        log(f"TIMEOUT: {inst_path.name} | {cfg['name']} | seed={seed}", "WARN")
        return {"instance": inst_path.name, "config": cfg["name"], "seed": seed, "timeout": True}
    try:
        return q.get_nowait()
    except queue.Empty:
        log(f"NO RESULT: {inst_path.name} | {cfg['name']} | seed={seed} | exit={proc.exitcode}", "WARN")
        return {"instance": inst_path.name, "config": cfg["name"], "seed": seed, "timeout": True}

# ───────────────────────── summary ─────────────────────────

def summarize(runs: pd.DataFrame) -> pd.DataFrame:
    if "weight" not in runs:
        return pd.DataFrame()
    runs = runs[runs["weight"].notna()].astype({"feasible": bool})
    return (
        runs.groupby(["instance", "config"])
            .agg(min_weight=("weight", "min"),
                 max_weight=("weight", "max"),
                 median_weight=("weight", "median"),
                 mean_weight=("weight", "mean"),
                 std_weight=("weight", "std"),
                 feasible_rate=("feasible", "mean"),
                 mean_steps=("steps", "mean"),
                 mean_runtime_s=("runtime_s", "mean"))
            .reset_index()
    )

# ───────────────────────── main driver ─────────────────────────

def main():
    mp.set_start_method("spawn", force=True)

    inst_paths = sorted(Path(__file__).parent.rglob(DATASET_GLOB))
    skip = load_skiplist()
    todo = [(inst, cfg, seed) for inst, cfg, seed in itertools.product(inst_paths, SA_CONFIGS, SEEDS)
            if (inst.name, cfg["name"], seed) not in skip]
    log(f"Run started — {len(todo)} runs to go")

    for done, (inst, cfg, seed) in enumerate(todo, 1):
        progress_bar(done, len(todo))
        print(f"\n>> STARTING {inst.name} | {cfg['name']} | seed={seed}", flush=True)
        row = run_sa_safe(inst, cfg, seed)
        pd.DataFrame([row]).to_csv("runs.csv", mode="a", index=False,
                                   header=not Path("runs.csv").exists())
        if not row.get("timeout"):
            print(f"✅ Completed: {inst.name} | {cfg['name']} | seed={seed} → "
                  f"weight={row['weight']} unsat={row['unsatisfied']} "
                  f"time={row['runtime_s']:.1f}s", flush=True)

    if not Path("runs.csv").exists():
        log("No runs recorded", "WARN")
        return
    summarize(pd.read_csv("runs.csv")).to_csv("summary.csv", index=False)
    log("Finished ➜ runs.csv, summary.csv")

# ───────────────────────── entry ─────────────────────────
if __name__ == "__main__":
    import os
    os.chdir(Path(__file__).parent)
    sys.stdout.reconfigure(line_buffering=True)
    main()
