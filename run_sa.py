"""
run_sa.py – command-line front end for maxsatSA

    python run_sa.py instance.mwcnf [tempStart alpha tempMin itersPerTemp]
                     [--out results.dat] [--trace trace.csv] [--seed N]

Without the four schedule values the schedule is derived from the instance.
The result record is appended to --out, the trace file is overwritten.
"""
from __future__ import annotations
import argparse
import contextlib
import csv
import random
import sys
from typing import List, Optional, Sequence, TextIO, Tuple

import logger
from logger import log
from maxsatSA import SAParams, Solver


def format_best_solution(summary: Tuple[str, int, List[bool]]) -> str:
    """`<id> <weight> 1 -2 3 ... 0` – signed literal per variable."""
    name, weight, assign = summary
    lits = [str(i + 1) if val else str(-(i + 1)) for i, val in enumerate(assign)]
    return " ".join([name, str(weight), *lits, "0"])


def write_result_record(sink: TextIO, summary: Sequence) -> None:
    csv.writer(sink, lineterminator="\n").writerow(summary)


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Simulated annealing for weighted MAX-SAT (MWCNF).")
    ap.add_argument("instance", help="Path to a .mwcnf instance")
    ap.add_argument("schedule", nargs="*", metavar="tempStart alpha tempMin itersPerTemp",
                    help="Explicit cooling schedule (all four or none)")
    ap.add_argument("--out", help="Append the result record (CSV line) to this file")
    ap.add_argument("--trace", help="Write the per-step trace CSV to this file")
    ap.add_argument("--seed", type=int, default=None, help="RNG seed (default: random)")
    ap.add_argument("--log", default=None, help="Log file path")
    ap.add_argument("--quiet", action="store_true", help="Only log warnings and errors")
    return ap


def parse_schedule(ap: argparse.ArgumentParser, values: List[str]) -> Optional[SAParams]:
    if not values:
        return None
    if len(values) != 4:
        ap.error("schedule needs exactly four values: tempStart alpha tempMin itersPerTemp")
    try:
        return SAParams(temp_start=float(values[0]), alpha=float(values[1]),
                        temp_min=float(values[2]), iters_per_temp=int(values[3]))
    except ValueError as exc:
        ap.error(f"bad schedule value: {exc}")


def main(argv: Optional[Sequence[str]] = None) -> int:
    ap = build_parser()
    args = ap.parse_args(argv)
    if args.log:
        logger.set_log_path(args.log)
    if args.quiet:
        logger.set_level("WARN")
    params = parse_schedule(ap, args.schedule)

    seed = args.seed if args.seed is not None else random.SystemRandom().randrange(2**32)
    log(f"seed={seed}")
    solver = Solver(seed)
    if not solver.load(args.instance):
        return 1

    with contextlib.ExitStack() as stack:
        try:
            out = stack.enter_context(open(args.out, "a", encoding="utf-8", newline="")) if args.out else None
            trace = stack.enter_context(open(args.trace, "w", encoding="utf-8", newline="")) if args.trace else None
        except OSError as exc:
            log(f"Failed to open output file for writing: {exc}", level="ERROR")
            return 1

        if not solver.solve(params, trace):
            return 1
        print(format_best_solution(solver.best_solution_summary()), flush=True)
        if out is not None:
            write_result_record(out, solver.complete_summary())
    return 0


if __name__ == "__main__":
    sys.exit(main())
