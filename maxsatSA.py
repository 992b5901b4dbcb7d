"""
maxsatSA.py – Simulated Annealing for weighted MAX-SAT (MWCNF instances)
progress_cb(step, best_unsat, best_weight)  → called once per temperature (optional)

Energy (lower is better, 0 = every clause satisfied and every variable true):
    E = (unsat * penalty + (ideal_weight - weight)) / avg_weight
with penalty = ideal_weight, so fewer unsatisfied clauses always dominates weight.
"""
from __future__ import annotations
import math, random, time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional, TextIO, Tuple
import numpy as np

import mwcnf
from mwcnf import Instance, LoadError
from logger import log
from recorder import BestResult, TraceWriter

NOISE_PROB = 0.5                 # random-walk branch of the neighbour move
AUTO_ALPHA = 0.99
AUTO_ACCEPT_START = 0.9          # P(accept one-clause worsening) at tempStart
AUTO_ACCEPT_END = 0.0001         # ... and at tempMin
ITERS_PER_VAR = 3
STAGNATION_VARS_FACTOR = 100


class NotLoadedError(RuntimeError):
    """solve() called without a usable instance."""


class NoSolutionError(RuntimeError):
    """Summary requested before any solve produced a best assignment."""


class InvalidParamsError(ValueError):
    """Cooling schedule violates tempStart > tempMin > 0, 0 < alpha < 1 or itersPerTemp >= 1."""


@dataclass(frozen=True)
class SAParams:
    temp_start: float
    alpha: float
    temp_min: float
    iters_per_temp: int

    @classmethod
    def from_instance(cls, inst: Instance) -> "SAParams":
        """Derive a schedule from instance scale (automatic tuning)."""
        base = base_penalty(inst)
        span = base / inst.avg_weight + 1
        return cls(temp_start=-span / math.log(AUTO_ACCEPT_START),
                   alpha=AUTO_ALPHA,
                   temp_min=-span / math.log(AUTO_ACCEPT_END),
                   iters_per_temp=ITERS_PER_VAR * inst.num_vars)

    def validate(self) -> None:
        if not self.temp_min > 0:
            raise InvalidParamsError(f"tempMin must be > 0 (got {self.temp_min})")
        if not self.temp_start > self.temp_min:
            raise InvalidParamsError(f"tempStart must exceed tempMin (got {self.temp_start} <= {self.temp_min})")
        if not 0 < self.alpha < 1:
            raise InvalidParamsError(f"alpha must lie in (0, 1) (got {self.alpha})")
        if self.iters_per_temp < 1:
            raise InvalidParamsError(f"itersPerTemp must be >= 1 (got {self.iters_per_temp})")

    def cooling_steps(self) -> int:
        return math.ceil((math.log(self.temp_min) - math.log(self.temp_start)) / math.log(self.alpha))

# --------------------------------------------------------------------- #
# objective

def base_penalty(inst: Instance) -> float:
    return float(inst.ideal_weight)


def energy(inst: Instance, assign: np.ndarray, penalty: float) -> Tuple[float, int, int]:
    """Return (energy, unsatisfied, weight)."""
    unsat = mwcnf.count_unsatisfied(inst, assign)
    weight = mwcnf.weight_sum(inst, assign)
    e = (unsat * penalty + (inst.ideal_weight - weight)) / inst.avg_weight
    return e, unsat, weight

# --------------------------------------------------------------------- #
# schedule

def cool(T: float, alpha: float) -> float:
    return T * alpha


def frozen(T: float, temp_min: float) -> bool:
    return T <= temp_min


def equilibrium(iter_at_temp: int, iters_per_temp: int) -> bool:
    return iter_at_temp >= iters_per_temp


def accept(delta: float, T: float, rng: random.Random) -> bool:
    """Metropolis rule; improving or equal moves never consume a random draw."""
    if delta <= 0:
        return True
    return rng.random() < math.exp(-delta / T)

# --------------------------------------------------------------------- #
# neighbourhood

def _greedy_var(inst: Instance, assign: np.ndarray, clause: List[int]) -> int:
    """Variable of `clause` whose flip leaves the fewest unsatisfied clauses."""
    work = assign.copy()
    best_var, best_unsat = -1, None
    for lit in clause:
        v = abs(lit) - 1
        work[v] = not work[v]
        unsat = mwcnf.count_unsatisfied(inst, work)
        work[v] = not work[v]
        if best_unsat is None or unsat < best_unsat:
            best_var, best_unsat = v, unsat
    return best_var


def neighbour(inst: Instance, assign: np.ndarray, rng: random.Random,
              noise: float = NOISE_PROB) -> np.ndarray:
    """One-flip neighbour, biased toward repairing an unsatisfied clause."""
    child = assign.copy()
    unsat = mwcnf.unsatisfied_clauses(inst, assign)
    if len(unsat) == 0:
        v = rng.randrange(inst.num_vars)
    else:
        clause = inst.clauses[int(rng.choice(unsat))]
        if rng.random() < noise:
            v = abs(rng.choice(clause)) - 1
        else:
            v = _greedy_var(inst, assign, clause)
    child[v] = not child[v]
    return child

# --------------------------------------------------------------------- #

class Solver:
    def __init__(self, seed: Optional[int] = None):
        self.rng = random.Random(seed)
        self.instance: Optional[Instance] = None
        self.params: Optional[SAParams] = None
        self.penalty = 0.0
        self.best = BestResult()
        self.stats: Dict = {}

    def set_seed(self, seed: Optional[int]) -> None:
        self.rng.seed(seed)

    def set_instance(self, inst: Instance) -> None:
        self.instance = inst
        self.penalty = base_penalty(inst)
        self.best.reset()
        self.stats = {}

    def load(self, path) -> bool:
        try:
            inst = mwcnf.load_instance(Path(path))
        except LoadError as exc:
            log(str(exc), level="ERROR")
            return False
        self.set_instance(inst)
        log(f"Loaded {inst.name}: vars={inst.num_vars} clauses={len(inst.clauses)} "
            f"ideal_weight={inst.ideal_weight}")
        return True

    def _usable_instance(self) -> Instance:
        inst = self.instance
        if inst is None:
            raise NotLoadedError("No instance loaded")
        if inst.num_vars == 0 or inst.ideal_weight == 0 or not inst.clauses:
            raise NotLoadedError(f"Instance {inst.name} has no variables, weights or clauses")
        return inst

    def solve(self, params: Optional[SAParams] = None, trace: Optional[TextIO] = None,
              progress_cb: Optional[Callable[[int, int, int], None]] = None) -> bool:
        """Run SA. params=None → schedule derived from the instance."""
        try:
            inst = self._usable_instance()
            params = params or SAParams.from_instance(inst)
            params.validate()
        except (NotLoadedError, InvalidParamsError) as exc:
            log(str(exc), level="ERROR")
            return False
        self.params = params
        log(f"SA start {inst.name} | T0={params.temp_start:.4g} alpha={params.alpha} "
            f"Tmin={params.temp_min:.4g} iters={params.iters_per_temp}")
        self._anneal(inst, params, TraceWriter(trace) if trace is not None else None, progress_cb)
        log(f"SA done {inst.name} | weight={self.best.weight} unsat={self.best.unsatisfied} "
            f"steps={self.best.steps} t={self.stats['runtime_s']:.2f}s")
        return True

    def _initial_assignment(self, inst: Instance) -> np.ndarray:
        return np.array([self.rng.random() < 0.5 for _ in range(inst.num_vars)], dtype=bool)

    def _anneal(self, inst: Instance, params: SAParams, tracer: Optional[TraceWriter],
                progress_cb: Optional[Callable[[int, int, int], None]]) -> None:
        rng, penalty, n_clauses = self.rng, self.penalty, len(inst.clauses)
        start = time.perf_counter()

        cur = self._initial_assignment(inst)
        e_cur, u_cur, w_cur = energy(inst, cur, penalty)
        best = BestResult(); best.offer(cur, u_cur, w_cur)
        if tracer: tracer.record(0, e_cur, n_clauses - u_cur, u_cur, w_cur)

        # restart-on-stagnation is not performed; the bound is reported only
        cooling_steps = params.cooling_steps()
        stagn_bound = max(cooling_steps * params.iters_per_temp / 2,
                          inst.num_vars * STAGNATION_VARS_FACTOR)
        steps = stagn = stagn_max = accepted = 0

        T = params.temp_start
        while not frozen(T, params.temp_min):
            it = 0
            while not equilibrium(it, params.iters_per_temp):
                nxt = neighbour(inst, cur, rng)
                e_nxt, u_nxt, w_nxt = energy(inst, nxt, penalty)
                if accept(e_nxt - e_cur, T, rng):
                    cur, e_cur, u_cur, w_cur = nxt, e_nxt, u_nxt, w_nxt
                    stagn = 0; accepted += 1
                    best.offer(cur, u_cur, w_cur)
                else:
                    stagn += 1; stagn_max = max(stagn_max, stagn)
                steps += 1; it += 1
                if tracer: tracer.record(steps, e_cur, n_clauses - u_cur, u_cur, w_cur)
            T = cool(T, params.alpha)
            if progress_cb: progress_cb(steps, best.unsatisfied, best.weight)

        best.steps = steps
        self.best = best
        self.stats = dict(stagnation_bound=stagn_bound, max_stagnation=stagn_max,
                          accepted=accepted, rejected=steps - accepted,
                          cooling_steps=cooling_steps,
                          runtime_s=time.perf_counter() - start)

    # ---- read-only accessors for the I/O layer ---- #

    def _solved(self) -> Instance:
        if self.instance is None or self.best.assignment is None:
            raise NoSolutionError("No solution available, run solve() first")
        return self.instance

    def best_energy(self) -> Optional[float]:
        try:
            inst = self._solved()
        except NoSolutionError as exc:
            log(str(exc), level="ERROR")
            return None
        return energy(inst, self.best.assignment, self.penalty)[0]

    def best_solution_summary(self) -> Optional[Tuple[str, int, List[bool]]]:
        """(instance_id, best_weight, assignment) or None before a solve."""
        try:
            inst = self._solved()
        except NoSolutionError as exc:
            log(str(exc), level="ERROR")
            return None
        return inst.name, self.best.weight, self.best.assignment.tolist()

    def complete_summary(self) -> Optional[Tuple[str, int, int, int, int]]:
        """(instance_id, best_weight, satisfied, unsatisfied, total_steps)."""
        try:
            inst = self._solved()
        except NoSolutionError as exc:
            log(str(exc), level="ERROR")
            return None
        b = self.best
        return inst.name, b.weight, len(inst.clauses) - b.unsatisfied, b.unsatisfied, b.steps

# --------------------------------------------------------------------- #

def solve(problem: Instance, seed: int, params: Optional[SAParams] = None,
          trace: Optional[TextIO] = None,
          progress_cb: Optional[Callable[[int, int, int], None]] = None):
    """Batch entry point: returns (assignment, stats)."""
    solver = Solver(seed)
    solver.set_instance(problem)
    if not solver.solve(params, trace, progress_cb):
        raise NotLoadedError(f"SA could not run on {problem.name}")
    _, weight, sat, unsat, steps = solver.complete_summary()
    stats = dict(best_weight=weight, satisfied=sat, unsatisfied=unsat, steps=steps,
                 best_energy=solver.best_energy(), **solver.stats)
    return solver.best.assignment.tolist(), stats
