"""
mwcnf.py
========
Loader & scorer for weighted MAX-SAT instances in MWCNF format.

    c comment
    p mwcnf <n_vars> <n_clauses>
    w <w1> ... <wn> 0
    <lit> <lit> ... 0

Variables are 1-based in the file and 0-based in every assignment array.
"""
from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import List, Sequence, Tuple
import numpy as np

from logger import log


class LoadError(ValueError):
    """Instance file could not be read or is missing a mandatory section."""


@dataclass
class Instance:
    name: str
    num_vars: int
    num_clauses: int                # as declared in the header
    weights: np.ndarray             # weights[i] belongs to variable i+1
    clauses: List[List[int]]

    def weight(self, var: int) -> int:
        """Weight of 1-based variable `var`."""
        return int(self.weights[var - 1])

    @property
    def ideal_weight(self) -> int:
        return int(self.weights.sum())

    @property
    def avg_weight(self) -> float:
        return self.ideal_weight / self.num_vars

# --------------------------------------------------------------------- #

def _is_skipped(ln: str) -> bool:
    return not ln.strip() or ln[0] == "c"


def _int_tokens(tokens: Sequence[str]) -> List[int]:
    """Leading signed integers up to (not including) a 0 or a bad token."""
    out: List[int] = []
    for tok in tokens:
        try:
            v = int(tok)
        except ValueError:
            break
        if v == 0:
            break
        out.append(v)
    return out


def load_instance(path: Path) -> Instance:
    """Load an MWCNF instance from file."""
    path = Path(path)
    try:
        lines = path.read_text(encoding="utf-8").splitlines()
    except (OSError, UnicodeDecodeError) as exc:
        raise LoadError(f"Failed to open file: {path} ({exc})") from exc

    idx = 0
    # header: p mwcnf <n_vars> <n_clauses>
    n_vars = n_clauses = 0
    while idx < len(lines):
        ln = lines[idx]; idx += 1
        if _is_skipped(ln):
            continue
        if ln[0] == "p":
            parts = ln.split()
            try:
                n_vars, n_clauses = int(parts[2]), int(parts[3])
            except (IndexError, ValueError):
                n_vars = 0
            break
    if n_vars <= 0:
        raise LoadError(f"No valid 'p mwcnf n m' line in file: {path}")

    # weights: w w1 ... wn 0   (short lines are zero-padded)
    weights = np.zeros(n_vars, dtype=np.int64)
    have_weights = False
    while idx < len(lines):
        ln = lines[idx]; idx += 1
        if _is_skipped(ln):
            continue
        if ln[0] == "w":
            parts = ln.split()[1:]
            if parts:
                vals = _int_tokens(parts)[:n_vars]
                weights[:len(vals)] = vals
                have_weights = True
            break
    if not have_weights:
        raise LoadError(f"No 'w' line with weights in file: {path}")

    # clauses: everything else, each terminated by 0; empty clauses are dropped
    clauses: List[List[int]] = []
    for ln in lines[idx:]:
        if _is_skipped(ln):
            continue
        clause = _int_tokens(ln.split())
        if not clause:
            continue
        bad = [lit for lit in clause if abs(lit) > n_vars]
        if bad:
            raise LoadError(f"Literal {bad[0]} out of range 1..{n_vars}: '{ln.strip()}'")
        clauses.append(clause)

    if len(clauses) != n_clauses:
        log(f"{path.name}: header declares {n_clauses} clauses, parsed {len(clauses)}", "WARN")

    return Instance(name=path.stem, num_vars=n_vars, num_clauses=n_clauses,
                    weights=weights, clauses=clauses)

# --------------------------------------------------------------------- #

def _prepare_eval_cache(inst: Instance):
    """Padded literal matrices for vectorised clause evaluation."""
    if hasattr(inst, "_eval_cache"):
        return inst._eval_cache

    m = len(inst.clauses)
    k = max((len(c) for c in inst.clauses), default=0)
    lit_var = np.zeros((m, k), dtype=np.int64)
    lit_pos = np.zeros((m, k), dtype=bool)
    lit_mask = np.zeros((m, k), dtype=bool)
    for ci, clause in enumerate(inst.clauses):
        n = len(clause)
        lits = np.asarray(clause, dtype=np.int64)
        lit_var[ci, :n] = np.abs(lits) - 1
        lit_pos[ci, :n] = lits > 0
        lit_mask[ci, :n] = True

    inst._eval_cache = (lit_var, lit_pos, lit_mask)
    return inst._eval_cache


def _as_assignment(inst: Instance, assign) -> np.ndarray:
    arr = np.asarray(assign, dtype=bool)
    if arr.shape != (inst.num_vars,):
        raise ValueError("Invalid assignment shape")
    return arr


def clause_satisfied(inst: Instance, assign) -> np.ndarray:
    """Boolean vector, one entry per clause."""
    lit_var, lit_pos, lit_mask = _prepare_eval_cache(inst)
    arr = _as_assignment(inst, assign)
    lit_true = (arr[lit_var] == lit_pos) & lit_mask
    return lit_true.any(axis=1)


def count_unsatisfied(inst: Instance, assign) -> int:
    return int((~clause_satisfied(inst, assign)).sum())


def unsatisfied_clauses(inst: Instance, assign) -> np.ndarray:
    """Indices of clauses left unsatisfied, in clause order."""
    return np.flatnonzero(~clause_satisfied(inst, assign))


def weight_sum(inst: Instance, assign) -> int:
    return int(inst.weights[_as_assignment(inst, assign)].sum())


def evaluate(inst: Instance, assign) -> Tuple[int, int, int]:
    """Return (satisfied, unsatisfied, weight) for an assignment."""
    sat = clause_satisfied(inst, assign)
    n_sat = int(sat.sum())
    return n_sat, len(sat) - n_sat, weight_sum(inst, assign)
