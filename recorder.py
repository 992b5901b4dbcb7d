"""
recorder.py – best-result bookkeeping and per-step trace sink for the SA run
"""
from __future__ import annotations
import csv
from dataclasses import dataclass
from typing import Optional, TextIO
import numpy as np

TRACE_HEADER = ["step", "energy", "satisfied", "unsatisfied", "weight"]


@dataclass
class BestResult:
    """
    Best state seen during a run.

    Preference order: fewer unsatisfied clauses always wins; once a state with
    zero unsatisfied clauses is held, a higher weight wins among those.
    """
    assignment: Optional[np.ndarray] = None
    unsatisfied: int = 0
    weight: int = 0
    steps: int = 0

    def reset(self) -> None:
        self.assignment, self.unsatisfied, self.weight, self.steps = None, 0, 0, 0

    def is_better(self, unsat: int, weight: int) -> bool:
        if self.assignment is None or unsat < self.unsatisfied:
            return True
        return unsat == 0 and self.unsatisfied == 0 and weight > self.weight

    def offer(self, assign: np.ndarray, unsat: int, weight: int) -> bool:
        """Store a copy of `assign` if it beats the current best."""
        if not self.is_better(unsat, weight):
            return False
        self.assignment = assign.copy()
        self.unsatisfied, self.weight = unsat, weight
        return True


class TraceWriter:
    """CSV trace rows written to a caller-owned text stream."""

    def __init__(self, stream: TextIO):
        self.stream = stream
        self._writer = csv.writer(stream, lineterminator="\n")
        self._writer.writerow(TRACE_HEADER)

    def record(self, step: int, energy: float, satisfied: int, unsatisfied: int, weight: int) -> None:
        self._writer.writerow([step, float(energy), satisfied, unsatisfied, weight])
