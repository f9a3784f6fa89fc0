"""Repeated-solve benchmark for the revised simplex solver."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Iterable, Optional

import numpy as np

from instances import ProblemInstance
from simplex import RevisedSimplexSolver, StandardFormProblem

logger = logging.getLogger(__name__)


@dataclass
class BenchRecord:
    repeat: int
    seconds: float
    status: str
    iterations: int
    objective: Optional[float]
    basis: list[int]

    def to_dict(self) -> dict[str, Any]:
        return {
            "repeat": self.repeat,
            "seconds": self.seconds,
            "status": self.status,
            "iterations": self.iterations,
            "objective": self.objective,
            "basis": list(self.basis),
        }


def run_benchmark(
    instance: ProblemInstance,
    solver: RevisedSimplexSolver,
    repeats: int,
) -> list[BenchRecord]:
    if repeats <= 0:
        raise ValueError("repeats must be positive")
    problem = StandardFormProblem(A=instance.A, b=instance.b, c=instance.c)
    history: list[BenchRecord] = []

    for repeat in range(repeats):
        start = time.perf_counter()
        result = solver.solve(problem)
        elapsed = time.perf_counter() - start

        if history and result.basis != history[0].basis:
            raise RuntimeError(
                f"repeat {repeat} returned basis {result.basis}, "
                f"expected {history[0].basis}"
            )
        history.append(
            BenchRecord(
                repeat=repeat,
                seconds=elapsed,
                status=result.status.value,
                iterations=result.iterations,
                objective=result.objective,
                basis=list(result.basis),
            )
        )
        logger.debug("repeat %d took %.6fs", repeat, elapsed)

    return history


def summarize(records: Iterable[BenchRecord]) -> dict[str, float]:
    seconds = np.array([rec.seconds for rec in records], dtype=float)
    if seconds.size == 0:
        raise ValueError("no benchmark records to summarize")
    return {
        "repeats": int(seconds.size),
        "min": float(seconds.min()),
        "mean": float(seconds.mean()),
        "max": float(seconds.max()),
    }
