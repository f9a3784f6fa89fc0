"""Reference LP solver built on SciPy, used to cross-check simplex results."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from scipy.optimize import linprog


@dataclass
class LPSolution:
    x: np.ndarray
    status: str
    objective: float


class LPSolverError(RuntimeError):
    pass


_STATUS_NAMES = {
    0: "optimal",
    1: "iteration_limit",
    2: "infeasible",
    3: "unbounded",
    4: "numerical_difficulties",
}


def solve_reference(c: np.ndarray, A: np.ndarray, b: np.ndarray) -> LPSolution:
    """Maximize ``c @ x`` subject to ``A @ x == b`` and ``x >= 0`` with HiGHS."""
    c = np.asarray(c, dtype=float).reshape(-1)
    A = np.asarray(A, dtype=float)
    b = np.asarray(b, dtype=float).reshape(-1)
    n = c.size

    if A.ndim != 2 or A.shape[1] != n:
        raise ValueError("A must be a 2-D array with n columns")
    if b.size != A.shape[0]:
        raise ValueError("b must match the number of rows in A")

    res = linprog(
        -c,
        A_eq=A,
        b_eq=b,
        bounds=[(0, None)] * n,
        method="highs",
    )
    status = _STATUS_NAMES.get(res.status, str(res.status))
    if status == "unbounded":
        return LPSolution(np.full(n, np.nan), status, float("inf"))
    if not res.success:
        raise LPSolverError(res.message)
    return LPSolution(res.x, status, float(c @ res.x))
