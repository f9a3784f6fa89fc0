"""Revised primal simplex method for standard-form LPs.

Maximize c^T x subject to A x = b, x >= 0, starting from the basis formed by
the trailing m columns of A. The basis inverse is carried between pivots and
refreshed with a Sherman-Morrison rank-1 update.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence

import numpy as np

from utils.linalg import basic_solution, inverse_residual, try_inverse

logger = logging.getLogger(__name__)

DEFAULT_PIVOT_TOLERANCE = 1e-5
DEFAULT_OPTIMALITY_TOLERANCE = 1e-9
DEFAULT_REFACTOR_EVERY = 50


class SimplexError(ValueError):
    """Raised when the simplex solver cannot accept its input."""


class SingularBasisError(SimplexError):
    """Raised when a basis sub-matrix cannot be inverted."""


class UnboundedProblemError(SimplexError):
    """Raised when the objective can grow without limit."""


class IterationLimitError(SimplexError):
    """Raised when the pivot budget ran out before termination."""


class Status(str, Enum):
    OPTIMAL = "optimal"
    UNBOUNDED = "unbounded"
    SINGULAR = "singular"
    ITERATION_LIMIT = "iteration_limit"


@dataclass(frozen=True)
class StandardFormProblem:
    """Maximize c^T x subject to A x = b, x >= 0."""

    A: np.ndarray
    b: np.ndarray
    c: np.ndarray


@dataclass(frozen=True)
class PivotRecord:
    iteration: int
    entering: int
    leaving: int
    row: int
    objective: float
    residual: float

    def to_dict(self) -> dict:
        return {
            "iteration": self.iteration,
            "entering": self.entering,
            "leaving": self.leaving,
            "row": self.row,
            "objective": self.objective,
            "residual": self.residual,
        }


@dataclass
class SimplexResult:
    status: Status
    basis: List[int]
    iterations: int
    basis_inverse: Optional[np.ndarray] = None
    x: Optional[np.ndarray] = None
    objective: Optional[float] = None
    trace: List[PivotRecord] = field(default_factory=list)

    def inverse_residual(self, A: np.ndarray) -> float:
        if self.basis_inverse is None:
            raise SingularBasisError("no basis inverse available")
        return inverse_residual(self.basis_inverse, np.asarray(A, dtype=float)[:, self.basis])

    def raise_for_status(self) -> SimplexResult:
        if self.status is Status.OPTIMAL:
            return self
        if self.status is Status.UNBOUNDED:
            raise UnboundedProblemError("objective is unbounded above")
        if self.status is Status.SINGULAR:
            raise SingularBasisError("basis is singular")
        raise IterationLimitError(f"no optimum after {self.iterations} pivots")

    def to_dict(self) -> dict:
        return {
            "status": self.status.value,
            "basis": list(self.basis),
            "iterations": self.iterations,
            "objective": self.objective,
            "x": None if self.x is None else self.x.tolist(),
        }


def reduced_costs(
    c_basis: np.ndarray,
    c_non_basis: np.ndarray,
    basis_inverse: np.ndarray,
    non_basis_matrix: np.ndarray,
) -> np.ndarray:
    """Marginal objective change per unit of each non-basic variable."""
    return c_basis @ basis_inverse @ non_basis_matrix - c_non_basis


def select_entering(reduced: np.ndarray, *, tolerance: float = 0.0) -> Optional[int]:
    """Dantzig rule: position of the most negative reduced cost, if any."""
    if reduced.size == 0:
        return None
    position = int(np.argmin(reduced))
    if reduced[position] >= -tolerance:
        return None
    return position


def select_leaving(
    A: np.ndarray,
    basis_inverse: np.ndarray,
    b: np.ndarray,
    entering: int,
    *,
    pivot_tolerance: float = DEFAULT_PIVOT_TOLERANCE,
) -> Optional[int]:
    """Minimum-ratio test over rows whose pivot entry clears the tolerance."""
    column = basis_inverse @ A[:, entering]
    rhs = basis_inverse @ b
    eligible = np.nonzero(column >= pivot_tolerance)[0]
    if eligible.size == 0:
        return None
    ratios = rhs[eligible] / column[eligible]
    return int(eligible[np.argmin(ratios)])


def sherman_morrison_update(
    A: np.ndarray,
    basis_inverse: np.ndarray,
    entering: int,
    leaving: int,
    row: int,
    *,
    tolerance: float = 1e-12,
) -> np.ndarray:
    """Inverse of the basis after column ``row`` swaps ``leaving`` for ``entering``.

    The new basis is ``B + u v^T`` with ``u = a_entering - a_leaving`` and
    ``v = e_row``, so the rank-1 identity applies directly. The denominator is
    the pivot element ``(B^-1 a_entering)[row]``.
    """
    u = A[:, entering] - A[:, leaving]
    inverse_u = basis_inverse @ u
    v_inverse = basis_inverse[row, :]
    denominator = float(inverse_u[row]) + 1.0
    if abs(denominator) < tolerance:
        raise SingularBasisError(
            f"pivot {denominator:.3e} too small to swap column {leaving} for {entering}"
        )
    return basis_inverse - np.outer(inverse_u, v_inverse) / denominator


class RevisedSimplexSolver:
    def __init__(
        self,
        *,
        max_iterations: int = 10_000,
        pivot_tolerance: float = DEFAULT_PIVOT_TOLERANCE,
        optimality_tolerance: float = DEFAULT_OPTIMALITY_TOLERANCE,
        refactor_every: int = DEFAULT_REFACTOR_EVERY,
        trace: bool = False,
    ) -> None:
        if max_iterations < 0:
            raise SimplexError("max_iterations must be non-negative")
        if pivot_tolerance <= 0:
            raise SimplexError("pivot_tolerance must be positive")
        if optimality_tolerance < 0:
            raise SimplexError("optimality_tolerance must be non-negative")
        if refactor_every < 0:
            raise SimplexError("refactor_every must be non-negative")
        self._max_iterations = int(max_iterations)
        self._pivot_tol = float(pivot_tolerance)
        self._opt_tol = float(optimality_tolerance)
        self._refactor_every = int(refactor_every)
        self._trace = trace

    @property
    def max_iterations(self) -> int:
        return self._max_iterations

    def solve(self, problem: StandardFormProblem) -> SimplexResult:
        A, b, c = _validate(problem)
        m, n = A.shape

        basis = list(range(n - m, n))
        non_basis = [j for j in range(n) if j not in basis]
        basis_inverse = try_inverse(A[:, basis])
        if basis_inverse is None:
            logger.warning("initial basis %s is singular", basis)
            return SimplexResult(status=Status.SINGULAR, basis=[], iterations=0)

        trace: List[PivotRecord] = []
        status = Status.ITERATION_LIMIT
        iterations = 0

        while iterations < self._max_iterations:
            reduced = reduced_costs(
                c[basis], c[non_basis], basis_inverse, A[:, non_basis]
            )
            position = select_entering(reduced, tolerance=self._opt_tol)
            if position is None:
                status = Status.OPTIMAL
                break
            entering = non_basis[position]

            row = select_leaving(
                A, basis_inverse, b, entering, pivot_tolerance=self._pivot_tol
            )
            if row is None:
                status = Status.UNBOUNDED
                break
            leaving = basis[row]

            logger.debug("it: %d, leaving: %d, entering: %d", iterations, leaving, entering)
            basis[row] = entering
            non_basis[position] = leaving
            iterations += 1
            try:
                if self._refactor_every and iterations % self._refactor_every == 0:
                    basis_inverse = self._refactor(A, basis)
                else:
                    basis_inverse = sherman_morrison_update(
                        A, basis_inverse, entering, leaving, row
                    )
            except SingularBasisError as exc:
                logger.warning("basis became singular after %d pivots: %s", iterations, exc)
                return SimplexResult(
                    status=Status.SINGULAR, basis=[], iterations=iterations, trace=trace
                )

            if self._trace:
                x = basic_solution(A, b, basis, basis_inverse)
                trace.append(
                    PivotRecord(
                        iteration=iterations,
                        entering=entering,
                        leaving=leaving,
                        row=row,
                        objective=float(c @ x),
                        residual=inverse_residual(basis_inverse, A[:, basis]),
                    )
                )

        if status is Status.OPTIMAL:
            logger.info("optimal after %d pivots", iterations)
        elif status is Status.UNBOUNDED:
            logger.warning("program is unbounded after %d pivots", iterations)
        else:
            logger.warning("iteration limit %d reached", self._max_iterations)

        x = basic_solution(A, b, basis, basis_inverse)
        return SimplexResult(
            status=status,
            basis=basis,
            iterations=iterations,
            basis_inverse=basis_inverse,
            x=x,
            objective=float(c @ x),
            trace=trace,
        )

    def _refactor(self, A: np.ndarray, basis: Sequence[int]) -> np.ndarray:
        inverse = try_inverse(A[:, list(basis)])
        if inverse is None:
            raise SingularBasisError(f"basis {list(basis)} cannot be re-inverted")
        logger.debug("re-inverted basis %s", list(basis))
        return inverse


def solve(
    A: np.ndarray,
    b: np.ndarray,
    c: np.ndarray,
    max_iterations: int,
    *,
    pivot_tolerance: float = DEFAULT_PIVOT_TOLERANCE,
    optimality_tolerance: float = DEFAULT_OPTIMALITY_TOLERANCE,
    refactor_every: int = DEFAULT_REFACTOR_EVERY,
) -> SimplexResult:
    solver = RevisedSimplexSolver(
        max_iterations=max_iterations,
        pivot_tolerance=pivot_tolerance,
        optimality_tolerance=optimality_tolerance,
        refactor_every=refactor_every,
    )
    return solver.solve(StandardFormProblem(A=A, b=b, c=c))


def _validate(problem: StandardFormProblem) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    A = np.asarray(problem.A, dtype=float)
    b = np.asarray(problem.b, dtype=float).reshape(-1)
    c = np.asarray(problem.c, dtype=float).reshape(-1)

    if A.ndim != 2:
        raise SimplexError("constraint matrix A must be 2-D")
    m, n = A.shape
    if m == 0:
        raise SimplexError("A must have at least one row")
    if m > n:
        raise SimplexError(f"A has more rows ({m}) than columns ({n})")
    if b.size != m:
        raise SimplexError("right-hand side b must match rows in A")
    if c.size != n:
        raise SimplexError("objective vector c must match number of columns in A")
    for name, array in (("A", A), ("b", b), ("c", c)):
        if not np.all(np.isfinite(array)):
            raise SimplexError(f"{name} contains non-finite values")
    return A, b, c
