"""Dense linear-algebra helpers for the basis inverse."""

from __future__ import annotations

from typing import Optional, Sequence

import numpy as np


def try_inverse(matrix: np.ndarray) -> Optional[np.ndarray]:
    """Return the inverse of a square ``matrix`` or ``None`` if it is singular."""
    if matrix.ndim != 2 or matrix.shape[0] != matrix.shape[1]:
        raise ValueError("matrix must be square")
    try:
        inverse = np.linalg.inv(matrix)
    except np.linalg.LinAlgError:
        return None
    if not np.all(np.isfinite(inverse)):
        return None
    return inverse


def inverse_residual(basis_inverse: np.ndarray, basis_matrix: np.ndarray) -> float:
    """Largest absolute deviation of ``basis_inverse @ basis_matrix`` from identity."""
    size = basis_matrix.shape[0]
    product = basis_inverse @ basis_matrix
    return float(np.max(np.abs(product - np.eye(size)))) if size else 0.0


def basic_solution(
    A: np.ndarray,
    b: np.ndarray,
    basis: Sequence[int],
    basis_inverse: np.ndarray,
) -> np.ndarray:
    x = np.zeros(A.shape[1], dtype=float)
    x[list(basis)] = basis_inverse @ b
    return x
