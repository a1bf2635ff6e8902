"""Linear algebra helper functions with diagnostics."""

from __future__ import annotations

import warnings

import numpy as np
from numpy.typing import NDArray

__all__ = ["solve_linear_system"]


def solve_linear_system(
    matrix: np.ndarray,
    vector: np.ndarray,
    *,
    rcond: float = 1e-12,
    cond_warn: float = 1e10,
    warn_context: str = "linear solve",
) -> NDArray[np.float64]:
    """Solve ``matrix @ x = vector`` exactly or in the least-squares sense.

    Square systems are solved directly. Over-determined systems are solved with
    ``np.linalg.lstsq``; the solve is rejected when the design does not have
    full column rank, since the coefficients would then not be unique. A
    warning is emitted when a full-rank over-determined system is
    ill-conditioned.

    Args:
      matrix: Design matrix of shape ``(m, n)`` with ``m >= n``.
      vector: Right-hand side of shape ``(m,)``.
      rcond: Relative cutoff for small singular values.
      cond_warn: Condition number above which a warning is emitted.
      warn_context: Short label included in the warning message.

    Returns:
      Solution vector of shape ``(n,)``.

    Raises:
      ValueError: If shapes of ``matrix`` and ``vector`` are incompatible.
      np.linalg.LinAlgError: If the system is singular or rank-deficient.
    """
    matrix = np.asarray(matrix, dtype=float)
    vector = np.asarray(vector, dtype=float)

    if matrix.ndim != 2:
        raise ValueError(f"matrix must be 2D; got shape {matrix.shape}.")
    m, n = matrix.shape
    if vector.ndim != 1 or vector.shape[0] != m:
        raise ValueError(f"vector must have shape ({m},); got {vector.shape}.")
    if m < n:
        raise np.linalg.LinAlgError(f"under-determined system: {m} equations for {n} unknowns.")

    if not np.all(np.isfinite(matrix)) or not np.all(np.isfinite(vector)):
        raise np.linalg.LinAlgError("system contains non-finite values.")

    if m == n:
        solution = np.linalg.solve(matrix, vector)
        if not np.all(np.isfinite(solution)):
            raise np.linalg.LinAlgError("solution contains non-finite values.")
        return solution

    solution, _, rank, sing_vals = np.linalg.lstsq(matrix, vector, rcond=rcond)
    if rank < n:
        raise np.linalg.LinAlgError(f"rank-deficient system (rank={rank} < {n}).")

    cond_val = float(sing_vals[0] / sing_vals[-1]) if sing_vals[-1] > 0 else np.inf
    if cond_val > cond_warn:
        warnings.warn(
            f"In {warn_context}, the system is ill-conditioned (cond≈{cond_val:.2e}); "
            "results may be unstable.",
            RuntimeWarning,
        )
    return solution
