"""Diagnostics for robust polynomial fits."""

from __future__ import annotations

from typing import Any, Dict, Optional

import numpy as np

from polykit.robust.engine import ConsensusResult

__all__ = ["make_consensus_diag", "format_consensus_diagnostics"]


def make_consensus_diag(method: Any, result: ConsensusResult) -> Dict[str, Any]:
    """Builds the diagnostics dictionary returned by ``estimate(diagnostics=True)``.

    Args:
        method: Method identifier of the estimator.
        result: Outcome of the consensus loop.

    Returns:
        Dictionary with keys ``method``, ``iterations``, ``inlier_mask``,
        ``n_inliers``, ``residuals``, ``best_score``, ``threshold``,
        ``robust_std``, ``refined`` and ``candidate``.
    """
    score = result.score
    return {
        "method": method,
        "iterations": int(result.iterations),
        "inlier_mask": np.asarray(score.inlier_mask, dtype=bool).copy(),
        "n_inliers": int(score.n_inliers),
        "residuals": np.asarray(result.residuals, dtype=float).copy(),
        "best_score": float(score.value),
        "threshold": float(score.threshold),
        "robust_std": score.robust_std,
        "refined": bool(result.refined),
        "candidate": result.candidate,
    }


def format_consensus_diagnostics(diag: Dict[str, Any], *, decimals: int = 4, max_rows: int = 12) -> str:
    """Formats consensus diagnostics into a human-readable string.

    Args:
      diag: Diagnostics dictionary as returned by ``make_consensus_diag``.
      decimals: Number of decimal places for floating-point numbers.
      max_rows: Maximum number of residuals to display.

    Returns:
      A formatted multi-line summary.
    """
    if not isinstance(diag, dict):
        return "‹diagnostics unavailable›"

    method = diag.get("method")
    method = getattr(method, "value", method)
    residuals = np.asarray(diag.get("residuals", []), float)
    mask = np.asarray(diag.get("inlier_mask", []), bool)
    robust_std: Optional[float] = diag.get("robust_std")

    with np.printoptions(precision=decimals, suppress=True):
        lines = ["=== Consensus Diagnostics ==="]
        lines.append(f"method     : {method}")
        lines.append(f"iterations : {diag.get('iterations')}")
        lines.append(f"inliers    : {diag.get('n_inliers')}/{residuals.size}")
        lines.append(f"best score : {diag.get('best_score'):.{decimals}g}")
        lines.append(f"threshold  : {diag.get('threshold'):.{decimals}g}")
        if robust_std is not None:
            lines.append(f"robust std : {robust_std:.{decimals}g}")
        lines.append(f"refined    : {diag.get('refined')}")
        if residuals.size:
            shown = min(residuals.size, max_rows)
            lines.append("residuals (* = inlier):")
            for i in range(shown):
                flag = "*" if mask.size > i and mask[i] else " "
                lines.append(f"  {flag} [{i:3d}] {residuals[i]:.{decimals}g}")
            if residuals.size > shown:
                lines.append(f"  ... ({residuals.size - shown} more)")
    return "\n".join(lines)
