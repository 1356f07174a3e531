"""Structural rank of the target-controllability matrix.

For a source matrix B and one CA-series ``[C, CA, …, CA^L]`` the
controllability matrix is

.. math::

    R = \\bigl[\\, CB \\;\\; CAB \\;\\; CA^2B \\;\\cdots\\; CA^LB \\,\\bigr]
    \\in \\mathbb{R}^{m \\times k(L+1)}

and its rank is the number of target nodes the sources can steer
through paths of length at most ``L``.

A single random instantiation of the edge weights can land on a
non-generic point and under-report the rank.  :func:`structural_rank`
therefore evaluates several independently randomised CA-series and
keeps the running maximum, stopping as soon as a trial repeats the
current value.  This is a heuristic: a plateau that repeats before a
higher true rank appears ends the estimate early.
"""

from __future__ import annotations

from typing import List, Sequence, Tuple

import numpy as np

from .matrices import (
    NodeIndex,
    build_adjacency,
    build_target,
    left_multiply_series,
    matrix_powers,
)

__all__ = [
    "controllability_matrix",
    "kalman_rank",
    "structural_rank",
    "controllability_trials",
]


def controllability_matrix(
    B: np.ndarray, ca_series: Sequence[np.ndarray],
) -> np.ndarray:
    """Horizontal concatenation ``[CA^0·B, CA^1·B, …, CA^L·B]``."""
    return np.hstack([ca @ B for ca in ca_series])


def kalman_rank(B: np.ndarray, ca_series: Sequence[np.ndarray]) -> int:
    """Numerical column rank of the controllability matrix.

    Singular values below the standard tolerance
    (``σ_max · max(shape) · eps``) count as zero.

    Raises
    ------
    FloatingPointError
        If the matrix contains NaN or infinite entries.  This signals a
        broken matrix construction, not a recoverable condition.
    """
    R = controllability_matrix(B, ca_series)
    if R.size == 0:
        return 0
    if not np.all(np.isfinite(R)):
        raise FloatingPointError(
            "Controllability matrix contains non-finite values.")
    return int(np.linalg.matrix_rank(R))


def structural_rank(
    B: np.ndarray, trials: Sequence[Sequence[np.ndarray]],
) -> int:
    """Stabilised maximum of :func:`kalman_rank` over randomised trials.

    Trials are processed in order.  A larger rank replaces the running
    value; an equal rank ends the loop; a smaller one is ignored.
    """
    result = 0
    for ca_series in trials:
        rank = kalman_rank(B, ca_series)
        if rank > result:
            result = rank
        elif rank == result:
            break
    return result


def controllability_trials(
    index: NodeIndex,
    edges: Sequence[Tuple[str, str]],
    targets: Sequence[str],
    maximum_path_length: int,
    rank_computations: int,
    random_seed: int,
) -> List[List[np.ndarray]]:
    """Build ``rank_computations`` independently randomised CA-series.

    All trials draw from a single generator seeded with *random_seed*,
    so the whole collection is reproducible.  The result is read-only
    input for every rank estimate of the run.
    """
    rng = np.random.default_rng(random_seed)
    C = build_target(index, targets)
    trials = []
    for _ in range(rank_computations):
        A = build_adjacency(index, edges, rng)
        series = left_multiply_series(C, matrix_powers(A, maximum_path_length))
        for ca in series:
            ca.setflags(write=False)
        trials.append(series)
    return trials
