"""Matrix encoding of a directed network for the Kalman rank test.

Builds the three matrices of the linear system ``x' = A x + B u``,
``y = C x`` from node labels, and the power series of ``A`` that the
controllability matrix is assembled from.

Matrices
--------
A  (n × n)  adjacency, ``A[target, source] = 1 + U[0, 1)`` per edge
B  (n × k)  source indicator, one 1 per column
C  (m × n)  target indicator, one 1 per row

The uniform perturbation on the edge weights breaks accidental rank
degeneracies of the exact 0/1 pattern, so that the numerical rank
reflects the *generic* (structural) rank.  The diagonal of A is never
populated.

Usage
-----
>>> import numpy as np
>>> index = NodeIndex(["A", "B", "C"])
>>> A = build_adjacency(index, [("A", "B"), ("B", "C")], np.random.default_rng(0))
>>> C = build_target(index, ["C"])
>>> ca_series = left_multiply_series(C, matrix_powers(A, 2))
"""

from __future__ import annotations

from typing import Dict, Iterator, List, Optional, Sequence, Tuple

import numpy as np

__all__ = [
    "NodeIndex",
    "build_adjacency",
    "build_source",
    "build_target",
    "matrix_powers",
    "left_multiply_series",
]


# ═══════════════════════════════════════════════════════════════════
# NodeIndex: dense 0-based addressing of node labels
# ═══════════════════════════════════════════════════════════════════

class NodeIndex:
    """Bijective, order-preserving mapping label ↔ 0-based index.

    Parameters
    ----------
    labels : sequence of str
        Distinct node labels.  Index ``i`` is the position of the label
        in this sequence.

    Raises
    ------
    ValueError
        If *labels* contains duplicates.
    """

    def __init__(self, labels: Sequence[str]):
        self._labels: Tuple[str, ...] = tuple(labels)
        self._index: Dict[str, int] = {
            label: i for i, label in enumerate(self._labels)}
        if len(self._index) != len(self._labels):
            raise ValueError("Node labels must be unique.")

    def __len__(self) -> int:
        return len(self._labels)

    def __contains__(self, label: object) -> bool:
        return label in self._index

    def __iter__(self) -> Iterator[str]:
        return iter(self._labels)

    def __getitem__(self, label: str) -> int:
        return self._index[label]

    def __repr__(self) -> str:
        return f"NodeIndex({len(self._labels)} nodes)"

    def index_of(self, label: str) -> int:
        """Index of *label*.  Raises ``KeyError`` for unknown labels."""
        return self._index[label]

    def label_of(self, index: int) -> str:
        """Label at *index*.  Raises ``IndexError`` when out of range."""
        return self._labels[index]

    @property
    def labels(self) -> Tuple[str, ...]:
        return self._labels


# ═══════════════════════════════════════════════════════════════════
# Matrix builders
# ═══════════════════════════════════════════════════════════════════

def build_adjacency(
    index: NodeIndex,
    edges: Sequence[Tuple[str, str]],
    rng: Optional[np.random.Generator] = None,
) -> np.ndarray:
    """Adjacency matrix with randomly perturbed unit weights.

    Parameters
    ----------
    index : NodeIndex
    edges : sequence of (source, target)
        Source nodes address columns, target nodes address rows.
    rng : numpy Generator, optional
        Supplies one ``U[0, 1)`` draw per edge, in edge order.  Without
        it every edge weight is exactly 1.

    Returns
    -------
    A : (n, n) ndarray
    """
    n = len(index)
    A = np.zeros((n, n))
    for source, target in edges:
        weight = 1.0 + (rng.random() if rng is not None else 0.0)
        A[index[target], index[source]] = weight
    return A


def build_source(index: NodeIndex, sources: Sequence[str]) -> np.ndarray:
    """Indicator matrix B (n × k): column ``i`` marks ``sources[i]``."""
    B = np.zeros((len(index), len(sources)))
    for column, label in enumerate(sources):
        B[index[label], column] = 1.0
    return B


def build_target(index: NodeIndex, targets: Sequence[str]) -> np.ndarray:
    """Indicator matrix C (m × n): row ``i`` marks ``targets[i]``."""
    C = np.zeros((len(targets), len(index)))
    for row, label in enumerate(targets):
        C[row, index[label]] = 1.0
    return C


# ═══════════════════════════════════════════════════════════════════
# Power series
# ═══════════════════════════════════════════════════════════════════

def matrix_powers(A: np.ndarray, maximum_power: int) -> List[np.ndarray]:
    """Return ``[I, A, A², …, A^L]`` with ``L = maximum_power``.

    Each power is the previous one left-multiplied by ``A``.
    """
    powers = [np.eye(A.shape[0])]
    for _ in range(maximum_power):
        powers.append(A @ powers[-1])
    return powers


def left_multiply_series(
    C: np.ndarray, powers: Sequence[np.ndarray],
) -> List[np.ndarray]:
    """Return ``[C·P for P in powers]`` — the CA-series, each m × n."""
    return [C @ power for power in powers]
