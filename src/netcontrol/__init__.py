"""netcontrol: minimum source sets for target control of directed networks.

Given a directed network, a set of target nodes and a set of candidate
source nodes, finds a smallest subset of the sources that structurally
controls as many targets as the full source set does, through paths of
bounded length.  Structural rank is estimated with a randomised Kalman
rank test; the subset search is exhaustive with size-window and
best-size pruning, sequential or on a thread pool.
"""

__version__ = "0.1.0"

from .parameters import Parameters, DEFAULT_PARAMETERS, UNSET_SEED
from .matrices import (
    NodeIndex,
    build_adjacency, build_source, build_target,
    matrix_powers, left_multiply_series,
)
from .rank import (
    controllability_matrix, kalman_rank, structural_rank,
    controllability_trials,
)
from .search import (
    Solution, BestSolution, SearchOutcome, SubsetSearch,
    decode_subset, candidate_masks, subset_size_window, count_candidates,
)
from .result import Result, assemble_result
from .algorithm import ControlProblem

__all__ = [
    "__version__",
    # Parameters
    "Parameters", "DEFAULT_PARAMETERS", "UNSET_SEED",
    # Matrices
    "NodeIndex",
    "build_adjacency", "build_source", "build_target",
    "matrix_powers", "left_multiply_series",
    # Structural rank
    "controllability_matrix", "kalman_rank", "structural_rank",
    "controllability_trials",
    # Subset search
    "Solution", "BestSolution", "SearchOutcome", "SubsetSearch",
    "decode_subset", "candidate_masks", "subset_size_window",
    "count_candidates",
    # Result
    "Result", "assemble_result",
    # Pipeline
    "ControlProblem",
]
