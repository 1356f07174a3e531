"""ControlProblem — validate the inputs, then run the minimum-source search.

Pipeline
--------
1. Check every precondition; on any violation log the reasons and
   return ``None`` without computing anything.
2. Build ``rank_computations`` randomised CA-series from the seed.
3. Structural rank of the full source list → ``maximum_rank``.
4. :class:`~netcontrol.search.SubsetSearch` for a smallest subset that
   still reaches ``maximum_rank``.
5. :func:`~netcontrol.result.assemble_result`.

Usage
-----
>>> problem = ControlProblem(
...     nodes=["A", "B", "C"],
...     edges=[("A", "B"), ("B", "C")],
...     targets=["C"],
...     sources=["A"],
...     parameters=Parameters(random_seed=1, maximum_path_length=2),
... )
>>> result = problem.run()
>>> result.solution_nodes
['A']
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from .matrices import NodeIndex, build_source
from .parameters import Parameters
from .rank import controllability_trials, structural_rank
from .result import Result, assemble_result
from .search import DEFAULT_PROGRESS_INTERVAL, SubsetSearch

logger = logging.getLogger(__name__)

__all__ = [
    "ControlProblem",
]


def _missing(items: Optional[Sequence]) -> bool:
    return items is None or len(items) == 0


@dataclass
class ControlProblem:
    """In-memory inputs of one run.

    Parameters
    ----------
    nodes : list of str
        Distinct node labels; list order fixes the matrix indices.
    edges : list of (source, target)
        Directed edges, duplicates already collapsed.
    targets : list of str
        Nodes whose state must be controlled.
    sources : list of str
        Candidate input nodes.
    parameters : Parameters
    """

    nodes: List[str] = field(default_factory=list)
    edges: List[Tuple[str, str]] = field(default_factory=list)
    targets: List[str] = field(default_factory=list)
    sources: List[str] = field(default_factory=list)
    parameters: Optional[Parameters] = None

    # ── validation ──────────────────────────────────────────────

    def problems(self) -> List[str]:
        """Return one human-readable reason per violated precondition."""
        found = []
        for name, items in (("nodes", self.nodes), ("edges", self.edges),
                            ("target nodes", self.targets),
                            ("source nodes", self.sources)):
            if _missing(items):
                found.append(f"The list of {name} is missing or empty.")

        if self.parameters is None:
            found.append("The parameters are missing.")
        else:
            found.extend(self.parameters.problems())

        if not _missing(self.nodes):
            known = set(self.nodes)
            if len(known) != len(self.nodes):
                found.append("The list of nodes contains duplicate labels.")
            unknown = sorted({label for edge in (self.edges or [])
                              for label in edge if label not in known})
            if unknown:
                found.append(
                    f"The edges reference unknown node(s): {', '.join(unknown)}.")
            for name, items in (("target", self.targets),
                                ("source", self.sources)):
                unknown = [label for label in (items or []) if label not in known]
                if unknown:
                    found.append(
                        f"The {name} nodes are not in the network: "
                        f"{', '.join(unknown)}.")
        return found

    def is_ready_to_run(self, log: Optional[logging.Logger] = None) -> bool:
        """Log every violated precondition; True if there are none."""
        log = log if log is not None else logger
        found = self.problems()
        for reason in found:
            log.error(reason)
        return not found

    # ── run ─────────────────────────────────────────────────────

    def run(
        self,
        cancel: Optional[threading.Event] = None,
        *,
        log: Optional[logging.Logger] = None,
        windowed: bool = True,
        order: str = "size",
        progress_interval: float = DEFAULT_PROGRESS_INTERVAL,
    ) -> Optional[Result]:
        """Run the search.

        Parameters
        ----------
        cancel : threading.Event, optional
            Set it to stop the search early; the best solution found so
            far is returned.
        log : logging.Logger, optional
            Destination of run and progress messages.
        windowed, order, progress_interval
            Forwarded to :class:`~netcontrol.search.SubsetSearch`.

        Returns
        -------
        Result or None
            ``None`` when the inputs fail validation.
        """
        log = log if log is not None else logger
        log.info("The algorithm has started.")
        if not self.is_ready_to_run(log):
            log.error("The algorithm failed the initial check. "
                      "Please check the provided data and values.")
            return None

        t_start = time.perf_counter()
        params = self.parameters
        log.info("Computing the variables needed for the algorithm.")
        index = NodeIndex(self.nodes)
        trials = controllability_trials(
            index, self.edges, self.targets,
            params.maximum_path_length, params.rank_computations,
            params.random_seed)

        maximum_rank = structural_rank(build_source(index, self.sources), trials)
        log.info(
            "The source nodes can control %d target nodes within a path "
            "of maximum length %d.", maximum_rank, params.maximum_path_length)

        search = SubsetSearch(
            index, self.sources, trials, maximum_rank,
            params.maximum_path_length,
            workers=params.maximum_degree_of_parallelism,
            windowed=windowed,
            order=order,
            progress_interval=progress_interval,
            logger=log,
        )
        outcome = search.run(cancel)

        log.info("The algorithm has ended.")
        return assemble_result(
            self.nodes, self.edges, self.targets, self.sources,
            maximum_rank, outcome, time.perf_counter() - t_start)
