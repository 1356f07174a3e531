"""End-to-end tests for ControlProblem (netcontrol.algorithm).

Concrete scenarios on small networks, fail-fast validation, and the
structural properties of the search: monotonicity, maximality of the
full source set, lower bound and sequential determinism.
"""

import logging
import threading
from itertools import combinations

import pytest

from netcontrol.algorithm import ControlProblem
from netcontrol.matrices import NodeIndex, build_source
from netcontrol.parameters import Parameters
from netcontrol.rank import controllability_trials, structural_rank
from netcontrol.search import subset_size_window


def _params(length, seed=3, workers=1, computations=3):
    return Parameters(random_seed=seed, maximum_path_length=length,
                      rank_computations=computations,
                      maximum_degree_of_parallelism=workers)


@pytest.fixture
def chain():
    """Scenario 1: A → B → C, control C from A."""
    return ControlProblem(
        nodes=["A", "B", "C"],
        edges=[("A", "B"), ("B", "C")],
        targets=["C"],
        sources=["A"],
        parameters=_params(2),
    )


@pytest.fixture
def funnel():
    """Scenario 2: A and B both feed C, which feeds D."""
    return ControlProblem(
        nodes=["A", "B", "C", "D"],
        edges=[("A", "C"), ("B", "C"), ("C", "D")],
        targets=["D"],
        sources=["A", "B"],
        parameters=_params(3),
    )


def _path_problem(n, workers=1):
    nodes = [f"n{i}" for i in range(n)]
    return ControlProblem(
        nodes=nodes,
        edges=[(nodes[i], nodes[i + 1]) for i in range(n - 1)],
        targets=list(nodes),
        sources=list(nodes),
        parameters=_params(n - 1, workers=workers),
    )


# ═══════════════════════════════════════════════════════════════════
# Concrete scenarios
# ═══════════════════════════════════════════════════════════════════

class TestScenarios:

    def test_chain(self, chain):
        result = chain.run()
        assert result.maximum_rank == 1
        assert result.solution_node_count == 1
        assert result.solution_nodes == ["A"]

    def test_funnel_either_source(self, funnel):
        result = funnel.run()
        assert result.maximum_rank == 1
        assert result.solution_node_count == 1
        assert result.solution_nodes in (["A"], ["B"])

    def test_funnel_parallel(self, funnel):
        funnel.parameters = funnel.parameters.replace(
            maximum_degree_of_parallelism=2)
        result = funnel.run()
        assert result.solution_node_count == 1
        assert result.solution_nodes in (["A"], ["B"])

    def test_empty_edges_not_run(self, chain, caplog):
        chain.edges = []
        with caplog.at_level(logging.ERROR):
            assert chain.run() is None
        assert "edges" in caplog.text

    @pytest.mark.parametrize("workers", [1, 3])
    def test_full_path_graph(self, workers):
        problem = _path_problem(4, workers=workers)
        result = problem.run()
        assert result.maximum_rank == 4
        minimum, _ = subset_size_window(4, 3, 4)
        assert result.solution_node_count >= minimum
        # The head of the path reaches every node.
        assert result.solution_node_count == 1
        assert result.solution_nodes == ["n0"]

    def test_result_counts(self, funnel):
        result = funnel.run()
        assert result.node_count == 4
        assert result.edge_count == 3
        assert result.target_node_count == 1
        assert result.source_node_count == 2
        assert result.time_elapsed_s >= 0.0
        assert not result.cancelled


# ═══════════════════════════════════════════════════════════════════
# Validation
# ═══════════════════════════════════════════════════════════════════

class TestValidation:

    def test_ready(self, chain):
        assert chain.problems() == []
        assert chain.is_ready_to_run()

    @pytest.mark.parametrize("attr, fragment", [
        ("nodes", "nodes"),
        ("targets", "target nodes"),
        ("sources", "source nodes"),
    ])
    def test_missing_lists(self, chain, attr, fragment):
        setattr(chain, attr, [])
        problems = chain.problems()
        assert any(fragment in p for p in problems)

    def test_none_list(self, chain):
        chain.sources = None
        assert any("source nodes" in p for p in chain.problems())

    def test_missing_parameters(self, chain):
        chain.parameters = None
        assert "The parameters are missing." in chain.problems()

    def test_parameter_bounds_reported(self, chain, caplog):
        chain.parameters = chain.parameters.replace(rank_computations=0)
        with caplog.at_level(logging.ERROR):
            assert chain.run() is None
        assert "rank computations" in caplog.text
        assert "initial check" in caplog.text

    def test_unset_seed_rejected(self, chain):
        chain.parameters = chain.parameters.replace(random_seed=-1)
        assert chain.run() is None

    def test_unknown_labels(self, chain):
        chain.targets = ["C", "Z"]
        chain.edges = chain.edges + [("C", "Y")]
        problems = chain.problems()
        assert any("Z" in p and "target" in p for p in problems)
        assert any("Y" in p and "edges" in p for p in problems)

    def test_duplicate_nodes(self, chain):
        chain.nodes = ["A", "B", "C", "A"]
        assert any("duplicate" in p for p in chain.problems())

    def test_every_reason_logged(self, chain, caplog):
        chain.edges = []
        chain.parameters = chain.parameters.replace(maximum_path_length=0)
        with caplog.at_level(logging.ERROR):
            assert not chain.is_ready_to_run()
        assert "edges" in caplog.text
        assert "maximum path length" in caplog.text


# ═══════════════════════════════════════════════════════════════════
# Properties
# ═══════════════════════════════════════════════════════════════════

NODES = ["a", "b", "c", "d", "e", "f"]
EDGES = [("a", "b"), ("b", "c"), ("a", "d"), ("d", "e"), ("f", "e"),
         ("c", "f"), ("e", "b")]
TARGETS = ["c", "e", "f"]
SOURCES = ["a", "d", "f", "b"]


class TestProperties:

    def _rank(self, subset, length=2, seed=8):
        index = NodeIndex(NODES)
        trials = controllability_trials(index, EDGES, TARGETS, length, 3, seed)
        return structural_rank(build_source(index, subset), trials)

    def test_monotonicity(self):
        subsets = [list(c) for k in range(len(SOURCES) + 1)
                   for c in combinations(SOURCES, k)]
        ranks = {tuple(s): self._rank(s) for s in subsets}
        for small in subsets:
            for large in subsets:
                if set(small) <= set(large):
                    assert ranks[tuple(small)] <= ranks[tuple(large)]

    def _problem(self, **kw):
        return ControlProblem(nodes=NODES, edges=EDGES, targets=TARGETS,
                              sources=SOURCES, parameters=_params(2, **kw))

    def test_full_set_is_maximum(self):
        result = self._problem().run()
        assert result.maximum_rank == self._rank(SOURCES, seed=3)

    def test_solution_reaches_maximum(self):
        result = self._problem().run()
        assert self._rank(result.solution_nodes, seed=3) == result.maximum_rank

    def test_lower_bound(self):
        result = self._problem().run()
        minimum, _ = subset_size_window(result.maximum_rank, 2, len(SOURCES))
        assert result.solution_node_count >= minimum

    def test_no_smaller_subset_qualifies(self):
        result = self._problem().run()
        for k in range(1, result.solution_node_count):
            for subset in combinations(SOURCES, k):
                assert self._rank(list(subset), seed=3) < result.maximum_rank

    def test_sequential_determinism(self):
        first = self._problem(seed=21).run()
        second = self._problem(seed=21).run()
        assert first.solution_nodes == second.solution_nodes
        assert first.maximum_rank == second.maximum_rank

    def test_parallel_matches_sequential_size(self):
        sequential = self._problem().run()
        parallel = self._problem(workers=4).run()
        assert parallel.solution_node_count == sequential.solution_node_count
        assert parallel.maximum_rank == sequential.maximum_rank

    def test_cancelled_run_returns_result(self):
        cancel = threading.Event()
        cancel.set()
        result = self._problem().run(cancel)
        assert result.cancelled
        assert result.solution_nodes == SOURCES

    def test_progress_logged(self, caplog):
        with caplog.at_level(logging.INFO):
            self._problem().run()
        assert "subset(s) checked" in caplog.text
        assert "The algorithm has ended." in caplog.text
