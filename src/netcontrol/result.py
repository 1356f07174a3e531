"""Result of a minimum-source search, with JSON serialisation.

:func:`assemble_result` packages the counts of the input network, the
maximum rank and the winning subset into a :class:`Result`.  No
computation happens here.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Sequence, Tuple

from .search import SearchOutcome

__all__ = [
    "Result",
    "assemble_result",
]


@dataclass
class Result:
    """Final record of one run."""

    node_count: int
    edge_count: int
    target_node_count: int
    source_node_count: int
    maximum_rank: int
    solution_node_count: int
    solution_nodes: List[str] = field(default_factory=list)
    time_elapsed_s: float = 0.0

    # Reporting only
    checked_subsets: int = 0
    total_subsets: int = 0
    cancelled: bool = False

    def summary(self) -> str:
        """Human-readable summary string."""
        lines = [
            f"Network:  {self.node_count} nodes, {self.edge_count} edges",
            f"Targets:  {self.target_node_count}",
            f"Sources:  {self.source_node_count}",
            f"Rank:     {self.maximum_rank}",
            f"Solution: {self.solution_node_count} node(s)"
            f" ({', '.join(self.solution_nodes)})",
            f"Checked:  {self.checked_subsets}/{self.total_subsets} subset(s)"
            + (" [cancelled]" if self.cancelled else ""),
            f"Time:     {self.time_elapsed_s:.1f}s",
        ]
        return "\n".join(lines)

    # ── Serialisation ───────────────────────────────────────────

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Result":
        return cls(**data)

    def save(self, path: str | Path) -> None:
        """Save result to JSON file."""
        Path(path).write_text(
            json.dumps(self.to_dict(), indent=2), encoding="utf-8")

    @classmethod
    def load(cls, path: str | Path) -> "Result":
        """Load result from JSON file."""
        return cls.from_dict(json.loads(Path(path).read_text(encoding="utf-8")))


def assemble_result(
    nodes: Sequence[str],
    edges: Sequence[Tuple[str, str]],
    targets: Sequence[str],
    sources: Sequence[str],
    maximum_rank: int,
    outcome: SearchOutcome,
    time_elapsed_s: float,
) -> Result:
    solution = outcome.solution
    return Result(
        node_count=len(nodes),
        edge_count=len(edges),
        target_node_count=len(targets),
        source_node_count=len(sources),
        maximum_rank=maximum_rank,
        solution_node_count=solution.size,
        solution_nodes=list(solution.nodes),
        time_elapsed_s=round(time_elapsed_s, 3),
        checked_subsets=outcome.checked_subsets,
        total_subsets=outcome.total_subsets,
        cancelled=outcome.cancelled,
    )
