"""Plain-text input files and the JSON output document.

File formats
------------
edges       one ``source;target`` pair per line
targets     one node label per line
sources     one node label per line
parameters  JSON object, see :class:`~netcontrol.parameters.Parameters`

Malformed edge lines (fewer than two fields, empty endpoint) and empty
label lines are skipped.  Duplicates are collapsed keeping first-seen
order.
"""

from __future__ import annotations

import datetime
import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from .parameters import Parameters
from .result import Result

__all__ = [
    "EDGE_SEPARATOR",
    "read_edges",
    "read_node_list",
    "read_parameters",
    "nodes_from_edges",
    "restrict_to_network",
    "default_output_path",
    "output_document",
    "write_output",
]

EDGE_SEPARATOR: str = ";"


def _unique(items: Iterable) -> list:
    return list(dict.fromkeys(items))


def _read_lines(path: str | Path) -> List[str]:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"The file {str(path)!r} could not be found.")
    return path.read_text(encoding="utf-8").splitlines()


# ═══════════════════════════════════════════════════════════════════
# Readers
# ═══════════════════════════════════════════════════════════════════

def read_edges(path: str | Path) -> List[Tuple[str, str]]:
    """Read ``source;target`` lines into a de-duplicated edge list."""
    edges = []
    for line in _read_lines(path):
        parts = line.strip().split(EDGE_SEPARATOR)
        if len(parts) < 2:
            continue
        source, target = parts[0].strip(), parts[1].strip()
        if source and target:
            edges.append((source, target))
    return _unique(edges)


def read_node_list(path: str | Path) -> List[str]:
    """Read one label per line, skipping empty lines."""
    return _unique(line.strip() for line in _read_lines(path) if line.strip())


def read_parameters(path: str | Path) -> Parameters:
    """Parse a JSON parameter file.

    Raises
    ------
    FileNotFoundError
        If the file does not exist.
    ValueError
        If the file is not a JSON object.
    KeyError
        If it names an unknown parameter.
    """
    text = "\n".join(_read_lines(path))
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {str(path)!r}: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError(f"The file {str(path)!r} must contain a JSON object.")
    return Parameters.from_dict(data)


# ═══════════════════════════════════════════════════════════════════
# Network helpers
# ═══════════════════════════════════════════════════════════════════

def nodes_from_edges(edges: Sequence[Tuple[str, str]]) -> List[str]:
    """Every edge source in order of appearance, then every edge target."""
    return _unique([s for s, _ in edges] + [t for _, t in edges])


def restrict_to_network(labels: Sequence[str], nodes: Sequence[str]) -> List[str]:
    """Labels that occur in *nodes*, in the order of *labels*."""
    known = set(nodes)
    return [label for label in labels if label in known]


# ═══════════════════════════════════════════════════════════════════
# Output
# ═══════════════════════════════════════════════════════════════════

def default_output_path(
    edges_path: str | Path, now: Optional[datetime.datetime] = None,
) -> Path:
    """``<edges stem>_Output_<YYYYmmddHHMMSS>.json`` beside the edge file."""
    edges_path = Path(edges_path)
    now = now or datetime.datetime.now()
    return edges_path.with_name(
        f"{edges_path.stem}_Output_{now:%Y%m%d%H%M%S}.json")


def output_document(
    edges_path: str | Path,
    targets_path: str | Path,
    sources_path: str | Path,
    parameters: Parameters,
    result: Result,
) -> Dict[str, Any]:
    return {
        "name": Path(edges_path).stem,
        "targets": Path(targets_path).stem,
        "sources": Path(sources_path).stem,
        "parameters": parameters.to_dict(),
        "result": result.to_dict(),
    }


def write_output(path: str | Path, document: Dict[str, Any]) -> Path:
    """Write *document* as indented JSON.  Returns the path."""
    path = Path(path)
    path.write_text(json.dumps(document, indent=2), encoding="utf-8")
    return path
