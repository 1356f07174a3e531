"""Parameters — the four tunable numbers of a control search, in one place.

A :class:`Parameters` record is immutable for the whole run.  It can be:

* **validated** — ``params.problems()`` lists every violated bound
* **overridden** — ``params.replace(maximum_path_length=8)``
* **serialised** — ``params.to_dict()`` / ``Parameters.from_dict(d)``

Usage
-----
>>> from netcontrol.parameters import Parameters, DEFAULT_PARAMETERS
>>> params = DEFAULT_PARAMETERS.replace(random_seed=42)
>>> params.problems()
[]
>>> Parameters(random_seed=42, rank_computations=0).problems()
['The number of rank computations must be a positive integer.']

Parameter files written for the original command-line host use CamelCase
keys (``"RandomSeed"``, ``"MaximumPathLength"``, ...).  ``from_dict``
accepts both spellings.
"""

from __future__ import annotations

import random
from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, List, Optional

__all__ = [
    "Parameters",
    "DEFAULT_PARAMETERS",
    "UNSET_SEED",
]

UNSET_SEED: int = -1
"""Seed value meaning "draw a fresh seed when the parameters are loaded"."""

_CAMEL_CASE_KEYS: Dict[str, str] = {
    "RandomSeed": "random_seed",
    "MaximumPathLength": "maximum_path_length",
    "RankComputations": "rank_computations",
    "MaximumDegreeOfParallelism": "maximum_degree_of_parallelism",
}


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


# ═══════════════════════════════════════════════════════════════════
# Parameters
# ═══════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Parameters:
    """Run parameters of the minimum-source search.

    Parameters
    ----------
    random_seed : int
        Seed for the edge-weight perturbations.  Must be ``>= 0`` when
        the run starts; :data:`UNSET_SEED` is resolved at load time.
    maximum_path_length : int
        Largest matrix power ``L`` in the controllability series.
    rank_computations : int
        Number of independently randomised trials used to estimate
        the structural rank.
    maximum_degree_of_parallelism : int
        Worker count.  ``1`` runs the strictly sequential search.
    """

    random_seed: int = UNSET_SEED
    maximum_path_length: int = 5
    rank_computations: int = 3
    maximum_degree_of_parallelism: int = 1

    # ── validation ──────────────────────────────────────────────

    def problems(self) -> List[str]:
        """Return one human-readable reason per violated bound."""
        found = []
        if not _is_int(self.random_seed) or self.random_seed < 0:
            found.append("The random seed must be a non-negative integer.")
        if not _is_int(self.maximum_path_length) or self.maximum_path_length <= 0:
            found.append("The maximum path length must be a positive integer.")
        if not _is_int(self.rank_computations) or self.rank_computations <= 0:
            found.append(
                "The number of rank computations must be a positive integer.")
        if (not _is_int(self.maximum_degree_of_parallelism)
                or self.maximum_degree_of_parallelism <= 0):
            found.append(
                "The maximum degree of parallelism must be a positive integer.")
        return found

    @property
    def is_valid(self) -> bool:
        return not self.problems()

    @property
    def is_sequential(self) -> bool:
        return self.maximum_degree_of_parallelism == 1

    # ── immutable mutation ──────────────────────────────────────

    def replace(self, **overrides: Any) -> "Parameters":
        """Return a new record with selected fields overridden.

        Raises
        ------
        KeyError
            If any override names an unknown field.
        """
        known = {f.name for f in fields(self)}
        for k in overrides:
            if k not in known:
                raise KeyError(
                    f"Unknown parameter {k!r}. Valid keys: {sorted(known)}")
        merged = asdict(self)
        merged.update(overrides)
        return Parameters(**merged)

    def with_resolved_seed(
        self, rng: Optional[random.Random] = None,
    ) -> "Parameters":
        """Replace :data:`UNSET_SEED` by a freshly drawn non-negative seed."""
        if self.random_seed != UNSET_SEED:
            return self
        rng = rng or random.Random()
        return self.replace(random_seed=rng.randrange(2**31 - 1))

    # ── serialisation ───────────────────────────────────────────

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Parameters":
        """Build a record from snake_case or CamelCase keys.

        Missing keys take their defaults.  Values are stored as given;
        call :meth:`problems` to check them.

        Raises
        ------
        KeyError
            If *data* contains a key that is not a parameter.
        """
        known = {f.name for f in fields(cls)}
        kwargs: Dict[str, Any] = {}
        for key, value in data.items():
            name = _CAMEL_CASE_KEYS.get(key, key)
            if name not in known:
                raise KeyError(
                    f"Unknown parameter {key!r}. Valid keys: {sorted(known)}")
            kwargs[name] = value
        return cls(**kwargs)

    def describe(self) -> str:
        """Multi-line ``name = value`` listing, used in the run log."""
        return "".join(
            f"\n\t{name} = {value}" for name, value in self.to_dict().items())


DEFAULT_PARAMETERS: Parameters = Parameters()
"""Defaults of the original program (seed drawn at load time)."""
