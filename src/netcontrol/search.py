"""Minimum-cardinality source subset search.

Every subset of the source list is a bitmask over source positions:
bit ``i`` set ⇔ ``sources[i]`` is a member.  The search walks the
masks, skips every candidate that cannot beat the best solution known
so far, and evaluates the rest with :func:`~netcontrol.rank.structural_rank`
against the CA-series trials shared by the whole run.

Pruning
-------
* size window — ``ceil(maximum_rank / (L + 1)) <= |S| <= |sources|``.
  Each source contributes at most ``L + 1`` columns to the
  controllability matrix, so smaller subsets cannot reach the maximum
  rank.  ``windowed=False`` drops the lower bound (degenerate window).
* best-size — only candidates strictly smaller than the current best
  are evaluated.  The best starts as the full source list.

Scalability
-----------
The search is exhaustive with pruning: 2^k candidates for k sources.
Beyond ~25 sources the enumeration itself dominates.

Concurrency
-----------
``workers == 1`` runs a plain loop.  ``workers > 1`` dispatches chunks
of masks to a :class:`~concurrent.futures.ThreadPoolExecutor` (numpy
releases the GIL inside LAPACK).  The only shared mutable state is the
:class:`BestSolution` cell and the checked counter, both updated under a
lock and read without one.  Cancellation is cooperative through a
:class:`threading.Event`.
"""

from __future__ import annotations

import datetime
import logging
import threading
import time
from concurrent.futures import FIRST_COMPLETED, ThreadPoolExecutor, wait
from dataclasses import dataclass
from itertools import combinations
from typing import Callable, Iterable, Iterator, List, Optional, Sequence, Tuple

import numpy as np
from scipy.special import comb

from .matrices import NodeIndex, build_source
from .rank import structural_rank

__all__ = [
    "Solution",
    "BestSolution",
    "CheckedCounter",
    "ProgressReporter",
    "SearchOutcome",
    "SubsetSearch",
    "decode_subset",
    "popcount",
    "candidate_masks",
    "subset_size_window",
    "count_candidates",
    "DEFAULT_PROGRESS_INTERVAL",
]

DEFAULT_PROGRESS_INTERVAL: float = 30.0
"""Seconds between two progress lines."""


# ═══════════════════════════════════════════════════════════════════
# Subset decoding and enumeration
# ═══════════════════════════════════════════════════════════════════

def popcount(mask: int) -> int:
    return bin(mask).count("1")


def decode_subset(mask: int, sources: Sequence[str]) -> List[str]:
    """Members of *mask*, in source-list order."""
    return [label for i, label in enumerate(sources) if (mask >> i) & 1]


def candidate_masks(
    count: int,
    order: str = "size",
    minimum_size: int = 0,
    maximum_size: Optional[int] = None,
) -> Iterator[int]:
    """Yield subset bitmasks over *count* sources.

    Parameters
    ----------
    count : int
        Number of sources.
    order : {"size", "mask"}
        ``"size"`` yields only masks whose size lies in
        ``[minimum_size, maximum_size]``, smallest sizes first (members
        in lexicographic index order within a size).  ``"mask"`` yields
        every mask ``0 … 2^count − 1`` in integer order and leaves the
        window to the caller.
    """
    if order == "mask":
        yield from range(1 << count)
        return
    if order != "size":
        raise ValueError(f"Unknown enumeration order {order!r}")
    top = count if maximum_size is None else min(maximum_size, count)
    for size in range(max(minimum_size, 0), top + 1):
        for members in combinations(range(count), size):
            mask = 0
            for i in members:
                mask |= 1 << i
            yield mask


def subset_size_window(
    maximum_rank: int,
    maximum_path_length: int,
    source_count: int,
    windowed: bool = True,
) -> Tuple[int, int]:
    """Return ``(minimum_subset_size, maximum_subset_size)``."""
    if not windowed:
        return 0, source_count
    step = maximum_path_length + 1
    return (maximum_rank + step - 1) // step, source_count


def count_candidates(source_count: int, minimum_size: int, maximum_size: int) -> int:
    """Σ C(source_count, s) for s in the window — progress reporting only."""
    return sum(
        int(comb(source_count, s, exact=True))
        for s in range(minimum_size, maximum_size + 1))


# ═══════════════════════════════════════════════════════════════════
# Shared state
# ═══════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Solution:
    """A source subset and the structural rank it reaches."""
    nodes: Tuple[str, ...]
    rank: int

    @property
    def size(self) -> int:
        return len(self.nodes)


class BestSolution:
    """Atomically replaced best-so-far :class:`Solution`.

    Readers take no lock: ``current`` is a single immutable object that
    is swapped, never mutated.  ``offer`` compares and swaps under the
    lock, so a candidate that is not strictly smaller than the solution
    held at that moment is rejected.
    """

    def __init__(self, initial: Solution):
        self._lock = threading.Lock()
        self._current = initial

    @property
    def current(self) -> Solution:
        return self._current

    @property
    def size(self) -> int:
        return self._current.size

    def offer(self, candidate: Solution) -> bool:
        with self._lock:
            if candidate.size < self._current.size:
                self._current = candidate
                return True
        return False


class CheckedCounter:
    """Monotonic counter incremented by workers, sampled by the reporter."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._value = 0

    @property
    def value(self) -> int:
        return self._value

    def increment(self) -> None:
        with self._lock:
            self._value += 1


class ProgressReporter:
    """Call *report* immediately and then every *interval* seconds.

    Runs on a daemon thread between ``start()`` and ``stop()``; usable
    as a context manager.
    """

    def __init__(self, report: Callable[[], None],
                 interval: float = DEFAULT_PROGRESS_INTERVAL):
        self.report = report
        self.interval = interval
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        self._thread = threading.Thread(
            target=self._loop, name="netcontrol-progress", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join()
            self._thread = None

    def _loop(self) -> None:
        self.report()
        while not self._stop.wait(self.interval):
            self.report()

    def __enter__(self) -> "ProgressReporter":
        self.start()
        return self

    def __exit__(self, *exc) -> None:
        self.stop()


# ═══════════════════════════════════════════════════════════════════
# SubsetSearch
# ═══════════════════════════════════════════════════════════════════

@dataclass
class SearchOutcome:
    """What :meth:`SubsetSearch.run` hands back to the result assembler."""
    solution: Solution
    minimum_subset_size: int
    maximum_subset_size: int
    checked_subsets: int
    total_subsets: int
    cancelled: bool = False


def _chunked(it: Iterable[int], size: int) -> Iterator[List[int]]:
    buf: List[int] = []
    for x in it:
        buf.append(x)
        if len(buf) >= size:
            yield buf
            buf = []
    if buf:
        yield buf


class SubsetSearch:
    """Find a smallest source subset reaching *maximum_rank*.

    Parameters
    ----------
    index : NodeIndex
    sources : sequence of str
        Candidate source labels; bit ``i`` of a mask selects ``sources[i]``.
    trials : list of CA-series
        Precomputed by :func:`~netcontrol.rank.controllability_trials`.
        Shared read-only by every evaluation.
    maximum_rank : int
        Structural rank of the full source list.
    maximum_path_length : int
    workers : int
        ``1`` for the sequential loop, more for a thread pool.
    windowed : bool
        Apply the ``ceil(rank / (L + 1))`` lower bound.
    order : {"size", "mask"}
        Enumeration order, see :func:`candidate_masks`.
    chunk_size : int
        Masks per work unit in parallel mode.
    progress_interval : float
        Seconds between progress lines.
    logger : logging.Logger, optional
        Destination of progress and cancellation messages.
    """

    def __init__(
        self,
        index: NodeIndex,
        sources: Sequence[str],
        trials: Sequence[Sequence[np.ndarray]],
        maximum_rank: int,
        maximum_path_length: int,
        *,
        workers: int = 1,
        windowed: bool = True,
        order: str = "size",
        chunk_size: int = 64,
        progress_interval: float = DEFAULT_PROGRESS_INTERVAL,
        logger: Optional[logging.Logger] = None,
    ):
        self.index = index
        self.sources = tuple(sources)
        self.trials = trials
        self.maximum_rank = maximum_rank
        self.workers = workers
        self.order = order
        self.chunk_size = chunk_size
        self.progress_interval = progress_interval
        self.logger = logger if logger is not None else logging.getLogger(__name__)

        self.minimum_subset_size, self.maximum_subset_size = subset_size_window(
            maximum_rank, maximum_path_length, len(self.sources), windowed)
        self.total_subsets = count_candidates(
            len(self.sources), self.minimum_subset_size, self.maximum_subset_size)

        self.best = BestSolution(Solution(self.sources, maximum_rank))
        self.checked = CheckedCounter()
        self._interrupted = False
        self._started = 0.0

    # ── per-candidate step ──────────────────────────────────────

    def in_window(self, size: int) -> bool:
        return self.minimum_subset_size <= size <= self.maximum_subset_size

    def rank_of(self, subset: Sequence[str]) -> int:
        return structural_rank(build_source(self.index, subset), self.trials)

    def evaluate(self, mask: int) -> bool:
        """Process one candidate.  Returns True if it became the best."""
        size = popcount(mask)
        if not self.in_window(size):
            return False
        promoted = False
        if size != 0 and size < self.best.size:
            subset = decode_subset(mask, self.sources)
            rank = self.rank_of(subset)
            if rank == self.maximum_rank:
                promoted = self.best.offer(Solution(tuple(subset), rank))
        self.checked.increment()
        return promoted

    # ── drivers ─────────────────────────────────────────────────

    def masks(self) -> Iterator[int]:
        return candidate_masks(
            len(self.sources), self.order,
            self.minimum_subset_size, self.maximum_subset_size)

    def run(self, cancel: Optional[threading.Event] = None) -> SearchOutcome:
        """Search all candidates, or until *cancel* is set."""
        self._started = time.perf_counter()
        self._interrupted = False
        with ProgressReporter(self._report_progress, self.progress_interval):
            if self.workers <= 1:
                self._run_sequential(cancel)
            else:
                self._run_parallel(cancel)
        if self._interrupted:
            self.logger.warning(
                "The search was cancelled after %d / %d subset(s); "
                "keeping the best solution found so far.",
                self.checked.value, self.total_subsets)
        return SearchOutcome(
            solution=self.best.current,
            minimum_subset_size=self.minimum_subset_size,
            maximum_subset_size=self.maximum_subset_size,
            checked_subsets=self.checked.value,
            total_subsets=self.total_subsets,
            cancelled=self._interrupted,
        )

    def _run_sequential(self, cancel: Optional[threading.Event]) -> None:
        for mask in self.masks():
            if cancel is not None and cancel.is_set():
                self._interrupted = True
                return
            self.evaluate(mask)

    def _evaluate_chunk(self, chunk: List[int],
                        cancel: Optional[threading.Event]) -> None:
        for mask in chunk:
            if cancel is not None and cancel.is_set():
                self._interrupted = True
                return
            self.evaluate(mask)

    def _run_parallel(self, cancel: Optional[threading.Event]) -> None:
        in_flight = 2 * self.workers
        with ThreadPoolExecutor(max_workers=self.workers,
                                thread_name_prefix="netcontrol") as executor:
            pending = set()
            for chunk in _chunked(self.masks(), self.chunk_size):
                if len(pending) >= in_flight:
                    done, pending = wait(pending, return_when=FIRST_COMPLETED)
                    for future in done:
                        future.result()
                if cancel is not None and cancel.is_set():
                    self._interrupted = True
                    break
                pending.add(executor.submit(self._evaluate_chunk, chunk, cancel))
            done, _ = wait(pending)
            for future in done:
                future.result()

    def _report_progress(self) -> None:
        elapsed = datetime.timedelta(
            seconds=round(time.perf_counter() - self._started))
        self.logger.info(
            "%d / %d subset(s) checked in %s with a best solution size of %d.",
            self.checked.value, self.total_subsets, elapsed, self.best.size)
