"""
Permutation procedure for module preservation statistics.

Builds an empirical null distribution for each of the seven preservation
statistics by repeatedly relabeling test-dataset nodes at random and
recomputing the test-side statistics of every module against the fixed
discovery reference.

Concurrency model:
    - The permutation budget is split up front into contiguous, disjoint
      slice ranges of the null cube, one per worker thread. A worker writes
      only inside its own range, so the shared cube needs no lock.
    - Each worker shuffles a private copy of the resampling universe with its
      own random stream (spawned from one SeedSequence), so a fixed seed and
      thread count reproduce the cube exactly.
    - Workers increment their own slot of a progress vector and poll a
      cancellation Event between units of work; they never set it.
    - The calling thread monitors progress and converts Ctrl-C into a
      cancellation request. Completed slices are kept; the rest stay missing.

Example:
    >>> result = run_permutation_procedure(
    ...     discovery, test, assignments, modules=["blue", "red"],
    ...     n_permutations=1000, n_threads=4, seed=42,
    ... )
    >>> result.observed.loc["blue", "cor.cor"]
    >>> result.nulls.shape
    (2, 7, 1000)
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING, Callable, List, Mapping, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
from numpy.typing import NDArray

from netpreserve.core.indexing import (
    NULL_HYPOTHESES,
    ResamplingUniverse,
    as_assignment_mapping,
    build_index_map,
    build_module_map,
    build_resampling_universe,
    resolve_slots,
)
from netpreserve.stats.network_stats import COHERENCE_MODES, CoherenceMode
from netpreserve.stats.observed import (
    N_STATISTICS,
    STATISTICS,
    DiscoveryProfile,
    StatisticContext,
    build_discovery_profiles,
    compute_observed_statistics,
    module_statistics,
)

if TYPE_CHECKING:
    from netpreserve.core.dataset import NetworkDataset

logger = logging.getLogger(__name__)

__all__ = [
    'PermutationContext',
    'PreservationResult',
    'permutation_quotas',
    'partition_permutations',
    'calculate_nulls',
    'monitor_progress',
    'run_permutation_procedure',
]

LogFn = Callable[[str], None]


# =============================================================================
# Result container
# =============================================================================

@dataclass(frozen=True)
class PreservationResult:
    """Observed statistics and their null distributions.

    Missing entries are ``pd.NA`` in the observed frame and masked cells in
    the null cube; neither contains NaN. Masked cells hold 0.0 in the raw
    data, which is also a valid statistic value, so read the cube through
    its mask: ``nulls.compressed()``, ``nulls.filled()`` (fills NaN) or
    ``null_frame()``. ``np.asarray(nulls)`` drops the mask.

    Attributes:
        observed: modules × statistics frame (nullable Float64)
        nulls: modules × statistics × permutations masked array
        modules: Row labels of ``observed`` and axis 0 of ``nulls``
        permutation_names: Labels of axis 2 (``permutation.1`` ...)
        completed: Permutations finished by each worker thread
        cancelled: Whether the run was cancelled before finishing
        null: Null hypothesis used for the resampling universe
    """

    observed: pd.DataFrame
    nulls: np.ma.MaskedArray
    modules: Tuple[str, ...]
    permutation_names: Tuple[str, ...]
    completed: Tuple[int, ...]
    cancelled: bool = False
    null: str = "overlap"
    statistics: Tuple[str, ...] = STATISTICS

    @property
    def n_permutations(self) -> int:
        return len(self.permutation_names)

    @property
    def n_completed(self) -> int:
        return int(sum(self.completed))

    def null_frame(self, module: str) -> pd.DataFrame:
        """Null distribution of one module as statistics × permutations."""
        row = self.modules.index(module)
        return pd.DataFrame(
            self.nulls[row].filled(np.nan),
            index=pd.Index(self.statistics, name="statistic"),
            columns=pd.Index(self.permutation_names, name="permutation"),
        ).astype("Float64")

    def to_long_frame(self) -> pd.DataFrame:
        """Null cube in long form: one row per module, statistic and permutation."""
        n_mod, n_stat, n_perm = self.nulls.shape
        m, s, p = np.meshgrid(
            np.arange(n_mod), np.arange(n_stat), np.arange(n_perm), indexing="ij"
        )
        return pd.DataFrame({
            'module': np.asarray(self.modules, dtype=object)[m.ravel()],
            'statistic': np.asarray(self.statistics, dtype=object)[s.ravel()],
            'permutation': np.asarray(self.permutation_names, dtype=object)[p.ravel()],
            'value': pd.array(self.nulls.filled(np.nan).ravel(), dtype="Float64"),
        })


# =============================================================================
# Work partitioning
# =============================================================================

def permutation_quotas(n_permutations: int, n_threads: int) -> NDArray[np.int64]:
    """
    Number of permutations assigned to each thread.

    Every thread gets the integer quotient; the first ``n_permutations %
    n_threads`` threads get one more. Quotas sum to ``n_permutations`` and
    differ by at most one.
    """
    if n_threads < 1:
        raise ValueError(f"n_threads must be positive, got {n_threads}")
    if n_permutations < 0:
        raise ValueError(f"n_permutations must be non-negative, got {n_permutations}")
    quotas = np.full(n_threads, n_permutations // n_threads, dtype=np.int64)
    quotas[: n_permutations % n_threads] += 1
    return quotas


def partition_permutations(n_permutations: int, n_threads: int) -> List[range]:
    """
    Contiguous, disjoint slice ranges of the null cube, one per thread.

    Thread ``t`` starts at the sum of the quotas of threads ``0..t-1``.
    """
    quotas = permutation_quotas(n_permutations, n_threads)
    stops = np.cumsum(quotas)
    starts = stops - quotas
    return [range(int(start), int(stop)) for start, stop in zip(starts, stops)]


# =============================================================================
# Worker
# =============================================================================

@dataclass(frozen=True)
class PermutationContext:
    """Read-only state shared by all permutation workers.

    Attributes:
        test: Test-dataset matrices
        universe: Resampling universe (never mutated; workers copy it)
        modules: Analyzed modules in null-cube row order
        slots: Module → positions of its nodes within the universe
        profiles: Module → cached discovery vectors
        coherence: Module coherence convention
    """

    test: StatisticContext
    universe: ResamplingUniverse
    modules: Tuple[str, ...]
    slots: Mapping[str, NDArray[np.intp]]
    profiles: Mapping[str, DiscoveryProfile]
    coherence: CoherenceMode = "squared"


def calculate_nulls(
    context: PermutationContext,
    nulls: NDArray[np.float64],
    slices: range,
    progress: NDArray[np.int64],
    thread: int,
    cancel: threading.Event,
    rng: np.random.Generator,
) -> int:
    """
    Fill ``nulls[:, :, slices]`` with statistics under random node relabeling.

    For every permutation the private universe copy is reshuffled; each
    module's nodes are then replaced by whichever nodes the shuffle moved into
    their slots, and the seven statistics are recomputed against the discovery
    profiles. A permutation is written to the cube only once all modules are
    done.

    Args:
        context: Shared read-only state
        nulls: Null cube (modules × 7 × permutations); only ``slices`` is written
        slices: Permutation indices owned by this thread
        progress: Per-thread completion counters; only ``progress[thread]``
            is written
        thread: This worker's slot in ``progress``
        cancel: Polled before each module and between sub-statistics
        rng: This worker's random stream

    Returns:
        Number of permutations completed.
    """
    order = np.array(context.universe.indices, copy=True)
    buffer = np.empty((len(context.modules), N_STATISTICS))
    cancelled = cancel.is_set
    completed = 0

    for perm in slices:
        rng.shuffle(order)
        for row, module in enumerate(context.modules):
            if cancelled():
                return completed
            idx = order[context.slots[module]]
            stats = module_statistics(
                context.test, idx, context.profiles[module],
                context.coherence, cancelled,
            )
            if stats is None:
                return completed
            buffer[row] = stats
        nulls[:, :, perm] = buffer
        completed += 1
        progress[thread] += 1

    return completed


# =============================================================================
# Monitor
# =============================================================================

def _progress_message(completed: int, total: int) -> str:
    percent = 100.0 * completed / total if total else 100.0
    return f"  {completed}/{total} permutations complete ({percent:.0f}%)"


def monitor_progress(
    futures: Sequence[Future],
    progress: NDArray[np.int64],
    total: int,
    cancel: threading.Event,
    log: Optional[LogFn] = None,
    interval: float = 1.0,
) -> bool:
    """
    Wait for the workers, reporting progress every ``interval`` seconds.

    Ctrl-C (KeyboardInterrupt) sets ``cancel`` and waits for the workers to
    stop. A worker that raises also sets ``cancel`` so the others stop early;
    the exception itself is re-raised by the caller via ``Future.result()``.

    Returns:
        True if the run was cancelled.
    """
    pending = set(futures)
    last_reported = -1
    try:
        while pending:
            done, pending = wait(pending, timeout=interval, return_when=FIRST_EXCEPTION)
            if any(f.exception() is not None for f in done):
                cancel.set()
            completed = int(progress.sum())
            if log is not None and completed != last_reported:
                log(_progress_message(completed, total))
                last_reported = completed
    except KeyboardInterrupt:
        cancel.set()
        if log is not None:
            log("Interrupted; waiting for permutation workers to stop...")
        wait(futures)
    return cancel.is_set()


# =============================================================================
# Orchestration
# =============================================================================

def _emitter(verbose: bool, log: Optional[LogFn]) -> Optional[LogFn]:
    if not verbose:
        return None
    return log if log is not None else logger.info


def _finalize_observed(observed: NDArray[np.float64], modules: Sequence[str]) -> pd.DataFrame:
    frame = pd.DataFrame(
        observed,
        index=pd.Index(modules, name="module"),
        columns=pd.Index(STATISTICS, name="statistic"),
    )
    return frame.astype("Float64")


def _finalize_nulls(nulls: NDArray[np.float64]) -> np.ma.MaskedArray:
    missing = np.isnan(nulls)
    return np.ma.MaskedArray(
        np.where(missing, 0.0, nulls), mask=missing, fill_value=np.nan
    )


def run_permutation_procedure(
    discovery: NetworkDataset,
    test: NetworkDataset,
    assignments: Mapping[str, str] | pd.Series,
    modules: Optional[Sequence[str]] = None,
    n_permutations: int = 10000,
    n_threads: int = 1,
    null: str = "overlap",
    verbose: bool = True,
    log: Optional[LogFn] = None,
    coherence: CoherenceMode = "squared",
    seed: int | None = None,
    cancel: Optional[threading.Event] = None,
    progress_interval: float = 1.0,
) -> PreservationResult:
    """
    Observed preservation statistics and their permutation null distributions.

    Inputs are expected to be consistent (matching node order within each
    dataset, modules present in ``assignments``); only option values are
    checked here.

    Args:
        discovery: Dataset the modules were identified in
        test: Dataset preservation is evaluated in
        assignments: Node label → module label
        modules: Modules to analyze (default: all, in assignment order)
        n_permutations: Size of each null distribution
        n_threads: Number of worker threads
        null: "overlap" or "all" (see netpreserve.core.indexing)
        verbose: Send progress messages to ``log``
        log: Receives human-readable progress strings (default: logger.info)
        coherence: Module coherence convention
        seed: Seed for the per-thread random streams
        cancel: Optional Event; setting it stops the workers cooperatively
        progress_interval: Seconds between progress reports

    Returns:
        PreservationResult

    Raises:
        ValueError: If an option is out of range, or either dataset lacks its
            data or correlation matrix
    """
    if n_permutations < 0:
        raise ValueError(f"n_permutations must be non-negative, got {n_permutations}")
    if n_threads < 1:
        raise ValueError(f"n_threads must be positive, got {n_threads}")
    if null not in NULL_HYPOTHESES:
        raise ValueError(f"Unknown null hypothesis: {null!r}. Use one of {NULL_HYPOTHESES}")
    if coherence not in COHERENCE_MODES:
        raise ValueError(f"Unknown coherence mode: {coherence!r}. Use one of {COHERENCE_MODES}")

    emit = _emitter(verbose, log)
    assignments = as_assignment_mapping(assignments)
    if modules is None:
        modules = list(dict.fromkeys(assignments.values()))
    modules = tuple(str(m) for m in modules)

    # Touch scaled data here so worker threads only ever read cached arrays
    discovery_ctx = StatisticContext.from_dataset(discovery)
    test_ctx = StatisticContext.from_dataset(test)
    discovery_index = build_index_map(discovery.node_ids)
    test_index = build_index_map(test.node_ids)

    # Discovery and test vectors must line up node for node
    shared = {n for n in assignments if n in discovery_index and n in test_index}
    module_map = build_module_map(assignments, shared)
    universe = build_resampling_universe(null, assignments, test_index)
    logger.debug(
        f"{len(modules)} modules, {len(shared)} shared nodes, "
        f"resampling universe of {universe.size} nodes ({null})"
    )

    profiles = build_discovery_profiles(discovery_ctx, discovery_index, module_map, modules)

    if emit is not None:
        emit("Calculating observed test statistics...")
    observed = compute_observed_statistics(
        test_ctx, test_index, module_map, modules, profiles, coherence
    )

    slots = {}
    for module in modules:
        module_slots = resolve_slots(module, module_map, universe)
        module_slots.setflags(write=False)
        slots[module] = module_slots
    context = PermutationContext(
        test=test_ctx,
        universe=universe,
        modules=modules,
        slots=MappingProxyType(slots),
        profiles=profiles,
        coherence=coherence,
    )

    nulls = np.full((len(modules), N_STATISTICS, n_permutations), np.nan)
    slices = partition_permutations(n_permutations, n_threads)
    progress = np.zeros(n_threads, dtype=np.int64)
    if cancel is None:
        cancel = threading.Event()
    streams = [
        np.random.default_rng(child)
        for child in np.random.SeedSequence(seed).spawn(n_threads)
    ]

    if emit is not None:
        noun = "thread" if n_threads == 1 else "threads"
        emit(
            f"Generating null distributions from {n_permutations} "
            f"permutations using {n_threads} {noun}..."
        )

    with ThreadPoolExecutor(max_workers=n_threads, thread_name_prefix="netpreserve") as executor:
        futures = [
            executor.submit(
                calculate_nulls, context, nulls, slices[t], progress, t, cancel, streams[t]
            )
            for t in range(n_threads)
        ]
        cancelled = monitor_progress(
            futures, progress, n_permutations, cancel, emit, progress_interval
        )

    completed = tuple(int(f.result()) for f in futures)
    n_done = sum(completed)
    if cancelled and n_done < n_permutations:
        logger.warning(
            f"Permutation procedure cancelled after {n_done}/{n_permutations} "
            f"permutations; remaining null values are missing"
        )
    else:
        cancelled = False

    return PreservationResult(
        observed=_finalize_observed(observed, modules),
        nulls=_finalize_nulls(nulls),
        modules=modules,
        permutation_names=tuple(f"permutation.{i + 1}" for i in range(n_permutations)),
        completed=completed,
        cancelled=cancelled,
        null=null,
    )
