"""
Observed module preservation statistics.

Runs the network statistic primitives once, without permutation:

1. Discovery side: per module, the correlation vector, weighted degree and
   node contribution are computed once and cached. The cache is read-only and
   is shared by reference with every permutation worker.
2. Test side: per module, the seven preservation statistics comparing the
   test dataset against the cached discovery reference.

Statistics (column order of every result):
    avg.weight   average edge weight of the module in the test network
    coherence    module coherence in the test data
    cor.cor      correlation of discovery and test correlation vectors
    cor.degree   correlation of discovery and test weighted degrees
    cor.contrib  correlation of discovery and test node contributions
    avg.cor      sign-aware mean of the test correlation vector
    avg.contrib  sign-aware mean of the test node contributions
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING, Callable, Dict, List, Mapping, Optional, Sequence

import numpy as np
from numpy.typing import NDArray

from netpreserve.core.indexing import build_index_map, resolve_module_indices
from netpreserve.stats.network_stats import (
    CoherenceMode,
    average_edge_weight,
    corr_vector,
    correlation,
    module_coherence,
    node_contribution,
    sign_aware_mean,
    summary_profile,
    weighted_degree,
)

if TYPE_CHECKING:
    from netpreserve.core.dataset import NetworkDataset

logger = logging.getLogger(__name__)

__all__ = [
    'STATISTICS',
    'N_STATISTICS',
    'DiscoveryProfile',
    'StatisticContext',
    'build_discovery_profiles',
    'module_statistics',
    'compute_observed_statistics',
]

STATISTICS = (
    "avg.weight",
    "coherence",
    "cor.cor",
    "cor.degree",
    "cor.contrib",
    "avg.cor",
    "avg.contrib",
)

N_STATISTICS = len(STATISTICS)


def _frozen(array: NDArray[np.float64]) -> NDArray[np.float64]:
    array.setflags(write=False)
    return array


@dataclass(frozen=True)
class StatisticContext:
    """Read-only matrices of one dataset, as consumed by the primitives."""

    scaled: NDArray[np.float64]
    correlation: NDArray[np.float64]
    network: NDArray[np.float64]

    @classmethod
    def from_dataset(cls, dataset: NetworkDataset) -> StatisticContext:
        if dataset.scaled_data is None or dataset.correlation is None:
            raise ValueError(
                "Preservation statistics need data and correlation matrices for "
                f"both datasets; got {dataset!r}"
            )
        return cls(
            scaled=dataset.scaled_data,
            correlation=dataset.correlation,
            network=dataset.network,
        )


@dataclass(frozen=True)
class DiscoveryProfile:
    """Discovery-side vectors of one module, fixed for the whole analysis."""

    corr_vector: NDArray[np.float64]
    degree: NDArray[np.float64]
    contribution: NDArray[np.float64]

    @property
    def n_nodes(self) -> int:
        return len(self.degree)


def build_discovery_profiles(
    discovery: StatisticContext,
    discovery_index: Mapping[str, int],
    module_map: Mapping[str, List[str]],
    modules: Sequence[str],
) -> Mapping[str, DiscoveryProfile]:
    """
    Compute and cache the discovery reference vectors of each module.

    Returns:
        Read-only mapping module → DiscoveryProfile
    """
    profiles: Dict[str, DiscoveryProfile] = {}
    for module in modules:
        idx = resolve_module_indices(module, module_map, discovery_index)
        profile = summary_profile(discovery.scaled, idx)
        profiles[module] = DiscoveryProfile(
            corr_vector=_frozen(corr_vector(discovery.correlation, idx)),
            degree=_frozen(weighted_degree(discovery.network, idx)),
            contribution=_frozen(node_contribution(discovery.scaled, idx, profile)),
        )
        logger.debug(f"Discovery profile for module {module}: {len(idx)} nodes")
    return MappingProxyType(profiles)


def module_statistics(
    test: StatisticContext,
    idx: NDArray[np.intp],
    reference: DiscoveryProfile,
    coherence: CoherenceMode = "squared",
    cancelled: Optional[Callable[[], bool]] = None,
) -> Optional[NDArray[np.float64]]:
    """
    The seven preservation statistics of one module in the test dataset.

    Args:
        test: Test-dataset matrices
        idx: Test-dataset positions of the module's nodes, aligned with the
            node order of ``reference``
        reference: Cached discovery vectors for the module
        coherence: Module coherence convention
        cancelled: Optional poll; checked after every sub-statistic

    Returns:
        Array of length 7 in STATISTICS order (NaN where undefined), or None
        if ``cancelled`` reported True part-way through.
    """
    stats = np.full(N_STATISTICS, np.nan)
    if len(idx) == 0:
        return stats

    cv = corr_vector(test.correlation, idx)
    if cancelled is not None and cancelled():
        return None
    degree = weighted_degree(test.network, idx)
    if cancelled is not None and cancelled():
        return None
    profile = summary_profile(test.scaled, idx)
    if cancelled is not None and cancelled():
        return None
    contribution = node_contribution(test.scaled, idx, profile)
    if cancelled is not None and cancelled():
        return None

    stats[0] = average_edge_weight(degree)
    stats[1] = module_coherence(contribution, coherence)
    stats[2] = correlation(reference.corr_vector, cv)
    stats[3] = correlation(reference.degree, degree)
    stats[4] = correlation(reference.contribution, contribution)
    stats[5] = sign_aware_mean(reference.corr_vector, cv)
    stats[6] = sign_aware_mean(reference.contribution, contribution)
    return stats


def compute_observed_statistics(
    test: StatisticContext,
    test_index: Mapping[str, int],
    module_map: Mapping[str, List[str]],
    modules: Sequence[str],
    profiles: Mapping[str, DiscoveryProfile],
    coherence: CoherenceMode = "squared",
) -> NDArray[np.float64]:
    """
    Observed statistics for every module (modules × 7, NaN where undefined).

    Row ``i`` holds ``modules[i]``. A module without test-dataset nodes keeps
    an all-NaN row.
    """
    module_rows = build_index_map(modules)
    observed = np.full((len(modules), N_STATISTICS), np.nan)
    for module in modules:
        idx = resolve_module_indices(module, module_map, test_index)
        observed[module_rows[module]] = module_statistics(
            test, idx, profiles[module], coherence
        )
    return observed
