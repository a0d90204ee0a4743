"""
Module preservation statistics.

Exports:
- Network statistic primitives (summary profile, node contribution,
  weighted degree, correlation vectors, comparison statistics)
- Observed statistics and the permutation procedure
- Network properties of modules within one dataset
- Permutation p-values
"""

from .network_stats import (
    COHERENCE_MODES,
    scale_columns,
    summary_profile,
    node_contribution,
    weighted_degree,
    average_edge_weight,
    module_coherence,
    corr_vector,
    correlation,
    sign_aware_mean,
)
from .observed import (
    STATISTICS,
    DiscoveryProfile,
    build_discovery_profiles,
    compute_observed_statistics,
    module_statistics,
)
from .permutation import (
    PreservationResult,
    partition_permutations,
    permutation_quotas,
    run_permutation_procedure,
)
from .properties import ModuleProperties, network_properties
from .significance import adjust_pvalues, permutation_pvalues

__all__ = [
    "COHERENCE_MODES",
    "scale_columns",
    "summary_profile",
    "node_contribution",
    "weighted_degree",
    "average_edge_weight",
    "module_coherence",
    "corr_vector",
    "correlation",
    "sign_aware_mean",
    "STATISTICS",
    "DiscoveryProfile",
    "build_discovery_profiles",
    "compute_observed_statistics",
    "module_statistics",
    "PreservationResult",
    "partition_permutations",
    "permutation_quotas",
    "run_permutation_procedure",
    "ModuleProperties",
    "network_properties",
    "adjust_pvalues",
    "permutation_pvalues",
]
