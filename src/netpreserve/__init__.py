"""
netpreserve - Permutation tests of network module preservation

Assesses whether modules (groups of co-expressed or co-regulated nodes)
identified in a discovery dataset are preserved in an independent test
dataset, using seven preservation statistics and permutation null
distributions computed across worker threads.
"""

__version__ = "0.1.0"

from netpreserve.core.dataset import NetworkDataset
from netpreserve.stats.permutation import PreservationResult, run_permutation_procedure
from netpreserve.stats.properties import ModuleProperties, network_properties
from netpreserve.stats.significance import adjust_pvalues, permutation_pvalues

__all__ = [
    "NetworkDataset",
    "PreservationResult",
    "run_permutation_procedure",
    "ModuleProperties",
    "network_properties",
    "permutation_pvalues",
    "adjust_pvalues",
]
