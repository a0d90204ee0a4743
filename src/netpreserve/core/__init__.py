"""
Core data structures for module preservation analysis.

1. NetworkDataset: data, correlation and network matrices of one dataset
2. Index mapping: label ↔ position lookups and the resampling universe
"""

from netpreserve.core.dataset import NetworkDataset
from netpreserve.core.indexing import (
    NULL_HYPOTHESES,
    ResamplingUniverse,
    as_assignment_mapping,
    build_index_map,
    build_module_map,
    build_resampling_universe,
    resolve_module_indices,
    resolve_slots,
    stable_sort_for_locality,
)

__all__ = [
    'NetworkDataset',
    'NULL_HYPOTHESES',
    'ResamplingUniverse',
    'as_assignment_mapping',
    'build_index_map',
    'build_module_map',
    'build_resampling_universe',
    'resolve_module_indices',
    'resolve_slots',
    'stable_sort_for_locality',
]
