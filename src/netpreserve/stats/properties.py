"""
Network properties of modules within a single dataset.

Unlike the permutation procedure, no second dataset is involved: each module's
summary profile, node contributions, coherence, weighted degrees and average
edge weight are reported as they are in one dataset. Useful for inspecting a
module before (or after) testing its preservation.

Per-node outputs are indexed by every node assigned to the module. Nodes
absent from the dataset are missing, and a module with no nodes in the dataset
is missing throughout.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, Mapping, Optional, Sequence

import numpy as np
import pandas as pd

from netpreserve.core.indexing import (
    as_assignment_mapping,
    build_index_map,
    build_module_map,
    resolve_module_indices,
)
from netpreserve.stats.network_stats import (
    CoherenceMode,
    average_edge_weight,
    module_coherence,
    node_contribution,
    summary_profile,
    weighted_degree,
)

if TYPE_CHECKING:
    from netpreserve.core.dataset import NetworkDataset

logger = logging.getLogger(__name__)

__all__ = ['ModuleProperties', 'network_properties']


def _scalar(value: float):
    return pd.NA if np.isnan(value) else float(value)


@dataclass(frozen=True)
class ModuleProperties:
    """Network properties of one module.

    Attributes:
        degree: Weighted degree per module node
        avg_weight: Average edge weight (pd.NA when undefined)
        summary: Summary profile per sample (None without data)
        contribution: Node contribution per module node (None without data)
        coherence: Module coherence (None without data, pd.NA when undefined)
    """

    degree: pd.Series
    avg_weight: object
    summary: Optional[pd.Series] = None
    contribution: Optional[pd.Series] = None
    coherence: object = None

    @property
    def n_present(self) -> int:
        """Number of module nodes present in the dataset."""
        return int(self.degree.notna().sum())

    def to_dict(self) -> dict:
        result = {
            'n_nodes': len(self.degree),
            'n_present': self.n_present,
            'avg_weight': None if self.avg_weight is pd.NA else self.avg_weight,
        }
        if self.coherence is not None:
            result['coherence'] = None if self.coherence is pd.NA else self.coherence
        return result


def network_properties(
    dataset: NetworkDataset,
    assignments: Mapping[str, str] | pd.Series,
    modules: Optional[Sequence[str]] = None,
    coherence: CoherenceMode = "squared",
) -> Dict[str, ModuleProperties]:
    """
    Network properties of each module in one dataset.

    When the dataset has no data matrix only the connectivity properties
    (degree, avg_weight) are computed.

    Args:
        dataset: Dataset to describe
        assignments: Node label → module label; may include nodes absent from
            the dataset
        modules: Modules to describe (default: all, in assignment order)
        coherence: Module coherence convention

    Returns:
        Module label → ModuleProperties, in ``modules`` order
    """
    assignments = as_assignment_mapping(assignments)
    if modules is None:
        modules = list(dict.fromkeys(assignments.values()))

    node_index = build_index_map(dataset.node_ids)
    module_map = build_module_map(assignments)
    present_map = build_module_map(assignments, node_index)
    scaled = dataset.scaled_data

    results: Dict[str, ModuleProperties] = {}
    for module in (str(m) for m in modules):
        names = module_map.get(module, [])
        node_labels = pd.Index(names, name="node")
        degree = np.full(len(names), np.nan)
        avg_weight = np.nan

        node_idx = resolve_module_indices(module, present_map, node_index)
        result_idx = resolve_module_indices(module, present_map, build_index_map(names))

        if len(node_idx) > 0:
            wd = weighted_degree(dataset.network, node_idx)
            degree[result_idx] = wd
            avg_weight = average_edge_weight(wd)

        summary = contribution = None
        coherence_value = None
        if scaled is not None:
            profile = np.full(dataset.n_samples, np.nan)
            contribution_values = np.full(len(names), np.nan)
            coherence_value = np.nan
            if len(node_idx) > 0:
                profile = summary_profile(scaled, node_idx)
                nc = node_contribution(scaled, node_idx, profile)
                contribution_values[result_idx] = nc
                coherence_value = module_coherence(nc, coherence)
            summary = pd.Series(
                profile,
                index=pd.Index(dataset.sample_ids, name="sample"),
                name=module,
            ).astype("Float64")
            contribution = pd.Series(
                contribution_values, index=node_labels, name=module
            ).astype("Float64")
            coherence_value = _scalar(coherence_value)

        logger.debug(f"Module {module}: {len(node_idx)}/{len(names)} nodes present")
        results[module] = ModuleProperties(
            degree=pd.Series(degree, index=node_labels, name=module).astype("Float64"),
            avg_weight=_scalar(avg_weight),
            summary=summary,
            contribution=contribution,
            coherence=coherence_value,
        )

    return results
