"""
Lookups between node/module labels and matrix positions.

Every statistic works on integer row/column positions, while callers speak in
node and module labels. This module builds the translation tables once per
analysis, plus the resampling universe that the permutation procedure shuffles.

Null hypotheses for the resampling universe:
    - overlap: only nodes that have a module assignment and are present in
      the test dataset take part in relabeling
    - all: every node in the test dataset takes part
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Container, Dict, Hashable, Iterable, List, Literal, Mapping, Optional

import numpy as np
import pandas as pd

__all__ = [
    'NULL_HYPOTHESES',
    'NullHypothesis',
    'ResamplingUniverse',
    'as_assignment_mapping',
    'build_index_map',
    'build_module_map',
    'build_resampling_universe',
    'resolve_module_indices',
    'resolve_slots',
    'stable_sort_for_locality',
]

NullHypothesis = Literal["overlap", "all"]

NULL_HYPOTHESES = ("overlap", "all")


def as_assignment_mapping(assignments: Mapping | pd.Series) -> Dict[str, str]:
    """Normalize node → module assignments to an ordered dict of strings."""
    if isinstance(assignments, pd.Series):
        items = zip(assignments.index, assignments.values)
    else:
        items = assignments.items()
    return {str(node): str(module) for node, module in items}


def build_index_map(labels: Iterable[Hashable]) -> Dict[Hashable, int]:
    """Map each label to its position. Labels are assumed unique."""
    return {label: i for i, label in enumerate(labels)}


def build_module_map(
    assignments: Mapping[str, str],
    present: Optional[Container[str]] = None,
) -> Dict[str, List[str]]:
    """
    Group node labels by module, preserving assignment order.

    Args:
        assignments: Node label → module label
        present: Optional container (typically an index map); when given,
            only node labels found in it are kept

    Returns:
        Module label → ordered list of node labels
    """
    module_map: Dict[str, List[str]] = {}
    for node, module in assignments.items():
        if present is not None and node not in present:
            continue
        module_map.setdefault(module, []).append(node)
    return module_map


@dataclass(frozen=True)
class ResamplingUniverse:
    """Test-dataset node indices eligible for random relabeling.

    Attributes:
        indices: Ordered test-dataset positions; permutations shuffle a copy
        positions: Node label → position within ``indices``
        null: Null hypothesis the universe was built for
    """

    indices: np.ndarray
    positions: Dict[str, int] = field(repr=False)
    null: str = "overlap"

    @property
    def size(self) -> int:
        return len(self.indices)


def build_resampling_universe(
    null: NullHypothesis,
    assignments: Mapping[str, str],
    test_index: Mapping[str, int],
) -> ResamplingUniverse:
    """
    Build the ordered index sequence shuffled by the permutation procedure.

    Args:
        null: "overlap" (assigned nodes present in the test dataset) or
            "all" (every test-dataset node)
        assignments: Node label → module label
        test_index: Test-dataset node label → position

    Returns:
        ResamplingUniverse with its reverse label → position map

    Raises:
        ValueError: If ``null`` is not a known null hypothesis
    """
    if null == "overlap":
        labels = [node for node in assignments if node in test_index]
    elif null == "all":
        labels = list(test_index)
    else:
        raise ValueError(
            f"Unknown null hypothesis: {null!r}. Use one of {NULL_HYPOTHESES}"
        )

    indices = np.fromiter((test_index[n] for n in labels), dtype=np.intp, count=len(labels))
    indices.setflags(write=False)
    return ResamplingUniverse(
        indices=indices,
        positions=build_index_map(labels),
        null=null,
    )


def resolve_module_indices(
    module: str,
    module_map: Mapping[str, List[str]],
    dataset_index: Mapping[str, int],
) -> np.ndarray:
    """
    Translate a module's node labels into dataset positions.

    Positions follow module-map order and are not sorted. Labels missing from
    the dataset are skipped.
    """
    nodes = module_map.get(module, [])
    return np.array(
        [dataset_index[n] for n in nodes if n in dataset_index],
        dtype=np.intp,
    )


def resolve_slots(
    module: str,
    module_map: Mapping[str, List[str]],
    universe: ResamplingUniverse,
) -> np.ndarray:
    """
    Positions of a module's nodes within the resampling universe.

    Indexing a shuffled copy of ``universe.indices`` with these slots gives
    the test-dataset positions of the nodes that were relabeled into the
    module's original members.
    """
    return resolve_module_indices(module, module_map, universe.positions)


def stable_sort_for_locality(indices: np.ndarray) -> np.ndarray:
    """
    Permutation that visits ``indices`` in ascending order.

    Used to read matrix rows sequentially; per-node results computed in
    sorted order are scattered back with ``out[order] = sorted_result``.
    """
    return np.argsort(indices, kind="stable")
