"""
Pytest configuration and shared fixtures for the test suite.

This module provides synthetic dataset generators with planted module
structure and shared fixtures for all test suites.
"""

from typing import Dict, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
import pytest

from netpreserve.core.dataset import NetworkDataset


MODULE_SIZE = 10


def _module_columns(
    rng: np.random.Generator,
    n_samples: int,
    loadings: np.ndarray,
) -> np.ndarray:
    """Columns driven by one shared factor with the given loadings."""
    factor = rng.standard_normal(n_samples)
    noise = rng.standard_normal((n_samples, len(loadings)))
    return factor[:, None] * loadings + noise * np.sqrt(1 - loadings ** 2)


def generate_dataset(
    n_samples: int = 50,
    n_background: int = 20,
    preserved: Sequence[str] = ("A", "B"),
    seed: int = 42,
    power: float = 2.0,
    node_ids: Optional[Sequence[str]] = None,
) -> NetworkDataset:
    """
    Generate a dataset with two planted 10-node modules plus background nodes.

    Args:
        n_samples: Number of samples
        n_background: Number of unassigned noise nodes
        preserved: Modules ("A", "B") that carry co-expression in this
            dataset; the others are pure noise
        seed: Random seed for reproducibility
        power: Soft threshold applied to |correlation| for the network
        node_ids: Optional subset of node labels to keep

    Returns:
        NetworkDataset with data, correlation and network matrices

    Design:
        - Loadings rise from 0.3 to 0.95 within each module, so pairwise
          correlations vary consistently across independent datasets
        - Node labels: a0..a9 (module A), b0..b9 (module B), g0.. (background)
    """
    rng = np.random.default_rng(seed)
    loadings = np.linspace(0.3, 0.95, MODULE_SIZE)

    blocks = []
    labels = []
    for module in ("A", "B"):
        if module in preserved:
            blocks.append(_module_columns(rng, n_samples, loadings))
        else:
            blocks.append(rng.standard_normal((n_samples, MODULE_SIZE)))
        labels.extend(f"{module.lower()}{i}" for i in range(MODULE_SIZE))
    blocks.append(rng.standard_normal((n_samples, n_background)))
    labels.extend(f"g{i}" for i in range(n_background))

    data = pd.DataFrame(
        np.hstack(blocks),
        index=[f"s{i}" for i in range(n_samples)],
        columns=labels,
    )
    if node_ids is not None:
        data = data.loc[:, list(node_ids)]
    return dataset_from_data(data, power=power)


def dataset_from_data(data: pd.DataFrame, power: float = 2.0) -> NetworkDataset:
    """Build a NetworkDataset from a samples × nodes frame."""
    correlation = data.corr()
    network = correlation.abs() ** power
    return NetworkDataset.from_frames(network=network, data=data, correlation=correlation)


def planted_assignments() -> Dict[str, str]:
    """Node → module assignments for the planted modules."""
    assignments = {f"a{i}": "A" for i in range(MODULE_SIZE)}
    assignments.update({f"b{i}": "B" for i in range(MODULE_SIZE)})
    return assignments


@pytest.fixture
def discovery_dataset() -> NetworkDataset:
    """Discovery dataset where both modules are co-expressed."""
    return generate_dataset(seed=1)


@pytest.fixture
def test_dataset() -> NetworkDataset:
    """Test dataset where only module A is co-expressed."""
    return generate_dataset(seed=2, preserved=("A",))


@pytest.fixture
def assignments() -> Dict[str, str]:
    return planted_assignments()


@pytest.fixture
def small_pair() -> Tuple[NetworkDataset, NetworkDataset]:
    """Small discovery/test pair for fast permutation runs."""
    return (
        generate_dataset(n_samples=20, n_background=5, seed=3),
        generate_dataset(n_samples=20, n_background=5, seed=4, preserved=("A",)),
    )


def write_dataset_csvs(dataset: NetworkDataset, directory, prefix: str) -> Dict[str, str]:
    """Write a dataset's matrices as CSV files; returns paths by matrix name."""
    nodes = list(dataset.node_ids)
    paths = {
        'data': directory / f"{prefix}_data.csv",
        'correlation': directory / f"{prefix}_correlation.csv",
        'network': directory / f"{prefix}_network.csv",
    }
    pd.DataFrame(dataset.data, index=dataset.sample_ids, columns=nodes).to_csv(paths['data'])
    pd.DataFrame(dataset.correlation, index=nodes, columns=nodes).to_csv(paths['correlation'])
    pd.DataFrame(dataset.network, index=nodes, columns=nodes).to_csv(paths['network'])
    return paths
