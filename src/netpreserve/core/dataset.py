"""
Core data structure for one network dataset.

NetworkDataset bundles the three matrices that describe a dataset in a module
preservation analysis:

    - data: samples × nodes measurements (optional for connectivity-only work)
    - correlation: nodes × nodes correlation coefficients
    - network: nodes × nodes weighted adjacency (edge weights)

Node ordering is shared by all three matrices. The container checks shapes
only; label alignment between matrices is the caller's responsibility.

Engineering Design:
    - Immutable: arrays are exposed through read-only views
    - Zero-copy: views share memory with the caller's arrays
    - Scaled data is derived once and reused by every statistic

Examples:
    >>> import numpy as np
    >>> import pandas as pd
    >>> from netpreserve.core.dataset import NetworkDataset
    >>>
    >>> data = np.random.default_rng(0).normal(size=(30, 4))
    >>> corr = np.corrcoef(data, rowvar=False)
    >>> dataset = NetworkDataset(
    ...     network=np.abs(corr) ** 6,
    ...     node_ids=pd.Index(["A", "B", "C", "D"]),
    ...     data=data,
    ...     correlation=corr,
    ... )
    >>> dataset.n_nodes
    4
"""

from __future__ import annotations

from functools import cached_property
from typing import Optional

import numpy as np
import pandas as pd

__all__ = ['NetworkDataset']


def _readonly(array: np.ndarray) -> np.ndarray:
    view = array.view()
    view.setflags(write=False)
    return view


class NetworkDataset:
    """
    Immutable container for the data, correlation and network matrices of a dataset.

    Attributes:
        data: Measurement matrix (samples × nodes), or None
        correlation: Correlation matrix (nodes × nodes), or None
        network: Weighted adjacency matrix (nodes × nodes)
        node_ids: Node labels, shared by all matrices
        sample_ids: Sample labels for the rows of ``data``

    Shape Invariants:
        - network.shape == (n_nodes, n_nodes)
        - correlation.shape == (n_nodes, n_nodes) when present
        - data.shape[1] == n_nodes when present
    """

    def __init__(
        self,
        network: np.ndarray,
        node_ids: pd.Index,
        data: Optional[np.ndarray] = None,
        correlation: Optional[np.ndarray] = None,
        sample_ids: Optional[pd.Index] = None,
    ):
        """
        Initialize NetworkDataset with shape validation.

        Args:
            network: Weighted adjacency matrix (nodes × nodes)
            node_ids: Node labels in matrix order
            data: Optional measurement matrix (samples × nodes)
            correlation: Optional correlation matrix (nodes × nodes)
            sample_ids: Optional sample labels; defaults to a RangeIndex

        Raises:
            TypeError: If node_ids is not a pd.Index
            ValueError: If matrix shapes are inconsistent
        """
        if not isinstance(node_ids, pd.Index):
            raise TypeError(f"node_ids must be pd.Index, got {type(node_ids)}")

        network = np.asarray(network, dtype=np.float64)
        n_nodes = len(node_ids)
        if network.shape != (n_nodes, n_nodes):
            raise ValueError(
                f"network shape {network.shape} must be ({n_nodes}, {n_nodes})"
            )

        if correlation is not None:
            correlation = np.asarray(correlation, dtype=np.float64)
            if correlation.shape != (n_nodes, n_nodes):
                raise ValueError(
                    f"correlation shape {correlation.shape} must be ({n_nodes}, {n_nodes})"
                )

        if data is not None:
            data = np.asarray(data, dtype=np.float64)
            if data.ndim != 2:
                raise ValueError(f"data must be 2D, got shape {data.shape}")
            if data.shape[1] != n_nodes:
                raise ValueError(
                    f"data columns ({data.shape[1]}) must match number of nodes ({n_nodes})"
                )
            if sample_ids is None:
                sample_ids = pd.RangeIndex(data.shape[0])
            elif len(sample_ids) != data.shape[0]:
                raise ValueError(
                    f"sample_ids length ({len(sample_ids)}) must match data rows ({data.shape[0]})"
                )

        self._network = _readonly(network)
        self._correlation = _readonly(correlation) if correlation is not None else None
        self._data = _readonly(data) if data is not None else None
        self._node_ids = node_ids
        self._sample_ids = sample_ids

    @classmethod
    def from_frames(
        cls,
        network: pd.DataFrame,
        data: Optional[pd.DataFrame] = None,
        correlation: Optional[pd.DataFrame] = None,
    ) -> NetworkDataset:
        """
        Build a dataset from labelled DataFrames.

        Node labels are taken from the network's columns; ``data`` is expected
        as samples (rows) × nodes (columns).
        """
        return cls(
            network=network.to_numpy(dtype=np.float64),
            node_ids=pd.Index(network.columns.astype(str)),
            data=data.to_numpy(dtype=np.float64) if data is not None else None,
            correlation=correlation.to_numpy(dtype=np.float64) if correlation is not None else None,
            sample_ids=pd.Index(data.index) if data is not None else None,
        )

    @property
    def network(self) -> np.ndarray:
        """Weighted adjacency matrix (nodes × nodes)."""
        return self._network

    @property
    def correlation(self) -> Optional[np.ndarray]:
        """Correlation matrix (nodes × nodes)."""
        return self._correlation

    @property
    def data(self) -> Optional[np.ndarray]:
        """Measurement matrix (samples × nodes)."""
        return self._data

    @property
    def node_ids(self) -> pd.Index:
        return self._node_ids

    @property
    def sample_ids(self) -> Optional[pd.Index]:
        return self._sample_ids

    @property
    def n_nodes(self) -> int:
        return len(self._node_ids)

    @property
    def n_samples(self) -> int:
        return 0 if self._data is None else self._data.shape[0]

    @property
    def has_data(self) -> bool:
        return self._data is not None

    @cached_property
    def scaled_data(self) -> Optional[np.ndarray]:
        """Column-standardized data, computed on first access."""
        if self._data is None:
            return None
        from netpreserve.stats.network_stats import scale_columns
        return _readonly(scale_columns(self._data))

    def __repr__(self) -> str:
        parts = [f"NetworkDataset({self.n_nodes} nodes"]
        if self.has_data:
            parts.append(f", {self.n_samples} samples")
        parts.append(")")
        return "".join(parts)
