"""
CSV loaders for network datasets and module assignments.

Expected CSV layouts:
    - data: first column sample IDs, remaining columns one per node
    - correlation / network: square matrices, first column node IDs, header
      row node IDs in the same order
    - assignments: two columns, node ID then module label (header row)

Node labels are read as strings. Matrices are taken as given; checking that
their labels agree is left to the caller, as for the in-memory API.

Examples:
    >>> from pathlib import Path
    >>> from netpreserve.io.loaders import load_dataset, load_assignments
    >>>
    >>> discovery = load_dataset(
    ...     network=Path("disc_network.csv"),
    ...     data=Path("disc_data.csv"),
    ...     correlation=Path("disc_correlation.csv"),
    ... )
    >>> assignments = load_assignments(Path("modules.csv"))
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import pandas as pd

from netpreserve.core.dataset import NetworkDataset

logger = logging.getLogger(__name__)

__all__ = ['load_matrix_csv', 'load_dataset', 'load_assignments']


def load_matrix_csv(path: Path) -> pd.DataFrame:
    """
    Load a labelled numeric matrix (first column is the row index).

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file contains non-numeric values
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Matrix file not found: {path}")

    frame = pd.read_csv(path, index_col=0)
    frame.index = frame.index.astype(str)
    frame.columns = frame.columns.astype(str)
    try:
        frame = frame.apply(pd.to_numeric)
    except (ValueError, TypeError) as e:
        raise ValueError(f"Non-numeric values in {path}: {e}")

    logger.info(f"Loaded {path.name}: {frame.shape[0]} x {frame.shape[1]}")
    return frame


def load_dataset(
    network: Path,
    data: Optional[Path] = None,
    correlation: Optional[Path] = None,
) -> NetworkDataset:
    """Load a NetworkDataset from CSV files."""
    return NetworkDataset.from_frames(
        network=load_matrix_csv(network),
        data=load_matrix_csv(data) if data is not None else None,
        correlation=load_matrix_csv(correlation) if correlation is not None else None,
    )


def load_assignments(path: Path) -> pd.Series:
    """
    Load node → module assignments.

    Returns:
        Series indexed by node label with module labels as values

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file has fewer than two columns
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Assignment file not found: {path}")

    frame = pd.read_csv(path, dtype=str)
    if frame.shape[1] < 2:
        raise ValueError(
            f"Assignment file must have node and module columns, got {list(frame.columns)}"
        )

    assignments = pd.Series(
        frame.iloc[:, 1].to_numpy(),
        index=pd.Index(frame.iloc[:, 0], name="node"),
        name="module",
    ).dropna()
    logger.info(
        f"Loaded {len(assignments)} node assignments across "
        f"{assignments.nunique()} modules"
    )
    return assignments
