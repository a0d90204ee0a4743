"""
Network statistic primitives for module preservation.

Each function computes one module-level property from a dataset matrix and the
module's node positions ``idx`` (k nodes). They are pure: inputs are never
modified and no state is shared, so worker threads call them concurrently on
the same read-only matrices.

Properties:
    - summary_profile: dominant per-sample signal of the module (an
      eigengene-style first singular vector, sign-fixed)
    - node_contribution: correlation of each node with the summary profile
    - module_coherence: proportion of module variance the profile explains
    - weighted_degree: intramodular connectivity of each node
    - average_edge_weight: mean weight of the module's edges
    - corr_vector: the module's pairwise correlation coefficients

Comparison statistics between a discovery reference and a test vector:
    - correlation: Pearson correlation, pairwise-complete
    - sign_aware_mean: mean of test values signed by the reference direction

Degenerate inputs (too few nodes, zero variance) produce NaN; callers convert
NaN into their missing marker.

References:
    - Langfelder P, et al. (2011). Is my network module preserved and
      reproducible? PLoS Comput Biol 7(1): e1001057.
    - Ritchie SC, et al. (2016). A scalable permutation approach reveals
      replication and preservation patterns of network modules in large
      datasets. Cell Systems 3(1): 71-82.
"""

from __future__ import annotations

from typing import Literal

import numpy as np
from numpy.typing import NDArray
from scipy import linalg

from netpreserve.core.indexing import stable_sort_for_locality

__all__ = [
    'COHERENCE_MODES',
    'CoherenceMode',
    'scale_columns',
    'summary_profile',
    'node_contribution',
    'weighted_degree',
    'average_edge_weight',
    'module_coherence',
    'corr_vector',
    'correlation',
    'sign_aware_mean',
]

CoherenceMode = Literal["squared", "absolute", "signed"]

COHERENCE_MODES = ("squared", "absolute", "signed")


def scale_columns(data: NDArray[np.float64]) -> NDArray[np.float64]:
    """
    Standardize each column to zero mean and unit sample variance.

    Constant columns carry no signal and become NaN.
    """
    data = np.asarray(data, dtype=np.float64)
    with np.errstate(divide="ignore", invalid="ignore"):
        centred = data - data.mean(axis=0)
        scaled = centred / data.std(axis=0, ddof=1)
    if data.shape[0] > 0:
        scaled[:, np.ptp(data, axis=0) == 0] = np.nan
    return scaled


def _scatter(values_sorted: NDArray[np.float64], order: NDArray[np.intp]) -> NDArray[np.float64]:
    out = np.empty_like(values_sorted)
    out[order] = values_sorted
    return out


def _columnwise_correlation(
    columns: NDArray[np.float64],
    profile: NDArray[np.float64],
) -> NDArray[np.float64]:
    """Pearson correlation of every column with ``profile``."""
    with np.errstate(divide="ignore", invalid="ignore"):
        xc = columns - columns.mean(axis=0)
        yc = profile - profile.mean()
        numerator = yc @ xc
        denominator = np.sqrt((xc ** 2).sum(axis=0) * (yc ** 2).sum())
        r = numerator / denominator
    return np.clip(r, -1.0, 1.0)


def summary_profile(
    scaled: NDArray[np.float64],
    idx: NDArray[np.intp],
) -> NDArray[np.float64]:
    """
    Dominant shared signal of a module across samples.

    For k ≥ 2 nodes this is the first left singular vector of the module's
    scaled columns. The sign is fixed so the profile correlates positively
    with the per-sample average of those columns, which makes discovery and
    test profiles comparable. When that correlation is zero or undefined the
    largest-magnitude entry is made positive instead.

    Args:
        scaled: Column-standardized data (samples × nodes)
        idx: Module node positions

    Returns:
        Vector of length n_samples. k=0 (or non-finite input) gives all NaN,
        k=1 gives the node's scaled column.
    """
    n_samples = scaled.shape[0]
    k = len(idx)
    if k == 0:
        return np.full(n_samples, np.nan)

    order = stable_sort_for_locality(idx)
    columns = scaled[:, idx[order]]
    if k == 1:
        return columns[:, 0].copy()
    if not np.all(np.isfinite(columns)):
        return np.full(n_samples, np.nan)

    u, _, _ = linalg.svd(columns, full_matrices=False, check_finite=False)
    profile = u[:, 0].copy()

    direction = correlation(profile, columns.mean(axis=1))
    if np.isnan(direction) or direction == 0:
        flip = profile[np.argmax(np.abs(profile))] < 0
    else:
        flip = direction < 0
    if flip:
        profile = -profile
    return profile


def node_contribution(
    scaled: NDArray[np.float64],
    idx: NDArray[np.intp],
    profile: NDArray[np.float64],
) -> NDArray[np.float64]:
    """
    Correlation between each node's scaled column and the summary profile.

    Returns values in [-1, 1] in ``idx`` order.
    """
    if len(idx) == 0:
        return np.empty(0)
    order = stable_sort_for_locality(idx)
    contribution = _columnwise_correlation(scaled[:, idx[order]], profile)
    return _scatter(contribution, order)


def weighted_degree(
    network: NDArray[np.float64],
    idx: NDArray[np.intp],
) -> NDArray[np.float64]:
    """
    Sum of each node's edge weights to the other module nodes.

    Self-loops are excluded. Returns values in ``idx`` order.
    """
    if len(idx) == 0:
        return np.empty(0)
    order = stable_sort_for_locality(idx)
    ordered = idx[order]
    sub = network[np.ix_(ordered, ordered)]
    degree = sub.sum(axis=1) - np.diagonal(sub)
    return _scatter(degree, order)


def average_edge_weight(degree: NDArray[np.float64]) -> float:
    """
    Average weight of the module's edges.

    Each edge is counted once from each end, so the total weighted degree is
    divided by k(k - 1). NaN when the module has fewer than two nodes.
    """
    k = len(degree)
    if k < 2:
        return np.nan
    return float(np.sum(degree) / (k * (k - 1)))


def module_coherence(
    contribution: NDArray[np.float64],
    mode: CoherenceMode = "squared",
) -> float:
    """
    Summarize node contributions into a single coherence score.

    Args:
        contribution: Node contributions of the module
        mode: "squared" (default) gives the proportion of module variance
            explained by the summary profile; "absolute" averages
            |contribution|; "signed" averages the raw values

    Returns:
        Coherence, or NaN when no contribution is finite

    Raises:
        ValueError: If ``mode`` is unknown
    """
    if mode not in COHERENCE_MODES:
        raise ValueError(f"Unknown coherence mode: {mode!r}. Use one of {COHERENCE_MODES}")
    values = np.asarray(contribution, dtype=np.float64)
    values = values[np.isfinite(values)]
    if len(values) == 0:
        return np.nan
    if mode == "squared":
        return float(np.mean(values ** 2))
    if mode == "absolute":
        return float(np.mean(np.abs(values)))
    return float(np.mean(values))


def corr_vector(
    correlation_matrix: NDArray[np.float64],
    idx: NDArray[np.intp],
) -> NDArray[np.float64]:
    """
    Upper triangle (diagonal excluded) of the module's correlation submatrix.

    Entries are ordered row-major over ``idx`` so that vectors built from the
    same module-map order line up between datasets. Length k(k - 1)/2.
    """
    k = len(idx)
    if k < 2:
        return np.empty(0)
    rows, cols = np.triu_indices(k, 1)
    return correlation_matrix[idx[rows], idx[cols]]


def correlation(reference: NDArray[np.float64], test: NDArray[np.float64]) -> float:
    """
    Pearson correlation using pairwise-complete observations.

    NaN when fewer than two pairs are complete or either side is constant.

    Raises:
        ValueError: If the vectors differ in length
    """
    reference = np.asarray(reference, dtype=np.float64)
    test = np.asarray(test, dtype=np.float64)
    if reference.shape != test.shape:
        raise ValueError(
            f"Vectors must have equal length, got {reference.shape} and {test.shape}"
        )

    complete = np.isfinite(reference) & np.isfinite(test)
    if np.count_nonzero(complete) < 2:
        return np.nan

    x = reference[complete]
    y = test[complete]
    xc = x - x.mean()
    yc = y - y.mean()
    denominator = np.sqrt(np.dot(xc, xc) * np.dot(yc, yc))
    if denominator == 0 or not np.isfinite(denominator):
        return np.nan
    return float(np.clip(np.dot(xc, yc) / denominator, -1.0, 1.0))


def sign_aware_mean(reference: NDArray[np.float64], test: NDArray[np.float64]) -> float:
    """
    Mean of ``sign(reference) * test`` over pairwise-complete entries.

    Rewards test values that agree in direction with the reference, so a sign
    flip lowers the score even when magnitudes match. NaN when no pair is
    complete.

    Raises:
        ValueError: If the vectors differ in length
    """
    reference = np.asarray(reference, dtype=np.float64)
    test = np.asarray(test, dtype=np.float64)
    if reference.shape != test.shape:
        raise ValueError(
            f"Vectors must have equal length, got {reference.shape} and {test.shape}"
        )

    complete = np.isfinite(reference) & np.isfinite(test)
    if not np.any(complete):
        return np.nan
    return float(np.mean(np.sign(reference[complete]) * test[complete]))
