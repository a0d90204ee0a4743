"""
Permutation p-values for module preservation statistics.

Compares each observed statistic with its null distribution from the
permutation procedure. Permutations that are missing (cancelled, or the
statistic was undefined) are left out of both numerator and denominator.

P-values follow the (b + 1) / (m + 1) convention, which never reports zero
for a finite number of permutations:
    b: null values at least as extreme as the observed value
    m: non-missing null values

References:
    - Phipson B, Smyth GK (2010). Permutation p-values should never be zero.
      Stat Appl Genet Mol Biol 9(1): Article 39.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal

import numpy as np
import pandas as pd

if TYPE_CHECKING:
    from netpreserve.stats.permutation import PreservationResult

__all__ = ['ALTERNATIVES', 'permutation_pvalues', 'adjust_pvalues']

Alternative = Literal["greater", "less", "two.sided"]

ALTERNATIVES = ("greater", "less", "two.sided")


def permutation_pvalues(
    result: PreservationResult,
    alternative: Alternative = "greater",
) -> pd.DataFrame:
    """
    Empirical p-value of every observed statistic.

    Args:
        result: Output of run_permutation_procedure()
        alternative: "greater" (preservation: observed larger than chance),
            "less", or "two.sided" (twice the smaller one-sided p, capped at 1)

    Returns:
        modules × statistics frame (nullable Float64); missing where the
        observed value is missing or no null value is available

    Raises:
        ValueError: If ``alternative`` is unknown
    """
    if alternative not in ALTERNATIVES:
        raise ValueError(f"Unknown alternative: {alternative!r}. Use one of {ALTERNATIVES}")

    observed = result.observed.to_numpy(dtype=np.float64, na_value=np.nan)
    values = np.ma.getdata(result.nulls)
    valid = ~np.ma.getmaskarray(result.nulls)
    reference = observed[:, :, np.newaxis]

    n_valid = valid.sum(axis=2)
    n_greater = (valid & (values >= reference)).sum(axis=2)
    n_less = (valid & (values <= reference)).sum(axis=2)

    p_greater = (n_greater + 1) / (n_valid + 1)
    p_less = (n_less + 1) / (n_valid + 1)
    if alternative == "greater":
        pvalues = p_greater
    elif alternative == "less":
        pvalues = p_less
    else:
        pvalues = np.minimum(1.0, 2 * np.minimum(p_greater, p_less))

    pvalues = np.where(np.isnan(observed) | (n_valid == 0), np.nan, pvalues)
    return pd.DataFrame(
        pvalues, index=result.observed.index, columns=result.observed.columns
    ).astype("Float64")


def adjust_pvalues(pvalues: pd.DataFrame, method: str = "bh") -> pd.DataFrame:
    """
    False discovery rate adjustment across modules, one statistic at a time.

    Args:
        pvalues: modules × statistics p-values, as from permutation_pvalues()
        method: "bh" (Benjamini-Hochberg) or "by" (Benjamini-Yekutieli)

    Returns:
        Frame of q-values with the same shape; missing entries stay missing
    """
    from scipy.stats import false_discovery_control

    adjusted = pvalues.astype("Float64").copy()
    for column in adjusted.columns:
        present = adjusted[column].notna()
        if not present.any():
            continue
        raw = adjusted.loc[present, column].to_numpy(dtype=np.float64)
        adjusted.loc[present, column] = false_discovery_control(raw, method=method)
    return adjusted
