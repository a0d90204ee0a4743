"""Tests for network statistic primitives."""

import numpy as np
import pytest

from netpreserve.stats.network_stats import (
    average_edge_weight,
    corr_vector,
    correlation,
    module_coherence,
    node_contribution,
    scale_columns,
    sign_aware_mean,
    summary_profile,
    weighted_degree,
)


@pytest.fixture
def scaled():
    """Scaled data where columns 0-3 share a factor and 4-5 are noise."""
    rng = np.random.default_rng(42)
    factor = rng.standard_normal(40)
    data = np.column_stack(
        [factor + 0.3 * rng.standard_normal(40) for _ in range(4)]
        + [rng.standard_normal(40) for _ in range(2)]
    )
    return scale_columns(data)


class TestScaleColumns:
    """Tests for scale_columns()."""

    def test_zero_mean_unit_variance(self):
        rng = np.random.default_rng(42)
        scaled = scale_columns(rng.normal(5, 3, size=(30, 4)))
        np.testing.assert_allclose(scaled.mean(axis=0), 0, atol=1e-12)
        np.testing.assert_allclose(scaled.std(axis=0, ddof=1), 1)

    def test_constant_column_is_nan(self):
        data = np.column_stack([np.arange(5.0), np.full(5, 2.0)])
        scaled = scale_columns(data)
        assert np.all(np.isnan(scaled[:, 1]))
        assert np.all(np.isfinite(scaled[:, 0]))


class TestCorrelation:
    """Tests for correlation()."""

    def test_self_correlation_is_one(self):
        v = np.random.default_rng(42).standard_normal(20)
        assert correlation(v, v) == pytest.approx(1.0)

    def test_negation_is_minus_one(self):
        v = np.random.default_rng(42).standard_normal(20)
        assert correlation(v, -v) == pytest.approx(-1.0)

    def test_pairwise_complete(self):
        x = np.array([1.0, 2.0, np.nan, 4.0, 5.0])
        y = np.array([2.0, 4.0, 100.0, 8.0, np.nan])
        # Complete pairs: (1,2), (2,4), (4,8)
        assert correlation(x, y) == pytest.approx(1.0)

    def test_fewer_than_two_pairs_is_nan(self):
        assert np.isnan(correlation(np.array([1.0, np.nan]), np.array([np.nan, 2.0])))
        assert np.isnan(correlation(np.empty(0), np.empty(0)))

    def test_constant_vector_is_nan(self):
        assert np.isnan(correlation(np.ones(5), np.arange(5.0)))

    def test_length_mismatch_raises(self):
        with pytest.raises(ValueError):
            correlation(np.ones(3), np.ones(4))


class TestSignAwareMean:
    """Tests for sign_aware_mean()."""

    def test_self_gives_mean_absolute_value(self):
        v = np.array([0.5, -0.2, 0.9, -0.7])
        assert sign_aware_mean(v, v) == pytest.approx(np.mean(np.abs(v)))

    def test_sign_flip_is_negative(self):
        v = np.array([0.5, -0.2, 0.9, -0.7])
        assert sign_aware_mean(v, -v) == pytest.approx(-np.mean(np.abs(v)))

    def test_no_complete_pairs_is_nan(self):
        assert np.isnan(sign_aware_mean(np.array([np.nan]), np.array([1.0])))


class TestSummaryProfile:
    """Tests for summary_profile() and node_contribution()."""

    def test_profile_correlates_with_module_mean(self, scaled):
        idx = np.array([0, 1, 2, 3])
        profile = summary_profile(scaled, idx)
        assert correlation(profile, scaled[:, idx].mean(axis=1)) > 0.9

    def test_sign_fixed_for_negated_data(self, scaled):
        """Negating every column negates the mean, so the profile flips too."""
        idx = np.array([0, 1, 2, 3])
        profile = summary_profile(scaled, idx)
        flipped = summary_profile(-scaled, idx)
        np.testing.assert_allclose(flipped, -profile, atol=1e-10)

    def test_invariant_to_index_order(self, scaled):
        idx = np.array([3, 0, 2, 1])
        np.testing.assert_allclose(
            summary_profile(scaled, idx), summary_profile(scaled, np.sort(idx)), atol=1e-10
        )

    def test_contribution_in_caller_order(self, scaled):
        idx = np.array([3, 0, 5, 1])
        profile = summary_profile(scaled, idx)
        contribution = node_contribution(scaled, idx, profile)
        for i, node in enumerate(idx):
            assert contribution[i] == pytest.approx(correlation(scaled[:, node], profile))

    def test_contribution_high_for_module_nodes(self, scaled):
        idx = np.array([0, 1, 2, 3])
        contribution = node_contribution(scaled, idx, summary_profile(scaled, idx))
        assert np.all(contribution > 0.8)
        assert np.all(np.abs(contribution) <= 1.0)

    def test_empty_module_is_nan(self, scaled):
        profile = summary_profile(scaled, np.array([], dtype=np.intp))
        assert profile.shape == (scaled.shape[0],)
        assert np.all(np.isnan(profile))

    def test_single_node_is_its_column(self, scaled):
        np.testing.assert_array_equal(summary_profile(scaled, np.array([4])), scaled[:, 4])

    def test_non_finite_column_is_nan(self, scaled):
        data = scaled.copy()
        data[0, 1] = np.nan
        assert np.all(np.isnan(summary_profile(data, np.array([0, 1, 2]))))


class TestConnectivity:
    """Tests for weighted_degree(), average_edge_weight() and corr_vector()."""

    NETWORK = np.array([
        [1.0, 0.5, 0.2, 0.0],
        [0.5, 1.0, 0.4, 0.1],
        [0.2, 0.4, 1.0, 0.3],
        [0.0, 0.1, 0.3, 1.0],
    ])

    def test_weighted_degree_excludes_self_loops(self):
        degree = weighted_degree(self.NETWORK, np.array([0, 1, 2]))
        np.testing.assert_allclose(degree, [0.7, 0.9, 0.6])

    def test_weighted_degree_in_caller_order(self):
        degree = weighted_degree(self.NETWORK, np.array([2, 0, 1]))
        np.testing.assert_allclose(degree, [0.6, 0.7, 0.9])

    def test_average_edge_weight(self):
        degree = weighted_degree(self.NETWORK, np.array([0, 1, 2]))
        # Edges 0.5, 0.2, 0.4 each counted from both ends
        assert average_edge_weight(degree) == pytest.approx((0.5 + 0.2 + 0.4) / 3)

    def test_average_edge_weight_undefined_below_two_nodes(self):
        assert np.isnan(average_edge_weight(np.array([0.0])))
        assert np.isnan(average_edge_weight(np.empty(0)))

    def test_corr_vector_row_major_upper_triangle(self):
        cv = corr_vector(self.NETWORK, np.array([2, 0, 3]))
        # Pairs (2,0), (2,3), (0,3)
        np.testing.assert_allclose(cv, [0.2, 0.3, 0.0])

    def test_corr_vector_length(self):
        assert len(corr_vector(self.NETWORK, np.arange(4))) == 6
        assert len(corr_vector(self.NETWORK, np.array([1]))) == 0


class TestModuleCoherence:
    """Tests for module_coherence()."""

    CONTRIBUTION = np.array([0.9, -0.5, 0.8, np.nan])

    def test_squared_is_default(self):
        expected = np.mean(np.array([0.9, -0.5, 0.8]) ** 2)
        assert module_coherence(self.CONTRIBUTION) == pytest.approx(expected)

    def test_absolute_and_signed(self):
        assert module_coherence(self.CONTRIBUTION, "absolute") == pytest.approx(2.2 / 3)
        assert module_coherence(self.CONTRIBUTION, "signed") == pytest.approx(1.2 / 3)

    def test_no_finite_values_is_nan(self):
        assert np.isnan(module_coherence(np.array([np.nan])))

    def test_unknown_mode_raises(self):
        with pytest.raises(ValueError):
            module_coherence(self.CONTRIBUTION, "cubed")
