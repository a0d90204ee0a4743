"""Tests for the observed-statistics pass."""

import numpy as np
import pytest

from netpreserve.core.indexing import build_index_map, build_module_map, resolve_module_indices
from netpreserve.stats.network_stats import corr_vector, weighted_degree
from netpreserve.stats.observed import (
    N_STATISTICS,
    STATISTICS,
    StatisticContext,
    build_discovery_profiles,
    compute_observed_statistics,
    module_statistics,
)

from conftest import generate_dataset


def _setup(discovery, test, assignments, modules):
    discovery_ctx = StatisticContext.from_dataset(discovery)
    test_ctx = StatisticContext.from_dataset(test)
    discovery_index = build_index_map(discovery.node_ids)
    test_index = build_index_map(test.node_ids)
    shared = {n for n in assignments if n in discovery_index and n in test_index}
    module_map = build_module_map(assignments, shared)
    profiles = build_discovery_profiles(discovery_ctx, discovery_index, module_map, modules)
    return test_ctx, test_index, module_map, profiles


class TestStatisticOrder:

    def test_seven_statistics_in_fixed_order(self):
        assert STATISTICS == (
            "avg.weight", "coherence", "cor.cor", "cor.degree",
            "cor.contrib", "avg.cor", "avg.contrib",
        )
        assert N_STATISTICS == 7


class TestDiscoveryProfiles:
    """Tests for build_discovery_profiles()."""

    def test_profiles_cached_read_only(self, discovery_dataset, test_dataset, assignments):
        _, _, _, profiles = _setup(discovery_dataset, test_dataset, assignments, ["A", "B"])
        assert set(profiles) == {"A", "B"}
        assert profiles["A"].n_nodes == 10
        assert len(profiles["A"].corr_vector) == 45
        with pytest.raises(ValueError):
            profiles["A"].degree[0] = 0.0
        with pytest.raises(TypeError):
            profiles["C"] = profiles["A"]

    def test_missing_data_raises(self, discovery_dataset):
        from netpreserve.core.dataset import NetworkDataset

        no_data = NetworkDataset(
            network=discovery_dataset.network, node_ids=discovery_dataset.node_ids
        )
        with pytest.raises(ValueError, match="data and correlation"):
            StatisticContext.from_dataset(no_data)


class TestComputeObservedStatistics:
    """Tests for compute_observed_statistics()."""

    def test_self_comparison(self, discovery_dataset, assignments):
        """A dataset compared with itself gives perfect concordance."""
        test_ctx, test_index, module_map, profiles = _setup(
            discovery_dataset, discovery_dataset, assignments, ["A", "B"]
        )
        observed = compute_observed_statistics(
            test_ctx, test_index, module_map, ["A", "B"], profiles
        )
        assert observed.shape == (2, 7)
        for row in observed:
            assert row[2] == pytest.approx(1.0)  # cor.cor
            assert row[3] == pytest.approx(1.0)  # cor.degree
            assert row[4] == pytest.approx(1.0)  # cor.contrib

    def test_self_comparison_avg_cor_is_mean_absolute_correlation(
        self, discovery_dataset, assignments
    ):
        test_ctx, test_index, module_map, profiles = _setup(
            discovery_dataset, discovery_dataset, assignments, ["A"]
        )
        observed = compute_observed_statistics(test_ctx, test_index, module_map, ["A"], profiles)
        idx = resolve_module_indices("A", module_map, test_index)
        cv = corr_vector(discovery_dataset.correlation, idx)
        assert observed[0, 5] == pytest.approx(np.mean(np.abs(cv)))

    def test_preserved_module_beats_lost_module(
        self, discovery_dataset, test_dataset, assignments
    ):
        test_ctx, test_index, module_map, profiles = _setup(
            discovery_dataset, test_dataset, assignments, ["A", "B"]
        )
        observed = compute_observed_statistics(
            test_ctx, test_index, module_map, ["A", "B"], profiles
        )
        a, b = observed
        assert a[2] > 0.5  # cor.cor
        assert a[5] > 0.2  # avg.cor
        assert abs(b[5]) < 0.2
        assert a[1] > b[1]  # coherence

    def test_avg_weight_matches_degree(self, discovery_dataset, test_dataset, assignments):
        test_ctx, test_index, module_map, profiles = _setup(
            discovery_dataset, test_dataset, assignments, ["A"]
        )
        observed = compute_observed_statistics(test_ctx, test_index, module_map, ["A"], profiles)
        idx = resolve_module_indices("A", module_map, test_index)
        degree = weighted_degree(test_dataset.network, idx)
        assert observed[0, 0] == pytest.approx(degree.sum() / (10 * 9))

    def test_module_absent_from_test_is_all_nan(self, discovery_dataset, assignments):
        keep = [n for n in discovery_dataset.node_ids if not n.startswith("b")]
        test = generate_dataset(seed=2, node_ids=keep)
        test_ctx, test_index, module_map, profiles = _setup(
            discovery_dataset, test, assignments, ["A", "B"]
        )
        observed = compute_observed_statistics(
            test_ctx, test_index, module_map, ["A", "B"], profiles
        )
        assert np.all(np.isfinite(observed[0]))
        assert np.all(np.isnan(observed[1]))


class TestModuleStatistics:
    """Tests for module_statistics()."""

    def test_cancel_returns_none(self, discovery_dataset, assignments):
        test_ctx, test_index, module_map, profiles = _setup(
            discovery_dataset, discovery_dataset, assignments, ["A"]
        )
        idx = resolve_module_indices("A", module_map, test_index)
        assert module_statistics(test_ctx, idx, profiles["A"], cancelled=lambda: True) is None

    def test_empty_module_all_nan(self, discovery_dataset, assignments):
        test_ctx, _, _, profiles = _setup(
            discovery_dataset, discovery_dataset, assignments, ["A"]
        )
        stats = module_statistics(test_ctx, np.array([], dtype=np.intp), profiles["A"])
        assert stats.shape == (7,)
        assert np.all(np.isnan(stats))
