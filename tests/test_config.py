"""Tests for configuration loading, validation and CLI merging."""

import json
from argparse import Namespace

import pytest

from netpreserve.config import (
    PreservationConfig,
    load_config,
    merge_config_with_args,
    validate_config,
)


def _default_args(**overrides):
    args = dict(
        n_permutations=10000, threads=1, null="overlap", seed=None,
        progress_interval=1.0, coherence="squared", alternative="greater", quiet=False,
    )
    args.update(overrides)
    return Namespace(**args)


class TestLoadConfig:
    """Tests for load_config()."""

    def test_yaml(self, tmp_path):
        path = tmp_path / "run.yaml"
        path.write_text("permutation:\n  n_permutations: 500\n  n_threads: 4\nverbose: false\n")
        config = load_config(path)
        assert config["permutation"] == {"n_permutations": 500, "n_threads": 4}
        assert config["verbose"] is False

    def test_json(self, tmp_path):
        path = tmp_path / "run.json"
        path.write_text(json.dumps({"statistics": {"coherence": "absolute"}}))
        assert load_config(path) == {"statistics": {"coherence": "absolute"}}

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yml"
        path.write_text("")
        assert load_config(path) == {}

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.yaml")

    def test_unsupported_suffix(self, tmp_path):
        path = tmp_path / "run.toml"
        path.write_text("")
        with pytest.raises(ValueError, match="Unsupported config format"):
            load_config(path)

    def test_top_level_must_be_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- 1\n- 2\n")
        with pytest.raises(ValueError, match="mapping"):
            load_config(path)


class TestValidateConfig:
    """Tests for validate_config()."""

    @pytest.mark.parametrize("config", [
        {"permutation": {"n_permutations": 0}},
        {"permutation": {"n_threads": -2}},
        {"permutation": {"n_threads": True}},
        {"permutation": {"null": "everything"}},
        {"permutation": {"progress_interval": 0}},
        {"statistics": {"coherence": "cubed"}},
        {"statistics": {"alternative": "sideways"}},
        {"permutation": [1, 2]},
    ])
    def test_invalid(self, config):
        with pytest.raises(ValueError):
            validate_config(config)

    def test_valid(self):
        validate_config({
            "permutation": {"n_permutations": 100, "n_threads": 2, "null": "all"},
            "statistics": {"coherence": "signed", "alternative": "two.sided"},
        })


class TestPreservationConfig:
    """Tests for PreservationConfig."""

    def test_defaults(self):
        config = PreservationConfig()
        assert config.permutation.n_permutations == 10000
        assert config.permutation.n_threads == 1
        assert config.permutation.null == "overlap"
        assert config.statistics.coherence == "squared"
        assert config.verbose is True

    def test_from_dict_ignores_unknown_keys(self, caplog):
        config = PreservationConfig.from_dict({
            "permutation": {"n_threads": 3, "bogus": 1},
            "other": 5,
        })
        assert config.permutation.n_threads == 3
        assert "bogus" in caplog.text

    def test_run_kwargs(self):
        config = PreservationConfig.from_args(_default_args(threads=4, seed=9, quiet=True))
        kwargs = config.run_kwargs()
        assert kwargs["n_threads"] == 4
        assert kwargs["seed"] == 9
        assert kwargs["verbose"] is False
        assert "alternative" not in kwargs


class TestMergeConfigWithArgs:
    """Tests for merge_config_with_args()."""

    CONFIG = {
        "permutation": {"n_permutations": 500, "n_threads": 4, "seed": 11},
        "statistics": {"coherence": "absolute"},
        "verbose": False,
    }

    def test_config_fills_defaults(self):
        merged = merge_config_with_args(self.CONFIG, _default_args(), [])
        assert merged.n_permutations == 500
        assert merged.threads == 4
        assert merged.seed == 11
        assert merged.coherence == "absolute"
        assert merged.quiet is True

    def test_explicit_cli_wins(self):
        args = _default_args(threads=2, n_permutations=50)
        merged = merge_config_with_args(
            self.CONFIG, args, ["--threads", "2", "--n-permutations=50"]
        )
        assert merged.threads == 2
        assert merged.n_permutations == 50
        assert merged.seed == 11

    def test_original_args_untouched(self):
        args = _default_args()
        merge_config_with_args(self.CONFIG, args, [])
        assert args.n_permutations == 10000
