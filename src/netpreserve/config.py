"""
Configuration file support for netpreserve.

Supports YAML and JSON config files with CLI argument override.

Example config (YAML):

    permutation:
      n_permutations: 10000
      n_threads: 4
      null: overlap
      seed: 42
    statistics:
      coherence: squared
      alternative: greater
    verbose: true
"""

from __future__ import annotations

import json
import logging
from argparse import Namespace
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from netpreserve.core.indexing import NULL_HYPOTHESES
from netpreserve.stats.network_stats import COHERENCE_MODES
from netpreserve.stats.significance import ALTERNATIVES

logger = logging.getLogger(__name__)

__all__ = [
    'PermutationConfig',
    'StatisticsConfig',
    'PreservationConfig',
    'load_config',
    'validate_config',
    'merge_config_with_args',
]


@dataclass
class PermutationConfig:
    """Permutation procedure configuration."""
    n_permutations: int = 10000
    n_threads: int = 1
    null: str = "overlap"
    seed: Optional[int] = None
    progress_interval: float = 1.0


@dataclass
class StatisticsConfig:
    """Statistic conventions."""
    coherence: str = "squared"
    alternative: str = "greater"


@dataclass
class PreservationConfig:
    """
    Complete configuration for a module preservation run.

    Mirrors the CLI argument structure for consistency.
    """
    permutation: PermutationConfig = field(default_factory=PermutationConfig)
    statistics: StatisticsConfig = field(default_factory=StatisticsConfig)
    verbose: bool = True

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> PreservationConfig:
        """
        Build a validated config from a loaded mapping.

        Unknown keys are ignored with a warning.

        Raises:
            ValueError: If a value is invalid
        """
        validate_config(config)
        sections = {
            'permutation': PermutationConfig,
            'statistics': StatisticsConfig,
        }
        kwargs: Dict[str, Any] = {}
        for key, value in config.items():
            if key in sections:
                section_cls = sections[key]
                known = set(section_cls.__dataclass_fields__)
                unknown = set(value) - known
                if unknown:
                    logger.warning(f"Ignoring unknown {key} config keys: {sorted(unknown)}")
                kwargs[key] = section_cls(**{k: v for k, v in value.items() if k in known})
            elif key == 'verbose':
                kwargs[key] = bool(value)
            else:
                logger.warning(f"Ignoring unknown config key: {key}")
        return cls(**kwargs)

    @classmethod
    def from_args(cls, args: Namespace) -> PreservationConfig:
        """Build a config from (merged) CLI arguments."""
        return cls(
            permutation=PermutationConfig(
                n_permutations=args.n_permutations,
                n_threads=args.threads,
                null=args.null,
                seed=args.seed,
                progress_interval=args.progress_interval,
            ),
            statistics=StatisticsConfig(
                coherence=args.coherence,
                alternative=args.alternative,
            ),
            verbose=not args.quiet,
        )

    def run_kwargs(self) -> Dict[str, Any]:
        """Keyword arguments for run_permutation_procedure()."""
        return {
            'n_permutations': self.permutation.n_permutations,
            'n_threads': self.permutation.n_threads,
            'null': self.permutation.null,
            'seed': self.permutation.seed,
            'progress_interval': self.permutation.progress_interval,
            'coherence': self.statistics.coherence,
            'verbose': self.verbose,
        }

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def load_config(config_path: Path) -> Dict[str, Any]:
    """
    Load configuration from YAML or JSON file.

    Parameters:
        config_path: Path to config file (.yaml, .yml, or .json)

    Returns:
        Dictionary with configuration values

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If file format is unsupported or invalid

    Examples:
        >>> config = load_config(Path("preservation.yaml"))
        >>> print(config['permutation']['n_permutations'])
        10000
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    suffix = config_path.suffix.lower()
    if suffix not in ('.yaml', '.yml', '.json'):
        raise ValueError(
            f"Unsupported config format: {suffix}. "
            f"Use .yaml, .yml, or .json"
        )

    try:
        with open(config_path, 'r') as f:
            if suffix == '.json':
                config = json.load(f)
            else:
                config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in config file: {e}")
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in config file: {e}")

    if config is None:
        return {}

    if not isinstance(config, dict):
        raise ValueError("Config file must contain a dictionary/mapping at top level")

    return config


def validate_config(config: Dict[str, Any]) -> None:
    """
    Validate configuration structure and values.

    Raises:
        ValueError: If configuration is invalid
    """
    for section in ('permutation', 'statistics'):
        if section in config and not isinstance(config[section], dict):
            raise ValueError(f"Config section '{section}' must be a mapping")

    permutation = config.get('permutation', {})
    if 'n_permutations' in permutation:
        n_perm = permutation['n_permutations']
        if not isinstance(n_perm, int) or isinstance(n_perm, bool) or n_perm <= 0:
            raise ValueError(f"n_permutations must be a positive integer, got: {n_perm}")
    if 'n_threads' in permutation:
        n_threads = permutation['n_threads']
        if not isinstance(n_threads, int) or isinstance(n_threads, bool) or n_threads <= 0:
            raise ValueError(f"n_threads must be a positive integer, got: {n_threads}")
    if 'null' in permutation and permutation['null'] not in NULL_HYPOTHESES:
        raise ValueError(
            f"Invalid null hypothesis '{permutation['null']}'. "
            f"Choose from: {', '.join(NULL_HYPOTHESES)}"
        )
    if 'progress_interval' in permutation:
        interval = permutation['progress_interval']
        if not isinstance(interval, (int, float)) or interval <= 0:
            raise ValueError(f"progress_interval must be a positive number, got: {interval}")

    statistics = config.get('statistics', {})
    if 'coherence' in statistics and statistics['coherence'] not in COHERENCE_MODES:
        raise ValueError(
            f"Invalid coherence mode '{statistics['coherence']}'. "
            f"Choose from: {', '.join(COHERENCE_MODES)}"
        )
    if 'alternative' in statistics and statistics['alternative'] not in ALTERNATIVES:
        raise ValueError(
            f"Invalid alternative '{statistics['alternative']}'. "
            f"Choose from: {', '.join(ALTERNATIVES)}"
        )


def _merge_value(cli_value: Any, config_value: Any, was_explicitly_set: bool) -> Any:
    """
    Merge a single config value with CLI argument.

    Rules:
    - CLI args ALWAYS override config if explicitly set
    - If CLI arg not set, use config value
    - If neither set, keep CLI default
    """
    if was_explicitly_set:
        return cli_value
    if config_value is not None:
        return config_value
    return cli_value


# CLI destination → (config section, config key)
_ARG_MAPPINGS = {
    'n_permutations': ('permutation', 'n_permutations'),
    'threads': ('permutation', 'n_threads'),
    'null': ('permutation', 'null'),
    'seed': ('permutation', 'seed'),
    'progress_interval': ('permutation', 'progress_interval'),
    'coherence': ('statistics', 'coherence'),
    'alternative': ('statistics', 'alternative'),
}


def merge_config_with_args(
    config: Dict[str, Any],
    args: Namespace,
    cli_args: Optional[List[str]] = None,
) -> Namespace:
    """
    Merge config file values with CLI arguments.

    Priority (highest to lowest):
    1. Explicitly provided CLI arguments
    2. Config file values
    3. CLI argument defaults

    Parameters:
        config: Configuration dictionary from load_config()
        args: Parsed CLI arguments (argparse.Namespace)
        cli_args: Raw CLI arguments list (for detecting explicit values).
                  If None, assumes all args are defaults

    Returns:
        Updated Namespace with merged values
    """
    explicit_args = set()
    for arg in cli_args or []:
        if arg.startswith('--'):
            explicit_args.add(arg[2:].split('=', 1)[0].replace('-', '_'))

    merged = Namespace(**vars(args))

    for arg_name, (section, key) in _ARG_MAPPINGS.items():
        config_value = config.get(section, {}).get(key)
        setattr(merged, arg_name, _merge_value(
            getattr(merged, arg_name, None),
            config_value,
            arg_name in explicit_args,
        ))

    if 'verbose' in config and 'quiet' not in explicit_args:
        merged.quiet = not bool(config['verbose'])

    return merged
