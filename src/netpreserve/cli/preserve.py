"""
netpreserve preserve command - Module preservation between two datasets.

Computes the seven preservation statistics of each module in the test
dataset and their permutation null distributions, then writes observed
statistics, nulls, p-values and a run summary.

Usage:
    netpreserve preserve \\
        --discovery-data disc_data.csv --discovery-correlation disc_corr.csv \\
        --discovery-network disc_net.csv \\
        --test-data test_data.csv --test-correlation test_corr.csv \\
        --test-network test_net.csv \\
        --assignments modules.csv --output results/preservation \\
        --n-permutations 10000 --threads 4 --seed 42
"""

import argparse
import sys
from datetime import datetime
from pathlib import Path

from netpreserve.cli._validators import _non_negative_int, _positive_float, _positive_int
from netpreserve.core.indexing import NULL_HYPOTHESES
from netpreserve.stats.network_stats import COHERENCE_MODES
from netpreserve.stats.significance import ALTERNATIVES


def register_parser(subparsers: argparse._SubParsersAction) -> None:
    """Register the preserve subcommand."""
    parser = subparsers.add_parser(
        "preserve",
        help="Test module preservation in a second dataset",
        description=(
            "Assess whether modules found in a discovery dataset are "
            "preserved in a test dataset, using permutation null "
            "distributions for seven preservation statistics."
        )
    )

    # Discovery dataset
    parser.add_argument("--discovery-data", type=Path, required=True,
                        help="Discovery data CSV (samples x nodes)")
    parser.add_argument("--discovery-correlation", type=Path, required=True,
                        help="Discovery correlation matrix CSV (nodes x nodes)")
    parser.add_argument("--discovery-network", type=Path, required=True,
                        help="Discovery network adjacency CSV (nodes x nodes)")

    # Test dataset
    parser.add_argument("--test-data", type=Path, required=True,
                        help="Test data CSV (samples x nodes)")
    parser.add_argument("--test-correlation", type=Path, required=True,
                        help="Test correlation matrix CSV (nodes x nodes)")
    parser.add_argument("--test-network", type=Path, required=True,
                        help="Test network adjacency CSV (nodes x nodes)")

    # Modules
    parser.add_argument("--assignments", "-a", type=Path, required=True,
                        help="Module assignments CSV (node, module)")
    parser.add_argument("--modules", nargs="+", default=None,
                        help="Modules to analyze (default: all assigned modules)")
    parser.add_argument("--output", "-o", type=Path, default=Path("results/preservation"),
                        help="Output directory for results")
    parser.add_argument("--config", "-c", type=Path, default=None,
                        help="Path to YAML/JSON config file (optional, CLI args override config values)")

    # Permutation procedure
    parser.add_argument("--n-permutations", type=_positive_int, default=10000,
                        help="Permutations per null distribution (default: 10000)")
    parser.add_argument("--threads", "-t", type=_positive_int, default=1,
                        help="Worker threads (default: 1)")
    parser.add_argument("--null", choices=list(NULL_HYPOTHESES), default="overlap",
                        help="Resampling universe: nodes assigned to modules and present "
                             "in the test dataset (overlap), or all test nodes (all)")
    parser.add_argument("--seed", type=_non_negative_int, default=None,
                        help="Random seed for reproducible nulls (default: none)")
    parser.add_argument("--progress-interval", type=_positive_float, default=1.0,
                        help="Seconds between progress reports (default: 1.0)")

    # Statistics
    parser.add_argument("--coherence", choices=list(COHERENCE_MODES), default="squared",
                        help="Module coherence convention (default: squared)")
    parser.add_argument("--alternative", choices=list(ALTERNATIVES), default="greater",
                        help="Alternative hypothesis for p-values (default: greater)")

    parser.add_argument("--quiet", "-q", action="store_true",
                        help="Suppress progress messages")

    parser.set_defaults(func=run_preserve)


def run_preserve(args: argparse.Namespace) -> int:
    """Execute the preserve command."""
    import logging
    from netpreserve.config import (
        PreservationConfig,
        load_config,
        merge_config_with_args,
        validate_config,
    )
    from netpreserve.io import (
        load_assignments,
        load_dataset,
        write_preservation_result,
    )
    from netpreserve.stats.permutation import run_permutation_procedure

    # Load and merge config file if provided
    if args.config:
        print(f"Loading configuration from: {args.config}")
        try:
            config = load_config(args.config)
            validate_config(config)
            cli_args = getattr(args, 'argv', None)
            if cli_args is None:
                cli_args = sys.argv[2:]  # Skip 'netpreserve preserve'
            args = merge_config_with_args(config, args, cli_args)
        except (FileNotFoundError, ValueError) as e:
            print(f"ERROR: Config file error: {e}")
            return 1

    settings = PreservationConfig.from_args(args)

    logging.basicConfig(
        level=logging.INFO if settings.verbose else logging.WARNING,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    logger = logging.getLogger(__name__)

    start_time = datetime.now()
    if settings.verbose:
        print(f"\n{'='*70}")
        print("  Module Preservation Analysis")
        print(f"{'='*70}\n")

    try:
        discovery = load_dataset(
            network=args.discovery_network,
            data=args.discovery_data,
            correlation=args.discovery_correlation,
        )
        test = load_dataset(
            network=args.test_network,
            data=args.test_data,
            correlation=args.test_correlation,
        )
        assignments = load_assignments(args.assignments)
    except (FileNotFoundError, ValueError, TypeError) as e:
        print(f"ERROR: {e}")
        return 1

    logger.info(f"Discovery: {discovery!r}")
    logger.info(f"Test: {test!r}")

    modules = args.modules
    if modules is not None:
        known = set(assignments.astype(str))
        unknown = [m for m in modules if m not in known]
        if unknown:
            print(f"ERROR: Modules not found in assignments: {', '.join(unknown)}")
            return 1

    result = run_permutation_procedure(
        discovery,
        test,
        assignments,
        modules=modules,
        **settings.run_kwargs(),
    )

    run_settings = settings.to_dict()
    run_settings.update({
        'timestamp': start_time.isoformat(),
        'discovery_data': str(args.discovery_data),
        'discovery_correlation': str(args.discovery_correlation),
        'discovery_network': str(args.discovery_network),
        'test_data': str(args.test_data),
        'test_correlation': str(args.test_correlation),
        'test_network': str(args.test_network),
        'assignments': str(args.assignments),
        'elapsed_seconds': (datetime.now() - start_time).total_seconds(),
    })
    write_preservation_result(
        result,
        args.output,
        alternative=settings.statistics.alternative,
        settings=run_settings,
    )

    if result.cancelled:
        logger.warning(
            f"Run cancelled: {result.n_completed}/{result.n_permutations} permutations "
            f"written to {args.output}"
        )
        return 130

    logger.info(f"Results saved to: {args.output}")
    return 0
