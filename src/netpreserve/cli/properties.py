"""
netpreserve properties command - Network properties of modules in one dataset.

Usage:
    netpreserve properties --network net.csv --data data.csv \\
        --assignments modules.csv --output results/properties
"""

import argparse
from pathlib import Path

from netpreserve.stats.network_stats import COHERENCE_MODES


def register_parser(subparsers: argparse._SubParsersAction) -> None:
    """Register the properties subcommand."""
    parser = subparsers.add_parser(
        "properties",
        help="Network properties of modules within one dataset",
        description=(
            "Report weighted degree and average edge weight of each module, "
            "plus summary profile, node contribution and coherence when a "
            "data matrix is given."
        )
    )

    parser.add_argument("--network", type=Path, required=True,
                        help="Network adjacency CSV (nodes x nodes)")
    parser.add_argument("--data", type=Path, default=None,
                        help="Data CSV (samples x nodes); optional")
    parser.add_argument("--assignments", "-a", type=Path, required=True,
                        help="Module assignments CSV (node, module)")
    parser.add_argument("--modules", nargs="+", default=None,
                        help="Modules to describe (default: all assigned modules)")
    parser.add_argument("--output", "-o", type=Path, default=Path("results/properties"),
                        help="Output directory for results")
    parser.add_argument("--coherence", choices=list(COHERENCE_MODES), default="squared",
                        help="Module coherence convention (default: squared)")

    parser.set_defaults(func=run_properties)


def run_properties(args: argparse.Namespace) -> int:
    """Execute the properties command."""
    import logging
    from netpreserve.io import load_assignments, load_dataset, write_network_properties
    from netpreserve.stats.properties import network_properties

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    logger = logging.getLogger(__name__)

    try:
        dataset = load_dataset(network=args.network, data=args.data)
        assignments = load_assignments(args.assignments)
    except (FileNotFoundError, ValueError, TypeError) as e:
        print(f"ERROR: {e}")
        return 1

    properties = network_properties(
        dataset, assignments, modules=args.modules, coherence=args.coherence
    )
    empty = [m for m, props in properties.items() if props.n_present == 0]
    if empty:
        logger.warning(f"No nodes present in the dataset for modules: {', '.join(empty)}")

    write_network_properties(properties, args.output)
    logger.info(f"Results saved to: {args.output}")
    return 0
