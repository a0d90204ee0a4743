"""
netpreserve CLI - Command-line interface for network module preservation.

Commands:
    netpreserve preserve     - Permutation test of module preservation between datasets
    netpreserve properties   - Network properties of modules within one dataset
"""

import argparse
import sys
from typing import Optional, List


def main(args: Optional[List[str]] = None) -> int:
    """Main CLI dispatcher for netpreserve."""
    parser = argparse.ArgumentParser(
        prog="netpreserve",
        description="Permutation tests of network module preservation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  preserve      Permutation test of module preservation between datasets
  properties    Network properties of modules within one dataset

Examples:
  netpreserve preserve --discovery-data d.csv --discovery-correlation dc.csv \\
      --discovery-network dn.csv --test-data t.csv --test-correlation tc.csv \\
      --test-network tn.csv --assignments modules.csv --threads 4 --seed 42
  netpreserve properties --network net.csv --data data.csv --assignments modules.csv
        """
    )

    parser.add_argument(
        "--version", "-V",
        action="version",
        version="%(prog)s 0.1.0"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Import and register subcommands
    from netpreserve.cli import preserve, properties
    preserve.register_parser(subparsers)
    properties.register_parser(subparsers)

    argv = list(args) if args is not None else sys.argv[1:]
    parsed_args = parser.parse_args(argv)

    if parsed_args.command is None:
        parser.print_help()
        return 0

    # Raw subcommand arguments, for detecting explicit overrides of config values
    parsed_args.argv = argv[1:]

    # Dispatch to subcommand
    return parsed_args.func(parsed_args)


if __name__ == "__main__":
    sys.exit(main())
