"""
exprtask CLI - command-line interface for the feature-table adapter.

Commands:
    exprtask build   - Expression matrix -> variance-filtered feature table
"""

import argparse
import sys
from typing import List, Optional

from exprtask import __version__


def main(args: Optional[List[str]] = None) -> int:
    """Main CLI dispatcher for exprtask."""
    parser = argparse.ArgumentParser(
        prog="exprtask",
        allow_abbrev=False,
        description="Turn expression matrices into learner-ready feature tables",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  build         Build a variance-filtered feature table and task summary

Examples:
  exprtask build -i expr.csv -m clinical.csv --label PAM50 -k 500 -o results/brca
  exprtask build --config run.yaml --n-jobs 4
        """
    )

    parser.add_argument(
        "--version", "-V",
        action="version",
        version=f"%(prog)s {__version__}"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    from exprtask.cli import build
    build.register_parser(subparsers)

    raw_args = list(args) if args is not None else sys.argv[1:]
    parsed_args = parser.parse_args(raw_args)

    if parsed_args.command is None:
        parser.print_help()
        return 0

    # Lets config merging tell explicit flags from defaults
    parsed_args.raw_args = raw_args
    return parsed_args.func(parsed_args)


if __name__ == "__main__":
    sys.exit(main())
