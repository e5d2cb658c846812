#!/usr/bin/env python3
"""Main entry point for the investlog CLI."""

import argparse
import sys

INVESTLOG_BANNER = """
 ╦╔╗╔╦  ╦╔═╗╔═╗╔╦╗╦  ╔═╗╔═╗
 ║║║║╚╗╔╝║╣ ╚═╗ ║ ║  ║ ║║ ╦
 ╩╝╚╝ ╚╝ ╚═╝╚═╝ ╩ ╩═╝╚═╝╚═╝
 investlog - personal investment logbook
"""

INVESTING_WARNING = (
    " \033[33m⚠  Figures are computed from your own ledger and may be incomplete.\n"
    "    Nothing here should be construed as investment advice.\033[0m"
)


def main():
    """Parse CLI arguments and dispatch to the appropriate subcommand.

    Returns:
        int: Exit code (0 for success, non-zero for errors).
    """
    parser = argparse.ArgumentParser(
        prog="investlog",
        description="investlog - positions, P&L and allocation for a personal investment logbook",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  investlog report us.json -m us                Positions and P&L for the US sheet
  investlog report logbook.xlsx -m tw --quotes  Value Taiwan positions with live quotes
  investlog overview us.json tw.json --rate 32  Market allocation at a pinned USD/TWD rate
  investlog risk risk_metrics.json              Risk tiers from volatility figures
  investlog lottery logbook.xlsx                Lottery spend and winnings
        """,
    )

    subparsers = parser.add_subparsers(
        title="commands",
        dest="command",
        help="Available commands",
    )

    from .report import register_subcommand as register_report
    from .overview import register_subcommand as register_overview
    from .risk import register_subcommand as register_risk
    from .lottery import register_subcommand as register_lottery
    from .version import register_subcommand as register_version

    register_report(subparsers)
    register_overview(subparsers)
    register_risk(subparsers)
    register_lottery(subparsers)
    register_version(subparsers)

    args = parser.parse_args()

    if args.command is None:
        print(INVESTLOG_BANNER)
        print(INVESTING_WARNING)
        print()
        parser.print_help()
        return 0

    print(INVESTLOG_BANNER)
    print(INVESTING_WARNING)
    print()

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
