#!/usr/bin/env python3
"""Risk subcommand - Classify symbols into risk tiers."""

import json

from ..risk import RiskTier, risk_metrics_from_records
from rich.console import Console
from rich.table import Table

TIER_STYLES = {
    RiskTier.UNKNOWN: "dim",
    RiskTier.LOW: "green",
    RiskTier.MEDIUM: "yellow",
    RiskTier.ELEVATED: "dark_orange",
    RiskTier.HIGH: "red",
}


def register_subcommand(subparsers):
    """Register the risk subcommand with the argument parser.

    Args:
        subparsers: The argparse subparsers action to add the command to.
    """
    parser = subparsers.add_parser(
        "risk",
        help="Display risk tiers from volatility figures",
        description="Bucket pre-computed volatility figures into Low/Medium/Elevated/High risk tiers.",
    )
    parser.add_argument(
        "filename",
        help='JSON file: {"AAPL": {"volatility": 28.1, "beta": 1.2}, ...} or a list of records',
    )
    parser.set_defaults(func=run)


def run(args):
    """Display a risk tier table.

    Returns:
        int: Exit code (0 for success, 1 for errors).
    """
    try:
        with open(args.filename, "r", encoding="utf-8") as f:
            data = json.load(f)
        metrics = risk_metrics_from_records(data)
    except (ValueError, KeyError, FileNotFoundError) as e:
        print(f"Error: {e}")
        return 1

    table = Table(title="Risk Tiers")
    table.add_column("Symbol", style="cyan", justify="left")
    table.add_column("Volatility", justify="right")
    table.add_column("Beta", justify="right")
    table.add_column("Tier", justify="left")

    for symbol in sorted(metrics):
        m = metrics[symbol]
        tier = m.tier
        style = TIER_STYLES[tier]
        table.add_row(
            symbol,
            f"{m.volatility_pct:.1f}%" if tier != RiskTier.UNKNOWN else "N/A",
            f"{m.beta:.2f}" if m.beta is not None else "N/A",
            f"[{style}]{tier.value}[/{style}]",
        )

    Console().print(table)
    return 0
