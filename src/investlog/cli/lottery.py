#!/usr/bin/env python3
"""Lottery subcommand - Display lottery spend and winnings."""

from ..lottery import load_tickets, summarize_lottery
from .report import format_money, format_signed
from rich.console import Console
from rich.panel import Panel


def register_subcommand(subparsers):
    """Register the lottery subcommand with the argument parser.

    Args:
        subparsers: The argparse subparsers action to add the command to.
    """
    parser = subparsers.add_parser(
        "lottery",
        help="Display lottery spend and winnings",
        description="Summarize the lottery sheet: total spent, total won and net result.",
    )
    parser.add_argument("filename", help="Lottery records (.json export or .xlsx workbook)")
    parser.set_defaults(func=run)


def run(args):
    """Display the lottery summary.

    Returns:
        int: Exit code (0 for success, 1 for errors).
    """
    try:
        tickets = load_tickets(args.filename)
    except (ValueError, FileNotFoundError) as e:
        print(f"Error: {e}")
        return 1

    summary = summarize_lottery(tickets)
    Console().print(Panel(
        f"Tickets: {summary.ticket_count} ({summary.winning_count} winning)\n"
        f"Total Spent: ${format_money(summary.total_spent, 0)}\n"
        f"Total Won: ${format_money(summary.total_won, 0)}\n"
        f"Net: {format_signed(summary.net, 0)}",
        title="Lottery",
    ))
    return 0
