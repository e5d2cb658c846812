#!/usr/bin/env python3
"""Overview subcommand - Market allocation across the US and Taiwan ledgers."""

import warnings
from decimal import Decimal, InvalidOperation

from ..config import Settings
from ..currency import Currency, ExchangeRateApiManager, ExchangeRateManager, FixedExchangeRateManager
from ..ledger import load_ledger
from ..markets import Market, market_config
from ..overview import (
    aggregate_markets,
    distribution_breakdown,
    market_breakdown,
    market_total,
    net_invested_by_symbol,
)
from .report import format_money
from rich.console import Console
from rich.table import Table
from rich.panel import Panel


def register_subcommand(subparsers):
    """Register the overview subcommand with the argument parser.

    Args:
        subparsers: The argparse subparsers action to add the command to.
    """
    parser = subparsers.add_parser(
        "overview",
        help="Display market allocation across both ledgers",
        description="Convert each market's net invested capital into one currency and show the allocation.",
    )
    parser.add_argument("us_ledger", help="US ledger (.json export or .xlsx workbook)")
    parser.add_argument("tw_ledger", help="Taiwan ledger (.json export or .xlsx workbook)")
    parser.add_argument(
        "--rate",
        help="Pin the USD->TWD rate instead of fetching it",
    )
    parser.add_argument(
        "--currency",
        "-c",
        help="Reporting currency (default: INVESTLOG_REPORTING_CURRENCY or TWD)",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress fallback-rate and data-quality warnings",
    )
    parser.set_defaults(func=run)


def run(args):
    """Display the market allocation and per-symbol breakdowns.

    Returns:
        int: Exit code (0 for success, 1 for errors).
    """
    if args.quiet:
        warnings.filterwarnings("ignore", category=UserWarning)

    try:
        settings = Settings.from_env()
        reporting_currency = settings.reporting_currency
        if args.currency:
            reporting_currency = Currency(args.currency.upper())

        fx_manager: ExchangeRateManager
        if args.rate:
            try:
                rate = Decimal(args.rate)
            except InvalidOperation:
                raise ValueError(f"Invalid rate '{args.rate}'") from None
            fx_manager = FixedExchangeRateManager({(Currency.USD, Currency.TWD): rate})
        else:
            fx_manager = ExchangeRateApiManager(settings.fx_url, settings.fx_timeout)

        ledgers = {
            Market.US: load_ledger(args.us_ledger, Market.US),
            Market.TW: load_ledger(args.tw_ledger, Market.TW),
        }
        totals = [market_total(ledger, market) for market, ledger in ledgers.items()]
        allocation = aggregate_markets(
            totals,
            fx_manager.get_exchange_rate,
            reporting_currency=reporting_currency,
            fallback_rates=settings.fallback_rates,
        )
    except (ValueError, FileNotFoundError) as e:
        print(f"Error: {e}")
        return 1

    console = Console()
    reporting = reporting_currency.value

    allocation_table = Table(title=f"Market Allocation ({reporting})")
    allocation_table.add_column("Market", style="cyan", justify="left")
    allocation_table.add_column("Net Invested", justify="right")
    allocation_table.add_column(f"In {reporting}", style="green", justify="right")
    allocation_table.add_column("Share", style="magenta", justify="right")

    for item in allocation.items:
        config = market_config(item.market)
        native = f"{item.currency.value} {format_money(item.native_total, 0)}"
        rate_note = " [yellow](fallback rate)[/yellow]" if item.used_fallback_rate else ""
        allocation_table.add_row(
            config.display_name,
            native,
            f"{format_money(item.normalized_total, 0)}{rate_note}",
            f"{item.share_pct:.1f}%",
        )

    console.print(allocation_table)

    other = Currency.USD if reporting_currency == Currency.TWD else Currency.TWD
    rate = allocation.rate_for(other)
    lines = [f"[bold green]Total: {reporting} {format_money(allocation.grand_total, 0)}[/bold green]"]
    if rate is not None:
        lines.append(f"Rate: 1 {other.value} = {rate:.2f} {reporting}")
    console.print(Panel("\n".join(lines), title="Summary"))

    chart = market_breakdown(allocation)
    if not chart:
        console.print("[dim]No holdings recorded yet.[/dim]")

    for market, ledger in ledgers.items():
        config = market_config(market)
        breakdown = distribution_breakdown(net_invested_by_symbol(ledger))
        table = Table(title=f"{config.display_name} Holdings ({config.currency.value})")
        table.add_column("Symbol", style="cyan", justify="left")
        table.add_column("Net Invested", style="yellow", justify="right")
        table.add_column("Share", style="magenta", justify="right")
        subtotal = sum((entry.value for entry in breakdown), Decimal("0"))
        for entry in breakdown:
            share = entry.value / subtotal * 100 if subtotal else Decimal("0")
            table.add_row(entry.label, format_money(entry.value), f"{share:.1f}%")
        console.print(table)

    return 0
