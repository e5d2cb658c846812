#!/usr/bin/env python3
"""Report subcommand - Display positions and P&L for one market."""

import warnings
from decimal import Decimal

from dotenv import load_dotenv

load_dotenv()

from ..ledger import load_ledger, parse_decimal
from ..markets import market_config
from ..positions import aggregate
from ..quotes import FixedQuoteProvider, QuoteProvider, YFinanceQuoteProvider
from ..valuation import valuate_all
from ..overview import market_total
from rich.console import Console
from rich.table import Table
from rich.panel import Panel


def format_money(value: Decimal | None, precision: int = 2) -> str:
    """Format an amount with thousands separators, or "—" when missing."""
    if value is None:
        return "—"
    return f"{value:,.{precision}f}"


def format_signed(value: Decimal | None, precision: int = 2, suffix: str = "") -> str:
    """Format a gain/loss in green or red, or "N/A" when missing."""
    if value is None:
        return "N/A"
    if value >= 0:
        return f"[green]+{value:,.{precision}f}{suffix}[/green]"
    return f"[red]{value:,.{precision}f}{suffix}[/red]"


def parse_quote_args(pairs: list[str] | None) -> dict[str, Decimal]:
    """Parse ``SYMBOL=PRICE`` command line pairs.

    Raises:
        ValueError: If a pair is malformed or its price is not a non-negative number.
    """
    quotes: dict[str, Decimal] = {}
    for pair in pairs or []:
        symbol, sep, price = pair.partition("=")
        if not sep or not symbol.strip():
            raise ValueError(f"Expected SYMBOL=PRICE, got '{pair}'")
        quotes[symbol.strip().upper()] = parse_decimal(price, "quote")
    return quotes


def register_subcommand(subparsers):
    """Register the report subcommand with the argument parser.

    Args:
        subparsers: The argparse subparsers action to add the command to.
    """
    parser = subparsers.add_parser(
        "report",
        help="Display positions and P&L for one market",
        description="Display net holdings, average cost, unrealized and realized P&L for one market's ledger.",
    )
    parser.add_argument("filename", help="Path to the ledger (.json export or .xlsx workbook)")
    parser.add_argument(
        "--market",
        "-m",
        default="US",
        help="Market of the ledger: US or TW (default: US)",
    )
    parser.add_argument(
        "--quotes",
        action="store_true",
        help="Fetch live quotes from Yahoo Finance",
    )
    parser.add_argument(
        "--quote",
        action="append",
        metavar="SYMBOL=PRICE",
        help="Use a fixed quote for a symbol (repeatable)",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress data-quality warnings",
    )
    parser.set_defaults(func=run)


def run(args):
    """Display positions, valuations and realized P&L.

    Args:
        args: Parsed argparse namespace with filename, market, quotes,
            quote and quiet attributes.

    Returns:
        int: Exit code (0 for success, 1 for errors).
    """
    if args.quiet:
        warnings.filterwarnings("ignore", category=UserWarning)

    try:
        config = market_config(args.market)
        fixed_quotes = parse_quote_args(args.quote)
        ledger = load_ledger(args.filename, config.market)
        positions = aggregate(ledger)
    except (ValueError, FileNotFoundError) as e:
        print(f"Error: {e}")
        return 1

    quotes: QuoteProvider
    if args.quotes:
        quotes = YFinanceQuoteProvider(config.market)
    else:
        quotes = FixedQuoteProvider(fixed_quotes)

    valuations = valuate_all(positions, quotes)
    if args.quotes and fixed_quotes:
        # explicit quotes win over live ones
        valuations.update(valuate_all(
            {s: p for s, p in positions.items() if s in fixed_quotes},
            fixed_quotes,
        ))

    console = Console()
    currency = config.currency.value

    holdings_table = Table(title=f"{config.display_name} Positions ({currency})")
    holdings_table.add_column("Symbol", style="cyan", justify="left")
    holdings_table.add_column("Net Shares", style="magenta", justify="right")
    holdings_table.add_column("Avg Cost", style="yellow", justify="right")
    holdings_table.add_column("Quote", justify="right")
    holdings_table.add_column("Unrealized P&L", justify="right")
    holdings_table.add_column("ROI", justify="right")

    for symbol in sorted(positions):
        position = positions[symbol]
        valuation = valuations[symbol]
        shares = format_money(position.net_shares, 0)
        if position.oversold:
            shares = f"[red]{shares} (oversold)[/red]"
        holdings_table.add_row(
            symbol,
            shares,
            format_money(position.avg_cost),
            format_money(valuation.quote),
            format_signed(valuation.unrealized_pl),
            format_signed(valuation.roi_pct, suffix="%"),
        )

    console.print(holdings_table)

    sales = [t for t in ledger if t.is_sell]
    if sales:
        realized_table = Table(title="Recorded Sales")
        realized_table.add_column("Date", justify="left")
        realized_table.add_column("Symbol", style="cyan", justify="left")
        realized_table.add_column("Shares", style="magenta", justify="right")
        realized_table.add_column("Price", justify="right")
        realized_table.add_column("Realized P&L", justify="right")
        realized_table.add_column("ROI", justify="right")

        for sale in sorted(sales, key=lambda t: (t.date, t.symbol)):
            realized_table.add_row(
                sale.date.isoformat(),
                sale.symbol,
                format_money(sale.quantity, 0),
                format_money(sale.price),
                format_signed(sale.realized_pl),
                format_signed(sale.realized_roi_pct, suffix="%"),
            )
        console.print(realized_table)

    total = market_total(ledger, config.market)
    unrealized = [v.unrealized_pl for v in valuations.values() if v.unrealized_pl is not None]
    summary = f"[bold green]Net Invested: {currency} {format_money(total.native_total)}[/bold green]"
    if unrealized:
        summary += f"\nUnrealized P&L: {format_signed(sum(unrealized, Decimal('0')))} {currency}"
    console.print(Panel(summary, title="Summary"))

    return 0
