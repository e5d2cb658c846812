import warnings
from collections import defaultdict
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from .currency import Currency
from .ledger import Transaction, ValidationError, normalize_symbol
from .markets import Market, MARKETS


class OversoldPositionWarning(UserWarning):
    """A symbol has more shares sold than were ever bought."""


@dataclass(frozen=True)
class Position:
    """Aggregate buy/sell state of one symbol, derived from a ledger snapshot."""
    symbol: str
    currency: Currency
    total_buy_cost: Decimal = Decimal("0")
    total_buy_shares: Decimal = Decimal("0")
    total_sell_cost: Decimal = Decimal("0")
    total_sell_shares: Decimal = Decimal("0")
    transaction_count: int = 0

    @property
    def net_shares(self) -> Decimal:
        return self.total_buy_shares - self.total_sell_shares

    @property
    def avg_cost(self) -> Decimal:
        """Weighted average buy price; 0 when nothing was bought."""
        if self.total_buy_shares > 0:
            return self.total_buy_cost / self.total_buy_shares
        return Decimal("0")

    @property
    def net_invested(self) -> Decimal:
        """Buy cost minus sell proceeds."""
        return self.total_buy_cost - self.total_sell_cost

    @property
    def oversold(self) -> bool:
        """True when the ledger sells more than it ever bought."""
        return self.net_shares < 0

    @property
    def is_closed(self) -> bool:
        return self.net_shares == 0


def aggregate(
    transactions: Iterable[Transaction],
    warn_oversold: bool = True,
) -> dict[str, Position]:
    """
    Fold a ledger snapshot into one Position per symbol.

    Buy and Sell subtotals are accumulated independently, so the result does
    not depend on the order of the transactions. Symbols that end up oversold
    are kept in the result (flagged via ``Position.oversold``) rather than
    rejected.

    Args:
        transactions: Ledger snapshot, possibly spanning several symbols.
        warn_oversold: If True, emit an OversoldPositionWarning naming every
            oversold symbol.

    Returns:
        A dictionary mapping normalized symbol to Position. Empty for an
        empty ledger.

    Raises:
        ValidationError: If one symbol appears under two different markets.
    """
    buy_cost: dict[str, Decimal] = defaultdict(Decimal)
    buy_shares: dict[str, Decimal] = defaultdict(Decimal)
    sell_cost: dict[str, Decimal] = defaultdict(Decimal)
    sell_shares: dict[str, Decimal] = defaultdict(Decimal)
    counts: dict[str, int] = defaultdict(int)
    symbol_markets: dict[str, Market] = {}

    for txn in transactions:
        symbol = txn.symbol

        known_market = symbol_markets.setdefault(symbol, txn.market)
        if known_market != txn.market:
            raise ValidationError(
                "market",
                f"{symbol} is recorded under both {known_market.value} and {txn.market.value}",
            )

        if txn.is_buy:
            buy_cost[symbol] += txn.amount
            buy_shares[symbol] += txn.quantity
        else:
            sell_cost[symbol] += txn.amount
            sell_shares[symbol] += txn.quantity
        counts[symbol] += 1

    positions: dict[str, Position] = {}
    for symbol, market in symbol_markets.items():
        positions[symbol] = Position(
            symbol=symbol,
            currency=MARKETS[market].currency,
            total_buy_cost=buy_cost[symbol],
            total_buy_shares=buy_shares[symbol],
            total_sell_cost=sell_cost[symbol],
            total_sell_shares=sell_shares[symbol],
            transaction_count=counts[symbol],
        )

    oversold = oversold_positions(positions.values())
    if warn_oversold and oversold:
        details = ", ".join(f"{p.symbol} ({p.net_shares})" for p in oversold)
        warnings.warn(
            f"More shares sold than bought for: {details}. Check the ledger for missing buys.",
            OversoldPositionWarning,
        )

    return positions


def aggregate_symbol(
    transactions: Iterable[Transaction],
    symbol: str,
    market: "str | Market" = Market.US,
) -> Position:
    """
    Position of a single symbol.

    Args:
        transactions: Ledger snapshot.
        symbol: Symbol to aggregate (case-insensitive).
        market: Market used for the currency of an empty position.

    Returns:
        The symbol's Position, or an all-zero Position if the ledger has no
        rows for it.
    """
    symbol = normalize_symbol(symbol)
    matching = [t for t in transactions if t.symbol == symbol]
    positions = aggregate(matching, warn_oversold=False)
    if symbol in positions:
        return positions[symbol]
    return Position(symbol=symbol, currency=MARKETS[Market.parse(market)].currency)


def oversold_positions(positions: Iterable[Position]) -> list[Position]:
    """Positions with negative net shares, sorted by symbol."""
    return sorted((p for p in positions if p.oversold), key=lambda p: p.symbol)
