from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Any, Iterable, Mapping

from .ledger import Transaction, ValidationError, normalize_symbol, parse_decimal
from .positions import Position, aggregate_symbol
from .quotes import QuoteProvider


@dataclass(frozen=True)
class Valuation:
    """A position marked against a live quote.

    All valued fields are ``None`` when there is no quote or no shares held.
    """
    position: Position
    quote: Decimal | None
    unrealized_pl: Decimal | None
    roi_pct: Decimal | None
    market_value: Decimal | None = None
    cost_value: Decimal | None = None

    @property
    def symbol(self) -> str:
        return self.position.symbol

    @property
    def is_valued(self) -> bool:
        return self.unrealized_pl is not None


@dataclass(frozen=True)
class RealizedResult:
    """Gain/loss locked in by one sale."""
    realized_pl: Decimal
    realized_roi_pct: Decimal
    avg_cost: Decimal


def _roi_pct(price: Decimal, avg_cost: Decimal) -> Decimal:
    if avg_cost > 0:
        return (price - avg_cost) / avg_cost * 100
    return Decimal("0")


def valuate(position: Position, quote: Decimal | float | int | None) -> Valuation:
    """
    Mark a position to a live quote.

    Args:
        position: The symbol's aggregated position.
        quote: Latest price in the position's currency, or None if unavailable.

    Returns:
        A Valuation. ``unrealized_pl`` and ``roi_pct`` are None when the quote
        is absent or nothing is held (``net_shares <= 0``).
    """
    price = parse_decimal(quote, "quote", required=False)
    net_shares = position.net_shares

    if price is None or net_shares <= 0:
        return Valuation(position=position, quote=price, unrealized_pl=None, roi_pct=None)

    avg_cost = position.avg_cost
    return Valuation(
        position=position,
        quote=price,
        unrealized_pl=(price - avg_cost) * net_shares,
        roi_pct=_roi_pct(price, avg_cost),
        market_value=price * net_shares,
        cost_value=avg_cost * net_shares,
    )


def valuate_all(
    positions: Mapping[str, Position],
    quotes: QuoteProvider | Mapping[str, Any],
) -> dict[str, Valuation]:
    """Valuate every position, looking quotes up in a provider or a symbol -> price mapping."""
    if isinstance(quotes, QuoteProvider):
        lookup = quotes.get_quote
    else:
        normalized = {normalize_symbol(k): v for k, v in quotes.items()}
        lookup = lambda symbol: normalized.get(normalize_symbol(symbol))  # noqa: E731

    return {symbol: valuate(position, lookup(symbol)) for symbol, position in positions.items()}


def compute_realized(
    sell_price: Decimal | float | int,
    sell_quantity: Decimal | float | int,
    avg_cost_at_evaluation: Decimal | float | int,
) -> RealizedResult:
    """
    Realized gain/loss of one sale against the average buy cost.

    Called once, when the sale is recorded; the result is stored on the sell
    transaction and not recomputed when the ledger later changes.

    Args:
        sell_price: Price per share of the sale.
        sell_quantity: Shares sold.
        avg_cost_at_evaluation: Weighted average buy cost at recording time.

    Returns:
        RealizedResult with ``(sell_price - avg_cost) * sell_quantity`` and the
        ROI percentage (0 when the average cost is 0).
    """
    price = parse_decimal(sell_price, "price")
    quantity = parse_decimal(sell_quantity, "quantity")
    avg_cost = parse_decimal(avg_cost_at_evaluation, "avg_cost")
    assert price is not None and quantity is not None and avg_cost is not None

    return RealizedResult(
        realized_pl=(price - avg_cost) * quantity,
        realized_roi_pct=_roi_pct(price, avg_cost),
        avg_cost=avg_cost,
    )


def record_sale(snapshot: Iterable[Transaction], sale: Transaction) -> Transaction:
    """
    Attach realized P&L to a new sell transaction.

    The average cost is taken over every buy of the symbol in ``snapshot``,
    regardless of date.

    Args:
        snapshot: The ledger as it stands before the sale is appended.
        sale: The new sell transaction.

    Returns:
        A copy of ``sale`` with ``realized_pl`` and ``realized_roi_pct`` set.

    Raises:
        ValidationError: If ``sale`` is not a sell.
    """
    if not sale.is_sell:
        raise ValidationError("action", "realized P&L can only be recorded for a sell")

    position = aggregate_symbol(snapshot, sale.symbol, sale.market)
    result = compute_realized(sale.price, sale.quantity, position.avg_cost)
    return replace(sale, realized_pl=result.realized_pl, realized_roi_pct=result.realized_roi_pct)


def preview_sale(
    snapshot: Iterable[Transaction],
    symbol: str,
    draft_price: Any,
    draft_quantity: Any,
) -> RealizedResult | None:
    """
    Profit preview for a sell that is still being typed in.

    Returns None while the draft is incomplete (blank, non-numeric or
    negative price/quantity) instead of raising.
    """
    try:
        price = parse_decimal(draft_price, "price")
        quantity = parse_decimal(draft_quantity, "quantity")
    except ValidationError:
        return None
    assert price is not None and quantity is not None

    position = aggregate_symbol(snapshot, symbol)
    return compute_realized(price, quantity, position.avg_cost)
