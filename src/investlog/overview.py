"""Cross-market portfolio overview.

Net invested capital per market, normalized into one reporting currency, plus
the per-symbol and per-market breakdowns the overview charts are drawn from.
"""

import warnings
from collections import defaultdict
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Callable, Iterable, Mapping

from .currency import Currency, DEFAULT_FALLBACK_RATES
from .ledger import Transaction
from .markets import Market, market_config

FxLookup = Callable[[Currency, Currency], Decimal]

_CENTS = Decimal("0.01")
_UNITS = Decimal("1")


class FallbackRateWarning(UserWarning):
    """The live exchange rate was unavailable and a fallback constant was used."""


@dataclass(frozen=True)
class MarketTotal:
    """Net invested capital of one market in its native currency."""
    market: Market
    native_total: Decimal
    currency: Currency


@dataclass(frozen=True)
class PortfolioTotal:
    """One market's share of the portfolio, in the reporting currency."""
    market: Market
    currency: Currency
    native_total: Decimal
    rate: Decimal
    normalized_total: Decimal
    share_pct: Decimal
    used_fallback_rate: bool = False


@dataclass(frozen=True)
class PortfolioAllocation:
    """Ranked market totals and their grand total."""
    items: list[PortfolioTotal]
    grand_total: Decimal
    reporting_currency: Currency

    def rate_for(self, currency: Currency) -> Decimal | None:
        """The conversion rate applied to ``currency``, if any market uses it."""
        for item in self.items:
            if item.currency == currency:
                return item.rate
        return None


@dataclass(frozen=True)
class BreakdownEntry:
    """One slice of a distribution chart."""
    label: str
    value: Decimal


def net_invested_by_symbol(transactions: Iterable[Transaction]) -> dict[str, Decimal]:
    """Buy cost minus sell proceeds per symbol, in native currency."""
    totals: dict[str, Decimal] = defaultdict(Decimal)
    for txn in transactions:
        if txn.is_buy:
            totals[txn.symbol] += txn.amount
        else:
            totals[txn.symbol] -= txn.amount
    return dict(totals)


def market_total(transactions: Iterable[Transaction], market: "str | Market") -> MarketTotal:
    """
    Net invested capital of one market's ledger.

    Args:
        transactions: The market's ledger snapshot.
        market: The market the ledger belongs to.

    Returns:
        MarketTotal in the market's native currency (0 for an empty ledger).

    Raises:
        ValueError: If the ledger holds transactions from another market.
    """
    config = market_config(market)
    total = Decimal("0")
    for txn in transactions:
        if txn.market != config.market:
            raise ValueError(
                f"Transaction for {txn.symbol} belongs to {txn.market.value}, not {config.market.value}"
            )
        total += txn.amount if txn.is_buy else -txn.amount
    return MarketTotal(market=config.market, native_total=total, currency=config.currency)


def _resolve_rate(
    fx: FxLookup,
    from_currency: Currency,
    to_currency: Currency,
    fallback_rates: Mapping[tuple[Currency, Currency], Decimal],
) -> tuple[Decimal, bool]:
    if from_currency == to_currency:
        return Decimal("1"), False

    reason: str
    try:
        rate = Decimal(str(fx(from_currency, to_currency)))
        if rate.is_finite() and rate > 0:
            return rate, False
        reason = f"lookup returned {rate}"
    except Exception as e:
        reason = str(e) or e.__class__.__name__

    fallback = fallback_rates.get((from_currency, to_currency))
    if fallback is None or fallback <= 0:
        raise ValueError(
            f"Exchange rate from {from_currency.value} to {to_currency.value} unavailable "
            f"({reason}) and no fallback rate is configured."
        )

    warnings.warn(
        f"Exchange rate from {from_currency.value} to {to_currency.value} unavailable ({reason}). "
        f"Using fallback rate {fallback}.",
        FallbackRateWarning,
    )
    return Decimal(fallback), True


def aggregate_markets(
    market_totals: Iterable[MarketTotal],
    fx: FxLookup,
    reporting_currency: Currency = Currency.TWD,
    fallback_rates: Mapping[tuple[Currency, Currency], Decimal] = DEFAULT_FALLBACK_RATES,
) -> PortfolioAllocation:
    """
    Combine market totals into one reporting currency.

    A market already in the reporting currency uses the identity rate and
    ``fx`` is not called for it. When ``fx`` fails for a market, the fallback
    rate for that currency pair is used instead and a FallbackRateWarning is
    emitted, so one missing rate never takes down the whole overview.

    Args:
        market_totals: Net invested capital per market, in native currency.
        fx: Rate lookup ``fx(from_currency, to_currency)``; an
            ``ExchangeRateManager.get_exchange_rate`` fits.
        reporting_currency: Currency every total is converted into.
        fallback_rates: Rates to use when ``fx`` fails, keyed by currency pair.

    Returns:
        PortfolioAllocation with items sorted by normalized total (largest
        first, ties by market name) and each market's share of the grand
        total. Shares are all 0 when the grand total is 0.

    Raises:
        ValueError: If a rate is unavailable and the pair has no fallback.
    """
    converted: list[tuple[MarketTotal, Decimal, Decimal, bool]] = []
    for total in market_totals:
        rate, used_fallback = _resolve_rate(fx, total.currency, reporting_currency, fallback_rates)
        converted.append((total, rate, total.native_total * rate, used_fallback))

    grand_total = sum((normalized for _, _, normalized, _ in converted), Decimal("0"))

    items: list[PortfolioTotal] = []
    for total, rate, normalized, used_fallback in converted:
        if grand_total != 0:
            share_pct = normalized / grand_total * 100
        else:
            share_pct = Decimal("0")
        items.append(PortfolioTotal(
            market=total.market,
            currency=total.currency,
            native_total=total.native_total,
            rate=rate,
            normalized_total=normalized,
            share_pct=share_pct,
            used_fallback_rate=used_fallback,
        ))

    items.sort(key=lambda item: (-item.normalized_total, item.market.value))

    return PortfolioAllocation(items=items, grand_total=grand_total, reporting_currency=reporting_currency)


def _ranked(values: Mapping[str, Decimal], quantum: Decimal) -> list[BreakdownEntry]:
    entries = [
        BreakdownEntry(label=label, value=Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP))
        for label, value in values.items()
    ]
    entries = [entry for entry in entries if entry.value > 0]
    entries.sort(key=lambda entry: (-entry.value, entry.label))
    return entries


def distribution_breakdown(net_invested: Mapping[str, Decimal]) -> list[BreakdownEntry]:
    """
    Per-symbol slices for a "current holdings" chart.

    Args:
        net_invested: Symbol to net invested capital (buy cost minus sell
            proceeds) in native currency.

    Returns:
        Entries rounded to 2 decimal places, without symbols whose value is
        zero or negative, largest first.
    """
    return _ranked(net_invested, _CENTS)


def market_breakdown(allocation: PortfolioAllocation) -> list[BreakdownEntry]:
    """Per-market slices of the allocation chart, in whole reporting-currency units."""
    return _ranked({item.market.value: item.normalized_total for item in allocation.items}, _UNITS)
