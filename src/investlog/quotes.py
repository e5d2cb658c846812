from abc import ABC, abstractmethod
from decimal import Decimal, InvalidOperation
from typing import Mapping

import yfinance as yf  # type: ignore[import-untyped]

from .ledger import normalize_symbol
from .markets import Market, market_config

# When True, print status messages while fetching quotes (e.g. "Fetching 2330.TW …").
verbose: bool = False


class QuoteProvider(ABC):
    """Abstract base class for live quote sources.

    Implementations return ``None`` for a symbol they cannot price; they never
    raise for an unknown symbol.
    """

    @abstractmethod
    def get_quote(self, symbol: str) -> Decimal | None:
        raise NotImplementedError("This method should be overridden by subclasses.")

    def get_quotes(self, symbols: list[str]) -> dict[str, Decimal | None]:
        """Quote several symbols, keyed by normalized symbol."""
        return {normalize_symbol(s): self.get_quote(s) for s in symbols}


class FixedQuoteProvider(QuoteProvider):
    """Quote provider backed by a fixed symbol -> price mapping."""

    def __init__(self, quotes: Mapping[str, Decimal | float | int | str | None] | None = None):
        """Initialize with known quotes.

        Args:
            quotes: Symbol to price mapping. Symbols are matched
                case-insensitively; ``None`` values mean "no quote".
        """
        self.quotes: dict[str, Decimal | None] = {}
        for symbol, price in (quotes or {}).items():
            self.quotes[normalize_symbol(symbol)] = None if price is None else Decimal(str(price))

    def get_quote(self, symbol: str) -> Decimal | None:
        return self.quotes.get(normalize_symbol(symbol))


class YFinanceQuoteProvider(QuoteProvider):
    """Latest prices from Yahoo Finance.

    Taiwan tickers are stored without an exchange suffix in the logbook, so the
    market's ``quote_suffix`` is appended before the lookup.
    """

    def __init__(self, market: "str | Market" = Market.US):
        self.config = market_config(market)

    def yahoo_symbol(self, symbol: str) -> str:
        symbol = normalize_symbol(symbol)
        suffix = self.config.quote_suffix
        if suffix and not symbol.endswith(suffix):
            symbol = f"{symbol}{suffix}"
        return symbol

    def get_quote(self, symbol: str) -> Decimal | None:
        """Return the last traded price, or None if Yahoo has no price for it."""
        yahoo_symbol = self.yahoo_symbol(symbol)
        if verbose:
            print(f"Fetching {yahoo_symbol} …")
        try:
            # fast_info['lastPrice'] includes pre-market and after-hours trades
            last_price = yf.Ticker(yahoo_symbol).fast_info.get("lastPrice")
        except Exception:
            return None

        if last_price is None:
            return None
        try:
            price = Decimal(str(last_price))
        except (InvalidOperation, ValueError):
            return None
        if not price.is_finite() or price <= 0:
            return None
        return price.quantize(Decimal("0.01"))
