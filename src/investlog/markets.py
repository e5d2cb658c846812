"""Per-market configuration.

The engine itself is market agnostic; everything that differs between the US
and Taiwan sheets of the logbook lives in a :class:`MarketConfig` record.
"""

from dataclasses import dataclass
from enum import Enum

from .currency import Currency


class Market(Enum):
    """Equity markets the logbook tracks."""

    US = "US"
    TW = "TW"

    @classmethod
    def parse(cls, value: "str | Market") -> "Market":
        """Parse a market code, case-insensitively (``us``, ``TW``, ...)."""
        if isinstance(value, Market):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            raise ValueError(f"Unknown market '{value}'") from None


@dataclass(frozen=True)
class MarketConfig:
    """Settings for one market's sheet in the logbook."""
    market: Market
    currency: Currency
    sheet_name: str
    price_label: str
    display_name: str
    quote_suffix: str = ""


MARKETS: dict[Market, MarketConfig] = {
    Market.US: MarketConfig(
        market=Market.US,
        currency=Currency.USD,
        sheet_name="美股",
        price_label="價格(USD)",
        display_name="US Equities",
    ),
    Market.TW: MarketConfig(
        market=Market.TW,
        currency=Currency.TWD,
        sheet_name="台股",
        price_label="價格(TWD)",
        display_name="Taiwan Equities",
        quote_suffix=".TW",
    ),
}


def market_config(market: "str | Market") -> MarketConfig:
    """Return the configuration record for a market."""
    return MARKETS[Market.parse(market)]
