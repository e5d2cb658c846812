from enum import Enum
from abc import ABC, abstractmethod
from decimal import Decimal, InvalidOperation

import requests

class Currency(Enum):
    """Currencies the logbook records prices in."""

    USD = "USD"
    TWD = "TWD"

# Rate used when the live USD->TWD lookup is unavailable.
USD_TWD_FALLBACK_RATE = Decimal("32.5")

DEFAULT_FALLBACK_RATES: dict[tuple[Currency, Currency], Decimal] = {
    (Currency.USD, Currency.TWD): USD_TWD_FALLBACK_RATE,
    (Currency.TWD, Currency.USD): Decimal("1") / USD_TWD_FALLBACK_RATE,
}

DEFAULT_FX_URL = "https://api.exchangerate-api.com/v4/latest/USD"

class ExchangeRateManager(ABC):
    """Abstract base class for currency exchange rate providers."""

    @abstractmethod
    def get_exchange_rate(self, from_currency: Currency, to_currency: Currency) -> Decimal:
        """Get the exchange rate between two currencies.

        Args:
            from_currency: The source currency.
            to_currency: The target currency.

        Returns:
            How many units of ``to_currency`` one unit of ``from_currency`` buys.

        Raises:
            NotImplementedError: Always, must be overridden by subclasses.
        """
        raise NotImplementedError("This method should be overridden by subclasses.")

class FixedExchangeRateManager(ExchangeRateManager):
    """Exchange rate manager using fixed, hardcoded rates.

    Useful for tests, or for a host that wants to pin the rate shown on the
    overview page.
    """

    global_exchange_rates = {
        (Currency.USD, Currency.TWD): USD_TWD_FALLBACK_RATE,
    }

    def __init__(self, exchange_rates: dict[tuple[Currency, Currency], Decimal] | None = None):
        """Initialize with optional custom exchange rates.

        Args:
            exchange_rates: Custom rates to use. Missing pairs are filled
                from global_exchange_rates defaults.
        """
        self.exchange_rates = dict(exchange_rates or {})
        for pair, rate in self.global_exchange_rates.items():
            self.exchange_rates.setdefault(pair, rate)

    def set_exchange_rate(self, from_currency: Currency, to_currency: Currency, rate: Decimal):
        """Set or override the exchange rate for a currency pair."""
        self.exchange_rates[(from_currency, to_currency)] = rate

    def get_exchange_rate(self, from_currency: Currency, to_currency: Currency) -> Decimal:
        """Get the fixed exchange rate between two currencies.

        Falls back to the inverse of the opposite pair if no direct rate exists.

        Raises:
            ValueError: If no rate is available for the currency pair.
        """
        if from_currency == to_currency:
            return Decimal("1.0")

        if (from_currency, to_currency) in self.exchange_rates:
            return self.exchange_rates[(from_currency, to_currency)]

        inverse = self.exchange_rates.get((to_currency, from_currency))
        if inverse:
            return Decimal("1") / inverse

        raise ValueError(f"Exchange rate from {from_currency.value} to {to_currency.value} not available.")

class ExchangeRateApiManager(ExchangeRateManager):
    """Exchange rate manager backed by the exchangerate-api.com ``latest`` endpoint.

    The endpoint returns ``{"base": "USD", "rates": {"TWD": 32.1, ...}}`` for
    the base currency in the URL. Responses are kept for the lifetime of the
    instance, so a host should build one manager per page load.
    """

    def __init__(self, url: str = DEFAULT_FX_URL, timeout: float = 10):
        """Initialize the manager.

        Args:
            url: The ``latest`` URL for USD. Other bases are derived by
                replacing the trailing currency code.
            timeout: Request timeout in seconds.
        """
        self.url = url
        self.timeout = timeout
        self._rates: dict[Currency, dict[str, Decimal]] = {}

    def _url_for(self, base: Currency) -> str:
        root, _, _ = self.url.rstrip("/").rpartition("/")
        return f"{root}/{base.value}"

    def _fetch_rates(self, base: Currency) -> dict[str, Decimal]:
        if base not in self._rates:
            response = requests.get(self._url_for(base), timeout=self.timeout)
            response.raise_for_status()
            payload = response.json()
            rates = payload.get("rates") if isinstance(payload, dict) else None
            if not isinstance(rates, dict):
                raise ValueError(f"Unexpected exchange rate response for {base.value}")
            parsed: dict[str, Decimal] = {}
            for code, value in rates.items():
                try:
                    parsed[code] = Decimal(str(value))
                except (InvalidOperation, ValueError):
                    continue
            self._rates[base] = parsed
        return self._rates[base]

    def get_exchange_rate(self, from_currency: Currency, to_currency: Currency) -> Decimal:
        """Get the latest rate for a currency pair.

        Raises:
            ValueError: If the response has no usable rate for the pair.
            requests.RequestException: If the endpoint cannot be reached.
        """
        if from_currency == to_currency:
            return Decimal("1.0")

        rate = self._fetch_rates(from_currency).get(to_currency.value)
        if rate is None or rate <= 0:
            raise ValueError(
                f"Exchange rate from {from_currency.value} to {to_currency.value} not available."
            )
        return rate
