"""Settings read from the environment (and a local ``.env`` file)."""

import os
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from dotenv import load_dotenv

from .currency import Currency, DEFAULT_FX_URL, USD_TWD_FALLBACK_RATE

load_dotenv()


@dataclass(frozen=True)
class Settings:
    reporting_currency: Currency = Currency.TWD
    usd_twd_fallback: Decimal = USD_TWD_FALLBACK_RATE
    fx_url: str = DEFAULT_FX_URL
    fx_timeout: float = 10

    @property
    def fallback_rates(self) -> dict[tuple[Currency, Currency], Decimal]:
        """Fallback rates for both directions of the USD/TWD pair."""
        return {
            (Currency.USD, Currency.TWD): self.usd_twd_fallback,
            (Currency.TWD, Currency.USD): Decimal("1") / self.usd_twd_fallback,
        }

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from ``INVESTLOG_*`` environment variables.

        Raises:
            ValueError: If a variable is set to an unusable value.
        """
        currency_code = os.getenv("INVESTLOG_REPORTING_CURRENCY", Currency.TWD.value)
        try:
            reporting_currency = Currency(currency_code.strip().upper())
        except ValueError:
            raise ValueError(f"Unknown reporting currency '{currency_code}'") from None

        fallback_text = os.getenv("INVESTLOG_USD_TWD_FALLBACK", str(USD_TWD_FALLBACK_RATE))
        try:
            fallback = Decimal(fallback_text.strip())
        except InvalidOperation:
            raise ValueError(f"INVESTLOG_USD_TWD_FALLBACK must be a number, got '{fallback_text}'") from None
        if not fallback.is_finite() or fallback <= 0:
            raise ValueError(f"INVESTLOG_USD_TWD_FALLBACK must be positive, got '{fallback_text}'")

        timeout_text = os.getenv("INVESTLOG_FX_TIMEOUT", "10")
        try:
            timeout = float(timeout_text)
        except ValueError:
            raise ValueError(f"INVESTLOG_FX_TIMEOUT must be a number, got '{timeout_text}'") from None

        return cls(
            reporting_currency=reporting_currency,
            usd_twd_fallback=fallback,
            fx_url=os.getenv("INVESTLOG_FX_URL", DEFAULT_FX_URL),
            fx_timeout=timeout,
        )
