from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Mapping

# Upper bounds (exclusive) of each tier, in annualized volatility percent.
LOW_VOLATILITY_MAX = 15
MEDIUM_VOLATILITY_MAX = 25
ELEVATED_VOLATILITY_MAX = 40


class RiskTier(Enum):
    """Risk bucket of a symbol, derived from its volatility."""

    UNKNOWN = "Unknown"
    LOW = "Low"
    MEDIUM = "Medium"
    ELEVATED = "Elevated"
    HIGH = "High"


@dataclass(frozen=True)
class RiskMetrics:
    """Pre-computed risk figures for one symbol or benchmark."""
    symbol: str
    volatility_pct: float | Decimal | None
    beta: float | Decimal | None = None

    @property
    def tier(self) -> RiskTier:
        return classify(self.volatility_pct)


def classify(volatility_pct: float | int | Decimal | None) -> RiskTier:
    """
    Bucket a volatility percentage into a risk tier.

    Boundaries are half-open: 15.0 is Medium, 40.0 is High. A missing (or NaN)
    volatility is Unknown.
    """
    if volatility_pct is None or volatility_pct != volatility_pct:
        return RiskTier.UNKNOWN
    if volatility_pct < LOW_VOLATILITY_MAX:
        return RiskTier.LOW
    if volatility_pct < MEDIUM_VOLATILITY_MAX:
        return RiskTier.MEDIUM
    if volatility_pct < ELEVATED_VOLATILITY_MAX:
        return RiskTier.ELEVATED
    return RiskTier.HIGH


def classify_metrics(metrics: Mapping[str, RiskMetrics]) -> dict[str, RiskTier]:
    """Risk tier for every symbol in a symbol -> RiskMetrics mapping."""
    return {symbol: m.tier for symbol, m in metrics.items()}


def _optional_number(value) -> Decimal | None:
    if value is None or value == "":
        return None
    try:
        return Decimal(str(value))
    except ArithmeticError:
        raise ValueError(f"Expected a number, got {value!r}") from None


def risk_metrics_from_records(data: Mapping | list) -> dict[str, RiskMetrics]:
    """
    Parse risk figures as served by the logbook store.

    Accepts either ``{"AAPL": {"volatility": 28.1, "beta": 1.2}, ...}`` or a
    list of ``{"symbol": "AAPL", "volatility": 28.1, "beta": 1.2}`` records.
    """
    if isinstance(data, Mapping):
        records = [dict(values, symbol=symbol) for symbol, values in data.items()]
    else:
        records = list(data)

    metrics: dict[str, RiskMetrics] = {}
    for record in records:
        symbol = str(record["symbol"]).strip().upper()
        metrics[symbol] = RiskMetrics(
            symbol=symbol,
            volatility_pct=_optional_number(record.get("volatility")),
            beta=_optional_number(record.get("beta")),
        )
    return metrics
