# pyright: reportUnknownMemberType=false, reportUnknownArgumentType=false

import json
import math
import os
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Iterable, Mapping

import pandas as pd
from openpyxl import Workbook

from .currency import Currency
from .markets import MARKETS, Market, market_config


class ValidationError(ValueError):
    """Raised when a ledger record has a missing or malformed field."""

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(f"Invalid '{field}': {message}")


class TransactionType(Enum):
    """Enumeration of ledger actions."""

    BUY = "BUY"
    SELL = "SELL"

    @classmethod
    def parse(cls, value: "str | TransactionType | None") -> "TransactionType":
        """Parse an action label. Blank values default to BUY."""
        if isinstance(value, TransactionType):
            return value
        if is_blank(value):
            return cls.BUY
        label = str(value).strip()
        action = _ACTION_LABELS.get(label.upper()) or _ACTION_LABELS.get(label)
        if action is None:
            raise ValidationError("action", f"unknown action '{value}'")
        return action


_ACTION_LABELS = {
    "BUY": TransactionType.BUY,
    "B": TransactionType.BUY,
    "買": TransactionType.BUY,
    "買進": TransactionType.BUY,
    "SELL": TransactionType.SELL,
    "S": TransactionType.SELL,
    "賣": TransactionType.SELL,
    "賣出": TransactionType.SELL,
}


def is_blank(value: Any) -> bool:
    if value is None or value is pd.NaT:
        return True
    if isinstance(value, str):
        return not value.strip()
    return isinstance(value, float) and math.isnan(value)


def parse_decimal(value: Any, field: str, required: bool = True, allow_negative: bool = False) -> Decimal | None:
    """Convert a numeric field to Decimal without ever coercing garbage to zero."""
    if is_blank(value):
        if required:
            raise ValidationError(field, "missing required field")
        return None

    if isinstance(value, bool):
        raise ValidationError(field, f"expected a number, got {value!r}")

    if isinstance(value, Decimal):
        number = value
    else:
        try:
            number = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            raise ValidationError(field, f"expected a number, got {value!r}") from None

    if not number.is_finite():
        raise ValidationError(field, f"expected a finite number, got {value!r}")
    if number < 0 and not allow_negative:
        raise ValidationError(field, f"must not be negative, got {number}")
    return number


def parse_date(value: Any) -> date:
    if is_blank(value):
        raise ValidationError("date", "missing required field")
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        raise ValidationError("date", f"expected an ISO-8601 date, got {value!r}") from None


def normalize_symbol(value: Any) -> str:
    if is_blank(value):
        raise ValidationError("symbol", "missing required field")
    # Taiwan tickers are numeric and arrive as numbers from the sheet.
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip().upper()


def parse_text(value: Any) -> str | None:
    if is_blank(value):
        return None
    return str(value).strip()


@dataclass(frozen=True)
class Transaction:
    """A single ledger row (buy or sell of one symbol).

    Numeric fields are converted to ``Decimal`` and validated on construction;
    the symbol is upper-cased so matching is case-insensitive.
    """
    symbol: str
    market: Market
    date: date
    price: Decimal
    quantity: Decimal
    action: TransactionType = TransactionType.BUY
    stop_loss: Decimal | None = None
    take_profit: Decimal | None = None
    scale_in: Decimal | None = None
    scale_out: Decimal | None = None
    buy_reason: str | None = None
    sell_note: str | None = None
    attachment: str | None = None
    row_id: Any = None
    realized_pl: Decimal | None = None
    realized_roi_pct: Decimal | None = None

    def __post_init__(self):
        try:
            market = Market.parse(self.market)
        except ValueError as e:
            raise ValidationError("market", str(e)) from None

        object.__setattr__(self, "symbol", normalize_symbol(self.symbol))
        object.__setattr__(self, "market", market)
        object.__setattr__(self, "date", parse_date(self.date))
        object.__setattr__(self, "price", parse_decimal(self.price, "price"))
        object.__setattr__(self, "quantity", parse_decimal(self.quantity, "quantity"))
        object.__setattr__(self, "action", TransactionType.parse(self.action))

        for name in ("stop_loss", "take_profit", "scale_in", "scale_out"):
            object.__setattr__(self, name, parse_decimal(getattr(self, name), name, required=False))
        for name in ("realized_pl", "realized_roi_pct"):
            object.__setattr__(self, name, parse_decimal(getattr(self, name), name, required=False, allow_negative=True))
        for name in ("buy_reason", "sell_note", "attachment"):
            object.__setattr__(self, name, parse_text(getattr(self, name)))

    @property
    def currency(self) -> Currency:
        return MARKETS[self.market].currency

    @property
    def amount(self) -> Decimal:
        """Price times quantity in the market's native currency."""
        return self.price * self.quantity

    @property
    def is_buy(self) -> bool:
        return self.action == TransactionType.BUY

    @property
    def is_sell(self) -> bool:
        return self.action == TransactionType.SELL


# Spreadsheet label for each Transaction field. The price label depends on the
# market and is looked up from MarketConfig.
RECORD_LABELS = {
    "symbol": "代號",
    "date": "日期",
    "action": "買賣",
    "quantity": "股數",
    "stop_loss": "停損價",
    "take_profit": "停利價",
    "scale_in": "加碼價",
    "scale_out": "減碼價",
    "buy_reason": "買進理由",
    "sell_note": "賣出備註",
    "attachment": "附件",
    "realized_pl": "已實現損益",
    "realized_roi_pct": "已實現報酬率",
    "row_id": "_row",
}


def transaction_from_record(record: Mapping[str, Any], market: "str | Market") -> Transaction:
    """
    Build a Transaction from one record of the logbook store.

    Records may use the normalized field names (``symbol``, ``price``, ...) or
    the sheet's human-readable labels (``代號``, ``價格(USD)``, ...).

    Args:
        record: One ledger row as a mapping.
        market: The market whose sheet the record came from.

    Returns:
        The validated Transaction.

    Raises:
        ValidationError: If a required field is missing or malformed.
    """
    config = market_config(market)
    labels = dict(RECORD_LABELS, price=config.price_label)

    values: dict[str, Any] = {}
    for name, label in labels.items():
        value = None
        for key in (name, label):
            if key in record and not is_blank(record[key]):
                value = record[key]
                break
        values[name] = value

    return Transaction(market=config.market, **values)


def records_to_ledger(records: Iterable[Mapping[str, Any]], market: "str | Market") -> list[Transaction]:
    """Convert a sequence of store records into Transactions."""
    return [transaction_from_record(record, market) for record in records]


def read_json_records(file_path: str) -> list[dict[str, Any]]:
    """
    Read store records from a JSON file.

    Accepts either a bare list of records or the store's response shape,
    ``{"records": [...]}``.
    """
    with open(file_path, "r", encoding="utf-8") as f:
        data = json.load(f)

    if isinstance(data, dict) and "records" in data:
        data = data["records"]

    if not isinstance(data, list):
        raise ValueError("JSON file must contain a list of records")

    return data


def read_sheet_records(file_path: str, sheet_name: str) -> list[dict[str, Any]]:
    """
    Read the rows of one sheet of an exported logbook workbook.

    Rows without an explicit ``_row`` column get their spreadsheet row number
    (the header is row 1), matching the identifiers the store hands out.
    """
    df = pd.read_excel(file_path, sheet_name=sheet_name)

    records: list[dict[str, Any]] = []
    for index, row in df.iterrows():
        record = {str(key): value for key, value in row.to_dict().items()}
        if is_blank(record.get("_row")):
            record["_row"] = int(index) + 2  # type: ignore[arg-type]
        records.append(record)
    return records


STOCK_SHEET_HEADERS = ["代號", "日期", "買賣", "{price}", "股數", "停損價", "停利價", "加碼價", "減碼價",
                       "買進理由", "賣出備註", "附件", "已實現損益", "已實現報酬率"]
LOTTERY_SHEET_NAME = "樂透"
LOTTERY_SHEET_HEADERS = ["日期", "期數", "號碼", "花費", "中獎金額"]


def create_empty_logbook(file_path: str) -> None:
    """Create an empty logbook workbook with one sheet per market plus the lottery sheet."""
    wb = Workbook()
    first = wb.active
    assert first is not None
    wb.remove(first)

    for config in MARKETS.values():
        ws = wb.create_sheet(config.sheet_name)
        headers = [h.format(price=config.price_label) for h in STOCK_SHEET_HEADERS]
        for col, header in enumerate(headers, start=1):
            ws.cell(row=1, column=col, value=header)

    ws = wb.create_sheet(LOTTERY_SHEET_NAME)
    for col, header in enumerate(LOTTERY_SHEET_HEADERS, start=1):
        ws.cell(row=1, column=col, value=header)

    wb.save(file_path)


def load_ledger_from_json(file_path: str, market: "str | Market") -> list[Transaction]:
    """
    Load one market's ledger from a JSON export of the store.

    Args:
        file_path: Path to the JSON file.
        market: Market the records belong to.

    Returns:
        The ledger as a list of Transactions, in file order.
    """
    return records_to_ledger(read_json_records(file_path), market)


def load_ledger_from_excel(
    file_path: str,
    market: "str | Market",
    create_if_missing: bool = False,
) -> list[Transaction]:
    """
    Load one market's ledger from an exported logbook workbook.

    Args:
        file_path: Path to the .xlsx workbook.
        market: Market whose sheet (``美股`` or ``台股``) should be read.
        create_if_missing: If True and the file doesn't exist, create an empty
            logbook and return an empty ledger.

    Returns:
        The ledger as a list of Transactions, in sheet order.

    Raises:
        FileNotFoundError: If the file is missing and create_if_missing is False.
        ValidationError: If any row is malformed.
    """
    if not os.path.exists(file_path):
        if create_if_missing:
            create_empty_logbook(file_path)
            return []
        raise FileNotFoundError(f"Logbook file not found: {file_path}")

    config = market_config(market)
    return records_to_ledger(read_sheet_records(file_path, config.sheet_name), config.market)


def load_ledger(file_path: str, market: "str | Market") -> list[Transaction]:
    """Load a ledger from a .json or .xlsx file, choosing the reader by extension."""
    if file_path.lower().endswith((".xlsx", ".xlsm")):
        return load_ledger_from_excel(file_path, market)
    return load_ledger_from_json(file_path, market)
