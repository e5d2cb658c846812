"""Tests for ledger records: validation, label mapping and file loading."""

import json
from datetime import date
from decimal import Decimal

import pytest
from openpyxl import Workbook, load_workbook

from investlog.currency import Currency
from investlog.ledger import (
    LOTTERY_SHEET_NAME,
    Transaction,
    TransactionType,
    ValidationError,
    create_empty_logbook,
    load_ledger,
    load_ledger_from_excel,
    load_ledger_from_json,
    transaction_from_record,
)
from investlog.markets import Market


class TestTransaction:
    """Tests for Transaction validation and normalization."""

    def test_normalizes_fields(self):
        txn = Transaction(symbol=" aapl ", market="us", date="2025-03-04", price="187.5", quantity=10)

        assert txn.symbol == "AAPL"
        assert txn.market == Market.US
        assert txn.date == date(2025, 3, 4)
        assert txn.price == Decimal("187.5")
        assert txn.action == TransactionType.BUY
        assert txn.currency == Currency.USD
        assert txn.amount == Decimal("1875.0")

    def test_datetime_string_is_accepted(self):
        txn = Transaction(symbol="AAPL", market=Market.US, date="2025-03-04T10:30:00", price=1, quantity=1)
        assert txn.date == date(2025, 3, 4)

    @pytest.mark.parametrize("field,overrides", [
        ("symbol", {"symbol": "  "}),
        ("date", {"date": "yesterday"}),
        ("date", {"date": None}),
        ("price", {"price": "abc"}),
        ("price", {"price": -1}),
        ("price", {"price": True}),
        ("quantity", {"quantity": None}),
        ("quantity", {"quantity": float("inf")}),
        ("action", {"action": "HOLD"}),
        ("market", {"market": "JP"}),
    ])
    def test_invalid_field_is_named(self, field, overrides):
        """A malformed field raises ValidationError naming it rather than becoming zero."""
        values = dict(symbol="AAPL", market=Market.US, date="2025-03-04", price=10, quantity=1)
        values.update(overrides)

        with pytest.raises(ValidationError) as excinfo:
            Transaction(**values)

        assert excinfo.value.field == field
        assert field in str(excinfo.value)

    @pytest.mark.parametrize("label,action", [
        ("B", TransactionType.BUY),
        ("buy", TransactionType.BUY),
        ("買進", TransactionType.BUY),
        ("", TransactionType.BUY),
        ("s", TransactionType.SELL),
        ("賣出", TransactionType.SELL),
        ("Sell", TransactionType.SELL),
    ])
    def test_action_labels(self, label, action):
        assert TransactionType.parse(label) == action

    def test_realized_values_may_be_negative(self):
        txn = Transaction(symbol="AAPL", market=Market.US, date="2025-03-04", price=5, quantity=1,
                          action="SELL", realized_pl="-50", realized_roi_pct="-50")
        assert txn.realized_pl == Decimal("-50")
        assert txn.is_sell


class TestTransactionFromRecord:
    """Tests for transaction_from_record()."""

    def test_sheet_labels(self):
        record = {
            "代號": 2330,
            "日期": "2025-01-06",
            "價格(TWD)": 1050,
            "股數": 1000,
            "停損價": 980,
            "買進理由": "AI demand",
            "_row": 7,
        }

        txn = transaction_from_record(record, "TW")

        assert txn.symbol == "2330"
        assert txn.market == Market.TW
        assert txn.price == Decimal("1050")
        assert txn.stop_loss == Decimal("980")
        assert txn.take_profit is None
        assert txn.buy_reason == "AI demand"
        assert txn.row_id == 7

    def test_normalized_keys(self):
        record = {"symbol": "msft", "date": "2025-02-01", "price": 410, "quantity": 2, "action": "S"}

        txn = transaction_from_record(record, Market.US)

        assert txn.symbol == "MSFT"
        assert txn.is_sell

    def test_wrong_market_price_label_is_missing(self):
        record = {"代號": "AAPL", "日期": "2025-01-06", "價格(TWD)": 100, "股數": 1}
        with pytest.raises(ValidationError) as excinfo:
            transaction_from_record(record, Market.US)
        assert excinfo.value.field == "price"


class TestLoadLedgerFromJson:
    """Tests for load_ledger_from_json()."""

    def test_store_response_shape(self, tmp_path):
        path = tmp_path / "us.json"
        path.write_text(json.dumps({"records": [
            {"symbol": "AAPL", "date": "2025-01-02", "price": 10, "quantity": 100},
            {"symbol": "AAPL", "date": "2025-01-03", "price": 20, "quantity": 100},
        ]}), encoding="utf-8")

        ledger = load_ledger_from_json(str(path), Market.US)

        assert [txn.price for txn in ledger] == [Decimal("10"), Decimal("20")]

    def test_bare_list(self, tmp_path):
        path = tmp_path / "tw.json"
        path.write_text(json.dumps([{"代號": "0050", "日期": "2025-01-02", "價格(TWD)": 150, "股數": 10}]),
                        encoding="utf-8")

        ledger = load_ledger(str(path), "TW")

        assert ledger[0].symbol == "0050"
        assert ledger[0].currency == Currency.TWD

    def test_rejects_non_list(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"symbol": "AAPL"}), encoding="utf-8")
        with pytest.raises(ValueError, match="list of records"):
            load_ledger_from_json(str(path), Market.US)


def _write_workbook(path, sheet_name, rows):
    wb = Workbook()
    ws = wb.active
    ws.title = sheet_name
    for row in rows:
        ws.append(row)
    wb.save(path)


class TestLoadLedgerFromExcel:
    """Tests for load_ledger_from_excel()."""

    def test_reads_market_sheet(self, tmp_path):
        path = str(tmp_path / "logbook.xlsx")
        _write_workbook(path, "台股", [
            ["代號", "日期", "買賣", "價格(TWD)", "股數"],
            [2330, "2025-01-06", "買進", 1050, 1000],
            [2330, "2025-02-10", "賣出", 1100, 500],
        ])

        ledger = load_ledger_from_excel(path, Market.TW)

        assert [txn.symbol for txn in ledger] == ["2330", "2330"]
        assert [txn.action for txn in ledger] == [TransactionType.BUY, TransactionType.SELL]
        assert [txn.row_id for txn in ledger] == [2, 3]
        assert ledger[1].quantity == Decimal("500")

    def test_bad_row_raises(self, tmp_path):
        path = str(tmp_path / "logbook.xlsx")
        _write_workbook(path, "美股", [
            ["代號", "日期", "價格(USD)", "股數"],
            ["AAPL", "2025-01-06", "n/a", 1],
        ])

        with pytest.raises(ValidationError) as excinfo:
            load_ledger(path, Market.US)
        assert excinfo.value.field == "price"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_ledger_from_excel(str(tmp_path / "missing.xlsx"), Market.US)

    def test_create_if_missing(self, tmp_path):
        path = tmp_path / "new.xlsx"

        ledger = load_ledger_from_excel(str(path), Market.US, create_if_missing=True)

        assert ledger == []
        assert path.exists()
        assert load_ledger_from_excel(str(path), Market.US) == []


def test_create_empty_logbook_sheets(tmp_path):
    path = str(tmp_path / "logbook.xlsx")

    create_empty_logbook(path)

    wb = load_workbook(path)
    assert wb.sheetnames == ["美股", "台股", LOTTERY_SHEET_NAME]
    headers = [cell.value for cell in wb["台股"][1]]
    assert headers[:5] == ["代號", "日期", "買賣", "價格(TWD)", "股數"]
