"""Tests for the CLI subcommands, run against small JSON ledgers."""

import argparse
import json

import pytest

from investlog.cli import lottery as lottery_cmd
from investlog.cli import overview as overview_cmd
from investlog.cli import report as report_cmd
from investlog.cli import risk as risk_cmd
from investlog.cli.report import format_money, format_signed, parse_quote_args


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("INVESTLOG_REPORTING_CURRENCY", "INVESTLOG_USD_TWD_FALLBACK", "INVESTLOG_FX_URL",
                 "INVESTLOG_FX_TIMEOUT"):
        monkeypatch.delenv(name, raising=False)


def _write_json(path, data):
    path.write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")
    return str(path)


@pytest.fixture
def us_ledger(tmp_path):
    return _write_json(tmp_path / "us.json", {"records": [
        {"symbol": "AAPL", "date": "2025-01-02", "price": 10, "quantity": 100},
        {"symbol": "AAPL", "date": "2025-01-03", "price": 20, "quantity": 100},
        {"symbol": "AAPL", "date": "2025-02-03", "price": 30, "quantity": 50, "action": "SELL",
         "realized_pl": 750, "realized_roi_pct": 100},
    ]})


@pytest.fixture
def tw_ledger(tmp_path):
    return _write_json(tmp_path / "tw.json", [
        {"代號": "2330", "日期": "2025-01-06", "價格(TWD)": 1000, "股數": 10},
    ])


def _report_args(filename, **overrides):
    values = dict(filename=filename, market="US", quotes=False, quote=None, quiet=False)
    values.update(overrides)
    return argparse.Namespace(**values)


class TestReport:
    """Tests for the report subcommand."""

    def test_positions_and_sales(self, us_ledger, capsys):
        assert report_cmd.run(_report_args(us_ledger, quote=["aapl=18"])) == 0

        out = capsys.readouterr().out
        assert "AAPL" in out
        assert "15.00" in out
        assert "+450.00" in out
        assert "Recorded Sales" in out
        assert "+750.00" in out
        assert "Net Invested: USD 1,500.00" in out

    def test_without_quotes_shows_na(self, us_ledger, capsys):
        assert report_cmd.run(_report_args(us_ledger)) == 0
        assert "N/A" in capsys.readouterr().out

    def test_missing_file(self, tmp_path, capsys):
        assert report_cmd.run(_report_args(str(tmp_path / "nope.json"))) == 1
        assert "Error:" in capsys.readouterr().out

    def test_invalid_record(self, tmp_path, capsys):
        path = _write_json(tmp_path / "bad.json", [{"symbol": "AAPL", "date": "2025-01-02", "price": "x",
                                                    "quantity": 1}])
        assert report_cmd.run(_report_args(path)) == 1
        assert "Invalid 'price'" in capsys.readouterr().out

    def test_bad_quote_argument(self, us_ledger, capsys):
        assert report_cmd.run(_report_args(us_ledger, quote=["AAPL"])) == 1
        assert "SYMBOL=PRICE" in capsys.readouterr().out

    @pytest.mark.parametrize("pair,message", [
        ("AAPL=-5", "must not be negative"),
        ("AAPL=nan", "finite"),
        ("AAPL=abc", "expected a number"),
    ])
    def test_unusable_quote_price(self, us_ledger, capsys, pair, message):
        """Negative, non-finite or non-numeric quotes are reported, not raised."""
        assert report_cmd.run(_report_args(us_ledger, quote=[pair])) == 1

        out = capsys.readouterr().out
        assert "Error: Invalid 'quote'" in out
        assert message in out


class TestOverview:
    """Tests for the overview subcommand."""

    def test_pinned_rate(self, us_ledger, tw_ledger, capsys):
        args = argparse.Namespace(us_ledger=us_ledger, tw_ledger=tw_ledger, rate="32", currency=None, quiet=False)

        assert overview_cmd.run(args) == 0

        out = capsys.readouterr().out
        assert "Total: TWD 58,000" in out
        assert "Rate: 1 USD = 32.00 TWD" in out
        assert "2330" in out

    def test_bad_currency(self, us_ledger, tw_ledger, capsys):
        args = argparse.Namespace(us_ledger=us_ledger, tw_ledger=tw_ledger, rate="32", currency="eur", quiet=False)
        assert overview_cmd.run(args) == 1
        assert "Error:" in capsys.readouterr().out


def test_risk_command(tmp_path, capsys):
    path = _write_json(tmp_path / "risk.json", {"AAPL": {"volatility": 28.1, "beta": 1.2}, "SPY": {}})

    assert risk_cmd.run(argparse.Namespace(filename=path)) == 0

    out = capsys.readouterr().out
    assert "Elevated" in out
    assert "Unknown" in out


def test_lottery_command(tmp_path, capsys):
    path = _write_json(tmp_path / "lottery.json", [
        {"date": "2025-01-03", "cost": 50},
        {"date": "2025-01-10", "cost": 50, "prize": 400},
    ])

    assert lottery_cmd.run(argparse.Namespace(filename=path)) == 0

    out = capsys.readouterr().out
    assert "Tickets: 2 (1 winning)" in out
    assert "+300" in out


def test_format_helpers():
    assert format_money(None) == "—"
    assert format_signed(None) == "N/A"
    assert parse_quote_args(["tsla=250.5"]) == {"TSLA": 250.5}
