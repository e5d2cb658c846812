from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Iterable, Mapping

from .ledger import (
    LOTTERY_SHEET_NAME,
    is_blank,
    parse_date,
    parse_text,
    parse_decimal,
    read_json_records,
    read_sheet_records,
)

LOTTERY_LABELS = {
    "date": "日期",
    "draw": "期數",
    "numbers": "號碼",
    "cost": "花費",
    "prize": "中獎金額",
    "row_id": "_row",
}


@dataclass(frozen=True)
class LotteryTicket:
    """One lottery purchase. Blank cost or prize count as 0."""
    date: date
    draw: str | None = None
    numbers: str | None = None
    cost: Decimal = Decimal("0")
    prize: Decimal = Decimal("0")
    row_id: Any = None

    def __post_init__(self):
        object.__setattr__(self, "date", parse_date(self.date))
        object.__setattr__(self, "draw", parse_text(self.draw))
        object.__setattr__(self, "numbers", parse_text(self.numbers))
        for name in ("cost", "prize"):
            value = parse_decimal(getattr(self, name), name, required=False)
            object.__setattr__(self, name, value if value is not None else Decimal("0"))

    @property
    def won(self) -> bool:
        return self.prize > 0


@dataclass(frozen=True)
class LotterySummary:
    total_spent: Decimal
    total_won: Decimal
    ticket_count: int
    winning_count: int

    @property
    def net(self) -> Decimal:
        return self.total_won - self.total_spent


def ticket_from_record(record: Mapping[str, Any]) -> LotteryTicket:
    """Build a LotteryTicket from a store record (normalized keys or sheet labels)."""
    values: dict[str, Any] = {}
    for name, label in LOTTERY_LABELS.items():
        values[name] = None
        for key in (name, label):
            if key in record and not is_blank(record[key]):
                values[name] = record[key]
                break
    return LotteryTicket(**values)


def summarize_lottery(tickets: Iterable[LotteryTicket]) -> LotterySummary:
    """Total spent, total won and ticket counts."""
    total_spent = Decimal("0")
    total_won = Decimal("0")
    ticket_count = 0
    winning_count = 0
    for ticket in tickets:
        total_spent += ticket.cost
        total_won += ticket.prize
        ticket_count += 1
        if ticket.won:
            winning_count += 1
    return LotterySummary(
        total_spent=total_spent,
        total_won=total_won,
        ticket_count=ticket_count,
        winning_count=winning_count,
    )


def load_tickets(file_path: str) -> list[LotteryTicket]:
    """Load lottery tickets from a JSON export or from the ``樂透`` sheet of a workbook."""
    if file_path.lower().endswith((".xlsx", ".xlsm")):
        records = read_sheet_records(file_path, LOTTERY_SHEET_NAME)
    else:
        records = read_json_records(file_path)
    return [ticket_from_record(record) for record in records]
