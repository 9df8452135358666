"""
calendar_view.py
----------------

Month calendar of daily P&L. Each day cell aggregates the closed trades
entered on that day and flags whether a daily note exists for it.

Day matching is a plain text prefix test on ``Trade.entry_date``: a
trade belongs to day ``YYYY-MM-DD`` when its entry date string starts
with exactly that text. No timezone conversion is applied.
"""

import calendar
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from .models import DailyNote, Trade


@dataclass
class DayCell:
    day: int
    date: str
    pnl: float = 0.0
    has_trades: bool = False
    has_note: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class CalendarMonth:
    year: int
    month: int
    month_name: str
    cells: List[Optional[DayCell]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "year": self.year,
            "month": self.month,
            "month_name": self.month_name,
            "days": [c.to_dict() if c else None for c in self.cells],
        }


def shift_month(year: int, month: int, delta: int) -> Tuple[int, int]:
    """Move ``delta`` months from (year, month), rolling the year as needed."""
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def trades_on_day(trades: List[Trade], date_str: str) -> List[Trade]:
    return [t for t in trades if t.entry_date.startswith(date_str) and t.is_closed]


def build_month(trades: List[Trade], notes: List[DailyNote], year: int, month: int) -> CalendarMonth:
    """Lay out ``month`` of ``year`` Sunday-first with leading blank cells."""
    if not 1 <= month <= 12:
        raise ValueError(f"month must be 1..12, got {month}")

    first_weekday, days_in_month = calendar.monthrange(year, month)
    # monthrange counts Monday as 0; the grid starts on Sunday
    leading = (first_weekday + 1) % 7
    note_dates = {n.date for n in notes}

    cells: List[Optional[DayCell]] = [None] * leading
    for day in range(1, days_in_month + 1):
        date_str = f"{year:04d}-{month:02d}-{day:02d}"
        day_trades = trades_on_day(trades, date_str)
        cells.append(DayCell(
            day=day,
            date=date_str,
            pnl=sum(t.pnl or 0.0 for t in day_trades),
            has_trades=bool(day_trades),
            has_note=date_str in note_dates,
        ))

    return CalendarMonth(
        year=year,
        month=month,
        month_name=calendar.month_name[month],
        cells=cells,
    )


def day_detail(trades: List[Trade], notes: List[DailyNote], date_str: str) -> Dict[str, Any]:
    """Trades and note shown when a calendar day is opened for editing."""
    note = next((n for n in notes if n.date == date_str), None)
    return {
        "date": date_str,
        "trades": [t.to_dict() for t in trades_on_day(trades, date_str)],
        "note": {
            "date": date_str,
            "content": note.content if note else "",
            "mood": (note.mood if note else None) or "Neutral",
        },
        "has_note": note is not None,
    }
