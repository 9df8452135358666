import pytest

from tradejournal.calendar_view import build_month, day_detail, shift_month
from tradejournal.models import DailyNote, TradeStatus

from conftest import make_trade


def test_layout_starts_on_sunday():
    # 1 March 2024 was a Friday -> five blank cells
    month = build_month([], [], 2024, 3)
    assert month.month_name == "March"
    assert month.year == 2024
    assert month.cells[:5] == [None] * 5
    assert month.cells[5].day == 1
    assert month.cells[5].date == "2024-03-01"
    assert len([c for c in month.cells if c]) == 31


def test_month_starting_on_sunday_has_no_blanks():
    # 1 September 2024 was a Sunday
    month = build_month([], [], 2024, 9)
    assert month.cells[0].day == 1


def test_leap_february():
    month = build_month([], [], 2024, 2)
    assert [c for c in month.cells if c][-1].date == "2024-02-29"


def test_days_aggregate_closed_trades_by_date_prefix():
    trades = [
        make_trade("a", pnl=100, entry_date="2024-03-05T09:30:00"),
        make_trade("b", pnl=-40, entry_date="2024-03-05"),
        make_trade("c", pnl=None, status=TradeStatus.OPEN, entry_date="2024-03-05"),
        make_trade("d", pnl=70, entry_date="2024-03-06T23:59:00+05:30"),
        make_trade("e", pnl=5, entry_date="2024-04-05"),
    ]
    notes = [DailyNote(date="2024-03-07", content="sat out", mood="Disciplined")]
    cells = {c.date: c for c in build_month(trades, notes, 2024, 3).cells if c}

    assert cells["2024-03-05"].pnl == pytest.approx(60)
    assert cells["2024-03-05"].has_trades
    assert cells["2024-03-06"].pnl == pytest.approx(70)
    assert cells["2024-03-07"].has_note
    assert not cells["2024-03-07"].has_trades
    assert cells["2024-03-07"].pnl == 0
    assert sum(c.pnl for c in cells.values()) == pytest.approx(130)


@pytest.mark.parametrize("year,month,delta,expected", [
    (2024, 1, -1, (2023, 12)),
    (2024, 12, 1, (2025, 1)),
    (2024, 6, 0, (2024, 6)),
    (2024, 3, -15, (2022, 12)),
])
def test_shift_month(year, month, delta, expected):
    assert shift_month(year, month, delta) == expected


def test_invalid_month():
    with pytest.raises(ValueError):
        build_month([], [], 2024, 13)


def test_day_detail_defaults_mood():
    trades = [make_trade("a", pnl=10, entry_date="2024-03-05")]
    detail = day_detail(trades, [], "2024-03-05")
    assert detail["note"] == {"date": "2024-03-05", "content": "", "mood": "Neutral"}
    assert detail["has_note"] is False
    assert [t["id"] for t in detail["trades"]] == ["a"]
