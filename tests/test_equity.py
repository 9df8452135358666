import pytest

from tradejournal.calendar_view import build_month
from tradejournal.equity import equity_curve, monthly_pnl, recent_trades_pnl
from tradejournal.models import TradeStatus

from conftest import make_trade


def test_empty_inputs():
    assert equity_curve([]) == []
    assert monthly_pnl([]) == []


def test_equity_curve_is_cumulative_in_entry_order():
    trades = [
        make_trade("c", pnl=-30, entry_date="2024-02-10"),
        make_trade("a", pnl=100, entry_date="2024-01-05"),
        make_trade("b", pnl=50, entry_date="2024-01-20T10:30:00"),
        make_trade("x", pnl=None, status=TradeStatus.OPEN, entry_date="2024-01-06"),
    ]
    curve = equity_curve(trades)
    assert [p.date for p in curve] == ["Jan 5", "Jan 20", "Feb 10"]
    assert [p.equity for p in curve] == pytest.approx([100, 150, 120])
    assert [p.pnl for p in curve] == pytest.approx([100, 50, -30])


def test_closed_trade_without_pnl_adds_nothing():
    trades = [
        make_trade("a", pnl=100, entry_date="2024-01-05"),
        make_trade("b", pnl=None, entry_date="2024-01-06"),
    ]
    curve = equity_curve(trades)
    assert [p.equity for p in curve] == pytest.approx([100, 100])
    assert curve[1].pnl is None


def test_equal_timestamps_keep_input_order():
    trades = [
        make_trade("z", pnl=1, entry_date="2024-01-05"),
        make_trade("a", pnl=2, entry_date="2024-01-05"),
    ]
    assert [p.pnl for p in equity_curve(trades)] == [1, 2]


def test_recent_trades_takes_the_tail():
    trades = [make_trade(str(i), pnl=i, entry_date=f"2024-01-{i:02d}") for i in range(1, 16)]
    recent = recent_trades_pnl(trades)
    assert len(recent) == 10
    assert recent[0].pnl == 6
    assert recent[-1].equity == pytest.approx(sum(range(1, 16)))


def test_monthly_single_bucket():
    trades = [
        make_trade("a", pnl=100, entry_date="2024-01-05"),
        make_trade("b", pnl=-40, entry_date="2024-01-20"),
    ]
    months = monthly_pnl(trades)
    assert len(months) == 1
    assert months[0].name == "Jan 24"
    assert months[0].key == "2024-01"
    assert months[0].pnl == pytest.approx(60)


def test_monthly_buckets_sorted_across_years():
    trades = [
        make_trade("a", pnl=10, entry_date="2024-02-01"),
        make_trade("b", pnl=20, entry_date="2023-12-31"),
        make_trade("c", pnl=30, entry_date="2024-10-15"),
        make_trade("d", pnl=5, entry_date="2024-02-28"),
    ]
    months = monthly_pnl(trades)
    assert [m.name for m in months] == ["Dec 23", "Feb 24", "Oct 24"]
    assert [m.pnl for m in months] == pytest.approx([20, 15, 30])


def test_offset_timestamps_bucket_on_the_written_date():
    trades = [
        make_trade("ist", pnl=100, entry_date="2024-02-01T03:00:00+05:30"),
        make_trade("jan", pnl=40, entry_date="2024-01-31T23:00:00+05:30"),
    ]
    months = monthly_pnl(trades)
    assert [(m.key, m.name, m.pnl) for m in months] == [
        ("2024-01", "Jan 24", pytest.approx(40)),
        ("2024-02", "Feb 24", pytest.approx(100)),
    ]
    assert [p.date for p in equity_curve(trades)] == ["Jan 31", "Feb 1"]

    cells = {c.date: c for c in build_month(trades, [], 2024, 2).cells if c}
    assert cells["2024-02-01"].pnl == pytest.approx(months[-1].pnl)


def test_ordering_still_follows_the_utc_instant():
    trades = [
        make_trade("late", pnl=1, entry_date="2024-01-05T09:00:00+00:00"),
        make_trade("early", pnl=2, entry_date="2024-01-05T10:00:00+05:30"),
    ]
    assert [p.pnl for p in equity_curve(trades)] == [2, 1]
