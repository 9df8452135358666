"""
analytics.py
-------------

This module contains functions to compute performance metrics from a list
of Trade objects. Splitting analytics into its own module makes it easy
to reuse these functions in different contexts (Flask app, tests, future
reports) without coupling them to UI or storage concerns.

Every function here is pure: it takes the full trade collection and
recomputes from scratch.
"""

from dataclasses import asdict, dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

from .models import Trade

# Profit factor reported when there are wins but no losses.
PROFIT_FACTOR_CAP = 999.0


@dataclass
class DashboardStats:
    total_trades: int = 0
    win_rate: float = 0.0
    net_pnl: float = 0.0
    avg_win: float = 0.0
    avg_loss: float = 0.0
    profit_factor: float = 0.0
    max_win_streak: int = 0
    current_streak: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def closed_trades_in_order(trades: List[Trade]) -> List[Trade]:
    """Closed trades with a realized P&L, oldest first, ties broken by id."""
    closed = [t for t in trades if t.is_closed and t.pnl is not None]
    return sorted(closed, key=lambda t: (t.entry_datetime, t.id))


def compute_stats(trades: List[Trade]) -> DashboardStats:
    """Compute dashboard statistics for the given trades.

    Parameters
    ----------
    trades: List[Trade]
        The user's full trade collection, in any order. Open, pending
        and closed-without-P&L trades are ignored.

    Returns
    -------
    DashboardStats
        All fields are zero for an empty collection. A P&L of exactly
        zero counts as a loss.
    """
    closed = closed_trades_in_order(trades)
    stats = DashboardStats()
    if not closed:
        return stats

    pnls = [t.pnl for t in closed]
    wins = [pnl for pnl in pnls if pnl > 0]
    losses = [pnl for pnl in pnls if pnl <= 0]

    total_win = sum(wins)
    total_loss = abs(sum(losses))

    stats.total_trades = len(closed)
    stats.net_pnl = sum(pnls)
    stats.win_rate = len(wins) / stats.total_trades * 100
    stats.avg_win = total_win / len(wins) if wins else 0.0
    stats.avg_loss = total_loss / len(losses) if losses else 0.0
    if total_loss > 0:
        stats.profit_factor = total_win / total_loss
    elif total_win > 0:
        stats.profit_factor = PROFIT_FACTOR_CAP
    else:
        stats.profit_factor = 0.0

    win_run = 0
    for pnl in pnls:
        if pnl > 0:
            win_run += 1
            stats.max_win_streak = max(stats.max_win_streak, win_run)
            stats.current_streak = stats.current_streak + 1 if stats.current_streak >= 0 else 1
        else:
            win_run = 0
            stats.current_streak = stats.current_streak - 1 if stats.current_streak <= 0 else -1

    return stats


def strategy_breakdown(trades: List[Trade]) -> List[Dict[str, Any]]:
    """Number of trades per setup, most used first. Blank setups count as 'Other'."""
    counts: Dict[str, int] = {}
    for t in trades:
        name = t.setup or "Other"
        counts[name] = counts.get(name, 0) + 1
    ordered = sorted(counts.items(), key=lambda kv: kv[1], reverse=True)
    return [{"name": name, "value": value} for name, value in ordered]


@dataclass
class DailyReport:
    day: date
    net_pnl: float
    total_trades: int
    wins: int
    losses: int
    win_rate: float
    best_win: float
    max_loss: float
    psychology: List[str] = field(default_factory=list)

    @property
    def message(self) -> str:
        """Plain-text summary suitable for sharing in a chat app."""
        tags = " ".join(self.psychology) or "N/A"
        return "\n".join([
            "Daily Trade Report",
            f"Date: {self.day:%d/%m/%Y}",
            "",
            f"Net P&L: ₹{self.net_pnl:.2f}",
            f"Trades: {self.total_trades} ({self.wins} Win / {self.losses} Loss)",
            f"Win Rate: {self.win_rate:.0f}%",
            "",
            f"Best Win: ₹{self.best_win:.2f}",
            f"Max Loss: ₹{self.max_loss:.2f}",
            "",
            f"Psychology: {tags}",
        ])

    def to_dict(self) -> Dict[str, Any]:
        row = asdict(self)
        row["day"] = self.day.isoformat()
        row["message"] = self.message
        return row


def daily_report(trades: List[Trade], day: Optional[date] = None) -> Optional[DailyReport]:
    """Summarise the closed trades entered on ``day`` (UTC today by default).

    Returns ``None`` when there is nothing to report.
    """
    day = day or datetime.now(timezone.utc).date()
    prefix = day.isoformat()
    todays = [t for t in trades if t.entry_date.startswith(prefix) and t.is_closed]
    if not todays:
        return None

    pnls = [t.pnl or 0.0 for t in todays]
    wins = [p for p in pnls if p > 0]
    losses = [p for p in pnls if p <= 0]

    tags: List[str] = []
    for t in todays:
        for tag in t.hashtags:
            if tag not in tags:
                tags.append(tag)

    return DailyReport(
        day=day,
        net_pnl=sum(pnls),
        total_trades=len(todays),
        wins=len(wins),
        losses=len(losses),
        win_rate=len(wins) / len(todays) * 100,
        best_win=max(wins) if wins else 0.0,
        max_loss=min(losses) if losses else 0.0,
        psychology=tags,
    )
