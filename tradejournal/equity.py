# equity.py
"""Chronological series derived from the trade list: equity curve and monthly P&L."""

from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

import pandas as pd

from .models import Trade


@dataclass
class EquityPoint:
    date: str                 # short display label, e.g. "Jan 5"
    equity: float             # cumulative P&L up to and including this trade
    pnl: Optional[float]      # this trade's P&L as recorded

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class MonthlyPoint:
    key: str                  # "YYYY-MM"
    name: str                 # "Jan 24"
    pnl: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _short_date(dt: datetime) -> str:
    return f"{dt:%b} {dt.day}"


def _month_label(key: str) -> str:
    year, month = key.split("-")
    return datetime(int(year), int(month), 1).strftime("%b %y")


def _closed_frame(trades: List[Trade]) -> pd.DataFrame:
    """Closed trades as a frame, oldest entry first. Python's sort is stable,
    so trades entered at the same instant keep their input order.

    Ordering uses the UTC instant; labels and month keys use the date the
    trader wrote down, the same date the calendar files the trade under.
    """
    closed = sorted((t for t in trades if t.is_closed), key=lambda t: t.entry_datetime)
    rows = []
    for t in closed:
        dt = t.entry_wall_clock
        rows.append({
            "label": _short_date(dt),
            "month": f"{dt.year:04d}-{dt.month:02d}",
            "pnl": t.pnl,
        })
    return pd.DataFrame(rows, columns=["label", "month", "pnl"])


def equity_curve(trades: List[Trade]) -> List[EquityPoint]:
    """Running balance after each closed trade. A missing P&L adds nothing."""
    df = _closed_frame(trades)
    if df.empty:
        return []

    df["equity"] = df["pnl"].astype(float).fillna(0.0).cumsum()
    out: List[EquityPoint] = []
    for label, equity, pnl in zip(df["label"], df["equity"], df["pnl"]):
        out.append(EquityPoint(
            date=label,
            equity=float(equity),
            pnl=None if pd.isna(pnl) else float(pnl),
        ))
    return out


def recent_trades_pnl(trades: List[Trade], n: int = 10) -> List[EquityPoint]:
    """The last ``n`` points of the equity curve (per-trade P&L bars)."""
    return equity_curve(trades)[-n:] if n > 0 else []


def monthly_pnl(trades: List[Trade]) -> List[MonthlyPoint]:
    """Net P&L of closed trades per calendar month, oldest month first.

    Buckets are keyed by zero-padded ``YYYY-MM`` which sorts
    chronologically as plain text.
    """
    df = _closed_frame(trades)
    if df.empty:
        return []

    df["pnl"] = df["pnl"].astype(float).fillna(0.0)
    buckets = df.groupby("month", sort=True)["pnl"].sum()
    return [
        MonthlyPoint(key=key, name=_month_label(key), pnl=float(total))
        for key, total in buckets.items()
    ]
