"""
models.py
---------

Defines the core data model of the journal: a ``Trade`` (one executed
or planned position) and a ``DailyNote`` (at most one free-text note
per calendar day). Both are plain dataclasses shared by the store, the
analytics functions and the web layer.

The module also holds the trade-form semantics: turning a submitted
mapping into a ``Trade`` with P&L auto-calculation, percentage based
stop/target prices and psychology tags.
"""

import re
import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from .errors import ValidationError

HASHTAG_RE = re.compile(r"#\w+")


class TradeType(str, Enum):
    LONG = "LONG"
    SHORT = "SHORT"


class TradeStatus(str, Enum):
    OPEN = "OPEN"
    CLOSED = "CLOSED"
    PENDING = "PENDING"


MOODS = ("Happy", "Neutral", "Sad", "Frustrated", "Disciplined")


def new_trade_id() -> str:
    return str(uuid.uuid4())


def parse_entry_date(value: str, to_utc: bool = True) -> datetime:
    """Parse an ISO date or timestamp into a naive datetime.

    Bare dates parse as midnight. With ``to_utc`` offsets are converted
    to UTC and then dropped so that date-only and full timestamps compare
    against each other. Without it the offset is dropped unconverted,
    leaving the wall-clock time the trader entered.
    """
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    dt = datetime.fromisoformat(text)
    if dt.tzinfo is not None and to_utc:
        dt = dt.astimezone(timezone.utc)
    return dt.replace(tzinfo=None)


@dataclass
class Trade:
    """Represents a single journal entry.

    Attributes
    ----------
    id: str
        Opaque identifier generated when the trade is first created.
    symbol: str
        Upper-cased instrument text, e.g. ``'NIFTY 24500 CE'`` or ``'SBIN'``.
    type: TradeType
        LONG or SHORT.
    status: TradeStatus
        OPEN, CLOSED or PENDING. Only CLOSED trades carry a realized P&L.
    entry_date: str
        ISO date or timestamp exactly as entered. Calendar bucketing
        compares against this text, so it is never reformatted.
    entry_price: float
        Price at which the position was opened.
    quantity: float
        Position size; for index derivatives a multiple of the lot size.
    expiry_date, exit_price, stop_loss, take_profit, pnl: Optional
        Filled in when known.
    setup: str
        Strategy label.
    notes: str
        Psychology or analysis notes, may embed ``#tags``.
    tags: List[str]
        Free-form labels.
    """

    id: str
    symbol: str
    type: TradeType
    status: TradeStatus
    entry_date: str
    entry_price: float
    quantity: float
    expiry_date: Optional[str] = None
    exit_price: Optional[float] = None
    stop_loss: Optional[float] = None
    take_profit: Optional[float] = None
    pnl: Optional[float] = None
    setup: str = ""
    notes: str = ""
    tags: List[str] = field(default_factory=list)

    @property
    def is_closed(self) -> bool:
        return self.status == TradeStatus.CLOSED

    @property
    def entry_datetime(self) -> datetime:
        """Entry timestamp for ordering; unparseable text sorts first."""
        try:
            return parse_entry_date(self.entry_date)
        except (ValueError, AttributeError):
            return datetime.min

    @property
    def entry_wall_clock(self) -> datetime:
        """Entry time as written, offset ignored. Its date matches ``entry_date[:10]``."""
        try:
            return parse_entry_date(self.entry_date, to_utc=False)
        except (ValueError, AttributeError):
            return datetime.min

    @property
    def hashtags(self) -> List[str]:
        return HASHTAG_RE.findall(self.notes or "")

    def to_dict(self) -> Dict[str, Any]:
        row = asdict(self)
        row["type"] = self.type.value
        row["status"] = self.status.value
        return row

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "Trade":
        return cls(
            id=str(d["id"]),
            symbol=str(d.get("symbol") or ""),
            type=TradeType(str(d.get("type") or "LONG").upper()),
            status=TradeStatus(str(d.get("status") or "OPEN").upper()),
            entry_date=str(d.get("entry_date") or ""),
            entry_price=float(d.get("entry_price") or 0.0),
            quantity=float(d.get("quantity") or 0.0),
            expiry_date=d.get("expiry_date") or None,
            exit_price=_opt_float(d.get("exit_price")),
            stop_loss=_opt_float(d.get("stop_loss")),
            take_profit=_opt_float(d.get("take_profit")),
            pnl=_opt_float(d.get("pnl")),
            setup=str(d.get("setup") or ""),
            notes=str(d.get("notes") or ""),
            tags=list(d.get("tags") or []),
        )


@dataclass
class DailyNote:
    """A note attached to one calendar day (``date`` is ``YYYY-MM-DD``)."""

    date: str
    content: str = ""
    mood: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "DailyNote":
        date_str = str(d.get("date") or "").strip()
        try:
            datetime.strptime(date_str, "%Y-%m-%d")
        except ValueError as e:
            raise ValidationError(f"Invalid note date: {date_str!r}") from e
        mood = d.get("mood") or None
        if mood is not None and mood not in MOODS:
            raise ValidationError(f"Unknown mood: {mood!r}")
        return cls(date=date_str, content=str(d.get("content") or ""), mood=mood)


# ---------- form helpers ----------
def _opt_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    return float(value)


def _form_float(data: Mapping[str, Any], name: str) -> Optional[float]:
    try:
        return _opt_float(data.get(name))
    except (TypeError, ValueError) as e:
        raise ValidationError(f"{name} must be numeric") from e


def calculate_pnl(trade_type: TradeType, entry: float, exit_price: float, quantity: float) -> float:
    """Realized P&L of a position: (exit - entry) * qty for longs, negated for shorts."""
    diff = exit_price - entry
    pnl = diff * quantity if trade_type == TradeType.LONG else -diff * quantity
    return round(pnl, 2)


def price_from_percent(trade_type: TradeType, entry: float, pct: float, kind: str) -> float:
    """Stop-loss (``kind='sl'``) or take-profit (``kind='tp'``) price ``pct`` percent away from entry."""
    is_long = trade_type == TradeType.LONG
    below = (kind == "sl") == is_long
    factor = (1 - pct / 100) if below else (1 + pct / 100)
    return round(entry * factor, 2)


def add_psychology_tag(notes: str, tag: str) -> str:
    current = notes or ""
    if f"#{tag}" in current:
        return current
    separator = " " if current and not current.endswith(" ") else ""
    return f"{current}{separator}#{tag}"


def parse_trade_form(
    data: Mapping[str, Any],
    trade_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Trade:
    """Build a ``Trade`` from a submitted form/JSON payload.

    ``trade_id`` is the id of the trade being edited; new trades get a
    fresh id. The returned trade is a full replacement row.
    ``psychology_tags`` (a list or comma string) are appended to the
    notes as ``#Tag`` tokens.
    """
    symbol = str(data.get("symbol") or "").strip()
    if not symbol:
        raise ValidationError("symbol is required")
    entry_price = _form_float(data, "entry_price")
    if entry_price is None:
        raise ValidationError("entry_price is required")

    try:
        trade_type = TradeType(str(data.get("type") or "LONG").strip().upper())
        status = TradeStatus(str(data.get("status") or "OPEN").strip().upper())
    except ValueError as e:
        raise ValidationError(str(e)) from e

    entry_date = str(data.get("entry_date") or "").strip()
    if entry_date:
        try:
            parse_entry_date(entry_date)
        except ValueError as e:
            raise ValidationError(f"Invalid entry_date: {entry_date!r}") from e
    else:
        entry_date = (now or datetime.now(timezone.utc)).isoformat()

    quantity = _form_float(data, "quantity")
    if quantity is None:
        quantity = 1.0
    elif quantity <= 0:
        raise ValidationError("quantity must be positive")
    exit_price = _form_float(data, "exit_price")
    stop_loss = _form_float(data, "stop_loss")
    take_profit = _form_float(data, "take_profit")

    sl_pct = _form_float(data, "stop_loss_pct")
    if sl_pct is not None and entry_price:
        stop_loss = price_from_percent(trade_type, entry_price, sl_pct, "sl")
    tp_pct = _form_float(data, "take_profit_pct")
    if tp_pct is not None and entry_price:
        take_profit = price_from_percent(trade_type, entry_price, tp_pct, "tp")

    if "pnl" in data:
        pnl = _form_float(data, "pnl")
    elif exit_price is not None:
        pnl = calculate_pnl(trade_type, entry_price, exit_price, quantity)
    else:
        pnl = None
    if status != TradeStatus.CLOSED:
        pnl = None

    tags = data.get("tags") or []
    if isinstance(tags, str):
        tags = [t.strip() for t in tags.split(",") if t.strip()]

    notes = str(data.get("notes") or "")
    psychology = data.get("psychology_tags") or []
    if isinstance(psychology, str):
        psychology = psychology.split(",")
    for tag in psychology:
        tag = str(tag).strip().lstrip("#")
        if tag:
            notes = add_psychology_tag(notes, tag)

    return Trade(
        id=trade_id or str(data.get("id") or "") or new_trade_id(),
        symbol=symbol.upper(),
        type=trade_type,
        status=status,
        entry_date=entry_date,
        entry_price=entry_price,
        quantity=quantity,
        expiry_date=str(data.get("expiry_date") or "").strip() or None,
        exit_price=exit_price,
        stop_loss=stop_loss,
        take_profit=take_profit,
        pnl=pnl,
        setup=str(data.get("setup") or "").strip() or "General",
        notes=notes,
        tags=list(tags),
    )
