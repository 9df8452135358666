"""
session.py
----------

A ``JournalSession`` is one user's working copy of their trades and
daily notes. Views read from the cached lists; mutations are applied to
the cache first and then written to the store. If the write fails, the
whole cache is thrown away and reloaded from the store, which is the
only recovery strategy there is. The store's change feed triggers the
same reload for writes to this user's rows, so edits made elsewhere
show up on the next read.

Two quick mutations that both fail may race; the last reload wins.
"""

import logging
import threading
from collections import OrderedDict
from datetime import date
from typing import List, Optional

from . import analytics, calendar_view, equity
from .database import TradeJournalDB
from .errors import JournalError
from .models import DailyNote, Trade

log = logging.getLogger(__name__)

DEFAULT_MAX_SESSIONS = 256


class JournalSession:
    def __init__(self, db: TradeJournalDB, user_id: str) -> None:
        self.db = db
        self.user_id = user_id
        self.trades: List[Trade] = []
        self.notes: List[DailyNote] = []
        self.last_error: Optional[str] = None
        self._unsubscribe = db.changes.subscribe(self._on_change)

    # ---------- sync ----------
    def _on_change(self, table: str, event: str, user_id: str) -> None:
        # other users' rows are invisible to this session
        if user_id != self.user_id:
            return
        self.reload()

    def reload(self) -> bool:
        """Replace the cached trades and notes with the store's current rows."""
        try:
            trades = self.db.list_trades(self.user_id)
            notes = self.db.list_notes(self.user_id)
        except JournalError as e:
            log.error("Error loading data for %s: %s", self.user_id, e)
            return False
        self.trades = trades
        self.notes = notes
        return True

    def _fail(self, action: str, err: JournalError) -> bool:
        log.error("%s for %s: %s", action, self.user_id, err)
        self.last_error = f"{action}: {err}"
        self.reload()
        return False

    # ---------- mutations ----------
    def save_trade(self, trade: Trade) -> bool:
        """Add or replace ``trade``. Returns False (and sets ``last_error``) on failure."""
        self.last_error = None
        if any(t.id == trade.id for t in self.trades):
            self.trades = [trade if t.id == trade.id else t for t in self.trades]
        else:
            self.trades = [trade] + self.trades
        try:
            self.db.upsert_trade(self.user_id, trade)
        except JournalError as e:
            return self._fail("Failed to save trade to cloud", e)
        return True

    def delete_trade(self, trade_id: str) -> bool:
        self.last_error = None
        self.trades = [t for t in self.trades if t.id != trade_id]
        try:
            self.db.delete_trade(self.user_id, trade_id)
        except JournalError as e:
            return self._fail("Failed to delete trade from cloud", e)
        return True

    def save_note(self, note: DailyNote) -> bool:
        self.last_error = None
        self.notes = [n for n in self.notes if n.date != note.date] + [note]
        try:
            self.db.upsert_note(self.user_id, note)
        except JournalError as e:
            return self._fail("Failed to save note to cloud", e)
        return True

    def find_trade(self, trade_id: str) -> Optional[Trade]:
        return next((t for t in self.trades if t.id == trade_id), None)

    # ---------- derived views ----------
    def stats(self) -> analytics.DashboardStats:
        return analytics.compute_stats(self.trades)

    def equity_curve(self) -> List[equity.EquityPoint]:
        return equity.equity_curve(self.trades)

    def monthly_pnl(self) -> List[equity.MonthlyPoint]:
        return equity.monthly_pnl(self.trades)

    def calendar(self, year: int, month: int) -> calendar_view.CalendarMonth:
        return calendar_view.build_month(self.trades, self.notes, year, month)

    def daily_report(self, day: Optional[date] = None) -> Optional[analytics.DailyReport]:
        return analytics.daily_report(self.trades, day)

    def close(self) -> None:
        """Stop listening for store changes. In-flight calls are not cancelled."""
        self._unsubscribe()


class SessionRegistry:
    """Live ``JournalSession`` objects, at most one per user.

    At most ``max_sessions`` are kept; the least recently used session
    is closed and dropped to make room for a new user. A dropped user
    simply gets a freshly loaded session on their next request.
    """

    def __init__(self, db: TradeJournalDB, max_sessions: int = DEFAULT_MAX_SESSIONS) -> None:
        if max_sessions < 1:
            raise ValueError("max_sessions must be at least 1")
        self.db = db
        self.max_sessions = max_sessions
        self._lock = threading.Lock()
        self._sessions: "OrderedDict[str, JournalSession]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._sessions)

    def get(self, user_id: str) -> JournalSession:
        with self._lock:
            session = self._sessions.get(user_id)
            if session is not None:
                self._sessions.move_to_end(user_id)
                return session
            while len(self._sessions) >= self.max_sessions:
                evicted_id, evicted = self._sessions.popitem(last=False)
                evicted.close()
                log.debug("Evicted session for %s", evicted_id)
            session = JournalSession(self.db, user_id)
            session.reload()
            self._sessions[user_id] = session
            return session

    def close_all(self) -> None:
        with self._lock:
            for session in self._sessions.values():
                session.close()
            self._sessions.clear()
