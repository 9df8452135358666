"""
database.py
-----------

This module encapsulates all interactions with the SQLite database used
to persist trades and daily notes. Keeping database logic here makes it
easy to change the storage backend in the future (e.g. a hosted
PostgreSQL) without affecting other parts of the application.

Every row carries the owning ``user_id`` and every query is scoped to
it, so one user can never read or overwrite another user's rows. Any
successful write is announced on the store's ``ChangeFeed`` together with
the owning user, so listeners can ignore rows they would not see.
"""

import json
import logging
import sqlite3
import threading
from contextlib import contextmanager
from typing import Callable, Iterator, List, Optional

from .errors import AuthRequiredError, StoreError
from .models import DailyNote, Trade, TradeStatus, TradeType

log = logging.getLogger(__name__)

ChangeCallback = Callable[[str, str, str], None]

TRADE_COLUMNS = (
    "id", "user_id", "symbol", "type", "status", "entry_date", "expiry_date",
    "entry_price", "exit_price", "quantity", "stop_loss", "take_profit",
    "pnl", "setup", "notes", "tags",
)


class ChangeFeed:
    """Fan-out of (table, event, user_id) notifications to registered callbacks."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._listeners: List[ChangeCallback] = []

    def subscribe(self, callback: ChangeCallback) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._listeners:
                    self._listeners.remove(callback)

        return unsubscribe

    def notify(self, table: str, event: str, user_id: str) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for cb in listeners:
            try:
                cb(table, event, user_id)
            except Exception:
                log.exception("change listener failed for %s %s (%s)", table, event, user_id)


class TradeJournalDB:
    """SQLite-backed repository for trades + daily notes."""

    def __init__(self, db_path: str = "tradejournal.db") -> None:
        self.db_path = db_path
        self.conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        self.changes = ChangeFeed()
        self._create_tables()

    # ---------- schema ----------
    def _create_tables(self) -> None:
        """Create required tables (trades, daily_notes) and indexes."""
        with self.conn:
            self.conn.execute(
                """
                CREATE TABLE IF NOT EXISTS trades (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    symbol TEXT NOT NULL,
                    type TEXT NOT NULL CHECK (type IN ('LONG','SHORT')),
                    status TEXT NOT NULL CHECK (status IN ('OPEN','CLOSED','PENDING')),
                    entry_date TEXT NOT NULL, -- ISO8601, stored verbatim
                    expiry_date TEXT,
                    entry_price REAL NOT NULL,
                    exit_price REAL,
                    quantity REAL NOT NULL,
                    stop_loss REAL,
                    take_profit REAL,
                    pnl REAL,
                    setup TEXT,
                    notes TEXT,
                    tags TEXT, -- JSON array
                    created_at TEXT DEFAULT CURRENT_TIMESTAMP
                )
                """
            )
            self.conn.execute(
                """
                CREATE TABLE IF NOT EXISTS daily_notes (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id TEXT NOT NULL,
                    date TEXT NOT NULL, -- YYYY-MM-DD
                    content TEXT,
                    mood TEXT,
                    created_at TEXT DEFAULT CURRENT_TIMESTAMP,
                    UNIQUE(user_id, date)
                )
                """
            )
            self.conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_trades_user_entry ON trades(user_id, entry_date)"
            )

    @contextmanager
    def _guard(self, operation: str) -> Iterator[None]:
        try:
            yield
        except sqlite3.Error as e:
            log.error("%s failed: %s", operation, e)
            raise StoreError(operation, str(e), e) from e

    @staticmethod
    def _require_user(user_id: Optional[str]) -> str:
        if not user_id:
            raise AuthRequiredError()
        return user_id

    # ---------- trades ----------
    def list_trades(self, user_id: Optional[str]) -> List[Trade]:
        """Return the user's trades, newest entry first."""
        if not user_id:
            return []
        with self._guard("list_trades"):
            cur = self.conn.execute(
                "SELECT * FROM trades WHERE user_id = ? ORDER BY entry_date DESC",
                (user_id,),
            )
            rows = cur.fetchall()
        return [self._row_to_trade(r) for r in rows]

    def upsert_trade(self, user_id: Optional[str], trade: Trade) -> None:
        """Insert the trade or replace every column of the existing row with the same id."""
        user_id = self._require_user(user_id)
        values = (
            trade.id,
            user_id,
            trade.symbol,
            trade.type.value,
            trade.status.value,
            trade.entry_date,
            trade.expiry_date,
            trade.entry_price,
            trade.exit_price,
            trade.quantity,
            trade.stop_loss,
            trade.take_profit,
            trade.pnl,
            trade.setup,
            trade.notes,
            json.dumps(list(trade.tags)),
        )
        updates = ", ".join(f"{c}=excluded.{c}" for c in TRADE_COLUMNS if c not in ("id", "user_id"))
        placeholders = ", ".join("?" for _ in TRADE_COLUMNS)
        with self._guard("upsert_trade"):
            with self.conn:
                cur = self.conn.execute(
                    f"""
                    INSERT INTO trades ({", ".join(TRADE_COLUMNS)})
                    VALUES ({placeholders})
                    ON CONFLICT(id) DO UPDATE SET {updates}
                    WHERE trades.user_id = excluded.user_id
                    """,
                    values,
                )
        if cur.rowcount == 0:
            raise StoreError("upsert_trade", f"trade {trade.id} belongs to another user")
        self.changes.notify("trades", "UPSERT", user_id)

    def delete_trade(self, user_id: Optional[str], trade_id: str) -> None:
        user_id = self._require_user(user_id)
        with self._guard("delete_trade"):
            with self.conn:
                self.conn.execute(
                    "DELETE FROM trades WHERE id = ? AND user_id = ?",
                    (trade_id, user_id),
                )
        self.changes.notify("trades", "DELETE", user_id)

    def _row_to_trade(self, row: sqlite3.Row) -> Trade:
        """Convert DB row -> Trade."""
        return Trade(
            id=row["id"],
            symbol=row["symbol"],
            type=TradeType(row["type"]),
            status=TradeStatus(row["status"]),
            entry_date=row["entry_date"],
            expiry_date=row["expiry_date"],
            entry_price=float(row["entry_price"]),
            exit_price=row["exit_price"],
            quantity=float(row["quantity"]),
            stop_loss=row["stop_loss"],
            take_profit=row["take_profit"],
            pnl=row["pnl"],
            setup=row["setup"] or "",
            notes=row["notes"] or "",
            tags=json.loads(row["tags"]) if row["tags"] else [],
        )

    # ---------- daily notes ----------
    def list_notes(self, user_id: Optional[str]) -> List[DailyNote]:
        if not user_id:
            return []
        with self._guard("list_notes"):
            cur = self.conn.execute(
                "SELECT date, content, mood FROM daily_notes WHERE user_id = ? ORDER BY date",
                (user_id,),
            )
            rows = cur.fetchall()
        return [DailyNote(date=r["date"], content=r["content"] or "", mood=r["mood"]) for r in rows]

    def upsert_note(self, user_id: Optional[str], note: DailyNote) -> None:
        """Insert the note, or overwrite the user's existing note for that date."""
        user_id = self._require_user(user_id)
        with self._guard("upsert_note"):
            with self.conn:
                self.conn.execute(
                    """
                    INSERT INTO daily_notes(user_id, date, content, mood)
                    VALUES (?, ?, ?, ?)
                    ON CONFLICT(user_id, date) DO UPDATE SET
                        content=excluded.content,
                        mood=excluded.mood
                    """,
                    (user_id, note.date, note.content, note.mood),
                )
        self.changes.notify("daily_notes", "UPSERT", user_id)

    # ---------- housekeeping ----------
    def close(self) -> None:
        self.conn.close()
