"""
export.py
---------

Manual backup of a user's journal. ``build_snapshot`` gathers settings,
trades and notes into one JSON document; ``trades_to_csv`` produces the
spreadsheet-friendly trade log. ``import_snapshot`` always refuses.
"""

import csv
import io
import json
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

from .errors import ImportDisabledError
from .models import DailyNote, Trade

SNAPSHOT_VERSION = "1.0"

CSV_HEADER = [
    "id", "symbol", "type", "status", "entry_date", "expiry_date",
    "entry_price", "exit_price", "quantity", "stop_loss", "take_profit",
    "pnl", "setup", "notes", "tags",
]


def build_snapshot(
    settings: Dict[str, Any],
    trades: List[Trade],
    notes: List[DailyNote],
    user: Optional[Dict[str, Any]] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    return {
        "version": SNAPSHOT_VERSION,
        "timestamp": (now or datetime.now(timezone.utc)).isoformat(),
        "user": user or {"name": "User"},
        "settings": settings,
        "trades": [t.to_dict() for t in trades],
        "dailyNotes": [n.to_dict() for n in notes],
    }


def snapshot_to_json(snapshot: Dict[str, Any]) -> str:
    return json.dumps(snapshot, indent=2, ensure_ascii=False)


def backup_filename(day: Optional[date] = None) -> str:
    day = day or datetime.now(timezone.utc).date()
    return f"TradeJournal_Backup_{day.isoformat()}.json"


def trades_to_csv(trades: List[Trade]) -> str:
    out = io.StringIO()
    w = csv.writer(out)
    w.writerow(CSV_HEADER)
    for t in trades:
        w.writerow([
            t.id,
            t.symbol,
            t.type.value,
            t.status.value,
            t.entry_date,
            t.expiry_date or "",
            t.entry_price,
            "" if t.exit_price is None else t.exit_price,
            t.quantity,
            "" if t.stop_loss is None else t.stop_loss,
            "" if t.take_profit is None else t.take_profit,
            "" if t.pnl is None else t.pnl,
            t.setup,
            (t.notes or "").replace("\n", " ").strip(),
            " ".join(t.tags),
        ])
    return out.getvalue()


def import_snapshot(document: str) -> None:
    """Importing into the hosted store is disabled in this version."""
    raise ImportDisabledError()
