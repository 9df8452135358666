from unittest.mock import MagicMock

import pytest

from tradejournal.errors import AuthRequiredError, StoreError
from tradejournal.models import DailyNote, TradeStatus

from conftest import make_trade


def test_list_is_newest_first_and_scoped_to_user(db):
    db.upsert_trade("alice", make_trade("a1", pnl=10, entry_date="2024-01-05"))
    db.upsert_trade("alice", make_trade("a2", pnl=20, entry_date="2024-02-05"))
    db.upsert_trade("bob", make_trade("b1", pnl=30, entry_date="2024-03-05"))

    assert [t.id for t in db.list_trades("alice")] == ["a2", "a1"]
    assert [t.id for t in db.list_trades("bob")] == ["b1"]
    assert db.list_trades(None) == []


def test_upsert_replaces_the_whole_row(db):
    original = make_trade("t1", pnl=None, status=TradeStatus.OPEN, notes="#Calm", tags=["swing"],
                          stop_loss=90.0)
    db.upsert_trade("alice", original)

    edited = make_trade("t1", pnl=55.5, notes="closed early")
    db.upsert_trade("alice", edited)

    (stored,) = db.list_trades("alice")
    assert stored == edited
    assert stored.stop_loss is None
    assert stored.tags == []


def test_cannot_overwrite_another_users_trade(db):
    db.upsert_trade("alice", make_trade("t1", pnl=10))
    with pytest.raises(StoreError):
        db.upsert_trade("mallory", make_trade("t1", pnl=-999))
    assert db.list_trades("alice")[0].pnl == 10
    assert db.list_trades("mallory") == []


def test_mutations_require_a_user(db):
    with pytest.raises(AuthRequiredError):
        db.upsert_trade(None, make_trade("t1"))
    with pytest.raises(AuthRequiredError):
        db.delete_trade("", "t1")
    with pytest.raises(AuthRequiredError):
        db.upsert_note(None, DailyNote(date="2024-01-05"))


def test_delete_only_touches_own_rows(db):
    db.upsert_trade("alice", make_trade("t1"))
    db.delete_trade("bob", "t1")
    assert len(db.list_trades("alice")) == 1
    db.delete_trade("alice", "t1")
    assert db.list_trades("alice") == []


def test_one_note_per_user_and_day(db):
    db.upsert_note("alice", DailyNote(date="2024-01-05", content="first", mood="Sad"))
    db.upsert_note("alice", DailyNote(date="2024-01-05", content="second", mood="Happy"))
    db.upsert_note("bob", DailyNote(date="2024-01-05", content="bob's"))

    assert db.list_notes("alice") == [DailyNote(date="2024-01-05", content="second", mood="Happy")]
    assert db.list_notes("bob")[0].content == "bob's"


def test_change_feed_announces_writes(db):
    listener = MagicMock()
    unsubscribe = db.changes.subscribe(listener)

    db.upsert_trade("alice", make_trade("t1"))
    db.delete_trade("alice", "t1")
    db.upsert_note("alice", DailyNote(date="2024-01-05"))
    assert [c.args for c in listener.call_args_list] == [
        ("trades", "UPSERT", "alice"), ("trades", "DELETE", "alice"),
        ("daily_notes", "UPSERT", "alice"),
    ]

    unsubscribe()
    db.upsert_trade("alice", make_trade("t2"))
    assert listener.call_count == 3


def test_failing_listener_does_not_break_writes(db):
    db.changes.subscribe(MagicMock(side_effect=RuntimeError("boom")))
    db.upsert_trade("alice", make_trade("t1"))
    assert len(db.list_trades("alice")) == 1


def test_sqlite_errors_become_store_errors(db):
    db.close()
    with pytest.raises(StoreError):
        db.list_trades("alice")
