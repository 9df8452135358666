from unittest.mock import patch

from tradejournal.errors import StoreError
from tradejournal.models import DailyNote
from tradejournal.session import JournalSession, SessionRegistry

from conftest import make_trade


def test_save_and_edit_trade(db):
    s = JournalSession(db, "alice")
    assert s.save_trade(make_trade("t1", pnl=100))
    assert s.save_trade(make_trade("t1", pnl=150))
    assert [t.pnl for t in s.trades] == [150]
    assert s.stats().net_pnl == 150
    assert s.last_error is None


def test_failed_save_reverts_by_reloading(db):
    s = JournalSession(db, "alice")
    s.save_trade(make_trade("t1", pnl=100))

    with patch.object(db, "upsert_trade", side_effect=StoreError("upsert_trade", "offline")):
        assert not s.save_trade(make_trade("t2", pnl=-20))

    assert [t.id for t in s.trades] == ["t1"]
    assert "Failed to save trade to cloud" in s.last_error


def test_failed_delete_restores_trade(db):
    s = JournalSession(db, "alice")
    s.save_trade(make_trade("t1", pnl=100))

    with patch.object(db, "delete_trade", side_effect=StoreError("delete_trade", "offline")):
        assert not s.delete_trade("t1")

    assert [t.id for t in s.trades] == ["t1"]
    assert "Failed to delete trade from cloud" in s.last_error


def test_failed_note_save_restores_old_note(db):
    s = JournalSession(db, "alice")
    s.save_note(DailyNote(date="2024-01-05", content="kept"))

    with patch.object(db, "upsert_note", side_effect=StoreError("upsert_note", "offline")):
        assert not s.save_note(DailyNote(date="2024-01-05", content="lost"))

    assert [n.content for n in s.notes] == ["kept"]


def test_reload_failure_keeps_cached_copy(db):
    s = JournalSession(db, "alice")
    s.save_trade(make_trade("t1", pnl=100))
    with patch.object(db, "list_trades", side_effect=StoreError("list_trades", "offline")):
        assert not s.reload()
    assert [t.id for t in s.trades] == ["t1"]


def test_changes_from_another_session_are_picked_up(db):
    web = JournalSession(db, "alice")
    phone = JournalSession(db, "alice")
    phone.save_trade(make_trade("t1", pnl=42))
    assert [t.id for t in web.trades] == ["t1"]

    web.close()
    phone.save_trade(make_trade("t2", pnl=1, entry_date="2024-02-01"))
    assert [t.id for t in web.trades] == ["t1"]


def test_derived_views_use_cached_data(db):
    s = JournalSession(db, "alice")
    s.save_trade(make_trade("t1", pnl=100, entry_date="2024-01-05"))
    s.save_note(DailyNote(date="2024-01-06", content="review"))

    assert [p.equity for p in s.equity_curve()] == [100]
    assert s.monthly_pnl()[0].name == "Jan 24"
    cells = {c.date: c for c in s.calendar(2024, 1).cells if c}
    assert cells["2024-01-05"].has_trades
    assert cells["2024-01-06"].has_note


def test_registry_reuses_sessions(db):
    db.upsert_trade("alice", make_trade("t1"))
    registry = SessionRegistry(db)
    first = registry.get("alice")
    assert registry.get("alice") is first
    assert [t.id for t in first.trades] == ["t1"]
    assert registry.get("bob") is not first
    registry.close_all()


def test_other_users_writes_do_not_reload(db):
    alice = JournalSession(db, "alice")
    with patch.object(db, "list_trades", wraps=db.list_trades) as list_trades:
        db.upsert_trade("bob", make_trade("b1", pnl=5))
        db.upsert_note("bob", DailyNote(date="2024-01-05"))
        assert list_trades.call_count == 0

        db.upsert_trade("alice", make_trade("a1", pnl=5))
        assert list_trades.call_count == 1
    assert [t.id for t in alice.trades] == ["a1"]
    alice.close()


def test_registry_evicts_least_recently_used(db):
    registry = SessionRegistry(db, max_sessions=2)
    alice = registry.get("alice")
    bob = registry.get("bob")
    assert registry.get("alice") is alice
    carol = registry.get("carol")

    assert len(registry) == 2
    assert registry.get("alice") is alice
    assert registry.get("carol") is carol

    # bob's evicted session no longer follows the store
    db.upsert_trade("bob", make_trade("b1"))
    assert bob.trades == []
    assert [t.id for t in registry.get("bob").trades] == ["b1"]
    registry.close_all()
