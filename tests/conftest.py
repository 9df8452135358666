import pytest

from tradejournal.database import TradeJournalDB
from tradejournal.models import Trade, TradeStatus, TradeType


def make_trade(id="t1", pnl=None, status=TradeStatus.CLOSED, entry_date="2024-01-05",
               setup="EMA", notes="", **kw):
    return Trade(
        id=id,
        symbol=kw.pop("symbol", "NIFTY 24500 CE"),
        type=kw.pop("type", TradeType.LONG),
        status=status,
        entry_date=entry_date,
        entry_price=kw.pop("entry_price", 100.0),
        quantity=kw.pop("quantity", 75.0),
        pnl=pnl,
        setup=setup,
        notes=notes,
        **kw,
    )


@pytest.fixture
def db(tmp_path):
    store = TradeJournalDB(str(tmp_path / "journal.db"))
    yield store
    store.close()
