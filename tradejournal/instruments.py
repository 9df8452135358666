"""
instruments.py
--------------

Static reference data for the instruments traded on NSE/BSE: lot sizes
for index derivatives and a handful of F&O stocks, and the weekday on
which each index's weekly contract expires. These are configuration
tables, so the sizing and form logic only ever look values up here.
"""

from datetime import date, timedelta
from typing import Dict, List, Optional, Tuple

# Lots offered by the position sizing calculator. EQUITY sizes in shares.
CALCULATOR_LOT_SIZES: Dict[str, int] = {
    "NIFTY": 75,
    "BANKNIFTY": 15,
    "FINNIFTY": 25,
    "MIDCPNIFTY": 50,
    "SENSEX": 10,
    "EQUITY": 1,
}

# Lots pre-filled into the trade form when a known underlying is picked.
# A zero entry means "known symbol, no fixed lot".
FORM_LOT_SIZES: Dict[str, int] = {
    "NIFTY": 75,
    "BANKNIFTY": 15,
    "FINNIFTY": 25,
    "SENSEX": 10,
    "MIDCPNIFTY": 50,
    "RELIANCE": 250,
    "HDFCBANK": 550,
    "SBIN": 1500,
    "TATAMOTORS": 1425,
    "PBFINTECH": 0,
}

INDIAN_INDICES: List[str] = ["NIFTY", "BANKNIFTY", "FINNIFTY", "SENSEX", "MIDCPNIFTY"]

COMMON_STOCKS: List[str] = [
    "PBFINTECH", "RELIANCE", "HDFCBANK", "SBIN", "INFY", "TCS",
    "TATAMOTORS", "BAJFINANCE", "ZOMATO", "ADANIENT", "ICICIBANK",
]

OPTION_TYPES: List[str] = ["CE", "PE", "FUT"]

# Weekly expiry weekday per index (Monday=0). Order matters: the match is
# a substring test and "NIFTY" is contained in the longer index names.
EXPIRY_WEEKDAYS: List[Tuple[str, int]] = [
    ("MIDCPNIFTY", 0),
    ("FINNIFTY", 1),
    ("BANKNIFTY", 2),
    ("NIFTY", 1),
    ("SENSEX", 4),
]

SUGGESTED_STRATEGIES: List[str] = [
    "Option Buying",
    "Option Selling",
    "Futures Intraday",
    "Futures Swing",
    "Hero Zero",
    "Fibonacci",
    "EMA",
    "YouTube",
    "Randomly",
    "Price Action",
    "Support & Resistance",
    "OI Data",
    "Breakout",
    "Scalping",
    "BTST",
]

PSYCHOLOGY_TAGS: List[str] = [
    "Frustrated",
    "Chill",
    "Calm",
    "Revenge",
    "FOMO",
    "Greedy",
    "Disciplined",
    "Impulsive",
    "Fearful",
    "Confident",
]


def calculator_lot_size(instrument: str) -> int:
    """Lot size used by the sizing calculator; anything unknown trades in units of 1."""
    lot = CALCULATOR_LOT_SIZES.get((instrument or "").strip().upper(), 1)
    return lot if lot > 0 else 1


def form_lot_size(symbol: str) -> Optional[int]:
    """Default quantity for a symbol picked in the trade form, if one is configured."""
    lot = FORM_LOT_SIZES.get((symbol or "").strip().upper())
    return lot or None


def expiry_weekday(symbol: str) -> Optional[int]:
    upper = (symbol or "").upper()
    for needle, weekday in EXPIRY_WEEKDAYS:
        if needle in upper:
            return weekday
    return None


def next_expiry(symbol: str, ref_date: date) -> Optional[date]:
    """Return the first date on or after ``ref_date`` on the symbol's expiry weekday.

    Parameters
    ----------
    symbol: str
        Free-text symbol, e.g. ``"BANKNIFTY 48000 CE"``.
    ref_date: date
        Usually the trade's entry date.

    Returns
    -------
    Optional[date]
        ``None`` when the symbol is not a weekly-expiry index.
    """
    target = expiry_weekday(symbol)
    if target is None:
        return None
    days_until = (target - ref_date.weekday()) % 7
    return ref_date + timedelta(days=days_until)


def build_option_symbol(underlying: str, option_type: str, strike: str = "") -> str:
    """Compose ``"<UNDERLYING> <STRIKE> <CE|PE>"`` or ``"<UNDERLYING> FUT"``."""
    underlying = underlying.strip().upper()
    option_type = option_type.strip().upper()
    if option_type == "FUT":
        return f"{underlying} FUT"
    if strike:
        return f"{underlying} {strike.strip()} {option_type}"
    return toggle_option_type(underlying, option_type)


def toggle_option_type(symbol: str, option_type: str) -> str:
    """Replace a trailing CE/PE/FUT token on ``symbol`` with ``option_type``."""
    parts = symbol.strip().split()
    if parts and parts[-1].upper() in OPTION_TYPES:
        parts.pop()
    current = " ".join(parts)
    if not current:
        return option_type
    return f"{current} {option_type}".strip()
