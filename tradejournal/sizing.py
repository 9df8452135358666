"""
sizing.py
---------

Position sizing: how many units (rounded down to whole lots) can be
bought so that hitting the stop loses at most ``risk_percent`` of the
capital. Purely advisory; nothing is stored.
"""

import math
from dataclasses import asdict, dataclass
from typing import Any, Dict

from .instruments import calculator_lot_size


@dataclass
class PositionSize:
    risk_amount: float = 0.0
    sl_points: float = 0.0
    quantity: int = 0
    lots: int = 0
    lot_size: int = 1
    total_value: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def calculate_position(
    capital: float,
    risk_percent: float,
    entry_price: float,
    stop_loss: float,
    instrument: str = "NIFTY",
) -> PositionSize:
    """Recommend a quantity for the given risk budget.

    Parameters
    ----------
    capital: float
        Account capital.
    risk_percent: float
        Percentage of capital to risk on this trade.
    entry_price, stop_loss: float
        Both must be positive for a size to be computed.
    instrument: str
        Key into the lot size table; unknown names trade in units of 1.

    Returns
    -------
    PositionSize
        Quantity is always a whole multiple of the lot size and never
        risks more than ``risk_amount``. Degenerate inputs give zeros.
    """
    lot_size = calculator_lot_size(instrument)
    result = PositionSize(risk_amount=capital * risk_percent / 100, lot_size=lot_size)

    if entry_price <= 0 or stop_loss <= 0:
        return result

    result.sl_points = abs(entry_price - stop_loss)
    if result.sl_points <= 0 or result.risk_amount <= 0:
        return result

    qty = math.floor(result.risk_amount / result.sl_points)
    # float division can land a hair above an integer boundary
    while qty > 0 and qty * result.sl_points > result.risk_amount:
        qty -= 1

    if lot_size > 1:
        result.lots = qty // lot_size
        result.quantity = result.lots * lot_size
    else:
        result.quantity = qty
        result.lots = qty

    result.total_value = result.quantity * entry_price
    return result
