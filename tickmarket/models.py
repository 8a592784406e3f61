# tickmarket/models.py
from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Tuple

GoodUid = int

GOODS: Tuple[str, ...] = ("Grain",)


def good_name(good_uid: GoodUid) -> str:
    if 0 <= good_uid < len(GOODS):
        return GOODS[good_uid]
    return f"good-{good_uid}"


class Side(Enum):
    BUY = 1
    SELL = -1


OrderId = int


@dataclass(slots=True)
class Order:
    """
    One side of one agent's request for one good during one tick.
    - requested: quantity the agent wants to trade (non-negative int)
    - filled: quantity matched so far, only ever raised by the clearing engine
    - weight: prestige; higher weight is served first, grouped by int(weight)
    """
    id: OrderId
    side: Side
    requested: int
    weight: float = 0.0
    filled: int = 0

    def __post_init__(self) -> None:
        if self.requested < 0:
            raise ValueError("requested quantity must be non-negative")
        if not math.isfinite(self.weight):
            raise ValueError("priority weight must be a finite number")
        if not 0 <= self.filled <= self.requested:
            raise ValueError("filled must lie in [0, requested]")

    @property
    def missing(self) -> int:
        return self.requested - self.filled

    @property
    def is_filled(self) -> bool:
        return self.filled == self.requested

    @property
    def bucket(self) -> int:
        return int(self.weight)


@dataclass(frozen=True, slots=True)
class TradeResult:
    """
    Settlement handed back to the agent owning an order.
    total_cost is charged to buyers and paid to sellers.
    """
    side: Side
    filled: int
    total_cost: float
