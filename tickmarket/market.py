# tickmarket/market.py
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Optional

from .clearing import ClearingEngine
from .core import OrderBook
from .models import GoodUid, OrderId, Side, TradeResult, good_name

logger = logging.getLogger(__name__)


class Market(ABC):
    """
    What agents and the driver may do with a single-good market.

    Per tick: register_order* -> run_trade -> retrieve_order_result* -> clear_state.
    """

    @property
    @abstractmethod
    def good_uid(self) -> GoodUid: ...

    @property
    @abstractmethod
    def price_per_unit(self) -> float: ...

    @abstractmethod
    def register_order(self, side: Side, quantity: int, priority_weight: float) -> OrderId: ...

    @abstractmethod
    def run_trade(self) -> int: ...

    @abstractmethod
    def retrieve_order_result(self, order_id: OrderId) -> Optional[TradeResult]: ...

    @abstractmethod
    def clear_state(self) -> None: ...


class FixedPriceMarket(Market):
    """Market whose unit price is set from outside; clearing only decides quantities."""

    def __init__(
        self,
        good_uid: GoodUid,
        price_per_unit: float,
        metadata: str = "",
        engine: Optional[ClearingEngine] = None,
        check_invariants: bool = False,
    ) -> None:
        self.book = OrderBook(good_uid=good_uid, price_per_unit=price_per_unit, check_invariants=check_invariants)
        self.engine = engine if engine is not None else ClearingEngine()
        self.metadata = metadata
        self.last_traded: int = 0

    def __repr__(self) -> str:
        return (
            f"FixedPriceMarket(good={good_name(self.good_uid)!r}, price={self.price_per_unit}, "
            f"buys={len(self.book.buy_orders)}, sells={len(self.book.sell_orders)})"
        )

    @property
    def good_uid(self) -> GoodUid:
        return self.book.good_uid

    @property
    def price_per_unit(self) -> float:
        return self.book.price_per_unit

    def register_order(self, side: Side, quantity: int, priority_weight: float) -> OrderId:
        return self.book.register(side, quantity, priority_weight)

    def run_trade(self) -> int:
        self.last_traded = self.engine.clear(self.book)
        logger.debug("%s traded %d", good_name(self.good_uid), self.last_traded)
        return self.last_traded

    def retrieve_order_result(self, order_id: OrderId) -> Optional[TradeResult]:
        return self.book.retrieve_result(order_id)

    def clear_state(self) -> None:
        self.book.clear_state()
        self.last_traded = 0
