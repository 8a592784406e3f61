# tickmarket/core.py
from __future__ import annotations

import itertools
import logging
import math
import operator
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Set

from .errors import InvariantViolation
from .models import GoodUid, Order, OrderId, Side, TradeResult

logger = logging.getLogger(__name__)


class OrderBook:
    """
    Per-good, per-tick container of pending buy and sell orders.

    Data structures:
      - one list per side, in registration order
      - id_index mapping every live id to its order for O(1) lookup
      - itertools.count owned by the book as the id source
    Invariants (enforced via assert_invariants on demand):
      - 0 <= filled <= requested for every order
      - ids unique across both sides until clear_state
    """

    def __init__(self, good_uid: GoodUid = 0, price_per_unit: float = 1.0, check_invariants: bool = False) -> None:
        if price_per_unit < 0 or math.isnan(price_per_unit):
            raise ValueError("price_per_unit must be a non-negative number")
        self.good_uid: GoodUid = good_uid
        self.price_per_unit: float = float(price_per_unit)
        self._buys: List[Order] = []
        self._sells: List[Order] = []
        self._id_index: Dict[OrderId, Order] = {}
        self._retrieved: Set[OrderId] = set()
        self._ids: Iterator[int] = itertools.count(1)
        self._check: bool = check_invariants

    def __len__(self) -> int:
        return len(self._buys) + len(self._sells)

    @property
    def buy_orders(self) -> Sequence[Order]:
        return tuple(self._buys)

    @property
    def sell_orders(self) -> Sequence[Order]:
        return tuple(self._sells)

    def orders(self, side: Side) -> Sequence[Order]:
        return self.buy_orders if side is Side.BUY else self.sell_orders

    def register(self, side: Side, requested_quantity: int, priority_weight: float) -> OrderId:
        if not isinstance(side, Side):
            raise ValueError(f"unknown order side: {side!r}")
        if isinstance(requested_quantity, bool):
            raise ValueError("requested quantity must be an integer, got a bool")
        try:
            requested = operator.index(requested_quantity)
        except TypeError:
            raise ValueError(f"requested quantity must be an integer: {requested_quantity!r}") from None
        oid = next(self._ids)
        order = Order(id=oid, side=side, requested=requested, weight=float(priority_weight))
        (self._buys if side is Side.BUY else self._sells).append(order)
        self._id_index[oid] = order
        logger.debug("good=%s registered %s #%d qty=%d weight=%s", self.good_uid, side.name, oid, order.requested, order.weight)
        return oid

    def retrieve_result(self, order_id: OrderId) -> Optional[TradeResult]:
        """
        Settlement for ``order_id``, handed out once per tick.

        None when the id was never registered, was already retrieved, or was
        dropped by clear_state. The order itself stays in the book until then.
        """
        order = self._id_index.get(order_id)
        if order is None or order_id in self._retrieved:
            return None
        self._retrieved.add(order_id)
        return TradeResult(side=order.side, filled=order.filled, total_cost=order.filled * self.price_per_unit)

    def pending_results(self) -> int:
        return len(self._id_index) - len(self._retrieved)

    def clear_state(self) -> None:
        pending = self.pending_results()
        if pending:
            logger.debug("good=%s clearing with %d unretrieved results", self.good_uid, pending)
        self._buys.clear()
        self._sells.clear()
        self._id_index.clear()
        self._retrieved.clear()

    def replace_orders(self, buys: Iterable[Order], sells: Iterable[Order]) -> None:
        """Install processed orders; the set of ids must be exactly the one held before."""
        new_buys = list(buys)
        new_sells = list(sells)
        before = set(self._id_index)
        after = [o.id for o in itertools.chain(new_buys, new_sells)]
        if len(after) != len(set(after)) or set(after) != before:
            raise InvariantViolation(f"order ids changed while clearing good={self.good_uid}")
        self._buys = new_buys
        self._sells = new_sells
        self._id_index = {o.id: o for o in itertools.chain(new_buys, new_sells)}
        if self._check:
            self.assert_invariants()

    def total_requested(self, side: Side) -> int:
        return sum(o.requested for o in self.orders(side))

    def total_filled(self, side: Side) -> int:
        return sum(o.filled for o in self.orders(side))

    def assert_invariants(self) -> None:
        seen = set()
        for side, orders in ((Side.BUY, self._buys), (Side.SELL, self._sells)):
            for o in orders:
                if o.side is not side:
                    raise InvariantViolation(f"order #{o.id} filed under {side.name} but is {o.side.name}")
                if not 0 <= o.filled <= o.requested:
                    raise InvariantViolation(f"order #{o.id} filled={o.filled} outside [0, {o.requested}]")
                if o.id in seen:
                    raise InvariantViolation(f"duplicate order id #{o.id}")
                seen.add(o.id)
        buy_filled = sum(o.filled for o in self._buys)
        sell_filled = sum(o.filled for o in self._sells)
        if buy_filled != sell_filled:
            raise InvariantViolation(f"bought {buy_filled} != sold {sell_filled} for good={self.good_uid}")
