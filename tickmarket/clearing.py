# tickmarket/clearing.py
"""
Prestige-tiered clearing for a single good and a single tick.

Orders on each side are grouped into tiers by ``int(weight)``. The highest
buy tier is matched against the highest sell tier; whichever tier has less
outstanding quantity is filled completely, the other one is rationed, and the
exhausted side moves on to its next tier. Rationing is equal-chunk rounds
followed by a one-unit-at-a-time remainder pass.
"""
from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Dict, Iterable, List, MutableSequence

from .core import OrderBook
from .errors import InvariantViolation
from .models import Order

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Tier:
    """Orders of one side sharing a bucket key, rationed as one unit."""
    key: int
    orders: List[Order] = field(default_factory=list)

    @property
    def missing(self) -> int:
        return sum(o.missing for o in self.orders)

    def fill_completely(self) -> int:
        moved = 0
        for o in self.orders:
            moved += o.missing
            o.filled = o.requested
        return moved

    def check_bounds(self) -> None:
        for o in self.orders:
            if not 0 <= o.filled <= o.requested:
                raise InvariantViolation(f"order #{o.id} filled={o.filled} outside [0, {o.requested}] in tier {self.key}")


def build_tiers(orders: Iterable[Order]) -> List[Tier]:
    """Group orders by truncated weight, highest bucket first, registration order inside a tier."""
    tiers: Dict[int, Tier] = {}
    for o in orders:
        tier = tiers.get(o.bucket)
        if tier is None:
            tier = tiers[o.bucket] = Tier(key=o.bucket)
        tier.orders.append(o)
    return [tiers[k] for k in sorted(tiers, reverse=True)]


def distribute(total_to_distribute: int, recipients: MutableSequence[Order]) -> int:
    """
    Spread ``total_to_distribute`` units over the unfilled ``recipients`` as evenly as possible.

    Each round hands every unfilled recipient ``remaining // unfilled_count``
    units, capped at what it still misses. Once no whole chunk is left the
    remainder goes out one unit per recipient in sequence order, so earlier
    orders absorb the leftover units.

    Returns the number of units placed. It equals ``total_to_distribute``
    whenever the recipients together miss at least that much.
    """
    if total_to_distribute < 0:
        raise ValueError("total_to_distribute must be non-negative")
    placed = 0
    while True:
        unfilled = [o for o in recipients if not o.is_filled]
        if not unfilled:
            break
        chunk = (total_to_distribute - placed) // len(unfilled)
        if chunk == 0:
            break
        distributed = 0
        for o in unfilled:
            take = min(chunk, o.missing)
            o.filled += take
            distributed += take
        placed += distributed
        if distributed == 0:
            break

    # fewer units than unfilled recipients are left here
    remainder = total_to_distribute - placed
    for o in recipients:
        if remainder == 0:
            break
        if not o.is_filled:
            o.filled += 1
            placed += 1
            remainder -= 1
    return placed


class ClearingEngine:
    """
    Matches buy tiers against sell tiers for one OrderBook.

    The engine keeps no state between calls and assumes exclusive access to
    the book for the duration of clear().
    """

    def clear(self, book: OrderBook) -> int:
        if not book.buy_orders or not book.sell_orders:
            logger.debug("good=%s one side empty, nothing to clear", book.good_uid)
            return 0

        buy_tiers: Deque[Tier] = deque(build_tiers(book.buy_orders))
        sell_tiers: Deque[Tier] = deque(build_tiers(book.sell_orders))
        done_buys: List[Order] = []
        done_sells: List[Order] = []
        total_traded = 0

        buy = buy_tiers.popleft()
        sell = sell_tiers.popleft()
        while True:
            demand = buy.missing
            supply = sell.missing
            logger.debug("good=%s buy tier %d (%d) vs sell tier %d (%d)", book.good_uid, buy.key, demand, sell.key, supply)
            if supply > demand:
                total_traded += self._match(distributor=buy, receiver=sell, quantity=demand)
                done_buys.extend(buy.orders)
                if not buy_tiers:
                    done_sells.extend(sell.orders)
                    break
                buy = buy_tiers.popleft()
            elif supply < demand:
                total_traded += self._match(distributor=sell, receiver=buy, quantity=supply)
                done_sells.extend(sell.orders)
                if not sell_tiers:
                    done_buys.extend(buy.orders)
                    break
                sell = sell_tiers.popleft()
            else:
                bought = buy.fill_completely()
                sold = sell.fill_completely()
                if bought != sold:
                    raise InvariantViolation(f"equal tiers moved {bought} bought vs {sold} sold")
                total_traded += bought
                done_buys.extend(buy.orders)
                done_sells.extend(sell.orders)
                if not buy_tiers or not sell_tiers:
                    break
                buy = buy_tiers.popleft()
                sell = sell_tiers.popleft()

        for tier in buy_tiers:
            done_buys.extend(tier.orders)
        for tier in sell_tiers:
            done_sells.extend(tier.orders)
        book.replace_orders(done_buys, done_sells)
        logger.debug("good=%s cleared %d units", book.good_uid, total_traded)
        return total_traded

    def _match(self, distributor: Tier, receiver: Tier, quantity: int) -> int:
        """Ration ``quantity`` over the larger tier, then book the same amount on the smaller one."""
        placed = distribute(quantity, receiver.orders)
        if placed != quantity:
            raise InvariantViolation(f"tier {receiver.key} absorbed {placed} of {quantity} units")
        mirrored = distribute(placed, distributor.orders)
        if mirrored != placed:
            raise InvariantViolation(f"tier {distributor.key} delivered {mirrored} of {placed} units")
        receiver.check_bounds()
        distributor.check_bounds()
        return placed
