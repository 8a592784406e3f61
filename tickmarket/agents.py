# tickmarket/agents.py
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Sequence, Tuple

from .errors import OrderNotFound
from .market import Market
from .models import GoodUid, OrderId, Side

logger = logging.getLogger(__name__)


class EcoEntity(ABC):
    """An economic agent taking part in the tick cycle."""

    @abstractmethod
    def produce_and_consume(self) -> float:
        """Step 1: update inventories. Returns the money spent or earned outside markets."""

    @abstractmethod
    def required_markets(self) -> Tuple[List[GoodUid], List[str]]:
        """Step 2: goods this entity trades and the market metadata it wants."""

    @abstractmethod
    def post_orders(self, markets: Sequence[Market]) -> None:
        """Step 3: register orders."""

    @abstractmethod
    def retrieve_orders(self, markets: Sequence[Market]) -> None:
        """Step 5: settle every order registered in step 3."""


def find_market(markets: Sequence[Market], good_uid: GoodUid) -> Market:
    for m in markets:
        if m.good_uid == good_uid:
            return m
    raise LookupError(f"no market trades good {good_uid}")


@dataclass(slots=True)
class _TargetInventory(EcoEntity):
    """Keeps one good's inventory around ``target_quantity`` by trading the gap."""
    name: str
    good_uid: GoodUid
    quantity: int
    target_quantity: int
    money_balance: float = 0.0
    prestige: float = 0.0
    metadata: str = "ita"
    orders: List[OrderId] = field(default_factory=list)

    def required_markets(self) -> Tuple[List[GoodUid], List[str]]:
        return [self.good_uid], [self.metadata]

    def retrieve_orders(self, markets: Sequence[Market]) -> None:
        market = find_market(markets, self.good_uid)
        for oid in self.orders:
            result = market.retrieve_order_result(oid)
            if result is None:
                raise OrderNotFound(oid)
            if result.side is Side.BUY:
                self.quantity += result.filled
                self.money_balance -= result.total_cost
            else:
                self.quantity -= result.filled
                self.money_balance += result.total_cost
        self.orders.clear()

    def _post(self, markets: Sequence[Market], side: Side, quantity: int) -> None:
        oid = find_market(markets, self.good_uid).register_order(side, quantity, self.prestige)
        self.orders.append(oid)
        logger.debug("%s posted %s %d", self.name, side.name, quantity)


@dataclass(slots=True)
class StaticProductionTarget(_TargetInventory):
    """Produces at a fixed rate and sells whatever exceeds the target."""
    production_rate: int = 0

    def produce_and_consume(self) -> float:
        self.quantity += self.production_rate
        return 0.0

    def post_orders(self, markets: Sequence[Market]) -> None:
        if self.quantity < self.target_quantity:
            return
        self._post(markets, Side.SELL, self.quantity - self.target_quantity)


@dataclass(slots=True)
class StaticConsumptionTarget(_TargetInventory):
    """Consumes at a fixed rate and buys back up to the target."""
    consumption_rate: int = 0

    def produce_and_consume(self) -> float:
        self.quantity -= min(self.consumption_rate, self.quantity)
        return 0.0

    def post_orders(self, markets: Sequence[Market]) -> None:
        if self.quantity > self.target_quantity:
            return
        self._post(markets, Side.BUY, self.target_quantity - self.quantity)
