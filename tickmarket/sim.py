# tickmarket/sim.py
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Tuple, Union

import numpy as np
import pandas as pd

from .agents import StaticConsumptionTarget, StaticProductionTarget
from .clearing import ClearingEngine
from .core import OrderBook
from .market import FixedPriceMarket
from .models import Side, good_name

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SimConfig:
    seed: int = 30
    n_ticks: int = 20
    good_uid: int = 0
    price: float = 10.0
    n_producers: int = 1
    n_consumers: int = 1
    producer_quantity: int = 12_000
    producer_target: int = 10_000
    producer_balance: float = 500_000.0
    production_rate: int = 500
    consumer_quantity: int = 5_000
    consumer_target: int = 10_000
    consumer_balance: float = 0.0
    consumption_rate: int = 400
    prestige: float = 5.0
    prestige_spread: float = 0.0
    jitter: float = 0.0
    check_invariants: bool = False

    def __post_init__(self) -> None:
        if self.n_ticks < 0:
            raise ValueError("n_ticks must be non-negative")
        if self.n_producers < 0 or self.n_consumers < 0:
            raise ValueError("agent counts must be non-negative")
        if self.jitter < 0 or self.prestige_spread < 0:
            raise ValueError("jitter and prestige_spread must be non-negative")


@dataclass(slots=True)
class SimArtifacts:
    history: pd.DataFrame
    ticks: pd.DataFrame
    latencies_ns: np.ndarray
    total_traded: int


class Simulator:
    """
    Tick driver. Each tick runs, in order:
      1. produce_and_consume on every agent
      2. required_markets (collected for logging only)
      3. post_orders
      4. run_trade on every market
      5. retrieve_orders
      6. clear_state on every market
    """

    def __init__(self, cfg: SimConfig) -> None:
        self.cfg = cfg
        self.rs = np.random.RandomState(cfg.seed)
        self.markets: List[FixedPriceMarket] = [
            FixedPriceMarket(cfg.good_uid, cfg.price, metadata="ita", check_invariants=cfg.check_invariants)
        ]
        self.producers: List[StaticProductionTarget] = [
            StaticProductionTarget(
                name=f"producer-{i}",
                good_uid=cfg.good_uid,
                quantity=cfg.producer_quantity,
                target_quantity=cfg.producer_target,
                money_balance=cfg.producer_balance,
                prestige=self._draw_prestige(),
                production_rate=cfg.production_rate,
            )
            for i in range(cfg.n_producers)
        ]
        self.consumers: List[StaticConsumptionTarget] = [
            StaticConsumptionTarget(
                name=f"consumer-{i}",
                good_uid=cfg.good_uid,
                quantity=cfg.consumer_quantity,
                target_quantity=cfg.consumer_target,
                money_balance=cfg.consumer_balance,
                prestige=self._draw_prestige(),
                consumption_rate=cfg.consumption_rate,
            )
            for i in range(cfg.n_consumers)
        ]

    @property
    def agents(self) -> List[Union[StaticProductionTarget, StaticConsumptionTarget]]:
        return [*self.producers, *self.consumers]

    def _draw_prestige(self) -> float:
        if self.cfg.prestige_spread == 0:
            return self.cfg.prestige
        return float(self.cfg.prestige + self.rs.uniform(-self.cfg.prestige_spread, self.cfg.prestige_spread))

    def _jittered(self, rate: int) -> int:
        if self.cfg.jitter == 0:
            return rate
        return max(int(round(rate * (1.0 + self.rs.normal(0.0, self.cfg.jitter)))), 0)

    def _apply_jitter(self) -> None:
        for p in self.producers:
            p.production_rate = self._jittered(self.cfg.production_rate)
        for c in self.consumers:
            c.consumption_rate = self._jittered(self.cfg.consumption_rate)

    def run(self) -> SimArtifacts:
        cfg = self.cfg
        history: List[Tuple[int, str, int, float]] = []
        ticks: List[Tuple[int, str, int, int, int, int]] = []
        latencies: List[int] = []
        total_traded = 0

        for tick in range(cfg.n_ticks):
            for a in self.agents:
                history.append((tick, a.name, a.quantity, a.money_balance))

            self._apply_jitter()
            for a in self.agents:
                a.produce_and_consume()
            for a in self.agents:
                goods, metadata = a.required_markets()
                logger.debug("tick %d: %s trades %s %s", tick, a.name, [good_name(g) for g in goods], metadata)
            for a in self.agents:
                a.post_orders(self.markets)

            for market in self.markets:
                buy_requested = market.book.total_requested(Side.BUY)
                sell_requested = market.book.total_requested(Side.SELL)
                t0 = time.perf_counter_ns()
                traded = market.run_trade()
                dt = time.perf_counter_ns() - t0
                latencies.append(dt)
                total_traded += traded
                ticks.append((tick, good_name(market.good_uid), traded, buy_requested, sell_requested, dt))
                logger.info("tick %d: %s traded %d at %.2f", tick, good_name(market.good_uid), traded, market.price_per_unit)

            for a in self.agents:
                a.retrieve_orders(self.markets)
            for market in self.markets:
                market.clear_state()

        history_df = pd.DataFrame(history, columns=["tick", "agent", "quantity", "money_balance"])
        ticks_df = pd.DataFrame(ticks, columns=["tick", "good", "traded", "buy_requested", "sell_requested", "latency_ns"])
        return SimArtifacts(
            history=history_df,
            ticks=ticks_df,
            latencies_ns=np.array(latencies, dtype=np.int64),
            total_traded=total_traded,
        )


def save_artifacts(art: SimArtifacts, out_dir: str) -> Dict[str, str]:
    ts = pd.Timestamp.now(tz="UTC").strftime("%Y%m%d_%H%M%S")
    base = Path(out_dir)
    (base / "figures").mkdir(parents=True, exist_ok=True)
    files = {}
    history_path = base / f"history_{ts}.csv"
    art.history.to_csv(history_path, index=False)
    files["history_csv"] = str(history_path)

    ticks_path = base / f"ticks_{ts}.csv"
    art.ticks.to_csv(ticks_path, index=False)
    files["ticks_csv"] = str(ticks_path)

    return files


def random_book(rs: np.random.RandomState, n_orders: int, n_tiers: int = 4, size_mean: float = 100.0, price: float = 10.0) -> OrderBook:
    """A book with n_orders spread over both sides and n_tiers prestige buckets."""
    book = OrderBook(price_per_unit=price)
    for _ in range(n_orders):
        side = Side.BUY if rs.rand() < 0.5 else Side.SELL
        qty = int(rs.poisson(size_mean))
        weight = float(rs.randint(0, n_tiers) + rs.rand())
        book.register(side, qty, weight)
    return book


def bench_clearing(seed: int, n_books: int, n_orders: int, n_tiers: int = 4) -> np.ndarray:
    """Clear n_books random books and return the per-book latencies in ns."""
    rs = np.random.RandomState(seed)
    engine = ClearingEngine()
    latencies = np.empty(n_books, dtype=np.int64)
    for i in range(n_books):
        book = random_book(rs, n_orders, n_tiers=n_tiers)
        t0 = time.perf_counter_ns()
        engine.clear(book)
        latencies[i] = time.perf_counter_ns() - t0
    return latencies
