# tickmarket/metrics.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict

import numpy as np
import pandas as pd


@dataclass(slots=True)
class TickMetrics:
    traded: pd.Series
    fill_ratio: pd.Series
    excess_demand: pd.Series


def fill_ratios(ticks: pd.DataFrame) -> pd.Series:
    """Traded volume over the tradable volume min(buy, sell); 1.0 where nothing could trade."""
    tradable = np.minimum(ticks["buy_requested"].astype(float), ticks["sell_requested"].astype(float))
    traded = ticks["traded"].astype(float)
    ratio = traded / tradable.where(tradable > 0)
    return ratio.fillna(1.0)


def tick_metrics(ticks: pd.DataFrame) -> TickMetrics:
    traded = ticks["traded"].astype(float)
    excess = ticks["buy_requested"].astype(float) - ticks["sell_requested"].astype(float)
    return TickMetrics(traded=traded, fill_ratio=fill_ratios(ticks), excess_demand=excess)


def inventory_pivot(history: pd.DataFrame, column: str = "quantity") -> pd.DataFrame:
    """One column per agent, one row per tick."""
    return history.pivot(index="tick", columns="agent", values=column)


def summarize_latency_ns(latencies: np.ndarray) -> Dict[str, float]:
    if latencies.size == 0:
        return {"p50_ns": 0.0, "p90_ns": 0.0, "p99_ns": 0.0, "ops_per_sec": 0.0}
    p50 = float(np.percentile(latencies, 50))
    p90 = float(np.percentile(latencies, 90))
    p99 = float(np.percentile(latencies, 99))
    mean_ns = float(latencies.mean())
    ops = 1e9 / mean_ns if mean_ns > 0 else 0.0
    return {"p50_ns": p50, "p90_ns": p90, "p99_ns": p99, "ops_per_sec": ops}
