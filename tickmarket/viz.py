# tickmarket/viz.py
from __future__ import annotations

from pathlib import Path
from typing import Dict

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd

from .metrics import inventory_pivot, tick_metrics


def plot_inventory(history: pd.DataFrame, out_dir: str) -> str:
    figdir = Path(out_dir) / "figures"
    figdir.mkdir(parents=True, exist_ok=True)
    inv = inventory_pivot(history, "quantity")

    plt.figure(figsize=(8, 6))
    for agent in inv.columns:
        plt.plot(inv.index, inv[agent], label=agent)
    plt.title("Quantity in inventory")
    plt.xlabel("tick")
    plt.ylabel("units")
    plt.legend(loc="upper right")
    p = figdir / "inventory.png"
    plt.tight_layout()
    plt.savefig(p)
    plt.close()
    return str(p)


def plot_tick_metrics(ticks: pd.DataFrame, out_dir: str) -> Dict[str, str]:
    paths: Dict[str, str] = {}
    metrics = tick_metrics(ticks)

    figdir = Path(out_dir) / "figures"
    figdir.mkdir(parents=True, exist_ok=True)

    plt.figure()
    metrics.traded.plot(title="Traded volume")
    plt.xlabel("tick")
    plt.ylabel("units")
    p = figdir / "traded.png"
    plt.tight_layout()
    plt.savefig(p)
    plt.close()
    paths["traded_png"] = str(p)

    plt.figure()
    metrics.excess_demand.plot(title="Excess demand (buy - sell requested)")
    plt.axhline(0.0, color="grey", linewidth=0.8)
    plt.xlabel("tick")
    plt.ylabel("units")
    p = figdir / "excess_demand.png"
    plt.tight_layout()
    plt.savefig(p)
    plt.close()
    paths["excess_demand_png"] = str(p)

    return paths


def plot_latency_hist(latencies_ns: np.ndarray, out_dir: str) -> str:
    figdir = Path(out_dir) / "figures"
    figdir.mkdir(parents=True, exist_ok=True)
    plt.figure()
    us = latencies_ns / 1_000.0
    plt.hist(us, bins=50)
    plt.title("Clearing Latency Histogram (μs)")
    plt.xlabel("latency (μs)")
    plt.ylabel("count")
    p = figdir / "latency_hist.png"
    plt.tight_layout()
    plt.savefig(p)
    plt.close()
    return str(p)
