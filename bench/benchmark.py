# bench/benchmark.py
from __future__ import annotations

import json
from pathlib import Path
import pandas as pd

from tickmarket.sim import bench_clearing
from tickmarket.metrics import summarize_latency_ns
from tickmarket.viz import plot_latency_hist


def main() -> None:
    latencies = bench_clearing(seed=123, n_books=5_000, n_orders=200, n_tiers=6)

    Path("results").mkdir(parents=True, exist_ok=True)
    summary = summarize_latency_ns(latencies)
    lat_png = plot_latency_hist(latencies, "results")
    pd.DataFrame([summary]).to_csv("results/benchmark_summary.csv", index=False)
    print(json.dumps({"benchmark": summary, "latency_hist": lat_png}, indent=2))


if __name__ == "__main__":
    main()
