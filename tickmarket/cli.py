# tickmarket/cli.py
from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path

import pandas as pd

from .metrics import fill_ratios, summarize_latency_ns
from .sim import SimArtifacts, SimConfig, Simulator, bench_clearing, save_artifacts
from .viz import plot_inventory, plot_latency_hist, plot_tick_metrics


def run_sim(args: argparse.Namespace) -> None:
    cfg = SimConfig(
        seed=args.seed,
        n_ticks=args.n_ticks,
        price=args.price,
        n_producers=args.n_producers,
        n_consumers=args.n_consumers,
        producer_quantity=args.producer_quantity,
        producer_target=args.producer_target,
        producer_balance=args.producer_balance,
        production_rate=args.production_rate,
        consumer_quantity=args.consumer_quantity,
        consumer_target=args.consumer_target,
        consumer_balance=args.consumer_balance,
        consumption_rate=args.consumption_rate,
        prestige=args.prestige,
        prestige_spread=args.prestige_spread,
        jitter=args.jitter,
        check_invariants=args.check_invariants,
    )
    sim = Simulator(cfg)
    art: SimArtifacts = sim.run()
    out_dir = args.report
    paths = save_artifacts(art, out_dir)
    inv_png = plot_inventory(art.history, out_dir)
    fig_paths = plot_tick_metrics(art.ticks, out_dir)
    summary = {
        "total_traded": art.total_traded,
        "mean_fill_ratio": float(fill_ratios(art.ticks).mean()) if len(art.ticks) else 1.0,
        "latency": summarize_latency_ns(art.latencies_ns),
    }

    print(json.dumps({"saved": {**paths, **fig_paths, "inventory_png": inv_png}, "summary": summary}, indent=2))


def run_bench(args: argparse.Namespace) -> None:
    latencies = bench_clearing(args.seed, args.n_books, args.n_orders, n_tiers=args.n_tiers)
    out_dir = args.report
    Path(out_dir).mkdir(parents=True, exist_ok=True)
    lat_png = plot_latency_hist(latencies, out_dir)
    summary = summarize_latency_ns(latencies)
    df = pd.DataFrame([summary])
    csv = Path(out_dir) / "benchmark_summary.csv"
    df.to_csv(csv, index=False)
    print(json.dumps({"benchmark": summary, "latency_hist": lat_png, "csv": str(csv)}, indent=2))


def main() -> None:
    parser = argparse.ArgumentParser(prog="tickmarket", description="Tick market simulator CLI")
    parser.add_argument("--log-level", type=str, default="WARNING", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    sub = parser.add_subparsers(dest="cmd", required=True)

    p_sim = sub.add_parser("sim", help="Run the producer/consumer simulation and save artifacts")
    p_sim.add_argument("--seed", type=int, default=30)
    p_sim.add_argument("--n-ticks", type=int, default=20)
    p_sim.add_argument("--price", type=float, default=10.0)
    p_sim.add_argument("--n-producers", type=int, default=1)
    p_sim.add_argument("--n-consumers", type=int, default=1)
    p_sim.add_argument("--producer-quantity", type=int, default=12_000)
    p_sim.add_argument("--producer-target", type=int, default=10_000)
    p_sim.add_argument("--producer-balance", type=float, default=500_000.0)
    p_sim.add_argument("--production-rate", type=int, default=500)
    p_sim.add_argument("--consumer-quantity", type=int, default=5_000)
    p_sim.add_argument("--consumer-target", type=int, default=10_000)
    p_sim.add_argument("--consumer-balance", type=float, default=0.0)
    p_sim.add_argument("--consumption-rate", type=int, default=400)
    p_sim.add_argument("--prestige", type=float, default=5.0)
    p_sim.add_argument("--prestige-spread", type=float, default=0.0)
    p_sim.add_argument("--jitter", type=float, default=0.0)
    p_sim.add_argument("--check-invariants", action="store_true")
    p_sim.add_argument("--report", type=str, default="results")
    p_sim.set_defaults(func=run_sim)

    p_bench = sub.add_parser("bench", help="Clear random books and report latency")
    p_bench.add_argument("--seed", type=int, default=30)
    p_bench.add_argument("--n-books", type=int, default=2_000)
    p_bench.add_argument("--n-orders", type=int, default=200)
    p_bench.add_argument("--n-tiers", type=int, default=4)
    p_bench.add_argument("--report", type=str, default="results")
    p_bench.set_defaults(func=run_bench)

    args = parser.parse_args()
    logging.basicConfig(level=getattr(logging, args.log_level), format="%(asctime)s %(name)s %(levelname)s %(message)s")
    args.func(args)


if __name__ == "__main__":
    main()
