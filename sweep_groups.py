#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Group-count sweep for the scan chain grouping strategies.

Writes:
- sweep_results.csv: one row per (method, group count)
- sweep_cost.png: worst group cost vs group count, one curve per method
"""

import argparse
import logging
import os
import sys
from typing import Any, Dict, List, Optional, Sequence

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
import pandas as pd

from grouping_framework import ScanChainGroupingProblem

logger = logging.getLogger(__name__)

# --------------------------- CONFIGURE HERE ---------------------------

DATA_FILE = "footprints.txt"

METHODS = ['random', 'rls', 'bgc', 'ga']

# Sweep group counts 2 .. MAX_GROUPS (inclusive), capped at the chain count
MAX_GROUPS = 8

SEED = 12345

# ---------------------------------------------------------------------


def run_sweep(problem: ScanChainGroupingProblem, methods: Sequence[str] = METHODS,
              group_counts: Optional[Sequence[int]] = None, seed: int = SEED) -> pd.DataFrame:
    if group_counts is None:
        group_counts = range(2, min(MAX_GROUPS, problem.chain_count) + 1)

    rows: List[Dict[str, Any]] = []
    for method in methods:
        for k in group_counts:
            params = {'seed': seed + k} if method in ('rls', 'ga') else {}
            start = seed + k if method == 'random' else 0
            result = problem.solve(method=method, group_count=k, start=start, **params)

            rows.append({
                'method': method,
                'group_count': k,
                'status': result.get('status', 'unknown'),
                'cost': result.get('cost'),
                'worst_group': result.get('worst_group'),
                'lower_bound': result.get('lower_bound'),
                'solve_time_s': result.get('solve_time', 0.0),
            })
            logger.info("[%s] k=%d -> cost=%s, status=%s, solve_time=%.2fs", method, k,
                        rows[-1]['cost'], rows[-1]['status'], rows[-1]['solve_time_s'])

    return pd.DataFrame(rows, columns=['method', 'group_count', 'status', 'cost', 'worst_group',
                                       'lower_bound', 'solve_time_s'])


def plot_sweep(df: pd.DataFrame, out_png: str = "sweep_cost.png") -> Optional[str]:
    """Plot worst group cost vs group count, one curve per method."""
    if df.empty:
        logger.warning("No sweep data to plot.")
        return None

    plt.figure(figsize=(8, 6))
    for method, sub in df.groupby('method'):
        sub = sub.sort_values('group_count')
        plt.plot(sub['group_count'], sub['cost'], marker='o', label=method)

    bounds = df.dropna(subset=['lower_bound'])
    if not bounds.empty:
        bounds = bounds.sort_values('group_count')
        plt.plot(bounds['group_count'], bounds['lower_bound'], linestyle='--', color='gray', label='lower bound')

    plt.xlabel("Groups")
    plt.ylabel("Worst group cost")
    plt.title("Scan chain grouping: cost vs group count")
    plt.legend(loc='best', fontsize=9)
    plt.grid(True, linestyle='--', alpha=0.4)
    plt.tight_layout()
    plt.savefig(out_png, dpi=160)
    plt.close()
    logger.info("Saved: %s", out_png)
    return out_png


def main(argv=None):
    parser = argparse.ArgumentParser(description="Group-count sweep over the grouping strategies")
    parser.add_argument("--data", default=DATA_FILE, help=f"Footprint table (default: {DATA_FILE})")
    parser.add_argument("--methods", nargs='+', default=METHODS, help="Methods to compare")
    parser.add_argument("--max-groups", type=int, default=MAX_GROUPS)
    parser.add_argument("--out-dir", default=".", help="Directory for the CSV and the figure")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)]
    )

    if not os.path.exists(args.data):
        raise FileNotFoundError(f"Footprint file not found: {args.data}")

    problem = ScanChainGroupingProblem(args.data)
    group_counts = range(2, min(args.max_groups, problem.chain_count) + 1)
    df = run_sweep(problem, args.methods, group_counts)

    csv_path = os.path.join(args.out_dir, "sweep_results.csv")
    df.to_csv(csv_path, index=False)
    logger.info("Saved: %s", csv_path)
    plot_sweep(df, os.path.join(args.out_dir, "sweep_cost.png"))


if __name__ == "__main__":
    main()
