#!/usr/bin/env python3
"""
Utility functions for scan chain grouping.
Summary-only solution file writer and chain statistics output.
"""

import json
import logging
import os
import time as time_module
from typing import Optional

from conflict_model import ConflictModel

logger = logging.getLogger(__name__)


def format_clocking(clocking) -> str:
    return ' '.join(str(g) for g in clocking)


def generate_solution_file(solution, method, data_file, suffix="", out_dir=None):
    """
    Write a compact JSON summary:
      - clocking, group count, worst group cost and per-group costs
      - groups_used (groups with at least one chain)
      - status and solve time
    Returns path to the JSON file, or None if infeasible/error.
    """
    if solution.get("status") == "infeasible":
        logger.warning("Cannot generate solution file - %s solution is infeasible", method)
        return None

    clocking = [int(g) for g in solution.get("clocking", [])]
    group_cost = [int(c) for c in solution.get("group_cost", [])]

    base_name = os.path.splitext(os.path.basename(str(data_file)))[0]
    out_path = f"{base_name}_{method.lower()}{suffix}_summary.json"
    if out_dir is not None:
        out_path = os.path.join(out_dir, out_path)

    summary = {
        "method": method,
        "data_file": str(data_file),
        "timestamp": time_module.strftime("%Y-%m-%d %H:%M:%S"),
        "status": solution.get("status", "feasible"),
        "group_count": int(solution.get("group_count", len(group_cost))),
        "groups_used": len(set(clocking)),
        "cost": int(solution.get("cost", 0)),
        "worst_group": int(solution.get("worst_group", -1)),
        "group_cost": group_cost,
        "clocking": clocking,
        "solve_time_seconds": float(solution.get("solve_time", 0.0)),
    }
    if solution.get("unassigned_chains"):
        summary["unassigned_chains"] = [int(c) for c in solution["unassigned_chains"]]

    try:
        with open(out_path, "w") as f:
            json.dump(summary, f, indent=2)
        return out_path
    except Exception as e:
        logger.error("Error generating solution file: %s", e)
        return None


def log_chain_statistics(model: ConflictModel, table_file: Optional[str] = None, log=None):
    """Log aggressor/impact statistics per chain, optionally as LaTeX table rows"""
    log = log or logger
    stats = model.chain_statistics()
    for row in stats.itertuples(index=False):
        scan_in = model.scan_cells[row.chain_id][0] if row.chain_id < len(model.scan_cells) and \
            model.scan_cells[row.chain_id] else '-'
        log.info("Chain %d ScanInPort %s", row.chain_id, scan_in)
        log.info("  ChainLength %d", row.chain_length)
        log.info(" AggressorsPerScanCell Min %d Avg %d Max %d MaxDifference %d",
                 row.aggressors_min, row.aggressors_avg, row.aggressors_max, row.max_difference)
        log.info(" ImpactCellCount %d", row.impact_cells)

    if table_file is not None:
        with open(table_file, "w") as table:
            for row in stats.itertuples(index=False):
                table.write(f"{row.chain_id} &  & {row.aggressors_avg} & {row.max_difference}\\\\\n")
    return stats
