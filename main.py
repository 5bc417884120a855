#!/usr/bin/env python3
"""
Scan chain grouping driver: balance clock aggressor activity by assigning
scan chains to staggered clock groups.
"""

import argparse
import logging
import sys
from typing import Optional

from config import (DEFAULT_ARX, DEFAULT_ARY, DEFAULT_GROUPING_METHOD, ZPL_CONFIG, aggressor_region_nm,
                    log_current_config)
from conflict_model import ConflictModel, load_conflict_model, save_footprint_table
from footprints import build_footprint_table, load_circuit, load_placement
from grouping_framework import ScanChainGroupingProblem, resolve_method
from grouping_utils import generate_solution_file, log_chain_statistics
from wsa import csv_activity_source, evaluate_activity
from zpl_model import ZplModel

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Scan chain grouping against clock aggressor noise",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py --data s38417_footprints.txt --clk 4 --prt-method bgc
  python main.py --data s38417_footprints.txt --clk 4 --prt-method random --prt-cases 100 --plot random.dat
  python main.py --circuit s38417.json --placement s38417_place.txt --clk 4 --zpl s38417.zpl
  python main.py --data s38417_footprints.txt --clk 4 --sol s38417.sol
        """
    )
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--data", help="Footprint table (chain_id, cell, aggressors, impacts)")
    source.add_argument("--circuit", help="Circuit description (JSON) to extract footprints from")
    parser.add_argument("--placement", help="Cell placement table (name x y in nm), required with --circuit")
    parser.add_argument("--save-footprints", help="Write the extracted footprint table to this file")

    parser.add_argument("--clk", type=int, default=1, help="Number of staggered groups (default: 1)")
    parser.add_argument("--arx", type=float, default=DEFAULT_ARX,
                        help=f"Horizontal aggressor region size in NAND2X1 widths (default: {DEFAULT_ARX})")
    parser.add_argument("--ary", type=float, default=DEFAULT_ARY,
                        help=f"Vertical aggressor region size in rows (default: {DEFAULT_ARY})")

    parser.add_argument("--prt-method", default=DEFAULT_GROUPING_METHOD,
                        help=f"Grouping method: seq, random, rls, bgc, ga, ilp (default: {DEFAULT_GROUPING_METHOD})")
    parser.add_argument("--prt-start", type=int, default=0,
                        help="Start grouping index (seq) or start seed (random) (default: 0)")
    parser.add_argument("--prt-cases", type=int, default=1,
                        help="Number of groupings to evaluate (seq, random only) (default: 1)")
    parser.add_argument("--seed", type=int, help="Seed for the randomized strategies (rls, ga)")

    parser.add_argument("--thr", type=int, default=ZPL_CONFIG['skew_threshold'],
                        help="Skew threshold for the ILP model (default: 0)")
    parser.add_argument("--zpl", help="Write the ZIMPL model to this file")
    parser.add_argument("--sol", help="Read the grouping from this solver solution file")

    parser.add_argument("--table", help="Write per-chain statistics as LaTeX table rows to this file")
    parser.add_argument("--plot", help="Write '<case> <cost of group 0>' lines to this file")
    parser.add_argument("--sim", help="Activity table (CSV) to validate the grouping with")
    parser.add_argument("--save-summary", action="store_true", help="Write a JSON summary of the last case")
    parser.add_argument("--summary-dir", help="Directory for the JSON summary (default: current directory)")
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return parser


def load_model(args, log) -> ConflictModel:
    if args.data:
        return load_conflict_model(args.data)

    if not args.placement:
        raise ValueError("--placement is required with --circuit")
    arx_nm, ary_nm = aggressor_region_nm(args.arx, args.ary)
    log.info("AggressorRegionSize X %s Y %s", args.arx, args.ary)
    log.info("AggressorRegionSizeNM X %d Y %d", arx_nm, ary_nm)

    circuit = load_circuit(args.circuit)
    table = build_footprint_table(circuit, load_placement(args.placement), arx_nm, ary_nm, log)
    if args.save_footprints:
        save_footprint_table(table, args.save_footprints)
        log.info("Footprints written to %s", args.save_footprints)
    return ConflictModel.from_footprint_table(table)


def run(args, log: Optional[logging.Logger] = None) -> int:
    log = log or logger
    if args.log_level == "DEBUG":
        log_current_config(log)
    try:
        model = load_model(args, log)
    except (OSError, ValueError) as e:
        log.error("%s", e)
        return 1

    problem = ScanChainGroupingProblem(data_file=args.data or args.circuit, model=model, logger=log)
    chains = model.chain_count
    log.info("ScanChainCount %d", chains)
    log.info("MaxChainLength %d", problem.get_problem_stats()['max_chain_length'])
    log_chain_statistics(model, args.table, log)

    clocks = args.clk
    if clocks < 1:
        log.error("--clk must be at least 1")
        return 1
    log.info("AvailableGroupCount %d", clocks)

    try:
        method = resolve_method(args.prt_method)
    except ValueError as e:
        log.error("%s", e)
        return 1

    zpl = None
    if args.zpl and clocks < chains:
        zpl = ZplModel(model, args.thr, logger=log)
        zpl.write_model(args.zpl, clocks)

    activity_source = csv_activity_source(args.sim) if args.sim else None
    params = {} if args.seed is None else {'seed': args.seed}
    rc = 0
    avg_cost = 0
    case_count = 0
    solution = None
    plot = open(args.plot, 'w') if args.plot else None
    try:
        for case_id, solution in enumerate(problem.solve_cases(method, clocks, args.prt_cases, args.prt_start,
                                                               **params)):
            if solution['status'] == 'infeasible':
                return 1

            group_count = solution['group_count']
            if args.sol and group_count < chains:
                if zpl is None:
                    zpl = ZplModel(model, args.thr, logger=log)
                clocking = zpl.read_solution(args.sol, group_count)
                status = solution['status']
                extras = {}
                if zpl.unassigned_chains:
                    log.error("Solution %s is incomplete, %d chains left in group 0",
                              args.sol, len(zpl.unassigned_chains))
                    status = 'incomplete'
                    extras['unassigned_chains'] = list(zpl.unassigned_chains)
                    rc = 1
                solution = problem.report(clocking, group_count, method, status, solution['solve_time'],
                                          **extras)

            avg_cost += solution['cost']
            case_count += 1
            if plot is not None:
                plot.write(f" {case_id} {solution['group_cost'][0]}\n")

            if activity_source is not None:
                log.info("WSA evaluation of %s", args.sim)
                try:
                    activity = activity_source(solution['clocking'])
                except (OSError, ValueError) as e:
                    log.error("%s", e)
                    return 1
                solution['activity'] = evaluate_activity(activity, model, solution['clocking'],
                                                         solution['worst_group'], log)
    finally:
        if plot is not None:
            plot.close()

    log.info("AverageCost %d", avg_cost // case_count if case_count else 0)

    if args.save_summary and solution is not None:
        path = generate_solution_file(solution, method, problem.data_file, out_dir=args.summary_dir)
        if path:
            log.info("Summary written to %s", path)
    return rc


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)]
    )
    return run(args)


if __name__ == "__main__":
    sys.exit(main())
