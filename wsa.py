#!/usr/bin/env python3
"""
Post-hoc validation of a grouping with switching activity.

Activity comes from an external simulator as a table with one row per shift
pattern and one column per scan cell (the weighted switching activity of that
cell's aggressor set), plus an optional 'overall' column with the activity of
all impact cells. The optimizers never look at it.
"""

import logging
from typing import Any, Callable, Dict, List, Optional, Sequence

import pandas as pd

from conflict_model import ConflictModel

logger = logging.getLogger(__name__)

OVERALL_COLUMN = 'overall'

# clocking -> activity table
ActivitySource = Callable[[List[int]], pd.DataFrame]


def expand_for_wsa(mapping: Sequence[Sequence]) -> List[list]:
    """
    Double the interior rows of a scan mapping for shift-cycle activity.

    The simulator pairs patterns 0~1, 2~3, 4~5, ... so every interior row
    has to appear twice to compare each shift cycle with the next:

        a b     -> a b
        a b c   -> a b b c
        a b c d -> a b b c c d
    """
    if not mapping:
        raise ValueError("cannot expand an empty scan mapping")
    expanded: List[Optional[list]] = [None] * ((len(mapping) - 1) * 2)
    for i, row in enumerate(mapping):
        if i * 2 < len(expanded):
            expanded[i * 2] = list(row)
        if i > 0:
            expanded[i * 2 - 1] = list(row)
    return expanded


def load_activity_table(filename: str) -> pd.DataFrame:
    try:
        df = pd.read_csv(filename, comment='#')
    except FileNotFoundError:
        raise FileNotFoundError(f"Activity file not found: {filename}")
    except pd.errors.EmptyDataError:
        raise ValueError(f"Activity file is empty: {filename}")
    if df.empty:
        raise ValueError(f"Activity file contains no patterns: {filename}")
    df.columns = [str(c).strip() for c in df.columns]
    return df


def csv_activity_source(filename: str) -> ActivitySource:
    """Activity source replaying a precomputed table whatever the clocking"""
    def source(clocking: List[int]) -> pd.DataFrame:
        return load_activity_table(filename)
    return source


def evaluate_activity(activity: pd.DataFrame, model: ConflictModel, clocking: Sequence[int],
                      worst_group: int, log: Optional[logging.Logger] = None) -> Dict[str, Any]:
    """
    Largest activity difference between adjacent scan cells of the chains in
    worst_group, over all patterns, and the average overall activity.

    Only the worst group is inspected: the other groups shift at other times.
    """
    log = log or logger
    max_diff = 0.0
    worst_activity1 = 0.0
    worst_activity2 = 0.0

    for chain in range(model.chain_count):
        if clocking[chain] != worst_group:
            continue
        cells = [str(c) for c in model.scan_cells[chain]] if chain < len(model.scan_cells) else []
        missing = [c for c in cells if c not in activity.columns]
        if missing:
            log.warning("Chain %d: no activity for %d scan cells, skipped", chain, len(missing))
            continue
        log.info("Chain %d ScanCells %d", chain, len(cells))
        if len(cells) < 2:
            continue

        values = activity[cells].to_numpy(dtype=float)
        diffs = abs(values[:, 1:] - values[:, :-1])
        pattern, pos = divmod(int(diffs.argmax()), diffs.shape[1])
        if diffs[pattern, pos] > max_diff:
            max_diff = float(diffs[pattern, pos])
            worst_activity1 = float(values[pattern, pos])
            worst_activity2 = float(values[pattern, pos + 1])

    log.info("OverallMaxWSADiff %s", max_diff)
    log.info("WorstActivity1 %s", worst_activity1)
    log.info("WorstActivity2 %s", worst_activity2)

    avg_wsa = None
    if OVERALL_COLUMN in activity.columns:
        avg_wsa = float(activity[OVERALL_COLUMN].mean())
        log.info("OverallAvgWSA %s", avg_wsa)

    return {
        'max_wsa_diff': max_diff,
        'worst_activity1': worst_activity1,
        'worst_activity2': worst_activity2,
        'avg_wsa': avg_wsa
    }
