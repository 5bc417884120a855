#!/usr/bin/env python3
"""
Footprints from a gate-level circuit and its placement.

For every scan cell: the clock buffers feeding it, its aggressor region (all
placed cells inside a rectangle around each of those buffers) and its impact
cells (combinational output cone plus clock buffers). The result is a
footprint table that conflict_model.ConflictModel loads.
"""

import json
import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

import pandas as pd

from config import CLOCK_PIN, GATING_CELL_TYPE
from conflict_model import FOOTPRINT_COLUMNS

logger = logging.getLogger(__name__)

PLACEMENT_COLUMNS = ['name', 'x', 'y']

# ================== CIRCUIT ==================

@dataclass
class CircuitCell:
    name: str
    type: str
    inputs: Dict[str, str] = field(default_factory=dict)  # pin -> driving cell, in pin order
    pseudo: bool = False
    primary_input: bool = False
    sequential: bool = False


class Circuit:

    def __init__(self, cells: List[CircuitCell], scan_chains: List[List[str]]):
        self.cells: Dict[str, CircuitCell] = {c.name: c for c in cells}
        self.scan_chains = scan_chains
        for chain in scan_chains:
            for name in chain:
                if name not in self.cells:
                    raise ValueError(f"Scan cell {name} is not a cell of the circuit")
                self.cells[name].sequential = True

        self.fanout: Dict[str, List[str]] = {name: [] for name in self.cells}
        for cell in self.cells.values():
            for driver in cell.inputs.values():
                if driver in self.fanout:
                    self.fanout[driver].append(cell.name)

    def scan_cell_count(self) -> int:
        return sum(len(chain) for chain in self.scan_chains)


def load_circuit(filename: str) -> Circuit:
    """
    Load a circuit description (JSON):
      {"cells": [{"name", "type", "inputs": {pin: driver}, "pseudo", "input", "sequential"}],
       "scan_chains": [[cell, ...], ...]}
    """
    try:
        with open(filename) as f:
            data = json.load(f)
    except FileNotFoundError:
        raise FileNotFoundError(f"Circuit file not found: {filename}")
    except json.JSONDecodeError as e:
        raise ValueError(f"Error reading circuit file {filename}: {e}")

    try:
        cells = [CircuitCell(name=c['name'], type=c.get('type', ''), inputs=dict(c.get('inputs', {})),
                             pseudo=bool(c.get('pseudo', False)), primary_input=bool(c.get('input', False)),
                             sequential=bool(c.get('sequential', False)))
                 for c in data['cells']]
        circuit = Circuit(cells, [list(chain) for chain in data['scan_chains']])
    except KeyError as e:
        raise ValueError(f"Circuit file {filename} misses field {e}")

    logger.info("Circuit %s: %d cells, %d scan chains", filename, len(circuit.cells), len(circuit.scan_chains))
    return circuit

# ================== CLOCK TREE ==================

def collect_clock_buffers(circuit: Circuit, head: Optional[str], log: Optional[logging.Logger] = None) -> List[str]:
    """
    Clock path from head towards the clock source.

    Buffers and inverters are followed through their single input, the
    gating cell through its clock pin. Any other multi-input gate ends the
    path with an error; the cells collected so far are returned.
    """
    log = log or logger
    path: List[str] = []
    visited: Set[str] = set()
    while head is not None and head in circuit.cells:
        if head in visited:
            log.error("found loop in clock tree, terminating here: %s", head)
            break
        visited.add(head)
        path.append(head)
        cell = circuit.cells[head]
        if len(cell.inputs) > 1:
            if cell.type == GATING_CELL_TYPE:
                head = cell.inputs.get(CLOCK_PIN)
            else:
                log.error("found odd gate in clock tree, terminating here: %s", head)
                break
        else:
            head = next(iter(cell.inputs.values()), None)
    return path


def collect_scan_cell_clock_buffers(circuit: Circuit, log: Optional[logging.Logger] = None) -> Dict[str, List[str]]:
    """Physical clock buffers (no pseudo cells, no inputs) of every scan cell"""
    log = log or logger
    log.info("Collecting clock buffers for each scan cell")

    buffers: Dict[str, List[str]] = {}
    all_buffers: Set[str] = set()
    for chain in circuit.scan_chains:
        for name in chain:
            driver = circuit.cells[name].inputs.get(CLOCK_PIN)
            path = collect_clock_buffers(circuit, driver, log)
            physical = []
            for b in path:
                cell = circuit.cells[b]
                if not cell.pseudo and not cell.primary_input and b not in physical:
                    physical.append(b)
            buffers[name] = physical
            all_buffers.update(physical)

    log.info("ClockBufferCount %d", len(all_buffers))
    log.info("ScanCellCount %d", len(buffers))
    log.info("MaxClockBufferPerScanCell %d", max((len(b) for b in buffers.values()), default=0))
    return buffers

# ================== IMPACT ==================

def combinational_output_cone(circuit: Circuit, start: str) -> List[str]:
    """Cells reachable from start's output without passing through a sequential cell"""
    cone: List[str] = []
    seen = {start}
    queue = deque(circuit.fanout.get(start, []))
    while queue:
        name = queue.popleft()
        if name in seen:
            continue
        seen.add(name)
        cone.append(name)
        # the sequential cell is impacted, its output is not
        if not circuit.cells[name].sequential:
            queue.extend(circuit.fanout[name])
    return cone

# ================== PLACEMENT ==================

def load_placement(filename: str) -> pd.DataFrame:
    """Cell placement (tab separated: name, x, y in nm)"""
    try:
        df = pd.read_csv(filename, sep='\t', comment='#', names=PLACEMENT_COLUMNS)
    except FileNotFoundError:
        raise FileNotFoundError(f"Placement file not found: {filename}")
    except pd.errors.EmptyDataError:
        raise ValueError(f"Placement file is empty: {filename}")
    if df.empty:
        raise ValueError(f"Placement file contains no data: {filename}")
    df['name'] = df['name'].astype(str).str.replace('\\', '', regex=False)
    return df


class AggressorRegions:
    """Placed cells inside an arx_nm x ary_nm rectangle centred on a clock buffer"""

    def __init__(self, placement: pd.DataFrame, arx_nm: int, ary_nm: int, log: Optional[logging.Logger] = None):
        self.placement = placement
        self.arx_nm = arx_nm
        self.ary_nm = ary_nm
        self.log = log or logger
        self._position = {row.name: (row.x, row.y) for row in placement.itertuples(index=False)}
        self._cache: Dict[str, List[str]] = {}

    def rectangle(self, x0, y0, x1, y1) -> List[str]:
        p = self.placement
        mask = (p['x'] >= x0) & (p['x'] <= x1) & (p['y'] >= y0) & (p['y'] <= y1)
        return p.loc[mask, 'name'].tolist()

    def around(self, buffer: str) -> List[str]:
        if buffer not in self._cache:
            if buffer not in self._position:
                self.log.warning("No placement for clock buffer %s", buffer)
                self._cache[buffer] = []
            else:
                x, y = self._position[buffer]
                self._cache[buffer] = self.rectangle(x - self.arx_nm // 2, y - self.ary_nm // 2,
                                                     x + self.arx_nm // 2, y + self.ary_nm // 2)
        return self._cache[buffer]

    def for_scan_cell(self, buffers: List[str]) -> List[str]:
        # no duplicate removal across buffers
        region: List[str] = []
        for b in buffers:
            region.extend(self.around(b))
        return region

# ================== FOOTPRINT TABLE ==================

def _join(cells: List[str]) -> str:
    return ','.join(cells) if cells else 'None'


def build_footprint_table(circuit: Circuit, placement: pd.DataFrame, arx_nm: int, ary_nm: int,
                          log: Optional[logging.Logger] = None) -> pd.DataFrame:
    log = log or logger
    buffers = collect_scan_cell_clock_buffers(circuit, log)
    regions = AggressorRegions(placement, arx_nm, ary_nm, log)

    log.info("Calculating impact sets...")
    rows = []
    for chain_id, chain in enumerate(circuit.scan_chains):
        for name in chain:
            impacts = [c for c in combinational_output_cone(circuit, name) + buffers[name]
                       if not circuit.cells[c].pseudo]
            rows.append({
                'chain_id': chain_id,
                'cell': name,
                'aggressors': _join(regions.for_scan_cell(buffers[name])),
                'impacts': _join(impacts)
            })
    return pd.DataFrame(rows, columns=FOOTPRINT_COLUMNS)
