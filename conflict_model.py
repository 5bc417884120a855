#!/usr/bin/env python3

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, FrozenSet, Hashable, Iterable, List, Optional, Sequence, Tuple

import pandas as pd

logger = logging.getLogger(__name__)

FOOTPRINT_COLUMNS = ['chain_id', 'cell', 'aggressors', 'impacts']

# ================== CELL INDEX SPACE ==================

class CellIndex:
    """Dense integer index over cells, stable once a cell has been added"""

    def __init__(self, cells: Iterable[Hashable] = ()):
        self._index: Dict[Hashable, int] = {}
        self._cells: List[Hashable] = []
        for cell in cells:
            self.add(cell)

    def add(self, cell: Hashable) -> int:
        idx = self._index.get(cell)
        if idx is None:
            idx = len(self._cells)
            self._index[cell] = idx
            self._cells.append(cell)
        return idx

    def index_of(self, cell: Hashable) -> int:
        return self._index[cell]

    def cell_at(self, idx: int) -> Hashable:
        return self._cells[idx]

    def cells(self) -> Tuple[Hashable, ...]:
        return tuple(self._cells)

    def __contains__(self, cell) -> bool:
        return cell in self._index

    def __len__(self) -> int:
        return len(self._cells)


# ================== CONFLICT MODEL ==================

@dataclass(frozen=True)
class ConflictModel:
    """
    Per-chain aggressor and impact footprints over a shared cell index space.

    aggressor_regions[chain][pos] lists the aggressor cell indices of the scan
    cell at shift position pos. Duplicates are kept: a cell close to several
    clock buffers of the same scan cell counts once per buffer.
    """
    impact_sets: Tuple[FrozenSet[int], ...]
    aggressor_regions: Tuple[Tuple[Tuple[int, ...], ...], ...]
    cell_names: Tuple[Any, ...] = ()
    scan_cells: Tuple[Tuple[Any, ...], ...] = ()
    cell_count: int = field(default=0)

    def __post_init__(self):
        if len(self.impact_sets) != len(self.aggressor_regions):
            raise ValueError(f"impact sets for {len(self.impact_sets)} chains but aggressor regions "
                             f"for {len(self.aggressor_regions)} chains")
        highest = -1
        for impacts in self.impact_sets:
            if impacts:
                highest = max(highest, max(impacts))
        for regions in self.aggressor_regions:
            for region in regions:
                if region:
                    highest = max(highest, max(region))
        object.__setattr__(self, 'cell_count', max(self.cell_count, len(self.cell_names), highest + 1))

    @property
    def chain_count(self) -> int:
        return len(self.impact_sets)

    def chain_length(self, chain: int) -> int:
        return len(self.aggressor_regions[chain])

    def chain_aggressors(self, chain: int) -> List[int]:
        """All aggressor entries of a chain, duplicates included"""
        return [idx for region in self.aggressor_regions[chain] for idx in region]

    def cell_name(self, idx: int):
        return self.cell_names[idx] if idx < len(self.cell_names) else idx

    # -------------------- constructors --------------------

    @classmethod
    def from_sets(cls, impact_sets: Sequence[Iterable[int]],
                  aggressor_regions: Sequence[Sequence[Iterable[int]]]) -> 'ConflictModel':
        """Build directly from cell indices (no names)"""
        return cls(
            impact_sets=tuple(frozenset(s) for s in impact_sets),
            aggressor_regions=tuple(tuple(tuple(region) for region in chain) for chain in aggressor_regions)
        )

    @classmethod
    def from_collaborators(cls, chains: Sequence[Sequence[Hashable]],
                           get_aggressor_region: Callable[[Hashable], Iterable[Hashable]],
                           get_impact_set: Callable[[int], Iterable[Hashable]],
                           cell_index: Optional[CellIndex] = None) -> 'ConflictModel':
        """
        Build from the collaborator contract.

        chains[i] is the shift-ordered list of scan cells of chain i,
        get_aggressor_region(scan_cell) the cells near that scan cell's clock
        buffers and get_impact_set(i) the impact set of chain i.
        """
        index = cell_index if cell_index is not None else CellIndex()
        impact_sets = []
        for chain_id in range(len(chains)):
            impact_sets.append(frozenset(index.add(c) for c in get_impact_set(chain_id)))
        aggressor_regions = []
        for cells in chains:
            aggressor_regions.append(tuple(
                tuple(index.add(a) for a in get_aggressor_region(cell)) for cell in cells
            ))
        return cls(
            impact_sets=tuple(impact_sets),
            aggressor_regions=tuple(aggressor_regions),
            cell_names=index.cells(),
            scan_cells=tuple(tuple(cells) for cells in chains)
        )

    @classmethod
    def from_footprint_table(cls, df: pd.DataFrame) -> 'ConflictModel':
        """Build from a footprint table (one row per scan cell, in shift order)"""
        chains: Dict[int, List[str]] = {}
        regions: Dict[str, List[str]] = {}
        impacts: Dict[int, set] = {}

        for _, row in df.iterrows():
            chain_id = int(row['chain_id'])
            cell = str(row['cell']).strip()
            chains.setdefault(chain_id, []).append(cell)
            regions[cell] = _split_cells(row['aggressors'])
            chain_impacts = impacts.setdefault(chain_id, set())
            chain_impacts.add(cell)
            chain_impacts.update(_split_cells(row['impacts']))

        chain_ids = sorted(chains)
        if chain_ids != list(range(len(chain_ids))):
            raise ValueError(f"chain ids must be dense 0..{len(chain_ids) - 1}, got {chain_ids}")

        ordered = [chains[c] for c in chain_ids]
        # sorted impact names keep the index assignment reproducible across runs
        return cls.from_collaborators(
            ordered,
            get_aggressor_region=lambda cell: regions[cell],
            get_impact_set=lambda chain_id: sorted(impacts[chain_id])
        )

    # -------------------- statistics --------------------

    def chain_statistics(self) -> pd.DataFrame:
        """Aggressors per scan cell and impact set size for every chain"""
        rows = []
        for chain in range(self.chain_count):
            sizes = [len(region) for region in self.aggressor_regions[chain]]
            max_diff = max((abs(a - b) for a, b in zip(sizes, sizes[1:])), default=0)
            rows.append({
                'chain_id': chain,
                'chain_length': len(sizes),
                'aggressors_min': min(sizes) if sizes else 0,
                'aggressors_avg': sum(sizes) // len(sizes) if sizes else 0,
                'aggressors_max': max(sizes) if sizes else 0,
                'max_difference': max_diff,
                'impact_cells': len(self.impact_sets[chain])
            })
        return pd.DataFrame(rows, columns=['chain_id', 'chain_length', 'aggressors_min', 'aggressors_avg',
                                           'aggressors_max', 'max_difference', 'impact_cells'])


# ================== LOADING ==================

def _split_cells(value) -> List[str]:
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return []
    text = str(value).strip()
    if not text or text == 'None':
        return []
    return [c.strip() for c in text.split(',') if c.strip()]


def load_footprint_table(filename: str) -> pd.DataFrame:
    """Load a footprint table (tab separated, '#' comments)"""
    try:
        df = pd.read_csv(filename, sep='\t', comment='#', names=FOOTPRINT_COLUMNS, dtype=str)
    except FileNotFoundError:
        raise FileNotFoundError(f"Footprint file not found: {filename}")
    except pd.errors.EmptyDataError:
        raise ValueError(f"Footprint file is empty: {filename}")

    if df.empty:
        raise ValueError(f"Footprint file contains no data: {filename}")
    if df['chain_id'].isna().any() or df['cell'].isna().any():
        raise ValueError(f"Footprint file has rows without chain id or cell name: {filename}")
    try:
        df['chain_id'] = df['chain_id'].astype(int)
    except ValueError as e:
        raise ValueError(f"Non-integer chain id in {filename}: {e}")
    return df


def save_footprint_table(df: pd.DataFrame, filename: str) -> None:
    df.to_csv(filename, sep='\t', header=False, index=False, columns=FOOTPRINT_COLUMNS)


def load_conflict_model(filename: str) -> ConflictModel:
    logger.info("Loading footprints from %s", filename)
    model = ConflictModel.from_footprint_table(load_footprint_table(filename))
    logger.info("Loaded: %d chains, %d scan cells, %d indexed cells", model.chain_count,
                sum(model.chain_length(c) for c in range(model.chain_count)), model.cell_count)
    return model
