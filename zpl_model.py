#!/usr/bin/env python3
"""
ZIMPL export of the grouping problem for an external exact solver, and the
reader for the solver's variable assignments.

Variable families, all binary and named <family>_<cell>_<chain>_<group>:
  x  aggressor cell of a chain placed in a group
  y  impact cell of a chain placed in a group
  z  aggressor cell of a chain is active in a group (some chain impacted by
     it shares the group)
plus one conf<k> indicator per adjacent scan cell pair whose aggressor count
difference may exceed the skew threshold. The objective minimizes the sum of
the conf indicators.
"""

import logging
import os
from typing import List, Optional, Sequence, Set, TextIO

from config import ZPL_CONFIG
from conflict_model import ConflictModel

SOLUTION_FAMILIES = ('x_', 'y_')


class ZplModel:

    def __init__(self, model: ConflictModel, skew_threshold: int = ZPL_CONFIG['skew_threshold'],
                 logger: Optional[logging.Logger] = None):
        self.model = model
        self.skew_threshold = skew_threshold
        self.log = logger or logging.getLogger(__name__)

        # only cells inside some impact set take part in the model
        nodes: Set[int] = set()
        for impacts in model.impact_sets:
            nodes.update(impacts)

        self.aregions: List[List[List[int]]] = [
            [[idx for idx in region if idx in nodes] for region in chain]
            for chain in model.aggressor_regions
        ]
        self.chain2aggressors: List[Set[int]] = [
            {idx for region in chain for idx in region} for chain in self.aregions
        ]
        all_aggressors = set().union(*self.chain2aggressors) if self.chain2aggressors else set()
        self.impacts: List[Set[int]] = [
            {idx for idx in impacts if idx in all_aggressors} for impacts in model.impact_sets
        ]

        self.conflict = 0
        self.unassigned_chains: List[int] = []

    @property
    def chain_count(self) -> int:
        return len(self.impacts)

    # ================== WRITER ==================

    def write_model(self, filename: str, group_count: int) -> int:
        """Write the model to filename; returns the number of conflict indicators"""
        self.log.info("Writing ZIMPL model for %d groups to %s", group_count, filename)
        try:
            with open(filename, 'w') as zpl:
                self.write(zpl, group_count)
        except Exception:
            if os.path.exists(filename):
                os.remove(filename)
            raise
        self.log.info("ZIMPL model written: %d conflict indicators", self.conflict)
        return self.conflict

    def write(self, out: TextIO, group_count: int) -> int:
        empty = [set() for _ in range(self.chain_count)]

        self._write_variables(out, self.chain2aggressors, self.impacts, group_count, 'x')
        self._write_variables(out, self.chain2aggressors, self.impacts, group_count, 'z')
        self._write_variables(out, self.impacts, empty, group_count, 'y')
        out.write("\n")

        # all cells of one chain go to the same group
        cid = self._write_same_group(out, self.chain2aggressors, self.impacts, group_count, 'x', 0)
        cid = self._write_same_group(out, self.impacts, empty, group_count, 'y', cid)
        # every cell variable goes to exactly one group
        cid = self._write_one_group(out, self.chain2aggressors, self.impacts, group_count, 'x', cid)
        cid = self._write_one_group(out, self.impacts, empty, group_count, 'y', cid)

        cid = self._write_aggressor_impact_link(out, group_count, cid)
        cid = self._write_z(out, group_count, cid)
        self.conflict = self._write_threshold(out, group_count, self.skew_threshold, cid)
        self._write_objective(out)
        return self.conflict

    @staticmethod
    def _members(members: Set[int], skip: Set[int]) -> List[int]:
        return sorted(n for n in members if n not in skip)

    def _write_variables(self, out: TextIO, members: Sequence[Set[int]], skip: Sequence[Set[int]],
                         group_count: int, family: str):
        for chain in range(len(members)):
            for node in self._members(members[chain], skip[chain]):
                for g in range(group_count):
                    out.write(f"var {family}_{node}_{chain}_{g} binary;\n")

    def _write_same_group(self, out: TextIO, members: Sequence[Set[int]], skip: Sequence[Set[int]],
                          group_count: int, family: str, cid: int) -> int:
        for chain in range(len(members)):
            nodes = self._members(members[chain], skip[chain])
            if not nodes:
                continue
            for g in range(group_count):
                total = " + ".join(f"{family}_{n}_{chain}_{g}" for n in nodes)
                out.write(f"subto c{cid}: vif {family}_{nodes[0]}_{chain}_{g} == 1 then "
                          f"{total} == {len(nodes)} else {total} == 0 end;\n")
                cid += 1
        return cid

    def _write_one_group(self, out: TextIO, members: Sequence[Set[int]], skip: Sequence[Set[int]],
                         group_count: int, family: str, cid: int) -> int:
        for chain in range(len(members)):
            for node in self._members(members[chain], skip[chain]):
                total = " + ".join(f"{family}_{node}_{chain}_{g}" for g in range(group_count))
                out.write(f"subto c{cid}: {total} == 1;\n")
                cid += 1
        return cid

    def _write_aggressor_impact_link(self, out: TextIO, group_count: int, cid: int) -> int:
        """Aggressor and impact cells of a chain share the chain's group"""
        for chain in range(self.chain_count):
            aggressors = self._members(self.chain2aggressors[chain], self.impacts[chain])
            impacts = sorted(self.impacts[chain])
            if not aggressors or not impacts:
                continue
            for g in range(group_count):
                out.write(f"subto c{cid}: x_{aggressors[0]}_{chain}_{g} - y_{impacts[0]}_{chain}_{g} == 0;\n")
                cid += 1
        return cid

    def _write_z(self, out: TextIO, group_count: int, cid: int) -> int:
        for chain in range(self.chain_count):
            for node in self._members(self.chain2aggressors[chain], self.impacts[chain]):
                impact_chains = [c for c in range(self.chain_count) if node in self.impacts[c]]
                if not impact_chains:
                    continue
                for g in range(group_count):
                    active = " + ".join(f"y_{node}_{c}_{g}" for c in impact_chains)
                    out.write(f"subto c{cid}: vif x_{node}_{chain}_{g} * ( {active} ) >= 1 then "
                              f"z_{node}_{chain}_{g} == 1 else z_{node}_{chain}_{g} == 0 end;\n")
                    cid += 1
        return cid

    def _write_threshold(self, out: TextIO, group_count: int, thr: int, cid: int) -> int:
        conflict = 0
        for chain in range(self.chain_count):
            regions = self.aregions[chain]
            for pos in range(1, len(regions)):
                pre = list(regions[pos - 1])
                cur = list(regions[pos])

                # shared aggressors cancel out
                for node in list(pre):
                    if node in cur:
                        pre.remove(node)
                        cur.remove(node)

                # self impact aggressors switch in every grouping
                pre_self = sum(1 for n in pre if n in self.impacts[chain])
                cur_self = sum(1 for n in cur if n in self.impacts[chain])
                pre = [n for n in pre if n not in self.impacts[chain]]
                cur = [n for n in cur if n not in self.impacts[chain]]

                self._log_impact_chains(pre, cur)

                if max(len(pre) + pre_self, len(cur) + cur_self) <= thr:
                    continue

                if pre or cur:
                    terms = [f" + z_{n}_{chain}_{g}" for n in pre for g in range(group_count)]
                    terms += [f" - z_{n}_{chain}_{g}" for n in cur for g in range(group_count)]
                    out.write(f"var conf{conflict} binary;\n")
                    out.write(f"subto c{cid}: vif vabs({''.join(terms)} + {pre_self} - {cur_self} ) > {thr} "
                              f"then conf{conflict} == 1 else conf{conflict} == 0 end;\n")
                    conflict += 1
                    cid += 1
                elif abs(pre_self - cur_self) > thr:
                    out.write(f"var conf{conflict} binary;\n")
                    out.write(f"subto c{cid}: conf{conflict} == 1;\n")
                    conflict += 1
                    cid += 1
        return conflict

    def _log_impact_chains(self, pre: List[int], cur: List[int]):
        if not self.log.isEnabledFor(logging.DEBUG):
            return
        self.log.debug("AggressorDiff %d", abs(len(pre) - len(cur)))
        for chain in range(self.chain_count):
            pre_count = sum(1 for n in pre if n in self.impacts[chain])
            cur_count = sum(1 for n in cur if n in self.impacts[chain])
            self.log.debug("ChainContribution %d %d", chain, abs(pre_count - cur_count))

    def _write_objective(self, out: TextIO):
        if self.conflict == 0:
            self.log.warning("No scan cell pair can exceed skew threshold %d, objective is constant",
                             self.skew_threshold)
            out.write("minimize conflict: 0;\n")
            return
        out.write("minimize conflict:" + "".join(f" + conf{k}" for k in range(self.conflict)) + ";\n")

    # ================== READER ==================

    def read_solution(self, filename: str, group_count: int) -> List[int]:
        """
        Clocking from a solver solution file.

        Lines whose first token is an x_ or y_ variable set
        clocking[chain] = group; a second token, when present, is the value
        and must be at least 0.5. Reading stops once every chain has been
        seen. Chains never seen stay in group 0 and are listed in
        unassigned_chains.
        """
        chains = self.chain_count
        clocking = [0] * chains
        seen = [False] * chains

        if chains > 0:
            with open(filename) as sol:
                for line in sol:
                    parts = line.split()
                    if not parts or not parts[0].startswith(SOLUTION_FAMILIES):
                        continue
                    fields = parts[0].split('_')
                    try:
                        chain, group = int(fields[2]), int(fields[3])
                        value = float(parts[1]) if len(parts) > 1 else 1.0
                    except (IndexError, ValueError):
                        self.log.warning("Skipping malformed solution line: %s", line.strip())
                        continue
                    if value < 0.5:
                        continue
                    if not (0 <= chain < chains and 0 <= group < group_count):
                        self.log.warning("Solution variable %s out of range", parts[0])
                        continue

                    clocking[chain] = group
                    seen[chain] = True
                    if all(seen):
                        break

        self.unassigned_chains = [c for c in range(chains) if not seen[c]]
        if self.unassigned_chains:
            self.log.warning("Solution %s assigns no group to chains %s", filename, self.unassigned_chains)
        self.log.info("Solution clocking %s", ' '.join(str(c) for c in clocking))
        return clocking
