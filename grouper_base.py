#!/usr/bin/env python3

import logging
import random
from abc import ABC, abstractmethod
from typing import List, Optional

from conflict_model import ConflictModel
from cost_function import FastCostFunction

# ================== GROUPER INTERFACE ==================

class ScanChainGrouper(ABC):
    """
    Abstract base class for all grouping strategies.

    A grouper owns its working arrays; the conflict model is shared and
    read-only. The cost function may be shared between groupers run one
    after the other, but not concurrently (it caches the last evaluation).
    """

    name = 'grouper'

    def __init__(self, model: ConflictModel, cost: Optional[FastCostFunction] = None,
                 seed: Optional[int] = None, logger: Optional[logging.Logger] = None):
        self.model = model
        self.log = logger or logging.getLogger(self.__class__.__module__)
        self.cost = cost or FastCostFunction(model, logger=self.log)
        self.seed = seed
        self.rng = random.Random(seed)

    @property
    def chain_count(self) -> int:
        return self.model.chain_count

    @abstractmethod
    def calculate_clocking(self, group_count: int) -> List[int]:
        """Assign every chain to a group in [0, group_count)"""
        pass
