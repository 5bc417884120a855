#!/usr/bin/env python3
"""
Centralized configuration for scan chain grouping
"""

import logging

# =============================================================================
# PLACEMENT GEOMETRY
# =============================================================================

# SAED90 row height is 2880nm, NAND2X0/NAND2X1 width is 1920nm, def units are nm
NAND_WIDTH = 1920
ROW_HEIGHT = 2880

# Aggressor region size around each clock buffer
DEFAULT_ARX = 200  # in NAND2X1 widths
DEFAULT_ARY = 8    # in rows

# =============================================================================
# CLOCK TREE
# =============================================================================

# The only multi-input cell allowed inside a clock tree
GATING_CELL_TYPE = 'CGLPPR'
CLOCK_PIN = 'CLK'

# =============================================================================
# GROUPING METHODS
# =============================================================================

DEFAULT_GROUPING_METHOD = 'random'
DEFAULT_GROUP_COUNT = 1

# Random restarts + worst-chain tweaking
RLS_CONFIG = {
    'random_timeout': 50,
    'tweak_rounds': 10,
    'seed': 42
}

# Pair-cost bound search + incremental hyperedge refinement
BGC_CONFIG = {
    'max_refinements': 1000
}

# Genetic search
GA_CONFIG = {
    'population': 32,
    'scaling_c': 1.5,          # smaller will make this algorithm finish faster
    'fitness_base': 10000,
    'stall_limit': 6,
    'mutation_odds': 9,        # each gene re-randomized with probability 1/9
    'max_generations': 10000,
    'seed': None
}

# In-process exact solve with PuLP/CBC
ILP_CONFIG = {
    'timeout_seconds': 300,
    'msg': False
}

# ZIMPL model export for an external exact solver
ZPL_CONFIG = {
    'skew_threshold': 0
}

METHOD_CONFIGS = {
    'rls': RLS_CONFIG,
    'bgc': BGC_CONFIG,
    'ga': GA_CONFIG,
    'ilp': ILP_CONFIG
}

# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def get_config_for_method(method):
    """Get default parameters for a grouping method (empty for baselines)"""
    for prefix, cfg in METHOD_CONFIGS.items():
        if method.lower().startswith(prefix):
            return dict(cfg)
    return {}


def aggressor_region_nm(arx=DEFAULT_ARX, ary=DEFAULT_ARY):
    """Convert aggressor region size from cell widths/rows to nm"""
    return int(arx * NAND_WIDTH), int(ary * ROW_HEIGHT)


def log_current_config(logger=None):
    """Log current configuration parameters"""
    log = logger or logging.getLogger(__name__)
    arx_nm, ary_nm = aggressor_region_nm()
    log.info("AggressorRegionSize X %s Y %s", DEFAULT_ARX, DEFAULT_ARY)
    log.info("AggressorRegionSizeNM X %d Y %d", arx_nm, ary_nm)
    log.info("RandomLocalSearch %s", RLS_CONFIG)
    log.info("BoundedGraphColoring %s", BGC_CONFIG)
    log.info("GeneticSearch %s", GA_CONFIG)
    log.info("ExactILP %s", ILP_CONFIG)
    log.info("ZplModel %s", ZPL_CONFIG)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    log_current_config()
