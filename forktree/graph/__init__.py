#!/usr/bin/env python3
"""
ForkTree Graph Module
Canonical block graph construction and analysis
"""

from .builder import Block, TipStatusEntry, build, build_from_snapshot, block_sort_key, aggregate_tip_statuses
from .analysis import Fork, block_graph, header_graph, recent_forks, hotspot_budget, select_interesting_heights, strip_headers

__all__ = [
    'Block',
    'TipStatusEntry',
    'build',
    'build_from_snapshot',
    'block_sort_key',
    'aggregate_tip_statuses',
    'Fork',
    'block_graph',
    'header_graph',
    'recent_forks',
    'hotspot_budget',
    'select_interesting_heights',
    'strip_headers',
]
