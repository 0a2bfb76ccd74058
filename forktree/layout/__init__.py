#!/usr/bin/env python3
"""
ForkTree Layout Module
Deterministic tree layout of block graphs
"""

from .tree_layout import LayoutConfig, PositionedNode, Edge, TreeLayout, layout, height_columns

__all__ = [
    'LayoutConfig',
    'PositionedNode',
    'Edge',
    'TreeLayout',
    'layout',
    'height_columns',
]
