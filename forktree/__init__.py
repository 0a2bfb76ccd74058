#!/usr/bin/env python3
"""
ForkTree
Block-graph construction and tree layout for multi-node chain monitoring

Usage:
    from forktree.graph import build
    from forktree.layout import layout

    blocks = build(snapshot.header_infos, snapshot.nodes)
    tree = layout(blocks, selected_id=None)
"""

from .core import (
    Header, Tip, TipStatus, NodeReport, Network, Snapshot,
    ForkTreeError, SnapshotFormatError, SnapshotFetchError, LayoutInputError
)
from .graph import Block, TipStatusEntry, build, build_from_snapshot, block_sort_key
from .layout import LayoutConfig, PositionedNode, Edge, TreeLayout

__version__ = '0.1.0'

__all__ = [
    # Data model
    'Header', 'Tip', 'TipStatus', 'NodeReport', 'Network', 'Snapshot',

    # Errors
    'ForkTreeError', 'SnapshotFormatError', 'SnapshotFetchError', 'LayoutInputError',

    # Graph
    'Block', 'TipStatusEntry', 'build', 'build_from_snapshot', 'block_sort_key',

    # Layout
    'LayoutConfig', 'PositionedNode', 'Edge', 'TreeLayout',
]
