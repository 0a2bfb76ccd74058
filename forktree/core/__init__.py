#!/usr/bin/env python3
"""
ForkTree Core Module
Snapshot data model and error types
"""

from .exceptions import ForkTreeError, SnapshotFormatError, SnapshotFetchError, LayoutInputError
from .models import Header, Tip, TipStatus, NodeReport, Network, Snapshot

__all__ = [
    'ForkTreeError',
    'SnapshotFormatError',
    'SnapshotFetchError',
    'LayoutInputError',
    'Header',
    'Tip',
    'TipStatus',
    'NodeReport',
    'Network',
    'Snapshot',
]
