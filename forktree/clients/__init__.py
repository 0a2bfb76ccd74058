#!/usr/bin/env python3
"""
ForkTree Clients Module
HTTP access to the snapshot API
"""

from .snapshot_client import SnapshotClient, ChangeEvent, parse_event_stream

__all__ = [
    'SnapshotClient',
    'ChangeEvent',
    'parse_event_stream',
]
