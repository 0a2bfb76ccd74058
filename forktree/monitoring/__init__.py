#!/usr/bin/env python3
"""
ForkTree Monitoring Module
Command line monitor for block trees
"""

from .fork_monitor import ForkTreeMonitor, main

__all__ = [
    'ForkTreeMonitor',
    'main',
]
