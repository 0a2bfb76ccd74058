#!/usr/bin/env python3
"""
ForkTree Configuration Module
Centralized constants for the block-graph builder, layout engine and monitor
"""

import os

# ==========================================
# GRAPH CONFIGURATION
# ==========================================

# "No parent" marker in prev_id (maximum unsigned 64-bit id)
NO_PARENT = 2 ** 64 - 1

# Tip statuses in display priority (most canonical first)
TIP_STATUS_PRIORITY = (
    'active',
    'valid-fork',
    'valid-headers',
    'headers-only',
    'invalid',
    'unknown',
)

# ==========================================
# LAYOUT CONFIGURATION
# ==========================================

HORIZONTAL_GAP = int(os.getenv('FORKTREE_HORIZONTAL_GAP', 250))  # pixels per column
VERTICAL_GAP = int(os.getenv('FORKTREE_VERTICAL_GAP', 100))      # pixels per slot
ROOT_GAP = int(os.getenv('FORKTREE_ROOT_GAP', 1))                # empty slots between trees

# ==========================================
# CLIENT / MONITOR CONFIGURATION
# ==========================================

DEFAULT_API_URL = os.getenv('FORKTREE_API_URL', 'http://localhost:2323')
REQUEST_TIMEOUT = float(os.getenv('FORKTREE_REQUEST_TIMEOUT', 10.0))
DEBOUNCE_SECONDS = float(os.getenv('FORKTREE_DEBOUNCE_SECONDS', 0.5))
RECONNECT_SECONDS = float(os.getenv('FORKTREE_RECONNECT_SECONDS', 3.0))  # wait before resubscribing to changes

# Recent forks listed by the monitor summary
RECENT_FORKS_SHOWN = 5


def is_no_parent(prev_id: int) -> bool:
    """Check whether a prev_id is the "no parent" sentinel"""
    return prev_id == NO_PARENT


def get_all_config() -> dict:
    """Get all configuration as dictionary"""
    return {
        'no_parent': NO_PARENT,
        'tip_status_priority': list(TIP_STATUS_PRIORITY),
        'horizontal_gap': HORIZONTAL_GAP,
        'vertical_gap': VERTICAL_GAP,
        'root_gap': ROOT_GAP,
        'default_api_url': DEFAULT_API_URL,
        'request_timeout': REQUEST_TIMEOUT,
        'debounce_seconds': DEBOUNCE_SECONDS,
        'reconnect_seconds': RECONNECT_SECONDS,
        'recent_forks_shown': RECENT_FORKS_SHOWN,
    }
