#!/usr/bin/env python3
"""
Display helpers for block labels
"""


def short_hash(block_hash: str, prefix_length: int = 10, suffix_length: int = 8) -> str:
    """Abbreviate a hash as prefix...suffix"""
    if not block_hash:
        return ""
    if len(block_hash) <= prefix_length + suffix_length + 3:
        return block_hash
    return f"{block_hash[:prefix_length]}...{block_hash[-suffix_length:]}"


def format_miner_label(miner: str) -> str:
    """Human readable miner name, "Unknown Miner" when not identified"""
    trimmed = (miner or "").strip()
    if not trimmed or trimmed.lower() == "unknown":
        return "Unknown Miner"
    return trimmed
