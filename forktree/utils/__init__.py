from .display import short_hash, format_miner_label

__all__ = ['short_hash', 'format_miner_label']
