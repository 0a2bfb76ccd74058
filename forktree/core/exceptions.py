#!/usr/bin/env python3
"""
ForkTree error types
"""


class ForkTreeError(Exception):
    """Base class for all ForkTree errors"""


class SnapshotFormatError(ForkTreeError, ValueError):
    """A snapshot or network document violates the collaborator contract"""


class LayoutInputError(ForkTreeError, ValueError):
    """The layout engine received a structurally invalid block set"""


class SnapshotFetchError(ForkTreeError):
    """Fetching data from the snapshot API failed"""

    def __init__(self, message: str, url: str = "", status_code: int = None):
        super().__init__(message)
        self.url = url
        self.status_code = status_code
