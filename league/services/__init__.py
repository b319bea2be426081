"""
Services layer for the league engine.

This package contains:
- cache.py: Response caching utilities
- fetcher.py: Data feed fetching (HTTP or a local data directory)
- local_store.py: Per-mode local cache for bracket predictions and rank snapshots
- standings_view.py: Leaderboard view composition with load states
"""

from .cache import ResponseCache, response_cache
from .fetcher import DirectoryFetcher, Fetcher, FetchError, fetcher
from .local_store import LocalStore, local_store
from .standings_view import LoadState, load_leaderboard_view

__all__ = [
    'ResponseCache',
    'response_cache',
    'Fetcher',
    'DirectoryFetcher',
    'fetcher',
    'FetchError',
    'LocalStore',
    'local_store',
    'LoadState',
    'load_leaderboard_view',
]
