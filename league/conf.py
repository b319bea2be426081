"""
App-level settings for the league engine.

Values are read from the ``LEAGUE`` dict in Django settings and fall back to
the defaults below, e.g.::

    LEAGUE = {
        "LOCK_WINDOW_MINUTES": 30,
        "DATA_BASE_URL": "https://example.org/",
    }
"""
from django.conf import settings

from .constants import DATA_MODES, MODE_DEFAULT

DEFAULTS = {
    "LOCK_WINDOW_MINUTES": 30,
    "MATCHDAY_TIME_ZONE": "America/Los_Angeles",
    "BEST_THIRD_SLOTS": 8,
    "SWING_SAMPLE_PRIOR": 4,
    "DATA_BASE_URL": "http://localhost:8000/",
    "DEMO_DATA_PATH": "demo/",
    "REQUEST_TIMEOUT": 15,
    "FEED_CACHE_SECONDS": 60,
    "CACHE_ALIAS": "default",
}


def get_setting(name):
    """Returns a league setting, falling back to the built-in default."""
    if name not in DEFAULTS:
        raise KeyError(f"Unknown league setting: '{name}'")
    overrides = getattr(settings, "LEAGUE", None) or {}
    return overrides.get(name, DEFAULTS[name])


def resolve_mode(mode=None) -> str:
    """Validates a data mode, defaulting to the live league."""
    if mode is None:
        return MODE_DEFAULT
    if mode not in DATA_MODES:
        raise ValueError(f"Unknown data mode '{mode}'. Valid: {DATA_MODES}")
    return mode
