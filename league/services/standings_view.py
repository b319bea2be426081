"""
Composes the leaderboard view: ranked entries, rank movement since the last
data update and the open matches most worth revisiting.
"""
import logging
from dataclasses import dataclass, field
from typing import List

from league.conf import resolve_mode
from league.models import LeaderboardEntry, Match, Pick, ScoringConfig
from league.utils.leaderboard import (
    RankMovement,
    build_rank_snapshot,
    compute_rank_movement,
    resolve_previous_ranks,
    sort_leaderboard,
)
from league.utils.scoring_engine import ScoringEngineError
from league.utils.swing import SwingOpportunity, build_swing_opportunities

from .fetcher import FetchError

logger = logging.getLogger(__name__)

STATUS_READY = "ready"
STATUS_ERROR = "error"


@dataclass(frozen=True)
class LoadState:
    status: str
    message: str = ""
    entries: List[LeaderboardEntry] = field(default_factory=list)
    last_updated: str = ""
    matches: List[Match] = field(default_factory=list)
    picks: List[Pick] = field(default_factory=list)
    scoring: ScoringConfig | None = None
    movements: List[RankMovement] = field(default_factory=list)
    swing: List[SwingOpportunity] = field(default_factory=list)

    @property
    def is_ready(self) -> bool:
        return self.status == STATUS_READY

    @classmethod
    def error(cls, message):
        return cls(status=STATUS_ERROR, message=message)


def load_leaderboard_view(fetcher, store, mode=None, now=None) -> LoadState:
    """
    Loads everything the leaderboard view needs for ``mode``.

    The stored rank snapshot is used as the movement baseline when the
    leaderboard has been updated since it was written, and is then replaced
    with the current ranks. Any load failure turns into an error state with a
    single message; nothing is retried.
    """
    mode = resolve_mode(mode)
    try:
        leaderboard = fetcher.fetch_leaderboard(mode)
        matches = fetcher.fetch_matches(mode)
        picks = fetcher.fetch_picks(mode)
        scoring = fetcher.fetch_scoring(mode)
    except (FetchError, ScoringEngineError) as e:
        logger.error(f"Failed to load leaderboard view ({mode}): {e}")
        return LoadState.error(str(e) or "Unknown error")

    entries = sort_leaderboard(leaderboard.entries)
    previous = resolve_previous_ranks(store.load_rank_snapshot(mode), leaderboard.last_updated)
    store.save_rank_snapshot(mode, build_rank_snapshot(entries, leaderboard.last_updated))

    return LoadState(
        status=STATUS_READY,
        entries=entries,
        last_updated=leaderboard.last_updated,
        matches=matches.matches,
        picks=picks.picks,
        scoring=scoring,
        movements=compute_rank_movement(entries, previous),
        swing=build_swing_opportunities(matches.matches, picks.picks, now),
    )
