"""
In-memory league records.

Matches, picks, scoring configs and bracket documents arrive already loaded
from the data feed; nothing here is backed by the database.
"""
from .matches import Match, MatchScore, Team
from .picks import Pick
from .scoring import ScoringConfig, StageScoring
from .members import LeaderboardEntry, Member
from .bracket import BracketPrediction, GroupPrediction

__all__ = [
    "Match",
    "MatchScore",
    "Team",
    "Pick",
    "ScoringConfig",
    "StageScoring",
    "Member",
    "LeaderboardEntry",
    "BracketPrediction",
    "GroupPrediction",
]
