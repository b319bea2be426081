"""
Pick validation and derivation helpers.

A pick is "complete" when it can be scored: both predicted scores are
non-negative integers and, for knockout matches predicted as a draw, the
advancing side has been chosen.
"""
import logging
from dataclasses import replace
from datetime import datetime
from typing import Dict, Iterable, List

from django.utils import timezone

from league.constants import AWAY, HOME, OUTCOME_DRAW, OUTCOME_LOSS, OUTCOME_WIN, SIDES
from league.models import Match, Pick

from .timing import format_instant, is_match_locked, parse_instant

logger = logging.getLogger(__name__)


class PickLockedError(Exception):
    """Raised when a pick is written after its match has locked."""

    pass


def is_score_value(value) -> bool:
    """True for non-negative integers. ``bool`` does not count."""
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def is_pick_complete(match: Match, pick: Pick | None) -> bool:
    if pick is None:
        return False
    if not is_score_value(pick.home_score) or not is_score_value(pick.away_score):
        return False
    if not match.is_group_stage and pick.home_score == pick.away_score:
        return pick.advances in SIDES
    return True


def outcome_from_scores(home_score, away_score) -> str | None:
    if not is_score_value(home_score) or not is_score_value(away_score):
        return None
    if home_score > away_score:
        return OUTCOME_WIN
    if home_score < away_score:
        return OUTCOME_LOSS
    return OUTCOME_DRAW


def get_pick_outcome(pick: Pick) -> str | None:
    return outcome_from_scores(pick.home_score, pick.away_score)


def get_predicted_winner(pick: Pick) -> str | None:
    """The side a pick has going through, honouring ``advances`` on a draw."""
    if not is_score_value(pick.home_score) or not is_score_value(pick.away_score):
        return None
    if pick.home_score > pick.away_score:
        return HOME
    if pick.away_score > pick.home_score:
        return AWAY
    if pick.advances in SIDES:
        return pick.advances
    return None


def get_match_outcome(match: Match) -> str | None:
    if not match.is_finished or match.score is None:
        return None
    return outcome_from_scores(match.score.home, match.score.away)


def _timestamp(value) -> datetime | None:
    try:
        return parse_instant(value)
    except ValueError:
        return None


def select_latest_pick_by_match(picks: Iterable[Pick]) -> Dict[str, Pick]:
    """
    Keeps the most recently updated pick per match.

    Picks without a readable ``updated_at`` never replace one that has it; on
    equal timestamps the later pick in the input wins.
    """
    by_match: Dict[str, Pick] = {}
    for pick in picks:
        existing = by_match.get(pick.match_id)
        if existing is None:
            by_match[pick.match_id] = pick
            continue
        current_ts = _timestamp(pick.updated_at)
        existing_ts = _timestamp(existing.updated_at)
        if current_ts is None:
            continue
        if existing_ts is None or current_ts >= existing_ts:
            by_match[pick.match_id] = pick
    return by_match


def flatten_picks_file(payload) -> List[Pick]:
    """
    Flattens a picks file into a list of ``Pick`` records.

    Accepts both the per-user document shape
    ``{"picks": [{"userId": ..., "picks": [...], "updatedAt": ...}]}`` and a
    flat ``{"picks": [pick, ...]}`` list. Per-user documents may also store
    their picks as a ``{matchId: pick}`` mapping.
    """
    picks: List[Pick] = []
    for item in (payload or {}).get("picks") or []:
        if not isinstance(item, dict):
            continue
        if "picks" not in item:
            if item.get("matchId"):
                picks.append(Pick.from_dict(item))
            continue

        user_id = item.get("userId") or ""
        fallback = item.get("updatedAt") or ""
        raw = item["picks"]
        if isinstance(raw, dict):
            raw = [dict(value, matchId=value.get("matchId") or match_id)
                   for match_id, value in raw.items() if isinstance(value, dict)]
        for value in raw or []:
            if isinstance(value, dict) and value.get("matchId"):
                picks.append(Pick.from_dict(value, user_id=user_id, fallback_timestamp=fallback))
    return picks


_INPUT_FIELDS = {
    "homeScore": "home_score",
    "awayScore": "away_score",
    "advances": "advances",
    "outcome": "outcome",
    "winner": "winner",
}


def upsert_pick(picks: List[Pick], pick_input: dict, match: Match | None = None, now=None) -> List[Pick]:
    """
    Inserts or updates the pick for ``(userId, matchId)`` and returns a new list.

    When ``match`` is given the write is refused once the match has locked.

    Raises:
        PickLockedError: if the match is locked at ``now``
    """
    now = now or timezone.now()
    user_id = pick_input["userId"]
    match_id = pick_input["matchId"]
    if match is not None and is_match_locked(match.kickoff_utc, now):
        raise PickLockedError(f"Picks for match {match_id} are locked.")

    stamp = format_instant(now)
    changes = {attr: pick_input[key] for key, attr in _INPUT_FIELDS.items() if key in pick_input}

    next_picks = list(picks)
    for index, existing in enumerate(next_picks):
        if existing.match_id == match_id and existing.user_id == user_id:
            next_picks[index] = replace(
                existing,
                **changes,
                created_at=existing.created_at or stamp,
                updated_at=stamp,
            )
            logger.debug(f"Updated pick for {user_id} on match {match_id}")
            return next_picks

    next_picks.append(
        Pick(
            id=f"pick-{user_id}-{match_id}",
            match_id=match_id,
            user_id=user_id,
            created_at=stamp,
            updated_at=stamp,
            **changes,
        )
    )
    logger.debug(f"Created pick for {user_id} on match {match_id}")
    return next_picks


def merge_picks(base_picks: List[Pick], local_picks: List[Pick], user_id: str) -> List[Pick]:
    """Replaces ``user_id``'s picks in ``base_picks`` with the local copy."""
    others = [pick for pick in base_picks if pick.user_id != user_id]
    return others + list(local_picks)
