"""
Leaderboard aggregation, ranking and rank-movement tracking.

Entries are ranked by descending ``total_points`` with a stable sort: members
on equal points keep the order they were supplied in.
"""
import logging
import math
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping

from league.models import LeaderboardEntry, Match, Member, Pick, ScoringConfig

from .picks import is_pick_complete, select_latest_pick_by_match
from .scoring import score_pick
from .timing import parse_instant

logger = logging.getLogger(__name__)


def _normalize_key(value) -> str:
    return str(value or "").strip().lower()


def _member_of(entry_or_member) -> Member:
    if isinstance(entry_or_member, LeaderboardEntry):
        return entry_or_member.member
    return entry_or_member


def get_identity_key(entry_or_member) -> str:
    """
    Stable key for a member across data sources.

    First non-empty of id, uid, email, then the lowercased name, each with a
    type prefix (``id:``, ``uid:``, ``email:``, ``name:``).
    """
    member = _member_of(entry_or_member)
    for prefix, value in (("id", member.id), ("uid", member.uid), ("email", member.email)):
        key = _normalize_key(value)
        if key:
            return f"{prefix}:{key}"
    return f"name:{_normalize_key(member.name)}"


def resolve_identity_keys(entry_or_member) -> List[str]:
    """Every lowercased id a member's picks may have been filed under."""
    member = _member_of(entry_or_member)
    keys = []
    for value in (member.id, member.uid, member.email):
        key = _normalize_key(value)
        if key and key not in keys:
            keys.append(key)
    return keys


def build_viewer_key_set(values: Iterable[str | None]) -> set:
    """Normalizes the ids a viewer may be known by (user id, uid, email)."""
    return {_normalize_key(value) for value in values if _normalize_key(value)}


def group_picks_by_user(picks: Iterable[Pick]) -> Dict[str, List[Pick]]:
    by_user = defaultdict(list)
    for pick in picks:
        by_user[_normalize_key(pick.user_id)].append(pick)
    return by_user


def latest_picks_for_member(member: Member, picks_by_user: Mapping[str, List[Pick]]) -> Dict[str, Pick]:
    """The latest pick per match across every id the member is known by."""
    member_picks = []
    for key in resolve_identity_keys(member):
        member_picks.extend(picks_by_user.get(key, []))
    return select_latest_pick_by_match(member_picks)


def _lookup_bracket_points(member: Member, bracket_points: Mapping[str, int]) -> int:
    for key in resolve_identity_keys(member):
        if key in bracket_points:
            return bracket_points[key]
    return 0


def _is_earlier(candidate: str, current: str | None) -> bool:
    try:
        candidate_ts = parse_instant(candidate)
    except ValueError:
        return False
    if current is None:
        return True
    try:
        return candidate_ts < parse_instant(current)
    except ValueError:
        return True


def build_leaderboard(
    members: Iterable[Member],
    matches: Iterable[Match],
    picks: Iterable[Pick],
    scoring: ScoringConfig,
    bracket_points: Mapping[str, int] | None = None,
) -> List[LeaderboardEntry]:
    """
    Builds one ranked entry per member.

    Picks are attached to members through their id, uid or email (case
    insensitive); only the latest pick per member per match counts.
    ``bracket_points`` maps a member id (or uid/email) to points earned from
    bracket predictions and is added to the total.

    A pick that fails to score is logged and counts as zero; it never stops
    the rest of the leaderboard from being computed.
    """
    finished = [match for match in matches if match.is_finished]
    picks_by_user = group_picks_by_user(picks)
    bracket_points = {
        _normalize_key(key): points for key, points in (bracket_points or {}).items()
    }

    entries = []
    for member in members:
        entry = LeaderboardEntry(member=member)
        member_picks = latest_picks_for_member(member, picks_by_user)

        for match in finished:
            pick = member_picks.get(match.id)
            if pick is None:
                continue
            try:
                result = score_pick(match, pick, scoring)
                complete = is_pick_complete(match, pick)
            except Exception as e:
                logger.warning(f"Skipping pick {pick.id} for member {member.id}: {e}")
                continue

            entry.exact_points += result.exact_points
            entry.result_points += result.result_points
            entry.knockout_points += result.knockout_points
            if complete:
                entry.picks_count += 1
                if result.is_exact:
                    entry.exact_count += 1
                if _is_earlier(pick.created_at, entry.earliest_submission):
                    entry.earliest_submission = pick.created_at

        entry.bracket_points = _lookup_bracket_points(member, bracket_points)
        entry.total_points = (
            entry.exact_points + entry.result_points + entry.knockout_points + entry.bracket_points
        )
        entries.append(entry)

    logger.info(f"Built leaderboard for {len(entries)} members over {len(finished)} finished matches")
    return sort_leaderboard(entries)


def sort_leaderboard(entries: Iterable[LeaderboardEntry]) -> List[LeaderboardEntry]:
    """Descending total points. Ties keep their input order."""
    return sorted(entries, key=lambda entry: -entry.total_points)


@dataclass(frozen=True)
class RankedEntry:
    entry: LeaderboardEntry
    rank: int


@dataclass(frozen=True)
class UserContext:
    current: RankedEntry
    above: RankedEntry | None
    below: RankedEntry | None


def rank_entries(entries: List[LeaderboardEntry]) -> List[RankedEntry]:
    return [RankedEntry(entry=entry, rank=index + 1) for index, entry in enumerate(entries)]


def resolve_user_context(entries: List[LeaderboardEntry], viewer_keys) -> UserContext | None:
    """The viewer's ranked row plus the rows directly above and below it."""
    for index, entry in enumerate(entries):
        if any(key in viewer_keys for key in resolve_identity_keys(entry)):
            return UserContext(
                current=RankedEntry(entry=entry, rank=index + 1),
                above=RankedEntry(entry=entries[index - 1], rank=index) if index > 0 else None,
                below=RankedEntry(entry=entries[index + 1], rank=index + 2)
                if index < len(entries) - 1
                else None,
            )
    return None


@dataclass(frozen=True)
class RankSnapshot:
    """Ranks by identity key as of a leaderboard's ``last_updated`` stamp."""

    last_updated: str
    ranks: Dict[str, int]

    @classmethod
    def from_dict(cls, data):
        """Returns ``None`` for anything that is not a well-formed snapshot."""
        if not isinstance(data, dict):
            return None
        last_updated = data.get("lastUpdated")
        ranks = data.get("ranks")
        if not isinstance(last_updated, str) or not isinstance(ranks, dict):
            return None
        return cls(
            last_updated=last_updated,
            ranks={
                key: value
                for key, value in ranks.items()
                if isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)
            },
        )

    def to_dict(self):
        return {"lastUpdated": self.last_updated, "ranks": dict(self.ranks)}


def build_rank_snapshot(entries: List[LeaderboardEntry], last_updated: str) -> RankSnapshot:
    return RankSnapshot(
        last_updated=last_updated,
        ranks={get_identity_key(entry): index + 1 for index, entry in enumerate(entries)},
    )


def resolve_previous_ranks(stored: RankSnapshot | None, last_updated: str) -> Dict[str, int] | None:
    """
    The stored snapshot becomes the movement baseline only once the data has
    moved on, i.e. its ``last_updated`` differs from the current one.
    """
    if stored is None or stored.last_updated == last_updated:
        return None
    return stored.ranks


@dataclass(frozen=True)
class RankMovement:
    entry: LeaderboardEntry
    rank: int
    previous_rank: int | None
    delta: int

    @property
    def direction(self) -> str:
        if self.delta > 0:
            return "up"
        if self.delta < 0:
            return "down"
        return "flat"


def compute_rank_movement(
    entries: List[LeaderboardEntry], previous_ranks: Mapping[str, int] | None
) -> List[RankMovement]:
    """
    Movement per entry: previous rank minus current rank, so moving up the
    table is positive. Entries without a previous rank are flat.
    """
    movements = []
    for index, entry in enumerate(entries):
        rank = index + 1
        previous = (previous_ranks or {}).get(get_identity_key(entry))
        previous = int(previous) if previous is not None else None
        delta = previous - rank if previous is not None else 0
        movements.append(RankMovement(entry=entry, rank=rank, previous_rank=previous, delta=delta))
    return movements


def collect_leaderboard_members(members: List[Member], active_user_ids: Iterable[str]) -> List[Member]:
    """
    Adds a placeholder member for every active user without a member record.

    Skipped when every member id is an email address, since activity ids are
    then not comparable to member ids.
    """
    members = list(members)
    if members and all("@" in member.id for member in members):
        return members

    known = {member.id for member in members}
    extras = [
        Member(id=user_id, name=user_id)
        for user_id in sorted(set(active_user_ids))
        if user_id and user_id not in known
    ]
    if extras:
        logger.info(f"Added {len(extras)} active users without a member record")
    return members + extras
