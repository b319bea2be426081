"""
Consensus analysis over members' picks.

Swing opportunities rank the matches that are still open by how split the
league is on them, discounted for small samples. Social badges flag members
who hit exact scores or backed sides few others did.
"""
import math
from dataclasses import dataclass
from typing import Dict, Iterable, List

from league.conf import get_setting
from league.constants import AWAY, CONTRARIAN_THRESHOLD, HOME, UNDERDOG_THRESHOLD
from league.models import Match, Pick

from .leaderboard import group_picks_by_user
from .picks import get_predicted_winner, select_latest_pick_by_match
from .timing import format_instant, get_lock_time, is_match_locked, parse_instant


@dataclass(frozen=True)
class VoteTally:
    home: int = 0
    away: int = 0

    @property
    def total(self) -> int:
        return self.home + self.away


@dataclass(frozen=True)
class SwingOpportunity:
    match_id: str
    label: str
    kickoff_utc: str
    lock_utc: str
    votes: int
    home_votes: int
    away_votes: int
    consensus_side: str | None
    consensus_team: str | None
    consensus_pct: int | None
    swing_score: float

    def to_dict(self):
        return {
            "matchId": self.match_id,
            "label": self.label,
            "kickoffUtc": self.kickoff_utc,
            "lockUtc": self.lock_utc,
            "votes": self.votes,
            "consensusTeam": self.consensus_team,
            "consensusPct": self.consensus_pct,
            "swingScore": self.swing_score,
        }


def _vote_for(pick: Pick, match: Match | None) -> str | None:
    # ``advances`` only breaks a draw in a knockout tie.
    if pick.home_score == pick.away_score and (match is None or match.is_group_stage):
        return None
    return get_predicted_winner(pick)


def tally_predicted_winners(picks: Iterable[Pick], matches: Iterable[Match] = ()) -> Dict[str, VoteTally]:
    """
    Counts HOME/AWAY votes per match, one vote per member.

    Only each member's latest pick for a match counts; picks without a
    predicted winner (missing scores, or a draw that is not a knockout tie
    with ``advances``) are left out.
    """
    match_by_id = {match.id: match for match in matches}
    counts: Dict[str, Dict[str, int]] = {}
    for member_picks in group_picks_by_user(picks).values():
        for match_id, pick in select_latest_pick_by_match(member_picks).items():
            winner = _vote_for(pick, match_by_id.get(match_id))
            if winner not in (HOME, AWAY):
                continue
            match_counts = counts.setdefault(match_id, {HOME: 0, AWAY: 0})
            match_counts[winner] += 1
    return {match_id: VoteTally(home=c[HOME], away=c[AWAY]) for match_id, c in counts.items()}


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def compute_swing_score(tally: VoteTally, sample_prior=None) -> float:
    if sample_prior is None:
        sample_prior = get_setting("SWING_SAMPLE_PRIOR")
    total = tally.total
    margin = abs(tally.home - tally.away) / total if total > 0 else 1
    disagreement = max(0, 1 - margin)
    sample_weight = total / (total + sample_prior) if total > 0 else 0
    return round(disagreement * sample_weight, 4)


def build_swing_opportunities(matches: Iterable[Match], picks: Iterable[Pick], now=None) -> List[SwingOpportunity]:
    """
    Ranks unfinished, unlocked matches by swing score (highest first), ties
    broken by earliest kickoff.
    """
    matches = list(matches)
    tallies = tally_predicted_winners(picks, matches)
    opportunities = []
    for match in matches:
        if match.is_finished or is_match_locked(match.kickoff_utc, now):
            continue

        tally = tallies.get(match.id, VoteTally())
        total = tally.total
        side = (HOME if tally.home >= tally.away else AWAY) if total > 0 else None
        team = None
        if side is not None:
            team = match.home_team.code if side == HOME else match.away_team.code

        opportunities.append(
            SwingOpportunity(
                match_id=match.id,
                label=match.label,
                kickoff_utc=match.kickoff_utc,
                lock_utc=format_instant(get_lock_time(match.kickoff_utc)),
                votes=total,
                home_votes=tally.home,
                away_votes=tally.away,
                consensus_side=side,
                consensus_team=team,
                consensus_pct=round_half_up(max(tally.home, tally.away) / total * 100) if total > 0 else None,
                swing_score=compute_swing_score(tally),
            )
        )

    opportunities.sort(key=lambda o: (-o.swing_score, parse_instant(o.kickoff_utc)))
    return opportunities


@dataclass(frozen=True)
class SocialBadge:
    kind: str
    label: str
    description: str


SOCIAL_BADGES = {
    "perfect_pick": SocialBadge("perfect_pick", "Perfect Pick", "Exact score hit."),
    "contrarian": SocialBadge(
        "contrarian", "Contrarian", f"Picked a side with under {CONTRARIAN_THRESHOLD}% support."
    ),
    "underdog": SocialBadge("underdog", "Underdog", "Picked a low-consensus winner."),
}


def _support_pct(tally: VoteTally | None, side: str) -> float | None:
    if tally is None or tally.total <= 0:
        return None
    votes = tally.home if side == HOME else tally.away
    return votes / tally.total * 100


def build_social_badge_map(matches: Iterable[Match], picks: Iterable[Pick]) -> Dict[str, List[SocialBadge]]:
    """
    Badges per member, keyed by lowercased user id.

    ``perfect_pick`` for an exact score on a finished match, ``contrarian``
    for backing a side under 20% of the league backed and ``underdog`` for
    one at 35% or less.
    """
    picks = list(picks)
    match_by_id = {match.id: match for match in matches}
    tallies = tally_predicted_winners(picks, match_by_id.values())

    badges = {}
    for user_key, member_picks in group_picks_by_user(picks).items():
        kinds = set()
        for match_id, pick in select_latest_pick_by_match(member_picks).items():
            match = match_by_id.get(match_id)
            if match is None:
                continue
            if (
                match.is_finished
                and match.score is not None
                and pick.home_score == match.score.home
                and pick.away_score == match.score.away
            ):
                kinds.add("perfect_pick")

            winner = _vote_for(pick, match)
            if winner is None:
                continue
            support = _support_pct(tallies.get(match_id), winner)
            if support is None:
                continue
            if support < CONTRARIAN_THRESHOLD:
                kinds.add("contrarian")
            if support <= UNDERDOG_THRESHOLD:
                kinds.add("underdog")

        badges[user_key] = [SOCIAL_BADGES[kind] for kind in SOCIAL_BADGES if kind in kinds]
    return badges
