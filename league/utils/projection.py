"""
What-if projections.

Hypothetical results for unfinished matches are turned into finished copies
of those matches and scored with the same ``score_pick`` as the live
leaderboard. The points are added on top of each member's real total; real
matches, picks and entries are never modified.
"""
import logging
import re
from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, List, Mapping

from league.constants import AWAY, DECIDED_PENALTIES, DECIDED_REGULAR, HOME, SIDES, STATUS_FINISHED
from league.models import LeaderboardEntry, Match, MatchScore, Pick, ScoringConfig

from .leaderboard import get_identity_key, group_picks_by_user, latest_picks_for_member, sort_leaderboard
from .picks import is_score_value
from .scoring import score_pick

logger = logging.getLogger(__name__)

OUTCOME_PATTERN = re.compile(r"^(?P<home>-?\d+)-(?P<away>-?\d+)(?::(?P<advances>[A-Za-z]+))?$")


class InvalidOutcomeError(ValueError):
    """Raised for a hypothetical result that can't be simulated."""

    pass


@dataclass(frozen=True)
class SimulatedOutcome:
    home_score: int
    away_score: int
    advances: str | None = None

    def validate(self):
        """
        Raises:
            InvalidOutcomeError: for negative or non-integer scores, or an
                ``advances`` value other than HOME/AWAY
        """
        if not is_score_value(self.home_score) or not is_score_value(self.away_score):
            raise InvalidOutcomeError(
                f"Scores must be non-negative integers, got {self.home_score!r}-{self.away_score!r}"
            )
        if self.advances is not None and self.advances not in SIDES:
            raise InvalidOutcomeError(f"advances must be one of {SIDES}, got {self.advances!r}")
        return self

    @classmethod
    def from_dict(cls, data):
        if not isinstance(data, dict):
            raise InvalidOutcomeError(f"Outcome must be an object, got {data!r}")
        return cls(
            home_score=data.get("homeScore"),
            away_score=data.get("awayScore"),
            advances=data.get("advances") or None,
        ).validate()

    @classmethod
    def parse(cls, text: str):
        """Parses ``"2-1"`` or ``"1-1:HOME"``."""
        found = OUTCOME_PATTERN.match((text or "").strip())
        if not found:
            raise InvalidOutcomeError(f"Expected HOME-AWAY[:SIDE], got '{text}'")
        advances = found.group("advances")
        return cls(
            home_score=int(found.group("home")),
            away_score=int(found.group("away")),
            advances=advances.upper() if advances else None,
        ).validate()


def synthesize_finished_match(match: Match, outcome: SimulatedOutcome) -> Match:
    """
    A finished copy of ``match`` carrying the hypothetical result.

    Differing scores are a regulation win for the higher side. A tie in a
    knockout match goes to ``advances`` on penalties; a group-stage tie has no
    winner.
    """
    if outcome.home_score > outcome.away_score:
        winner, decided_by = HOME, DECIDED_REGULAR
    elif outcome.away_score > outcome.home_score:
        winner, decided_by = AWAY, DECIDED_REGULAR
    elif not match.is_group_stage and outcome.advances in SIDES:
        winner, decided_by = outcome.advances, DECIDED_PENALTIES
    else:
        winner, decided_by = None, DECIDED_REGULAR

    return replace(
        match,
        status=STATUS_FINISHED,
        score=MatchScore(home=outcome.home_score, away=outcome.away_score),
        winner=winner,
        decided_by=decided_by,
    )


@dataclass(frozen=True)
class ProjectedRow:
    entry: LeaderboardEntry
    current_rank: int
    projected_total_points: int
    projected_delta: int
    projected_rank: int

    @property
    def rank_change(self) -> int:
        """Positive when the member would climb."""
        return self.current_rank - self.projected_rank

    def to_dict(self):
        return {
            "member": self.entry.member.to_dict(),
            "totalPoints": self.entry.total_points,
            "projectedTotalPoints": self.projected_total_points,
            "projectedDelta": self.projected_delta,
            "currentRank": self.current_rank,
            "projectedRank": self.projected_rank,
            "rankChange": self.rank_change,
        }


@dataclass(frozen=True)
class RejectedOutcome:
    match_id: str
    message: str


@dataclass(frozen=True)
class Projection:
    rows: List[ProjectedRow]
    applied: List[str] = field(default_factory=list)
    rejected: List[RejectedOutcome] = field(default_factory=list)


def _simulated_matches(matches: Iterable[Match], outcomes: Mapping[str, object]):
    match_by_id = {match.id: match for match in matches}
    simulated = []
    rejected = []
    for match_id, outcome in outcomes.items():
        match = match_by_id.get(match_id)
        try:
            if match is None:
                raise InvalidOutcomeError(f"Unknown match '{match_id}'")
            if match.is_finished:
                raise InvalidOutcomeError(f"Match '{match_id}' is already finished")
            if not isinstance(outcome, SimulatedOutcome):
                outcome = SimulatedOutcome.from_dict(outcome)
            outcome.validate()
        except InvalidOutcomeError as e:
            logger.warning(f"Rejected simulated outcome for {match_id}: {e}")
            rejected.append(RejectedOutcome(match_id=match_id, message=str(e)))
            continue
        simulated.append(synthesize_finished_match(match, outcome))
    return simulated, rejected


def build_projected_leaderboard(
    entries: List[LeaderboardEntry],
    matches: Iterable[Match],
    picks: Iterable[Pick],
    scoring: ScoringConfig,
    outcomes: Mapping[str, object] | None = None,
) -> Projection:
    """
    Projects the leaderboard under hypothetical results.

    ``entries`` is the real leaderboard; it is ranked here with
    ``sort_leaderboard`` before anything else. ``outcomes`` maps match
    ids to a ``SimulatedOutcome`` (or its JSON shape). Rows come back sorted by
    projected total, then real total; remaining ties keep their current order.
    """
    entries = sort_leaderboard(entries)
    simulated, rejected = _simulated_matches(matches, outcomes or {})
    picks_by_user = group_picks_by_user(picks)
    current_ranks: Dict[str, int] = {}
    for index, entry in enumerate(entries):
        current_ranks.setdefault(get_identity_key(entry), index + 1)

    rows = []
    for entry in entries:
        member_picks = latest_picks_for_member(entry.member, picks_by_user)
        gain = sum(score_pick(match, member_picks.get(match.id), scoring).total for match in simulated)
        rows.append((entry, gain))

    rows.sort(key=lambda row: (-(row[0].total_points + row[1]), -row[0].total_points))

    projected = [
        ProjectedRow(
            entry=entry,
            current_rank=current_ranks[get_identity_key(entry)],
            projected_total_points=entry.total_points + gain,
            projected_delta=gain,
            projected_rank=index + 1,
        )
        for index, (entry, gain) in enumerate(rows)
    ]
    logger.info(f"Projected {len(projected)} entries over {len(simulated)} simulated matches")
    return Projection(rows=projected, applied=[match.id for match in simulated], rejected=rejected)
