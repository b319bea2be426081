"""
Group tables and best third-placed qualifiers, derived from finished group
matches.
"""
from dataclasses import dataclass, field
from typing import Dict, Iterable, List

from league.conf import get_setting
from league.constants import GROUP_STAGE, POINTS_FOR_DRAW, POINTS_FOR_WIN
from league.models import Match, Team


@dataclass
class GroupStanding:
    team: Team
    points: int = 0
    goals_for: int = 0
    goals_against: int = 0

    @property
    def goal_diff(self) -> int:
        return self.goals_for - self.goals_against

    def to_dict(self):
        return {
            "team": self.team.to_dict(),
            "points": self.points,
            "goalsFor": self.goals_for,
            "goalsAgainst": self.goals_against,
            "goalDiff": self.goal_diff,
        }


@dataclass
class GroupSummary:
    complete: bool = True
    standings: List[GroupStanding] = field(default_factory=list)


def _standing_sort_key(standing: GroupStanding):
    return (-standing.points, -standing.goal_diff, -standing.goals_for, standing.team.code)


def build_group_standings(matches: Iterable[Match]) -> Dict[str, GroupSummary]:
    """
    Tables per group: points, then goal difference, then goals scored, then
    team code. A group is complete only once every one of its matches is
    finished.
    """
    tables: Dict[str, Dict[str, GroupStanding]] = {}
    complete: Dict[str, bool] = {}

    for match in matches:
        if match.stage != GROUP_STAGE or not match.group:
            continue
        teams = tables.setdefault(match.group, {})
        complete.setdefault(match.group, True)
        home = teams.setdefault(match.home_team.code, GroupStanding(team=match.home_team))
        away = teams.setdefault(match.away_team.code, GroupStanding(team=match.away_team))

        if not match.is_finished or match.score is None:
            complete[match.group] = False
            continue

        home.goals_for += match.score.home
        home.goals_against += match.score.away
        away.goals_for += match.score.away
        away.goals_against += match.score.home
        if match.score.home > match.score.away:
            home.points += POINTS_FOR_WIN
        elif match.score.home < match.score.away:
            away.points += POINTS_FOR_WIN
        else:
            home.points += POINTS_FOR_DRAW
            away.points += POINTS_FOR_DRAW

    return {
        group_id: GroupSummary(
            complete=complete[group_id],
            standings=sorted(teams.values(), key=_standing_sort_key),
        )
        for group_id, teams in tables.items()
    }


def _normalize_codes(codes) -> List[str]:
    normalized = [str(code or "").strip().upper() for code in codes or []]
    return list(dict.fromkeys(code for code in normalized if code))


def resolve_best_third_qualifiers(standings: Dict[str, GroupSummary], overrides=None) -> List[str] | None:
    """
    The best third-placed teams, or ``None`` while any group is unfinished.

    A non-empty ``overrides`` list is returned as is (normalized, de-duplicated).
    """
    override_codes = _normalize_codes(overrides)
    if override_codes:
        return override_codes

    thirds = []
    for summary in standings.values():
        if not summary.complete or len(summary.standings) < 3:
            return None
        thirds.append(summary.standings[2])

    thirds.sort(key=_standing_sort_key)
    return [standing.team.code for standing in thirds[: get_setting("BEST_THIRD_SLOTS")]]
