"""
Lock times and matchday bucketing.

All instants are handled as timezone-aware UTC datetimes; feed values are
ISO-8601 strings.
"""
import datetime as dt
from dataclasses import dataclass
from datetime import timedelta
from typing import Iterable, List
from zoneinfo import ZoneInfo

from django.utils import timezone
from django.utils.dateparse import parse_datetime

from league.conf import get_setting
from league.constants import STAGE_SORT_ORDER
from league.models import Match


def parse_instant(value) -> dt.datetime:
    """
    Parses an ISO-8601 string (or passes a datetime through) as an aware UTC datetime.

    Naive values are taken to be UTC.

    Raises:
        ValueError: if the value cannot be read as a datetime
    """
    if isinstance(value, dt.datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        parsed = parse_datetime(value.strip())
        if parsed is None:
            raise ValueError(f"Invalid ISO-8601 timestamp: '{value}'")
    else:
        raise ValueError(f"Invalid timestamp: {value!r}")

    if timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed, dt.timezone.utc)
    return parsed.astimezone(dt.timezone.utc)


def format_instant(value: dt.datetime) -> str:
    """Formats a datetime as a UTC ISO-8601 string with a ``Z`` suffix."""
    return parse_instant(value).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def get_lock_time(kickoff_utc) -> dt.datetime:
    minutes = get_setting("LOCK_WINDOW_MINUTES")
    return parse_instant(kickoff_utc) - timedelta(minutes=minutes)


def is_match_locked(kickoff_utc, now=None) -> bool:
    now = parse_instant(now) if now is not None else timezone.now()
    return now >= get_lock_time(kickoff_utc)


def get_group_outcomes_lock_time(matches: Iterable[Match]) -> dt.datetime | None:
    """Group-stage predictions lock when the first group match kicks off."""
    kickoffs = [parse_instant(match.kickoff_utc) for match in matches if match.is_group_stage]
    return min(kickoffs) if kickoffs else None


def get_date_key_in_time_zone(kickoff_utc, time_zone=None) -> str:
    """Calendar day (``YYYY-MM-DD``) of a kickoff in the matchday time zone."""
    zone = ZoneInfo(time_zone or get_setting("MATCHDAY_TIME_ZONE"))
    return parse_instant(kickoff_utc).astimezone(zone).strftime("%Y-%m-%d")


@dataclass
class MatchGroup:
    date_key: str
    stage: str
    matches: List[Match]


def group_matches_by_date_and_stage(matches: Iterable[Match], time_zone=None) -> List[MatchGroup]:
    """
    Buckets matches into matchdays, split by stage.

    Matches inside a bucket are ordered by kickoff; buckets are ordered by day
    and then by stage order.
    """
    by_key = {}
    for match in matches:
        date_key = get_date_key_in_time_zone(match.kickoff_utc, time_zone)
        key = (date_key, match.stage)
        if key not in by_key:
            by_key[key] = MatchGroup(date_key=date_key, stage=match.stage, matches=[])
        by_key[key].matches.append(match)

    groups = list(by_key.values())
    for group in groups:
        group.matches.sort(key=lambda m: parse_instant(m.kickoff_utc))
    groups.sort(key=lambda g: (g.date_key, STAGE_SORT_ORDER.get(g.stage, len(STAGE_SORT_ORDER) + 1)))
    return groups
