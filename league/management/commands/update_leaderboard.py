"""
Recomputes leaderboard.json from the feed files in a data directory.

Usage:
    python manage.py update_leaderboard --data-dir public/data
    python manage.py update_leaderboard --data-dir public/data --output /tmp/leaderboard.json
"""
import json
import logging
from pathlib import Path

from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

from league.constants import DATA_MODES, MODE_DEFAULT
from league.services.fetcher import DirectoryFetcher, FetchError
from league.utils.leaderboard import build_leaderboard, collect_leaderboard_members
from league.utils.standings import build_group_standings, resolve_best_third_qualifiers
from league.utils.timing import format_instant

logger = logging.getLogger(__name__)

BRACKET_POINTS_FILE = "bracket-points.json"


class Command(BaseCommand):
    help = "Rebuild leaderboard.json from matches, picks, scoring and members"

    def add_arguments(self, parser):
        parser.add_argument(
            '--data-dir',
            required=True,
            help='Directory holding matches.json, picks.json, scoring.json, ...'
        )
        parser.add_argument(
            '--output',
            help='Where to write the leaderboard (default: <data-dir>/leaderboard.json)'
        )
        parser.add_argument(
            '--mode',
            choices=DATA_MODES,
            default=MODE_DEFAULT,
            help='Data mode to read'
        )

    def handle(self, *args, **options):
        data_dir = Path(options['data_dir'])
        if not data_dir.is_dir():
            raise CommandError(f"Data directory not found: {data_dir}")

        mode = options['mode']
        fetcher = DirectoryFetcher(data_dir)
        try:
            matches = fetcher.fetch_matches(mode)
            picks = fetcher.fetch_picks(mode)
            scoring = fetcher.fetch_scoring(mode)
            members = fetcher.fetch_members(mode)
            brackets = fetcher.fetch_bracket_predictions(mode)
            bracket_points = self._load_bracket_points(fetcher, mode)
        except FetchError as e:
            raise CommandError(str(e)) from e

        active_user_ids = [*picks.user_ids, *(pick.user_id for pick in picks.picks), *brackets.user_ids]
        leaderboard_members = collect_leaderboard_members(members.members, active_user_ids)
        entries = build_leaderboard(
            leaderboard_members, matches.matches, picks.picks, scoring, bracket_points
        )
        # null until every group is finished
        best_thirds = resolve_best_third_qualifiers(build_group_standings(matches.matches))

        output = {
            "lastUpdated": matches.last_updated or format_instant(timezone.now()),
            "entries": [entry.to_dict() for entry in entries],
            "bestThirds": best_thirds,
        }
        output_path = Path(options['output'] or fetcher.get_path("leaderboard.json", mode))
        output_path.write_text(f"{json.dumps(output, indent=2)}\n", encoding="utf-8")

        logger.info(f"Wrote {len(entries)} leaderboard entries to {output_path}")
        if best_thirds is not None:
            logger.info(f"Best third-placed qualifiers: {', '.join(best_thirds)}")
        self.stdout.write(
            self.style.SUCCESS(f"Updated {output_path} ({len(entries)} entries).")
        )

    def _load_bracket_points(self, fetcher, mode):
        """Optional ``{"points": {userId: points}}`` file."""
        payload = fetcher.load_json(BRACKET_POINTS_FILE, mode, optional=True) or {}
        points = payload.get("points") or {}
        if not isinstance(points, dict):
            raise CommandError(f"{BRACKET_POINTS_FILE} must map user ids to points")
        return points
