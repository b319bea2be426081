"""
Lists the open matches the league is most split on.

Usage:
    python manage.py swing_report --data-dir public/data
    python manage.py swing_report --data-dir public/data --now 2026-06-12T18:00:00Z --limit 5
"""
from pathlib import Path

from django.core.management.base import BaseCommand, CommandError

from league.constants import DATA_MODES, MODE_DEFAULT
from league.services.fetcher import DirectoryFetcher, FetchError
from league.utils.swing import build_swing_opportunities
from league.utils.timing import parse_instant


class Command(BaseCommand):
    help = "Rank open matches by swing score"

    def add_arguments(self, parser):
        parser.add_argument(
            '--data-dir',
            required=True,
            help='Directory holding matches.json and picks.json'
        )
        parser.add_argument(
            '--now',
            help='Reference time as ISO-8601 (default: current time)'
        )
        parser.add_argument(
            '--limit',
            type=int,
            default=10,
            help='Maximum number of matches to list'
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

        now = None
        if options['now']:
            try:
                now = parse_instant(options['now'])
            except ValueError as e:
                raise CommandError(str(e)) from e

        mode = options['mode']
        fetcher = DirectoryFetcher(data_dir)
        try:
            matches = fetcher.fetch_matches(mode)
            picks = fetcher.fetch_picks(mode)
        except FetchError as e:
            raise CommandError(str(e)) from e

        opportunities = build_swing_opportunities(matches.matches, picks.picks, now)[: max(options['limit'], 0)]
        if not opportunities:
            self.stdout.write(self.style.WARNING("No open matches."))
            return

        for item in opportunities:
            consensus = (
                f"{item.consensus_team} {item.consensus_pct}%" if item.consensus_pct is not None else "no picks"
            )
            self.stdout.write(
                f"{item.match_id:<8} {item.label:<14} swing={item.swing_score:.4f} "
                f"votes={item.votes:<3} consensus={consensus} locks={item.lock_utc}"
            )
