"""
Prints the leaderboard as it would stand under hypothetical results.

Usage:
    python manage.py project_leaderboard --data-dir public/data --outcome M49=2-1
    python manage.py project_leaderboard --data-dir public/data --outcome M73=1-1:HOME --outcome M74=0-2
"""
from pathlib import Path

from django.core.management.base import BaseCommand, CommandError

from league.constants import DATA_MODES, MODE_DEFAULT
from league.services.fetcher import DirectoryFetcher, FetchError
from league.utils.projection import InvalidOutcomeError, RejectedOutcome, SimulatedOutcome, build_projected_leaderboard


class Command(BaseCommand):
    help = "Project leaderboard ranks under hypothetical match results"

    def add_arguments(self, parser):
        parser.add_argument(
            '--data-dir',
            required=True,
            help='Directory holding leaderboard.json, matches.json, picks.json and scoring.json'
        )
        parser.add_argument(
            '--outcome',
            action='append',
            default=[],
            metavar='MATCH=H-A[:SIDE]',
            help='Hypothetical result, e.g. M49=2-1 or M73=1-1:HOME (repeatable)'
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

        outcomes, rejected = self._parse_outcomes(options['outcome'])

        mode = options['mode']
        fetcher = DirectoryFetcher(data_dir)
        try:
            leaderboard = fetcher.fetch_leaderboard(mode)
            matches = fetcher.fetch_matches(mode)
            picks = fetcher.fetch_picks(mode)
            scoring = fetcher.fetch_scoring(mode)
        except FetchError as e:
            raise CommandError(str(e)) from e

        projection = build_projected_leaderboard(
            leaderboard.entries, matches.matches, picks.picks, scoring, outcomes
        )

        self.stdout.write(f"{'Now':>4} {'Proj':>4} {'Move':>5}  {'Member':<24} {'Points':>6} {'Proj':>6}")
        for row in projection.rows:
            self.stdout.write(
                f"{row.current_rank:>4} {row.projected_rank:>4} {row.rank_change:>+5}  "
                f"{row.entry.member.name:<24} {row.entry.total_points:>6} {row.projected_total_points:>6}"
            )

        for item in rejected + projection.rejected:
            self.stdout.write(self.style.WARNING(f"Rejected {item.match_id}: {item.message}"))

        self.stdout.write(
            self.style.SUCCESS(f"Projected {len(projection.rows)} entries over {len(projection.applied)} matches.")
        )

    def _parse_outcomes(self, values):
        outcomes = {}
        rejected = []
        for value in values:
            match_id, sep, result = value.partition("=")
            match_id = match_id.strip()
            try:
                if not sep or not match_id:
                    raise InvalidOutcomeError(f"Expected MATCH=H-A[:SIDE], got '{value}'")
                outcomes[match_id] = SimulatedOutcome.parse(result)
            except InvalidOutcomeError as e:
                rejected.append(RejectedOutcome(match_id=match_id or value, message=str(e)))
        return outcomes, rejected
