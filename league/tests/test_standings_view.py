import datetime as dt
from unittest.mock import MagicMock

from django.core.cache import caches
from django.test import SimpleTestCase

from league.services.fetcher import FetchError, LeaderboardSnapshot, MatchesSnapshot, PicksSnapshot
from league.services.local_store import LocalStore
from league.services import load_leaderboard_view

from .factories import make_entry, make_match, make_pick, make_scoring

NOW = dt.datetime(2026, 6, 10, 12, 0, tzinfo=dt.timezone.utc)


class LeaderboardViewTest(SimpleTestCase):
    def setUp(self):
        caches["default"].clear()
        self.store = LocalStore()
        self.fetcher = MagicMock()
        self.fetcher.fetch_matches.return_value = MatchesSnapshot(
            matches=[make_match("M1", kickoff="2026-06-12T19:00:00Z")]
        )
        self.fetcher.fetch_picks.return_value = PicksSnapshot(
            picks=[make_pick("ana", "M1", 1, 0), make_pick("ben", "M1", 0, 1)]
        )
        self.fetcher.fetch_scoring.return_value = make_scoring()

    def set_leaderboard(self, last_updated, *entries):
        self.fetcher.fetch_leaderboard.return_value = LeaderboardSnapshot(entries=list(entries), last_updated=last_updated)

    def test_ready_state(self):
        self.set_leaderboard("v1", make_entry("ana", 3), make_entry("ben", 7))
        state = load_leaderboard_view(self.fetcher, self.store, now=NOW)

        self.assertTrue(state.is_ready)
        self.assertEqual([e.member.id for e in state.entries], ["ben", "ana"])
        self.assertEqual([m.delta for m in state.movements], [0, 0])
        self.assertEqual([o.match_id for o in state.swing], ["M1"])
        self.fetcher.fetch_matches.assert_called_once_with("default")

    def test_movement_after_an_update(self):
        self.set_leaderboard("v1", make_entry("ana", 7), make_entry("ben", 3))
        load_leaderboard_view(self.fetcher, self.store, now=NOW)

        unchanged = load_leaderboard_view(self.fetcher, self.store, now=NOW)
        self.assertEqual([m.delta for m in unchanged.movements], [0, 0])

        self.set_leaderboard("v2", make_entry("ana", 7), make_entry("ben", 9))
        state = load_leaderboard_view(self.fetcher, self.store, now=NOW)
        self.assertEqual(
            [(m.entry.member.id, m.delta, m.direction) for m in state.movements],
            [("ben", 1, "up"), ("ana", -1, "down")],
        )

    def test_non_finite_stored_ranks_are_ignored(self):
        self.store.cache.set(
            self.store.rank_snapshot_key("default"),
            '{"lastUpdated": "2026-06-01T00:00:00Z", "ranks": {"id:ana": Infinity}}',
            None,
        )
        self.set_leaderboard("v2", make_entry("ana", 7), make_entry("ben", 3))
        state = load_leaderboard_view(self.fetcher, self.store, now=NOW)

        self.assertTrue(state.is_ready)
        self.assertEqual([(m.delta, m.previous_rank) for m in state.movements], [(0, None), (0, None)])

    def test_modes_do_not_share_snapshots(self):
        self.set_leaderboard("v1", make_entry("ana", 7), make_entry("ben", 3))
        load_leaderboard_view(self.fetcher, self.store, mode="demo", now=NOW)

        self.set_leaderboard("v2", make_entry("ben", 9), make_entry("ana", 7))
        state = load_leaderboard_view(self.fetcher, self.store, mode="default", now=NOW)
        self.assertEqual([m.delta for m in state.movements], [0, 0])

    def test_error_state(self):
        self.fetcher.fetch_leaderboard.side_effect = FetchError("Failed to fetch leaderboard.json")
        with self.assertLogs("league.services.standings_view", level="ERROR"):
            state = load_leaderboard_view(self.fetcher, self.store)

        self.assertFalse(state.is_ready)
        self.assertEqual(state.message, "Failed to fetch leaderboard.json")
        self.assertEqual(state.entries, [])
