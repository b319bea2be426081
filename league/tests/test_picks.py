import datetime as dt

from django.test import SimpleTestCase

from league.models import Pick
from league.utils.picks import (
    PickLockedError,
    flatten_picks_file,
    get_pick_outcome,
    get_predicted_winner,
    is_pick_complete,
    merge_picks,
    select_latest_pick_by_match,
    upsert_pick,
)

from .factories import make_match, make_pick


class PickCompletenessTest(SimpleTestCase):
    def setUp(self):
        self.group_match = make_match()
        self.knockout_match = make_match("M73", stage="R32")

    def test_missing_pick_is_incomplete(self):
        self.assertFalse(is_pick_complete(self.group_match, None))

    def test_missing_score_is_incomplete(self):
        self.assertFalse(is_pick_complete(self.group_match, make_pick("ana", home=1)))

    def test_negative_or_boolean_scores_are_incomplete(self):
        self.assertFalse(is_pick_complete(self.group_match, make_pick("ana", home=-1, away=0)))
        self.assertFalse(is_pick_complete(self.group_match, make_pick("ana", home=True, away=0)))

    def test_group_draw_is_complete(self):
        self.assertTrue(is_pick_complete(self.group_match, make_pick("ana", home=1, away=1)))

    def test_knockout_draw_needs_advances(self):
        self.assertFalse(is_pick_complete(self.knockout_match, make_pick("ana", "M73", 1, 1)))
        self.assertTrue(is_pick_complete(self.knockout_match, make_pick("ana", "M73", 1, 1, advances="AWAY")))

    def test_knockout_decisive_score_is_complete_without_advances(self):
        self.assertTrue(is_pick_complete(self.knockout_match, make_pick("ana", "M73", 2, 1)))


class PickDerivationTest(SimpleTestCase):
    def test_outcome_relative_to_home(self):
        self.assertEqual(get_pick_outcome(make_pick("ana", home=2, away=1)), "WIN")
        self.assertEqual(get_pick_outcome(make_pick("ana", home=0, away=3)), "LOSS")
        self.assertEqual(get_pick_outcome(make_pick("ana", home=1, away=1)), "DRAW")
        self.assertIsNone(get_pick_outcome(make_pick("ana")))

    def test_predicted_winner(self):
        self.assertEqual(get_predicted_winner(make_pick("ana", home=2, away=1)), "HOME")
        self.assertEqual(get_predicted_winner(make_pick("ana", home=0, away=1)), "AWAY")
        self.assertEqual(get_predicted_winner(make_pick("ana", home=1, away=1, advances="AWAY")), "AWAY")
        self.assertIsNone(get_predicted_winner(make_pick("ana", home=1, away=1)))
        self.assertIsNone(get_predicted_winner(make_pick("ana")))


class PickParsingTest(SimpleTestCase):
    def test_numeric_strings_are_read_as_scores(self):
        pick = Pick.from_dict({"matchId": "M1", "userId": "ana", "homeScore": "2", "awayScore": 1.0})
        self.assertEqual((pick.home_score, pick.away_score), (2, 1))
        self.assertEqual(pick.id, "pick-ana-M1")

    def test_invalid_sides_are_dropped(self):
        pick = Pick.from_dict({"matchId": "M1", "userId": "ana", "advances": "LEFT", "outcome": "MAYBE"})
        self.assertIsNone(pick.advances)
        self.assertIsNone(pick.outcome)

    def test_flatten_per_user_documents(self):
        payload = {
            "picks": [
                {
                    "userId": "ana",
                    "updatedAt": "2026-06-01T00:00:00Z",
                    "picks": [{"matchId": "M1", "homeScore": 1, "awayScore": 0}],
                },
                {
                    "userId": "ben",
                    "updatedAt": "2026-06-02T00:00:00Z",
                    "picks": {"M2": {"homeScore": 2, "awayScore": 2}},
                },
            ]
        }
        picks = flatten_picks_file(payload)
        self.assertEqual([(p.user_id, p.match_id) for p in picks], [("ana", "M1"), ("ben", "M2")])
        self.assertEqual(picks[1].updated_at, "2026-06-02T00:00:00Z")

    def test_flatten_flat_list(self):
        payload = {"picks": [{"matchId": "M1", "userId": "ana", "homeScore": 0, "awayScore": 0}]}
        self.assertEqual(len(flatten_picks_file(payload)), 1)
        self.assertEqual(flatten_picks_file({}), [])


class LatestPickTest(SimpleTestCase):
    def test_latest_update_wins(self):
        older = make_pick("ana", home=1, away=0, updated_at="2026-06-01T10:00:00Z")
        newer = make_pick("ana", home=3, away=0, updated_at="2026-06-02T10:00:00Z")
        self.assertEqual(select_latest_pick_by_match([newer, older])["M1"].home_score, 3)
        self.assertEqual(select_latest_pick_by_match([older, newer])["M1"].home_score, 3)

    def test_equal_timestamps_keep_the_later_pick(self):
        first = make_pick("ana", home=1, away=0)
        second = make_pick("ana", home=2, away=0)
        self.assertEqual(select_latest_pick_by_match([first, second])["M1"].home_score, 2)


class UpsertPickTest(SimpleTestCase):
    def setUp(self):
        self.match = make_match(kickoff="2026-06-11T19:00:00Z")
        self.early = dt.datetime(2026, 6, 10, 12, 0, tzinfo=dt.timezone.utc)

    def test_creates_new_pick(self):
        picks = upsert_pick([], {"userId": "ana", "matchId": "M1", "homeScore": 2, "awayScore": 0}, self.match, self.early)
        self.assertEqual(len(picks), 1)
        self.assertEqual(picks[0].id, "pick-ana-M1")
        self.assertEqual(picks[0].created_at, "2026-06-10T12:00:00.000Z")

    def test_updates_existing_pick_and_keeps_created_at(self):
        existing = [make_pick("ana", home=1, away=1, updated_at="2026-06-01T00:00:00Z")]
        picks = upsert_pick(existing, {"userId": "ana", "matchId": "M1", "homeScore": 3}, self.match, self.early)
        self.assertEqual(len(picks), 1)
        self.assertEqual((picks[0].home_score, picks[0].away_score), (3, 1))
        self.assertEqual(picks[0].created_at, "2026-06-01T00:00:00Z")
        self.assertEqual(picks[0].updated_at, "2026-06-10T12:00:00.000Z")
        self.assertEqual(existing[0].home_score, 1)

    def test_refuses_locked_match(self):
        late = dt.datetime(2026, 6, 11, 18, 45, tzinfo=dt.timezone.utc)
        with self.assertRaises(PickLockedError):
            upsert_pick([], {"userId": "ana", "matchId": "M1", "homeScore": 1}, self.match, late)

    def test_merge_replaces_only_that_users_picks(self):
        base = [make_pick("ana", home=1, away=0), make_pick("ben", home=0, away=0)]
        local = [make_pick("ana", home=4, away=0)]
        merged = merge_picks(base, local, "ana")
        self.assertEqual([(p.user_id, p.home_score) for p in merged], [("ben", 0), ("ana", 4)])
