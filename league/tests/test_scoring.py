from unittest.mock import patch

from django.test import SimpleTestCase

from league.constants import STATUS_IN_PROGRESS
from league.models import ScoringConfig, StageScoring
from league.utils.scoring import build_stage_rules, score_pick
from league.utils.scoring_engine import CONDITION_OPERATORS, SchemaValidationError

from .factories import group_rules, make_match, make_pick, make_scoring


def points(result):
    return (result.exact_points, result.result_points, result.knockout_points, result.total)


class GroupScoringTest(SimpleTestCase):
    """Group match M1 finishing 2-1 with 3/1/2 points."""

    def setUp(self):
        self.match = make_match(score=(2, 1), winner="HOME", decided_by="REGULAR")
        self.scoring = group_rules(exact_both=3, exact_one=1, result=2)

    def test_exact_score(self):
        self.assertEqual(points(score_pick(self.match, make_pick("ana", home=2, away=1), self.scoring)), (3, 2, 0, 5))

    def test_one_side_and_result(self):
        self.assertEqual(points(score_pick(self.match, make_pick("ana", home=2, away=0), self.scoring)), (1, 2, 0, 3))

    def test_wrong_everything(self):
        self.assertEqual(points(score_pick(self.match, make_pick("ana", home=0, away=2), self.scoring)), (0, 0, 0, 0))

    def test_one_side_without_result(self):
        self.assertEqual(points(score_pick(self.match, make_pick("ana", home=0, away=1), self.scoring)), (1, 0, 0, 1))

    def test_breakdown_itemises_rules(self):
        result = score_pick(self.match, make_pick("ana", home=2, away=1), self.scoring)
        self.assertEqual({item.rule_id for item in result.breakdown}, {"result", "exact_score_both"})
        self.assertTrue(result.is_exact)
        self.assertEqual(result.breakdown[0].pick_id, "pick-ana-M1")

    def test_exact_both_never_below_exact_one(self):
        exact = score_pick(self.match, make_pick("ana", home=2, away=1), self.scoring)
        one = score_pick(self.match, make_pick("ana", home=2, away=3), self.scoring)
        self.assertGreaterEqual(exact.exact_points, one.exact_points)

    def test_scoring_is_idempotent(self):
        pick = make_pick("ana", home=2, away=0)
        self.assertEqual(score_pick(self.match, pick, self.scoring), score_pick(self.match, pick, self.scoring))


class ZeroScoringTest(SimpleTestCase):
    def setUp(self):
        self.scoring = make_scoring()
        self.pick = make_pick("ana", home=2, away=1)

    def test_unfinished_match_scores_zero(self):
        for match in (
            make_match(),
            make_match(status=STATUS_IN_PROGRESS),
        ):
            self.assertEqual(score_pick(match, self.pick, self.scoring).total, 0)

    def test_finished_match_without_score_scores_zero(self):
        match = make_match(status="FINISHED")
        self.assertEqual(score_pick(match, self.pick, self.scoring).total, 0)

    def test_incomplete_pick_scores_zero(self):
        match = make_match(score=(2, 1))
        self.assertEqual(score_pick(match, make_pick("ana", home=2), self.scoring).total, 0)
        self.assertEqual(score_pick(match, None, self.scoring).total, 0)

    def test_stage_without_rules_scores_zero(self):
        match = make_match("M101", stage="Final", score=(2, 1), winner="HOME", decided_by="REGULAR")
        self.assertEqual(score_pick(match, self.pick, self.scoring).total, 0)


class KnockoutScoringTest(SimpleTestCase):
    """R32 match tied 1-1, HOME through on penalties, knockoutWinner worth 1."""

    def setUp(self):
        self.match = make_match("M73", stage="R32", score=(1, 1), winner="HOME", decided_by="PENS")
        self.scoring = make_scoring()

    def test_tied_pick_with_correct_advances_gets_bonus(self):
        result = score_pick(self.match, make_pick("ana", "M73", 1, 1, advances="HOME"), self.scoring)
        self.assertEqual(points(result), (3, 2, 1, 6))

    def test_tied_pick_with_wrong_advances_has_no_bonus(self):
        result = score_pick(self.match, make_pick("ana", "M73", 1, 1, advances="AWAY"), self.scoring)
        self.assertEqual(points(result), (3, 2, 0, 5))

    def test_tied_pick_without_advances_is_incomplete(self):
        result = score_pick(self.match, make_pick("ana", "M73", 1, 1), self.scoring)
        self.assertEqual(points(result), (0, 0, 0, 0))

    def test_decisive_pick_on_winning_side_gets_bonus(self):
        result = score_pick(self.match, make_pick("ana", "M73", 2, 1), self.scoring)
        self.assertEqual(points(result), (1, 0, 1, 2))

    def test_regulation_result_never_pays_bonus(self):
        match = make_match("M73", stage="R32", score=(2, 1), winner="HOME", decided_by="REGULAR")
        result = score_pick(match, make_pick("ana", "M73", 2, 1), self.scoring)
        self.assertEqual(points(result), (3, 2, 0, 5))

    def test_extra_time_pays_bonus(self):
        match = make_match("M73", stage="R32", score=(2, 1), winner="HOME", decided_by="ET")
        result = score_pick(match, make_pick("ana", "M73", 3, 0), self.scoring)
        self.assertEqual(points(result), (0, 2, 1, 3))

    def test_missing_winner_pays_no_bonus(self):
        match = make_match("M73", stage="R32", score=(1, 1), decided_by="PENS")
        result = score_pick(match, make_pick("ana", "M73", 1, 1, advances="HOME"), self.scoring)
        self.assertEqual(result.knockout_points, 0)


class StageRulesTest(SimpleTestCase):
    def test_group_rules_have_no_knockout_rule(self):
        rules = build_stage_rules(StageScoring(3, 1, 2, knockout_winner=1), knockout=False)
        self.assertNotIn("knockout_winner", [rule["id"] for rule in rules])

    def test_exact_rules_come_last_and_are_exclusive(self):
        rules = build_stage_rules(StageScoring(3, 1, 2, knockout_winner=1), knockout=True)
        self.assertEqual(
            [rule["id"] for rule in rules],
            ["result", "knockout_winner", "exact_score_both", "exact_score_one"],
        )
        self.assertTrue(all(rule.get("exclusive") for rule in rules[2:]))

    def test_rules_with_unregistered_operators_are_rejected(self):
        with patch.dict(CONDITION_OPERATORS):
            del CONDITION_OPERATORS["and"]
            with self.assertRaises(SchemaValidationError):
                build_stage_rules(StageScoring(3, 1, 2), knockout=False)
        self.assertEqual(len(build_stage_rules(StageScoring(3, 1, 2))), 3)

    def test_config_round_trips_knockout_rules(self):
        scoring = make_scoring()
        self.assertEqual(ScoringConfig.from_dict(scoring.to_dict()), scoring)
