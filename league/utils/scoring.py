"""
Scores one pick against one finished match.

The points for a stage come from a ``StageScoring`` rule set, which is
expanded into declarative rules and run through the generic evaluator in
``scoring_engine``. Live aggregation and what-if projections both go
through ``score_pick``.
"""
import logging
from dataclasses import dataclass, field
from typing import List

from league.constants import (
    CATEGORY_EXACT,
    CATEGORY_KNOCKOUT,
    CATEGORY_RESULT,
    TIE_BREAK_DECISIONS,
)
from league.models import Match, Pick, ScoringConfig, StageScoring

from .picks import get_match_outcome, get_pick_outcome, get_predicted_winner, is_pick_complete
from .scoring_engine import ScoreBreakdownItem, evaluate_rules, validate_rule

logger = logging.getLogger(__name__)

EXACT_BOTH_RULE_ID = "exact_score_both"


@dataclass(frozen=True)
class PickScore:
    exact_points: int = 0
    result_points: int = 0
    knockout_points: int = 0
    breakdown: List[ScoreBreakdownItem] = field(default_factory=list)

    @property
    def total(self) -> int:
        return self.exact_points + self.result_points + self.knockout_points

    @property
    def is_exact(self) -> bool:
        """True when both scores were predicted exactly."""
        return any(item.rule_id == EXACT_BOTH_RULE_ID for item in self.breakdown)

    def to_dict(self):
        return {
            "exactPoints": self.exact_points,
            "resultPoints": self.result_points,
            "knockoutPoints": self.knockout_points,
            "total": self.total,
        }


ZERO_SCORE = PickScore()


def build_stage_rules(rules: StageScoring, knockout: bool = False):
    """
    Expands a stage rule set into evaluator rules.

    Order matters: the non-exclusive result and knockout rules come first,
    then the two exact-score tiers as exclusive rules so at most one of them
    pays out.
    """
    stage_rules = [
        {
            "id": "result",
            "category": CATEGORY_RESULT,
            "description": "Correct win/draw/loss outcome.",
            "condition": {
                "operator": "eq",
                "source": "prediction.outcome",
                "target": "result.outcome",
            },
            "scoring": {"operator": "fixed", "value": rules.result},
        },
    ]

    if knockout and rules.knockout_winner is not None:
        stage_rules.append(
            {
                "id": "knockout_winner",
                "category": CATEGORY_KNOCKOUT,
                "description": "Correct team to advance after extra time or penalties.",
                "condition": {
                    "operator": "and",
                    "conditions": [
                        {
                            "operator": "one_of",
                            "source": "result.decided_by",
                            "values": list(TIE_BREAK_DECISIONS),
                        },
                        {
                            "operator": "eq",
                            "source": "prediction.winner",
                            "target": "result.winner",
                        },
                    ],
                },
                "scoring": {"operator": "fixed", "value": rules.knockout_winner},
            }
        )

    stage_rules += [
        {
            "id": EXACT_BOTH_RULE_ID,
            "category": CATEGORY_EXACT,
            "description": "Both scores predicted exactly.",
            "condition": {
                "operator": "and",
                "conditions": [
                    {"operator": "eq", "source": "prediction.home_score", "target": "result.home_score"},
                    {"operator": "eq", "source": "prediction.away_score", "target": "result.away_score"},
                ],
            },
            "scoring": {"operator": "fixed", "value": rules.exact_score_both},
            "exclusive": True,
        },
        {
            "id": "exact_score_one",
            "category": CATEGORY_EXACT,
            "description": "One side's score predicted exactly.",
            "condition": {
                "operator": "or",
                "conditions": [
                    {"operator": "eq", "source": "prediction.home_score", "target": "result.home_score"},
                    {"operator": "eq", "source": "prediction.away_score", "target": "result.away_score"},
                ],
            },
            "scoring": {"operator": "fixed", "value": rules.exact_score_one},
            "exclusive": True,
        },
    ]
    for rule in stage_rules:
        validate_rule(rule)
    return stage_rules


def _prediction_context(pick: Pick):
    return {
        "id": pick.id,
        "home_score": pick.home_score,
        "away_score": pick.away_score,
        "outcome": get_pick_outcome(pick),
        "winner": get_predicted_winner(pick),
    }


def _result_context(match: Match):
    return {
        "home_score": match.score.home,
        "away_score": match.score.away,
        "outcome": get_match_outcome(match),
        "winner": match.winner,
        "decided_by": match.decided_by,
    }


def score_pick(match: Match, pick: Pick | None, scoring: ScoringConfig) -> PickScore:
    """
    Scores a pick for a match.

    Returns all zeros unless the match is finished with a score, the pick is
    complete and the stage has a rule set.
    """
    if not match.is_finished or match.score is None:
        return ZERO_SCORE
    if not is_pick_complete(match, pick):
        return ZERO_SCORE

    rules = scoring.rules_for(match.stage)
    if rules is None:
        logger.debug(f"No scoring rules for stage '{match.stage}', match {match.id}")
        return ZERO_SCORE

    evaluation = evaluate_rules(
        build_stage_rules(rules, knockout=not match.is_group_stage),
        _prediction_context(pick),
        _result_context(match),
    )

    points = {CATEGORY_EXACT: 0, CATEGORY_RESULT: 0, CATEGORY_KNOCKOUT: 0}
    for item in evaluation.breakdown:
        points[item.category] += item.points

    return PickScore(
        exact_points=points[CATEGORY_EXACT],
        result_points=points[CATEGORY_RESULT],
        knockout_points=points[CATEGORY_KNOCKOUT],
        breakdown=evaluation.breakdown,
    )
