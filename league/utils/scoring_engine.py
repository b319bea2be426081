"""
Declarative rule evaluator behind pick scoring.

A rule has a `condition` and a `scoring` block:

    {
        "id": "exact_score_both",
        "category": "exact",
        "description": "Both scores predicted exactly.",
        "condition": {
            "operator": "and",
            "conditions": [
                {"operator": "eq", "source": "prediction.home_score", "target": "result.home_score"},
                {"operator": "eq", "source": "prediction.away_score", "target": "result.away_score"}
            ]
        },
        "scoring": {"operator": "fixed", "value": 3},
        "exclusive": true
    }

`evaluate_rules` walks the rules in order, collects the points of every
matching rule and stops after the first matching `exclusive` rule. Exclusive
rules therefore go last, ordered from most to least specific.

Paths are resolved against a context of `{"prediction": ..., "result": ...}`
and work on both dicts and attribute-style objects.
"""

import functools
from dataclasses import dataclass
from typing import Any, List


@dataclass
class ScoreBreakdownItem:
    """Represents a single scoring event."""

    pick_id: Any
    rule_id: str
    category: str
    points: int
    description: str


@dataclass
class EvaluationResult:
    """Structured result of a rule evaluation."""

    total_score: int
    breakdown: List[ScoreBreakdownItem]


class ScoringEngineError(Exception):
    """Base exception for the scoring engine."""

    pass


class SchemaValidationError(ScoringEngineError):
    """Raised when a rule's structure is invalid."""

    pass


def resolve_path(obj, path):
    """
    Resolves a dot-separated path on an object, supporting both attribute and dict key access.
    e.g., resolve_path(context, "prediction.home_score")
    """
    try:
        return functools.reduce(
            lambda acc, key: acc.get(key)
            if isinstance(acc, dict)
            else getattr(acc, key),
            path.split("."),
            obj,
        )
    except (AttributeError, KeyError):
        return None


def _eval_condition_eq(condition, prediction, result):
    """
    True when both paths resolve to the same non-null value.

    Expected 'condition' shape:
    {"operator": "eq", "source": "prediction.x", "target": "result.x"}
    """
    context = {"prediction": prediction, "result": result}
    source_val = resolve_path(context, condition["source"])
    target_val = resolve_path(context, condition["target"])
    return source_val is not None and source_val == target_val


def _eval_condition_one_of(condition, prediction, result):
    """
    True when a path resolves to one of a literal list of values.

    Expected 'condition' shape:
    {"operator": "one_of", "source": "result.decided_by", "values": ["ET", "PENS"]}
    """
    context = {"prediction": prediction, "result": result}
    source_val = resolve_path(context, condition["source"])
    values = condition.get("values") or []
    return source_val is not None and source_val in values


def _eval_condition_and(condition, prediction, result):
    """
    All nested conditions must hold. An empty list never matches.

    Expected 'condition' shape:
    {"operator": "and", "conditions": [{...}, {...}]}
    """
    conditions = condition.get("conditions", [])
    if not conditions:
        return False

    return all(eval_condition(cond, prediction, result) for cond in conditions)


def _eval_condition_or(condition, prediction, result):
    """
    At least one nested condition must hold.

    Expected 'condition' shape:
    {"operator": "or", "conditions": [{...}, {...}]}
    """
    conditions = condition.get("conditions", [])
    return any(eval_condition(cond, prediction, result) for cond in conditions)


CONDITION_OPERATORS = {
    "eq": _eval_condition_eq,
    "one_of": _eval_condition_one_of,
    "and": _eval_condition_and,
    "or": _eval_condition_or,
}


def eval_condition(condition, prediction_obj, result_obj):
    """
    Evaluates a condition from a rule. Returns a boolean.
    """
    operator = condition.get("operator")
    eval_func = CONDITION_OPERATORS.get(operator)

    if eval_func:
        return eval_func(condition, prediction_obj, result_obj)
    return False


def _eval_scoring_fixed(scoring, prediction_obj, result_obj):
    """
    Returns a fixed score value.

    Expected 'scoring' shape:
    {"operator": "fixed", "value": 3}
    """
    return scoring.get("value") or 0


SCORING_OPERATORS = {
    "fixed": _eval_scoring_fixed,
}


def eval_scoring(scoring, prediction_obj, result_obj):
    """
    Calculates a score based on an operator.
    """
    operator = scoring.get("operator")
    eval_func = SCORING_OPERATORS.get(operator)

    if eval_func:
        return eval_func(scoring, prediction_obj, result_obj)
    return 0


def validate_rule(rule):
    """
    Validates a single rule against the operator schemas.
    Raises SchemaValidationError if the rule is invalid.
    """
    if "condition" not in rule or "scoring" not in rule:
        raise SchemaValidationError("Rule must have 'condition' and 'scoring' blocks.")

    condition = rule["condition"]
    scoring = rule["scoring"]
    cond_op_name = condition.get("operator")
    scor_op_name = scoring.get("operator")

    if not cond_op_name or not scor_op_name:
        raise SchemaValidationError("Cond/Scoring blocks must have an 'operator'.")
    if cond_op_name not in CONDITION_OPERATORS:
        raise SchemaValidationError(f"Unknown condition operator: '{cond_op_name}'")
    if scor_op_name not in SCORING_OPERATORS:
        raise SchemaValidationError(f"Unknown scoring operator: '{scor_op_name}'")

    return True


def evaluate_rules(rules, prediction_obj, result_obj) -> EvaluationResult:
    """
    Evaluates a set of rules against a prediction and a result, then
    sums the scores and provides a detailed breakdown.
    """
    total_score = 0
    breakdown_items = []
    for rule in rules:
        is_match = (
            True
            if "condition" not in rule
            else eval_condition(rule["condition"], prediction_obj, result_obj)
        )

        if is_match:
            score = eval_scoring(rule["scoring"], prediction_obj, result_obj)
            total_score += score

            breakdown_items.append(
                ScoreBreakdownItem(
                    pick_id=resolve_path(prediction_obj, "id"),
                    rule_id=rule.get("id", "untitled_rule"),
                    category=rule.get("category", ""),
                    points=score,
                    description=rule.get(
                        "description", "Points awarded for matching rule."
                    ),
                )
            )

            if rule.get("exclusive", False):
                break

    return EvaluationResult(total_score=total_score, breakdown=breakdown_items)
