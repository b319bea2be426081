"""
Schema validation for league scoring configurations.

A scoring configuration is checked before it is turned into a
``ScoringConfig`` so that a bad upload is reported up front instead of
quietly scoring every pick as zero.
"""

from typing import Any, Dict, List
from dataclasses import dataclass

from league.constants import KNOCKOUT_STAGES

from .scoring_engine import ScoringEngineError


class ScoringConfigError(ScoringEngineError):
    """Raised when a scoring configuration does not match the schema."""

    pass


@dataclass
class ValidationError:
    """Represents a validation error."""
    path: str
    message: str


class ScoringConfigValidator:
    """
    Validates scoring configurations against the expected schema.

    Expected schema format:
    {
        "group": {"exactScoreBoth": 3, "exactScoreOne": 1, "result": 2},
        "knockout": {
            "R16": {"exactScoreBoth": 3, "exactScoreOne": 1, "result": 2, "knockoutWinner": 1},
            ...
        }
    }
    """

    REQUIRED_FIELDS = ("exactScoreBoth", "exactScoreOne", "result")
    KNOCKOUT_ONLY_FIELDS = ("knockoutWinner",)

    def __init__(self):
        self.errors: List[ValidationError] = []

    def validate(self, config: Dict[str, Any]) -> tuple[bool, List[ValidationError]]:
        """
        Validates a scoring configuration.

        Returns:
            (is_valid, errors) tuple
        """
        self.errors = []

        if not isinstance(config, dict):
            self.errors.append(ValidationError("", "Config must be a dictionary"))
            return False, self.errors

        if "group" not in config:
            self.errors.append(ValidationError("group", "Config must have a 'group' rule set"))
        else:
            self._validate_rule_set(config["group"], "group", knockout=False)

        knockout = config.get("knockout")
        if knockout is not None:
            if not isinstance(knockout, dict):
                self.errors.append(ValidationError("knockout", "knockout must be a mapping of stage to rule set"))
            else:
                for stage, rule_set in knockout.items():
                    path = f"knockout.{stage}"
                    if stage not in KNOCKOUT_STAGES:
                        self.errors.append(
                            ValidationError(path, f"Unknown stage '{stage}'. Valid: {KNOCKOUT_STAGES}")
                        )
                        continue
                    self._validate_rule_set(rule_set, path, knockout=True)

        return len(self.errors) == 0, self.errors

    def _validate_rule_set(self, rule_set: Dict[str, Any], path: str, knockout: bool):
        if not isinstance(rule_set, dict):
            self.errors.append(ValidationError(path, "Rule set must be a dictionary"))
            return

        for field in self.REQUIRED_FIELDS:
            if field not in rule_set:
                self.errors.append(ValidationError(f"{path}.{field}", f"Rule set requires field '{field}'"))
            else:
                self._validate_points(rule_set[field], f"{path}.{field}")

        for field in self.KNOCKOUT_ONLY_FIELDS:
            if field not in rule_set or rule_set[field] is None:
                continue
            if not knockout:
                self.errors.append(
                    ValidationError(f"{path}.{field}", f"'{field}' is only allowed on knockout stages")
                )
                continue
            self._validate_points(rule_set[field], f"{path}.{field}")

    def _validate_points(self, value, path: str):
        if isinstance(value, bool) or not isinstance(value, int):
            self.errors.append(ValidationError(path, "Points must be an integer"))
        elif value < 0:
            self.errors.append(ValidationError(path, "Points must not be negative"))


def validate_scoring_config(config: Dict[str, Any]) -> tuple[bool, List[ValidationError]]:
    """
    Convenience function to validate a scoring configuration.

    Example:
        >>> is_valid, errors = validate_scoring_config({"group": {...}})
        >>> if not is_valid:
        >>>     print(format_validation_errors(errors))
    """
    validator = ScoringConfigValidator()
    return validator.validate(config)


def format_validation_errors(errors: List[ValidationError]) -> str:
    """Formats validation errors into a human-readable string."""
    if not errors:
        return "No errors"

    lines = ["Scoring configuration validation errors:"]
    for error in errors:
        if error.path:
            lines.append(f"  - {error.path}: {error.message}")
        else:
            lines.append(f"  - {error.message}")
    return "\n".join(lines)
