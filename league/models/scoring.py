from dataclasses import dataclass, field
from typing import Dict

from league.constants import GROUP_STAGE


@dataclass(frozen=True)
class StageScoring:
    """Points available for one stage's matches."""

    exact_score_both: int
    exact_score_one: int
    result: int
    knockout_winner: int | None = None

    @classmethod
    def from_dict(cls, data):
        return cls(
            exact_score_both=data["exactScoreBoth"],
            exact_score_one=data["exactScoreOne"],
            result=data["result"],
            knockout_winner=data.get("knockoutWinner"),
        )

    def to_dict(self):
        data = {
            "exactScoreBoth": self.exact_score_both,
            "exactScoreOne": self.exact_score_one,
            "result": self.result,
        }
        if self.knockout_winner is not None:
            data["knockoutWinner"] = self.knockout_winner
        return data


@dataclass(frozen=True)
class ScoringConfig:
    group: StageScoring
    knockout: Dict[str, StageScoring] = field(default_factory=dict)

    def rules_for(self, stage) -> StageScoring | None:
        """Returns the rule set for a stage, or ``None`` when none is configured."""
        if stage == GROUP_STAGE:
            return self.group
        return self.knockout.get(stage)

    @classmethod
    def from_dict(cls, data):
        """
        Builds a config from its JSON shape after validating it.

        Raises:
            ScoringConfigError: if the payload does not match the schema
        """
        from league.utils.scoring_schema import (
            ScoringConfigError,
            format_validation_errors,
            validate_scoring_config,
        )

        is_valid, errors = validate_scoring_config(data)
        if not is_valid:
            raise ScoringConfigError(format_validation_errors(errors))

        knockout = {
            stage: StageScoring.from_dict(rules)
            for stage, rules in (data.get("knockout") or {}).items()
        }
        return cls(group=StageScoring.from_dict(data["group"]), knockout=knockout)

    def to_dict(self):
        return {
            "group": self.group.to_dict(),
            "knockout": {stage: rules.to_dict() for stage, rules in self.knockout.items()},
        }
