from dataclasses import dataclass

from league.constants import GROUP_STAGE, LEGACY_ALIASES, STATUS_FINISHED


def normalize_choice(value):
    """Maps legacy spellings (``IN_PLAY``, ``REG``) onto the current ones."""
    if value is None:
        return None
    return LEGACY_ALIASES.get(value, value)


@dataclass(frozen=True)
class Team:
    code: str
    name: str = ""

    @classmethod
    def from_dict(cls, data):
        data = data or {}
        return cls(code=str(data.get("code") or ""), name=str(data.get("name") or ""))

    def to_dict(self):
        return {"code": self.code, "name": self.name}


@dataclass(frozen=True)
class MatchScore:
    home: int
    away: int

    @classmethod
    def from_dict(cls, data):
        if not isinstance(data, dict):
            return None
        home, away = data.get("home"), data.get("away")
        if not isinstance(home, int) or not isinstance(away, int):
            return None
        return cls(home=home, away=away)

    def to_dict(self):
        return {"home": self.home, "away": self.away}


@dataclass(frozen=True)
class Match:
    """A fixture as supplied by the data feed. Read-only to the engine."""

    id: str
    stage: str
    kickoff_utc: str
    status: str
    home_team: Team
    away_team: Team
    group: str | None = None
    score: MatchScore | None = None
    winner: str | None = None
    decided_by: str | None = None

    @property
    def is_group_stage(self) -> bool:
        return self.stage == GROUP_STAGE

    @property
    def is_finished(self) -> bool:
        return self.status == STATUS_FINISHED

    @property
    def label(self) -> str:
        return f"{self.home_team.code} vs {self.away_team.code}"

    @classmethod
    def from_dict(cls, data):
        return cls(
            id=str(data["id"]),
            stage=data.get("stage", GROUP_STAGE),
            kickoff_utc=data["kickoffUtc"],
            status=normalize_choice(data.get("status")),
            home_team=Team.from_dict(data.get("homeTeam")),
            away_team=Team.from_dict(data.get("awayTeam")),
            group=data.get("group") or None,
            score=MatchScore.from_dict(data.get("score")),
            winner=data.get("winner") or None,
            decided_by=normalize_choice(data.get("decidedBy") or None),
        )

    def to_dict(self):
        data = {
            "id": self.id,
            "stage": self.stage,
            "kickoffUtc": self.kickoff_utc,
            "status": self.status,
            "homeTeam": self.home_team.to_dict(),
            "awayTeam": self.away_team.to_dict(),
        }
        if self.group:
            data["group"] = self.group
        if self.score:
            data["score"] = self.score.to_dict()
        if self.winner:
            data["winner"] = self.winner
        if self.decided_by:
            data["decidedBy"] = self.decided_by
        return data
