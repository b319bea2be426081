from dataclasses import dataclass, field
from typing import Dict, List

from league.constants import SIDES


@dataclass(frozen=True)
class GroupPrediction:
    """Predicted top-two finishers of a group."""

    first: str | None = None
    second: str | None = None

    @property
    def has_selection(self) -> bool:
        return bool(self.first or self.second)

    @classmethod
    def from_dict(cls, data):
        data = data or {}
        return cls(first=data.get("first") or None, second=data.get("second") or None)

    def to_dict(self):
        data = {}
        if self.first:
            data["first"] = self.first
        if self.second:
            data["second"] = self.second
        return data


@dataclass(frozen=True)
class BracketPrediction:
    """A member's canonical group-stage and knockout-round predictions."""

    user_id: str
    groups: Dict[str, GroupPrediction] = field(default_factory=dict)
    best_thirds: List[str] = field(default_factory=list)
    knockout: Dict[str, Dict[str, str]] = field(default_factory=dict)
    id: str = ""
    created_at: str = ""
    updated_at: str = ""

    @classmethod
    def from_dict(cls, data):
        user_id = str(data.get("userId") or "")
        groups = {
            group_id: GroupPrediction.from_dict(pick)
            for group_id, pick in (data.get("groups") or {}).items()
            if isinstance(pick, dict)
        }
        best_thirds = data.get("bestThirds")
        knockout = {}
        for stage, picks in (data.get("knockout") or {}).items():
            if not isinstance(picks, dict):
                continue
            knockout[stage] = {
                match_id: winner for match_id, winner in picks.items() if winner in SIDES
            }
        updated_at = data.get("updatedAt") or ""
        return cls(
            user_id=user_id,
            groups=groups,
            best_thirds=[str(code or "") for code in best_thirds]
            if isinstance(best_thirds, list)
            else [],
            knockout=knockout,
            id=data.get("id") or f"bracket-{user_id}",
            created_at=data.get("createdAt") or updated_at,
            updated_at=updated_at,
        )

    def to_dict(self):
        return {
            "id": self.id,
            "userId": self.user_id,
            "groups": {group_id: pick.to_dict() for group_id, pick in self.groups.items()},
            "bestThirds": list(self.best_thirds),
            "knockout": {stage: dict(picks) for stage, picks in self.knockout.items()},
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }
