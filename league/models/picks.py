from dataclasses import dataclass

from league.constants import OUTCOMES, SIDES


def parse_optional_score(value):
    """
    Coerces a stored score into an int where it is unambiguous.

    Numeric strings ("2") and integral floats (2.0) are accepted; anything else
    is returned as ``None`` so the pick simply reads as incomplete.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip():
        text = value.strip()
        if text.lstrip("-").isdigit():
            return int(text)
    return None


@dataclass(frozen=True)
class Pick:
    """A member's prediction for a single match."""

    id: str
    match_id: str
    user_id: str
    home_score: int | None = None
    away_score: int | None = None
    advances: str | None = None
    outcome: str | None = None
    winner: str | None = None
    created_at: str = ""
    updated_at: str = ""

    @classmethod
    def from_dict(cls, data, user_id=None, fallback_timestamp=""):
        pick_user_id = data.get("userId") or user_id or ""
        match_id = str(data.get("matchId") or "")
        advances = data.get("advances")
        outcome = data.get("outcome")
        winner = data.get("winner")
        created_at = data.get("createdAt") or fallback_timestamp
        return cls(
            id=data.get("id") or f"pick-{pick_user_id}-{match_id}",
            match_id=match_id,
            user_id=pick_user_id,
            home_score=parse_optional_score(data.get("homeScore")),
            away_score=parse_optional_score(data.get("awayScore")),
            advances=advances if advances in SIDES else None,
            outcome=outcome if outcome in OUTCOMES else None,
            winner=winner if winner in SIDES else None,
            created_at=created_at,
            updated_at=data.get("updatedAt") or created_at,
        )

    def to_dict(self):
        data = {
            "id": self.id,
            "matchId": self.match_id,
            "userId": self.user_id,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }
        for key, value in (
            ("homeScore", self.home_score),
            ("awayScore", self.away_score),
            ("advances", self.advances),
            ("outcome", self.outcome),
            ("winner", self.winner),
        ):
            if value is not None:
                data[key] = value
        return data
