from dataclasses import dataclass


@dataclass(frozen=True)
class Member:
    id: str
    name: str
    uid: str | None = None
    email: str | None = None
    handle: str | None = None
    is_admin: bool = False

    @classmethod
    def from_dict(cls, data):
        member_id = str(data.get("id") or "")
        return cls(
            id=member_id,
            name=data.get("name") or member_id,
            uid=data.get("uid") or None,
            email=data.get("email") or None,
            handle=data.get("handle") or None,
            is_admin=data.get("isAdmin") is True,
        )

    def to_dict(self):
        data = {"id": self.id, "name": self.name}
        if self.uid:
            data["uid"] = self.uid
        if self.email:
            data["email"] = self.email
        if self.handle:
            data["handle"] = self.handle
        if self.is_admin:
            data["isAdmin"] = True
        return data


@dataclass
class LeaderboardEntry:
    """Aggregated points for one member. Derived, never persisted by the engine."""

    member: Member
    total_points: int = 0
    exact_points: int = 0
    result_points: int = 0
    knockout_points: int = 0
    bracket_points: int = 0
    exact_count: int = 0
    picks_count: int = 0
    earliest_submission: str | None = None

    @classmethod
    def from_dict(cls, data):
        return cls(
            member=Member.from_dict(data.get("member") or {}),
            total_points=data.get("totalPoints", 0),
            exact_points=data.get("exactPoints", 0),
            result_points=data.get("resultPoints", 0),
            knockout_points=data.get("knockoutPoints", 0),
            bracket_points=data.get("bracketPoints", 0),
            exact_count=data.get("exactCount", 0),
            picks_count=data.get("picksCount", 0),
            earliest_submission=data.get("earliestSubmission") or None,
        )

    def to_dict(self):
        data = {
            "member": self.member.to_dict(),
            "totalPoints": self.total_points,
            "exactPoints": self.exact_points,
            "resultPoints": self.result_points,
            "knockoutPoints": self.knockout_points,
            "bracketPoints": self.bracket_points,
            "exactCount": self.exact_count,
            "picksCount": self.picks_count,
        }
        if self.earliest_submission:
            data["earliestSubmission"] = self.earliest_submission
        return data
