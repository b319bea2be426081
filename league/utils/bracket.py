"""
Bracket prediction helpers.

A member's canonical bracket prediction holds the predicted top two of every
group, an ordered slate of best third-placed teams and the predicted winner
of each knockout match. Every setter returns a new ``BracketPrediction``;
inputs are never mutated.
"""
import logging
from dataclasses import replace
from typing import Dict, Iterable, List

from django.utils import timezone

from league.conf import get_setting
from league.constants import GROUP_STAGE, KNOCKOUT_STAGES, SIDES
from league.models import BracketPrediction, GroupPrediction, Match

from .timing import format_instant

logger = logging.getLogger(__name__)

GROUP_FIELDS = ("first", "second")


def _stamp(now=None) -> str:
    return format_instant(now or timezone.now())


def build_group_ids(matches: Iterable[Match]) -> List[str]:
    """Sorted ids of every group that has at least one group-stage match."""
    return sorted({match.group for match in matches if match.stage == GROUP_STAGE and match.group})


def normalize_best_thirds(best_thirds, slot_count=None) -> List[str]:
    """Pads with empty strings or truncates to exactly ``slot_count`` slots."""
    if slot_count is None:
        slot_count = get_setting("BEST_THIRD_SLOTS")
    slots = [str(code or "") for code in best_thirds] if isinstance(best_thirds, list) else []
    slots += [""] * (slot_count - len(slots))
    return slots[:slot_count]


def normalize_groups(groups: Dict[str, GroupPrediction], group_ids: Iterable[str]) -> Dict[str, GroupPrediction]:
    """Ensures every known group has an entry, keeping existing picks."""
    normalized = dict(groups or {})
    for group_id in group_ids:
        normalized.setdefault(group_id, GroupPrediction())
    return normalized


def has_any_group_selection(groups: Dict[str, GroupPrediction], best_thirds) -> bool:
    if any(pick.has_selection for pick in (groups or {}).values()):
        return True
    return any(code for code in best_thirds or [])


def has_knockout_selection(knockout: Dict[str, Dict[str, str]]) -> bool:
    return any(picks for picks in (knockout or {}).values())


def has_bracket_data(prediction: BracketPrediction | None) -> bool:
    if prediction is None:
        return False
    return has_any_group_selection(prediction.groups, prediction.best_thirds) or has_knockout_selection(
        prediction.knockout
    )


def empty_prediction(user_id: str, group_ids: Iterable[str] = (), now=None) -> BracketPrediction:
    stamp = _stamp(now)
    return BracketPrediction(
        user_id=user_id,
        groups=normalize_groups({}, group_ids),
        best_thirds=normalize_best_thirds([]),
        knockout={},
        id=f"bracket-{user_id}",
        created_at=stamp,
        updated_at=stamp,
    )


def set_group_pick(prediction: BracketPrediction, group_id: str, field: str, value, now=None) -> BracketPrediction:
    """
    Sets a group's ``first`` or ``second`` pick.

    A group can't hold the same team twice: placing the team that currently
    sits in the other slot clears that slot.
    """
    if field not in GROUP_FIELDS:
        raise ValueError(f"Unknown group pick field '{field}'. Valid: {GROUP_FIELDS}")

    value = value or None
    current = prediction.groups.get(group_id) or GroupPrediction()
    other = "second" if field == "first" else "first"
    changes = {field: value}
    if value is not None and getattr(current, other) == value:
        changes[other] = None

    groups = dict(prediction.groups)
    groups[group_id] = replace(current, **changes)
    return replace(prediction, groups=groups, updated_at=_stamp(now))


def set_best_third(prediction: BracketPrediction, index: int, value, now=None) -> BracketPrediction:
    """
    Places a team in a best-third slot.

    The same team can only occupy one slot, so any other slot holding it is
    cleared.
    """
    slot_count = get_setting("BEST_THIRD_SLOTS")
    if not 0 <= index < slot_count:
        raise ValueError(f"Best-third slot {index} is out of range (0-{slot_count - 1})")

    value = value or ""
    slots = normalize_best_thirds(prediction.best_thirds, slot_count)
    if value:
        slots = ["" if code == value and position != index else code for position, code in enumerate(slots)]
    slots[index] = value
    return replace(prediction, best_thirds=slots, updated_at=_stamp(now))


def set_knockout_pick(prediction: BracketPrediction, stage: str, match_id: str, winner, now=None) -> BracketPrediction:
    """Sets (or with ``winner=None`` clears) the predicted winner of a knockout match."""
    if stage not in KNOCKOUT_STAGES:
        raise ValueError(f"Unknown knockout stage '{stage}'. Valid: {KNOCKOUT_STAGES}")
    if winner is not None and winner not in SIDES:
        raise ValueError(f"Invalid winner '{winner}'. Valid: {SIDES}")

    knockout = {key: dict(picks) for key, picks in prediction.knockout.items()}
    stage_picks = knockout.setdefault(stage, {})
    if winner is None:
        stage_picks.pop(match_id, None)
    else:
        stage_picks[match_id] = winner
    return replace(prediction, knockout=knockout, updated_at=_stamp(now))


def combine_bracket_predictions(group_docs: Iterable[dict], knockout_docs: Iterable[dict]) -> List[BracketPrediction]:
    """
    Joins per-user group documents and knockout documents into predictions.

    Users are returned in the order they first appear, group documents first.
    """
    group_by_user = {}
    knockout_by_user = {}
    for doc in group_docs or []:
        if doc.get("userId"):
            group_by_user[doc["userId"]] = doc
    for doc in knockout_docs or []:
        if doc.get("userId"):
            knockout_by_user[doc["userId"]] = doc

    user_ids = list(dict.fromkeys([*group_by_user, *knockout_by_user]))
    predictions = []
    for user_id in user_ids:
        group_doc = group_by_user.get(user_id) or {}
        knockout_doc = knockout_by_user.get(user_id) or {}
        updated_at = knockout_doc.get("updatedAt") or group_doc.get("updatedAt") or ""
        predictions.append(
            BracketPrediction.from_dict(
                {
                    "userId": user_id,
                    "groups": group_doc.get("groups") or {},
                    "bestThirds": group_doc.get("bestThirds") or [],
                    "knockout": knockout_doc.get("knockout") or {},
                    "updatedAt": updated_at,
                }
            )
        )
    return predictions


def merge_remote_document(existing: dict | None, update: dict, now=None) -> dict:
    """
    Merge-on-write for a remote per-user document.

    Fields present in ``update`` overlay the stored ones, anything it leaves
    out is retained. ``updatedAt`` is always refreshed.
    """
    merged = dict(existing or {})
    merged.update({key: value for key, value in update.items() if value is not None})
    merged["updatedAt"] = _stamp(now)
    return merged


def resolve_bracket_prediction(
    user_id: str,
    local: BracketPrediction | None = None,
    seeds: Iterable[BracketPrediction] = (),
    remote_group: dict | None = None,
    remote_knockout: dict | None = None,
    group_ids: Iterable[str] = (),
    now=None,
) -> BracketPrediction:
    """
    Picks the canonical prediction for a user.

    The group part and the knockout part are resolved separately, each from
    the first source that has one: the remote document, then the local copy
    if it holds an actual selection, then the user's seed document (or the
    first seed when the user has none), then an empty prediction.
    """
    seeds = list(seeds)
    group_ids = list(group_ids)
    seed = None
    for candidate in seeds:
        if candidate.user_id == user_id:
            seed = candidate
            break
    if seed is None and seeds:
        seed = seeds[0]

    if remote_group is not None:
        remote = BracketPrediction.from_dict(dict(remote_group, userId=user_id))
        groups, best_thirds, group_source = remote.groups, remote.best_thirds, "remote"
    elif local is not None and has_any_group_selection(local.groups, local.best_thirds):
        groups, best_thirds, group_source = local.groups, local.best_thirds, "local"
    elif seed is not None:
        groups, best_thirds, group_source = seed.groups, seed.best_thirds, "seed"
    else:
        groups, best_thirds, group_source = {}, [], "empty"

    if remote_knockout is not None:
        knockout = BracketPrediction.from_dict(dict(remote_knockout, userId=user_id)).knockout
        knockout_source = "remote"
    elif local is not None and has_knockout_selection(local.knockout):
        knockout, knockout_source = local.knockout, "local"
    elif seed is not None:
        knockout, knockout_source = seed.knockout, "seed"
    else:
        knockout, knockout_source = {}, "empty"

    logger.debug(f"Resolved bracket for {user_id}: groups from {group_source}, knockout from {knockout_source}")

    stamp = _stamp(now)
    return BracketPrediction(
        user_id=user_id,
        groups=normalize_groups(groups, group_ids),
        best_thirds=normalize_best_thirds(best_thirds),
        knockout={stage: dict(picks) for stage, picks in knockout.items()},
        id=(local.id if local is not None and local.id else f"bracket-{user_id}"),
        created_at=(local.created_at if local is not None and local.created_at else stamp),
        updated_at=stamp,
    )
