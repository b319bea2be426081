"""
Local store for per-user state that lives next to the feed.

Holds each user's canonical bracket prediction (keyed by data mode and user
id) and the last rank snapshot (keyed by data mode). Values are stored as
JSON strings in the Django cache; anything that fails to parse is treated as
absent.
"""
import json
import logging
from dataclasses import replace

from django.core.cache import caches

from league.conf import get_setting, resolve_mode
from league.models import BracketPrediction
from league.utils.bracket import (
    build_group_ids,
    has_any_group_selection,
    has_knockout_selection,
    normalize_best_thirds,
    resolve_bracket_prediction,
)
from league.utils.leaderboard import RankSnapshot

logger = logging.getLogger(__name__)

BRACKET_KEY_PREFIX = "league-bracket"
RANK_SNAPSHOT_KEY_PREFIX = "league-rank-snapshot"


class LocalStore:
    def __init__(self, cache_name=None):
        self._cache_name = cache_name

    @property
    def cache(self):
        return caches[self._cache_name or get_setting("CACHE_ALIAS")]

    def bracket_key(self, mode, user_id):
        return f"{BRACKET_KEY_PREFIX}:{resolve_mode(mode)}:{user_id}"

    def rank_snapshot_key(self, mode):
        return f"{RANK_SNAPSHOT_KEY_PREFIX}:{resolve_mode(mode)}"

    def _read_json(self, key):
        raw = self.cache.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except (TypeError, ValueError) as e:
            logger.warning(f"Ignoring malformed entry {key}: {e}")
            return None

    def _write_json(self, key, value):
        self.cache.set(key, json.dumps(value), None)

    def load_bracket_prediction(self, mode, user_id) -> BracketPrediction | None:
        data = self._read_json(self.bracket_key(mode, user_id))
        if not isinstance(data, dict) or not isinstance(data.get("prediction"), dict):
            return None
        try:
            return BracketPrediction.from_dict(data["prediction"])
        except (AttributeError, TypeError) as e:
            logger.warning(f"Ignoring malformed bracket for {user_id}: {e}")
            return None

    def save_bracket_prediction(self, mode, prediction: BracketPrediction):
        prediction = replace(prediction, best_thirds=normalize_best_thirds(prediction.best_thirds))
        self._write_json(self.bracket_key(mode, prediction.user_id), {"prediction": prediction.to_dict()})
        logger.debug(f"Saved bracket for {prediction.user_id} ({resolve_mode(mode)})")

    def load_rank_snapshot(self, mode) -> RankSnapshot | None:
        snapshot = RankSnapshot.from_dict(self._read_json(self.rank_snapshot_key(mode)))
        if snapshot is None:
            logger.debug(f"No usable rank snapshot for {resolve_mode(mode)}")
        return snapshot

    def save_rank_snapshot(self, mode, snapshot: RankSnapshot):
        self._write_json(self.rank_snapshot_key(mode), snapshot.to_dict())

    def clear(self, mode, user_id=None):
        self.cache.delete(self.rank_snapshot_key(mode))
        if user_id:
            self.cache.delete(self.bracket_key(mode, user_id))


local_store = LocalStore()


def load_canonical_bracket(
    store: LocalStore,
    fetcher,
    mode,
    user_id,
    matches=(),
    remote_group=None,
    remote_knockout=None,
    now=None,
) -> BracketPrediction:
    """
    Resolves a user's bracket from remote, local and seed sources and writes
    the result back to the local store before returning it.

    Seed documents are only fetched when neither the remote documents nor the
    local copy can supply a section.

    Raises:
        FetchError: if the seed documents are needed and can't be loaded
    """
    mode = resolve_mode(mode)
    local = store.load_bracket_prediction(mode, user_id)

    seeds = []
    needs_group = remote_group is None and not (
        local and has_any_group_selection(local.groups, local.best_thirds)
    )
    needs_knockout = remote_knockout is None and not (local and has_knockout_selection(local.knockout))
    if needs_group or needs_knockout:
        seeds = fetcher.fetch_bracket_predictions(mode).predictions

    resolved = resolve_bracket_prediction(
        user_id,
        local=local,
        seeds=seeds,
        remote_group=remote_group,
        remote_knockout=remote_knockout,
        group_ids=build_group_ids(matches),
        now=now,
    )
    store.save_bracket_prediction(mode, resolved)
    return resolved