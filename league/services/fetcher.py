"""
Data feed fetcher.

Loads the league's JSON files (matches, picks, scoring, leaderboard, members
and bracket documents) over HTTP with requests, or from a local directory,
and returns typed snapshots. Parsed payloads are cached per data mode.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List
from urllib.parse import urljoin

import requests

from league.conf import get_setting, resolve_mode
from league.constants import MODE_DEMO
from league.models import BracketPrediction, LeaderboardEntry, Match, Member, Pick, ScoringConfig
from league.utils.bracket import combine_bracket_predictions
from league.utils.picks import flatten_picks_file
from league.utils.scoring_engine import ScoringEngineError

from .cache import response_cache

logger = logging.getLogger(__name__)

MATCHES_FILE = "matches.json"
PICKS_FILE = "picks.json"
SCORING_FILE = "scoring.json"
LEADERBOARD_FILE = "leaderboard.json"
MEMBERS_FILE = "members.json"
BRACKET_GROUP_FILE = "bracket-group.json"
BRACKET_KNOCKOUT_FILE = "bracket-knockout.json"


class FetchError(Exception):
    """Raised when a feed file can't be loaded or parsed"""

    pass


@dataclass(frozen=True)
class MatchesSnapshot:
    matches: List[Match]
    last_updated: str = ""


@dataclass(frozen=True)
class PicksSnapshot:
    picks: List[Pick]
    user_ids: List[str] = field(default_factory=list)
    last_updated: str = ""


@dataclass(frozen=True)
class LeaderboardSnapshot:
    entries: List[LeaderboardEntry]
    last_updated: str = ""


@dataclass(frozen=True)
class MembersSnapshot:
    members: List[Member]
    last_updated: str = ""


@dataclass(frozen=True)
class BracketSnapshot:
    group_docs: List[dict]
    knockout_docs: List[dict]
    predictions: List[BracketPrediction]
    last_updated: str = ""

    @property
    def user_ids(self) -> List[str]:
        return [prediction.user_id for prediction in self.predictions]


class Fetcher:
    """
    Fetches the league data feed over HTTP.

    Every public method takes the data mode explicitly; demo files live under
    the ``DEMO_DATA_PATH`` prefix of the same base URL.
    """

    source = "feed"

    def __init__(self, cache=None, base_url=None, session=None):
        """
        Args:
            cache: ResponseCache instance (default: global response_cache)
            base_url: Feed root (default: the ``DATA_BASE_URL`` league setting)
            session: requests session to reuse (created lazily)
        """
        self.cache = cache or response_cache
        self._base_url = base_url
        self._session = session

    @property
    def session(self):
        if self._session is None:
            self._session = requests.Session()
            self._session.headers["Accept"] = "application/json"
        return self._session

    @property
    def base_url(self):
        return self._base_url or get_setting("DATA_BASE_URL")

    def get_path(self, filename, mode):
        prefix = get_setting("DEMO_DATA_PATH") if mode == MODE_DEMO else ""
        return f"{prefix}data/{filename}"

    def load_json(self, filename, mode=None, force_refresh=False, optional=False):
        """
        Loads one feed file as parsed JSON, going through the cache.

        Args:
            filename: Feed file name, e.g. ``matches.json``
            mode: ``default`` or ``demo``
            force_refresh: Skip cache and fetch fresh data
            optional: Return None instead of raising when the file is missing

        Raises:
            FetchError: If the file can't be loaded
        """
        mode = resolve_mode(mode)
        path = self.get_path(filename, mode)

        if not force_refresh:
            cached = self.cache.get(source=self.source, identifier=path, mode=mode)
            if cached is not None:
                return cached

        payload = self._load_from_source(path, optional)
        if payload is not None:
            self.cache.set(source=self.source, identifier=path, data=payload, mode=mode)
        return payload

    def _load_from_source(self, path, optional=False):
        url = urljoin(self.base_url, path)
        logger.info(f"Fetching URL: {url}")
        try:
            response = self.session.get(url, timeout=get_setting("REQUEST_TIMEOUT"))
            if optional and response.status_code == 404:
                logger.info(f"Optional feed file not found: {url}")
                return None
            response.raise_for_status()
            payload = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Failed to fetch {url}: {e}")
            raise FetchError(f"Failed to fetch {url}: {e}") from e

        logger.debug(f"Fetched {url}")
        return payload

    def invalidate_cache(self, filename, mode=None):
        mode = resolve_mode(mode)
        self.cache.invalidate(source=self.source, identifier=self.get_path(filename, mode), mode=mode)

    def _parse(self, filename, parser, payload):
        try:
            return parser(payload)
        except (KeyError, TypeError, ValueError, AttributeError, ScoringEngineError) as e:
            logger.error(f"Malformed {filename}: {e}")
            raise FetchError(f"Malformed {filename}: {e}") from e

    def fetch_matches(self, mode=None) -> MatchesSnapshot:
        payload = self.load_json(MATCHES_FILE, mode)
        return self._parse(
            MATCHES_FILE,
            lambda data: MatchesSnapshot(
                matches=[Match.from_dict(item) for item in data.get("matches") or []],
                last_updated=data.get("lastUpdated") or "",
            ),
            payload,
        )

    def fetch_picks(self, mode=None) -> PicksSnapshot:
        payload = self.load_json(PICKS_FILE, mode)
        return self._parse(
            PICKS_FILE,
            lambda data: PicksSnapshot(
                picks=flatten_picks_file(data),
                user_ids=[
                    doc["userId"] for doc in data.get("picks") or [] if isinstance(doc, dict) and doc.get("userId")
                ],
                last_updated=data.get("lastUpdated") or "",
            ),
            payload,
        )

    def fetch_scoring(self, mode=None) -> ScoringConfig:
        payload = self.load_json(SCORING_FILE, mode)
        return self._parse(SCORING_FILE, ScoringConfig.from_dict, payload)

    def fetch_leaderboard(self, mode=None) -> LeaderboardSnapshot:
        payload = self.load_json(LEADERBOARD_FILE, mode)
        return self._parse(
            LEADERBOARD_FILE,
            lambda data: LeaderboardSnapshot(
                entries=[LeaderboardEntry.from_dict(item) for item in data.get("entries") or []],
                last_updated=data.get("lastUpdated") or "",
            ),
            payload,
        )

    def fetch_members(self, mode=None) -> MembersSnapshot:
        payload = self.load_json(MEMBERS_FILE, mode, optional=True) or {}
        return self._parse(
            MEMBERS_FILE,
            lambda data: MembersSnapshot(
                members=[Member.from_dict(item) for item in data.get("members") or []],
                last_updated=data.get("lastUpdated") or "",
            ),
            payload,
        )

    def fetch_bracket_predictions(self, mode=None) -> BracketSnapshot:
        group = self.load_json(BRACKET_GROUP_FILE, mode, optional=True) or {}
        knockout = self.load_json(BRACKET_KNOCKOUT_FILE, mode, optional=True) or {}

        def parse(payloads):
            group, knockout = payloads
            group_docs = [doc for doc in group.get("group") or [] if isinstance(doc, dict)]
            knockout_docs = [doc for doc in knockout.get("knockout") or [] if isinstance(doc, dict)]
            return BracketSnapshot(
                group_docs=group_docs,
                knockout_docs=knockout_docs,
                predictions=combine_bracket_predictions(group_docs, knockout_docs),
                last_updated=knockout.get("lastUpdated") or group.get("lastUpdated") or "",
            )

        return self._parse(BRACKET_GROUP_FILE, parse, (group, knockout))


class DirectoryFetcher(Fetcher):
    """
    Reads the same feed files from a local directory.

    Demo files are looked up under ``<data_dir>/<DEMO_DATA_PATH>``.
    """

    source = "dir"

    def __init__(self, data_dir, cache=None):
        super().__init__(cache=cache)
        self.data_dir = Path(data_dir)

    def get_path(self, filename, mode):
        prefix = get_setting("DEMO_DATA_PATH") if mode == MODE_DEMO else ""
        return str(self.data_dir / prefix / filename)

    def _load_from_source(self, path, optional=False):
        file_path = Path(path)
        if optional and not file_path.exists():
            logger.info(f"Optional data file not found: {file_path}")
            return None
        try:
            with file_path.open(encoding="utf-8") as handle:
                payload = json.load(handle)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to read {file_path}: {e}")
            raise FetchError(f"Failed to read {file_path}: {e}") from e

        logger.debug(f"Read {file_path}")
        return payload


fetcher = Fetcher()
