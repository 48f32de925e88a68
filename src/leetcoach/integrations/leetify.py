"""
Leetify public API client.

Wraps the three endpoints the bot uses:
- GET /v3/profile          profile ratings, stats and ranks
- GET /v3/profile/matches  recent matches with per-player stats
- GET /api/health          service health

Requests are spaced at least ``min_request_interval`` seconds apart. Errors
surface as LeetifyAPIError carrying the HTTP status (0 for network failures).
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Protocol

import aiohttp

from leetcoach.analysis.models import ImprovementReport, RawProfile, coerce_number
from leetcoach.analysis.normalize import normalize
from leetcoach.analysis.report import build_report
from leetcoach.analysis.resources import ResourceCatalog
from leetcoach.core.config import LeetifyConfig

logger = logging.getLogger(__name__)

PROFILE_PATH = "/v3/profile"
MATCHES_PATH = "/v3/profile/matches"
HEALTH_PATH = "/api/health"

HEALTH_TIMEOUT_SECONDS = 5.0

ERROR_MESSAGES = {
    401: "Invalid API key or unauthorized access",
    403: "Access forbidden - check API permissions",
    404: "Player or match not found",
    429: "Rate limit exceeded - please try again later",
    500: "Leetify server error - please try again later",
}

USER_MESSAGES = {
    404: "Player not found. Please check the Steam ID and ensure the player has CS2 data on Leetify.",
    429: "Rate limit exceeded. Please try again in a few minutes.",
    401: "API authentication issue. Please contact the bot administrator.",
}


class LeetifyAPIError(Exception):
    """Error returned by (or while reaching) the Leetify API."""

    def __init__(self, code: int, message: str, details: Any = None):
        super().__init__(f"[{code}] {message}")
        self.code = code
        self.message = message
        self.details = details

    @property
    def user_message(self) -> str | None:
        """Message safe to show in chat, or None when only a generic error fits."""
        return USER_MESSAGES.get(self.code)


class ResponseCache(Protocol):
    def get_cached(self, key: str) -> Any | None: ...

    def set_cached(self, key: str, data: Any, ttl_seconds: int) -> None: ...


# ============================================================================
# Response models
# ============================================================================


@dataclass(frozen=True)
class MatchSummary:
    """One match from the player's point of view."""

    match_id: str
    finished_at: datetime | None
    map_name: str
    data_source: str
    result: str  # "win", "loss" or "tie"
    player_score: int = 0
    opponent_score: int = 0
    rating: float = 0.0
    kills: int = 0
    deaths: int = 0
    assists: int = 0
    adr: float = 0.0
    headshot_kills: int = 0
    multi_kills: int = 0
    flash_assists: int = 0
    rounds_count: int = 0
    rounds_survived: int = 0

    @property
    def kd_ratio(self) -> float:
        return self.kills / max(self.deaths, 1)

    @property
    def headshot_rate(self) -> float:
        return self.headshot_kills / self.kills if self.kills else 0.0


@dataclass(frozen=True)
class PlayerSummary:
    """Profile plus aggregates over the most recent matches."""

    steam64_id: str
    nickname: str
    leetify_rating: float = 0.0
    premier_rank: int | None = None
    total_matches: int = 0
    win_rate: float = 0.0
    kd_ratio: float = 0.0
    headshot_rate: float = 0.0
    adr: float = 0.0
    kills_per_round: float = 0.0
    deaths_per_round: float = 0.0
    assists_per_round: float = 0.0
    opening_rating: float = 0.0
    clutch_rating: float = 0.0
    multi_kill_rate: float = 0.0
    survival_rate: float = 0.0
    trade_kill_rate: float = 0.0
    utility_damage: float = 0.0
    flashes_thrown: float = 0.0
    matches_analyzed: int = 0
    last_updated: datetime | None = None
    recent_matches: tuple[MatchSummary, ...] = field(default=(), repr=False)


def _parse_datetime(value: Any) -> datetime | None:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        logger.debug(f"Unparseable timestamp: {value!r}")
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


def _int(value: Any) -> int:
    return int(coerce_number(value))


def _player_row(match: dict[str, Any], steam64_id: str) -> dict[str, Any] | None:
    for row in match.get("stats") or []:
        if str(row.get("steam64_id")) == steam64_id:
            return row
    return None


def _multi_kills(row: dict[str, Any]) -> int:
    return sum(_int(row.get(key)) for key in ("multi2k", "multi3k", "multi4k", "multi5k"))


def parse_match(data: dict[str, Any], steam64_id: str) -> MatchSummary:
    """Transform one ``/v3/profile/matches`` entry for the given player."""
    row = _player_row(data, steam64_id)
    if row is None:
        logger.warning(f"Player {steam64_id} not found in match {data.get('id')}")
        row = {}

    result = "loss"
    player_score = opponent_score = 0
    team_number = row.get("initial_team_number")
    team_scores = data.get("team_scores") or []
    if team_number is not None and team_scores:
        own = next((t for t in team_scores if t.get("team_number") == team_number), None)
        other = next((t for t in team_scores if t.get("team_number") != team_number), None)
        if own and other:
            player_score = _int(own.get("score"))
            opponent_score = _int(other.get("score"))
            if player_score > opponent_score:
                result = "win"
            elif player_score == opponent_score:
                result = "tie"

    return MatchSummary(
        match_id=str(data.get("id") or "unknown"),
        finished_at=_parse_datetime(data.get("finished_at")),
        map_name=str(data.get("map_name") or "Unknown"),
        data_source=str(data.get("data_source") or "competitive"),
        result=result,
        player_score=player_score,
        opponent_score=opponent_score,
        rating=coerce_number(row.get("leetify_rating")),
        kills=_int(row.get("total_kills")),
        deaths=_int(row.get("total_deaths")),
        assists=_int(row.get("total_assists")),
        adr=coerce_number(row.get("dpr")),
        headshot_kills=_int(row.get("total_hs_kills")),
        multi_kills=_multi_kills(row),
        flash_assists=_int(row.get("flash_assist")),
        rounds_count=_int(row.get("rounds_count")),
        rounds_survived=_int(row.get("rounds_survived")),
    )


def summarize_player(
    profile: dict[str, Any], matches: list[dict[str, Any]], steam64_id: str, window: int = 30
) -> PlayerSummary:
    """Combine the profile with totals over the ``window`` most recent matches."""
    recent = matches[:window]
    kills = deaths = assists = damage = hs_kills = rounds = survived = multi = 0.0

    for match in recent:
        row = _player_row(match, steam64_id)
        if row is None:
            continue
        kills += coerce_number(row.get("total_kills"))
        deaths += coerce_number(row.get("total_deaths"))
        assists += coerce_number(row.get("total_assists"))
        damage += coerce_number(row.get("total_damage"))
        hs_kills += coerce_number(row.get("total_hs_kills"))
        rounds += coerce_number(row.get("rounds_count"))
        survived += coerce_number(row.get("rounds_survived"))
        multi += _multi_kills(row)

    def per_round(total: float, digits: int) -> float:
        return round(total / rounds, digits) if rounds else 0.0

    rating = profile.get("rating") or {}
    stats = profile.get("stats") or {}
    ranks = profile.get("ranks") or {}
    premier = ranks.get("premier")

    return PlayerSummary(
        steam64_id=steam64_id,
        nickname=str(profile.get("name") or "Unknown Player"),
        leetify_rating=coerce_number(ranks.get("leetify")),
        premier_rank=_int(premier) if premier is not None else None,
        total_matches=_int(profile.get("total_matches")),
        win_rate=normalize(profile.get("winrate"), "winrate"),
        kd_ratio=round(kills / deaths, 2) if deaths else 0.0,
        headshot_rate=round(hs_kills / kills, 3) if kills else 0.0,
        adr=per_round(damage, 1),
        kills_per_round=per_round(kills, 2),
        deaths_per_round=per_round(deaths, 2),
        assists_per_round=per_round(assists, 2),
        opening_rating=normalize(rating.get("opening"), "opening"),
        clutch_rating=normalize(rating.get("clutch"), "clutch"),
        multi_kill_rate=per_round(multi, 3),
        survival_rate=per_round(survived, 3),
        trade_kill_rate=normalize(
            stats.get("trade_kills_success_percentage"), "trade_kills_success_percentage"
        ),
        utility_damage=coerce_number(stats.get("he_foes_damage_avg")),
        flashes_thrown=coerce_number(stats.get("flashbang_thrown")),
        matches_analyzed=len(recent),
        last_updated=_parse_datetime(profile.get("last_updated")),
        recent_matches=tuple(parse_match(m, steam64_id) for m in recent),
    )


# ============================================================================
# Client
# ============================================================================


class LeetifyClient:
    """
    Async client for the Leetify public API.

    Example:
        >>> async with LeetifyClient() as client:
        ...     summary = await client.get_player_profile("76561198000000000")
    """

    def __init__(
        self,
        config: LeetifyConfig | None = None,
        session: aiohttp.ClientSession | None = None,
        cache: ResponseCache | None = None,
        cache_ttl_seconds: int = 300,
    ):
        self.config = config or LeetifyConfig()
        self.base_url = self.config.base_url.rstrip("/")
        self._session = session
        self._owns_session = session is None
        self._cache = cache
        self._cache_ttl = cache_ttl_seconds
        self._lock = asyncio.Lock()
        self._last_request = 0.0

    async def __aenter__(self) -> "LeetifyClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json", "User-Agent": self.config.user_agent}
        if self.config.api_key:
            headers["Authorization"] = f"Bearer {self.config.api_key}"
        return headers

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                headers=self._headers(),
                timeout=aiohttp.ClientTimeout(total=self.config.timeout_seconds),
            )
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def _wait_turn(self) -> None:
        """Keep at least ``min_request_interval`` seconds between requests."""
        async with self._lock:
            elapsed = time.monotonic() - self._last_request
            delay = self.config.min_request_interval - elapsed
            if delay > 0:
                logger.debug(f"Rate limiting Leetify request for {delay:.2f}s")
                await asyncio.sleep(delay)
            self._last_request = time.monotonic()

    async def _get(
        self, path: str, params: dict[str, str] | None = None, timeout: float | None = None
    ) -> Any:
        cache_key = f"leetify:{path}:{sorted((params or {}).items())}"
        if self._cache is not None:
            cached = self._cache.get_cached(cache_key)
            if cached is not None:
                logger.debug(f"Cache hit for {path}")
                return cached

        await self._wait_turn()
        url = f"{self.base_url}{path}"
        kwargs: dict[str, Any] = {"params": params}
        if timeout is not None:
            kwargs["timeout"] = aiohttp.ClientTimeout(total=timeout)

        logger.debug(f"Leetify API request: GET {path} {params}")
        try:
            async with self._get_session().get(url, **kwargs) as response:
                if response.status != 200:
                    details = await response.text()
                    message = ERROR_MESSAGES.get(response.status, f"API error: {response.reason}")
                    logger.error(f"Leetify API error {response.status} for {path}: {message}")
                    raise LeetifyAPIError(response.status, message, details)
                data = await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"Leetify API unreachable for {path}: {e}")
            raise LeetifyAPIError(0, "Network error - unable to reach Leetify API") from e

        if self._cache is not None:
            self._cache.set_cached(cache_key, data, self._cache_ttl)
        return data

    async def get_raw_profile(self, steam64_id: str) -> dict[str, Any]:
        """Raw ``/v3/profile`` payload, used for the improvement report."""
        return await self._get(PROFILE_PATH, {"steam64_id": steam64_id})

    async def get_match_history(self, steam64_id: str) -> list[dict[str, Any]]:
        data = await self._get(MATCHES_PATH, {"steam64_id": steam64_id})
        return data if isinstance(data, list) else []

    async def get_player_profile(self, steam64_id: str) -> PlayerSummary:
        """Profile summary with aggregates over the recent match window."""
        profile = await self.get_raw_profile(steam64_id)
        matches = await self.get_match_history(steam64_id)
        return summarize_player(profile, matches, steam64_id, self.config.summary_match_window)

    async def get_player_matches(self, steam64_id: str, limit: int = 10) -> list[MatchSummary]:
        matches = await self.get_match_history(steam64_id)
        return [parse_match(m, steam64_id) for m in matches[:limit]]

    async def health_check(self) -> bool:
        try:
            await self._get(HEALTH_PATH, timeout=HEALTH_TIMEOUT_SECONDS)
        except LeetifyAPIError as e:
            logger.warning(f"Leetify API health check failed: {e}")
            return False
        return True


async def fetch_improvement_report(
    client: LeetifyClient, steam64_id: str, catalog: ResourceCatalog
) -> tuple[RawProfile, ImprovementReport] | None:
    """
    Fetch a profile and build its report.

    Returns None when the profile lacks the rating or stats block.
    """
    data = await client.get_raw_profile(steam64_id)
    if not RawProfile.has_required_blocks(data):
        logger.info(f"Profile {steam64_id} has no rating/stats data")
        return None
    profile = RawProfile.from_api(data)
    return profile, build_report(profile, catalog)
