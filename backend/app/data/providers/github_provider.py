"""GitHub Data Provider Module.

Provides activity series from the GitHub REST API:
- City activity from repository search (repositories created per day)
- Coin activity from the weekly commit activity of the coin's repositories

Transform functions are pure and raise ProviderResponseInvalid on malformed
payloads; they never fill gaps in a broken response with defaults.
"""

import asyncio
from collections import defaultdict
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

import numpy as np

from app.data.calendar import trailing_window
from app.data.estimation import (
    estimate_contributors,
    estimate_daily_commits,
    estimate_daily_commits_from_weekly,
    estimate_daily_stars,
)
from app.data.providers.common import build_client, build_transport
from app.data.registry import City, Coin
from app.domain.models import ActivitySample
from config.provider_config import github_limits, github_repo_limits
from config.settings import Settings
from core.api_client import HttpTransport, RateLimitedClient
from core.exceptions import ProviderError, ProviderResponseInvalid
from core.structured_logger import get_structured_logger

logger = get_structured_logger("GitHubProvider")

PROVIDER_NAME = "GitHub API"
BASE_URL = "https://api.github.com"

# Only the first repositories of a coin are sampled to stay inside the quota
MAX_REPOS_PER_COIN = 2


def _created_day(timestamp: str) -> str:
    parsed = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc)
    return parsed.date().isoformat()


def transform_search_results(
    payload: Dict[str, Any],
    entity_id: str,
    dates: Sequence[str],
    rng: np.random.Generator,
) -> List[ActivitySample]:
    """Bucket searched repositories by creation day and emit one sample per day.

    Args:
        payload: Body of ``/search/repositories``
        entity_id: City identifier stamped on every sample
        dates: Window of ISO dates, oldest first
        rng: Generator for the commit estimate

    Returns:
        One ActivitySample per date in ``dates``
    """
    try:
        items = payload["items"]
        stars_by_day: Dict[str, List[int]] = defaultdict(list)
        for item in items:
            stars_by_day[_created_day(item["created_at"])].append(int(item["stargazers_count"]))

        samples = []
        for day in dates:
            stars = stars_by_day.get(day, [])
            repositories = len(stars)
            samples.append(ActivitySample(
                date=day,
                entity_id=entity_id,
                commits=estimate_daily_commits(repositories, rng),
                stars=sum(stars),
                repositories=repositories,
                contributors=estimate_contributors(repositories),
            ))
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise ProviderResponseInvalid(
            f"Malformed repository search response: {e}",
            provider=PROVIDER_NAME,
        ) from e
    return samples


def parse_weekly_commits(payload: Any) -> List[int]:
    """Weekly totals from ``/stats/commit_activity``, oldest first.

    GitHub answers 202 with an empty object while it computes statistics;
    that is treated as "no data yet".
    """
    if payload == {} or payload is None:
        return []
    if not isinstance(payload, list):
        raise ProviderResponseInvalid(
            "Commit activity is not a list of weeks",
            provider=PROVIDER_NAME,
        )
    try:
        return [int(week["total"]) for week in payload]
    except (KeyError, TypeError, ValueError) as e:
        raise ProviderResponseInvalid(
            f"Malformed commit activity week: {e}",
            provider=PROVIDER_NAME,
        ) from e


def parse_stargazers(payload: Any) -> int:
    try:
        return int(payload["stargazers_count"])
    except (KeyError, TypeError, ValueError) as e:
        raise ProviderResponseInvalid(
            f"Malformed repository stats: {e}",
            provider=PROVIDER_NAME,
        ) from e


def combine_asset_activity(
    coin_id: str,
    weekly_totals: Sequence[int],
    total_stars: int,
    repositories: int,
    dates: Sequence[str],
    rng: np.random.Generator,
) -> List[ActivitySample]:
    """Daily activity for a coin from its repositories' weekly commit totals."""
    commits = estimate_daily_commits_from_weekly(weekly_totals, len(dates), rng)
    stars = estimate_daily_stars(total_stars, len(dates), rng)
    return [
        ActivitySample(
            date=day,
            entity_id=coin_id,
            commits=commits[i],
            stars=stars[i],
            repositories=repositories,
            contributors=int(rng.integers(10, 40)),
        )
        for i, day in enumerate(dates)
    ]


class GitHubProvider:
    """Async adapter over the GitHub REST API.

    Search requests and repository statistics use separate transports
    because the statistics endpoints are slower and get a longer timeout.
    """

    def __init__(
        self,
        client: RateLimitedClient,
        transport: HttpTransport,
        repo_transport: Optional[HttpTransport] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        self.client = client
        self.transport = transport
        self.repo_transport = repo_transport or transport
        self.rng = rng or np.random.default_rng()

    async def search_repositories(self, city: City, since: str) -> Dict[str, Any]:
        params = {
            "q": f"{city.github_search_query} created:>={since}",
            "sort": "updated",
            "order": "desc",
            "per_page": 100,
        }
        return await self.client.execute(
            lambda: self.transport.get_json("/search/repositories", params)
        )

    async def fetch_activity(
        self, city: City, days: int, end: Optional[date] = None
    ) -> List[ActivitySample]:
        """Daily activity for a city over the trailing ``days`` days."""
        dates = trailing_window(days, end)
        logger.info(f"Fetching GitHub activity for {city.id} ({days} days)")
        payload = await self.search_repositories(city, dates[0])
        samples = transform_search_results(payload, city.id, dates, self.rng)
        logger.debug(
            f"Transformed {len(payload.get('items', []))} repositories into {len(samples)} samples"
        )
        return samples

    async def _repo_totals(self, repo: str) -> Dict[str, Any]:
        weekly = await self.client.execute(
            lambda: self.repo_transport.get_json(f"/repos/{repo}/stats/commit_activity")
        )
        stats = await self.client.execute(
            lambda: self.repo_transport.get_json(f"/repos/{repo}")
        )
        return {"weekly": parse_weekly_commits(weekly), "stars": parse_stargazers(stats)}

    async def fetch_asset_activity(
        self, coin: Coin, days: int, end: Optional[date] = None
    ) -> List[ActivitySample]:
        """Daily activity for a coin from its tracked repositories.

        A repository that fails is skipped; the call only fails when every
        repository failed.
        """
        repos = list(coin.github_repos[:MAX_REPOS_PER_COIN])
        if not repos:
            raise ProviderResponseInvalid(
                f"No repositories tracked for {coin.id}", provider=PROVIDER_NAME
            )

        logger.info(f"Fetching GitHub activity for {coin.id} from {len(repos)} repositories")
        results = await asyncio.gather(
            *(self._repo_totals(repo) for repo in repos), return_exceptions=True
        )

        weekly_totals: List[int] = []
        total_stars = 0
        succeeded = 0
        first_error: Optional[Exception] = None
        for repo, result in zip(repos, results):
            if isinstance(result, ProviderError):
                logger.warning(f"Skipping {repo}: {result}")
                first_error = first_error or result
                continue
            if isinstance(result, BaseException):
                raise result
            succeeded += 1
            total_stars += result["stars"]
            for i, total in enumerate(result["weekly"]):
                if i < len(weekly_totals):
                    weekly_totals[i] += total
                else:
                    weekly_totals.append(total)

        if succeeded == 0:
            raise first_error

        dates = trailing_window(days, end)
        return combine_asset_activity(coin.id, weekly_totals, total_stars, succeeded, dates, self.rng)


def create_github_provider(settings: Settings) -> GitHubProvider:
    authenticated = bool(settings.github_token)
    headers = {
        "Accept": "application/vnd.github.v3+json",
        "User-Agent": "pulse-correlation-engine",
    }
    if authenticated:
        headers["Authorization"] = f"token {settings.github_token}"
    else:
        logger.warning("GITHUB_TOKEN not set, using the unauthenticated rate limit")

    limits = github_limits(authenticated)
    repo_limits = github_repo_limits(authenticated)
    return GitHubProvider(
        client=build_client(PROVIDER_NAME, limits, settings),
        transport=build_transport(PROVIDER_NAME, BASE_URL, limits, headers),
        repo_transport=build_transport(PROVIDER_NAME, BASE_URL, repo_limits, headers),
    )
