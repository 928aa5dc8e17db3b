"""Dual-scope issue search: the project's own repository and its ecosystem."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone

from .cache import ReleaseCache
from .config import DEFAULT_PROFILE, PAGE_SIZE, ProjectProfile
from .models import CombinedSearchResult, IssuePage, SearchScope
from .resolver import find_release
from .transport import GitHubApiError, RateLimitedTransport

log = logging.getLogger(__name__)


class UsageError(ValueError):
    pass


def calculate_search_after_date(published_at: str) -> str:
    """Reduce an ISO timestamp to the UTC calendar day, ``YYYY-MM-DD``."""
    dt = datetime.fromisoformat(published_at.replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).date().isoformat()


def build_main_repo_query(
    version: str,
    after_date: str | None = None,
    profile: ProjectProfile = DEFAULT_PROFILE,
) -> str:
    query = (
        f"repo:{profile.full_name} is:issue "
        f'("{version}" OR "{profile.package_name}@{version}" OR "{profile.display_name} {version}")'
    )
    if after_date:
        query += f" created:>{after_date}"
    return query


def build_ecosystem_query(
    version: str,
    after_date: str | None = None,
    profile: ProjectProfile = DEFAULT_PROFILE,
) -> str:
    terms = [
        f'"{profile.display_name.lower()} {version}"',
        f'"{profile.package_name}@{version}"',
    ]
    if profile.alias:
        terms.append(f'"{profile.alias} {version}"')
    query = f"is:issue -repo:{profile.full_name} ({' OR '.join(terms)})"
    if after_date:
        query += f" created:>{after_date}"
    return query


class SearchOrchestrator:
    """Resolves a version and searches both scopes concurrently."""

    def __init__(
        self,
        transport: RateLimitedTransport,
        cache: ReleaseCache,
        profile: ProjectProfile = DEFAULT_PROFILE,
    ):
        self.transport = transport
        self.cache = cache
        self.profile = profile

    async def search(
        self,
        version: str,
        main_page: int = 1,
        ecosystem_page: int = 1,
    ) -> CombinedSearchResult:
        version = (version or "").strip()
        if not version:
            raise UsageError("Parameter 'version' is required")
        for name, page in (("main_page", main_page), ("ecosystem_page", ecosystem_page)):
            if not isinstance(page, int) or page < 1:
                raise UsageError(f"Parameter '{name}' must be a positive integer, got {page!r}")

        release = await find_release(self.cache, version)
        after_date = (
            calculate_search_after_date(release.published_at)
            if release and release.published_at
            else None
        )
        if release is None:
            log.info("No release found for %s; searching without a date filter", version)

        main_issues, ecosystem_issues = await asyncio.gather(
            self.search_scope(SearchScope.MAIN_REPO, version, after_date, main_page),
            self.search_scope(SearchScope.ECOSYSTEM, version, after_date, ecosystem_page),
        )

        return CombinedSearchResult(
            version=version,
            release=release,
            main_repo_issues=main_issues,
            ecosystem_issues=ecosystem_issues,
            searched_after_date=after_date,
        )

    def build_query(self, scope: SearchScope, version: str, after_date: str | None) -> str:
        if scope is SearchScope.MAIN_REPO:
            return build_main_repo_query(version, after_date, self.profile)
        return build_ecosystem_query(version, after_date, self.profile)

    async def search_scope(
        self,
        scope: SearchScope,
        version: str,
        after_date: str | None = None,
        page: int = 1,
    ) -> IssuePage:
        query = self.build_query(scope, version, after_date)
        log.debug("Searching %s issues: %s (page %d)", scope.value, query, page)
        params = {
            "q": query,
            "sort": "created",
            "order": "desc",
            "page": page,
            "per_page": PAGE_SIZE,
        }
        resp = await self.transport.send(f"{self.transport.settings.api_base_url}/search/issues", params)
        if not isinstance(resp.data, dict):
            raise GitHubApiError(f"Unexpected search response shape for {scope.value} issues")
        return IssuePage.from_api(resp.data, page=page)
