"""The tracker facade: the only surface the CLI and renderers call into."""

from __future__ import annotations

from datetime import datetime

from .cache import ReleaseCache
from .config import DEFAULT_PROFILE, FRAGMENT_LENGTH, PRERELEASE_MARKERS, ProjectProfile, Settings
from .highlight import highlight
from .models import CombinedSearchResult, Fragment, Release, VersionEntry
from .search import SearchOrchestrator
from .transport import RateLimitedTransport


def is_prerelease_tag(tag_name: str) -> bool:
    normalized = tag_name.lower()
    return any(marker in normalized for marker in PRERELEASE_MARKERS)


def _published_sort_key(entry: VersionEntry) -> float:
    if not entry.published_at:
        return float("-inf")
    return datetime.fromisoformat(entry.published_at.replace("Z", "+00:00")).timestamp()


def versions_from_releases(releases: tuple[Release, ...] | list[Release]) -> list[VersionEntry]:
    """Stable releases shaped for display, newest first."""
    versions = [
        VersionEntry(
            tag=r.tag_name,
            name=r.name,
            version=r.tag_name[1:] if r.tag_name.startswith("v") else r.tag_name,
            published_at=r.published_at,
        )
        for r in releases
        if not is_prerelease_tag(r.tag_name)
    ]
    versions.sort(key=_published_sort_key, reverse=True)
    return versions


class IssueTracker:
    """Wires one transport, one release cache and one search orchestrator together."""

    def __init__(
        self,
        settings: Settings | None = None,
        profile: ProjectProfile = DEFAULT_PROFILE,
        *,
        transport: RateLimitedTransport | None = None,
    ):
        self.settings = settings or Settings.from_env()
        self.profile = profile
        self.transport = transport or RateLimitedTransport(self.settings)
        self.cache = ReleaseCache(self.transport, profile, ttl=self.settings.release_cache_ttl)
        self.orchestrator = SearchOrchestrator(self.transport, self.cache, profile)

    async def __aenter__(self) -> "IssueTracker":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        await self.transport.close()

    async def list_versions(self) -> list[VersionEntry]:
        return versions_from_releases(await self.cache.get_releases())

    async def search_issues(
        self,
        version: str,
        main_repo_page: int = 1,
        ecosystem_page: int = 1,
    ) -> CombinedSearchResult:
        return await self.orchestrator.search(version, main_repo_page, ecosystem_page)

    def highlight(self, text: str | None, term: str, max_length: int = FRAGMENT_LENGTH) -> Fragment:
        return highlight(text, term, max_length, self.profile)

    def invalidate_cache(self) -> None:
        self.cache.invalidate()
