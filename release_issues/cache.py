"""In-memory TTL cache for the tracked project's release list."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable

from .config import DEFAULT_PROFILE, RELEASE_CACHE_TTL, RELEASES_PER_PAGE, ProjectProfile
from .models import Release
from .transport import GitHubApiError, RateLimitedTransport

log = logging.getLogger(__name__)


class ReleaseCache:
    """Holds the release list for ``ttl`` seconds and single-flights refreshes.

    Concurrent callers that arrive while a fetch is outstanding await that
    same fetch instead of starting another one.  A failed fetch is not
    cached; the next caller starts over.
    """

    def __init__(
        self,
        transport: RateLimitedTransport,
        profile: ProjectProfile = DEFAULT_PROFILE,
        ttl: float = RELEASE_CACHE_TTL,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.transport = transport
        self.profile = profile
        self.ttl = ttl
        self._clock = clock
        self._releases: tuple[Release, ...] | None = None
        self._captured_at = 0.0
        self._inflight: asyncio.Task | None = None

    @property
    def is_fresh(self) -> bool:
        return self._releases is not None and self._clock() - self._captured_at < self.ttl

    def invalidate(self) -> None:
        self._releases = None
        self._captured_at = 0.0

    async def get_releases(self) -> tuple[Release, ...]:
        if self.is_fresh:
            log.debug("Using cached releases data")
            return self._releases

        if self._inflight is None:
            log.debug("Fetching fresh releases data")
            self._inflight = asyncio.ensure_future(self._refresh())
            self._inflight.add_done_callback(_retrieve_exception)
        else:
            log.debug("Using in-flight releases request")
        # shield: a caller that walks away leaves the fetch running for the rest
        return await asyncio.shield(self._inflight)

    async def _refresh(self) -> tuple[Release, ...]:
        try:
            releases = await self._fetch()
        finally:
            self._inflight = None
        self._releases = releases
        self._captured_at = self._clock()
        return releases

    async def _fetch(self) -> tuple[Release, ...]:
        url = f"{self.transport.settings.api_base_url}/repos/{self.profile.full_name}/releases"
        resp = await self.transport.send(url, {"per_page": RELEASES_PER_PAGE})
        if not isinstance(resp.data, list):
            raise GitHubApiError(
                f"Expected a list of releases for {self.profile.full_name}, got {type(resp.data).__name__}"
            )
        return tuple(Release.from_api(item) for item in resp.data)


def _retrieve_exception(task: asyncio.Task) -> None:
    # awaiters still see the failure; this marks it retrieved when none are left
    if not task.cancelled():
        task.exception()
