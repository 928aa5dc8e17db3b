"""Rate-limited GitHub transport on top of aiohttp.

Every outbound call goes through one shared throttle, so the start of two
consecutive calls is never closer than ``min_request_interval``.  A 403
carrying an exhausted quota is waited out once when the reset is near.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Mapping

import aiohttp

from .config import RATE_LIMIT_MARGIN, USER_AGENT, Settings

log = logging.getLogger(__name__)

RATE_LIMIT_MESSAGE = (
    "GitHub API rate limit exceeded. Please wait a moment and try again, "
    "or add a GITHUB_TOKEN environment variable to increase your rate limit."
)
FORBIDDEN_MESSAGE = (
    "GitHub API access forbidden. Consider adding a GITHUB_TOKEN environment variable."
)


class GitHubApiError(RuntimeError):
    def __init__(self, message: str, status: int | None = None, reason: str = ""):
        super().__init__(message)
        self.status = status
        self.reason = reason


class RateLimitExceeded(GitHubApiError):
    def __init__(self, message: str = RATE_LIMIT_MESSAGE, reset_at: int | None = None):
        super().__init__(message, status=403, reason="rate limit exceeded")
        self.reset_at = reset_at


@dataclass(frozen=True)
class TransportResponse:
    status: int
    reason: str = ""
    headers: Mapping[str, str] = field(default_factory=dict)
    data: Any = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def header(self, name: str) -> str | None:
        wanted = name.lower()
        for key, value in self.headers.items():
            if key.lower() == wanted:
                return value
        return None

    @property
    def quota_exhausted(self) -> bool:
        return self.header("X-RateLimit-Remaining") == "0"

    @property
    def quota_reset(self) -> int | None:
        raw = self.header("X-RateLimit-Reset")
        if raw is None:
            return None
        try:
            return int(raw)
        except ValueError:
            return None


class RateLimitedTransport:
    """Throttled GET transport shared by every component of a tracker."""

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        clock: Callable[[], float] = time.time,
        monotonic: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.settings = settings or Settings()
        self._clock = clock
        self._monotonic = monotonic
        self._sleep = sleep
        self._last_request = float("-inf")
        self._lock = asyncio.Lock()
        self._session: aiohttp.ClientSession | None = None

    async def __aenter__(self) -> "RateLimitedTransport":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    def _headers(self) -> dict[str, str]:
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": USER_AGENT,
        }
        if self.settings.token:
            headers["Authorization"] = f"Bearer {self.settings.token}"
        return headers

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(headers=self._headers())
        return self._session

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()

    # ── Sending ──────────────────────────────────────────────────

    async def send(self, url: str, params: dict[str, Any] | None = None) -> TransportResponse:
        """GET ``url``; return the 2xx response or raise ``GitHubApiError``."""
        resp = await self._attempt(url, params)

        wait = self._quota_wait(resp)
        if wait is not None:
            log.warning("Rate limit exceeded. Waiting %d seconds...", int(wait))
            await self._sleep(wait)
            resp = await self._attempt(url, params)

        return self._check(resp)

    async def _attempt(self, url: str, params: dict[str, Any] | None) -> TransportResponse:
        await self._throttle()
        resp = await self._dispatch(url, params)
        log.debug("GET %s -> %d", url, resp.status)
        return resp

    async def _throttle(self) -> None:
        # Check, wait and stamp under one lock so dispatches stay serialized.
        # Spacing uses the monotonic clock; quota resets are wall-clock epochs.
        async with self._lock:
            elapsed = self._monotonic() - self._last_request
            interval = self.settings.min_request_interval
            if elapsed < interval:
                await self._sleep(interval - elapsed)
            self._last_request = self._monotonic()

    async def _dispatch(self, url: str, params: dict[str, Any] | None) -> TransportResponse:
        session = await self._ensure_session()
        timeout = aiohttp.ClientTimeout(total=self.settings.timeout_s)
        try:
            async with session.get(url, params=params, timeout=timeout) as resp:
                data = await resp.json(content_type=None) if 200 <= resp.status < 300 else None
                return TransportResponse(
                    status=resp.status,
                    reason=resp.reason or "",
                    headers=dict(resp.headers),
                    data=data,
                )
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise GitHubApiError(f"Request to GitHub failed: {exc}") from exc

    # ── Rate-limit handling ──────────────────────────────────────

    def _quota_wait(self, resp: TransportResponse) -> float | None:
        """Seconds to wait before the single retry, or None when not retrying."""
        if resp.status != 403 or not resp.quota_exhausted:
            return None
        reset = resp.quota_reset
        if reset is None:
            return None
        wait = max(reset - self._clock(), 0.0)
        if wait > self.settings.max_rate_limit_wait:
            log.warning("Rate limit resets in %ds; not waiting", int(wait))
            return None
        return wait + RATE_LIMIT_MARGIN

    @staticmethod
    def _check(resp: TransportResponse) -> TransportResponse:
        if resp.ok:
            return resp
        if resp.status == 403:
            if resp.quota_exhausted:
                raise RateLimitExceeded(reset_at=resp.quota_reset)
            raise GitHubApiError(FORBIDDEN_MESSAGE, status=403, reason=resp.reason)
        raise GitHubApiError(
            f"GitHub API error: {resp.status} {resp.reason}".rstrip(),
            status=resp.status,
            reason=resp.reason,
        )
