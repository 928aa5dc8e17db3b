from __future__ import annotations

import asyncio
import unittest

from release_issues.cache import ReleaseCache
from release_issues.transport import GitHubApiError, TransportResponse
from tests.fakes import FakeClock, ScriptedTransport, ok

RELEASES = [
    {"tag_name": "v0.74.0", "name": "0.74.0", "published_at": "2024-04-22T15:00:00Z",
     "html_url": "https://github.com/facebook/react-native/releases/tag/v0.74.0"},
    {"tag_name": "v0.73.6", "name": "0.73.6", "published_at": "2024-03-11T10:00:00Z",
     "html_url": "https://github.com/facebook/react-native/releases/tag/v0.73.6"},
]


def _cache(transport: ScriptedTransport, ttl: float = 3600) -> ReleaseCache:
    return ReleaseCache(transport, ttl=ttl, clock=transport.clock.time)


class ReleaseCacheTest(unittest.IsolatedAsyncioTestCase):
    async def test_fetches_release_list_once_then_serves_from_cache(self) -> None:
        transport = ScriptedTransport([ok(RELEASES)])
        cache = _cache(transport)

        first = await cache.get_releases()
        second = await cache.get_releases()

        self.assertIs(first, second)
        self.assertEqual([r.tag_name for r in first], ["v0.74.0", "v0.73.6"])
        self.assertEqual(len(transport.calls), 1)
        url, params, _ = transport.calls[0]
        self.assertTrue(url.endswith("/repos/facebook/react-native/releases"))
        self.assertEqual(params, {"per_page": 100})

    async def test_concurrent_callers_share_one_fetch(self) -> None:
        transport = ScriptedTransport([ok(RELEASES)], latency=0.01)
        cache = _cache(transport)

        results = await asyncio.gather(*(cache.get_releases() for _ in range(5)))

        self.assertEqual(len(transport.calls), 1)
        for r in results:
            self.assertEqual(r, results[0])

    async def test_expired_entry_is_refetched(self) -> None:
        transport = ScriptedTransport([ok(RELEASES), ok(RELEASES[:1])])
        cache = _cache(transport, ttl=3600)

        await cache.get_releases()
        transport.clock.now += 3600
        refreshed = await cache.get_releases()

        self.assertEqual(len(transport.calls), 2)
        self.assertEqual(len(refreshed), 1)

    async def test_entry_within_ttl_is_fresh(self) -> None:
        transport = ScriptedTransport([ok(RELEASES)])
        cache = _cache(transport, ttl=3600)
        await cache.get_releases()
        transport.clock.now += 3599
        self.assertTrue(cache.is_fresh)

    async def test_failure_is_not_cached_and_clears_inflight(self) -> None:
        transport = ScriptedTransport(
            [TransportResponse(status=502, reason="Bad Gateway"), ok(RELEASES)]
        )
        cache = _cache(transport)

        with self.assertRaises(GitHubApiError):
            await cache.get_releases()
        self.assertIsNone(cache._inflight)
        self.assertFalse(cache.is_fresh)

        releases = await cache.get_releases()
        self.assertEqual(len(releases), 2)
        self.assertEqual(len(transport.calls), 2)

    async def test_concurrent_waiters_all_see_the_failure(self) -> None:
        transport = ScriptedTransport([TransportResponse(status=500, reason="Oops")], latency=0.01)
        cache = _cache(transport)

        results = await asyncio.gather(
            *(cache.get_releases() for _ in range(3)), return_exceptions=True
        )

        self.assertEqual(len(transport.calls), 1)
        for r in results:
            self.assertIsInstance(r, GitHubApiError)
        self.assertIsNone(cache._inflight)

    async def test_cancelled_first_caller_leaves_fetch_running_for_others(self) -> None:
        transport = ScriptedTransport([ok(RELEASES)], latency=0.02)
        cache = _cache(transport)

        first = asyncio.create_task(cache.get_releases())
        await asyncio.sleep(0)
        second = asyncio.create_task(cache.get_releases())
        await asyncio.sleep(0)
        first.cancel()

        releases = await second

        with self.assertRaises(asyncio.CancelledError):
            await first
        self.assertEqual([r.tag_name for r in releases], ["v0.74.0", "v0.73.6"])
        self.assertEqual(len(transport.calls), 1)
        self.assertTrue(cache.is_fresh)

    async def test_fetch_completes_after_every_caller_walks_away(self) -> None:
        transport = ScriptedTransport([ok(RELEASES)], latency=0.02)
        cache = _cache(transport)

        caller = asyncio.create_task(cache.get_releases())
        await asyncio.sleep(0)
        caller.cancel()
        with self.assertRaises(asyncio.CancelledError):
            await caller

        await asyncio.sleep(0.05)
        self.assertTrue(cache.is_fresh)
        self.assertIsNone(cache._inflight)
        await cache.get_releases()
        self.assertEqual(len(transport.calls), 1)

    async def test_invalidate_forces_refetch(self) -> None:
        transport = ScriptedTransport([ok(RELEASES), ok(RELEASES)])
        cache = _cache(transport)

        await cache.get_releases()
        cache.invalidate()
        await cache.get_releases()

        self.assertEqual(len(transport.calls), 2)

    async def test_non_list_payload_is_an_error(self) -> None:
        transport = ScriptedTransport([ok({"message": "weird"})])
        cache = _cache(transport)
        with self.assertRaises(GitHubApiError):
            await cache.get_releases()


if __name__ == "__main__":
    unittest.main()
