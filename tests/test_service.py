from __future__ import annotations

import asyncio
import unittest

from release_issues.config import Settings
from release_issues.models import Release
from release_issues.service import IssueTracker, is_prerelease_tag, versions_from_releases
from tests.fakes import ScriptedTransport, ok


def _release(tag: str, published_at: str | None) -> Release:
    return Release(tag_name=tag, name=tag, published_at=published_at, html_url="")


RELEASE_PAYLOAD = [
    {"tag_name": "v0.73.0", "name": "0.73.0", "published_at": "2023-12-06T00:00:00Z", "html_url": "u3"},
    {"tag_name": "v0.74.0-rc.5", "name": "0.74.0-rc.5", "published_at": "2024-04-10T00:00:00Z", "html_url": "u4"},
    {"tag_name": "v0.74.0", "name": "0.74.0", "published_at": "2024-04-22T00:00:00Z", "html_url": "u5"},
    {"tag_name": "nightly-NEXT", "name": None, "published_at": "2024-05-01T00:00:00Z", "html_url": "u6"},
    {"tag_name": "0.72.0", "name": "0.72.0", "published_at": "2023-06-21T00:00:00Z", "html_url": "u7"},
]


def _tracker(transport: ScriptedTransport) -> IssueTracker:
    tracker = IssueTracker(Settings(token="t0ken"), transport=transport)
    tracker.cache._clock = transport.clock.time
    return tracker


class PrereleaseFilterTest(unittest.TestCase):
    def test_markers_are_case_insensitive(self) -> None:
        for tag in ("v0.74.0-rc.1", "v1.0.0-RC2", "v2-Alpha", "v3-BETA.1", "canary-123", "Next-7"):
            self.assertTrue(is_prerelease_tag(tag), tag)

    def test_stable_tags_pass(self) -> None:
        for tag in ("v0.74.0", "0.72.5", "v1.0"):
            self.assertFalse(is_prerelease_tag(tag), tag)

    def test_no_listed_version_contains_a_marker(self) -> None:
        releases = [_release(r["tag_name"], r["published_at"]) for r in RELEASE_PAYLOAD]
        for entry in versions_from_releases(releases):
            lowered = entry.tag.lower()
            for marker in ("rc", "alpha", "beta", "canary", "next"):
                self.assertNotIn(marker, lowered)

    def test_filter_reads_tag_markers_not_api_flags(self) -> None:
        flagged = Release.from_api(
            {"tag_name": "v0.75.0", "name": "0.75.0", "published_at": "2024-08-12T00:00:00Z",
             "html_url": "u", "prerelease": True, "draft": True}
        )
        self.assertEqual(flagged, Release("v0.75.0", "0.75.0", "2024-08-12T00:00:00Z", "u"))
        self.assertEqual([v.tag for v in versions_from_releases([flagged])], ["v0.75.0"])

    def test_sorted_newest_first_and_v_stripped(self) -> None:
        releases = [_release(r["tag_name"], r["published_at"]) for r in RELEASE_PAYLOAD]
        versions = versions_from_releases(releases)
        self.assertEqual([v.version for v in versions], ["0.74.0", "0.73.0", "0.72.0"])
        self.assertEqual(versions[0].tag, "v0.74.0")

    def test_missing_publish_date_sorts_last(self) -> None:
        versions = versions_from_releases([_release("v1", None), _release("v2", "2024-01-01T00:00:00Z")])
        self.assertEqual([v.tag for v in versions], ["v2", "v1"])


class IssueTrackerTest(unittest.IsolatedAsyncioTestCase):
    async def test_list_versions_uses_release_cache(self) -> None:
        transport = ScriptedTransport([ok(RELEASE_PAYLOAD)])
        tracker = _tracker(transport)

        first, second = await asyncio.gather(tracker.list_versions(), tracker.list_versions())

        self.assertEqual(first, second)
        self.assertEqual(len(transport.calls), 1)

    async def test_search_issues_reuses_cached_releases(self) -> None:
        def route(url, params):
            if url.endswith("/releases"):
                return ok(RELEASE_PAYLOAD)
            return ok({"total_count": 0, "items": []})

        transport = ScriptedTransport(route=route)
        tracker = _tracker(transport)

        await tracker.list_versions()
        result = await tracker.search_issues("0.74.0", 1, 2)

        self.assertEqual(result.searched_after_date, "2024-04-22")
        self.assertEqual(sum(1 for u in transport.urls() if u.endswith("/releases")), 1)
        self.assertEqual(result.ecosystem_issues.page, 2)

    async def test_invalidate_cache_refetches(self) -> None:
        transport = ScriptedTransport([ok(RELEASE_PAYLOAD), ok(RELEASE_PAYLOAD)])
        tracker = _tracker(transport)
        await tracker.list_versions()
        tracker.invalidate_cache()
        await tracker.list_versions()
        self.assertEqual(len(transport.calls), 2)

    async def test_highlight_delegates_with_profile(self) -> None:
        tracker = _tracker(ScriptedTransport([]))
        fragment = tracker.highlight("Crash seen on React Native 0.72 after upgrade", "0.72", 20)
        self.assertEqual(fragment.matched, "React Native 0.72")


if __name__ == "__main__":
    unittest.main()
