from __future__ import annotations

from typing import Iterable

from .cache import ReleaseCache
from .models import Release


def match_release(releases: Iterable[Release], version: str) -> Release | None:
    """
    Pick the release a user means by ``version``.

    Exact pass: tag or name equals ``version`` or ``v{version}``.
    Partial pass (only when the exact pass finds nothing): tag or name
    contains ``version``.  First hit in list order wins in each pass.
    """
    if not version:
        return None
    releases = list(releases)
    wanted = {version, f"v{version}"}

    for r in releases:
        if r.tag_name in wanted or r.name in wanted:
            return r

    for r in releases:
        if version in r.tag_name or (r.name and version in r.name):
            return r

    return None


async def find_release(cache: ReleaseCache, version: str) -> Release | None:
    """Resolve ``version`` against the cached release list; None when unknown."""
    releases = await cache.get_releases()
    return match_release(releases, version)
