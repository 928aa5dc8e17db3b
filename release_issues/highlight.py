"""Pick the most relevant excerpt of an issue body for a searched version."""

from __future__ import annotations

import re

from .config import DEFAULT_PROFILE, FRAGMENT_LENGTH, ProjectProfile
from .models import Fragment, HighlightMatch

ELLIPSIS = "..."


def pattern_variants(term: str, profile: ProjectProfile = DEFAULT_PROFILE) -> tuple[str, ...]:
    """Ways a version tends to be written in issue text, in preference order."""
    variants = [
        term,
        f"v{term}",
        f"{profile.package_name}@{term}",
        f"{profile.display_name} {term}",
    ]
    if profile.alias:
        variants.append(f"{profile.alias} {term}")
    variants.append(f"{profile.display_name} Version {term}")
    return tuple(variants)


def find_best_match(
    text: str,
    term: str,
    profile: ProjectProfile = DEFAULT_PROFILE,
) -> HighlightMatch | None:
    """Leftmost case-insensitive match of any variant; earlier variant wins ties."""
    best: HighlightMatch | None = None
    for pattern in pattern_variants(term, profile):
        m = re.search(re.escape(pattern), text, re.IGNORECASE)
        if m is None:
            continue
        if best is None or m.start() < best.start:
            best = HighlightMatch(start=m.start(), end=m.end(), matched=m.group(0), pattern=pattern)
    return best


def _truncate(text: str, max_length: int) -> Fragment:
    head = text[:max_length]
    return Fragment(text=head + (ELLIPSIS if len(text) > max_length else ""))


def _window(length: int, match: HighlightMatch, max_length: int) -> tuple[int, int]:
    half = max_length // 2
    start = max(0, match.start - half)
    end = min(length, match.end + half)

    if end - start < max_length:
        if start == 0:
            end = min(length, max_length)
        elif end == length:
            start = max(0, length - max_length)

    if end - start > max_length:
        # narrow to max_length, splitting the spare context around the match
        spare = max(0, max_length - (match.end - match.start))
        start = max(0, match.start - spare // 2)
        end = max(match.end, min(length, start + max_length))
        if end == length:
            start = min(match.start, max(0, length - max_length))

    return start, end


def highlight(
    text: str | None,
    search_term: str | None,
    max_length: int = FRAGMENT_LENGTH,
    profile: ProjectProfile = DEFAULT_PROFILE,
) -> Fragment:
    """
    Return an excerpt of ``text`` of about ``max_length`` chars centred on
    the best match of ``search_term``, with ``...`` marking cut edges.

    ``Fragment.match_span`` indexes the matched substring inside
    ``Fragment.text``; it is None when nothing matched.
    """
    text = text or ""
    if not search_term or not text:
        return _truncate(text, max_length)

    match = find_best_match(text, search_term, profile)
    if match is None:
        return _truncate(text, max_length)

    start, end = _window(len(text), match, max_length)
    prefix = ELLIPSIS if start > 0 else ""
    suffix = ELLIPSIS if end < len(text) else ""

    offset = len(prefix) - start
    return Fragment(
        text=prefix + text[start:end] + suffix,
        match_span=(match.start + offset, match.end + offset),
        match=match,
    )
