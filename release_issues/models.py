from __future__ import annotations

import enum
import math
import re
from dataclasses import asdict, dataclass, field
from typing import Any

from .config import PAGE_SIZE

_REPO_FROM_URL = re.compile(r"repos/([^/]+/[^/]+)")


class SearchScope(str, enum.Enum):
    MAIN_REPO = "main"
    ECOSYSTEM = "ecosystem"


@dataclass(frozen=True)
class Release:
    tag_name: str
    name: str | None
    published_at: str | None
    html_url: str

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Release":
        return cls(
            tag_name=data.get("tag_name") or "",
            name=data.get("name"),
            published_at=data.get("published_at"),
            html_url=data.get("html_url") or "",
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "tag_name": self.tag_name,
            "name": self.name,
            "published_at": self.published_at,
            "html_url": self.html_url,
        }


@dataclass(frozen=True)
class Label:
    name: str
    color: str = ""


@dataclass(frozen=True)
class Issue:
    number: int
    title: str
    body: str | None
    user_login: str
    repository_url: str
    state: str
    created_at: str
    html_url: str
    labels: tuple[Label, ...] = ()

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Issue":
        user = data.get("user") or {}
        labels = tuple(
            Label(name=lbl.get("name", ""), color=lbl.get("color") or "")
            for lbl in (data.get("labels") or [])
            if isinstance(lbl, dict)
        )
        return cls(
            number=int(data.get("number") or 0),
            title=data.get("title") or "",
            body=data.get("body"),
            user_login=user.get("login") or "",
            repository_url=data.get("repository_url") or "",
            state=data.get("state") or "open",
            created_at=data.get("created_at") or "",
            html_url=data.get("html_url") or "",
            labels=labels,
        )

    @property
    def repository_name(self) -> str:
        m = _REPO_FROM_URL.search(self.repository_url or "")
        return m.group(1) if m else "Unknown"

    @property
    def is_open(self) -> bool:
        return self.state == "open"

    def to_dict(self) -> dict[str, Any]:
        return {
            "number": self.number,
            "title": self.title,
            "body": self.body,
            "user": {"login": self.user_login},
            "repository_url": self.repository_url,
            "state": self.state,
            "created_at": self.created_at,
            "html_url": self.html_url,
            "labels": [asdict(lbl) for lbl in self.labels],
        }


@dataclass(frozen=True)
class IssuePage:
    """One page of search hits for a single scope."""

    total_count: int
    items: tuple[Issue, ...]
    page: int = 1
    incomplete_results: bool = False

    @classmethod
    def from_api(cls, data: dict[str, Any], page: int = 1) -> "IssuePage":
        return cls(
            total_count=int(data.get("total_count") or 0),
            items=tuple(Issue.from_api(item) for item in (data.get("items") or [])),
            page=page,
            incomplete_results=bool(data.get("incomplete_results", False)),
        )

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_count / PAGE_SIZE)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_count": self.total_count,
            "incomplete_results": self.incomplete_results,
            "page": self.page,
            "items": [i.to_dict() for i in self.items],
        }


@dataclass(frozen=True)
class CombinedSearchResult:
    version: str
    release: Release | None
    main_repo_issues: IssuePage
    ecosystem_issues: IssuePage
    searched_after_date: str | None = None

    @property
    def total_count(self) -> int:
        return self.main_repo_issues.total_count + self.ecosystem_issues.total_count

    def page_for(self, scope: SearchScope) -> IssuePage:
        if scope is SearchScope.MAIN_REPO:
            return self.main_repo_issues
        return self.ecosystem_issues

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "version": self.version,
            "release": self.release.to_dict() if self.release else None,
            "mainRepoIssues": self.main_repo_issues.to_dict(),
            "ecosystemIssues": self.ecosystem_issues.to_dict(),
        }
        if self.searched_after_date:
            payload["searchedAfterDate"] = self.searched_after_date
        return payload


@dataclass(frozen=True)
class VersionEntry:
    tag: str
    name: str | None
    version: str
    published_at: str | None


@dataclass(frozen=True)
class HighlightMatch:
    start: int
    end: int
    matched: str
    pattern: str


@dataclass(frozen=True)
class Fragment:
    """An excerpt of a longer text, with the matched part located in it."""

    text: str
    match_span: tuple[int, int] | None = None
    match: HighlightMatch | None = field(default=None, compare=False)

    @property
    def before(self) -> str:
        return self.text if self.match_span is None else self.text[: self.match_span[0]]

    @property
    def matched(self) -> str:
        if self.match_span is None:
            return ""
        start, end = self.match_span
        return self.text[start:end]

    @property
    def after(self) -> str:
        return "" if self.match_span is None else self.text[self.match_span[1]:]
