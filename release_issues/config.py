"""Configuration for release-issues: API settings and tracked-project profiles."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path


API = "https://api.github.com"
USER_AGENT = "release-issues"

# Transport
MIN_REQUEST_INTERVAL = 1.0      # seconds between dispatch starts
MAX_RATE_LIMIT_WAIT = 300       # longest quota-reset wait before giving up
RATE_LIMIT_MARGIN = 1.0         # added on top of the reset time
REQUEST_TIMEOUT = 30

# Release cache
RELEASE_CACHE_TTL = 3600
RELEASES_PER_PAGE = 100

# Search
PAGE_SIZE = 20
FRAGMENT_LENGTH = 200

# Tags containing any of these are not offered as versions
PRERELEASE_MARKERS = ("rc", "alpha", "beta", "canary", "next")

PROFILES_DIR = Path.home() / ".release_issues" / "profiles"


@dataclass
class Settings:
    """Runtime settings for talking to the GitHub API."""

    token: str | None = None
    api_base_url: str = API
    min_request_interval: float = MIN_REQUEST_INTERVAL
    max_rate_limit_wait: float = MAX_RATE_LIMIT_WAIT
    release_cache_ttl: float = RELEASE_CACHE_TTL
    timeout_s: float = REQUEST_TIMEOUT

    @classmethod
    def from_env(cls, *, token: str | None = None) -> "Settings":
        tok = token or os.environ.get("GITHUB_TOKEN") or os.environ.get("GH_TOKEN")
        return cls(
            token=tok or None,
            api_base_url=os.environ.get("GITHUB_API_URL", API).rstrip("/"),
        )

    def __repr__(self) -> str:
        masked = "'*****'" if self.token else "None"
        return (
            f"Settings(token={masked}, api_base_url={self.api_base_url!r}, "
            f"min_request_interval={self.min_request_interval!r}, "
            f"max_rate_limit_wait={self.max_rate_limit_wait!r}, "
            f"release_cache_ttl={self.release_cache_ttl!r}, timeout_s={self.timeout_s!r})"
        )


@dataclass(frozen=True)
class ProjectProfile:
    """A tracked project: where its releases live and how people name it."""

    name: str
    owner: str
    repo: str
    display_name: str
    package_name: str
    alias: str = ""
    description: str = ""
    # owner prefix -> label used when showing ecosystem repositories
    repo_display_prefixes: dict[str, str] = field(default_factory=dict)

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "owner": self.owner,
            "repo": self.repo,
            "display_name": self.display_name,
            "package_name": self.package_name,
            "alias": self.alias,
            "description": self.description,
            "repo_display_prefixes": dict(self.repo_display_prefixes),
        }

    def save(self, path: Path | None = None) -> Path:
        path = path or PROFILES_DIR / f"{self.name}.json"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(self.to_dict(), indent=2))
        return path


# Built-in profiles
REACT_NATIVE = ProjectProfile(
    name="react-native",
    owner="facebook",
    repo="react-native",
    display_name="React Native",
    package_name="react-native",
    alias="RN",
    description="React Native releases and ecosystem issues (default)",
    repo_display_prefixes={
        "react-native-community/": "RN Community: ",
        "software-mansion/": "",
    },
)

BUILTIN_PROFILES: dict[str, ProjectProfile] = {
    "react-native": REACT_NATIVE,
}

DEFAULT_PROFILE = REACT_NATIVE


def load_profile(name_or_path: str) -> ProjectProfile:
    """Load a profile by built-in name or JSON file path."""
    if name_or_path in BUILTIN_PROFILES:
        return BUILTIN_PROFILES[name_or_path]

    path = Path(name_or_path)
    if not path.exists():
        path = PROFILES_DIR / f"{name_or_path}.json"

    if path.exists():
        data = json.loads(path.read_text())
        return ProjectProfile(**data)

    raise ValueError(f"Unknown project profile: {name_or_path}")
