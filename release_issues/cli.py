#!/usr/bin/env python3
"""release-issues CLI: list versions and find issues reported after a release."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from rich.logging import RichHandler

from .config import BUILTIN_PROFILES, Settings, load_profile
from .display import console, display_search_result, display_versions
from .models import SearchScope
from .output import write_json, write_versions_json
from .service import IssueTracker
from .transport import GitHubApiError

SCOPES = {
    "main": (SearchScope.MAIN_REPO,),
    "ecosystem": (SearchScope.ECOSYSTEM,),
    "both": (SearchScope.MAIN_REPO, SearchScope.ECOSYSTEM),
}


def _positive_int(raw: str) -> int:
    value = int(raw)
    if value < 1:
        raise argparse.ArgumentTypeError(f"must be >= 1, got {value}")
    return value


def setup_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="release-issues",
        description="Find GitHub issues reported after a given release of a project.",
    )
    parser.add_argument(
        "--token", type=str, default=None,
        help="GitHub token (default: GITHUB_TOKEN or GH_TOKEN env var). Optional; raises the rate limit.",
    )
    parser.add_argument(
        "--project", type=str, default="react-native",
        help=f"Project profile: {', '.join(BUILTIN_PROFILES)} (default) or path to a JSON profile",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    sub = parser.add_subparsers(dest="command", required=True)

    versions = sub.add_parser("versions", help="List stable releases, newest first")
    versions.add_argument("--limit", type=_positive_int, default=None, help="Show at most N versions")
    versions.add_argument("--json-out", default=None, help="Write the version list as JSON")

    search = sub.add_parser("search", help="Search issues mentioning a version")
    search.add_argument("version", help="Version to search for, e.g. 0.74.0")
    search.add_argument("--main-page", type=_positive_int, default=1, help="Page of main-repository results")
    search.add_argument("--ecosystem-page", type=_positive_int, default=1, help="Page of ecosystem results")
    search.add_argument("--scope", choices=sorted(SCOPES), default="both", help="Which results to print")
    search.add_argument("--json-out", default=None, help="Write the combined result as JSON")

    return parser


async def _run(args: argparse.Namespace) -> int:
    profile = load_profile(args.project)
    settings = Settings.from_env(token=args.token)

    async with IssueTracker(settings, profile) as tracker:
        if args.command == "versions":
            versions = await tracker.list_versions()
            display_versions(versions, limit=args.limit)
            if args.json_out:
                path = write_versions_json(args.json_out, versions)
                console.print(f"[green]Saved to {path}[/green]")
            return 0

        with console.status(f"Searching issues for {profile.display_name} {args.version}..."):
            result = await tracker.search_issues(args.version, args.main_page, args.ecosystem_page)
        display_search_result(result, SCOPES[args.scope], profile)
        if args.json_out:
            path = write_json(args.json_out, result)
            console.print(f"[green]Saved to {path}[/green]")
        return 0


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)
    try:
        return asyncio.run(_run(args))
    except (GitHubApiError, ValueError) as error:
        console.print(f"[red]Error: {error}[/red]")
        return 1


if __name__ == "__main__":
    sys.exit(main())
