"""Rich terminal output for versions and version-scoped issue searches."""

from __future__ import annotations

from datetime import date, datetime, timezone

from rich import box
from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .config import DEFAULT_PROFILE, FRAGMENT_LENGTH, ProjectProfile
from .highlight import highlight
from .models import CombinedSearchResult, Fragment, Issue, IssuePage, SearchScope, VersionEntry

console = Console()

MAX_LABELS = 2
HIGHLIGHT_STYLE = "bold black on yellow"


def _parse_iso(value: str) -> datetime:
    dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def _plural(n: int, unit: str) -> str:
    return f"{n} {unit if n == 1 else unit + 's'} ago"


def format_relative_time(value: str, today: date | None = None) -> str:
    """Whole-day distance from ``today``: today, yesterday, N days/weeks/months/years ago."""
    today = today or datetime.now(timezone.utc).date()
    days = (today - _parse_iso(value).date()).days

    if days <= 0:
        return "today"
    if days == 1:
        return "yesterday"
    if days < 7:
        return _plural(days, "day")
    if days < 30:
        return _plural(days // 7, "week")
    if days < 365:
        return _plural(days // 30, "month")
    return _plural(days // 365, "year")


def format_date(value: str | None) -> str:
    if not value:
        return "unknown"
    return _parse_iso(value).strftime("%d %B %Y")


def repo_display_name(repo_name: str, profile: ProjectProfile = DEFAULT_PROFILE) -> str:
    if repo_name == profile.full_name:
        return profile.display_name
    for prefix, label in profile.repo_display_prefixes.items():
        if repo_name.startswith(prefix):
            return label + repo_name[len(prefix):]
    return repo_name


def teaser(body: str | None, length: int = FRAGMENT_LENGTH) -> str:
    if not body:
        return ""
    return body[:length] + ("..." if len(body) > length else "")


def fragment_text(fragment: Fragment) -> Text:
    text = Text(fragment.text)
    if fragment.match_span is not None:
        text.stylize(HIGHLIGHT_STYLE, *fragment.match_span)
    return text


def highlighted_fragment(
    issue: Issue,
    search_term: str,
    profile: ProjectProfile = DEFAULT_PROFILE,
) -> Fragment | None:
    """The "found fragment" for a card, or None when it would just repeat the teaser."""
    if not search_term or not issue.body:
        return None
    fragment = highlight(issue.body, search_term, FRAGMENT_LENGTH, profile)
    if fragment.text == teaser(issue.body) or search_term not in fragment.text:
        return None
    return fragment


def issue_card(
    issue: Issue,
    search_term: str = "",
    profile: ProjectProfile = DEFAULT_PROFILE,
    today: date | None = None,
) -> Panel:
    title = Text()
    title.append(f"#{issue.number} ", style="bold")
    title.append(issue.title, style="bold cyan")
    state = Text(" Open ", style="bold white on red") if issue.is_open else Text(" Closed ", style="bold white on grey37")

    meta = Text()
    meta.append(repo_display_name(issue.repository_name, profile), style="magenta")
    meta.append("  ·  ")
    meta.append(issue.user_login or "Unknown user", style="dim")
    if issue.created_at:
        meta.append("  ·  ")
        meta.append(
            f"{format_relative_time(issue.created_at, today)} ({_parse_iso(issue.created_at):%d/%m/%Y, %H:%M})",
            style="dim",
        )

    parts: list = [Text.assemble(title, "  ", state), meta]

    if issue.labels:
        labels = Text()
        for lbl in issue.labels[:MAX_LABELS]:
            labels.append(f"[{lbl.name}] ", style=f"#{lbl.color}" if lbl.color else "")
        if len(issue.labels) > MAX_LABELS:
            labels.append(f"+{len(issue.labels) - MAX_LABELS} more", style="dim")
        parts.append(labels)

    body_teaser = teaser(issue.body)
    if body_teaser:
        parts.append(Text(body_teaser, style="dim"))

    fragment = highlighted_fragment(issue, search_term, profile)
    if fragment is not None:
        found = Text("Found fragment: ", style="bold yellow")
        found.append_text(fragment_text(fragment))
        parts.append(found)

    return Panel(Group(*parts), box=box.ROUNDED, subtitle=issue.html_url, subtitle_align="right")


def display_versions(versions: list[VersionEntry], limit: int | None = None, today: date | None = None) -> None:
    table = Table(title="Available versions", box=box.ROUNDED)
    table.add_column("Version", style="bold cyan")
    table.add_column("Tag")
    table.add_column("Published", justify="right")

    shown = versions[:limit] if limit else versions
    for v in shown:
        published = (
            f"{format_date(v.published_at)} ({format_relative_time(v.published_at, today)})"
            if v.published_at
            else "unknown"
        )
        table.add_row(v.version, v.tag, published)

    console.print(table)
    if limit and len(versions) > limit:
        console.print(f"  [dim]{len(versions) - limit} older versions not shown[/dim]")


def _scope_title(scope: SearchScope, page: IssuePage, profile: ProjectProfile) -> str:
    label = profile.display_name if scope is SearchScope.MAIN_REPO else "Ecosystem"
    return f"{label}: {page.total_count} issues (page {page.page}/{max(page.total_pages, 1)})"


def display_search_result(
    result: CombinedSearchResult,
    scopes: tuple[SearchScope, ...] = (SearchScope.MAIN_REPO, SearchScope.ECOSYSTEM),
    profile: ProjectProfile = DEFAULT_PROFILE,
    today: date | None = None,
) -> None:
    summary = Table(show_header=False, box=box.SIMPLE, padding=(0, 2))
    summary.add_column("Key", style="bold", width=20)
    summary.add_column("Value")
    summary.add_row("Version", result.version)
    if result.release:
        summary.add_row("Release", f"{result.release.name or result.release.tag_name}  {result.release.html_url}")
        summary.add_row("Published", format_date(result.release.published_at))
    else:
        summary.add_row("Release", Text("not found", style="yellow"))
    summary.add_row("Issues created after", result.searched_after_date or "any date")
    summary.add_row("Total issues", str(result.total_count))

    console.print()
    console.print(Panel(summary, title=f"{profile.display_name} {result.version}", box=box.DOUBLE))

    for scope in scopes:
        page = result.page_for(scope)
        console.print()
        console.print(Text(_scope_title(scope, page, profile), style="bold underline"))
        if not page.items:
            console.print("  [dim]No issues found.[/dim]")
            continue
        for issue in page.items:
            console.print(issue_card(issue, result.version, profile, today))
