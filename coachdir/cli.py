"""Command-line interface for coachdir."""

import asyncio
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from coachdir import Ingestor, Settings, save_json, __version__
from coachdir.config import LogFormat, ProviderKind
from coachdir.core.directory import search_directory
from coachdir.core.exporter import save_many_json
from coachdir.core.migration import migrate_profile_images
from coachdir.exceptions import CoachDirError
from coachdir.models.directory import DirectoryQuery
from coachdir.models.profile import Profile
from coachdir.storage.repository import ProfileRepository

app = typer.Typer(
    name="coachdir",
    help="Directory of German-speaking Instagram coaches",
    add_completion=False,
)
console = Console()


def version_callback(value: bool):
    if value:
        console.print(f"coachdir version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
):
    """coachdir - directory of German-speaking Instagram coaches."""
    pass


def _settings(provider: Optional[ProviderKind] = None, quiet: bool = False) -> Settings:
    overrides: dict = {"log_format": LogFormat.JSON if quiet else LogFormat.CONSOLE}
    if provider is not None:
        overrides["provider"] = provider
    return Settings(**overrides)


@app.command()
def fetch(
    usernames: list[str] = typer.Argument(..., help="Instagram usernames to fetch"),
    provider: Optional[ProviderKind] = typer.Option(
        None, "--provider", "-p", help="Override the configured scraping API"
    ),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Output directory for JSON files"
    ),
    force: bool = typer.Option(
        False, "--force", "-f", help="Force refresh, ignore stored copies"
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress output, only show errors"
    ),
):
    """Fetch profiles from the scraping API into the directory."""
    settings = _settings(provider, quiet)

    async def run():
        async with Ingestor(settings) as ingestor:
            profiles = await ingestor.ingest_many(usernames, force_refresh=force)

        for profile in profiles:
            if not quiet:
                _print_profile(profile)
            if output:
                filepath = save_json(profile, output / f"{profile.username}.json")
                console.print(f"[dim]Saved to {filepath}[/dim]")

        fetched = {p.username.lower() for p in profiles}
        for username in usernames:
            if username.lstrip("@").lower() not in fetched:
                console.print(f"[red]✗[/red] Skipped {username}: not found, private, not German or failed")

        console.print(f"\n[bold]Stored {len(profiles)}/{len(usernames)} profiles[/bold]")

    try:
        asyncio.run(run())
    except CoachDirError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)


@app.command()
def info(
    username: str = typer.Argument(..., help="Instagram username"),
    force: bool = typer.Option(False, "--force", "-f", help="Force refresh"),
):
    """Show one profile, fetching it if the stored copy is stale."""
    settings = _settings()

    async def run():
        async with Ingestor(settings) as ingestor:
            profile = await ingestor.ingest(username, force_refresh=force)

        if profile is None:
            console.print("[red]Profile not found or not a German account[/red]")
            raise typer.Exit(1)
        _print_profile_table(profile)

    try:
        asyncio.run(run())
    except CoachDirError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)


@app.command()
def search(
    text: str = typer.Option("", "--search", "-s", help="Match username or full name"),
    niche: list[str] = typer.Option([], "--niche", "-n", help="Niche filter, repeatable"),
    min_followers: int = typer.Option(0, "--min-followers", help="Inclusive lower bound"),
    max_followers: int = typer.Option(0, "--max-followers", help="Inclusive upper bound"),
    page: int = typer.Option(1, "--page", min=1),
    limit: int = typer.Option(20, "--limit", min=1),
    export: Optional[Path] = typer.Option(None, "--export", "-e", help="Write the page to a JSON file"),
):
    """Query the stored directory."""
    settings = _settings()
    query = DirectoryQuery(
        search=text,
        niches=niche,
        min_followers=min_followers,
        max_followers=max_followers,
        page=page,
        limit=limit,
    )

    async def run():
        async with ProfileRepository(settings.database_path) as repository:
            result = await search_directory(repository, query)

        table = Table(title=f"Coaches (page {result.pagination.page}/{max(result.pagination.total_pages, 1)})")
        table.add_column("Username")
        table.add_column("Name")
        table.add_column("Niche")
        table.add_column("Followers", justify="right")
        for p in result.profiles:
            table.add_row(f"@{p.username}", p.full_name or "-", p.niche.value, f"{p.followers_count:,}")
        console.print(table)
        console.print(
            f"[dim]{result.pagination.total} matching · {result.pagination.global_total} in directory[/dim]"
        )

        if export:
            save_many_json(result.profiles, export)
            console.print(f"[dim]Saved to {export}[/dim]")

    try:
        asyncio.run(run())
    except CoachDirError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)


@app.command("migrate-images")
def migrate_images(
    batch_size: Optional[int] = typer.Option(None, "--batch-size", min=1),
):
    """Re-fetch profiles whose pictures are not in object storage yet."""
    settings = _settings()

    async def run():
        async with Ingestor(settings) as ingestor:
            summary = await migrate_profile_images(ingestor, batch_size=batch_size)

        console.print(f"[green]✓[/green] Migrated: {len(summary.migrated)}")
        console.print(f"[red]✗[/red] Failed: {len(summary.failed)}")
        for username in summary.failed:
            console.print(f"  [dim]@{username}[/dim]")
        console.print(f"[bold]Processed {summary.processed} profiles[/bold]")

    try:
        asyncio.run(run())
    except CoachDirError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", "--host"),
    port: int = typer.Option(8000, "--port"),
):
    """Run the HTTP API."""
    import uvicorn

    uvicorn.run("coachdir.api:app", host=host, port=port)


def _print_profile(p: Profile):
    """Print profile summary."""
    console.print(f"\n[bold]@{p.username}[/bold] [dim]({p.niche.value})[/dim]")
    console.print(f"  {p.full_name or p.username}")
    if p.biography:
        console.print(f"  [dim]{p.biography[:80]}{'...' if len(p.biography) > 80 else ''}[/dim]")
    console.print(f"  [blue]{p.followers_count:,}[/blue] followers · {p.follows_count:,} following")


def _print_profile_table(p: Profile):
    """Print detailed profile as table."""
    table = Table(title=f"@{p.username}", show_header=False)
    table.add_column("Field", style="dim")
    table.add_column("Value")

    table.add_row("Full Name", p.full_name or "-")
    table.add_row("Bio", p.biography or "-")
    table.add_row("Niche", p.niche.value)
    table.add_row("Followers", f"{p.followers_count:,}")
    table.add_row("Following", f"{p.follows_count:,}")
    table.add_row("Posts", f"{p.posts_count:,}")
    table.add_row("Verified", "✓" if p.verified else "✗")
    table.add_row("Picture", p.profile_picture or "-")
    table.add_row("Website", p.external_url or "-")
    table.add_row("Last Fetched", p.last_fetched.isoformat() if p.last_fetched else "-")

    console.print(table)


if __name__ == "__main__":
    app()
