"""Main CLI entry point for StreamGuard."""

import asyncio
import json
import logging
from collections.abc import Coroutine
from dataclasses import dataclass
from typing import Any, TypeVar

import click
from rich.console import Console
from rich.table import Table

from streamguard import __version__
from streamguard.core.config import Settings, get_settings
from streamguard.core.exceptions import StreamGuardError
from streamguard.core.models import (
    DailyProgress,
    DayConfig,
    ProfileUpdate,
    TargetTrack,
    TodaySelection,
    User,
    UserRegistration,
)
from streamguard.services.directory import DirectoryService
from streamguard.services.document_store import DocumentStore
from streamguard.services.lastfm import LastFmClient
from streamguard.services.local_cache import LocalCache
from streamguard.services.progress import ProgressEngine, can_check_in, claim_check_in, today_string
from streamguard.services.schedule import DAY_NAMES, ScheduleService, validate_pin

console = Console()

T = TypeVar("T")


@dataclass
class Services:
    """Services wired from one settings object."""

    cache: LocalCache
    store: DocumentStore
    directory: DirectoryService
    schedule: ScheduleService
    engine: ProgressEngine


def build_services(settings: Settings) -> Services:
    """Wire up the services for a settings object."""
    cache = LocalCache(settings.resolved_cache_path)
    store = DocumentStore(settings, cache)
    return Services(
        cache=cache,
        store=store,
        directory=DirectoryService(store),
        schedule=ScheduleService(store, settings),
        engine=ProgressEngine(LastFmClient(settings)),
    )


def get_services(ctx: click.Context) -> Services:
    """Get or create the services for this invocation."""
    root = ctx.find_root()
    obj = root.obj
    if obj.get("services") is None:
        obj["services"] = build_services(get_settings())
        root.call_on_close(obj["services"].cache.close)
    services: Services = obj["services"]
    return services


def run(coro: Coroutine[Any, Any, T]) -> T:
    """Run a coroutine, turning app errors into a clean exit."""
    try:
        return asyncio.run(coro)
    except StreamGuardError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise click.exceptions.Exit(1)


def parse_track(value: str, track_id: str) -> TargetTrack:
    """Parse an "Artist - Title" argument."""
    artist, sep, title = value.partition(" - ")
    if not sep or not artist.strip() or not title.strip():
        raise click.BadParameter(f"expected 'Artist - Title', got '{value}'")
    return TargetTrack(id=track_id, artist=artist.strip(), title=title.strip())


@click.group()
@click.version_option(version=__version__, prog_name="streamguard")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """StreamGuard - Daily listening goals for your community."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(levelname)s:%(name)s:%(message)s",
    )


# --- Members ---


@cli.command()
@click.argument("username")
@click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True)
@click.option("--lastfm-user", default="", help="Last.fm username")
@click.option("--lastfm-key", default="", help="Last.fm API key")
@click.pass_context
def register(ctx: click.Context, username: str, password: str, lastfm_user: str, lastfm_key: str) -> None:
    """Create a member account."""
    services = get_services(ctx)
    registration = UserRegistration(
        app_username=username,
        password=password,
        lastfm_username=lastfm_user,
        lastfm_api_key=lastfm_key,
    )
    user = run(services.directory.register(registration))
    console.print(f"[green]Registered[/green] {user.app_username}")


@cli.command()
@click.argument("username")
@click.option("--password", prompt=True, hide_input=True)
@click.pass_context
def login(ctx: click.Context, username: str, password: str) -> None:
    """Check member credentials."""
    services = get_services(ctx)
    user = run(services.directory.login(username, password))
    console.print(f"[green]Welcome back,[/green] {user.app_username}")
    if user.last_check_in_date:
        console.print(f"[dim]Last check-in: {user.last_check_in_date}[/dim]")


@cli.command()
@click.argument("username")
@click.option("--password", prompt=True, hide_input=True)
@click.pass_context
def status(ctx: click.Context, username: str, password: str) -> None:
    """Show today's tracks and progress."""
    services = get_services(ctx)

    async def load() -> tuple[User, TodaySelection, DailyProgress]:
        user = await services.directory.login(username, password)
        selection = await services.schedule.today()
        progress = await services.engine.evaluate(user, selection.tracks)
        return user, selection, progress

    with console.status("Checking your scrobbles..."):
        user, selection, progress = run(load())

    table = Table(title=f"{DAY_NAMES[selection.day_index]}'s Tracks")
    table.add_column("Title", style="green")
    table.add_column("Artist", style="cyan")
    table.add_column("Listened", style="magenta")

    for track in selection.tracks:
        table.add_row(track.title, track.artist, progress.matches.get(track.id, "-"))

    console.print(table)
    console.print(f"Daily goal: [bold]{progress.percent}%[/bold]")
    console.print(f"[dim]Playlist: {selection.spotify_id}[/dim]")

    today = today_string()
    if user.last_check_in_date == today:
        console.print("[green]Already checked in today[/green]")
    elif can_check_in(user, progress, today):
        console.print("[green]Complete! Run 'streamguard checkin' to claim.[/green]")
    else:
        console.print("[yellow]Complete 100% to check in[/yellow]")


@cli.command()
@click.argument("username")
@click.option("--password", prompt=True, hide_input=True)
@click.pass_context
def checkin(ctx: click.Context, username: str, password: str) -> None:
    """Claim today's check-in."""
    services = get_services(ctx)

    async def claim() -> User:
        user = await services.directory.login(username, password)
        selection = await services.schedule.today()
        progress = await services.engine.evaluate(user, selection.tracks)
        return await claim_check_in(services.directory, user, progress)

    user = run(claim())
    console.print(f"[green]Checked in on {user.last_check_in_date}[/green]")


@cli.command()
@click.argument("username")
@click.option("--password", prompt=True, hide_input=True)
@click.option("--lastfm-user", default=None, help="Last.fm username")
@click.option("--lastfm-key", default=None, help="Last.fm API key")
@click.option("--playlist-url", default=None, help="Personal playlist URL")
@click.option("--artist", default=None, help="Favourite artist")
@click.option("--track", default=None, help="Favourite track")
@click.pass_context
def profile(
    ctx: click.Context,
    username: str,
    password: str,
    lastfm_user: str | None,
    lastfm_key: str | None,
    playlist_url: str | None,
    artist: str | None,
    track: str | None,
) -> None:
    """Update profile fields. Options left out are unchanged."""
    services = get_services(ctx)
    fields = {
        "lastfm_username": lastfm_user,
        "lastfm_api_key": lastfm_key,
        "personal_playlist_url": playlist_url,
        "personal_artist": artist,
        "personal_track": track,
    }
    update = ProfileUpdate(**{k: v for k, v in fields.items() if v is not None})

    async def apply() -> User:
        user = await services.directory.login(username, password)
        return await services.directory.update_profile(user.id, update)

    user = run(apply())
    console.print(f"[green]Profile updated[/green] for {user.app_username}")


@cli.group()
def users() -> None:
    """Member directory commands."""
    pass


@users.command(name="list")
@click.pass_context
def list_users(ctx: click.Context) -> None:
    """List registered members."""
    services = get_services(ctx)
    members = run(services.directory.list_users())

    if not members:
        console.print("[yellow]No members registered[/yellow]")
        return

    table = Table(title="Members")
    table.add_column("Username", style="cyan")
    table.add_column("Last.fm", style="green")
    table.add_column("Last check-in", style="magenta")

    for member in members:
        table.add_row(member.app_username, member.lastfm_username or "-", member.last_check_in_date or "-")

    console.print(table)
    console.print(f"[dim]{len(members)} members[/dim]")


# --- Schedule ---


@cli.group()
def schedule() -> None:
    """Weekly schedule commands."""
    pass


@schedule.command(name="show")
@click.pass_context
def show_schedule(ctx: click.Context) -> None:
    """Show the weekly schedule."""
    services = get_services(ctx)

    async def load() -> tuple[dict[int, DayConfig], TodaySelection]:
        return await services.schedule.get_schedule(), await services.schedule.today()

    days, selection = run(load())

    table = Table(title="Weekly Schedule")
    table.add_column("Day", style="cyan")
    table.add_column("Tracks", style="green")
    table.add_column("Playlist", style="dim")

    for index, name in enumerate(DAY_NAMES):
        label = f"{name} (today)" if index == selection.day_index else name
        day = days.get(index)
        if day is None or not day.tracks:
            table.add_row(label, "[dim]default list[/dim]", "-")
            continue
        tracks = "\n".join(f"{t.artist} - {t.title}" for t in day.tracks)
        table.add_row(label, tracks, day.spotify_id or "-")

    console.print(table)


@schedule.command(name="set-day")
@click.argument("day", type=click.IntRange(0, 6))
@click.option("--track", "-t", "tracks", multiple=True, required=True, help="'Artist - Title', repeatable")
@click.option("--spotify-id", default=None, help="Spotify playlist id for this day")
@click.pass_context
def set_day(ctx: click.Context, day: int, tracks: tuple[str, ...], spotify_id: str | None) -> None:
    """Set the tracks for a day (0 = Sunday)."""
    services = get_services(ctx)
    config = DayConfig(
        tracks=[parse_track(value, str(i)) for i, value in enumerate(tracks, 1)],
        spotify_id=spotify_id,
    )
    run(services.schedule.set_day(day, config))
    console.print(f"[green]Saved {len(config.tracks)} tracks for {DAY_NAMES[day]}[/green]")


@schedule.command(name="copy")
@click.argument("source", type=click.IntRange(0, 6))
@click.argument("target", type=click.IntRange(0, 6))
@click.pass_context
def copy_day(ctx: click.Context, source: int, target: int) -> None:
    """Copy one day's tracks over another."""
    services = get_services(ctx)
    run(services.schedule.copy_from_day(source, target))
    console.print(f"[green]Copied {DAY_NAMES[source]} to {DAY_NAMES[target]}[/green]")


@schedule.command(name="clear")
@click.argument("day", type=click.IntRange(0, 6))
@click.pass_context
def clear_day(ctx: click.Context, day: int) -> None:
    """Clear a day so it uses the default list."""
    services = get_services(ctx)
    run(services.schedule.clear_day(day))
    console.print(f"[green]Cleared {DAY_NAMES[day]}[/green]")


# --- Admin PIN ---


@cli.group()
def pin() -> None:
    """Admin PIN commands."""
    pass


@pin.command(name="show")
@click.pass_context
def show_pin(ctx: click.Context) -> None:
    """Show the admin PIN."""
    services = get_services(ctx)
    console.print(run(services.schedule.get_admin_pin()))


@pin.command(name="set")
@click.argument("new_pin")
@click.pass_context
def set_pin(ctx: click.Context, new_pin: str) -> None:
    """Change the admin PIN (at least 4 characters)."""
    services = get_services(ctx)
    try:
        validate_pin(new_pin)
    except StreamGuardError as e:
        raise click.BadParameter(str(e), param_hint="NEW_PIN")
    run(services.schedule.set_admin_pin(new_pin))
    console.print("[green]PIN updated[/green]")


# --- Cloud sync ---


@cli.group()
def cloud() -> None:
    """Remote sync commands."""
    pass


@cloud.command(name="status")
@click.pass_context
def cloud_status(ctx: click.Context) -> None:
    """Show the sync mode."""
    services = get_services(ctx)
    config = services.store.cloud_config()
    console.print(f"Mode: [bold]{services.store.mode.value}[/bold]")
    if config is not None and config.bin_id:
        console.print(f"[dim]Bin: {config.bin_id}[/dim]")


@cloud.command(name="connect")
@click.argument("bin_id")
@click.option("--api-key", prompt=True, hide_input=True)
@click.pass_context
def cloud_connect(ctx: click.Context, bin_id: str, api_key: str) -> None:
    """Verify and enable a JSONBin document."""
    services = get_services(ctx)
    with console.status("Verifying connection..."):
        run(services.store.connect(bin_id, api_key))
    console.print(f"[green]Connected to bin {bin_id}[/green]")


@cloud.command(name="disconnect")
@click.pass_context
def cloud_disconnect(ctx: click.Context) -> None:
    """Switch to local-only mode."""
    services = get_services(ctx)
    services.store.disconnect()
    console.print("[yellow]Cloud sync disabled[/yellow]")


# --- Backup ---


@cli.group()
def backup() -> None:
    """Backup and restore commands."""
    pass


@backup.command(name="export")
@click.argument("path", type=click.Path(dir_okay=False, writable=True))
@click.pass_context
def export_backup(ctx: click.Context, path: str) -> None:
    """Write the local cache to a JSON file."""
    services = get_services(ctx)
    data = services.store.export_backup()
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)
    console.print(f"[green]Backup written to {path}[/green]")


@backup.command(name="import")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def import_backup(ctx: click.Context, path: str) -> None:
    """Overwrite the local cache from a JSON backup."""
    services = get_services(ctx)
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise click.BadParameter("backup must be a JSON object", param_hint="PATH")

    imported = services.store.import_backup(data)
    if not imported:
        console.print("[yellow]Nothing to import[/yellow]")
        return
    console.print(f"[green]Imported {', '.join(imported)}[/green]")


if __name__ == "__main__":
    cli()
