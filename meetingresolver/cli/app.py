"""
Main CLI application using Typer.
"""

import asyncio
import logging
from pathlib import Path
from typing import Annotated, List, Optional, Sequence

import pendulum
import typer
from pendulum import DateTime
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ..adapters.graph_calendar import GraphCalendarSource
from ..adapters.mock_calendar import MockCalendarSource
from ..config import AppConfig, get_default_config_path
from ..domain.exceptions import ResolverError
from ..domain.slot_finder import CommonSlotFinder
from ..services.resolver import MeetingTimeResolver

app = typer.Typer(
    name="meetingresolver",
    help="Find meeting times that a quorum of attendees can make",
    add_completion=False
)

console = Console()

ConfigOption = Annotated[Optional[Path], typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")]
StartOption = Annotated[Optional[str], typer.Option("--start", help="Start date (YYYY-MM-DD)")]
EndOption = Annotated[Optional[str], typer.Option("--end", help="End date (YYYY-MM-DD)")]
ThisWeekOption = Annotated[bool, typer.Option("--this-week", help="Search from today until the end of this week.")]
NextWeekOption = Annotated[bool, typer.Option("--next-week", help="Search next week (Monday to Sunday).")]
MockOption = Annotated[bool, typer.Option("--mock", help="Use built-in demo calendars instead of Microsoft Graph.")]
TokenOption = Annotated[Optional[str], typer.Option("--token", envvar="MEETINGRESOLVER_ACCESS_TOKEN", help="Microsoft Graph access token.")]
VerboseOption = Annotated[bool, typer.Option("--verbose", "-v", help="Show debug logging.")]


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _load_config(config_file: Optional[Path]) -> AppConfig:
    """Load the config; without an explicit file a missing default falls back to built-ins."""
    if config_file is not None:
        return AppConfig.load_from_yaml(config_file)

    config_path = get_default_config_path()
    if not config_path.exists():
        console.print("[dim]No config.yaml found, using built-in defaults.[/dim]")
        return AppConfig()

    return AppConfig.load_from_yaml(config_path)


def _determine_time_range(
    *,
    tz: str,
    this_week: bool,
    next_week: bool,
    start_option: Optional[str],
    end_option: Optional[str]
):
    """
    Resolve the desired time window based on shortcut flags or explicit dates.
    Returns (start_date, end_date), always covering whole days.
    """
    if this_week and next_week:
        raise ValueError("--this-week and --next-week cannot be used together.")

    now = pendulum.now(tz)

    if this_week:
        return now.start_of("day"), now.end_of("week")

    if next_week:
        next_monday = now.next(pendulum.MONDAY).start_of("day")
        return next_monday, next_monday.add(days=6).end_of("day")

    start_date = _parse_date(start_option, tz).start_of("day") if start_option else now.start_of("day")
    end_date = _parse_date(end_option, tz).end_of("day") if end_option else start_date.add(days=7).end_of("day")

    if end_date < start_date:
        raise ValueError("End date must not be before start date.")

    return start_date, end_date


def _parse_date(value: str, tz: str) -> DateTime:
    try:
        return pendulum.from_format(value, "YYYY-MM-DD", tz=tz)
    except ValueError as e:
        raise ValueError(f"Could not parse date '{value}', expected YYYY-MM-DD") from e


def _resolve_participant_emails(config: AppConfig, participants: Optional[Sequence[str]]) -> List[str]:
    """Resolve aliases; without arguments every configured colleague takes part."""
    if not participants:
        return [colleague.email.lower() for colleague in config.colleagues]

    emails, unknown = config.resolve_participants(participants)
    for identifier in unknown:
        console.print(f"[yellow]⚠ Unknown participant '{identifier}', skipping[/yellow]")
    return emails


def _build_resolver(config: AppConfig, mock: bool, token: Optional[str]) -> MeetingTimeResolver:
    if mock:
        source = MockCalendarSource(timezone=config.timezone, config=config)
    elif token:
        source = GraphCalendarSource(
            access_token=token,
            timezone=config.timezone,
            endpoint=config.graph.endpoint,
            request_timeout=config.graph.request_timeout_seconds,
        )
    else:
        raise ValueError(
            "A Microsoft Graph access token is required. "
            "Pass --token, set MEETINGRESOLVER_ACCESS_TOKEN or use --mock."
        )

    return MeetingTimeResolver(
        calendar_source=source,
        policy=config.business_policy(),
        slot_finder=CommonSlotFinder(resolution_minutes=config.defaults.resolution_minutes),
        fetch_timeout=config.defaults.fetch_timeout_seconds,
    )


def _print_summary(config: AppConfig, emails: Sequence[str], start_date, end_date) -> None:
    console.print("[bold cyan]📊 Summary:[/bold cyan]")
    console.print(f"   Participants: {', '.join(emails)}")
    console.print(f"   Range: {start_date.format('YYYY-MM-DD')} - {end_date.format('YYYY-MM-DD')}")
    console.print(
        f"   Business hours: {config.defaults.open_time.strftime('%H:%M')} - "
        f"{config.defaults.close_time.strftime('%H:%M')} ({config.timezone})"
    )


@app.command()
def find(
    participants: Annotated[Optional[List[str]], typer.Argument(help="Participant names or e-mail addresses. Defaults to every configured colleague.")] = None,
    config_file: ConfigOption = None,
    start: StartOption = None,
    end: EndOption = None,
    duration: Annotated[Optional[int], typer.Option("--duration", "-d", help="Meeting duration in minutes")] = None,
    max_results: Annotated[Optional[int], typer.Option("--max-results", "-n", help="Maximum number of suggestions")] = None,
    this_week: ThisWeekOption = False,
    next_week: NextWeekOption = False,
    mock: MockOption = False,
    token: TokenOption = None,
    verbose: VerboseOption = False,
):
    """
    Suggest meeting times ranked by how many participants can attend.

    Examples:

        meetingresolver find tanaka sato --duration 60 --next-week

        meetingresolver find --mock --start 2024-02-12 --end 2024-02-16
    """
    _configure_logging(verbose)

    try:
        config = _load_config(config_file)
        start_date, end_date = _determine_time_range(
            tz=config.timezone,
            this_week=this_week,
            next_week=next_week,
            start_option=start,
            end_option=end
        )
        emails = _resolve_participant_emails(config, participants)
        min_duration = duration if duration is not None else config.defaults.duration_minutes
        limit = max_results if max_results is not None else config.defaults.max_results

        console.print("\n[bold cyan]🗓️  Meeting resolver - suggested meeting times[/bold cyan]\n")
        if mock:
            console.print("[yellow]⚠  MOCK MODE: using demo calendars[/yellow]\n")
        _print_summary(config, emails, start_date, end_date)
        console.print(f"   Duration: {min_duration} minutes\n")

        resolver = _build_resolver(config, mock, token)
        slots = resolver.resolve_meeting_times(
            attendee_ids=emails,
            duration_minutes=min_duration,
            range_start=start_date,
            range_end=end_date,
            max_results=limit,
        )

    except (ResolverError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    if not slots:
        console.print(
            "[yellow]⚠ No available time slots found.[/yellow]\n"
            "Try a longer range or a shorter duration."
        )
        return

    table = Table(
        title=f"{len(slots)} suggested slot(s)",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("#", justify="right")
    table.add_column("When", style="bold")
    table.add_column("Confidence", justify="right")
    table.add_column("Available", style="dim")

    for index, slot in enumerate(slots, 1):
        available = [
            config.display_name_for(email)
            for email in emails
            if email in slot.available_attendees
        ]
        table.add_row(
            str(index),
            slot.format_display(),
            f"{slot.confidence:.0%}",
            ", ".join(available)
        )

    console.print(table)
    console.print()


@app.command()
def availability(
    participants: Annotated[Optional[List[str]], typer.Argument(help="Participant names or e-mail addresses. Defaults to every configured colleague.")] = None,
    config_file: ConfigOption = None,
    start: StartOption = None,
    end: EndOption = None,
    this_week: ThisWeekOption = False,
    next_week: NextWeekOption = False,
    mock: MockOption = False,
    token: TokenOption = None,
    verbose: VerboseOption = False,
):
    """
    Show each participant's busy and free time within business hours.
    """
    _configure_logging(verbose)

    try:
        config = _load_config(config_file)
        start_date, end_date = _determine_time_range(
            tz=config.timezone,
            this_week=this_week,
            next_week=next_week,
            start_option=start,
            end_option=end
        )
        emails = _resolve_participant_emails(config, participants)
        _print_summary(config, emails, start_date, end_date)
        console.print()

        resolver = _build_resolver(config, mock, token)
        availabilities = asyncio.run(
            resolver.aggregator().aggregate(emails, start_date, end_date)
        )

    except (ResolverError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    if not availabilities:
        console.print("[yellow]⚠ No calendars could be read.[/yellow]")
        return

    for record in availabilities:
        table = Table(
            title=f"{config.display_name_for(record.attendee_id)} - {record.free_minutes()} min free",
            show_header=True,
            header_style="bold cyan"
        )
        table.add_column("Status")
        table.add_column("Time")
        table.add_column("Title", style="dim")

        for busy in record.busy_slots:
            table.add_row("[red]busy[/red]", str(busy), busy.label)
        for free in record.free_slots:
            table.add_row("[green]free[/green]", str(free), "")

        console.print(table)
        console.print()


@app.command()
def list_colleagues(config_file: ConfigOption = None):
    """
    List all configured colleagues.
    """
    try:
        config = _load_config(config_file)
    except ResolverError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    if not config.colleagues:
        console.print("[yellow]No colleagues defined in the config file.[/yellow]")
        return

    table = Table(
        title="Configured colleagues",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Name (alias)", style="bold yellow")
    table.add_column("E-mail", style="dim")
    table.add_column("Job title")

    for colleague in config.colleagues:
        table.add_row(colleague.name, colleague.email, colleague.job_title)

    console.print()
    console.print(table)
    console.print()


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]meetingresolver[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
