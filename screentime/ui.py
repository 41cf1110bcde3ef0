"""Rich UI components for terminal interface"""

import logging
from datetime import datetime
from typing import Optional, Sequence

from rich.console import Console, Group
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table
from rich import box

from .config import config
from .models import CurrentStatus, DayRecord, Lap


console = Console()


def configure_logging(level: str = "WARNING"):
    """Route log records through the shared console"""
    logging.basicConfig(
        level=level,
        format="%(name)s: %(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)]
    )


def format_seconds(total_seconds: int) -> str:
    """Render a duration as HH:MM:SS"""
    safe_seconds = max(0, int(total_seconds))
    hours, remainder = divmod(safe_seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    return f"{hours:02}:{minutes:02}:{seconds:02}"


def format_clock(timestamp: int) -> str:
    """Wall-clock time of an epoch timestamp in the configured timezone"""
    return datetime.fromtimestamp(timestamp, tz=config.timezone).strftime('%H:%M:%S')


def print_error(message: str):
    """Print error message"""
    console.print(f"[bold red]Error:[/bold red] {message}")


def print_success(message: str):
    """Print success message"""
    console.print(f"[bold green]✓[/bold green] {message}")


def print_info(message: str):
    """Print info message"""
    console.print(f"[cyan]ℹ[/cyan] {message}")


def print_warning(message: str):
    """Print warning message"""
    console.print(f"[yellow]⚠[/yellow] {message}")


def create_laps_table(laps: Sequence[Lap], now: Optional[int] = None) -> Table:
    """
    Build the lap list

    Args:
        laps: Laps in order, the open one (if any) last
        now: Current time, used to show the running lap's elapsed time

    Returns:
        Table with one row per lap
    """
    table = Table(show_header=True, box=box.SIMPLE)
    table.add_column("Lap", style="cyan")
    table.add_column("Duration", style="white")
    table.add_column("Period", style="dim")

    number = 0
    for lap in laps:
        if lap.is_open:
            elapsed = format_seconds(now - lap.start_time) if now is not None else "-"
            table.add_row(
                "[green]Active Lap[/green]",
                elapsed,
                f"{format_clock(lap.start_time)} - Ongoing"
            )
        else:
            number += 1
            table.add_row(
                f"Lap {number}",
                format_seconds(lap.duration),
                f"{format_clock(lap.start_time)} - {format_clock(lap.end_time)}"
            )

    if not laps:
        table.add_row("", "[dim]No laps recorded yet[/dim]", "")

    return table


def create_status_display(
    status: Optional[CurrentStatus],
    laps: Sequence[Lap],
    now: Optional[int] = None,
    discarded: int = 0
) -> Panel:
    """
    Create live status panel

    Args:
        status: Live status, None when no day is tracked
        laps: Laps of the day, open lap last
        now: Current time for the running lap
        discarded: Laps dropped today for being too short

    Returns:
        Panel with timers and the lap list
    """
    if status is None:
        return Panel(
            "[dim]No active day. Type 'start' to begin tracking.[/dim]",
            box=box.ROUNDED,
            border_style="dim",
            title="Screen Time",
            title_align="left"
        )

    if status.is_active:
        state = "[green]⏱️  Active[/green]"
    else:
        state = "[yellow]⏸  Paused[/yellow]"

    completed = sum(1 for lap in laps if not lap.is_open)
    lines = [
        f"[bold cyan]{status.day_key}[/bold cyan]  {state}",
        "",
        f"Current lap:   [bold]{format_seconds(status.current_lap_duration)}[/bold]",
        f"Today's total: [bold]{format_seconds(status.total_session_duration)}[/bold]",
        f"[dim]{completed} laps completed[/dim]"
    ]
    if discarded:
        lines.append(f"[dim]{discarded} short laps discarded[/dim]")
    summary = "\n".join(lines)

    return Panel(
        Group(summary, create_laps_table(laps, now)),
        box=box.DOUBLE,
        border_style="cyan" if status.is_active else "yellow",
        title="Screen Time",
        title_align="left",
        subtitle="[dim]Ctrl+C for menu[/dim]"
    )


def display_laps(laps: Sequence[Lap], now: Optional[int] = None):
    """Print the lap list once"""
    console.print(create_laps_table(laps, now))


def display_day_summary(record: DayRecord):
    """Display the finalized day"""
    lines = [
        f"[bold cyan]{record.day_key}[/bold cyan]",
        f"Total screen time: [bold]{format_seconds(record.total_duration)}[/bold]",
        f"Laps: {record.lap_count}"
    ]

    console.print("\n")
    console.print(Panel(
        Group("\n".join(lines), create_laps_table(record.laps)),
        box=box.ROUNDED,
        border_style="green",
        title="Day Ended"
    ))
