"""
Channel Schedule CLI - Entry point

Prints the broadcast schedule from the local slot store: one week of
calendar segments, or the list of upcoming shows.
"""

import argparse
import sys
from datetime import date, datetime
from pathlib import Path
from typing import Optional

from rich.table import Table

from channel_schedule.core import get_console, load_config, setup_from_config
from channel_schedule.core.config import Config
from channel_schedule.domain.schedule import SlotStore, WeeklyCalendar
from channel_schedule.domain.schedule.timegrid import format_hour_value


def _open_store(config: Config, db_path: Optional[str]) -> SlotStore:
    return SlotStore(db_path=Path(db_path) if db_path else None, config=config.broadcast)


def run_week(config: Config, store: SlotStore, day: Optional[date] = None) -> int:
    """Print every show segment in the week containing `day`.

    Returns:
        Exit code (0 for success)
    """
    calendar = WeeklyCalendar(store, config=config.schedule, today=day)
    week = calendar.week
    grouped = calendar.segments_by_day()

    table = Table(title=f"Week of {week.start:%a %d %b %Y}")
    table.add_column("Day", style="cyan")
    table.add_column("Time")
    table.add_column("Show", style="bold")
    table.add_column("DJs")
    table.add_column("Type")

    for day_index, day_date in enumerate(week.days):
        for segment in grouped.get(day_index, []):
            slot = segment.slot
            label = slot.show_name if segment.is_first_segment else f"↳ {slot.show_name}"
            table.add_row(
                f"{day_date:%a %d}",
                f"{format_hour_value(segment.start_hour)}-{format_hour_value(segment.end_hour)}",
                label,
                slot.dj_display() or "",
                slot.broadcast_type,
            )

    console = get_console()
    if table.row_count == 0:
        console.print(f"No shows scheduled for the week of {week.start:%Y-%m-%d}", style="yellow")
        return 0
    console.print(table)
    return 0


def run_upcoming(store: SlotStore, now: Optional[datetime] = None) -> int:
    """Print shows that have not ended yet, with their broadcast links.

    Returns:
        Exit code (0 for success)
    """
    slots = store.list_upcoming(now)
    console = get_console()
    if not slots:
        console.print("No upcoming shows", style="yellow")
        return 0

    table = Table(title="Upcoming shows")
    table.add_column("Start", style="cyan")
    table.add_column("End")
    table.add_column("Show", style="bold")
    table.add_column("Status")
    table.add_column("Link", overflow="fold")

    for slot in slots:
        table.add_row(
            f"{slot.start_time:%a %d %b %H:%M}",
            f"{slot.end_time:%a %d %b %H:%M}",
            slot.show_name,
            slot.status,
            store.broadcast_url(slot),
        )
    console.print(table)
    return 0


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid date '{value}' (expected YYYY-MM-DD)")


def main(argv: Optional[list[str]] = None) -> None:
    """Main entry point for the channel-schedule command."""
    parser = argparse.ArgumentParser(
        description="Channel Schedule - Broadcast slot scheduling",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--db",
        help="Path to the slot database (default: data dir / channel_schedule.db)",
    )

    subparsers = parser.add_subparsers(dest="subcommand", help="Available commands")

    week_parser = subparsers.add_parser("week", help="Show one week of the schedule")
    week_parser.add_argument(
        "--date",
        type=_parse_date,
        help="Any day in the week to show (default: today)",
    )

    subparsers.add_parser("upcoming", help="List shows that have not ended yet")

    args = parser.parse_args(argv)

    if not args.subcommand:
        parser.print_help()
        sys.exit(1)

    config = load_config()
    setup_from_config(config.logging)
    store = _open_store(config, args.db)

    if args.subcommand == "week":
        sys.exit(run_week(config, store, args.date))

    elif args.subcommand == "upcoming":
        sys.exit(run_upcoming(store))


if __name__ == "__main__":
    main()
