"""Status dashboard for careerpulse.

Displays stored industry insights, refresh statistics and schedule state
using Rich tables.
"""

from datetime import datetime
from typing import Dict, List

from loguru import logger
from rich.console import Console
from rich.table import Table

from careerpulse.config import load_config_or_default

console = Console()


def _format_timestamp(value) -> str:
    if not value:
        return "[dim]never[/dim]"
    try:
        return datetime.fromisoformat(str(value)).strftime("%Y-%m-%d %H:%M")
    except ValueError:
        return str(value)


def _load_rows():
    """Read insight rows and stats, or empty values if the database is unavailable."""
    try:
        from careerpulse.db import get_db_manager, summarize_rows

        db = get_db_manager(config=load_config_or_default())
        try:
            rows = db.list_insight_rows()
        finally:
            db.close()
        return rows, summarize_rows(rows)
    except Exception as exc:
        logger.debug(f"Could not read database: {exc}")
        return [], {}


def _get_schedule() -> Dict:
    try:
        from careerpulse.scheduler import get_schedule_status

        return get_schedule_status()
    except Exception as exc:
        logger.debug(f"Could not read schedule: {exc}")
        return {}


def _insights_table(rows: List[Dict]) -> Table:
    table = Table(title="Industry Insights", border_style="dim")
    table.add_column("Industry")
    table.add_column("Demand")
    table.add_column("Outlook")
    table.add_column("Growth", justify="right")
    table.add_column("Last Updated", style="dim")
    table.add_column("Next Update", style="dim")
    for row in rows:
        growth = row.get("growth_rate")
        table.add_row(
            row.get("industry", ""),
            row.get("demand_level") or "-",
            row.get("market_outlook") or "-",
            f"{growth:.1f}%" if growth is not None else "-",
            _format_timestamp(row.get("last_updated")),
            _format_timestamp(row.get("next_update")),
        )
    return table


def show_status() -> None:
    """Print the insights dashboard."""
    console.print("\n[bold blue]careerpulse Status[/bold blue]\n")

    rows, stats = _load_rows()
    if not rows:
        console.print("[yellow]No industries stored.[/yellow]")
    else:
        console.print(_insights_table(rows))
        console.print(
            f"\nTotal: {stats['total']}  Refreshed: {stats['refreshed']}  "
            f"Never refreshed: {stats['pending']}  Due: {stats['due']}"
        )

    schedule = _get_schedule()
    if schedule.get("installed"):
        console.print(
            f"\nSchedule: [green]installed[/green] ({schedule.get('schedule') or 'weekly'})"
        )
    else:
        console.print("\nSchedule: [yellow]not installed[/yellow]")
