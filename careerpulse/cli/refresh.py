"""Run the insight refresh from the command line."""

from __future__ import annotations

from typing import Optional

from rich.console import Console
from rich.table import Table

from careerpulse.ai import get_text_generator
from careerpulse.config import get_default_industry, load_config_or_default
from careerpulse.db import get_db_manager
from careerpulse.errors import InsightError, StorageError
from careerpulse.insights.refresh import InsightRefreshJob, RefreshSummary

console = Console()


def _print_summary(summary: RefreshSummary) -> None:
    table = Table(title="Insight Refresh", border_style="dim")
    table.add_column("Industry")
    table.add_column("Result")
    table.add_column("Detail", style="dim", overflow="fold")
    for result in summary.results:
        if result.ok:
            insight = result.insight
            table.add_row(
                result.industry,
                "[green]updated[/green]",
                f"{insight.demand_level.value} / {insight.market_outlook.value}",
            )
        else:
            table.add_row(
                result.industry,
                f"[red]{result.error_type}[/red]",
                result.error or "",
            )
    console.print(table)
    console.print(
        f"\n{summary.succeeded} updated, {summary.failed} failed, "
        f"{summary.total} total"
    )


def run_refresh(industry: Optional[str] = None, strict: bool = False) -> int:
    """Refresh all industries, or just one.

    Returns:
        Process exit code.
    """
    config = load_config_or_default()

    console.print("\n[bold blue]careerpulse Insight Refresh[/bold blue]\n")

    try:
        generator = get_text_generator(config)
        db = get_db_manager(config=config)
    except (ValueError, RuntimeError, StorageError) as exc:
        console.print(f"[red]Setup failed:[/red] {exc}")
        return 1

    try:
        job = InsightRefreshJob(
            db_manager=db,
            generator=generator,
            default_industry=get_default_industry(config),
        )

        if industry is not None:
            industry = industry.strip()
            if not industry:
                console.print("[red]--industry must not be blank[/red]")
                return 1
            try:
                insight = job.refresh_industry(industry)
            except InsightError as exc:
                console.print(f"[red]{exc.error_code}:[/red] {exc}")
                return 1
            console.print(
                f"[green]Updated {industry}[/green] "
                f"({insight.demand_level.value} / {insight.market_outlook.value}, "
                f"next update {insight.next_update:%Y-%m-%d})"
            )
            return 0

        try:
            summary = job.run()
        except StorageError as exc:
            console.print(f"[red]Refresh aborted:[/red] {exc}")
            return 1

        if not summary.results:
            console.print(
                "[yellow]No industries stored. Run 'careerpulse seed' first.[/yellow]"
            )
            return 0

        _print_summary(summary)
        if strict and not summary.all_succeeded:
            return 1
        return 0
    finally:
        db.close()
