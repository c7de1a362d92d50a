"""Database provisioning CLI commands."""

from __future__ import annotations

from typing import Iterable, Optional

from rich.console import Console

from careerpulse.config import load_config_or_default
from careerpulse.db import get_db_manager
from careerpulse.errors import StorageError

console = Console()

DEFAULT_INDUSTRIES = [
    "tech-software-development",
    "tech-data-science",
    "finance-banking",
    "finance-insurance",
    "healthcare-hospitals",
    "healthcare-pharmaceuticals",
    "manufacturing-automotive",
    "retail-ecommerce",
    "education-higher-education",
    "energy-renewables",
]


def seed_db(
    industries: Optional[Iterable[str]] = None, include_defaults: bool = False
) -> int:
    """Create rows for industries so the weekly refresh picks them up."""
    names = list(industries or [])
    if include_defaults:
        names.extend(DEFAULT_INDUSTRIES)
    names = list(dict.fromkeys(n.strip() for n in names if n and n.strip()))

    if not names:
        console.print("[yellow]No industries given. Pass names or --defaults.[/yellow]")
        return 2

    config = load_config_or_default()
    console.print("\n[bold blue]careerpulse Seed[/bold blue]\n")

    try:
        db = get_db_manager(config=config)
    except (ValueError, RuntimeError, StorageError) as exc:
        console.print(f"[red]Database unavailable:[/red] {exc}")
        return 1

    try:
        created = db.seed_industries(names)
    except StorageError as exc:
        console.print(f"[red]Seed failed:[/red] {exc}")
        return 1
    finally:
        db.close()

    console.print(
        f"[green]{created} created[/green], {len(names) - created} already present"
    )
    return 0
