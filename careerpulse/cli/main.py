"""Unified CLI entry point for careerpulse.

Dispatches subcommands to their respective modules:

    careerpulse refresh [--industry NAME] [--strict]
    careerpulse seed [INDUSTRY ...] [--defaults]
    careerpulse status
    careerpulse schedule install [--weekday N] [--hour H] [--minute M]
    careerpulse schedule uninstall
    careerpulse schedule status
    careerpulse worker [--once]
"""

import argparse
import sys

from loguru import logger

from careerpulse import __version__


def _build_parser() -> argparse.ArgumentParser:
    """Build the top-level argument parser with all subcommands.

    Returns:
        Configured ArgumentParser instance.
    """
    parser = argparse.ArgumentParser(
        prog="careerpulse",
        description="careerpulse - weekly AI industry insight refresh",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # -- refresh -------------------------------------------------------------
    refresh_parser = subparsers.add_parser("refresh", help="Refresh industry insights")
    refresh_parser.add_argument(
        "--industry",
        type=str,
        default=None,
        help="Refresh only this industry (its row must already exist)",
    )
    refresh_parser.add_argument(
        "--strict",
        action="store_true",
        help="Exit non-zero if any industry failed to refresh",
    )

    # -- seed ----------------------------------------------------------------
    seed_parser = subparsers.add_parser("seed", help="Provision industry rows")
    seed_parser.add_argument("industries", nargs="*", help="Industry identifiers")
    seed_parser.add_argument(
        "--defaults",
        action="store_true",
        help="Also seed the built-in default industry list",
    )

    # -- status --------------------------------------------------------------
    subparsers.add_parser("status", help="Show stored insights")

    # -- schedule ------------------------------------------------------------
    schedule_parser = subparsers.add_parser("schedule", help="Manage weekly refresh")
    schedule_sub = schedule_parser.add_subparsers(
        dest="schedule_action", help="Schedule actions"
    )

    install_parser = schedule_sub.add_parser("install", help="Install weekly refresh")
    install_parser.add_argument(
        "--weekday",
        type=int,
        default=0,
        metavar="N",
        help="Day of week, 0 = Sunday (default: 0)",
    )
    install_parser.add_argument("--hour", type=int, default=0, help="Hour (default: 0)")
    install_parser.add_argument(
        "--minute", type=int, default=0, help="Minute (default: 0)"
    )

    schedule_sub.add_parser("uninstall", help="Remove weekly refresh")
    schedule_sub.add_parser("status", help="Check schedule status")

    # -- worker --------------------------------------------------------------
    worker_parser = subparsers.add_parser(
        "worker", help="Run the in-process weekly scheduler"
    )
    worker_parser.add_argument(
        "--once", action="store_true", help="Run a single refresh pass and exit"
    )

    return parser


def main(argv=None) -> None:
    """Parse arguments and dispatch to the appropriate module."""
    from careerpulse.config import ensure_dirs, load_env

    load_env()
    ensure_dirs()

    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    logger.debug(f"CLI command: {args.command}")

    if args.command == "refresh":
        from careerpulse.cli.refresh import run_refresh

        sys.exit(run_refresh(industry=args.industry, strict=args.strict))

    elif args.command == "seed":
        from careerpulse.cli.db_cmd import seed_db

        sys.exit(seed_db(industries=args.industries, include_defaults=args.defaults))

    elif args.command == "status":
        from careerpulse.cli.status import show_status

        show_status()

    elif args.command == "schedule":
        _handle_schedule(args, parser)

    elif args.command == "worker":
        _handle_worker(args)


def _handle_schedule(args: argparse.Namespace, parser: argparse.ArgumentParser) -> None:
    """Dispatch schedule sub-actions.

    Args:
        args: Parsed CLI arguments.
        parser: Root parser (used to print help on missing sub-action).
    """
    from rich.console import Console

    from careerpulse.scheduler import (
        WEEKDAY_NAMES,
        get_schedule_status,
        install_schedule,
        uninstall_schedule,
    )

    console = Console(stderr=True)

    if args.schedule_action is None:
        parser.parse_args(["schedule", "--help"])
        return

    if args.schedule_action == "install":
        try:
            when = f"{WEEKDAY_NAMES[args.weekday]} {args.hour:02d}:{args.minute:02d}"
        except IndexError:
            console.print(f"[red]Invalid weekday: {args.weekday} (use 0-6)[/red]")
            sys.exit(2)
        console.print(f"[bold blue]Installing weekly refresh ({when})...[/bold blue]")
        try:
            ok = install_schedule(
                weekday=args.weekday, hour=args.hour, minute=args.minute
            )
        except ValueError as exc:
            console.print(f"[red]{exc}[/red]")
            sys.exit(2)
        if ok:
            console.print("[green]Schedule installed successfully[/green]")
        else:
            console.print("[red]Failed to install schedule[/red]")
            sys.exit(1)

    elif args.schedule_action == "uninstall":
        console.print("[bold blue]Removing weekly refresh...[/bold blue]")
        if uninstall_schedule():
            console.print("[green]Schedule removed[/green]")
        else:
            console.print("[red]Failed to remove schedule[/red]")
            sys.exit(1)

    elif args.schedule_action == "status":
        status = get_schedule_status()
        if status["installed"]:
            console.print(f"[green]Installed[/green] on {status['platform']}")
            if status.get("schedule"):
                console.print(f"  Runs: {status['schedule']}")
            if status.get("next_run"):
                console.print(f"  Next run: {status['next_run']}")
        else:
            console.print("[yellow]Not installed[/yellow]")


def _handle_worker(args: argparse.Namespace) -> None:
    from careerpulse.errors import StorageError
    from careerpulse.worker import run_refresh_once, run_worker_scheduler

    if args.once:
        try:
            result = run_refresh_once()
        except (ValueError, RuntimeError, StorageError) as exc:
            logger.error(f"Insight refresh aborted: {exc}")
            sys.exit(1)
        sys.exit(0 if result.get("failed", 0) == 0 else 1)
    run_worker_scheduler()


if __name__ == "__main__":
    main()
