"""Cross-platform weekly scheduling for the insight refresh.

Creates OS-native scheduled tasks: launchd (macOS), Task Scheduler (Windows),
or crontab (Linux). Uses CAREERPULSE_HOME env var (default ~/.careerpulse/)
for log paths. The default schedule is Sunday at midnight (cron ``0 0 * * 0``).
"""

import os
import platform
import re
import shutil
import subprocess
import sys
import textwrap
from pathlib import Path
from typing import Optional

from loguru import logger

PLIST_LABEL = "com.careerpulse.refresh"
WINDOWS_TASK_NAME = "careerpulse Insight Refresh"
CRONTAB_MARKER = "# careerpulse-insight-refresh"

# Cron weekday numbering: 0 = Sunday.
WEEKDAY_NAMES = ["SUN", "MON", "TUE", "WED", "THU", "FRI", "SAT"]


def _get_home() -> Path:
    """Get CAREERPULSE_HOME at call time (not import time)."""
    return Path(os.environ.get("CAREERPULSE_HOME", str(Path.home() / ".careerpulse")))


def _get_plist_path() -> Path:
    """Get the launchd plist path (macOS only, safe to call on any platform)."""
    return Path.home() / "Library" / "LaunchAgents" / f"{PLIST_LABEL}.plist"


def _resolve_command() -> list:
    """Find the careerpulse command, returning a list of arguments.

    Checks for an installed ``careerpulse`` CLI first (via PATH), then falls
    back to ``python -m careerpulse.cli.main``.
    """
    which = shutil.which("careerpulse")
    if which:
        return [str(Path(which).resolve())]
    return [sys.executable, "-m", "careerpulse.cli.main"]


def _current_platform() -> str:
    """Return one of ``"macos"``, ``"windows"``, or ``"linux"``.

    Raises:
        OSError: If the platform is not supported.
    """
    system = platform.system().lower()
    if system == "darwin":
        return "macos"
    if system == "windows":
        return "windows"
    if system == "linux":
        return "linux"
    raise OSError(f"Unsupported platform: {system}")


def _validate_time(weekday: int, hour: int, minute: int) -> None:
    if not 0 <= weekday <= 6:
        raise ValueError(f"weekday must be 0-6 (0 = Sunday), got {weekday}")
    if not 0 <= hour <= 23:
        raise ValueError(f"hour must be 0-23, got {hour}")
    if not 0 <= minute <= 59:
        raise ValueError(f"minute must be 0-59, got {minute}")


def build_cron_line(weekday: int = 0, hour: int = 0, minute: int = 0) -> str:
    """Build the crontab entry that runs ``careerpulse refresh`` weekly."""
    _validate_time(weekday, hour, minute)
    log_dir = _get_home() / "logs"
    cmd_str = " ".join(_resolve_command() + ["refresh"])
    return (
        f"{minute} {hour} * * {weekday} "
        f"{cmd_str} "
        f">> {log_dir / 'cron_refresh.log'} 2>&1 "
        f"{CRONTAB_MARKER}"
    )


# ---------------------------------------------------------------------------
# macOS – launchd
# ---------------------------------------------------------------------------


def _macos_install(weekday: int, hour: int, minute: int) -> bool:
    """Write a launchd plist with a weekly calendar interval and load it."""
    log_dir = _get_home() / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)

    args_xml = "\n".join(
        f"            <string>{part}</string>"
        for part in _resolve_command() + ["refresh"]
    )

    plist_xml = textwrap.dedent(
        f"""\
        <?xml version="1.0" encoding="UTF-8"?>
        <!DOCTYPE plist PUBLIC "-//Apple//DTD PLIST 1.0//EN"
          "http://www.apple.com/DTDs/PropertyList-1.0.dtd">
        <plist version="1.0">
        <dict>
            <key>Label</key>
            <string>{PLIST_LABEL}</string>
            <key>ProgramArguments</key>
            <array>
{args_xml}
            </array>
            <key>StartCalendarInterval</key>
            <dict>
                <key>Weekday</key>
                <integer>{weekday}</integer>
                <key>Hour</key>
                <integer>{hour}</integer>
                <key>Minute</key>
                <integer>{minute}</integer>
            </dict>
            <key>StandardOutPath</key>
            <string>{log_dir / "launchd_refresh.log"}</string>
            <key>StandardErrorPath</key>
            <string>{log_dir / "launchd_refresh.log"}</string>
        </dict>
        </plist>
    """
    )

    plist_path = _get_plist_path()
    plist_path.parent.mkdir(parents=True, exist_ok=True)
    plist_path.write_text(plist_xml)
    logger.info(f"Wrote plist to {plist_path}")

    # Unload first; launchctl warns when loading an already-loaded job.
    subprocess.run(["launchctl", "unload", str(plist_path)], capture_output=True)

    result = subprocess.run(
        ["launchctl", "load", str(plist_path)],
        capture_output=True,
        text=True,
    )
    if result.returncode != 0:
        logger.error(f"launchctl load failed: {result.stderr.strip()}")
        return False

    logger.info("launchd job loaded")
    return True


def _macos_uninstall() -> bool:
    plist_path = _get_plist_path()
    if not plist_path.exists():
        logger.info("Plist does not exist; nothing to uninstall")
        return True

    result = subprocess.run(
        ["launchctl", "unload", str(plist_path)],
        capture_output=True,
        text=True,
    )
    if result.returncode != 0:
        logger.warning(f"launchctl unload: {result.stderr.strip()}")

    plist_path.unlink(missing_ok=True)
    logger.info("launchd job removed")
    return True


def _macos_status() -> dict:
    info: dict = {"installed": False, "schedule": None, "next_run": None}
    plist_path = _get_plist_path()
    if not plist_path.exists():
        return info

    plist_text = plist_path.read_text()
    values = {}
    for key in ("Weekday", "Hour", "Minute"):
        match = re.search(rf"<key>{key}</key>\s*<integer>(\d+)</integer>", plist_text)
        values[key] = int(match.group(1)) if match else 0

    result = subprocess.run(
        ["launchctl", "list", PLIST_LABEL],
        capture_output=True,
        text=True,
    )
    info["installed"] = result.returncode == 0
    info["schedule"] = (
        f"{WEEKDAY_NAMES[values['Weekday'] % 7]} "
        f"{values['Hour']:02d}:{values['Minute']:02d}"
    )
    return info


# ---------------------------------------------------------------------------
# Windows – Task Scheduler (schtasks)
# ---------------------------------------------------------------------------


def _windows_install(weekday: int, hour: int, minute: int) -> bool:
    command = " ".join(f'"{part}"' for part in _resolve_command() + ["refresh"])

    result = subprocess.run(
        [
            "schtasks",
            "/Create",
            "/SC",
            "WEEKLY",
            "/D",
            WEEKDAY_NAMES[weekday],
            "/ST",
            f"{hour:02d}:{minute:02d}",
            "/TN",
            WINDOWS_TASK_NAME,
            "/TR",
            command,
            "/F",  # force overwrite if exists
        ],
        capture_output=True,
        text=True,
    )
    if result.returncode != 0:
        logger.error(f"schtasks /Create failed: {result.stderr.strip()}")
        return False

    logger.info(f"Windows scheduled task '{WINDOWS_TASK_NAME}' created")
    return True


def _windows_uninstall() -> bool:
    result = subprocess.run(
        ["schtasks", "/Delete", "/TN", WINDOWS_TASK_NAME, "/F"],
        capture_output=True,
        text=True,
    )
    if result.returncode != 0:
        stderr = result.stderr.strip()
        if "does not exist" in stderr.lower() or "cannot find" in stderr.lower():
            logger.info("Windows task did not exist; nothing to uninstall")
            return True
        logger.error(f"schtasks /Delete failed: {stderr}")
        return False

    logger.info(f"Windows scheduled task '{WINDOWS_TASK_NAME}' deleted")
    return True


def _windows_status() -> dict:
    info: dict = {"installed": False, "schedule": None, "next_run": None}

    result = subprocess.run(
        ["schtasks", "/Query", "/TN", WINDOWS_TASK_NAME, "/FO", "LIST", "/V"],
        capture_output=True,
        text=True,
    )
    if result.returncode != 0:
        return info

    info["installed"] = True
    for line in result.stdout.splitlines():
        line = line.strip()
        if line.startswith("Next Run Time:"):
            value = line.split(":", 1)[1].strip()
            if value.lower() not in ("n/a", "disabled"):
                info["next_run"] = value
        if line.startswith("Days:"):
            info["schedule"] = line.split(":", 1)[1].strip()
    return info


# ---------------------------------------------------------------------------
# Linux – crontab
# ---------------------------------------------------------------------------


def _read_crontab() -> Optional[str]:
    """Read the current user's crontab, or None if there is none."""
    result = subprocess.run(["crontab", "-l"], capture_output=True, text=True)
    if result.returncode != 0:
        return None
    return result.stdout


def _write_crontab(text: str) -> bool:
    result = subprocess.run(
        ["crontab", "-"],
        input=text,
        capture_output=True,
        text=True,
    )
    if result.returncode != 0:
        logger.error(f"crontab write failed: {result.stderr.strip()}")
        return False
    return True


def _linux_install(weekday: int, hour: int, minute: int) -> bool:
    (_get_home() / "logs").mkdir(parents=True, exist_ok=True)
    cron_line = build_cron_line(weekday, hour, minute)

    existing = _read_crontab() or ""
    lines = [ln for ln in existing.splitlines() if CRONTAB_MARKER not in ln]
    lines.append(cron_line)

    if not _write_crontab("\n".join(lines) + "\n"):
        return False

    logger.info("Crontab entry installed")
    return True


def _linux_uninstall() -> bool:
    existing = _read_crontab()
    if existing is None:
        logger.info("No crontab found; nothing to uninstall")
        return True

    lines = [ln for ln in existing.splitlines() if CRONTAB_MARKER not in ln]
    new_crontab = "\n".join(lines) + "\n" if lines else ""

    if not _write_crontab(new_crontab):
        return False

    logger.info("Crontab entry removed")
    return True


def _linux_status() -> dict:
    info: dict = {"installed": False, "schedule": None, "next_run": None}

    existing = _read_crontab()
    if existing is None:
        return info

    for line in existing.splitlines():
        if CRONTAB_MARKER in line:
            info["installed"] = True
            fields = line.split()
            if len(fields) >= 5 and fields[4].isdigit():
                minute, hour, weekday = int(fields[0]), int(fields[1]), int(fields[4])
                info["schedule"] = f"{WEEKDAY_NAMES[weekday % 7]} {hour:02d}:{minute:02d}"
            break

    return info


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def install_schedule(weekday: int = 0, hour: int = 0, minute: int = 0) -> bool:
    """Install a weekly OS-native scheduled task for ``careerpulse refresh``.

    Args:
        weekday: Day of week, 0 = Sunday.
        hour: Hour of day (0-23).
        minute: Minute of hour (0-59).

    Returns:
        True if the schedule was installed successfully.

    Raises:
        ValueError: If the time fields are out of range.
        OSError: If the current platform is not supported.
    """
    _validate_time(weekday, hour, minute)

    plat = _current_platform()
    logger.info(
        f"Installing schedule on {plat} "
        f"({WEEKDAY_NAMES[weekday]} {hour:02d}:{minute:02d})"
    )

    if plat == "macos":
        return _macos_install(weekday, hour, minute)
    if plat == "windows":
        return _windows_install(weekday, hour, minute)
    return _linux_install(weekday, hour, minute)


def uninstall_schedule() -> bool:
    """Remove the previously installed scheduled task."""
    plat = _current_platform()
    logger.info(f"Uninstalling schedule on {plat}")

    if plat == "macos":
        return _macos_uninstall()
    if plat == "windows":
        return _windows_uninstall()
    return _linux_uninstall()


def get_schedule_status() -> dict:
    """Return the current state of the scheduled task.

    Returns:
        A dict with the following keys:

        - ``installed`` (bool): Whether a schedule is active.
        - ``platform`` (str): One of ``"macos"``, ``"windows"``, or ``"linux"``.
        - ``schedule`` (str | None): e.g. ``"SUN 00:00"`` when known.
        - ``next_run`` (str | None): Next scheduled execution (Windows only).
    """
    plat = _current_platform()

    if plat == "macos":
        info = _macos_status()
    elif plat == "windows":
        info = _windows_status()
    else:
        info = _linux_status()

    info["platform"] = plat
    return info
