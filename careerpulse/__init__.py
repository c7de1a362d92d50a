"""careerpulse - weekly industry insight refresh."""

from pathlib import Path

from loguru import logger
from rich.console import Console

from careerpulse.config import load_config

__version__ = "1.0.0"

_console = Console(stderr=True)

# Configure loguru: warnings go to the console through Rich, the file gets everything
logger.remove()


def _rich_sink(message: str) -> None:
    _console.print(message.rstrip(), highlight=False)


def _get_log_dir() -> Path:
    """Resolve the log directory, preferring CAREERPULSE_HOME.

    Returns:
        Path to the logs directory (created if needed).
    """
    try:
        from careerpulse.config import get_home

        log_dir = get_home() / "logs"
        log_dir.mkdir(parents=True, exist_ok=True)
    except OSError:
        log_dir = Path("logs")
        log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir


logger.add(
    _rich_sink,
    level="WARNING",
    format="<dim>{time:HH:mm:ss}</dim> | <level>{level: <7}</level> | {message}",
)

logger.add(
    str(_get_log_dir() / "careerpulse.log"),
    rotation="10 MB",
    retention="7 days",
    level="DEBUG",
    format="{time:YYYY-MM-DD HH:mm:ss} | {level: <7} | {name}:{function}:{line} | {message}",
)

__all__ = ["load_config", "__version__"]
