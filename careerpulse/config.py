"""Configuration loading and management.

Supports two config locations:
1. ~/.careerpulse/config.yaml (user data directory, preferred)
2. ./config.yaml (project root, fallback for development)

The CAREERPULSE_HOME env var overrides the default ~/.careerpulse/ path.
"""

import os
from pathlib import Path
from typing import Dict

import yaml
from dotenv import load_dotenv
from loguru import logger

DEFAULT_INDUSTRY = "tech-software-development"


def get_home() -> Path:
    """Get the careerpulse home directory.

    Returns:
        Path to ~/.careerpulse/ or CAREERPULSE_HOME override.
    """
    env_home = os.environ.get("CAREERPULSE_HOME")
    if env_home:
        return Path(env_home).expanduser()
    return Path.home() / ".careerpulse"


def _project_root() -> Path:
    return Path(__file__).parent.parent


def _find_config_file() -> Path:
    """Find the config file, checking user dir first, then project root.

    Returns:
        Path to the config.yaml file.

    Raises:
        FileNotFoundError: If no config file is found.
    """
    user_config = get_home() / "config.yaml"
    if user_config.exists():
        return user_config

    project_config = _project_root() / "config.yaml"
    if project_config.exists():
        return project_config

    raise FileNotFoundError(
        "No config.yaml found. Copy config.example.yaml to one of:\n"
        f"  - {user_config}\n"
        f"  - {project_config}"
    )


def _find_env_file() -> Path:
    """Find the .env file, checking user dir first, then project root.

    Returns:
        Path to the .env file (may not exist).
    """
    user_env = get_home() / ".env"
    if user_env.exists():
        return user_env

    project_env = _project_root() / ".env"
    if project_env.exists():
        return project_env

    return user_env


def load_config() -> Dict:
    """Load configuration from config.yaml.

    Returns:
        Configuration dictionary.

    Raises:
        FileNotFoundError: If no config file is found.
        ValueError: If config file is not a valid YAML dictionary.
    """
    config_path = _find_config_file()

    try:
        with open(config_path, "r") as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        logger.error(f"Error parsing config YAML: {e}")
        raise

    if not isinstance(config, dict):
        raise ValueError(f"Config must be a dictionary, got {type(config)}")

    logger.debug(f"Loaded config from: {config_path}")
    return config


def load_config_or_default() -> Dict:
    """Load config.yaml, falling back to an empty config when there is none."""
    try:
        return load_config()
    except FileNotFoundError:
        logger.debug("No config.yaml found; using defaults")
        return {}


def load_env():
    """Load environment variables from .env file.

    Searches for .env in order:
    1. ~/.careerpulse/.env (or CAREERPULSE_HOME)
    2. ./.env (project root)
    """
    env_path = _find_env_file()
    load_dotenv(dotenv_path=env_path)
    if env_path.exists():
        logger.debug(f"Loaded env from: {env_path}")


def get_default_industry(config: Dict) -> str:
    refresh_cfg = config.get("refresh", {}) if isinstance(config, dict) else {}
    if not isinstance(refresh_cfg, dict):
        return DEFAULT_INDUSTRY
    return str(refresh_cfg.get("default_industry") or DEFAULT_INDUSTRY)


def ensure_dirs():
    """Create the careerpulse directory structure if it doesn't exist."""
    home = get_home()
    for d in [home, home / "data", home / "logs"]:
        d.mkdir(parents=True, exist_ok=True)
