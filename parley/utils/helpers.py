"""Utility functions for parley."""

import sys
from pathlib import Path

from loguru import logger


def ensure_dir(path: Path) -> Path:
    """Ensure a directory exists, creating it if necessary."""
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_path() -> Path:
    """Get the parley data directory (~/.parley)."""
    return ensure_dir(Path.home() / ".parley")


def get_policy_path(store_path: str | None = None) -> Path:
    """
    Get the permission store path.

    Args:
        store_path: Optional path from the config. Defaults to ~/.parley/permissions.jsonl.

    Returns:
        Expanded path; its parent directory exists.
    """
    if store_path:
        path = Path(store_path).expanduser()
    else:
        path = get_data_path() / "permissions.jsonl"
    ensure_dir(path.parent)
    return path


def setup_logging(level: str = "WARNING") -> None:
    """Send loguru output to stderr at ``level``, replacing the default sink."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=level.upper(),
        format="<green>{time:HH:mm:ss}</green> <level>{level: <8}</level> {name}: {message}",
    )
