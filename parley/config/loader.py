"""Reading and writing ``~/.parley/config.json``.

The file uses camelCase keys; the pydantic schema uses snake_case. Values
set through ``PARLEY_*`` environment variables win over the file.
"""

import json
import os
import re
from collections.abc import Callable
from pathlib import Path
from typing import Any

from loguru import logger
from pydantic import ValidationError

from parley.config.schema import Config

ENV_PREFIX = "PARLEY_"

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def get_config_path() -> Path:
    return Path.home() / ".parley" / "config.json"


def load_config(config_path: Path | None = None) -> Config:
    """
    Load the configuration, falling back to defaults on a missing or broken file.

    Args:
        config_path: Config file to read. Defaults to ``get_config_path()``.
    """
    path = config_path or get_config_path()
    data = _read(path)
    try:
        return Config(**_drop_env_overridden(data))
    except ValidationError as e:
        logger.warning(f"Ignoring invalid config {path}: {e}")
        return Config()


def _read(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as e:
        logger.warning(f"Could not read config {path}: {e}")
        return {}
    if not isinstance(raw, dict):
        logger.warning(f"Config {path} is not a JSON object")
        return {}
    return convert_keys(raw)


def _env_name(*parts: str) -> str:
    return ENV_PREFIX + "__".join(p.upper() for p in parts)


def _drop_env_overridden(data: dict[str, Any]) -> dict[str, Any]:
    # file values are init kwargs, which pydantic-settings ranks above the
    # environment; remove the ones the environment sets
    kept: dict[str, Any] = {}
    for section, value in data.items():
        if isinstance(value, dict):
            kept[section] = {
                key: v for key, v in value.items() if _env_name(section, key) not in os.environ
            }
        elif _env_name(section) not in os.environ:
            kept[section] = value
    return kept


def save_config(config: Config, config_path: Path | None = None) -> None:
    """Write ``config`` as camelCase JSON, creating the parent directory."""
    path = config_path or get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(convert_to_camel(config.model_dump()), indent=2), encoding="utf-8")
    logger.debug(f"Saved config to {path}")


def _rekey(data: Any, rename: Callable[[str], str]) -> Any:
    if isinstance(data, dict):
        return {rename(k): _rekey(v, rename) for k, v in data.items()}
    if isinstance(data, list):
        return [_rekey(item, rename) for item in data]
    return data


def convert_keys(data: Any) -> Any:
    """camelCase keys -> snake_case, recursively."""
    return _rekey(data, camel_to_snake)


def convert_to_camel(data: Any) -> Any:
    """snake_case keys -> camelCase, recursively."""
    return _rekey(data, snake_to_camel)


def camel_to_snake(name: str) -> str:
    return _CAMEL_BOUNDARY.sub("_", name).lower()


def snake_to_camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)
