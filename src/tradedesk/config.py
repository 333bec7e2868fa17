from __future__ import annotations

import copy
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .settings import Settings

ENV_PREFIX = "TRADEDESK_"
DEFAULT_CONFIG_PATH = "config.yml"

# Variables read elsewhere, not config overrides
RESERVED_ENV = {"CONFIG", "LOG_LEVEL", "LOG_DIR"}

# Secrets stay text: an API key like 1234e5 must not become a float
TEXT_PATHS = (("exchanges", "*", "credentials"), ("proxy", "password"))


def _read_config_file(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}

    loaded = yaml.safe_load(path.read_text(encoding="utf-8"))
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ValueError(f"Config root must be a mapping, got: {type(loaded)!r}")
    return loaded


def _env_path(name: str) -> list[str]:
    """Split ``EXCHANGES__KRAKEN__ENABLED`` into lowercase path segments."""
    parts = name.split("__")
    if any(not p for p in parts):
        raise ValueError(f"Invalid configuration: empty segment in {ENV_PREFIX}{name}")
    return [p.lower() for p in parts]


def _is_text_path(path: list[str]) -> bool:
    for pattern in TEXT_PATHS:
        if len(path) >= len(pattern) and all(
            want in ("*", got) for want, got in zip(pattern, path)
        ):
            return True
    return False


def _exchange_key(exchanges: dict[str, Any], name: str) -> str:
    """Key already used in the YAML for this exchange, else the env spelling.

    YAML may spell an exchange ``FtxUs`` or ``ftxus``; env variables always
    arrive uppercase. Both must land on the same entry.
    """
    for key in exchanges:
        if str(key).lower() == name:
            return key
    return name


def _deep_set(obj: dict[str, Any], path: list[str], value: Any) -> None:
    cur: dict[str, Any] = obj
    for depth, key in enumerate(path[:-1]):
        if depth == 1 and path[0] == "exchanges":
            key = _exchange_key(cur, key)
        nxt = cur.get(key)
        if not isinstance(nxt, dict):
            nxt = {}
            cur[key] = nxt
        cur = nxt
    cur[path[-1]] = value


def _parse_env_value(raw: str) -> Any:
    try:
        return yaml.safe_load(raw)
    except yaml.YAMLError:
        return raw


def _apply_env_overrides(data: dict[str, Any], *, prefix: str = ENV_PREFIX) -> dict[str, Any]:
    """Merge TRADEDESK_A__B__C=value variables into the nested config mapping."""
    merged: dict[str, Any] = copy.deepcopy(data)

    for key in sorted(os.environ):
        if not key.startswith(prefix):
            continue

        remainder = key[len(prefix) :]
        if not remainder or remainder in RESERVED_ENV:
            continue

        path = _env_path(remainder)
        raw_value = os.environ[key]
        value = raw_value if _is_text_path(path) else _parse_env_value(raw_value)
        _deep_set(merged, path, value)

    return merged


def load_settings(config_path: str | Path | None = None) -> Settings:
    """Load settings from YAML, then apply TRADEDESK_* environment overrides.

    A missing file is not an error; every setting has a default.

    Raises:
        ValueError: If the file or the merged settings are invalid
    """
    if config_path is None:
        config_path = os.environ.get(f"{ENV_PREFIX}CONFIG", DEFAULT_CONFIG_PATH)

    data = _apply_env_overrides(_read_config_file(Path(config_path)))

    try:
        return Settings.model_validate(data)
    except ValidationError as exc:
        raise ValueError(f"Invalid configuration: {exc}") from exc
