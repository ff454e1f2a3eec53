from __future__ import annotations

import copy
import logging
import os
import sys
from typing import Any, Callable

import yaml
from dotenv import load_dotenv

from .validator import ConfigValidationError, validate_config


DEFAULT_CONFIG_FILE = "config.yaml"
CONFIG_ENV_VAR = "CONFIG_PATH"

DEFAULTS: dict[str, Any] = {
    "discord": {
        "bot_token": None,
        "client_id": None,
        "allowed_user_ids": [],
        "admin_ids": [],
        "status_message": "/ask me anything",
    },
    "ollama": {
        "host": "http://localhost:11434",
        "model": "qwen-tools",
        "timeout": 120,
    },
    "tools": {
        "max_iterations": 5,
    },
    "summarizer": {
        "enabled": False,
        "model": "qwen2.5:3b",
        "timeout": 30,
    },
    "qbittorrent": {
        "enabled": False,
        "host": "http://localhost:8080",
        "timeout": 10,
    },
    "metrics": {
        "enabled": True,
        "port": 9090,
    },
    "log_level": "INFO",
}


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def _parse_id_list(value: str) -> list[str]:
    return [i.strip() for i in value.split(",") if i.strip()]


# env var -> (section, key, parser); section None means top-level key
ENV_OVERRIDES: dict[str, tuple[str | None, str, Callable[[str], Any]]] = {
    "DISCORD_TOKEN": ("discord", "bot_token", str),
    "DISCORD_CLIENT_ID": ("discord", "client_id", str),
    "ALLOWED_USER_IDS": ("discord", "allowed_user_ids", _parse_id_list),
    "ADMIN_USER_IDS": ("discord", "admin_ids", _parse_id_list),
    "OLLAMA_HOST": ("ollama", "host", str),
    "OLLAMA_MODEL": ("ollama", "model", str),
    "OLLAMA_TIMEOUT": ("ollama", "timeout", float),
    "SUMMARIZER_ENABLED": ("summarizer", "enabled", _parse_bool),
    "SUMMARIZER_MODEL": ("summarizer", "model", str),
    "QBITTORRENT_ENABLED": ("qbittorrent", "enabled", _parse_bool),
    "QBITTORRENT_HOST": ("qbittorrent", "host", str),
    "METRICS_ENABLED": ("metrics", "enabled", _parse_bool),
    "METRICS_PORT": ("metrics", "port", int),
    "LOG_LEVEL": (None, "log_level", str),
}


def get_config_path() -> str:
    """
    Resolve the config path, preferring an explicit environment override.
    """
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return env_path
    return DEFAULT_CONFIG_FILE


def _load_raw_config(path: str) -> dict[str, Any]:
    """
    Read the YAML file. A missing file is not an error: everything can come
    from the environment (e.g. in a container).
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        logging.info("Config file %s not found, using defaults and environment", path)
        return {}

    if not isinstance(data, dict):
        raise ConfigValidationError(f"Config root must be a mapping, got {type(data).__name__}")
    return data


def _merge(defaults: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    merged = copy.deepcopy(defaults)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def apply_env_overrides(cfg: dict[str, Any], environ: dict[str, str] | None = None) -> dict[str, Any]:
    environ = os.environ if environ is None else environ
    for var, (section, key, parse) in ENV_OVERRIDES.items():
        raw = environ.get(var)
        if raw is None or raw == "":
            continue
        try:
            value = parse(raw)
        except ValueError:
            raise ConfigValidationError(f"Environment variable {var}={raw!r} is not valid") from None
        if section is None:
            cfg[key] = value
        else:
            cfg.setdefault(section, {})[key] = value
    return cfg


def load_config(path: str | None = None, environ: dict[str, str] | None = None) -> dict[str, Any]:
    """
    Load, merge and validate configuration. Raises ConfigValidationError.

    Precedence: environment > config.yaml > DEFAULTS. `.env` is loaded first
    so its values count as environment.
    """
    cfg_path = path or get_config_path()
    if environ is None:
        load_dotenv()
    try:
        raw = _load_raw_config(cfg_path)
    except yaml.YAMLError as e:
        raise ConfigValidationError(f"YAML parsing error in {cfg_path}: {e}") from e

    cfg = apply_env_overrides(_merge(DEFAULTS, raw), environ)
    validate_config(cfg, cfg_path)
    return cfg


def get_config(path: str | None = None) -> dict[str, Any]:
    """
    Public helper for the bot entrypoint.

    - Respects CONFIG_PATH if set.
    - Performs comprehensive validation.
    - Exits with error code 1 if loading or validation fails.
    """
    try:
        return load_config(path)
    except ConfigValidationError as e:
        logging.error("%s", e)
        sys.exit(1)
