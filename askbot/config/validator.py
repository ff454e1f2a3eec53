"""
Configuration validator for the merged (defaults + config.yaml + env) config.

Validates structure, required fields, and common misconfigurations.
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import urlparse


logger = logging.getLogger(__name__)

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ConfigValidationError(Exception):
    """Raised when config validation fails."""
    pass


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _check_url(errors: list[str], section: str, value: Any) -> None:
    if not isinstance(value, str) or not value:
        errors.append(f"'{section}.host' must be a non-empty string")
        return
    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        errors.append(f"'{section}.host' must be an http(s) URL, got {value!r}")


def _check_section(errors: list[str], cfg: dict[str, Any], name: str) -> dict[str, Any]:
    section = cfg.get(name)
    if not isinstance(section, dict):
        errors.append(f"'{name}' must be a mapping, got {type(section).__name__}")
        return {}
    return section


def validate_config(cfg: dict[str, Any], config_path: str = "config.yaml") -> None:
    """
    Comprehensive validation of the merged configuration.

    Raises ConfigValidationError if validation fails.
    Logs detailed error messages before raising.

    Args:
        cfg: The merged config dictionary
        config_path: Path to config file (for error messages)

    Raises:
        ConfigValidationError: If validation fails
    """
    errors: list[str] = []
    warnings: list[str] = []

    if not isinstance(cfg, dict):
        raise ConfigValidationError(f"Config root must be a mapping, got {type(cfg).__name__}")

    # ── discord ─────────────────────────────────────────────────────────────
    discord_cfg = _check_section(errors, cfg, "discord")
    if discord_cfg:
        if not discord_cfg.get("bot_token"):
            errors.append("Missing Discord bot token (set 'discord.bot_token' or DISCORD_TOKEN)")
        if not discord_cfg.get("client_id"):
            warnings.append("'discord.client_id' is not set; no invite URL will be logged")
        for key in ("allowed_user_ids", "admin_ids"):
            ids = discord_cfg.get(key, [])
            if not isinstance(ids, list):
                errors.append(f"'discord.{key}' must be a list, got {type(ids).__name__}")

    # ── ollama ──────────────────────────────────────────────────────────────
    ollama_cfg = _check_section(errors, cfg, "ollama")
    if ollama_cfg:
        _check_url(errors, "ollama", ollama_cfg.get("host"))
        if not isinstance(ollama_cfg.get("model"), str) or not ollama_cfg.get("model"):
            errors.append("'ollama.model' must be a non-empty string")
        timeout = ollama_cfg.get("timeout")
        if not _is_number(timeout) or timeout <= 0:
            errors.append(f"'ollama.timeout' must be a positive number (seconds), got {timeout!r}")

    # ── tools ───────────────────────────────────────────────────────────────
    tools_cfg = _check_section(errors, cfg, "tools")
    if tools_cfg:
        max_iter = tools_cfg.get("max_iterations")
        if not isinstance(max_iter, int) or isinstance(max_iter, bool) or max_iter < 1:
            errors.append(f"'tools.max_iterations' must be an integer >= 1, got {max_iter!r}")
        elif max_iter > 20:
            warnings.append(f"'tools.max_iterations' is {max_iter}; long tool loops may hit the response timeout")

    # ── summarizer ──────────────────────────────────────────────────────────
    summ_cfg = _check_section(errors, cfg, "summarizer")
    if summ_cfg:
        if not isinstance(summ_cfg.get("enabled"), bool):
            errors.append(f"'summarizer.enabled' must be boolean, got {type(summ_cfg.get('enabled')).__name__}")
        elif summ_cfg["enabled"]:
            if not isinstance(summ_cfg.get("model"), str) or not summ_cfg.get("model"):
                errors.append("'summarizer.model' must be set when the summarizer is enabled")
            if "host" in summ_cfg:
                _check_url(errors, "summarizer", summ_cfg["host"])
        timeout = summ_cfg.get("timeout")
        if not _is_number(timeout) or timeout <= 0:
            errors.append(f"'summarizer.timeout' must be a positive number (seconds), got {timeout!r}")

    # ── qbittorrent ─────────────────────────────────────────────────────────
    qbit_cfg = _check_section(errors, cfg, "qbittorrent")
    if qbit_cfg:
        if not isinstance(qbit_cfg.get("enabled"), bool):
            errors.append(f"'qbittorrent.enabled' must be boolean, got {type(qbit_cfg.get('enabled')).__name__}")
        elif qbit_cfg["enabled"]:
            _check_url(errors, "qbittorrent", qbit_cfg.get("host"))
        elif summ_cfg.get("enabled") is True:
            warnings.append("summarizer is enabled but qbittorrent is not; nothing will be summarized")

    # ── metrics ─────────────────────────────────────────────────────────────
    metrics_cfg = _check_section(errors, cfg, "metrics")
    if metrics_cfg:
        if not isinstance(metrics_cfg.get("enabled"), bool):
            errors.append(f"'metrics.enabled' must be boolean, got {type(metrics_cfg.get('enabled')).__name__}")
        port = metrics_cfg.get("port")
        if not isinstance(port, int) or isinstance(port, bool) or not 0 < port < 65536:
            errors.append(f"'metrics.port' must be an integer between 1 and 65535, got {port!r}")

    # ── log level ───────────────────────────────────────────────────────────
    level = cfg.get("log_level", "INFO")
    if not isinstance(level, str) or level.upper() not in VALID_LOG_LEVELS:
        errors.append(f"'log_level' must be one of {', '.join(VALID_LOG_LEVELS)}, got {level!r}")

    # ── Log warnings ────────────────────────────────────────────────────────
    for warning in warnings:
        logger.warning("Config warning: %s", warning)

    # ── Log errors and raise if any ─────────────────────────────────────────
    if errors:
        logger.error("=" * 70)
        logger.error("CONFIG VALIDATION FAILED (%s)", config_path)
        logger.error("=" * 70)
        for i, error in enumerate(errors, 1):
            logger.error("[%d] %s", i, error)
        logger.error("=" * 70)
        logger.error("Please fix the errors above and restart the bot.")
        logger.error("=" * 70)
        raise ConfigValidationError(f"Config validation failed with {len(errors)} error(s)")
