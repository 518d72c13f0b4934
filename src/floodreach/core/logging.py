"""
Logging configuration.

We use a YAML logging config (`src/floodreach/config/logging.yaml`) and then apply
the level from settings (`FLOODREACH_LOG_LEVEL`) or an explicit CLI choice.
Library modules only create loggers; entry points call `configure_logging()`.
"""

from __future__ import annotations

import logging.config

from floodreach.config.settings import get_logging_config, get_settings


def configure_logging(level: str | None = None) -> str:
    """Apply the packaged logging config; returns the effective level name."""
    effective = (level or get_settings().app.log_level).upper()
    config = get_logging_config()

    config.setdefault("root", {})["level"] = effective
    for handler in config.get("handlers", {}).values():
        if isinstance(handler, dict) and "level" in handler:
            handler["level"] = effective

    logging.config.dictConfig(config)
    return effective
