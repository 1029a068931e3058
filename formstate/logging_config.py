"""
Logging setup for applications embedding the form state engine.

Library modules only create module-level loggers; configure_logging is for
the host application to call once at startup.
"""

from typing import Any, Dict, Optional
import logging

from .config_loader import get_default_config

logger = logging.getLogger(__name__)


def get_logging_level(level_str: Any) -> int:
    """Map string logging level to logging constant."""
    level_map = {
        'DEBUG': logging.DEBUG,
        'INFO': logging.INFO,
        'WARNING': logging.WARNING,
        'ERROR': logging.ERROR,
        'CRITICAL': logging.CRITICAL
    }
    if not isinstance(level_str, str):
        return logging.INFO
    return level_map.get(level_str.upper(), logging.INFO)


def configure_logging(config: Optional[Dict[str, Any]] = None) -> int:
    """
    Configure root logging from the ``logging`` configuration section.

    Args:
        config: Complete configuration dictionary (defaults if None)

    Returns:
        The logging level that was applied
    """
    section = (config or get_default_config()).get('logging') or {}
    defaults = get_default_config()['logging']

    level_str = section.get('level', defaults['level'])
    log_format = section.get('format', defaults['format'])
    log_level = get_logging_level(level_str)

    logging.basicConfig(level=log_level, format=log_format)
    logging.getLogger().setLevel(log_level)
    logger.info(f"Logging configured to level: {logging.getLevelName(log_level)}")
    return log_level
