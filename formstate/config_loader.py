"""
Configuration loading utilities for the form state engine.

Loads engine configuration from YAML, merging user settings over the
built-in defaults. Missing, empty or malformed files fall back to the
defaults so a bad configuration never prevents a form from being built.
"""

import yaml
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Any, Optional
import logging
from copy import deepcopy

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "formstate.yaml"


def deep_merge(base_dict: Dict[str, Any], update_dict: Dict[str, Any]) -> Dict[str, Any]:
    """
    Deep merge two dictionaries, with update_dict taking precedence.

    Args:
        base_dict: Base dictionary (defaults)
        update_dict: Dictionary to merge in (user config)

    Returns:
        Merged dictionary
    """
    result = deepcopy(base_dict)

    for key, value in update_dict.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = deepcopy(value)

    return result


def get_default_config() -> Dict[str, Any]:
    """
    Get the default engine configuration.

    Returns:
        Dictionary with default configuration
    """
    return {
        'engine': {
            'notify_on_noop': False
        },
        'validation': {
            'messages': {}
        },
        'logging': {
            'level': 'INFO',
            'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        }
    }


@dataclass
class EngineConfig:
    """
    Settings a FormModel reads from configuration.

    Attributes:
        notify_on_noop: Notify listeners even when set_value changes nothing
        validation_messages: Overrides for validation message templates
    """
    notify_on_noop: bool = False
    validation_messages: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> 'EngineConfig':
        """
        Create EngineConfig from a configuration dictionary.

        Args:
            config: Configuration dictionary (merged over the defaults)

        Returns:
            EngineConfig instance
        """
        merged = deep_merge(get_default_config(), config or {})
        engine = merged.get('engine') or {}
        validation = merged.get('validation') or {}

        messages = validation.get('messages') or {}
        if not isinstance(messages, dict):
            logger.warning("validation.messages must be a mapping; ignoring it")
            messages = {}

        return cls(
            notify_on_noop=bool(engine.get('notify_on_noop', False)),
            validation_messages=dict(messages)
        )


def load_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load engine configuration.

    Args:
        config_path: Optional path to config file (defaults to formstate.yaml)

    Returns:
        Complete configuration dictionary
    """
    if config_path is None:
        config_path = Path(DEFAULT_CONFIG_FILE)
    config_path = Path(config_path)

    default_config = get_default_config()

    if not config_path.exists():
        logger.warning(f"Configuration file not found: {config_path}")
        logger.info("Using default configuration")
        return default_config

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            user_config = yaml.safe_load(f)

        if user_config is None:
            logger.warning(f"Configuration file is empty: {config_path}")
            return default_config

        if not isinstance(user_config, dict):
            logger.error(f"Configuration file is not a valid dictionary: {config_path}")
            logger.info("Using default configuration")
            return default_config

        config = deep_merge(default_config, user_config)

        logger.info(f"Successfully loaded configuration from {config_path}")
        return config

    except yaml.YAMLError as e:
        logger.error(f"YAML parsing error in {config_path}: {e}")
        logger.info("Using default configuration")
        return default_config

    except OSError as e:
        logger.error(f"Failed to read configuration file {config_path}: {e}")
        logger.info("Using default configuration")
        return default_config


def save_config(config: Dict[str, Any], config_path: Optional[Path] = None) -> bool:
    """
    Save configuration to YAML file.

    Args:
        config: Configuration dictionary to save
        config_path: Optional path to save to (defaults to formstate.yaml)

    Returns:
        True if save was successful, False otherwise
    """
    if config_path is None:
        config_path = Path(DEFAULT_CONFIG_FILE)

    try:
        with open(config_path, 'w', encoding='utf-8') as f:
            yaml.dump(config, f, default_flow_style=False, indent=2, sort_keys=False)

        logger.info(f"Configuration saved to {config_path}")
        return True

    except (OSError, yaml.YAMLError) as e:
        logger.error(f"Failed to save configuration to {config_path}: {e}")
        return False


def get_config_summary(config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Get a summary of the current configuration.

    Args:
        config: Configuration dictionary

    Returns:
        Dictionary with configuration summary
    """
    return {
        'notify_on_noop': config.get('engine', {}).get('notify_on_noop', False),
        'message_overrides': sorted(config.get('validation', {}).get('messages', {}) or {}),
        'log_level': config.get('logging', {}).get('level', 'INFO')
    }
