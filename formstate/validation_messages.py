"""
Validation message catalogue.

Templates use ``str.format`` placeholders named after the schema keyword
they report on. Individual templates can be replaced through the
``validation.messages`` configuration section.
"""

from typing import Any, Dict, Optional
import logging

logger = logging.getLogger(__name__)

VALIDATION_MESSAGES = {
    'required': 'Field is required',
    'number': 'Must be a number',
    'integer': 'Must be an integer',
    'string': 'Must be a string',
    'boolean': 'Must be a boolean',
    'minimum': 'Must be at least {minimum}',
    'maximum': 'Must be no more than {maximum}',
    'exclusiveMinimum': 'Must be greater than {exclusiveMinimum}',
    'exclusiveMaximum': 'Must be less than {exclusiveMaximum}',
    'minLength': 'Must be at least {minLength} characters',
    'maxLength': 'Must be no more than {maxLength} characters',
    'pattern': 'Must match pattern {pattern}',
    'enum': 'Must be one of: {enum}',
}


class MessageCatalog:
    """Validation message templates with optional overrides."""

    def __init__(self, overrides: Optional[Dict[str, str]] = None):
        self.templates = dict(VALIDATION_MESSAGES)
        for key, template in (overrides or {}).items():
            if key not in VALIDATION_MESSAGES:
                logger.warning(f"Ignoring override for unknown validation message: {key}")
                continue
            if not isinstance(template, str):
                logger.warning(f"Validation message override for '{key}' must be a string")
                continue
            self.templates[key] = template

    def format(self, key: str, **params: Any) -> str:
        template = self.templates[key]
        try:
            return template.format(**params)
        except (KeyError, IndexError, ValueError) as e:
            # Broken override: fall back to the built-in wording
            logger.error(f"Invalid validation message template for '{key}': {e}")
            return VALIDATION_MESSAGES[key].format(**params)
