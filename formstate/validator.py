"""
Field validator for the form state engine.

Re-evaluates every leaf field's schema constraints against its current value
and overwrites the field's error list. Containers are never validated
directly; callers derive overall validity from the return value.
"""

from typing import Any, List, Mapping, Optional
import logging
import math
import re

from .field import FormField, values_equal
from .schema_loader import resolve_type
from .validation_messages import MessageCatalog

logger = logging.getLogger(__name__)

NUMERIC_CONSTRAINTS = ('minimum', 'maximum', 'exclusiveMinimum', 'exclusiveMaximum')
STRING_CONSTRAINTS = ('minLength', 'maxLength', 'pattern')
CONSTRAINT_KEYWORDS = NUMERIC_CONSTRAINTS + STRING_CONSTRAINTS + ('enum',)


def is_empty_value(value: Any) -> bool:
    """A value counts as empty for the required check if it is None or blank text."""
    if value is None:
        return True
    return isinstance(value, str) and value.strip() == ''


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def to_number(value: Any) -> Optional[float]:
    """
    Convert a value to a number for numeric checks.

    Accepts ints and floats (but not booleans) and numeric strings.

    Returns:
        The numeric value, or None if the value is not numeric
    """
    if _is_number(value):
        return value
    if isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
        return None if math.isnan(number) else number
    return None


class Validator:
    """Validates leaf fields against their schema fragments."""

    def __init__(self, messages: Optional[MessageCatalog] = None):
        self.messages = messages or MessageCatalog()

    def validate_fields(self, fields: Mapping[str, FormField]) -> bool:
        """
        Validate every field and overwrite its errors.

        Returns:
            True if no field has errors after the pass
        """
        invalid_count = 0
        for field in fields.values():
            if field.is_container:
                field.clear_errors()
                continue
            errors = self.validate_field(field)
            field.set_errors(errors)
            if errors:
                invalid_count += 1
                logger.debug(f"Field '{field.path}' failed validation: {errors}")

        logger.debug(f"Validated {len(fields)} fields, {invalid_count} invalid")
        return invalid_count == 0

    def validate_field(self, field: FormField) -> List[str]:
        """
        Compute the validation messages for a single leaf field.

        Args:
            field: Field to check (its errors are not modified)

        Returns:
            List of messages, required first, then type, then constraints
            in the order the fragment declares them
        """
        fragment = field.schema_fragment
        if fragment.get('readOnly') is True:
            return []

        value = field.value
        errors: List[str] = []

        if field.required and is_empty_value(value):
            errors.append(self.messages.format('required'))

        if value is None:
            return errors

        node_type = resolve_type(fragment)
        number = None

        if node_type in ('number', 'integer'):
            if isinstance(value, str) and value.strip() == '':
                # Blank numeric input is "no value", already covered by required
                return errors
            number = to_number(value)
            if number is None:
                errors.append(self.messages.format('number'))
                return errors
            if node_type == 'integer' and not float(number).is_integer():
                errors.append(self.messages.format('integer'))
                return errors
        elif node_type == 'string':
            if not isinstance(value, str):
                errors.append(self.messages.format('string'))
                return errors
        elif node_type == 'boolean':
            if not isinstance(value, bool):
                errors.append(self.messages.format('boolean'))
                return errors
        elif _is_number(value):
            number = value

        for keyword in fragment:
            if keyword not in CONSTRAINT_KEYWORDS:
                continue
            message = self._check_constraint(field.path, keyword, fragment[keyword], value, number)
            if message:
                errors.append(message)

        return errors

    def _check_constraint(self, path: str, keyword: str, limit: Any,
                          value: Any, number: Optional[float]) -> Optional[str]:
        if keyword in NUMERIC_CONSTRAINTS:
            if number is None:
                return None
            if not _is_number(limit):
                logger.warning(f"Ignoring non-numeric {keyword} on '{path}': {limit!r}")
                return None
            failed = {
                'minimum': number < limit,
                'maximum': number > limit,
                'exclusiveMinimum': number <= limit,
                'exclusiveMaximum': number >= limit,
            }[keyword]
            return self.messages.format(keyword, **{keyword: limit}) if failed else None

        if keyword in ('minLength', 'maxLength'):
            if not isinstance(value, str):
                return None
            if isinstance(limit, bool) or not isinstance(limit, int):
                logger.warning(f"Ignoring non-integer {keyword} on '{path}': {limit!r}")
                return None
            failed = len(value) < limit if keyword == 'minLength' else len(value) > limit
            return self.messages.format(keyword, **{keyword: limit}) if failed else None

        if keyword == 'pattern':
            if not isinstance(value, str):
                return None
            try:
                matched = re.search(limit, value)
            except (re.error, TypeError) as e:
                logger.warning(f"Skipping invalid pattern on '{path}': {e}")
                return None
            return None if matched else self.messages.format('pattern', pattern=limit)

        # enum
        if not isinstance(limit, list):
            logger.warning(f"Ignoring non-list enum on '{path}'")
            return None
        if any(values_equal(value, choice) for choice in limit):
            return None
        return self.messages.format('enum', enum=', '.join(str(choice) for choice in limit))
