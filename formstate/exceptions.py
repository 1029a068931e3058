"""
Custom exception classes for the form state engine.

Ordinary usage of the engine never raises: absent paths return False/None,
validation failures are reported as field errors, and malformed schema
fragments become opaque leaves. The exceptions below cover programmer errors
(unrecognised schema types) and file or export failures.
"""

import logging
from pathlib import Path
from typing import Optional, Dict, Any, List

logger = logging.getLogger(__name__)


class FormStateError(Exception):
    """
    Base exception for form state errors.

    Attributes:
        message: Error message
        context: Additional context information
        recovery_suggestions: List of suggested recovery actions
    """

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None,
                 recovery_suggestions: Optional[List[str]] = None):
        self.message = message
        self.context = context or {}
        self.recovery_suggestions = recovery_suggestions or []
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message

    def get_full_details(self) -> Dict[str, Any]:
        """Get complete error details including context and suggestions."""
        return {
            'error_type': self.__class__.__name__,
            'message': self.message,
            'context': self.context,
            'recovery_suggestions': self.recovery_suggestions
        }


class SchemaError(FormStateError):
    """
    Exception raised when a schema declares a type the engine does not know.

    Raised while the field tree is being built, so a bad schema fails at
    construction rather than part-way through editing.
    """

    def __init__(self, path: str, schema_type: Any, message: Optional[str] = None):
        self.path = path
        self.schema_type = schema_type

        if message is None:
            location = path if path else '<root>'
            message = f"Unsupported schema type {schema_type!r} at path: {location}"

        context = {
            'path': path,
            'schema_type': repr(schema_type)
        }

        recovery_suggestions = [
            "Use one of: string, number, integer, boolean, null, object, array",
            "Check the schema for typos in 'type' values",
            "Remove 'type' to treat the node as an opaque value"
        ]

        super().__init__(message, context, recovery_suggestions)


class SchemaLoadError(FormStateError):
    """
    Exception raised when a schema or initial-values file cannot be loaded.

    This includes YAML/JSON parsing errors, missing files and unsupported
    file extensions.
    """

    def __init__(self, file_path: Path, original_error: Optional[Exception] = None,
                 message: Optional[str] = None):
        self.file_path = file_path
        self.original_error = original_error

        if message is None:
            message = f"Failed to load {file_path}: {original_error}"

        context = {
            'file_path': str(file_path),
            'original_error_type': type(original_error).__name__ if original_error else None,
            'original_error_message': str(original_error) if original_error else None
        }

        recovery_suggestions = [
            "Check that the file exists and is readable",
            "Verify YAML/JSON syntax is correct",
            "Use a .yaml, .yml or .json extension"
        ]

        super().__init__(message, context, recovery_suggestions)


class DataExportError(FormStateError):
    """
    Exception raised when the live document does not fit the typed model
    generated from the schema.
    """

    def __init__(self, model_name: str, validation_errors: List[str],
                 message: Optional[str] = None):
        self.model_name = model_name
        self.validation_errors = validation_errors

        if message is None:
            message = f"Form data does not match model '{model_name}': {len(validation_errors)} error(s)"

        context = {
            'model_name': model_name,
            'validation_errors': validation_errors
        }

        recovery_suggestions = [
            "Run validate() and fix the reported field errors",
            "Check that numeric fields hold numbers rather than text"
        ]

        super().__init__(message, context, recovery_suggestions)


def log_error_with_context(error: FormStateError, operation: str) -> None:
    """
    Log error with full context information.

    Args:
        error: FormStateError instance
        operation: Description of the operation that failed
    """
    logger.error(f"Form state error during {operation}")
    logger.error(f"Error type: {type(error).__name__}")
    logger.error(f"Error message: {error.message}")

    if error.context:
        logger.error("Error context:")
        for key, value in error.context.items():
            logger.error(f"  {key}: {value}")

    if error.recovery_suggestions:
        logger.info("Recovery suggestions:")
        for i, suggestion in enumerate(error.recovery_suggestions, 1):
            logger.info(f"  {i}. {suggestion}")
