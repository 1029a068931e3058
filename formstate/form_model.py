"""
FormModel: the public facade of the form state engine.

A FormModel derives a flat, path-addressed field collection from a schema,
tracks live against pristine values, validates, reverts, snapshots and
restores, edits arrays while keeping paths consistent, and notifies
registered listeners after every successful mutation.
"""

from copy import deepcopy
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Type, Union
import logging

from pydantic import BaseModel

from . import path_utils
from .array_manager import ArrayFieldManager
from .buffering import BufferingManager
from .config_loader import EngineConfig
from .diff_utils import calculate_diff
from .exceptions import SchemaError, SchemaLoadError, log_error_with_context
from .field import FormField, KIND_ARRAY, KIND_OBJECT
from .field_store import FieldStore
from .listeners import FieldListener, ListenerRegistry
from .model_builder import create_model_from_schema, dict_to_model
from .schema_loader import load_initial_values, load_schema, normalize_schema
from .validation_messages import MessageCatalog
from .validator import Validator

logger = logging.getLogger(__name__)

ConfigLike = Union[EngineConfig, Dict[str, Any], None]

CONTAINER_VALUE_TYPES = {KIND_OBJECT: dict, KIND_ARRAY: list}


class FormModel:
    """
    Form state for one schema-described document.

    Args:
        schema: Full schema document or bare property map
        initial_values: Document to seed the fields with (schema defaults
            apply where it has no value)
        config: EngineConfig or configuration dictionary

    Raises:
        SchemaError: If the schema declares an unsupported type
    """

    def __init__(self, schema: Dict[str, Any], initial_values: Optional[Dict[str, Any]] = None,
                 config: ConfigLike = None):
        self.config = config if isinstance(config, EngineConfig) else EngineConfig.from_config(config or {})
        self.schema = normalize_schema(schema)

        try:
            self._store = FieldStore(self.schema, initial_values)
        except SchemaError as e:
            log_error_with_context(e, "form model construction")
            raise
        self._listeners = ListenerRegistry()
        self._validator = Validator(MessageCatalog(self.config.validation_messages))
        self.buffering = BufferingManager(self._store, self._notify)
        self.arrays = ArrayFieldManager(self._store, self._notify)

        logger.info(f"Form model built with {len(self._store)} fields")

    @classmethod
    def from_schema_file(cls, schema_path: Union[str, Path],
                         initial_values: Union[str, Path, Dict[str, Any], None] = None,
                         config: ConfigLike = None) -> 'FormModel':
        """
        Build a model from a YAML or JSON schema file.

        Args:
            schema_path: Path to the schema file
            initial_values: Initial document, or a path to a YAML/JSON file
            config: EngineConfig or configuration dictionary

        Raises:
            SchemaLoadError: If a file cannot be read or parsed
        """
        try:
            schema = load_schema(schema_path)
            if isinstance(initial_values, (str, Path)):
                initial_values = load_initial_values(initial_values)
        except SchemaLoadError as e:
            log_error_with_context(e, "schema file loading")
            raise
        return cls(schema, initial_values, config)

    def _notify(self, changed: bool) -> None:
        if changed or self.config.notify_on_noop:
            self._listeners.notify(self._store.fields)

    # Read surface

    def get_fields(self) -> Mapping[str, FormField]:
        """Read-only live view of the field collection, in document order."""
        return self._store.fields

    def get_field(self, path: str) -> Optional[FormField]:
        return self._store.get(path)

    def get_root_fields(self) -> List[FormField]:
        return self._store.get_children(path_utils.ROOT_PATH)

    def get_child_fields(self, path: str) -> List[FormField]:
        return self._store.get_children(path)

    def get_data(self) -> Any:
        """Deep copy of the live document."""
        root = self._store.get(path_utils.ROOT_PATH)
        return deepcopy(root.value) if root is not None else None

    # Write surface

    def set_value(self, path: str, value: Any) -> bool:
        """
        Set the value at ``path``.

        Setting a container rebuilds its subtree from ``value``. Setting a
        value equal to the current one changes nothing and, unless
        ``notify_on_noop`` is configured, notifies nobody.

        A container given a value of the wrong type (a string for an array,
        say) is left untouched; None resets it to its schema default.

        Returns:
            False if the path does not exist or the container value has the
            wrong type, True otherwise
        """
        if path not in self._store:
            logger.warning(f"Cannot set value of unknown field: {path}")
            return False

        field = self._store.get(path)
        expected = CONTAINER_VALUE_TYPES.get(field.kind)
        if expected is not None and value is not None and not isinstance(value, expected):
            logger.warning(f"Cannot set {field.kind} field '{path}' to a {type(value).__name__} value")
            return False

        changed = self._store.assign(path, value)
        self._notify(changed)
        return True

    def add_value(self, array_path: str, value: Any = None) -> Optional[str]:
        return self.arrays.add_value(array_path, value)

    def insert_array_item(self, array_path: str, index: int, value: Any = None) -> Optional[str]:
        return self.arrays.insert_array_item(array_path, index, value)

    def delete_value(self, element_path: str) -> int:
        return self.arrays.delete_value(element_path)

    def move_array_item(self, array_path: str, from_index: int, to_index: int) -> bool:
        return self.arrays.move_array_item(array_path, from_index, to_index)

    def get_array_length(self, array_path: str) -> int:
        return self.arrays.get_array_length(array_path)

    def is_valid_array_index(self, array_path: str, index: int) -> bool:
        return self.arrays.is_valid_array_index(array_path, index)

    # Validation surface

    def validate(self) -> bool:
        """
        Re-validate every field against its current value.

        Returns:
            True if no field has errors
        """
        valid = self._validator.validate_fields(self._store.fields)
        logger.debug(f"Validation finished (valid={valid})")
        self._notify(True)
        return valid

    def clear_errors(self) -> None:
        for field in self._store.fields.values():
            field.clear_errors()
        self._notify(True)

    def is_valid(self) -> bool:
        """True if no field currently carries errors (does not re-validate)."""
        return not any(field.errors for field in self._store.fields.values())

    # Buffering surface

    def revert_field(self, path: str) -> bool:
        return self.buffering.revert_field(path)

    def revert_branch(self, prefix: str) -> bool:
        return self.buffering.revert_branch(prefix)

    def revert_all(self) -> None:
        self.buffering.revert_all()

    def set_pristine_values(self) -> None:
        self.buffering.set_pristine_values()

    def has_unsaved_changes(self) -> bool:
        return self.buffering.has_unsaved_changes()

    def get_changed_fields(self) -> List[FormField]:
        return self.buffering.get_changed_fields()

    def get_changed_paths(self) -> List[str]:
        return self.buffering.get_changed_paths()

    def create_snapshot(self) -> Dict[str, Any]:
        return self.buffering.create_snapshot()

    def restore_from_snapshot(self, snapshot: Dict[str, Any]) -> None:
        self.buffering.restore_from_snapshot(snapshot)

    def get_change_statistics(self) -> Dict[str, Any]:
        return self.buffering.get_change_statistics()

    def get_change_summary(self) -> Dict[str, Dict[str, Any]]:
        """
        Differences between the pristine and the live document.

        Returns:
            calculate_diff sections keyed by dotted field path
        """
        root = self._store.get(path_utils.ROOT_PATH)
        return calculate_diff(root.pristine_value, root.value)

    # Typed export

    def to_model(self, model_name: str = "FormData") -> BaseModel:
        """
        Export the live document as an instance of a model generated from the schema.

        Raises:
            DataExportError: If the live document does not fit the model
        """
        model_class: Type[BaseModel] = create_model_from_schema(self.schema, model_name)
        return dict_to_model(self.get_data(), model_class)

    # Reactivity surface

    def add_listener(self, listener: FieldListener) -> None:
        self._listeners.add(listener)

    def remove_listener(self, listener: FieldListener) -> bool:
        return self._listeners.remove(listener)
