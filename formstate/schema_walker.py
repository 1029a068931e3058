"""
Schema walker for the form state engine.

Expands a (possibly nested, array-bearing) schema into the flat, ordered list
of fields the field store keeps. Containers are emitted before their
children, so the resulting order follows schema declaration order with array
elements in index order.

Initial value precedence for every node:
    explicit value at the path > schema ``default`` > type-empty value

Type-empty values are ``""`` for strings, ``False`` for booleans, ``[]`` for
arrays, ``{}`` for objects (then filled in by the properties) and ``None``
for numbers, integers, ``null`` and opaque nodes.
"""

from copy import deepcopy
from typing import Any, Dict, List, Optional
import logging

from . import path_utils
from .exceptions import SchemaError
from .field import FormField, KIND_ARRAY, KIND_LEAF, KIND_OBJECT
from .schema_loader import (
    PRIMITIVE_TYPES,
    copy_default,
    get_required_properties,
    is_required_fragment,
    resolve_type,
)

logger = logging.getLogger(__name__)


class _Missing:
    """Marker for "no explicit value at this path"."""

    def __repr__(self) -> str:
        return '<MISSING>'


MISSING = _Missing()

# Path segment naming an array's item schema in error messages
ITEMS_SEGMENT = '[items]'

TYPE_EMPTY_VALUES = {
    'string': '',
    'boolean': False,
    'number': None,
    'integer': None,
    'null': None,
}


def node_kind(fragment: Any, path: str = '') -> str:
    """
    Classify a schema fragment as object, array or leaf.

    Raises:
        SchemaError: If the fragment declares a type the engine does not know
    """
    node_type = resolve_type(fragment)
    if node_type is None or not isinstance(node_type, str):
        return KIND_LEAF
    if node_type == 'object':
        return KIND_OBJECT
    if node_type == 'array':
        return KIND_ARRAY
    if node_type in PRIMITIVE_TYPES:
        return KIND_LEAF
    raise SchemaError(path, node_type)


def check_schema_types(fragment: Any, path: str = '') -> None:
    """
    Check every type declared beneath a fragment, including array item
    schemas that no element has materialised yet.

    Raises:
        SchemaError: If any node declares a type the engine does not know
    """
    kind = node_kind(fragment, path)
    if kind == KIND_OBJECT:
        properties = fragment.get('properties')
        if isinstance(properties, dict):
            for prop_name, prop_fragment in properties.items():
                check_schema_types(prop_fragment, path_utils.join_path(path, prop_name))
    elif kind == KIND_ARRAY and isinstance(fragment, dict):
        check_schema_types(get_item_schema(fragment), path_utils.join_path(path, ITEMS_SEGMENT))


def get_default_value(fragment: Any) -> Any:
    """
    Default value for a node when no explicit value is supplied.

    Args:
        fragment: Schema fragment

    Returns:
        Copy of the schema default, or the type-empty value
    """
    if isinstance(fragment, dict) and 'default' in fragment:
        return copy_default(fragment)

    node_type = resolve_type(fragment)
    if node_type == 'array':
        return []
    if node_type == 'object':
        return {}
    return TYPE_EMPTY_VALUES.get(node_type) if isinstance(node_type, str) else None


def get_item_schema(fragment: Dict[str, Any]) -> Dict[str, Any]:
    """Item schema of an array node; malformed ``items`` become an opaque ``{}``."""
    items = fragment.get('items')
    return items if isinstance(items, dict) else {}


class SchemaWalker:
    """Expands schema fragments into ordered FormField lists."""

    def walk(self, fragment: Any, path: str = path_utils.ROOT_PATH,
             value: Any = MISSING, required: bool = False) -> List[FormField]:
        """
        Expand a schema fragment rooted at ``path``.

        Args:
            fragment: Schema fragment for the node at ``path``
            path: Path of the node
            value: Explicit value for the node, or MISSING to use defaults
            required: Whether the parent declares this node as required

        Returns:
            Fields for the node and all of its descendants, container first

        Raises:
            SchemaError: If any node declares an unsupported type
        """
        fields: List[FormField] = []
        self._walk_node(fragment, path, value, required, fields)
        return fields

    def _walk_node(self, fragment: Any, path: str, value: Any,
                   required: bool, out: List[FormField]) -> FormField:
        kind = node_kind(fragment, path)
        if not isinstance(fragment, dict):
            logger.debug(f"Schema node at '{path}' is not a mapping; treating it as opaque")
            fragment = {}
        elif kind == KIND_LEAF and resolve_type(fragment) is None:
            logger.debug(f"Schema node at '{path}' has no type or properties; treating it as opaque")

        required = required or is_required_fragment(fragment)

        if kind == KIND_OBJECT:
            return self._walk_object(fragment, path, value, required, out)
        if kind == KIND_ARRAY:
            return self._walk_array(fragment, path, value, required, out)

        leaf_value = get_default_value(fragment) if value is MISSING else value
        field = FormField.create(path, fragment, leaf_value, KIND_LEAF, required)
        out.append(field)
        return field

    def _walk_object(self, fragment: Dict[str, Any], path: str, value: Any,
                     required: bool, out: List[FormField]) -> FormField:
        object_value = self._prepare_object_value(fragment, path, value)

        # Placeholder keeps the container ahead of its children in the output
        container = FormField.create(path, fragment, None, KIND_OBJECT, required)
        out.append(container)

        properties = fragment.get('properties')
        properties = properties if isinstance(properties, dict) else {}
        required_names = set(get_required_properties(fragment))

        composed = dict(object_value)
        for prop_name, prop_fragment in properties.items():
            prop_path = path_utils.join_path(path, prop_name)
            prop_value = object_value[prop_name] if prop_name in object_value else MISSING
            child = self._walk_node(prop_fragment, prop_path, prop_value,
                                    prop_name in required_names, out)
            composed[prop_name] = child.value

        container.value = composed
        container.pristine_value = deepcopy(composed)
        return container

    def _walk_array(self, fragment: Dict[str, Any], path: str, value: Any,
                    required: bool, out: List[FormField]) -> FormField:
        items = self._prepare_array_value(fragment, path, value)

        container = FormField.create(path, fragment, None, KIND_ARRAY, required)
        out.append(container)

        item_schema = get_item_schema(fragment)
        check_schema_types(item_schema, path_utils.join_path(path, ITEMS_SEGMENT))
        composed = []
        for index, item in enumerate(items):
            item_path = path_utils.join_path(path, index)
            element = self._walk_node(item_schema, item_path, item, False, out)
            composed.append(element.value)

        container.value = composed
        container.pristine_value = deepcopy(composed)
        return container

    @staticmethod
    def _prepare_object_value(fragment: Dict[str, Any], path: str, value: Any) -> Dict[str, Any]:
        if isinstance(value, dict):
            return value
        if value is not MISSING and value is not None:
            logger.warning(f"Ignoring non-object value at '{path}': {type(value).__name__}")
        default = fragment.get('default')
        if isinstance(default, dict):
            return deepcopy(default)
        return {}

    @staticmethod
    def _prepare_array_value(fragment: Dict[str, Any], path: str, value: Any) -> List[Any]:
        if isinstance(value, list):
            return value
        if value is not MISSING and value is not None:
            logger.warning(f"Ignoring non-array value at '{path}': {type(value).__name__}")
        default = fragment.get('default')
        if isinstance(default, list):
            return deepcopy(default)
        return []

    def walk_item(self, array_field: FormField, index: int, value: Optional[Any] = None) -> List[FormField]:
        """
        Materialise one element of an array field.

        Args:
            array_field: Array container field
            index: Index the element will occupy
            value: Element value, or None to use the item schema's default

        Returns:
            Fields for the element subtree
        """
        item_path = path_utils.join_path(array_field.path, index)
        item_value = MISSING if value is None else deepcopy(value)
        return self.walk(get_item_schema(array_field.schema_fragment), item_path, item_value)
