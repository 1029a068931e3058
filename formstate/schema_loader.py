"""
Schema loader for the form state engine.
Normalises schema documents, checks their structure and loads them from
YAML or JSON files.
"""

import json
import yaml
from copy import deepcopy
from pathlib import Path
from typing import Dict, Any, Optional, List, Union
import logging
import re

from .exceptions import SchemaLoadError

logger = logging.getLogger(__name__)

# Supported node types
PRIMITIVE_TYPES = {'string', 'number', 'integer', 'boolean', 'null'}
CONTAINER_TYPES = {'object', 'array'}
SUPPORTED_FIELD_TYPES = PRIMITIVE_TYPES | CONTAINER_TYPES

SCHEMA_SUFFIXES = {'.yaml', '.yml', '.json'}


def is_schema_document(schema: Any) -> bool:
    """
    Return True if ``schema`` is a full schema node rather than a bare
    property map.

    A node declares a string (or list) ``type`` or a ``properties`` mapping.
    A property map may itself contain a property called ``type``, but its
    value is then a mapping, which distinguishes the two shapes.
    """
    if not isinstance(schema, dict):
        return False
    if isinstance(schema.get('type'), (str, list)):
        return True
    return isinstance(schema.get('properties'), dict)


def normalize_schema(schema: Dict[str, Any]) -> Dict[str, Any]:
    """
    Wrap a bare property map as an object schema.

    Args:
        schema: Full schema document or bare ``{name: fragment}`` map

    Returns:
        Schema document with a root node
    """
    if is_schema_document(schema):
        return schema
    if not isinstance(schema, dict):
        logger.warning(f"Schema is not a mapping ({type(schema).__name__}); treating it as empty")
        return {'type': 'object', 'properties': {}}
    return {'type': 'object', 'properties': schema}


def resolve_type(fragment: Any) -> Optional[Any]:
    """
    Resolve the effective node type of a schema fragment.

    Returns:
        'object', 'array', a primitive type name, the raw unrecognised type
        value, or None for opaque fragments
    """
    if not isinstance(fragment, dict):
        return None

    declared = fragment.get('type')
    if isinstance(declared, list):
        # ["string", "null"] style unions resolve to their first concrete type
        concrete = [t for t in declared if t != 'null']
        declared = concrete[0] if concrete else ('null' if declared else None)

    if declared is None:
        if isinstance(fragment.get('properties'), dict):
            return 'object'
        return None

    return declared


def get_required_properties(fragment: Dict[str, Any]) -> List[str]:
    """Property names listed in an object node's ``required`` list."""
    required = fragment.get('required') if isinstance(fragment, dict) else None
    if isinstance(required, list):
        return [name for name in required if isinstance(name, str)]
    return []


def is_required_fragment(fragment: Any) -> bool:
    """Return True if the fragment marks itself as mandatory."""
    if not isinstance(fragment, dict):
        return False
    return fragment.get('isRequired') is True or fragment.get('required') is True


def validate_schema(schema: Dict[str, Any]) -> List[str]:
    """
    Check schema structure and constraint definitions.

    The engine tolerates most of these problems (malformed nodes become
    opaque values), so this is a linting aid for schema authors rather than
    a gate.

    Args:
        schema: Schema document or bare property map

    Returns:
        List of problems found (empty if the schema is well formed)
    """
    problems: List[str] = []
    _validate_fragment('', normalize_schema(schema), problems)
    return problems


def _validate_fragment(path: str, fragment: Any, problems: List[str]) -> None:
    location = path or '<root>'

    if not isinstance(fragment, dict):
        problems.append(f"Node '{location}' must be a mapping")
        return

    node_type = resolve_type(fragment)
    if node_type is None:
        problems.append(f"Node '{location}' has no 'type' and no 'properties'")
        return

    if node_type not in SUPPORTED_FIELD_TYPES:
        problems.append(f"Node '{location}' has unsupported type '{node_type}'. "
                        f"Supported types: {sorted(SUPPORTED_FIELD_TYPES)}")
        return

    if node_type == 'object':
        properties = fragment.get('properties', {})
        if not isinstance(properties, dict):
            problems.append(f"Object node '{location}' properties must be a mapping")
            return
        for name in get_required_properties(fragment):
            if name not in properties:
                problems.append(f"Object node '{location}' requires undeclared property '{name}'")
        for prop_name, prop_fragment in properties.items():
            child = f"{path}.{prop_name}" if path else prop_name
            _validate_fragment(child, prop_fragment, problems)

    elif node_type == 'array':
        if 'items' not in fragment:
            problems.append(f"Array node '{location}' has no 'items' definition")
        else:
            _validate_fragment(f"{path}.[items]" if path else '[items]', fragment['items'], problems)

    if node_type in ('number', 'integer'):
        for constraint in ('minimum', 'maximum', 'exclusiveMinimum', 'exclusiveMaximum'):
            if constraint in fragment:
                value = fragment[constraint]
                if isinstance(value, bool) or not isinstance(value, (int, float)):
                    problems.append(f"Node '{location}' {constraint} must be a number")

    if node_type == 'string':
        for constraint in ('minLength', 'maxLength'):
            if constraint in fragment:
                value = fragment[constraint]
                if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                    problems.append(f"Node '{location}' {constraint} must be a non-negative integer")

        if 'pattern' in fragment:
            try:
                re.compile(fragment['pattern'])
            except (re.error, TypeError) as e:
                problems.append(f"Node '{location}' has invalid regex pattern: {e}")

    if 'enum' in fragment:
        choices = fragment['enum']
        if not isinstance(choices, list) or len(choices) == 0:
            problems.append(f"Node '{location}' enum must be a non-empty list")


def _read_document(file_path: Path) -> Any:
    if not file_path.exists():
        raise SchemaLoadError(file_path, FileNotFoundError(f"No such file: {file_path}"))

    suffix = file_path.suffix.lower()
    if suffix not in SCHEMA_SUFFIXES:
        raise SchemaLoadError(file_path, message=f"Unsupported file format: {file_path.suffix}")

    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            if suffix in ('.yaml', '.yml'):
                return yaml.safe_load(f)
            return json.load(f)
    except yaml.YAMLError as e:
        logger.error(f"YAML parsing error in {file_path}: {e}")
        raise SchemaLoadError(file_path, e)
    except json.JSONDecodeError as e:
        logger.error(f"JSON parsing error in {file_path}: {e}")
        raise SchemaLoadError(file_path, e)
    except OSError as e:
        logger.error(f"Error reading {file_path}: {e}")
        raise SchemaLoadError(file_path, e)


def load_schema(schema_path: Union[str, Path]) -> Dict[str, Any]:
    """
    Load a schema from a YAML or JSON file.

    Args:
        schema_path: Path to the schema file

    Returns:
        Normalised schema document

    Raises:
        SchemaLoadError: If the file is missing, unreadable or not a mapping
    """
    file_path = Path(schema_path)
    schema = _read_document(file_path)

    if not isinstance(schema, dict):
        raise SchemaLoadError(file_path, message=f"Schema in {file_path} must be a mapping")

    problems = validate_schema(schema)
    for problem in problems:
        logger.warning(f"Schema {file_path.name}: {problem}")

    logger.info(f"Successfully loaded schema: {file_path}")
    return normalize_schema(schema)


def load_initial_values(values_path: Union[str, Path]) -> Dict[str, Any]:
    """
    Load an initial-values document from a YAML or JSON file.

    Raises:
        SchemaLoadError: If the file is missing, unreadable or not a mapping
    """
    file_path = Path(values_path)
    values = _read_document(file_path)

    if values is None:
        logger.warning(f"Initial values file is empty: {file_path}")
        return {}
    if not isinstance(values, dict):
        raise SchemaLoadError(file_path, message=f"Initial values in {file_path} must be a mapping")

    logger.info(f"Loaded initial values from {file_path}")
    return values


def get_schema_info(schema: Dict[str, Any]) -> Dict[str, Any]:
    """
    Get metadata information about a schema document.

    Args:
        schema: Schema document or bare property map

    Returns:
        Dictionary with title, description, top-level property names,
        required property names and property types
    """
    document = normalize_schema(schema)
    properties = document.get('properties', {}) if isinstance(document.get('properties'), dict) else {}

    required = set(get_required_properties(document))
    required.update(name for name, fragment in properties.items() if is_required_fragment(fragment))

    return {
        "title": document.get('title', 'Untitled Schema'),
        "description": document.get('description', ''),
        "field_count": len(properties),
        "required_fields": [name for name in properties if name in required],
        "field_types": {
            name: resolve_type(fragment) or 'unknown'
            for name, fragment in properties.items()
        }
    }


def copy_default(fragment: Dict[str, Any]) -> Any:
    """Deep copy of a fragment's ``default`` so callers never share it."""
    return deepcopy(fragment.get('default'))
