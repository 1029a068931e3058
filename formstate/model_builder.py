"""
Dynamic Pydantic model builder for the form state engine.
Creates Pydantic models from form schemas so the live document can be
exported as a typed object.
"""

from typing import Dict, Any, Type, Optional, List, Tuple
from datetime import datetime, date
from pydantic import BaseModel, ConfigDict, Field, field_validator, create_model, ValidationError
import keyword
import logging
import re

from .exceptions import DataExportError
from .schema_loader import get_required_properties, is_required_fragment, normalize_schema, resolve_type

logger = logging.getLogger(__name__)

MODEL_CONFIG = ConfigDict(extra='ignore', populate_by_name=True, protected_namespaces=())

_STRING_FORMATS = {
    'date': date,
    'date-time': datetime,
}


def create_model_from_schema(schema: Dict[str, Any], model_name: str = "FormData") -> Type[BaseModel]:
    """
    Create a Pydantic model from a form schema.

    Args:
        schema: Schema document or bare property map
        model_name: Name for the generated model class

    Returns:
        Pydantic model class

    Raises:
        ValueError: If the schema root is not an object
    """
    document = normalize_schema(schema)
    if resolve_type(document) != 'object':
        raise ValueError("Schema root must be an object")

    try:
        dynamic_model = create_object_model(document, model_name)
        logger.info(f"Created dynamic model '{model_name}' with "
                    f"{len(dynamic_model.model_fields)} fields")
        return dynamic_model
    except Exception as e:
        logger.error(f"Failed to create model '{model_name}': {e}")
        raise


def create_object_model(fragment: Dict[str, Any], model_name: str) -> Type[BaseModel]:
    """
    Create a model for an object node, recursing into nested objects.

    Args:
        fragment: Object schema node
        model_name: Name for the model class

    Returns:
        Pydantic model class for the object
    """
    properties = fragment.get('properties')
    properties = properties if isinstance(properties, dict) else {}
    required_names = set(get_required_properties(fragment))

    model_fields = {}
    validators_dict = {}

    for prop_name, prop_fragment in properties.items():
        attr_name = to_attribute_name(prop_name)
        required = prop_name in required_names or is_required_fragment(prop_fragment)
        field_type, field_info = create_field_from_fragment(
            prop_name, prop_fragment, required, f"{model_name}_{attr_name}")
        model_fields[attr_name] = (field_type, field_info)
        validators_dict.update(create_validators_for_field(attr_name, prop_fragment))

    return create_model(
        model_name,
        __config__=MODEL_CONFIG,
        __validators__=validators_dict,
        **model_fields
    )


def to_attribute_name(prop_name: str) -> str:
    """
    Map a property name to a usable model attribute name.

    The original name stays available as the field alias.
    """
    name = re.sub(r'\W', '_', prop_name)
    if not name or name[0].isdigit() or name.startswith('_') or keyword.iskeyword(name) \
            or hasattr(BaseModel, name):
        name = f"field_{name}"
    return name


def create_field_from_fragment(prop_name: str, fragment: Any, required: bool,
                               nested_name: str) -> Tuple[Any, Any]:
    """
    Create a Pydantic field from a property's schema node.

    Args:
        prop_name: Property name (used as the field alias)
        fragment: Schema node of the property
        required: Whether the parent lists the property as required
        nested_name: Model name to use if the property is an object

    Returns:
        Tuple of (field_type, FieldInfo)
    """
    fragment = fragment if isinstance(fragment, dict) else {}
    field_type = get_field_type(fragment, nested_name)

    field_kwargs: Dict[str, Any] = {'alias': prop_name}

    if 'default' in fragment:
        field_kwargs['default'] = fragment['default']
    elif not required:
        field_kwargs['default'] = None

    if not required:
        field_type = Optional[field_type]

    if 'title' in fragment:
        field_kwargs['title'] = fragment['title']
    if 'description' in fragment:
        field_kwargs['description'] = fragment['description']

    node_type = resolve_type(fragment)
    if node_type == 'string':
        if isinstance(fragment.get('minLength'), int):
            field_kwargs['min_length'] = fragment['minLength']
        if isinstance(fragment.get('maxLength'), int):
            field_kwargs['max_length'] = fragment['maxLength']

    elif node_type in ('number', 'integer'):
        for constraint, kwarg in (('minimum', 'ge'), ('maximum', 'le'),
                                  ('exclusiveMinimum', 'gt'), ('exclusiveMaximum', 'lt')):
            limit = fragment.get(constraint)
            if isinstance(limit, (int, float)) and not isinstance(limit, bool):
                field_kwargs[kwarg] = limit

    return field_type, Field(**field_kwargs)


def get_field_type(fragment: Dict[str, Any], nested_name: str = "NestedModel") -> Any:
    """
    Map a schema node to a Python/Pydantic type.

    Args:
        fragment: Schema node
        nested_name: Model name to use for object nodes

    Returns:
        Python type for the field
    """
    node_type = resolve_type(fragment)

    if node_type == 'string':
        string_format = fragment.get('format')
        return _STRING_FORMATS.get(string_format, str) if isinstance(string_format, str) else str

    elif node_type == 'integer':
        return int

    elif node_type == 'number':
        return float

    elif node_type == 'boolean':
        return bool

    elif node_type == 'array':
        items = fragment.get('items')
        if not isinstance(items, dict) or resolve_type(items) is None:
            return List[Any]
        return List[get_field_type(items, f"{nested_name}_item")]

    elif node_type == 'object':
        properties = fragment.get('properties')
        if isinstance(properties, dict) and properties:
            return create_object_model(fragment, nested_name)
        # Generic dict if no properties defined
        return Dict[str, Any]

    return Any


def create_validators_for_field(attr_name: str, fragment: Any) -> Dict[str, Any]:
    """
    Create validators for schema constraints Field() cannot express.

    Args:
        attr_name: Model attribute name of the field
        fragment: Schema node of the property

    Returns:
        Dictionary of validator functions
    """
    validators = {}
    if not isinstance(fragment, dict):
        return validators

    pattern = fragment.get('pattern')
    if resolve_type(fragment) == 'string' and isinstance(pattern, str):
        try:
            compiled = re.compile(pattern)
        except re.error as e:
            logger.warning(f"Skipping invalid pattern for '{attr_name}': {e}")
        else:
            @field_validator(attr_name)
            @classmethod
            def pattern_validator_func(cls, v):
                if isinstance(v, str) and not compiled.search(v):
                    raise ValueError(f'Field must match pattern: {pattern}')
                return v
            validators[f'validate_{attr_name}_pattern'] = pattern_validator_func

    choices = fragment.get('enum')
    if isinstance(choices, list) and choices:
        @field_validator(attr_name)
        @classmethod
        def enum_validator_func(cls, v):
            if v is not None and v not in choices:
                raise ValueError(f'Value must be one of: {choices}')
            return v
        validators[f'validate_{attr_name}_enum'] = enum_validator_func

    return validators


def validate_model_data(data: Dict[str, Any], model_class: Type[BaseModel]) -> List[str]:
    """
    Validate data against a Pydantic model and return validation errors.

    Args:
        data: Data to validate
        model_class: Pydantic model class

    Returns:
        List of validation error messages
    """
    try:
        model_class.model_validate(data)
        return []
    except ValidationError as e:
        return format_validation_errors(e)


def format_validation_errors(error: ValidationError) -> List[str]:
    """Readable ``location: message`` strings for a pydantic ValidationError."""
    error_messages = []
    for item in error.errors():
        field_path = '.'.join(str(loc) for loc in item.get('loc', []))
        error_messages.append(f"{field_path}: {item.get('msg')}")
    return error_messages


def dict_to_model(data: Dict[str, Any], model_class: Type[BaseModel]) -> BaseModel:
    """
    Instantiate a model from form data.

    Args:
        data: Form document
        model_class: Pydantic model class

    Returns:
        Model instance

    Raises:
        DataExportError: If the data does not fit the model
    """
    try:
        return model_class.model_validate(data)
    except ValidationError as e:
        errors = format_validation_errors(e)
        logger.error(f"Data does not match model '{model_class.__name__}': {errors}")
        raise DataExportError(model_class.__name__, errors) from e


def model_to_dict(model_instance: BaseModel, exclude_none: bool = False) -> Dict[str, Any]:
    """
    Convert a model instance back to a document keyed by property names.

    Args:
        model_instance: Pydantic model instance
        exclude_none: Drop properties whose value is None

    Returns:
        Dictionary representation
    """
    return model_instance.model_dump(by_alias=True, exclude_none=exclude_none)
