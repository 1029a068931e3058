"""
Unit tests for model_builder module and typed export.
"""

from datetime import date
from typing import Any, Dict, List, Optional

import pytest
from pydantic import BaseModel, ValidationError

from formstate import FormModel
from formstate.exceptions import DataExportError
from formstate.model_builder import (
    create_model_from_schema,
    get_field_type,
    to_attribute_name,
    validate_model_data,
    dict_to_model,
    model_to_dict
)
from test_fixtures import SchemaFixtures, get_invoice_values


class TestModelBuilder:
    """Test class for model builder."""

    def test_create_model_from_schema_basic(self):
        """Test creating a basic model from schema."""
        model_class = create_model_from_schema(SchemaFixtures.get_nested_schema(), "Person")

        assert issubclass(model_class, BaseModel)
        assert model_class.__name__ == "Person"
        assert set(model_class.model_fields) == {'name', 'address', 'active'}

        instance = model_class(name='Ann')
        assert instance.name == 'Ann'
        assert instance.active is True

    def test_required_field_must_be_present(self):
        model_class = create_model_from_schema(SchemaFixtures.get_nested_schema())
        with pytest.raises(ValidationError):
            model_class(active=False)

    def test_root_must_be_object(self):
        with pytest.raises(ValueError):
            create_model_from_schema({'type': 'array', 'items': {}})

    @pytest.mark.parametrize("fragment,expected", [
        ({'type': 'string'}, str),
        ({'type': 'string', 'format': 'date'}, date),
        ({'type': 'integer'}, int),
        ({'type': 'number'}, float),
        ({'type': 'boolean'}, bool),
        ({'type': 'array', 'items': {'type': 'string'}}, List[str]),
        ({'type': 'array'}, List[Any]),
        ({'type': 'object'}, Dict[str, Any]),
        ({}, Any),
    ])
    def test_get_field_type(self, fragment, expected):
        assert get_field_type(fragment) == expected

    def test_nested_object_becomes_model(self):
        nested = get_field_type(SchemaFixtures.get_nested_schema()['properties']['address'], 'Address')
        assert issubclass(nested, BaseModel)
        assert set(nested.model_fields) == {'street', 'city'}

    def test_constraints_are_enforced(self):
        model_class = create_model_from_schema(SchemaFixtures.get_invoice_schema())
        values = get_invoice_values()

        assert validate_model_data(values, model_class) == []

        values['invoice_amount'] = -1
        values['currency'] = 'GBP'
        errors = validate_model_data(values, model_class)
        assert len(errors) == 2
        assert any(error.startswith('invoice_amount') for error in errors)
        assert any(error.startswith('currency') for error in errors)

    def test_pattern_uses_search(self):
        model_class = create_model_from_schema({'type': 'object', 'properties': {
            'code': {'type': 'string', 'pattern': '[0-9]{3}'}
        }})
        assert model_class(code='ab123').code == 'ab123'
        with pytest.raises(ValidationError):
            model_class(code='ab12')

    def test_awkward_property_names_use_aliases(self):
        assert to_attribute_name('first name') == 'first_name'
        assert to_attribute_name('class') == 'field_class'
        assert to_attribute_name('_private') == 'field__private'
        assert to_attribute_name('copy') == 'field_copy'

        model_class = create_model_from_schema({'type': 'object', 'properties': {
            'first name': {'type': 'string'},
            'class': {'type': 'integer'}
        }})
        instance = model_class.model_validate({'first name': 'Ann', 'class': 3})

        assert instance.first_name == 'Ann'
        assert model_to_dict(instance) == {'first name': 'Ann', 'class': 3}

    def test_extra_keys_are_ignored(self):
        model_class = create_model_from_schema(SchemaFixtures.get_simple_schema())
        instance = model_class.model_validate({'name': 'Ann', 'unexpected': True})
        assert 'unexpected' not in model_to_dict(instance)

    def test_dict_to_model_raises_export_error(self):
        model_class = create_model_from_schema(SchemaFixtures.get_simple_schema(), "Simple")

        with pytest.raises(DataExportError) as exc_info:
            dict_to_model({'age': 'not a number'}, model_class)

        assert exc_info.value.model_name == "Simple"
        assert exc_info.value.validation_errors[0].startswith('age')
        assert isinstance(exc_info.value.__cause__, ValidationError)


class TestTypedExport:
    """Test cases for FormModel.to_model."""

    def test_to_model(self):
        model = FormModel(SchemaFixtures.get_invoice_schema(), get_invoice_values())

        exported = model.to_model("Invoice")

        assert type(exported).__name__ == "Invoice"
        assert exported.supplier_name == 'Acme Pte Ltd'
        assert exported.line_items[1].description == 'Shipping'

    def test_to_model_rejects_bad_data(self):
        model = FormModel(SchemaFixtures.get_invoice_schema(), get_invoice_values())
        model.set_value('line_items.0.quantity', 'lots')

        with pytest.raises(DataExportError) as exc_info:
            model.to_model()

        assert any('quantity' in error for error in exc_info.value.validation_errors)
