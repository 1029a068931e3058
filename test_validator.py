"""
Unit tests for validator and validation_messages modules.
"""

import logging

import pytest

from formstate.field import FormField, KIND_OBJECT
from formstate.validation_messages import MessageCatalog, VALIDATION_MESSAGES
from formstate.validator import Validator, is_empty_value, to_number


def make_field(fragment, value, required=False, path='field'):
    return FormField.create(path, fragment, value, required=required)


def errors_for(fragment, value, required=False):
    return Validator().validate_field(make_field(fragment, value, required))


class TestHelpers:
    """Test cases for value helpers."""

    @pytest.mark.parametrize("value,expected", [
        (None, True), ('', True), ('   ', True), ('a', False), (0, False), (False, False), ([], False)
    ])
    def test_is_empty_value(self, value, expected):
        assert is_empty_value(value) is expected

    @pytest.mark.parametrize("value,expected", [
        (3, 3), (2.5, 2.5), ('4', 4.0), (' 1.5 ', 1.5), ('abc', None), (True, None), ('nan', None)
    ])
    def test_to_number(self, value, expected):
        assert to_number(value) == expected


class TestRequired:
    """Test cases for the required check."""

    @pytest.mark.parametrize("value", [None, '', '  '])
    def test_required_empty_values(self, value):
        assert errors_for({'type': 'string'}, value, required=True) == ['Field is required']

    def test_required_with_value(self):
        assert errors_for({'type': 'string'}, 'Ann', required=True) == []

    def test_required_comes_first(self):
        errors = errors_for({'type': 'string', 'minLength': 2}, '', required=True)
        assert errors == ['Field is required', 'Must be at least 2 characters']

    def test_none_stops_further_checks(self):
        assert errors_for({'type': 'number', 'minimum': 5}, None) == []

    def test_false_is_not_empty(self):
        assert errors_for({'type': 'boolean'}, False, required=True) == []


class TestTypeChecks:
    """Test cases for type checks."""

    def test_number_accepts_numeric_string(self):
        assert errors_for({'type': 'number'}, '12.5') == []

    def test_number_rejects_text(self):
        assert errors_for({'type': 'number', 'minimum': 0}, 'abc') == ['Must be a number']

    def test_number_rejects_bool(self):
        assert errors_for({'type': 'number'}, True) == ['Must be a number']

    def test_integer_requires_integral_value(self):
        assert errors_for({'type': 'integer'}, 2.5) == ['Must be an integer']
        assert errors_for({'type': 'integer'}, 2.0) == []
        assert errors_for({'type': 'integer'}, '7') == []

    def test_blank_number_is_no_value(self):
        assert errors_for({'type': 'number', 'minimum': 1}, '') == []
        assert errors_for({'type': 'number'}, '', required=True) == ['Field is required']

    def test_string_type(self):
        assert errors_for({'type': 'string', 'minLength': 3}, 12) == ['Must be a string']

    def test_boolean_type(self):
        assert errors_for({'type': 'boolean'}, 'yes') == ['Must be a boolean']


class TestConstraints:
    """Test cases for constraint checks."""

    def test_minimum_and_maximum(self):
        fragment = {'type': 'number', 'minimum': 1, 'maximum': 10}
        assert errors_for(fragment, 0) == ['Must be at least 1']
        assert errors_for(fragment, 11) == ['Must be no more than 10']
        assert errors_for(fragment, 1) == []
        assert errors_for(fragment, '20') == ['Must be no more than 10']

    def test_exclusive_bounds(self):
        fragment = {'type': 'number', 'exclusiveMinimum': 0, 'exclusiveMaximum': 5}
        assert errors_for(fragment, 0) == ['Must be greater than 0']
        assert errors_for(fragment, 5) == ['Must be less than 5']
        assert errors_for(fragment, 2) == []

    def test_string_lengths(self):
        fragment = {'type': 'string', 'minLength': 2, 'maxLength': 4}
        assert errors_for(fragment, 'a') == ['Must be at least 2 characters']
        assert errors_for(fragment, 'abcde') == ['Must be no more than 4 characters']

    def test_pattern_uses_search(self):
        assert errors_for({'type': 'string', 'pattern': '[0-9]'}, 'abc1') == []
        assert errors_for({'type': 'string', 'pattern': '^[0-9]+$'}, 'abc') == ['Must match pattern ^[0-9]+$']

    def test_invalid_pattern_is_skipped(self, caplog):
        with caplog.at_level(logging.WARNING):
            assert errors_for({'type': 'string', 'pattern': '(unclosed'}, 'abc') == []
        assert 'invalid pattern' in caplog.text

    def test_enum(self):
        fragment = {'type': 'string', 'enum': ['USD', 'EUR']}
        assert errors_for(fragment, 'USD') == []
        assert errors_for(fragment, 'GBP') == ['Must be one of: USD, EUR']

    def test_constraint_messages_follow_declaration_order(self):
        first = {'type': 'string', 'pattern': '^x', 'minLength': 5}
        second = {'type': 'string', 'minLength': 5, 'pattern': '^x'}

        assert errors_for(first, 'abc') == ['Must match pattern ^x', 'Must be at least 5 characters']
        assert errors_for(second, 'abc') == ['Must be at least 5 characters', 'Must match pattern ^x']

    def test_read_only_fields_are_skipped(self):
        assert errors_for({'type': 'string', 'readOnly': True, 'minLength': 3}, '', required=True) == []

    def test_opaque_field_checks_enum(self):
        assert errors_for({'enum': [1, 2]}, 3) == ['Must be one of: 1, 2']


class TestValidateFields:
    """Test cases for validating a whole collection."""

    def test_overwrites_errors_and_reports_validity(self):
        container = FormField.create('', {'type': 'object'}, {}, kind=KIND_OBJECT)
        container.set_errors(['stale'])
        name = make_field({'type': 'string'}, '', required=True, path='name')
        fields = {'': container, 'name': name}

        validator = Validator()
        assert validator.validate_fields(fields) is False
        assert name.errors == ['Field is required']
        assert container.errors == []

        name.value = 'Ann'
        assert validator.validate_fields(fields) is True
        assert name.errors == []


class TestMessageCatalog:
    """Test cases for message overrides."""

    def test_defaults(self):
        catalog = MessageCatalog()
        assert catalog.format('required') == VALIDATION_MESSAGES['required']
        assert catalog.format('minimum', minimum=3) == 'Must be at least 3'

    def test_override(self):
        catalog = MessageCatalog({'required': 'Please fill in this field'})
        validator = Validator(catalog)
        field = make_field({'type': 'string'}, '', required=True)

        assert validator.validate_field(field) == ['Please fill in this field']

    def test_unknown_override_is_ignored(self):
        catalog = MessageCatalog({'nonsense': 'x'})
        assert 'nonsense' not in catalog.templates

    def test_broken_override_falls_back(self):
        catalog = MessageCatalog({'minimum': 'At least {lower}'})
        assert catalog.format('minimum', minimum=2) == 'Must be at least 2'
