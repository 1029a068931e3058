"""
Unit tests for field and field_store modules.
"""

from formstate.field import FormField, values_equal
from formstate.field_store import FieldStore
from test_fixtures import SchemaFixtures


class TestFormField:
    """Test cases for the FormField record."""

    def test_create_copies_pristine(self):
        value = {'a': [1]}
        field = FormField.create('x', {}, value)

        assert field.pristine_value == value
        assert field.pristine_value is not value

    def test_assign_tracks_changes(self):
        field = FormField.create('x', {'type': 'string'}, 'a')
        before = field.last_modified

        assert field.assign('b') is True
        assert field.dirty
        assert field.dirty_count == 1
        assert field.last_modified >= before

        assert field.assign('b') is False
        assert field.dirty_count == 1

    def test_reset_baseline(self):
        field = FormField.create('x', {'type': 'string'}, 'a')
        field.assign('b')

        field.reset_baseline('c')

        assert field.value == 'c'
        assert field.pristine_value == 'c'
        assert not field.dirty
        assert field.dirty_count == 2

    def test_title_falls_back_to_last_segment(self):
        assert FormField.create('contacts.0.phone', {}, '').title == 'phone'
        assert FormField.create('name', {'title': 'Full Name'}, '').title == 'Full Name'

    def test_errors(self):
        field = FormField.create('x', {}, None)
        field.set_errors(['bad'])
        assert field.error_count == 1
        field.clear_errors()
        assert field.errors == []

    def test_values_equal_is_type_strict(self):
        assert values_equal({'a': [1, 2]}, {'a': [1, 2]})
        assert not values_equal(1, True)
        assert not values_equal(1, 1.0)
        assert not values_equal([1, 2], [2, 1])


class TestFieldStore:
    """Test cases for FieldStore internals."""

    def test_branch_and_children(self):
        store = FieldStore(SchemaFixtures.get_nested_schema())

        assert [f.path for f in store.get_branch('address')] == ['address', 'address.street', 'address.city']
        assert [f.path for f in store.get_children('')] == ['name', 'address', 'active']

    def test_propagate_up_recomposes_ancestors(self):
        store = FieldStore(SchemaFixtures.get_nested_schema())
        before = store.get('address').value

        store.assign('address.city', 'Capital City')

        assert store.get('address').value['city'] == 'Capital City'
        assert store.get('').value['address']['city'] == 'Capital City'
        # Copy-on-write: the previous composed value is untouched
        assert before['city'] == 'Springfield'

    def test_element_blocks(self):
        store = FieldStore(SchemaFixtures.get_contacts_schema(),
                           {'contacts': [{'name': 'A'}, {'name': 'B'}]})

        blocks = store.element_blocks('contacts')

        assert [[f.path for f in block] for block in blocks] == [
            ['contacts.0', 'contacts.0.name', 'contacts.0.phone'],
            ['contacts.1', 'contacts.1.name', 'contacts.1.phone'],
        ]

    def test_set_elements_rekeys_and_recomposes(self):
        store = FieldStore(SchemaFixtures.get_tags_schema(), {'tags': ['a', 'b']})
        blocks = store.element_blocks('tags')

        store.set_elements('tags', list(reversed(blocks)))

        assert list(store.fields) == ['', 'tags', 'tags.0', 'tags.1']
        assert store.get('tags.0').value == 'b'
        assert store.get('tags').value == ['b', 'a']
        assert store.get('').value == {'tags': ['b', 'a']}

    def test_materialize_keeps_existing_fields(self):
        store = FieldStore(SchemaFixtures.get_tags_schema(), {'tags': ['a']})
        original = store.get('tags.0')

        store.assign('tags', ['z', 'y'])

        assert store.get('tags.0') is original
        assert original.value == 'z'
        assert original.pristine_value == 'a'
        assert store.get('tags.1').pristine_value == 'y'

    def test_len_and_contains(self):
        store = FieldStore(SchemaFixtures.get_simple_schema())
        assert len(store) == 3
        assert 'name' in store
        assert 'nope' not in store
