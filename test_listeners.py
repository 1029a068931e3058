"""
Unit tests for listeners module.
"""

import logging
from unittest.mock import MagicMock

from formstate.field import FormField
from formstate.listeners import ListenerRegistry


def make_fields():
    return {'name': FormField.create('name', {'type': 'string'}, 'Ann')}


class TestListenerRegistry:
    """Test cases for ListenerRegistry."""

    def test_notify_calls_listeners_in_registration_order(self):
        registry = ListenerRegistry()
        order = []
        registry.add(lambda fields: order.append('first'))
        registry.add(lambda fields: order.append('second'))

        registry.notify(make_fields())

        assert order == ['first', 'second']

    def test_listener_gets_copy_of_collection(self):
        registry = ListenerRegistry()
        listener = MagicMock()
        registry.add(listener)
        fields = make_fields()

        registry.notify(fields)

        received = listener.call_args[0][0]
        assert received == fields
        assert received is not fields

    def test_remove_drops_one_registration(self):
        registry = ListenerRegistry()
        listener = MagicMock()
        registry.add(listener)
        registry.add(listener)

        assert registry.remove(listener) is True
        assert len(registry) == 1
        registry.notify(make_fields())
        assert listener.call_count == 1

    def test_remove_unknown_listener(self):
        assert ListenerRegistry().remove(MagicMock()) is False

    def test_failing_listener_does_not_stop_others(self, caplog):
        registry = ListenerRegistry()
        survivor = MagicMock()
        registry.add(MagicMock(side_effect=RuntimeError("boom")))
        registry.add(survivor)

        with caplog.at_level(logging.ERROR):
            registry.notify(make_fields())

        assert survivor.call_count == 1
        assert 'Error in form change listener' in caplog.text

    def test_nested_notify_is_deferred_and_coalesced(self):
        registry = ListenerRegistry()
        fields = make_fields()
        calls = []

        def reentrant(received):
            calls.append(len(calls))
            if len(calls) == 1:
                registry.notify(fields)
                registry.notify(fields)
                # Nested calls must not run before this listener returns
                assert len(calls) == 1

        registry.add(reentrant)
        registry.notify(fields)

        assert calls == [0, 1]

    def test_listener_removed_during_notification(self):
        registry = ListenerRegistry()
        second = MagicMock()

        def remove_second(fields):
            registry.remove(second)

        registry.add(remove_second)
        registry.add(second)
        registry.notify(make_fields())

        # The round in progress still reaches every listener registered when it began
        assert second.call_count == 1
        registry.notify(make_fields())
        assert second.call_count == 1
