"""
Array field management for the form state engine.

Adds, inserts, deletes and moves array elements. An element is the element
field plus every field beneath it; elements move as whole blocks and are
re-keyed to their new indices, so values, baselines, errors and touch
counters travel with them.
"""

from typing import Any, Callable, List, Optional
import logging

from . import path_utils
from .field import FormField, KIND_ARRAY
from .field_store import FieldStore

logger = logging.getLogger(__name__)


class ArrayFieldManager:
    """
    Structural edits on array fields.

    Args:
        store: Field store to operate on
        notify: Called once per operation with whether anything changed
    """

    def __init__(self, store: FieldStore, notify: Callable[[bool], None]):
        self.store = store
        self._notify = notify

    def _get_array_field(self, array_path: str) -> Optional[FormField]:
        field = self.store.get(array_path)
        if field is None:
            logger.warning(f"Array field not found: {array_path}")
            return None
        if field.kind != KIND_ARRAY:
            logger.warning(f"Field is not an array: {array_path}")
            return None
        return field

    def get_array_length(self, array_path: str) -> int:
        """Number of elements currently indexed under ``array_path`` (0 if not an array)."""
        field = self.store.get(array_path)
        if field is None or field.kind != KIND_ARRAY:
            return 0
        return len(self.store.get_children(array_path))

    def is_valid_array_index(self, array_path: str, index: int) -> bool:
        if isinstance(index, bool) or not isinstance(index, int):
            return False
        return 0 <= index < self.get_array_length(array_path)

    def add_value(self, array_path: str, value: Any = None) -> Optional[str]:
        """
        Append an element to an array.

        Args:
            array_path: Path of the array field
            value: Element value, or None to use the item schema's default

        Returns:
            Path of the new element, or None if ``array_path`` is not an array
        """
        field = self._get_array_field(array_path)
        if field is None:
            return None
        return self._insert(field, self.get_array_length(array_path), value)

    def insert_array_item(self, array_path: str, index: int, value: Any = None) -> Optional[str]:
        """
        Insert an element at ``index``, shifting later elements up.

        The index is clamped into ``[0, length]``.

        Returns:
            Path of the new element, or None if ``array_path`` is not an array
            or ``index`` is not an integer
        """
        field = self._get_array_field(array_path)
        if field is None:
            return None

        if isinstance(index, bool) or not isinstance(index, int):
            logger.warning(f"Cannot insert into '{array_path}': index {index!r} is not an integer")
            return None

        length = self.get_array_length(array_path)
        clamped = max(0, min(index, length))
        if clamped != index:
            logger.debug(f"Clamped insert index {index} to {clamped} for '{array_path}'")
        return self._insert(field, clamped, value)

    def _insert(self, field: FormField, index: int, value: Any) -> str:
        blocks = self.store.element_blocks(field.path)
        new_block = self.store.walker.walk_item(field, index, value)
        blocks.insert(index, new_block)

        self.store.set_elements(field.path, blocks)
        element_path = path_utils.join_path(field.path, index)
        logger.info(f"Inserted element '{element_path}' ({len(new_block)} fields)")
        self._notify(True)
        return element_path

    def delete_value(self, element_path: str) -> int:
        """
        Remove an array element and everything beneath it.

        Later elements shift down one index.

        Returns:
            Number of field entries removed (0 if ``element_path`` is not an
            existing array element)
        """
        array_path = path_utils.parent_path(element_path)
        if array_path is None:
            logger.warning("Cannot delete the document root")
            return 0

        field = self._get_array_field(array_path)
        if field is None:
            return 0

        segment = path_utils.last_segment(element_path)
        if not path_utils.is_index_segment(segment) or str(int(segment)) != segment:
            logger.warning(f"Not an array element path: {element_path}")
            return 0

        blocks = self.store.element_blocks(array_path)
        index = int(segment)
        if index >= len(blocks):
            logger.warning(f"Array index out of range: {element_path}")
            return 0

        removed = blocks.pop(index)
        self.store.set_elements(array_path, blocks)
        logger.info(f"Deleted element '{element_path}' ({len(removed)} fields)")
        self._notify(True)
        return len(removed)

    def move_array_item(self, array_path: str, from_index: int, to_index: int) -> bool:
        """
        Move the element at ``from_index`` to ``to_index``.

        Elements between the two positions shift by one to make room.

        Returns:
            False if the path is not an array or either index is out of range
        """
        field = self._get_array_field(array_path)
        if field is None:
            return False

        blocks = self.store.element_blocks(array_path)
        if not (self._in_range(from_index, len(blocks)) and self._in_range(to_index, len(blocks))):
            logger.warning(f"Cannot move '{array_path}' element {from_index} -> {to_index}: "
                           f"array has {len(blocks)} elements")
            return False

        if from_index == to_index:
            self._notify(False)
            return True

        block: List[FormField] = blocks.pop(from_index)
        blocks.insert(to_index, block)
        self.store.set_elements(array_path, blocks)
        logger.info(f"Moved '{array_path}' element {from_index} -> {to_index}")
        self._notify(True)
        return True

    @staticmethod
    def _in_range(index: Any, length: int) -> bool:
        if isinstance(index, bool) or not isinstance(index, int):
            return False
        return 0 <= index < length
