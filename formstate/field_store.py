"""
Flat, path-keyed field store.

The store owns the insertion-ordered ``path -> FormField`` mapping and keeps
it consistent: container values are composed from their children, ancestors
are refreshed after every change, and subtrees are re-materialised through
the schema walker when a container receives a new value. Notification is
left to the caller so compound operations can be batched.
"""

from copy import deepcopy
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional
import logging

from . import path_utils
from .field import FormField, KIND_ARRAY, KIND_OBJECT
from .schema_loader import normalize_schema
from .schema_walker import MISSING, SchemaWalker

logger = logging.getLogger(__name__)


class FieldStore:
    """
    Owns the field collection of one form model.

    Attributes:
        schema: Normalised root schema
        walker: Schema walker used to (re-)materialise subtrees
    """

    def __init__(self, schema: Dict[str, Any], initial_values: Optional[Dict[str, Any]] = None,
                 walker: Optional[SchemaWalker] = None):
        self.schema = normalize_schema(schema)
        self.walker = walker or SchemaWalker()

        root_value = MISSING if initial_values is None else deepcopy(initial_values)
        fields = self.walker.walk(self.schema, path_utils.ROOT_PATH, root_value)

        self._fields: Dict[str, FormField] = {field.path: field for field in fields}
        self._view = MappingProxyType(self._fields)
        logger.debug(f"Field store built with {len(self._fields)} fields")

    def __len__(self) -> int:
        return len(self._fields)

    def __contains__(self, path: str) -> bool:
        return path in self._fields

    @property
    def fields(self) -> Mapping[str, FormField]:
        """Read-only live view of the field collection."""
        return self._view

    def get(self, path: str) -> Optional[FormField]:
        return self._fields.get(path)

    def get_children(self, path: str) -> List[FormField]:
        """Direct children of ``path`` in collection order."""
        return [field for child_path, field in self._fields.items()
                if path_utils.parent_path(child_path) == path]

    def get_branch(self, path: str) -> List[FormField]:
        """``path`` and all of its descendants in collection order."""
        return [field for branch_path, field in self._fields.items()
                if path_utils.in_branch(branch_path, path)]

    def assign(self, path: str, value: Any) -> bool:
        """
        Set the value at ``path`` and refresh everything derived from it.

        Args:
            path: Existing field path
            value: New value (copied; the caller keeps ownership)

        Returns:
            True if anything in the collection changed
        """
        field = self._fields[path]
        value = deepcopy(value)

        if field.is_container:
            return self.materialize(path, value)

        if not field.assign(value):
            return False
        logger.debug(f"Set '{path}' (dirty={field.dirty}, touches={field.dirty_count})")
        self.propagate_up(path)
        return True

    def revert(self, path: str) -> bool:
        """
        Restore the pristine value at ``path``.

        Leaves take their pristine value back. Containers re-materialise
        their subtree from their own pristine value, resetting descendants'
        baselines too, so structural edits below them are undone.

        Returns:
            True if anything in the collection changed
        """
        field = self._fields[path]
        pristine = deepcopy(field.pristine_value)

        if field.is_container:
            return self.materialize(path, pristine, baseline=True)

        if not field.assign(pristine):
            return False
        self.propagate_up(path)
        return True

    def mark_all_pristine(self) -> None:
        for field in self._fields.values():
            field.mark_pristine()

    def materialize(self, path: str, value: Any, baseline: bool = False) -> bool:
        """
        Re-walk the subtree at container ``path`` against ``value``.

        Existing descendants are updated in place so they keep their
        pristine values, errors and touch counters (or, with ``baseline``,
        get ``value`` as their new pristine value too). Descendants the new
        value introduces are created clean; those it no longer has are
        dropped.

        Returns:
            True if anything in the collection changed
        """
        container = self._fields[path]
        walked = self.walker.walk(container.schema_fragment, path, value, container.required)

        changed = False
        block: List[FormField] = []
        for new_field in walked:
            existing = self._fields.get(new_field.path)
            if existing is None:
                block.append(new_field)
                changed = True
                continue
            if baseline:
                was_dirty = existing.dirty
                changed = existing.reset_baseline(new_field.value) or was_dirty or changed
            else:
                changed = existing.assign(new_field.value) or changed
            block.append(existing)

        kept_paths = {field.path for field in block}
        dropped = [p for p in self._fields if path_utils.is_descendant(p, path) and p not in kept_paths]
        if dropped:
            changed = True
            logger.debug(f"Dropping {len(dropped)} fields beneath '{path}'")

        self.replace_branch(path, block)
        if changed:
            self.propagate_up(path)
        return changed

    def propagate_up(self, path: str) -> None:
        """Recompose every ancestor's value after the field at ``path`` changed."""
        child = self._fields[path]
        ancestor_path = path_utils.parent_path(path)

        while ancestor_path is not None:
            ancestor = self._fields.get(ancestor_path)
            if ancestor is None:
                break

            segment = path_utils.last_segment(child.path)
            if ancestor.kind == KIND_OBJECT:
                composed = dict(ancestor.value) if isinstance(ancestor.value, dict) else {}
                composed[segment] = child.value
            elif ancestor.kind == KIND_ARRAY:
                composed = list(ancestor.value) if isinstance(ancestor.value, list) else []
                index = int(segment)
                if index < len(composed):
                    composed[index] = child.value
                else:
                    composed.append(child.value)
            else:
                break

            if not ancestor.assign(composed):
                break
            child = ancestor
            ancestor_path = path_utils.parent_path(ancestor_path)

    def replace_branch(self, path: str, block: Iterable[FormField]) -> None:
        """
        Swap the entries of ``path`` and its descendants for ``block``.

        The new ordering is computed completely before the collection is
        touched. The block takes the position of the old branch.
        """
        block = list(block)
        ordered = []
        inserted = False
        for field_path, field in self._fields.items():
            if path_utils.in_branch(field_path, path):
                if not inserted:
                    ordered.extend((f.path, f) for f in block)
                    inserted = True
                continue
            ordered.append((field_path, field))
        if not inserted:
            ordered.extend((f.path, f) for f in block)

        # Mutate in place so the read-only view stays live
        self._fields.clear()
        self._fields.update(ordered)

    def element_blocks(self, array_path: str) -> List[List[FormField]]:
        """
        Group the fields beneath an array by element.

        Returns:
            One list per element in index order, element field first
        """
        blocks: Dict[int, List[FormField]] = {}
        for field_path, field in self._fields.items():
            index = path_utils.element_index(field_path, array_path)
            if index is not None:
                blocks.setdefault(index, []).append(field)
        return [blocks[index] for index in sorted(blocks)]

    def set_elements(self, array_path: str, blocks: List[List[FormField]]) -> None:
        """
        Install ``blocks`` as the elements of the array at ``array_path``.

        Every block is re-keyed to its position in the list (its fields keep
        their values, baselines, errors and touch counters). The array's
        value is recomposed from the element fields and ancestors are
        refreshed.
        """
        container = self._fields[array_path]

        rekeyed: List[FormField] = [container]
        for index, block in enumerate(blocks):
            for field in block:
                new_path = path_utils.rekey_path(field.path, array_path, index)
                if new_path != field.path:
                    logger.debug(f"Re-keying '{field.path}' -> '{new_path}'")
                    field.path = new_path
                rekeyed.append(field)

        self.replace_branch(array_path, rekeyed)

        if container.assign([block[0].value for block in blocks]):
            self.propagate_up(array_path)
