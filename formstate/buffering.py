"""
Buffering and undo operations over the field store.

Tracks the pristine baseline against live values: reverting fields or
branches, committing the current state as the new baseline, and capturing or
restoring snapshots of live values. Every mutating operation reports through
a single notification, however many fields it touches.
"""

from copy import deepcopy
from typing import Any, Callable, Dict, List
import logging

from . import path_utils
from .field import FormField
from .field_store import FieldStore

logger = logging.getLogger(__name__)


class BufferingManager:
    """
    Pristine/live buffering for one field store.

    Args:
        store: Field store to operate on
        notify: Called once per operation with whether anything changed
    """

    def __init__(self, store: FieldStore, notify: Callable[[bool], None]):
        self.store = store
        self._notify = notify

    def revert_field(self, path: str) -> bool:
        """
        Restore the pristine value of a single field.

        Reverting a container also rebuilds its subtree from the container's
        pristine value. Reverting twice has the same effect as reverting once.

        Returns:
            False if the path does not exist, True otherwise
        """
        if path not in self.store:
            logger.warning(f"Cannot revert unknown field: {path}")
            return False

        changed = self.store.revert(path)
        logger.debug(f"Reverted '{path}' (changed={changed})")
        self._notify(changed)
        return True

    def revert_branch(self, prefix: str) -> bool:
        """
        Revert ``prefix`` and every field beneath it.

        Returns:
            False if no field matches the prefix
        """
        targets = [field.path for field in self.store.get_branch(prefix)]
        if not targets:
            logger.warning(f"Cannot revert branch with no fields: {prefix}")
            return False

        changed = self._revert_paths(targets)
        logger.info(f"Reverted branch '{prefix or '<root>'}' ({len(targets)} fields)")
        self._notify(changed)
        return True

    def revert_all(self) -> None:
        """Revert every field to its pristine value."""
        changed = self._revert_paths(list(self.store.fields))
        logger.info("Reverted all fields")
        self._notify(changed)

    def _revert_paths(self, paths: List[str]) -> bool:
        changed = False
        reverted_containers: List[str] = []
        for path in paths:
            # Descendants of a reverted container were rebuilt with it
            if any(path_utils.is_descendant(path, container) for container in reverted_containers):
                continue
            field = self.store.get(path)
            if field is None:
                continue
            changed = self.store.revert(path) or changed
            if field.is_container:
                reverted_containers.append(path)
        return changed

    def set_pristine_values(self) -> None:
        """Make the current live values the new baseline for every field."""
        changed = self.has_unsaved_changes()
        self.store.mark_all_pristine()
        logger.info(f"Committed {len(self.store)} field values as pristine")
        self._notify(changed)

    def has_unsaved_changes(self) -> bool:
        return any(field.dirty for field in self.store.fields.values())

    def get_changed_fields(self) -> List[FormField]:
        return [field for field in self.store.fields.values() if field.dirty]

    def get_changed_paths(self) -> List[str]:
        return [field.path for field in self.store.fields.values() if field.dirty]

    def create_snapshot(self) -> Dict[str, Any]:
        """
        Capture the live value of every field.

        Returns:
            Mapping of path to a deep copy of the field's value
        """
        return {path: deepcopy(field.value) for path, field in self.store.fields.items()}

    def restore_from_snapshot(self, snapshot: Dict[str, Any]) -> None:
        """
        Set every snapshot path that currently exists back to its captured value.

        Paths are applied in snapshot order (containers come before their
        children there) and each one is looked up when it is applied, so a
        container restore that recreates array elements makes their paths
        available to the entries that follow. Fields missing from the
        snapshot are left alone.
        """
        changed = False
        skipped = 0
        for path, value in snapshot.items():
            if path not in self.store:
                skipped += 1
                continue
            changed = self.store.assign(path, value) or changed

        if skipped:
            logger.debug(f"Snapshot restore skipped {skipped} unknown paths")
        logger.info(f"Restored snapshot of {len(snapshot)} paths")
        self._notify(changed)

    def get_change_statistics(self) -> Dict[str, Any]:
        """
        Aggregate change counts over the field collection.

        Returns:
            Dictionary with total_fields, changed_fields, dirty_fields and
            has_unsaved_changes
        """
        changed_fields = 0
        dirty_fields = 0
        for field in self.store.fields.values():
            if field.has_changes:
                changed_fields += 1
            if field.dirty:
                dirty_fields += 1

        return {
            'total_fields': len(self.store),
            'changed_fields': changed_fields,
            'dirty_fields': dirty_fields,
            'has_unsaved_changes': changed_fields > 0
        }
