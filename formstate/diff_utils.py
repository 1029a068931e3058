"""
Diff utilities for the form state engine.

Compares the pristine document with the live document using DeepDiff and
reports the differences keyed by dotted field path, so they can be matched
directly against the field collection.
"""

from typing import Any, Dict, List
import logging

from deepdiff import DeepDiff

from . import path_utils

logger = logging.getLogger(__name__)

CHANGE_SECTIONS = ('values_changed', 'items_added', 'items_removed', 'type_changes')

# DeepDiff report types folded into each summary section
_ADDED_REPORTS = ('dictionary_item_added', 'iterable_item_added')
_REMOVED_REPORTS = ('dictionary_item_removed', 'iterable_item_removed')


def diff_path(path_tokens: List[Any]) -> str:
    """
    Convert a DeepDiff path token list to a dotted field path.

    Example:
        ['contacts', 0, 'phone'] -> 'contacts.0.phone'
    """
    path = path_utils.ROOT_PATH
    for token in path_tokens:
        path = path_utils.join_path(path, token)
    return path


def calculate_diff(original: Any, modified: Any) -> Dict[str, Dict[str, Any]]:
    """
    Calculate the differences between two documents.

    List elements are compared by position (order matters, since element
    order is part of the form state).

    Args:
        original: Baseline document
        modified: Current document

    Returns:
        Dict with any of these sections (empty sections are omitted):
        - values_changed: {path: {"old_value", "new_value"}}
        - items_added: {path: value}
        - items_removed: {path: value}
        - type_changes: {path: {"old_value", "new_value"}}
    """
    tree = DeepDiff(original, modified, view='tree')

    result: Dict[str, Dict[str, Any]] = {}

    for report_type in ('values_changed', 'type_changes'):
        for item in tree.get(report_type, []):
            path = diff_path(item.path(output_format='list'))
            result.setdefault(report_type, {})[path] = {
                'old_value': item.t1,
                'new_value': item.t2
            }

    for report_type in _ADDED_REPORTS:
        for item in tree.get(report_type, []):
            path = diff_path(item.path(output_format='list'))
            result.setdefault('items_added', {})[path] = item.t2

    for report_type in _REMOVED_REPORTS:
        for item in tree.get(report_type, []):
            path = diff_path(item.path(output_format='list'))
            result.setdefault('items_removed', {})[path] = item.t1

    logger.debug(f"Calculated diff with {count_changes(result)} changes")
    return result


def has_changes(diff: Dict[str, Any]) -> bool:
    """Check if a diff from calculate_diff reports any change."""
    return any(diff.get(section) for section in CHANGE_SECTIONS)


def count_changes(diff: Dict[str, Any]) -> int:
    """Total number of changed paths across all sections of a diff."""
    return sum(len(diff.get(section, {})) for section in CHANGE_SECTIONS)
