"""
Field record for the form state engine.

A FormField is one addressable node of the form document: an object or array
container, or a leaf value. Fields are plain mutable records; all state
changes go through the field store so derived flags stay consistent.
"""

from copy import deepcopy
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List
import logging

from deepdiff import DeepDiff

logger = logging.getLogger(__name__)

KIND_OBJECT = "object"
KIND_ARRAY = "array"
KIND_LEAF = "leaf"


def values_equal(value1: Any, value2: Any) -> bool:
    """
    Structural equality for JSON-like values.

    Uses DeepDiff so that type changes count as differences (``1`` vs ``True``
    or ``1`` vs ``1.0``) where plain ``==`` would treat them as equal.
    """
    if value1 is value2:
        return True
    return not DeepDiff(value1, value2)


@dataclass
class FormField:
    """
    One node of the form document.

    Attributes:
        path: Dotted path identifying the node ("" for the document root)
        value: Live value (composed sub-document for containers)
        pristine_value: Baseline used for change detection
        schema_fragment: Schema node describing this path
        kind: "object", "array" or "leaf"
        required: Whether the schema marks the field as mandatory
        errors: Validation messages from the last validate() pass
        dirty: True iff value differs structurally from pristine_value
        dirty_count: Number of value changes since the field was created
        last_modified: Time of the last value change
    """
    path: str
    value: Any
    pristine_value: Any
    schema_fragment: Dict[str, Any]
    kind: str = KIND_LEAF
    required: bool = False
    errors: List[str] = field(default_factory=list)
    dirty: bool = False
    dirty_count: int = 0
    last_modified: datetime = field(default_factory=datetime.now)

    @classmethod
    def create(cls, path: str, schema_fragment: Dict[str, Any], value: Any,
               kind: str = KIND_LEAF, required: bool = False) -> 'FormField':
        """Create a clean field whose pristine value is a copy of ``value``."""
        return cls(
            path=path,
            value=value,
            pristine_value=deepcopy(value),
            schema_fragment=schema_fragment,
            kind=kind,
            required=required,
        )

    @property
    def error_count(self) -> int:
        return len(self.errors)

    @property
    def has_changes(self) -> bool:
        return self.dirty

    @property
    def is_container(self) -> bool:
        return self.kind in (KIND_OBJECT, KIND_ARRAY)

    @property
    def title(self) -> str:
        """Presentation title from the schema, falling back to the last path segment."""
        return self.schema_fragment.get('title') or self.path.rsplit('.', 1)[-1]

    def refresh_dirty(self) -> None:
        self.dirty = not values_equal(self.value, self.pristine_value)

    def assign(self, value: Any) -> bool:
        """
        Set the live value, recording a touch if it actually changed.

        Returns:
            True if the value changed, False if it was structurally equal
        """
        if values_equal(self.value, value):
            return False
        self.value = value
        self.dirty_count += 1
        self.last_modified = datetime.now()
        self.refresh_dirty()
        return True

    def reset_baseline(self, value: Any) -> bool:
        """Set both live and pristine value; used when reverting a subtree."""
        changed = self.assign(value)
        self.pristine_value = deepcopy(value)
        self.dirty = False
        return changed

    def mark_pristine(self) -> None:
        self.pristine_value = deepcopy(self.value)
        self.dirty = False

    def set_errors(self, errors: List[str]) -> None:
        self.errors = list(errors)

    def clear_errors(self) -> None:
        self.errors = []
