"""Content node record.

Defines the typed view of a document in the content collection.
Known attributes are real dataclass fields; anything a plugin schema
adds (title, body, ...) lives in ``extras`` so it survives round trips.
"""

from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Mapping, Optional

from ...config import CONFIG, COURSE, ROOT_TYPES, schema_class


# Document (wire) name -> attribute name
FIELD_NAMES: Dict[str, str] = {
    '_id': 'id',
    '_type': 'type',
    '_parentId': 'parent_id',
    '_courseId': 'course_id',
    '_sortOrder': 'sort_order',
    '_layout': 'layout',
    '_component': 'component',
    '_enabledPlugins': 'enabled_plugins',
    '_menu': 'menu',
    '_theme': 'theme',
    '_trackingId': 'tracking_id',
    'createdBy': 'created_by',
    '_friendlyId': 'friendly_id',
    '_lang': 'lang',
}
ATTRIBUTE_NAMES: Dict[str, str] = {v: k for k, v in FIELD_NAMES.items()}


@dataclass
class ContentNode:
    """A single node of a course's content hierarchy.

    Nodes are snapshots: the store hands out fresh instances, so mutating
    one never changes what is persisted. Use ``to_document()`` to build
    write payloads.
    """

    id: Optional[str] = None
    type: Optional[str] = None
    parent_id: Optional[str] = None
    course_id: Optional[str] = None
    sort_order: Optional[int] = None
    layout: Optional[str] = None
    component: Optional[str] = None
    enabled_plugins: Optional[List[str]] = None
    menu: Optional[str] = None
    theme: Optional[str] = None
    tracking_id: Optional[str] = None
    created_by: Optional[str] = None
    friendly_id: Optional[str] = None
    lang: Optional[str] = None
    extras: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> 'ContentNode':
        """Build a node from a stored document."""
        known: Dict[str, Any] = {}
        extras: Dict[str, Any] = {}
        for key, value in document.items():
            if key in FIELD_NAMES:
                known[FIELD_NAMES[key]] = value
            else:
                extras[key] = value
        if known.get('enabled_plugins') is not None:
            known['enabled_plugins'] = list(known['enabled_plugins'])
        return cls(extras=extras, **known)

    def to_document(self) -> Dict[str, Any]:
        """Convert to a document, omitting unset fields."""
        document: Dict[str, Any] = {}
        for f in fields(self):
            if f.name == 'extras':
                continue
            value = getattr(self, f.name)
            if value is None:
                continue
            document[ATTRIBUTE_NAMES[f.name]] = list(value) if isinstance(value, list) else value
        document.update(self.extras)
        return document

    def get(self, key: str, default: Any = None) -> Any:
        """Read a field by its document name (``_sortOrder``, ``title``...)."""
        if key in FIELD_NAMES:
            value = getattr(self, FIELD_NAMES[key])
            return default if value is None else value
        return self.extras.get(key, default)

    @property
    def is_root(self) -> bool:
        """Course and config nodes have no parent and no sort order."""
        return self.type in ROOT_TYPES

    @property
    def schema_class(self) -> Optional[str]:
        return schema_class(self.type)

    @property
    def owning_course_id(self) -> Optional[str]:
        """The course id that children of this node should carry.

        A course that has not been back-patched yet falls back to its own
        id; language peers of a course carry the master course id.
        """
        if self.type == COURSE and not self.course_id:
            return self.id
        return self.course_id

    def display_name(self) -> str:
        """Human-readable label for logs."""
        title = self.extras.get('displayTitle') or self.extras.get('title') or '<untitled>'
        return f"{title} [{self.type}] [{self.id}]"

    def __repr__(self) -> str:
        parts = [f"id={self.id!r}", f"type={self.type!r}"]
        if self.type != CONFIG and self.parent_id is not None:
            parts.append(f"parent_id={self.parent_id!r}")
        if self.sort_order is not None:
            parts.append(f"sort_order={self.sort_order!r}")
        if self.friendly_id:
            parts.append(f"friendly_id={self.friendly_id!r}")
        return f"{self.__class__.__name__}({', '.join(parts)})"
