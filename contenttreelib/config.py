"""Configuration system for ContentTreeLib.

This module defines the content type hierarchy shared by every component,
plus the options that control how the mutation engine behaves: which
side effects run after a write, what placeholder content new nodes get,
and how failures in derived-state reconciliation are handled.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional, Tuple


# Content types
COURSE = 'course'
CONFIG = 'config'
MENU = 'menu'
PAGE = 'page'
ARTICLE = 'article'
BLOCK = 'block'
COMPONENT = 'component'

CONTENT_TYPES: FrozenSet[str] = frozenset(
    {COURSE, CONFIG, MENU, PAGE, ARTICLE, BLOCK, COMPONENT}
)

# Types which never carry a _parentId or _sortOrder
ROOT_TYPES: FrozenSet[str] = frozenset({COURSE, CONFIG})

# Types which share the 'contentobject' schema
CONTENT_OBJECT_TYPES: FrozenSet[str] = frozenset({MENU, PAGE})
CONTENT_OBJECT_SCHEMA = 'contentobject'
DEFAULT_SCHEMA_NAME = 'content'

# Canonical ordering used for every type-distance comparison
TYPE_HIERARCHY: Tuple[str, ...] = (COURSE, MENU, PAGE, ARTICLE, BLOCK, COMPONENT)
TYPE_RANK: Dict[str, int] = {t: i for i, t in enumerate(TYPE_HIERARCHY)}

# Which parent types each content type may be placed under
VALID_PARENT_TYPES: Dict[str, FrozenSet[str]] = {
    MENU: frozenset({COURSE, MENU}),
    PAGE: frozenset({COURSE, MENU}),
    ARTICLE: frozenset({PAGE}),
    BLOCK: frozenset({ARTICLE}),
    COMPONENT: frozenset({BLOCK}),
}

# Component layouts within a block
LAYOUT_FULL = 'full'
LAYOUT_LEFT = 'left'
LAYOUT_RIGHT = 'right'

# Friendly id prefixes, keyed by schema class
FRIENDLY_ID_PREFIXES: Dict[str, str] = {
    COURSE: 'm',
    CONTENT_OBJECT_SCHEMA: 'co-',
    ARTICLE: 'a-',
    BLOCK: 'b-',
    COMPONENT: 'c-',
}


def type_rank(content_type: str) -> int:
    """Get the position of a type in the hierarchy.

    Args:
        content_type: One of TYPE_HIERARCHY

    Returns:
        Zero-based rank (course is 0, component is 5)

    Raises:
        ValueError: If the type has no place in the hierarchy (e.g. config)
    """
    try:
        return TYPE_RANK[content_type]
    except KeyError:
        raise ValueError(f"Type '{content_type}' has no rank in the content hierarchy") from None


def schema_class(content_type: Optional[str]) -> Optional[str]:
    """Map a content type onto the schema it validates against."""
    if content_type in CONTENT_OBJECT_TYPES:
        return CONTENT_OBJECT_SCHEMA
    return content_type


def types_between(ancestor_type: str, descendant_type: str) -> List[str]:
    """List the types that must exist below ``ancestor_type`` down to ``descendant_type``.

    Menus are never constructed implicitly, so a chain starting from a
    course or a menu always begins with a page.

    Example:
        >>> types_between('course', 'block')
        ['page', 'article', 'block']
    """
    if ancestor_type in (COURSE, MENU):
        start = TYPE_RANK[PAGE]
    else:
        start = type_rank(ancestor_type) + 1
    end = type_rank(descendant_type)
    return [t for t in TYPE_HIERARCHY[start:end + 1] if t != MENU]


def child_type_of(content_type: str) -> Optional[str]:
    """Get the type a new container directly under ``content_type`` should have."""
    if content_type in (COURSE, MENU):
        return PAGE
    rank = type_rank(content_type)
    if rank + 1 >= len(TYPE_HIERARCHY):
        return None
    return TYPE_HIERARCHY[rank + 1]


class PlacementStrategy(Enum):
    """How a cloned node is placed relative to the requested target.

    Derived from the distance between the source and target types.
    """
    DIRECT_CHILD = "direct_child"     # Target is the expected parent
    DESCEND = "descend"               # Target is a grandparent (or higher)
    ASCEND = "ascend"                 # Target is a peer or a descendant


@dataclass
class PlaceholderContent:
    """Translation keys and defaults applied to nodes built by insert_recursive."""

    title_keys: Dict[str, str] = field(default_factory=lambda: {
        PAGE: 'app.newpagetitle',
        ARTICLE: 'app.newarticletitle',
        BLOCK: 'app.newblocktitle',
        COMPONENT: 'app.newtextcomponenttitle',
    })
    component_body_key: str = 'app.newtextcomponentbody'
    component_plugin: str = 'adapt-contrib-text'
    component_layout: str = LAYOUT_FULL


@dataclass
class MutationOptions:
    """Per-call switches for insert and update."""

    update_sort_order: bool = True
    update_enabled_plugins: bool = True
    schema_name: Optional[str] = None
    validate: bool = True


@dataclass
class EngineConfig:
    """Top-level configuration for ContentTreeEngine.

    Example:
        config = EngineConfig(default_lang='fr', reapply_defaults=False)
        engine = ContentTreeEngine(store, registry, translator, config=config)
    """

    default_lang: str = 'en'
    placeholders: PlaceholderContent = field(default_factory=PlaceholderContent)

    # Values given to a config created by insert_recursive
    default_menu: Optional[str] = None
    default_theme: Optional[str] = None

    # Re-save nodes whose schema gained plugin defaults
    reapply_defaults: bool = True

    # Reject inserts that break the course > page > article > block > component order
    enforce_hierarchy: bool = True

    # ErrorPolicy used for plugin reconciliation (None means fail fast)
    reconcile_error_policy: Optional[Any] = None

    # Concurrency bound for stores created by create_engine()
    max_concurrent: int = 100

    def config_defaults(self) -> Dict[str, Any]:
        """Field values for a newly constructed config node."""
        defaults: Dict[str, Any] = {'_enabledPlugins': []}
        if self.default_menu:
            defaults['_menu'] = self.default_menu
        if self.default_theme:
            defaults['_theme'] = self.default_theme
        return defaults
