"""Test fixtures for ContentTreeLib consumers.

Builds course trees directly in a document store from compact row
descriptions, bypassing the engine so that tests start from a known
state regardless of engine behaviour.
"""

from collections import defaultdict
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from ..config import COMPONENT, CONFIG, COURSE, ROOT_TYPES, VALID_PARENT_TYPES
from ..aio.core import AsyncDocumentStore, ContentNode

Row = Union[Tuple[str, Optional[str]], Tuple[str, Optional[str], Dict[str, Any]]]

DEFAULT_COMPONENT_PLUGIN = 'adapt-contrib-text'


class ContentTreeBuilder:
    """Builds content trees from rows of ``(type, friendly_id[, fields])``.

    Each row is placed under the most recently built node that may hold
    it, so rows read like an indented outline. Sort orders are assigned
    in row order. A config is created with every course unless the rows
    contain one.

    Example:
        builder = ContentTreeBuilder(store)
        await builder.build([
            ('course', 'm05'),
            ('page', 'co-05'),
            ('article', 'a-05'),
            ('block', 'b-05'),
            ('component', 'c-05', {'_layout': 'full'}),
            ('block', 'b-10'),
        ])
        block = builder.lookup('b-10')
    """

    def __init__(self, store: AsyncDocumentStore):
        self.store = store
        self.nodes: List[ContentNode] = []

    async def build(self, rows: Iterable[Row], lang: Optional[str] = None) -> List[ContentNode]:
        """Insert the rows and return the created nodes in row order.

        Args:
            rows: Outline rows
            lang: Optional ``_lang`` for every node

        Returns:
            Created nodes (configs included)
        """
        rows = [tuple(r) for r in rows]
        has_config = any(r[0] == CONFIG for r in rows)
        created: List[ContentNode] = []
        course: Optional[ContentNode] = None
        child_counts: Dict[str, int] = {}

        for row in rows:
            content_type, friendly_id = row[0], row[1]
            fields = dict(row[2]) if len(row) > 2 else {}

            data: Dict[str, Any] = {'_type': content_type}
            if friendly_id:
                data['_friendlyId'] = friendly_id
            if lang:
                data['_lang'] = lang
            if content_type == COMPONENT:
                data['_component'] = DEFAULT_COMPONENT_PLUGIN

            if content_type in ROOT_TYPES:
                if content_type == CONFIG:
                    data['_courseId'] = course.id if course else None
                    data['_enabledPlugins'] = []
                data.update(fields)
                node = await self.store.insert(data)
                if content_type == COURSE:
                    node = await self.store.update(node.id, {'_courseId': fields.get('_courseId', node.id)})
                    course = node
                    if not has_config:
                        created.append(node)
                        self.nodes.append(node)
                        node = await self.store.insert({
                            '_type': CONFIG, '_courseId': node.id, '_enabledPlugins': []
                        })
            else:
                parent = self._latest_parent_for(content_type, created)
                child_counts[parent.id] = child_counts.get(parent.id, 0) + 1
                data.update({
                    '_parentId': parent.id,
                    '_courseId': parent.owning_course_id,
                    '_sortOrder': child_counts[parent.id],
                })
                data.update(fields)
                node = await self.store.insert(data)

            created.append(node)
            self.nodes.append(node)
        return created

    def _latest_parent_for(self, content_type: str, created: Sequence[ContentNode]) -> ContentNode:
        valid = VALID_PARENT_TYPES[content_type]
        for node in reversed(created):
            if node.type in valid:
                return node
        raise ValueError(f"No preceding row can hold a '{content_type}'")

    def lookup(self, identifier: str, **constraints: Any) -> Optional[ContentNode]:
        """Find a built node by ``_id`` or ``_friendlyId``.

        Args:
            identifier: Id or friendly id
            **constraints: Attribute values the node must also have (e.g. lang='fr')

        Returns:
            The first matching node as built (not refreshed from the store)
        """
        for node in self.nodes:
            if identifier not in (node.id, node.friendly_id):
                continue
            if all(getattr(node, k) == v for k, v in constraints.items()):
                return node
        return None

    async def fetch(self, identifier: str, **constraints: Any) -> Optional[ContentNode]:
        """Like ``lookup`` but returns the node's current state in the store."""
        node = self.lookup(identifier, **constraints)
        if node is None:
            return None
        return await self.store.find_one({'_id': node.id})


async def assert_sort_orders_contiguous(store: AsyncDocumentStore) -> None:
    """Assert that every sibling group in ``store`` is numbered 1..N."""
    groups: Dict[str, List[Optional[int]]] = defaultdict(list)
    for node in await store.find({'_parentId': {'$exists': True}}):
        groups[node.parent_id].append(node.sort_order)
    for parent_id, orders in groups.items():
        assert sorted(o or 0 for o in orders) == list(range(1, len(orders) + 1)), (
            f"Siblings under {parent_id} have sort orders {orders}"
        )
