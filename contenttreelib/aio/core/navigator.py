"""Hierarchy navigation over a document store.

Read-only helpers used by the mutation engine to enumerate subtrees and
to locate the nearest node of a given type above or below a target.
"""

import logging
from typing import List, Optional, Set

from ...config import CONFIG, COURSE
from ...errors import InvalidParentError
from .node import ContentNode
from .store import AsyncDocumentStore


logger = logging.getLogger(__name__)


class HierarchyNavigator:
    """Walks the content hierarchy through an AsyncDocumentStore.

    All lookups are by ``_parentId``/``_id``; the navigator never writes.
    """

    def __init__(self, store: AsyncDocumentStore):
        self.store = store

    async def get_children(
        self,
        node: ContentNode,
        exclude_id: Optional[str] = None
    ) -> List[ContentNode]:
        """Get the direct children of a node, ordered by ``_sortOrder``.

        Args:
            node: Parent node
            exclude_id: Optional id to leave out of the result

        Returns:
            Children in sibling order
        """
        query = {'_parentId': node.id}
        if exclude_id is not None:
            query['_id'] = {'$ne': exclude_id}
        return await self.store.find(query, sort={'_sortOrder': 1})

    async def get_descendants(self, root: ContentNode) -> List[ContentNode]:
        """Get every node transitively parented under ``root``.

        Fetches the course's nodes once and expands the frontier level by
        level in memory. A master course root also gets its config appended.

        Args:
            root: Subtree root

        Returns:
            Descendants in breadth-first order (root excluded)
        """
        course_nodes = await self.store.find({'_courseId': root.owning_course_id})

        descendants: List[ContentNode] = []
        frontier: Set[str] = {root.id}
        seen: Set[str] = {root.id}
        while frontier:
            level = [
                n for n in course_nodes
                if n.parent_id in frontier and n.id not in seen
            ]
            descendants.extend(level)
            frontier = {n.id for n in level}
            seen.update(frontier)

        # Language peers share the master config
        if root.type == COURSE and root.owning_course_id == root.id:
            config = await self.store.find_one({'_type': CONFIG, '_courseId': root.id})
            if config is not None and config.id not in seen:
                descendants.append(config)

        logger.debug("get_descendants(%s) -> %d nodes", root.id, len(descendants))
        return descendants

    async def descend_to_type(self, node: ContentNode, target_type: str) -> ContentNode:
        """Follow last-sorted children downwards until ``target_type`` is reached.

        Args:
            node: Starting node
            target_type: Type to look for

        Returns:
            The first node of ``target_type`` on the path, or the deepest
            node reached when the path ends before that type
        """
        current = node
        while True:
            children = await self.get_children(current)
            if not children:
                return current
            last_child = children[-1]
            if last_child.type == target_type:
                return last_child
            current = last_child

    async def ascend_to_type(
        self,
        node: ContentNode,
        target_type: str,
        include_self: bool = False
    ) -> ContentNode:
        """Follow ``_parentId`` upwards until a node of ``target_type`` is found.

        Args:
            node: Starting node
            target_type: Type to look for
            include_self: Whether ``node`` itself may be the match

        Raises:
            InvalidParentError: If the chain ends without a match
        """
        if include_self and node.type == target_type:
            return node

        current = node
        while True:
            if current.parent_id is None:
                raise InvalidParentError(data={'parentId': None, 'type': target_type})
            parent = await self.store.find_one({'_id': current.parent_id})
            if parent is None:
                raise InvalidParentError(data={'parentId': current.parent_id, 'type': target_type})
            if parent.type == target_type:
                return parent
            current = parent

    async def is_within(self, node: ContentNode, ancestor_id: str) -> bool:
        """Check whether ``node`` is ``ancestor_id`` or lies beneath it."""
        current: Optional[ContentNode] = node
        visited: Set[str] = set()
        while current is not None and current.id not in visited:
            if current.id == ancestor_id:
                return True
            visited.add(current.id)
            if current.parent_id is None:
                return False
            current = await self.store.find_one({'_id': current.parent_id})
        return False
