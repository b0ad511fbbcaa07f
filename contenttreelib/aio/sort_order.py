"""Sibling ordering maintenance.

Keeps ``_sortOrder`` contiguous (1..N) within every sibling group. The
renumbering only writes values that actually change, so running it twice
is harmless and a caller-level retry after a conflict is safe.
"""

import asyncio
import logging
from typing import Any, List, Mapping, Optional

from ..config import ROOT_TYPES
from .core import AsyncDocumentStore, ContentNode


logger = logging.getLogger(__name__)


class SortOrderMaintainer:
    """Renumbers sibling groups after inserts, updates and deletes."""

    def __init__(self, store: AsyncDocumentStore):
        self.store = store

    async def find_siblings(self, item: ContentNode) -> List[ContentNode]:
        """Get the siblings of ``item`` (itself excluded), ordered by ``_sortOrder``."""
        return await self.store.find(
            {'_parentId': item.parent_id, '_id': {'$ne': item.id}},
            sort={'_sortOrder': 1}
        )

    async def update_sort_order(
        self,
        item: ContentNode,
        update_data: Optional[Mapping[str, Any]] = None
    ) -> int:
        """Recalculate ``_sortOrder`` for the sibling group ``item`` belongs to.

        With ``update_data`` (insert/update), ``item`` is spliced into its
        siblings at ``item.sort_order - 1``, or appended when it has no
        usable position. Without it (delete), the remaining siblings are
        simply closed up.

        Args:
            item: The inserted, updated or deleted node
            update_data: The write that affected ``item``, if any

        Returns:
            Number of nodes whose ``_sortOrder`` was rewritten
        """
        if item.type in ROOT_TYPES or not item.parent_id:
            return 0

        siblings = await self.find_siblings(item)
        if update_data is not None:
            index = item.sort_order - 1 if item.sort_order is not None and item.sort_order - 1 >= 0 else len(siblings)
            siblings.insert(index, item)

        changed = [
            (node, position)
            for position, node in enumerate(siblings, start=1)
            if node.sort_order != position
        ]
        if changed:
            await asyncio.gather(*(
                self.store.update(node.id, {'_sortOrder': position})
                for node, position in changed
            ))
            logger.debug("Renumbered %d of %d siblings under %s", len(changed), len(siblings), item.parent_id)
        return len(changed)
