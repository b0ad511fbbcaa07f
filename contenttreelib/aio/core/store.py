"""Async document store abstraction.

Defines how the mutation engine talks to persistence. The store is a
plain collection keyed by ``_id``: it has no hierarchy logic of its own,
which keeps every lifecycle rule inside the engine.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Optional

from .node import ContentNode
from .query import IdOrQuery, Query


class AsyncDocumentStore(ABC):
    """Abstract base class for async document stores.

    Implementations must be strongly consistent per document and per
    query: a find issued after an awaited write sees that write.
    """

    def __init__(self, max_concurrent: int = 100):
        """Initialize store with concurrency control.

        Args:
            max_concurrent: Maximum concurrent store operations
        """
        self.max_concurrent = max_concurrent
        self.semaphore = asyncio.Semaphore(max_concurrent)

    @abstractmethod
    async def find(
        self,
        query: Query,
        sort: Optional[Mapping[str, int]] = None
    ) -> List[ContentNode]:
        """Find all nodes matching a query.

        Args:
            query: Predicate mapping (see ``query.matches``)
            sort: Optional mapping of field -> 1/-1

        Returns:
            Matching nodes
        """
        pass

    @abstractmethod
    async def insert(self, data: Mapping[str, Any]) -> ContentNode:
        """Persist a new document.

        Args:
            data: Document fields; ``_id`` is assigned by the store

        Returns:
            The stored node including its new ``_id``
        """
        pass

    @abstractmethod
    async def update(self, id_or_query: IdOrQuery, delta: Mapping[str, Any]) -> ContentNode:
        """Shallow-merge ``delta`` into the first matching document.

        A ``None`` value removes the field. An empty delta is a valid
        re-save.

        Raises:
            NotFoundError: If nothing matches
        """
        pass

    @abstractmethod
    async def delete(self, id_or_query: IdOrQuery) -> None:
        """Delete the first matching document.

        Raises:
            NotFoundError: If nothing matches
        """
        pass

    # Optional methods with default implementations

    async def find_one(self, query: Query) -> Optional[ContentNode]:
        """Get the first node matching a query, or None."""
        results = await self.find(query)
        return results[0] if results else None

    async def get_stats(self) -> Dict[str, Any]:
        """Get store statistics.

        Returns:
            Dictionary of statistics (operation counts etc.)
        """
        return {
            'max_concurrent': self.max_concurrent,
            'available_permits': self.semaphore._value if hasattr(self.semaphore, '_value') else None,
        }

    async def close(self):
        """Clean up store resources.

        Override if the store holds connections.
        """
        pass

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()
