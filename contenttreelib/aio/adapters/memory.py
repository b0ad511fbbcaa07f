"""
In-memory document store.

A complete AsyncDocumentStore backed by a dict. Every operation yields
to the event loop once, so concurrent engine work interleaves the way
it would against a real database.
"""

import asyncio
import copy
import logging
import uuid
from collections import OrderedDict
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from ...errors import NotFoundError
from ..core import AsyncDocumentStore, ContentNode
from ..core.query import IdOrQuery, Query, as_query, matches, sort_documents


logger = logging.getLogger(__name__)


class InMemoryDocumentStore(AsyncDocumentStore):
    """
    Document store that keeps the whole collection in memory.

    Documents are kept in insertion order, which is the order unsorted
    finds return them in. Operation counters make it easy for tests to
    assert that an idempotent step issued no writes.

    Example:
        store = InMemoryDocumentStore()
        course = await store.insert({'_type': 'course'})
        await store.update(course.id, {'_courseId': course.id})
    """

    def __init__(
        self,
        documents: Optional[Iterable[Mapping[str, Any]]] = None,
        max_concurrent: int = 100,
        id_factory: Optional[Callable[[], str]] = None
    ):
        """
        Initialize the store.

        Args:
            documents: Optional documents to preload (must carry ``_id``)
            max_concurrent: Maximum concurrent operations
            id_factory: Callable producing new ids (uuid4 hex by default)
        """
        super().__init__(max_concurrent=max_concurrent)
        self._documents: 'OrderedDict[str, Dict[str, Any]]' = OrderedDict()
        self._id_factory = id_factory or (lambda: uuid.uuid4().hex)

        # Statistics
        self.find_count = 0
        self.insert_count = 0
        self.update_count = 0
        self.delete_count = 0

        for document in documents or ():
            if '_id' not in document:
                raise ValueError("Preloaded documents must have an _id")
            self._documents[document['_id']] = copy.deepcopy(dict(document))

    async def find(
        self,
        query: Query,
        sort: Optional[Mapping[str, int]] = None
    ) -> List[ContentNode]:
        async with self.semaphore:
            await asyncio.sleep(0)
            self.find_count += 1
            found = [d for d in self._documents.values() if matches(d, query)]
            return [ContentNode.from_document(copy.deepcopy(d)) for d in sort_documents(found, sort)]

    async def insert(self, data: Mapping[str, Any]) -> ContentNode:
        async with self.semaphore:
            await asyncio.sleep(0)
            document = {k: copy.deepcopy(v) for k, v in data.items() if v is not None}
            _id = document.get('_id') or self._id_factory()
            if _id in self._documents:
                raise ValueError(f"Duplicate _id: {_id}")
            document['_id'] = _id
            self._documents[_id] = document
            self.insert_count += 1
            logger.debug("insert _id=%s _type=%s", _id, document.get('_type'))
            return ContentNode.from_document(copy.deepcopy(document))

    async def update(self, id_or_query: IdOrQuery, delta: Mapping[str, Any]) -> ContentNode:
        async with self.semaphore:
            await asyncio.sleep(0)
            document = self._first_match(as_query(id_or_query))
            for key, value in delta.items():
                if key == '_id':
                    continue
                if value is None:
                    document.pop(key, None)
                else:
                    document[key] = copy.deepcopy(value)
            self.update_count += 1
            return ContentNode.from_document(copy.deepcopy(document))

    async def delete(self, id_or_query: IdOrQuery) -> None:
        async with self.semaphore:
            await asyncio.sleep(0)
            document = self._first_match(as_query(id_or_query))
            del self._documents[document['_id']]
            self.delete_count += 1
            logger.debug("delete _id=%s", document['_id'])

    def _first_match(self, query: Dict[str, Any]) -> Dict[str, Any]:
        if '_id' in query and not isinstance(query['_id'], Mapping):
            document = self._documents.get(query['_id'])
            if document is not None and matches(document, query):
                return document
        else:
            for document in self._documents.values():
                if matches(document, query):
                    return document
        raise NotFoundError(data={'query': query})

    # Introspection for tests and debugging

    def documents(self) -> List[Dict[str, Any]]:
        """Snapshot of every stored document."""
        return [copy.deepcopy(d) for d in self._documents.values()]

    def __len__(self) -> int:
        return len(self._documents)

    def __contains__(self, _id: object) -> bool:
        return _id in self._documents

    @property
    def write_count(self) -> int:
        return self.insert_count + self.update_count + self.delete_count

    def reset_stats(self) -> None:
        self.find_count = 0
        self.insert_count = 0
        self.update_count = 0
        self.delete_count = 0

    async def get_stats(self) -> Dict[str, Any]:
        stats = await super().get_stats()
        stats.update({
            'documents': len(self._documents),
            'finds': self.find_count,
            'inserts': self.insert_count,
            'updates': self.update_count,
            'deletes': self.delete_count,
        })
        return stats
