"""Query predicates for document stores.

Queries are plain mappings in the familiar document-database form::

    {'_parentId': block_id, '_id': {'$ne': clone_id}}
    {'$or': [{'_courseId': course_id}, {'_id': course_id}]}

Supported: equality, ``$ne``, ``$in``, ``$nin``, ``$exists``, ``$and``,
``$or``. Pure functions only, no I/O.
"""

from typing import Any, Dict, Iterable, List, Mapping, Optional, Union


Query = Mapping[str, Any]
IdOrQuery = Union[str, Query]

_MISSING = object()


def as_query(id_or_query: IdOrQuery) -> Dict[str, Any]:
    """Normalise a bare id into an ``{'_id': id}`` query."""
    if isinstance(id_or_query, Mapping):
        return dict(id_or_query)
    return {'_id': id_or_query}


def matches(document: Mapping[str, Any], query: Query) -> bool:
    """Check whether a document satisfies a query.

    Args:
        document: Stored document
        query: Predicate mapping

    Returns:
        True if every clause matches
    """
    for key, condition in query.items():
        if key == '$and':
            if not all(matches(document, q) for q in condition):
                return False
        elif key == '$or':
            if not any(matches(document, q) for q in condition):
                return False
        elif not _matches_field(document.get(key, _MISSING), condition):
            return False
    return True


def _matches_field(value: Any, condition: Any) -> bool:
    if isinstance(condition, Mapping) and condition and all(k.startswith('$') for k in condition):
        for operator, operand in condition.items():
            if operator == '$ne':
                if _present(value) and value == operand:
                    return False
                if not _present(value) and operand is None:
                    return False
            elif operator == '$in':
                if not _present(value) or value not in operand:
                    return False
            elif operator == '$nin':
                if _present(value) and value in operand:
                    return False
            elif operator == '$exists':
                if _present(value) != bool(operand):
                    return False
            else:
                raise ValueError(f"Unsupported query operator: {operator}")
        return True
    if condition is None:
        return not _present(value)
    return _present(value) and value == condition


def _present(value: Any) -> bool:
    return value is not _MISSING and value is not None


def sort_documents(
    documents: Iterable[Mapping[str, Any]],
    sort: Optional[Mapping[str, int]] = None
) -> List[Mapping[str, Any]]:
    """Sort documents by one or more fields.

    Missing values sort after present ones regardless of direction, so
    nodes without a ``_sortOrder`` end up last.

    Args:
        documents: Documents to sort
        sort: Mapping of field -> 1 (ascending) or -1 (descending)

    Returns:
        New sorted list
    """
    result = list(documents)
    if not sort:
        return result
    # Stable sort, applied from the least significant key
    for key, direction in reversed(list(sort.items())):
        present = [d for d in result if _present(d.get(key))]
        missing = [d for d in result if not _present(d.get(key))]
        present.sort(key=lambda d: d[key], reverse=direction < 0)
        result = present + missing
    return result
