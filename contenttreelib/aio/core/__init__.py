"""Core abstractions for the async content tree.

This module defines the node record, the document store interface,
query predicates, collaborator interfaces and hierarchy navigation.
"""

from .node import ContentNode, FIELD_NAMES
from .query import Query, IdOrQuery, as_query, matches, sort_documents
from .store import AsyncDocumentStore
from .collaborators import (
    PluginInfo,
    PluginRegistry,
    SchemaValidator,
    Translator,
)
from .navigator import HierarchyNavigator

__all__ = [
    # Node
    'ContentNode',
    'FIELD_NAMES',
    # Queries
    'Query',
    'IdOrQuery',
    'as_query',
    'matches',
    'sort_documents',
    # Store
    'AsyncDocumentStore',
    # Collaborators
    'PluginInfo',
    'PluginRegistry',
    'SchemaValidator',
    'Translator',
    # Navigation
    'HierarchyNavigator',
]
