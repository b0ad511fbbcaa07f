"""Concrete implementations of the collaborator interfaces.

Reference adapters for the document store, plugin registry and
translator, usable in tools and tests.
"""

from .memory import InMemoryDocumentStore
from .registry import StaticPluginRegistry
from .translator import CatalogTranslator

__all__ = [
    'InMemoryDocumentStore',
    'StaticPluginRegistry',
    'CatalogTranslator',
]
