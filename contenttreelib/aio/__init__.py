"""Asynchronous implementation of ContentTreeLib.

This package contains the async content hierarchy mutation engine and
everything it talks to: the document store interface and adapters, the
plugin registry, sibling ordering and plugin reconciliation.
"""

# Core abstractions
from .core import (
    ContentNode,
    AsyncDocumentStore,
    HierarchyNavigator,
    PluginInfo,
    PluginRegistry,
    SchemaValidator,
    Translator,
)

# Adapters
from .adapters import (
    InMemoryDocumentStore,
    StaticPluginRegistry,
    CatalogTranslator,
)
from .caching import CachingPluginRegistry

# Derived-state maintenance
from .sort_order import SortOrderMaintainer
from .plugin_usage import PluginUsageReconciler

# Error handling
from .error_policies import (
    ErrorPolicy,
    FailFastPolicy,
    ContinueOnErrorsPolicy,
    CollectErrorsPolicy,
    ThresholdPolicy,
)
from .error_handling import ErrorHandlingProxy, create_resilient_proxy

# Engine and services
from .engine import ContentTreeEngine, placement_strategy
from .peers import PeerStructureService

# High-level API
from .api import (
    create_engine,
    handle_insert_recursive,
    handle_clone,
)

__all__ = [
    # Core abstractions
    'ContentNode',
    'AsyncDocumentStore',
    'HierarchyNavigator',
    'PluginInfo',
    'PluginRegistry',
    'SchemaValidator',
    'Translator',
    # Adapters
    'InMemoryDocumentStore',
    'StaticPluginRegistry',
    'CatalogTranslator',
    'CachingPluginRegistry',
    # Maintenance
    'SortOrderMaintainer',
    'PluginUsageReconciler',
    # Error handling
    'ErrorPolicy',
    'FailFastPolicy',
    'ContinueOnErrorsPolicy',
    'CollectErrorsPolicy',
    'ThresholdPolicy',
    'ErrorHandlingProxy',
    'create_resilient_proxy',
    # Engine
    'ContentTreeEngine',
    'placement_strategy',
    'PeerStructureService',
    # High-level API
    'create_engine',
    'handle_insert_recursive',
    'handle_clone',
]
