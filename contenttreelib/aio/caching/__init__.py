"""
Caching layer for ContentTreeLib - Optional performance optimization.

Wraps a plugin registry in a TTL cache so that repeated plugin
reconciliation does not hit the registry on every structural change.
"""

from .adapter import CachingPluginRegistry

__all__ = [
    'CachingPluginRegistry',
]
