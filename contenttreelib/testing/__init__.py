"""Testing utilities for ContentTreeLib.

This module provides public test fixtures for projects that build on
ContentTreeLib and need realistic course trees in their test suites.
"""

from .fixtures import ContentTreeBuilder, assert_sort_orders_contiguous

__all__ = ['ContentTreeBuilder', 'assert_sort_orders_contiguous']
