"""
Plugin usage reconciliation.

A course's config lists every plugin the course depends on. That list is
derived state: it is the union of the extensions the author switched on,
the plugins behind every component in the course, and the configured
menu and theme. PluginUsageReconciler recomputes it after structural
changes and re-saves the content objects whose schemas a newly enabled
plugin extends, so the store can fill in that plugin's defaults.
"""

import asyncio
import logging
from typing import List, Optional

from ..config import (
    COMPONENT,
    CONFIG,
    CONTENT_OBJECT_SCHEMA,
    CONTENT_OBJECT_TYPES,
)
from .core import AsyncDocumentStore, ContentNode, PluginRegistry


logger = logging.getLogger(__name__)


class PluginUsageReconciler:
    """
    Keeps ``config._enabledPlugins`` in step with course content.

    Example:
        reconciler = PluginUsageReconciler(store, registry)
        await reconciler.update_enabled_plugins(component_node)
    """

    def __init__(
        self,
        store: AsyncDocumentStore,
        registry: PluginRegistry,
        reapply_defaults: bool = True
    ):
        """
        Initialize the reconciler.

        Args:
            store: Document store holding the course
            registry: Source of plugin and schema metadata
            reapply_defaults: Re-save affected content objects after a
                plugin is newly enabled
        """
        self.store = store
        self.registry = registry
        self.reapply_defaults = reapply_defaults

    async def update_enabled_plugins(
        self,
        item: ContentNode,
        force_update: bool = False
    ) -> Optional[List[str]]:
        """
        Recompute the enabled plugin list for the course ``item`` belongs to.

        Args:
            item: Any node of the course (only its course id is used)
            force_update: Persist and re-apply defaults for every enabled
                plugin even when the list has not changed

        Returns:
            The new plugin list, or None when nothing was written
        """
        course_id = item.owning_course_id
        if not course_id:
            return None

        course_nodes = await self.store.find({'_courseId': course_id})
        config = next((n for n in course_nodes if n.type == CONFIG), None)
        if config is None:
            # Course not fully constructed yet
            return None

        current = list(config.enabled_plugins or [])
        extensions = set(await self.registry.list_extensions())
        candidates = (
            [p for p in current if p in extensions]
            + [n.component for n in course_nodes if n.type == COMPONENT]
            + [config.menu, config.theme]
        )
        enabled: List[str] = []
        for plugin in candidates:
            if plugin and plugin not in enabled:
                enabled.append(plugin)

        if not force_update and len(current) == len(enabled) and set(current) == set(enabled):
            return None

        added = enabled if force_update else [p for p in enabled if p not in current]
        types = await self._types_extended_by(added)

        await self.store.update({'_courseId': course_id, '_type': CONFIG}, {'_enabledPlugins': enabled})
        logger.info("Enabled plugins for course %s: %s", course_id, enabled)

        if types and self.reapply_defaults:
            affected = await self.store.find({'_courseId': course_id, '_type': {'$in': types}})
            # Empty delta: a re-save so the store applies the new schema defaults
            await asyncio.gather(*(self.store.update(n.id, {}) for n in affected))
            logger.debug("Re-applied defaults to %d nodes of types %s", len(affected), types)
        return enabled

    async def _types_extended_by(self, plugins: List[str]) -> List[str]:
        """Content types whose schemas the given plugins extend, components excluded."""
        types: List[str] = []
        for plugin in plugins:
            for schema in await self.registry.schemas_for_plugin(plugin):
                target = await self.registry.target_type_of_schema(schema)
                if target == CONTENT_OBJECT_SCHEMA:
                    resolved = sorted(CONTENT_OBJECT_TYPES)
                else:
                    resolved = [target]
                for content_type in resolved:
                    if content_type and content_type != COMPONENT and content_type not in types:
                        types.append(content_type)
        return types
