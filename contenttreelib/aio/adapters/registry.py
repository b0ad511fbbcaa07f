"""
Declarative plugin registry.

Serves plugin metadata from plain Python data, which is enough for
embedding the engine in tools and for tests.
"""

from typing import Dict, Iterable, List, Mapping, Optional

from ..core import PluginInfo, PluginRegistry


class StaticPluginRegistry(PluginRegistry):
    """
    Plugin registry backed by in-memory metadata.

    Example:
        registry = StaticPluginRegistry(
            plugins=[
                PluginInfo('adapt-contrib-text', 'component', '_text', ['text-component']),
                PluginInfo('adapt-contrib-trickle', 'extension', '_trickle', ['trickle-article']),
            ],
            schema_targets={'trickle-article': 'article'},
        )
    """

    def __init__(
        self,
        plugins: Optional[Iterable[PluginInfo]] = None,
        schema_targets: Optional[Mapping[str, str]] = None
    ):
        """
        Initialize the registry.

        Args:
            plugins: Installed plugins
            schema_targets: Schema name -> the type it extends
                ('contentobject', 'article', 'block', 'component', 'course', 'config')
        """
        self._plugins: Dict[str, PluginInfo] = {p.name: p for p in plugins or ()}
        self._schema_targets: Dict[str, str] = dict(schema_targets or {})

    def register(self, plugin: PluginInfo, schema_targets: Optional[Mapping[str, str]] = None) -> None:
        """Add or replace a plugin and the targets of its schemas."""
        self._plugins[plugin.name] = plugin
        if schema_targets:
            self._schema_targets.update(schema_targets)

    async def list_extensions(self) -> List[str]:
        return [name for name, p in self._plugins.items() if p.type == 'extension']

    async def schemas_for_plugin(self, plugin: str) -> List[str]:
        info = self._plugins.get(plugin)
        return list(info.schemas) if info else []

    async def target_type_of_schema(self, schema: str) -> Optional[str]:
        return self._schema_targets.get(schema)

    async def get_plugin(self, name: str) -> Optional[PluginInfo]:
        return self._plugins.get(name)
