"""Interfaces for the engine's external collaborators.

The engine consults three services it does not own: a plugin registry
(which plugins exist and which content types their schemas extend), a
translator for placeholder text, and an optional schema validator.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional


@dataclass
class PluginInfo:
    """Registry metadata for one installed plugin.

    Attributes:
        name: Plugin identifier, e.g. 'adapt-contrib-text'
        type: 'component', 'extension', 'menu' or 'theme'
        target_attribute: Attribute the plugin stores its data under, e.g. '_text'
        schemas: Names of the schemas the plugin contributes
    """
    name: str
    type: str
    target_attribute: Optional[str] = None
    schemas: List[str] = field(default_factory=list)


class PluginRegistry(ABC):
    """Read-only view of installed plugins and their schemas."""

    @abstractmethod
    async def list_extensions(self) -> List[str]:
        """Names of every registered extension plugin."""
        pass

    @abstractmethod
    async def schemas_for_plugin(self, plugin: str) -> List[str]:
        """Names of the schemas a plugin contributes (empty if unknown)."""
        pass

    @abstractmethod
    async def target_type_of_schema(self, schema: str) -> Optional[str]:
        """Content type (or 'contentobject') a schema extends, if any."""
        pass

    async def get_plugin(self, name: str) -> Optional[PluginInfo]:
        """Look up a plugin by name.

        Default implementation knows nothing; override to support
        component-specific schema names.
        """
        return None


class Translator(ABC):
    """Localised string lookup."""

    @abstractmethod
    def translate(self, lang: Optional[str], key: str) -> str:
        """Translate ``key`` into ``lang``."""
        pass


class SchemaValidator(ABC):
    """Validates node data against a named schema."""

    @abstractmethod
    async def validate(self, schema_name: str, data: Mapping[str, Any]) -> None:
        """Validate data.

        Raises:
            ValidationFailure: If the data does not satisfy the schema
        """
        pass
