"""High-level async API for ContentTreeLib.

Framework-free entry points for the two mutating requests a content API
exposes (bootstrapping placeholder content and clone/paste), plus a
factory that wires an engine with sensible defaults. Request functions
take plain dicts and return JSON-ready documents, leaving routing,
authentication and status codes to the caller.
"""

from typing import Any, Dict, List, Mapping, Optional

from ..config import MENU, EngineConfig
from .adapters import CatalogTranslator, InMemoryDocumentStore, StaticPluginRegistry
from .caching import CachingPluginRegistry
from .core import AsyncDocumentStore, PluginRegistry, SchemaValidator, Translator
from .engine import ContentTreeEngine


def create_engine(
    store: Optional[AsyncDocumentStore] = None,
    registry: Optional[PluginRegistry] = None,
    translator: Optional[Translator] = None,
    config: Optional[EngineConfig] = None,
    validator: Optional[SchemaValidator] = None,
    cache_registry: bool = True,
    cache_ttl: float = 300.0
) -> ContentTreeEngine:
    """Create a ContentTreeEngine, filling in defaults for missing collaborators.

    Args:
        store: Document store (in-memory store if omitted)
        registry: Plugin registry (empty static registry if omitted)
        translator: Translator (catalog translator that echoes keys if omitted)
        config: Engine configuration
        validator: Optional schema validator
        cache_registry: Wrap the registry in a CachingPluginRegistry
        cache_ttl: Time-to-live for cached registry answers in seconds

    Returns:
        Configured engine
    """
    config = config or EngineConfig()
    if store is None:
        store = InMemoryDocumentStore(max_concurrent=config.max_concurrent)
    if registry is None:
        registry = StaticPluginRegistry()
    if cache_registry and not isinstance(registry, CachingPluginRegistry):
        registry = CachingPluginRegistry(registry, ttl=cache_ttl)
    if translator is None:
        translator = CatalogTranslator(default_lang=config.default_lang)
    return ContentTreeEngine(store, registry, translator, validator=validator, config=config)


async def handle_insert_recursive(
    engine: ContentTreeEngine,
    user_id: str,
    root_id: Optional[str] = None,
    data: Optional[Mapping[str, Any]] = None,
    lang: Optional[str] = None
) -> List[Dict[str, Any]]:
    """Bootstrap placeholder content under ``root_id`` (or a new course).

    Args:
        engine: Engine to run against
        user_id: Acting user
        root_id: Node to build under; None creates a course
        data: Request body; ``_type: 'menu'`` builds a menu chain, the
            remaining fields go onto the topmost new node
        lang: Language for placeholder text

    Returns:
        Created documents, top first
    """
    custom_data = dict(data or {})
    is_menu = custom_data.pop('_type', None) == MENU
    created = await engine.insert_recursive(root_id, user_id, custom_data, is_menu=is_menu, lang=lang)
    return [node.to_document() for node in created]


async def handle_clone(
    engine: ContentTreeEngine,
    user_id: str,
    body: Mapping[str, Any],
    lang: Optional[str] = None
) -> Dict[str, Any]:
    """Clone (or cut and paste) the node named in a request body.

    Args:
        engine: Engine to run against
        user_id: Acting user
        body: ``{'_id': source, '_parentId': target, 'isCut': bool, ...}``;
            any other fields are applied to the new node
        lang: Language for placeholder text of constructed levels

    Returns:
        The new (or moved) node's document
    """
    custom_data = dict(body)
    source_id = custom_data.pop('_id', None)
    parent_id = custom_data.pop('_parentId', None)
    is_cut = bool(custom_data.pop('isCut', False))
    node = await engine.clone(user_id, source_id, parent_id, custom_data, None, lang, is_cut)
    return node.to_document()
