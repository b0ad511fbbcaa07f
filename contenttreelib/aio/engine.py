"""
Content hierarchy mutation engine.

ContentTreeEngine owns every lifecycle transition of a content node:
insert, update, delete, append, cut, clone and bulk subtree construction.
Each write is followed by the derived-state maintenance it requires:
sibling renumbering and plugin reconciliation.
"""

import asyncio
import logging
from typing import Any, Dict, List, Mapping, Optional, Union

from ..config import (
    ARTICLE,
    BLOCK,
    COMPONENT,
    CONFIG,
    CONTENT_OBJECT_TYPES,
    CONTENT_TYPES,
    COURSE,
    DEFAULT_SCHEMA_NAME,
    LAYOUT_LEFT,
    LAYOUT_RIGHT,
    MENU,
    PAGE,
    ROOT_TYPES,
    TYPE_HIERARCHY,
    TYPE_RANK,
    VALID_PARENT_TYPES,
    EngineConfig,
    MutationOptions,
    PlacementStrategy,
    child_type_of,
    schema_class,
    types_between,
)
from ..errors import (
    CutIllegalError,
    InvalidParentError,
    NotFoundError,
    ValidationFailure,
)
from .core import (
    AsyncDocumentStore,
    ContentNode,
    HierarchyNavigator,
    IdOrQuery,
    PluginRegistry,
    SchemaValidator,
    Translator,
    as_query,
)
from .error_handling import ErrorHandlingProxy
from .plugin_usage import PluginUsageReconciler
from .sort_order import SortOrderMaintainer


logger = logging.getLogger(__name__)

NodeData = Union[ContentNode, Mapping[str, Any]]


def placement_strategy(source_type: str, target_type: str) -> PlacementStrategy:
    """Classify where a clone of ``source_type`` goes when pasted onto ``target_type``.

    Example:
        >>> placement_strategy('component', 'block')
        <PlacementStrategy.DIRECT_CHILD: 'direct_child'>
        >>> placement_strategy('block', 'page')
        <PlacementStrategy.DESCEND: 'descend'>
        >>> placement_strategy('block', 'component')
        <PlacementStrategy.ASCEND: 'ascend'>
    """
    source_rank = TYPE_RANK[source_type]
    target_rank = TYPE_RANK[target_type]

    if (
        (source_type == MENU and target_type == MENU)
        or (source_type == PAGE and target_rank < TYPE_RANK[PAGE])
        or target_rank == source_rank - 1
    ):
        return PlacementStrategy.DIRECT_CHILD
    if target_rank < source_rank - 1:
        return PlacementStrategy.DESCEND
    return PlacementStrategy.ASCEND


def _as_document(data: NodeData) -> Dict[str, Any]:
    if isinstance(data, ContentNode):
        return data.to_document()
    return dict(data)


class ContentTreeEngine:
    """
    Performs structural changes on course content while keeping the tree valid.

    After every write the engine guarantees that sibling ``_sortOrder``
    values are contiguous, that ``_courseId`` matches the owning course,
    and that the course config lists every plugin in use.

    Example:
        engine = ContentTreeEngine(InMemoryDocumentStore(), registry, translator)
        course, config, page, article, block, component = await engine.insert_recursive(
            created_by='user-1')
        copy = await engine.clone('user-1', block.id, article.id)
    """

    def __init__(
        self,
        store: AsyncDocumentStore,
        registry: PluginRegistry,
        translator: Translator,
        validator: Optional[SchemaValidator] = None,
        config: Optional[EngineConfig] = None
    ):
        """
        Initialize the engine.

        Args:
            store: Document store holding all content
            registry: Plugin metadata source
            translator: Localised placeholder text
            validator: Optional schema validator run before inserts and updates
            config: Engine configuration
        """
        self.store = store
        self.registry = registry
        self.translator = translator
        self.validator = validator
        self.config = config or EngineConfig()

        self.navigator = HierarchyNavigator(store)
        self.sort_order = SortOrderMaintainer(store)
        self.plugins = ErrorHandlingProxy(
            PluginUsageReconciler(store, registry, reapply_defaults=self.config.reapply_defaults),
            self.config.reconcile_error_policy
        )

    # CRUD with side effects

    async def insert(
        self,
        data: Mapping[str, Any],
        options: Optional[MutationOptions] = None
    ) -> ContentNode:
        """
        Insert a node and bring its course back into a consistent state.

        Args:
            data: Document fields (wire names)
            options: Per-call switches

        Returns:
            The stored node

        Raises:
            InvalidParentError: If ``_parentId`` is missing, unresolved, or
                of a type that cannot hold this node
            ValidationFailure: If the type is unknown or the validator rejects the data
        """
        options = options or MutationOptions()
        data = dict(data)
        content_type = data.get('_type')
        if content_type not in CONTENT_TYPES:
            raise ValidationFailure(data={'_type': content_type})

        if content_type not in ROOT_TYPES:
            parent = await self._resolve_parent(data.get('_parentId'), content_type)
            if not data.get('_courseId'):
                data['_courseId'] = parent.owning_course_id

        if options.validate and self.validator is not None:
            await self.validator.validate(await self._resolve_schema_name(data, options.schema_name), data)

        node = await self.store.insert(data)
        logger.debug("insert _id=%s _type=%s _parentId=%s", node.id, node.type, node.parent_id)

        if node.type == COURSE:
            # A course roots its own course id; language peers arrive with the master's
            if not node.course_id:
                node = await self.store.update(node.id, {'_courseId': node.id})
            return node

        await self._reconcile(node, data, options)
        return await self.store.find_one({'_id': node.id}) or node

    async def update(
        self,
        query: IdOrQuery,
        data: Mapping[str, Any],
        options: Optional[MutationOptions] = None
    ) -> ContentNode:
        """
        Update the first node matching ``query``.

        Sibling order is recomputed for the node's group, and for the
        group it left when ``_parentId`` changed. Plugins are reconciled,
        forcibly when ``_enabledPlugins`` is part of the update.

        Raises:
            NotFoundError: If nothing matches
        """
        options = options or MutationOptions()
        query = as_query(query)
        previous = await self.store.find_one(query)
        if previous is None:
            raise NotFoundError(data={'query': query})

        if options.validate and self.validator is not None:
            merged = {**previous.to_document(), **data}
            await self.validator.validate(await self._resolve_schema_name(merged, options.schema_name), merged)

        node = await self.store.update(previous.id, data)

        tasks = []
        if options.update_sort_order:
            tasks.append(self.sort_order.update_sort_order(node, data))
            if previous.parent_id and previous.parent_id != node.parent_id:
                tasks.append(self.sort_order.update_sort_order(previous))
        if options.update_enabled_plugins:
            tasks.append(self.plugins.update_enabled_plugins(node, force_update='_enabledPlugins' in data))
        await asyncio.gather(*tasks)
        return await self.store.find_one({'_id': node.id}) or node

    async def delete(self, query: IdOrQuery) -> List[ContentNode]:
        """
        Delete a node together with its whole subtree.

        Deleting a master course also deletes its config.

        Returns:
            ``[target, *descendants]`` as they were before deletion

        Raises:
            NotFoundError: If nothing matches
        """
        query = as_query(query)
        logger.info("Edit: delete query=%s", query)
        target = await self.store.find_one(query)
        if target is None:
            logger.warning("Edit FAIL: delete not_found query=%s", query)
            raise NotFoundError(data={'query': query})

        descendants = await self.navigator.get_descendants(target)
        await asyncio.gather(*(self.store.delete(n.id) for n in [target, *descendants]))
        await asyncio.gather(
            self.plugins.update_enabled_plugins(target),
            self.sort_order.update_sort_order(target)
        )
        logger.info("Edit OK: delete target=%s removed=%d", target.id, len(descendants) + 1)
        return [target, *descendants]

    async def get_descendants(self, root: ContentNode) -> List[ContentNode]:
        return await self.navigator.get_descendants(root)

    # Placement

    async def append(self, parent: ContentNode, child: NodeData, is_cut: bool = False) -> ContentNode:
        """
        Place ``child`` under ``parent``.

        A cut moves the existing node; otherwise ``child`` is inserted as a
        new node under ``parent``.
        """
        child = _as_document(child)
        if is_cut:
            return await self.cut(parent, child, child.get('_sortOrder'))

        child['_parentId'] = parent.id
        child['_courseId'] = parent.owning_course_id
        return await self.insert(child, MutationOptions(schema_name=schema_class(child.get('_type'))))

    async def append_to_block(
        self,
        block: ContentNode,
        component: NodeData,
        user_id: str,
        lang: Optional[str] = None,
        is_cut: bool = False
    ) -> ContentNode:
        """
        Place a component into a block, respecting the two-column layout.

        A block holds at most a left and a right component, or a single
        full-width one. When exactly one side is taken the component gets
        the other side; when the block holds anything else a new block is
        created directly after it and the component goes there.
        """
        component = _as_document(component)
        exclude_id = component.get('_id') if is_cut else None
        children = await self.navigator.get_children(block, exclude_id=exclude_id)

        has_left = any(c.layout == LAYOUT_LEFT for c in children)
        has_right = any(c.layout == LAYOUT_RIGHT for c in children)

        if has_left and not has_right:
            component['_layout'] = LAYOUT_RIGHT
        elif has_right and not has_left:
            component['_layout'] = LAYOUT_LEFT
        elif children:
            created = await self.insert_recursive(
                block.parent_id,
                user_id,
                {'_sortOrder': (block.sort_order or 0) + 1},
                child_types=[BLOCK],
                lang=lang
            )
            block = created[0]
            logger.debug("Block %s full, created sibling block %s", block.parent_id, block.id)

        if is_cut:
            return await self.cut(block, component)
        return await self.append(block, component)

    async def cut(
        self,
        parent: ContentNode,
        child: NodeData,
        sort_order: Optional[int] = None
    ) -> ContentNode:
        """
        Move an existing node (and its subtree) under ``parent``.

        Args:
            parent: New parent
            child: The node to move (only ``_id`` is read)
            sort_order: Position among the new siblings; appended when None

        Raises:
            NotFoundError: If the node no longer exists
            CutIllegalError: If ``parent`` is the node itself or inside its subtree
        """
        child_id = _as_document(child).get('_id')
        logger.info("Edit: cut id=%s parent=%s sort_order=%s", child_id, parent.id, sort_order)
        current = await self.store.find_one({'_id': child_id})
        if current is None:
            logger.warning("Edit FAIL: cut not_found id=%s", child_id)
            raise NotFoundError(data={'id': child_id})
        if await self.navigator.is_within(parent, current.id):
            logger.warning("Edit FAIL: cut into own subtree id=%s parent=%s", child_id, parent.id)
            raise CutIllegalError(data={'id': current.id, 'parentId': parent.id})

        course_id = parent.owning_course_id
        is_moving_course = course_id != current.course_id
        descendants = await self.navigator.get_descendants(current) if is_moving_course else []

        node = await self.update(current.id, {
            '_courseId': course_id,
            '_parentId': parent.id,
            '_sortOrder': sort_order,
        })

        if is_moving_course:
            # _courseId is denormalised onto every node of the subtree
            await asyncio.gather(*(self.store.update(d.id, {'_courseId': course_id}) for d in descendants))
            await asyncio.gather(
                self.plugins.update_enabled_plugins(node),
                self.plugins.update_enabled_plugins(current)
            )
        logger.info("Edit OK: cut id=%s parent=%s moved_course=%s", node.id, parent.id, is_moving_course)
        return node

    async def construct_to_type(
        self,
        node: ContentNode,
        target_type: str,
        user_id: str,
        lang: Optional[str] = None
    ) -> List[ContentNode]:
        """Build placeholder levels below ``node`` down to ``target_type``."""
        return await self.insert_recursive(
            node.id, user_id, child_types=types_between(node.type, target_type), lang=lang
        )

    # Clone

    async def clone(
        self,
        user_id: str,
        id: str,
        parent_id: Optional[str] = None,
        custom_data: Optional[Mapping[str, Any]] = None,
        global_data: Optional[Mapping[str, Any]] = None,
        lang: Optional[str] = None,
        is_cut: bool = False
    ) -> ContentNode:
        """
        Copy (or, with ``is_cut``, move) a node to a new location.

        The target need not be the exact parent type: the clone is placed
        according to ``placement_strategy`` and any missing container
        levels are built on the way.

        Args:
            user_id: Acting user, recorded as ``createdBy``
            id: Source node id
            parent_id: Paste target; may be omitted only for course/config
            custom_data: Fields merged into the new top node
            global_data: Fields merged into every node of the new subtree
            lang: Language for placeholder text of constructed levels
            is_cut: Move the source instead of copying it

        Returns:
            The new (or moved) top node

        Raises:
            NotFoundError: If the source does not exist
            InvalidParentError: If no usable parent can be found
            CutIllegalError: If a course/config is cut, or a node is cut into itself
        """
        custom_data = dict(custom_data or {})
        global_data = dict(global_data or {})

        original = await self.store.find_one({'_id': id})
        if original is None:
            raise NotFoundError(data={'id': id})
        parent = await self.store.find_one({'_id': parent_id}) if parent_id else None

        if parent is None and original.type not in ROOT_TYPES:
            raise InvalidParentError(data={'parentId': parent_id})
        if is_cut and original.type in ROOT_TYPES:
            raise CutIllegalError(data={'id': id, 'type': original.type})

        if parent is not None and original.type not in ROOT_TYPES:
            logger.info("Edit: %s id=%s type=%s target=%s",
                        'cut' if is_cut else 'clone', id, original.type, parent_id)

        proposed = original.to_document()
        proposed.pop('_trackingId', None)
        proposed['createdBy'] = user_id
        proposed.update(custom_data)
        proposed.update(global_data)
        if not is_cut:
            proposed.pop('_id', None)

        if original.type in ROOT_TYPES:
            new_node = await self._clone_root(original, proposed, custom_data, global_data)
        else:
            new_node = await self._place(original, parent, proposed, custom_data, user_id, lang, is_cut)

        if original.type == COURSE:
            config = await self.store.find_one({'_type': CONFIG, '_courseId': original.owning_course_id})
            if config is not None:
                await self.clone(user_id, config.id, None, {'_courseId': new_node.id}, global_data, lang)

        if is_cut:
            return new_node

        # Excluding the new node keeps a menu pasted into itself from recursing
        children = await self.navigator.get_children(original, exclude_id=new_node.id)
        for child in children:
            await self.clone(user_id, child.id, new_node.id, None, global_data, lang)
        return new_node

    async def _clone_root(
        self,
        original: ContentNode,
        proposed: Dict[str, Any],
        custom_data: Mapping[str, Any],
        global_data: Mapping[str, Any]
    ) -> ContentNode:
        proposed.pop('_parentId', None)
        proposed.pop('_sortOrder', None)
        if '_courseId' not in custom_data and '_courseId' not in global_data:
            proposed.pop('_courseId', None)
        return await self.insert(proposed, MutationOptions(schema_name=original.type))

    async def _place(
        self,
        original: ContentNode,
        parent: ContentNode,
        proposed: Dict[str, Any],
        custom_data: Mapping[str, Any],
        user_id: str,
        lang: Optional[str],
        is_cut: bool
    ) -> ContentNode:
        if parent.type not in TYPE_RANK:
            raise InvalidParentError(data={'parentId': parent.id, 'type': parent.type})

        source_type = original.type
        is_component = source_type == COMPONENT
        strategy = placement_strategy(source_type, parent.type)
        logger.debug("Placing %s into %s: %s", source_type, parent.type, strategy.value)

        if strategy is PlacementStrategy.DIRECT_CHILD:
            if is_component:
                return await self.append_to_block(parent, proposed, user_id, lang, is_cut)
            return await self.append(parent, proposed, is_cut)

        if strategy is PlacementStrategy.DESCEND:
            required_type = TYPE_HIERARCHY[TYPE_RANK[source_type] - 1]
            if custom_data.get('_sortOrder'):
                # An explicit position asks for a new container at that position
                proposed.pop('_sortOrder', None)
                created = await self.insert_recursive(
                    parent.id,
                    user_id,
                    {'_sortOrder': custom_data['_sortOrder']},
                    child_types=[child_type_of(parent.type)],
                    lang=lang
                )
                node = created[0]
            else:
                node = await self.navigator.descend_to_type(parent, required_type)

            if node.type != required_type:
                node = (await self.construct_to_type(node, required_type, user_id, lang))[-1]
                return await self.append(node, proposed, is_cut)
            if is_component:
                return await self.append_to_block(node, proposed, user_id, lang, is_cut)
            return await self.append(node, proposed, is_cut)

        # Pasted onto a peer or a descendant: go after the nearest node of the source's level
        anchor = None
        if source_type == MENU:
            try:
                anchor = await self.navigator.ascend_to_type(parent, MENU, include_self=True)
            except InvalidParentError:
                logger.debug("No menu above %s, anchoring on the nearest page", parent.id)
        if anchor is None:
            anchor_type = PAGE if source_type in CONTENT_OBJECT_TYPES else source_type
            anchor = await self.navigator.ascend_to_type(parent, anchor_type, include_self=True)
        container = await self.store.find_one({'_id': anchor.parent_id}) if anchor.parent_id else None
        if container is None:
            raise InvalidParentError(data={'parentId': anchor.parent_id})
        if is_component:
            return await self.append_to_block(container, proposed, user_id, lang, is_cut)
        proposed['_sortOrder'] = (anchor.sort_order or 0) + 1
        return await self.append(container, proposed, is_cut)

    # Bulk construction

    async def insert_recursive(
        self,
        root_id: Optional[str] = None,
        created_by: Optional[str] = None,
        custom_data: Optional[Mapping[str, Any]] = None,
        is_menu: bool = False,
        child_types: Optional[List[str]] = None,
        lang: Optional[str] = None
    ) -> List[ContentNode]:
        """
        Build a vertical slice of placeholder content.

        Without ``root_id`` a new course is created along with its config
        and a page > article > block > component chain. With ``root_id``
        the chain starts below the root's type (or with a menu when
        ``is_menu``), unless ``child_types`` names it explicitly.

        The call is all-or-nothing: if any insert fails, every node it
        created is deleted before the error is re-raised.

        Args:
            root_id: Node to build under; None creates a new course
            created_by: Acting user
            custom_data: Fields merged into the topmost created node
            is_menu: Start the chain with a menu
            child_types: Explicit type chain
            lang: Language for placeholder text

        Returns:
            The created nodes, top first

        Raises:
            NotFoundError: If ``root_id`` does not resolve
        """
        custom_data = dict(custom_data or {})
        defaults = self._placeholder_data(lang)
        created: List[ContentNode] = []

        logger.info("Edit: insert_recursive root=%s types=%s", root_id, child_types)
        try:
            if not root_id:
                parent = await self.insert(
                    {'_type': COURSE, 'createdBy': created_by, **custom_data},
                    MutationOptions(schema_name=COURSE)
                )
                created.append(parent)
                custom_pending = False
                child_types = [CONFIG, PAGE, ARTICLE, BLOCK, COMPONENT]
            else:
                parent = await self.store.find_one({'_id': root_id})
                if parent is None:
                    raise NotFoundError(data={'id': root_id})
                custom_pending = bool(custom_data)
                if child_types is None:
                    if is_menu:
                        child_types = [MENU, PAGE, ARTICLE, BLOCK, COMPONENT]
                    else:
                        child_types = types_between(parent.type, COMPONENT)

            for content_type in child_types:
                data: Dict[str, Any] = {'_type': content_type, 'createdBy': created_by}
                data.update(defaults.get(content_type, {}))
                if content_type == CONFIG:
                    data.update(self.config.config_defaults())
                    data['_courseId'] = parent.owning_course_id
                else:
                    data['_parentId'] = parent.id
                    data['_courseId'] = parent.owning_course_id
                    if custom_pending:
                        data.update(custom_data)
                        custom_pending = False
                item = await self.insert(data)
                created.append(item)
                if content_type != CONFIG:
                    parent = item
        except Exception as e:
            logger.error("Edit FAIL: insert_recursive error=%s rolling back %d nodes", e, len(created))
            results = await asyncio.gather(
                *(self.store.delete(n.id) for n in created), return_exceptions=True
            )
            for node, result in zip(created, results):
                if isinstance(result, Exception):
                    logger.error("Rollback could not delete %s: %s", node.id, result)
            await self._close_rollback_gap(created)
            raise

        logger.info("Edit OK: insert_recursive created=%d", len(created))
        return created

    async def _close_rollback_gap(self, created: List[ContentNode]) -> None:
        # Only the topmost non-root node sits in a group that survives the rollback
        top = next((n for n in created if n.type not in ROOT_TYPES), None)
        if top is None:
            return
        try:
            if await self.store.find_one({'_id': top.parent_id}) is None:
                return
            await asyncio.gather(
                self.sort_order.update_sort_order(top),
                self.plugins.update_enabled_plugins(top)
            )
        except Exception as e:
            logger.error("Rollback could not restore siblings of %s: %s", top.id, e)

    def _placeholder_data(self, lang: Optional[str]) -> Dict[str, Dict[str, Any]]:
        lang = lang or self.config.default_lang
        placeholders = self.config.placeholders
        data: Dict[str, Dict[str, Any]] = {
            content_type: {'title': self.translator.translate(lang, key)}
            for content_type, key in placeholders.title_keys.items()
        }
        data.setdefault(COMPONENT, {}).update({
            '_component': placeholders.component_plugin,
            '_layout': placeholders.component_layout,
            'body': self.translator.translate(lang, placeholders.component_body_key),
        })
        return data

    # Schema names

    async def get_schema_name(self, data: Mapping[str, Any]) -> str:
        """
        Work out which schema a node validates against.

        Menus and pages share 'contentobject'; components use the schema of
        the plugin that implements them; other types use their own name.
        The stored node is consulted when ``data`` lacks the type.

        Returns:
            Schema name, or 'content' when it cannot be determined
        """
        content_type = data.get('_type')
        component = data.get('_component')
        node_id = data.get('_id')

        if node_id and (not content_type or not component):
            stored = await self.store.find_one({'_id': node_id})
            if stored is not None:
                content_type = stored.type
                component = stored.component

        if not content_type and not component:
            return DEFAULT_SCHEMA_NAME
        if content_type != COMPONENT:
            return schema_class(content_type)

        plugin = await self.registry.get_plugin(component) if component else None
        if plugin is not None and plugin.target_attribute:
            return f"{plugin.target_attribute[1:]}-component"
        return DEFAULT_SCHEMA_NAME

    async def _resolve_schema_name(self, data: Mapping[str, Any], fallback: Optional[str] = None) -> str:
        """Best-effort ``get_schema_name``: never raises, falls back instead."""
        try:
            name = await self.get_schema_name(data)
        except Exception as e:
            logger.debug("Schema name lookup failed, using fallback: %s", e)
            return fallback or DEFAULT_SCHEMA_NAME
        if name == DEFAULT_SCHEMA_NAME and fallback:
            return fallback
        return name

    # Internals

    async def _resolve_parent(self, parent_id: Optional[str], content_type: str) -> ContentNode:
        if not parent_id:
            raise InvalidParentError(data={'parentId': parent_id, 'type': content_type})
        parent = await self.store.find_one({'_id': parent_id})
        if parent is None:
            raise InvalidParentError(data={'parentId': parent_id, 'type': content_type})
        if self.config.enforce_hierarchy and parent.type not in VALID_PARENT_TYPES[content_type]:
            raise InvalidParentError(data={
                'parentId': parent_id,
                'parentType': parent.type,
                'type': content_type,
            })
        return parent

    async def _reconcile(self, node: ContentNode, data: Mapping[str, Any], options: MutationOptions) -> None:
        tasks = []
        if options.update_sort_order:
            tasks.append(self.sort_order.update_sort_order(node, data))
        if options.update_enabled_plugins:
            tasks.append(self.plugins.update_enabled_plugins(node))
        await asyncio.gather(*tasks)

    async def close(self):
        await self.store.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
