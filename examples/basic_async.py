#!/usr/bin/env python3
"""
Basic async example showing how ContentTreeLib keeps a course tree valid.

This example demonstrates:
- Bootstrapping a course with placeholder content
- Cloning a block, with sibling order maintained automatically
- Pasting a component onto a full block
- Adding a language peer and checking it
"""

import asyncio
import sys
from pathlib import Path

# Add parent directory to path for development
sys.path.insert(0, str(Path(__file__).parent.parent))

from contenttreelib.aio import (
    CatalogTranslator,
    PeerStructureService,
    PluginInfo,
    StaticPluginRegistry,
    create_engine,
)
from contenttreelib.logging_config import setup_logging


REGISTRY = StaticPluginRegistry(
    plugins=[
        PluginInfo('adapt-contrib-text', 'component', '_text', ['text-component']),
        PluginInfo('adapt-contrib-trickle', 'extension', '_trickle', ['trickle-block']),
    ],
    schema_targets={'text-component': 'component', 'trickle-block': 'block'},
)

TRANSLATOR = CatalogTranslator({
    'en': {
        'app.newpagetitle': 'New page',
        'app.newarticletitle': 'New article',
        'app.newblocktitle': 'New block',
        'app.newtextcomponenttitle': 'New text',
        'app.newtextcomponentbody': 'Type here',
    },
})


async def print_tree(engine, node, indent=0):
    """Print a subtree in sibling order."""
    label = node.extras.get('title', '')
    order = f"#{node.sort_order} " if node.sort_order is not None else ''
    print(f"{'  ' * indent}{order}{node.type}: {label} [{node.friendly_id or node.id[:8]}]")
    for child in await engine.navigator.get_children(node):
        await print_tree(engine, child, indent + 1)


async def main():
    """Build, edit and translate a small course."""
    engine = create_engine(registry=REGISTRY, translator=TRANSLATOR)

    course, config, page, article, block, component = await engine.insert_recursive(
        created_by='demo', custom_data={'title': 'Demo course'})
    print("Created course:")
    await print_tree(engine, course)

    # Paste a copy of the block onto its own article: it lands first, the original moves down
    await engine.clone('demo', block.id, article.id, {'title': 'Copied block'})

    # The original block holds a full-width component, so a new block is made after it
    await engine.clone('demo', component.id, block.id)

    print("\nAfter cloning:")
    await print_tree(engine, course)

    config = await engine.store.find_one({'_id': config.id})
    print(f"\nEnabled plugins: {config.enabled_plugins}")

    peers = PeerStructureService(engine)
    peer = await peers.add_language('demo', course.id, 'fr')
    await peers.check_peer_structure(course.id)
    print(f"\nAdded French peer {peer.id[:8]}; languages: {await peers.get_languages_for_course(course.id)}")

    stats = await engine.store.get_stats()
    print(f"Store: {stats['documents']} documents, {stats['inserts']} inserts, {stats['updates']} updates")


if __name__ == "__main__":
    print("ContentTreeLib - Basic Async Example")
    print("=" * 50)
    setup_logging('WARNING')
    asyncio.run(main())
