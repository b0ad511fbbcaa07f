"""
Tests for ContentTreeEngine.delete.
"""

import logging

import pytest

from contenttreelib import NotFoundError
from contenttreelib.testing import assert_sort_orders_contiguous


TREE = [
    ('course', 'm05'),
    ('page', 'co-05'),
    ('article', 'a-05'),
    ('block', 'b-05'),
    ('component', 'c-05'),
    ('article', 'a-10'),
    ('block', 'b-10'),
    ('block', 'b-15'),
    ('block', 'b-20'),
]


class TestDelete:

    @pytest.mark.asyncio
    async def test_delete_returns_target_and_subtree(self, engine, store, builder):
        await builder.build(TREE)
        article = builder.lookup('a-05')

        removed = await engine.delete(article.id)

        assert [n.friendly_id for n in removed] == ['a-05', 'b-05', 'c-05']
        for node in removed:
            assert node.id not in store

    @pytest.mark.asyncio
    async def test_siblings_close_up(self, engine, store, builder):
        await builder.build(TREE)
        await engine.delete(builder.lookup('b-10').id)

        assert (await builder.fetch('b-15')).sort_order == 1
        assert (await builder.fetch('b-20')).sort_order == 2
        await assert_sort_orders_contiguous(store)

    @pytest.mark.asyncio
    async def test_deleting_last_component_drops_plugin(self, engine, store, builder):
        await builder.build(TREE)
        await store.update({'_type': 'config'}, {'_enabledPlugins': ['adapt-contrib-text']})

        await engine.delete(builder.lookup('c-05').id)

        assert (await store.find_one({'_type': 'config'})).enabled_plugins == []

    @pytest.mark.asyncio
    async def test_deleting_course_removes_config(self, engine, store, builder):
        await builder.build(TREE)

        removed = await engine.delete(builder.lookup('m05').id)

        assert len(removed) == len(TREE) + 1
        assert len(store) == 0

    @pytest.mark.asyncio
    async def test_missing_node(self, engine, caplog):
        with caplog.at_level(logging.WARNING, logger='contenttreelib.aio.engine'):
            with pytest.raises(NotFoundError):
                await engine.delete('nope')
        assert 'Edit FAIL' in caplog.text
