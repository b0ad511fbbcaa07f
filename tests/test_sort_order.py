"""
Tests for sibling renumbering.
"""

import logging

import pytest

from contenttreelib.aio import SortOrderMaintainer
from contenttreelib.testing import assert_sort_orders_contiguous


async def _article_with_blocks(builder, *orders):
    rows = [('course', 'm05'), ('page', 'co-05'), ('article', 'a-05')]
    for i, order in enumerate(orders, start=1):
        rows.append(('block', f'b-{i * 5:02d}', {'_sortOrder': order}))
    return await builder.build(rows)


class TestUpdateSortOrder:

    @pytest.mark.asyncio
    async def test_node_without_position_is_appended(self, store, builder):
        await _article_with_blocks(builder, 1, 2, 3)
        article = builder.lookup('a-05')
        new_block = await store.insert({'_type': 'block', '_parentId': article.id})

        changed = await SortOrderMaintainer(store).update_sort_order(new_block, {})

        assert changed == 1
        assert (await store.find_one({'_id': new_block.id})).sort_order == 4

    @pytest.mark.asyncio
    async def test_node_spliced_at_position(self, store, builder):
        await _article_with_blocks(builder, 1, 2, 3)
        article = builder.lookup('a-05')
        new_block = await store.insert({'_type': 'block', '_parentId': article.id, '_sortOrder': 1})

        await SortOrderMaintainer(store).update_sort_order(new_block, {'_sortOrder': 1})

        siblings = await store.find({'_parentId': article.id}, sort={'_sortOrder': 1})
        assert [b.id for b in siblings][0] == new_block.id
        assert [b.friendly_id for b in siblings[1:]] == ['b-05', 'b-10', 'b-15']
        await assert_sort_orders_contiguous(store)

    @pytest.mark.asyncio
    async def test_gap_is_closed(self, store, builder):
        await _article_with_blocks(builder, 1, 2, 4)
        last = builder.lookup('b-15')

        await SortOrderMaintainer(store).update_sort_order(last, {'title': 'edited'})

        assert (await builder.fetch('b-15')).sort_order == 3

    @pytest.mark.asyncio
    async def test_delete_mode_closes_up(self, store, builder):
        await _article_with_blocks(builder, 1, 2, 3)
        middle = builder.lookup('b-10')
        await store.delete(middle.id)

        await SortOrderMaintainer(store).update_sort_order(middle)

        assert (await builder.fetch('b-05')).sort_order == 1
        assert (await builder.fetch('b-15')).sort_order == 2

    @pytest.mark.asyncio
    async def test_second_run_writes_nothing(self, store, builder):
        await _article_with_blocks(builder, 1, 2, 4)
        maintainer = SortOrderMaintainer(store)
        last = builder.lookup('b-15')
        await maintainer.update_sort_order(last, {})

        store.reset_stats()
        changed = await maintainer.update_sort_order(await builder.fetch('b-15'), {})

        assert changed == 0
        assert store.update_count == 0

    @pytest.mark.asyncio
    async def test_root_types_are_skipped(self, store, builder):
        course, config = (await builder.build([('course', 'm05')]))[:2]
        maintainer = SortOrderMaintainer(store)
        store.reset_stats()

        assert await maintainer.update_sort_order(course, {}) == 0
        assert await maintainer.update_sort_order(config, {}) == 0
        assert store.find_count == 0

    @pytest.mark.asyncio
    async def test_renumbering_is_logged_lazily(self, store, builder, caplog):
        await _article_with_blocks(builder, 1, 2, 4)
        article = builder.lookup('a-05')

        with caplog.at_level(logging.DEBUG, logger='contenttreelib.aio.sort_order'):
            await SortOrderMaintainer(store).update_sort_order(builder.lookup('b-15'), {})

        record = next(r for r in caplog.records if r.name == 'contenttreelib.aio.sort_order')
        assert record.args == (1, 3, article.id)
        assert record.getMessage() == f"Renumbered 1 of 3 siblings under {article.id}"
