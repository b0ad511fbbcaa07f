"""
Tests for schema name resolution.
"""

from unittest.mock import AsyncMock

import pytest


class TestGetSchemaName:

    @pytest.mark.asyncio
    @pytest.mark.parametrize('data,expected', [
        ({'_type': 'page'}, 'contentobject'),
        ({'_type': 'menu'}, 'contentobject'),
        ({'_type': 'article'}, 'article'),
        ({'_type': 'course'}, 'course'),
        ({'_type': 'component', '_component': 'adapt-contrib-text'}, 'text-component'),
        ({'_type': 'component', '_component': 'adapt-contrib-unknown'}, 'content'),
        ({'_type': 'component'}, 'content'),
        ({}, 'content'),
    ])
    async def test_from_data(self, engine, data, expected):
        assert await engine.get_schema_name(data) == expected

    @pytest.mark.asyncio
    async def test_falls_back_to_stored_node(self, engine, builder):
        await builder.build([
            ('course', 'm05'), ('page', 'co-05'), ('article', 'a-05'), ('block', 'b-05'), ('component', 'c-05'),
        ])
        assert await engine.get_schema_name({'_id': builder.lookup('co-05').id}) == 'contentobject'
        assert await engine.get_schema_name({'_id': builder.lookup('c-05').id}) == 'text-component'

    @pytest.mark.asyncio
    async def test_resolve_falls_back_when_registry_fails(self, engine):
        engine.registry.get_plugin = AsyncMock(side_effect=RuntimeError('registry down'))
        data = {'_type': 'component', '_component': 'adapt-contrib-text'}

        assert await engine._resolve_schema_name(data, 'component') == 'component'
        assert await engine._resolve_schema_name(data) == 'content'

    @pytest.mark.asyncio
    async def test_resolve_prefers_specific_name(self, engine):
        assert await engine._resolve_schema_name({'_type': 'page'}, 'page') == 'contentobject'
        assert await engine._resolve_schema_name({}, 'course') == 'course'
