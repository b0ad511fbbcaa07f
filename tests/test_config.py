"""
Tests for the type hierarchy helpers and configuration objects.
"""

import pytest

from contenttreelib import ContentTreeError, NotFoundError
from contenttreelib.config import (
    EngineConfig,
    child_type_of,
    schema_class,
    type_rank,
    types_between,
)


class TestHierarchyHelpers:

    def test_type_rank(self):
        assert type_rank('course') == 0
        assert type_rank('component') == 5
        with pytest.raises(ValueError):
            type_rank('config')

    @pytest.mark.parametrize('ancestor,descendant,expected', [
        ('course', 'component', ['page', 'article', 'block', 'component']),
        ('menu', 'block', ['page', 'article', 'block']),
        ('page', 'block', ['article', 'block']),
        ('article', 'component', ['block', 'component']),
        ('block', 'component', ['component']),
        ('component', 'component', []),
    ])
    def test_types_between(self, ancestor, descendant, expected):
        assert types_between(ancestor, descendant) == expected

    def test_child_type_of(self):
        assert child_type_of('course') == 'page'
        assert child_type_of('menu') == 'page'
        assert child_type_of('page') == 'article'
        assert child_type_of('component') is None

    def test_schema_class(self):
        assert schema_class('menu') == 'contentobject'
        assert schema_class('page') == 'contentobject'
        assert schema_class('block') == 'block'


class TestEngineConfig:

    def test_defaults(self):
        config = EngineConfig()
        assert config.default_lang == 'en'
        assert config.config_defaults() == {'_enabledPlugins': []}
        assert config.placeholders.component_plugin == 'adapt-contrib-text'

    def test_menu_and_theme_defaults(self):
        config = EngineConfig(default_menu='adapt-contrib-boxMenu', default_theme='adapt-contrib-vanilla')
        assert config.config_defaults() == {
            '_enabledPlugins': [],
            '_menu': 'adapt-contrib-boxMenu',
            '_theme': 'adapt-contrib-vanilla',
        }


class TestErrors:

    def test_default_message_includes_data(self):
        error = NotFoundError(data={'id': 'x'})
        assert error.code == 'NOT_FOUND'
        assert str(error) == "NOT_FOUND (id='x')"
        assert isinstance(error, ContentTreeError)

    def test_set_data_chains(self):
        error = NotFoundError('gone').set_data(id='x')
        assert str(error) == 'gone'
        assert error.data == {'id': 'x'}
