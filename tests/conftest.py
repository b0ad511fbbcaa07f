"""Shared fixtures for the ContentTreeLib test suite."""

import pytest

from contenttreelib.aio import (
    CatalogTranslator,
    ContentTreeEngine,
    InMemoryDocumentStore,
    PluginInfo,
    StaticPluginRegistry,
)
from contenttreelib.testing import ContentTreeBuilder


PLUGINS = [
    PluginInfo('adapt-contrib-text', 'component', '_text', ['text-component']),
    PluginInfo('adapt-contrib-trickle', 'extension', '_trickle', ['trickle-article', 'trickle-block']),
    PluginInfo('adapt-contrib-boxMenu', 'menu', '_boxMenu', ['boxmenu-contentobject']),
    PluginInfo('adapt-contrib-vanilla', 'theme', '_vanilla', ['vanilla-course']),
]

SCHEMA_TARGETS = {
    'text-component': 'component',
    'trickle-article': 'article',
    'trickle-block': 'block',
    'boxmenu-contentobject': 'contentobject',
    'vanilla-course': 'course',
}

CATALOGS = {
    'en': {
        'app': {
            'newpagetitle': 'New page',
            'newarticletitle': 'New article',
            'newblocktitle': 'New block',
            'newtextcomponenttitle': 'New text component',
            'newtextcomponentbody': 'Add your text here',
        }
    },
    'fr': {
        'app.newpagetitle': 'Nouvelle page',
    },
}


@pytest.fixture
def store():
    return InMemoryDocumentStore()


@pytest.fixture
def registry():
    return StaticPluginRegistry(PLUGINS, SCHEMA_TARGETS)


@pytest.fixture
def translator():
    return CatalogTranslator(CATALOGS, default_lang='en')


@pytest.fixture
def engine(store, registry, translator):
    return ContentTreeEngine(store, registry, translator)


@pytest.fixture
def builder(store):
    return ContentTreeBuilder(store)

