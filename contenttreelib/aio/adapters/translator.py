"""Catalog-backed translator."""

from typing import Any, Mapping, Optional

from ..core import Translator


class CatalogTranslator(Translator):
    """Looks up dotted keys in per-language catalogs.

    Catalogs may be flat (``{'app.newpagetitle': 'New page'}``) or
    nested (``{'app': {'newpagetitle': 'New page'}}``). Missing entries
    fall back to the default language, then to the key itself.
    """

    def __init__(self, catalogs: Optional[Mapping[str, Mapping[str, Any]]] = None, default_lang: str = 'en'):
        self.catalogs = dict(catalogs or {})
        self.default_lang = default_lang

    def translate(self, lang: Optional[str], key: str) -> str:
        for candidate in (lang or self.default_lang, self.default_lang):
            value = self._lookup(self.catalogs.get(candidate), key)
            if value is not None:
                return value
        return key

    @staticmethod
    def _lookup(catalog: Optional[Mapping[str, Any]], key: str) -> Optional[str]:
        if not catalog:
            return None
        if key in catalog and isinstance(catalog[key], str):
            return catalog[key]
        node: Any = catalog
        for part in key.split('.'):
            if not isinstance(node, Mapping) or part not in node:
                return None
            node = node[part]
        return node if isinstance(node, str) else None
