"""Locale graph and per-field fallback projection.

Records store their fields as ``field name -> locale code -> raw value``. The
``fields`` a caller sees are projected out of that store for one selected
locale by walking the fallback chain independently for every field.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from types import MappingProxyType
from typing import Any

from content_graph.errors import LocaleHandlingError, UnparseableResponseError
from content_graph.models import Locale

logger = logging.getLogger(__name__)

LocalizedFields = dict[str, dict[str, Any]]


class LocaleGraph:
    """The locales of an environment: a default locale plus fallback links.

    Built once from the locales endpoint and shared, read-only, by every
    record decoded against it.
    """

    def __init__(self, locales: Iterable[Locale]) -> None:
        by_code: dict[str, Locale] = {}
        for locale in locales:
            by_code[locale.code] = locale
        default = next((locale for locale in by_code.values() if locale.default), None)
        if default is None:
            raise LocaleHandlingError("Locale with default == true not found in environment")
        self._locales = MappingProxyType(by_code)
        self._default = default

    @property
    def default(self) -> Locale:
        return self._default

    @property
    def locales(self) -> Mapping[str, Locale]:
        return self._locales

    def get(self, code: str | None) -> Locale | None:
        if code is None:
            return None
        return self._locales.get(code)

    def __contains__(self, code: object) -> bool:
        return code in self._locales

    def __len__(self) -> int:
        return len(self._locales)

    def fallback_chain(self, code: str) -> list[str]:
        """Locale codes to try, in order, starting with ``code``.

        The walk stops at a locale without a fallback, at a fallback code that
        is not part of the graph, or when a locale repeats.
        """
        chain = [code]
        current = self._locales.get(code)
        while current is not None and current.fallback_code is not None:
            next_code = current.fallback_code
            if next_code in chain:
                logger.warning("Locale fallback cycle detected: %s -> %s", " -> ".join(chain), next_code)
                break
            if next_code not in self._locales:
                logger.warning("Locale %s falls back to unknown locale %s", current.code, next_code)
                break
            chain.append(next_code)
            current = self._locales[next_code]
        return chain


def project_fields(
    localizable_fields: Mapping[str, Mapping[str, Any]],
    selected_locale: Locale | str | None,
    locale_graph: LocaleGraph,
) -> dict[str, Any]:
    """Compute one value per field for ``selected_locale``.

    Fields with no value anywhere along the fallback chain are omitted.
    """
    if selected_locale is None:
        code = locale_graph.default.code
    elif isinstance(selected_locale, Locale):
        code = selected_locale.code
    else:
        code = selected_locale
    chain = locale_graph.fallback_chain(code)

    fields: dict[str, Any] = {}
    for name, values in localizable_fields.items():
        for locale_code in chain:
            if locale_code in values:
                fields[name] = values[locale_code]
                break
    return fields


def normalize_fields(raw_fields: Any, locale_code: str | None) -> LocalizedFields:
    """Reshape raw ``fields`` into ``field name -> locale code -> value``.

    With ``locale_code`` the payload is single-locale and flat; without it every
    field must already be a mapping of locale codes to values.
    """
    if raw_fields is None:
        return {}
    if not isinstance(raw_fields, dict):
        raise UnparseableResponseError("Expected 'fields' to be a JSON object", data=raw_fields)

    if locale_code is not None:
        return {name: {locale_code: value} for name, value in raw_fields.items()}

    for name, value in raw_fields.items():
        if not isinstance(value, dict):
            raise UnparseableResponseError(
                "Unexpected response format: 'sys.locale' not present, and field "
                f"{name!r} is not in localizable format, i.e. 'title: {{en-US: value, de-DE: value}}'",
                data=raw_fields,
            )
    return {name: dict(value) for name, value in raw_fields.items()}
