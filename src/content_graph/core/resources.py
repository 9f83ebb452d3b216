from __future__ import annotations

import logging
from collections.abc import Iterator
from functools import partial
from typing import TYPE_CHECKING, Any, TypeVar

from content_graph.core.link import (
    Link,
    convert_links,
    convert_rich_text,
    is_link_list,
    is_rich_text,
    iter_rich_text_targets,
    make_cache_key,
)
from content_graph.core.localization import LocaleGraph, LocalizedFields, normalize_fields, project_fields
from content_graph.models import FileMetadata, Sys

if TYPE_CHECKING:
    from content_graph.core.link_resolver import LinkResolver

logger = logging.getLogger(__name__)

_R = TypeVar("_R", bound="LocalizableResource")


class LocalizableResource:
    """A record whose fields may carry values for several locales.

    ``localizable_fields`` holds the raw values exactly as decoded, with links
    left unresolved. Every resolution pass builds a fresh resolved copy, and
    ``fields`` projects that copy for the currently selected locale.
    """

    is_asset = False

    def __init__(
        self,
        sys: Sys,
        localizable_fields: LocalizedFields,
        locale_graph: LocaleGraph,
        locale_code: str | None = None,
    ) -> None:
        self.sys = sys
        self.localization_context = locale_graph
        locale_code = locale_code or sys.locale
        selected = locale_graph.get(locale_code)
        if selected is None:
            if locale_code is not None:
                logger.warning(
                    "Record %s uses unknown locale %s, selecting %s", sys.id, locale_code, locale_graph.default.code
                )
            selected = locale_graph.default
        self.currently_selected_locale = selected
        # Records are cached and linked under the locale they were decoded with.
        self.resolution_locale = selected.code
        self.localizable_fields: LocalizedFields = {
            name: {code: convert_links(value) for code, value in values.items()}
            for name, values in localizable_fields.items()
        }
        self._resolved_fields: LocalizedFields | None = None

    @classmethod
    def from_json(
        cls: type[_R],
        raw: dict[str, Any],
        sys: Sys,
        locale_graph: LocaleGraph,
        implied_locale: str | None = None,
    ) -> _R:
        """Build a record from its JSON object.

        Fields are single-locale when the record carries a locale marker, either
        its own ``sys.locale`` or the ``implied_locale`` of the request that
        produced it, and all-locales nested otherwise.
        """
        marker = sys.locale or implied_locale
        selected = locale_graph.get(marker) or locale_graph.default
        wrap_code = selected.code if marker is not None else None
        return cls(sys, normalize_fields(raw.get("fields"), wrap_code), locale_graph, locale_code=marker)

    @property
    def id(self) -> str:
        return self.sys.id

    @property
    def type(self) -> str:
        return self.sys.type

    @property
    def locale_code(self) -> str | None:
        return self.sys.locale

    @property
    def created_at(self) -> Any:
        return self.sys.created_at

    @property
    def updated_at(self) -> Any:
        return self.sys.updated_at

    @property
    def cache_key(self) -> str:
        return make_cache_key(self.id, self.sys.type, self.resolution_locale)

    @property
    def fields(self) -> dict[str, Any]:
        """Field values for the currently selected locale, following the fallback chain."""
        store = self._resolved_fields if self._resolved_fields is not None else self.localizable_fields
        return project_fields(store, self.currently_selected_locale, self.localization_context)

    def set_locale(self, code: str) -> bool:
        """Select the locale ``fields`` projects. Returns ``False`` for an unknown code."""
        locale = self.localization_context.get(code)
        if locale is None:
            return False
        self.currently_selected_locale = locale
        return True

    def iter_links(self) -> Iterator[tuple[str, str, Link | list[Link]]]:
        """Yield ``(field, locale, value)`` for every raw value holding links."""
        for name, values in self.localizable_fields.items():
            for code, value in values.items():
                if isinstance(value, Link) or is_link_list(value):
                    yield name, code, value

    def iter_embedded_links(self) -> Iterator[tuple[str, str, list[Link]]]:
        """Yield ``(field, locale, links)`` for every rich-text value embedding links."""
        for name, values in self.localizable_fields.items():
            for code, value in values.items():
                if is_rich_text(value):
                    links = [link for _, link in iter_rich_text_targets(value)]
                    if links:
                        yield name, code, links

    def register_links(self, resolver: LinkResolver) -> int:
        """Register every link of this record with ``resolver``.

        Starts a new resolved copy of the field store that the resolver's
        callbacks fill in. Rich-text documents are copied too, and their
        embedded targets are filled in the copy. Returns the number of links
        registered.
        """
        resolved: LocalizedFields = {name: dict(values) for name, values in self.localizable_fields.items()}
        self._resolved_fields = resolved
        count = 0
        for name, code, value in self.iter_links():
            if isinstance(value, Link):
                resolver.resolve(value, self.resolution_locale, partial(_fill_link, resolved[name], code, value))
                count += 1
            else:
                members = list(value)
                resolved[name][code] = members
                for index, link in enumerate(value):
                    resolver.resolve(link, self.resolution_locale, partial(_fill_member, members, index, link))
                    count += 1
        for name, code, _ in self.iter_embedded_links():
            document = convert_rich_text(self.localizable_fields[name][code])
            resolved[name][code] = document
            for data, link in iter_rich_text_targets(document):
                resolver.resolve(link, self.resolution_locale, partial(_fill_link, data, "target", link))
                count += 1
        return count

    def unresolved_links(self) -> list[Link]:
        """Links that the last resolution pass could not satisfy."""
        store = self._resolved_fields if self._resolved_fields is not None else self.localizable_fields
        found: list[Link] = []
        for values in store.values():
            for value in values.values():
                if isinstance(value, Link):
                    candidates = [value]
                elif is_link_list(value):
                    candidates = value
                else:
                    candidates = [link for _, link in iter_rich_text_targets(value)]
                for link in candidates:
                    if not link.is_resolved and link not in found:
                        found.append(link)
        return found

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, LocalizableResource):
            return NotImplemented
        return self.id == other.id and self.sys.updated_at == other.sys.updated_at

    def __hash__(self) -> int:
        return hash(self.id)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r}, locale={self.currently_selected_locale.code!r})"


def _fill_link(values: dict[str, Any], code: str, link: Link, target: Any) -> None:
    values[code] = link.resolved(target) if target is not None else link


def _fill_member(members: list[Any], index: int, link: Link, target: Any) -> None:
    members[index] = link.resolved(target) if target is not None else link


class Asset(LocalizableResource):
    """A media file with a title and description."""

    is_asset = True

    @property
    def title(self) -> str | None:
        return self.fields.get("title")

    @property
    def description(self) -> str | None:
        return self.fields.get("description")

    @property
    def file(self) -> FileMetadata | None:
        raw = self.fields.get("file")
        if isinstance(raw, FileMetadata):
            return raw
        if isinstance(raw, dict):
            return FileMetadata.model_validate(raw)
        return None

    @property
    def url(self) -> str | None:
        file = self.file
        return file.url if file is not None else None


class Entry(LocalizableResource):
    """An instance of a content type."""

    @property
    def content_type_id(self) -> str | None:
        return self.sys.content_type_id

    def __getitem__(self, key: str) -> Any:
        return self.fields[key]

    def get(self, key: str, default: Any = None) -> Any:
        return self.fields.get(key, default)

    def linked_entry(self, key: str) -> Any:
        value = self.fields.get(key)
        return value.entry if isinstance(value, Link) else None

    def linked_asset(self, key: str) -> Any:
        value = self.fields.get(key)
        return value.asset if isinstance(value, Link) else None

    def linked_entries(self, key: str) -> list[Any] | None:
        value = self.fields.get(key)
        if not is_link_list(value):
            return None
        return [link.entry for link in value if link.entry is not None]

    def linked_assets(self, key: str) -> list[Any] | None:
        value = self.fields.get(key)
        if not is_link_list(value):
            return None
        return [link.asset for link in value if link.asset is not None]


class DeletedResource:
    """Identity of an asset or entry removed since the last sync."""

    def __init__(self, sys: Sys) -> None:
        self.sys = sys

    @property
    def id(self) -> str:
        return self.sys.id

    @property
    def type(self) -> str:
        return self.sys.type

    def __repr__(self) -> str:
        return f"DeletedResource(id={self.id!r}, type={self.type!r})"
