"""Content-type dispatch: map a content type id to the model that decodes it."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, Mapping
from functools import partial
from typing import TYPE_CHECKING, Any, ClassVar

from pydantic import BaseModel, ConfigDict, PrivateAttr

from content_graph.core.link import (
    Link,
    convert_rich_text,
    is_link_list,
    is_rich_text,
    iter_rich_text_targets,
    make_cache_key,
)
from content_graph.models import Sys

if TYPE_CHECKING:
    from content_graph.core.link_resolver import LinkResolver

EntryFactory = Callable[[Sys, "FieldsReader"], Any]


class FieldsReader(Mapping[str, Any]):
    """Flat field values of one entry for its locale, with deferred link access."""

    def __init__(self, values: Mapping[str, Any], locale_code: str, resolver: LinkResolver) -> None:
        self._values = dict(values)
        self._locale_code = locale_code
        self._resolver = resolver

    def __getitem__(self, name: str) -> Any:
        return self._values[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    @property
    def locale_code(self) -> str:
        return self._locale_code

    def plain(self) -> dict[str, Any]:
        """Values that are not links."""
        return {k: v for k, v in self._values.items() if not isinstance(v, Link) and not is_link_list(v)}

    def link(self, name: str) -> Link | None:
        value = self._values.get(name)
        return value if isinstance(value, Link) else None

    def links(self, name: str) -> list[Link] | None:
        value = self._values.get(name)
        return list(value) if is_link_list(value) else None

    def resolve_link(self, name: str, callback: Callable[[Any], None]) -> bool:
        """Defer ``callback(target)`` until the pass churns. Returns ``False`` if the field holds no link."""
        link = self.link(name)
        if link is None:
            return False
        self._resolver.resolve(link, self._locale_code, callback)
        return True

    def resolve_links(self, name: str, callback: Callable[[list[Any]], None]) -> bool:
        """Defer ``callback(targets)`` for a list of links; missing targets are left out."""
        links = self.links(name)
        if links is None:
            return False
        self._resolver.resolve_many(links, self._locale_code, callback)
        return True

    def rich_text(self, name: str) -> dict[str, Any] | None:
        """A copy of the rich-text document in ``name`` whose embedded targets fill in when the pass churns."""
        value = self._values.get(name)
        if not is_rich_text(value):
            return None
        document = convert_rich_text(value)
        for data, link in iter_rich_text_targets(document):
            self._resolver.resolve(link, self._locale_code, partial(_fill_target, data, link))
        return document


def _fill_target(data: dict[str, Any], link: Link, target: Any) -> None:
    if target is not None:
        data["target"] = link.resolved(target)


class EntryModel(BaseModel):
    """Base class for typed entries decoded from a registered content type.

    Subclasses set ``content_type_id`` and may override ``from_fields`` to wire
    link fields through ``FieldsReader.resolve_link``. The default ``from_fields``
    validates the non-link field values against the model.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, populate_by_name=True)

    content_type_id: ClassVar[str] = ""

    sys: Sys

    _resolution_locale: str = PrivateAttr(default="")

    @classmethod
    def from_fields(cls, sys: Sys, fields: FieldsReader) -> EntryModel:
        return cls.model_validate({**fields.plain(), "sys": sys})

    @property
    def id(self) -> str:
        return self.sys.id

    @property
    def cache_key(self) -> str:
        return make_cache_key(self.sys.id, "Entry", self._resolution_locale)


def _model_factory(model: type[EntryModel]) -> EntryFactory:
    def build(sys: Sys, fields: FieldsReader) -> EntryModel:
        entry = model.from_fields(sys, fields)
        entry._resolution_locale = fields.locale_code
        return entry

    return build


class ContentTypeRegistry:
    """Maps content type ids to decode factories, fixed when the registry is built."""

    def __init__(self, models: Iterable[type[EntryModel]] = ()) -> None:
        self._factories: dict[str, EntryFactory] = {}
        self._models: dict[str, type[EntryModel]] = {}
        for model in models:
            self.register_model(model)

    def register(self, content_type_id: str, factory: EntryFactory) -> None:
        if not content_type_id:
            raise ValueError("content_type_id must not be empty")
        if content_type_id in self._factories:
            raise ValueError(f"Content type {content_type_id!r} is already registered")
        self._factories[content_type_id] = factory

    def register_model(self, model: type[EntryModel]) -> None:
        self.register(model.content_type_id, _model_factory(model))
        self._models[model.content_type_id] = model

    def lookup(self, content_type_id: str | None) -> EntryFactory | None:
        if content_type_id is None:
            return None
        return self._factories.get(content_type_id)

    def model_for(self, content_type_id: str) -> type[EntryModel] | None:
        return self._models.get(content_type_id)

    def __contains__(self, content_type_id: object) -> bool:
        return content_type_id in self._factories

    def __len__(self) -> int:
        return len(self._factories)


def peek_content_type_id(raw_item: Any) -> str | None:
    """Read ``sys.contentType.sys.id`` from an undecoded item."""
    if not isinstance(raw_item, dict):
        return None
    sys = raw_item.get("sys")
    if not isinstance(sys, dict):
        return None
    content_type = sys.get("contentType")
    if not isinstance(content_type, dict):
        return None
    inner = content_type.get("sys")
    if not isinstance(inner, dict):
        return None
    value = inner.get("id")
    return value if isinstance(value, str) else None
