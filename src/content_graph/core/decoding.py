"""Decoding of API responses into resources, one pass per response.

Every pass owns a ``DecodeContext``. Records register themselves in the
context's data cache and their links with its resolver while they are
decoded; the collection decoders churn the resolver once the whole response,
includes and all, has been read.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from pydantic import ValidationError

from content_graph.core.link import Link, convert_links
from content_graph.core.link_resolver import LinkResolver
from content_graph.core.localization import LocaleGraph, normalize_fields, project_fields
from content_graph.core.registry import (
    ContentTypeRegistry,
    EntryFactory,
    EntryModel,
    FieldsReader,
    peek_content_type_id,
)
from content_graph.core.resources import Asset, DeletedResource, Entry
from content_graph.errors import LocaleHandlingError, UnparseableResponseError
from content_graph.models import ContentType, Locale, ResourceType, Space, Sys

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class DecodeContext:
    """State owned by exactly one decode pass.

    ``implied_locale`` is the locale a single-locale request asked for. Records
    without ``sys.locale`` are read as flat values for it; with no implied
    locale they must carry every locale nested under each field.
    """

    locale_graph: LocaleGraph | None = None
    implied_locale: str | None = None
    registry: ContentTypeRegistry = field(default_factory=ContentTypeRegistry)
    resolver: LinkResolver = field(default_factory=LinkResolver)

    def require_locale_graph(self) -> LocaleGraph:
        if self.locale_graph is None:
            raise LocaleHandlingError(
                "No locale graph is available to decode localized records; fetch the locales first"
            )
        return self.locale_graph


@dataclass(frozen=True)
class LinkError:
    """A link target the response could not resolve."""

    id: str
    link_type: str

    @classmethod
    def from_json(cls, raw: Any) -> LinkError | None:
        if not isinstance(raw, dict):
            return None
        details = raw.get("details")
        if not isinstance(details, dict) or details.get("type") != "Link":
            return None
        link_id, link_type = details.get("id"), details.get("linkType")
        if not isinstance(link_id, str) or not isinstance(link_type, str):
            return None
        return cls(id=link_id, link_type=link_type)

    @classmethod
    def from_link(cls, link: Link) -> LinkError:
        return cls(id=link.id, link_type=link.link_type)


@dataclass
class ArrayResponse(Generic[T]):
    items: list[T]
    skip: int = 0
    limit: int = 0
    total: int = 0
    included_assets: list[Asset] = field(default_factory=list)
    included_entries: list[Any] = field(default_factory=list)
    errors: list[LinkError] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.items)


def _validate(model: Any, raw: Any, what: str) -> Any:
    try:
        return model.model_validate(raw)
    except ValidationError as exc:
        raise UnparseableResponseError(f"Unable to decode {what}: {exc}", data=raw) from exc


def _require_object(raw: Any, what: str) -> dict[str, Any]:
    if not isinstance(raw, dict):
        raise UnparseableResponseError(f"Expected {what} to be a JSON object", data=raw)
    return raw


def decode_sys(raw: Any) -> Sys:
    raw = _require_object(raw, "a record")
    if "sys" not in raw:
        raise UnparseableResponseError("Record is missing its 'sys' object", data=raw)
    return _validate(Sys, raw["sys"], "sys")


def decode_asset(raw: Any, ctx: DecodeContext) -> Asset:
    sys = decode_sys(raw)
    asset = Asset.from_json(raw, sys, ctx.require_locale_graph(), ctx.implied_locale)
    ctx.resolver.cache_assets([asset])
    return asset


def decode_entry(raw: Any, ctx: DecodeContext, register_links: bool = True) -> Entry:
    sys = decode_sys(raw)
    entry = Entry.from_json(raw, sys, ctx.require_locale_graph(), ctx.implied_locale)
    ctx.resolver.cache_entries([entry])
    if register_links:
        entry.register_links(ctx.resolver)
    return entry


def decode_deleted_resource(raw: Any) -> DeletedResource:
    return DeletedResource(decode_sys(raw))


def decode_model(raw: Any, factory: EntryFactory, ctx: DecodeContext) -> Any:
    """Decode an entry through a registered factory, using the flat values for its locale."""
    sys = decode_sys(raw)
    graph = ctx.require_locale_graph()
    marker = sys.locale or ctx.implied_locale
    selected = graph.get(marker) or graph.default
    wrap_code = selected.code if marker is not None else None
    localized = normalize_fields(raw.get("fields"), wrap_code)
    values = {name: convert_links(value) for name, value in project_fields(localized, selected, graph).items()}
    try:
        item = factory(sys, FieldsReader(values, selected.code, ctx.resolver))
    except ValidationError as exc:
        raise UnparseableResponseError(f"Unable to decode entry {sys.id!r}: {exc}", data=raw) from exc
    if hasattr(item, "cache_key"):
        ctx.resolver.cache_entries([item])
    return item


def decode_resource(raw: Any, ctx: DecodeContext) -> Any:
    """Decode any record by its ``sys.type``."""
    sys = decode_sys(raw)
    if sys.type == ResourceType.ASSET:
        return decode_asset(raw, ctx)
    if sys.type == ResourceType.ENTRY:
        return decode_entry(raw, ctx)
    if sys.type in (ResourceType.DELETED_ASSET, ResourceType.DELETED_ENTRY):
        return decode_deleted_resource(raw)
    if sys.type == ResourceType.CONTENT_TYPE:
        return _validate(ContentType, raw, "content type")
    raise UnparseableResponseError(f"Unsupported resource type {sys.type!r}", data=raw)


def _items(raw: Any) -> list[Any]:
    raw = _require_object(raw, "a collection response")
    items = raw.get("items")
    if not isinstance(items, list):
        raise UnparseableResponseError("Collection response is missing its 'items' array", data=raw)
    return items


def _includes(raw: dict[str, Any], key: str) -> list[Any]:
    includes = raw.get("includes")
    if not isinstance(includes, dict):
        return []
    found = includes.get(key)
    return found if isinstance(found, list) else []


def _finish(
    raw: dict[str, Any],
    items: list[Any],
    ctx: DecodeContext,
    included_assets: list[Asset],
    included_entries: list[Any],
) -> ArrayResponse[Any]:
    ctx.resolver.churn()

    errors: list[LinkError] = []
    for raw_error in raw.get("errors") or []:
        error = LinkError.from_json(raw_error)
        if error is not None and error not in errors:
            errors.append(error)
    for link in ctx.resolver.misses:
        error = LinkError.from_link(link)
        if error not in errors:
            errors.append(error)

    return ArrayResponse(
        items=items,
        skip=int(raw.get("skip", 0)),
        limit=int(raw.get("limit", len(items))),
        total=int(raw.get("total", len(items))),
        included_assets=included_assets,
        included_entries=included_entries,
        errors=errors,
    )


def _decode_collection(
    raw: Any,
    ctx: DecodeContext,
    decode_item: Callable[[Any], Any | None],
    decode_included_entry: Callable[[Any], Any | None],
) -> ArrayResponse[Any]:
    raw_items = _items(raw)
    try:
        items = [item for item in (decode_item(r) for r in raw_items) if item is not None]
        included_assets = [decode_asset(r, ctx) for r in _includes(raw, "Asset")]
        included_entries = [
            item for item in (decode_included_entry(r) for r in _includes(raw, "Entry")) if item is not None
        ]
    except UnparseableResponseError as exc:
        logger.error("Failed to decode collection: %s", exc.message)
        raise
    return _finish(raw, items, ctx, included_assets, included_entries)


def decode_entries(raw: Any, ctx: DecodeContext) -> ArrayResponse[Entry]:
    return _decode_collection(raw, ctx, lambda r: decode_entry(r, ctx), lambda r: decode_entry(r, ctx))


def decode_assets(raw: Any, ctx: DecodeContext) -> ArrayResponse[Asset]:
    return _decode_collection(raw, ctx, lambda r: decode_asset(r, ctx), lambda r: decode_entry(r, ctx))


def _decode_registered(raw_item: Any, ctx: DecodeContext) -> Any | None:
    factory = ctx.registry.lookup(peek_content_type_id(raw_item))
    if factory is None:
        return None
    return decode_model(raw_item, factory, ctx)


def decode_models(raw: Any, ctx: DecodeContext, model: type[EntryModel]) -> ArrayResponse[Any]:
    """Decode a collection where every item must be of ``model``'s content type."""
    factory = ctx.registry.lookup(model.content_type_id)
    if factory is None:
        raise ValueError(f"Content type {model.content_type_id!r} is not registered")

    def decode_item(raw_item: Any) -> Any:
        found = peek_content_type_id(raw_item)
        if found != model.content_type_id:
            raise UnparseableResponseError(
                f"Expected items of content type {model.content_type_id!r}, got {found!r}", data=raw_item
            )
        return decode_model(raw_item, factory, ctx)

    return _decode_collection(raw, ctx, decode_item, lambda r: _decode_registered(r, ctx))


def decode_mixed(raw: Any, ctx: DecodeContext) -> ArrayResponse[Any]:
    """Decode a collection of any registered content types, skipping unregistered ones."""
    return _decode_collection(raw, ctx, lambda r: _decode_registered(r, ctx), lambda r: _decode_registered(r, ctx))


def decode_content_types(raw: Any) -> ArrayResponse[ContentType]:
    raw_items = _items(raw)
    items = [_validate(ContentType, r, "content type") for r in raw_items]
    return ArrayResponse(
        items=items,
        skip=int(raw.get("skip", 0)),
        limit=int(raw.get("limit", len(items))),
        total=int(raw.get("total", len(items))),
    )


def decode_locales(raw: Any) -> list[Locale]:
    return [_validate(Locale, r, "locale") for r in _items(raw)]


def decode_space(raw: Any) -> Space:
    return _validate(Space, _require_object(raw, "a space"), "space")
