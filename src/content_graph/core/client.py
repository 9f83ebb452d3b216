"""Async client: fetches over a transport and decodes every response in its own pass."""

from __future__ import annotations

import logging
from typing import Any

from content_graph.config import ClientConfiguration
from content_graph.core.decoding import (
    ArrayResponse,
    DecodeContext,
    decode_assets,
    decode_content_types,
    decode_entries,
    decode_locales,
    decode_mixed,
    decode_models,
    decode_space,
)
from content_graph.core.link import Link
from content_graph.core.localization import LocaleGraph
from content_graph.core.persistence import persist_sync_page
from content_graph.core.ports.persistence import PersistenceIntegration
from content_graph.core.ports.transport import Transport
from content_graph.core.registry import ContentTypeRegistry, EntryModel
from content_graph.core.resources import Asset, Entry
from content_graph.core.sync import SyncableTypes, SyncPage, SyncSpace, SyncState
from content_graph.errors import NoResourceFoundError, PreviewSyncNotSupportedError
from content_graph.models import ContentType, Space

logger = logging.getLogger(__name__)

ALL_LOCALES = "*"


class Client:
    def __init__(
        self,
        config: ClientConfiguration,
        transport: Transport,
        registry: ContentTypeRegistry | None = None,
        persistence: PersistenceIntegration | None = None,
        locale_graph: LocaleGraph | None = None,
    ) -> None:
        self.config = config
        self._transport = transport
        self._registry = registry if registry is not None else ContentTypeRegistry()
        self._persistence = persistence
        self._locale_graph = locale_graph
        self.sync_space = SyncSpace()
        self.last_sync_misses: list[Link] = []

    @classmethod
    def from_config(cls, config: ClientConfiguration, **kwargs: Any) -> Client:
        from content_graph.transport.httpx_transport import HttpxTransport

        return cls(config, HttpxTransport(config), **kwargs)

    async def aclose(self) -> None:
        await self._transport.aclose()

    async def __aenter__(self) -> Client:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    @property
    def registry(self) -> ContentTypeRegistry:
        return self._registry

    @property
    def locale_graph(self) -> LocaleGraph | None:
        return self._locale_graph

    def _path(self, endpoint: str) -> str:
        return f"environments/{self.config.environment}/{endpoint}"

    async def _get(self, endpoint: str, params: dict[str, str] | None = None) -> Any:
        return await self._transport.get_json(self._path(endpoint), params)

    async def _require_locale_graph(self) -> LocaleGraph:
        if self._locale_graph is None:
            await self.fetch_locales()
        assert self._locale_graph is not None
        return self._locale_graph

    async def _context(self, params: dict[str, str] | None) -> DecodeContext:
        graph = await self._require_locale_graph()
        requested = (params or {}).get("locale")
        if requested == ALL_LOCALES:
            implied = None
        else:
            implied = requested or graph.default.code
        return DecodeContext(locale_graph=graph, registry=self._registry, implied_locale=implied)

    async def fetch_space(self) -> Space:
        return decode_space(await self._transport.get_json("", None))

    async def fetch_locales(self) -> LocaleGraph:
        locales = decode_locales(await self._get("locales"))
        graph = LocaleGraph(locales)
        self._locale_graph = graph
        logger.info("Loaded %d locale(s), default %s", len(graph), graph.default.code)
        if self._persistence is not None:
            await self._persistence.update_locale_codes([locale.code for locale in locales], graph.default.code)
        return graph

    async def fetch_content_types(self, params: dict[str, str] | None = None) -> ArrayResponse[ContentType]:
        return decode_content_types(await self._get("content_types", params))

    async def fetch_entries(self, params: dict[str, str] | None = None) -> ArrayResponse[Entry]:
        ctx = await self._context(params)
        return decode_entries(await self._get("entries", params), ctx)

    async def fetch_entry(self, entry_id: str, params: dict[str, str] | None = None) -> Entry:
        response = await self.fetch_entries({**(params or {}), "sys.id": entry_id})
        if not response.items:
            raise NoResourceFoundError(entry_id)
        return response.items[0]

    async def fetch_assets(self, params: dict[str, str] | None = None) -> ArrayResponse[Asset]:
        ctx = await self._context(params)
        return decode_assets(await self._get("assets", params), ctx)

    async def fetch_asset(self, asset_id: str, params: dict[str, str] | None = None) -> Asset:
        response = await self.fetch_assets({**(params or {}), "sys.id": asset_id})
        if not response.items:
            raise NoResourceFoundError(asset_id)
        return response.items[0]

    async def fetch_models(
        self, model: type[EntryModel], params: dict[str, str] | None = None
    ) -> ArrayResponse[Any]:
        """Fetch entries of ``model``'s content type, decoded through the registry."""
        params = {**(params or {}), "content_type": model.content_type_id}
        ctx = await self._context(params)
        return decode_models(await self._get("entries", params), ctx, model)

    async def fetch_mixed(self, params: dict[str, str] | None = None) -> ArrayResponse[Any]:
        ctx = await self._context(params)
        return decode_mixed(await self._get("entries", params), ctx)

    async def sync(self, syncable_types: SyncableTypes | None = None) -> SyncSpace:
        """Start or continue the sync chain, picking up a persisted token when there is one."""
        if self.sync_space.state is SyncState.FRESH and self._persistence is not None:
            token = await self._persistence.load_sync_token()
            if token:
                self.sync_space = SyncSpace(sync_token=token)
        if self.sync_space.state is SyncState.FRESH:
            return await self.initial_sync(syncable_types or SyncableTypes.all())
        return await self.next_sync(syncable_types)

    async def initial_sync(self, syncable_types: SyncableTypes | None = None) -> SyncSpace:
        self.sync_space = SyncSpace()
        await self._run_sync(syncable_types or SyncableTypes.all())
        return self.sync_space

    async def next_sync(self, syncable_types: SyncableTypes | None = None) -> SyncSpace:
        space = self.sync_space
        if not space.sync_token:
            raise ValueError("next_sync needs a sync token; run initial_sync first")
        if self.config.is_preview and not space.has_more_pages:
            raise PreviewSyncNotSupportedError()
        await self._run_sync(syncable_types)
        return space

    async def _run_sync(self, syncable_types: SyncableTypes | None) -> None:
        graph = await self._require_locale_graph()
        space = self.sync_space
        while True:
            raw = await self._get("sync", space.parameters(syncable_types))
            # Sync payloads always carry every locale, so no locale is implied.
            page = SyncPage.from_json(raw, DecodeContext(locale_graph=graph, registry=self._registry))
            misses = space.merge(page)
            if self._persistence is not None:
                await persist_sync_page(self._persistence, page)
            if not page.has_more_pages:
                self.last_sync_misses = misses
                break
        logger.info(
            "Sync settled with token %s: %d assets, %d entries",
            space.sync_token,
            len(space.assets_by_id),
            len(space.entries_by_id),
        )
