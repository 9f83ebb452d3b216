"""Incremental sync: decode sync pages and merge them into a persistent graph.

A sync chain is a sequence of pages. Every page is merged into the space as
soon as it is decoded; links are resolved once, across the whole graph, after
the page that reports no further pages.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from urllib.parse import parse_qs, urlparse

from content_graph.core.decoding import DecodeContext, decode_asset, decode_entry, decode_sys
from content_graph.core.link import Link
from content_graph.core.link_resolver import LinkResolver
from content_graph.core.resources import Asset, Entry
from content_graph.errors import UnparseableResponseError
from content_graph.models import ResourceType

logger = logging.getLogger(__name__)

SYNC_TOKEN_PARAMETER = "sync_token"


@dataclass(frozen=True)
class SyncableTypes:
    """Which records a sync chain covers."""

    type: str = "all"
    content_type_id: str | None = None

    @property
    def parameters(self) -> dict[str, str]:
        if self.content_type_id is not None:
            return {"type": "Entry", "content_type": self.content_type_id}
        if self.type == "all":
            return {}
        return {"type": self.type}

    @classmethod
    def all(cls) -> SyncableTypes:
        return cls("all")

    @classmethod
    def entries(cls) -> SyncableTypes:
        return cls("Entry")

    @classmethod
    def assets(cls) -> SyncableTypes:
        return cls("Asset")

    @classmethod
    def entries_of_content_type(cls, content_type_id: str) -> SyncableTypes:
        if not content_type_id:
            raise ValueError("content_type_id must not be empty")
        return cls("Entry", content_type_id)

    @classmethod
    def all_deletions(cls) -> SyncableTypes:
        return cls("Deletion")

    @classmethod
    def deleted_entries(cls) -> SyncableTypes:
        return cls("DeletedEntry")

    @classmethod
    def deleted_assets(cls) -> SyncableTypes:
        return cls("DeletedAsset")


class SyncState(str, Enum):
    FRESH = "fresh"
    PAGING = "paging"
    SETTLED = "settled"


def extract_sync_token(url: str) -> str:
    """Pull the ``sync_token`` query parameter out of a continuation url."""
    values = parse_qs(urlparse(url).query).get(SYNC_TOKEN_PARAMETER)
    if not values or not values[0]:
        raise UnparseableResponseError(f"No sync token in url {url!r}", data=url)
    return values[0]


@dataclass
class SyncPage:
    """One decoded page of a sync chain."""

    sync_token: str
    has_more_pages: bool
    assets: list[Asset] = field(default_factory=list)
    entries: list[Entry] = field(default_factory=list)
    deleted_asset_ids: list[str] = field(default_factory=list)
    deleted_entry_ids: list[str] = field(default_factory=list)

    @classmethod
    def from_json(cls, raw: Any, ctx: DecodeContext) -> SyncPage:
        if not isinstance(raw, dict):
            raise UnparseableResponseError("Expected a sync page to be a JSON object", data=raw)

        next_page_url = raw.get("nextPageUrl")
        next_sync_url = raw.get("nextSyncUrl")
        if isinstance(next_page_url, str):
            has_more_pages, url = True, next_page_url
        elif isinstance(next_sync_url, str):
            has_more_pages, url = False, next_sync_url
        else:
            raise UnparseableResponseError("Sync page has neither 'nextPageUrl' nor 'nextSyncUrl'", data=raw)

        items = raw.get("items")
        if not isinstance(items, list):
            raise UnparseableResponseError("Sync page is missing its 'items' array", data=raw)

        page = cls(sync_token=extract_sync_token(url), has_more_pages=has_more_pages)
        for item in items:
            sys = decode_sys(item)
            if sys.type == ResourceType.ASSET:
                page.assets.append(decode_asset(item, ctx))
            elif sys.type == ResourceType.ENTRY:
                # Links are resolved across the whole graph once the chain settles.
                page.entries.append(decode_entry(item, ctx, register_links=False))
            elif sys.type == ResourceType.DELETED_ASSET:
                page.deleted_asset_ids.append(sys.id)
            elif sys.type == ResourceType.DELETED_ENTRY:
                page.deleted_entry_ids.append(sys.id)
            elif sys.type == ResourceType.CONTENT_TYPE:
                continue
            else:
                raise UnparseableResponseError(f"Unexpected sync item type {sys.type!r}", data=item)
        return page


class SyncSpace:
    """The client's local copy of a space, kept current by merging sync pages.

    Assets and entries are keyed by id. Ids deleted by the server are kept so
    callers can tell a deletion from a record that was never seen.
    """

    def __init__(self, sync_token: str = "") -> None:
        self.assets_by_id: dict[str, Asset] = {}
        self.entries_by_id: dict[str, Entry] = {}
        self.deleted_asset_ids: set[str] = set()
        self.deleted_entry_ids: set[str] = set()
        self.sync_token = sync_token
        self.has_more_pages = False

    @property
    def state(self) -> SyncState:
        if not self.sync_token:
            return SyncState.FRESH
        if self.has_more_pages:
            return SyncState.PAGING
        return SyncState.SETTLED

    @property
    def assets(self) -> list[Asset]:
        return list(self.assets_by_id.values())

    @property
    def entries(self) -> list[Entry]:
        return list(self.entries_by_id.values())

    def parameters(self, syncable_types: SyncableTypes | None = None) -> dict[str, str]:
        """Query parameters for the next request of this space's chain."""
        if self.state is SyncState.FRESH:
            params = {"initial": "true"}
        else:
            params = {SYNC_TOKEN_PARAMETER: self.sync_token}
        # Continuation pages carry everything in the token.
        if self.state is not SyncState.PAGING and syncable_types is not None:
            params.update(syncable_types.parameters)
        return params

    def merge(self, page: SyncPage) -> list[Link]:
        """Apply ``page`` and, when it ends the chain, resolve links graph-wide.

        Upserts are applied before deletions, so an id both updated and deleted
        in one page ends up deleted. Returns the links left unresolved by the
        resolution pass, or an empty list when more pages follow.
        """
        assets = dict(self.assets_by_id)
        entries = dict(self.entries_by_id)
        deleted_assets = set(self.deleted_asset_ids)
        deleted_entries = set(self.deleted_entry_ids)

        for asset in page.assets:
            assets[asset.id] = asset
            deleted_assets.discard(asset.id)
        for entry in page.entries:
            entries[entry.id] = entry
            deleted_entries.discard(entry.id)
        for asset_id in page.deleted_asset_ids:
            assets.pop(asset_id, None)
            deleted_assets.add(asset_id)
        for entry_id in page.deleted_entry_ids:
            entries.pop(entry_id, None)
            deleted_entries.add(entry_id)

        self.assets_by_id = assets
        self.entries_by_id = entries
        self.deleted_asset_ids = deleted_assets
        self.deleted_entry_ids = deleted_entries
        self.sync_token = page.sync_token
        self.has_more_pages = page.has_more_pages
        logger.info(
            "Merged sync page: %d assets, %d entries, %d deletions, more pages: %s",
            len(page.assets),
            len(page.entries),
            len(page.deleted_asset_ids) + len(page.deleted_entry_ids),
            page.has_more_pages,
        )

        if page.has_more_pages:
            return []
        return self.resolve_links()

    def resolve_links(self) -> list[Link]:
        """Run one resolution pass over every record in the space."""
        resolver = LinkResolver()
        resolver.cache_assets(self.assets_by_id.values())
        resolver.cache_entries(self.entries_by_id.values())
        for entry in self.entries_by_id.values():
            entry.register_links(resolver)
        fired = resolver.churn()
        logger.debug("Resolved sync graph: %d callbacks, %d misses", fired, len(resolver.misses))
        return list(resolver.misses)
