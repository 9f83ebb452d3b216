"""Deferred link resolution for a single decode pass.

Decoders never resolve links inline. Every field that holds a link registers
a callback under the link's cache key; once the whole response (items and
includes) has been decoded and cached, ``churn`` looks every key up in the
data cache and fires the callbacks in one batch.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from typing import Any

from content_graph.core.data_cache import DataCache
from content_graph.core.link import Link, is_links_key, make_links_key, split_links_key

logger = logging.getLogger(__name__)

ResolveCallback = Callable[[Any], None]


class LinkResolver:
    def __init__(self, cache: DataCache | None = None) -> None:
        self._cache = cache if cache is not None else DataCache()
        self._callbacks: dict[str, list[ResolveCallback]] = {}
        self._links: dict[str, Link] = {}
        self.misses: list[Link] = []

    @property
    def cache(self) -> DataCache:
        return self._cache

    @property
    def pending(self) -> int:
        """Number of callbacks waiting for the next churn."""
        return sum(len(callbacks) for callbacks in self._callbacks.values())

    def cache_assets(self, assets: Iterable[Any]) -> None:
        for asset in assets:
            self._cache.add_asset(asset)

    def cache_entries(self, entries: Iterable[Any]) -> None:
        for entry in entries:
            self._cache.add_entry(entry)

    def cache_records(self, records: Iterable[Any]) -> None:
        for record in records:
            if getattr(record, "is_asset", False):
                self._cache.add_asset(record)
            else:
                self._cache.add_entry(record)

    def resolve(self, link: Link, locale_code: str, callback: ResolveCallback) -> None:
        """Register ``callback`` to receive the target of ``link``, or ``None`` if it is missing."""
        key = link.cache_key(locale_code)
        self._links.setdefault(key, link)
        self._callbacks.setdefault(key, []).append(callback)

    def resolve_many(self, links: Sequence[Link], locale_code: str, callback: ResolveCallback) -> None:
        """Register ``callback`` to receive the found targets of ``links``, in order.

        Missing members are left out of the emitted list.
        """
        keys = []
        for link in links:
            key = link.cache_key(locale_code)
            self._links.setdefault(key, link)
            keys.append(key)
        self._callbacks.setdefault(make_links_key(keys), []).append(callback)

    def churn(self) -> int:
        """Fire every registered callback against the cache and clear the registrations.

        Returns the number of callbacks fired. Callbacks registered while
        churning are fired in the same call, so a second churn with no new
        registrations does nothing.
        """
        fired = 0
        missed = 0
        while self._callbacks:
            batch, self._callbacks = self._callbacks, {}
            for key, callbacks in batch.items():
                if is_links_key(key):
                    found = []
                    for member in split_links_key(key):
                        item = self._cache.item(member)
                        if item is None:
                            self._record_miss(member)
                            missed += 1
                        else:
                            found.append(item)
                    for callback in callbacks:
                        callback(list(found))
                else:
                    item = self._cache.item(key)
                    if item is None:
                        self._record_miss(key)
                        missed += 1
                    for callback in callbacks:
                        callback(item)
                fired += len(callbacks)
        if fired:
            logger.debug(
                "Churned %d link callback(s) against %d cached record(s), %d miss(es)", fired, len(self._cache), missed
            )
        return fired

    def _record_miss(self, key: str) -> None:
        link = self._links.get(key)
        if link is not None and link not in self.misses:
            self.misses.append(link)
