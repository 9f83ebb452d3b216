from typing import Any


class DataCache:
    """Decoded assets and entries of one decode pass, keyed by ``id_type_locale``.

    Records expose their composite key as ``cache_key``. The cache lives as
    long as the link resolver that owns it and is never shared between passes.
    """

    def __init__(self) -> None:
        self._assets: dict[str, Any] = {}
        self._entries: dict[str, Any] = {}

    def add_asset(self, asset: Any) -> None:
        self._assets[asset.cache_key] = asset

    def add_entry(self, entry: Any) -> None:
        self._entries[entry.cache_key] = entry

    def asset(self, key: str) -> Any:
        return self._assets.get(key)

    def entry(self, key: str) -> Any:
        return self._entries.get(key)

    def item(self, key: str) -> Any:
        found = self._assets.get(key)
        if found is None:
            found = self._entries.get(key)
        return found

    def __contains__(self, key: object) -> bool:
        return key in self._assets or key in self._entries

    def __len__(self) -> int:
        return len(self._assets) + len(self._entries)
