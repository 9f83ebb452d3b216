from collections.abc import Sequence
from typing import Protocol

from content_graph.core.resources import Asset, Entry


class PersistenceIntegration(Protocol):
    async def ensure_ready(self) -> None: ...

    async def update_locale_codes(self, codes: Sequence[str], default_code: str) -> None: ...

    async def create_asset(self, asset: Asset) -> None: ...

    async def delete_asset(self, asset_id: str) -> None: ...

    async def create_entry(self, entry: Entry) -> None: ...

    async def delete_entry(self, entry_id: str) -> None: ...

    async def update_sync_token(self, sync_token: str) -> None: ...

    async def load_sync_token(self) -> str | None: ...

    async def resolve_relationships(self, entries: Sequence[Entry]) -> None: ...

    async def save(self) -> None: ...

    async def dispose(self) -> None: ...
