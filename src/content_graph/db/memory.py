from collections.abc import Sequence
from dataclasses import dataclass

from content_graph.core.resources import Asset, Entry
from content_graph.db.helpers import RelationshipRow, fields_to_json, relationship_rows, timestamp


@dataclass(frozen=True)
class InMemoryRecord:
    record_id: str
    content_type_id: str | None
    updated_at: str | None
    fields_json: str


class InMemoryPersistence:
    def __init__(self) -> None:
        self.assets: dict[str, InMemoryRecord] = {}
        self.entries: dict[str, InMemoryRecord] = {}
        self.relationships: dict[str, list[RelationshipRow]] = {}
        self.locale_codes: list[str] = []
        self.default_locale_code: str | None = None
        self.sync_token: str | None = None
        self.saves = 0
        self.ready = False
        self.disposed = False

    async def ensure_ready(self) -> None:
        self.ready = True

    async def update_locale_codes(self, codes: Sequence[str], default_code: str) -> None:
        self.locale_codes = list(codes)
        self.default_locale_code = default_code

    async def create_asset(self, asset: Asset) -> None:
        self.assets[asset.id] = InMemoryRecord(asset.id, None, timestamp(asset), fields_to_json(asset))

    async def delete_asset(self, asset_id: str) -> None:
        self.assets.pop(asset_id, None)

    async def create_entry(self, entry: Entry) -> None:
        self.entries[entry.id] = InMemoryRecord(
            entry.id, entry.content_type_id, timestamp(entry), fields_to_json(entry)
        )

    async def delete_entry(self, entry_id: str) -> None:
        self.entries.pop(entry_id, None)
        self.relationships.pop(entry_id, None)

    async def update_sync_token(self, sync_token: str) -> None:
        self.sync_token = sync_token

    async def load_sync_token(self) -> str | None:
        return self.sync_token

    async def resolve_relationships(self, entries: Sequence[Entry]) -> None:
        for entry in entries:
            self.relationships[entry.id] = relationship_rows(entry)

    async def save(self) -> None:
        self.saves += 1

    async def dispose(self) -> None:
        self.disposed = True
