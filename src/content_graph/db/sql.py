import logging
from collections.abc import Sequence
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine

from content_graph.core.resources import Asset, Entry
from content_graph.db.helpers import fields_to_json, relationship_rows, timestamp

logger = logging.getLogger(__name__)

_DDL = (
    "CREATE TABLE IF NOT EXISTS assets ("
    " id TEXT PRIMARY KEY,"
    " updated_at TEXT,"
    " fields TEXT NOT NULL"
    ")",
    "CREATE TABLE IF NOT EXISTS entries ("
    " id TEXT PRIMARY KEY,"
    " content_type_id TEXT,"
    " updated_at TEXT,"
    " fields TEXT NOT NULL"
    ")",
    "CREATE TABLE IF NOT EXISTS relationships ("
    " parent_id TEXT NOT NULL,"
    " field TEXT NOT NULL,"
    " locale TEXT NOT NULL,"
    " position INTEGER NOT NULL,"
    " child_id TEXT NOT NULL,"
    " child_type TEXT NOT NULL,"
    " PRIMARY KEY (parent_id, field, locale, position)"
    ")",
    "CREATE TABLE IF NOT EXISTS sync_state ("
    " id INTEGER PRIMARY KEY,"
    " sync_token TEXT NOT NULL"
    ")",
    "CREATE TABLE IF NOT EXISTS locales ("
    " code TEXT PRIMARY KEY,"
    " is_default BOOLEAN NOT NULL"
    ")",
)


class SqlPersistence:
    """Mirrors the synced space into SQL tables.

    Writes are buffered and applied in a single transaction on ``save``, so a
    sync page is stored completely or not at all.
    """

    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine
        self._pending: list[tuple[str, dict[str, Any]]] = []

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def ensure_ready(self) -> None:
        async with self._engine.begin() as conn:
            for ddl in _DDL:
                await conn.execute(text(ddl))

    async def update_locale_codes(self, codes: Sequence[str], default_code: str) -> None:
        async with self._engine.begin() as conn:
            await conn.execute(text("DELETE FROM locales"))
            for code in codes:
                await conn.execute(
                    text("INSERT INTO locales (code, is_default) VALUES (:code, :is_default)"),
                    {"code": code, "is_default": code == default_code},
                )

    async def create_asset(self, asset: Asset) -> None:
        self._pending.append(
            (
                """
                INSERT INTO assets (id, updated_at, fields)
                VALUES (:id, :updated_at, :fields)
                ON CONFLICT (id) DO UPDATE SET updated_at = excluded.updated_at, fields = excluded.fields
                """,
                {"id": asset.id, "updated_at": timestamp(asset), "fields": fields_to_json(asset)},
            )
        )

    async def delete_asset(self, asset_id: str) -> None:
        self._pending.append(("DELETE FROM assets WHERE id = :id", {"id": asset_id}))

    async def create_entry(self, entry: Entry) -> None:
        self._pending.append(
            (
                """
                INSERT INTO entries (id, content_type_id, updated_at, fields)
                VALUES (:id, :content_type_id, :updated_at, :fields)
                ON CONFLICT (id) DO UPDATE SET
                    content_type_id = excluded.content_type_id,
                    updated_at = excluded.updated_at,
                    fields = excluded.fields
                """,
                {
                    "id": entry.id,
                    "content_type_id": entry.content_type_id,
                    "updated_at": timestamp(entry),
                    "fields": fields_to_json(entry),
                },
            )
        )

    async def delete_entry(self, entry_id: str) -> None:
        self._pending.append(("DELETE FROM entries WHERE id = :id", {"id": entry_id}))
        self._pending.append(("DELETE FROM relationships WHERE parent_id = :id", {"id": entry_id}))

    async def update_sync_token(self, sync_token: str) -> None:
        self._pending.append(
            (
                """
                INSERT INTO sync_state (id, sync_token) VALUES (1, :token)
                ON CONFLICT (id) DO UPDATE SET sync_token = excluded.sync_token
                """,
                {"token": sync_token},
            )
        )

    async def load_sync_token(self) -> str | None:
        async with self._engine.begin() as conn:
            result = await conn.execute(text("SELECT sync_token FROM sync_state WHERE id = 1"))
            return result.scalar_one_or_none()

    async def resolve_relationships(self, entries: Sequence[Entry]) -> None:
        for entry in entries:
            self._pending.append(("DELETE FROM relationships WHERE parent_id = :id", {"id": entry.id}))
            for row in relationship_rows(entry):
                self._pending.append(
                    (
                        "INSERT INTO relationships (parent_id, field, locale, position, child_id, child_type) "
                        "VALUES (:parent_id, :field, :locale, :position, :child_id, :child_type)",
                        {
                            "parent_id": row.parent_id,
                            "field": row.field,
                            "locale": row.locale,
                            "position": row.position,
                            "child_id": row.child_id,
                            "child_type": row.child_type,
                        },
                    )
                )

    async def save(self) -> None:
        statements, self._pending = self._pending, []
        async with self._engine.begin() as conn:
            for sql, params in statements:
                await conn.execute(text(sql), params)
        logger.info("Saved %d statement(s)", len(statements))

    async def list_entries(self, limit: int = 50) -> list[tuple[str, str | None, str | None]]:
        """Return (id, content_type_id, updated_at) rows ordered by id."""
        async with self._engine.begin() as conn:
            result = await conn.execute(
                text("SELECT id, content_type_id, updated_at FROM entries ORDER BY id LIMIT :lim"),
                {"lim": limit},
            )
            return [(str(row[0]), row[1], row[2]) for row in result.fetchall()]

    async def count(self, table: str) -> int:
        if table not in ("assets", "entries", "relationships", "locales"):
            raise ValueError(f"Unknown table {table!r}")
        async with self._engine.begin() as conn:
            result = await conn.execute(text(f"SELECT COUNT(*) FROM {table}"))
            return int(result.scalar_one())

    async def dispose(self) -> None:
        await self._engine.dispose()
