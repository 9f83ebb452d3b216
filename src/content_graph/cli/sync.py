"""Run a sync against the configured space and mirror it into SQL."""

from __future__ import annotations

import asyncio
from enum import Enum
from typing import Annotated

import typer

from content_graph.cli.common import console, get_client, render_table
from content_graph.core.ports.persistence import PersistenceIntegration
from content_graph.core.sync import SyncableTypes
from content_graph.errors import ContentGraphError


class SyncType(str, Enum):
    ALL = "all"
    ENTRIES = "entries"
    ASSETS = "assets"
    DELETIONS = "deletions"
    DELETED_ENTRIES = "deleted-entries"
    DELETED_ASSETS = "deleted-assets"


_SYNCABLE_TYPES = {
    SyncType.ALL: SyncableTypes.all,
    SyncType.ENTRIES: SyncableTypes.entries,
    SyncType.ASSETS: SyncableTypes.assets,
    SyncType.DELETIONS: SyncableTypes.all_deletions,
    SyncType.DELETED_ENTRIES: SyncableTypes.deleted_entries,
    SyncType.DELETED_ASSETS: SyncableTypes.deleted_assets,
}


def syncable_types_for(sync_type: SyncType, content_type: str | None) -> SyncableTypes:
    if content_type is not None:
        if sync_type not in (SyncType.ALL, SyncType.ENTRIES):
            raise typer.BadParameter("--content-type only applies to entries", param_hint="--content-type")
        return SyncableTypes.entries_of_content_type(content_type)
    return _SYNCABLE_TYPES[sync_type]()


def _get_persistence(database_url: str | None) -> PersistenceIntegration:
    from content_graph.db.engine import get_engine
    from content_graph.db.sql import SqlPersistence

    return SqlPersistence(get_engine(database_url))


def sync(
    sync_type: Annotated[SyncType, typer.Option("--type", help="Which records to sync.")] = SyncType.ALL,
    content_type: Annotated[str | None, typer.Option(help="Only sync entries of this content type.")] = None,
    database_url: Annotated[
        str | None, typer.Option(help="SQLAlchemy URL of the store (default: CONTENT_GRAPH_DATABASE_URL).")
    ] = None,
) -> None:
    """Sync the space, continuing from the stored token when there is one."""
    syncable_types = syncable_types_for(sync_type, content_type)
    persistence = _get_persistence(database_url)
    client = get_client(persistence)

    async def _run() -> None:
        try:
            await persistence.ensure_ready()
            space = await client.sync(syncable_types)
            render_table(
                ["assets", "entries", "deleted assets", "deleted entries", "unresolved links"],
                [
                    (
                        len(space.assets_by_id),
                        len(space.entries_by_id),
                        len(space.deleted_asset_ids),
                        len(space.deleted_entry_ids),
                        len(client.last_sync_misses),
                    )
                ],
            )
            console.print(f"[green]Sync token[/green] {space.sync_token}")
        finally:
            await client.aclose()
            await persistence.dispose()

    try:
        asyncio.run(_run())
    except ContentGraphError as exc:
        console.print(f"[red]Sync failed:[/red] {exc}")
        raise typer.Exit(1) from exc
