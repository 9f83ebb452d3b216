import logging

from content_graph.core.ports.persistence import PersistenceIntegration
from content_graph.core.sync import SyncPage

logger = logging.getLogger(__name__)


async def persist_sync_page(persistence: PersistenceIntegration, page: SyncPage) -> None:
    """Mirror one merged sync page into a persistence store."""
    for asset in page.assets:
        await persistence.create_asset(asset)
    for entry in page.entries:
        await persistence.create_entry(entry)
    for asset_id in page.deleted_asset_ids:
        await persistence.delete_asset(asset_id)
    for entry_id in page.deleted_entry_ids:
        await persistence.delete_entry(entry_id)
    await persistence.update_sync_token(page.sync_token)
    await persistence.resolve_relationships(page.entries)
    await persistence.save()
    logger.info("Persisted sync page with token %s", page.sync_token)
