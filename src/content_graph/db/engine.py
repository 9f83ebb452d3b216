import os

from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from content_graph.config import DEFAULT_DATABASE_URL


def get_engine(db_url: str | None = None) -> AsyncEngine:
    db_url = db_url or os.getenv("CONTENT_GRAPH_DATABASE_URL", DEFAULT_DATABASE_URL)
    return create_async_engine(db_url, future=True)
