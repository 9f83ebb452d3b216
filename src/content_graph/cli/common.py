from collections.abc import Sequence
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from content_graph.config import ClientConfiguration
from content_graph.core.client import Client
from content_graph.core.ports.persistence import PersistenceIntegration

console = Console()


def render_table(headers: Sequence[str], rows: Sequence[tuple[Any, ...]], title: str | None = None) -> None:
    table = Table(title=title, show_lines=False)
    for h in headers:
        table.add_column(h)
    for row in rows:
        table.add_row(*(str(v) for v in row))
    console.print(table)
    console.print(f"({len(rows)} rows)")


def get_client(persistence: PersistenceIntegration | None = None) -> Client:
    try:
        config = ClientConfiguration.from_env()
    except ValueError as exc:
        console.print("[red]Set CONTENT_GRAPH_SPACE_ID and CONTENT_GRAPH_ACCESS_TOKEN.[/red]")
        raise typer.Exit(1) from exc
    return Client.from_config(config, persistence=persistence)
