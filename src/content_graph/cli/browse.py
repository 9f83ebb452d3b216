import asyncio
from typing import Annotated

import typer

from content_graph.cli.common import console, get_client, render_table
from content_graph.errors import ContentGraphError


def locales() -> None:
    """List the environment's locales with their fallback chains."""
    client = get_client()

    async def _run() -> None:
        try:
            graph = await client.fetch_locales()
            rows = [
                (
                    locale.code,
                    locale.name,
                    "yes" if locale.default else "",
                    " -> ".join(graph.fallback_chain(locale.code)),
                )
                for locale in graph.locales.values()
            ]
            render_table(["code", "name", "default", "fallback chain"], rows)
        finally:
            await client.aclose()

    try:
        asyncio.run(_run())
    except ContentGraphError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(1) from exc


def entries(
    content_type: Annotated[str | None, typer.Option(help="Only list entries of this content type.")] = None,
    locale: Annotated[str | None, typer.Option(help="Locale code to request.")] = None,
    limit: Annotated[int, typer.Option(help="Max entries to return.")] = 20,
) -> None:
    """List entries and the links they could not resolve."""
    client = get_client()
    params = {"limit": str(limit)}
    if content_type is not None:
        params["content_type"] = content_type
    if locale is not None:
        params["locale"] = locale

    async def _run() -> None:
        try:
            response = await client.fetch_entries(params)
            rows = [
                (entry.id, entry.content_type_id or "", ", ".join(sorted(entry.fields)))
                for entry in response.items
            ]
            render_table(["id", "content type", "fields"], rows)
            if response.errors:
                render_table(
                    ["id", "link type"],
                    [(error.id, error.link_type) for error in response.errors],
                    title="Unresolved links",
                )
        finally:
            await client.aclose()

    try:
        asyncio.run(_run())
    except ContentGraphError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(1) from exc
