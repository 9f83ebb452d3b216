import logging
from typing import Annotated

import typer

from content_graph.cli.browse import entries, locales
from content_graph.cli.sync import sync

app = typer.Typer(
    name="content-graph",
    help="Content Graph CLI: sync a space and browse its linked records.",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)


@app.callback()
def configure(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log requests and sync progress.")] = False,
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


app.command("sync")(sync)
app.command("locales")(locales)
app.command("entries")(entries)


def main() -> None:
    app()
