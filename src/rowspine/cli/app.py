"""
Root Typer application for the rowspine CLI.
"""

from __future__ import annotations

import sys

try:
    import typer
    from typer import Typer
except ImportError:  # pragma: no cover
    print("typer is required for the CLI.  Install with:  pip install rowspine")
    sys.exit(1)

from rowspine.core.logging import configure_logging
from rowspine.core.settings import get_settings

app = Typer(
    name="rowspine",
    help="rowspine — map entity classes to tables and repositories.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from importlib.metadata import version as pkg_version

        try:
            v = pkg_version("rowspine")
        except Exception:
            from rowspine import __version__ as v
        typer.echo(f"rowspine {v}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """rowspine CLI — inspect entity schemas and create tables."""
    settings = get_settings()
    configure_logging(level=settings.log_level, json_format=settings.log_format == "json")


# ── Commands ─────────────────────────────────────────────────────────────

from rowspine.cli.schema import create_table, ddl, describe  # noqa: E402

app.command("ddl")(ddl)
app.command("describe")(describe)
app.command("create-table")(create_table)
