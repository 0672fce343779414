"""
CLI: ``rowspine ddl`` / ``describe`` / ``create-table`` — schema commands.
"""

from __future__ import annotations

import sqlite3

import typer

from rowspine.cli.utils import console, fail, load_entity, output_table_spec
from rowspine.core.errors import ConfigurationError, RowspineError


def ddl(
    entity: str = typer.Argument(..., help="Entity class as MODULE:CLASS"),
    dialect: str | None = typer.Option(None, "--dialect", help="ansi | sqlite (default: settings, then ansi)"),
) -> None:
    """Print the CREATE TABLE statement of an entity."""
    from rowspine.core.dialect import get_dialect
    from rowspine.core.schema import create_table_sql, table_spec_of
    from rowspine.core.settings import get_settings

    entity_type = load_entity(entity)
    try:
        target = get_dialect(dialect or get_settings().dialect or "ansi")
        sql = create_table_sql(table_spec_of(entity_type), target)
    except (RowspineError, ValueError) as exc:
        fail(exc)
    typer.echo(sql)


def describe(
    entity: str = typer.Argument(..., help="Entity class as MODULE:CLASS"),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Show the derived table of an entity."""
    from rowspine.core.schema import table_spec_of

    entity_type = load_entity(entity)
    try:
        spec = table_spec_of(entity_type)
    except RowspineError as exc:
        fail(exc)
    output_table_spec(spec, as_json=json_out)


def create_table(
    entity: str = typer.Argument(..., help="Entity class as MODULE:CLASS"),
    database: str | None = typer.Option(None, "--database", "-d", help="Database URL or path"),
) -> None:
    """Create the table of an entity in one transaction.

    Refuses in-memory databases, which vanish when the command exits.
    """
    from rowspine.core.datasource import create_data_source
    from rowspine.core.schema import create_table as run_create_table
    from rowspine.core.transaction import transaction

    entity_type = load_entity(entity)
    try:
        data_source, info = create_data_source(database)
    except ValueError as exc:
        fail(exc)
    if not info.persistent:
        data_source.close()
        fail(ConfigurationError("in-memory database is not persistent; pass --database or set ROWSPINE_DATABASE_URL"))
    try:
        with transaction(data_source):
            sql = run_create_table(entity_type)
    except RowspineError as exc:
        fail(exc)
    except sqlite3.Error as exc:
        fail(exc)
    finally:
        data_source.close()
    console.print(f"[green]Created[/green] {entity_type.__name__} in {info.url}")
    typer.echo(sql)
