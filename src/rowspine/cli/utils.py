"""
CLI utility helpers — entity loading and output formatting.
"""

from __future__ import annotations

import importlib
import json
from typing import Any, NoReturn

try:
    import typer
    from rich.console import Console
    from rich.markup import escape
    from rich.table import Table
except ImportError as e:  # pragma: no cover
    raise SystemExit("Missing CLI deps.  Install with:  pip install rowspine") from e

from rowspine.core.errors import RowspineError
from rowspine.core.schema import TableSpec

console = Console()
err_console = Console(stderr=True)


# ── Entity loading ───────────────────────────────────────────────────────


def load_entity(target: str) -> type:
    """Import ``module:Class`` (or ``module.Class``) and return the class."""
    if ":" in target:
        module_name, _, attr = target.partition(":")
    else:
        module_name, _, attr = target.rpartition(".")
    if not module_name or not attr:
        raise typer.BadParameter(f"expected MODULE:CLASS, got {target!r}")

    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise typer.BadParameter(f"cannot import module {module_name!r}: {exc}") from exc

    obj: Any = module
    for part in attr.split("."):
        obj = getattr(obj, part, None)
        if obj is None:
            raise typer.BadParameter(f"{module_name!r} has no attribute {attr!r}")
    if not isinstance(obj, type):
        raise typer.BadParameter(f"{target!r} is not a class")
    return obj


# ── Output helpers ───────────────────────────────────────────────────────


def fail(error: Exception) -> NoReturn:
    """Print ``error`` to stderr and exit with status 1."""
    if isinstance(error, RowspineError):
        err_console.print(f"[bold red]Error[/bold red] ({error.category.value}): {escape(error.message)}")
    else:
        err_console.print(f"[bold red]Error[/bold red]: {escape(str(error))}")
    raise typer.Exit(code=1)


def table_spec_dict(spec: TableSpec) -> dict[str, Any]:
    return {
        "table": spec.table_name,
        "id_column": spec.id_column.column_name if spec.id_column else None,
        "columns": [
            {
                "name": column.column_name,
                "property": column.property_name,
                "type": column.sql_type,
                "nullable": column.nullable,
                "primary_key": column.primary_key,
                "auto_increment": column.auto_increment,
            }
            for column in spec.columns
        ],
    }


def output_table_spec(spec: TableSpec, *, as_json: bool = False) -> None:
    """Render a ``TableSpec`` to the terminal."""
    if as_json:
        console.print_json(json.dumps(table_spec_dict(spec)))
        return

    table = Table(title=spec.table_name, show_lines=False)
    table.add_column("Column", style="bold")
    table.add_column("Property")
    table.add_column("Type")
    table.add_column("Nullable")
    table.add_column("Key")
    for column in spec.columns:
        key = "PK" if column.primary_key else ""
        if column.auto_increment:
            key = f"{key} auto".strip()
        table.add_row(
            column.column_name,
            column.property_name,
            column.sql_type,
            "yes" if column.nullable else "no",
            key,
        )
    console.print(table)
