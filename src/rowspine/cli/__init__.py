"""
CLI layer for rowspine.

Provides a Typer application whose commands derive table definitions from
entity classes and create them in a database. All mapping logic lives in
``rowspine.core``; this package handles only argument parsing and terminal
output.

Entry point::

    rowspine --help
"""

from rowspine.cli.app import app

__all__ = ["app"]
