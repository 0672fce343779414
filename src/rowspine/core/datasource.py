"""Data source factory — create connection providers from URL strings.

A :class:`~rowspine.core.protocols.DataSource` hands out one *new*
connection per :meth:`get_connection` call; the transaction that asked for it
owns it and closes it. rowspine does no pooling.

Supported URL schemes
---------------------
==================  ==========================================  ============
Scheme              Example                                     Backend
==================  ==========================================  ============
``memory``          ``memory`` or ``:memory:`` or ``None``       SQLite RAM
``sqlite``          ``sqlite:///path/to/file.db``                SQLite file
``(file path)``     ``./data/my.db`` or ``/tmp/rowspine.db``     SQLite file
==================  ==========================================  ============

Usage
-----
::

    from rowspine.core.datasource import create_data_source

    data_source, info = create_data_source("sqlite:///people.db")
    print(info)
    # DataSourceInfo(backend='sqlite', persistent=True, path='/abs/people.db')

Design
------
An in-memory SQLite database normally lives and dies with one connection,
which would make every transaction see an empty database.
:class:`SqliteDataSource` therefore opens a named shared-cache in-memory
database and keeps one *anchor* connection open for its own lifetime; every
connection handed out attaches to the same database.
"""

from __future__ import annotations

import sqlite3
import uuid
from dataclasses import dataclass
from pathlib import Path

from rowspine.core.dialect import Dialect, SQLiteDialect, get_dialect
from rowspine.core.logging import get_logger
from rowspine.core.settings import get_settings

logger = get_logger(__name__)


# ── DataSourceInfo ───────────────────────────────────────────────────────


@dataclass(frozen=True)
class DataSourceInfo:
    """Metadata about a data source."""

    backend: str
    """Backend identifier: ``"sqlite"``."""

    persistent: bool
    """Whether data survives process exit."""

    url: str
    """The original URL or path used to create the data source."""

    resolved_path: str | None = None
    """For file-based SQLite, the resolved absolute path."""

    def __repr__(self) -> str:
        parts = [f"backend={self.backend!r}", f"persistent={self.persistent}"]
        if self.resolved_path:
            parts.append(f"path={self.resolved_path!r}")
        else:
            parts.append(f"url={self.url!r}")
        return f"DataSourceInfo({', '.join(parts)})"

    @property
    def is_sqlite(self) -> bool:
        return self.backend == "sqlite"


# ── SQLite data source ───────────────────────────────────────────────────


class SqliteDataSource:
    """Data source backed by the standard library ``sqlite3`` driver.

    Parameters:
        path: Database file, or ``":memory:"`` for a private shared-cache
              in-memory database.
        dialect: Defaults to :class:`~rowspine.core.dialect.SQLiteDialect`.
    """

    def __init__(self, path: str = ":memory:", *, dialect: Dialect | None = None) -> None:
        self._dialect: Dialect = dialect or SQLiteDialect()
        self._anchor: sqlite3.Connection | None = None
        if path == ":memory:":
            self._target = f"file:rowspine-{uuid.uuid4().hex}?mode=memory&cache=shared"
            self._uri = True
            self._anchor = self._connect()
        else:
            self._target = path
            self._uri = False

    @property
    def dialect(self) -> Dialect:
        return self._dialect

    @property
    def in_memory(self) -> bool:
        return self._uri

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(self._target, uri=self._uri, check_same_thread=False)

    def get_connection(self) -> sqlite3.Connection:
        """Open a new connection to the database."""
        return self._connect()

    def close(self) -> None:
        """Release the anchor of an in-memory database (its data is lost)."""
        if self._anchor is not None:
            self._anchor.close()
            self._anchor = None

    def __repr__(self) -> str:
        return f"SqliteDataSource({self._target!r}, dialect={self._dialect.name!r})"


# ── URL parsing ──────────────────────────────────────────────────────────


def _parse_url(db: str | None) -> tuple[str, str]:
    """Parse a database URL into (scheme, target).

    Returns
    -------
    tuple[str, str]
        (scheme, target) where scheme is one of
        ``"memory"``, ``"sqlite"``, ``"file"``.
    """
    if db is None or db in ("", "memory", ":memory:"):
        return "memory", ":memory:"

    for prefix in ("sqlite:///", "sqlite://"):
        if db.startswith(prefix):
            path = db[len(prefix):]
            if not path or path == ":memory:":
                return "memory", ":memory:"
            return "sqlite", path

    if "://" in db:
        raise ValueError(f"Unsupported database URL {db!r}; expected memory, sqlite:/// or a file path")

    # Bare file path: SQLite file
    return "file", db


# ── Main factory ─────────────────────────────────────────────────────────


def create_data_source(
    db: str | None = None,
    *,
    dialect: str | None = None,
) -> tuple[SqliteDataSource, DataSourceInfo]:
    """Create a data source from a URL, path, or keyword.

    Parameters
    ----------
    db:
        ``None`` falls back to ``ROWSPINE_DATABASE_URL`` (default
        ``"memory"``). Otherwise ``"memory"``, ``"sqlite:///file.db"`` or a
        bare file path.
    dialect:
        Dialect name override; falls back to ``ROWSPINE_DIALECT``, then to
        the backend's own dialect.

    Returns
    -------
    tuple[SqliteDataSource, DataSourceInfo]
    """
    settings = get_settings()
    url = db if db is not None else settings.database_url
    dialect_name = dialect or settings.dialect
    selected = get_dialect(dialect_name) if dialect_name else None

    scheme, target = _parse_url(url)

    if scheme == "memory":
        data_source = SqliteDataSource(":memory:", dialect=selected)
        info = DataSourceInfo(backend="sqlite", persistent=False, url=":memory:")
    else:
        path = Path(target)
        path.parent.mkdir(parents=True, exist_ok=True)
        resolved = str(path.resolve())
        data_source = SqliteDataSource(resolved, dialect=selected)
        info = DataSourceInfo(
            backend="sqlite",
            persistent=True,
            url=url,
            resolved_path=resolved,
        )

    logger.debug("data_source_created", info=repr(info), dialect=data_source.dialect.name)
    return data_source, info


__all__ = [
    "DataSourceInfo",
    "SqliteDataSource",
    "create_data_source",
]
