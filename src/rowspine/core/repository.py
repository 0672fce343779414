"""Repository dispatcher — abstract contracts backed by generated SQL.

A repository *contract* is a class deriving from
``Repository[EntityType, IdType]`` whose methods have no body. The
dispatcher turns it into a working implementation::

    class PersonRepository(Repository[Person, int]):
        def find_by_name(self, name: str) -> Person | None: ...

        @query("SELECT * FROM PERSON WHERE AGE >= ?")
        def find_adults(self, age: int) -> list[Person]: ...

    people = create_repository(PersonRepository)
    with transaction(data_source):
        people.save(Person(name="Ada"))
        people.find_by_name("Ada")

Architecture:
    ::

        create_repository(contract)            (once per contract, cached)
        │
        ├── entity type      ← Repository[Entity, Id] generic argument
        ├── TableSpec        ← table_spec_of(entity)
        ├── constructor      ← entity() must accept no argument
        └── dispatch table   method name → strategy
                               @query("…")          QueryMethod
                               find_all             FindAll
                               find_by_id           FindById
                               save                 Save
                               find_by_<property>   FindByProperty
                               anything else        Unsupported
                               (classmethods, staticmethods and
                                underscore-prefixed names included)

        call  ──► ContextCheck ──► strategy(tx, args)
                  (no transaction → NoActiveTransactionError)

camelCase spellings (``findAll``, ``findById``, ``findByAge``) dispatch
the same way as their snake_case forms; ``findByFirstName`` matches a
``firstName`` or a ``first_name`` property.

Every strategy runs its statements through the ambient
:class:`~rowspine.core.transaction.TransactionContext`, so driver failures
arrive as :class:`~rowspine.core.errors.DataAccessError` and the
enclosing transaction decides between commit and rollback.

Tags:
    repository, dispatcher, strategy-table, dynamic-implementation, rowspine
"""

from __future__ import annotations

import inspect
import re
import threading
import typing
from collections.abc import Callable, Mapping, Sequence
from contextlib import closing
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Generic, Protocol, TypeVar

from rowspine.core import markers
from rowspine.core.dialect import Dialect
from rowspine.core.errors import RepositoryConfigurationError, UnsupportedRepositoryOperation
from rowspine.core.logging import get_logger
from rowspine.core.mapper import entity_to_parameters, propagate_generated_key, query_entities, row_to_entity
from rowspine.core.schema import ColumnSpec, TableSpec, table_spec_of
from rowspine.core.transaction import TransactionContext, current_transaction

logger = get_logger(__name__)

T = TypeVar("T")
ID = TypeVar("ID")

R = TypeVar("R", bound="Repository[Any, Any]")


class Repository(Generic[T, ID]):
    """Base of every repository contract."""

    def find_all(self) -> list[T]:
        """Every entity of the table."""
        ...

    def find_by_id(self, id: ID) -> T | None:
        """The entity whose primary key equals ``id``, or ``None``."""
        ...

    def save(self, entity: T) -> T:
        """Insert or update ``entity``; generated ids are copied back into it."""
        ...


# ---------------------------------------------------------------------------
# Entity metadata shared by the strategies of one contract
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Statements:
    """SQL templates of one entity for one dialect."""

    select_all: str
    merge: str
    select_where: Mapping[str, str]


@dataclass(frozen=True)
class EntityMapping:
    """Everything a strategy needs to know about the mapped entity."""

    entity_type: type
    table: TableSpec
    constructor: Callable[[], Any]
    _statements: dict[str, Statements] = field(default_factory=dict, compare=False, repr=False)

    def statements(self, dialect: Dialect) -> Statements:
        """Templates for ``dialect``, built on first use."""
        cached = self._statements.get(dialect.name)
        if cached is None:
            table_name = self.table.table_name
            cached = Statements(
                select_all=dialect.select_all(table_name),
                merge=dialect.merge(self.table),
                select_where=MappingProxyType(
                    {c.column_name: dialect.select_where(table_name, c.column_name) for c in self.table.columns}
                ),
            )
            self._statements.setdefault(dialect.name, cached)
        return cached

    def to_entity(self, row: Sequence[Any]) -> Any:
        return row_to_entity(row, self.table, self.constructor)

    def query(self, tx: TransactionContext, sql: str, args: Sequence[Any], method: str) -> list[Any]:
        return query_entities(tx, sql, args, self.table, self.constructor, method=method)


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------


class Strategy(Protocol):
    method: str

    def __call__(self, tx: TransactionContext, args: Sequence[Any]) -> Any:
        ...


@dataclass(frozen=True)
class QueryMethod:
    """``@query("…")`` method: literal SQL, positional arguments, list result."""

    method: str
    mapping: EntityMapping
    sql: str

    def __call__(self, tx: TransactionContext, args: Sequence[Any]) -> list[Any]:
        return self.mapping.query(tx, self.sql, args, self.method)


@dataclass(frozen=True)
class FindAll:
    method: str
    mapping: EntityMapping

    def __call__(self, tx: TransactionContext, args: Sequence[Any]) -> list[Any]:
        sql = self.mapping.statements(tx.dialect).select_all
        return self.mapping.query(tx, sql, (), self.method)


@dataclass(frozen=True)
class FindByColumn:
    """Equality lookup on one column, first match or ``None``."""

    method: str
    mapping: EntityMapping
    column: ColumnSpec

    def __call__(self, tx: TransactionContext, args: Sequence[Any]) -> Any:
        sql = self.mapping.statements(tx.dialect).select_where[self.column.column_name]
        row = tx.fetch_one(sql, args, method=self.method)
        return None if row is None else self.mapping.to_entity(row)


class FindById(FindByColumn):
    pass


class FindByProperty(FindByColumn):
    pass


@dataclass(frozen=True)
class Save:
    method: str
    mapping: EntityMapping

    def __call__(self, tx: TransactionContext, args: Sequence[Any]) -> Any:
        (entity,) = args
        table = self.mapping.table
        sql = self.mapping.statements(tx.dialect).merge
        with closing(tx.execute(sql, entity_to_parameters(entity, table), method=self.method)) as cursor:
            propagate_generated_key(entity, table, cursor, tx.dialect)
        return entity


@dataclass(frozen=True)
class Unsupported:
    method: str
    contract: str

    def __call__(self, tx: TransactionContext, args: Sequence[Any]) -> Any:
        raise UnsupportedRepositoryOperation(self.method, self.contract)


# ---------------------------------------------------------------------------
# Contract analysis
# ---------------------------------------------------------------------------

_UNIVERSAL_METHODS = ("__eq__", "__hash__", "__str__", "__repr__")


def entity_type_of(contract: type) -> type:
    """Entity type named by ``Repository[Entity, Id]`` in ``contract``'s bases."""
    if not (isinstance(contract, type) and issubclass(contract, Repository)) or contract is Repository:
        raise RepositoryConfigurationError(f"invalid repository interface {contract!r}")
    for klass in contract.__mro__:
        for base in vars(klass).get("__orig_bases__", ()):
            if typing.get_origin(base) is not Repository:
                continue
            entity_type = typing.get_args(base)[0]
            if isinstance(entity_type, type):
                return entity_type
            raise RepositoryConfigurationError(
                f"invalid type argument {entity_type!r} for repository interface {contract.__name__}"
            )
    raise RepositoryConfigurationError(
        f"invalid repository interface {contract.__name__}: no Repository[Entity, Id] base"
    )


def _resolve_constructor(entity_type: type) -> Callable[[], Any]:
    try:
        inspect.signature(entity_type).bind()
    except TypeError as exc:
        raise RepositoryConfigurationError(
            f"{entity_type.__name__} has no no-argument constructor"
        ).with_context(entity=entity_type.__name__) from exc
    except ValueError:  # no introspectable signature; try at call time
        pass
    return entity_type


_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def _property_names_of(method: str) -> tuple[str, ...]:
    """Candidate property names of a ``find_by_*`` method, most literal first.

    ``find_by_first_name`` → ``first_name``; ``findByFirstName`` →
    ``firstName`` then ``first_name``. Empty for any other method.
    """
    if method.startswith("find_by_") and len(method) > len("find_by_"):
        return (method[len("find_by_"):],)
    if method.startswith("findBy") and len(method) > len("findBy"):
        suffix = method[len("findBy"):]
        camel = suffix[0].lower() + suffix[1:]
        snake = _CAMEL_BOUNDARY.sub("_", suffix).lower()
        return (camel,) if snake == camel else (camel, snake)
    return ()


def _is_dunder(name: str) -> bool:
    return len(name) > 4 and name.startswith("__") and name.endswith("__")


def _contract_methods(contract: type) -> dict[str, Any]:
    """Functions, classmethods and staticmethods declared by ``contract``.

    Dunder names belong to the class machinery and are left alone.
    """
    methods: dict[str, Any] = {}
    for klass in reversed(contract.__mro__):
        if klass is object or klass is Generic:
            continue
        for name, attr in vars(klass).items():
            if _is_dunder(name):
                continue
            if inspect.isfunction(attr) or isinstance(attr, (classmethod, staticmethod)):
                methods[name] = attr
    return methods


def _single_argument(name: str, func: Callable[..., Any], contract: type) -> None:
    parameters = list(inspect.signature(func).parameters.values())[1:]
    if len(parameters) != 1:
        raise RepositoryConfigurationError(
            f"{contract.__name__}.{name} must take exactly one argument"
        ).with_context(method=name)


def _resolve_strategy(name: str, func: Any, mapping: EntityMapping, contract: type) -> Strategy:
    if isinstance(func, (classmethod, staticmethod)):
        return Unsupported(name, contract.__name__)

    sql = markers.markers_of(func).get(markers.QUERY)
    if sql is not None:
        return QueryMethod(name, mapping, sql)

    if name in ("find_all", "findAll"):
        return FindAll(name, mapping)

    if name in ("find_by_id", "findById"):
        _single_argument(name, func, contract)
        if mapping.table.id_column is None:
            raise RepositoryConfigurationError(
                f"{contract.__name__}.{name}: {mapping.entity_type.__name__} has no primary key"
            ).with_context(method=name, table=mapping.table.table_name)
        return FindById(name, mapping, mapping.table.id_column)

    if name == "save":
        _single_argument(name, func, contract)
        return Save(name, mapping)

    candidates = _property_names_of(name)
    if candidates:
        _single_argument(name, func, contract)
        for property_name in candidates:
            column = mapping.table.column_for_property(property_name)
            if column is not None:
                return FindByProperty(name, mapping, column)
        raise RepositoryConfigurationError(
            f"{contract.__name__}.{name}: unknown property {candidates[0]!r}"
        ).with_context(method=name, table=mapping.table.table_name)

    return Unsupported(name, contract.__name__)


def build_dispatch_table(contract: type) -> dict[str, Strategy]:
    """Strategy of every method of ``contract``."""
    entity_type = entity_type_of(contract)
    mapping = EntityMapping(
        entity_type=entity_type,
        table=table_spec_of(entity_type),
        constructor=_resolve_constructor(entity_type),
    )
    id_column = mapping.table.id_column
    if id_column is not None and not id_column.descriptor.writable:
        raise RepositoryConfigurationError(
            f"{contract.__name__}: primary key {entity_type.__name__}.{id_column.property_name} has no setter"
        ).with_context(table=mapping.table.table_name)
    table: dict[str, Strategy] = {
        name: _resolve_strategy(name, func, mapping, contract)
        for name, func in _contract_methods(contract).items()
    }
    for name in _UNIVERSAL_METHODS:
        table[name] = Unsupported(name, contract.__name__)
    return table


# ---------------------------------------------------------------------------
# Implementation factory
# ---------------------------------------------------------------------------


def _dispatching_method(name: str, strategy: Strategy, signature: inspect.Signature | None) -> Callable[..., Any]:
    def method(*args: Any, **kwargs: Any) -> Any:
        tx = current_transaction()
        if signature is None:
            return strategy(tx, args[1:])
        bound = signature.bind(*args, **kwargs)
        return strategy(tx, bound.args[1:])

    method.__name__ = name
    method.__qualname__ = name
    return method


def _dispatching_attribute(name: str, strategy: Strategy, declared: Any) -> Any:
    """Class attribute standing in for ``declared``, keeping its method kind."""
    if isinstance(declared, (classmethod, staticmethod)):
        return type(declared)(_dispatching_method(name, strategy, None))
    signature = inspect.signature(declared) if declared is not None else None
    return _dispatching_method(name, strategy, signature)


_repositories: dict[type, Any] = {}
_repositories_lock = threading.Lock()


def create_repository(contract: type[R]) -> R:
    """Implementation of ``contract`` (one shared instance per contract type)."""
    repository = _repositories.get(contract)
    if repository is not None:
        return repository

    with _repositories_lock:
        repository = _repositories.get(contract)
        if repository is None:
            dispatch = build_dispatch_table(contract)
            methods = _contract_methods(contract)
            namespace: dict[str, Any] = {
                "__rowspine_dispatch__": MappingProxyType(dispatch),
                "__module__": contract.__module__,
            }
            for name, strategy in dispatch.items():
                namespace[name] = _dispatching_attribute(name, strategy, methods.get(name))
            implementation = type(f"{contract.__name__}Impl", (contract,), namespace)
            repository = implementation.__new__(implementation)
            _repositories[contract] = repository
            logger.info(
                "repository_created",
                contract=contract.__name__,
                entity=entity_type_of(contract).__name__,
                methods=sorted(n for n in dispatch if not n.startswith("_")),
            )
    return repository


def dispatch_table(contract: type) -> Mapping[str, Strategy]:
    """Read-only dispatch table of the implementation of ``contract``."""
    return type(create_repository(contract)).__rowspine_dispatch__


def clear_repository_cache() -> None:
    """Forget every built implementation (for testing)."""
    with _repositories_lock:
        _repositories.clear()


__all__ = [
    "Repository",
    "Statements",
    "EntityMapping",
    "QueryMethod",
    "FindAll",
    "FindById",
    "FindByProperty",
    "Save",
    "Unsupported",
    "entity_type_of",
    "build_dispatch_table",
    "create_repository",
    "dispatch_table",
    "clear_repository_cache",
]
