"""SQLAlchemy-backed units of work for sales ingestion and deletion."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Literal

from sqlalchemy import create_engine, event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from sellout.adapters.sqlalchemy.mappings import start_mappers
from sellout.adapters.sqlalchemy.migrations import upgrade_head
from sellout.adapters.sqlalchemy.repositories import (
    SqlAlchemyCatalogLookup,
    SqlAlchemyReferenceEntityRepository,
    SqlAlchemySalesRecordRepository,
)
from sellout.config import IngestConfig, get_database_uri, get_ingest_config
from sellout.domain.errors import StoreUnavailableError
from sellout.domain.ports.unit_of_work import IngestRepositories, RepositoryCollection

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Connection, Engine

log = logging.getLogger(__name__)


class StartupError(RuntimeError):
    """Raised when a SQLAlchemy unit of work is used before initialisation."""


@dataclass(slots=True)
class _AdapterState:
    _engine: Engine | None = None
    _session_factory: sessionmaker[Session] | None = None

    @property
    def engine(self) -> Engine | None:
        return self._engine

    @engine.setter
    def engine(self, value: Engine | None) -> None:
        self._session_factory = None
        self._engine = value

    @property
    def session_factory(self) -> sessionmaker[Session]:
        if self._engine is None:
            raise StartupError(
                "SQLAlchemy adapter not initialised. Call sellout.adapters.sqlalchemy."
                "unit_of_work.startup() before requesting a unit of work."
            )
        if self._session_factory is None:
            self._session_factory = sessionmaker(bind=self._engine, expire_on_commit=False)
        return self._session_factory


_STATE = _AdapterState()


def build_engine(database_uri: str, **kwargs: Any) -> Engine:
    """Create an engine; SQLite engines get savepoint-capable transaction handling.

    pysqlite's own transaction management breaks SAVEPOINT, so it is disabled and
    SQLAlchemy emits BEGIN itself.
    """

    engine = create_engine(database_uri, **kwargs)
    if engine.dialect.name == "sqlite":
        _enable_sqlite_savepoints(engine)
    return engine


def _enable_sqlite_savepoints(engine: Engine) -> None:
    event.listen(engine, "connect", _disable_pysqlite_transactions)
    event.listen(engine, "begin", _emit_begin)


def _disable_pysqlite_transactions(dbapi_connection: Any, connection_record: Any) -> None:
    _ = connection_record
    dbapi_connection.isolation_level = None


def _emit_begin(connection: Connection) -> None:
    connection.exec_driver_sql("BEGIN")


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> None:
    """Initialise the SQLAlchemy engine, schema, and session factory."""

    if _STATE.engine is not None and not force:
        raise StartupError(
            "SQLAlchemy adapter already initialised. Pass force=True to reconfigure."
        )

    resolved_engine = engine or build_engine(database_uri or get_database_uri())
    start_mappers()
    upgrade_head(engine=resolved_engine)
    log.info("SQLAlchemy adapter started on %s", resolved_engine.url)

    _STATE.engine = resolved_engine


def configured_engine() -> Engine | None:
    """Return the engine currently managed by the adapter (if any)."""

    return _STATE.engine


def is_started() -> bool:
    """Return whether the adapter has been initialised."""

    return _STATE.engine is not None


def shutdown() -> None:
    """Dispose the managed engine and reset state (primarily for tests)."""

    if _STATE.engine is not None:
        _STATE.engine.dispose()
    _STATE.engine = None


class BaseSqlAlchemyUnitOfWork[TRepositories: RepositoryCollection](ABC):
    """Generic SQLAlchemy unit of work with pluggable repository collections."""

    def __init__(self) -> None:
        self.session_factory: sessionmaker[Session] = _STATE.session_factory
        self._session: Session | None = None

    @abstractmethod
    def _build_repositories(self, session: Session) -> TRepositories: ...

    def __enter__(self) -> BaseSqlAlchemyUnitOfWork[TRepositories]:
        self.session = self.session_factory()
        self._repositories = self._build_repositories(self.session)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        if exc_type is not None:
            self.rollback()
        self.session.close()
        self.session = None
        return False

    def commit(self) -> None:
        try:
            self.session.commit()
        except SQLAlchemyError as exc:
            raise StoreUnavailableError(f"Commit failed: {exc}") from exc

    def rollback(self) -> None:
        self.session.rollback()

    def checkpoint(self) -> None:
        """Flush pending writes and release them from the identity map."""

        try:
            self.session.flush()
        except SQLAlchemyError as exc:
            raise StoreUnavailableError(f"Checkpoint flush failed: {exc}") from exc
        self.session.expunge_all()

    @property
    def repositories(self) -> TRepositories:
        if self._session is None:
            raise StartupError("Unit of work session not initialised")
        return self._repositories

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work session not initialised")
        return self._session

    @session.setter
    def session(self, session: Session | None) -> None:
        if self._session is not None and session is not None:
            raise StartupError("Unit of work session already initialised")
        self._session = session


class SqlAlchemyIngestUnitOfWork(BaseSqlAlchemyUnitOfWork[IngestRepositories]):
    """Unit of work for reconciling and deleting sales records."""

    def __init__(self, config: IngestConfig | None = None) -> None:
        super().__init__()
        self.config = config or get_ingest_config()

    def _build_repositories(self, session: Session) -> IngestRepositories:
        limits = {
            "parameter_ceiling": self.config.parameter_ceiling,
            "in_limit": self.config.in_limit,
        }
        return IngestRepositories(
            references=SqlAlchemyReferenceEntityRepository(session, **limits),
            catalog=SqlAlchemyCatalogLookup(session, **limits),
            sales=SqlAlchemySalesRecordRepository(session, **limits),
        )


if TYPE_CHECKING:
    from sellout.domain.ports.unit_of_work import IngestUnitOfWork

    _uow_ingest_check: IngestUnitOfWork = SqlAlchemyIngestUnitOfWork()
