"""SQLAlchemy-backed unit of work for content staging.

The adapter is configured once per process with ``startup`` and torn down
with ``shutdown``; every unit of work opens its own session from the shared
session factory.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from stagesync.adapters.sqlalchemy.mappings import create_all_tables, start_mappers
from stagesync.adapters.sqlalchemy.repositories import (
    SqlAlchemyBatchRepository,
    SqlAlchemyContentStore,
)
from stagesync.config.storage import get_database_config
from stagesync.domain.ports.unit_of_work import StagingRepositories

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Engine


class StartupError(RuntimeError):
    """Raised when the SQLAlchemy adapter is used in the wrong lifecycle state."""


@dataclass(slots=True)
class _AdapterState:
    engine: Engine | None = None
    session_factory: sessionmaker[Session] | None = None


_STATE = _AdapterState()


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> None:
    """Create the engine (unless given), the tables and the session factory."""

    if _STATE.engine is not None and not force:
        raise StartupError(
            "SQLAlchemy adapter already initialised. Pass force=True to reconfigure."
        )

    resolved_engine = engine or create_engine(
        database_uri or get_database_config().uri, future=True
    )
    start_mappers()
    create_all_tables(resolved_engine)
    _STATE.engine = resolved_engine
    _STATE.session_factory = sessionmaker(bind=resolved_engine, expire_on_commit=False)


def configured_engine() -> Engine | None:
    return _STATE.engine


def is_started() -> bool:
    return _STATE.engine is not None


def shutdown() -> None:
    """Dispose the managed engine and forget the session factory."""

    if _STATE.engine is not None:
        _STATE.engine.dispose()
    _STATE.engine = None
    _STATE.session_factory = None


class SqlAlchemyStagingUnitOfWork:
    """Unit of work exposing the content store and the batch table of one session."""

    def __init__(self) -> None:
        if _STATE.session_factory is None:
            raise StartupError(
                "SQLAlchemy adapter not initialised. Call stagesync.adapters.sqlalchemy."
                "unit_of_work.startup() before requesting a unit of work."
            )
        self.session_factory = _STATE.session_factory
        self._session: Session | None = None
        self._repositories: StagingRepositories | None = None

    def __enter__(self) -> SqlAlchemyStagingUnitOfWork:
        if self._session is not None:
            raise StartupError("Unit of work session already initialised")
        self._session = self.session_factory()
        self._repositories = StagingRepositories(
            content=SqlAlchemyContentStore(self._session),
            batches=SqlAlchemyBatchRepository(self._session),
        )
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
        self._session = None
        self._repositories = None
        return False

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()

    @property
    def repositories(self) -> StagingRepositories:
        if self._repositories is None:
            raise StartupError("Unit of work session not initialised")
        return self._repositories

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work session not initialised")
        return self._session


if TYPE_CHECKING:
    from stagesync.domain.ports.unit_of_work import StagingUnitOfWork

    _uow_check: StagingUnitOfWork = SqlAlchemyStagingUnitOfWork()
