"""SQLAlchemy adapter package for stagesync."""

from __future__ import annotations

from .mappings import (
    batch_table,
    create_all_tables,
    mapper_registry,
    post_table,
    postmeta_table,
    start_mappers,
    term_relationship_table,
    term_table,
    term_taxonomy_table,
    user_table,
)
from .repositories import SqlAlchemyBatchRepository, SqlAlchemyContentStore
from .unit_of_work import (
    SqlAlchemyStagingUnitOfWork,
    StartupError,
    configured_engine,
    is_started,
    shutdown,
    startup,
)

__all__ = [
    "SqlAlchemyBatchRepository",
    "SqlAlchemyContentStore",
    "SqlAlchemyStagingUnitOfWork",
    "StartupError",
    "batch_table",
    "configured_engine",
    "create_all_tables",
    "is_started",
    "mapper_registry",
    "post_table",
    "postmeta_table",
    "shutdown",
    "start_mappers",
    "startup",
    "term_relationship_table",
    "term_table",
    "term_taxonomy_table",
    "user_table",
]
