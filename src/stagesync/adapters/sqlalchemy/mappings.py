"""SQLAlchemy table metadata for a content store and its batch table."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from functools import cache
from typing import TYPE_CHECKING

from sqlalchemy import (
    Column,
    DateTime,
    Dialect,
    Index,
    Integer,
    String,
    Table,
    Text,
    TypeDecorator,
    UniqueConstraint,
    orm,
)
from sqlalchemy.orm import configure_mappers

from stagesync.domain.model import StoredBatch

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

# Content tables --------------------------------------------------------------

post_table = Table(
    "posts",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("guid", String, nullable=False),
    Column("post_type", String(20), nullable=False, default="post"),
    Column("post_parent", Integer, nullable=False, default=0),
    Column("post_author", Integer, nullable=False, default=0),
    Column("post_title", Text, nullable=False, default=""),
    Column("post_content", Text, nullable=False, default=""),
    Column("post_status", String(20), nullable=False, default="publish"),
    Column("post_name", String(200), nullable=False, default=""),
    Column("post_modified", UTCDateTime, nullable=True),
    Index("ix_posts_guid", "guid"),
    Index("ix_posts_post_parent", "post_parent"),
)

postmeta_table = Table(
    "postmeta",
    mapper_registry.metadata,
    Column("meta_id", Integer, primary_key=True, autoincrement=True),
    Column("post_id", Integer, nullable=False),
    Column("meta_key", String(255), nullable=True),
    Column("meta_value", Text, nullable=True),
    Index("ix_postmeta_post_id", "post_id"),
)

term_table = Table(
    "terms",
    mapper_registry.metadata,
    Column("term_id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(200), nullable=False),
    Column("slug", String(200), nullable=False),
    Column("term_group", Integer, nullable=False, default=0),
)

term_taxonomy_table = Table(
    "term_taxonomy",
    mapper_registry.metadata,
    Column("term_taxonomy_id", Integer, primary_key=True, autoincrement=True),
    Column("term_id", Integer, nullable=False),
    Column("taxonomy", String(32), nullable=False),
    Column("description", Text, nullable=False, default=""),
    Column("parent", Integer, nullable=False, default=0),
    Column("count", Integer, nullable=False, default=0),
    UniqueConstraint("term_id", "taxonomy"),
)

term_relationship_table = Table(
    "term_relationships",
    mapper_registry.metadata,
    Column("object_id", Integer, primary_key=True),
    Column("term_taxonomy_id", Integer, primary_key=True),
    Column("term_order", Integer, nullable=False, default=0),
)

user_table = Table(
    "users",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_login", String(60), nullable=False),
    Column("user_nicename", String(50), nullable=False, default=""),
    Column("user_email", String(100), nullable=False, default=""),
    Column("user_url", String(100), nullable=False, default=""),
    Column("user_registered", UTCDateTime, nullable=True),
    Column("display_name", String(250), nullable=False, default=""),
)

# Staging tables --------------------------------------------------------------

batch_table = Table(
    "batch",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("guid", String, nullable=False),
    Column("title", Text, nullable=False, default=""),
    Column("creator_id", Integer, nullable=False, default=0),
    Column("content", Text, nullable=True),
    Column("modified", UTCDateTime, nullable=False),
    UniqueConstraint("guid"),
)


@cache
def start_mappers() -> orm.registry:
    """Configure SQLAlchemy mappers for the persisted domain records."""

    log.info("Starting SQLAlchemy mappers")

    mapper_registry.map_imperatively(StoredBatch, batch_table)

    configure_mappers()
    return mapper_registry


def create_all_tables(engine: Engine) -> None:
    """Create database tables for the mapped metadata."""

    log.info("Creating all tables")
    mapper_registry.metadata.create_all(engine)
