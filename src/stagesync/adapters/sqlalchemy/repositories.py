"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import select

from stagesync.adapters.sqlalchemy.mappings import (
    post_table,
    postmeta_table,
    term_relationship_table,
    term_table,
    term_taxonomy_table,
    user_table,
)
from stagesync.domain.model import (
    Post,
    Postmeta,
    StoredBatch,
    Term,
    TermRelationship,
    TermTaxonomy,
    User,
)

if TYPE_CHECKING:
    from collections.abc import Iterable

    from sqlalchemy.engine import Row
    from sqlalchemy.orm import Session


def _post_from_row(row: Row[tuple[object, ...]]) -> Post:
    m = row._mapping  # noqa: SLF001
    return Post(
        id=m["id"],
        guid=m["guid"],
        post_type=m["post_type"],
        parent=m["post_parent"],
        author=m["post_author"],
        title=m["post_title"],
        content=m["post_content"],
        status=m["post_status"],
        name=m["post_name"],
        modified=m["post_modified"],
    )


def _term_taxonomy_from_row(row: Row[tuple[object, ...]]) -> TermTaxonomy:
    m = row._mapping  # noqa: SLF001
    return TermTaxonomy(
        term_taxonomy_id=m["term_taxonomy_id"],
        term_id=m["term_id"],
        taxonomy=m["taxonomy"],
        description=m["description"],
        parent=m["parent"],
        count=m["count"],
    )


class SqlAlchemyContentStore:
    """Read posts, metadata, taxonomy and users from the content tables."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get_by_id(self, post_id: int) -> Post | None:
        row = self.session.execute(select(post_table).where(post_table.c.id == post_id)).first()
        return _post_from_row(row) if row is not None else None

    def get_by_guid(self, guid: str) -> Post | None:
        if not guid:
            return None
        stmt = select(post_table).where(post_table.c.guid == guid).limit(1)
        row = self.session.execute(stmt).first()
        return _post_from_row(row) if row is not None else None

    def get_parent_guid(self, post_id: int) -> str | None:
        if post_id <= 0:
            return None
        stmt = select(post_table.c.guid).where(post_table.c.id == post_id)
        return self.session.execute(stmt).scalar_one_or_none()

    def bulk_get_by_ids(self, post_ids: Iterable[int]) -> list[Post]:
        ids = list(dict.fromkeys(post_ids))
        if not ids:
            return []
        rows = self.session.execute(select(post_table).where(post_table.c.id.in_(ids))).all()
        by_id = {post.id: post for post in map(_post_from_row, rows)}
        # keep the caller's order
        return [by_id[post_id] for post_id in ids if post_id in by_id]

    def get_meta_by_post_id(self, post_id: int) -> list[Postmeta]:
        stmt = (
            select(postmeta_table)
            .where(postmeta_table.c.post_id == post_id)
            .order_by(postmeta_table.c.meta_id)
        )
        return [
            Postmeta(
                post_id=row.post_id,
                key=row.meta_key,
                value=row.meta_value,
                meta_id=row.meta_id,
            )
            for row in self.session.execute(stmt)
        ]

    def get_relationships_by_post_ids(self, post_ids: Iterable[int]) -> list[TermRelationship]:
        ids = list(post_ids)
        if not ids:
            return []
        stmt = (
            select(term_relationship_table)
            .where(term_relationship_table.c.object_id.in_(ids))
            .order_by(
                term_relationship_table.c.object_id,
                term_relationship_table.c.term_order,
                term_relationship_table.c.term_taxonomy_id,
            )
        )
        return [
            TermRelationship(
                object_id=row.object_id,
                term_taxonomy_id=row.term_taxonomy_id,
                term_order=row.term_order,
            )
            for row in self.session.execute(stmt)
        ]

    def get_term_taxonomies_by_ids(self, term_taxonomy_ids: Iterable[int]) -> list[TermTaxonomy]:
        ids = list(term_taxonomy_ids)
        if not ids:
            return []
        stmt = (
            select(term_taxonomy_table)
            .where(term_taxonomy_table.c.term_taxonomy_id.in_(ids))
            .order_by(term_taxonomy_table.c.term_taxonomy_id)
        )
        return [_term_taxonomy_from_row(row) for row in self.session.execute(stmt)]

    def get_term_taxonomy_by_term_and_taxonomy(
        self, term_id: int, taxonomy: str
    ) -> TermTaxonomy | None:
        stmt = (
            select(term_taxonomy_table)
            .where(term_taxonomy_table.c.term_id == term_id)
            .where(term_taxonomy_table.c.taxonomy == taxonomy)
            .limit(1)
        )
        row = self.session.execute(stmt).first()
        return _term_taxonomy_from_row(row) if row is not None else None

    def get_terms_by_ids(self, term_ids: Iterable[int]) -> list[Term]:
        ids = list(term_ids)
        if not ids:
            return []
        stmt = select(term_table).where(term_table.c.term_id.in_(ids)).order_by(term_table.c.term_id)
        return [
            Term(term_id=row.term_id, name=row.name, slug=row.slug, term_group=row.term_group)
            for row in self.session.execute(stmt)
        ]

    def bulk_get_users(self, user_ids: Iterable[int]) -> list[User]:
        ids = list(user_ids)
        if not ids:
            return []
        stmt = select(user_table).where(user_table.c.id.in_(ids)).order_by(user_table.c.id)
        return [
            User(
                id=row.id,
                login=row.user_login,
                nicename=row.user_nicename,
                email=row.user_email,
                url=row.user_url,
                registered=row.user_registered,
                display_name=row.display_name,
            )
            for row in self.session.execute(stmt)
        ]


class SqlAlchemyBatchRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def get_batch_by_id(self, batch_id: int) -> StoredBatch | None:
        return self.session.get(StoredBatch, batch_id)

    def get_batch_by_guid(self, guid: str) -> StoredBatch | None:
        stmt = select(StoredBatch).filter_by(guid=guid).limit(1)
        return self.session.execute(stmt).scalar_one_or_none()

    def insert_batch(self, batch: StoredBatch) -> int:
        self.session.add(batch)
        self.session.flush()
        if batch.id is None:
            raise RuntimeError(f"Store assigned no id to batch {batch.guid}")
        return batch.id

    def update_batch(self, batch: StoredBatch) -> None:
        self.session.merge(batch)
        self.session.flush()
