"""Ports for reading content and persisting batches."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from stagesync.domain.model import (
        Post,
        Postmeta,
        StoredBatch,
        Term,
        TermRelationship,
        TermTaxonomy,
        User,
    )


@runtime_checkable
class ContentStore(Protocol):
    """Read access to one content store.

    Lookups by id return ``None`` (or an empty sequence) for unknown ids; callers
    routinely pass stale references.
    """

    def get_by_id(self, post_id: int) -> Post | None: ...

    def get_by_guid(self, guid: str) -> Post | None: ...

    def get_parent_guid(self, post_id: int) -> str | None:
        """Return the GUID of the post with id ``post_id`` (the parent of some other post)."""
        ...

    def bulk_get_by_ids(self, post_ids: Iterable[int]) -> Sequence[Post]: ...

    def get_meta_by_post_id(self, post_id: int) -> Sequence[Postmeta]: ...

    def get_relationships_by_post_ids(
        self, post_ids: Iterable[int]
    ) -> Sequence[TermRelationship]: ...

    def get_term_taxonomies_by_ids(
        self, term_taxonomy_ids: Iterable[int]
    ) -> Sequence[TermTaxonomy]: ...

    def get_term_taxonomy_by_term_and_taxonomy(
        self, term_id: int, taxonomy: str
    ) -> TermTaxonomy | None: ...

    def get_terms_by_ids(self, term_ids: Iterable[int]) -> Sequence[Term]: ...

    def bulk_get_users(self, user_ids: Iterable[int]) -> Sequence[User]: ...


@runtime_checkable
class BatchRepository(Protocol):
    """Persistence contract for batch rows."""

    def get_batch_by_id(self, batch_id: int) -> StoredBatch | None: ...

    def get_batch_by_guid(self, guid: str) -> StoredBatch | None: ...

    def insert_batch(self, batch: StoredBatch) -> int:
        """Insert ``batch`` and return the local id assigned by the store."""
        ...

    def update_batch(self, batch: StoredBatch) -> None: ...
