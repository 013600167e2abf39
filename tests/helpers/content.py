"""In-memory fakes for the content staging ports."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from itertools import count
from typing import TYPE_CHECKING, Literal

from stagesync.domain.model import (
    Post,
    Postmeta,
    StoredBatch,
    Term,
    TermRelationship,
    TermTaxonomy,
    User,
)
from stagesync.domain.ports import AttachmentMetadata, StagingRepositories
from stagesync.domain.staging import ImportJobHandle

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Mapping, Sequence
    from types import TracebackType


@dataclass
class FakeContentStore:
    """Dictionary-backed content store that records how it was queried."""

    posts: dict[int, Post] = field(default_factory=dict[int, Post])
    meta: dict[int, list[Postmeta]] = field(default_factory=dict[int, list[Postmeta]])
    relationships: list[TermRelationship] = field(default_factory=list[TermRelationship])
    term_taxonomies: dict[int, TermTaxonomy] = field(default_factory=dict[int, TermTaxonomy])
    terms: dict[int, Term] = field(default_factory=dict[int, Term])
    users: dict[int, User] = field(default_factory=dict[int, User])
    calls: list[tuple[str, object]] = field(default_factory=list[tuple[str, object]])

    def add_post(self, post_id: int, **fields: object) -> Post:
        post = Post(id=post_id, guid=f"http://stage.test/?p={post_id}")
        post = replace(post, **fields)  # type: ignore[arg-type]
        self.posts[post_id] = post
        return post

    def add_meta(self, post_id: int, key: str, value: str) -> None:
        self.meta.setdefault(post_id, []).append(Postmeta(post_id=post_id, key=key, value=value))

    def add_term_taxonomy(self, term_taxonomy: TermTaxonomy) -> None:
        self.term_taxonomies[term_taxonomy.term_taxonomy_id] = term_taxonomy

    def relate(self, post_id: int, term_taxonomy_id: int, order: int = 0) -> None:
        self.relationships.append(TermRelationship(post_id, term_taxonomy_id, order))

    def _copy(self, post: Post) -> Post:
        # the store hands out fresh records, like a database would
        return replace(post, meta=[], taxonomy_relationships=[], parent_guid=None)

    def get_by_id(self, post_id: int) -> Post | None:
        self.calls.append(("get_by_id", post_id))
        post = self.posts.get(post_id)
        return self._copy(post) if post is not None else None

    def get_by_guid(self, guid: str) -> Post | None:
        self.calls.append(("get_by_guid", guid))
        for post in self.posts.values():
            if post.guid == guid:
                return self._copy(post)
        return None

    def get_parent_guid(self, post_id: int) -> str | None:
        self.calls.append(("get_parent_guid", post_id))
        post = self.posts.get(post_id)
        return post.guid if post is not None else None

    def bulk_get_by_ids(self, post_ids: Iterable[int]) -> list[Post]:
        ids = list(post_ids)
        self.calls.append(("bulk_get_by_ids", ids))
        return [self._copy(self.posts[post_id]) for post_id in ids if post_id in self.posts]

    def get_meta_by_post_id(self, post_id: int) -> list[Postmeta]:
        self.calls.append(("get_meta_by_post_id", post_id))
        return list(self.meta.get(post_id, []))

    def get_relationships_by_post_ids(self, post_ids: Iterable[int]) -> list[TermRelationship]:
        ids = set(post_ids)
        self.calls.append(("get_relationships_by_post_ids", ids))
        return [relation for relation in self.relationships if relation.object_id in ids]

    def get_term_taxonomies_by_ids(self, term_taxonomy_ids: Iterable[int]) -> list[TermTaxonomy]:
        ids = list(term_taxonomy_ids)
        self.calls.append(("get_term_taxonomies_by_ids", ids))
        return [self.term_taxonomies[tt_id] for tt_id in ids if tt_id in self.term_taxonomies]

    def get_term_taxonomy_by_term_and_taxonomy(
        self, term_id: int, taxonomy: str
    ) -> TermTaxonomy | None:
        self.calls.append(("get_term_taxonomy_by_term_and_taxonomy", (term_id, taxonomy)))
        for term_taxonomy in self.term_taxonomies.values():
            if term_taxonomy.term_id == term_id and term_taxonomy.taxonomy == taxonomy:
                return term_taxonomy
        return None

    def get_terms_by_ids(self, term_ids: Iterable[int]) -> list[Term]:
        ids = list(term_ids)
        self.calls.append(("get_terms_by_ids", ids))
        return [self.terms[term_id] for term_id in ids if term_id in self.terms]

    def bulk_get_users(self, user_ids: Iterable[int]) -> list[User]:
        ids = list(user_ids)
        self.calls.append(("bulk_get_users", ids))
        return [self.users[user_id] for user_id in ids if user_id in self.users]

    def count_calls(self, name: str) -> int:
        return sum(1 for call_name, _ in self.calls if call_name == name)


@dataclass
class FakeBatchRepository:
    rows: dict[int, StoredBatch] = field(default_factory=dict[int, StoredBatch])
    ids: Iterator[int] = field(default_factory=lambda: count(1))

    def get_batch_by_id(self, batch_id: int) -> StoredBatch | None:
        return self.rows.get(batch_id)

    def get_batch_by_guid(self, guid: str) -> StoredBatch | None:
        for row in self.rows.values():
            if row.guid == guid:
                return row
        return None

    def insert_batch(self, batch: StoredBatch) -> int:
        batch.id = next(self.ids)
        self.rows[batch.id] = batch
        return batch.id

    def update_batch(self, batch: StoredBatch) -> None:
        assert batch.id in self.rows
        self.rows[batch.id] = batch


@dataclass
class FakeUnitOfWork:
    content: FakeContentStore = field(default_factory=FakeContentStore)
    batches: FakeBatchRepository = field(default_factory=FakeBatchRepository)
    commits: int = 0

    @property
    def repositories(self) -> StagingRepositories:
        return StagingRepositories(content=self.content, batches=self.batches)

    def __enter__(self) -> FakeUnitOfWork:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        return False

    def commit(self) -> None:
        self.commits += 1

    def rollback(self) -> None:
        return None


@dataclass
class FakeProbe:
    missing: set[str] = field(default_factory=set[str])
    probed: list[str] = field(default_factory=list[str])

    def __call__(self, urls: Sequence[str]) -> Mapping[str, bool]:
        self.probed.extend(urls)
        return {url: url not in self.missing for url in urls}


@dataclass
class FakeAttachments:
    metadata: dict[int, AttachmentMetadata] = field(default_factory=dict[int, AttachmentMetadata])

    def __call__(self, attachment_id: int) -> AttachmentMetadata | None:
        return self.metadata.get(attachment_id)


@dataclass
class RecordingImportJob:
    launched: list[int] = field(default_factory=list[int])
    fail: bool = False

    def launch(self, batch_id: int) -> ImportJobHandle:
        self.launched.append(batch_id)
        if self.fail:
            raise RuntimeError("cannot fork")
        return ImportJobHandle(batch_id=batch_id, pid=4242, launched=True)
