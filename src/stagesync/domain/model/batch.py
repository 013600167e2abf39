"""Batch aggregate and its persisted row."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import uuid4

from .content import Attachment, Post, Term, TermTaxonomy, User


def new_guid() -> str:
    return str(uuid4())


def utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass(slots=True)
class Batch:
    """A GUID-identified set of posts together with everything they depend on.

    Posts are kept in insertion order and keyed by post id, so adding a post
    that is already part of the batch is a no-op.
    """

    guid: str
    title: str = ""
    creator_id: int = 0
    id: int | None = None
    modified: datetime | None = None
    content: str | None = None
    term_taxonomies: list[TermTaxonomy] = field(default_factory=list[TermTaxonomy])
    terms: list[Term] = field(default_factory=list[Term])
    users: list[User] = field(default_factory=list[User])
    attachments: list[Attachment] = field(default_factory=list[Attachment])
    _posts: dict[int, Post] = field(default_factory=dict[int, Post], repr=False)

    @classmethod
    def new(cls, *, title: str = "", creator_id: int = 0) -> Batch:
        return cls(guid=new_guid(), title=title, creator_id=creator_id)

    @property
    def posts(self) -> tuple[Post, ...]:
        return tuple(self._posts.values())

    @property
    def post_ids(self) -> tuple[int, ...]:
        return tuple(self._posts)

    def add_post(self, post: Post) -> bool:
        """Add ``post`` unless a post with the same id is present; report whether it was added."""

        if post.id in self._posts:
            return False
        self._posts[post.id] = post
        return True

    def has_post(self, post_id: int) -> bool:
        return post_id in self._posts

    def get_post(self, post_id: int) -> Post | None:
        return self._posts.get(post_id)

    def add_attachment(self, attachment: Attachment) -> None:
        self.attachments.append(attachment)


@dataclass(eq=False, kw_only=True)
class StoredBatch:
    """Row of the ``batch`` table.

    On the sending side ``content`` holds the JSON list of selected post ids;
    on the receiving side it holds the encoded transfer envelope until the
    import job consumes it.
    """

    guid: str
    title: str = ""
    creator_id: int = 0
    content: str | None = None
    modified: datetime = field(default_factory=utcnow)
    id: int | None = None
