"""Records read from a content store: posts, metadata, taxonomy, users."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import datetime

ATTACHMENT_POST_TYPE = "attachment"


@dataclass(slots=True)
class Postmeta:
    post_id: int
    key: str
    value: str | None
    meta_id: int | None = None


@dataclass(frozen=True, slots=True)
class TaxonomyRelationship:
    """A (term-taxonomy, order) pair attached to a post."""

    term_taxonomy_id: int
    order: int = 0


@dataclass(frozen=True, slots=True)
class TermRelationship:
    """Raw relationship row linking an object (usually a post) to a term-taxonomy."""

    object_id: int
    term_taxonomy_id: int
    term_order: int = 0


@dataclass(frozen=True, slots=True)
class TermTaxonomy:
    """A term placed in a taxonomy, optionally below a parent term.

    Instances compare and hash by their full value.
    """

    term_taxonomy_id: int
    term_id: int
    taxonomy: str
    description: str = ""
    parent: int = 0
    count: int = 0


@dataclass(frozen=True, slots=True)
class Term:
    term_id: int
    name: str
    slug: str
    term_group: int = 0


@dataclass(slots=True)
class User:
    id: int
    login: str
    nicename: str = ""
    email: str = ""
    url: str = ""
    registered: datetime | None = None
    display_name: str = ""


@dataclass(slots=True)
class Post:
    """A post as read on the sending side.

    ``parent`` is the store-local id of the parent post; ``parent_guid`` is
    filled in during assembly and is the only reference usable by a receiver.
    """

    id: int
    guid: str
    post_type: str = "post"
    parent: int = 0
    author: int = 0
    title: str = ""
    content: str = ""
    status: str = "publish"
    name: str = ""
    modified: datetime | None = None
    parent_guid: str | None = None
    meta: list[Postmeta] = field(default_factory=list["Postmeta"])
    taxonomy_relationships: list[TaxonomyRelationship] = field(
        default_factory=list["TaxonomyRelationship"]
    )

    @property
    def has_parent(self) -> bool:
        return self.parent > 0

    @property
    def is_attachment(self) -> bool:
        return self.post_type == ATTACHMENT_POST_TYPE

    def add_meta(self, item: Postmeta) -> None:
        self.meta.append(item)

    def add_taxonomy_relationship(self, term_taxonomy_id: int, order: int = 0) -> None:
        self.taxonomy_relationships.append(TaxonomyRelationship(term_taxonomy_id, order))


@dataclass(slots=True)
class Attachment:
    """Media directory plus the URL of every size variant, original first."""

    path: str
    sizes: list[str] = field(default_factory=list[str])
