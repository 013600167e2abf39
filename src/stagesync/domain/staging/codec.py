"""Transfer envelope: the wire form of an assembled batch.

The envelope is validated JSON (pydantic), zlib-compressed and then encoded as
URL-safe base64 so it survives any text transport unchanged. Decoding reverses
the three steps and either returns a fully typed envelope or raises
``EnvelopeDecodeError``.
"""

from __future__ import annotations

import base64
import binascii
import zlib
from datetime import datetime  # noqa: TC003
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from stagesync.domain.model import (
    Attachment,
    Batch,
    Post,
    Postmeta,
    TaxonomyRelationship,
    Term,
    TermTaxonomy,
    User,
)

if TYPE_CHECKING:
    from collections.abc import Iterable


class EnvelopeDecodeError(ValueError):
    """Raised when a received payload is not a valid transfer envelope."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Malformed batch payload: {reason}")
        self.reason = reason


class EnvelopeModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)


class PostmetaPayload(EnvelopeModel):
    key: str
    value: str | None = None
    meta_id: int | None = None


class TaxonomyRelationshipPayload(EnvelopeModel):
    term_taxonomy_id: int
    order: int = 0


class PostPayload(EnvelopeModel):
    id: int
    guid: str
    post_type: str = "post"
    parent: int = 0
    parent_guid: str | None = None
    author: int = 0
    title: str = ""
    content: str = ""
    status: str = "publish"
    name: str = ""
    modified: datetime | None = None
    meta: tuple[PostmetaPayload, ...] = ()
    taxonomy_relationships: tuple[TaxonomyRelationshipPayload, ...] = ()


class TermTaxonomyPayload(EnvelopeModel):
    term_taxonomy_id: int
    term_id: int
    taxonomy: str
    description: str = ""
    parent: int = 0
    count: int = 0


class TermPayload(EnvelopeModel):
    term_id: int
    name: str
    slug: str
    term_group: int = 0


class UserPayload(EnvelopeModel):
    id: int
    login: str
    nicename: str = ""
    email: str = ""
    url: str = ""
    registered: datetime | None = None
    display_name: str = ""


class AttachmentPayload(EnvelopeModel):
    path: str
    sizes: tuple[str, ...] = ()


class BatchEnvelope(EnvelopeModel):
    batch_guid: str = Field(min_length=1)
    batch_title: str = ""
    batch_creator: int = 0
    posts: tuple[PostPayload, ...] = ()
    term_taxonomies: tuple[TermTaxonomyPayload, ...] = ()
    terms: tuple[TermPayload, ...] = ()
    users: tuple[UserPayload, ...] = ()
    attachments: tuple[AttachmentPayload, ...] = ()


def envelope_from_batch(batch: Batch) -> BatchEnvelope:
    return BatchEnvelope(
        batch_guid=batch.guid,
        batch_title=batch.title,
        batch_creator=batch.creator_id,
        posts=tuple(_post_payload(post) for post in batch.posts),
        term_taxonomies=tuple(
            TermTaxonomyPayload(
                term_taxonomy_id=tt.term_taxonomy_id,
                term_id=tt.term_id,
                taxonomy=tt.taxonomy,
                description=tt.description,
                parent=tt.parent,
                count=tt.count,
            )
            for tt in batch.term_taxonomies
        ),
        terms=tuple(
            TermPayload(
                term_id=term.term_id,
                name=term.name,
                slug=term.slug,
                term_group=term.term_group,
            )
            for term in batch.terms
        ),
        users=tuple(
            UserPayload(
                id=user.id,
                login=user.login,
                nicename=user.nicename,
                email=user.email,
                url=user.url,
                registered=user.registered,
                display_name=user.display_name,
            )
            for user in batch.users
        ),
        attachments=tuple(
            AttachmentPayload(path=attachment.path, sizes=tuple(attachment.sizes))
            for attachment in batch.attachments
        ),
    )


def _post_payload(post: Post) -> PostPayload:
    return PostPayload(
        id=post.id,
        guid=post.guid,
        post_type=post.post_type,
        parent=post.parent,
        parent_guid=post.parent_guid,
        author=post.author,
        title=post.title,
        content=post.content,
        status=post.status,
        name=post.name,
        modified=post.modified,
        meta=tuple(
            PostmetaPayload(key=item.key, value=item.value, meta_id=item.meta_id)
            for item in post.meta
        ),
        taxonomy_relationships=tuple(
            TaxonomyRelationshipPayload(
                term_taxonomy_id=relation.term_taxonomy_id,
                order=relation.order,
            )
            for relation in post.taxonomy_relationships
        ),
    )


def batch_from_envelope(envelope: BatchEnvelope) -> Batch:
    batch = Batch(
        guid=envelope.batch_guid,
        title=envelope.batch_title,
        creator_id=envelope.batch_creator,
        term_taxonomies=[TermTaxonomy(**tt.model_dump()) for tt in envelope.term_taxonomies],
        terms=[Term(**term.model_dump()) for term in envelope.terms],
        users=[User(**user.model_dump()) for user in envelope.users],
        attachments=[
            Attachment(path=attachment.path, sizes=list(attachment.sizes))
            for attachment in envelope.attachments
        ],
    )
    for payload in envelope.posts:
        batch.add_post(_post_from_payload(payload))
    return batch


def _post_from_payload(payload: PostPayload) -> Post:
    return Post(
        id=payload.id,
        guid=payload.guid,
        post_type=payload.post_type,
        parent=payload.parent,
        parent_guid=payload.parent_guid,
        author=payload.author,
        title=payload.title,
        content=payload.content,
        status=payload.status,
        name=payload.name,
        modified=payload.modified,
        meta=[
            Postmeta(post_id=payload.id, key=item.key, value=item.value, meta_id=item.meta_id)
            for item in payload.meta
        ],
        taxonomy_relationships=[
            TaxonomyRelationship(relation.term_taxonomy_id, relation.order)
            for relation in payload.taxonomy_relationships
        ],
    )


def encode(source: Batch | BatchEnvelope) -> bytes:
    envelope = source if isinstance(source, BatchEnvelope) else envelope_from_batch(source)
    compressed = zlib.compress(envelope.model_dump_json().encode("utf-8"))
    return base64.urlsafe_b64encode(compressed)


def encode_text(source: Batch | BatchEnvelope) -> str:
    return encode(source).decode("ascii")


def decode(data: bytes | str) -> BatchEnvelope:
    if isinstance(data, str):
        try:
            data = data.strip().encode("ascii")
        except UnicodeEncodeError as exc:
            raise EnvelopeDecodeError("payload is not ASCII text") from exc
    if not data:
        raise EnvelopeDecodeError("payload is empty")

    try:
        compressed = base64.urlsafe_b64decode(_pad(data))
    except (binascii.Error, ValueError) as exc:
        raise EnvelopeDecodeError("payload is not valid base64") from exc

    try:
        raw = zlib.decompress(compressed)
    except zlib.error as exc:
        raise EnvelopeDecodeError("payload is not a compressed envelope") from exc

    try:
        return BatchEnvelope.model_validate_json(raw)
    except ValidationError as exc:
        raise EnvelopeDecodeError(_summarize(exc.errors(include_url=False))) from exc


def decode_mapping(body: object) -> BatchEnvelope:
    """Validate an already-structured envelope (e.g. a decoded RPC struct)."""

    try:
        return BatchEnvelope.model_validate(body)
    except ValidationError as exc:
        raise EnvelopeDecodeError(_summarize(exc.errors(include_url=False))) from exc


def _pad(data: bytes) -> bytes:
    return data + b"=" * (-len(data) % 4)


def _summarize(errors: Iterable[object]) -> str:
    details: list[str] = []
    for error in errors:
        if not isinstance(error, dict):
            continue
        location = ".".join(str(part) for part in error.get("loc", ())) or "envelope"
        details.append(f"{location}: {error.get('msg', 'invalid')}")
    return "; ".join(details[:3]) or "invalid envelope"
