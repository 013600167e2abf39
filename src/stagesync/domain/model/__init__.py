"""Domain model for content staging."""

from __future__ import annotations

from .batch import Batch, StoredBatch, new_guid, utcnow
from .content import (
    ATTACHMENT_POST_TYPE,
    Attachment,
    Post,
    Postmeta,
    TaxonomyRelationship,
    Term,
    TermRelationship,
    TermTaxonomy,
    User,
)

__all__ = [
    "ATTACHMENT_POST_TYPE",
    "Attachment",
    "Batch",
    "Post",
    "Postmeta",
    "StoredBatch",
    "TaxonomyRelationship",
    "Term",
    "TermRelationship",
    "TermTaxonomy",
    "User",
    "new_guid",
    "utcnow",
]
