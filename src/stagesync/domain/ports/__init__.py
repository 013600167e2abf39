"""Domain port definitions for adapters."""

from __future__ import annotations

from .content_store import BatchRepository, ContentStore
from .media import AttachmentMetadata, AttachmentMetadataProvider
from .probing import UrlProbe
from .unit_of_work import StagingRepositories, StagingUnitOfWork

__all__ = [
    "AttachmentMetadata",
    "AttachmentMetadataProvider",
    "BatchRepository",
    "ContentStore",
    "StagingRepositories",
    "StagingUnitOfWork",
    "UrlProbe",
]
