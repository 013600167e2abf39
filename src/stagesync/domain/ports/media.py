"""Port for media metadata of attachment posts."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping


@dataclass(frozen=True, slots=True)
class AttachmentMetadata:
    """File path of an attachment, its own URL and the URL of each registered size."""

    file: str
    url: str
    sizes: Mapping[str, str] = field(default_factory=dict[str, str])


@runtime_checkable
class AttachmentMetadataProvider(Protocol):
    def __call__(self, attachment_id: int) -> AttachmentMetadata | None: ...
