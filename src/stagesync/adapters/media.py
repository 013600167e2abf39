"""Attachment metadata read from post metadata of the content store.

Attachment posts carry ``_wp_attachment_metadata`` as JSON::

    {"file": "2014/05/photo.jpg",
     "sizes": {"thumbnail": {"file": "photo-150x150.jpg"}, ...}}

Size files live in the directory of the original file; URLs are built below the
uploads base URL.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from logging import getLogger
from pathlib import PurePosixPath
from typing import TYPE_CHECKING, cast

from stagesync.domain.ports import AttachmentMetadata

if TYPE_CHECKING:
    from stagesync.domain.ports import ContentStore

log = getLogger(__name__)

ATTACHMENT_METADATA_KEY = "_wp_attachment_metadata"
ATTACHED_FILE_KEY = "_wp_attached_file"


@dataclass(slots=True)
class StoreAttachmentMetadataProvider:
    store: ContentStore
    uploads_url: str

    def __call__(self, attachment_id: int) -> AttachmentMetadata | None:
        meta = {item.key: item.value for item in self.store.get_meta_by_post_id(attachment_id)}
        document = _load_json(meta.get(ATTACHMENT_METADATA_KEY), attachment_id)
        file = document.get("file") or meta.get(ATTACHED_FILE_KEY)
        if not isinstance(file, str) or not file:
            return None

        directory = PurePosixPath(file).parent
        sizes: dict[str, str] = {}
        raw_sizes = document.get("sizes")
        if isinstance(raw_sizes, Mapping):
            for name, size in cast("Mapping[str, object]", raw_sizes).items():
                size_file = size.get("file") if isinstance(size, Mapping) else None
                if isinstance(size_file, str) and size_file:
                    sizes[name] = self._url(str(directory / size_file))

        return AttachmentMetadata(file=file, url=self._url(file), sizes=sizes)

    def _url(self, relative_path: str) -> str:
        return f"{self.uploads_url.rstrip('/')}/{relative_path.lstrip('/')}"


def _load_json(value: str | None, attachment_id: int) -> Mapping[str, object]:
    if not value:
        return {}
    try:
        loaded = json.loads(value)
    except json.JSONDecodeError:
        log.warning("Attachment %s has unreadable media metadata", attachment_id)
        return {}
    if not isinstance(loaded, Mapping):
        return {}
    return cast("Mapping[str, object]", loaded)
