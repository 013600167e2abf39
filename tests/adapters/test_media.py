from __future__ import annotations

import json

from stagesync.adapters.media import StoreAttachmentMetadataProvider
from tests.helpers.content import FakeContentStore

UPLOADS = "http://stage.test/wp-content/uploads/"


def test_metadata_lists_url_of_every_size(store: FakeContentStore) -> None:
    store.add_meta(
        20,
        "_wp_attachment_metadata",
        json.dumps(
            {
                "file": "2014/05/photo.jpg",
                "sizes": {
                    "thumbnail": {"file": "photo-150x150.jpg"},
                    "medium": {"file": "photo-300x200.jpg"},
                },
            }
        ),
    )

    metadata = StoreAttachmentMetadataProvider(store, uploads_url=UPLOADS)(20)

    assert metadata is not None
    assert metadata.file == "2014/05/photo.jpg"
    assert metadata.url == "http://stage.test/wp-content/uploads/2014/05/photo.jpg"
    assert dict(metadata.sizes) == {
        "thumbnail": "http://stage.test/wp-content/uploads/2014/05/photo-150x150.jpg",
        "medium": "http://stage.test/wp-content/uploads/2014/05/photo-300x200.jpg",
    }


def test_attached_file_is_used_without_metadata(store: FakeContentStore) -> None:
    store.add_meta(21, "_wp_attached_file", "2015/01/report.pdf")

    metadata = StoreAttachmentMetadataProvider(store, uploads_url=UPLOADS)(21)

    assert metadata is not None
    assert metadata.url == "http://stage.test/wp-content/uploads/2015/01/report.pdf"
    assert metadata.sizes == {}


def test_unreadable_metadata_falls_back(store: FakeContentStore) -> None:
    store.add_meta(22, "_wp_attachment_metadata", "a:1:{s:4:\"file\";}")
    store.add_meta(22, "_wp_attached_file", "2015/02/clip.mp4")

    metadata = StoreAttachmentMetadataProvider(store, uploads_url=UPLOADS)(22)

    assert metadata is not None
    assert metadata.file == "2015/02/clip.mp4"


def test_attachment_without_file_has_no_metadata(store: FakeContentStore) -> None:
    assert StoreAttachmentMetadataProvider(store, uploads_url=UPLOADS)(23) is None
