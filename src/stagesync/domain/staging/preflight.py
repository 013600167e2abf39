"""Pre-flight validation of a received batch.

Runs on the receiving side before a batch is stored and never writes. Missing
parents are errors; attachment variants that do not answer are warnings only,
since they degrade the deployed result without blocking the transfer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from stagesync.domain.ports import ContentStore, UrlProbe

    from .codec import BatchEnvelope, PostPayload

log = getLogger(__name__)


@dataclass(slots=True)
class PreflightReport:
    errors: list[str] = field(default_factory=list[str])
    warnings: list[str] = field(default_factory=list[str])

    @property
    def ok(self) -> bool:
        return not self.errors and not self.warnings


def missing_parent_message(post: PostPayload) -> str:
    return (
        f"Post ID {post.id} is missing its parent post (ID {post.parent}). Parent post does "
        "not exist on production and is not part of this batch"
    )


def missing_attachment_message(url: str) -> str:
    return (
        f"Attachment {url} is missing on content stage and will not be deployed to production."
    )


@dataclass(slots=True)
class PreflightValidator:
    store: ContentStore
    probe: UrlProbe

    def validate(self, envelope: BatchEnvelope) -> PreflightReport:
        report = PreflightReport()
        payload_post_ids = {post.id for post in envelope.posts}

        for post in envelope.posts:
            if not self._parent_exists(post, payload_post_ids):
                report.errors.append(missing_parent_message(post))

        urls = [url for attachment in envelope.attachments for url in attachment.sizes]
        if urls:
            found = self.probe(list(dict.fromkeys(urls)))
            for url in urls:
                if not found.get(url, False):
                    report.warnings.append(missing_attachment_message(url))

        log.info(
            "Pre-flight of batch %s: %s errors, %s warnings",
            envelope.batch_guid,
            len(report.errors),
            len(report.warnings),
        )
        return report

    def _parent_exists(self, post: PostPayload, payload_post_ids: set[int]) -> bool:
        if post.parent <= 0:
            return True
        if post.parent_guid and self.store.get_by_guid(post.parent_guid) is not None:
            return True
        return post.parent in payload_post_ids
