"""Batch graph assembly on the sending side.

Starting from a set of root post ids the assembler collects everything a
receiver needs to rebuild those posts without asking back:

- metadata of every post, and the attachment descriptor of attachment posts
- the GUID of each post's parent, since local ids differ between stores
- related posts referenced from allow-listed metadata keys, transitively
- the authors of all included posts
- the taxonomy closure (see ``taxonomy``)

Ids that do not resolve to a post are skipped; callers hand us selections that
may have gone stale since they were made.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from logging import getLogger
from pathlib import PurePosixPath
from typing import TYPE_CHECKING

from stagesync.domain.model import Attachment, Batch

from .taxonomy import TaxonomyClosureResolver

if TYPE_CHECKING:
    from stagesync.domain.model import Post, Postmeta
    from stagesync.domain.ports import AttachmentMetadataProvider, ContentStore

log = getLogger(__name__)

type RootFilter = Callable[[list[int]], Iterable[int]]


def keep_roots(post_ids: list[int]) -> list[int]:
    return post_ids


@dataclass(frozen=True, slots=True)
class AssemblerConfig:
    """Extension points of the assembler.

    ``relation_keys`` names metadata keys whose value is the id of another post
    that has to travel with the batch. ``root_filter`` may add or drop root ids
    before anything is resolved.
    """

    relation_keys: frozenset[str] = field(default_factory=frozenset)
    root_filter: RootFilter = keep_roots


@dataclass(slots=True)
class _AssemblyRun:
    """State of one ``assemble`` call."""

    batch: Batch
    skipped: set[int] = field(default_factory=set[int])


@dataclass(slots=True)
class BatchAssembler:
    store: ContentStore
    attachments: AttachmentMetadataProvider
    config: AssemblerConfig = field(default_factory=AssemblerConfig)

    def assemble(self, root_post_ids: Iterable[int], *, batch: Batch | None = None) -> Batch:
        """Populate ``batch`` (or a new one) with the closure of ``root_post_ids``."""

        run = _AssemblyRun(batch=batch if batch is not None else Batch.new())
        roots = [int(post_id) for post_id in self.config.root_filter(list(root_post_ids))]

        found = self.store.bulk_get_by_ids(roots)
        run.skipped.update(set(roots) - {post.id for post in found})
        for post in found:
            self._include(run, post)

        self._add_users(run.batch)
        closure = TaxonomyClosureResolver(self.store).resolve(run.batch.posts)
        run.batch.term_taxonomies = closure.term_taxonomies
        run.batch.terms = closure.terms

        if run.skipped:
            log.debug("Skipped unknown post ids: %s", sorted(run.skipped))
        log.info(
            "Assembled batch %s: %s posts, %s users, %s term-taxonomies, %s attachments",
            run.batch.guid,
            len(run.batch.posts),
            len(run.batch.users),
            len(run.batch.term_taxonomies),
            len(run.batch.attachments),
        )
        return run.batch

    def _include(self, run: _AssemblyRun, root: Post) -> None:
        pending = [root]
        while pending:
            post = pending.pop()
            if run.batch.has_post(post.id):
                continue

            meta = self.store.get_meta_by_post_id(post.id)
            if post.is_attachment:
                self._add_attachment(run.batch, post)

            post.parent_guid = self.store.get_parent_guid(post.parent) if post.has_parent else None
            run.batch.add_post(post)

            related: list[Post] = []
            for item in meta:
                post.add_meta(item)
                related_post = self._related_post(run, item)
                if related_post is not None:
                    related.append(related_post)
            # reversed so related posts are visited in metadata order
            pending.extend(reversed(related))

    def _related_post(self, run: _AssemblyRun, item: Postmeta) -> Post | None:
        if item.key not in self.config.relation_keys:
            return None
        post_id = _as_post_id(item.value)
        if post_id is None or run.batch.has_post(post_id) or post_id in run.skipped:
            return None
        post = self.store.get_by_id(post_id)
        if post is None:
            run.skipped.add(post_id)
        return post

    def _add_attachment(self, batch: Batch, post: Post) -> None:
        metadata = self.attachments(post.id)
        if metadata is None:
            log.debug("No media metadata for attachment %s", post.id)
            return
        sizes = [metadata.url, *metadata.sizes.values()]
        batch.add_attachment(Attachment(path=str(PurePosixPath(metadata.file).parent), sizes=sizes))

    def _add_users(self, batch: Batch) -> None:
        author_ids = list(dict.fromkeys(post.author for post in batch.posts if post.author > 0))
        batch.users = list(self.store.bulk_get_users(author_ids)) if author_ids else []


def _as_post_id(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        post_id = int(value.strip())
    except ValueError:
        return None
    return post_id if post_id > 0 else None
