"""Receiving side: store a batch by GUID and hand it to the import job.

A batch keeps its GUID across stores while local ids differ, so the GUID
decides between insert and update. Receiving the same GUID again replaces the
stored payload and keeps the local id. Writes for one GUID are serialized;
writes for different GUIDs are not.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from stagesync.domain.model import StoredBatch, utcnow

from .codec import encode_text
from .import_job import ImportJobHandle
from .locks import KeyedLocks

if TYPE_CHECKING:
    from collections.abc import Callable

    from stagesync.domain.ports import StagingUnitOfWork

    from .codec import BatchEnvelope
    from .import_job import ImportJobTrigger

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ReceiveResult:
    batch_id: int
    created: bool
    job: ImportJobHandle


@dataclass(slots=True)
class BatchReconciler:
    unit_of_work_factory: Callable[[], StagingUnitOfWork]
    import_job: ImportJobTrigger
    locks: KeyedLocks = field(default_factory=KeyedLocks)

    def receive(self, envelope: BatchEnvelope) -> int:
        """Store ``envelope`` and return the local id of its batch row."""

        return self.accept(envelope).batch_id

    def accept(self, envelope: BatchEnvelope) -> ReceiveResult:
        with self.locks.hold(envelope.batch_guid):
            batch_id, created = self._upsert(envelope)
        log.info(
            "%s batch %s (GUID %s)",
            "Stored new" if created else "Updated",
            batch_id,
            envelope.batch_guid,
        )
        return ReceiveResult(batch_id=batch_id, created=created, job=self._launch(batch_id))

    def _upsert(self, envelope: BatchEnvelope) -> tuple[int, bool]:
        with self.unit_of_work_factory() as uow:
            batches = uow.repositories.batches
            stored = batches.get_batch_by_guid(envelope.batch_guid)
            created = stored is None
            if stored is None:
                stored = StoredBatch(guid=envelope.batch_guid)

            stored.content = encode_text(envelope)
            stored.title = envelope.batch_title
            stored.guid = envelope.batch_guid
            stored.creator_id = envelope.batch_creator
            stored.modified = utcnow()

            if created:
                batch_id = batches.insert_batch(stored)
            else:
                batches.update_batch(stored)
                batch_id = stored.id
            uow.commit()

        if batch_id is None:
            raise RuntimeError(f"Batch {envelope.batch_guid} has no local id after storing")
        return batch_id, created

    def _launch(self, batch_id: int) -> ImportJobHandle:
        # the row is committed; a failed launch must not fail the receive
        try:
            return self.import_job.launch(batch_id)
        except Exception as exc:  # noqa: BLE001
            log.exception("Import job launch failed for batch %s", batch_id)
            return ImportJobHandle(batch_id=batch_id, error=str(exc))
