from __future__ import annotations

import threading
import time
from typing import TYPE_CHECKING

import pytest

from stagesync.domain.staging import BatchEnvelope, BatchReconciler, KeyedLocks, decode
from stagesync.domain.staging.codec import PostPayload
from tests.helpers.content import FakeUnitOfWork, RecordingImportJob

if TYPE_CHECKING:
    from collections.abc import Iterator


def _reconciler(
    uow: FakeUnitOfWork,
    job: RecordingImportJob | None = None,
    locks: KeyedLocks | None = None,
) -> BatchReconciler:
    return BatchReconciler(
        unit_of_work_factory=lambda: uow,
        import_job=job or RecordingImportJob(),
        locks=locks if locks is not None else KeyedLocks(),
    )


def test_receiving_same_guid_twice_keeps_one_row(fake_unit_of_work: FakeUnitOfWork) -> None:
    reconciler = _reconciler(fake_unit_of_work)
    first = BatchEnvelope(
        batch_guid="g-1", batch_title="First", posts=(PostPayload(id=1, guid="a"),)
    )
    second = BatchEnvelope(
        batch_guid="g-1", batch_title="Second", posts=(PostPayload(id=2, guid="b"),)
    )

    first_id = reconciler.receive(first)
    second_id = reconciler.receive(second)

    assert first_id == second_id
    rows = fake_unit_of_work.batches.rows
    assert list(rows) == [first_id]
    stored = rows[first_id]
    assert stored.title == "Second"
    assert stored.content is not None
    assert decode(stored.content) == second


def test_accept_reports_created_then_updated(fake_unit_of_work: FakeUnitOfWork) -> None:
    reconciler = _reconciler(fake_unit_of_work)
    envelope = BatchEnvelope(batch_guid="g-2", batch_creator=5)

    created = reconciler.accept(envelope)
    updated = reconciler.accept(envelope)

    assert created.created is True
    assert updated.created is False
    assert fake_unit_of_work.batches.rows[created.batch_id].creator_id == 5
    assert fake_unit_of_work.commits == 2


def test_different_guids_get_different_rows(fake_unit_of_work: FakeUnitOfWork) -> None:
    reconciler = _reconciler(fake_unit_of_work)

    first = reconciler.receive(BatchEnvelope(batch_guid="g-a"))
    second = reconciler.receive(BatchEnvelope(batch_guid="g-b"))

    assert first != second


def test_import_job_is_launched_with_local_id(fake_unit_of_work: FakeUnitOfWork) -> None:
    job = RecordingImportJob()
    reconciler = _reconciler(fake_unit_of_work, job)

    result = reconciler.accept(BatchEnvelope(batch_guid="g-3"))

    assert job.launched == [result.batch_id]
    assert result.job.launched
    assert result.job.pid == 4242


def test_failed_launch_does_not_fail_receive(
    fake_unit_of_work: FakeUnitOfWork, caplog: pytest.LogCaptureFixture
) -> None:
    job = RecordingImportJob(fail=True)
    reconciler = _reconciler(fake_unit_of_work, job)

    result = reconciler.accept(BatchEnvelope(batch_guid="g-4"))

    assert result.batch_id in fake_unit_of_work.batches.rows
    assert not result.job.launched
    assert result.job.error == "cannot fork"
    assert "Import job launch failed" in caplog.text


class _SlowUnitOfWork(FakeUnitOfWork):
    """Records how many writers are inside a unit of work at the same time."""

    active: int = 0
    peak: int = 0
    gate: threading.Lock = threading.Lock()

    def __enter__(self) -> _SlowUnitOfWork:
        with self.gate:
            type(self).active += 1
            type(self).peak = max(type(self).peak, type(self).active)
        time.sleep(0.02)
        return self

    def __exit__(self, *exc: object) -> bool:  # type: ignore[override]
        with self.gate:
            type(self).active -= 1
        return False


@pytest.fixture
def slow_unit_of_work() -> Iterator[_SlowUnitOfWork]:
    _SlowUnitOfWork.active = 0
    _SlowUnitOfWork.peak = 0
    yield _SlowUnitOfWork()


def _receive_concurrently(reconciler: BatchReconciler, guids: list[str]) -> None:
    threads = [
        threading.Thread(target=reconciler.receive, args=(BatchEnvelope(batch_guid=guid),))
        for guid in guids
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()


def test_writes_for_one_guid_are_serialized(slow_unit_of_work: _SlowUnitOfWork) -> None:
    reconciler = _reconciler(slow_unit_of_work)

    _receive_concurrently(reconciler, ["same"] * 4)

    assert _SlowUnitOfWork.peak == 1
    assert len(slow_unit_of_work.batches.rows) == 1


def test_writes_for_different_guids_may_overlap(slow_unit_of_work: _SlowUnitOfWork) -> None:
    locks = KeyedLocks()
    reconciler = _reconciler(slow_unit_of_work, locks=locks)

    with locks.hold("blocked"):
        _receive_concurrently(reconciler, ["other-1", "other-2"])

    assert len(slow_unit_of_work.batches.rows) == 2


def test_keyed_locks_forget_keys_after_release() -> None:
    locks = KeyedLocks()

    with locks.hold("a"):
        with locks.hold("b"):
            assert len(locks) == 2
        assert len(locks) == 1
    assert len(locks) == 0


def test_keyed_locks_keep_key_while_another_holder_waits() -> None:
    locks = KeyedLocks()
    waiting = threading.Event()
    entered = threading.Event()

    def second_holder() -> None:
        waiting.set()
        with locks.hold("a"):
            entered.set()

    with locks.hold("a"):
        thread = threading.Thread(target=second_holder)
        thread.start()
        waiting.wait(timeout=1)
        time.sleep(0.05)
        assert not entered.is_set()
        assert len(locks) == 1
    thread.join(timeout=1)

    assert entered.is_set()
    assert len(locks) == 0


def test_receive_leaves_no_lock_behind(slow_unit_of_work: _SlowUnitOfWork) -> None:
    locks = KeyedLocks()
    reconciler = _reconciler(slow_unit_of_work, locks=locks)

    _receive_concurrently(reconciler, ["g-1", "g-1", "g-2"])

    assert len(locks) == 0
