"""Transaction boundary around the content store and the batch table."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from types import TracebackType

    from stagesync.domain.ports.content_store import BatchRepository, ContentStore


@dataclass(frozen=True, slots=True)
class StagingRepositories:
    """Repositories handed out by an open unit of work."""

    content: ContentStore
    batches: BatchRepository


@runtime_checkable
class StagingUnitOfWork(Protocol):
    """One transaction, used as a context manager.

    Writes not committed before the block ends are discarded; an exception
    raised inside the block rolls the transaction back.
    """

    @property
    def repositories(self) -> StagingRepositories: ...

    def __enter__(self) -> StagingUnitOfWork: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...
