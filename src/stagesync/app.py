"""Application orchestration entry points."""

from __future__ import annotations

import json
from collections.abc import Callable
from logging import getLogger
from typing import TYPE_CHECKING, cast

from stagesync.adapters.media import StoreAttachmentMetadataProvider
from stagesync.adapters.probe import HttpUrlProbe
from stagesync.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyStagingUnitOfWork,
    is_started,
    startup,
)
from stagesync.config import get_staging_config
from stagesync.domain.model import Batch, StoredBatch
from stagesync.domain.staging import (
    Action,
    AssemblerConfig,
    BatchAssembler,
    BatchReconciler,
    ImportJobLauncher,
    KeyedLocks,
    PreflightValidator,
    StagingEndpoint,
    TransportRequest,
    encode_text,
)
from stagesync.domain.staging.dispatch import PAYLOAD_KEY, ResultKey

if TYPE_CHECKING:
    from collections.abc import Iterable

    from stagesync.config import StagingConfig
    from stagesync.domain.ports import StagingUnitOfWork, UrlProbe
    from stagesync.domain.staging import ImportJobTrigger, RootFilter, TransportResponse

UnitOfWorkFactory = Callable[[], "StagingUnitOfWork"]
Transport = Callable[[TransportRequest], "TransportResponse"]

log = getLogger(__name__)

# receives of the same GUID are serialized across all requests of this process
RECEIVE_LOCKS = KeyedLocks()


class BatchNotFoundError(LookupError):
    """Raised when a stored batch id does not exist."""


def _default_unit_of_work() -> UnitOfWorkFactory:
    if not is_started():
        startup()
    return SqlAlchemyStagingUnitOfWork


def save_draft(
    post_ids: Iterable[int],
    *,
    title: str = "",
    creator_id: int = 0,
    batch_id: int | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> int:
    """Store the selection of post ids on the sending side and return the batch id."""

    effective_uow = unit_of_work_factory or _default_unit_of_work()
    content = json.dumps(list(dict.fromkeys(int(post_id) for post_id in post_ids)))
    with effective_uow() as uow:
        batches = uow.repositories.batches
        if batch_id is None:
            stored = StoredBatch(guid=Batch.new().guid, title=title, creator_id=creator_id)
            stored.content = content
            batch_id = batches.insert_batch(stored)
        else:
            existing = batches.get_batch_by_id(batch_id)
            if existing is None:
                raise BatchNotFoundError(f"No batch with id {batch_id}")
            existing.content = content
            existing.title = title or existing.title
            batches.update_batch(existing)
        uow.commit()
    log.info("Saved draft batch %s", batch_id)
    return batch_id


def assemble_batch(
    post_ids: Iterable[int],
    *,
    batch: Batch | None = None,
    config: StagingConfig | None = None,
    root_filter: RootFilter | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> Batch:
    """Assemble the closure of ``post_ids`` from the local content store."""

    effective_config = config or get_staging_config()
    effective_uow = unit_of_work_factory or _default_unit_of_work()
    assembler_config = AssemblerConfig(relation_keys=effective_config.relation_keys)
    if root_filter is not None:
        assembler_config = AssemblerConfig(
            relation_keys=effective_config.relation_keys,
            root_filter=root_filter,
        )

    with effective_uow() as uow:
        store = uow.repositories.content
        assembler = BatchAssembler(
            store=store,
            attachments=StoreAttachmentMetadataProvider(
                store,
                uploads_url=effective_config.uploads_url
                or f"{effective_config.site_url}/wp-content/uploads",
            ),
            config=assembler_config,
        )
        return assembler.assemble(post_ids, batch=batch)


def assemble_stored_batch(
    batch_id: int,
    *,
    config: StagingConfig | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> Batch:
    """Load a draft batch and assemble the posts it lists, keeping its GUID and title."""

    effective_uow = unit_of_work_factory or _default_unit_of_work()
    with effective_uow() as uow:
        stored = uow.repositories.batches.get_batch_by_id(batch_id)
        if stored is None:
            raise BatchNotFoundError(f"No batch with id {batch_id}")
        batch = Batch(
            guid=stored.guid,
            id=stored.id,
            title=stored.title,
            creator_id=stored.creator_id,
            modified=stored.modified,
            content=stored.content,
        )
    post_ids = _post_ids_from_content(stored.content)
    return assemble_batch(
        post_ids,
        batch=batch,
        config=config,
        unit_of_work_factory=effective_uow,
    )


def _post_ids_from_content(content: str | None) -> list[int]:
    if not content:
        return []
    try:
        loaded = json.loads(content)
    except json.JSONDecodeError as exc:
        raise ValueError("Stored batch content is not a list of post ids") from exc
    if not isinstance(loaded, list):
        raise ValueError("Stored batch content is not a list of post ids")  # noqa: TRY004
    return [int(value) for value in cast("list[int | str]", loaded)]


def build_endpoint(
    uow: StagingUnitOfWork,
    *,
    unit_of_work_factory: UnitOfWorkFactory,
    config: StagingConfig,
    probe: UrlProbe | None = None,
    import_job: ImportJobTrigger | None = None,
) -> StagingEndpoint:
    return StagingEndpoint(
        validator=PreflightValidator(uow.repositories.content, probe or HttpUrlProbe()),
        reconciler=BatchReconciler(
            unit_of_work_factory=unit_of_work_factory,
            import_job=import_job
            or ImportJobLauncher(
                command=config.import_command,
                site_root=config.site_root,
                site_url=config.site_url,
            ),
            locks=RECEIVE_LOCKS,
        ),
        host=config.host,
    )


def handle_request(
    request: object,
    *,
    config: StagingConfig | None = None,
    probe: UrlProbe | None = None,
    import_job: ImportJobTrigger | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> TransportResponse:
    """Answer one transport request on the receiving side."""

    effective_config = config or get_staging_config()
    effective_uow = unit_of_work_factory or _default_unit_of_work()
    with effective_uow() as uow:
        endpoint = build_endpoint(
            uow,
            unit_of_work_factory=effective_uow,
            config=effective_config,
            probe=probe,
            import_job=import_job,
        )
        return endpoint.handle(request)


def deploy_batch(batch: Batch, transport: Transport) -> TransportResponse:
    """Run pre-flight for ``batch`` and send it when pre-flight reports no errors.

    Pre-flight warnings are carried over into the final response.
    """

    body = {PAYLOAD_KEY: encode_text(batch)}
    preflight = transport(TransportRequest(action=Action.PREFLIGHT, body=body))
    if preflight.get(ResultKey.ERROR):
        log.warning("Pre-flight of batch %s failed; not sending", batch.guid)
        return preflight

    response = transport(TransportRequest(action=Action.SEND, body=body))
    warnings = preflight.get(ResultKey.WARNING)
    if warnings:
        merged = dict(response)
        merged[ResultKey.WARNING] = [*warnings, *response.get(ResultKey.WARNING, [])]
        return merged
    return response
