"""Batch assembly, transfer and reconciliation.

Flow between two independent content stores:
1) assemble the closure of selected posts on the sending side
2) encode it as a transfer envelope and send it over the transport
3) decode it on the receiving side and optionally run pre-flight checks
4) store the batch by GUID and launch the import job in the background
"""

from __future__ import annotations

from .assembler import AssemblerConfig, BatchAssembler, RootFilter
from .codec import (
    BatchEnvelope,
    EnvelopeDecodeError,
    batch_from_envelope,
    decode,
    encode,
    encode_text,
    envelope_from_batch,
)
from .dispatch import Action, StagingEndpoint, TransportRequest, TransportResponse
from .import_job import ImportJobHandle, ImportJobLauncher, ImportJobTrigger
from .locks import KeyedLocks
from .preflight import PreflightReport, PreflightValidator
from .reconcile import BatchReconciler, ReceiveResult
from .taxonomy import TaxonomyClosure, TaxonomyClosureResolver

__all__ = [
    "Action",
    "AssemblerConfig",
    "BatchAssembler",
    "BatchEnvelope",
    "BatchReconciler",
    "EnvelopeDecodeError",
    "ImportJobHandle",
    "ImportJobLauncher",
    "ImportJobTrigger",
    "KeyedLocks",
    "PreflightReport",
    "PreflightValidator",
    "ReceiveResult",
    "RootFilter",
    "StagingEndpoint",
    "TaxonomyClosure",
    "TaxonomyClosureResolver",
    "TransportRequest",
    "TransportResponse",
    "batch_from_envelope",
    "decode",
    "encode",
    "encode_text",
    "envelope_from_batch",
]
