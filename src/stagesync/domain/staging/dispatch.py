"""Entry point for requests arriving over the RPC transport.

Every request carries an ``action`` (``preflight`` or ``send``) and a ``body``.
The reply maps one of ``error``, ``warning``, ``success`` or ``info`` to a list of
human-readable messages; the surrounding RPC layer passes it on unchanged.
Nothing raised while handling a request crosses this boundary.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING, cast

from .codec import EnvelopeDecodeError, decode, decode_mapping

if TYPE_CHECKING:
    from .codec import BatchEnvelope
    from .preflight import PreflightValidator
    from .reconcile import BatchReconciler

log = getLogger(__name__)

type TransportResponse = dict[str, list[str]]

PAYLOAD_KEY = "payload"


class Action(StrEnum):
    PREFLIGHT = "preflight"
    SEND = "send"


class ResultKey(StrEnum):
    ERROR = "error"
    WARNING = "warning"
    SUCCESS = "success"
    INFO = "info"


@dataclass(frozen=True, slots=True)
class TransportRequest:
    action: str | None = None
    body: Mapping[str, object] = field(default_factory=dict[str, object])


def decode_body(body: object) -> BatchEnvelope:
    """Turn a request body into a typed envelope.

    The body either wraps an encoded envelope under ``payload`` or is the
    structured envelope itself.
    """

    if not isinstance(body, Mapping):
        raise EnvelopeDecodeError("request body is not a mapping")
    mapping = cast("Mapping[str, object]", body)
    encoded = mapping.get(PAYLOAD_KEY)
    if encoded is None:
        return decode_mapping(dict(mapping))
    if not isinstance(encoded, str | bytes):
        raise EnvelopeDecodeError(f"{PAYLOAD_KEY} must be text")
    return decode(encoded)


@dataclass(slots=True)
class StagingEndpoint:
    validator: PreflightValidator
    reconciler: BatchReconciler
    host: str = "localhost"

    def handle(self, request: object) -> TransportResponse:
        action, body = _unpack_request(request)
        if not action:
            return self._error("No action provided!")

        try:
            parsed = Action(action)
        except ValueError:
            return self._error("Invalid action provided!")

        try:
            envelope = decode_body(body)
        except EnvelopeDecodeError as exc:
            log.warning("Rejected %s request: %s", parsed, exc.reason)
            return self._error(str(exc))

        try:
            if parsed is Action.PREFLIGHT:
                return self._preflight(envelope)
            return self._send(envelope)
        except Exception:  # noqa: BLE001
            log.exception("Failed to handle %s for batch %s", parsed, envelope.batch_guid)
            return self._error(f"Could not handle {parsed} for batch {envelope.batch_guid}")

    def _preflight(self, envelope: BatchEnvelope) -> TransportResponse:
        report = self.validator.validate(envelope)
        if report.ok:
            return {ResultKey.SUCCESS: ["Pre-flight successful!"]}
        response: TransportResponse = {}
        if report.errors:
            response[ResultKey.ERROR] = list(report.errors)
        if report.warnings:
            response[ResultKey.WARNING] = list(report.warnings)
        return response

    def _send(self, envelope: BatchEnvelope) -> TransportResponse:
        result = self.reconciler.accept(envelope)
        return {
            ResultKey.INFO: [f"Batch has been successfully sent! Batch ID: {result.batch_id}"]
        }

    def _error(self, message: str) -> TransportResponse:
        return {ResultKey.ERROR: [f"{self.host}: {message}"]}


def _unpack_request(request: object) -> tuple[str | None, object]:
    if isinstance(request, Mapping):
        mapping = cast("Mapping[str, object]", request)
        action = mapping.get("action")
        body = mapping.get("body", {})
    else:
        action = getattr(request, "action", None)
        body = getattr(request, "body", {})
    return (action if isinstance(action, str) else None), body
