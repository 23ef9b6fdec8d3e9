"""User-facing workflows over the store client.

Each public coroutine is one user action. It builds, validates and sends
envelopes, then reports back through a ``WorkflowOutcome``. Failures never
escape a workflow: every exception becomes an error ``Notification``
carrying the shared ``ErrorDetail``.
"""

from __future__ import annotations

import asyncio
import dataclasses
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import Any, Mapping

from packages.filestore_shared.errors import ErrorDetail, exception_to_error
from packages.filestore_shared.logging import fields, get_logger, log_context

from .builders import (
    DerivedContent,
    RecordDefaults,
    build_add_envelope,
    build_delete_envelope,
    build_detail_envelope,
    build_edit_envelope,
    build_list_envelope,
    build_probe_envelope,
    build_table_add_envelope,
    needs_resource_defaults,
)
from .client import StoreClient
from .egress import DEFAULT_EGRESS_ADDRESS, EgressAddressResolver
from .envelope import Operation, OperationEnvelope
from .errors import (
    EnvelopeValidationError,
    FileStoreSdkError,
    StoreTransportError,
    to_error_detail,
)
from .hashing import Digest, compute_fingerprint, sha256_hex
from .intents import EditFields, ProbeIntent, coerce_record_id, parse_user_json
from .records import UploadFile, read_upload
from .results import StoreResult, require_success
from .selection import SelectionSlot, WorkflowContext

logger = get_logger(__name__)


class NotificationLevel(str, Enum):
    """Severity of one user-visible notification."""

    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class Notification:
    """One message for the user, with error detail on failure."""

    level: NotificationLevel
    message: str
    error: ErrorDetail | None = None


@dataclass(frozen=True)
class ProbeReport:
    """Everything a probe shows: where it went, what was sent, what came back."""

    url: str
    request: dict[str, Any]
    status_code: int | None = None
    response_body: Mapping[str, Any] | None = None
    response_text: str = ""


@dataclass(frozen=True)
class WorkflowOutcome:
    """Result of one workflow run."""

    notification: Notification
    records: tuple[dict[str, Any], ...] = ()
    envelope: OperationEnvelope | None = None
    result: StoreResult | None = None
    context: WorkflowContext | None = None
    stale: bool = False
    report: ProbeReport | None = None

    @property
    def ok(self) -> bool:
        return self.notification.level is not NotificationLevel.ERROR


def _utc_now() -> datetime:
    return datetime.now(UTC)


class FileStoreWorkflows:
    """Upload, browse, edit, delete and probe records in the store."""

    def __init__(
        self,
        client: StoreClient,
        *,
        egress: EgressAddressResolver | None = None,
        selection: SelectionSlot | None = None,
        defaults: RecordDefaults | None = None,
        digest: Digest = sha256_hex,
        clock: Callable[[], datetime] = _utc_now,
        rng: random.Random | None = None,
    ) -> None:
        self._client = client
        self._egress = egress
        self._selection = SelectionSlot() if selection is None else selection
        self._defaults = client.config.record_defaults if defaults is None else defaults
        self._digest = digest
        self._clock = clock
        self._rng = rng

    @property
    def selection(self) -> SelectionSlot:
        return self._selection

    async def derive_content(self, upload: UploadFile) -> DerivedContent:
        """Fingerprint ``upload`` and collect its upload metadata."""
        moment = self._clock()
        fingerprint = await asyncio.to_thread(
            compute_fingerprint,
            upload.content,
            digest=self._digest,
            clock=moment.timestamp,
            rng=self._rng,
        )
        return DerivedContent(
            fingerprint=fingerprint,
            uploaded_at=moment,
            upload_ip=await self._egress_address(),
            upload_user=self._defaults.upload_user,
        )

    async def upload(
        self,
        source: str | Path | UploadFile,
        *,
        description: str | None = None,
        special_classifier: str | None = None,
    ) -> WorkflowOutcome:
        """Add one new binary to the store."""

        async def run() -> WorkflowOutcome:
            upload = source if isinstance(source, UploadFile) else await read_upload(source)
            derived = await self.derive_content(upload)
            overrides = {"description": description or f"uploaded file: {upload.name}"}
            envelope = build_add_envelope(
                upload,
                derived,
                overrides=overrides,
                special_classifier=special_classifier,
                defaults=self._defaults,
                rng=self._rng,
            )
            result = await self._send(envelope, fallback_message="upload failed")
            return WorkflowOutcome(
                notification=Notification(
                    NotificationLevel.SUCCESS,
                    f"uploaded {upload.name} as {envelope.payload['file_id']}",
                ),
                records=result.records,
                envelope=envelope,
                result=result,
            )

        return await self._guard("upload", "upload failed", run)

    async def list_records(self, *, show_all: bool = False) -> WorkflowOutcome:
        """List records, hiding soft-deleted rows unless ``show_all``."""
        return await self._guard(
            "list",
            "loading records failed",
            lambda: self._listing(build_list_envelope(show_all=show_all)),
        )

    async def search(self, keyword: str, *, show_all: bool = False) -> WorkflowOutcome:
        """List records whose name contains ``keyword``."""
        return await self._guard(
            "search",
            "search failed",
            lambda: self._listing(build_list_envelope(show_all=show_all, keyword=keyword)),
        )

    async def show_detail(self, record_id: Any) -> WorkflowOutcome:
        """Select one record and load its full, audited detail."""
        return await self._guard(
            "detail",
            "loading record detail failed",
            lambda: self._open_target(record_id),
        )

    async def open_edit(self, record_id: Any) -> WorkflowOutcome:
        """Select one record for editing and load its current values."""
        return await self._guard(
            "open_edit",
            "loading edit form failed",
            lambda: self._open_target(record_id),
        )

    async def save_edit(
        self,
        edit: EditFields,
        *,
        content: str | Path | UploadFile | None = None,
    ) -> WorkflowOutcome:
        """Save edits to the selected record, optionally replacing its content."""

        async def run() -> WorkflowOutcome:
            context = self._selection.current
            if context is None:
                raise EnvelopeValidationError(message="no record selected for editing")
            if edit.file_name.strip() == "":
                raise EnvelopeValidationError(message="file name must not be empty")
            upload: UploadFile | None = None
            derived: DerivedContent | None = None
            if content is not None:
                upload = (
                    content if isinstance(content, UploadFile) else await read_upload(content)
                )
                derived = await self.derive_content(upload)
            envelope = build_edit_envelope(
                context.target_id,
                EditFields(
                    file_name=edit.file_name.strip(),
                    file_type=(edit.file_type or "").strip() or None,
                    file_description=(edit.file_description or "").strip() or None,
                ),
                upload=upload,
                derived=derived,
            )
            result = await self._send(envelope, fallback_message="update failed")
            self._selection.clear(context.target_id)
            return WorkflowOutcome(
                notification=Notification(
                    NotificationLevel.SUCCESS, f"record {context.target_id} updated"
                ),
                envelope=envelope,
                result=result,
                context=context,
            )

        return await self._guard("save_edit", "saving changes failed", run)

    async def delete(self, record_id: Any, *, hard: bool = False) -> WorkflowOutcome:
        """Soft-delete one record.

        ``hard`` only changes the wording; both paths send the same ``isdel``.
        """
        verb = "permanently deleted" if hard else "marked deleted"

        async def run() -> WorkflowOutcome:
            target = coerce_record_id(record_id)
            envelope = build_delete_envelope(record_id=target)
            result = await self._send(envelope, fallback_message="delete failed")
            self._selection.clear(target)
            return WorkflowOutcome(
                notification=Notification(NotificationLevel.SUCCESS, f"record {target} {verb}"),
                envelope=envelope,
                result=result,
            )

        return await self._guard("delete", "delete failed", run)

    async def probe(
        self, intent: ProbeIntent, *, upload_path: str | Path | None = None
    ) -> WorkflowOutcome:
        """Send an arbitrary envelope and report the raw exchange.

        Unlike the other workflows a non-2xx or ``success: false`` response is
        still reported in full; only the notification level reflects it.
        """

        async def run() -> WorkflowOutcome:
            probe_intent = intent
            if upload_path is not None:
                probe_intent = dataclasses.replace(
                    intent, upload=await read_upload(upload_path)
                )
            derived = None
            if probe_intent.upload is not None and probe_intent.operation in (
                Operation.ADD,
                Operation.UPDATE,
            ):
                derived = await self.derive_content(probe_intent.upload)
            envelope = build_probe_envelope(
                probe_intent, derived=derived, defaults=self._defaults, rng=self._rng
            )
            result = await self._client.send(envelope)
            report = ProbeReport(
                url=self._client.url_for(envelope),
                request=envelope.to_wire(),
                status_code=result.status_code,
                response_body=result.body,
                response_text=result.raw_text,
            )
            if result.status_code is not None and 200 <= result.status_code < 300:
                notification = Notification(NotificationLevel.SUCCESS, "probe succeeded")
            else:
                failure = StoreTransportError(
                    message=f"probe failed with status {result.status_code}",
                    operation=envelope.operation.value,
                    status_code=result.status_code,
                )
                notification = Notification(
                    NotificationLevel.ERROR, failure.message, error=to_error_detail(failure)
                )
            return WorkflowOutcome(
                notification=notification,
                records=result.records if probe_intent.operation is Operation.CHECK else (),
                envelope=envelope,
                result=result,
                report=report,
            )

        return await self._guard("probe", "probe failed", run)

    async def add_table_data(
        self, table: str, data: str | Mapping[str, Any]
    ) -> WorkflowOutcome:
        """Write one raw row of caller JSON into ``table``."""

        async def run() -> WorkflowOutcome:
            if table.strip() == "":
                raise EnvelopeValidationError(message="table name is required")
            row = parse_user_json(data) if isinstance(data, str) else dict(data)
            if not row:
                raise EnvelopeValidationError(message="JSON data is required")
            upload_ip = None
            if needs_resource_defaults(table.strip(), row):
                upload_ip = await self._egress_address()
            envelope = build_table_add_envelope(
                table.strip(),
                row,
                upload_ip=upload_ip,
                now=self._clock(),
                rng=self._rng,
            )
            result = await self._send(envelope, fallback_message="write failed")
            return WorkflowOutcome(
                notification=Notification(NotificationLevel.SUCCESS, f"row written to {table}"),
                records=result.records,
                envelope=envelope,
                result=result,
            )

        return await self._guard("add_table_data", "write failed", run)

    async def _listing(self, envelope: OperationEnvelope) -> WorkflowOutcome:
        result = await self._send(envelope, fallback_message="check failed")
        count = len(result.records)
        return WorkflowOutcome(
            notification=Notification(
                NotificationLevel.INFO,
                f"{count} record{'' if count == 1 else 's'}",
            ),
            records=result.records,
            envelope=envelope,
            result=result,
        )

    async def _open_target(self, record_id: Any) -> WorkflowOutcome:
        target = coerce_record_id(record_id)
        context = self._selection.open(target)
        envelope = build_detail_envelope(target)
        raw = await self._post(envelope)
        if not self._selection.is_current(context):
            logger.info(
                "dropping result for superseded selection",
                extra={
                    fields.EVENT: fields.STALE_RESULT_DROPPED_EVENT,
                    fields.TARGET_ID: target,
                    fields.GENERATION: context.generation,
                },
            )
            return WorkflowOutcome(
                notification=Notification(
                    NotificationLevel.INFO, f"result for record {target} discarded"
                ),
                envelope=envelope,
                context=context,
                stale=True,
            )
        result = require_success(
            raw, operation=envelope.operation.value, fallback_message="record not found"
        )
        if not result.records:
            self._selection.clear(target)
            return WorkflowOutcome(
                notification=Notification(
                    NotificationLevel.WARNING, result.message or f"record {target} not found"
                ),
                envelope=envelope,
                result=result,
                context=context,
            )
        return WorkflowOutcome(
            notification=Notification(NotificationLevel.INFO, f"record {target}"),
            records=result.records[:1],
            envelope=envelope,
            result=result,
            context=context,
        )

    async def _post(self, envelope: OperationEnvelope) -> StoreResult:
        with log_context(
            {
                fields.OPERATION: envelope.operation.value,
                fields.TYPE_CLASSIFIER: envelope.type_classifier,
            }
        ):
            return await self._client.send(envelope)

    async def _send(self, envelope: OperationEnvelope, *, fallback_message: str) -> StoreResult:
        return require_success(
            await self._post(envelope),
            operation=envelope.operation.value,
            fallback_message=fallback_message,
        )

    async def _egress_address(self) -> str:
        if self._egress is None:
            return DEFAULT_EGRESS_ADDRESS
        return await self._egress.resolve()

    async def _guard(
        self,
        workflow: str,
        failure_prefix: str,
        run: Callable[[], Awaitable[WorkflowOutcome]],
    ) -> WorkflowOutcome:
        """Run one workflow, converting every failure to an error notification.

        SDK errors are expected and logged without a traceback; anything else
        is mapped through ``exception_to_error`` and logged with one.
        """
        with log_context({fields.WORKFLOW: workflow}):
            try:
                return await run()
            except FileStoreSdkError as exc:
                return self._failed(failure_prefix, exc, to_error_detail(exc))
            except Exception as exc:
                return self._failed(
                    failure_prefix, exc, exception_to_error(exc), exc_info=True
                )

    def _failed(
        self,
        failure_prefix: str,
        exc: Exception,
        detail: ErrorDetail,
        *,
        exc_info: bool = False,
    ) -> WorkflowOutcome:
        logger.error(
            "%s: %s",
            failure_prefix,
            detail.message,
            exc_info=exc if exc_info else None,
            extra={
                fields.EVENT: fields.WORKFLOW_FAILED_EVENT,
                fields.ERROR_CATEGORY: detail.category.value,
                fields.ERROR_CODE: detail.code,
            },
        )
        return WorkflowOutcome(
            notification=Notification(
                NotificationLevel.ERROR,
                f"{failure_prefix}: {detail.message}",
                error=detail,
            )
        )
