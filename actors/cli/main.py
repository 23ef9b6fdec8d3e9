"""Filestore CLI actor implemented with Typer."""

from __future__ import annotations

import asyncio
import dataclasses
import json
import os
import sys
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any, Awaitable, Callable

import typer
from packages.filestore_sdk import (
    EditFields,
    EgressAddressResolver,
    FileStoreSdkConfig,
    FileStoreSdkError,
    FileStoreWorkflows,
    NotificationLevel,
    Operation,
    ProbeIntent,
    SoftDeleteConfig,
    StoreClient,
    WorkflowOutcome,
    to_error_detail,
    update_template,
)
from packages.filestore_sdk.formatting import format_datetime, format_file_size
from packages.filestore_sdk.intents import parse_user_json
from packages.filestore_sdk.records import IMG2DICOM, is_deleted, preview_content, record_key
from packages.filestore_shared.config import FileStoreSettings, load_settings
from packages.filestore_shared.errors import ErrorCategory, ErrorDetail
from packages.filestore_shared.http import AsyncHttpClient
from packages.filestore_shared.logging import configure_logging

SUCCESS_EXIT_CODE = 0
VALIDATION_ERROR_EXIT_CODE = 2
DOMAIN_ERROR_EXIT_CODE = 3
TRANSPORT_ERROR_EXIT_CODE = 4
INTERNAL_ERROR_EXIT_CODE = 1

_EXIT_CODES = {
    ErrorCategory.VALIDATION: VALIDATION_ERROR_EXIT_CODE,
    ErrorCategory.REMOTE: DOMAIN_ERROR_EXIT_CODE,
    ErrorCategory.DEPENDENCY: TRANSPORT_ERROR_EXIT_CODE,
}


class SpecialClassifier(str, Enum):
    """Classifiers that override the file's media type on upload."""

    IMG2DICOM = IMG2DICOM


@dataclass(frozen=True)
class CliConfig:
    """Global CLI runtime options propagated to workflows."""

    settings: FileStoreSettings
    as_json: bool


def _serialize(value: Any) -> Any:
    """Convert result objects to JSON-serializable structures."""

    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date, Decimal, Path)):
        return str(value)
    if dataclasses.is_dataclass(value):
        return _serialize(
            {item.name: getattr(value, item.name) for item in dataclasses.fields(value)}
        )
    if isinstance(value, dict):
        return {str(key): _serialize(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [_serialize(item) for item in value]
    if hasattr(value, "model_dump"):
        return _serialize(value.model_dump(mode="python"))
    return str(value)


def _exit_code_for(error: ErrorDetail | None) -> int:
    if error is None:
        return DOMAIN_ERROR_EXIT_CODE
    return _EXIT_CODES.get(error.category, INTERNAL_ERROR_EXIT_CODE)


def _emit_error(message: str, error: ErrorDetail | None, as_json: bool) -> None:
    """Render one failure to stderr."""

    if as_json:
        payload: dict[str, Any] = {"error": message}
        if error is not None:
            payload["code"] = error.code
            payload["category"] = error.category.value
            if "raw_text" in error.metadata:
                payload["raw_text"] = error.metadata["raw_text"]
        typer.echo(json.dumps(payload), err=True)
        return
    typer.echo(f"error: {message}", err=True)


def _outcome_payload(outcome: WorkflowOutcome) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "level": outcome.notification.level.value,
        "message": outcome.notification.message,
        "records": _serialize(outcome.records),
    }
    if outcome.envelope is not None:
        payload["request"] = outcome.envelope.to_wire()
    if outcome.report is not None:
        payload["url"] = outcome.report.url
        payload["status_code"] = outcome.report.status_code
        payload["response"] = (
            _serialize(outcome.report.response_body)
            if outcome.report.response_body is not None
            else outcome.report.response_text
        )
    return payload


def _emit_output(
    outcome: WorkflowOutcome,
    as_json: bool,
    render: Callable[[WorkflowOutcome], str | None] | None = None,
) -> None:
    """Render one successful outcome in the requested format."""

    if as_json:
        typer.echo(json.dumps(_outcome_payload(outcome), sort_keys=True, separators=(",", ":")))
        return
    rendered = render(outcome) if render is not None else None
    if rendered:
        typer.echo(rendered)
    typer.echo(outcome.notification.message)


def _render_record_list(outcome: WorkflowOutcome) -> str:
    """Render one line per record: key, name, type, size, deleted marker."""
    if not outcome.records:
        return "No records found."
    lines: list[str] = []
    for record in outcome.records:
        line = (
            f"- [{record_key(record)}] {record.get('file_name') or 'unknown'}"
            f" ({record.get('file_type') or 'unknown'}, {format_file_size(record.get('file_size'))})"
        )
        if is_deleted(record):
            line = f"{line} [deleted]"
        lines.append(line)
    return "\n".join(lines)


def _render_record_detail(outcome: WorkflowOutcome) -> str | None:
    """Render the detail view of the first record."""
    if not outcome.records:
        return None
    record = outcome.records[0]
    preview = preview_content(record)
    rows = [
        ("ID", record.get("id")),
        ("File ID", record.get("file_id") or "N/A"),
        ("Name", record.get("file_name") or "unknown"),
        ("Type", record.get("file_type") or "unknown"),
        ("Size", format_file_size(record.get("file_size"))),
        (
            "Description",
            record.get("file_description") or record.get("description") or "no description",
        ),
        ("Created", format_datetime(record.get("created_at"))),
        ("Updated", format_datetime(record.get("updated_at"))),
        ("Status", "deleted" if is_deleted(record) else "active"),
    ]
    if record.get("deleted_at"):
        rows.append(("Deleted", format_datetime(record.get("deleted_at"))))
    rows.append(("Preview", f"{len(preview)} chars" if preview else "no preview"))
    return "\n".join(f"{label}: {value}" for label, value in rows)


def _render_probe(outcome: WorkflowOutcome) -> str | None:
    """Render URL, status, request and response of one probe."""
    report = outcome.report
    if report is None:
        return None
    if report.response_body is not None:
        response = json.dumps(_serialize(report.response_body), indent=2, ensure_ascii=False)
    else:
        response = report.response_text
    lines = [
        f"URL: {report.url}",
        "Method: POST",
        f"Status: {report.status_code}",
        "Request:",
        json.dumps(report.request, indent=2, ensure_ascii=False),
        "Response:",
        response,
    ]
    if outcome.records:
        lines.extend(["Records:", _render_record_list(outcome)])
    return "\n".join(lines)


def _new_http(timeout_seconds: float) -> AsyncHttpClient:
    """Return one shared HTTP client for a command run."""
    return AsyncHttpClient(timeout_seconds=timeout_seconds)


async def _with_workflows(
    cfg: CliConfig,
    invoke: Callable[[FileStoreWorkflows], Awaitable[WorkflowOutcome]],
) -> WorkflowOutcome:
    sdk_config = FileStoreSdkConfig.from_settings(cfg.settings)
    async with _new_http(sdk_config.timeout_seconds) as http:
        workflows = FileStoreWorkflows(
            StoreClient(config=sdk_config, http=http),
            egress=EgressAddressResolver.from_settings(http, sdk_config.egress),
        )
        return await invoke(workflows)


def _run_command(
    cfg: CliConfig,
    invoke: Callable[[FileStoreWorkflows], Awaitable[WorkflowOutcome]],
    render: Callable[[WorkflowOutcome], str | None] | None = None,
) -> None:
    """Execute one workflow and map its outcome to process semantics."""
    try:
        outcome = asyncio.run(_with_workflows(cfg, invoke))
    except FileStoreSdkError as exc:
        detail = to_error_detail(exc)
        _emit_error(str(exc), detail, cfg.as_json)
        raise typer.Exit(code=_exit_code_for(detail)) from exc

    if outcome.notification.level is NotificationLevel.ERROR:
        if outcome.report is not None and not cfg.as_json:
            rendered = _render_probe(outcome)
            if rendered:
                typer.echo(rendered)
        _emit_error(outcome.notification.message, outcome.notification.error, cfg.as_json)
        raise typer.Exit(code=_exit_code_for(outcome.notification.error))

    _emit_output(outcome, cfg.as_json, render)
    raise typer.Exit(code=SUCCESS_EXIT_CODE)


def _require_config(ctx: typer.Context) -> CliConfig:
    """Return required CLI config from Typer context."""

    config = ctx.obj
    if not isinstance(config, CliConfig):
        raise RuntimeError("CLI configuration not initialized")
    return config


app = typer.Typer(no_args_is_help=True, help="Filestore command-line interface")


@app.callback()
def main(
    ctx: typer.Context,
    base_url: str | None = typer.Option(None, help="Record store base URL"),
    timeout: float | None = typer.Option(
        None,
        min=0.001,
        help="Request timeout in seconds",
    ),
    as_json: bool = typer.Option(False, "--json", help="Emit JSON output"),
    log_level: str | None = typer.Option(None, help="Log level override"),
    config: Path | None = typer.Option(None, help="Path to YAML config file"),
) -> None:
    """Resolve settings and logging for all commands."""

    settings = load_settings(
        cli_params={
            "store": {"base_url": base_url, "timeout_seconds": timeout},
            "logging": {"level": log_level},
        },
        environ=os.environ,
        config_path=config,
    )
    configure_logging(
        level=settings.logging.level,
        json_output=settings.logging.json_output,
        service=settings.logging.service,
        environment=settings.logging.environment,
        stream=sys.stderr,
    )
    ctx.obj = CliConfig(settings=settings, as_json=as_json)


@app.command("upload")
def upload_command(
    ctx: typer.Context,
    path: Path = typer.Argument(..., help="File to upload"),
    description: str | None = typer.Option(None, help="Record description"),
    classifier: SpecialClassifier | None = typer.Option(
        None, help="Special classifier overriding the media type"
    ),
) -> None:
    """Upload one file as a new record."""
    cfg = _require_config(ctx)
    _run_command(
        cfg,
        lambda workflows: workflows.upload(
            path,
            description=description,
            special_classifier=classifier.value if classifier is not None else None,
        ),
    )


@app.command("list")
def list_command(
    ctx: typer.Context,
    show_all: bool = typer.Option(False, "--all", help="Include deleted records"),
) -> None:
    """List records."""
    cfg = _require_config(ctx)
    _run_command(
        cfg,
        lambda workflows: workflows.list_records(show_all=show_all),
        _render_record_list,
    )


@app.command("search")
def search_command(
    ctx: typer.Context,
    keyword: str = typer.Argument(..., help="Substring of the file name"),
    show_all: bool = typer.Option(False, "--all", help="Include deleted records"),
) -> None:
    """Search records by file name."""
    cfg = _require_config(ctx)
    _run_command(
        cfg,
        lambda workflows: workflows.search(keyword, show_all=show_all),
        _render_record_list,
    )


@app.command("show")
def show_command(
    ctx: typer.Context,
    record_id: str = typer.Argument(..., metavar="ID", help="Record id"),
) -> None:
    """Show one record in detail."""
    cfg = _require_config(ctx)
    _run_command(
        cfg,
        lambda workflows: workflows.show_detail(record_id),
        _render_record_detail,
    )


@app.command("edit")
def edit_command(
    ctx: typer.Context,
    record_id: str = typer.Argument(..., metavar="ID", help="Record id"),
    name: str | None = typer.Option(None, help="New file name"),
    file_type: str | None = typer.Option(None, "--type", help="New file type"),
    description: str | None = typer.Option(None, help="New description"),
    content: Path | None = typer.Option(None, help="Replacement content file"),
) -> None:
    """Edit one record, keeping its current name unless ``--name`` is given."""
    cfg = _require_config(ctx)

    async def edit(workflows: FileStoreWorkflows) -> WorkflowOutcome:
        opened = await workflows.open_edit(record_id)
        if not opened.ok or not opened.records:
            return opened
        current = opened.records[0]
        return await workflows.save_edit(
            EditFields(
                file_name=name if name is not None else str(current.get("file_name") or ""),
                file_type=file_type,
                file_description=description,
            ),
            content=content,
        )

    _run_command(cfg, edit)


@app.command("delete")
def delete_command(
    ctx: typer.Context,
    record_id: str = typer.Argument(..., metavar="ID", help="Record id"),
    hard: bool = typer.Option(False, "--hard", help="Report as permanent deletion"),
) -> None:
    """Delete one record."""
    cfg = _require_config(ctx)
    _run_command(cfg, lambda workflows: workflows.delete(record_id, hard=hard))


@app.command("select-for-update")
def select_for_update_command(
    ctx: typer.Context,
    record_id: str = typer.Argument(..., metavar="ID", help="Record id"),
) -> None:
    """Print editable update JSON for one record, for use with ``probe update``."""
    cfg = _require_config(ctx)

    def render(outcome: WorkflowOutcome) -> str | None:
        if not outcome.records:
            return None
        return json.dumps(update_template(outcome.records[0]), indent=2, ensure_ascii=False)

    _run_command(cfg, lambda workflows: workflows.show_detail(record_id), render)


@app.command("probe")
def probe_command(
    ctx: typer.Context,
    operation: Operation = typer.Argument(..., help="Store operation"),
    type_classifier: str = typer.Option("image", "--type", help="Type classifier"),
    data: str | None = typer.Option(None, help="JSON object payload"),
    file: Path | None = typer.Option(None, help="File to attach for add/update"),
    audit: bool = typer.Option(False, "--audit", help="Request audited check"),
    isdel_field: str = typer.Option("is_del", help="Soft-delete flag field"),
    isdel_value: str = typer.Option("true", help="Soft-delete flag value"),
) -> None:
    """Send an arbitrary envelope and print the exchange."""
    cfg = _require_config(ctx)

    async def probe(workflows: FileStoreWorkflows) -> WorkflowOutcome:
        intent = ProbeIntent(
            type_classifier=type_classifier,
            operation=operation,
            payload=parse_user_json(data),
            audit=audit,
            soft_delete=SoftDeleteConfig(field=isdel_field, value=isdel_value),
        )
        return await workflows.probe(intent, upload_path=file)

    _run_command(cfg, probe, _render_probe)


@app.command("add-data")
def add_data_command(
    ctx: typer.Context,
    table: str = typer.Argument(..., help="Target table"),
    data: str = typer.Argument(..., metavar="JSON", help="JSON object row"),
) -> None:
    """Write one raw JSON row into a table."""
    cfg = _require_config(ctx)
    _run_command(cfg, lambda workflows: workflows.add_table_data(table, data))


if __name__ == "__main__":
    app()
