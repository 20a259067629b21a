"""``/uid`` command handling.

Wires one chat command through the whole provisioning flow:

  parse + validate -> status message -> scratch scope -> pipeline
  -> finalizing -> zip archive -> document delivery -> deferred cleanup

Once the scratch scope exists, every way out of a request releases it and
retires the status message. Failures that end a request early produce
exactly one error message and no document.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

from .observability.logging import bind_request_id, get_logger
from .observability.metrics import ARCHIVE_BYTES, BATCHES_TOTAL
from .protocols import ChatId, ChatTransport
from .provisioning.archive import ArchiveBuilder, ArchiveManifest
from .provisioning.errors import (
    ArchiveWriteError,
    DeliveryError,
    ProvisioningError,
    RequestValidationError,
    StorageProvisionError,
)
from .provisioning.naming import NameDeriver
from .provisioning.pipeline import ProvisioningPipeline
from .provisioning.progress import DEFAULT_RETIRE_DELAY_SECONDS, ProgressReporter
from .provisioning.request import ProvisioningRequest, parse_command_text, resolve_request
from .provisioning.workspace import ScopedWorkArea, TransientStore

logger = get_logger(__name__)

UID_COMMAND = "/uid"


def is_uid_command(text: str | None, bot_username: str | None = None) -> bool:
    """True for ``/uid`` and ``/uid@<bot_username>``, with or without arguments.

    When *bot_username* is unknown any ``@`` suffix is accepted.
    """
    if not text or not text.strip():
        return False
    head = text.split(maxsplit=1)[0]
    command, _, target = head.partition("@")
    if command != UID_COMMAND:
        return False
    if not target or not bot_username:
        return True
    return target.lower() == bot_username.lstrip("@").lower()


@dataclass(frozen=True, slots=True)
class CommandOutcome:
    """What happened to one command; used for metrics and tests."""

    status: str
    requested: int = 0
    issued: int = 0
    failed: int = 0
    filename: str | None = None
    error_code: str | None = None


class UidCommandHandler:
    """Run ``/uid`` commands end to end."""

    def __init__(
        self,
        *,
        transport: ChatTransport,
        pipeline: ProvisioningPipeline,
        store: TransientStore,
        names: NameDeriver,
        builder: ArchiveBuilder | None = None,
        retire_delay_seconds: float = DEFAULT_RETIRE_DELAY_SECONDS,
    ) -> None:
        self._transport = transport
        self._pipeline = pipeline
        self._store = store
        self._names = names
        self._builder = builder or ArchiveBuilder()
        self._retire_delay = retire_delay_seconds
        self._retiring: set[ProgressReporter] = set()

    @property
    def pending_retirements(self) -> int:
        return len(self._retiring)

    async def handle(
        self,
        chat_id: ChatId,
        text: str,
        *,
        reply_to: int | None = None,
    ) -> CommandOutcome:
        with bind_request_id():
            outcome = await self._handle(chat_id, text, reply_to=reply_to)
        BATCHES_TOTAL.labels(outcome=outcome.status).inc()
        return outcome

    async def flush(self) -> None:
        """Retire every status message still waiting for its delay."""
        pending = list(self._retiring)
        self._retiring.clear()
        for reporter in pending:
            await reporter.retire_now()

    async def _handle(
        self,
        chat_id: ChatId,
        text: str,
        *,
        reply_to: int | None,
    ) -> CommandOutcome:
        log = logger.bind(chat_id=chat_id)

        try:
            request = resolve_request(parse_command_text(text))
        except RequestValidationError as exc:
            log.info("request_rejected", reason=exc.reason)
            await self._notify(chat_id, exc.user_message, reply_to=reply_to)
            return CommandOutcome(status="rejected", error_code=exc.reason)

        name = self._names.derive(request.name) if request.explicit_name else None
        total = request.effective_count
        log.info("batch_started", units=total, name=name)

        reporter = ProgressReporter(
            self._transport,
            chat_id,
            total_units=total,
            name=name,
            reply_to=reply_to,
            retire_delay_seconds=self._retire_delay,
        )
        await reporter.start()

        try:
            scope = self._store.open_scope()
        except StorageProvisionError as exc:
            return await self._abort(reporter, chat_id, exc, reply_to=reply_to, requested=total)

        try:
            return await self._run_batch(
                request, reporter, scope, chat_id, name=name, reply_to=reply_to,
            )
        except Exception as exc:
            log.exception("batch_crashed")
            self._store.schedule_close(scope)
            error = ProvisioningError(f"unexpected {type(exc).__name__}")
            return await self._abort(reporter, chat_id, error, reply_to=reply_to, requested=total)

    async def _run_batch(
        self,
        request: ProvisioningRequest,
        reporter: ProgressReporter,
        scope: ScopedWorkArea,
        chat_id: ChatId,
        *,
        name: str | None,
        reply_to: int | None,
    ) -> CommandOutcome:
        log = logger.bind(chat_id=chat_id)
        total = request.effective_count

        manifest = await self._pipeline.run(request, reporter, name=name)
        await reporter.finalizing()

        try:
            content = self._write_archive(manifest, scope)
        except ArchiveWriteError as exc:
            manifest.discard()
            self._store.close(scope)
            return await self._abort(reporter, chat_id, exc, reply_to=reply_to, requested=total)

        issued = len(manifest.entries)
        failed = reporter.state.failed_units
        try:
            await self._transport.send_document(
                chat_id, manifest.filename, content, reply_to=reply_to,
            )
        except Exception as exc:
            log.exception("delivery_failed", filename=manifest.filename)
            self._store.schedule_close(scope)
            error = DeliveryError(f"send_document failed: {type(exc).__name__}")
            return await self._abort(reporter, chat_id, error, reply_to=reply_to, requested=total)

        ARCHIVE_BYTES.observe(len(content))
        self._track_retirement(reporter, await reporter.delivered())
        self._store.schedule_close(scope)
        log.info(
            "batch_delivered",
            filename=manifest.filename,
            issued=issued,
            failed=failed,
            indexed=len(manifest.credentials),
        )
        return CommandOutcome(
            status="delivered",
            requested=total,
            issued=issued,
            failed=failed,
            filename=manifest.filename,
        )

    def _write_archive(self, manifest: ArchiveManifest, scope: ScopedWorkArea) -> bytes:
        path = self._builder.finalize(manifest, scope.file(manifest.filename))
        try:
            return path.read_bytes()
        except OSError as exc:
            raise ArchiveWriteError(f"cannot read back {path.name}: {exc}") from exc

    async def _abort(
        self,
        reporter: ProgressReporter,
        chat_id: ChatId,
        error: ProvisioningError,
        *,
        reply_to: int | None,
        requested: int,
    ) -> CommandOutcome:
        logger.error("batch_aborted", chat_id=chat_id, code=error.code, detail=str(error))
        await self._notify(chat_id, error.user_message, reply_to=reply_to)
        self._track_retirement(reporter, reporter.schedule_retirement())
        return CommandOutcome(
            status="failed",
            requested=requested,
            failed=reporter.state.failed_units,
            error_code=error.code,
        )

    def _track_retirement(self, reporter: ProgressReporter, task: asyncio.Task) -> None:
        if task.done():
            return
        self._retiring.add(reporter)
        task.add_done_callback(lambda _: self._retiring.discard(reporter))

    async def _notify(self, chat_id: ChatId, text: str, *, reply_to: int | None) -> None:
        try:
            await self._transport.send_message(chat_id, text, reply_to=reply_to)
        except Exception:
            logger.warning("notification_failed", chat_id=chat_id, exc_info=True)
