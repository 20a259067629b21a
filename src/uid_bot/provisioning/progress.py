"""Status-message progress reporting for one ``/uid`` request.

Each request owns exactly one status message, driven through:

  created -> in_progress -> finalizing -> delivered -> retired

``in_progress`` may repeat (one edit per unit) and may be skipped for
single-unit batches. ``retired`` is reachable from every state so that a
fatal abort can still clean the message up. Transitions never go
backwards.

Every transport call is best-effort: a failed send, edit or delete is
logged and swallowed, never raised into the pipeline.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, replace
from types import MappingProxyType

from ..protocols import ChatId, ChatTransport, MessageHandle

logger = logging.getLogger(__name__)

PROGRESS_SEQUENCE = (
    'created',
    'in_progress',
    'finalizing',
    'delivered',
    'retired',
)

ALLOWED_TRANSITIONS = MappingProxyType(
    {
        'created': frozenset({'in_progress', 'finalizing', 'retired'}),
        'in_progress': frozenset({'in_progress', 'finalizing', 'retired'}),
        'finalizing': frozenset({'delivered', 'retired'}),
        'delivered': frozenset({'retired'}),
        'retired': frozenset(),
    }
)

DEFAULT_RETIRE_DELAY_SECONDS = 10.0
RECENT_FAILURES_SHOWN = 3


@dataclass(frozen=True, slots=True)
class ProgressState:
    """Snapshot of one request's progress."""

    total_units: int
    completed_units: int = 0
    failure_messages: tuple[str, ...] = ()
    phase: str = 'created'

    @property
    def failed_units(self) -> int:
        return len(self.failure_messages)

    @property
    def issued_units(self) -> int:
        return self.completed_units - self.failed_units


class InvalidProgressTransition(ValueError):
    """Raised when a status message would move backwards."""

    def __init__(self, from_phase: str, to_phase: str) -> None:
        self.from_phase = from_phase
        self.to_phase = to_phase
        super().__init__(
            f'invalid progress transition: {from_phase!r} -> {to_phase!r}'
        )


def transition(state: ProgressState, to_phase: str, **changes) -> ProgressState:
    allowed = ALLOWED_TRANSITIONS.get(state.phase, frozenset())
    if to_phase not in allowed:
        raise InvalidProgressTransition(state.phase, to_phase)
    return replace(state, phase=to_phase, **changes)


# ── Message text ─────────────────────────────────────────────────────


def created_text(total: int, name: str | None) -> str:
    if name:
        return f'Generating {total} UID(s) with name {name}...'
    return f'Generating {total} UID(s)...'


def in_progress_text(state: ProgressState) -> str:
    lines = [f'Generating UIDs... {state.completed_units}/{state.total_units} done']
    if state.failure_messages:
        lines.append(f'{state.failed_units} failed:')
        lines.extend(state.failure_messages[-RECENT_FAILURES_SHOWN:])
    return '\n'.join(lines)


def finalizing_text(state: ProgressState, name: str | None) -> str:
    summary = f'Generated {state.issued_units}/{state.total_units} UID(s)'
    if name:
        summary += f' with name {name}'
    return f'{summary}. Sending accounts zip file...'


# ── Reporter ─────────────────────────────────────────────────────────


class ProgressReporter:
    """Own and edit the single status message of one request.

    Implements the pipeline's progress listener protocol
    (``unit_failed`` / ``unit_completed``).
    """

    def __init__(
        self,
        transport: ChatTransport,
        chat_id: ChatId,
        *,
        total_units: int,
        name: str | None = None,
        reply_to: int | None = None,
        retire_delay_seconds: float = DEFAULT_RETIRE_DELAY_SECONDS,
    ) -> None:
        self._transport = transport
        self._chat_id = chat_id
        self._name = name
        self._reply_to = reply_to
        self._retire_delay = retire_delay_seconds
        self._handle: MessageHandle | None = None
        self._retire_task: asyncio.Task | None = None
        self.state = ProgressState(total_units=total_units)

    @property
    def handle(self) -> MessageHandle | None:
        return self._handle

    @property
    def phase(self) -> str:
        return self.state.phase

    async def start(self) -> None:
        """Send the initial status message. Call once, before any unit."""
        if self._handle is not None:
            return
        try:
            self._handle = await self._transport.send_message(
                self._chat_id,
                created_text(self.state.total_units, self._name),
                reply_to=self._reply_to,
            )
        except Exception:
            logger.warning('Status message could not be sent', exc_info=True)

    async def unit_failed(self, index: int, reason: str) -> None:
        message = f'UID {index}: {reason}'
        self.state = replace(
            self.state,
            failure_messages=self.state.failure_messages + (message,),
        )
        try:
            await self._transport.send_message(
                self._chat_id, message, reply_to=self._reply_to,
            )
        except Exception:
            logger.warning('Failure notice for unit %d not sent', index, exc_info=True)

    async def unit_completed(self, completed: int, total: int) -> None:
        completed = min(max(completed, self.state.completed_units), self.state.total_units)
        self.state = transition(self.state, 'in_progress', completed_units=completed)
        if self.state.total_units > 1:
            await self._edit(in_progress_text(self.state))

    async def finalizing(self) -> None:
        """Summarize the batch; the archive is about to be sent."""
        self.state = transition(self.state, 'finalizing')
        await self._edit(finalizing_text(self.state, self._name))

    async def delivered(self) -> asyncio.Task:
        """Stop editing and schedule the status message for removal."""
        self.state = transition(self.state, 'delivered')
        return self.schedule_retirement()

    def schedule_retirement(self, delay: float | None = None) -> asyncio.Task:
        """Remove the status message after *delay* seconds (idempotent)."""
        if self._retire_task is None:
            wait = self._retire_delay if delay is None else delay
            self._retire_task = asyncio.create_task(self._retire_later(wait))
        return self._retire_task

    async def retire(self) -> None:
        """Delete the status message now."""
        if self.state.phase == 'retired':
            return
        self.state = transition(self.state, 'retired')
        if self._handle is None:
            return
        try:
            await self._transport.delete_message(self._handle)
        except Exception:
            logger.warning('Status message could not be removed', exc_info=True)

    async def retire_now(self) -> None:
        """Skip any remaining retirement delay and delete the message."""
        task = self._retire_task
        if task is not None and not task.done():
            if self.state.phase == 'retired':
                # Delete already in flight.
                await asyncio.gather(task, return_exceptions=True)
                return
            task.cancel()
        await self.retire()

    async def _retire_later(self, delay: float) -> None:
        if delay > 0:
            await asyncio.sleep(delay)
        await self.retire()

    async def _edit(self, text: str) -> None:
        if self._handle is None:
            return
        try:
            await self._transport.edit_message(self._handle, text)
        except Exception:
            logger.warning('Status message edit failed', exc_info=True)
