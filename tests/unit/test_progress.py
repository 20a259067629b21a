"""Status message lifecycle tests."""

from __future__ import annotations

import asyncio

import pytest

from uid_bot.inmemory import InMemoryChatTransport
from uid_bot.provisioning.progress import (
    ALLOWED_TRANSITIONS,
    PROGRESS_SEQUENCE,
    InvalidProgressTransition,
    ProgressReporter,
    ProgressState,
    transition,
)


def _reporter(transport, total=3, name=None, delay=0.0) -> ProgressReporter:
    return ProgressReporter(
        transport,
        chat_id=42,
        total_units=total,
        name=name,
        reply_to=7,
        retire_delay_seconds=delay,
    )


# ── State machine ────────────────────────────────────────────────


class TestTransitions:
    def test_every_phase_has_an_entry(self):
        assert set(ALLOWED_TRANSITIONS) == set(PROGRESS_SEQUENCE)

    def test_never_backwards(self):
        for i, phase in enumerate(PROGRESS_SEQUENCE):
            earlier = set(PROGRESS_SEQUENCE[:i])
            assert not (ALLOWED_TRANSITIONS[phase] & earlier)

    def test_retired_reachable_from_every_live_phase(self):
        for phase in PROGRESS_SEQUENCE[:-1]:
            assert 'retired' in ALLOWED_TRANSITIONS[phase]

    def test_retired_is_terminal(self):
        with pytest.raises(InvalidProgressTransition):
            transition(ProgressState(total_units=1, phase='retired'), 'in_progress')

    def test_delivered_cannot_go_back_to_progress(self):
        with pytest.raises(InvalidProgressTransition) as exc_info:
            transition(ProgressState(total_units=1, phase='delivered'), 'in_progress')
        assert exc_info.value.from_phase == 'delivered'
        assert exc_info.value.to_phase == 'in_progress'


# ── Reporter ─────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_start_sends_one_status_message(transport):
    reporter = _reporter(transport, total=4, name='bobxxxxxxx')

    await reporter.start()
    await reporter.start()

    assert transport.texts() == ['Generating 4 UID(s) with name bobxxxxxxx...']
    assert transport.messages[0].reply_to == 7
    assert reporter.handle is not None


@pytest.mark.asyncio
async def test_progress_edits_are_monotonic(transport):
    reporter = _reporter(transport, total=3)
    await reporter.start()

    await reporter.unit_completed(1, 3)
    await reporter.unit_completed(2, 3)
    await reporter.unit_completed(1, 3)
    await reporter.unit_completed(9, 3)

    edits = transport.messages[0].edits
    assert edits[0] == 'Generating UIDs... 1/3 done'
    assert edits[1] == 'Generating UIDs... 2/3 done'
    assert edits[2] == 'Generating UIDs... 2/3 done'
    assert edits[3] == 'Generating UIDs... 3/3 done'


@pytest.mark.asyncio
async def test_single_unit_batch_skips_progress_edits(transport):
    reporter = _reporter(transport, total=1)
    await reporter.start()

    await reporter.unit_completed(1, 1)

    assert transport.messages[0].edits == []
    assert reporter.phase == 'in_progress'


@pytest.mark.asyncio
async def test_failures_are_sent_and_summarized(transport):
    reporter = _reporter(transport, total=3)
    await reporter.start()

    await reporter.unit_completed(1, 3)
    await reporter.unit_failed(2, 'API call failed.')
    await reporter.unit_completed(2, 3)
    await reporter.unit_completed(3, 3)
    await reporter.finalizing()

    assert transport.texts()[1] == 'UID 2: API call failed.'
    status = transport.messages[0]
    assert 'UID 2: API call failed.' in status.edits[1]
    assert status.current_text == 'Generated 2/3 UID(s). Sending accounts zip file...'
    assert reporter.state.failed_units == 1


@pytest.mark.asyncio
async def test_finalizing_names_the_batch(transport):
    reporter = _reporter(transport, total=2, name='alicexxxxx')
    await reporter.start()
    await reporter.unit_completed(1, 2)
    await reporter.unit_completed(2, 2)

    await reporter.finalizing()

    assert transport.messages[0].current_text == (
        'Generated 2/2 UID(s) with name alicexxxxx. Sending accounts zip file...'
    )


@pytest.mark.asyncio
async def test_delivered_retires_after_delay(transport):
    reporter = _reporter(transport, total=1, delay=0.0)
    await reporter.start()
    await reporter.unit_completed(1, 1)
    await reporter.finalizing()

    task = await reporter.delivered()
    await task

    assert transport.messages[0].deleted is True
    assert reporter.phase == 'retired'


@pytest.mark.asyncio
async def test_schedule_retirement_is_idempotent(transport):
    reporter = _reporter(transport, total=1, delay=0.0)
    await reporter.start()

    first = reporter.schedule_retirement()
    second = reporter.schedule_retirement()
    await first

    assert first is second
    assert [c for c in transport.calls if c[0] == 'delete_message'] == [('delete_message', 1)]


@pytest.mark.asyncio
async def test_retirement_waits_for_delay(transport):
    reporter = _reporter(transport, total=1, delay=30.0)
    await reporter.start()

    task = reporter.schedule_retirement()
    await asyncio.sleep(0)

    assert transport.messages[0].deleted is False
    task.cancel()


@pytest.mark.asyncio
async def test_transport_failures_are_swallowed():
    transport = InMemoryChatTransport(send_fails=True, edit_fails=True, delete_fails=True)
    reporter = _reporter(transport, total=2)

    await reporter.start()
    await reporter.unit_failed(1, 'API call failed.')
    await reporter.unit_completed(1, 2)
    await reporter.unit_completed(2, 2)
    await reporter.finalizing()
    await reporter.retire()

    assert reporter.handle is None
    assert reporter.phase == 'retired'


@pytest.mark.asyncio
async def test_edit_failures_do_not_stop_progress():
    transport = InMemoryChatTransport(edit_fails=True)
    reporter = _reporter(transport, total=2)
    await reporter.start()

    await reporter.unit_completed(1, 2)
    await reporter.unit_completed(2, 2)
    await reporter.finalizing()

    assert reporter.state.completed_units == 2
    assert reporter.phase == 'finalizing'


@pytest.mark.asyncio
async def test_retire_now_skips_the_delay(transport):
    reporter = _reporter(transport, total=1, delay=60.0)
    await reporter.start()
    task = reporter.schedule_retirement()

    await reporter.retire_now()

    assert transport.messages[0].deleted is True
    assert reporter.phase == 'retired'
    await asyncio.sleep(0)
    assert task.cancelled()


@pytest.mark.asyncio
async def test_retire_now_waits_for_an_inflight_delete(transport):
    reporter = _reporter(transport, total=1, delay=0.0)
    await reporter.start()
    reporter.schedule_retirement()
    await asyncio.sleep(0)

    await reporter.retire_now()

    assert [c for c in transport.calls if c[0] == 'delete_message'] == [('delete_message', 1)]
