"""
Tests for LocalNotificationScheduler.

The APScheduler instance is never started; ``pending`` and ``deliver``
stand in for the clock.
"""

import pytest
from datetime import datetime, timedelta, timezone

from aura.services.notifications import (
    LocalNotificationScheduler,
    NotificationType,
    event_identifier,
    reminder_identifier,
)

UTC = timezone.utc


@pytest.fixture
def delivered(scheduler):
    payloads = []
    scheduler.add_listener(payloads.append)
    return payloads


@pytest.mark.asyncio
async def test_event_reminder_fires_lead_minutes_before_start(scheduler, reference_now):
    start = reference_now + timedelta(days=1)

    result = await scheduler.schedule_event_reminder("e-1", "Standup", start, 15)

    assert result.success is True
    assert result.skipped is False
    assert result.identifier == "event_e-1"
    assert scheduler.pending["event_e-1"].trigger_at == start - timedelta(minutes=15)
    assert scheduler.scheduler.get_job("event_e-1") is not None


@pytest.mark.asyncio
async def test_past_trigger_is_a_silent_no_op(scheduler, reference_now):
    result = await scheduler.schedule_reminder_at("r-1", "Too late", "", reference_now - timedelta(minutes=1))

    assert result.success is True
    assert result.skipped is True
    assert scheduler.pending == {}


@pytest.mark.asyncio
async def test_trigger_at_exactly_now_is_not_scheduled(scheduler, reference_now):
    result = await scheduler.schedule_event_reminder("e-1", "Now", reference_now + timedelta(minutes=15), 15)

    assert result.skipped is True
    assert scheduler.pending == {}


@pytest.mark.asyncio
async def test_scheduling_again_replaces_the_trigger(scheduler, reference_now):
    await scheduler.schedule_reminder_at("r-1", "Call mom", "", reference_now + timedelta(hours=1))
    await scheduler.schedule_reminder_at("r-1", "Call mom", "", reference_now + timedelta(hours=3))

    assert list(scheduler.pending) == [reminder_identifier("r-1")]
    assert scheduler.pending["reminder_r-1"].trigger_at == reference_now + timedelta(hours=3)
    assert len(scheduler.scheduler.get_jobs()) == 1


@pytest.mark.asyncio
async def test_moving_a_trigger_into_the_past_drops_the_old_one(scheduler, reference_now):
    await scheduler.schedule_reminder_at("r-1", "Call mom", "", reference_now + timedelta(hours=3))

    result = await scheduler.schedule_reminder_at("r-1", "Call mom", "", reference_now - timedelta(hours=1))

    assert result.skipped is True
    assert scheduler.pending == {}
    assert scheduler.scheduler.get_jobs() == []
    assert scheduler.deliver("reminder_r-1") is None


@pytest.mark.asyncio
async def test_disabling_drops_the_existing_trigger(scheduler, reference_now):
    await scheduler.schedule_event_reminder("e-1", "Standup", reference_now + timedelta(days=1), 15)
    scheduler.enabled = False

    result = await scheduler.schedule_event_reminder("e-1", "Standup", reference_now + timedelta(days=2), 15)

    assert result.skipped is True
    assert scheduler.pending == {}


@pytest.mark.asyncio
async def test_cancel_removes_trigger_and_tolerates_unknown_ids(scheduler, reference_now):
    await scheduler.schedule_event_reminder("e-1", "Standup", reference_now + timedelta(days=1), 15)

    cancelled = await scheduler.cancel(event_identifier("e-1"))
    unknown = await scheduler.cancel("event_missing")

    assert cancelled.success is True and cancelled.skipped is False
    assert unknown.success is True and unknown.skipped is True
    assert scheduler.pending == {}
    assert scheduler.scheduler.get_jobs() == []


@pytest.mark.asyncio
async def test_deliver_hands_payload_to_listeners_once(scheduler, reference_now, delivered):
    await scheduler.schedule_reminder_at("r-1", "Call mom", "Call mom about Sunday", reference_now + timedelta(hours=1))

    payload = scheduler.deliver("reminder_r-1")

    assert payload.type == NotificationType.REMINDER
    assert payload.to_dict() == {
        "type": "reminder",
        "title": "Call mom",
        "body": "Call mom about Sunday",
        "reminderId": "r-1",
    }
    assert delivered == [payload]
    assert scheduler.deliver("reminder_r-1") is None
    assert delivered == [payload]


@pytest.mark.asyncio
async def test_failing_listener_does_not_block_others(scheduler, reference_now, delivered):
    def broken(payload):
        raise RuntimeError("push service down")

    scheduler.add_listener(broken)
    scheduler.add_listener(delivered.append)

    payload = scheduler.send_assistant_message("Aura", "Your day is clear")

    assert payload.type == NotificationType.ASSISTANT_MESSAGE
    assert delivered == [payload, payload]


@pytest.mark.asyncio
async def test_disabled_scheduler_skips_everything(reference_now):
    scheduler = LocalNotificationScheduler(clock=lambda: reference_now, enabled=False)

    result = await scheduler.schedule_event_reminder("e-1", "Standup", reference_now + timedelta(days=1), 15)

    assert result.success is True
    assert result.skipped is True
    assert scheduler.pending == {}


@pytest.mark.asyncio
async def test_naive_start_times_are_treated_as_utc(scheduler):
    result = await scheduler.schedule_event_reminder("e-1", "Standup", datetime(2025, 7, 8, 10, 0), 30)

    assert result.trigger_at == datetime(2025, 7, 8, 9, 30, tzinfo=UTC)
