"""
Tests for EventHandler (create_event, get_events, update_event, delete_event).

Uses the real SQLite-backed store and the unstarted notification
scheduler; mutation withholding is checked with a spy around the store.
"""

import pytest
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

from aura.ai.intent.schemas import StructuredIntent
from aura.schemas.records import EntityKind, EventCreate
from aura.services.intent_handlers import EventHandler
from aura.services.intent_result import ResolutionOutcome
from aura.services.notifications import event_identifier
from aura.services.store.base import StoreResult

UTC = timezone.utc


@pytest.fixture
def handler():
    return EventHandler()


@pytest.fixture
def make_intent(intent_json):
    def _make(intent: str, **entities) -> StructuredIntent:
        return StructuredIntent.model_validate(intent_json(intent, **entities))
    return _make


@pytest.fixture
def seed_event(store):
    async def _seed(title: str, start: datetime, minutes: int = 60, **extra):
        result = await store.insert(
            EntityKind.EVENT,
            EventCreate(title=title, start_time=start, end_time=start + timedelta(minutes=minutes), **extra),
        )
        assert result.success
        return result.data
    return _seed


# ---------------------------------------------------------------------------
# CREATE
# ---------------------------------------------------------------------------

class TestCreateEvent:
    @pytest.mark.asyncio
    async def test_meeting_next_monday_at_ten(self, handler, make_intent, make_context, store, scheduler):
        intent = make_intent(
            "create_event",
            title="Meeting with John",
            date="2025-07-14",
            time="10:00",
            relativeTime="next Monday",
        )

        result = await handler.handle(intent, make_context())

        assert result.success is True
        assert result.outcome == ResolutionOutcome.CREATED
        assert result.message == (
            '✅ Event "Meeting with John" has been created successfully '
            "on Monday, July 14, 2025 at 10:00 AM"
        )

        events = (await store.query_by_filter(EntityKind.EVENT)).data
        assert len(events) == 1
        assert events[0].start_time == datetime(2025, 7, 14, 10, 0, tzinfo=UTC)
        assert events[0].end_time == datetime(2025, 7, 14, 11, 0, tzinfo=UTC)

        pending = scheduler.pending[event_identifier(events[0].id)]
        assert pending.trigger_at == datetime(2025, 7, 14, 9, 45, tzinfo=UTC)
        assert pending.display_title == "Upcoming Event: Meeting with John"
        assert pending.payload.body == 'Your event "Meeting with John" starts in 15 minutes'
        assert result.data["notification"] == event_identifier(events[0].id)

    @pytest.mark.asyncio
    async def test_explicit_lead_time(self, handler, make_intent, make_context, scheduler):
        intent = make_intent("create_event", title="Flight", date="2025-07-20", time="08:00", reminderMinutes=120)

        result = await handler.handle(intent, make_context())

        event_id = result.data["event"]["id"]
        assert scheduler.pending[event_identifier(event_id)].trigger_at == datetime(2025, 7, 20, 6, 0, tzinfo=UTC)

    @pytest.mark.asyncio
    async def test_vacation_this_week_is_all_day_without_notification(
        self, handler, make_intent, make_context, store, scheduler
    ):
        wednesday = datetime(2025, 7, 9, 11, 0, tzinfo=UTC)
        intent = make_intent("create_event", title="Vacation", multiDay=True, dateRange="this_week")

        result = await handler.handle(intent, make_context(now=wednesday))

        assert result.outcome == ResolutionOutcome.CREATED
        event = (await store.query_by_filter(EntityKind.EVENT)).data[0]
        assert event.all_day is True
        assert event.start_time == datetime(2025, 7, 7, 0, 0, tzinfo=UTC)
        assert event.end_time == datetime(2025, 7, 13, 23, 59, 59, 999000, tzinfo=UTC)
        assert scheduler.pending == {}
        assert "from Monday, July 7, 2025 to Sunday, July 13, 2025" in result.message

    @pytest.mark.asyncio
    async def test_multi_day_with_explicit_reminder_is_scheduled(
        self, handler, make_intent, make_context, scheduler
    ):
        intent = make_intent(
            "create_event", title="Project sprint", multiDay=True, dateRange="next_week", reminderMinutes=1440
        )

        result = await handler.handle(intent, make_context())

        event_id = result.data["event"]["id"]
        assert scheduler.pending[event_identifier(event_id)].trigger_at == datetime(2025, 7, 13, 0, 0, tzinfo=UTC)

    @pytest.mark.asyncio
    async def test_zero_lead_time_schedules_nothing(self, handler, make_intent, make_context, scheduler):
        intent = make_intent("create_event", title="Call", date="2025-07-20", time="08:00", reminderMinutes=0)

        await handler.handle(intent, make_context())

        assert scheduler.pending == {}

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "entities,missing",
        [
            ({"title": "Dinner"}, "date"),
            ({"date": "2025-07-20"}, "title"),
            ({}, "title and date"),
        ],
    )
    async def test_missing_fields_never_touch_the_store(
        self, handler, make_intent, make_context, store, entities, missing
    ):
        spy = MagicMock(wraps=store)

        result = await handler.handle(make_intent("create_event", **entities), make_context(store=spy))

        assert result.success is False
        assert result.outcome == ResolutionOutcome.MISSING_FIELDS
        assert missing in result.message
        assert result.message.startswith("❌")
        spy.insert.assert_not_called()

    @pytest.mark.asyncio
    async def test_store_failure_message_carries_the_error(self, handler, make_intent, make_context):
        failing_store = MagicMock()
        failing_store.insert = AsyncMock(return_value=StoreResult.fail("connection refused"))

        result = await handler.handle(
            make_intent("create_event", title="Dinner", date="2025-07-20"),
            make_context(store=failing_store),
        )

        assert result.success is False
        assert result.outcome == ResolutionOutcome.FAILED
        assert result.message == "❌ Failed to create event: connection refused"

    @pytest.mark.asyncio
    async def test_notification_failure_does_not_undo_the_event(self, handler, make_intent, make_context, store):
        notifications = MagicMock()
        notifications.schedule_event_reminder = AsyncMock(side_effect=RuntimeError("scheduler down"))

        result = await handler.handle(
            make_intent("create_event", title="Dinner", date="2025-07-20", time="19:00"),
            make_context(notifications=notifications),
        )

        assert result.success is True
        assert result.outcome == ResolutionOutcome.CREATED
        assert result.data["notification"] is None
        assert len((await store.query_by_filter(EntityKind.EVENT)).data) == 1


# ---------------------------------------------------------------------------
# LIST
# ---------------------------------------------------------------------------

class TestGetEvents:
    @pytest.mark.asyncio
    async def test_lists_events_of_the_requested_day(self, handler, make_intent, make_context, seed_event):
        await seed_event("Standup", datetime(2025, 7, 14, 9, 0, tzinfo=UTC), location="Room A")
        await seed_event("Lunch", datetime(2025, 7, 14, 12, 30, tzinfo=UTC))
        await seed_event("Other day", datetime(2025, 7, 15, 9, 0, tzinfo=UTC))

        result = await handler.handle(make_intent("get_events", date="2025-07-14"), make_context())

        assert result.outcome == ResolutionOutcome.LISTED
        assert result.message.startswith("✅ Found 2 events on Monday, July 14, 2025:")
        assert "1. Standup - Monday, July 14, 2025 at 9:00 AM @ Room A" in result.message
        assert "2. Lunch - Monday, July 14, 2025 at 12:30 PM" in result.message
        assert "Other day" not in result.message

    @pytest.mark.asyncio
    async def test_limit_caps_the_list(self, handler, make_intent, make_context, seed_event):
        for hour in (8, 10, 12):
            await seed_event(f"Block {hour}", datetime(2025, 7, 14, hour, 0, tzinfo=UTC))

        result = await handler.handle(make_intent("get_events", limit="2"), make_context())

        assert len(result.data["events"]) == 2
        assert "Block 12" not in result.message

    @pytest.mark.asyncio
    async def test_none_found(self, handler, make_intent, make_context):
        result = await handler.handle(make_intent("get_events", relativeTime="tomorrow"), make_context())

        assert result.success is True
        assert result.message == "✅ No events found on Tuesday, July 8, 2025."
        assert result.data == {"events": []}


# ---------------------------------------------------------------------------
# UPDATE
# ---------------------------------------------------------------------------

class TestUpdateEvent:
    @pytest.mark.asyncio
    async def test_time_only_change_keeps_date_and_duration(
        self, handler, make_intent, make_context, seed_event, store, scheduler
    ):
        event = await seed_event("Dentist", datetime(2025, 7, 10, 15, 0, tzinfo=UTC), minutes=45)

        result = await handler.handle(
            make_intent("update_event", searchQuery="dentist", time="09:00"), make_context()
        )

        assert result.outcome == ResolutionOutcome.UPDATED
        assert result.message.startswith('✅ Event "Dentist" has been updated successfully')
        updated = (await store.get_by_id(EntityKind.EVENT, event.id)).data
        assert updated.start_time == datetime(2025, 7, 10, 9, 0, tzinfo=UTC)
        assert updated.end_time == datetime(2025, 7, 10, 9, 45, tzinfo=UTC)
        assert scheduler.pending[event_identifier(event.id)].trigger_at == datetime(2025, 7, 10, 8, 45, tzinfo=UTC)

    @pytest.mark.asyncio
    async def test_date_only_change_keeps_time_of_day(self, handler, make_intent, make_context, seed_event, store):
        event = await seed_event("Dentist", datetime(2025, 7, 10, 15, 0, tzinfo=UTC))

        await handler.handle(make_intent("update_event", searchQuery="dentist", date="2025-07-12"), make_context())

        updated = (await store.get_by_id(EntityKind.EVENT, event.id)).data
        assert updated.start_time == datetime(2025, 7, 12, 15, 0, tzinfo=UTC)

    @pytest.mark.asyncio
    async def test_rename_only_when_search_query_is_the_key(
        self, handler, make_intent, make_context, seed_event, store
    ):
        event = await seed_event("Dentist", datetime(2025, 7, 10, 15, 0, tzinfo=UTC))

        await handler.handle(
            make_intent("update_event", searchQuery="dentist", title="Dentist checkup"), make_context()
        )
        assert (await store.get_by_id(EntityKind.EVENT, event.id)).data.title == "Dentist checkup"

        await handler.handle(
            make_intent("update_event", title="Dentist checkup", location="Main St"), make_context()
        )
        updated = (await store.get_by_id(EntityKind.EVENT, event.id)).data
        assert updated.title == "Dentist checkup"
        assert updated.location == "Main St"

    @pytest.mark.asyncio
    async def test_without_key_falls_back_to_todays_events(
        self, handler, make_intent, make_context, seed_event, store
    ):
        today = await seed_event("Gym", datetime(2025, 7, 7, 14, 0, tzinfo=UTC))
        await seed_event("Gym tomorrow", datetime(2025, 7, 8, 14, 0, tzinfo=UTC))

        result = await handler.handle(make_intent("update_event", time="18:00"), make_context())

        assert result.outcome == ResolutionOutcome.UPDATED
        assert (await store.get_by_id(EntityKind.EVENT, today.id)).data.start_time == datetime(
            2025, 7, 7, 18, 0, tzinfo=UTC
        )

    @pytest.mark.asyncio
    async def test_nothing_to_change(self, handler, make_intent, make_context, seed_event, store):
        await seed_event("Dentist", datetime(2025, 7, 10, 15, 0, tzinfo=UTC))
        spy = MagicMock(wraps=store)

        result = await handler.handle(make_intent("update_event", searchQuery="dentist"), make_context(store=spy))

        assert result.outcome == ResolutionOutcome.MISSING_FIELDS
        spy.update_by_id.assert_not_called()

    @pytest.mark.asyncio
    async def test_ambiguous_update_is_withheld(self, handler, make_intent, make_context, seed_event, store):
        await seed_event("Team lunch", datetime(2025, 7, 10, 12, 0, tzinfo=UTC))
        await seed_event("Lunch with Ana", datetime(2025, 7, 11, 12, 0, tzinfo=UTC))
        spy = MagicMock(wraps=store)

        result = await handler.handle(
            make_intent("update_event", searchQuery="lunch", time="13:00"), make_context(store=spy)
        )

        assert result.outcome == ResolutionOutcome.CLARIFICATION
        assert result.message.startswith('🔍 I found 2 events matching "lunch":')
        assert "1. Team lunch" in result.message
        assert "2. Lunch with Ana" in result.message
        spy.update_by_id.assert_not_called()

    @pytest.mark.asyncio
    async def test_no_match_changes_nothing(self, handler, make_intent, make_context, seed_event, store):
        event = await seed_event("Dentist", datetime(2025, 7, 10, 15, 0, tzinfo=UTC))
        spy = MagicMock(wraps=store)

        result = await handler.handle(
            make_intent("update_event", searchQuery="yoga", time="09:00"), make_context(store=spy)
        )

        assert result.success is False
        assert result.outcome == ResolutionOutcome.NOT_FOUND
        assert result.message == '❌ No matching event found for "yoga".'
        spy.update_by_id.assert_not_called()
        unchanged = (await store.get_by_id(EntityKind.EVENT, event.id)).data
        assert unchanged.start_time == datetime(2025, 7, 10, 15, 0, tzinfo=UTC)

    @pytest.mark.asyncio
    async def test_reschedule_keeps_the_lead_given_at_creation(
        self, handler, make_intent, make_context, store, scheduler
    ):
        created = await handler.handle(
            make_intent("create_event", title="Flight", date="2025-07-20", time="08:00", reminderMinutes=30),
            make_context(),
        )
        event_id = created.data["event"]["id"]
        assert created.data["event"]["reminder_minutes"] == 30

        await handler.handle(make_intent("update_event", searchQuery="flight", time="10:00"), make_context())

        assert scheduler.pending[event_identifier(event_id)].trigger_at == datetime(2025, 7, 20, 9, 30, tzinfo=UTC)

    @pytest.mark.asyncio
    async def test_new_lead_alone_reschedules(self, handler, make_intent, make_context, seed_event, store, scheduler):
        event = await seed_event("Dentist", datetime(2025, 7, 10, 15, 0, tzinfo=UTC))

        result = await handler.handle(
            make_intent("update_event", searchQuery="dentist", reminderMinutes=60), make_context()
        )

        assert result.outcome == ResolutionOutcome.UPDATED
        assert (await store.get_by_id(EntityKind.EVENT, event.id)).data.reminder_minutes == 60
        assert scheduler.pending[event_identifier(event.id)].trigger_at == datetime(2025, 7, 10, 14, 0, tzinfo=UTC)


# ---------------------------------------------------------------------------
# DELETE
# ---------------------------------------------------------------------------

class TestDeleteEvent:
    @pytest.mark.asyncio
    async def test_cancel_my_lunch_meeting_with_two_candidates(
        self, handler, make_intent, make_context, seed_event, store
    ):
        await seed_event("Lunch with Sarah", datetime(2025, 7, 10, 12, 0, tzinfo=UTC))
        await seed_event("Team lunch", datetime(2025, 7, 11, 12, 0, tzinfo=UTC))
        spy = MagicMock(wraps=store)

        result = await handler.handle(make_intent("delete_event", searchQuery="lunch"), make_context(store=spy))

        assert result.success is True
        assert result.outcome == ResolutionOutcome.CLARIFICATION
        assert "Lunch with Sarah" in result.message
        assert "Team lunch" in result.message
        assert len(result.data["candidates"]) == 2
        spy.delete_by_id.assert_not_called()
        assert len((await store.query_by_filter(EntityKind.EVENT)).data) == 2

    @pytest.mark.asyncio
    async def test_no_candidates(self, handler, make_intent, make_context, seed_event, store):
        await seed_event("Dentist", datetime(2025, 7, 10, 15, 0, tzinfo=UTC))
        spy = MagicMock(wraps=store)

        result = await handler.handle(make_intent("delete_event", searchQuery="yoga"), make_context(store=spy))

        assert result.success is False
        assert result.outcome == ResolutionOutcome.NOT_FOUND
        assert result.message == '❌ No matching event found for "yoga".'
        spy.delete_by_id.assert_not_called()

    @pytest.mark.asyncio
    async def test_without_key_asks_which_event(self, handler, make_intent, make_context, store):
        spy = MagicMock(wraps=store)

        result = await handler.handle(make_intent("delete_event"), make_context(store=spy))

        assert result.outcome == ResolutionOutcome.MISSING_FIELDS
        spy.query_by_keyword.assert_not_called()
        spy.delete_by_id.assert_not_called()

    @pytest.mark.asyncio
    async def test_single_match_is_deleted_and_notification_cancelled(
        self, handler, make_intent, make_context, store, scheduler
    ):
        created = await handler.handle(
            make_intent("create_event", title="Dentist", date="2025-07-10", time="15:00"), make_context()
        )
        event_id = created.data["event"]["id"]
        assert event_identifier(event_id) in scheduler.pending

        result = await handler.handle(make_intent("delete_event", title="dentist"), make_context())

        assert result.outcome == ResolutionOutcome.DELETED
        assert result.message == '✅ Event "Dentist" has been deleted successfully'
        assert (await store.query_by_filter(EntityKind.EVENT)).data == []
        assert scheduler.pending == {}
