"""
Event Handler - Resolves calendar event intents.

This handler is responsible for:
- create_event: resolve timing, insert, schedule the lead-time notification
- get_events: list events for a day, a multi-day range, or upcoming
- update_event / delete_event: two-phase locate-then-mutate

Two-phase resolution:
=====================
1. Locate candidates by keyword (searchQuery, else title). update_event
   without any key falls back to today's events.
2. Branch on the candidate count:
     0  -> not found, nothing written
     >1 -> clarification listing every candidate, nothing written
     1  -> apply the patch / delete

Design Pattern: Strategy Pattern - implements IntentHandler ABC
"""

import logging
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from aura.ai.intent.schemas import IntentEntities, IntentType, StructuredIntent
from aura.core.clock import to_local
from aura.schemas.records import EntityKind, EventCreate, EventPatch, EventRecord, RecordFilter
from aura.services import date_resolver
from aura.services.intent_handlers import formatting
from aura.services.intent_handlers.base import HandlerContext, IntentHandler
from aura.services.intent_result import IntentResult, ResolutionOutcome
from aura.services.notifications import event_identifier, event_lead_minutes
from aura.services.store.base import describe_failure, record_to_dict

logger = logging.getLogger("aura.services.intent_handlers.event")


def requested_lead(entities: IntentEntities) -> Optional[int]:
    """The reminderMinutes entity, if it is a usable lead time."""
    lead = entities.value("reminder_minutes")
    return lead if lead is not None and lead >= 0 else None


class EventHandler(IntentHandler):
    """Handler for calendar event intents."""

    @property
    def handler_name(self) -> str:
        return "event"

    @property
    def supported_intent_types(self) -> List[str]:
        return [
            IntentType.CREATE_EVENT.value,
            IntentType.GET_EVENTS.value,
            IntentType.UPDATE_EVENT.value,
            IntentType.DELETE_EVENT.value,
        ]

    async def handle(self, intent: StructuredIntent, context: HandlerContext) -> IntentResult:
        self._log_entry(intent, context)

        if intent.intent == IntentType.CREATE_EVENT:
            return await self._handle_create(intent, context)
        if intent.intent == IntentType.GET_EVENTS:
            return await self._handle_list(intent, context)
        if intent.intent == IntentType.UPDATE_EVENT:
            return await self._handle_update(intent, context)
        return await self._handle_delete(intent, context)

    # -----------------------------------------------------------------------
    # CREATE
    # -----------------------------------------------------------------------

    async def _handle_create(self, intent: StructuredIntent, context: HandlerContext) -> IntentResult:
        entities = intent.entities
        title = entities.value("title")
        has_schedule = bool(
            entities.value("date") or entities.is_multi_day or entities.value("date_range")
        )

        missing = []
        if not title:
            missing.append("title")
        if not has_schedule:
            missing.append("date")
        if missing:
            return self._result(
                intent, context, ResolutionOutcome.MISSING_FIELDS,
                formatting.missing_fields("create an event", missing),
                success=False,
            )

        timing = date_resolver.resolve(entities, context.now)
        try:
            new_event = EventCreate(
                title=title,
                description=entities.value("description") or "",
                location=entities.value("location") or "",
                start_time=timing.start,
                end_time=timing.end,
                all_day=timing.all_day,
                reminder_minutes=requested_lead(entities),
            )
        except ValidationError as e:
            logger.warning(f"[{context.request_id}] Invalid event data: {e}")
            return self._result(
                intent, context, ResolutionOutcome.FAILED,
                formatting.failure(f"Failed to create event: {e.errors()[0]['msg']}"),
                success=False,
            )

        result = await context.store.insert(EntityKind.EVENT, new_event)
        if not result.success:
            logger.warning(f"[{context.request_id}] Event insert failed: {result.error_message}")
            return self._result(
                intent, context, ResolutionOutcome.FAILED,
                formatting.failure(describe_failure("create", EntityKind.EVENT, result)),
                success=False,
            )

        event: EventRecord = result.data
        notification = await self._schedule_for_new_event(context, event, timing.multi_day)

        return self._result(
            intent, context, ResolutionOutcome.CREATED,
            formatting.success(
                f'Event "{event.title}" has been created successfully '
                f"{formatting.describe_event_window(event)}"
            ),
            data={
                "event": record_to_dict(event),
                "notification": notification.identifier if notification and not notification.skipped else None,
            },
        )

    async def _schedule_for_new_event(
        self,
        context: HandlerContext,
        event: EventRecord,
        multi_day: bool,
    ):
        lead = event_lead_minutes(event.reminder_minutes, multi_day or event.all_day)
        if lead is None:
            return None

        return await self._notify(
            context,
            f"for event {event.id}",
            lambda gateway: gateway.schedule_event_reminder(event.id, event.title, event.start_time, lead),
        )

    # -----------------------------------------------------------------------
    # LIST
    # -----------------------------------------------------------------------

    async def _handle_list(self, intent: StructuredIntent, context: HandlerContext) -> IntentResult:
        entities = intent.entities
        window = date_resolver.resolve_window(entities, context.now)
        limit = entities.value("limit")

        record_filter = RecordFilter(
            start_date=window[0] if window else None,
            end_date=window[1] if window else None,
            limit=limit if limit and limit > 0 else None,
        )

        result = await context.store.query_by_filter(EntityKind.EVENT, record_filter)
        if not result.success:
            return self._result(
                intent, context, ResolutionOutcome.FAILED,
                formatting.failure(describe_failure("fetch", EntityKind.EVENT, result)),
                success=False,
            )

        events = result.data or []
        scope = self._describe_window(window)
        if not events:
            return self._result(
                intent, context, ResolutionOutcome.LISTED,
                formatting.success(f"No events found{scope}."),
                data={"events": []},
            )

        noun = "event" if len(events) == 1 else "events"
        return self._result(
            intent, context, ResolutionOutcome.LISTED,
            formatting.success(f"Found {len(events)} {noun}{scope}:\n{formatting.event_list(events)}"),
            data={"events": [record_to_dict(event) for event in events]},
        )

    @staticmethod
    def _describe_window(window) -> str:
        if not window:
            return ""
        first, last = formatting.format_date(window[0]), formatting.format_date(window[1])
        if first == last:
            return f" on {first}"
        return f" from {first} to {last}"

    # -----------------------------------------------------------------------
    # LOCATE (shared by update/delete)
    # -----------------------------------------------------------------------

    async def _locate(
        self,
        intent: StructuredIntent,
        context: HandlerContext,
        key: Optional[str],
    ):
        """
        Search candidates; returns (candidates, early_result).

        early_result is set when the search failed or did not yield exactly
        one candidate. In that case no mutation may happen.
        """
        if key:
            result = await context.store.query_by_keyword(EntityKind.EVENT, key)
        else:
            start, end = date_resolver.day_bounds(context.now.date(), context.now)
            result = await context.store.query_by_keyword(
                EntityKind.EVENT, "", RecordFilter(start_date=start, end_date=end)
            )

        if not result.success:
            return None, self._result(
                intent, context, ResolutionOutcome.FAILED,
                formatting.failure(describe_failure("search", EntityKind.EVENT, result)),
                success=False,
            )

        candidates: List[EventRecord] = result.data or []
        logger.info(f"[{context.request_id}] Event search '{key or '<today>'}' -> {len(candidates)} candidate(s)")

        if not candidates:
            text = f'No matching event found for "{key}".' if key else "No events found for today."
            return None, self._result(
                intent, context, ResolutionOutcome.NOT_FOUND,
                formatting.failure(text),
                success=False,
            )

        if len(candidates) > 1:
            return None, self._result(
                intent, context, ResolutionOutcome.CLARIFICATION,
                formatting.clarification(
                    "event", key or "", formatting.event_list(candidates, detailed=False), len(candidates)
                ),
                data={"candidates": [record_to_dict(event) for event in candidates]},
            )

        return candidates[0], None

    # -----------------------------------------------------------------------
    # UPDATE
    # -----------------------------------------------------------------------

    async def _handle_update(self, intent: StructuredIntent, context: HandlerContext) -> IntentResult:
        entities = intent.entities
        search_query = entities.value("search_query")
        key = search_query or entities.value("title")

        event, early = await self._locate(intent, context, key)
        if early is not None:
            return early

        changes = self.build_patch(event, entities, context.now.date(), rename_allowed=bool(search_query))
        if changes.is_empty():
            return self._result(
                intent, context, ResolutionOutcome.MISSING_FIELDS,
                formatting.failure(
                    f'I found "{event.title}" but I\'m not sure what to change. '
                    "Tell me the new title, date, time, location or description."
                ),
                success=False,
            )

        result = await context.store.update_by_id(EntityKind.EVENT, event.id, changes)
        if not result.success:
            return self._result(
                intent, context, ResolutionOutcome.FAILED,
                formatting.failure(describe_failure("update", EntityKind.EVENT, result)),
                success=False,
            )

        updated: EventRecord = result.data
        message = f'Event "{updated.title}" has been updated successfully'
        if changes.start_time is not None:
            message += f" ({formatting.describe_event_window(updated)})"
        if changes.start_time is not None or changes.reminder_minutes is not None:
            await self._reschedule(context, updated)

        return self._result(
            intent, context, ResolutionOutcome.UPDATED,
            formatting.success(message),
            data={"event": record_to_dict(updated), "changes": changes.model_dump(mode="json", exclude_none=True)},
        )

    def build_patch(
        self,
        event: EventRecord,
        entities: IntentEntities,
        today: date,
        rename_allowed: bool = True,
    ) -> EventPatch:
        """
        Partial update from whichever entities are present.

        A time-only change keeps the event's date, a date-only change keeps
        its time-of-day, and the original duration is preserved unless
        durationMinutes is given.
        """
        values: Dict[str, Any] = {}

        new_title = entities.value("title")
        if rename_allowed and new_title:
            values["title"] = new_title
        for name in ("description", "location"):
            if entities.has(name) and getattr(entities, name) is not None:
                values[name] = getattr(entities, name).strip()

        new_date = date_resolver.requested_date(entities, today)
        new_time = date_resolver.parse_time(entities.value("time"))
        duration_minutes = entities.value("duration_minutes")

        if new_date is not None or new_time is not None or (duration_minutes and duration_minutes > 0):
            original_start = to_local(event.start_time)
            duration = event.end_time - event.start_time
            if duration_minutes and 0 < duration_minutes <= date_resolver.MAX_DURATION_MINUTES:
                duration = timedelta(minutes=duration_minutes)

            start = date_resolver.merge_date_time(original_start, new_date, new_time)
            values["start_time"] = start
            values["end_time"] = start + duration
            if new_time is not None:
                values["all_day"] = False

        lead = requested_lead(entities)
        if lead is not None:
            values["reminder_minutes"] = lead

        return EventPatch(**values)

    async def _reschedule(self, context: HandlerContext, event: EventRecord) -> None:
        """Move the notification to the event's current start, keeping its stored lead."""
        lead = event_lead_minutes(event.reminder_minutes, event.all_day)
        if lead is None:
            await self._notify(
                context, f"cancel for event {event.id}",
                lambda gateway: gateway.cancel(event_identifier(event.id)),
            )
            return

        await self._notify(
            context, f"reschedule for event {event.id}",
            lambda gateway: gateway.schedule_event_reminder(event.id, event.title, event.start_time, lead),
        )

    # -----------------------------------------------------------------------
    # DELETE
    # -----------------------------------------------------------------------

    async def _handle_delete(self, intent: StructuredIntent, context: HandlerContext) -> IntentResult:
        entities = intent.entities
        key = entities.value("search_query") or entities.value("title")
        if not key:
            return self._result(
                intent, context, ResolutionOutcome.MISSING_FIELDS,
                formatting.failure("Which event should I delete? Please tell me its name."),
                success=False,
            )

        event, early = await self._locate(intent, context, key)
        if early is not None:
            return early

        result = await context.store.delete_by_id(EntityKind.EVENT, event.id)
        if not result.success:
            return self._result(
                intent, context, ResolutionOutcome.FAILED,
                formatting.failure(describe_failure("delete", EntityKind.EVENT, result)),
                success=False,
            )

        await self._notify(
            context, f"cancel for event {event.id}",
            lambda gateway: gateway.cancel(event_identifier(event.id)),
        )
        return self._result(
            intent, context, ResolutionOutcome.DELETED,
            formatting.success(f'Event "{event.title}" has been deleted successfully'),
            data={"event": record_to_dict(event)},
        )
