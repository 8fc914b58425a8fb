"""
Reminder Handler - Resolves reminder intents.

Handles create_reminder / set_reminder (synonyms), get_reminders,
update_reminder and delete_reminder. The locate-then-mutate flow is the
same as for events (see event_handler.py), except that there is no
"today's reminders" fallback: without a search key the user is asked
which reminder they mean.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError

from aura.ai.intent.schemas import IntentEntities, IntentType, StructuredIntent
from aura.core.clock import to_local
from aura.schemas.records import EntityKind, RecordFilter, ReminderCreate, ReminderPatch, ReminderRecord
from aura.services import date_resolver
from aura.services.intent_handlers import formatting
from aura.services.intent_handlers.base import HandlerContext, IntentHandler
from aura.services.intent_result import IntentResult, ResolutionOutcome
from aura.services.notifications import reminder_identifier
from aura.services.store.base import describe_failure, record_to_dict

logger = logging.getLogger("aura.services.intent_handlers.reminder")


def search_key(entities: IntentEntities) -> Tuple[Optional[str], Optional[str]]:
    """(key, entity name it came from): searchQuery, else title, else reminderText."""
    for name in ("search_query", "title", "reminder_text"):
        key = entities.value(name)
        if key:
            return key, name
    return None, None


class ReminderHandler(IntentHandler):
    """Handler for reminder intents."""

    @property
    def handler_name(self) -> str:
        return "reminder"

    @property
    def supported_intent_types(self) -> List[str]:
        return [
            IntentType.CREATE_REMINDER.value,
            IntentType.SET_REMINDER.value,
            IntentType.GET_REMINDERS.value,
            IntentType.UPDATE_REMINDER.value,
            IntentType.DELETE_REMINDER.value,
        ]

    async def handle(self, intent: StructuredIntent, context: HandlerContext) -> IntentResult:
        self._log_entry(intent, context)

        if intent.intent in (IntentType.CREATE_REMINDER, IntentType.SET_REMINDER):
            return await self._handle_create(intent, context)
        if intent.intent == IntentType.GET_REMINDERS:
            return await self._handle_list(intent, context)
        if intent.intent == IntentType.UPDATE_REMINDER:
            return await self._handle_update(intent, context)
        return await self._handle_delete(intent, context)

    # -----------------------------------------------------------------------
    # CREATE
    # -----------------------------------------------------------------------

    async def _handle_create(self, intent: StructuredIntent, context: HandlerContext) -> IntentResult:
        entities = intent.entities
        title = entities.value("title")

        missing = []
        if not title:
            missing.append("title")
        if not (entities.value("date") or entities.value("relative_time")):
            missing.append("date")
        if missing:
            return self._result(
                intent, context, ResolutionOutcome.MISSING_FIELDS,
                formatting.missing_fields("set a reminder", missing),
                success=False,
            )

        text = entities.value("reminder_text") or entities.value("description") or title
        remind_at = date_resolver.resolve_start(entities, context.now)

        try:
            new_reminder = ReminderCreate(title=title, text=text, remind_at=remind_at)
        except ValidationError as e:
            logger.warning(f"[{context.request_id}] Invalid reminder data: {e}")
            return self._result(
                intent, context, ResolutionOutcome.FAILED,
                formatting.failure(f"Failed to create reminder: {e.errors()[0]['msg']}"),
                success=False,
            )

        result = await context.store.insert(EntityKind.REMINDER, new_reminder)
        if not result.success:
            logger.warning(f"[{context.request_id}] Reminder insert failed: {result.error_message}")
            return self._result(
                intent, context, ResolutionOutcome.FAILED,
                formatting.failure(describe_failure("create", EntityKind.REMINDER, result)),
                success=False,
            )

        reminder: ReminderRecord = result.data
        notification = await self._schedule(context, reminder)

        return self._result(
            intent, context, ResolutionOutcome.CREATED,
            formatting.success(
                f'Reminder "{reminder.title}" has been set for {formatting.format_when(reminder.remind_at)}'
            ),
            data={
                "reminder": record_to_dict(reminder),
                "notification": notification.identifier if notification and not notification.skipped else None,
            },
        )

    async def _schedule(self, context: HandlerContext, reminder: ReminderRecord):
        return await self._notify(
            context,
            f"for reminder {reminder.id}",
            lambda gateway: gateway.schedule_reminder_at(
                reminder.id, reminder.title, reminder.text, reminder.remind_at
            ),
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
            completed=False,
            limit=limit if limit and limit > 0 else None,
        )

        result = await context.store.query_by_filter(EntityKind.REMINDER, record_filter)
        if not result.success:
            return self._result(
                intent, context, ResolutionOutcome.FAILED,
                formatting.failure(describe_failure("fetch", EntityKind.REMINDER, result)),
                success=False,
            )

        reminders = result.data or []
        if not reminders:
            return self._result(
                intent, context, ResolutionOutcome.LISTED,
                formatting.success("No pending reminders found."),
                data={"reminders": []},
            )

        noun = "reminder" if len(reminders) == 1 else "reminders"
        return self._result(
            intent, context, ResolutionOutcome.LISTED,
            formatting.success(
                f"Found {len(reminders)} pending {noun}:\n{formatting.reminder_list(reminders)}"
            ),
            data={"reminders": [record_to_dict(reminder) for reminder in reminders]},
        )

    # -----------------------------------------------------------------------
    # LOCATE (shared by update/delete)
    # -----------------------------------------------------------------------

    async def _locate(self, intent: StructuredIntent, context: HandlerContext, key: str):
        result = await context.store.query_by_keyword(EntityKind.REMINDER, key)
        if not result.success:
            return None, self._result(
                intent, context, ResolutionOutcome.FAILED,
                formatting.failure(describe_failure("search", EntityKind.REMINDER, result)),
                success=False,
            )

        candidates: List[ReminderRecord] = result.data or []
        logger.info(f"[{context.request_id}] Reminder search '{key}' -> {len(candidates)} candidate(s)")

        if not candidates:
            return None, self._result(
                intent, context, ResolutionOutcome.NOT_FOUND,
                formatting.failure(f'No matching reminder found for "{key}".'),
                success=False,
            )

        if len(candidates) > 1:
            return None, self._result(
                intent, context, ResolutionOutcome.CLARIFICATION,
                formatting.clarification(
                    "reminder", key, formatting.reminder_list(candidates, detailed=False), len(candidates)
                ),
                data={"candidates": [record_to_dict(reminder) for reminder in candidates]},
            )

        return candidates[0], None

    # -----------------------------------------------------------------------
    # UPDATE
    # -----------------------------------------------------------------------

    async def _handle_update(self, intent: StructuredIntent, context: HandlerContext) -> IntentResult:
        entities = intent.entities
        key, key_source = search_key(entities)
        if not key:
            return self._result(
                intent, context, ResolutionOutcome.MISSING_FIELDS,
                formatting.failure("Which reminder should I change? Please tell me its name."),
                success=False,
            )

        reminder, early = await self._locate(intent, context, key)
        if early is not None:
            return early

        changes = self.build_patch(reminder, entities, context.now.date(), key_source)
        if changes.is_empty():
            return self._result(
                intent, context, ResolutionOutcome.MISSING_FIELDS,
                formatting.failure(
                    f'I found "{reminder.title}" but I\'m not sure what to change. '
                    "Tell me the new title, text, date or time."
                ),
                success=False,
            )

        result = await context.store.update_by_id(EntityKind.REMINDER, reminder.id, changes)
        if not result.success:
            return self._result(
                intent, context, ResolutionOutcome.FAILED,
                formatting.failure(describe_failure("update", EntityKind.REMINDER, result)),
                success=False,
            )

        updated: ReminderRecord = result.data
        message = f'Reminder "{updated.title}" has been updated successfully'
        if changes.remind_at is not None:
            message += f" ({formatting.format_when(updated.remind_at)})"
            if not updated.completed:
                await self._schedule(context, updated)

        return self._result(
            intent, context, ResolutionOutcome.UPDATED,
            formatting.success(message),
            data={"reminder": record_to_dict(updated), "changes": changes.model_dump(mode="json", exclude_none=True)},
        )

    def build_patch(
        self,
        reminder: ReminderRecord,
        entities: IntentEntities,
        today,
        key_source: Optional[str] = "search_query",
    ) -> ReminderPatch:
        """
        Partial update from whichever entities are present.

        The entity used as the search key is never reused as a new value.
        """
        values: Dict[str, Any] = {}

        new_title = entities.value("title")
        if new_title and key_source != "title":
            values["title"] = new_title

        new_text = entities.value("reminder_text") if key_source != "reminder_text" else None
        new_text = new_text or entities.value("description")
        if new_text:
            values["text"] = new_text

        new_date = date_resolver.requested_date(entities, today)
        new_time = date_resolver.parse_time(entities.value("time"))
        if new_date is not None or new_time is not None:
            values["remind_at"] = date_resolver.merge_date_time(
                to_local(reminder.remind_at), new_date, new_time
            )

        return ReminderPatch(**values)

    # -----------------------------------------------------------------------
    # DELETE
    # -----------------------------------------------------------------------

    async def _handle_delete(self, intent: StructuredIntent, context: HandlerContext) -> IntentResult:
        key, _ = search_key(intent.entities)
        if not key:
            return self._result(
                intent, context, ResolutionOutcome.MISSING_FIELDS,
                formatting.failure("Which reminder should I delete? Please tell me its name."),
                success=False,
            )

        reminder, early = await self._locate(intent, context, key)
        if early is not None:
            return early

        result = await context.store.delete_by_id(EntityKind.REMINDER, reminder.id)
        if not result.success:
            return self._result(
                intent, context, ResolutionOutcome.FAILED,
                formatting.failure(describe_failure("delete", EntityKind.REMINDER, result)),
                success=False,
            )

        await self._notify(
            context, f"cancel for reminder {reminder.id}",
            lambda gateway: gateway.cancel(reminder_identifier(reminder.id)),
        )
        return self._result(
            intent, context, ResolutionOutcome.DELETED,
            formatting.success(f'Reminder "{reminder.title}" has been deleted successfully'),
            data={"reminder": record_to_dict(reminder)},
        )
