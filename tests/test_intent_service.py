"""
Tests for IntentService - the utterance pipeline and the resolution engine.

The LLM is the scripted provider from conftest.py; the store, chat log
and notification scheduler are the real test-database-backed ones.
"""

import pytest
from typing import List
from unittest.mock import AsyncMock, MagicMock, patch

from aura.ai.intent.classifier import TRANSPORT_FAILURE_TEXT
from aura.ai.intent.schemas import IntentType, StructuredIntent
from aura.schemas.records import EntityKind
from aura.services.conversation_context_service import ConversationContextService, MessageRole
from aura.services.intent_handlers import HandlerContext, IntentHandler
from aura.services.intent_handlers.conversation_handler import FALLBACK_REPLY
from aura.services.intent_result import ResolutionOutcome
from aura.services.intent_service import (
    GENERIC_FAILURE_TEXT,
    IntentService,
    MessageProcessingError,
)


class ExplodingHandler(IntentHandler):
    """Claims every intent and raises."""

    @property
    def handler_name(self) -> str:
        return "exploding"

    @property
    def supported_intent_types(self) -> List[str]:
        return [intent_type.value for intent_type in IntentType]

    async def handle(self, intent: StructuredIntent, context: HandlerContext):
        raise RuntimeError("kaboom")


def conversation_of(conversations, session_context):
    return conversations.get_session(session_context.user_id)


# ---------------------------------------------------------------------------
# PIPELINE
# ---------------------------------------------------------------------------

class TestProcessMessage:
    @pytest.mark.asyncio
    async def test_create_event_end_to_end(
        self, service, provider, intent_json, message_context, conversations,
        session_context, store, chat_log, scheduler, reference_now,
    ):
        provider.queue(intent_json(
            "create_event", title="Meeting with John", date="2025-07-14", time="10:00", relativeTime="next Monday"
        ))

        processed = await service.process_message(
            message_context, "Schedule a meeting with John next Monday at 10am", now=reference_now
        )

        assert processed.intent.intent == IntentType.CREATE_EVENT
        assert processed.result.outcome == ResolutionOutcome.CREATED
        assert 'Meeting with John' in processed.assistant_message.content
        assert processed.assistant_message.content == processed.result.message
        assert processed.assistant_message.replies_to == processed.user_message.id

        messages = conversation_of(conversations, session_context).messages
        assert [m.role for m in messages] == [MessageRole.USER, MessageRole.ASSISTANT]

        events = (await store.query_by_filter(EntityKind.EVENT)).data
        assert len(events) == 1
        assert f"event_{events[0].id}" in scheduler.pending

        persisted = (await chat_log.load_recent(10)).data
        assert [m.id for m in persisted] == [m.id for m in messages]

    @pytest.mark.asyncio
    async def test_voice_origin_is_recorded(self, service, message_context, reference_now):
        processed = await service.process_message(message_context, "hello", is_voice=True, now=reference_now)

        assert processed.user_message.is_voice_origin is True
        assert processed.assistant_message.is_voice_origin is False

    @pytest.mark.asyncio
    async def test_conversational_intent_echoes_response_text(
        self, service, provider, intent_json, message_context, store, reference_now
    ):
        provider.queue(intent_json("get_information", response_text="Paris is the capital of France."))

        processed = await service.process_message(message_context, "capital of France?", now=reference_now)

        assert processed.result.outcome == ResolutionOutcome.RESPONDED
        assert processed.assistant_message.content == "Paris is the capital of France."
        assert (await store.query_by_filter(EntityKind.EVENT)).data == []

    @pytest.mark.asyncio
    async def test_transport_failure_still_appends_one_reply(
        self, service, provider, message_context, conversations, session_context, store, reference_now
    ):
        provider.queue(ConnectionError("network down"))

        processed = await service.process_message(message_context, "add lunch tomorrow", now=reference_now)

        assert processed.intent.intent == IntentType.UNSUPPORTED
        assert processed.assistant_message.content == TRANSPORT_FAILURE_TEXT
        assert len(conversation_of(conversations, session_context)) == 2
        assert (await store.query_by_filter(EntityKind.EVENT)).data == []

    @pytest.mark.asyncio
    async def test_history_excludes_the_current_utterance(self, service, provider, message_context, reference_now):
        await service.process_message(message_context, "remind me to call mom", now=reference_now)
        await service.process_message(message_context, "tomorrow at 9", now=reference_now)

        second_request = provider.requests[1]
        texts = [turn.text for turn in second_request[1:]]
        assert texts == ["remind me to call mom", "ok", "tomorrow at 9"]

    @pytest.mark.asyncio
    async def test_unexpected_pipeline_error_raises_without_reply(
        self, service, message_context, conversations, session_context, reference_now
    ):
        broken = MagicMock()
        broken.classify = AsyncMock(side_effect=RuntimeError("boom"))

        with patch.object(service, "classifier_for", return_value=broken):
            with pytest.raises(MessageProcessingError) as exc_info:
                await service.process_message(message_context, "hello", now=reference_now)

        assert str(exc_info.value) == GENERIC_FAILURE_TEXT
        messages = conversation_of(conversations, session_context).messages
        assert [m.role for m in messages] == [MessageRole.USER]


# ---------------------------------------------------------------------------
# RESOLUTION ENGINE
# ---------------------------------------------------------------------------

class TestResolve:
    @pytest.mark.asyncio
    async def test_handler_exception_becomes_failed_result(
        self, provider, intent_json, conversations, message_context, reference_now
    ):
        service = IntentService(provider=provider, handlers=[ExplodingHandler()], conversations=conversations)
        provider.queue(intent_json("create_event", title="x", date="2025-07-14"))

        processed = await service.process_message(message_context, "x", now=reference_now)

        assert processed.result.success is False
        assert processed.result.outcome == ResolutionOutcome.FAILED
        assert processed.assistant_message.content == "❌ Failed to process request: kaboom"

    @pytest.mark.asyncio
    async def test_no_handler_is_a_failure(self, provider, conversations, make_context):
        service = IntentService(provider=provider, handlers=[], conversations=conversations)
        intent = StructuredIntent.model_validate({"intent": "get_events"})

        result = await service.resolve(intent, make_context())

        assert result.success is False
        assert result.outcome == ResolutionOutcome.FAILED

    @pytest.mark.asyncio
    async def test_empty_reply_uses_fallback(self, service, make_context):
        intent = StructuredIntent.model_validate({"intent": "clarify", "responseText": "   "})

        result = await service.resolve(intent, make_context())

        assert result.outcome == ResolutionOutcome.RESPONDED
        assert result.message == FALLBACK_REPLY

    def test_default_handlers_cover_every_intent(self, service, make_context):
        context = make_context()
        for intent_type in IntentType:
            intent = StructuredIntent(intent=intent_type)
            assert service.get_handler(intent, context) is not None, intent_type


# ---------------------------------------------------------------------------
# CONVERSATION LOG
# ---------------------------------------------------------------------------

class TestConversationLog:
    @pytest.mark.asyncio
    async def test_history_is_loaded_from_chat_log_once(
        self, provider, service, message_context, session_context, chat_log, reference_now
    ):
        await service.process_message(message_context, "first", now=reference_now)

        fresh = IntentService(provider=provider, conversations=ConversationContextService())
        messages = await fresh.list_messages(session_context, chat_log)

        assert [m.content for m in messages] == ["first", "ok"]
        assert messages[1].replies_to == messages[0].id

    @pytest.mark.asyncio
    async def test_edit_is_mirrored(self, service, message_context, session_context, chat_log, reference_now):
        processed = await service.process_message(message_context, "lunch at 12", now=reference_now)

        edited = await service.edit_message(session_context, processed.user_message.id, "lunch at 1", chat_log)

        assert edited.content == "lunch at 1"
        persisted = (await chat_log.load_recent(10)).data
        assert persisted[0].content == "lunch at 1"
        assert await service.edit_message(session_context, "missing", "x", chat_log) is None

    @pytest.mark.asyncio
    async def test_delete_removes_pair_everywhere(
        self, service, message_context, conversations, session_context, chat_log, reference_now
    ):
        first = await service.process_message(message_context, "one", now=reference_now)
        second = await service.process_message(message_context, "two", now=reference_now)

        removed = await service.delete_message(session_context, first.assistant_message.id, chat_log)

        assert sorted(removed) == sorted([first.user_message.id, first.assistant_message.id])
        remaining = [m.id for m in conversation_of(conversations, session_context).messages]
        assert remaining == [second.user_message.id, second.assistant_message.id]
        assert [m.id for m in (await chat_log.load_recent(10)).data] == remaining
