"""
Chat router - the assistant conversation.

Endpoints:
- POST   /chat/messages        Process one utterance
- GET    /chat/messages        Current conversation, oldest first
- PATCH  /chat/messages/{id}   Edit a message's text
- DELETE /chat/messages/{id}   Delete a message and its paired partner
- GET    /chat/stats           Classifier counters
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from aura.ai.monitoring import classifier_monitor
from aura.core.session import SessionContext
from aura.deps import (
    get_chat_log,
    get_intent_service,
    get_notification_gateway,
    get_record_store,
    get_session_context,
)
from aura.schemas.chat import (
    ChatMessageIn,
    ChatMessageOut,
    DeleteMessageResponse,
    EditMessageRequest,
    ProcessMessageResponse,
)
from aura.services.intent_service import IntentService, MessageContext, MessageProcessingError
from aura.services.notifications import NotificationGateway
from aura.services.store.base import RecordStore
from aura.services.store.chat_log import ChatLogRepository

logger = logging.getLogger("aura.routers.chat")

router = APIRouter(prefix="/chat", tags=["chat"])


@router.post("/messages", response_model=ProcessMessageResponse)
async def send_message(
    payload: ChatMessageIn,
    session: SessionContext = Depends(get_session_context),
    store: RecordStore = Depends(get_record_store),
    chat_log: ChatLogRepository = Depends(get_chat_log),
    notifications: NotificationGateway = Depends(get_notification_gateway),
    service: IntentService = Depends(get_intent_service),
):
    """
    Classify and resolve one utterance.

    Both the user message and the outcome message are appended to the
    conversation; the outcome text is in ``assistant_message.content``.
    """
    context = MessageContext(
        session=session,
        store=store,
        chat_log=chat_log,
        notifications=notifications,
    )
    try:
        processed = await service.process_message(context, payload.text, is_voice=payload.is_voice)
    except MessageProcessingError as e:
        logger.error(f"Chat message failed for user {session.user_id}: {e.__cause__}")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=str(e),
        )
    return processed.to_dict()


@router.get("/messages", response_model=list[ChatMessageOut])
async def list_messages(
    session: SessionContext = Depends(get_session_context),
    chat_log: ChatLogRepository = Depends(get_chat_log),
    service: IntentService = Depends(get_intent_service),
):
    messages = await service.list_messages(session, chat_log)
    return [message.to_dict() for message in messages]


@router.patch("/messages/{message_id}", response_model=ChatMessageOut)
async def edit_message(
    message_id: str,
    payload: EditMessageRequest,
    session: SessionContext = Depends(get_session_context),
    chat_log: ChatLogRepository = Depends(get_chat_log),
    service: IntentService = Depends(get_intent_service),
):
    message = await service.edit_message(session, message_id, payload.content, chat_log)
    if message is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Message not found")
    return message.to_dict()


@router.delete("/messages/{message_id}", response_model=DeleteMessageResponse)
async def delete_message(
    message_id: str,
    session: SessionContext = Depends(get_session_context),
    chat_log: ChatLogRepository = Depends(get_chat_log),
    service: IntentService = Depends(get_intent_service),
):
    """Deleting a user message also removes its reply, and vice versa."""
    removed = await service.delete_message(session, message_id, chat_log)
    if not removed:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Message not found")
    return {"deleted": removed}


@router.get("/stats")
async def classifier_stats(
    session: SessionContext = Depends(get_session_context),
):
    return classifier_monitor.get_stats().to_dict()
