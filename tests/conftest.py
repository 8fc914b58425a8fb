"""
Test configuration and fixtures for pytest.

This module provides shared fixtures used across all tests:
- Test database (SQLite in-memory for speed)
- Store, chat log and notification scheduler scoped to a test user
- A scripted LLM provider (no network)
- Test client (FastAPI TestClient) with authentication helpers
"""

import os

# Must be set before aura.core.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("TIMEZONE", "UTC")

import json
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Generator, List, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

import aura.models  # noqa: F401  (registers tables)
from aura.ai.providers.base import AIProvider, AIResponse, ChatTurn, ProviderType
from aura.core.security import create_access_token
from aura.core.session import SessionContext
from aura.db.base import Base
from aura.db.session import get_db
from aura.deps import get_intent_service, get_notification_gateway
from aura.main import app
from aura.services.conversation_context_service import ConversationContextService
from aura.services.intent_handlers.base import HandlerContext
from aura.services.intent_service import IntentService, MessageContext
from aura.services.notifications import LocalNotificationScheduler
from aura.services.store.chat_log import ChatLogRepository
from aura.services.store.sql_store import SqlRecordStore


# ---------------------------------------------------------------------------
# TEST DATABASE SETUP
# ---------------------------------------------------------------------------
# StaticPool keeps the same in-memory connection across all operations

engine = create_engine(
    "sqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Monday 2025-07-07 09:00 UTC
REFERENCE_NOW = datetime(2025, 7, 7, 9, 0, tzinfo=timezone.utc)


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Fresh tables for each test."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


# ---------------------------------------------------------------------------
# SESSION / ADAPTER FIXTURES
# ---------------------------------------------------------------------------

@pytest.fixture
def session_context() -> SessionContext:
    return SessionContext(user_id="user-1", access_token="test-token")


@pytest.fixture
def other_session() -> SessionContext:
    return SessionContext(user_id="user-2")


@pytest.fixture
def store(session_context: SessionContext, db: Session) -> SqlRecordStore:
    return SqlRecordStore(session_context, db)


@pytest.fixture
def chat_log(session_context: SessionContext, db: Session) -> ChatLogRepository:
    return ChatLogRepository(session_context, db)


@pytest.fixture
def reference_now() -> datetime:
    return REFERENCE_NOW


@pytest.fixture
def scheduler(reference_now: datetime) -> LocalNotificationScheduler:
    """
    Notification scheduler that is never started.

    Jobs stay pending in APScheduler; ``scheduler.pending`` shows what
    would fire and ``scheduler.deliver(id)`` fires one by hand.
    """
    return LocalNotificationScheduler(clock=lambda: reference_now, enabled=True)


@pytest.fixture
def make_context(session_context, store, scheduler, reference_now) -> Callable[..., HandlerContext]:
    """Factory for HandlerContext; keyword overrides replace the defaults."""

    def _make(**overrides) -> HandlerContext:
        values = dict(
            session=session_context,
            request_id="test-request",
            store=store,
            notifications=scheduler,
            now=reference_now,
            start_time=time.time(),
        )
        values.update(overrides)
        return HandlerContext(**values)

    return _make


# ---------------------------------------------------------------------------
# SCRIPTED LLM PROVIDER
# ---------------------------------------------------------------------------

class ScriptedProvider(AIProvider):
    """
    Returns queued answers in order and records every request.

    A queued Exception is raised; a queued AIResponse is returned as-is;
    a dict is serialized to JSON; a string is returned verbatim.
    """

    provider_type = ProviderType.GEMINI

    def __init__(self, replies: Optional[List[Any]] = None):
        self.replies: List[Any] = list(replies or [])
        self.requests: List[List[ChatTurn]] = []

    def queue(self, *replies: Any) -> None:
        self.replies.extend(replies)

    async def generate_chat(self, turns, temperature=None, max_tokens=None, **kwargs):
        self.requests.append(list(turns))
        reply = self.replies.pop(0) if self.replies else {"intent": "general", "responseText": "ok"}
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, AIResponse):
            return reply
        content = json.dumps(reply) if isinstance(reply, dict) else reply
        return AIResponse(content=content, provider=self.provider_type, model="scripted")


def intent_payload(intent: str, response_text: str = "", **entities) -> Dict[str, Any]:
    """Classifier JSON answer with camelCase entity names."""
    return {
        "intent": intent,
        "entities": entities,
        "confidence": 0.9,
        "responseText": response_text,
    }


@pytest.fixture
def provider() -> ScriptedProvider:
    return ScriptedProvider()


@pytest.fixture
def intent_json() -> Callable[..., Dict[str, Any]]:
    return intent_payload


@pytest.fixture
def conversations() -> ConversationContextService:
    return ConversationContextService()


@pytest.fixture
def service(provider, conversations) -> IntentService:
    return IntentService(provider=provider, conversations=conversations)


@pytest.fixture
def message_context(session_context, store, chat_log, scheduler) -> MessageContext:
    return MessageContext(
        session=session_context,
        store=store,
        chat_log=chat_log,
        notifications=scheduler,
    )


# ---------------------------------------------------------------------------
# HTTP FIXTURES
# ---------------------------------------------------------------------------

@pytest.fixture(scope="function")
def client(db: Session, scheduler, service) -> Generator[TestClient, None, None]:
    """
    Test client wired to the test database, the unstarted scheduler and
    the scripted intent service.
    """

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notification_gateway] = lambda: scheduler
    app.dependency_overrides[get_intent_service] = lambda: service

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(session_context: SessionContext) -> dict:
    token = create_access_token(subject=session_context.user_id)
    return {"Authorization": f"Bearer {token}"}
