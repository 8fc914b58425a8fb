"""
Intent Classifier - Extracts a StructuredIntent from a user utterance.

This is the NLU (Natural Language Understanding) client. It:
1. Builds an ordered list of turns: fixed instructions, the trailing
   window of conversation history, then the new utterance
2. Sends it to the LLM provider (Gemini by default)
3. Strips markdown code fences from the answer and parses the JSON
4. Returns a typed StructuredIntent

Failure handling:
=================
The classifier never raises to its caller. Two failure kinds are
recovered locally:

    ClassificationTransportError  provider unreachable / request failed
        -> intent "unsupported", confidence 0, apologetic reply
    ClassificationFormatError     answer is not a JSON object
        -> intent "general", confidence 0.5, reply = raw model text
"""

import json
import logging
import re
import time
import uuid
from datetime import date
from typing import Dict, List, Optional

from pydantic import ValidationError

from aura.ai.intent.schemas import IntentEntities, IntentType, StructuredIntent
from aura.ai.monitoring import ClassificationOutcome, ClassifierMonitor, classifier_monitor
from aura.ai.prompts.intent_prompts import build_system_prompt
from aura.ai.providers.base import AIProvider, AIResponse, ChatTurn
from aura.core.clock import now_local
from aura.core.config import settings
from aura.core.session import SessionContext

logger = logging.getLogger("aura.ai.intent")

TRANSPORT_FAILURE_TEXT = (
    "I'm sorry, I'm having trouble processing your request right now. Please try again later."
)
FORMAT_FALLBACK_TEXT = (
    "I'm sorry, I couldn't process that request properly. Could you try rephrasing it?"
)

_LEADING_FENCE = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_TRAILING_FENCE = re.compile(r"\s*```$")


# ---------------------------------------------------------------------------
# EXCEPTIONS
# ---------------------------------------------------------------------------

class ClassificationError(Exception):
    """Base class for classifier failures."""


class ClassificationTransportError(ClassificationError):
    """The LLM service could not be reached or returned an error."""


class ClassificationFormatError(ClassificationError):
    """The LLM answered, but not with a JSON object."""

    def __init__(self, message: str, raw_text: str = ""):
        super().__init__(message)
        self.raw_text = raw_text


# ---------------------------------------------------------------------------
# RESPONSE PARSING
# ---------------------------------------------------------------------------

def sanitize_response(raw: str) -> str:
    """
    Strip surrounding ```json ... ``` or ``` ... ``` fences.

    Bare JSON passes through unchanged (apart from outer whitespace).
    """
    text = (raw or "").strip()
    if text.startswith("```"):
        text = _LEADING_FENCE.sub("", text, count=1)
        text = _TRAILING_FENCE.sub("", text, count=1)
    return text.strip()


def parse_response(raw: str) -> StructuredIntent:
    """
    Parse a model answer into a StructuredIntent.

    Raises:
        ClassificationFormatError: the sanitized text is not a JSON object
    """
    cleaned = sanitize_response(raw)
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise ClassificationFormatError(f"Invalid JSON: {e}", raw_text=raw) from e

    if not isinstance(data, dict):
        raise ClassificationFormatError(
            f"Expected a JSON object, got {type(data).__name__}", raw_text=raw
        )

    try:
        return StructuredIntent.model_validate(data)
    except ValidationError as e:
        raise ClassificationFormatError(f"Schema mismatch: {e}", raw_text=raw) from e


def transport_failure_intent() -> StructuredIntent:
    return StructuredIntent(
        intent=IntentType.UNSUPPORTED,
        entities=IntentEntities(),
        confidence=0.0,
        response_text=TRANSPORT_FAILURE_TEXT,
    )


def format_recovery_intent(raw_text: str) -> StructuredIntent:
    return StructuredIntent(
        intent=IntentType.GENERAL,
        entities=IntentEntities(),
        confidence=0.5,
        response_text=raw_text if raw_text and raw_text.strip() else FORMAT_FALLBACK_TEXT,
    )


# ---------------------------------------------------------------------------
# CLASSIFIER
# ---------------------------------------------------------------------------

class IntentClassifier:
    """
    Classifies utterances through an LLM provider.

    Usage:
        classifier = IntentClassifier(session=SessionContext(user_id="u-1"))
        intent = await classifier.classify(
            "Schedule a meeting with John next Monday at 10am",
            history=[{"role": "user", "content": "hi"}, {"role": "assistant", "content": "Hello!"}],
        )
    """

    def __init__(
        self,
        provider: Optional[AIProvider] = None,
        session: Optional[SessionContext] = None,
        monitor: Optional[ClassifierMonitor] = None,
        history_turns: Optional[int] = None,
    ):
        if provider is None:
            from aura.ai.providers.gemini import GeminiProvider

            provider = GeminiProvider()
        self.provider = provider
        self.session = session
        self.monitor = monitor or classifier_monitor
        self.history_turns = history_turns if history_turns is not None else settings.CLASSIFIER_HISTORY_TURNS

    def build_turns(
        self,
        utterance: str,
        history: Optional[List[Dict[str, str]]] = None,
        today: Optional[date] = None,
    ) -> List[ChatTurn]:
        """
        Ordered request turns.

        First turn: the fixed instructions. Then at most ``history_turns``
        trailing history entries (assistant -> "model"). Last: the utterance.
        """
        turns = [ChatTurn(role="user", text=build_system_prompt(today or now_local().date()))]

        window = (history or [])[-self.history_turns:] if self.history_turns > 0 else []
        for message in window:
            role = "user" if message.get("role") == "user" else "model"
            turns.append(ChatTurn(role=role, text=message.get("content", "")))

        turns.append(ChatTurn(role="user", text=utterance))
        return turns

    async def _request(self, turns: List[ChatTurn]) -> AIResponse:
        """
        Send the turns to the provider.

        Raises:
            ClassificationTransportError: the provider reported or raised a failure
        """
        try:
            response = await self.provider.generate_chat(turns)
        except Exception as e:
            raise ClassificationTransportError(str(e)) from e

        if not response.success:
            raise ClassificationTransportError(response.error or "AI request failed")
        return response

    async def classify(
        self,
        utterance: str,
        history: Optional[List[Dict[str, str]]] = None,
        request_id: Optional[str] = None,
        today: Optional[date] = None,
    ) -> StructuredIntent:
        """
        Classify one utterance.

        Args:
            utterance: The user's text
            history: [{"role": "user"|"assistant", "content": str}, ...] oldest first
            request_id: For log correlation
            today: Date written into the instructions (defaults to today locally)

        Returns:
            StructuredIntent. Transport and format failures are recovered
            into synthesized intents; nothing is raised.
        """
        request_id = request_id or str(uuid.uuid4())
        start_time = time.time()
        turns = self.build_turns(utterance, history, today)

        self.monitor.track_request(
            request_id=request_id,
            utterance=utterance,
            history_turns=len(turns) - 2,
            user_id=self.session.user_id if self.session else None,
        )

        try:
            response = await self._request(turns)
        except ClassificationTransportError as e:
            logger.warning(f"[{request_id}] Classifier transport failure: {e}")
            intent = transport_failure_intent()
            self.monitor.track_classification(
                request_id=request_id,
                intent=intent.intent.value,
                confidence=intent.confidence,
                latency_ms=(time.time() - start_time) * 1000,
                outcome=ClassificationOutcome.TRANSPORT_FAILURE,
                error=str(e),
            )
            return intent

        try:
            intent = parse_response(response.content)
            outcome = ClassificationOutcome.OK
            error = None
        except ClassificationFormatError as e:
            logger.warning(f"[{request_id}] Classifier returned non-JSON answer: {e}")
            intent = format_recovery_intent(e.raw_text)
            outcome = ClassificationOutcome.FORMAT_RECOVERY
            error = str(e)

        self.monitor.track_classification(
            request_id=request_id,
            intent=intent.intent.value,
            confidence=intent.confidence,
            latency_ms=(time.time() - start_time) * 1000,
            outcome=outcome,
            total_tokens=response.usage.total_tokens if response.usage else 0,
            error=error,
        )
        return intent
