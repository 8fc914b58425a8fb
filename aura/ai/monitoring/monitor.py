"""
Classifier Monitor - logging and metrics for intent classification.

One call per classification does both:
- Writes a structured JSON log line
- Updates in-memory counters (thread-safe)

Usage:
    from aura.ai.monitoring import classifier_monitor

    classifier_monitor.track_request(request_id, utterance, history_turns=4)
    classifier_monitor.track_classification(
        request_id=request_id,
        intent="create_event",
        confidence=0.9,
        latency_ms=312.4,
        outcome=ClassificationOutcome.OK,
    )

    stats = classifier_monitor.get_stats().to_dict()
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from threading import Lock
from typing import Dict, Optional

logger = logging.getLogger("aura.ai.monitor")


class ClassificationOutcome(str, Enum):
    """How a classification request ended."""
    OK = "ok"
    TRANSPORT_FAILURE = "transport_failure"
    FORMAT_RECOVERY = "format_recovery"


# ---------------------------------------------------------------------------
# METRICS DATA CLASSES
# ---------------------------------------------------------------------------
@dataclass
class ClassifierStats:
    """Aggregated counters since startup (or the last reset)."""
    total_requests: int = 0
    transport_failures: int = 0
    format_recoveries: int = 0
    total_tokens: int = 0
    total_latency_ms: float = 0.0
    intents: Dict[str, int] = field(default_factory=dict)

    @property
    def avg_latency_ms(self) -> float:
        if self.total_requests == 0:
            return 0.0
        return self.total_latency_ms / self.total_requests

    def to_dict(self) -> Dict:
        return {
            "total_requests": self.total_requests,
            "transport_failures": self.transport_failures,
            "format_recoveries": self.format_recoveries,
            "total_tokens": self.total_tokens,
            "avg_latency_ms": round(self.avg_latency_ms, 2),
            "intents": dict(self.intents),
        }


# ---------------------------------------------------------------------------
# MONITOR
# ---------------------------------------------------------------------------
class ClassifierMonitor:
    """Structured logs + counters for the intent classifier."""

    def __init__(self):
        self._lock = Lock()
        self._stats = ClassifierStats()

    def track_request(
        self,
        request_id: str,
        utterance: str,
        history_turns: int = 0,
        user_id: Optional[str] = None,
    ) -> None:
        """Log the start of a classification request."""
        log_data = {
            "event": "classification_request",
            "request_id": request_id,
            "user_id": user_id,
            "history_turns": history_turns,
            "utterance_preview": utterance[:50] + "..." if len(utterance) > 50 else utterance,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        logger.info(f"Classifier Request: {json.dumps(log_data)}")

    def track_classification(
        self,
        request_id: str,
        intent: str,
        confidence: float,
        latency_ms: float,
        outcome: ClassificationOutcome = ClassificationOutcome.OK,
        total_tokens: int = 0,
        error: Optional[str] = None,
    ) -> None:
        """Record the classified intent (logs + counters in one call)."""
        with self._lock:
            self._stats.total_requests += 1
            self._stats.total_latency_ms += latency_ms
            self._stats.total_tokens += total_tokens
            self._stats.intents[intent] = self._stats.intents.get(intent, 0) + 1
            if outcome == ClassificationOutcome.TRANSPORT_FAILURE:
                self._stats.transport_failures += 1
            elif outcome == ClassificationOutcome.FORMAT_RECOVERY:
                self._stats.format_recoveries += 1

        log_data = {
            "event": "intent_classified",
            "request_id": request_id,
            "intent": intent,
            "confidence": round(confidence, 3),
            "outcome": outcome.value,
            "latency_ms": round(latency_ms, 2),
            "tokens": total_tokens,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        if error:
            log_data["error"] = error

        level = logging.INFO if outcome == ClassificationOutcome.OK else logging.WARNING
        logger.log(level, f"Intent Classified: {json.dumps(log_data)}")

    def get_stats(self) -> ClassifierStats:
        """Snapshot of the current counters."""
        with self._lock:
            return ClassifierStats(
                total_requests=self._stats.total_requests,
                transport_failures=self._stats.transport_failures,
                format_recoveries=self._stats.format_recoveries,
                total_tokens=self._stats.total_tokens,
                total_latency_ms=self._stats.total_latency_ms,
                intents=dict(self._stats.intents),
            )

    def reset(self) -> None:
        """Reset all counters (useful for testing)."""
        with self._lock:
            self._stats = ClassifierStats()


# ---------------------------------------------------------------------------
# SINGLETON INSTANCE
# ---------------------------------------------------------------------------
classifier_monitor = ClassifierMonitor()
