"""
Monitoring Module - observability for intent classification.

Usage:
    from aura.ai.monitoring import classifier_monitor

    stats = classifier_monitor.get_stats()
"""

from aura.ai.monitoring.monitor import (
    ClassificationOutcome,
    ClassifierMonitor,
    ClassifierStats,
    classifier_monitor,
)

__all__ = [
    "ClassificationOutcome",
    "ClassifierMonitor",
    "ClassifierStats",
    "classifier_monitor",
]
