"""
BreachWatch - Breach Handling

- Severity classification
- Notification requirement derivation
- Incident store
- Deadline monitoring and alerting
"""

from breachwatch.breach.classifier import (
    NOTIFICATION_TIMEFRAME_HOURS,
    SENSITIVE_DATA_TYPES,
    SeverityClassification,
    classify,
    detect_signals,
)
from breachwatch.breach.monitor import (
    AttentionItem,
    DeadlineAlert,
    DeadlineMonitor,
    get_deadline_monitor,
)
from breachwatch.breach.requirements import derive_requirement, notification_deadline
from breachwatch.breach.store import IncidentStore, get_incident_store

__all__ = [
    # Classifier
    "NOTIFICATION_TIMEFRAME_HOURS",
    "SENSITIVE_DATA_TYPES",
    "SeverityClassification",
    "classify",
    "detect_signals",
    # Requirements
    "derive_requirement",
    "notification_deadline",
    # Store
    "IncidentStore",
    "get_incident_store",
    # Monitor
    "AttentionItem",
    "DeadlineAlert",
    "DeadlineMonitor",
    "get_deadline_monitor",
]
