"""
BreachWatch - Enumerations

Closed value sets shared by the incident store, the severity classifier
and the deadline monitor.
"""

from __future__ import annotations

from enum import Enum


class SeverityLevel(str, Enum):
    """Breach severity classification."""
    LOW = "low"                 # Minimal exposure
    MEDIUM = "medium"           # Limited exposure
    HIGH = "high"               # Significant exposure
    CRITICAL = "critical"       # Mass data exposure, sensitive data

    @property
    def rank(self) -> int:
        """Ordinal position, low = 0."""
        return _SEVERITY_ORDER.index(self)

    @property
    def requires_authority_notification(self) -> bool:
        """Check if the regulator must be notified when no assessment exists."""
        return self is not SeverityLevel.LOW

    @property
    def requires_individual_notification(self) -> bool:
        """Check if affected individuals must be notified when no assessment exists."""
        return self in {SeverityLevel.HIGH, SeverityLevel.CRITICAL}

    @classmethod
    def from_signal_count(cls, count: int) -> SeverityLevel:
        """Map a number of aggravating signals onto a level."""
        if count <= 0:
            return cls.LOW
        if count == 1:
            return cls.MEDIUM
        if count == 2:
            return cls.HIGH
        return cls.CRITICAL


_SEVERITY_ORDER = (
    SeverityLevel.LOW,
    SeverityLevel.MEDIUM,
    SeverityLevel.HIGH,
    SeverityLevel.CRITICAL,
)


class IncidentStatus(str, Enum):
    """Lifecycle status of a reported breach."""
    ONGOING = "ongoing"
    CONTAINED = "contained"
    RESOLVED = "resolved"


class SubmissionMethod(str, Enum):
    """How a regulatory notification was submitted."""
    EMAIL = "email"
    PORTAL = "portal"
    LETTER = "letter"
    OTHER = "other"


class SeveritySignal(str, Enum):
    """Report-only signals that raise severity when no assessment exists."""
    ONGOING = "ongoing"
    SENSITIVE_DATA = "sensitive_data"
    LARGE_SCALE = "large_scale"
    DELAYED_DISCOVERY = "delayed_discovery"


class DeadlineStatus(str, Enum):
    """Notification deadline state of a single incident."""
    NOTIFIED = "notified"
    NOT_REQUIRED = "not_required"
    OVERDUE = "overdue"
    URGENT = "urgent"
    PENDING = "pending"


class AlertLevel(str, Enum):
    """Escalation level for an approaching or missed deadline."""
    WARNING = "warning"
    URGENT = "urgent"
    CRITICAL = "critical"
    IMMINENT = "imminent"
    OVERDUE = "overdue"


class FollowUpDirection(str, Enum):
    """Direction of regulator correspondence."""
    SENT = "sent"
    RECEIVED = "received"
