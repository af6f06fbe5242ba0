"""
BreachWatch - Core Module

Core components shared across the engine:
- Configuration
- Enumerations
- Models
- Risk scoring
- Breach categories
"""

from breachwatch.core.categories import DEFAULT_BREACH_CATEGORIES, BreachCategory, get_category
from breachwatch.core.config import BreachWatchConfig, get_breachwatch_config
from breachwatch.core.enums import (
    AlertLevel,
    DeadlineStatus,
    FollowUpDirection,
    IncidentStatus,
    SeverityLevel,
    SeveritySignal,
    SubmissionMethod,
)
from breachwatch.core.models import (
    AssessmentInput,
    Assessor,
    Attachment,
    FollowUp,
    IncidentDraft,
    IncidentReport,
    NotificationInput,
    NotificationRequirement,
    RegulatorContact,
    RegulatoryNotification,
    Reporter,
    RiskAssessment,
    StoreSnapshot,
    generate_id,
    utc_now,
)
from breachwatch.core.scoring import risk_level_for_score, weighted_risk_score

__all__ = [
    # Config
    "BreachWatchConfig",
    "get_breachwatch_config",
    # Categories
    "BreachCategory",
    "DEFAULT_BREACH_CATEGORIES",
    "get_category",
    # Enums
    "AlertLevel",
    "DeadlineStatus",
    "FollowUpDirection",
    "IncidentStatus",
    "SeverityLevel",
    "SeveritySignal",
    "SubmissionMethod",
    # Models
    "AssessmentInput",
    "Assessor",
    "Attachment",
    "FollowUp",
    "IncidentDraft",
    "IncidentReport",
    "NotificationInput",
    "NotificationRequirement",
    "RegulatorContact",
    "RegulatoryNotification",
    "Reporter",
    "RiskAssessment",
    "StoreSnapshot",
    "generate_id",
    "utc_now",
    # Scoring
    "risk_level_for_score",
    "weighted_risk_score",
]
