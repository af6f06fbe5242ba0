"""
BreachWatch - Severity Classifier

Maps an incident report, plus its risk assessment when one exists, onto a
severity level and the notification obligations that follow from it.

With an assessment the assessor's judgement is authoritative. Without one,
severity is estimated from four report-only signals:
- the breach is still ongoing
- sensitive data categories are involved
- more than 1000 data subjects are affected
- the breach went undiscovered for more than 7 days

Classification never reads the clock; only deadline comparisons do.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta

from breachwatch.core.enums import IncidentStatus, SeverityLevel, SeveritySignal
from breachwatch.core.models import IncidentReport, RiskAssessment

# Statutory window for notifying the regulator, counted from discovery
NOTIFICATION_TIMEFRAME_HOURS = 72

SENSITIVE_DATA_TYPES = frozenset({
    "health",
    "financial",
    "biometric",
    "children",
    "location",
    "religious",
    "political",
    "ethnic",
})

LARGE_SCALE_THRESHOLD = 1000
DELAYED_DISCOVERY_WINDOW = timedelta(days=7)

DEFAULT_ASSESSMENT_JUSTIFICATION = "Based on risk assessment results"

LEVEL_JUSTIFICATIONS = {
    SeverityLevel.LOW: "Low risk due to minimal data exposure and effective containment",
    SeverityLevel.MEDIUM: "Medium risk due to personal data exposure",
    SeverityLevel.HIGH: "High risk due to multiple aggravating factors",
    SeverityLevel.CRITICAL: "Critical risk due to large-scale sensitive data exposure",
}


@dataclass(frozen=True)
class SeverityClassification:
    """Outcome of classifying a single incident."""
    severity_level: SeverityLevel
    notification_required: bool
    urgent_notification_required: bool
    timeframe_hours: int
    justification: str
    signals: tuple[SeveritySignal, ...] = field(default_factory=tuple)


def detect_signals(report: IncidentReport) -> tuple[SeveritySignal, ...]:
    """Return the report-only severity signals that apply, in fixed order."""
    signals = []

    if report.status == IncidentStatus.ONGOING:
        signals.append(SeveritySignal.ONGOING)

    data_types = {data_type.strip().lower() for data_type in report.data_types}
    if data_types & SENSITIVE_DATA_TYPES:
        signals.append(SeveritySignal.SENSITIVE_DATA)

    if (report.estimated_affected_subjects or 0) > LARGE_SCALE_THRESHOLD:
        signals.append(SeveritySignal.LARGE_SCALE)

    if (
        report.occurred_at is not None
        and report.discovered_at - report.occurred_at > DELAYED_DISCOVERY_WINDOW
    ):
        signals.append(SeveritySignal.DELAYED_DISCOVERY)

    return tuple(signals)


def classify(
    report: IncidentReport,
    assessment: RiskAssessment | None = None,
) -> SeverityClassification:
    """Classify breach severity and notification obligations."""
    if assessment is not None:
        return SeverityClassification(
            severity_level=assessment.risk_level,
            notification_required=assessment.risks_to_rights_and_freedoms,
            urgent_notification_required=assessment.high_risks_to_rights_and_freedoms,
            timeframe_hours=NOTIFICATION_TIMEFRAME_HOURS,
            justification=assessment.justification.strip() or DEFAULT_ASSESSMENT_JUSTIFICATION,
        )

    signals = detect_signals(report)
    level = SeverityLevel.from_signal_count(len(signals))

    justification = LEVEL_JUSTIFICATIONS[level]
    if signals:
        justification += f" (factors: {', '.join(s.value for s in signals)})"

    return SeverityClassification(
        severity_level=level,
        notification_required=level.requires_authority_notification,
        urgent_notification_required=level.requires_individual_notification,
        timeframe_hours=NOTIFICATION_TIMEFRAME_HOURS,
        justification=justification,
        signals=signals,
    )
