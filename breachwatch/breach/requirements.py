"""
BreachWatch - Requirement Deriver

Turns a severity classification into a concrete notification requirement:
the regulator deadline and whether data subjects must be told.
"""

from __future__ import annotations

from datetime import datetime, timedelta

from breachwatch.breach.classifier import classify
from breachwatch.core.models import IncidentReport, NotificationRequirement, RiskAssessment


def notification_deadline(report: IncidentReport, timeframe_hours: int) -> datetime:
    """Regulator deadline, counted from discovery."""
    return report.discovered_at + timedelta(hours=timeframe_hours)


def derive_requirement(
    report: IncidentReport,
    assessment: RiskAssessment | None = None,
) -> NotificationRequirement:
    """
    Derive the notification requirement for an incident.

    The deadline is always computed, even when notification is not
    required, so it can be shown as advisory.
    """
    result = classify(report, assessment)

    if assessment is not None:
        data_subjects = assessment.high_risks_to_rights_and_freedoms
    else:
        data_subjects = result.severity_level.requires_individual_notification

    return NotificationRequirement(
        regulator_notification_required=result.notification_required,
        regulator_notification_deadline=notification_deadline(report, result.timeframe_hours),
        data_subject_notification_required=data_subjects,
        justification=result.justification,
        severity_level=result.severity_level,
    )
