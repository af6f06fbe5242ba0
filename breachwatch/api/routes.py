"""
BreachWatch - API Routes

REST endpoints over the incident store and the deadline monitor:
- Incident intake, update and search
- Risk assessments
- Regulatory notifications and follow-up correspondence
- Notification requirements, deadline status and attention queue
- Metrics and breach categories
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, ConfigDict, Field

from breachwatch.breach.monitor import AttentionItem, DeadlineMonitor, get_deadline_monitor
from breachwatch.breach.store import IncidentStore, get_incident_store
from breachwatch.core.config import BreachWatchConfig, get_breachwatch_config
from breachwatch.core.enums import IncidentStatus, SeverityLevel, SubmissionMethod
from breachwatch.core.models import (
    Assessor,
    Attachment,
    FollowUp,
    IncidentDraft,
    RegulatorContact,
    Reporter,
)

router = APIRouter(prefix="/breaches", tags=["breaches"])
categories_router = APIRouter(prefix="/breach-categories", tags=["breaches"])


# ═══════════════════════════════════════════════════════════════════════════
# REQUEST MODELS
# ═══════════════════════════════════════════════════════════════════════════


class IncidentUpdateRequest(BaseModel):
    """Partial update of an incident report."""

    model_config = ConfigDict(extra="forbid")

    title: str | None = Field(default=None, min_length=1)
    description: str | None = None
    category: str | None = None
    discovered_at: datetime | None = None
    occurred_at: datetime | None = None
    reporter: Reporter | None = None
    affected_systems: list[str] | None = None
    data_types: list[str] | None = None
    estimated_affected_subjects: int | None = Field(default=None, ge=0)
    status: IncidentStatus | None = None
    remediation_notes: str | None = None
    attachments: list[Attachment] | None = None


class AssessmentRequest(BaseModel):
    """
    Create or update the risk assessment of an incident.

    All fields are optional so a re-assessment can send only what changed;
    the first assessment must still carry the assessor and all five scores.
    """

    model_config = ConfigDict(extra="forbid")

    assessor: Assessor | None = None
    confidentiality_impact: int | None = None
    integrity_impact: int | None = None
    availability_impact: int | None = None
    harm_likelihood: int | None = None
    harm_severity: int | None = None
    risk_level: SeverityLevel | None = None
    risks_to_rights_and_freedoms: bool | None = None
    high_risks_to_rights_and_freedoms: bool | None = None
    justification: str | None = None


class NotificationRequest(BaseModel):
    """Record or update the regulatory notification of an incident."""

    model_config = ConfigDict(extra="forbid")

    method: SubmissionMethod | None = None
    reference_number: str | None = None
    regulator_contact: RegulatorContact | None = None
    content: str | None = None
    attachments: list[Attachment] | None = None
    follow_ups: list[FollowUp] | None = None


# ═══════════════════════════════════════════════════════════════════════════
# DEPENDENCIES
# ═══════════════════════════════════════════════════════════════════════════


async def get_store() -> IncidentStore:
    """Get the incident store."""
    return get_incident_store()


async def get_monitor() -> DeadlineMonitor:
    """Get the deadline monitor."""
    return get_deadline_monitor()


async def get_config() -> BreachWatchConfig:
    return get_breachwatch_config()


def _not_found(what: str) -> HTTPException:
    return HTTPException(status_code=404, detail=f"{what} not found")


def _invalid(error: ValueError) -> HTTPException:
    return HTTPException(status_code=422, detail=str(error))


def _attention_entry(item: AttentionItem) -> dict[str, Any]:
    return {
        "incident_id": item.incident_id,
        "title": item.report.title,
        "severity_level": item.requirement.severity_level.value,
        "deadline": item.requirement.regulator_notification_deadline.isoformat(),
        "hours_remaining": round(item.hours_remaining, 1),
        "is_overdue": item.is_overdue,
        "data_subject_notification_required": item.requirement.data_subject_notification_required,
    }


# ═══════════════════════════════════════════════════════════════════════════
# INCIDENT ENDPOINTS
# ═══════════════════════════════════════════════════════════════════════════


@router.post("", response_model=dict, status_code=status.HTTP_201_CREATED)
async def report_incident(
    request: IncidentDraft,
    store: IncidentStore = Depends(get_store),
):
    """
    Report a data breach.

    The regulator deadline is counted from ``discovered_at``, so the
    returned requirement is already running.
    """
    report = store.report_incident(request)
    requirement = store.derive_requirement(report.id)

    return {
        "incident": report.model_dump(mode="json"),
        "requirement": requirement.model_dump(mode="json"),
    }


@router.get("")
async def list_incidents(
    status_filter: IncidentStatus | None = Query(None, alias="status"),
    q: str | None = Query(None, description="Free-text search"),
    sort_by: str = Query("discovered_at"),
    descending: bool = Query(True),
    store: IncidentStore = Depends(get_store),
    monitor: DeadlineMonitor = Depends(get_monitor),
):
    """List incidents with optional filters."""
    try:
        reports = store.search_incidents(
            status=status_filter,
            text=q,
            sort_by=sort_by,
            descending=descending,
        )
    except ValueError as e:
        raise _invalid(e)

    return {
        "total": len(reports),
        "incidents": [
            {
                "id": r.id,
                "title": r.title,
                "category": r.category,
                "status": r.status.value,
                "discovered_at": r.discovered_at.isoformat(),
                "deadline_status": monitor.deadline_status(r.id).value,
            }
            for r in reports
        ],
    }


@router.get("/attention")
async def list_incidents_requiring_attention(
    hours: float | None = Query(None, description="Hours threshold; defaults to configuration"),
    monitor: DeadlineMonitor = Depends(get_monitor),
):
    """Assessed, unnotified incidents whose deadline is near or missed, most urgent first."""
    items = monitor.find_incidents_requiring_attention(hours)
    return {
        "total": len(items),
        "overdue": len([i for i in items if i.is_overdue]),
        "incidents": [_attention_entry(i) for i in items],
    }


@router.get("/metrics")
async def get_breach_metrics(
    monitor: DeadlineMonitor = Depends(get_monitor),
):
    """Breach metrics for a compliance dashboard."""
    return {
        **monitor.get_metrics(),
        "alerts": monitor.get_alert_summary(),
    }


@router.delete("")
async def clear_incidents(
    store: IncidentStore = Depends(get_store),
    monitor: DeadlineMonitor = Depends(get_monitor),
):
    """Remove every incident, assessment and notification, and forget sent alerts."""
    counts = {
        "incidents": len(store.incidents),
        "assessments": len(store.assessments),
        "notifications": len(store.notifications),
    }
    store.clear_all()
    counts["alerts"] = monitor.reset_alerts()
    return {"cleared": counts}


@router.get("/{incident_id}")
async def get_incident(
    incident_id: str,
    store: IncidentStore = Depends(get_store),
):
    """Get incident details with its assessment and notification."""
    report = store.get_incident(incident_id)
    if report is None:
        raise _not_found("Incident")

    assessment = store.get_assessment_for_incident(incident_id)
    notification = store.get_notification_for_incident(incident_id)

    return {
        "incident": report.model_dump(mode="json"),
        "assessment": assessment.model_dump(mode="json") if assessment else None,
        "notification": notification.model_dump(mode="json") if notification else None,
    }


@router.patch("/{incident_id}")
async def update_incident(
    incident_id: str,
    request: IncidentUpdateRequest,
    store: IncidentStore = Depends(get_store),
):
    """Update fields of an incident report."""
    try:
        report = store.update_incident(incident_id, **request.model_dump(exclude_unset=True))
    except ValueError as e:
        raise _invalid(e)
    if report is None:
        raise _not_found("Incident")

    return report.model_dump(mode="json")


# ═══════════════════════════════════════════════════════════════════════════
# ASSESSMENT ENDPOINTS
# ═══════════════════════════════════════════════════════════════════════════


@router.put("/{incident_id}/assessment")
async def record_assessment(
    incident_id: str,
    request: AssessmentRequest,
    store: IncidentStore = Depends(get_store),
):
    """
    Create or update the incident's risk assessment.

    Returns the assessment together with the requirement it now implies.
    """
    try:
        assessment = store.record_assessment(incident_id, request.model_dump(exclude_unset=True))
    except ValueError as e:
        raise _invalid(e)
    if assessment is None:
        raise _not_found("Incident")

    return {
        "assessment": assessment.model_dump(mode="json"),
        "requirement": store.derive_requirement(incident_id).model_dump(mode="json"),
    }


@router.get("/{incident_id}/assessment")
async def get_assessment(
    incident_id: str,
    store: IncidentStore = Depends(get_store),
):
    """Get the incident's risk assessment."""
    assessment = store.get_assessment_for_incident(incident_id)
    if assessment is None:
        raise _not_found("Assessment")
    return assessment.model_dump(mode="json")


# ═══════════════════════════════════════════════════════════════════════════
# NOTIFICATION ENDPOINTS
# ═══════════════════════════════════════════════════════════════════════════


@router.put("/{incident_id}/notification")
async def record_notification(
    incident_id: str,
    request: NotificationRequest,
    store: IncidentStore = Depends(get_store),
    monitor: DeadlineMonitor = Depends(get_monitor),
):
    """Record that the regulator has been notified."""
    try:
        notification = store.record_notification(incident_id, request.model_dump(exclude_unset=True))
    except ValueError as e:
        raise _invalid(e)
    if notification is None:
        raise _not_found("Incident")

    monitor.clear_sent_alerts_for_incident(incident_id)
    return notification.model_dump(mode="json")


@router.get("/{incident_id}/notification")
async def get_notification(
    incident_id: str,
    store: IncidentStore = Depends(get_store),
):
    """Get the incident's regulatory notification."""
    notification = store.get_notification_for_incident(incident_id)
    if notification is None:
        raise _not_found("Notification")
    return notification.model_dump(mode="json")


@router.post("/{incident_id}/notification/follow-ups", status_code=status.HTTP_201_CREATED)
async def add_follow_up(
    incident_id: str,
    request: FollowUp,
    store: IncidentStore = Depends(get_store),
):
    """Append regulator correspondence to the notification."""
    notification = store.add_follow_up(incident_id, request)
    if notification is None:
        raise _not_found("Notification")
    return notification.model_dump(mode="json")


# ═══════════════════════════════════════════════════════════════════════════
# REQUIREMENT ENDPOINTS
# ═══════════════════════════════════════════════════════════════════════════


@router.get("/{incident_id}/requirement")
async def get_requirement(
    incident_id: str,
    store: IncidentStore = Depends(get_store),
):
    """Notification requirement derived from the incident's current state."""
    requirement = store.derive_requirement(incident_id)
    if requirement is None:
        raise _not_found("Incident")
    return requirement.model_dump(mode="json")


@router.get("/{incident_id}/deadline-status")
async def get_deadline_status(
    incident_id: str,
    monitor: DeadlineMonitor = Depends(get_monitor),
):
    """Deadline state of the incident's regulator notification."""
    deadline_status = monitor.deadline_status(incident_id)
    if deadline_status is None:
        raise _not_found("Incident")

    requirement = monitor.store.derive_requirement(incident_id)
    return {
        "incident_id": incident_id,
        "deadline_status": deadline_status.value,
        "deadline": requirement.regulator_notification_deadline.isoformat(),
        "hours_remaining": round(monitor.hours_until(requirement.regulator_notification_deadline), 1),
    }


# ═══════════════════════════════════════════════════════════════════════════
# CATEGORY ENDPOINTS
# ═══════════════════════════════════════════════════════════════════════════


@categories_router.get("")
async def list_categories(
    config: BreachWatchConfig = Depends(get_config),
):
    """Breach categories offered to reporters."""
    return {
        "categories": [c.model_dump(mode="json") for c in config.categories_list],
    }
