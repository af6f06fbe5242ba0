"""
BreachWatch - Core Models

Pydantic models for incident reports, risk assessments, regulatory
notifications and the derived notification requirement.

Input models (``IncidentDraft``, ``AssessmentInput``, ``NotificationInput``)
carry what a caller supplies; record models add the identifiers and
timestamps assigned by the incident store. Validation happens here, at the
store boundary, so the classifier can stay total over valid records.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Annotated
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from breachwatch.core.enums import (
    FollowUpDirection,
    IncidentStatus,
    SeverityLevel,
    SubmissionMethod,
)
from breachwatch.core.scoring import risk_level_for_score, weighted_risk_score


def generate_id(prefix: str) -> str:
    """Generate a unique identifier with a readable prefix."""
    return f"{prefix}_{uuid4().hex}"


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


def ensure_utc(value: datetime | None) -> datetime | None:
    """Interpret naive datetimes as UTC and convert aware ones to UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


DimensionScore = Annotated[int, Field(ge=1, le=5)]


# ═══════════════════════════════════════════════════════════════════════════
# BASE MODELS
# ═══════════════════════════════════════════════════════════════════════════


class BreachModel(BaseModel):
    """Base model for all BreachWatch entities."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")


class Reporter(BreachModel):
    """Person who reported the breach internally."""
    name: str
    email: str
    department: str = ""
    phone: str | None = None


class Assessor(BreachModel):
    """Person who conducted a risk assessment."""
    name: str
    role: str
    email: str


class RegulatorContact(BreachModel):
    """Contact person at the regulator."""
    name: str
    email: str
    phone: str | None = None


class Attachment(BreachModel):
    """Descriptor of a file attached to a report or notification."""
    id: str = Field(default_factory=lambda: generate_id("attachment"))
    name: str
    type: str = ""
    url: str = ""
    added_at: datetime | None = None

    @field_validator("added_at")
    @classmethod
    def _as_utc(cls, value: datetime | None) -> datetime | None:
        return ensure_utc(value)


class FollowUp(BreachModel):
    """A single exchange with the regulator after the initial notification."""
    timestamp: datetime = Field(default_factory=utc_now)
    direction: FollowUpDirection
    content: str
    attachments: list[Attachment] = Field(default_factory=list)

    @field_validator("timestamp")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)


# ═══════════════════════════════════════════════════════════════════════════
# INCIDENT REPORTS
# ═══════════════════════════════════════════════════════════════════════════


class IncidentDraft(BreachModel):
    """Caller-supplied content of a breach report."""
    title: str = Field(min_length=1)
    description: str = ""
    category: str = "other"

    # Timeline
    discovered_at: datetime
    occurred_at: datetime | None = Field(
        default=None,
        description="When the breach actually happened, if known",
    )

    reporter: Reporter

    # Scope
    affected_systems: list[str] = Field(default_factory=list)
    data_types: list[str] = Field(
        default_factory=list,
        description="Data category tags, e.g. 'financial', 'health'",
    )
    estimated_affected_subjects: int | None = Field(default=None, ge=0)

    # Response
    status: IncidentStatus = IncidentStatus.ONGOING
    remediation_notes: str | None = None
    attachments: list[Attachment] = Field(default_factory=list)

    @field_validator("discovered_at", "occurred_at")
    @classmethod
    def _timeline_as_utc(cls, value: datetime | None) -> datetime | None:
        return ensure_utc(value)

    @model_validator(mode="after")
    def check_timeline(self) -> IncidentDraft:
        """A breach cannot be discovered before it occurred."""
        if self.occurred_at is not None and self.occurred_at > self.discovered_at:
            raise ValueError("occurred_at must not be later than discovered_at")
        return self


class IncidentReport(IncidentDraft):
    """A stored breach report."""
    id: str = Field(default_factory=lambda: generate_id("breach"))
    reported_at: datetime = Field(default_factory=utc_now)

    @field_validator("reported_at")
    @classmethod
    def _reported_as_utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)


# ═══════════════════════════════════════════════════════════════════════════
# RISK ASSESSMENTS
# ═══════════════════════════════════════════════════════════════════════════


class AssessmentInput(BreachModel):
    """Caller-supplied content of a risk assessment."""
    assessor: Assessor

    # Impact on the data (1-5)
    confidentiality_impact: DimensionScore
    integrity_impact: DimensionScore
    availability_impact: DimensionScore

    # Harm to data subjects (1-5)
    harm_likelihood: DimensionScore
    harm_severity: DimensionScore

    # Derived from the dimensions when omitted
    risk_level: SeverityLevel | None = None

    risks_to_rights_and_freedoms: bool = False
    high_risks_to_rights_and_freedoms: bool = False
    justification: str = ""


class RiskAssessment(AssessmentInput):
    """
    A stored risk assessment.

    At most one exists per incident. ``overall_risk_score`` is always
    recomputed from the dimensions; ``risk_level`` is derived from it unless
    the assessor set one explicitly.
    """
    id: str = Field(default_factory=lambda: generate_id("assessment"))
    incident_id: str
    assessed_at: datetime = Field(default_factory=utc_now)
    overall_risk_score: float = 0.0

    @field_validator("assessed_at")
    @classmethod
    def _assessed_as_utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    @model_validator(mode="after")
    def derive_score(self) -> RiskAssessment:
        """Calculate the weighted score and fill in the risk level."""
        dimensions = {
            "confidentiality_impact": self.confidentiality_impact,
            "integrity_impact": self.integrity_impact,
            "availability_impact": self.availability_impact,
            "harm_likelihood": self.harm_likelihood,
            "harm_severity": self.harm_severity,
        }
        self.overall_risk_score = weighted_risk_score(**dimensions)
        if self.risk_level is None:
            self.risk_level = risk_level_for_score(weighted_risk_score(**dimensions, ndigits=None))
        return self


# ═══════════════════════════════════════════════════════════════════════════
# REGULATORY NOTIFICATIONS
# ═══════════════════════════════════════════════════════════════════════════


class NotificationInput(BreachModel):
    """Caller-supplied content of a regulatory notification."""
    method: SubmissionMethod
    reference_number: str | None = None
    regulator_contact: RegulatorContact | None = None
    content: str = ""
    attachments: list[Attachment] = Field(default_factory=list)
    follow_ups: list[FollowUp] = Field(default_factory=list)


class RegulatoryNotification(NotificationInput):
    """
    A notification sent to the regulator.

    Its presence means the notification obligation for the incident is
    discharged.
    """
    id: str = Field(default_factory=lambda: generate_id("notification"))
    incident_id: str
    sent_at: datetime = Field(default_factory=utc_now)

    @field_validator("sent_at")
    @classmethod
    def _sent_as_utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)


# ═══════════════════════════════════════════════════════════════════════════
# DERIVED VALUES
# ═══════════════════════════════════════════════════════════════════════════


class NotificationRequirement(BreachModel):
    """
    Notification obligation derived from an incident and its assessment.

    Never stored; always recomputed so it reflects the latest state.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    regulator_notification_required: bool
    regulator_notification_deadline: datetime
    data_subject_notification_required: bool
    justification: str
    severity_level: SeverityLevel


class StoreSnapshot(BreachModel):
    """Serializable copy of an incident store for persistence adapters."""
    incidents: list[IncidentReport] = Field(default_factory=list)
    assessments: list[RiskAssessment] = Field(default_factory=list)
    notifications: list[RegulatoryNotification] = Field(default_factory=list)
    taken_at: datetime = Field(default_factory=utc_now)
