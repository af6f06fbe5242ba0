"""
BreachWatch - Incident Store

Authoritative in-memory collection of incident reports, risk assessments
and regulatory notifications.

- Identifier and timestamp assignment
- Merge-or-create for assessments and notifications (one per incident)
- Lookups by identifier and by owning incident
- Search, snapshot and rehydration for presentation and persistence adapters

The store is synchronous and not thread-safe: callers running concurrent
writers must serialize ``report_incident``, ``record_assessment`` and
``record_notification`` calls per incident.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from datetime import datetime
from typing import Any

import structlog
from pydantic import BaseModel

from breachwatch.breach.requirements import derive_requirement
from breachwatch.core.enums import IncidentStatus
from breachwatch.core.models import (
    AssessmentInput,
    FollowUp,
    IncidentDraft,
    IncidentReport,
    NotificationInput,
    NotificationRequirement,
    RegulatoryNotification,
    RiskAssessment,
    StoreSnapshot,
    ensure_utc,
    utc_now,
)
from breachwatch.core.scoring import RISK_DIMENSIONS

logger = structlog.get_logger(__name__)

Clock = Callable[[], datetime]
EventHandler = Callable[[Any], None]

# Fields the store assigns; callers may never supply or overwrite them
_INCIDENT_MANAGED_FIELDS = frozenset({"id", "reported_at"})
_ASSESSMENT_MANAGED_FIELDS = frozenset({"id", "incident_id", "assessed_at", "overall_risk_score"})
_NOTIFICATION_MANAGED_FIELDS = frozenset({"id", "incident_id", "sent_at"})
_DIMENSION_FIELDS = frozenset(RISK_DIMENSIONS)
_DRAFT_FIELDS = frozenset(IncidentDraft.model_fields)


def _as_changes(data: BaseModel | Mapping[str, Any]) -> dict[str, Any]:
    """Fields explicitly provided by the caller."""
    if isinstance(data, BaseModel):
        return data.model_dump(exclude_unset=True)
    return dict(data)


def _reject_managed(changes: Mapping[str, Any], managed: frozenset[str]) -> None:
    forbidden = managed & changes.keys()
    if forbidden:
        raise ValueError(f"Store-managed fields cannot be set: {', '.join(sorted(forbidden))}")


class IncidentStore:
    """
    Process-local store for breach incidents.

    Assessments and notifications are keyed by incident id, so there can
    never be more than one of each per incident.
    """

    def __init__(self, clock: Clock | None = None):
        """
        Initialize an empty store.

        Args:
            clock: Callable returning the current time. Every timestamp the
                   store assigns, and every deadline comparison made by a
                   monitor over it, reads from this one source.
        """
        self.clock: Clock = clock or utc_now

        self._incidents: dict[str, IncidentReport] = {}
        self._assessments: dict[str, RiskAssessment] = {}  # incident_id -> assessment
        self._notifications: dict[str, RegulatoryNotification] = {}  # incident_id -> notification

        self._event_handlers: dict[str, list[EventHandler]] = {}

    def now(self) -> datetime:
        """Current time according to the store's clock."""
        return ensure_utc(self.clock())

    @property
    def incidents(self) -> list[IncidentReport]:
        """All incident reports in reporting order."""
        return list(self._incidents.values())

    @property
    def assessments(self) -> list[RiskAssessment]:
        return list(self._assessments.values())

    @property
    def notifications(self) -> list[RegulatoryNotification]:
        return list(self._notifications.values())

    # ───────────────────────────────────────────────────────────────
    # INCIDENT REPORTS
    # ───────────────────────────────────────────────────────────────

    def report_incident(self, data: IncidentDraft | Mapping[str, Any]) -> IncidentReport:
        """
        Record a newly reported breach.

        Assigns a fresh identifier and report timestamp. Never touches an
        existing report, even when handed a copy of one.
        """
        if isinstance(data, BaseModel):
            # Stored reports are drafts too; only their draft fields are reused
            data = data.model_dump(include=set(_DRAFT_FIELDS))
        draft = IncidentDraft.model_validate(data)
        report = IncidentReport.model_validate({
            **draft.model_dump(),
            "reported_at": self.now(),
        })

        self._incidents[report.id] = report

        logger.critical(
            "incident_reported",
            incident_id=report.id,
            category=report.category,
            status=report.status.value,
            discovered_at=report.discovered_at.isoformat(),
            estimated_affected_subjects=report.estimated_affected_subjects,
        )

        self._notify_handlers("incident_reported", report)
        return report

    def update_incident(self, incident_id: str, **changes: Any) -> IncidentReport | None:
        """
        Merge field changes into an existing report.

        Returns None if the incident is unknown. The merged report is
        validated again, so a change that breaks the timeline is rejected.
        """
        _reject_managed(changes, _INCIDENT_MANAGED_FIELDS)

        report = self._incidents.get(incident_id)
        if report is None:
            logger.warning("incident_not_found", incident_id=incident_id, operation="update")
            return None

        updated = IncidentReport.model_validate({**report.model_dump(), **changes})
        self._incidents[incident_id] = updated

        logger.info(
            "incident_updated",
            incident_id=incident_id,
            fields=sorted(changes),
            old_status=report.status.value,
            new_status=updated.status.value,
        )

        self._notify_handlers("incident_updated", updated)
        return updated

    def get_incident(self, incident_id: str) -> IncidentReport | None:
        """Get an incident report by id."""
        return self._incidents.get(incident_id)

    def search_incidents(
        self,
        status: IncidentStatus | None = None,
        text: str | None = None,
        sort_by: str = "discovered_at",
        descending: bool = True,
    ) -> list[IncidentReport]:
        """
        Filter and sort incident reports.

        ``text`` matches title, description, affected systems and data types
        case-insensitively. ``sort_by`` is one of discovered_at, title,
        status or risk_level; unassessed incidents rank below every level.
        """
        sort_keys: dict[str, Callable[[IncidentReport], Any]] = {
            "discovered_at": lambda r: r.discovered_at,
            "title": lambda r: r.title.casefold(),
            "status": lambda r: r.status.value,
            "risk_level": self._risk_rank,
        }
        if sort_by not in sort_keys:
            raise ValueError(f"Unsupported sort field: {sort_by}")

        results = self.incidents

        if status is not None:
            results = [r for r in results if r.status == status]

        if text:
            term = text.casefold()
            results = [
                r for r in results
                if term in r.title.casefold()
                or term in r.description.casefold()
                or any(term in system.casefold() for system in r.affected_systems)
                or any(term in data_type.casefold() for data_type in r.data_types)
            ]

        return sorted(results, key=sort_keys[sort_by], reverse=descending)

    def _risk_rank(self, report: IncidentReport) -> int:
        assessment = self._assessments.get(report.id)
        if assessment is None:
            return -1
        return assessment.risk_level.rank

    # ───────────────────────────────────────────────────────────────
    # RISK ASSESSMENTS
    # ───────────────────────────────────────────────────────────────

    def record_assessment(
        self,
        incident_id: str,
        data: AssessmentInput | Mapping[str, Any],
    ) -> RiskAssessment | None:
        """
        Create or update the risk assessment for an incident.

        A second assessment for the same incident is merged into the first,
        keeping its id and refreshing ``assessed_at``. When dimensions change
        without an explicit risk level, the level is derived again.
        Returns None if the incident is unknown.
        """
        changes = _as_changes(data)
        _reject_managed(changes, _ASSESSMENT_MANAGED_FIELDS)

        if incident_id not in self._incidents:
            logger.warning("incident_not_found", incident_id=incident_id, operation="assess")
            return None

        existing = self._assessments.get(incident_id)
        if existing is not None:
            merged = {**existing.model_dump(), **changes, "assessed_at": self.now()}
            if "risk_level" not in changes and _DIMENSION_FIELDS & changes.keys():
                merged["risk_level"] = None
            assessment = RiskAssessment.model_validate(merged)
        else:
            draft = AssessmentInput.model_validate(changes)
            assessment = RiskAssessment.model_validate({
                **draft.model_dump(),
                "incident_id": incident_id,
                "assessed_at": self.now(),
            })

        self._assessments[incident_id] = assessment

        logger.info(
            "assessment_recorded",
            incident_id=incident_id,
            assessment_id=assessment.id,
            updated=existing is not None,
            risk_level=assessment.risk_level.value,
            overall_risk_score=assessment.overall_risk_score,
            high_risk=assessment.high_risks_to_rights_and_freedoms,
        )

        self._notify_handlers("assessment_recorded", assessment)
        return assessment

    def get_assessment(self, assessment_id: str) -> RiskAssessment | None:
        """Get a risk assessment by its own id."""
        for assessment in self._assessments.values():
            if assessment.id == assessment_id:
                return assessment
        return None

    def get_assessment_for_incident(self, incident_id: str) -> RiskAssessment | None:
        """Get the risk assessment belonging to an incident."""
        return self._assessments.get(incident_id)

    # ───────────────────────────────────────────────────────────────
    # REGULATORY NOTIFICATIONS
    # ───────────────────────────────────────────────────────────────

    def record_notification(
        self,
        incident_id: str,
        data: NotificationInput | Mapping[str, Any],
    ) -> RegulatoryNotification | None:
        """
        Record that the regulator has been notified about an incident.

        Re-sending merges into the existing record and refreshes ``sent_at``.
        Returns None if the incident is unknown.
        """
        changes = _as_changes(data)
        _reject_managed(changes, _NOTIFICATION_MANAGED_FIELDS)

        if incident_id not in self._incidents:
            logger.warning("incident_not_found", incident_id=incident_id, operation="notify")
            return None

        existing = self._notifications.get(incident_id)
        if existing is not None:
            notification = RegulatoryNotification.model_validate({
                **existing.model_dump(),
                **changes,
                "sent_at": self.now(),
            })
        else:
            draft = NotificationInput.model_validate(changes)
            notification = RegulatoryNotification.model_validate({
                **draft.model_dump(),
                "incident_id": incident_id,
                "sent_at": self.now(),
            })

        self._notifications[incident_id] = notification

        logger.info(
            "notification_recorded",
            incident_id=incident_id,
            notification_id=notification.id,
            updated=existing is not None,
            method=notification.method.value,
            reference_number=notification.reference_number,
        )

        self._notify_handlers("notification_recorded", notification)
        return notification

    def add_follow_up(
        self,
        incident_id: str,
        follow_up: FollowUp | Mapping[str, Any],
    ) -> RegulatoryNotification | None:
        """Append regulator correspondence to an incident's notification."""
        notification = self._notifications.get(incident_id)
        if notification is None:
            logger.warning("notification_not_found", incident_id=incident_id, operation="follow_up")
            return None

        entry = follow_up if isinstance(follow_up, FollowUp) else FollowUp.model_validate(follow_up)
        updated = notification.model_copy(update={"follow_ups": [*notification.follow_ups, entry]})
        self._notifications[incident_id] = updated

        logger.info(
            "notification_follow_up_added",
            incident_id=incident_id,
            direction=entry.direction.value,
            follow_ups=len(updated.follow_ups),
        )
        return updated

    def get_notification(self, notification_id: str) -> RegulatoryNotification | None:
        """Get a regulatory notification by its own id."""
        for notification in self._notifications.values():
            if notification.id == notification_id:
                return notification
        return None

    def get_notification_for_incident(self, incident_id: str) -> RegulatoryNotification | None:
        """Get the regulatory notification belonging to an incident."""
        return self._notifications.get(incident_id)

    # ───────────────────────────────────────────────────────────────
    # REQUIREMENTS
    # ───────────────────────────────────────────────────────────────

    def derive_requirement(self, incident_id: str) -> NotificationRequirement | None:
        """Derive the notification requirement from the freshest stored state."""
        report = self._incidents.get(incident_id)
        if report is None:
            return None
        return derive_requirement(report, self._assessments.get(incident_id))

    # ───────────────────────────────────────────────────────────────
    # RESET / PERSISTENCE HOOKS
    # ───────────────────────────────────────────────────────────────

    def clear_all(self) -> None:
        """Remove every incident, assessment and notification. Irreversible."""
        counts = {
            "incidents": len(self._incidents),
            "assessments": len(self._assessments),
            "notifications": len(self._notifications),
        }
        self._incidents.clear()
        self._assessments.clear()
        self._notifications.clear()

        logger.warning("breach_store_cleared", **counts)
        self._notify_handlers("store_cleared", counts)

    def snapshot(self) -> StoreSnapshot:
        """Serializable copy of all three entity sets."""
        return StoreSnapshot(
            incidents=self.incidents,
            assessments=self.assessments,
            notifications=self.notifications,
            taken_at=self.now(),
        )

    @classmethod
    def from_snapshot(
        cls,
        snapshot: StoreSnapshot | Mapping[str, Any],
        clock: Clock | None = None,
    ) -> IncidentStore:
        """
        Rehydrate a store from a snapshot.

        Assessments and notifications whose incident is missing are dropped;
        for duplicates the last record wins.
        """
        if not isinstance(snapshot, StoreSnapshot):
            snapshot = StoreSnapshot.model_validate(snapshot)

        store = cls(clock=clock)
        for report in snapshot.incidents:
            store._incidents[report.id] = report

        dropped = 0
        for assessment in snapshot.assessments:
            if assessment.incident_id in store._incidents:
                store._assessments[assessment.incident_id] = assessment
            else:
                dropped += 1
        for notification in snapshot.notifications:
            if notification.incident_id in store._incidents:
                store._notifications[notification.incident_id] = notification
            else:
                dropped += 1

        logger.info(
            "breach_store_restored",
            incidents=len(store._incidents),
            assessments=len(store._assessments),
            notifications=len(store._notifications),
            orphans_dropped=dropped,
        )
        return store

    # ───────────────────────────────────────────────────────────────
    # EVENT HANDLERS
    # ───────────────────────────────────────────────────────────────

    def register_handler(self, event_type: str, handler: EventHandler) -> None:
        """
        Register a callback for a store event.

        Events: incident_reported, incident_updated, assessment_recorded,
        notification_recorded, store_cleared.
        """
        self._event_handlers.setdefault(event_type, []).append(handler)

    def _notify_handlers(self, event_type: str, data: Any) -> None:
        for handler in self._event_handlers.get(event_type, []):
            try:
                handler(data)
            except Exception as e:
                logger.error(
                    "handler_error",
                    event_type=event_type,
                    error=str(e),
                )


# Global store instance
_incident_store: IncidentStore | None = None


def get_incident_store() -> IncidentStore:
    """Get the global incident store used by the HTTP surface."""
    global _incident_store
    if _incident_store is None:
        _incident_store = IncidentStore()
    return _incident_store
