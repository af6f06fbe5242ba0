"""
BreachWatch - Deadline Monitor

Surfaces incidents whose regulator notification is due soon or already
late, and escalates them through alert levels.

The monitor never mutates the store and is safe to run on any cadence,
from a scheduler or on demand.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

import structlog

from breachwatch.breach.requirements import derive_requirement
from breachwatch.breach.store import Clock, IncidentStore, get_incident_store
from breachwatch.core.config import BreachWatchConfig, get_breachwatch_config
from breachwatch.core.enums import AlertLevel, DeadlineStatus, IncidentStatus, SeverityLevel
from breachwatch.core.models import (
    IncidentReport,
    NotificationRequirement,
    RiskAssessment,
    ensure_utc,
)
from breachwatch.monitoring.logging import log_duration

logger = structlog.get_logger(__name__)

_HOUR = timedelta(hours=1)


@dataclass(frozen=True)
class AttentionItem:
    """An incident whose notification deadline needs attention."""
    report: IncidentReport
    assessment: RiskAssessment
    requirement: NotificationRequirement
    hours_remaining: float

    @property
    def incident_id(self) -> str:
        return self.report.id

    @property
    def is_overdue(self) -> bool:
        return self.hours_remaining <= 0


@dataclass
class DeadlineAlert:
    """Alert for an approaching or missed deadline."""
    incident_id: str
    deadline: datetime
    alert_level: AlertLevel
    hours_remaining: float
    severity_level: SeverityLevel
    alert_sent_at: datetime | None = None
    data_subject_notification_required: bool = field(default=False)


AlertCallback = Callable[[DeadlineAlert], None]


class DeadlineMonitor:
    """
    Query and alerting layer over an incident store.

    Only incidents with a recorded risk assessment are considered for
    attention and alerts: without an assessment urgency cannot be
    estimated responsibly, so such incidents are left out rather than
    defaulted.
    """

    def __init__(
        self,
        store: IncidentStore,
        config: BreachWatchConfig | None = None,
        clock: Clock | None = None,
        alert_callback: AlertCallback | None = None,
    ):
        """
        Initialize the monitor.

        Args:
            store: Store to scan.
            config: Thresholds; defaults to the cached configuration.
            clock: Time source; defaults to the store's clock.
            alert_callback: Optional function called once per new alert.
        """
        self.store = store
        self.config = config or get_breachwatch_config()
        self._clock = clock or store.clock
        self._alert_callback = alert_callback

        # Track sent alerts to prevent duplicates: (incident_id, alert_level)
        self._sent_alerts: set[tuple[str, AlertLevel]] = set()

    def now(self) -> datetime:
        return ensure_utc(self._clock())

    def hours_until(self, deadline: datetime, now: datetime | None = None) -> float:
        """Hours from now until ``deadline``; negative once it has passed."""
        return (deadline - (now or self.now())) / _HOUR

    # ───────────────────────────────────────────────────────────────
    # ATTENTION QUERY
    # ───────────────────────────────────────────────────────────────

    def find_incidents_requiring_attention(
        self,
        hours_threshold: float | None = None,
    ) -> list[AttentionItem]:
        """
        Find incidents needing regulator notification within the threshold.

        An incident qualifies when it has no recorded notification, has a
        risk assessment, its derived requirement says the regulator must be
        notified, and at most ``hours_threshold`` hours remain (missed
        deadlines included). Most urgent first.
        """
        if hours_threshold is None:
            hours_threshold = self.config.attention_threshold_hours

        now = self.now()
        items = []

        for report in self.store.incidents:
            if self.store.get_notification_for_incident(report.id) is not None:
                continue

            assessment = self.store.get_assessment_for_incident(report.id)
            if assessment is None:
                continue

            requirement = derive_requirement(report, assessment)
            if not requirement.regulator_notification_required:
                continue

            hours_remaining = self.hours_until(requirement.regulator_notification_deadline, now)
            if hours_remaining <= hours_threshold:
                items.append(AttentionItem(
                    report=report,
                    assessment=assessment,
                    requirement=requirement,
                    hours_remaining=hours_remaining,
                ))

        items.sort(key=lambda item: item.hours_remaining)
        return items

    def deadline_status(self, incident_id: str) -> DeadlineStatus | None:
        """
        Notification deadline state of one incident, for display.

        Unlike the attention query this also covers unassessed incidents,
        using the report-only severity estimate.
        """
        if self.store.get_notification_for_incident(incident_id) is not None:
            return DeadlineStatus.NOTIFIED

        requirement = self.store.derive_requirement(incident_id)
        if requirement is None:
            return None
        if not requirement.regulator_notification_required:
            return DeadlineStatus.NOT_REQUIRED

        hours_remaining = self.hours_until(requirement.regulator_notification_deadline)
        if hours_remaining <= 0:
            return DeadlineStatus.OVERDUE
        if hours_remaining <= self.config.attention_threshold_hours:
            return DeadlineStatus.URGENT
        return DeadlineStatus.PENDING

    # ───────────────────────────────────────────────────────────────
    # DEADLINE ALERTING
    # ───────────────────────────────────────────────────────────────

    def alert_level_for(self, hours_remaining: float) -> AlertLevel | None:
        """Alert level for the time left, or None if no alert is due yet."""
        if hours_remaining <= 0:
            return AlertLevel.OVERDUE
        if hours_remaining <= self.config.alert_imminent_hours:
            return AlertLevel.IMMINENT
        if hours_remaining <= self.config.alert_critical_hours:
            return AlertLevel.CRITICAL
        if hours_remaining <= self.config.alert_urgent_hours:
            return AlertLevel.URGENT
        if hours_remaining <= self.config.alert_warning_hours:
            return AlertLevel.WARNING
        return None

    def get_approaching_deadlines(self) -> list[DeadlineAlert]:
        """Alerts for every incident inside the warning window, most urgent first."""
        alerts = []
        for item in self.find_incidents_requiring_attention(self.config.alert_warning_hours):
            alert_level = self.alert_level_for(item.hours_remaining)
            if alert_level is None:
                continue
            alerts.append(DeadlineAlert(
                incident_id=item.incident_id,
                deadline=item.requirement.regulator_notification_deadline,
                alert_level=alert_level,
                hours_remaining=item.hours_remaining,
                severity_level=item.requirement.severity_level,
                data_subject_notification_required=item.requirement.data_subject_notification_required,
            ))
        return alerts

    def check_and_alert_deadlines(self) -> list[DeadlineAlert]:
        """
        Check all deadlines and emit alerts for approaching/missed ones.

        Each alert level is emitted at most once per incident.

        Returns:
            List of new alerts that were emitted.
        """
        sent_alerts = []

        with log_duration(logger, "deadline_scan", level="debug", incidents=len(self.store.incidents)):
            for alert in self.get_approaching_deadlines():
                alert_key = (alert.incident_id, alert.alert_level)
                if alert_key in self._sent_alerts:
                    continue

                self._sent_alerts.add(alert_key)
                alert.alert_sent_at = self.now()

                if alert.alert_level == AlertLevel.OVERDUE:
                    logger.critical(
                        "breach_deadline_overdue",
                        incident_id=alert.incident_id,
                        deadline=alert.deadline.isoformat(),
                        hours_overdue=round(abs(alert.hours_remaining), 1),
                    )
                else:
                    logger.warning(
                        "breach_deadline_approaching",
                        incident_id=alert.incident_id,
                        deadline=alert.deadline.isoformat(),
                        hours_remaining=round(alert.hours_remaining, 1),
                        alert_level=alert.alert_level.value,
                    )

                if self._alert_callback:
                    try:
                        self._alert_callback(alert)
                    except Exception as e:
                        logger.error(
                            "deadline_alert_callback_failed",
                            incident_id=alert.incident_id,
                            error=str(e),
                        )

                sent_alerts.append(alert)

        return sent_alerts

    def set_alert_callback(self, callback: AlertCallback) -> None:
        """Set the callback invoked once per new alert."""
        self._alert_callback = callback

    def clear_sent_alerts_for_incident(self, incident_id: str) -> int:
        """
        Forget which alerts were emitted for an incident.

        Returns:
            Number of alerts cleared.
        """
        to_remove = [key for key in self._sent_alerts if key[0] == incident_id]
        for key in to_remove:
            self._sent_alerts.discard(key)
        return len(to_remove)

    def reset_alerts(self) -> int:
        """
        Forget every emitted alert, e.g. after the store was cleared.

        Returns:
            Number of alerts cleared.
        """
        cleared = len(self._sent_alerts)
        self._sent_alerts.clear()
        return cleared

    def get_alert_summary(self) -> dict[str, Any]:
        """Get summary of current deadline alert status."""
        alerts = self.get_approaching_deadlines()

        return {
            "total_alerts": len(alerts),
            "by_level": {
                level.value: len([a for a in alerts if a.alert_level == level])
                for level in AlertLevel
            },
            "alerts": [
                {
                    "incident_id": a.incident_id,
                    "deadline": a.deadline.isoformat(),
                    "alert_level": a.alert_level.value,
                    "hours_remaining": round(a.hours_remaining, 1),
                }
                for a in alerts
            ],
        }

    # ───────────────────────────────────────────────────────────────
    # METRICS
    # ───────────────────────────────────────────────────────────────

    def get_metrics(self) -> dict[str, Any]:
        """Get breach metrics for a compliance dashboard."""
        incidents = self.store.incidents
        statuses = {i.id: self.deadline_status(i.id) for i in incidents}
        severities = [self.store.derive_requirement(i.id).severity_level for i in incidents]

        return {
            "total_incidents": len(incidents),
            "by_status": {
                status.value: len([i for i in incidents if i.status == status])
                for status in IncidentStatus
            },
            "by_severity": {
                level.value: severities.count(level)
                for level in SeverityLevel
            },
            "by_deadline_status": {
                status.value: list(statuses.values()).count(status)
                for status in DeadlineStatus
            },
            "assessed": len(self.store.assessments),
            "notified": len(self.store.notifications),
            "requiring_attention": len(self.find_incidents_requiring_attention()),
            "overdue_notifications": list(statuses.values()).count(DeadlineStatus.OVERDUE),
            "total_subjects_affected": sum(i.estimated_affected_subjects or 0 for i in incidents),
        }


# Global monitor instance
_deadline_monitor: DeadlineMonitor | None = None


def get_deadline_monitor() -> DeadlineMonitor:
    """Get the global deadline monitor over the global incident store."""
    global _deadline_monitor
    if _deadline_monitor is None:
        _deadline_monitor = DeadlineMonitor(get_incident_store())
    return _deadline_monitor
