"""
Tests for breachwatch.api.routes module.

Exercises the breach endpoints end to end against a real store and
monitor wired in through dependency overrides.
"""

from __future__ import annotations

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from breachwatch.api.routes import get_config, get_monitor, get_store
from breachwatch.server import create_app
from tests.helpers import T, make_assessment, make_draft

PREFIX = "/api/v1/breaches"


def _json(data):
    """Render datetimes in a payload as ISO strings."""
    return {
        k: v.isoformat() if hasattr(v, "isoformat") else v
        for k, v in data.items()
    }


@pytest.fixture
def client(store, monitor, config):
    app = create_app(config)
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_monitor] = lambda: monitor
    app.dependency_overrides[get_config] = lambda: config
    return TestClient(app)


@pytest.fixture
def incident_id(client):
    response = client.post(PREFIX, json=_json(make_draft(status="ongoing")))
    return response.json()["incident"]["id"]


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestIncidentEndpoints:
    """Tests for incident intake and lookup."""

    def test_report_incident(self, client):
        """Test that reporting returns the incident and its requirement."""
        response = client.post(PREFIX, json=_json(make_draft(status="ongoing")))

        assert response.status_code == 201
        data = response.json()
        assert data["incident"]["id"].startswith("breach_")
        assert data["requirement"]["severity_level"] == "medium"
        assert data["requirement"]["regulator_notification_required"] is True

    def test_report_invalid_timeline(self, client):
        payload = _json(make_draft(occurred_at=T + timedelta(hours=1)))
        response = client.post(PREFIX, json=payload)
        assert response.status_code == 422

    def test_get_incident(self, client, incident_id):
        response = client.get(f"{PREFIX}/{incident_id}")

        assert response.status_code == 200
        data = response.json()
        assert data["incident"]["id"] == incident_id
        assert data["assessment"] is None
        assert data["notification"] is None

    def test_get_incident_not_found(self, client):
        response = client.get(f"{PREFIX}/breach_missing")
        assert response.status_code == 404

    def test_update_incident(self, client, incident_id):
        response = client.patch(f"{PREFIX}/{incident_id}", json={"status": "contained"})

        assert response.status_code == 200
        assert response.json()["status"] == "contained"

    def test_update_unknown_field(self, client, incident_id):
        response = client.patch(f"{PREFIX}/{incident_id}", json={"severity": "high"})
        assert response.status_code == 422

    def test_update_not_found(self, client):
        response = client.patch(f"{PREFIX}/breach_missing", json={"title": "x"})
        assert response.status_code == 404

    def test_list_incidents(self, client, incident_id):
        client.post(PREFIX, json=_json(make_draft(title="Lost phone")))

        response = client.get(PREFIX, params={"q": "phone"})

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["incidents"][0]["title"] == "Lost phone"
        assert data["incidents"][0]["deadline_status"] == "not_required"

    def test_list_by_status(self, client, incident_id):
        client.post(PREFIX, json=_json(make_draft()))

        response = client.get(PREFIX, params={"status": "ongoing"})
        assert [i["id"] for i in response.json()["incidents"]] == [incident_id]

    def test_list_bad_sort(self, client):
        response = client.get(PREFIX, params={"sort_by": "severity"})
        assert response.status_code == 422

    def test_clear_all(self, client, store, incident_id):
        response = client.delete(PREFIX)

        assert response.status_code == 200
        assert response.json()["cleared"]["incidents"] == 1
        assert store.incidents == []

    def test_clear_all_forgets_sent_alerts(self, client, store, monitor):
        report = store.report_incident(make_draft(discovered_at=T - timedelta(hours=80)))
        store.record_assessment(report.id, make_assessment())
        assert len(monitor.check_and_alert_deadlines()) == 1

        response = client.delete(PREFIX)

        assert response.status_code == 200
        assert response.json()["cleared"]["alerts"] == 1
        assert monitor.reset_alerts() == 0


class TestAssessmentEndpoints:
    """Tests for risk assessment endpoints."""

    def test_record_assessment(self, client, incident_id):
        response = client.put(f"{PREFIX}/{incident_id}/assessment", json=make_assessment())

        assert response.status_code == 200
        data = response.json()
        assert data["assessment"]["overall_risk_score"] == 2.8
        assert data["assessment"]["risk_level"] == "medium"
        assert data["requirement"]["regulator_notification_required"] is True

    def test_partial_reassessment(self, client, store, incident_id):
        client.put(f"{PREFIX}/{incident_id}/assessment", json=make_assessment())
        response = client.put(
            f"{PREFIX}/{incident_id}/assessment",
            json={"high_risks_to_rights_and_freedoms": True},
        )

        assert response.status_code == 200
        assert response.json()["requirement"]["data_subject_notification_required"] is True
        assert len(store.assessments) == 1

    def test_out_of_range_score(self, client, incident_id):
        response = client.put(
            f"{PREFIX}/{incident_id}/assessment",
            json=make_assessment(harm_severity=9),
        )
        assert response.status_code == 422

    def test_assess_unknown_incident(self, client):
        response = client.put(f"{PREFIX}/breach_missing/assessment", json=make_assessment())
        assert response.status_code == 404

    def test_get_assessment(self, client, incident_id):
        assert client.get(f"{PREFIX}/{incident_id}/assessment").status_code == 404

        client.put(f"{PREFIX}/{incident_id}/assessment", json=make_assessment())
        response = client.get(f"{PREFIX}/{incident_id}/assessment")

        assert response.status_code == 200
        assert response.json()["incident_id"] == incident_id


class TestNotificationEndpoints:
    """Tests for regulatory notification endpoints."""

    def test_record_and_follow_up(self, client, incident_id):
        response = client.put(
            f"{PREFIX}/{incident_id}/notification",
            json={"method": "portal", "reference_number": "REF-9"},
        )
        assert response.status_code == 200
        assert response.json()["reference_number"] == "REF-9"

        response = client.post(
            f"{PREFIX}/{incident_id}/notification/follow-ups",
            json={"direction": "received", "content": "Acknowledged"},
        )
        assert response.status_code == 201
        assert response.json()["follow_ups"][0]["content"] == "Acknowledged"

        response = client.get(f"{PREFIX}/{incident_id}/deadline-status")
        assert response.json()["deadline_status"] == "notified"

    def test_follow_up_without_notification(self, client, incident_id):
        response = client.post(
            f"{PREFIX}/{incident_id}/notification/follow-ups",
            json={"direction": "sent", "content": "x"},
        )
        assert response.status_code == 404

    def test_notification_without_method(self, client, incident_id):
        response = client.put(f"{PREFIX}/{incident_id}/notification", json={"content": "x"})
        assert response.status_code == 422

    def test_get_notification_not_found(self, client, incident_id):
        assert client.get(f"{PREFIX}/{incident_id}/notification").status_code == 404


class TestDeadlineEndpoints:
    """Tests for requirement, deadline and attention endpoints."""

    def test_requirement(self, client, incident_id):
        response = client.get(f"{PREFIX}/{incident_id}/requirement")

        assert response.status_code == 200
        data = response.json()
        assert data["regulator_notification_required"] is True
        assert data["regulator_notification_deadline"].startswith("2024-03-04T12:00:00")

    def test_requirement_not_found(self, client):
        assert client.get(f"{PREFIX}/breach_missing/requirement").status_code == 404

    def test_deadline_status(self, client, incident_id):
        response = client.get(f"{PREFIX}/{incident_id}/deadline-status")

        assert response.status_code == 200
        assert response.json()["deadline_status"] == "pending"
        assert response.json()["hours_remaining"] == 72.0

    def test_deadline_status_not_found(self, client):
        assert client.get(f"{PREFIX}/breach_missing/deadline-status").status_code == 404

    def test_attention(self, client, clock, incident_id):
        client.put(f"{PREFIX}/{incident_id}/assessment", json=make_assessment())
        clock.advance(hours=80)

        response = client.get(f"{PREFIX}/attention", params={"hours": 24})

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["overdue"] == 1
        assert data["incidents"][0]["hours_remaining"] == -8.0

    def test_metrics(self, client, incident_id):
        response = client.get(f"{PREFIX}/metrics")

        assert response.status_code == 200
        data = response.json()
        assert data["total_incidents"] == 1
        assert data["alerts"]["total_alerts"] == 0


class TestCategoryEndpoints:
    def test_list_categories(self, client):
        response = client.get("/api/v1/breach-categories")

        assert response.status_code == 200
        ids = [c["id"] for c in response.json()["categories"]]
        assert ids == ["unauthorized_access", "phishing", "device_loss", "malware", "other"]
