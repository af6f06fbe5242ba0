"""
Tests for breachwatch.core.models, scoring and categories.

Covers boundary validation of reports and assessments, risk score
derivation and UTC normalisation of timestamps.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from breachwatch.core.categories import get_category
from breachwatch.core.enums import IncidentStatus, SeverityLevel
from breachwatch.core.models import (
    IncidentDraft,
    IncidentReport,
    NotificationRequirement,
    RiskAssessment,
    ensure_utc,
    generate_id,
)
from breachwatch.core.scoring import risk_level_for_score, weighted_risk_score
from tests.helpers import T, make_assessment, make_draft


def _assessment(**overrides) -> RiskAssessment:
    return RiskAssessment.model_validate({
        **make_assessment(**overrides),
        "incident_id": "breach_test",
    })


class TestIncidentDraft:
    """Tests for incident report validation."""

    def test_minimal_draft(self):
        """Test that defaults fill in optional fields."""
        draft = IncidentDraft.model_validate({
            "title": "Lost laptop",
            "discovered_at": T,
            "reporter": {"name": "Sam", "email": "sam@example.com"},
        })

        assert draft.status == IncidentStatus.ONGOING
        assert draft.category == "other"
        assert draft.data_types == []
        assert draft.estimated_affected_subjects is None
        assert draft.occurred_at is None

    def test_occurred_after_discovery_rejected(self):
        """Test that a breach cannot occur after it was discovered."""
        with pytest.raises(ValidationError, match="occurred_at"):
            IncidentDraft.model_validate(make_draft(occurred_at=T + timedelta(minutes=1)))

    def test_occurred_equal_to_discovery_allowed(self):
        """Test that occurrence and discovery may coincide."""
        draft = IncidentDraft.model_validate(make_draft(occurred_at=T))
        assert draft.occurred_at == draft.discovered_at

    def test_negative_subject_count_rejected(self):
        """Test that affected-subject estimates cannot be negative."""
        with pytest.raises(ValidationError):
            IncidentDraft.model_validate(make_draft(estimated_affected_subjects=-1))

    def test_missing_discovered_at_rejected(self):
        """Test that the discovery time is mandatory."""
        data = make_draft()
        del data["discovered_at"]
        with pytest.raises(ValidationError):
            IncidentDraft.model_validate(data)

    def test_unknown_field_rejected(self):
        """Test that unexpected fields are refused."""
        with pytest.raises(ValidationError):
            IncidentDraft.model_validate(make_draft(severity="high"))

    def test_invalid_status_rejected(self):
        """Test that statuses outside the closed set are refused."""
        with pytest.raises(ValidationError):
            IncidentDraft.model_validate(make_draft(status="investigating"))

    def test_naive_datetime_treated_as_utc(self):
        """Test that naive timestamps are interpreted as UTC."""
        draft = IncidentDraft.model_validate(make_draft(discovered_at=datetime(2024, 3, 1, 12, 0)))
        assert draft.discovered_at == T
        assert draft.discovered_at.tzinfo == UTC

    def test_aware_datetime_converted_to_utc(self):
        """Test that offsets are normalised to UTC."""
        cet = timezone(timedelta(hours=1))
        draft = IncidentDraft.model_validate(
            make_draft(discovered_at=datetime(2024, 3, 1, 13, 0, tzinfo=cet))
        )
        assert draft.discovered_at == T
        assert draft.discovered_at.utcoffset() == timedelta(0)


class TestIncidentReport:
    """Tests for stored incident reports."""

    def test_generated_id_prefix(self):
        """Test that report ids carry the breach prefix."""
        report = IncidentReport.model_validate(make_draft())
        assert report.id.startswith("breach_")

    def test_generate_id_unique(self):
        """Test that generated ids do not repeat."""
        assert len({generate_id("breach") for _ in range(100)}) == 100


class TestRiskAssessment:
    """Tests for risk assessment scoring and validation."""

    def test_score_and_level_derived(self):
        """Test that the weighted score and level are filled in."""
        assessment = _assessment()

        assert assessment.overall_risk_score == 2.8
        assert assessment.risk_level == SeverityLevel.MEDIUM
        assert assessment.id.startswith("assessment_")

    def test_all_maximum_scores_critical(self):
        """Test that maximal dimensions give a critical level."""
        assessment = _assessment(
            confidentiality_impact=5,
            integrity_impact=5,
            availability_impact=5,
            harm_likelihood=5,
            harm_severity=5,
        )

        assert assessment.overall_risk_score == 5.0
        assert assessment.risk_level == SeverityLevel.CRITICAL

    def test_explicit_risk_level_kept(self):
        """Test that an assessor-chosen level overrides the derived one."""
        assessment = _assessment(risk_level="critical")

        assert assessment.risk_level == SeverityLevel.CRITICAL
        assert assessment.overall_risk_score == 2.8

    def test_supplied_score_recomputed(self):
        """Test that a stale overall score is replaced."""
        assessment = RiskAssessment.model_validate({
            **make_assessment(),
            "incident_id": "breach_test",
            "overall_risk_score": 4.9,
        })
        assert assessment.overall_risk_score == 2.8

    @pytest.mark.parametrize("field", [
        "confidentiality_impact",
        "integrity_impact",
        "availability_impact",
        "harm_likelihood",
        "harm_severity",
    ])
    @pytest.mark.parametrize("value", [0, 6])
    def test_dimension_out_of_range_rejected(self, field, value):
        """Test that dimension scores must lie within 1-5."""
        with pytest.raises(ValidationError):
            _assessment(**{field: value})

    def test_invalid_risk_level_rejected(self):
        """Test that risk levels outside the closed set are refused."""
        with pytest.raises(ValidationError):
            _assessment(risk_level="severe")


class TestNotificationRequirement:
    """Tests for the derived requirement value."""

    def test_requirement_is_immutable(self):
        """Test that derived requirements cannot be edited."""
        requirement = NotificationRequirement(
            regulator_notification_required=True,
            regulator_notification_deadline=T,
            data_subject_notification_required=False,
            justification="test",
            severity_level=SeverityLevel.MEDIUM,
        )
        with pytest.raises(ValidationError):
            requirement.regulator_notification_required = False


class TestScoring:
    """Tests for the weighted risk score."""

    def test_weights(self):
        """Test the weighted average of the five dimensions."""
        assert weighted_risk_score(4, 3, 3, 4, 4) == 3.8
        assert weighted_risk_score(1, 1, 1, 1, 1) == 1.0

    def test_unrounded_score(self):
        """Test that ndigits=None skips rounding."""
        score = weighted_risk_score(3, 2, 2, 3, 3, ndigits=None)
        assert score == pytest.approx(2.8)

    @pytest.mark.parametrize("score,level", [
        (1.0, SeverityLevel.LOW),
        (1.99, SeverityLevel.LOW),
        (2.0, SeverityLevel.MEDIUM),
        (2.99, SeverityLevel.MEDIUM),
        (3.0, SeverityLevel.HIGH),
        (3.8, SeverityLevel.HIGH),
        (4.0, SeverityLevel.CRITICAL),
        (5.0, SeverityLevel.CRITICAL),
    ])
    def test_level_bands(self, score, level):
        """Test the score band boundaries."""
        assert risk_level_for_score(score) == level


class TestCategories:
    """Tests for the breach category catalogue."""

    def test_known_category(self):
        """Test lookup of a default category."""
        category = get_category("malware")
        assert category is not None
        assert category.default_severity == SeverityLevel.HIGH

    def test_unknown_category(self):
        """Test that unknown ids return None."""
        assert get_category("insider_threat") is None


class TestEnsureUtc:
    """Tests for the UTC helper."""

    def test_none_passthrough(self):
        assert ensure_utc(None) is None
