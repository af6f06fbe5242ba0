"""
Test data builders for BreachWatch tests.

A controllable clock, sample reporters and assessors, and builders for
incident drafts and assessments, all relative to a fixed "now".
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any

# Fixed reference time for every scenario
T = datetime(2024, 3, 1, 12, 0, tzinfo=UTC)


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime = T):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs: float) -> datetime:
        self.current += timedelta(**kwargs)
        return self.current


# =============================================================================
# TEST DATA GENERATORS
# =============================================================================


def make_reporter(**overrides: Any) -> dict[str, Any]:
    return {
        "name": "Alex Reporter",
        "email": "alex.reporter@example.com",
        "department": "IT Security",
        **overrides,
    }


def make_draft(**overrides: Any) -> dict[str, Any]:
    """Incident draft with no severity signals (contained, generic data)."""
    return {
        "title": "Misdirected email",
        "description": "Customer list sent to the wrong recipient",
        "category": "other",
        "discovered_at": T,
        "reporter": make_reporter(),
        "affected_systems": ["mail"],
        "data_types": ["contact"],
        "estimated_affected_subjects": 10,
        "status": "contained",
        **overrides,
    }


def make_assessment(**overrides: Any) -> dict[str, Any]:
    """Assessment scoring 2.8 (medium) requiring regulator notification."""
    return {
        "assessor": {
            "name": "Dana Officer",
            "role": "Data Protection Officer",
            "email": "dpo@example.com",
        },
        "confidentiality_impact": 3,
        "integrity_impact": 2,
        "availability_impact": 2,
        "harm_likelihood": 3,
        "harm_severity": 3,
        "risks_to_rights_and_freedoms": True,
        "high_risks_to_rights_and_freedoms": False,
        "justification": "Contact details exposed to a single recipient",
        **overrides,
    }

