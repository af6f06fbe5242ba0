"""
BreachWatch - Risk Scoring

Weighted scoring of the five assessment dimensions. Harm to data subjects
carries more weight than the technical CIA impact.
"""

from __future__ import annotations

from breachwatch.core.enums import SeverityLevel

RISK_WEIGHTS: dict[str, float] = {
    "confidentiality_impact": 0.2,
    "integrity_impact": 0.1,
    "availability_impact": 0.1,
    "harm_likelihood": 0.3,
    "harm_severity": 0.3,
}

RISK_DIMENSIONS = tuple(RISK_WEIGHTS)

# Upper bounds (exclusive) of each level's score band
_LEVEL_BANDS = (
    (2.0, SeverityLevel.LOW),
    (3.0, SeverityLevel.MEDIUM),
    (4.0, SeverityLevel.HIGH),
)


def weighted_risk_score(
    confidentiality_impact: int,
    integrity_impact: int,
    availability_impact: int,
    harm_likelihood: int,
    harm_severity: int,
    ndigits: int | None = 1,
) -> float:
    """
    Weighted average of the five dimensions.

    Rounded to `ndigits` decimals for display; pass `ndigits=None` for the
    unrounded value used to pick the risk level.
    """
    score = (
        confidentiality_impact * RISK_WEIGHTS["confidentiality_impact"]
        + integrity_impact * RISK_WEIGHTS["integrity_impact"]
        + availability_impact * RISK_WEIGHTS["availability_impact"]
        + harm_likelihood * RISK_WEIGHTS["harm_likelihood"]
        + harm_severity * RISK_WEIGHTS["harm_severity"]
    )
    if ndigits is None:
        return score
    return round(score, ndigits)


def risk_level_for_score(score: float) -> SeverityLevel:
    """Map a weighted score (1.0 - 5.0) onto a severity level."""
    for upper, level in _LEVEL_BANDS:
        if score < upper:
            return level
    return SeverityLevel.CRITICAL
