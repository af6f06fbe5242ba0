"""
BreachWatch - Breach Categories

Catalogue of breach categories offered to reporters, each with the
severity a reviewer should start from.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from breachwatch.core.enums import SeverityLevel


class BreachCategory(BaseModel):
    """A category tag for incident reports."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str
    default_severity: SeverityLevel = SeverityLevel.MEDIUM


DEFAULT_BREACH_CATEGORIES: tuple[BreachCategory, ...] = (
    BreachCategory(
        id="unauthorized_access",
        name="Unauthorized Access",
        description="Unauthorized access to systems or data",
        default_severity=SeverityLevel.HIGH,
    ),
    BreachCategory(
        id="phishing",
        name="Phishing Attack",
        description="Phishing or social engineering attack",
    ),
    BreachCategory(
        id="device_loss",
        name="Device Loss/Theft",
        description="Loss or theft of device containing personal data",
    ),
    BreachCategory(
        id="malware",
        name="Malware/Ransomware",
        description="Malware or ransomware infection",
        default_severity=SeverityLevel.HIGH,
    ),
    BreachCategory(
        id="other",
        name="Other",
        description="Other type of data breach",
    ),
)


def get_category(category_id: str) -> BreachCategory | None:
    """Look up a default category by id."""
    for category in DEFAULT_BREACH_CATEGORIES:
        if category.id == category_id:
            return category
    return None
