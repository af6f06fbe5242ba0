"""
BreachWatch - Configuration

Centralized settings for the deadline monitor, alerting, logging and the
HTTP surface.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from breachwatch.core.categories import DEFAULT_BREACH_CATEGORIES, BreachCategory


class BreachWatchConfig(BaseSettings):
    """
    BreachWatch configuration.

    Loaded from environment variables with sensible defaults.
    """

    model_config = SettingsConfigDict(
        env_prefix="BREACHWATCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ═══════════════════════════════════════════════════════════════
    # DEADLINE MONITORING
    # ═══════════════════════════════════════════════════════════════

    attention_threshold_hours: float = Field(
        default=24.0,
        description="Default window for the requires-attention query",
    )

    # Alert thresholds in hours before deadline
    alert_warning_hours: float = Field(default=24.0, gt=0)
    alert_urgent_hours: float = Field(default=12.0, gt=0)
    alert_critical_hours: float = Field(default=6.0, gt=0)
    alert_imminent_hours: float = Field(default=1.0, gt=0)

    # ═══════════════════════════════════════════════════════════════
    # BREACH CATEGORIES
    # ═══════════════════════════════════════════════════════════════

    active_categories: str = Field(
        default="",
        description="Comma-separated category ids offered to reporters (empty = all)",
    )

    @property
    def categories_list(self) -> list[BreachCategory]:
        """Parse active categories against the default catalogue."""
        catalogue = {category.id: category for category in DEFAULT_BREACH_CATEGORIES}
        result = []
        for c in self.active_categories.split(","):
            c = c.strip().lower()
            if c in catalogue:
                result.append(catalogue[c])
        return result or list(DEFAULT_BREACH_CATEGORIES)

    # ═══════════════════════════════════════════════════════════════
    # LOGGING
    # ═══════════════════════════════════════════════════════════════

    log_level: str = Field(default="INFO", description="Root log level")
    log_json: bool = Field(default=False, description="Render logs as JSON")
    log_sanitize: bool = Field(default=True, description="Redact contact details and secrets")

    # ═══════════════════════════════════════════════════════════════
    # HTTP SURFACE
    # ═══════════════════════════════════════════════════════════════

    api_prefix: str = Field(default="/api/v1")
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8003, ge=1, le=65535)


@lru_cache
def get_breachwatch_config() -> BreachWatchConfig:
    """Get cached configuration."""
    return BreachWatchConfig()
