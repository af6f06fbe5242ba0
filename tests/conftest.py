"""
Shared fixtures for BreachWatch tests.

Stores and monitors driven by a fake clock; data builders live in
``tests.helpers``.
"""

from __future__ import annotations

from typing import Any

import pytest

from breachwatch.breach.monitor import DeadlineMonitor
from breachwatch.breach.store import IncidentStore
from breachwatch.core.config import BreachWatchConfig
from tests.helpers import FakeClock, make_draft


# =============================================================================
# FIXTURES
# =============================================================================


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def config() -> BreachWatchConfig:
    """Configuration with default thresholds, isolated from the environment."""
    return BreachWatchConfig(_env_file=None)


@pytest.fixture
def store(clock: FakeClock) -> IncidentStore:
    """Create a fresh IncidentStore driven by the fake clock."""
    return IncidentStore(clock=clock)


@pytest.fixture
def monitor(store: IncidentStore, config: BreachWatchConfig) -> DeadlineMonitor:
    """Create a DeadlineMonitor sharing the store's clock."""
    return DeadlineMonitor(store, config=config)


@pytest.fixture
def report_and_assess(store: IncidentStore):
    """Report an incident and, unless ``assessment`` is None, assess it."""

    def _report(assessment: dict[str, Any] | None = None, **draft_overrides: Any):
        report = store.report_incident(make_draft(**draft_overrides))
        if assessment is not None:
            store.record_assessment(report.id, assessment)
        return report

    return _report
