"""
tests.conftest

Shared fixtures.

Responsibilities:
- Settings tuned for tests: zero simulated latency, no retry backoff, a throwaway
  SQLite file for persisted auth state.
- A freshly seeded simulated store per test.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from wiwebb_data.settings import Settings
from wiwebb_data.simulated.store import SimulatedStore


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        env="test",
        use_mock_data=True,
        mock_latency_min_ms=0,
        mock_latency_max_ms=0,
        retry_base_delay_s=0,
        storage_url=f"sqlite+aiosqlite:///{tmp_path / 'auth.db'}",
    )


@pytest.fixture
def live_settings(settings: Settings, tmp_path: Path) -> Settings:
    return settings.model_copy(
        update={
            "use_mock_data": False,
            "api_base_url": "http://testserver/api/v1",
            "storage_url": f"sqlite+aiosqlite:///{tmp_path / 'live-auth.db'}",
        }
    )


@pytest.fixture
def store(settings: Settings) -> SimulatedStore:
    return SimulatedStore.seeded(settings)
