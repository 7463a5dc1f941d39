"""In-memory simulated backend used when `use_mock_data` is enabled."""

from wiwebb_data.simulated.store import Collection, SimulatedStore

__all__ = ["Collection", "SimulatedStore"]
