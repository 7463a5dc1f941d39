"""
wiwebb_data.transport.retry

Retry policy for transient transport failures.

Responsibilities:
- Decide which normalized failures are retry-eligible (network, status >= 500).
- Compute exponential backoff delays.
"""

from __future__ import annotations

import random
from dataclasses import dataclass

from wiwebb_data.api.errors import ApiError, is_network_error, is_server_error
from wiwebb_data.settings import Settings


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    max_retries: int = 3
    base_delay_s: float = 0.1
    max_delay_s: float = 30.0
    jitter: float = 0.2

    @classmethod
    def from_settings(cls, settings: Settings) -> RetryPolicy:
        return cls(max_retries=settings.max_retries, base_delay_s=settings.retry_base_delay_s)

    def should_retry(self, error: ApiError, *, retry_number: int) -> bool:
        # 4xx responses are deterministic; retrying them only repeats the failure.
        if retry_number > self.max_retries:
            return False
        return is_network_error(error) or is_server_error(error)

    def delay(self, retry_number: int) -> float:
        delay = min(self.base_delay_s * (2**retry_number), self.max_delay_s)
        return delay + delay * self.jitter * random.random()


# --- Module Notes -----------------------------------------------------------
# Idempotent and non-idempotent methods share one policy; see DESIGN.md.
