"""
wiwebb_data.cache.policies

Freshness policy per data family.

Responsibilities:
- Name the staleness window and auto-refetch interval of each cached family.
- Resolve a policy from a query key by longest matching prefix.
"""

from __future__ import annotations

from wiwebb_data.api import query_keys as qk
from wiwebb_data.api.query_keys import QueryKey, matches
from wiwebb_data.cache.query_cache import QueryPolicy

DEFAULT = QueryPolicy(stale_time=5 * 60)

ACTIVE_SESSIONS = QueryPolicy(stale_time=15, refetch_interval=30)
HOTSPOTS = QueryPolicy(stale_time=30)
RADIUS_USERS = QueryPolicy(stale_time=30)
PAYMENT_HISTORY = QueryPolicy(stale_time=30)
DASHBOARD = QueryPolicy(stale_time=60, refetch_interval=120)
SUBSCRIPTION_STATUS = QueryPolicy(stale_time=60)
PLANS = QueryPolicy(stale_time=5 * 60)
RADIUS_GROUPS = QueryPolicy(stale_time=5 * 60)
RADIUS_ACCOUNTING = QueryPolicy(stale_time=60)
TENANTS = QueryPolicy(stale_time=5 * 60)
GATEWAYS = QueryPolicy(stale_time=10 * 60)

# Checked longest prefix first, so radius sessions win over the radius family.
_BY_PREFIX: list[tuple[QueryKey, QueryPolicy]] = sorted(
    [
        (qk.radius.sessions.active(), ACTIVE_SESSIONS),
        (qk.radius.users.all(), RADIUS_USERS),
        (qk.radius.groups.all(), RADIUS_GROUPS),
        ((*qk.radius.all, "accounting"), RADIUS_ACCOUNTING),
        (qk.hotspots.all, HOTSPOTS),
        (qk.payments.history_all(), PAYMENT_HISTORY),
        (qk.payments.gateways(), GATEWAYS),
        (qk.dashboard.all, DASHBOARD),
        (qk.subscriptions.status(), SUBSCRIPTION_STATUS),
        (qk.subscriptions.plans.all(), PLANS),
        (qk.tenants.all, TENANTS),
    ],
    key=lambda item: len(item[0]),
    reverse=True,
)


def policy_for(key: QueryKey) -> QueryPolicy:
    for prefix, policy in _BY_PREFIX:
        if matches(key, prefix):
            return policy
    return DEFAULT
