"""
wiwebb_data.api.query_keys

Hierarchical, deterministic cache keys.

Responsibilities:
- Build tuple keys `(family, ..., id/filters)` for the request cache.
- Freeze filter mappings so identical logical parameters give identical keys.
"""

from __future__ import annotations

from collections.abc import Hashable, Mapping
from typing import Any

QueryKey = tuple[Hashable, ...]


def freeze(value: Any) -> Hashable:
    """Deterministic hashable form of filter parameters (dict order never matters)."""

    if value is None:
        return None
    if hasattr(value, "model_dump"):
        value = value.model_dump(exclude_none=True)
    if isinstance(value, Mapping):
        # No effective filters is the same query as no filters at all.
        return tuple(sorted((str(k), freeze(v)) for k, v in value.items() if v is not None)) or None
    if isinstance(value, (list, tuple, set, frozenset)):
        items = [freeze(v) for v in value]
        return tuple(sorted(items, key=repr)) if isinstance(value, (set, frozenset)) else tuple(items)
    return value


def matches(key: QueryKey, prefix: QueryKey) -> bool:
    return key[: len(prefix)] == prefix


class profiles:
    all: QueryKey = ("profiles",)

    @staticmethod
    def current() -> QueryKey:
        return (*profiles.all, "me")


class users:
    all: QueryKey = ("users",)

    @staticmethod
    def lists() -> QueryKey:
        return (*users.all, "list")

    @staticmethod
    def list(options: Any = None) -> QueryKey:
        return (*users.lists(), freeze(options))

    @staticmethod
    def detail(user_id: int) -> QueryKey:
        return (*users.all, user_id)


class tenants:
    all: QueryKey = ("tenants",)

    @staticmethod
    def lists() -> QueryKey:
        return (*tenants.all, "list")

    @staticmethod
    def detail(tenant_id: int) -> QueryKey:
        return (*tenants.all, tenant_id)

    @staticmethod
    def current() -> QueryKey:
        return (*tenants.all, "me")


class hotspots:
    all: QueryKey = ("hotspots",)

    @staticmethod
    def lists() -> QueryKey:
        return (*hotspots.all, "list")

    @staticmethod
    def list(tenant_id: int | None = None) -> QueryKey:
        return (*hotspots.lists(), tenant_id)

    @staticmethod
    def detail(hotspot_id: int) -> QueryKey:
        return (*hotspots.all, hotspot_id)

    @staticmethod
    def stats(hotspot_id: int) -> QueryKey:
        return (*hotspots.all, hotspot_id, "stats")


class radius:
    all: QueryKey = ("radius",)

    class users:
        @staticmethod
        def all() -> QueryKey:
            return (*radius.all, "users")

        @staticmethod
        def list() -> QueryKey:
            return (*radius.users.all(), "list")

        @staticmethod
        def detail(user_id: int) -> QueryKey:
            return (*radius.users.all(), user_id)

    class groups:
        @staticmethod
        def all() -> QueryKey:
            return (*radius.all, "groups")

    class sessions:
        @staticmethod
        def all() -> QueryKey:
            return (*radius.all, "sessions")

        @staticmethod
        def active() -> QueryKey:
            return (*radius.sessions.all(), "active")

    @staticmethod
    def accounting(params: Any = None) -> QueryKey:
        return (*radius.all, "accounting", freeze(params))

    @staticmethod
    def post_auth(params: Any = None) -> QueryKey:
        return (*radius.all, "post-auth", freeze(params))


class subscriptions:
    all: QueryKey = ("subscriptions",)

    class plans:
        @staticmethod
        def all() -> QueryKey:
            return (*subscriptions.all, "plans")

        @staticmethod
        def detail(plan_id: int) -> QueryKey:
            return (*subscriptions.plans.all(), plan_id)

    @staticmethod
    def status() -> QueryKey:
        return (*subscriptions.all, "status")

    @staticmethod
    def limits() -> QueryKey:
        return (*subscriptions.all, "limits")


class payments:
    all: QueryKey = ("payments",)

    @staticmethod
    def gateways() -> QueryKey:
        return (*payments.all, "gateways")

    @staticmethod
    def history(filters: Any = None) -> QueryKey:
        return (*payments.all, "history", freeze(filters))

    @staticmethod
    def history_all() -> QueryKey:
        return (*payments.all, "history")

    @staticmethod
    def detail(payment_id: int) -> QueryKey:
        return (*payments.all, payment_id)

    @staticmethod
    def logs(payment_id: int) -> QueryKey:
        return (*payments.all, payment_id, "logs")


class dashboard:
    all: QueryKey = ("dashboard",)

    @staticmethod
    def stats() -> QueryKey:
        return (*dashboard.all, "stats")


def session_scoped() -> list[QueryKey]:
    """Key families whose data depends on who is signed in; invalidated on sign-in/refresh."""

    return [
        profiles.all,
        tenants.current(),
        subscriptions.status(),
        subscriptions.limits(),
        payments.history_all(),
    ]


# --- Module Notes -----------------------------------------------------------
# Lowercase namespaces read like the call sites they serve: `query_keys.hotspots.list(3)`.
