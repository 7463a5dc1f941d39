"""
wiwebb_data.services.data_service

Cached data access.

Responsibilities:
- Route every read through the request cache under its query key and freshness policy.
- Run every mutation through the cache so the affected key families are invalidated
  before the call returns.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from typing import Any, TypeVar

from wiwebb_data.api import query_keys as qk
from wiwebb_data.api.query_keys import QueryKey
from wiwebb_data.api.schemas import (
    CreateHotspotRequest,
    CreatePaymentRequest,
    CreatePaymentResponse,
    CreateRadiusUserRequest,
    CreateTenantRequest,
    CreateUserRequest,
    DashboardStats,
    Hotspot,
    HotspotStats,
    ListOptions,
    Payment,
    PaymentFilters,
    PaymentGateway,
    PaymentLog,
    Plan,
    RadiusGroup,
    RadiusPostAuth,
    RadiusSession,
    RadiusUser,
    Subscription,
    Tenant,
    UpdateHotspotRequest,
    UpdateProfileRequest,
    UpdateRadiusUserRequest,
    UpdateTenantRequest,
    UpdateUserRequest,
    User,
    UserLimits,
    UserPage,
)
from wiwebb_data.auth.coordinator import SessionCoordinator
from wiwebb_data.cache.policies import policy_for
from wiwebb_data.cache.query_cache import QueryCache
from wiwebb_data.resources.base import not_authenticated
from wiwebb_data.resources.selector import Resources

T = TypeVar("T")


class DataService:
    def __init__(self, *, resources: Resources, cache: QueryCache, auth: SessionCoordinator) -> None:
        self.resources = resources
        self._cache = cache
        self._auth = auth

    async def _read(self, key: QueryKey, fetcher: Callable[[], Awaitable[T]]) -> T:
        return await self._cache.fetch(key, fetcher, policy_for(key))

    async def _mutate(self, fn: Callable[[], Awaitable[T]], *invalidates: QueryKey) -> T:
        return await self._cache.mutate(fn, invalidates=invalidates)

    async def _delete(
        self, fn: Callable[[], Awaitable[None]], gone: QueryKey, *invalidates: QueryKey
    ) -> None:
        async def run() -> None:
            await fn()
            # A deleted record has nothing to refetch; drop its entries instead of invalidating.
            self._cache.remove(gone)

        await self._mutate(run, *invalidates)

    # --- profile -------------------------------------------------------------------------

    async def profile(self) -> User:
        # The coordinator owns the signed-in user; re-reading it never re-issues the session.
        async def fetch() -> User:
            if self._auth.user is None:
                raise not_authenticated()
            return self._auth.user

        return await self._read(qk.profiles.current(), fetch)

    async def update_profile(self, changes: UpdateProfileRequest | dict[str, Any]) -> User:
        return await self._mutate(lambda: self._auth.update_profile(changes), qk.profiles.all)

    # --- hotspots ------------------------------------------------------------------------

    async def hotspots(self, tenant_id: int | None = None) -> list[Hotspot]:
        h = self.resources.hotspots
        return await self._read(qk.hotspots.list(tenant_id), lambda: h.list_hotspots(tenant_id))

    async def hotspot(self, hotspot_id: int) -> Hotspot:
        h = self.resources.hotspots
        return await self._read(qk.hotspots.detail(hotspot_id), lambda: h.get_hotspot(hotspot_id))

    async def hotspot_stats(self, hotspot_id: int) -> HotspotStats:
        h = self.resources.hotspots
        return await self._read(qk.hotspots.stats(hotspot_id), lambda: h.get_hotspot_stats(hotspot_id))

    async def create_hotspot(self, request: CreateHotspotRequest | dict[str, Any]) -> Hotspot:
        h = self.resources.hotspots
        return await self._mutate(lambda: h.create_hotspot(request), qk.hotspots.all, qk.dashboard.all)

    async def update_hotspot(self, hotspot_id: int, changes: UpdateHotspotRequest | dict[str, Any]) -> Hotspot:
        h = self.resources.hotspots
        return await self._mutate(lambda: h.update_hotspot(hotspot_id, changes), qk.hotspots.all)

    async def delete_hotspot(self, hotspot_id: int) -> None:
        h = self.resources.hotspots
        await self._delete(
            lambda: h.delete_hotspot(hotspot_id),
            qk.hotspots.detail(hotspot_id),
            qk.hotspots.all,
            qk.dashboard.all,
        )

    # --- radius --------------------------------------------------------------------------

    async def radius_users(self) -> list[RadiusUser]:
        return await self._read(qk.radius.users.list(), self.resources.radius.list_users)

    async def radius_user(self, user_id: int) -> RadiusUser:
        r = self.resources.radius
        return await self._read(qk.radius.users.detail(user_id), lambda: r.get_user(user_id))

    async def create_radius_user(self, request: CreateRadiusUserRequest | dict[str, Any]) -> RadiusUser:
        r = self.resources.radius
        return await self._mutate(lambda: r.create_user(request), qk.radius.users.all(), qk.dashboard.all)

    async def update_radius_user(
        self, user_id: int, changes: UpdateRadiusUserRequest | dict[str, Any]
    ) -> RadiusUser:
        r = self.resources.radius
        return await self._mutate(lambda: r.update_user(user_id, changes), qk.radius.users.all())

    async def delete_radius_user(self, user_id: int) -> None:
        r = self.resources.radius
        await self._delete(
            lambda: r.delete_user(user_id),
            qk.radius.users.detail(user_id),
            qk.radius.users.all(),
            qk.dashboard.all,
        )

    async def radius_groups(self) -> list[RadiusGroup]:
        return await self._read(qk.radius.groups.all(), self.resources.radius.list_groups)

    async def active_sessions(self) -> list[RadiusSession]:
        return await self._read(qk.radius.sessions.active(), self.resources.radius.list_active_sessions)

    async def accounting(self, params: Mapping[str, Any] | None = None) -> list[RadiusSession]:
        r = self.resources.radius
        return await self._read(qk.radius.accounting(params), lambda: r.get_accounting(params))

    async def post_auth_logs(self, params: Mapping[str, Any] | None = None) -> list[RadiusPostAuth]:
        r = self.resources.radius
        return await self._read(qk.radius.post_auth(params), lambda: r.get_post_auth_logs(params))

    # --- subscriptions -------------------------------------------------------------------

    async def plans(self) -> list[Plan]:
        return await self._read(qk.subscriptions.plans.all(), self.resources.subscriptions.list_plans)

    async def plan(self, plan_id: int) -> Plan:
        s = self.resources.subscriptions
        return await self._read(qk.subscriptions.plans.detail(plan_id), lambda: s.get_plan(plan_id))

    async def subscription_status(self) -> Subscription | None:
        return await self._read(
            qk.subscriptions.status(), self.resources.subscriptions.get_subscription_status
        )

    async def user_limits(self) -> UserLimits:
        return await self._read(qk.subscriptions.limits(), self.resources.subscriptions.get_user_limits)

    async def subscribe(self, plan_id: int, pricing_id: int | None = None) -> Subscription:
        s = self.resources.subscriptions
        return await self._mutate(
            lambda: s.subscribe(plan_id, pricing_id),
            qk.subscriptions.status(),
            qk.subscriptions.limits(),
            qk.dashboard.all,
        )

    async def cancel_subscription(self, subscription_id: int) -> None:
        s = self.resources.subscriptions
        await self._mutate(
            lambda: s.cancel_subscription(subscription_id),
            qk.subscriptions.status(),
            qk.subscriptions.limits(),
        )

    # --- payments ------------------------------------------------------------------------

    async def payment_gateways(self) -> list[PaymentGateway]:
        return await self._read(qk.payments.gateways(), self.resources.payments.list_gateways)

    async def payment_history(self, filters: PaymentFilters | dict[str, Any] | None = None) -> list[Payment]:
        p = self.resources.payments
        return await self._read(qk.payments.history(filters), lambda: p.list_payments(filters))

    async def payment(self, payment_id: int) -> Payment:
        p = self.resources.payments
        return await self._read(qk.payments.detail(payment_id), lambda: p.get_payment(payment_id))

    async def payment_logs(self, payment_id: int) -> list[PaymentLog]:
        p = self.resources.payments
        return await self._read(qk.payments.logs(payment_id), lambda: p.get_payment_logs(payment_id))

    async def create_payment(self, request: CreatePaymentRequest | dict[str, Any]) -> CreatePaymentResponse:
        p = self.resources.payments
        return await self._mutate(lambda: p.create_payment(request), qk.payments.history_all())

    async def capture_payment(self, payment_id: int) -> Payment:
        p = self.resources.payments
        return await self._mutate(lambda: p.capture_payment(payment_id), qk.payments.all)

    async def refund_payment(self, payment_id: int, amount: float | None = None) -> Payment:
        p = self.resources.payments
        return await self._mutate(lambda: p.refund_payment(payment_id, amount), qk.payments.all)

    # --- tenants & dashboard -------------------------------------------------------------

    async def tenants(self) -> list[Tenant]:
        return await self._read(qk.tenants.lists(), self.resources.tenants.list_tenants)

    async def tenant(self, tenant_id: int) -> Tenant:
        t = self.resources.tenants
        return await self._read(qk.tenants.detail(tenant_id), lambda: t.get_tenant(tenant_id))

    async def my_tenant(self) -> Tenant:
        return await self._read(qk.tenants.current(), self.resources.tenants.get_my_tenant)

    async def dashboard_stats(self) -> DashboardStats:
        return await self._read(qk.dashboard.stats(), self.resources.tenants.get_dashboard_stats)

    async def create_tenant(self, request: CreateTenantRequest | dict[str, Any]) -> Tenant:
        t = self.resources.tenants
        return await self._mutate(lambda: t.create_tenant(request), qk.tenants.all, qk.dashboard.all)

    async def update_tenant(self, tenant_id: int, changes: UpdateTenantRequest | dict[str, Any]) -> Tenant:
        t = self.resources.tenants
        return await self._mutate(lambda: t.update_tenant(tenant_id, changes), qk.tenants.all)

    async def delete_tenant(self, tenant_id: int) -> None:
        t = self.resources.tenants
        await self._delete(
            lambda: t.delete_tenant(tenant_id),
            qk.tenants.detail(tenant_id),
            qk.tenants.all,
            qk.dashboard.all,
        )

    # --- users ---------------------------------------------------------------------------

    async def users(self, options: ListOptions | dict[str, Any] | None = None) -> UserPage:
        u = self.resources.users
        return await self._read(qk.users.list(options), lambda: u.list_users(options))

    async def user(self, user_id: int) -> User:
        u = self.resources.users
        return await self._read(qk.users.detail(user_id), lambda: u.get_user(user_id))

    async def create_user(self, request: CreateUserRequest | dict[str, Any]) -> User:
        u = self.resources.users
        return await self._mutate(lambda: u.create_user(request), qk.users.all, qk.dashboard.all)

    async def update_user(self, user_id: int, changes: UpdateUserRequest | dict[str, Any]) -> User:
        u = self.resources.users
        return await self._mutate(lambda: u.update_user(user_id, changes), qk.users.all)

    async def activate_user(self, user_id: int, is_active: bool) -> User:
        u = self.resources.users
        return await self._mutate(lambda: u.activate_user(user_id, is_active), qk.users.all)

    async def assign_role(self, user_id: int, role: str, tenant: int | None = None) -> User:
        u = self.resources.users
        return await self._mutate(lambda: u.assign_role(user_id, role, tenant), qk.users.all)

    async def set_password(self, user_id: int, password: str) -> None:
        await self.resources.users.set_password(user_id, password)

    async def delete_user(self, user_id: int) -> None:
        u = self.resources.users
        await self._delete(
            lambda: u.delete_user(user_id),
            qk.users.detail(user_id),
            qk.users.all,
            qk.dashboard.all,
        )
