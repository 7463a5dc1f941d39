"""
wiwebb_data.resources.selector

Dual-backend selection.

Responsibilities:
- Read `use_mock_data` once and bind every resource family to the live or simulated
  implementation accordingly.
- Pick the matching identity provider.
"""

from __future__ import annotations

from dataclasses import dataclass

from wiwebb_data.auth.identity import DjangoIdentityProvider, IdentityProvider
from wiwebb_data.auth.simulated import SimulatedIdentityProvider
from wiwebb_data.observability.logging import get_logger
from wiwebb_data.resources.base import CurrentUser
from wiwebb_data.resources.hotspots import HotspotsResource, LiveHotspots, SimulatedHotspots
from wiwebb_data.resources.payments import LivePayments, PaymentsResource, SimulatedPayments
from wiwebb_data.resources.radius import LiveRadius, RadiusResource, SimulatedRadius
from wiwebb_data.resources.subscriptions import LiveSubscriptions, SimulatedSubscriptions, SubscriptionsResource
from wiwebb_data.resources.tenants import LiveTenants, SimulatedTenants, TenantsResource
from wiwebb_data.resources.users import LiveUsers, SimulatedUsers, UsersResource
from wiwebb_data.settings import Settings
from wiwebb_data.simulated.store import SimulatedStore
from wiwebb_data.transport.http import ResilientTransport

log = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class Resources:
    hotspots: HotspotsResource
    radius: RadiusResource
    subscriptions: SubscriptionsResource
    payments: PaymentsResource
    tenants: TenantsResource
    users: UsersResource
    simulated: bool


def simulated_resources(store: SimulatedStore, current_user: CurrentUser) -> Resources:
    return Resources(
        hotspots=SimulatedHotspots(store),
        radius=SimulatedRadius(store),
        subscriptions=SimulatedSubscriptions(store, current_user),
        payments=SimulatedPayments(store, current_user),
        tenants=SimulatedTenants(store, current_user),
        users=SimulatedUsers(store),
        simulated=True,
    )


def live_resources(transport: ResilientTransport) -> Resources:
    return Resources(
        hotspots=LiveHotspots(transport),
        radius=LiveRadius(transport),
        subscriptions=LiveSubscriptions(transport),
        payments=LivePayments(transport),
        tenants=LiveTenants(transport),
        users=LiveUsers(transport),
        simulated=False,
    )


def select_resources(
    settings: Settings,
    *,
    transport: ResilientTransport,
    store: SimulatedStore | None,
    current_user: CurrentUser,
) -> Resources:
    if settings.use_mock_data:
        if store is None:
            raise ValueError("use_mock_data is enabled but no simulated store was provided")
        log.info("resources.selected", backend="simulated")
        return simulated_resources(store, current_user)
    log.info("resources.selected", backend="live", base_url=settings.api_base_url)
    return live_resources(transport)


def select_identity_provider(
    settings: Settings,
    *,
    transport: ResilientTransport,
    store: SimulatedStore | None,
) -> IdentityProvider:
    if settings.use_mock_data:
        if store is None:
            raise ValueError("use_mock_data is enabled but no simulated store was provided")
        return SimulatedIdentityProvider(store, settings)
    return DjangoIdentityProvider(transport, settings)
