"""
wiwebb_data.resources.subscriptions

Plans and subscriptions.

Responsibilities:
- Read plans, subscribe to and cancel plans.
- Read the signed-in user's subscription status and daily usage limits.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any, Protocol

from wiwebb_data.api.errors import ApiError, not_found_error
from wiwebb_data.api.schemas import Plan, SubscribeRequest, Subscription, UserLimits
from wiwebb_data.api.validation import dump_payload
from wiwebb_data.resources.base import CurrentUser, found, parse, parse_list, require_user
from wiwebb_data.simulated.store import SimulatedStore
from wiwebb_data.transport.http import ResilientTransport

BILLING_PERIOD = timedelta(days=30)


class SubscriptionsResource(Protocol):
    async def list_plans(self) -> list[Plan]: ...

    async def get_plan(self, plan_id: int) -> Plan: ...

    async def subscribe(self, plan_id: int, pricing_id: int | None = None) -> Subscription: ...

    async def cancel_subscription(self, subscription_id: int) -> None: ...

    async def get_subscription_status(self) -> Subscription | None: ...

    async def get_user_limits(self) -> UserLimits: ...


class LiveSubscriptions:
    def __init__(self, transport: ResilientTransport) -> None:
        self._http = transport

    async def list_plans(self) -> list[Plan]:
        return parse_list(Plan, await self._http.get("/subscriptions/plans/"))

    async def get_plan(self, plan_id: int) -> Plan:
        return parse(Plan, await self._http.get(f"/subscriptions/plans/{plan_id}/"))

    async def subscribe(self, plan_id: int, pricing_id: int | None = None) -> Subscription:
        req = parse(SubscribeRequest, {"plan_id": plan_id, "pricing_id": pricing_id})
        return parse(Subscription, await self._http.post("/subscriptions/subscribe/", dump_payload(req)))

    async def cancel_subscription(self, subscription_id: int) -> None:
        await self._http.post("/subscriptions/cancel/", {"subscription_id": subscription_id})

    async def get_subscription_status(self) -> Subscription | None:
        data = await self._http.get("/subscriptions/status/")
        return parse(Subscription, data) if data else None

    async def get_user_limits(self) -> UserLimits:
        return parse(UserLimits, await self._http.get("/subscriptions/me/limits/") or {})


class SimulatedSubscriptions:
    def __init__(self, store: SimulatedStore, current_user: CurrentUser) -> None:
        self._store = store
        self._current_user = current_user

    async def _active_for(self, user_id: int) -> dict[str, Any] | None:
        records = await self._store.list_records(
            "subscriptions", lambda s: s["user"] == user_id and s["status"] == "active"
        )
        return records[-1] if records else None

    async def list_plans(self) -> list[Plan]:
        return parse_list(Plan, await self._store.list_records("plans", lambda p: p.get("available", True)))

    async def get_plan(self, plan_id: int) -> Plan:
        return parse(Plan, found(await self._store.get("plans", plan_id)))

    async def subscribe(self, plan_id: int, pricing_id: int | None = None) -> Subscription:
        req = parse(SubscribeRequest, {"plan_id": plan_id, "pricing_id": pricing_id})
        user = require_user(self._current_user)
        plan = found(await self._store.get("plans", req.plan_id))
        if not plan.get("available", True):
            raise ApiError(
                "This plan is not available.",
                status=400,
                details={"plan_id": ["This plan is not available."]},
                structured=True,
            )

        previous = await self._active_for(user.id)
        if previous is not None:
            # Switching plans ends the current subscription immediately.
            await self._store.update(
                "subscriptions", previous["id"], {"status": "canceled"}, stamps=("updated_at",)
            )

        start = datetime.now(tz=UTC)
        record = await self._store.create(
            "subscriptions",
            {
                "user": user.id,
                "plan": req.plan_id,
                "status": "active",
                "current_period_start": start.isoformat(),
                "current_period_end": (start + BILLING_PERIOD).isoformat(),
                "cancel_at_period_end": False,
            },
            stamps=("created_at", "updated_at"),
        )
        return parse(Subscription, record)

    async def cancel_subscription(self, subscription_id: int) -> None:
        user = require_user(self._current_user)
        record = await self._store.get("subscriptions", subscription_id)
        if record is None or record["user"] != user.id:
            # Another user's subscription is indistinguishable from a missing one.
            raise not_found_error()
        await self._store.update(
            "subscriptions",
            subscription_id,
            {"status": "canceled", "cancel_at_period_end": True},
            stamps=("updated_at",),
        )

    async def get_subscription_status(self) -> Subscription | None:
        user = require_user(self._current_user)
        record = await self._active_for(user.id)
        return parse(Subscription, record) if record else None

    async def get_user_limits(self) -> UserLimits:
        user = require_user(self._current_user)
        active = await self._active_for(user.id)
        if active is not None:
            plan = await self._store.get("plans", active["plan"])
        else:
            plan = await self._store.first("plans", lambda p: bool(p.get("default")))
        if plan is None:
            return UserLimits()
        return parse(
            UserLimits,
            {"daily_time_minutes": plan.get("daily_time_minutes"), "daily_data_mb": plan.get("daily_data_mb")},
        )
