"""
wiwebb_data.devserver.routers.billing

Subscription and payment endpoints.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends

from wiwebb_data.api.schemas import (
    CreatePaymentResponse,
    Payment,
    PaymentGateway,
    PaymentLog,
    Plan,
    Subscription,
    UserLimits,
)
from wiwebb_data.devserver.deps import resources_for
from wiwebb_data.resources.selector import Resources

router = APIRouter(tags=["billing"])


# --- subscriptions -------------------------------------------------------------------------


@router.get("/subscriptions/plans/")
async def list_plans(res: Resources = Depends(resources_for)) -> list[Plan]:
    return await res.subscriptions.list_plans()


@router.get("/subscriptions/plans/{plan_id}/")
async def get_plan(plan_id: int, res: Resources = Depends(resources_for)) -> Plan:
    return await res.subscriptions.get_plan(plan_id)


@router.post("/subscriptions/subscribe/", status_code=201)
async def subscribe(body: dict[str, Any] = Body(...), res: Resources = Depends(resources_for)) -> Subscription:
    return await res.subscriptions.subscribe(body.get("plan_id"), body.get("pricing_id"))  # type: ignore[arg-type]


@router.post("/subscriptions/cancel/")
async def cancel(body: dict[str, Any] = Body(...), res: Resources = Depends(resources_for)) -> dict[str, str]:
    await res.subscriptions.cancel_subscription(int(body.get("subscription_id") or 0))
    return {"detail": "Subscription canceled."}


@router.get("/subscriptions/status/")
async def subscription_status(res: Resources = Depends(resources_for)) -> Subscription | None:
    return await res.subscriptions.get_subscription_status()


@router.get("/subscriptions/me/limits/")
async def user_limits(res: Resources = Depends(resources_for)) -> UserLimits:
    return await res.subscriptions.get_user_limits()


# --- payments ------------------------------------------------------------------------------


@router.get("/gateways/")
async def list_gateways(res: Resources = Depends(resources_for)) -> list[PaymentGateway]:
    return await res.payments.list_gateways()


@router.get("/payments/")
async def list_payments(
    status: str | None = None, variant: str | None = None, res: Resources = Depends(resources_for)
) -> list[Payment]:
    return await res.payments.list_payments({"status": status, "variant": variant})


@router.post("/payments/create_payment/", status_code=201)
async def create_payment(
    body: dict[str, Any] = Body(...), res: Resources = Depends(resources_for)
) -> CreatePaymentResponse:
    return await res.payments.create_payment(body)


@router.get("/payments/{payment_id}/")
async def get_payment(payment_id: int, res: Resources = Depends(resources_for)) -> Payment:
    return await res.payments.get_payment(payment_id)


@router.post("/payments/{payment_id}/capture_payment/")
async def capture_payment(payment_id: int, res: Resources = Depends(resources_for)) -> Payment:
    return await res.payments.capture_payment(payment_id)


@router.post("/payments/{payment_id}/refund_payment/")
async def refund_payment(
    payment_id: int,
    body: dict[str, Any] | None = Body(default=None),
    res: Resources = Depends(resources_for),
) -> Payment:
    return await res.payments.refund_payment(payment_id, (body or {}).get("amount"))


@router.get("/payments/{payment_id}/logs/")
async def payment_logs(payment_id: int, res: Resources = Depends(resources_for)) -> list[PaymentLog]:
    return await res.payments.get_payment_logs(payment_id)
