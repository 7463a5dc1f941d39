"""
wiwebb_data.resources.payments

Payment gateways, payments and payment logs.

Responsibilities:
- List gateways, list/read payments with optional filters.
- Create, capture and refund payments; read a payment's audit log.
"""

from __future__ import annotations

import uuid
from typing import Any, Protocol

from wiwebb_data.api.errors import not_found_error
from wiwebb_data.api.schemas import (
    CreatePaymentRequest,
    CreatePaymentResponse,
    Payment,
    PaymentFilters,
    PaymentGateway,
    PaymentLog,
    RefundRequest,
)
from wiwebb_data.api.validation import dump_payload
from wiwebb_data.resources.base import CurrentUser, found, match_params, parse, parse_list, require_user
from wiwebb_data.simulated.store import SimulatedStore, utcnow_iso
from wiwebb_data.transport.http import ResilientTransport

SIMULATED_CHECKOUT_URL = "https://checkout.wiwebb.io/simulated/{order_id}"


class PaymentsResource(Protocol):
    async def list_gateways(self) -> list[PaymentGateway]: ...

    async def list_payments(self, filters: PaymentFilters | dict[str, Any] | None = None) -> list[Payment]: ...

    async def get_payment(self, payment_id: int) -> Payment: ...

    async def create_payment(self, request: CreatePaymentRequest | dict[str, Any]) -> CreatePaymentResponse: ...

    async def capture_payment(self, payment_id: int) -> Payment: ...

    async def refund_payment(self, payment_id: int, amount: float | None = None) -> Payment: ...

    async def get_payment_logs(self, payment_id: int) -> list[PaymentLog]: ...


def _filters(filters: PaymentFilters | dict[str, Any] | None) -> dict[str, Any] | None:
    if filters is None:
        return None
    return dump_payload(parse(PaymentFilters, filters)) or None


class LivePayments:
    def __init__(self, transport: ResilientTransport) -> None:
        self._http = transport

    async def list_gateways(self) -> list[PaymentGateway]:
        return parse_list(PaymentGateway, await self._http.get("/gateways/"))

    async def list_payments(self, filters: PaymentFilters | dict[str, Any] | None = None) -> list[Payment]:
        return parse_list(Payment, await self._http.get("/payments/", params=_filters(filters)))

    async def get_payment(self, payment_id: int) -> Payment:
        return parse(Payment, await self._http.get(f"/payments/{payment_id}/"))

    async def create_payment(self, request: CreatePaymentRequest | dict[str, Any]) -> CreatePaymentResponse:
        payload = dump_payload(parse(CreatePaymentRequest, request))
        return parse(CreatePaymentResponse, await self._http.post("/payments/create_payment/", payload))

    async def capture_payment(self, payment_id: int) -> Payment:
        return parse(Payment, await self._http.post(f"/payments/{payment_id}/capture_payment/"))

    async def refund_payment(self, payment_id: int, amount: float | None = None) -> Payment:
        payload = dump_payload(parse(RefundRequest, {"amount": amount}))
        return parse(Payment, await self._http.post(f"/payments/{payment_id}/refund_payment/", payload))

    async def get_payment_logs(self, payment_id: int) -> list[PaymentLog]:
        return parse_list(PaymentLog, await self._http.get(f"/payments/{payment_id}/logs/"))


class SimulatedPayments:
    def __init__(self, store: SimulatedStore, current_user: CurrentUser) -> None:
        self._store = store
        self._current_user = current_user

    async def _log(self, payment_id: int, action: str, message: str | None = None) -> None:
        await self._store.create(
            "payment_logs",
            {"payment_id": payment_id, "action": action, "timestamp": utcnow_iso(), "message": message},
        )

    async def _set_status(self, payment_id: int, status: str) -> dict[str, Any]:
        record = await self._store.update(
            "payments", payment_id, {"status": status}, stamps=("modified",)
        )
        return found(record)

    async def list_gateways(self) -> list[PaymentGateway]:
        return parse_list(PaymentGateway, await self._store.list_records("payment_gateways"))

    async def list_payments(self, filters: PaymentFilters | dict[str, Any] | None = None) -> list[Payment]:
        params = _filters(filters)
        records = await self._store.list_records("payments", lambda p: match_params(p, params))
        return parse_list(Payment, records)

    async def get_payment(self, payment_id: int) -> Payment:
        return parse(Payment, found(await self._store.get("payments", payment_id)))

    async def create_payment(self, request: CreatePaymentRequest | dict[str, Any]) -> CreatePaymentResponse:
        req = parse(CreatePaymentRequest, request)
        user = require_user(self._current_user)
        order_id = f"ord_{uuid.uuid4().hex[:12]}"
        record = await self._store.create(
            "payments",
            {
                "user": user.id,
                "status": "pending",
                "variant": req.payment_gateway,
                "currency": req.currency,
                "total": req.amount,
                "order_id": order_id,
                "payment_gateway": req.payment_gateway,
            },
            stamps=("created", "modified"),
        )
        await self._log(record["id"], "created", req.description)
        return parse(
            CreatePaymentResponse,
            {"payment": record, "redirect_url": SIMULATED_CHECKOUT_URL.format(order_id=order_id)},
        )

    async def capture_payment(self, payment_id: int) -> Payment:
        record = await self._set_status(payment_id, "completed")
        await self._log(payment_id, "captured")
        return parse(Payment, record)

    async def refund_payment(self, payment_id: int, amount: float | None = None) -> Payment:
        req = parse(RefundRequest, {"amount": amount})
        record = await self._set_status(payment_id, "refunded")
        await self._log(
            payment_id, "refunded", f"Refunded {req.amount:.2f}" if req.amount is not None else None
        )
        return parse(Payment, record)

    async def get_payment_logs(self, payment_id: int) -> list[PaymentLog]:
        if await self._store.get("payments", payment_id) is None:
            raise not_found_error()
        records = await self._store.list_records("payment_logs", lambda r: r["payment_id"] == payment_id)
        return parse_list(PaymentLog, records)
