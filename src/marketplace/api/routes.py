"""FastAPI routes for the marketplace order workflow.

Authentication happens upstream; the caller's identity arrives in the
``X-User-Id`` header.
"""

from collections.abc import Callable
from typing import Any

from fastapi import APIRouter, Header, HTTPException, Request
from starlette.concurrency import run_in_threadpool

from marketplace.api.schemas import (
    ItemStatusRequest,
    OrderIdResponse,
    PaymentNotificationResponse,
    PaymentSessionResponse,
    RepairSweepResponse,
    SagaRepairResponse,
    StatusResponse,
)
from marketplace.domain import marketplace
from marketplace.ordering.cancellation import cancel_item
from marketplace.ordering.completion import finish_item
from marketplace.ordering.creation import place_order
from marketplace.ordering.queries import get_order, get_seller_order, list_orders, list_seller_orders
from marketplace.ordering.shipping import ship_item
from marketplace.payment.initiation import initiate_payment
from marketplace.payment.reconciliation import handle_payment_notification
from marketplace.reporting.queries import get_sales_report
from marketplace.saga.repair import repair_pending_sagas, repair_saga


def _in_domain(fn: Callable[..., Any], *args: Any) -> Any:
    with marketplace.domain_context():
        return fn(*args)


async def _offload(fn: Callable[..., Any], *args: Any) -> Any:
    """Run a workflow call on the threadpool.

    Workflows talk to the database, the cache and the payment gateway with
    blocking clients, so they must not run on the event loop.
    """
    return await run_in_threadpool(_in_domain, fn, *args)


# ---------------------------------------------------------------------------
# Buyer Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201, response_model=OrderIdResponse)
async def create_order(x_user_id: str = Header()) -> OrderIdResponse:
    """Check out the caller's selected cart items."""
    return OrderIdResponse(order_id=await _offload(place_order, x_user_id))


@order_router.get("")
async def read_orders(x_user_id: str = Header()) -> list[dict]:
    return await _offload(list_orders, x_user_id)


@order_router.get("/{order_id}")
async def read_order(order_id: str, x_user_id: str = Header()) -> dict:
    return await _offload(get_order, x_user_id, order_id)


@order_router.put("/{order_id}/items/{product_id}/finish", response_model=StatusResponse)
async def finish_order_item(
    order_id: str,
    product_id: str,
    body: ItemStatusRequest,
    x_user_id: str = Header(),
) -> StatusResponse:
    """Confirm receipt of a shipped item."""
    await _offload(finish_item, x_user_id, order_id, product_id, body.status)
    return StatusResponse(status="finished")


@order_router.delete("/{order_id}/items/{product_id}", response_model=StatusResponse)
async def cancel_order_item(order_id: str, product_id: str, x_user_id: str = Header()) -> StatusResponse:
    """Cancel a pending item; open to the buyer and the item's seller."""
    await _offload(cancel_item, x_user_id, order_id, product_id)
    return StatusResponse(status="cancelled")


@order_router.post("/{order_id}/payment", status_code=201, response_model=PaymentSessionResponse)
async def pay_order(order_id: str, x_user_id: str = Header()) -> PaymentSessionResponse:
    """Open (or reopen) the hosted payment page for an order."""
    payment = await _offload(initiate_payment, x_user_id, order_id)
    return PaymentSessionResponse(
        order_id=str(payment.order_id),
        amount=payment.amount,
        status=payment.status,
        redirect_url=payment.redirect_url,
    )


# ---------------------------------------------------------------------------
# Seller Order Router
# ---------------------------------------------------------------------------
seller_order_router = APIRouter(prefix="/seller-orders", tags=["seller-orders"])


@seller_order_router.get("")
async def read_seller_orders(x_user_id: str = Header()) -> list[dict]:
    return await _offload(list_seller_orders, x_user_id)


@seller_order_router.get("/{order_id}")
async def read_seller_order(order_id: str, x_user_id: str = Header()) -> dict:
    return await _offload(get_seller_order, x_user_id, order_id)


@seller_order_router.put("/{order_id}/items/{product_id}/ship", response_model=StatusResponse)
async def ship_order_item(
    order_id: str,
    product_id: str,
    body: ItemStatusRequest,
    x_user_id: str = Header(),
) -> StatusResponse:
    """Ship a paid item."""
    await _offload(ship_item, x_user_id, order_id, product_id, body.status)
    return StatusResponse(status="shipped")


# ---------------------------------------------------------------------------
# Payment Notification Router
# ---------------------------------------------------------------------------
payment_router = APIRouter(prefix="/payments", tags=["payments"])


@payment_router.post("/notifications", response_model=PaymentNotificationResponse)
async def receive_payment_notification(request: Request) -> PaymentNotificationResponse:
    """Gateway webhook: verifies the signature, then reconciles the order's payment."""
    payload = await request.json()
    if not isinstance(payload, dict):
        raise HTTPException(status_code=400, detail="Notification body must be a JSON object")

    paid = await _offload(handle_payment_notification, payload)
    return PaymentNotificationResponse(order_id=str(payload.get("order_id")), paid=paid)


# ---------------------------------------------------------------------------
# Sales Report Router
# ---------------------------------------------------------------------------
sales_report_router = APIRouter(prefix="/sales-reports", tags=["sales-reports"])


@sales_report_router.get("/{store_id}")
async def read_sales_report(store_id: str, x_user_id: str = Header()) -> dict:
    return await _offload(get_sales_report, x_user_id, store_id)


# ---------------------------------------------------------------------------
# Saga Repair Router (operators)
# ---------------------------------------------------------------------------
saga_router = APIRouter(prefix="/sagas", tags=["sagas"])


@saga_router.post("/repair", response_model=RepairSweepResponse)
async def repair_all() -> RepairSweepResponse:
    return RepairSweepResponse(**await _offload(repair_pending_sagas))


@saga_router.post("/{saga_id}/repair", response_model=SagaRepairResponse)
async def repair_one(saga_id: str) -> SagaRepairResponse:
    saga = await _offload(repair_saga, saga_id)
    return SagaRepairResponse(saga_id=str(saga.id), status=saga.status)
