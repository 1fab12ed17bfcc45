"""Pydantic API schemas for the marketplace.

These are the external API contracts. Read endpoints return the cached
read models as plain JSON objects.
"""

from pydantic import BaseModel


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------
class ItemStatusRequest(BaseModel):
    status: str


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------
class OrderIdResponse(BaseModel):
    order_id: str


class PaymentSessionResponse(BaseModel):
    order_id: str
    amount: float
    status: str
    redirect_url: str


class PaymentNotificationResponse(BaseModel):
    order_id: str
    paid: bool


class SagaRepairResponse(BaseModel):
    saga_id: str
    status: str


class RepairSweepResponse(BaseModel):
    repaired: list[str]
    failed: list[str]


class StatusResponse(BaseModel):
    status: str
