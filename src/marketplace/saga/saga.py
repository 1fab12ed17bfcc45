"""OrderSaga aggregate: compensation and repair log for multi-document writes.

No transaction spans an Order, its SellerOrders, the Payment record and the
SalesReport. Each workflow operation that touches more than one of them
records its steps here so a failure part-way is either compensated (order
placement) or left NEEDS_REPAIR for an idempotent re-apply.

State Machine:
    STARTED → COMPLETED
    STARTED → COMPENSATED
    STARTED → NEEDS_REPAIR → REPAIRED
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, HasMany, Identifier, String, Text

from marketplace.domain import marketplace


class SagaOperation(Enum):
    PLACE_ORDER = "PLACE_ORDER"
    RECONCILE_PAYMENT = "RECONCILE_PAYMENT"
    SHIP_ITEM = "SHIP_ITEM"
    FINISH_ITEM = "FINISH_ITEM"
    CANCEL_ITEM = "CANCEL_ITEM"


class SagaStatus(Enum):
    STARTED = "STARTED"
    COMPLETED = "COMPLETED"
    COMPENSATED = "COMPENSATED"
    NEEDS_REPAIR = "NEEDS_REPAIR"
    REPAIRED = "REPAIRED"


class StepStatus(Enum):
    DONE = "DONE"
    FAILED = "FAILED"
    COMPENSATED = "COMPENSATED"
    REPAIRED = "REPAIRED"


_VALID_TRANSITIONS = {
    SagaStatus.STARTED: {SagaStatus.COMPLETED, SagaStatus.COMPENSATED, SagaStatus.NEEDS_REPAIR},
    SagaStatus.NEEDS_REPAIR: {SagaStatus.REPAIRED},
    SagaStatus.COMPLETED: set(),  # terminal
    SagaStatus.COMPENSATED: set(),  # terminal
    SagaStatus.REPAIRED: set(),  # terminal
}


@marketplace.entity(part_of="OrderSaga")
class SagaStep:
    """One write performed (or attempted) by the saga."""

    action = String(required=True, max_length=100)
    target_id = String(max_length=255)
    payload = Text()  # JSON: arguments needed to re-apply or undo the step
    status = String(max_length=20, choices=StepStatus, default=StepStatus.DONE.value)
    error = String(max_length=1000)
    recorded_at = DateTime()

    @property
    def arguments(self) -> dict:
        return json.loads(self.payload) if self.payload else {}


@marketplace.aggregate
class OrderSaga:
    operation = String(required=True, max_length=50, choices=SagaOperation)
    order_id = Identifier(required=True)
    product_id = Identifier()
    actor_id = Identifier()
    status = String(max_length=20, choices=SagaStatus, default=SagaStatus.STARTED.value)
    steps = HasMany(SagaStep)
    failure_reason = String(max_length=1000)
    started_at = DateTime()
    finished_at = DateTime()

    @classmethod
    def begin(
        cls,
        operation: SagaOperation,
        order_id: str,
        product_id: str | None = None,
        actor_id: str | None = None,
    ) -> "OrderSaga":
        return cls(
            operation=operation.value,
            order_id=order_id,
            product_id=product_id,
            actor_id=actor_id,
            status=SagaStatus.STARTED.value,
            started_at=datetime.now(UTC),
        )

    def _assert_can_transition(self, target_status: SagaStatus) -> None:
        current = SagaStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise ValidationError({"status": [f"Cannot transition from {current.value} to {target_status.value}"]})

    def record_step(
        self,
        action: str,
        target_id: str | None = None,
        payload: dict | None = None,
        status: StepStatus = StepStatus.DONE,
        error: str | None = None,
    ) -> SagaStep:
        step = SagaStep(
            action=action,
            target_id=target_id,
            payload=json.dumps(payload or {}, sort_keys=True),
            status=status.value,
            error=error[:1000] if error else None,
            recorded_at=datetime.now(UTC),
        )
        self.add_steps(step)
        return step

    def steps_with(self, status: StepStatus) -> list[SagaStep]:
        return [s for s in (self.steps or []) if s.status == status.value]

    def complete(self) -> None:
        self._assert_can_transition(SagaStatus.COMPLETED)
        self.status = SagaStatus.COMPLETED.value
        self.finished_at = datetime.now(UTC)

    def compensated(self, reason: str) -> None:
        self._assert_can_transition(SagaStatus.COMPENSATED)
        for step in self.steps_with(StepStatus.DONE):
            step.status = StepStatus.COMPENSATED.value
        self.status = SagaStatus.COMPENSATED.value
        self.failure_reason = reason[:1000]
        self.finished_at = datetime.now(UTC)

    def needs_repair(self, reason: str) -> None:
        self._assert_can_transition(SagaStatus.NEEDS_REPAIR)
        self.status = SagaStatus.NEEDS_REPAIR.value
        self.failure_reason = reason[:1000]

    def repaired(self) -> None:
        self._assert_can_transition(SagaStatus.REPAIRED)
        for step in self.steps_with(StepStatus.FAILED):
            step.status = StepStatus.REPAIRED.value
        self.status = SagaStatus.REPAIRED.value
        self.finished_at = datetime.now(UTC)
