"""OutboxNotification aggregate: durable record of every notification.

A notification is recorded only after the state change it announces has
been written, then handed to the relay for delivery. Delivery failures are
recorded on the notification instead of propagating to the workflow.

State Machine:
    PENDING → SENT
    PENDING → FAILED → (retry) → PENDING
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, Integer, String, Text

from marketplace.domain import marketplace


class TemplateCode(Enum):
    USER_ORDER = "USER_ORDER"
    SELLER_ORDER = "SELLER_ORDER"
    USER_PAYMENT = "USER_PAYMENT"
    USER_PRODUCT_SHIPPED = "USER_PRODUCT_SHIPPED"
    SELLER_LESS_STOCK = "SELLER_LESS_STOCK"
    SELLER_FINISH_ORDER = "SELLER_FINISH_ORDER"


class OutboxStatus(Enum):
    PENDING = "PENDING"
    SENT = "SENT"
    FAILED = "FAILED"


_VALID_TRANSITIONS = {
    OutboxStatus.PENDING: {OutboxStatus.SENT, OutboxStatus.FAILED},
    OutboxStatus.FAILED: {OutboxStatus.PENDING},  # Via retry
    OutboxStatus.SENT: set(),  # Terminal
}


@marketplace.aggregate
class OutboxNotification:
    recipient_id = Identifier(required=True)
    template_code = String(required=True, max_length=50, choices=TemplateCode)
    context_data = Text()  # JSON object of string values
    dedupe_key = String(max_length=255)
    status = String(max_length=20, choices=OutboxStatus, default=OutboxStatus.PENDING.value)
    attempts = Integer(default=0)
    max_attempts = Integer(default=3)
    failure_reason = String(max_length=500)
    created_at = DateTime()
    sent_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def record(
        cls,
        recipient_id: str,
        template_code: TemplateCode,
        data: dict[str, str],
        dedupe_key: str | None = None,
    ) -> "OutboxNotification":
        now = datetime.now(UTC)
        return cls(
            recipient_id=recipient_id,
            template_code=template_code.value,
            context_data=json.dumps(data, sort_keys=True),
            dedupe_key=dedupe_key,
            status=OutboxStatus.PENDING.value,
            created_at=now,
            updated_at=now,
        )

    @property
    def data(self) -> dict[str, str]:
        return json.loads(self.context_data) if self.context_data else {}

    def _assert_can_transition(self, target_status: OutboxStatus) -> None:
        current = OutboxStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise ValidationError({"status": [f"Cannot transition from {current.value} to {target_status.value}"]})

    def mark_sent(self) -> None:
        self._assert_can_transition(OutboxStatus.SENT)
        now = datetime.now(UTC)
        self.status = OutboxStatus.SENT.value
        self.attempts = (self.attempts or 0) + 1
        self.sent_at = now
        self.updated_at = now

    def mark_failed(self, reason: str) -> None:
        self._assert_can_transition(OutboxStatus.FAILED)
        self.status = OutboxStatus.FAILED.value
        self.attempts = (self.attempts or 0) + 1
        self.failure_reason = reason[:500]
        self.updated_at = datetime.now(UTC)

    def retry(self) -> None:
        self._assert_can_transition(OutboxStatus.PENDING)
        if (self.attempts or 0) >= (self.max_attempts or 0):
            raise ValidationError({"attempts": [f"Maximum attempts ({self.max_attempts}) exceeded"]})
        self.status = OutboxStatus.PENDING.value
        self.failure_reason = None
        self.updated_at = datetime.now(UTC)
