"""Payment aggregate (CQRS): authoritative gateway payment state for one order.

Identified by the order id, so an order can never carry two payment records.
The Order's ``payment`` value object and each SellerOrder's
``payment_status`` are mirrors of this record.

State Machine:
    PENDING → SUCCESS
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, Identifier, String

from marketplace.domain import marketplace


class PaymentRecordStatus(Enum):
    PENDING = "PENDING"
    SUCCESS = "SUCCESS"


@marketplace.event(part_of="Payment")
class PaymentInitiated:
    """A hosted payment session was opened for an order."""

    __version__ = 1

    order_id = Identifier(required=True)
    buyer_id = Identifier(required=True)
    amount = Float(required=True)
    initiated_at = DateTime(required=True)


@marketplace.event(part_of="Payment")
class PaymentConfirmed:
    """The gateway confirmed the payment as captured or settled."""

    __version__ = 1

    order_id = Identifier(required=True)
    method = String()
    transaction_id = String()
    confirmed_at = DateTime(required=True)


@marketplace.aggregate
class Payment:
    order_id = Identifier(identifier=True, required=True)
    buyer_id = Identifier(required=True)
    amount = Float(required=True, min_value=0.0)
    method = String(max_length=50)
    status = String(
        max_length=20,
        choices=PaymentRecordStatus,
        default=PaymentRecordStatus.PENDING.value,
    )
    transaction_id = String(max_length=255)
    session_token = String(max_length=255)
    redirect_url = String(max_length=1000)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def initiate(
        cls,
        order_id: str,
        buyer_id: str,
        amount: float,
        session_token: str,
        redirect_url: str,
    ) -> "Payment":
        if amount <= 0:
            raise ValidationError({"amount": ["Payment amount must be positive"]})

        now = datetime.now(UTC)
        payment = cls(
            order_id=order_id,
            buyer_id=buyer_id,
            amount=amount,
            status=PaymentRecordStatus.PENDING.value,
            session_token=session_token,
            redirect_url=redirect_url,
            created_at=now,
            updated_at=now,
        )
        payment.raise_(
            PaymentInitiated(
                order_id=order_id,
                buyer_id=buyer_id,
                amount=amount,
                initiated_at=now,
            )
        )
        return payment

    @property
    def is_successful(self) -> bool:
        return self.status == PaymentRecordStatus.SUCCESS.value

    def confirm(self, method: str | None, transaction_id: str | None) -> bool:
        """Mark the payment SUCCESS; False when it already is."""
        if self.is_successful:
            return False

        now = datetime.now(UTC)
        self.status = PaymentRecordStatus.SUCCESS.value
        self.method = method
        self.transaction_id = transaction_id
        self.updated_at = now
        self.raise_(
            PaymentConfirmed(
                order_id=self.order_id,
                method=method,
                transaction_id=transaction_id,
                confirmed_at=now,
            )
        )
        return True
