"""Configurable fake payment gateway for development and testing.

Simulates the gateway without external calls. Tests set the status the
gateway will report for an order, or make it time out.
"""

from uuid import uuid4

from marketplace.gateway.port import (
    GatewayTimeout,
    PaymentGateway,
    SessionResult,
    TransactionStatus,
)

FAKE_SIGNATURE = "fake-signature"


class FakeGateway(PaymentGateway):
    """Configurable fake payment gateway."""

    def __init__(self) -> None:
        self.statuses: dict[str, TransactionStatus] = {}
        self.should_time_out: bool = False
        self.calls: list[dict] = []

    def configure(self, should_time_out: bool) -> None:
        """Configure gateway behavior at runtime."""
        self.should_time_out = should_time_out

    def set_status(
        self,
        order_id: str,
        transaction_status: str,
        fraud_status: str | None = None,
        payment_type: str = "bank_transfer",
    ) -> None:
        """Set what ``query_status`` reports for the order."""
        self.statuses[order_id] = TransactionStatus(
            transaction_status=transaction_status,
            fraud_status=fraud_status,
            transaction_id=f"fake_txn_{order_id}",
            payment_type=payment_type,
        )

    def create_session(self, order_id: str, amount: float) -> SessionResult:
        self.calls.append({"method": "create_session", "order_id": order_id, "amount": amount})
        if self.should_time_out:
            raise GatewayTimeout(f"create_session for {order_id} timed out")

        token = uuid4().hex
        return SessionResult(
            token=token,
            redirect_url=f"https://pay.example.test/snap/v2/vtweb/{token}",
        )

    def query_status(self, order_id: str) -> TransactionStatus:
        self.calls.append({"method": "query_status", "order_id": order_id})
        if self.should_time_out:
            raise GatewayTimeout(f"query_status for {order_id} timed out")

        return self.statuses.get(order_id, TransactionStatus(transaction_status="pending"))

    def verify_signature(self, payload: dict) -> bool:
        return payload.get("signature_key") == FAKE_SIGNATURE
