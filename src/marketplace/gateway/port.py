"""Payment gateway port (abstract interface).

Defines the contract that gateway adapters implement: opening a hosted
payment session, querying the authoritative status of an order's
transaction, and authenticating webhook payloads. Reconciliation never trusts
a webhook's own status field; it always re-queries through this port.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum

from marketplace.errors import ExternalServiceError


class GatewayError(ExternalServiceError):
    """The gateway rejected the request or could not be reached."""

    def __init__(self, message: str):
        super().__init__("payment-gateway", message)


class GatewayTimeout(GatewayError):
    """The gateway did not answer within the configured timeout."""


class GatewayOutcome(Enum):
    PAID = "PAID"
    FRAUD_REVIEW = "FRAUD_REVIEW"
    NOT_PAID = "NOT_PAID"


@dataclass(frozen=True)
class SessionResult:
    """A hosted payment session opened for an order."""

    token: str
    redirect_url: str


@dataclass(frozen=True)
class TransactionStatus:
    """Authoritative transaction state reported by the gateway."""

    transaction_status: str
    fraud_status: str | None = None
    transaction_id: str | None = None
    payment_type: str | None = None

    @property
    def outcome(self) -> GatewayOutcome:
        if self.transaction_status == "capture":
            if self.fraud_status == "challenge":
                return GatewayOutcome.FRAUD_REVIEW
            if self.fraud_status == "accept":
                return GatewayOutcome.PAID
            return GatewayOutcome.NOT_PAID
        if self.transaction_status == "settlement":
            return GatewayOutcome.PAID
        return GatewayOutcome.NOT_PAID


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    @abstractmethod
    def create_session(self, order_id: str, amount: float) -> SessionResult:
        """Open a hosted payment page for the order."""
        ...

    @abstractmethod
    def query_status(self, order_id: str) -> TransactionStatus:
        """Fetch the current transaction status for the order."""
        ...

    @abstractmethod
    def verify_signature(self, payload: dict) -> bool:
        """Verify that a webhook payload is authentically from the gateway."""
        ...
